"""길안내 코어에서 사용하는 예외 계층."""

from __future__ import annotations

from typing import Iterable, List


class NavigationError(Exception):
    code = "NavigationError"


class NotFoundError(NavigationError):
    code = "NotFound"


class SessionNotFoundError(NotFoundError):
    pass


class NoVerticalLinkError(NavigationError):
    code = "NoVerticalLink"


class LandingUnresolvedError(NavigationError):
    code = "LandingUnresolved"


class NoRouteError(NavigationError):
    code = "NoRoute"


class UnknownCheckpointError(NavigationError):
    code = "UnknownCheckpoint"


class InvalidSessionError(NavigationError):
    code = "InvalidSession"


class TopologyError(NavigationError):
    """토폴로지 데이터 검증 실패. 발견된 문제를 모두 담는다."""

    code = "TopologyError"

    def __init__(self, problems: Iterable[str]):
        self.problems: List[str] = list(problems)
        summary = "; ".join(self.problems[:5])
        if len(self.problems) > 5:
            summary = f"{summary}; ... ({len(self.problems)} problems)"
        super().__init__(f"Invalid topology: {summary}")
