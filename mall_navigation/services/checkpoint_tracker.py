"""안내 세션 상태와 체크포인트(QR 스캔) 검증 전이 함수."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple

from mall_navigation.services.errors import InvalidSessionError, UnknownCheckpointError
from mall_navigation.services.models import RouteResult, RouteStep, find_step

logger = logging.getLogger(__name__)


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _percent(done: int, total: int) -> int:
    # 0.5 는 올림
    return int(math.floor(100 * done / total + 0.5))


@dataclass(frozen=True, slots=True)
class NavigationSession:
    session_id: str
    start_location: str
    destination: str
    steps: Tuple[RouteStep, ...]
    total_distance: float
    total_time: int
    started_at: datetime
    current_step: int = 1
    progress: int = 0
    status: SessionStatus = SessionStatus.ACTIVE
    last_checkpoint_at: Optional[datetime] = None

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def is_active(self) -> bool:
        return self.status is SessionStatus.ACTIVE

    @property
    def expected_checkpoint(self) -> Optional[str]:
        step = self.current()
        return step.checkpoint if step else None

    def current(self) -> Optional[RouteStep]:
        if not self.is_active:
            return None
        return self.steps[self.current_step - 1]

    def upcoming(self) -> Optional[RouteStep]:
        if not self.is_active or self.current_step >= self.total_steps:
            return None
        return self.steps[self.current_step]

    def remaining(self) -> Tuple[RouteStep, ...]:
        if not self.is_active:
            return ()
        return self.steps[self.current_step:]

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "start_location": self.start_location,
            "destination": self.destination,
            "current_step": self.current_step,
            "total_steps": self.total_steps,
            "steps": [step.to_dict() for step in self.steps],
            "total_distance": self.total_distance,
            "estimated_time": self.total_time,
            "progress": self.progress,
            "status": self.status.value,
            "is_active": self.is_active,
            "started_at": self.started_at.isoformat(),
            "last_checkpoint_at": self.last_checkpoint_at.isoformat() if self.last_checkpoint_at else None,
        }


@dataclass(frozen=True, slots=True)
class CheckpointResult:
    success: bool
    is_correct_checkpoint: bool
    is_destination: bool
    remaining_steps: int
    message: str
    next_step: Optional[RouteStep] = None
    error_code: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "is_correct_checkpoint": self.is_correct_checkpoint,
            "is_destination": self.is_destination,
            "next_step": self.next_step.to_dict() if self.next_step else None,
            "remaining_steps": self.remaining_steps,
            "message": self.message,
            "error_code": self.error_code,
        }


@dataclass(frozen=True, slots=True)
class SessionStats:
    elapsed_seconds: int
    estimated_remaining_seconds: int
    average_step_seconds: int


def start_session(
    route: RouteResult,
    start_location: str,
    destination: str,
    now: Optional[datetime] = None,
) -> NavigationSession:
    if not route.steps:
        raise ValueError("route has no steps")
    return NavigationSession(
        session_id=route.session_id,
        start_location=start_location,
        destination=destination,
        steps=route.steps,
        total_distance=route.total_distance,
        total_time=route.total_time,
        started_at=now or _utc_now(),
    )


def validate_checkpoint(
    session: Optional[NavigationSession],
    scanned_id: str,
    now: Optional[datetime] = None,
) -> Tuple[Optional[NavigationSession], CheckpointResult]:
    """스캔한 QR 을 현재 세션과 비교해 (다음 세션, 결과) 를 돌려준다. 입력 세션은 바꾸지 않는다."""
    if session is None or not session.is_active:
        return session, CheckpointResult(
            success=False,
            is_correct_checkpoint=False,
            is_destination=False,
            remaining_steps=0,
            message="No active navigation session",
            error_code=InvalidSessionError.code,
        )

    scanned = (scanned_id or "").strip()
    timestamp = now or _utc_now()
    total = session.total_steps
    position = session.current_step

    if scanned == session.expected_checkpoint:
        if position == total:
            finished = replace(
                session,
                current_step=position + 1,
                progress=100,
                status=SessionStatus.COMPLETED,
                last_checkpoint_at=timestamp,
            )
            logger.info("세션 %s 목적지 도착", session.session_id)
            return finished, CheckpointResult(
                success=True,
                is_correct_checkpoint=True,
                is_destination=True,
                remaining_steps=0,
                message="Congratulations! You have reached your destination!",
            )
        advanced = replace(
            session,
            current_step=position + 1,
            progress=_percent(position, total),
            last_checkpoint_at=timestamp,
        )
        next_step = session.steps[position]
        return advanced, CheckpointResult(
            success=True,
            is_correct_checkpoint=True,
            is_destination=False,
            remaining_steps=total - position,
            message=f"Great! Moving to step {position + 1}. {next_step.instruction}",
            next_step=next_step,
        )

    index = find_step(session.steps, scanned)
    if index is None:
        logger.warning("세션 %s: 경로에 없는 QR 스캔 %s", session.session_id, scanned)
        return session, CheckpointResult(
            success=False,
            is_correct_checkpoint=False,
            is_destination=False,
            remaining_steps=total - position + 1,
            message="Unknown QR code. Please scan the correct checkpoint.",
            error_code=UnknownCheckpointError.code,
        )

    # TODO: 이미 지나온 체크포인트를 다시 스캔해도 전진으로 처리된다. 역주행 감지 정책이 정해지면 반영.
    reached = index + 1
    finished = reached == total
    recalculated = replace(
        session,
        current_step=reached + 1,
        progress=_percent(reached, total),
        status=SessionStatus.COMPLETED if finished else SessionStatus.ACTIVE,
        last_checkpoint_at=timestamp,
    )
    logger.info("세션 %s: 순서가 다른 체크포인트 %s, %d단계부터 재계산", session.session_id, scanned, reached + 1)
    return recalculated, CheckpointResult(
        success=True,
        is_correct_checkpoint=False,
        is_destination=finished,
        remaining_steps=total - reached,
        message=f"You're at a different location. Route recalculated from step {reached + 1}",
        next_step=None if finished else session.steps[reached],
    )


def complete_session(session: NavigationSession) -> NavigationSession:
    return replace(session, status=SessionStatus.COMPLETED, progress=100)


def cancel_session(session: NavigationSession) -> NavigationSession:
    return replace(session, status=SessionStatus.CANCELLED)


def session_stats(session: NavigationSession) -> SessionStats:
    elapsed = 0
    if session.last_checkpoint_at is not None:
        elapsed = int(round((session.last_checkpoint_at - session.started_at).total_seconds()))
    remaining = 0
    if session.progress > 0:
        remaining = int(round(elapsed / session.progress * (100 - session.progress)))
    completed_steps = min(session.current_step - 1, session.total_steps)
    average = int(round(elapsed / completed_steps)) if completed_steps > 0 else 0
    return SessionStats(
        elapsed_seconds=elapsed,
        estimated_remaining_seconds=remaining,
        average_step_seconds=average,
    )


__all__ = [
    "SessionStatus",
    "NavigationSession",
    "CheckpointResult",
    "SessionStats",
    "start_session",
    "validate_checkpoint",
    "complete_session",
    "cancel_session",
    "session_stats",
]
