from __future__ import annotations

from dataclasses import dataclass

from fastapi import HTTPException, Request

from mall_navigation.services.errors import (
    InvalidSessionError,
    NavigationError,
    NotFoundError,
    TopologyError,
)
from mall_navigation.services.location_service import LocationService
from mall_navigation.services.route_planner import RoutePlanner
from mall_navigation.services.session_store import InMemorySessionStore
from mall_navigation.services.store_directory import StoreDirectory
from mall_navigation.services.topology_store import TopologyStore


@dataclass(slots=True)
class NavigationServices:
    """요청 처리에 필요한 서비스 묶음. app.state.services 에 한 번 생성해 둔다."""

    topology: TopologyStore
    planner: RoutePlanner
    locations: LocationService
    stores: StoreDirectory
    sessions: InMemorySessionStore


def get_services(request: Request) -> NavigationServices:
    return request.app.state.services


def to_http_exception(exc: NavigationError) -> HTTPException:
    """코어 예외를 HTTP 상태 코드로 변환한다."""
    if isinstance(exc, NotFoundError):
        status_code = 404
    elif isinstance(exc, InvalidSessionError):
        status_code = 409
    elif isinstance(exc, TopologyError):
        status_code = 500
    else:
        status_code = 400
    return HTTPException(status_code=status_code, detail={"success": False, "error": str(exc), "code": exc.code})
