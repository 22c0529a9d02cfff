from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from mall_navigation import __version__
from mall_navigation.api.dependencies import NavigationServices, get_services, to_http_exception
from mall_navigation.api.schemas import (
    CategoryListResponse,
    CheckpointRequest,
    CheckpointResponse,
    EmergencyExitResponse,
    LocationListResponse,
    LocationResponse,
    RouteRequest,
    RouteResponse,
    SessionResponse,
    SessionStatsResponse,
    StoreListResponse,
    StoreResponse,
)
from mall_navigation.configuration import (
    configure_logging,
    get_navigation_settings,
    get_topology_settings,
)
from mall_navigation.services.checkpoint_tracker import (
    cancel_session,
    complete_session,
    session_stats,
    start_session,
    validate_checkpoint,
)
from mall_navigation.services.errors import InvalidSessionError, NavigationError
from mall_navigation.services.location_service import LocationService
from mall_navigation.services.route_planner import RoutePlanner
from mall_navigation.services.session_store import InMemorySessionStore
from mall_navigation.services.store_directory import StoreDirectory
from mall_navigation.services.topology_store import TopologyStore, load_topology

logger = logging.getLogger(__name__)


def build_services(topology: Optional[TopologyStore] = None) -> NavigationServices:
    navigation_settings = get_navigation_settings()
    if topology is None:
        topology = load_topology(Path(get_topology_settings()["path"]))
    planner = RoutePlanner(topology, settings=navigation_settings)
    return NavigationServices(
        topology=topology,
        planner=planner,
        locations=LocationService(topology, grid_unit_meters=planner.grid_unit_meters),
        stores=StoreDirectory(topology),
        sessions=InMemorySessionStore(),
    )


def _format_route(route) -> dict:
    return {
        "success": True,
        "route": {
            "session_id": route.session_id,
            "total_distance": f"{route.total_distance}m",
            "estimated_time": f"{math.ceil(route.total_time / 60)} minutes",
            "steps": [step.to_dict() for step in route.steps],
            "current_step": route.current_step,
        },
    }


def create_app(topology: Optional[TopologyStore] = None) -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Mall Navigation API",
        description="QR 체크포인트 스캔으로 위치를 확인하고 매장까지 단계별 길안내를 제공합니다.",
        version=__version__,
    )
    app.state.services = build_services(topology)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check() -> dict:
        return {"status": "ok"}

    @app.post("/api/navigation/calculate", response_model=RouteResponse, summary="출발지에서 목적지까지 경로 계산")
    async def calculate_route(
        payload: RouteRequest, services: NavigationServices = Depends(get_services)
    ) -> dict:
        try:
            route = services.planner.plan_route(
                payload.start_location,
                payload.destination,
                accessibility_needed=payload.accessibility_needed,
                strategy=payload.strategy,
            )
        except NavigationError as exc:
            logger.warning("경로 계산 실패 %s -> %s: %s", payload.start_location, payload.destination, exc)
            raise to_http_exception(exc) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail={"success": False, "error": str(exc)}) from exc
        services.sessions.save(start_session(route, payload.start_location, payload.destination))
        return _format_route(route)

    @app.get("/api/navigation/emergency/nearest-exit", response_model=EmergencyExitResponse)
    async def nearest_exit(
        location: str = Query(..., min_length=1), services: NavigationServices = Depends(get_services)
    ) -> dict:
        try:
            exit_node = services.locations.nearest_exit(location)
        except NavigationError as exc:
            raise to_http_exception(exc) from exc
        return {"success": True, "emergency_exit": exit_node.to_dict()}

    @app.get("/api/navigation/sessions/{session_id}", response_model=SessionResponse)
    async def get_session(session_id: str, services: NavigationServices = Depends(get_services)) -> dict:
        try:
            return services.sessions.get(session_id).to_dict()
        except NavigationError as exc:
            raise to_http_exception(exc) from exc

    @app.post("/api/navigation/sessions/{session_id}/checkpoint", response_model=CheckpointResponse)
    async def scan_checkpoint(
        session_id: str,
        payload: CheckpointRequest,
        services: NavigationServices = Depends(get_services),
    ) -> dict:
        try:
            session = services.sessions.get(session_id)
        except NavigationError as exc:
            raise to_http_exception(exc) from exc
        updated, result = validate_checkpoint(session, payload.qr_id)
        if result.error_code == InvalidSessionError.code:
            raise to_http_exception(InvalidSessionError(result.message))
        services.sessions.save(updated)
        body = result.to_dict()
        body.update({"progress": updated.progress, "current_step": updated.current_step})
        return body

    @app.post("/api/navigation/sessions/{session_id}/complete", response_model=SessionResponse)
    async def finish_session(session_id: str, services: NavigationServices = Depends(get_services)) -> dict:
        try:
            session = services.sessions.get(session_id)
        except NavigationError as exc:
            raise to_http_exception(exc) from exc
        return services.sessions.save(complete_session(session)).to_dict()

    @app.delete("/api/navigation/sessions/{session_id}", response_model=SessionResponse)
    async def discard_session(session_id: str, services: NavigationServices = Depends(get_services)) -> dict:
        try:
            session = services.sessions.discard(session_id)
        except NavigationError as exc:
            raise to_http_exception(exc) from exc
        logger.info("세션 %s 취소", session_id)
        return cancel_session(session).to_dict()

    @app.get("/api/navigation/sessions/{session_id}/stats", response_model=SessionStatsResponse)
    async def get_session_stats(session_id: str, services: NavigationServices = Depends(get_services)) -> dict:
        try:
            stats = session_stats(services.sessions.get(session_id))
        except NavigationError as exc:
            raise to_http_exception(exc) from exc
        return {
            "elapsed_seconds": stats.elapsed_seconds,
            "estimated_remaining_seconds": stats.estimated_remaining_seconds,
            "average_step_seconds": stats.average_step_seconds,
        }

    @app.get("/api/locations", response_model=LocationListResponse)
    async def list_locations(services: NavigationServices = Depends(get_services)) -> dict:
        nodes = services.locations.all_locations()
        return {"success": True, "locations": [node.to_dict() for node in nodes], "total": len(nodes)}

    @app.get("/api/locations/floor/{floor}", response_model=LocationListResponse)
    async def list_locations_by_floor(floor: int, services: NavigationServices = Depends(get_services)) -> dict:
        nodes = services.locations.locations_by_floor(floor)
        return {"success": True, "locations": [node.to_dict() for node in nodes], "total": len(nodes)}

    @app.get("/api/locations/type/{kind}", response_model=LocationListResponse)
    async def list_locations_by_type(kind: str, services: NavigationServices = Depends(get_services)) -> dict:
        try:
            nodes = services.locations.locations_by_kind(kind)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail={"success": False, "error": str(exc)}) from exc
        return {"success": True, "locations": [node.to_dict() for node in nodes], "total": len(nodes)}

    @app.get("/api/locations/{qr_id}", response_model=LocationResponse)
    async def get_location(qr_id: str, services: NavigationServices = Depends(get_services)) -> dict:
        try:
            node = services.locations.validate_qr(qr_id)
        except NavigationError as exc:
            raise to_http_exception(exc) from exc
        return {"success": True, "location": node.to_dict()}

    @app.get("/api/locations/{qr_id}/nearby", response_model=LocationListResponse)
    async def list_nearby_locations(
        qr_id: str,
        max_distance: float = Query(50, gt=0),
        services: NavigationServices = Depends(get_services),
    ) -> dict:
        try:
            nodes = services.locations.nearby_locations(qr_id, max_distance=max_distance)
        except NavigationError as exc:
            raise to_http_exception(exc) from exc
        return {"success": True, "locations": [node.to_dict() for node in nodes], "total": len(nodes)}

    @app.get("/api/stores", response_model=StoreListResponse)
    async def list_stores(
        floor: Optional[int] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        services: NavigationServices = Depends(get_services),
    ) -> dict:
        result = services.stores.list_stores(floor=floor, category=category, search=search)
        return {
            "success": True,
            "stores": [store.to_dict() for store in result.stores],
            "total": result.total,
            "filters": result.filters,
        }

    @app.get("/api/stores/categories/all", response_model=CategoryListResponse)
    async def list_categories(services: NavigationServices = Depends(get_services)) -> dict:
        categories = services.stores.categories()
        return {"success": True, "categories": categories, "total": len(categories)}

    @app.get("/api/stores/promotions/active", response_model=StoreListResponse)
    async def list_promoted_stores(services: NavigationServices = Depends(get_services)) -> dict:
        stores = services.stores.stores_with_promotions()
        return {"success": True, "stores": [store.to_dict() for store in stores], "total": len(stores)}

    @app.get("/api/stores/category/{category}", response_model=StoreListResponse)
    async def list_stores_by_category(category: str, services: NavigationServices = Depends(get_services)) -> dict:
        stores = services.stores.stores_by_category(category)
        return {
            "success": True,
            "stores": [store.to_dict() for store in stores],
            "total": len(stores),
            "filters": {"category": category},
        }

    @app.get("/api/stores/floor/{floor}", response_model=StoreListResponse)
    async def list_stores_by_floor(floor: int, services: NavigationServices = Depends(get_services)) -> dict:
        stores = services.stores.stores_by_floor(floor)
        return {
            "success": True,
            "stores": [store.to_dict() for store in stores],
            "total": len(stores),
            "filters": {"floor": floor},
        }

    @app.get("/api/stores/search/{query}", response_model=StoreListResponse)
    async def search_stores(query: str, services: NavigationServices = Depends(get_services)) -> dict:
        stores = services.stores.search(query)
        return {
            "success": True,
            "stores": [store.to_dict() for store in stores],
            "total": len(stores),
            "filters": {"search": query},
        }

    @app.get("/api/stores/{store_id}", response_model=StoreResponse)
    async def get_store(store_id: str, services: NavigationServices = Depends(get_services)) -> dict:
        try:
            store = services.stores.get_store(store_id)
        except NavigationError as exc:
            raise to_http_exception(exc) from exc
        return {"success": True, "store": store.to_dict()}

    return app


app = create_app()
