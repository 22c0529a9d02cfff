from mall_navigation.services.checkpoint_tracker import (
    CheckpointResult,
    NavigationSession,
    SessionStatus,
    validate_checkpoint,
)
from mall_navigation.services.location_service import LocationService
from mall_navigation.services.route_planner import RoutePlanner
from mall_navigation.services.session_store import InMemorySessionStore
from mall_navigation.services.store_directory import StoreDirectory
from mall_navigation.services.topology_store import InMemoryTopologyStore, TopologyStore, load_topology

__all__ = [
    "CheckpointResult",
    "NavigationSession",
    "SessionStatus",
    "validate_checkpoint",
    "LocationService",
    "RoutePlanner",
    "InMemorySessionStore",
    "StoreDirectory",
    "InMemoryTopologyStore",
    "TopologyStore",
    "load_topology",
]
