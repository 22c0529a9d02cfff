from __future__ import annotations

import logging
from typing import List, Optional

from mall_navigation.services.errors import NotFoundError
from mall_navigation.services.models import ENTRANCE_KIND, NODE_KINDS, Node
from mall_navigation.services.topology_store import TopologyStore

logger = logging.getLogger(__name__)


class LocationService:
    """QR 위치 조회, 층/유형별 목록, 주변 위치와 비상구 탐색."""

    def __init__(self, topology: TopologyStore, grid_unit_meters: float = 5.0):
        self.topology = topology
        self.grid_unit_meters = grid_unit_meters

    def _distance(self, origin: Node, other: Node) -> float:
        return origin.grid_distance(other) * self.grid_unit_meters

    def validate_qr(self, qr_id: str) -> Node:
        node = self.topology.resolve_node(qr_id)
        if node is None:
            raise NotFoundError("Invalid QR code or location not found")
        return node

    def get_location(self, qr_id: str) -> Optional[Node]:
        return self.topology.resolve_node(qr_id)

    def all_locations(self) -> List[Node]:
        return sorted(self.topology.list_nodes(), key=lambda node: (node.floor, node.x, node.y))

    def locations_by_floor(self, floor: int) -> List[Node]:
        nodes = [node for node in self.topology.list_nodes() if node.floor == floor]
        return sorted(nodes, key=lambda node: (node.x, node.y))

    def locations_by_kind(self, kind: str) -> List[Node]:
        normalized = (kind or "").strip().lower()
        if normalized not in NODE_KINDS:
            raise ValueError(f"Unknown location type: {kind}")
        nodes = [node for node in self.topology.list_nodes() if node.kind == normalized]
        return sorted(nodes, key=lambda node: (node.floor, node.x, node.y))

    def nearby_locations(self, qr_id: str, max_distance: float = 50) -> List[Node]:
        origin = self.topology.resolve_node(qr_id)
        if origin is None:
            raise NotFoundError("Location not found")
        nearby = [
            node
            for node in self.topology.list_nodes()
            if node.identifier != origin.identifier
            and node.floor == origin.floor
            and self._distance(origin, node) <= max_distance
        ]
        return sorted(nearby, key=lambda node: self._distance(origin, node))

    def nearest_exit(self, qr_id: str) -> Node:
        """같은 층 출입구 중 맨해튼 거리가 가장 가까운 노드. 동률이면 먼저 등록된 출입구."""
        origin = self.topology.resolve_node(qr_id)
        if origin is None:
            raise NotFoundError("Location not found")
        exits = self.topology.find_nodes_by_floor_and_kind(origin.floor, ENTRANCE_KIND)
        if not exits:
            raise NotFoundError("No exit found")
        nearest = exits[0]
        shortest = self._distance(origin, nearest)
        for candidate in exits[1:]:
            distance = self._distance(origin, candidate)
            if distance < shortest:
                nearest, shortest = candidate, distance
        logger.info("비상구 안내: %s -> %s (%.0fm)", origin.identifier, nearest.identifier, shortest)
        return nearest
