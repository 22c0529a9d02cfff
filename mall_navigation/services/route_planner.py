from __future__ import annotations

import logging
import math
import secrets
import time
from typing import Any, Dict, List, Optional, Tuple, Union

import networkx as nx

from mall_navigation.configuration import (
    GRAPH_WEIGHTS,
    ROUTING_STRATEGIES,
    get_navigation_settings,
    get_session_settings,
)
from mall_navigation.services.errors import (
    LandingUnresolvedError,
    NoRouteError,
    NotFoundError,
    NoVerticalLinkError,
)
from mall_navigation.services.models import (
    VERTICAL_KIND,
    Edge,
    Node,
    RouteResult,
    RouteStep,
    renumber_steps,
)
from mall_navigation.services.topology_store import TopologyStore

logger = logging.getLogger(__name__)

Number = Union[int, float]


def _compact(value: Number) -> Number:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def generate_session_id(prefix: str = "nav") -> str:
    """nav_<밀리초 타임스탬프>_<난수> 형식의 세션 ID."""
    return f"{prefix}_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}"


class RoutePlanner:
    """시작/도착 노드 사이의 안내 단계를 만든다.

    direct 방식은 좌표 차이만으로 단계를 만드는 기존 휴리스틱이고,
    graph 방식은 엣지 그래프 위에서 networkx 최단 경로를 따라간다.
    """

    def __init__(
        self,
        topology: TopologyStore,
        settings: Optional[Dict[str, Any]] = None,
        session_prefix: Optional[str] = None,
    ):
        navigation_settings = settings if settings is not None else get_navigation_settings()
        self.topology = topology
        self.strategy = self._resolve_choice(navigation_settings.get("routing_strategy"), ROUTING_STRATEGIES)
        self.graph_weight = self._resolve_choice(navigation_settings.get("graph_weight"), GRAPH_WEIGHTS)
        self.grid_unit_meters = self._resolve_positive_float(navigation_settings.get("grid_unit_meters"), fallback=5.0)
        self.walking_speed_mps = self._resolve_positive_float(navigation_settings.get("walking_speed_mps"), fallback=1.4)
        self.escalator_distance_m = self._resolve_positive_float(
            navigation_settings.get("escalator_distance_m"), fallback=30.0
        )
        self.escalator_seconds = int(
            self._resolve_positive_float(navigation_settings.get("escalator_seconds"), fallback=25.0)
        )
        self.landing_nodes: Dict[int, str] = {}
        for floor, node_id in (navigation_settings.get("landing_nodes") or {}).items():
            try:
                self.landing_nodes[int(floor)] = str(node_id).strip()
            except (TypeError, ValueError):
                logger.warning("잘못된 landing_nodes 항목을 무시합니다: %r -> %r", floor, node_id)
        if session_prefix is None:
            session_prefix = str(get_session_settings().get("id_prefix") or "nav")
        self.session_prefix = session_prefix

    @staticmethod
    def _resolve_positive_float(value: Optional[float], fallback: float) -> float:
        try:
            numeric = float(value)
        except (TypeError, ValueError):
            return fallback
        if not math.isfinite(numeric) or numeric <= 0:
            return fallback
        return numeric

    @staticmethod
    def _resolve_choice(value: Optional[str], choices: Tuple[str, ...]) -> str:
        normalized = str(value or "").strip().lower()
        if normalized not in choices:
            return choices[0]
        return normalized

    def _walking_time(self, distance: Number) -> int:
        return math.ceil(distance / self.walking_speed_mps)

    def _grid_meters(self, start: Node, end: Node) -> Number:
        return _compact(start.grid_distance(end) * self.grid_unit_meters)

    def _require_node(self, identifier: str, role: str) -> Node:
        node = self.topology.resolve_node(identifier)
        if node is None:
            raise NotFoundError(f"{role} location not found")
        return node

    def plan_route(
        self,
        start_id: str,
        destination_id: str,
        accessibility_needed: bool = False,
        strategy: Optional[str] = None,
    ) -> RouteResult:
        start = self._require_node(start_id, "Start")
        destination = self._require_node(destination_id, "Destination")
        resolved_strategy = self.strategy if strategy is None else self._resolve_strategy_override(strategy)
        if accessibility_needed:
            logger.info("접근성 경로 요청은 아직 경로 계산에 반영되지 않습니다: %s -> %s", start_id, destination_id)

        if resolved_strategy == "graph":
            steps = self._graph_steps(start, destination)
        elif start.floor == destination.floor:
            steps = self._direct_steps(start, destination)
        else:
            steps = self._escalator_steps(start, destination)

        numbered = renumber_steps(steps)
        total_distance = _compact(sum(step.distance for step in numbered))
        total_time = sum(step.estimated_time for step in numbered)
        result = RouteResult(
            session_id=generate_session_id(self.session_prefix),
            steps=numbered,
            total_distance=total_distance,
            total_time=total_time,
            strategy=resolved_strategy,
        )
        logger.info(
            "경로 계산 완료 [%s] %s -> %s: %d단계, %sm, %ds",
            resolved_strategy,
            start.identifier,
            destination.identifier,
            len(numbered),
            total_distance,
            total_time,
        )
        return result

    @staticmethod
    def _resolve_strategy_override(strategy: str) -> str:
        normalized = strategy.strip().lower()
        if normalized not in ROUTING_STRATEGIES:
            raise ValueError(f"Unknown routing strategy: {strategy}")
        return normalized

    def _direct_steps(self, start: Node, destination: Node) -> List[RouteStep]:
        steps: List[RouteStep] = []
        dx = destination.x - start.x
        dy = destination.y - start.y
        legs = (
            (dx, "right" if dx > 0 else "left"),
            (dy, "forward" if dy > 0 else "backward"),
        )
        for offset, direction in legs:
            if offset == 0:
                continue
            distance = _compact(abs(offset) * self.grid_unit_meters)
            steps.append(
                RouteStep(
                    step_number=len(steps) + 1,
                    instruction=f"Walk {direction} {distance} meters",
                    direction=direction,
                    landmark=f"Toward {destination.name}",
                    checkpoint=destination.identifier,
                    distance=distance,
                    estimated_time=self._walking_time(distance),
                )
            )
        if not steps:
            steps.append(self._arrived_step(destination))
        return steps

    @staticmethod
    def _arrived_step(destination: Node) -> RouteStep:
        return RouteStep(
            step_number=1,
            instruction=f"You have arrived at {destination.name}",
            direction="arrived",
            landmark=destination.name,
            checkpoint=destination.identifier,
            distance=0,
            estimated_time=0,
        )

    def _resolve_landing(self, destination: Node) -> Node:
        landing_id = self.landing_nodes.get(destination.floor)
        if landing_id:
            landing = self.topology.resolve_node(landing_id)
            if landing is None or landing.floor != destination.floor:
                raise LandingUnresolvedError(f"Escalator landing {landing_id} not found on Floor {destination.floor}")
            return landing
        candidates = self.topology.find_nodes_by_floor_and_kind(destination.floor, VERTICAL_KIND)
        if not candidates:
            raise LandingUnresolvedError(f"No escalator landing found on Floor {destination.floor}")
        return candidates[0]

    def _escalator_steps(self, start: Node, destination: Node) -> List[RouteStep]:
        escalators = self.topology.find_nodes_by_floor_and_kind(start.floor, VERTICAL_KIND)
        if not escalators:
            raise NoVerticalLinkError("No escalator found on start floor")
        escalator = escalators[0]
        landing = self._resolve_landing(destination)

        to_escalator = self._grid_meters(start, escalator)
        to_destination = self._grid_meters(landing, destination)
        escalator_distance = _compact(self.escalator_distance_m)
        ride_direction = "up" if destination.floor > start.floor else "down"
        escalator_label = f"Escalator to Floor {destination.floor}"
        return [
            RouteStep(
                step_number=1,
                instruction=f"Walk to escalator ({to_escalator}m)",
                direction="straight",
                landmark=escalator_label,
                checkpoint=escalator.identifier,
                distance=to_escalator,
                estimated_time=self._walking_time(to_escalator),
            ),
            RouteStep(
                step_number=2,
                instruction=f"Take escalator to Floor {destination.floor}",
                direction=ride_direction,
                landmark=escalator_label,
                checkpoint=landing.identifier,
                distance=escalator_distance,
                estimated_time=self.escalator_seconds,
            ),
            RouteStep(
                step_number=3,
                instruction=f"Walk to {destination.name} ({to_destination}m)",
                direction="straight",
                landmark=destination.name,
                checkpoint=destination.identifier,
                distance=to_destination,
                estimated_time=self._walking_time(to_destination),
            ),
        ]

    def _derive_edge(self, source: Node, target: Node) -> Edge:
        """저장된 엣지가 없는 인접 노드 쌍에 대해 좌표로 엣지를 만든다."""
        if source.floor != target.floor:
            direction = "up" if target.floor > source.floor else "down"
            return Edge(
                source=source.identifier,
                target=target.identifier,
                distance=_compact(self.escalator_distance_m),
                direction=direction,
                instructions=f"Take escalator {direction} to Floor {target.floor}",
                estimated_time=self.escalator_seconds,
                landmarks=(f"Escalator to Floor {target.floor}",),
                floor_change=True,
            )
        dx = target.x - source.x
        dy = target.y - source.y
        if dx and dy:
            direction, verb = "diagonal", "Walk diagonally"
        elif dx > 0:
            direction, verb = "right", "Turn right"
        elif dx < 0:
            direction, verb = "left", "Turn left"
        else:
            direction, verb = "straight", "Walk straight"
        distance = max(self._grid_meters(source, target), 1)
        return Edge(
            source=source.identifier,
            target=target.identifier,
            distance=distance,
            direction=direction,
            instructions=f"{verb} toward {target.name}",
            estimated_time=self._walking_time(distance),
        )

    def build_graph(self) -> nx.DiGraph:
        graph = nx.DiGraph()
        nodes = self.topology.list_nodes()
        for node in nodes:
            graph.add_node(node.identifier, node=node)
        for edge in self.topology.list_edges():
            graph.add_edge(
                edge.source,
                edge.target,
                edge=edge,
                distance=edge.distance,
                estimated_time=edge.estimated_time,
            )
        for node in nodes:
            for neighbor_id in node.connected:
                if neighbor_id not in graph:
                    continue
                neighbor = graph.nodes[neighbor_id]["node"]
                for source, target in ((node, neighbor), (neighbor, node)):
                    if graph.has_edge(source.identifier, target.identifier):
                        continue
                    edge = self._derive_edge(source, target)
                    graph.add_edge(
                        source.identifier,
                        target.identifier,
                        edge=edge,
                        distance=edge.distance,
                        estimated_time=edge.estimated_time,
                    )
        return graph

    def _graph_steps(self, start: Node, destination: Node) -> List[RouteStep]:
        if start.identifier == destination.identifier:
            return [self._arrived_step(destination)]
        graph = self.build_graph()
        try:
            path = nx.shortest_path(graph, start.identifier, destination.identifier, weight=self.graph_weight)
        except nx.NetworkXNoPath as exc:
            raise NoRouteError(f"No route from {start.identifier} to {destination.identifier}") from exc

        steps: List[RouteStep] = []
        for source_id, target_id in zip(path, path[1:]):
            edge: Edge = graph.edges[source_id, target_id]["edge"]
            target: Node = graph.nodes[target_id]["node"]
            steps.append(
                RouteStep(
                    step_number=len(steps) + 1,
                    instruction=edge.instructions or f"Walk to {target.name}",
                    direction=edge.direction,
                    landmark=", ".join(edge.landmarks) or target.name,
                    checkpoint=target_id,
                    distance=_compact(edge.distance),
                    estimated_time=edge.estimated_time,
                )
            )
        return steps


__all__ = ["RoutePlanner", "generate_session_id"]
