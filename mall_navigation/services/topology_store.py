from __future__ import annotations

import json
import logging
import math
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from mall_navigation.services.errors import TopologyError
from mall_navigation.services.models import (
    EDGE_DIRECTIONS,
    MAX_COORDINATE,
    MAX_FLOOR,
    MIN_COORDINATE,
    MIN_FLOOR,
    NODE_KINDS,
    VERTICAL_KIND,
    Edge,
    Node,
    Promotion,
    Store,
    default_operating_hours,
)

logger = logging.getLogger(__name__)


class TopologyStore(Protocol):
    """경로 계산 코어가 의존하는 읽기 전용 토폴로지 조회 인터페이스."""

    def resolve_node(self, identifier: str) -> Optional[Node]:
        ...

    def find_nodes_by_floor_and_kind(self, floor: int, kind: str) -> List[Node]:
        ...

    def list_nodes(self) -> List[Node]:
        ...

    def list_edges(self) -> List[Edge]:
        ...

    def list_stores(self) -> List[Store]:
        ...

    def get_store(self, store_id: str) -> Optional[Store]:
        ...


class InMemoryTopologyStore:
    """노드/엣지/매장을 메모리에 보관하는 기본 토폴로지 저장소. 비활성 항목은 조회되지 않는다."""

    def __init__(
        self,
        nodes: Iterable[Node],
        edges: Iterable[Edge] = (),
        stores: Iterable[Store] = (),
    ):
        self._nodes: Dict[str, Node] = {}
        for node in nodes:
            self._nodes[node.identifier] = node
        self._edges: Dict[Tuple[str, str], Edge] = {}
        for edge in edges:
            self._edges[(edge.source, edge.target)] = edge
        self._stores: Dict[str, Store] = {}
        for store in stores:
            self._stores[store.store_id] = store

    def resolve_node(self, identifier: str) -> Optional[Node]:
        node = self._nodes.get((identifier or "").strip())
        if node is None or not node.is_active:
            return None
        return node

    def find_nodes_by_floor_and_kind(self, floor: int, kind: str) -> List[Node]:
        return [node for node in self.list_nodes() if node.floor == floor and node.kind == kind]

    def list_nodes(self) -> List[Node]:
        return [node for node in self._nodes.values() if node.is_active]

    def list_edges(self) -> List[Edge]:
        return [
            edge
            for edge in self._edges.values()
            if self.resolve_node(edge.source) is not None and self.resolve_node(edge.target) is not None
        ]

    def list_stores(self) -> List[Store]:
        return [store for store in self._stores.values() if store.is_active]

    def get_store(self, store_id: str) -> Optional[Store]:
        store = self._stores.get((store_id or "").strip())
        if store is None or not store.is_active:
            return None
        return store


def _as_int(value, label: str, problems: List[str]) -> Optional[int]:
    if isinstance(value, bool):
        problems.append(f"{label} must be an integer")
        return None
    try:
        numeric = int(value)
    except (TypeError, ValueError):
        problems.append(f"{label} must be an integer")
        return None
    if numeric != value:
        problems.append(f"{label} must be an integer")
        return None
    return numeric


def _as_strings(values) -> Tuple[str, ...]:
    if not values:
        return ()
    return tuple(str(value).strip() for value in values if str(value).strip())


def _parse_node(raw: dict, problems: List[str]) -> Optional[Node]:
    if not isinstance(raw, dict):
        problems.append("node entry must be an object")
        return None
    identifier = str(raw.get("qr_id") or raw.get("id") or "").strip()
    if not identifier:
        problems.append("node without qr_id")
        return None
    coordinates = raw.get("coordinates")
    if not isinstance(coordinates, dict):
        coordinates = {}
    floor = _as_int(raw.get("floor"), f"node {identifier} floor", problems)
    x = _as_int(coordinates.get("x"), f"node {identifier} x", problems)
    y = _as_int(coordinates.get("y"), f"node {identifier} y", problems)
    if floor is None or x is None or y is None:
        return None
    return Node(
        identifier=identifier,
        floor=floor,
        name=str(raw.get("name") or identifier).strip(),
        kind=str(raw.get("type") or "").strip().lower(),
        x=x,
        y=y,
        landmarks=_as_strings(raw.get("nearby_landmarks")),
        connected=_as_strings(raw.get("connected_nodes")),
        is_active=bool(raw.get("is_active", True)),
    )


def _parse_edge(raw: dict, problems: List[str]) -> Optional[Edge]:
    if not isinstance(raw, dict):
        problems.append("edge entry must be an object")
        return None
    source = str(raw.get("from_node") or "").strip()
    target = str(raw.get("to_node") or "").strip()
    if not source or not target:
        problems.append("edge without from_node/to_node")
        return None
    label = f"edge {source}->{target}"
    try:
        distance = float(raw.get("distance"))
    except (TypeError, ValueError):
        problems.append(f"{label} distance must be a number")
        return None
    estimated_time = _as_int(raw.get("estimated_time"), f"{label} estimated_time", problems)
    if estimated_time is None:
        return None
    return Edge(
        source=source,
        target=target,
        distance=distance,
        direction=str(raw.get("direction") or "").strip().lower(),
        instructions=str(raw.get("instructions") or "").strip(),
        estimated_time=estimated_time,
        landmarks=_as_strings(raw.get("landmarks")),
        is_accessible=bool(raw.get("is_accessible", True)),
        floor_change=bool(raw.get("floor_change", False)),
    )


def _parse_store(raw: dict, problems: List[str]) -> Optional[Store]:
    if not isinstance(raw, dict):
        problems.append("store entry must be an object")
        return None
    store_id = str(raw.get("store_id") or "").strip()
    if not store_id:
        problems.append("store without store_id")
        return None
    location = raw.get("location")
    if not isinstance(location, dict):
        location = {}
    floor = _as_int(raw.get("floor"), f"store {store_id} floor", problems)
    x = _as_int(location.get("x"), f"store {store_id} x", problems)
    y = _as_int(location.get("y"), f"store {store_id} y", problems)
    if floor is None or x is None or y is None:
        return None
    hours = default_operating_hours()
    hours.update({str(day).lower(): str(value) for day, value in (raw.get("operating_hours") or {}).items()})
    promotions: List[Promotion] = []
    for item in raw.get("promotions") or []:
        if not isinstance(item, dict):
            problems.append(f"store {store_id} promotion must be an object")
            continue
        try:
            valid_until = date.fromisoformat(str(item.get("valid_until"))[:10])
        except ValueError:
            problems.append(f"store {store_id} promotion has invalid valid_until")
            continue
        promotions.append(
            Promotion(
                title=str(item.get("title") or "").strip(),
                valid_until=valid_until,
                is_active=bool(item.get("is_active", True)),
            )
        )
    return Store(
        store_id=store_id,
        name=str(raw.get("name") or store_id).strip(),
        floor=floor,
        category=str(raw.get("category") or "").strip(),
        node_id=str(raw.get("qr_location") or "").strip(),
        x=x,
        y=y,
        operating_hours=hours,
        contact=str(raw.get("contact") or ""),
        description=str(raw.get("description") or ""),
        promotions=tuple(promotions),
        is_active=bool(raw.get("is_active", True)),
    )


def validate_topology(nodes: List[Node], edges: List[Edge], stores: List[Store]) -> List[str]:
    problems: List[str] = []
    index: Dict[str, Node] = {}
    for node in nodes:
        if node.identifier in index:
            problems.append(f"duplicate node {node.identifier}")
        index[node.identifier] = node
        if node.kind not in NODE_KINDS:
            problems.append(f"node {node.identifier} has unknown type: {node.kind}")
        if not MIN_FLOOR <= node.floor <= MAX_FLOOR:
            problems.append(f"node {node.identifier} floor out of range: {node.floor}")
        for axis, value in (("x", node.x), ("y", node.y)):
            if not MIN_COORDINATE <= value <= MAX_COORDINATE:
                problems.append(f"node {node.identifier} {axis} out of range: {value}")
    for node in nodes:
        for neighbor in node.connected:
            if neighbor not in index:
                problems.append(f"node {node.identifier} connected to missing node {neighbor}")

    seen_pairs = set()
    for edge in edges:
        label = f"edge {edge.source}->{edge.target}"
        if (edge.source, edge.target) in seen_pairs:
            problems.append(f"duplicate {label}")
        seen_pairs.add((edge.source, edge.target))
        source = index.get(edge.source)
        target = index.get(edge.target)
        if source is None:
            problems.append(f"{label} missing from_node")
        if target is None:
            problems.append(f"{label} missing to_node")
        if not math.isfinite(edge.distance) or edge.distance <= 0:
            problems.append(f"{label} distance must be positive")
        if edge.estimated_time <= 0:
            problems.append(f"{label} estimated_time must be positive")
        if edge.direction not in EDGE_DIRECTIONS:
            problems.append(f"{label} has unknown direction: {edge.direction}")
        if edge.floor_change and source is not None and target is not None:
            if source.kind != VERTICAL_KIND or target.kind != VERTICAL_KIND or source.floor == target.floor:
                problems.append(f"{label} floor change must link vertical nodes on different floors")

    store_ids = set()
    for store in stores:
        if store.store_id in store_ids:
            problems.append(f"duplicate store {store.store_id}")
        store_ids.add(store.store_id)
        if store.node_id not in index:
            problems.append(f"store {store.store_id} bound to missing node {store.node_id}")
    return problems


def parse_topology(payload: dict) -> InMemoryTopologyStore:
    """JSON 페이로드를 검증해 토폴로지 저장소로 만든다. 문제가 하나라도 있으면 TopologyError."""
    if not isinstance(payload, dict):
        raise TopologyError(["topology payload must be an object"])
    problems: List[str] = []
    nodes = [node for node in (_parse_node(raw, problems) for raw in payload.get("nodes") or []) if node]
    edges = [edge for edge in (_parse_edge(raw, problems) for raw in payload.get("edges") or []) if edge]
    stores = [store for store in (_parse_store(raw, problems) for raw in payload.get("stores") or []) if store]
    if not nodes:
        problems.append("no nodes")
    problems.extend(validate_topology(nodes, edges, stores))
    if problems:
        raise TopologyError(problems)
    return InMemoryTopologyStore(nodes, edges, stores)


def load_topology(path: Path) -> InMemoryTopologyStore:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"토폴로지 파일을 찾을 수 없습니다: {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise TopologyError([f"{path.name} is not valid JSON: {exc}"]) from exc
    store = parse_topology(payload)
    logger.info(
        "토폴로지 로드 완료: %s (노드 %d, 엣지 %d, 매장 %d)",
        path,
        len(store.list_nodes()),
        len(store.list_edges()),
        len(store.list_stores()),
    )
    return store


__all__ = [
    "TopologyStore",
    "InMemoryTopologyStore",
    "validate_topology",
    "parse_topology",
    "load_topology",
]
