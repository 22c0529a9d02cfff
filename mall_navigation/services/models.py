from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Literal, Optional, Tuple

NodeKind = Literal["entrance", "intersection", "vertical", "amenity", "shop"]
EdgeDirection = Literal["straight", "left", "right", "up", "down", "diagonal"]

NODE_KINDS: Tuple[str, ...] = ("entrance", "intersection", "vertical", "amenity", "shop")
EDGE_DIRECTIONS: Tuple[str, ...] = ("straight", "left", "right", "up", "down", "diagonal")
VERTICAL_KIND = "vertical"
ENTRANCE_KIND = "entrance"

MIN_FLOOR = 1
MAX_FLOOR = 10
MIN_COORDINATE = 0
MAX_COORDINATE = 9

WEEKDAYS: Tuple[str, ...] = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def default_operating_hours() -> Dict[str, str]:
    hours = {day: "9:00-18:00" for day in WEEKDAYS}
    hours["sunday"] = "10:00-16:00"
    return hours


@dataclass(frozen=True, slots=True)
class Node:
    """QR 코드가 부착된 건물 내 한 지점."""

    identifier: str
    floor: int
    name: str
    kind: NodeKind
    x: int
    y: int
    landmarks: Tuple[str, ...] = ()
    connected: Tuple[str, ...] = ()
    is_active: bool = True

    def grid_distance(self, other: "Node") -> int:
        return abs(self.x - other.x) + abs(self.y - other.y)

    def to_dict(self) -> dict:
        return {
            "qr_id": self.identifier,
            "floor": self.floor,
            "name": self.name,
            "type": self.kind,
            "coordinates": {"x": self.x, "y": self.y},
            "nearby_landmarks": list(self.landmarks),
            "connected_nodes": list(self.connected),
        }


@dataclass(frozen=True, slots=True)
class Edge:
    source: str
    target: str
    distance: float
    direction: EdgeDirection
    instructions: str
    estimated_time: int
    landmarks: Tuple[str, ...] = ()
    is_accessible: bool = True
    floor_change: bool = False


@dataclass(frozen=True, slots=True)
class Promotion:
    title: str
    valid_until: date
    is_active: bool = True

    def is_running(self, today: date) -> bool:
        return self.is_active and self.valid_until > today


@dataclass(frozen=True, slots=True)
class Store:
    store_id: str
    name: str
    floor: int
    category: str
    node_id: str
    x: int
    y: int
    operating_hours: Dict[str, str] = field(default_factory=default_operating_hours)
    contact: str = ""
    description: str = ""
    promotions: Tuple[Promotion, ...] = ()
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "store_id": self.store_id,
            "name": self.name,
            "floor": self.floor,
            "category": self.category,
            "location": {"x": self.x, "y": self.y},
            "operating_hours": dict(self.operating_hours),
            "contact": self.contact,
            "description": self.description,
            "promotions": [
                {
                    "title": promotion.title,
                    "valid_until": promotion.valid_until.isoformat(),
                    "is_active": promotion.is_active,
                }
                for promotion in self.promotions
            ],
            "qr_location": self.node_id,
        }


@dataclass(frozen=True, slots=True)
class RouteStep:
    step_number: int
    instruction: str
    direction: str
    landmark: str
    checkpoint: str
    distance: float
    estimated_time: int

    def to_dict(self) -> dict:
        return {
            "step_number": self.step_number,
            "instruction": self.instruction,
            "direction": self.direction,
            "landmark": self.landmark,
            "checkpoint_qr": self.checkpoint,
            "distance": self.distance,
            "estimated_time": self.estimated_time,
        }


@dataclass(frozen=True, slots=True)
class RouteResult:
    session_id: str
    steps: Tuple[RouteStep, ...]
    total_distance: float
    total_time: int
    strategy: str = "direct"
    current_step: int = 1

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "total_distance": self.total_distance,
            "estimated_time": self.total_time,
            "steps": [step.to_dict() for step in self.steps],
            "current_step": self.current_step,
        }


def renumber_steps(steps: List[RouteStep]) -> Tuple[RouteStep, ...]:
    """단계 번호를 1부터 연속되도록 다시 매긴다."""
    return tuple(
        RouteStep(
            step_number=index,
            instruction=step.instruction,
            direction=step.direction,
            landmark=step.landmark,
            checkpoint=step.checkpoint,
            distance=step.distance,
            estimated_time=step.estimated_time,
        )
        for index, step in enumerate(steps, start=1)
    )


def find_step(steps: Tuple[RouteStep, ...], checkpoint: str) -> Optional[int]:
    for index, step in enumerate(steps):
        if step.checkpoint == checkpoint:
            return index
    return None
