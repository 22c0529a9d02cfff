from __future__ import annotations

from copy import deepcopy
from typing import Iterable

import pytest

from mall_navigation.configuration import DEFAULT_SETTINGS, DEFAULT_TOPOLOGY_PATH
from mall_navigation.services.models import Node
from mall_navigation.services.route_planner import RoutePlanner
from mall_navigation.services.topology_store import InMemoryTopologyStore, load_topology


@pytest.fixture(scope="session")
def seed_topology() -> InMemoryTopologyStore:
    return load_topology(DEFAULT_TOPOLOGY_PATH)


@pytest.fixture
def navigation_settings() -> dict:
    return deepcopy(DEFAULT_SETTINGS["navigation"])


@pytest.fixture
def planner(seed_topology: InMemoryTopologyStore, navigation_settings: dict) -> RoutePlanner:
    return RoutePlanner(seed_topology, settings=navigation_settings, session_prefix="nav")


@pytest.fixture
def graph_planner(seed_topology: InMemoryTopologyStore, navigation_settings: dict) -> RoutePlanner:
    navigation_settings["routing_strategy"] = "graph"
    return RoutePlanner(seed_topology, settings=navigation_settings, session_prefix="nav")


def make_node(identifier: str, floor: int, kind: str, x: int, y: int, connected: Iterable[str] = (), **extra) -> Node:
    return Node(
        identifier=identifier,
        floor=floor,
        name=extra.pop("name", identifier),
        kind=kind,
        x=x,
        y=y,
        connected=tuple(connected),
        **extra,
    )
