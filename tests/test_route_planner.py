from __future__ import annotations

import re

import pytest

from mall_navigation.services.errors import LandingUnresolvedError, NotFoundError, NoVerticalLinkError
from mall_navigation.services.route_planner import RoutePlanner, generate_session_id
from mall_navigation.services.topology_store import InMemoryTopologyStore

from conftest import make_node


def test_same_floor_single_leg(planner: RoutePlanner) -> None:
    route = planner.plan_route("1E01", "1I01")
    assert route.strategy == "direct"
    assert len(route.steps) == 1
    step = route.steps[0]
    assert step.step_number == 1
    assert step.direction == "forward"
    assert step.distance == 10
    assert step.estimated_time == 8
    assert step.checkpoint == "1I01"
    assert step.instruction == "Walk forward 10 meters"
    assert step.landmark == "Toward Information Desk Intersection"
    assert route.total_distance == 10
    assert route.total_time == 8


def test_same_floor_two_legs_horizontal_first(planner: RoutePlanner) -> None:
    route = planner.plan_route("1E01", "1S01")
    assert [step.direction for step in route.steps] == ["right", "forward"]
    assert [step.distance for step in route.steps] == [15, 25]
    assert [step.estimated_time for step in route.steps] == [11, 18]
    assert [step.step_number for step in route.steps] == [1, 2]
    assert all(step.checkpoint == "1S01" for step in route.steps)


def test_same_floor_negative_offsets(planner: RoutePlanner) -> None:
    route = planner.plan_route("1S01", "1E01")
    assert [step.direction for step in route.steps] == ["left", "backward"]


def test_same_node_yields_arrived_step(planner: RoutePlanner) -> None:
    route = planner.plan_route("1I02", "1I02")
    assert len(route.steps) == 1
    assert route.steps[0].direction == "arrived"
    assert route.steps[0].distance == 0
    assert route.total_time == 0


def test_cross_floor_three_steps(planner: RoutePlanner) -> None:
    route = planner.plan_route("1E01", "2S01")
    assert len(route.steps) == 3
    walk, ride, finish = route.steps
    assert walk.checkpoint == "1V01"
    assert walk.distance == 25
    assert walk.estimated_time == 18
    assert walk.instruction == "Walk to escalator (25m)"
    assert ride.checkpoint == "2E01"
    assert ride.direction == "up"
    assert ride.distance == 30
    assert ride.estimated_time == 25
    assert ride.instruction == "Take escalator to Floor 2"
    assert finish.checkpoint == "2S01"
    assert finish.distance == 15
    assert finish.estimated_time == 11
    assert route.total_distance == 70
    assert route.total_time == 54


def test_cross_floor_down_uses_first_vertical_on_destination_floor(planner: RoutePlanner) -> None:
    route = planner.plan_route("2S01", "1S01")
    walk, ride, finish = route.steps
    assert walk.checkpoint == "2V01"
    assert ride.direction == "down"
    assert ride.checkpoint == "1V01"
    assert finish.checkpoint == "1S01"
    assert finish.distance == 15


def test_unknown_nodes_raise_not_found(planner: RoutePlanner) -> None:
    with pytest.raises(NotFoundError, match="Start location not found"):
        planner.plan_route("9Z99", "1I01")
    with pytest.raises(NotFoundError, match="Destination location not found"):
        planner.plan_route("1I01", "9Z99")


def test_unknown_strategy_override_is_rejected(planner: RoutePlanner) -> None:
    with pytest.raises(ValueError):
        planner.plan_route("1E01", "1I01", strategy="teleport")


def test_planning_is_repeatable_apart_from_session_id(planner: RoutePlanner) -> None:
    first = planner.plan_route("1E01", "2S01")
    second = planner.plan_route("1E01", "2S01")
    assert first.steps == second.steps
    assert first.total_distance == second.total_distance
    assert first.total_time == second.total_time


def test_step_totals_match_sums(planner: RoutePlanner) -> None:
    route = planner.plan_route("1S03", "2S06")
    assert route.total_distance == sum(step.distance for step in route.steps)
    assert route.total_time == sum(step.estimated_time for step in route.steps)
    assert [step.step_number for step in route.steps] == list(range(1, len(route.steps) + 1))


def test_accessibility_flag_does_not_change_route(planner: RoutePlanner) -> None:
    plain = planner.plan_route("1E01", "2S01")
    accessible = planner.plan_route("1E01", "2S01", accessibility_needed=True)
    assert plain.steps == accessible.steps


def test_no_vertical_node_on_start_floor(navigation_settings: dict) -> None:
    topology = InMemoryTopologyStore(
        [
            make_node("1E01", 1, "entrance", 0, 0),
            make_node("2V01", 2, "vertical", 5, 5),
            make_node("2S01", 2, "shop", 8, 5),
        ]
    )
    planner = RoutePlanner(topology, settings=navigation_settings, session_prefix="nav")
    with pytest.raises(NoVerticalLinkError):
        planner.plan_route("1E01", "2S01")


def test_landing_missing_on_destination_floor(navigation_settings: dict) -> None:
    navigation_settings["landing_nodes"] = {}
    topology = InMemoryTopologyStore(
        [
            make_node("1V01", 1, "vertical", 5, 5),
            make_node("3S01", 3, "shop", 1, 1),
        ]
    )
    planner = RoutePlanner(topology, settings=navigation_settings, session_prefix="nav")
    with pytest.raises(LandingUnresolvedError):
        planner.plan_route("1V01", "3S01")


def test_configured_landing_on_wrong_floor(seed_topology, navigation_settings: dict) -> None:
    navigation_settings["landing_nodes"] = {2: "1I01"}
    planner = RoutePlanner(seed_topology, settings=navigation_settings, session_prefix="nav")
    with pytest.raises(LandingUnresolvedError):
        planner.plan_route("1E01", "2S01")


def test_invalid_numeric_settings_fall_back(seed_topology, navigation_settings: dict) -> None:
    navigation_settings["grid_unit_meters"] = "abc"
    navigation_settings["walking_speed_mps"] = -1
    planner = RoutePlanner(seed_topology, settings=navigation_settings, session_prefix="nav")
    assert planner.grid_unit_meters == 5.0
    assert planner.walking_speed_mps == 1.4


def test_session_id_format() -> None:
    assert re.fullmatch(r"nav_\d+_[0-9a-f]{9}", generate_session_id())
    assert generate_session_id("mall").startswith("mall_")
