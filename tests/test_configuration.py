from __future__ import annotations

import pytest

from mall_navigation.configuration import (
    DEFAULT_SETTINGS,
    DEFAULT_TOPOLOGY_PATH,
    get_logging_settings,
    get_navigation_settings,
    get_topology_settings,
    load_settings,
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "MALL_NAV_ROUTING_STRATEGY",
        "MALL_NAV_GRAPH_WEIGHT",
        "MALL_NAV_TOPOLOGY_PATH",
        "MALL_NAV_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    navigation = get_navigation_settings()
    assert navigation["routing_strategy"] == "direct"
    assert navigation["graph_weight"] == "distance"
    assert navigation["landing_nodes"] == {2: "2E01"}
    assert get_topology_settings()["path"] == str(DEFAULT_TOPOLOGY_PATH)


def test_load_settings_returns_copy() -> None:
    settings = load_settings()
    settings["navigation"]["routing_strategy"] = "graph"
    assert DEFAULT_SETTINGS["navigation"]["routing_strategy"] == "direct"


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MALL_NAV_ROUTING_STRATEGY", " Graph ")
    monkeypatch.setenv("MALL_NAV_GRAPH_WEIGHT", "estimated_time")
    monkeypatch.setenv("MALL_NAV_LOG_LEVEL", "DEBUG")
    navigation = get_navigation_settings()
    assert navigation["routing_strategy"] == "graph"
    assert navigation["graph_weight"] == "estimated_time"
    assert get_logging_settings()["level"] == "DEBUG"


def test_invalid_strategy_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MALL_NAV_ROUTING_STRATEGY", "teleport")
    with pytest.raises(ValueError):
        get_navigation_settings()
