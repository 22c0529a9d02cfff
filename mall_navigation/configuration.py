from __future__ import annotations

import logging
import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv


PACKAGE_DIR = Path(__file__).resolve().parent
DATA_DIR = PACKAGE_DIR / "data"
DEFAULT_TOPOLOGY_PATH = DATA_DIR / "seed_topology.json"

ROUTING_STRATEGIES = ("direct", "graph")
GRAPH_WEIGHTS = ("distance", "estimated_time")

DEFAULT_SETTINGS: Dict[str, Any] = {
    "navigation": {
        # 경로 계산 방식 (direct: 좌표 기반 직선 휴리스틱, graph: 엣지 그래프 최단 경로)
        "routing_strategy": "direct",
        # graph 방식에서 최단 경로를 고를 때 사용할 엣지 가중치
        "graph_weight": "distance",
        # 격자 한 칸의 실제 거리 (m)
        "grid_unit_meters": 5,
        # 보행 속도 (m/s)
        "walking_speed_mps": 1.4,
        # 에스컬레이터 한 번 탑승 시 거리 (m) 와 시간 (초)
        "escalator_distance_m": 30,
        "escalator_seconds": 25,
        # 층별 에스컬레이터 도착 지점 노드 ID
        "landing_nodes": {2: "2E01"},
    },
    "topology": {
        # 노드/엣지/매장 시드 JSON 경로
        "path": str(DEFAULT_TOPOLOGY_PATH),
    },
    "session": {
        # 세션 ID 접두사
        "id_prefix": "nav",
    },
    "logging": {
        "level": "INFO",
        "format": "[%(asctime)s] %(levelname)s %(name)s: %(message)s",
    },
}

_ENV_OVERRIDES = (
    ("MALL_NAV_ROUTING_STRATEGY", "navigation", "routing_strategy"),
    ("MALL_NAV_GRAPH_WEIGHT", "navigation", "graph_weight"),
    ("MALL_NAV_TOPOLOGY_PATH", "topology", "path"),
    ("MALL_NAV_LOG_LEVEL", "logging", "level"),
)


def load_settings() -> Dict[str, Any]:
    """기본 설정을 복사하고 환경 변수(.env 포함) 값을 덮어써 반환한다."""
    load_dotenv()
    settings = deepcopy(DEFAULT_SETTINGS)
    for env_name, section, key in _ENV_OVERRIDES:
        value = os.environ.get(env_name)
        if value is None or not value.strip():
            continue
        settings[section][key] = value.strip()
    return settings


def _get_section(name: str) -> Dict[str, Any]:
    settings = load_settings()
    section = settings.get(name)
    if not isinstance(section, dict):
        raise ValueError(f"{name} 설정이 잘못되었습니다.")
    return section


def get_navigation_settings() -> Dict[str, Any]:
    navigation = _get_section("navigation")
    strategy = str(navigation.get("routing_strategy") or "").strip().lower()
    if strategy not in ROUTING_STRATEGIES:
        raise ValueError(f"알 수 없는 routing_strategy 값입니다: {strategy}")
    navigation["routing_strategy"] = strategy
    weight = str(navigation.get("graph_weight") or "").strip().lower()
    if weight not in GRAPH_WEIGHTS:
        raise ValueError(f"알 수 없는 graph_weight 값입니다: {weight}")
    navigation["graph_weight"] = weight
    landing_nodes = navigation.get("landing_nodes") or {}
    if not isinstance(landing_nodes, dict):
        raise ValueError("landing_nodes 설정이 잘못되었습니다.")
    return navigation


def get_topology_settings() -> Dict[str, Any]:
    return _get_section("topology")


def get_session_settings() -> Dict[str, Any]:
    return _get_section("session")


def get_logging_settings() -> Dict[str, Any]:
    return _get_section("logging")


def configure_logging() -> None:
    """logging.basicConfig 를 설정값으로 한 번 적용한다."""
    logging_settings = get_logging_settings()
    level_name = str(logging_settings.get("level") or "INFO").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=logging_settings.get("format"))


__all__ = [
    "DEFAULT_TOPOLOGY_PATH",
    "ROUTING_STRATEGIES",
    "GRAPH_WEIGHTS",
    "load_settings",
    "get_navigation_settings",
    "get_topology_settings",
    "get_session_settings",
    "get_logging_settings",
    "configure_logging",
]
