from __future__ import annotations

import pytest

from mall_navigation.configuration import DEFAULT_TOPOLOGY_PATH
from mall_navigation.navigation_cli import main


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MALL_NAV_ROUTING_STRATEGY", raising=False)
    monkeypatch.delenv("MALL_NAV_GRAPH_WEIGHT", raising=False)


def test_route_command(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["route", "--start", "1E01", "--end", "2S01"]) == 0
    output = capsys.readouterr().out
    assert "계산 방식: direct" in output
    assert "총 거리: 70m" in output
    assert "Take escalator to Floor 2" in output


def test_route_command_graph(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--topology", str(DEFAULT_TOPOLOGY_PATH), "route", "-s", "1E01", "-e", "2S01", "--strategy", "graph"]) == 0
    assert "총 거리: 105m" in capsys.readouterr().out


def test_unknown_location_fails(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["route", "--start", "9Z99", "--end", "2S01"]) == 1
    assert "길안내에 실패했습니다: Start location not found" in capsys.readouterr().err


def test_missing_topology_fails(tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--topology", str(tmp_path / "none.json"), "nearest-exit", "-l", "1I01"]) == 1
    assert "길안내에 실패했습니다" in capsys.readouterr().err


def test_nearest_exit_command(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["nearest-exit", "--location", "1I01"]) == 0
    assert "1E01" in capsys.readouterr().out


def test_walk_command(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["walk", "-s", "1E01", "-e", "2S01", "--scan", "1V01", "1S09", "2E01", "2S01"]) == 0
    output = capsys.readouterr().out
    assert "1S09: FAIL" in output
    assert "진행률 100%" in output
    assert "도착 여부: 예" in output
