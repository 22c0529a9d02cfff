from __future__ import annotations

import argparse
import math
import sys
from pathlib import Path
from typing import List, Optional

from mall_navigation.configuration import configure_logging, get_navigation_settings, get_topology_settings
from mall_navigation.services.checkpoint_tracker import start_session, validate_checkpoint
from mall_navigation.services.errors import NavigationError
from mall_navigation.services.location_service import LocationService
from mall_navigation.services.models import RouteResult
from mall_navigation.services.route_planner import RoutePlanner
from mall_navigation.services.topology_store import load_topology


def _print_route(start: str, destination: str, route: RouteResult) -> None:
    print(f"출발: {start}")
    print(f"도착: {destination}")
    print(f"계산 방식: {route.strategy}")
    print(f"세션 ID: {route.session_id}")
    print("")
    print("안내 단계:")
    for step in route.steps:
        print(
            f"  {step.step_number}. [{step.direction}] {step.instruction}"
            f" · 체크포인트 {step.checkpoint} · {step.distance}m · {step.estimated_time}s"
        )
        if step.landmark:
            print(f"     - {step.landmark}")
    print("")
    print(f"총 거리: {route.total_distance}m")
    print(f"예상 소요 시간: {route.total_time}s (약 {math.ceil(route.total_time / 60)}분)")


def parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="mall-navigation", description="쇼핑몰 실내 길안내 CLI")
    parser.add_argument("--topology", default=None, help="토폴로지 JSON 경로 (기본값: 설정의 topology.path)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    route_parser = subparsers.add_parser("route", help="두 QR 노드 사이 경로 계산")
    route_parser.add_argument("--start", "-s", required=True, help="출발 QR 노드 ID")
    route_parser.add_argument("--end", "-e", required=True, help="도착 QR 노드 ID")
    route_parser.add_argument("--strategy", choices=["direct", "graph"], default=None, help="경로 계산 방식")

    exit_parser = subparsers.add_parser("nearest-exit", help="같은 층에서 가장 가까운 출입구")
    exit_parser.add_argument("--location", "-l", required=True, help="현재 QR 노드 ID")

    walk_parser = subparsers.add_parser("walk", help="경로를 계산한 뒤 스캔 순서를 재생")
    walk_parser.add_argument("--start", "-s", required=True, help="출발 QR 노드 ID")
    walk_parser.add_argument("--end", "-e", required=True, help="도착 QR 노드 ID")
    walk_parser.add_argument("--strategy", choices=["direct", "graph"], default=None, help="경로 계산 방식")
    walk_parser.add_argument("--scan", nargs="+", required=True, help="순서대로 스캔한 QR 노드 ID")
    return parser.parse_args(argv)


def _run_walk(planner: RoutePlanner, args: argparse.Namespace) -> int:
    route = planner.plan_route(args.start, args.end, strategy=args.strategy)
    _print_route(args.start, args.end, route)
    session = start_session(route, args.start, args.end)
    print("")
    print("스캔 재생:")
    for qr_id in args.scan:
        session, result = validate_checkpoint(session, qr_id)
        status = "OK" if result.success else "FAIL"
        print(f"  {qr_id}: {status} · {result.message} · 진행률 {session.progress}% · 남은 단계 {result.remaining_steps}")
    print(f"도착 여부: {'예' if not session.is_active else '아니오'}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging()
    topology_path = Path(args.topology or get_topology_settings()["path"])
    try:
        topology = load_topology(topology_path)
        planner = RoutePlanner(topology, settings=get_navigation_settings())
        if args.command == "route":
            route = planner.plan_route(args.start, args.end, strategy=args.strategy)
            _print_route(args.start, args.end, route)
            return 0
        if args.command == "nearest-exit":
            exit_node = LocationService(topology, grid_unit_meters=planner.grid_unit_meters).nearest_exit(args.location)
            print(f"가장 가까운 출입구: {exit_node.identifier} ({exit_node.name}, {exit_node.floor}층)")
            return 0
        return _run_walk(planner, args)
    except (NavigationError, FileNotFoundError, ValueError) as exc:
        print(f"길안내에 실패했습니다: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
