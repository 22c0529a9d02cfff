from __future__ import annotations

import pytest

from mall_navigation.services.errors import NotFoundError
from mall_navigation.services.location_service import LocationService
from mall_navigation.services.topology_store import InMemoryTopologyStore

from conftest import make_node


@pytest.fixture()
def locations(seed_topology: InMemoryTopologyStore) -> LocationService:
    return LocationService(seed_topology)


def test_nearest_exit_on_same_floor(locations: LocationService) -> None:
    assert locations.nearest_exit("1I01").identifier == "1E01"
    assert locations.nearest_exit("1S01").identifier == "1E03"
    assert locations.nearest_exit("2S05").identifier == "2E01"


def test_nearest_exit_tie_keeps_first_registered() -> None:
    topology = InMemoryTopologyStore(
        [
            make_node("1E01", 1, "entrance", 0, 5),
            make_node("1E02", 1, "entrance", 8, 5),
            make_node("1I01", 1, "intersection", 4, 5),
            make_node("1I02", 1, "intersection", 5, 5),
        ]
    )
    service = LocationService(topology)
    assert service.nearest_exit("1I01").identifier == "1E01"
    assert service.nearest_exit("1I02").identifier == "1E02"


def test_nearest_exit_errors() -> None:
    topology = InMemoryTopologyStore([make_node("3I01", 3, "intersection", 1, 1)])
    service = LocationService(topology)
    with pytest.raises(NotFoundError, match="No exit found"):
        service.nearest_exit("3I01")
    with pytest.raises(NotFoundError):
        service.nearest_exit("9Z99")


def test_validate_qr(locations: LocationService) -> None:
    assert locations.validate_qr("1S07").name == "Starbucks"
    assert locations.get_location("9Z99") is None
    with pytest.raises(NotFoundError, match="Invalid QR code"):
        locations.validate_qr("9Z99")


def test_nearby_locations_same_floor_sorted(locations: LocationService) -> None:
    nearby = locations.nearby_locations("1I02", max_distance=5)
    assert [node.identifier for node in nearby] == ["1I07", "1V01"]
    wide = locations.nearby_locations("1V01", max_distance=50)
    assert all(node.floor == 1 for node in wide)
    assert "2V01" not in [node.identifier for node in wide]


def test_listing_by_floor_and_kind(locations: LocationService) -> None:
    assert len(locations.locations_by_floor(2)) == 17
    assert len(locations.all_locations()) == 42
    entrances = locations.locations_by_kind("Entrance")
    assert {node.identifier for node in entrances} == {"1E01", "1E02", "1E03", "1E04", "2E01"}
    with pytest.raises(ValueError):
        locations.locations_by_kind("kiosk")
