from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from mall_navigation.services.errors import NotFoundError
from mall_navigation.services.models import Store
from mall_navigation.services.topology_store import TopologyStore


@dataclass(slots=True)
class StoreQueryResult:
    stores: List[Store]
    total: int
    filters: Dict[str, object] = field(default_factory=dict)


def _contains(haystack: str, needle: str) -> bool:
    return needle.casefold() in (haystack or "").casefold()


class StoreDirectory:
    """매장 목록 필터링/검색. 비활성 매장은 제외하고 이름순으로 돌려준다."""

    def __init__(self, topology: TopologyStore):
        self.topology = topology

    def _sorted(self, stores: List[Store]) -> List[Store]:
        return sorted(stores, key=lambda store: store.name.casefold())

    def list_stores(
        self,
        floor: Optional[int] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> StoreQueryResult:
        filters: Dict[str, object] = {}
        stores = self.topology.list_stores()
        if floor:
            filters["floor"] = floor
            stores = [store for store in stores if store.floor == floor]
        if category:
            filters["category"] = category
            stores = [store for store in stores if _contains(store.category, category)]
        if search:
            filters["search"] = search
            stores = [
                store for store in stores if _contains(store.name, search) or _contains(store.description, search)
            ]
        ordered = self._sorted(stores)
        return StoreQueryResult(stores=ordered, total=len(ordered), filters=filters)

    def get_store(self, store_id: str) -> Store:
        store = self.topology.get_store(store_id)
        if store is None:
            raise NotFoundError("Store not found")
        return store

    def stores_by_category(self, category: str) -> List[Store]:
        return self.list_stores(category=category).stores

    def stores_by_floor(self, floor: int) -> List[Store]:
        return self._sorted([store for store in self.topology.list_stores() if store.floor == floor])

    def categories(self) -> List[str]:
        return sorted({store.category for store in self.topology.list_stores() if store.category})

    def stores_with_promotions(self, today: Optional[date] = None) -> List[Store]:
        reference = today or date.today()
        return self._sorted(
            [
                store
                for store in self.topology.list_stores()
                if any(promotion.is_running(reference) for promotion in store.promotions)
            ]
        )

    def search(self, term: str) -> List[Store]:
        return self.list_stores(search=term).stores
