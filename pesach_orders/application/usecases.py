# =========================
# FILE: pesach_orders/application/usecases.py
# (browse / search / store info read paths)
# =========================
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from pesach_orders.application.catalog_cache import CatalogCache
from pesach_orders.core.config import StoreConfig
from pesach_orders.domain.entities import Category
from pesach_orders.services.delivery_rules import first_allowed_delivery_date_in_window


@dataclass(frozen=True)
class BrowseCatalog:
    catalog_cache: CatalogCache

    def __call__(self) -> List[Category]:
        return list(self.catalog_cache.catalog().non_empty())


@dataclass(frozen=True)
class SearchProducts:
    catalog_cache: CatalogCache

    def __call__(self, query: str) -> List[Category]:
        index = self.catalog_cache.get().search_index
        return [c for c in index.search(query) if c.products]


@dataclass(frozen=True)
class GetStoreInfo:
    store: StoreConfig

    def __call__(self) -> Dict[str, Any]:
        s = self.store
        return {
            "store_name": s.store_name,
            "contact_phone": s.contact_phone,
            "contact_email": s.contact_email,
            "opening_times": list(s.opening_times),
            "delivery_window_start": s.delivery_window_start,
            "delivery_window_end": s.delivery_window_end,
            "delivery_slots": list(s.delivery_slots),
            "default_delivery_date": first_allowed_delivery_date_in_window(
                s.delivery_window_start, s.delivery_window_end
            ),
        }
