# pesach_orders/application/catalog_cache.py
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from pesach_orders.domain.entities import Catalog, Product
from pesach_orders.services.product_search import ProductSearchIndex, build_product_search_index

log = logging.getLogger("app.catalog_cache")


@dataclass(frozen=True)
class CatalogSnapshot:
    """A catalog and everything derived from it. Never mutated once built."""

    catalog: Catalog
    search_index: ProductSearchIndex
    products_by_id: Dict[str, Product] = field(default_factory=dict)

    @classmethod
    def build(cls, catalog: Catalog) -> "CatalogSnapshot":
        return cls(
            catalog=catalog,
            search_index=build_product_search_index(catalog),
            products_by_id=catalog.product_index(),
        )


class CatalogCache:
    """
    Lazily builds the catalog snapshot once and hands the same object to every
    reader. reload() builds a fresh snapshot off to the side and swaps the
    reference, so readers holding the old one are unaffected.
    """

    def __init__(self, loader: Callable[[], Catalog]) -> None:
        self._loader = loader
        self._snapshot: Optional[CatalogSnapshot] = None
        self._build_lock = threading.Lock()

    def get(self) -> CatalogSnapshot:
        snap = self._snapshot
        if snap is not None:
            return snap
        with self._build_lock:
            if self._snapshot is None:
                self._snapshot = CatalogSnapshot.build(self._loader())
            return self._snapshot

    def catalog(self) -> Catalog:
        return self.get().catalog

    def reload(self) -> CatalogSnapshot:
        with self._build_lock:
            fresh = CatalogSnapshot.build(self._loader())
            self._snapshot = fresh
        log.info("Catalog reloaded | products=%d", len(fresh.products_by_id))
        return fresh

    @property
    def is_loaded(self) -> bool:
        return self._snapshot is not None
