# pesach_orders/services/catalog_parser.py
"""
Turns the store's semi-structured price-list rows into a typed Catalog.

Rows are either category headers (an uppercase label with no size) or product
rows (name + optional size). Junk rows are dropped, never reported.
"""
from __future__ import annotations

import hashlib
import logging
import re
from typing import Any, Dict, Iterable, List

from pesach_orders.domain.entities import Catalog, Category, Product
from pesach_orders.domain.repositories import RawCatalogRow

log = logging.getLogger("services.catalog_parser")

CATEGORY_PATTERN = re.compile(r"^[A-Z0-9 &'()/+\-.,]+$")
FALLBACK_CATEGORY = "MISCELLANEOUS"

_WS_RE = re.compile(r"\s+")
_UNSAFE_ID_RE = re.compile(r"[^a-z0-9\-_]+")


def clean_cell(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _cell(row: RawCatalogRow, idx: int) -> str:
    if row is None or len(row) <= idx:
        return ""
    return clean_cell(row[idx])


def is_header_row(product: str, size: str) -> bool:
    return product.lower() == "product" and (size == "" or size.lower() == "size")


def is_category_row(product: str, size: str) -> bool:
    if not product or size:
        return False
    return bool(CATEGORY_PATTERN.match(product)) and product == product.upper()


def make_product_id(category: str, name: str, size: str) -> str:
    """Stable id: readable slug + short sha1 of the same key."""
    base = _WS_RE.sub("-", f"{category}__{name}__{size}".lower())
    digest = hashlib.sha1(base.encode("utf-8")).hexdigest()[:8]
    safe = _UNSAFE_ID_RE.sub("", base)
    return f"{safe}-{digest}"


def parse_catalog_rows(rows: Iterable[RawCatalogRow]) -> Catalog:
    buckets: Dict[str, List[Product]] = {}
    seen_ids: set[str] = set()
    active = FALLBACK_CATEGORY
    sort_index = 0

    for row in rows:
        product_cell = _cell(row, 0)
        size_cell = _cell(row, 1)

        if not product_cell and not size_cell:
            continue
        if is_header_row(product_cell, size_cell):
            continue
        if is_category_row(product_cell, size_cell):
            active = product_cell
            buckets.setdefault(active, [])
            continue
        if not product_cell:
            # size without a name
            continue

        pid = make_product_id(active, product_cell, size_cell)
        if pid in seen_ids:
            log.debug("Skipping duplicate catalog row: %s / %s / %s", active, product_cell, size_cell)
            continue
        seen_ids.add(pid)

        buckets.setdefault(active, []).append(
            Product(
                id=pid,
                category=active,
                name=product_cell,
                size=size_cell or None,
                sort_index=sort_index,
            )
        )
        sort_index += 1

    return Catalog(tuple(Category(name=n, products=tuple(ps)) for n, ps in buckets.items()))


def load_catalog(source) -> Catalog:
    """Parse every row a CatalogRowSource yields."""
    catalog = parse_catalog_rows(source.rows())
    log.info(
        "Catalog loaded | categories=%d products=%d",
        len(catalog.non_empty()),
        len(catalog.products()),
    )
    return catalog
