# pesach_orders/infrastructure/mongo_catalog.py
from __future__ import annotations
from typing import Any, Dict, List, Tuple
import logging
from pymongo import ASCENDING
from pymongo.collection import Collection
from pesach_orders.domain.repositories import CatalogRowSource

log = logging.getLogger("infra.mongo_catalog")


def _row_from_doc(doc: Dict[str, Any]) -> Tuple[Any, Any]:
    return doc.get("product"), doc.get("size")


class MongoCatalogSource(CatalogRowSource):
    """
    Catalog rows stored one document per spreadsheet row:
    {"row": <int>, "product": <str>, "size": <str|None>}.
    Sorted by "row" so category headers stay ahead of their products.
    """
    def __init__(self, col: Collection) -> None:
        self._col = col

    def rows(self) -> List[Tuple[Any, Any]]:
        cursor = self._col.find({}, {"_id": 0, "row": 1, "product": 1, "size": 1}).sort("row", ASCENDING)
        out = [_row_from_doc(doc) for doc in cursor]
        if not out:
            log.warning("MongoCatalogSource: catalog collection is empty")
        else:
            log.info("MongoCatalogSource loaded %d rows", len(out))
        return out
