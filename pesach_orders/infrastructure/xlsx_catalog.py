"""
Catalog rows from the store's Excel price list.

The workbook is whatever the store exports: first sheet, column A = product or
category name, column B = size. Only the first six columns are read.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Optional, Tuple

import openpyxl

from pesach_orders.core.config import DEFAULT_CATALOG_FILENAME, Paths
from pesach_orders.domain.repositories import CatalogRowSource

log = logging.getLogger("infra.xlsx_catalog")

MAX_COLUMNS = 6


def _cell_value(value: Any) -> Any:
    # openpyxl hands back 250.0 for a cell typed as 250
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def list_catalog_candidates(custom_path: Optional[str] = None, data_dir: Optional[str] = None) -> List[Path]:
    """
    Workbooks to try, in order: an explicit path only, otherwise the default
    price list followed by every other .xlsx in the data directory (sorted).
    """
    if custom_path:
        return [Path(custom_path)]

    data = Path(data_dir or Paths.DATA_DIR)
    candidates = [data / DEFAULT_CATALOG_FILENAME]
    if data.is_dir():
        candidates.extend(sorted(p for p in data.iterdir() if p.suffix.lower() == ".xlsx"))
    return list(dict.fromkeys(candidates))


class XlsxCatalogSource(CatalogRowSource):
    def __init__(self, path: Optional[str] = None, data_dir: Optional[str] = None) -> None:
        self.candidates = list_catalog_candidates(path, data_dir)

    def _open_first(self) -> Tuple[Path, "openpyxl.Workbook"]:
        errors: List[str] = []
        for candidate in self.candidates:
            if not candidate.exists():
                continue
            try:
                return candidate, openpyxl.load_workbook(candidate, read_only=True, data_only=True)
            except Exception as e:
                errors.append(f"{candidate}: {e}")

        tried = "\n".join(str(c) for c in self.candidates)
        raise FileNotFoundError(
            f"Could not open any catalog workbook. Tried:\n{tried}\nErrors:\n" + "\n".join(errors)
        )

    def rows(self) -> List[Tuple[Any, ...]]:
        path, wb = self._open_first()
        try:
            if not wb.sheetnames:
                raise ValueError(f"Catalog workbook has no sheets: {path}")
            ws = wb[wb.sheetnames[0]]
            out = [
                tuple(_cell_value(v) for v in row)
                for row in ws.iter_rows(max_col=MAX_COLUMNS, values_only=True)
            ]
        finally:
            wb.close()
        log.info("Read %d rows from %s", len(out), path.name)
        return out
