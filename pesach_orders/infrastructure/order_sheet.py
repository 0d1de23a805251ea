# pesach_orders/infrastructure/order_sheet.py
"""
Order tracking workbook for the store.

One "Orders" dashboard tab with a row per order, plus a detail tab per order
holding the customer summary and the item table. The dashboard row links to
its detail tab.
"""
from __future__ import annotations

import logging
import re
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, List, Optional, Set

import openpyxl
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from pesach_orders.core.config import Paths
from pesach_orders.domain.entities import NormalizedOrder
from pesach_orders.domain.repositories import OrderSheet

log = logging.getLogger("infra.order_sheet")

DASHBOARD_TITLE = "Orders"
DASHBOARD_HEADERS = [
    "Order ID",
    "Created At",
    "Customer Name",
    "Delivery Date",
    "Status",
    "Delivery Slot",
    "Allow Kitniyot",
    "Allow Substitutes",
    "Total Items",
    "Phone Number",
    "Address",
    "Notes",
    "Order Details",
]
INITIAL_STATUS = "Not started"
ITEM_HEADERS = ["Item #", "Item Name", "Size", "Quantity"]

# Excel limits sheet titles to 31 characters and forbids : \ / ? * [ ]
MAX_SHEET_TITLE = 31
_BAD_TITLE_CHARS = re.compile(r"[:\\/?*\[\]]")

_BOLD = Font(bold=True)
_ITEM_HEADER_FILL = PatternFill(start_color="E3F0E8", end_color="E3F0E8", fill_type="solid")


def sanitize_sheet_title(title: str) -> str:
    cleaned = re.sub(r"\s+", " ", _BAD_TITLE_CHARS.sub(" ", title)).strip()
    return (cleaned or "Order")[:MAX_SHEET_TITLE]


def make_unique_sheet_title(base: str, existing: Set[str]) -> str:
    if base not in existing:
        return base
    suffix = 2
    while True:
        label = f" ({suffix})"
        candidate = base[: max(1, MAX_SHEET_TITLE - len(label))].rstrip() + label
        if candidate not in existing:
            return candidate
        suffix += 1


def format_created_at(value: str) -> str:
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return dt.strftime("%Y-%m-%d %H:%M:%S")


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def _auto_fit_columns(ws: Worksheet, columns: Iterable[int]) -> None:
    for idx in columns:
        letter = get_column_letter(idx)
        longest = max((len(str(c.value)) for c in ws[letter] if c.value is not None), default=0)
        ws.column_dimensions[letter].width = longest + 2


class XlsxOrderSheet(OrderSheet):
    def __init__(self, path: Optional[str] = None) -> None:
        self.path = Path(path or Paths.ORDER_SHEET)
        # single writer per workbook file
        self._lock = threading.Lock()

    def _open(self) -> openpyxl.Workbook:
        if self.path.exists():
            return openpyxl.load_workbook(self.path)
        wb = openpyxl.Workbook()
        wb.active.title = DASHBOARD_TITLE
        return wb

    def _dashboard(self, wb: openpyxl.Workbook) -> Worksheet:
        ws = wb[DASHBOARD_TITLE] if DASHBOARD_TITLE in wb.sheetnames else wb.create_sheet(DASHBOARD_TITLE, 0)
        for col, header in enumerate(DASHBOARD_HEADERS, start=1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = _BOLD
        ws.freeze_panes = "A2"
        return ws

    def _write_detail(self, wb: openpyxl.Workbook, order: NormalizedOrder) -> str:
        title = make_unique_sheet_title(sanitize_sheet_title(f"Order {order.order_ref}"), set(wb.sheetnames))
        ws = wb.create_sheet(title)

        summary: List[List[Any]] = [
            ["Order Summary", ""],
            ["Order ID", order.order_ref],
            ["Created At", format_created_at(order.created_at_iso)],
            ["Customer Name", order.customer_name],
            ["Delivery Date", order.delivery_date],
            ["Delivery Slot", order.delivery_slot.value],
            ["Allow Kitniyot", _yes_no(order.allow_kitniyot)],
            ["Allow Substitutes", _yes_no(order.allow_substitutes)],
            ["Phone", order.phone],
            ["Email", order.email or ""],
            ["Address", order.address],
            ["Notes", order.notes or ""],
            ["Unique Items", len(order.items)],
            ["Total Quantity", order.total_quantity],
        ]
        for row in summary:
            ws.append(row)
        ws.append([])

        item_header_row = len(summary) + 2
        ws.append(ITEM_HEADERS)
        for n, item in enumerate(order.items, start=1):
            ws.append([n, item.name, item.size or "", item.qty])

        ws["A1"].font = _BOLD
        ws["B1"].font = _BOLD
        for col in range(1, len(ITEM_HEADERS) + 1):
            cell = ws.cell(row=item_header_row, column=col)
            cell.font = _BOLD
            cell.fill = _ITEM_HEADER_FILL
        ws.freeze_panes = f"A{item_header_row + 1}"
        _auto_fit_columns(ws, range(1, len(ITEM_HEADERS) + 1))
        return title

    def append_order(self, order: NormalizedOrder) -> None:
        with self._lock:
            wb = self._open()
            dashboard = self._dashboard(wb)
            detail_title = self._write_detail(wb, order)
            link = f'=HYPERLINK("#\'{detail_title}\'!A1", "Open")'
            dashboard.append(
                [
                    order.order_ref,
                    format_created_at(order.created_at_iso),
                    order.customer_name,
                    order.delivery_date,
                    INITIAL_STATUS,
                    order.delivery_slot.value,
                    order.allow_kitniyot,
                    order.allow_substitutes,
                    order.total_quantity,
                    order.phone,
                    order.address,
                    order.notes or "",
                    link,
                ]
            )
            self.path.parent.mkdir(parents=True, exist_ok=True)
            try:
                wb.save(self.path)
            except PermissionError as e:
                raise RuntimeError(f"Order sheet is not writable (open in Excel?): {self.path}") from e
        log.info("Order appended to sheet | ref=%s tab=%s", order.order_ref, detail_title)
