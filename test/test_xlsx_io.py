import openpyxl
import pytest

from pesach_orders.core.config import DEFAULT_CATALOG_FILENAME
from pesach_orders.infrastructure.order_sheet import (
    DASHBOARD_HEADERS,
    DASHBOARD_TITLE,
    INITIAL_STATUS,
    ITEM_HEADERS,
    XlsxOrderSheet,
    make_unique_sheet_title,
    sanitize_sheet_title,
)
from pesach_orders.infrastructure.xlsx_catalog import XlsxCatalogSource, list_catalog_candidates
from pesach_orders.services.catalog_parser import load_catalog


def _write_workbook(path, rows):
    wb = openpyxl.Workbook()
    ws = wb.active
    for row in rows:
        ws.append(list(row))
    wb.save(path)


PRICE_LIST = [
    ("Product", "Size"),
    ("PASSOVER ESSENTIALS", None),
    ("Ready Made Charoses", "250g"),
    ("Hand Matzos", 1),
    ("WINE", None),
    ("Grape Juice", 250.0),
]


class TestCatalogWorkbook:
    def test_candidates_default_first_then_sorted(self, tmp_path):
        _write_workbook(tmp_path / "b.xlsx", PRICE_LIST)
        _write_workbook(tmp_path / "a.xlsx", PRICE_LIST)
        _write_workbook(tmp_path / DEFAULT_CATALOG_FILENAME, PRICE_LIST)
        (tmp_path / "notes.txt").write_text("ignore me")

        names = [p.name for p in list_catalog_candidates(data_dir=str(tmp_path))]

        assert names == [DEFAULT_CATALOG_FILENAME, "a.xlsx", "b.xlsx"]

    def test_explicit_path_is_the_only_candidate(self, tmp_path):
        assert list_catalog_candidates(str(tmp_path / "x.xlsx"), str(tmp_path)) == [tmp_path / "x.xlsx"]

    def test_reads_first_sheet_and_parses(self, tmp_path):
        _write_workbook(tmp_path / DEFAULT_CATALOG_FILENAME, PRICE_LIST)

        catalog = load_catalog(XlsxCatalogSource(data_dir=str(tmp_path)))

        assert [c.name for c in catalog] == ["PASSOVER ESSENTIALS", "WINE"]
        products = catalog.products()
        assert [p.name for p in products] == ["Ready Made Charoses", "Hand Matzos", "Grape Juice"]
        assert products[1].size == "1"
        assert products[2].size == "250"

    def test_falls_back_past_unreadable_workbook(self, tmp_path):
        (tmp_path / "a-broken.xlsx").write_bytes(b"not a zip file")
        _write_workbook(tmp_path / "b-good.xlsx", PRICE_LIST)

        rows = XlsxCatalogSource(data_dir=str(tmp_path)).rows()

        assert rows[0][:2] == ("Product", "Size")

    def test_no_workbook_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError) as exc:
            XlsxCatalogSource(data_dir=str(tmp_path)).rows()
        assert DEFAULT_CATALOG_FILENAME in str(exc.value)


class TestSheetTitles:
    def test_sanitize(self):
        assert sanitize_sheet_title("Order a/b:c") == "Order a b c"
        assert sanitize_sheet_title("[]") == "Order"
        assert len(sanitize_sheet_title("x" * 50)) == 31

    def test_unique(self):
        assert make_unique_sheet_title("Order 1", set()) == "Order 1"
        assert make_unique_sheet_title("Order 1", {"Order 1", "Order 1 (2)"}) == "Order 1 (3)"
        long = "y" * 31
        assert make_unique_sheet_title(long, {long}) == "y" * 27 + " (2)"


class TestOrderSheet:
    def test_append_creates_dashboard_and_detail(self, tmp_path, sample_order):
        path = tmp_path / "orders" / "orders.xlsx"

        XlsxOrderSheet(str(path)).append_order(sample_order)

        wb = openpyxl.load_workbook(path)
        assert wb.sheetnames == [DASHBOARD_TITLE, "Order KP-20260320-0042"]

        dash = wb[DASHBOARD_TITLE]
        assert [c.value for c in dash[1]] == DASHBOARD_HEADERS
        row = [c.value for c in dash[2]]
        assert row[0] == "KP-20260320-0042"
        assert row[1] == "2026-03-20 09:15:00"
        assert row[4] == INITIAL_STATUS
        assert row[5] == "AM"
        assert row[8] == 4
        assert row[10] == "1 Test Street, NW1 6XE"
        assert row[12] == '=HYPERLINK("#\'Order KP-20260320-0042\'!A1", "Open")'

        detail = wb["Order KP-20260320-0042"]
        assert detail["A1"].value == "Order Summary"
        assert detail["B2"].value == "KP-20260320-0042"
        header_row = [c.value for c in detail[16]][: len(ITEM_HEADERS)]
        assert header_row == ITEM_HEADERS
        assert detail["A17"].value == 1
        assert detail["B17"].value == "Ready Made Charoses"
        assert detail["D17"].value == 3
        assert detail["B18"].value == "Hand Matzos"
        assert detail.freeze_panes == "A17"

    def test_second_order_appends_row_and_unique_tab(self, tmp_path, sample_order):
        path = tmp_path / "orders.xlsx"
        sheet = XlsxOrderSheet(str(path))

        sheet.append_order(sample_order)
        sheet.append_order(sample_order)

        wb = openpyxl.load_workbook(path)
        assert wb.sheetnames == [DASHBOARD_TITLE, "Order KP-20260320-0042", "Order KP-20260320-0042 (2)"]
        assert wb[DASHBOARD_TITLE].max_row == 3
        assert "(2)" in wb[DASHBOARD_TITLE]["M3"].value
