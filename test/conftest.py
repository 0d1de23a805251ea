"""
Shared pytest fixtures: a small Pesach catalog, a valid order payload and
in-memory sinks.
"""
from typing import Any, Dict, List

import pytest

from pesach_orders.domain.entities import (
    Catalog,
    Category,
    DeliverySlot,
    NormalizedOrder,
    NormalizedOrderItem,
    Product,
)
from pesach_orders.domain.repositories import OrderMailer, OrderSheet

MIN_DATE = "2026-03-22"
MAX_DATE = "2026-04-03"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def search_catalog_fixture() -> Catalog:
    return Catalog(
        (
            Category(
                name="PASSOVER ESSENTIALS",
                products=(
                    Product(id="charoses", category="PASSOVER ESSENTIALS", name="Ready Made Charoses", size="250g", sort_index=0),
                    Product(id="chrayne", category="PASSOVER ESSENTIALS", name="Chrayne", size=None, sort_index=1),
                ),
            ),
            Category(
                name="WINE",
                products=(
                    Product(id="grape-juice", category="WINE", name="Grape Juice", size="1L", sort_index=2),
                ),
            ),
        )
    )


@pytest.fixture
def order_catalog() -> Catalog:
    return Catalog(
        (
            Category(
                name="PASSOVER ESSENTIALS",
                products=(
                    Product(id="prod-1", category="PASSOVER ESSENTIALS", name="Ready Made Charoses", size="250g", sort_index=0),
                    Product(id="prod-2", category="PASSOVER ESSENTIALS", name="Hand Matzos", size="1kg", sort_index=1),
                ),
            ),
        )
    )


@pytest.fixture
def base_payload() -> Dict[str, Any]:
    return {
        "items": [{"productId": "prod-1", "qty": 2}],
        "deliveryDate": "2026-03-26",
        "deliverySlot": "AM",
        "customerName": "Sample Customer",
        "phone": "020 7946 0958",
        "addressLine1": "1 Test Street",
        "postcode": "NW1 6XE",
    }


class RecordingMailer(OrderMailer):
    def __init__(self, fail_store: bool = False) -> None:
        self.fail_store = fail_store
        self.store_orders: List[NormalizedOrder] = []
        self.confirmations: List[NormalizedOrder] = []

    def send_store_order_email(self, order, store) -> None:
        if self.fail_store:
            raise RuntimeError("smtp down")
        self.store_orders.append(order)

    def send_customer_confirmation_email(self, order, store) -> bool:
        self.confirmations.append(order)
        return bool(order.email)


class RecordingSheet(OrderSheet):
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.orders: List[NormalizedOrder] = []

    def append_order(self, order) -> None:
        if self.fail:
            raise RuntimeError("sheet locked")
        self.orders.append(order)


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def sheet() -> RecordingSheet:
    return RecordingSheet()


@pytest.fixture
def sample_order() -> NormalizedOrder:
    return NormalizedOrder(
        order_ref="KP-20260320-0042",
        created_at_iso="2026-03-20T09:15:00.000Z",
        items=(
            NormalizedOrderItem(product_id="prod-1", name="Ready Made Charoses", size="250g", qty=3),
            NormalizedOrderItem(product_id="prod-2", name="Hand Matzos", size=None, qty=1),
        ),
        delivery_date="2026-03-26",
        delivery_slot=DeliverySlot.AM,
        allow_kitniyot=False,
        allow_substitutes=True,
        customer_name="Sample Customer",
        phone="020 7946 0958",
        address_line1="1 Test Street",
        postcode="NW1 6XE",
        email="sample@example.com",
    )
