# pesach_orders/application/order_service.py
"""
Order submission flow:

rate limit -> validate -> resolve products (summing repeated ids) ->
reference number -> store email -> tracking sheet -> customer confirmation.

Everything up to the reference number is side-effect free, so a rejected or
rate-limited order never touches a sink. Sinks run in a worker thread since
SMTP and the workbook writer block.
"""
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

import anyio

from pesach_orders.core.config import STORE, StoreConfig
from pesach_orders.domain.entities import Catalog, NormalizedOrder, NormalizedOrderItem, Product
from pesach_orders.domain.repositories import OrderMailer, OrderSheet
from pesach_orders.infrastructure.rate_limit import InMemoryRateLimiter
from pesach_orders.services.order_validation import OrderIntent, OrderValidationError, validate_order_payload

log = logging.getLogger("app.order_service")

RATE_LIMIT_MESSAGE = "Too many requests. Please retry shortly."


@dataclass(frozen=True)
class OrderAccepted:
    order_ref: str
    customer_email_sent: bool


@dataclass(frozen=True)
class OrderRejected:
    message: str


@dataclass(frozen=True)
class OrderRateLimited:
    message: str
    retry_after_s: int


@dataclass(frozen=True)
class OrderFailed:
    message: str


SubmitResult = Union[OrderAccepted, OrderRejected, OrderRateLimited, OrderFailed]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def make_order_reference(prefix: str = "KP", now: Optional[datetime] = None) -> str:
    """PREFIX-YYYYMMDD-NNNN, date in UTC, random zero-padded suffix."""
    now = (now or _utcnow()).astimezone(timezone.utc)
    return f"{prefix}-{now:%Y%m%d}-{secrets.randbelow(10_000):04d}"


def make_client_key(ip: Optional[str]) -> str:
    return (ip or "").strip() or "unknown"


def resolve_items(
    intent: OrderIntent, products_by_id: Mapping[str, Product]
) -> Tuple[NormalizedOrderItem, ...]:
    qty_by_product: Dict[str, int] = {}
    for item in intent.items:
        qty_by_product[item.product_id] = qty_by_product.get(item.product_id, 0) + item.qty

    out = []
    for product_id, qty in qty_by_product.items():
        product = products_by_id.get(product_id)
        if product is None:
            raise OrderValidationError(f"items: Unknown product selected: {product_id}", field="items")
        out.append(NormalizedOrderItem(product_id=product.id, name=product.name, size=product.size, qty=qty))
    return tuple(out)


def build_normalized_order(
    intent: OrderIntent,
    items: Tuple[NormalizedOrderItem, ...],
    order_ref: str,
    created_at: datetime,
) -> NormalizedOrder:
    return NormalizedOrder(
        order_ref=order_ref,
        created_at_iso=created_at.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        items=items,
        delivery_date=intent.delivery_date,
        delivery_slot=intent.delivery_slot,
        allow_kitniyot=intent.allow_kitniyot,
        allow_substitutes=intent.allow_substitutes,
        customer_name=intent.customer_name,
        phone=intent.phone,
        address_line1=intent.address_line1,
        address_line2=intent.address_line2,
        postcode=intent.postcode,
        email=intent.email,
        notes=intent.notes,
    )


class OrderService:
    def __init__(
        self,
        catalog_provider: Callable[[], Catalog],
        mailer: OrderMailer,
        sheet: Optional[OrderSheet],
        rate_limiter: InMemoryRateLimiter,
        store: StoreConfig = STORE,
        skip_sheet: bool = False,
        now_fn: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.catalog_provider = catalog_provider
        self.mailer = mailer
        self.sheet = sheet
        self.rate_limiter = rate_limiter
        self.store = store
        self.skip_sheet = skip_sheet or sheet is None
        self.now_fn = now_fn

    def prepare(self, payload: Any) -> NormalizedOrder:
        """Validate and normalize without touching any sink.

        Raises:
            OrderValidationError: schema, delivery-rule or unknown-product failure.
        """
        intent = validate_order_payload(
            payload, self.store.delivery_window_start, self.store.delivery_window_end
        )
        items = resolve_items(intent, self.catalog_provider().product_index())
        now = self.now_fn()
        return build_normalized_order(
            intent, items, make_order_reference(self.store.order_ref_prefix, now), now
        )

    async def _dispatch(self, order: NormalizedOrder) -> bool:
        await anyio.to_thread.run_sync(self.mailer.send_store_order_email, order, self.store)
        if not self.skip_sheet:
            await anyio.to_thread.run_sync(self.sheet.append_order, order)
        return await anyio.to_thread.run_sync(
            self.mailer.send_customer_confirmation_email, order, self.store
        )

    async def submit(self, payload: Any, client_ip: Optional[str]) -> SubmitResult:
        key = make_client_key(client_ip)
        decision = self.rate_limiter.check(key)
        if not decision.allowed:
            log.info("Rate limited | client=%s retry_after=%ds", key, decision.retry_after_s)
            return OrderRateLimited(RATE_LIMIT_MESSAGE, decision.retry_after_s)

        try:
            order = self.prepare(payload)
        except OrderValidationError as e:
            return OrderRejected(e.message)

        try:
            customer_email_sent = await self._dispatch(order)
        except Exception as e:
            # earlier sinks may already have run; no rollback across sinks
            log.exception("Order dispatch failed | ref=%s", order.order_ref)
            return OrderFailed(f"Order processing failed: {str(e) or type(e).__name__}")

        log.info(
            "Order accepted | ref=%s items=%d confirmation=%s",
            order.order_ref,
            len(order.items),
            customer_email_sent,
        )
        return OrderAccepted(order.order_ref, bool(customer_email_sent))
