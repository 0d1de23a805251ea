# pesach_orders/services/order_validation.py
"""
Schema + business-rule validation for an incoming order submission.

The payload is untrusted JSON. Every string is trimmed before it is checked,
optional blanks collapse to ``None`` and only the first failing rule is
reported, as ``"<fieldPath>: <message>"``.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Optional, Tuple

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from pesach_orders.core.config import STORE
from pesach_orders.domain.entities import DeliverySlot
from pesach_orders.services.delivery_rules import (
    is_date_within_window,
    is_delivery_date_allowed,
    is_friday_delivery_date,
    parse_iso_date,
)

log = logging.getLogger("services.order_validation")

MIN_QTY = 1
MAX_QTY = 99
MIN_NAME_LEN = 3

UK_PHONE_RE = re.compile(r"^(?:\+44|0)?[\s-]?(?:\d[\s-]?){8,9}\d$")
UK_POSTCODE_RE = re.compile(r"^[A-Z]{1,2}\d[A-Z\d]?\s*\d[A-Z]{2}$", re.IGNORECASE)

_MODEL_CONFIG = ConfigDict(populate_by_name=True, str_strip_whitespace=True, frozen=True)


class OrderValidationError(ValueError):
    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value or None


class OrderItemInput(BaseModel):
    model_config = _MODEL_CONFIG

    product_id: str = Field(alias="productId")
    qty: int = Field(strict=True)

    @field_validator("product_id")
    @classmethod
    def _product_id_present(cls, v: str) -> str:
        if not v:
            raise PydanticCustomError("product_id", "Product id is required")
        return v

    @field_validator("qty")
    @classmethod
    def _qty_in_range(cls, v: int) -> int:
        if not MIN_QTY <= v <= MAX_QTY:
            raise PydanticCustomError(
                "qty_range",
                "Quantity must be between {lo} and {hi}",
                {"lo": MIN_QTY, "hi": MAX_QTY},
            )
        return v


class OrderIntent(BaseModel):
    """A validated order. Field order is the order rules are reported in."""

    model_config = _MODEL_CONFIG

    items: Tuple[OrderItemInput, ...]
    delivery_date: str = Field(alias="deliveryDate")
    delivery_slot: DeliverySlot = Field(alias="deliverySlot")
    allow_kitniyot: bool = Field(default=True, alias="allowKitniyot", strict=True)
    allow_substitutes: bool = Field(default=True, alias="allowSubstitutes", strict=True)
    customer_name: str = Field(alias="customerName")
    phone: str
    address_line1: str = Field(alias="addressLine1")
    address_line2: Optional[str] = Field(default=None, alias="addressLine2")
    notes: Optional[str] = None
    postcode: str
    email: Optional[str] = None

    @field_validator("items")
    @classmethod
    def _at_least_one_item(cls, v: Tuple[OrderItemInput, ...]) -> Tuple[OrderItemInput, ...]:
        if not v:
            raise PydanticCustomError("items_empty", "At least one item is required")
        return v

    @field_validator("delivery_date")
    @classmethod
    def _delivery_date_allowed(cls, v: str, info: ValidationInfo) -> str:
        ctx = info.context or {}
        lo = ctx.get("min_date", STORE.delivery_window_start)
        hi = ctx.get("max_date", STORE.delivery_window_end)

        if not v:
            raise PydanticCustomError("delivery_date", "Delivery date is required")
        if parse_iso_date(v) is None:
            raise PydanticCustomError("delivery_date", "Delivery date must be a valid date (YYYY-MM-DD)")
        if not is_date_within_window(v, lo, hi):
            raise PydanticCustomError(
                "delivery_date",
                "Delivery date must be between {lo} and {hi}",
                {"lo": lo, "hi": hi},
            )
        if not is_delivery_date_allowed(v):
            raise PydanticCustomError("delivery_date", "Deliveries are not available on Saturdays")
        return v

    @field_validator("delivery_slot")
    @classmethod
    def _no_friday_pm(cls, v: DeliverySlot, info: ValidationInfo) -> DeliverySlot:
        # delivery_date is only in info.data if it passed its own checks
        delivery_date = info.data.get("delivery_date")
        if delivery_date and is_friday_delivery_date(delivery_date) and v is DeliverySlot.PM:
            raise PydanticCustomError("delivery_slot", "Friday deliveries are only available in the AM slot")
        return v

    @field_validator("customer_name")
    @classmethod
    def _full_name(cls, v: str) -> str:
        if len(v) < MIN_NAME_LEN:
            raise PydanticCustomError(
                "customer_name",
                "Full name must be at least {n} characters",
                {"n": MIN_NAME_LEN},
            )
        if len(v.split()) < 2:
            raise PydanticCustomError("customer_name", "Full name must include at least first and last name")
        return v

    @field_validator("phone")
    @classmethod
    def _uk_phone(cls, v: str) -> str:
        if not UK_PHONE_RE.match(v):
            raise PydanticCustomError("phone", "Please enter a valid UK phone number")
        return v

    @field_validator("address_line1")
    @classmethod
    def _address_present(cls, v: str) -> str:
        if len(v) < 3:
            raise PydanticCustomError("address_line1", "Address line 1 must be at least 3 characters")
        return v

    @field_validator("address_line2", "notes")
    @classmethod
    def _optional_text(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)

    @field_validator("postcode")
    @classmethod
    def _uk_postcode(cls, v: str) -> str:
        if not UK_POSTCODE_RE.match(v):
            raise PydanticCustomError("postcode", "Postcode must be a valid UK postcode")
        compact = re.sub(r"\s+", "", v).upper()
        return f"{compact[:-3]} {compact[-3:]}"

    @field_validator("email")
    @classmethod
    def _optional_email(cls, v: Optional[str]) -> Optional[str]:
        v = _blank_to_none(v)
        if v is None:
            return None
        try:
            validate_email(v, check_deliverability=False)
        except EmailNotValidError:
            raise PydanticCustomError("email", "Email must be a valid address") from None
        return v


def _format_loc(loc: Tuple[Any, ...]) -> str:
    return ".".join(str(p) for p in loc)


def validate_order_payload(payload: Any, min_date_iso: str, max_date_iso: str) -> OrderIntent:
    """Validate a raw payload against the schema and the delivery window.

    Raises:
        OrderValidationError: carrying the first failing rule as
            ``"<fieldPath>: <message>"``.
    """
    try:
        return OrderIntent.model_validate(
            payload,
            context={"min_date": min_date_iso, "max_date": max_date_iso},
        )
    except ValidationError as e:
        errors = e.errors(include_url=False)
        if not errors:
            raise OrderValidationError("Invalid order payload") from None
        first = errors[0]
        path = _format_loc(first.get("loc", ()))
        message = f"{path}: {first['msg']}" if path else first["msg"]
        log.info("Order payload rejected: %s", message)
        raise OrderValidationError(message, field=path or None) from None
