# pesach_orders/services/delivery_rules.py
"""Calendar rules for delivery dates and AM/PM slots.

Dates are ISO ``YYYY-MM-DD`` strings treated as plain calendar days (no
timezone), so there is no drift between server and customer.
"""
from __future__ import annotations

import re
from datetime import date, timedelta
from typing import Optional

from pesach_orders.domain.entities import DeliverySlot

_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

FRIDAY = 5
SATURDAY = 6


def parse_iso_date(value: str) -> Optional[date]:
    m = _ISO_DATE_RE.match((value or "").strip())
    if not m:
        return None
    try:
        # date() rejects impossible days such as 2026-04-31
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None


def format_iso_date(value: date) -> str:
    return value.isoformat()


def weekday_from_iso_date(value: str) -> Optional[int]:
    """0=Sunday .. 6=Saturday, or None for an invalid date."""
    d = parse_iso_date(value)
    if d is None:
        return None
    return d.isoweekday() % 7


def is_friday_delivery_date(value: str) -> bool:
    return weekday_from_iso_date(value) == FRIDAY


def is_saturday_delivery_date(value: str) -> bool:
    return weekday_from_iso_date(value) == SATURDAY


def is_delivery_date_allowed(value: str) -> bool:
    weekday = weekday_from_iso_date(value)
    return weekday is not None and weekday != SATURDAY


def is_delivery_slot_allowed(delivery_date: str, delivery_slot: DeliverySlot | str) -> bool:
    if not is_delivery_date_allowed(delivery_date):
        return False
    try:
        slot = DeliverySlot(delivery_slot)
    except ValueError:
        return False
    if is_friday_delivery_date(delivery_date):
        return slot is DeliverySlot.AM
    return True


def is_date_within_window(value: str, min_date_iso: str, max_date_iso: str) -> bool:
    d = parse_iso_date(value)
    lo = parse_iso_date(min_date_iso)
    hi = parse_iso_date(max_date_iso)
    if d is None or lo is None or hi is None:
        return False
    return lo <= d <= hi


def first_allowed_delivery_date_in_window(min_date_iso: str, max_date_iso: str) -> str:
    """First deliverable day in [min, max]; falls back to min_date_iso unchanged."""
    lo = parse_iso_date(min_date_iso)
    hi = parse_iso_date(max_date_iso)
    if lo is None or hi is None or lo > hi:
        return min_date_iso

    cursor = lo
    while cursor <= hi:
        iso = format_iso_date(cursor)
        if is_delivery_date_allowed(iso):
            return iso
        cursor += timedelta(days=1)
    return min_date_iso
