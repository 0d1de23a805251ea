# pesach_orders/core/config.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Tuple
import os
import logging

# Order window for the current season; override per deployment.
STORE_NAME: str = os.getenv("STORE_NAME", "Kosher Paradise")
ORDERS_EMAIL: str = os.getenv("ORDERS_EMAIL", "orders@example.com")
DELIVERY_WINDOW_START: str = os.getenv("DELIVERY_WINDOW_START", "2026-03-22")
DELIVERY_WINDOW_END: str = os.getenv("DELIVERY_WINDOW_END", "2026-04-03")
ORDER_REF_PREFIX: str = os.getenv("ORDER_REF_PREFIX", "KP")

DELIVERY_SLOTS = ["AM", "PM"]

# Catalog source: "xlsx" (workbook in data/) or "mongo"
CATALOG_SOURCE: str = os.getenv("CATALOG_SOURCE", "xlsx").lower()
CATALOG_PATH: str | None = os.getenv("CATALOG_PATH") or None
DEFAULT_CATALOG_FILENAME = "KP Pesach List 5786.xlsx"

# Mongo settings
MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB: str = os.getenv("MONGO_DB", "pesach_orders")
MONGO_CATALOG_COL: str = os.getenv("MONGO_CATALOG_COL", "catalog_rows")

RATE_LIMIT_MAX_REQUESTS: int = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "8"))
RATE_LIMIT_WINDOW_S: float = float(os.getenv("RATE_LIMIT_WINDOW_S", "60"))

ORDER_SHEET_PATH: str | None = os.getenv("ORDER_SHEET_PATH") or None


def env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def require_env(name: str) -> str:
    value = (os.getenv(name) or "").strip()
    if not value:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


@dataclass(frozen=True)
class StoreConfig:
    store_name: str = STORE_NAME
    orders_email: str = ORDERS_EMAIL
    contact_phone: str = "0208 455 2454"
    contact_email: str = "orders@kosherparadise.co.uk"
    opening_times: Tuple[str, ...] = (
        "Sun-Thu: 08:00-20:00",
        "Fri: 08:00-14:00",
        "Motzai Shabbos: 20:30-23:00",
    )
    delivery_window_start: str = DELIVERY_WINDOW_START
    delivery_window_end: str = DELIVERY_WINDOW_END
    delivery_slots: Tuple[str, ...] = field(default_factory=lambda: tuple(DELIVERY_SLOTS))
    order_ref_prefix: str = ORDER_REF_PREFIX


@dataclass(frozen=True)
class Paths:
    ROOT: str = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
    DATA_DIR: str = os.path.join(ROOT, "data")
    CATALOG_WORKBOOK: str = os.path.join(DATA_DIR, DEFAULT_CATALOG_FILENAME)
    ORDER_SHEET: str = os.path.join(DATA_DIR, "orders", "pesach_orders.xlsx")


STORE = StoreConfig()

# Global logging (module-level loggers inherit this)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
LOGGER = logging.getLogger("pesach_orders")
