from __future__ import annotations

import logging
import uvicorn
from fastapi import FastAPI
from pymongo import MongoClient
from dotenv import load_dotenv
load_dotenv()
from pesach_orders.api.routes import router
from pesach_orders.core.config import (
    CATALOG_PATH,
    CATALOG_SOURCE,
    MONGO_CATALOG_COL,
    MONGO_DB,
    MONGO_URI,
    ORDER_SHEET_PATH,
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW_S,
    STORE,
    env_flag,
)

from pesach_orders.application.catalog_cache import CatalogCache
from pesach_orders.application.order_service import OrderService
from pesach_orders.application.usecases import BrowseCatalog, GetStoreInfo, SearchProducts
from pesach_orders.infrastructure.mailer import SmtpOrderMailer
from pesach_orders.infrastructure.mongo_catalog import MongoCatalogSource
from pesach_orders.infrastructure.order_sheet import XlsxOrderSheet
from pesach_orders.infrastructure.rate_limit import InMemoryRateLimiter
from pesach_orders.infrastructure.xlsx_catalog import XlsxCatalogSource
from pesach_orders.services.catalog_parser import load_catalog

log = logging.getLogger("app")
app = FastAPI(title="KP Pesach Orders")
app.include_router(router)

_mongo_client: MongoClient | None = None


def _catalog_source():
    global _mongo_client
    if CATALOG_SOURCE == "mongo":
        _mongo_client = MongoClient(MONGO_URI, serverSelectionTimeoutMS=3000)
        return MongoCatalogSource(_mongo_client[MONGO_DB][MONGO_CATALOG_COL])
    return XlsxCatalogSource(CATALOG_PATH)


@app.on_event("startup")
def on_startup() -> None:
    source = _catalog_source()
    catalog_cache = CatalogCache(lambda: load_catalog(source))
    catalog_cache.get()  # warm

    skip_sheet = env_flag("SKIP_ORDER_SHEET")
    order_service = OrderService(
        catalog_provider=catalog_cache.catalog,
        mailer=SmtpOrderMailer(),
        sheet=None if skip_sheet else XlsxOrderSheet(ORDER_SHEET_PATH),
        rate_limiter=InMemoryRateLimiter(RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_S),
        store=STORE,
        skip_sheet=skip_sheet,
    )

    # DI for routes.py
    app.state.catalog_cache = catalog_cache
    app.state.browse_uc = BrowseCatalog(catalog_cache)
    app.state.search_uc = SearchProducts(catalog_cache)
    app.state.store_info_uc = GetStoreInfo(STORE)
    app.state.order_service = order_service
    log.info("Startup complete | catalog_source=%s skip_sheet=%s", CATALOG_SOURCE, skip_sheet)


@app.on_event("shutdown")
def on_shutdown() -> None:
    global _mongo_client
    if _mongo_client:
        _mongo_client.close()
        _mongo_client = None


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8081, reload=False)
