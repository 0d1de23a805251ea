# pesach_orders/api/routes.py
from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from pesach_orders.api.schemas import (
    CatalogResponse,
    CategoryOut,
    ErrorResponse,
    OrderAcceptedResponse,
    SearchResponse,
    StoreInfoResponse,
)
from pesach_orders.application.order_service import (
    OrderAccepted,
    OrderFailed,
    OrderRateLimited,
    OrderRejected,
    OrderService,
)

log = logging.getLogger("api.routes")
router = APIRouter()


# -------------------------
# Dependencies via app.state (wired in main.py startup)
# -------------------------
def _from_state(request: Request, name: str) -> Any:
    value = getattr(request.app.state, name, None)
    if value is None:
        raise RuntimeError(f"{name} not initialized. Check app startup wiring.")
    return value


def get_browse_uc(request: Request):
    return _from_state(request, "browse_uc")


def get_search_uc(request: Request):
    return _from_state(request, "search_uc")


def get_store_info_uc(request: Request):
    return _from_state(request, "store_info_uc")


def get_order_service(request: Request) -> OrderService:
    return _from_state(request, "order_service")


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else None


def _error(status: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(ErrorResponse(error=message).model_dump(), status_code=status, headers=headers)


@router.get("/catalog", response_model=CatalogResponse)
def catalog(browse=Depends(get_browse_uc)) -> Any:
    return CatalogResponse(categories=[CategoryOut.from_entity(c) for c in browse()])


@router.get("/search", response_model=SearchResponse)
def search(q: str = Query("", max_length=200), search_uc=Depends(get_search_uc)) -> Any:
    return SearchResponse(query=q, categories=[CategoryOut.from_entity(c) for c in search_uc(q)])


@router.get("/store", response_model=StoreInfoResponse)
def store_info(uc=Depends(get_store_info_uc)) -> Any:
    return StoreInfoResponse(**uc())


# -------------------------
# /orders (result variant -> HTTP status)
# -------------------------
@router.post("/orders")
async def submit_order(request: Request, service: OrderService = Depends(get_order_service)) -> JSONResponse:
    try:
        payload = await request.json()
    except ValueError:
        return _error(400, "Invalid JSON payload")

    try:
        result = await service.submit(payload, client_ip(request))
    except Exception:
        log.exception("Processing /orders error")
        return _error(500, "Unexpected server error")

    if isinstance(result, OrderAccepted):
        body = OrderAcceptedResponse(order_ref=result.order_ref, customer_email_sent=result.customer_email_sent)
        return JSONResponse(body.model_dump(by_alias=True), status_code=200)
    if isinstance(result, OrderRejected):
        return _error(400, result.message)
    if isinstance(result, OrderRateLimited):
        return _error(429, result.message, headers={"Retry-After": str(result.retry_after_s)})
    if isinstance(result, OrderFailed):
        return _error(502, result.message)
    return _error(500, "Unexpected server error")
