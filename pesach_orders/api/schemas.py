# pesach_orders/api/schemas.py
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from pesach_orders.domain.entities import Category, Product


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ProductOut(_CamelModel):
    id: str
    category: str
    name: str
    size: Optional[str] = None
    sort_index: int = Field(alias="sortIndex")

    @classmethod
    def from_entity(cls, p: Product) -> "ProductOut":
        return cls(id=p.id, category=p.category, name=p.name, size=p.size, sort_index=p.sort_index)


class CategoryOut(_CamelModel):
    name: str
    products: List[ProductOut] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, c: Category) -> "CategoryOut":
        return cls(name=c.name, products=[ProductOut.from_entity(p) for p in c.products])


class CatalogResponse(_CamelModel):
    categories: List[CategoryOut]


class SearchResponse(_CamelModel):
    query: str
    categories: List[CategoryOut]


class StoreInfoResponse(_CamelModel):
    store_name: str = Field(alias="storeName")
    contact_phone: str = Field(alias="contactPhone")
    contact_email: str = Field(alias="contactEmail")
    opening_times: List[str] = Field(alias="openingTimes")
    delivery_window_start: str = Field(alias="deliveryWindowStart")
    delivery_window_end: str = Field(alias="deliveryWindowEnd")
    delivery_slots: List[str] = Field(alias="deliverySlots")
    default_delivery_date: str = Field(alias="defaultDeliveryDate")


class OrderAcceptedResponse(_CamelModel):
    ok: bool = True
    order_ref: str = Field(alias="orderRef")
    customer_email_sent: bool = Field(alias="customerEmailSent")


class ErrorResponse(_CamelModel):
    ok: bool = False
    error: str
