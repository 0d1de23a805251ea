# pesach_orders/domain/entities.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


class DeliverySlot(str, Enum):
    AM = "AM"
    PM = "PM"


@dataclass(frozen=True)
class Product:
    id: str
    category: str
    name: str
    size: Optional[str]
    sort_index: int


@dataclass(frozen=True)
class Category:
    name: str
    products: Tuple[Product, ...] = ()


@dataclass(frozen=True)
class Catalog:
    categories: Tuple[Category, ...] = ()

    def __iter__(self):
        return iter(self.categories)

    def __len__(self) -> int:
        return len(self.categories)

    def products(self) -> Tuple[Product, ...]:
        return tuple(p for c in self.categories for p in c.products)

    def product_index(self) -> Dict[str, Product]:
        return {p.id: p for p in self.products()}

    def non_empty(self) -> "Catalog":
        """Categories with at least one product, in catalog order."""
        return Catalog(tuple(c for c in self.categories if c.products))


@dataclass(frozen=True)
class NormalizedOrderItem:
    product_id: str
    name: str
    size: Optional[str]
    qty: int


@dataclass(frozen=True)
class NormalizedOrder:
    order_ref: str
    created_at_iso: str
    items: Tuple[NormalizedOrderItem, ...]
    delivery_date: str
    delivery_slot: DeliverySlot
    allow_kitniyot: bool
    allow_substitutes: bool
    customer_name: str
    phone: str
    address_line1: str
    postcode: str
    address_line2: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None

    @property
    def total_quantity(self) -> int:
        return sum(i.qty for i in self.items)

    @property
    def address(self) -> str:
        return ", ".join(p for p in (self.address_line1, self.address_line2, self.postcode) if p)
