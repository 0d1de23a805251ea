# pesach_orders/domain/repositories.py
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Iterable, Sequence

from pesach_orders.core.config import StoreConfig
from pesach_orders.domain.entities import NormalizedOrder

RawCatalogRow = Sequence[Any]


class CatalogRowSource(ABC):
    """Yields raw catalog rows: column 0 = product/category name, column 1 = size."""

    @abstractmethod
    def rows(self) -> Iterable[RawCatalogRow]:
        ...


class OrderMailer(ABC):
    @abstractmethod
    def send_store_order_email(self, order: NormalizedOrder, store: StoreConfig) -> None:
        ...

    @abstractmethod
    def send_customer_confirmation_email(self, order: NormalizedOrder, store: StoreConfig) -> bool:
        """Returns False when the order carries no customer email."""


class OrderSheet(ABC):
    @abstractmethod
    def append_order(self, order: NormalizedOrder) -> None:
        ...
