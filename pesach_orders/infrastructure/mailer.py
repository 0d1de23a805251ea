# pesach_orders/infrastructure/mailer.py
from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import List

from pesach_orders.core.config import StoreConfig, require_env
from pesach_orders.domain.entities import NormalizedOrder
from pesach_orders.domain.repositories import OrderMailer

log = logging.getLogger("infra.mailer")


def format_items(order: NormalizedOrder) -> str:
    lines: List[str] = []
    for item in order.items:
        size = f" ({item.size})" if item.size else ""
        lines.append(f"- {item.name}{size} x {item.qty}")
    return "\n".join(lines)


def store_order_body(order: NormalizedOrder) -> str:
    return "\n".join(
        [
            f"Order Ref: {order.order_ref}",
            f"Placed: {order.created_at_iso}",
            "",
            f"Delivery: {order.delivery_date} {order.delivery_slot.value}",
            f"Allow kitniyot: {'Yes' if order.allow_kitniyot else 'No'}",
            f"Allow substitutes: {'Yes' if order.allow_substitutes else 'No'}",
            "",
            "Customer:",
            f"Name: {order.customer_name}",
            f"Phone: {order.phone}",
            f"Email: {order.email or '(not provided)'}",
            f"Address: {order.address}",
            "",
            "Items:",
            format_items(order),
            "",
            f"Total item lines: {len(order.items)}",
            f"Notes: {order.notes or '(none)'}",
        ]
    )


def customer_confirmation_body(order: NormalizedOrder, store: StoreConfig) -> str:
    return "\n".join(
        [
            f"Thank you for your order with {store.store_name}.",
            "",
            f"Order Ref: {order.order_ref}",
            f"Requested delivery: {order.delivery_date} {order.delivery_slot.value}",
            "",
            "Items:",
            format_items(order),
            "",
            f"If anything needs changing, contact us at {store.contact_phone} or {store.contact_email}.",
        ]
    )


class SmtpOrderMailer(OrderMailer):
    """
    Plain-text order emails over SMTP. Credentials come from the environment
    (SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASS, SMTP_FROM, ORDERS_EMAIL) and
    are read per send, so a missing variable fails the order, not startup.
    """

    def __init__(self, timeout_s: float = 20.0) -> None:
        self.timeout_s = timeout_s

    def _send(self, msg: EmailMessage) -> None:
        host = require_env("SMTP_HOST")
        port = int(require_env("SMTP_PORT"))
        user = require_env("SMTP_USER")
        password = require_env("SMTP_PASS")

        if port == 465:
            with smtplib.SMTP_SSL(host, port, timeout=self.timeout_s) as smtp:
                smtp.login(user, password)
                smtp.send_message(msg)
            return

        with smtplib.SMTP(host, port, timeout=self.timeout_s) as smtp:
            smtp.ehlo()
            if smtp.has_extn("starttls"):
                smtp.starttls()
                smtp.ehlo()
            smtp.login(user, password)
            smtp.send_message(msg)

    def send_store_order_email(self, order: NormalizedOrder, store: StoreConfig) -> None:
        msg = EmailMessage()
        msg["From"] = require_env("SMTP_FROM")
        msg["To"] = require_env("ORDERS_EMAIL")
        msg["Subject"] = f"{store.store_name} Pesach Order {order.order_ref}"
        if order.email:
            msg["Reply-To"] = order.email
        msg.set_content(store_order_body(order))

        self._send(msg)
        log.info("Store order email sent | ref=%s", order.order_ref)

    def send_customer_confirmation_email(self, order: NormalizedOrder, store: StoreConfig) -> bool:
        if not order.email:
            return False

        msg = EmailMessage()
        msg["From"] = require_env("SMTP_FROM")
        msg["To"] = order.email
        msg["Subject"] = f"{store.store_name} order confirmation ({order.order_ref})"
        msg["Reply-To"] = require_env("ORDERS_EMAIL")
        msg.set_content(customer_confirmation_body(order, store))

        self._send(msg)
        log.info("Customer confirmation sent | ref=%s", order.order_ref)
        return True
