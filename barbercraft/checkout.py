"""Order checkout: resolve catalog prices, freeze line items, compute the total."""
from __future__ import annotations

from typing import Iterable

from .extensions import db
from .models import Order, Product, cents_to_dollars
from .payloads import MAX_INT, parse_id

MAX_QUANTITY = 999


class CheckoutError(Exception):
    """Checkout rejected before anything was written; maps to HTTP 400."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def parse_quantity(raw: object) -> int:
    """Missing means 1; otherwise a JSON integer from 1 to ``MAX_QUANTITY``."""
    if raw is None:
        return 1
    if isinstance(raw, bool) or not isinstance(raw, int) or not 1 <= raw <= MAX_QUANTITY:
        raise CheckoutError(f"Quantity must be an integer between 1 and {MAX_QUANTITY}")
    return raw


def parse_line(item: object) -> tuple[int | None, object, int]:
    """Split a cart item into ``(product_id, raw_id, quantity)``.

    ``product_id`` is ``None`` when the raw id cannot name a product.
    """
    if not isinstance(item, dict):
        raise CheckoutError("Each item must be an object")
    raw_id = item.get("product_id", item.get("id"))
    quantity = parse_quantity(item.get("quantity"))
    try:
        product_id = parse_id(raw_id)
    except (ValueError, TypeError):
        product_id = None
    return product_id, raw_id, quantity


def check_total(total_cents: int) -> int:
    if total_cents > MAX_INT:
        raise CheckoutError("Order total is too large")
    return total_cents


def line_item(product_id: int, quantity: int, price_cents: int) -> dict[str, object]:
    return {
        "product_id": product_id,
        "quantity": quantity,
        "price": cents_to_dollars(price_cents),
        "price_cents": price_cents,
    }


def price_items(items: Iterable[object]) -> tuple[list[dict[str, object]], int]:
    """Look up each item's current price and return ``(line_items, total_cents)``.

    Every item is resolved before anything is returned, so one unknown
    product fails the whole checkout.
    """
    line_items: list[dict[str, object]] = []
    total_cents = 0
    for item in items:
        product_id, raw_id, quantity = parse_line(item)
        product = db.session.get(Product, product_id) if product_id is not None else None
        if product is None:
            raise CheckoutError(f"Invalid product: {raw_id}")

        total_cents += product.price_cents * quantity
        line_items.append(line_item(product.product_id, quantity, product.price_cents))
    return line_items, check_total(total_cents)


def place_order(*, user_id: int, items: list[dict],
                shipping_address: dict | None = None) -> Order:
    """Create a cash-on-delivery order from ``items``."""
    if not isinstance(items, list) or not items:
        raise CheckoutError("Items are required")

    line_items, total_cents = price_items(items)

    order = Order(
        user_id=user_id,
        items=line_items,
        status="pending_cash",
        total_amount_cents=total_cents,
        payment_method="cash",
        shipping_address=shipping_address or None,
    )
    db.session.add(order)
    db.session.commit()
    return order
