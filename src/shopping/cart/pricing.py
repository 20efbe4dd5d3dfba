"""Cart pricing rules.

Totals are always re-derived from the line items, the stored shipping quote
and the discount amount. Nothing is patched incrementally, so the numbers can
never drift from the items they describe.
"""

from collections.abc import Iterable
from dataclasses import dataclass

TAX_RATE = 0.08
FREE_SHIPPING_THRESHOLD = 100.0
MAX_QUANTITY = 10


def to_cents(amount: float) -> float:
    return round(amount, 2)


def clamp_quantity(quantity: int) -> int:
    return min(quantity, MAX_QUANTITY)


@dataclass(frozen=True)
class CartTotals:
    total_items: int = 0
    subtotal: float = 0.0
    tax: float = 0.0
    shipping: float = 0.0
    discount: float = 0.0
    total: float = 0.0


def calculate_totals(items: Iterable, shipping_cost: float, discount_amount: float) -> CartTotals:
    """Derive cart totals.

    Order of evaluation:
        1. total_items = sum of quantities
        2. subtotal    = sum of effective price x quantity
        3. tax         = subtotal x TAX_RATE
        4. shipping    = 0 when the unrounded subtotal reaches
                         FREE_SHIPPING_THRESHOLD, else the quote
        5. total       = max(0, subtotal + tax + shipping - discount)

    ``items`` only needs ``quantity``, ``selected_size`` and a ``product``
    exposing ``price_for(size)``.
    """
    items = list(items)

    total_items = sum(item.quantity for item in items)
    raw_subtotal = sum(item.product.price_for(item.selected_size) * item.quantity for item in items)
    subtotal = to_cents(raw_subtotal)
    tax = to_cents(subtotal * TAX_RATE)
    shipping = 0.0 if raw_subtotal >= FREE_SHIPPING_THRESHOLD else to_cents(max(shipping_cost or 0.0, 0.0))
    discount = to_cents(max(discount_amount or 0.0, 0.0))
    total = to_cents(max(0.0, subtotal + tax + shipping - discount))

    return CartTotals(
        total_items=total_items,
        subtotal=subtotal,
        tax=tax,
        shipping=shipping,
        discount=discount,
        total=total,
    )
