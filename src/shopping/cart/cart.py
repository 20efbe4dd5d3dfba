"""Cart aggregate: the shopper's selected merchandise and its derived totals.

Line items are unique per (product, size). Quantities are clamped into
[1, MAX_QUANTITY] instead of being rejected, and every mutation ends with a
full recomputation of the totals from the current items.
"""

import json
from collections.abc import Mapping

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Float, HasMany, Identifier, Integer, String, Text, ValueObject

from shopping.cart.events import (
    CartCleared,
    CartDiscountApplied,
    CartDiscountRemoved,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
)
from shopping.cart.pricing import MAX_QUANTITY, calculate_totals, clamp_quantity, to_cents
from shopping.domain import shopping

SNAPSHOT_VERSION = 1


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@shopping.value_object(part_of="Cart")
class Product:
    """Snapshot of the priced product a line item refers to.

    ``size_prices`` is a JSON object mapping a size label to its price. A size
    missing from the map is sold at the base ``price``.
    """

    product_id = Identifier(required=True)
    name = String(max_length=255)
    price = Float(required=True, min_value=0.0)
    size_prices = Text()
    image = String(max_length=500)

    @invariant.post
    def size_prices_must_be_valid(self):
        if not self.size_prices:
            return

        try:
            prices = json.loads(self.size_prices)
        except (json.JSONDecodeError, TypeError):
            raise ValidationError({"size_prices": ["Size prices must be valid JSON"]}) from None

        if not isinstance(prices, dict):
            raise ValidationError({"size_prices": ["Size prices must be a JSON object"]})

        for size, price in prices.items():
            if isinstance(price, bool) or not isinstance(price, int | float) or price < 0:
                raise ValidationError({"size_prices": [f"Price for size '{size}' must be a non-negative number"]})

    @classmethod
    def build(cls, product_id, name=None, price=0.0, sizes=None, image=None):
        """Build a product snapshot from catalogue data.

        ``sizes`` is either a ``{size: price}`` mapping or a list of
        ``{"size": ..., "price": ...}`` records as the catalogue returns them.
        """
        if sizes is None:
            size_prices = None
        elif isinstance(sizes, Mapping):
            size_prices = json.dumps(dict(sizes))
        else:
            size_prices = json.dumps({entry["size"]: entry["price"] for entry in sizes})

        return cls(
            product_id=product_id,
            name=name,
            price=price,
            size_prices=size_prices,
            image=image,
        )

    def size_price_map(self) -> dict:
        return json.loads(self.size_prices) if self.size_prices else {}

    def price_for(self, size) -> float:
        """Effective price: the size-specific override, else the base price."""
        return float(self.size_price_map().get(size, self.price))


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@shopping.entity(part_of="Cart")
class LineItem:
    product_id = Identifier(required=True)
    selected_size = String(required=True, max_length=50)
    quantity = Integer(required=True, min_value=1, max_value=MAX_QUANTITY)
    product = ValueObject(Product, required=True)

    def matches(self, product_id, selected_size) -> bool:
        return str(self.product_id) == str(product_id) and self.selected_size == selected_size

    @property
    def unit_price(self) -> float:
        return self.product.price_for(self.selected_size)

    @property
    def line_total(self) -> float:
        return to_cents(self.unit_price * self.quantity)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@shopping.aggregate
class Cart:
    items = HasMany(LineItem)
    shipping_cost = Float(default=0.0)
    discount_code = String(max_length=50)
    discount_amount = Float(default=0.0)

    # Derived, recomputed after every mutation
    total_items = Integer(default=0)
    subtotal = Float(default=0.0)
    tax = Float(default=0.0)
    shipping = Float(default=0.0)
    discount = Float(default=0.0)
    total = Float(default=0.0)

    @invariant.post
    def one_line_item_per_product_size(self):
        keys = [(str(item.product_id), item.selected_size) for item in self.items]
        if len(keys) != len(set(keys)):
            raise ValidationError({"items": ["A product size can only appear once in the cart"]})

    @invariant.post
    def discount_is_never_negative(self):
        if (self.discount_amount or 0.0) < 0:
            raise ValidationError({"discount_amount": ["Discount amount cannot be negative"]})

    @invariant.post
    def total_is_never_negative(self):
        if (self.total or 0.0) < 0:
            raise ValidationError({"total": ["Cart total cannot be negative"]})

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def find_item(self, product_id, selected_size):
        return next((item for item in self.items if item.matches(product_id, selected_size)), None)

    def item_quantity(self, product_id, selected_size) -> int:
        item = self.find_item(product_id, selected_size)
        return item.quantity if item else 0

    def has_item(self, product_id, selected_size) -> bool:
        return self.find_item(product_id, selected_size) is not None

    @property
    def is_empty(self) -> bool:
        return not self.items

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product, selected_size, quantity=1):
        """Add a product size, or increase the quantity of the existing line.

        The resulting quantity is capped at MAX_QUANTITY. A non-positive
        quantity never creates a line; if it takes an existing line to zero or
        below, the line is removed.
        """
        existing = self.find_item(product.product_id, selected_size)

        if existing is None and quantity < 1:
            return

        if existing is not None and existing.quantity + quantity < 1:
            self.remove_item(product.product_id, selected_size)
            return

        with atomic_change(self):
            if existing is not None:
                existing.quantity = clamp_quantity(existing.quantity + quantity)
                resulting_quantity = existing.quantity
            else:
                resulting_quantity = clamp_quantity(quantity)
                self.add_items(
                    LineItem(
                        product_id=product.product_id,
                        selected_size=selected_size,
                        quantity=resulting_quantity,
                        product=product,
                    )
                )
            self._recalculate()

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                product_id=str(product.product_id),
                selected_size=selected_size,
                quantity=resulting_quantity,
            )
        )

    def remove_item(self, product_id, selected_size):
        """Remove a line. Removing a line that is not in the cart is a no-op."""
        item = self.find_item(product_id, selected_size)
        if item is None:
            return

        with atomic_change(self):
            self.remove_items(item)
            self._recalculate()

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                product_id=str(product_id),
                selected_size=selected_size,
            )
        )

    def update_quantity(self, product_id, selected_size, quantity):
        """Set a line's quantity; zero or below removes the line."""
        if quantity <= 0:
            self.remove_item(product_id, selected_size)
            return

        item = self.find_item(product_id, selected_size)
        if item is None:
            return

        previous_quantity = item.quantity
        with atomic_change(self):
            item.quantity = clamp_quantity(quantity)
            self._recalculate()

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                product_id=str(product_id),
                selected_size=selected_size,
                previous_quantity=previous_quantity,
                new_quantity=item.quantity,
            )
        )

    # -------------------------------------------------------------------
    # Shipping and discounts
    # -------------------------------------------------------------------
    def set_shipping_cost(self, cost):
        """Store the raw shipping quote. The free-shipping rule applies on recompute."""
        with atomic_change(self):
            self.shipping_cost = max(float(cost or 0.0), 0.0)
            self._recalculate()

    def apply_discount(self, code, amount):
        with atomic_change(self):
            self.discount_code = code
            self.discount_amount = max(float(amount or 0.0), 0.0)
            self._recalculate()

        self.raise_(
            CartDiscountApplied(
                cart_id=str(self.id),
                discount_code=code,
                discount_amount=self.discount_amount,
            )
        )

    def remove_discount(self):
        previous_code = self.discount_code
        with atomic_change(self):
            self.discount_code = None
            self.discount_amount = 0.0
            self._recalculate()

        self.raise_(CartDiscountRemoved(cart_id=str(self.id), discount_code=previous_code))

    def clear(self):
        """Empty the cart and reset shipping and discount to their defaults."""
        items_removed = len(self.items)
        with atomic_change(self):
            for item in list(self.items):
                self.remove_items(item)
            self.shipping_cost = 0.0
            self.discount_code = None
            self.discount_amount = 0.0
            self._recalculate()

        self.raise_(CartCleared(cart_id=str(self.id), items_removed=items_removed))

    # -------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------
    def _recalculate(self):
        totals = calculate_totals(self.items, self.shipping_cost, self.discount_amount)
        self.total_items = totals.total_items
        self.subtotal = totals.subtotal
        self.tax = totals.tax
        self.shipping = totals.shipping
        self.discount = totals.discount
        self.total = totals.total

    # -------------------------------------------------------------------
    # Persistence snapshots
    # -------------------------------------------------------------------
    def snapshot(self) -> dict:
        """Plain-JSON state. Derived totals are left out; they are recomputed on load."""
        return {
            "version": SNAPSHOT_VERSION,
            "id": str(self.id),
            "items": [
                {
                    "product_id": str(item.product_id),
                    "selected_size": item.selected_size,
                    "quantity": item.quantity,
                    "product": {
                        "product_id": str(item.product.product_id),
                        "name": item.product.name,
                        "price": item.product.price,
                        "size_prices": item.product.size_prices,
                        "image": item.product.image,
                    },
                }
                for item in self.items
            ],
            "shipping_cost": self.shipping_cost,
            "discount_code": self.discount_code,
            "discount_amount": self.discount_amount,
        }

    @classmethod
    def from_snapshot(cls, data: dict):
        """Rebuild a cart from :meth:`snapshot` output, re-deriving every total."""
        kwargs = {
            "shipping_cost": max(float(data.get("shipping_cost") or 0.0), 0.0),
            "discount_code": data.get("discount_code"),
            "discount_amount": max(float(data.get("discount_amount") or 0.0), 0.0),
        }
        if data.get("id"):
            kwargs["id"] = data["id"]
        cart = cls(**kwargs)

        with atomic_change(cart):
            for raw in data.get("items", []):
                quantity = clamp_quantity(int(raw.get("quantity", 0)))
                if quantity < 1 or cart.has_item(raw["product_id"], raw["selected_size"]):
                    continue
                cart.add_items(
                    LineItem(
                        product_id=raw["product_id"],
                        selected_size=raw["selected_size"],
                        quantity=quantity,
                        product=Product(**raw["product"]),
                    )
                )
            cart._recalculate()

        return cart
