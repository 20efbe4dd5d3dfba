"""Domain events for the Cart aggregate."""

from protean.fields import Float, Identifier, Integer, String

from shopping.domain import shopping


@shopping.event(part_of="Cart")
class CartItemAdded:
    """A product size was added to the cart, or its quantity increased."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    selected_size = String(required=True)
    quantity = Integer(required=True)


@shopping.event(part_of="Cart")
class CartQuantityUpdated:
    __version__ = "v1"

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    selected_size = String(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@shopping.event(part_of="Cart")
class CartItemRemoved:
    __version__ = "v1"

    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    selected_size = String(required=True)


@shopping.event(part_of="Cart")
class CartDiscountApplied:
    """A discount code and its absolute amount were applied to the cart."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    discount_code = String(required=True)
    discount_amount = Float(required=True)


@shopping.event(part_of="Cart")
class CartDiscountRemoved:
    __version__ = "v1"

    cart_id = Identifier(required=True)
    discount_code = String()


@shopping.event(part_of="Cart")
class CartCleared:
    """Every item, the shipping quote and the discount were reset."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    items_removed = Integer(required=True)
