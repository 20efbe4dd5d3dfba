"""Cart Engine: owned state container around one shopper's Cart.

The engine is the only writer of the cart: callers go through its operations,
never through the aggregate's fields, so every change is followed by a full
totals recomputation and a save of the snapshot to the key-value store.
"""

from protean.exceptions import ValidationError

from shopping.cart.cart import Cart
from shopping.domain import logger
from shopping.storage import CART_KEY, KeyValueStore, get_storage


class CartEngine:
    def __init__(self, storage: KeyValueStore | None = None, key: str = CART_KEY) -> None:
        self._storage = storage if storage is not None else get_storage()
        self._key = key
        self._cart = self._load()

    # -------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------
    def _load(self) -> Cart:
        blob = self._storage.load(self._key)
        if blob is None:
            return Cart()

        try:
            cart = Cart.from_snapshot(blob)
        except (ValidationError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding invalid stored cart", key=self._key, error=str(exc))
            return Cart()

        logger.debug("Cart rehydrated", key=self._key, total_items=cart.total_items)
        return cart

    def _commit(self) -> None:
        """Save the snapshot and drain the events raised by the last mutation."""
        self._storage.save(self._key, self._cart.snapshot())

        for event in self._cart._events:
            logger.debug("Cart event", event_type=type(event).__name__, cart_id=str(self._cart.id))
        self._cart._events.clear()

    def reload(self) -> None:
        """Re-read the cart from storage, discarding in-memory state."""
        self._cart = self._load()

    # -------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------
    @property
    def cart(self) -> Cart:
        return self._cart

    @property
    def items(self) -> list:
        return list(self._cart.items)

    @property
    def shipping_cost(self) -> float:
        return self._cart.shipping_cost

    @property
    def discount_code(self) -> str | None:
        return self._cart.discount_code

    @property
    def discount_amount(self) -> float:
        return self._cart.discount_amount

    @property
    def is_empty(self) -> bool:
        return self._cart.is_empty

    def get_item_quantity(self, product_id, size) -> int:
        return self._cart.item_quantity(product_id, size)

    def is_item_in_cart(self, product_id, size) -> bool:
        return self._cart.has_item(product_id, size)

    def snapshot(self) -> dict:
        return self._cart.snapshot()

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add_item(self, product, size, quantity=1) -> None:
        self._cart.add_item(product, size, quantity)
        self._commit()
        logger.info(
            "Item added to cart",
            product_id=str(product.product_id),
            size=size,
            quantity=self._cart.item_quantity(product.product_id, size),
        )

    def remove_item(self, product_id, size) -> None:
        self._cart.remove_item(product_id, size)
        self._commit()
        logger.info("Item removed from cart", product_id=str(product_id), size=size)

    def update_quantity(self, product_id, size, quantity) -> None:
        self._cart.update_quantity(product_id, size, quantity)
        self._commit()

    def increment_quantity(self, product_id, size) -> None:
        current = self.get_item_quantity(product_id, size)
        if current:
            self.update_quantity(product_id, size, current + 1)

    def decrement_quantity(self, product_id, size) -> None:
        """Step a line down by one; a line at quantity 1 is removed."""
        current = self.get_item_quantity(product_id, size)
        if current > 1:
            self.update_quantity(product_id, size, current - 1)
        elif current == 1:
            self.remove_item(product_id, size)

    def set_shipping_cost(self, cost) -> None:
        self._cart.set_shipping_cost(cost)
        self._commit()

    def apply_discount(self, code, amount) -> None:
        self._cart.apply_discount(code, amount)
        self._commit()
        logger.info("Discount applied", discount_code=code, discount_amount=self._cart.discount_amount)

    def remove_discount(self) -> None:
        self._cart.remove_discount()
        self._commit()

    def clear_cart(self) -> None:
        self._cart.clear()
        self._commit()
        logger.info("Cart cleared", cart_id=str(self._cart.id))

    def discard(self) -> None:
        """Delete the stored cart and start over with an empty one."""
        self._storage.delete(self._key)
        self._cart = Cart()
        logger.info("Stored cart discarded", key=self._key)
