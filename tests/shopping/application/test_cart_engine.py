"""Tests for CartEngine persistence and its engine-level operations."""

import structlog
from structlog.testing import capture_logs

from shopping.cart.engine import CartEngine
from shopping.cart.pricing import MAX_QUANTITY
from shopping.storage import CART_KEY, MemoryStore


class TestPersistence:
    def test_every_mutation_is_saved(self, shirt):
        store = MemoryStore()
        engine = CartEngine(store)

        engine.add_item(shirt, "L", 2)

        blob = store.load(CART_KEY)
        assert blob["items"][0]["selected_size"] == "L"
        assert blob["items"][0]["quantity"] == 2

    def test_state_survives_a_restart(self, shirt, mug):
        store = MemoryStore()
        engine = CartEngine(store)
        engine.add_item(shirt, "L", 2)
        engine.add_item(mug, "one-size", 1)
        engine.set_shipping_cost(12.99)
        engine.apply_discount("SAVE10", 10.0)

        restarted = CartEngine(store)

        assert restarted.get_item_quantity("prod-shirt", "L") == 2
        assert restarted.discount_code == "SAVE10"
        assert restarted.cart.subtotal == 122.5
        assert restarted.cart.total == engine.cart.total

    def test_stored_totals_are_not_trusted(self, shirt):
        store = MemoryStore()
        CartEngine(store).add_item(shirt, "M", 1)
        blob = store.load(CART_KEY)
        blob["total"] = 9999.0
        store.save(CART_KEY, blob)

        assert CartEngine(store).cart.total == 54.0

    def test_invalid_stored_cart_starts_empty(self):
        store = MemoryStore()
        store.save(
            CART_KEY,
            {
                "items": [
                    {
                        "product_id": "p-1",
                        "selected_size": "M",
                        "quantity": 1,
                        "product": {"product_id": "p-1", "price": -5.0},
                    }
                ]
            },
        )

        engine = CartEngine(store)

        assert engine.is_empty

    def test_reload_discards_in_memory_state(self, shirt):
        store = MemoryStore()
        engine = CartEngine(store)
        engine.add_item(shirt, "M", 1)
        store.delete(CART_KEY)

        engine.reload()

        assert engine.is_empty

    def test_discard_forgets_the_stored_cart(self, shirt):
        store = MemoryStore()
        engine = CartEngine(store)
        engine.add_item(shirt, "M", 1)

        engine.discard()

        assert engine.is_empty
        assert store.load(CART_KEY) is None

    def test_events_are_drained_after_commit(self, shirt):
        engine = CartEngine(MemoryStore())
        engine.add_item(shirt, "M", 1)
        assert engine.cart._events == []


class TestQueries:
    def test_absent_item(self):
        engine = CartEngine(MemoryStore())
        assert engine.get_item_quantity("prod-shirt", "M") == 0
        assert engine.is_item_in_cart("prod-shirt", "M") is False

    def test_present_item(self, shirt):
        engine = CartEngine(MemoryStore())
        engine.add_item(shirt, "M", 3)
        assert engine.get_item_quantity("prod-shirt", "M") == 3
        assert engine.is_item_in_cart("prod-shirt", "M") is True
        assert len(engine.items) == 1


class TestStepQuantities:
    def test_increment(self, shirt):
        engine = CartEngine(MemoryStore())
        engine.add_item(shirt, "M", 1)
        engine.increment_quantity("prod-shirt", "M")
        assert engine.get_item_quantity("prod-shirt", "M") == 2

    def test_increment_stops_at_max(self, shirt):
        engine = CartEngine(MemoryStore())
        engine.add_item(shirt, "M", MAX_QUANTITY)
        engine.increment_quantity("prod-shirt", "M")
        assert engine.get_item_quantity("prod-shirt", "M") == MAX_QUANTITY

    def test_increment_absent_item_is_a_no_op(self):
        engine = CartEngine(MemoryStore())
        engine.increment_quantity("prod-shirt", "M")
        assert engine.is_empty

    def test_decrement(self, shirt):
        engine = CartEngine(MemoryStore())
        engine.add_item(shirt, "M", 3)
        engine.decrement_quantity("prod-shirt", "M")
        assert engine.get_item_quantity("prod-shirt", "M") == 2

    def test_decrement_from_one_removes_the_line(self, shirt):
        engine = CartEngine(MemoryStore())
        engine.add_item(shirt, "M", 1)
        engine.decrement_quantity("prod-shirt", "M")
        assert not engine.is_item_in_cart("prod-shirt", "M")


class TestClearCart:
    def test_clear_is_persisted(self, shirt):
        store = MemoryStore()
        engine = CartEngine(store)
        engine.add_item(shirt, "M", 2)
        engine.set_shipping_cost(5.99)

        engine.clear_cart()

        restarted = CartEngine(store)
        assert restarted.is_empty
        assert restarted.shipping_cost == 0.0


class TestEventLogging:
    def test_every_mutation_logs_its_events_with_default_structlog(self, shirt):
        structlog.reset_defaults()
        engine = CartEngine(MemoryStore())

        with capture_logs() as logs:
            engine.add_item(shirt, "M", 2)
            engine.update_quantity("prod-shirt", "M", 3)
            engine.apply_discount("SAVE5", 5.0)
            engine.remove_discount()
            engine.remove_item("prod-shirt", "M")
            engine.add_item(shirt, "L", 1)
            engine.clear_cart()

        logged = [entry["event_type"] for entry in logs if entry["event"] == "Cart event"]
        assert logged == [
            "CartItemAdded",
            "CartQuantityUpdated",
            "CartDiscountApplied",
            "CartDiscountRemoved",
            "CartItemRemoved",
            "CartItemAdded",
            "CartCleared",
        ]
        assert engine.cart._events == []
