"""Shared BDD fixtures and step definitions for the Shopping domain."""

import pytest
from pytest_bdd import given, parsers, then

from shopping.auth.shopper import AuthStore
from shopping.cart.engine import CartEngine
from shopping.checkout.flow import CheckoutFlow
from shopping.gateways.fake_adapter import FakeOrderService, FakePaymentService
from shopping.storage import MemoryStore


@pytest.fixture()
def store():
    return MemoryStore()


@pytest.fixture()
def products():
    return {}


@pytest.fixture()
def payments():
    return FakePaymentService()


@pytest.fixture()
def orders():
    return FakeOrderService()


@pytest.fixture()
def checkout(store, payments, orders):
    return CheckoutFlow(CartEngine(store), AuthStore(store), payments=payments, orders=orders)


@pytest.fixture()
def result():
    """Mutable holder for the outcome of a When step."""
    return {}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("an empty cart", target_fixture="engine")
def empty_cart(store):
    return CartEngine(store)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the shopper sees "{message}"'))
def shopper_sees(checkout, message):
    assert message in [notice.message for notice in checkout.notices]
