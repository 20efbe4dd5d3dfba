import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def shopping_bed():
    from shopping.domain import shopping

    bed = DomainFixture(shopping)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(shopping_bed):
    with shopping_bed.domain_context():
        yield


@pytest.fixture()
def shirt():
    """A $50 shirt sold at $55 in size L."""
    from shopping.cart.cart import Product

    return Product.build(
        product_id="prod-shirt",
        name="Linen Shirt",
        price=50.0,
        sizes=[{"size": "S", "price": 50.0}, {"size": "M", "price": 50.0}, {"size": "L", "price": 55.0}],
    )


@pytest.fixture()
def mug():
    from shopping.cart.cart import Product

    return Product.build(product_id="prod-mug", name="Mug", price=12.5)


@pytest.fixture()
def home_address():
    return {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "street": "12 Analytical Way",
        "city": "London",
        "state": "LDN",
        "zip_code": "N1 9GU",
        "country": "UK",
        "label": "home",
    }


@pytest.fixture()
def office_address():
    return {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "street": "1 Engine Row",
        "city": "Cambridge",
        "zip_code": "CB2 1TN",
        "country": "UK",
        "label": "work",
    }


@pytest.fixture()
def card():
    return {"method_type": "credit_card", "last4": "4242", "brand": "visa", "expiry_month": 12, "expiry_year": 2030}
