"""Postal address value object shared by saved addresses and checkout."""

from protean.fields import String

from shopping.domain import shopping


@shopping.value_object
class PostalAddress:
    """A structured delivery or billing address.

    Replaced wholesale on every change (value object semantics), so two
    addresses compare equal exactly when all of their fields match.
    """

    first_name = String(max_length=100)
    last_name = String(max_length=100)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    zip_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)
    phone = String(max_length=30)
    label = String(max_length=20)
