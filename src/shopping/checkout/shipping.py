"""Shipping methods offered at checkout.

Selecting a method quotes its price to the cart; the cart's free-shipping
rule still decides what is actually charged.
"""

from dataclasses import dataclass

from protean.exceptions import ValidationError


@dataclass(frozen=True)
class ShippingOption:
    id: str
    name: str
    description: str
    price: float
    estimated_days: str


SHIPPING_METHODS = (
    ShippingOption("standard", "Standard Shipping", "5-7 business days", 5.99, "5-7"),
    ShippingOption("express", "Express Shipping", "2-3 business days", 12.99, "2-3"),
    ShippingOption("overnight", "Overnight Shipping", "Next business day", 24.99, "1"),
)

_BY_ID = {option.id: option for option in SHIPPING_METHODS}


def shipping_option(method_id: str) -> ShippingOption:
    try:
        return _BY_ID[method_id]
    except KeyError:
        raise ValidationError({"shipping_method": [f"Unknown shipping method '{method_id}'"]}) from None
