"""Payment method value object."""

from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Integer, String

from shopping.domain import shopping


class PaymentMethodType(Enum):
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"
    STRIPE = "stripe"


_CARD_TYPES = {PaymentMethodType.CREDIT_CARD.value, PaymentMethodType.DEBIT_CARD.value}


@shopping.value_object
class PaymentMethod:
    """Payment credential reference selected at checkout.

    Only display details are held here (never a full card number); the
    payment service resolves the actual instrument.
    """

    method_type = String(required=True, choices=PaymentMethodType)
    last4 = String(max_length=4)
    brand = String(max_length=50)
    expiry_month = Integer(min_value=1, max_value=12)
    expiry_year = Integer()

    @invariant.post
    def last4_must_be_digits(self):
        if self.last4 and not self.last4.isdigit():
            raise ValidationError({"last4": ["Last four digits must be numeric"]})

    @property
    def is_card(self) -> bool:
        return self.method_type in _CARD_TYPES
