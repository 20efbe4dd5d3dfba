"""Domain events for the CheckoutSession aggregate."""

from protean.fields import Float, Identifier, String

from shopping.domain import shopping


@shopping.event(part_of="CheckoutSession")
class CheckoutCompleted:
    """Payment was confirmed and the order service accepted the order."""

    __version__ = "v1"

    checkout_id = Identifier(required=True)
    order_id = String(required=True)
    total = Float()


@shopping.event(part_of="CheckoutSession")
class CheckoutPaymentDeclined:
    __version__ = "v1"

    checkout_id = Identifier(required=True)
    reason = String(max_length=500)
