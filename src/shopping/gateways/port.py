"""Collaborator ports for checkout submission.

The checkout only knows these request/response contracts; whether the
payment and order services are faked, or reached over JSON/HTTP, is the
adapter's business. Swapping adapters needs no change in the checkout code.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


class GatewayError(Exception):
    """A collaborator call was rejected or could not be completed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True)
class PaymentIntent:
    """Handle for an amount pending confirmation."""

    payment_intent_id: str
    client_secret: str | None = None


@dataclass(frozen=True)
class PaymentConfirmation:
    success: bool
    message: str = ""
    transaction_id: str | None = None


@dataclass(frozen=True)
class DiscountValidation:
    """Outcome of checking a discount code against a subtotal."""

    valid: bool
    discount: float = 0.0
    message: str = ""


@dataclass(frozen=True)
class OrderReceipt:
    """What the order service returns for a newly created order."""

    order_id: str
    status: str = "pending"
    total: float | None = None
    raw: dict = field(default_factory=dict, compare=False)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def to_wire(fields: dict | None) -> dict | None:
    """snake_case dict -> camelCase JSON object, dropping unset values."""
    if fields is None:
        return None
    return {_camel(key): value for key, value in fields.items() if value is not None}


@dataclass(frozen=True)
class CheckoutData:
    """Order-creation request assembled from a completed checkout session."""

    shipping_address: dict
    billing_address: dict
    shipping_method: str
    payment_method: dict
    use_shipping_as_billing: bool = True
    notes: str = ""

    def to_payload(self) -> dict:
        return {
            "shippingAddress": to_wire(self.shipping_address),
            "billingAddress": to_wire(self.billing_address),
            "shippingMethod": self.shipping_method,
            "paymentMethod": payment_method_payload(self.payment_method),
            "useShippingAsBilling": self.use_shipping_as_billing,
            "notes": self.notes,
        }


def payment_method_payload(payment_method: dict) -> dict:
    payload = to_wire(payment_method)
    payload["type"] = payload.pop("methodType", None)
    return payload


class PaymentService(ABC):
    """Abstract payment service."""

    @abstractmethod
    async def create_payment_intent(self, amount: float) -> PaymentIntent:
        """Open a payment intent for ``amount``."""
        ...

    @abstractmethod
    async def confirm_payment(self, payment_intent_id: str, payment_method: dict) -> PaymentConfirmation:
        """Confirm the intent against the shopper's payment method."""
        ...

    @abstractmethod
    async def validate_discount_code(self, code: str, subtotal: float) -> DiscountValidation:
        """Check ``code`` and price the discount it grants on ``subtotal``."""
        ...


class OrderService(ABC):
    """Abstract order service."""

    @abstractmethod
    async def create_order(self, checkout_data: CheckoutData) -> OrderReceipt:
        """Create an order from a checkout submission."""
        ...
