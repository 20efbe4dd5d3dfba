"""Configurable fake payment and order services for development and testing.

Neither adapter makes external calls. Both record every call in ``calls`` and
can be told to decline (payments) or to raise (any call), which is all the
checkout needs to exercise its success, decline and failure paths.
"""

from uuid import uuid4

from shopping.gateways.port import (
    CheckoutData,
    DiscountValidation,
    OrderReceipt,
    OrderService,
    PaymentConfirmation,
    PaymentIntent,
    PaymentService,
)


# Percentage off the subtotal, by code
DEFAULT_DISCOUNT_RATES = {"SAVE10": 0.10}


class FakePaymentService(PaymentService):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_message: str = "Card declined"
        self.errors: dict[str, Exception] = {}
        self.discount_rates: dict[str, float] = dict(DEFAULT_DISCOUNT_RATES)
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_message: str = "Card declined") -> None:
        """Configure whether confirmations succeed."""
        self.should_succeed = should_succeed
        self.failure_message = failure_message

    def fail_on(self, method: str, error: Exception) -> None:
        """Make ``method`` raise ``error`` instead of answering."""
        self.errors[method] = error

    async def create_payment_intent(self, amount: float) -> PaymentIntent:
        self.calls.append({"method": "create_payment_intent", "amount": amount})
        if "create_payment_intent" in self.errors:
            raise self.errors["create_payment_intent"]

        intent_id = f"fake_pi_{uuid4().hex[:12]}"
        return PaymentIntent(payment_intent_id=intent_id, client_secret=f"{intent_id}_secret")

    async def confirm_payment(self, payment_intent_id: str, payment_method: dict) -> PaymentConfirmation:
        self.calls.append(
            {
                "method": "confirm_payment",
                "payment_intent_id": payment_intent_id,
                "payment_method": payment_method,
            }
        )
        if "confirm_payment" in self.errors:
            raise self.errors["confirm_payment"]

        if self.should_succeed:
            return PaymentConfirmation(
                success=True,
                message="Payment confirmed",
                transaction_id=f"fake_txn_{uuid4().hex[:12]}",
            )
        return PaymentConfirmation(success=False, message=self.failure_message)

    async def validate_discount_code(self, code: str, subtotal: float) -> DiscountValidation:
        self.calls.append({"method": "validate_discount_code", "code": code, "subtotal": subtotal})
        if "validate_discount_code" in self.errors:
            raise self.errors["validate_discount_code"]

        rate = self.discount_rates.get(code)
        if rate is None:
            return DiscountValidation(valid=False, message="Invalid discount code")
        return DiscountValidation(valid=True, discount=round(subtotal * rate, 2), message="Discount code applied")


class FakeOrderService(OrderService):
    def __init__(self) -> None:
        self.error: Exception | None = None
        self.calls: list[CheckoutData] = []

    def fail_with(self, error: Exception | None) -> None:
        self.error = error

    async def create_order(self, checkout_data: CheckoutData) -> OrderReceipt:
        self.calls.append(checkout_data)
        if self.error is not None:
            raise self.error

        order_id = f"ord-{uuid4().hex[:10]}"
        return OrderReceipt(order_id=order_id, status="pending", raw={"id": order_id, **checkout_data.to_payload()})
