"""CheckoutSession aggregate: the four-step checkout state machine.

Steps:
    1. Shipping address    complete once a shipping address is set
    2. Shipping method     complete once a method is selected
    3. Payment method      complete once a payment method is selected
    4. Review & place      complete once the order has been placed

Moving between steps is never blocked; ``is_step_complete`` and
``can_proceed`` are advisory. While ``use_shipping_as_billing`` is on, the
billing address always mirrors the shipping address.
"""

from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, Integer, String, Text, ValueObject

from shopping.checkout.events import CheckoutCompleted, CheckoutPaymentDeclined
from shopping.domain import logger, shopping
from shopping.shared.address import PostalAddress
from shopping.shared.payment import PaymentMethod


class CheckoutStep(Enum):
    SHIPPING_ADDRESS = 1
    SHIPPING_METHOD = 2
    PAYMENT_METHOD = 3
    REVIEW = 4


FIRST_STEP = CheckoutStep.SHIPPING_ADDRESS.value
LAST_STEP = CheckoutStep.REVIEW.value


def _as_address(value):
    return PostalAddress(**value) if isinstance(value, dict) else value


def _as_payment_method(value):
    return PaymentMethod(**value) if isinstance(value, dict) else value


@shopping.value_object(part_of="CheckoutSession")
class PlacedOrder:
    """The order the checkout produced."""

    order_id = String(required=True, max_length=255)
    status = String(max_length=50)
    total = Float(min_value=0.0)


@shopping.aggregate
class CheckoutSession:
    current_step = Integer(default=FIRST_STEP, min_value=FIRST_STEP, max_value=LAST_STEP)
    shipping_address = ValueObject(PostalAddress)
    billing_address = ValueObject(PostalAddress)
    use_shipping_as_billing = Boolean(default=True)
    shipping_method = String(max_length=50)
    payment_method = ValueObject(PaymentMethod)
    order_notes = Text(default="")
    is_processing = Boolean(default=False)
    completed_order = ValueObject(PlacedOrder)

    @invariant.post
    def billing_mirrors_shipping_when_flagged(self):
        if not self.use_shipping_as_billing or self.shipping_address is None:
            return
        if self.billing_address != self.shipping_address:
            raise ValidationError({"billing_address": ["Billing address must match the shipping address"]})

    # -------------------------------------------------------------------
    # Step navigation
    # -------------------------------------------------------------------
    def next_step(self):
        self.go_to_step(self.current_step + 1)

    def previous_step(self):
        self.go_to_step(self.current_step - 1)

    def go_to_step(self, step):
        """Jump to ``step`` without any gating; clamped into the valid range."""
        self.current_step = max(FIRST_STEP, min(int(step), LAST_STEP))

    def is_step_complete(self, step) -> bool:
        if step == CheckoutStep.SHIPPING_ADDRESS.value:
            return self.shipping_address is not None
        if step == CheckoutStep.SHIPPING_METHOD.value:
            return bool(self.shipping_method)
        if step == CheckoutStep.PAYMENT_METHOD.value:
            return self.payment_method is not None
        if step == CheckoutStep.REVIEW.value:
            return self.completed_order is not None
        return False

    def can_proceed(self) -> bool:
        return self.is_step_complete(self.current_step)

    # -------------------------------------------------------------------
    # Addresses
    # -------------------------------------------------------------------
    def update_shipping_address(self, address):
        address = _as_address(address)
        with atomic_change(self):
            self.shipping_address = address
            if self.use_shipping_as_billing:
                self.billing_address = address

    def update_billing_address(self, address):
        """Set a separate billing address. Ignored while billing mirrors shipping."""
        if self.use_shipping_as_billing:
            logger.debug("Billing address update ignored while mirroring shipping", checkout_id=str(self.id))
            return
        self.billing_address = _as_address(address)

    def toggle_use_shipping_as_billing(self):
        with atomic_change(self):
            self.use_shipping_as_billing = not self.use_shipping_as_billing
            if self.use_shipping_as_billing and self.shipping_address is not None:
                self.billing_address = self.shipping_address

    # -------------------------------------------------------------------
    # Selections
    # -------------------------------------------------------------------
    def select_shipping_method(self, method_id):
        self.shipping_method = method_id or None

    def select_payment_method(self, payment_method):
        self.payment_method = _as_payment_method(payment_method)

    def update_order_notes(self, notes):
        self.order_notes = notes or ""

    # -------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------
    def begin_processing(self):
        self.is_processing = True

    def finish_processing(self):
        self.is_processing = False

    def record_payment_declined(self, reason):
        self.is_processing = False
        self.raise_(CheckoutPaymentDeclined(checkout_id=str(self.id), reason=reason or None))

    def record_order(self, order_id, status=None, total=None):
        with atomic_change(self):
            self.completed_order = PlacedOrder(order_id=str(order_id), status=status, total=total)
            self.is_processing = False

        self.raise_(CheckoutCompleted(checkout_id=str(self.id), order_id=str(order_id), total=total))

    def reset(self):
        """Return every field to its initial value."""
        with atomic_change(self):
            self.current_step = FIRST_STEP
            self.shipping_address = None
            self.billing_address = None
            self.use_shipping_as_billing = True
            self.shipping_method = None
            self.payment_method = None
            self.order_notes = ""
            self.is_processing = False
            self.completed_order = None
