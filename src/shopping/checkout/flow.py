"""Checkout Flow: gates and submits one shopper's checkout.

The flow owns a CheckoutSession and reads (never edits) the shopper's cart,
except for discount codes and for clearing it once an order has been
created. Submission is a strict sequence of awaited collaborator calls:

    1. create a payment intent for the cart total
    2. confirm the payment with the selected payment method
    3. create the order (only after a confirmed payment)
    4. clear the cart (only after the order exists)

Nothing here raises to the caller. Gate failures, declined payments and
collaborator errors all end up as a ``Notice`` plus a log line, with
``is_processing`` cleared.
"""

from dataclasses import dataclass
from enum import Enum

from shopping.auth.shopper import AuthStore
from shopping.cart.engine import CartEngine
from shopping.checkout.session import CheckoutSession
from shopping.checkout.shipping import ShippingOption, shipping_option
from shopping.domain import logger
from shopping.gateways import get_order_service, get_payment_service
from shopping.gateways.port import CheckoutData, GatewayError, OrderReceipt, OrderService, PaymentService

ORDER_PLACED_MESSAGE = "Order placed successfully!"
PAYMENT_FAILED_MESSAGE = "Payment failed. Please try again."
CHECKOUT_FAILED_MESSAGE = "Checkout failed. Please try again."
CHECKOUT_IN_PROGRESS_MESSAGE = "Your order is already being processed."

DISCOUNT_APPLIED_MESSAGE = "Discount code applied!"
DISCOUNT_REMOVED_MESSAGE = "Discount code removed"
DISCOUNT_INVALID_MESSAGE = "Invalid discount code"
DISCOUNT_MISSING_MESSAGE = "Please enter a coupon code"
DISCOUNT_FAILED_MESSAGE = "Failed to apply discount code"

LOGIN_PATH = "/login"
CART_PATH = "/cart"


def order_confirmation_path(order_id) -> str:
    return f"/checkout/success?orderId={order_id}"


def _failure_message(exc: Exception) -> str:
    """User-facing text for a failed submission; only gateway messages are shown verbatim."""
    if isinstance(exc, GatewayError) and exc.message:
        return exc.message
    return CHECKOUT_FAILED_MESSAGE


def _order_total(receipt: OrderReceipt, charged: float) -> float:
    """The receipt's total when it is a usable amount, else what was charged."""
    try:
        total = float(receipt.total)
    except (TypeError, ValueError):
        return charged
    return total if total >= 0 else charged


class CheckoutIssue(Enum):
    """Checkout gates, in the order they are evaluated."""

    NOT_AUTHENTICATED = "not_authenticated"
    EMPTY_CART = "empty_cart"
    MISSING_SHIPPING_ADDRESS = "missing_shipping_address"
    MISSING_BILLING_ADDRESS = "missing_billing_address"
    MISSING_SHIPPING_METHOD = "missing_shipping_method"
    MISSING_PAYMENT_METHOD = "missing_payment_method"

    @property
    def message(self) -> str:
        return _ISSUE_MESSAGES[self]

    @property
    def redirect(self) -> str | None:
        return _ISSUE_REDIRECTS.get(self)


_ISSUE_MESSAGES = {
    CheckoutIssue.NOT_AUTHENTICATED: "Please log in to continue",
    CheckoutIssue.EMPTY_CART: "Your cart is empty",
    CheckoutIssue.MISSING_SHIPPING_ADDRESS: "Please add a shipping address",
    CheckoutIssue.MISSING_BILLING_ADDRESS: "Please add a billing address",
    CheckoutIssue.MISSING_SHIPPING_METHOD: "Please select a shipping method",
    CheckoutIssue.MISSING_PAYMENT_METHOD: "Please select a payment method",
}

_ISSUE_REDIRECTS = {
    CheckoutIssue.NOT_AUTHENTICATED: LOGIN_PATH,
    CheckoutIssue.EMPTY_CART: CART_PATH,
}


@dataclass(frozen=True)
class Notice:
    """A user-facing message ("success" or "error")."""

    level: str
    message: str


class CheckoutFlow:
    def __init__(
        self,
        cart: CartEngine,
        auth: AuthStore,
        payments: PaymentService | None = None,
        orders: OrderService | None = None,
    ) -> None:
        self.cart = cart
        self.auth = auth
        self._payments = payments
        self._orders = orders
        self.session = CheckoutSession()
        self.notices: list[Notice] = []
        self.redirect: str | None = None
        self.last_issue: CheckoutIssue | None = None

    @property
    def payments(self) -> PaymentService:
        return self._payments or get_payment_service()

    @property
    def orders(self) -> OrderService:
        return self._orders or get_order_service()

    # -------------------------------------------------------------------
    # Side effects surfaced to the caller
    # -------------------------------------------------------------------
    def _notify(self, level: str, message: str) -> None:
        self.notices.append(Notice(level=level, message=message))

    def _navigate(self, path: str) -> None:
        self.redirect = path

    def take_notices(self) -> list[Notice]:
        """Hand over pending notices; each one is shown once."""
        notices, self.notices = self.notices, []
        return notices

    def _drain_events(self) -> None:
        for event in self.session._events:
            logger.info("Checkout event", event_type=type(event).__name__, checkout_id=str(self.session.id))
        self.session._events.clear()

    # -------------------------------------------------------------------
    # Default addresses
    # -------------------------------------------------------------------
    def load_default_addresses(self) -> None:
        """Pre-fill shipping (and mirrored billing) from the shopper's default address."""
        user = self.auth.user
        if user is None:
            return

        address = user.default_address()
        if address is not None:
            self.session.update_shipping_address(address)

    def select_shipping_method(self, method_id: str) -> ShippingOption:
        """Select a known shipping method and quote its price to the cart."""
        option = shipping_option(method_id)
        self.session.select_shipping_method(option.id)
        self.cart.set_shipping_cost(option.price)
        return option

    # -------------------------------------------------------------------
    # Discount codes
    # -------------------------------------------------------------------
    async def apply_discount_code(self, code: str) -> bool:
        """Validate ``code`` against the cart subtotal and apply the discount it grants.

        An empty, unknown or unverifiable code leaves the cart as it was.
        """
        code = (code or "").strip()
        if not code:
            self._notify("error", DISCOUNT_MISSING_MESSAGE)
            return False

        try:
            result = await self.payments.validate_discount_code(code, self.cart.cart.subtotal)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Discount code check failed", discount_code=code, error=repr(exc))
            self._notify("error", DISCOUNT_FAILED_MESSAGE)
            return False

        if not result.valid:
            logger.info("Discount code rejected", discount_code=code, reason=result.message)
            self._notify("error", DISCOUNT_INVALID_MESSAGE)
            return False

        self.cart.apply_discount(code, result.discount)
        self._notify("success", DISCOUNT_APPLIED_MESSAGE)
        return True

    def remove_discount_code(self) -> None:
        self.cart.remove_discount()
        self._notify("success", DISCOUNT_REMOVED_MESSAGE)

    # -------------------------------------------------------------------
    # Gates
    # -------------------------------------------------------------------
    def _first_issue(self) -> CheckoutIssue | None:
        if not self.auth.is_authenticated:
            return CheckoutIssue.NOT_AUTHENTICATED
        if self.cart.is_empty:
            return CheckoutIssue.EMPTY_CART

        session = self.session
        if session.shipping_address is None:
            return CheckoutIssue.MISSING_SHIPPING_ADDRESS
        if session.billing_address is None:
            return CheckoutIssue.MISSING_BILLING_ADDRESS
        if not session.shipping_method:
            return CheckoutIssue.MISSING_SHIPPING_METHOD
        if session.payment_method is None:
            return CheckoutIssue.MISSING_PAYMENT_METHOD
        return None

    def validate_checkout(self) -> bool:
        """Check every gate in order, stopping at the first failure."""
        issue = self._first_issue()
        self.last_issue = issue
        if issue is None:
            return True

        logger.info("Checkout blocked", issue=issue.value, checkout_id=str(self.session.id))
        self._notify("error", issue.message)
        if issue.redirect:
            self._navigate(issue.redirect)
        return False

    # -------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------
    def _checkout_data(self) -> CheckoutData:
        session = self.session
        return CheckoutData(
            shipping_address=session.shipping_address.to_dict(),
            billing_address=session.billing_address.to_dict(),
            shipping_method=session.shipping_method,
            payment_method=session.payment_method.to_dict(),
            use_shipping_as_billing=session.use_shipping_as_billing,
            notes=session.order_notes or "",
        )

    async def process_checkout(self):
        """Pay for the cart and place the order.

        Returns the ``PlacedOrder`` on success, None otherwise. Whatever
        happens, ``is_processing`` is cleared before this returns.
        """
        session = self.session
        if session.is_processing:
            logger.warning("Checkout submission already in flight", checkout_id=str(session.id))
            self._notify("error", CHECKOUT_IN_PROGRESS_MESSAGE)
            return None

        if not self.validate_checkout():
            return None

        session.begin_processing()
        amount = self.cart.cart.total
        receipt = None

        try:
            intent = await self.payments.create_payment_intent(amount)
            confirmation = await self.payments.confirm_payment(
                intent.payment_intent_id,
                session.payment_method.to_dict(),
            )

            if not confirmation.success:
                logger.info(
                    "Payment declined",
                    checkout_id=str(session.id),
                    payment_intent_id=intent.payment_intent_id,
                    reason=confirmation.message,
                )
                session.record_payment_declined(confirmation.message)
                self._drain_events()
                self._notify("error", PAYMENT_FAILED_MESSAGE)
                return None

            receipt = await self.orders.create_order(self._checkout_data())
            self.cart.clear_cart()
            session.record_order(receipt.order_id, status=receipt.status, total=_order_total(receipt, amount))
            self._drain_events()
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Checkout failed",
                checkout_id=str(session.id),
                order_id=receipt.order_id if receipt is not None else None,
                error=repr(exc),
            )
            self._notify("error", _failure_message(exc))
            return None
        finally:
            if session.is_processing:
                session.finish_processing()

        logger.info("Order placed", checkout_id=str(session.id), order_id=receipt.order_id, total=amount)
        self._navigate(order_confirmation_path(receipt.order_id))
        self._notify("success", ORDER_PLACED_MESSAGE)
        return session.completed_order

    def reset_checkout(self) -> None:
        self.session.reset()
        self.notices.clear()
        self.redirect = None
        self.last_issue = None
