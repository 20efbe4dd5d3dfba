"""Checkout collaborator factory.

Provides get_*/set_* accessors to swap implementations:
- FakePaymentService / FakeOrderService for development and testing (default)
- HttpPaymentService / HttpOrderService against the storefront backend
"""

from shopping.gateways.fake_adapter import FakeOrderService, FakePaymentService
from shopping.gateways.port import OrderService, PaymentService

_current_payment_service: PaymentService | None = None
_current_order_service: OrderService | None = None


def get_payment_service() -> PaymentService:
    """Return the current payment service. Defaults to FakePaymentService."""
    global _current_payment_service
    if _current_payment_service is None:
        _current_payment_service = FakePaymentService()
    return _current_payment_service


def set_payment_service(service: PaymentService) -> None:
    global _current_payment_service
    _current_payment_service = service


def get_order_service() -> OrderService:
    """Return the current order service. Defaults to FakeOrderService."""
    global _current_order_service
    if _current_order_service is None:
        _current_order_service = FakeOrderService()
    return _current_order_service


def set_order_service(service: OrderService) -> None:
    global _current_order_service
    _current_order_service = service


def reset_gateways() -> None:
    """Reset both services to their defaults."""
    global _current_payment_service, _current_order_service
    _current_payment_service = None
    _current_order_service = None
