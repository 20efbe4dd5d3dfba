"""Tests for the httpx payment and order adapters against a mock backend."""

import asyncio
import json

import httpx
import pytest

from shopping.gateways.http_adapter import HttpOrderService, HttpPaymentService, JsonApiClient
from shopping.gateways.port import CheckoutData, GatewayError


class Backend:
    """Records requests and answers from a path -> (status, body) table."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.routes[request.url.path]
        return httpx.Response(status, json=body)


def _api(backend, token="tok-123"):
    return JsonApiClient(
        base_url="http://storefront.test/api",
        token_provider=lambda: token,
        transport=httpx.MockTransport(backend),
    )


def _checkout_data():
    address = {"first_name": "Ada", "street": "12 Analytical Way", "city": "London", "zip_code": "N1", "country": "UK"}
    return CheckoutData(
        shipping_address=address,
        billing_address=address,
        shipping_method="express",
        payment_method={"method_type": "credit_card", "last4": "4242", "brand": None},
        use_shipping_as_billing=True,
        notes="Ring twice",
    )


class TestPaymentService:
    def test_create_payment_intent(self):
        backend = Backend({"/api/payment/create-intent": (200, {"paymentIntentId": "pi_1", "clientSecret": "s_1"})})
        service = HttpPaymentService(_api(backend))

        intent = asyncio.run(service.create_payment_intent(108.0))

        assert intent.payment_intent_id == "pi_1"
        assert intent.client_secret == "s_1"
        request = backend.requests[0]
        assert request.method == "POST"
        assert json.loads(request.content) == {"amount": 108.0}
        assert request.headers["Authorization"] == "Bearer tok-123"

    def test_confirm_payment_sends_wire_payment_method(self):
        backend = Backend({"/api/payment/confirm": (200, {"success": True, "transactionId": "txn_1"})})
        service = HttpPaymentService(_api(backend))

        confirmation = asyncio.run(
            service.confirm_payment("pi_1", {"method_type": "credit_card", "last4": "4242", "expiry_month": 12})
        )

        assert confirmation.success is True
        assert confirmation.transaction_id == "txn_1"
        assert json.loads(backend.requests[0].content) == {
            "paymentIntentId": "pi_1",
            "paymentMethod": {"type": "credit_card", "last4": "4242", "expiryMonth": 12},
        }

    def test_declined_confirmation_is_not_an_error(self):
        backend = Backend({"/api/payment/confirm": (200, {"success": False, "message": "Card declined"})})
        service = HttpPaymentService(_api(backend))

        confirmation = asyncio.run(service.confirm_payment("pi_1", {"method_type": "paypal"}))

        assert confirmation.success is False
        assert confirmation.message == "Card declined"

    def test_server_message_is_carried_by_the_error(self):
        backend = Backend({"/api/payment/create-intent": (402, {"message": "Amount too small"})})
        service = HttpPaymentService(_api(backend))

        with pytest.raises(GatewayError) as exc_info:
            asyncio.run(service.create_payment_intent(0.1))

        assert str(exc_info.value) == "Amount too small"
        assert exc_info.value.status_code == 402

    def test_transport_failure(self):
        def unreachable(request):
            raise httpx.ConnectError("connection refused", request=request)

        service = HttpPaymentService(_api(unreachable))

        with pytest.raises(GatewayError) as exc_info:
            asyncio.run(service.create_payment_intent(10.0))

        assert str(exc_info.value) == "Network error. Please check your connection."

    def test_no_token_no_authorization_header(self):
        backend = Backend({"/api/payment/create-intent": (200, {"paymentIntentId": "pi_1"})})
        service = HttpPaymentService(_api(backend, token=None))

        asyncio.run(service.create_payment_intent(5.0))

        assert "Authorization" not in backend.requests[0].headers

    def test_validate_discount_code(self):
        backend = Backend(
            {"/api/payment/validate-discount": (200, {"valid": True, "discount": "12.5", "message": "Applied"})}
        )
        service = HttpPaymentService(_api(backend))

        result = asyncio.run(service.validate_discount_code("SAVE10", 125.0))

        assert result.valid is True
        assert result.discount == 12.5
        assert json.loads(backend.requests[0].content) == {"code": "SAVE10", "subtotal": 125.0}

    def test_rejected_discount_code(self):
        backend = Backend({"/api/payment/validate-discount": (200, {"valid": False, "message": "Expired"})})
        service = HttpPaymentService(_api(backend))

        result = asyncio.run(service.validate_discount_code("OLD", 50.0))

        assert result.valid is False
        assert result.discount == 0.0
        assert result.message == "Expired"


class TestOrderService:
    def test_create_order_posts_the_checkout_payload(self):
        backend = Backend({"/api/orders": (201, {"id": 77, "status": "pending", "total": 108.0})})
        service = HttpOrderService(_api(backend))

        receipt = asyncio.run(service.create_order(_checkout_data()))

        assert receipt.order_id == "77"
        assert receipt.total == 108.0
        payload = json.loads(backend.requests[0].content)
        assert payload["shippingAddress"]["zipCode"] == "N1"
        assert payload["shippingMethod"] == "express"
        assert payload["paymentMethod"] == {"type": "credit_card", "last4": "4242"}
        assert payload["useShippingAsBilling"] is True
        assert payload["notes"] == "Ring twice"

    def test_unparseable_total_is_dropped(self):
        backend = Backend({"/api/orders": (201, {"id": "ord-9", "status": "pending", "total": "n/a"})})
        service = HttpOrderService(_api(backend))

        receipt = asyncio.run(service.create_order(_checkout_data()))

        assert receipt.order_id == "ord-9"
        assert receipt.total is None

    def test_missing_order_id_is_an_error(self):
        backend = Backend({"/api/orders": (200, {"status": "pending"})})
        service = HttpOrderService(_api(backend))

        with pytest.raises(GatewayError):
            asyncio.run(service.create_order(_checkout_data()))


class TestConfiguration:
    def test_environment_defaults(self, monkeypatch):
        monkeypatch.setenv("STOREFRONT_API_URL", "https://shop.example.com/api")
        monkeypatch.setenv("STOREFRONT_API_TIMEOUT", "12")

        api = JsonApiClient()

        assert api.base_url == "https://shop.example.com/api"
        assert api.timeout == 12.0
