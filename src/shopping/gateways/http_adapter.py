"""JSON-over-HTTP adapters for the storefront backend.

Endpoints (relative to STOREFRONT_API_URL):
    POST /payment/create-intent   {amount}                     -> {paymentIntentId, clientSecret}
    POST /payment/confirm         {paymentIntentId, paymentMethod} -> {success, message, transactionId}
    POST /payment/validate-discount {code, subtotal}            -> {valid, discount, message}
    POST /orders                  checkout payload             -> Order {id, status, total, ...}

Requests carry ``Authorization: Bearer <token>`` when a token is available.
Every failure, HTTP status or transport, surfaces as ``GatewayError``.
"""

import os
from collections.abc import Callable

import httpx

from shopping.domain import logger
from shopping.gateways.port import (
    CheckoutData,
    DiscountValidation,
    GatewayError,
    OrderReceipt,
    OrderService,
    PaymentConfirmation,
    PaymentIntent,
    PaymentService,
    payment_method_payload,
)

DEFAULT_API_URL = "http://localhost:3000/api"
DEFAULT_TIMEOUT_SECONDS = 30.0


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and (body.get("message") or body.get("error")):
        return str(body.get("message") or body.get("error"))
    return response.text[:200] or f"Request failed with status {response.status_code}"


def _amount(value) -> float | None:
    """Backend money field as a float; None when missing or unparseable."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class JsonApiClient:
    """Lazily created, shared ``httpx.AsyncClient`` with bearer auth."""

    def __init__(
        self,
        base_url: str | None = None,
        token_provider: Callable[[], str | None] | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or os.getenv("STOREFRONT_API_URL", DEFAULT_API_URL)
        self.timeout = timeout or float(os.getenv("STOREFRONT_API_TIMEOUT", DEFAULT_TIMEOUT_SECONDS))
        self._token_provider = token_provider
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout, connect=5.0),
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _headers(self) -> dict:
        token = self._token_provider() if self._token_provider else None
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def post(self, path: str, payload: dict) -> dict:
        client = await self._get_client()
        try:
            response = await client.post(path, json=payload, headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            message = _error_message(exc.response)
            logger.warning("Backend rejected request", path=path, status=exc.response.status_code, reason=message)
            raise GatewayError(message, status_code=exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            logger.warning("Backend unreachable", path=path, error=repr(exc))
            raise GatewayError("Network error. Please check your connection.") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise GatewayError("Unexpected response from server", status_code=response.status_code) from exc


class HttpPaymentService(PaymentService):
    def __init__(self, api: JsonApiClient | None = None) -> None:
        self.api = api or JsonApiClient()

    async def create_payment_intent(self, amount: float) -> PaymentIntent:
        data = await self.api.post("/payment/create-intent", {"amount": amount})
        if not data.get("paymentIntentId"):
            raise GatewayError("Payment intent response is missing paymentIntentId")
        return PaymentIntent(payment_intent_id=data["paymentIntentId"], client_secret=data.get("clientSecret"))

    async def confirm_payment(self, payment_intent_id: str, payment_method: dict) -> PaymentConfirmation:
        data = await self.api.post(
            "/payment/confirm",
            {
                "paymentIntentId": payment_intent_id,
                "paymentMethod": payment_method_payload(payment_method),
            },
        )
        return PaymentConfirmation(
            success=bool(data.get("success")),
            message=data.get("message", ""),
            transaction_id=data.get("transactionId"),
        )

    async def validate_discount_code(self, code: str, subtotal: float) -> DiscountValidation:
        data = await self.api.post("/payment/validate-discount", {"code": code, "subtotal": subtotal})
        return DiscountValidation(
            valid=bool(data.get("valid")),
            discount=_amount(data.get("discount")) or 0.0,
            message=data.get("message", ""),
        )


class HttpOrderService(OrderService):
    def __init__(self, api: JsonApiClient | None = None) -> None:
        self.api = api or JsonApiClient()

    async def create_order(self, checkout_data: CheckoutData) -> OrderReceipt:
        data = await self.api.post("/orders", checkout_data.to_payload())
        if not data.get("id"):
            raise GatewayError("Order response is missing the order id")
        return OrderReceipt(
            order_id=str(data["id"]),
            status=data.get("status", "pending"),
            total=_amount(data.get("total")),
            raw=data,
        )
