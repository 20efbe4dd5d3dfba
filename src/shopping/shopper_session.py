"""Per-shopper composition of cart, auth and checkout.

A ShopperSession owns exactly one CartEngine, one AuthStore and one
CheckoutFlow, all persisting under keys namespaced by the session id. The
module-level registry hands out one session per id so the HTTP layer can
address shoppers by id without sharing state between them.

The registry holds at most ``MAX_SESSIONS`` live sessions. The least recently
used one is evicted (and its HTTP client closed) to make room; its state is
still in storage, so the next request for that id simply rebuilds it.
"""

import asyncio
import os
from collections import OrderedDict

from shopping.auth.shopper import AuthStore, Shopper
from shopping.cart.engine import CartEngine
from shopping.checkout.flow import CheckoutFlow
from shopping.domain import logger
from shopping.gateways.http_adapter import HttpOrderService, HttpPaymentService, JsonApiClient
from shopping.gateways.port import OrderService, PaymentService
from shopping.storage import AUTH_KEY, CART_KEY, KeyValueStore, get_storage, storage_key

HTTP_GATEWAY = "http"
MAX_SESSIONS = int(os.getenv("STOREFRONT_MAX_SESSIONS", "1000"))


class ShopperSession:
    def __init__(
        self,
        session_id: str,
        storage: KeyValueStore | None = None,
        payments: PaymentService | None = None,
        orders: OrderService | None = None,
    ) -> None:
        self.session_id = session_id
        self.storage = storage if storage is not None else get_storage()

        self.cart = CartEngine(self.storage, key=storage_key(session_id, CART_KEY))
        self.auth = AuthStore(self.storage, key=storage_key(session_id, AUTH_KEY))

        self.api: JsonApiClient | None = None
        if payments is None and orders is None and os.getenv("STOREFRONT_GATEWAY") == HTTP_GATEWAY:
            self.api = JsonApiClient(token_provider=lambda: self.auth.token)
            payments, orders = HttpPaymentService(self.api), HttpOrderService(self.api)

        self.checkout = CheckoutFlow(self.cart, self.auth, payments=payments, orders=orders)

    def login(self, shopper: Shopper, token: str | None = None) -> None:
        self.auth.sign_in(shopper, token)
        self.checkout.load_default_addresses()

    def logout(self) -> None:
        """Sign out and forget the stored cart along with the checkout state."""
        self.auth.sign_out()
        self.cart.discard()
        self.checkout.reset_checkout()
        logger.info("Shopper session closed", session_id=self.session_id)

    async def aclose(self) -> None:
        """Release the backend connection pool, if this session opened one."""
        if self.api is not None:
            await self.api.aclose()


_sessions: OrderedDict[str, ShopperSession] = OrderedDict()
_closing: set[asyncio.Task] = set()


def _close_in_background(session: ShopperSession) -> None:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        asyncio.run(session.aclose())
        return

    task = loop.create_task(session.aclose())
    _closing.add(task)
    task.add_done_callback(_closing.discard)


def get_session(session_id: str) -> ShopperSession:
    """Return the live session for ``session_id``, restoring it from storage on first use."""
    session = _sessions.get(session_id)
    if session is not None:
        _sessions.move_to_end(session_id)
        return session

    session = ShopperSession(session_id)
    _sessions[session_id] = session
    logger.debug("Shopper session opened", session_id=session_id)

    while len(_sessions) > MAX_SESSIONS:
        evicted_id, evicted = _sessions.popitem(last=False)
        logger.debug("Shopper session evicted", session_id=evicted_id)
        _close_in_background(evicted)
    return session


async def close_session(session_id: str) -> None:
    """Drop ``session_id`` from the registry and close its backend client."""
    session = _sessions.pop(session_id, None)
    if session is not None:
        await session.aclose()


def reset_sessions() -> None:
    _sessions.clear()
