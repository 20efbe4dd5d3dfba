"""Shopping domain API package."""

from shopping.api.routes import auth_router, cart_router, checkout_router

__all__ = ["cart_router", "auth_router", "checkout_router"]
