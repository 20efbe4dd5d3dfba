"""Shopping bounded context: Shopping Cart and Checkout Flow.

Owns the shopper's cart (line items and re-derived totals), the gated
four-step checkout that turns a cart into a placed order, and the
collaborator ports (payments, orders, persistence) the checkout calls out to.
"""

import structlog
from protean.domain import Domain

shopping = Domain(name="shopping")

logger = structlog.get_logger(__name__)
