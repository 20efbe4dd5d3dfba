"""FastAPI routes for the Shopping domain: carts, shopper auth and checkout.

Every route addresses one shopper session by id. State lives in the session's
CartEngine / AuthStore / CheckoutFlow; the routes only translate between the
pydantic contracts and those objects.
"""

from fastapi import APIRouter

from shopping.api.schemas import (
    AddItemRequest,
    AddressSchema,
    ApplyDiscountRequest,
    AuthResponse,
    CartResponse,
    CheckoutResponse,
    DiscountCodeRequest,
    DiscountCodeResponse,
    GoToStepRequest,
    LineItemResponse,
    NoticeResponse,
    OrderNotesRequest,
    PaymentMethodSchema,
    PlacedOrderResponse,
    ShippingCostRequest,
    ShippingMethodRequest,
    SignInRequest,
    SubmitResponse,
    UpdateQuantityRequest,
    ValidationResponse,
)
from shopping.auth.shopper import Shopper
from shopping.cart.cart import Product
from shopping.shopper_session import ShopperSession, close_session, get_session


# ---------------------------------------------------------------------------
# Translation helpers
# ---------------------------------------------------------------------------
def _cart_response(session: ShopperSession) -> CartResponse:
    cart = session.cart.cart
    return CartResponse(
        items=[
            LineItemResponse(
                product_id=str(item.product_id),
                name=item.product.name,
                selected_size=item.selected_size,
                quantity=item.quantity,
                unit_price=item.unit_price,
                line_total=item.line_total,
            )
            for item in cart.items
        ],
        total_items=cart.total_items,
        subtotal=cart.subtotal,
        tax=cart.tax,
        shipping=cart.shipping,
        discount=cart.discount,
        total=cart.total,
        shipping_cost=cart.shipping_cost,
        discount_code=cart.discount_code,
        discount_amount=cart.discount_amount,
    )


def _notices(session: ShopperSession) -> list[NoticeResponse]:
    return [NoticeResponse(level=n.level, message=n.message) for n in session.checkout.take_notices()]


def _checkout_response(session: ShopperSession) -> CheckoutResponse:
    checkout = session.checkout.session
    placed = checkout.completed_order
    return CheckoutResponse(
        current_step=checkout.current_step,
        can_proceed=checkout.can_proceed(),
        shipping_address=AddressSchema(**checkout.shipping_address.to_dict()) if checkout.shipping_address else None,
        billing_address=AddressSchema(**checkout.billing_address.to_dict()) if checkout.billing_address else None,
        use_shipping_as_billing=checkout.use_shipping_as_billing,
        shipping_method=checkout.shipping_method,
        payment_method=PaymentMethodSchema(**checkout.payment_method.to_dict()) if checkout.payment_method else None,
        order_notes=checkout.order_notes or "",
        is_processing=checkout.is_processing,
        completed_order=PlacedOrderResponse(**placed.to_dict()) if placed else None,
        redirect=session.checkout.redirect,
        notices=_notices(session),
    )


def _auth_response(session: ShopperSession) -> AuthResponse:
    user = session.auth.user
    return AuthResponse(is_authenticated=session.auth.is_authenticated, email=user.email if user else None)


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


@cart_router.get("/{session_id}", response_model=CartResponse)
async def get_cart(session_id: str) -> CartResponse:
    return _cart_response(get_session(session_id))


@cart_router.delete("/{session_id}", response_model=CartResponse)
async def clear_cart(session_id: str) -> CartResponse:
    session = get_session(session_id)
    session.cart.clear_cart()
    return _cart_response(session)


@cart_router.post("/{session_id}/items", response_model=CartResponse)
async def add_cart_item(session_id: str, body: AddItemRequest) -> CartResponse:
    session = get_session(session_id)
    product = Product.build(
        product_id=body.product.product_id,
        name=body.product.name,
        price=body.product.price,
        sizes=[entry.model_dump() for entry in body.product.sizes] if body.product.sizes is not None else None,
        image=body.product.image,
    )
    session.cart.add_item(product, body.size, body.quantity)
    return _cart_response(session)


@cart_router.put("/{session_id}/items/{product_id}/{size}", response_model=CartResponse)
async def update_cart_item_quantity(
    session_id: str, product_id: str, size: str, body: UpdateQuantityRequest
) -> CartResponse:
    session = get_session(session_id)
    session.cart.update_quantity(product_id, size, body.quantity)
    return _cart_response(session)


@cart_router.post("/{session_id}/items/{product_id}/{size}/increment", response_model=CartResponse)
async def increment_cart_item(session_id: str, product_id: str, size: str) -> CartResponse:
    session = get_session(session_id)
    session.cart.increment_quantity(product_id, size)
    return _cart_response(session)


@cart_router.post("/{session_id}/items/{product_id}/{size}/decrement", response_model=CartResponse)
async def decrement_cart_item(session_id: str, product_id: str, size: str) -> CartResponse:
    session = get_session(session_id)
    session.cart.decrement_quantity(product_id, size)
    return _cart_response(session)


@cart_router.delete("/{session_id}/items/{product_id}/{size}", response_model=CartResponse)
async def remove_cart_item(session_id: str, product_id: str, size: str) -> CartResponse:
    session = get_session(session_id)
    session.cart.remove_item(product_id, size)
    return _cart_response(session)


@cart_router.put("/{session_id}/shipping", response_model=CartResponse)
async def set_shipping_cost(session_id: str, body: ShippingCostRequest) -> CartResponse:
    session = get_session(session_id)
    session.cart.set_shipping_cost(body.cost)
    return _cart_response(session)


@cart_router.post("/{session_id}/discount", response_model=CartResponse)
async def apply_discount(session_id: str, body: ApplyDiscountRequest) -> CartResponse:
    session = get_session(session_id)
    session.cart.apply_discount(body.code, body.amount)
    return _cart_response(session)


@cart_router.delete("/{session_id}/discount", response_model=CartResponse)
async def remove_discount(session_id: str) -> CartResponse:
    session = get_session(session_id)
    session.cart.remove_discount()
    return _cart_response(session)


@cart_router.post("/{session_id}/discount-code", response_model=DiscountCodeResponse)
async def apply_discount_code(session_id: str, body: DiscountCodeRequest) -> DiscountCodeResponse:
    """Validate a discount code with the payment service and apply it.

    An invalid code answers 200 with ``applied`` false and leaves the cart as it was.
    """
    session = get_session(session_id)
    applied = await session.checkout.apply_discount_code(body.code)
    return DiscountCodeResponse(applied=applied, cart=_cart_response(session), notices=_notices(session))


@cart_router.delete("/{session_id}/discount-code", response_model=DiscountCodeResponse)
async def remove_discount_code(session_id: str) -> DiscountCodeResponse:
    session = get_session(session_id)
    session.checkout.remove_discount_code()
    return DiscountCodeResponse(applied=False, cart=_cart_response(session), notices=_notices(session))


# ---------------------------------------------------------------------------
# Auth Router
# ---------------------------------------------------------------------------
auth_router = APIRouter(prefix="/sessions", tags=["sessions"])


@auth_router.get("/{session_id}/auth", response_model=AuthResponse)
async def get_auth(session_id: str) -> AuthResponse:
    return _auth_response(get_session(session_id))


@auth_router.put("/{session_id}/auth", response_model=AuthResponse)
async def sign_in(session_id: str, body: SignInRequest) -> AuthResponse:
    session = get_session(session_id)
    shopper = Shopper.build(
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        addresses=[address.model_dump() for address in body.addresses],
    )
    session.login(shopper, body.token)
    return _auth_response(session)


@auth_router.delete("/{session_id}/auth", response_model=AuthResponse)
async def sign_out(session_id: str) -> AuthResponse:
    session = get_session(session_id)
    session.logout()
    await close_session(session_id)
    return _auth_response(session)


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.get("/{session_id}", response_model=CheckoutResponse)
async def get_checkout(session_id: str) -> CheckoutResponse:
    return _checkout_response(get_session(session_id))


@checkout_router.delete("/{session_id}", response_model=CheckoutResponse)
async def reset_checkout(session_id: str) -> CheckoutResponse:
    session = get_session(session_id)
    session.checkout.reset_checkout()
    return _checkout_response(session)


@checkout_router.post("/{session_id}/steps/next", response_model=CheckoutResponse)
async def next_step(session_id: str) -> CheckoutResponse:
    session = get_session(session_id)
    session.checkout.session.next_step()
    return _checkout_response(session)


@checkout_router.post("/{session_id}/steps/previous", response_model=CheckoutResponse)
async def previous_step(session_id: str) -> CheckoutResponse:
    session = get_session(session_id)
    session.checkout.session.previous_step()
    return _checkout_response(session)


@checkout_router.put("/{session_id}/steps", response_model=CheckoutResponse)
async def go_to_step(session_id: str, body: GoToStepRequest) -> CheckoutResponse:
    session = get_session(session_id)
    session.checkout.session.go_to_step(body.step)
    return _checkout_response(session)


@checkout_router.put("/{session_id}/shipping-address", response_model=CheckoutResponse)
async def update_shipping_address(session_id: str, body: AddressSchema) -> CheckoutResponse:
    session = get_session(session_id)
    session.checkout.session.update_shipping_address(body.model_dump())
    return _checkout_response(session)


@checkout_router.put("/{session_id}/billing-address", response_model=CheckoutResponse)
async def update_billing_address(session_id: str, body: AddressSchema) -> CheckoutResponse:
    session = get_session(session_id)
    session.checkout.session.update_billing_address(body.model_dump())
    return _checkout_response(session)


@checkout_router.post("/{session_id}/billing-address/toggle", response_model=CheckoutResponse)
async def toggle_use_shipping_as_billing(session_id: str) -> CheckoutResponse:
    session = get_session(session_id)
    session.checkout.session.toggle_use_shipping_as_billing()
    return _checkout_response(session)


@checkout_router.put("/{session_id}/shipping-method", response_model=CheckoutResponse)
async def select_shipping_method(session_id: str, body: ShippingMethodRequest) -> CheckoutResponse:
    session = get_session(session_id)
    session.checkout.select_shipping_method(body.method_id)
    return _checkout_response(session)


@checkout_router.put("/{session_id}/payment-method", response_model=CheckoutResponse)
async def select_payment_method(session_id: str, body: PaymentMethodSchema) -> CheckoutResponse:
    session = get_session(session_id)
    session.checkout.session.select_payment_method(body.model_dump())
    return _checkout_response(session)


@checkout_router.put("/{session_id}/notes", response_model=CheckoutResponse)
async def update_order_notes(session_id: str, body: OrderNotesRequest) -> CheckoutResponse:
    session = get_session(session_id)
    session.checkout.session.update_order_notes(body.notes)
    return _checkout_response(session)


@checkout_router.post("/{session_id}/default-addresses", response_model=CheckoutResponse)
async def load_default_addresses(session_id: str) -> CheckoutResponse:
    session = get_session(session_id)
    session.checkout.load_default_addresses()
    return _checkout_response(session)


@checkout_router.post("/{session_id}/validate", response_model=ValidationResponse)
async def validate_checkout(session_id: str) -> ValidationResponse:
    session = get_session(session_id)
    valid = session.checkout.validate_checkout()
    issue = session.checkout.last_issue
    return ValidationResponse(
        valid=valid,
        issue=issue.value if issue else None,
        redirect=issue.redirect if issue else None,
        notices=_notices(session),
    )


@checkout_router.post("/{session_id}/submit", response_model=SubmitResponse)
async def submit_checkout(session_id: str) -> SubmitResponse:
    """Pay for the cart and place the order.

    Always answers 200; ``success`` and the notices tell the outcome.
    """
    session = get_session(session_id)
    placed = await session.checkout.process_checkout()
    return SubmitResponse(
        success=placed is not None,
        order_id=placed.order_id if placed else None,
        redirect=session.checkout.redirect,
        notices=_notices(session),
    )
