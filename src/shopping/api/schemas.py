"""Pydantic request/response schemas for the Shopping API.

These are external contracts (anti-corruption layer), kept separate from the
Protean aggregates and value objects they are translated into.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class SizePriceSchema(BaseModel):
    size: str
    price: float = Field(ge=0)


class ProductSchema(BaseModel):
    product_id: str
    name: str | None = None
    price: float = Field(ge=0)
    sizes: list[SizePriceSchema] | None = None
    image: str | None = None


class AddressSchema(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    street: str
    city: str
    state: str | None = None
    zip_code: str
    country: str
    phone: str | None = None
    label: str | None = None


class SavedAddressSchema(AddressSchema):
    is_default: bool = False


class PaymentMethodSchema(BaseModel):
    method_type: str
    last4: str | None = None
    brand: str | None = None
    expiry_month: int | None = None
    expiry_year: int | None = None


# ---------------------------------------------------------------------------
# Cart Request Schemas
# ---------------------------------------------------------------------------
class AddItemRequest(BaseModel):
    product: ProductSchema
    size: str
    quantity: int = 1

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product": {
                        "product_id": "prod-001",
                        "name": "Linen Shirt",
                        "price": 50.0,
                        "sizes": [{"size": "L", "price": 55.0}],
                    },
                    "size": "M",
                    "quantity": 2,
                }
            ]
        }
    }


class UpdateQuantityRequest(BaseModel):
    quantity: int


class ShippingCostRequest(BaseModel):
    cost: float


class ApplyDiscountRequest(BaseModel):
    code: str
    amount: float


class DiscountCodeRequest(BaseModel):
    code: str


# ---------------------------------------------------------------------------
# Cart Response Schemas
# ---------------------------------------------------------------------------
class LineItemResponse(BaseModel):
    product_id: str
    name: str | None = None
    selected_size: str
    quantity: int
    unit_price: float
    line_total: float


class CartResponse(BaseModel):
    items: list[LineItemResponse] = []
    total_items: int
    subtotal: float
    tax: float
    shipping: float
    discount: float
    total: float
    shipping_cost: float
    discount_code: str | None = None
    discount_amount: float


# ---------------------------------------------------------------------------
# Auth Schemas
# ---------------------------------------------------------------------------
class SignInRequest(BaseModel):
    email: str
    first_name: str | None = None
    last_name: str | None = None
    addresses: list[SavedAddressSchema] = []
    token: str | None = None


class AuthResponse(BaseModel):
    is_authenticated: bool
    email: str | None = None


# ---------------------------------------------------------------------------
# Checkout Request Schemas
# ---------------------------------------------------------------------------
class GoToStepRequest(BaseModel):
    step: int


class ShippingMethodRequest(BaseModel):
    method_id: str


class OrderNotesRequest(BaseModel):
    notes: str = ""


# ---------------------------------------------------------------------------
# Checkout Response Schemas
# ---------------------------------------------------------------------------
class NoticeResponse(BaseModel):
    level: str
    message: str


class DiscountCodeResponse(BaseModel):
    applied: bool
    cart: CartResponse
    notices: list[NoticeResponse] = []


class PlacedOrderResponse(BaseModel):
    order_id: str
    status: str | None = None
    total: float | None = None


class CheckoutResponse(BaseModel):
    current_step: int
    can_proceed: bool
    shipping_address: AddressSchema | None = None
    billing_address: AddressSchema | None = None
    use_shipping_as_billing: bool
    shipping_method: str | None = None
    payment_method: PaymentMethodSchema | None = None
    order_notes: str = ""
    is_processing: bool
    completed_order: PlacedOrderResponse | None = None
    redirect: str | None = None
    notices: list[NoticeResponse] = []


class ValidationResponse(BaseModel):
    valid: bool
    issue: str | None = None
    redirect: str | None = None
    notices: list[NoticeResponse] = []


class SubmitResponse(BaseModel):
    success: bool
    order_id: str | None = None
    redirect: str | None = None
    notices: list[NoticeResponse] = []
