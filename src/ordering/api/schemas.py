"""Pydantic request/response schemas for the Ordering API.

These are external contracts, kept separate from the Order aggregate so the
wire format can evolve independently of storage.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from ordering.checkout.pricing import CartItem, CartOptions
from ordering.order.order import Order, OrderPricing, ShippingInfo


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class CartItemSchema(BaseModel):
    product_id: str
    quantity: int
    size: str = ""
    color: str = ""
    gift_wrap: bool = False

    def to_cart_item(self) -> CartItem:
        return CartItem(
            product_id=self.product_id.strip(),
            quantity=self.quantity,
            size=self.size.strip(),
            color=self.color.strip(),
            gift_wrap=self.gift_wrap,
        )


class ShippingInfoSchema(BaseModel):
    full_name: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    postal_code: str = ""
    phone: str = ""

    def to_shipping_info(self) -> ShippingInfo:
        return ShippingInfo(**self.model_dump())


class CartRequest(BaseModel):
    items: list[CartItemSchema] = Field(default_factory=list)
    gift_wrap: bool = False

    def cart_items(self) -> list[CartItem]:
        return [item.to_cart_item() for item in self.items]

    def options(self) -> CartOptions:
        return CartOptions(gift_wrap=self.gift_wrap)


# ---------------------------------------------------------------------------
# Order Request Schemas
# ---------------------------------------------------------------------------
class CreateOrderRequest(CartRequest):
    shipping_info: ShippingInfoSchema = Field(default_factory=ShippingInfoSchema)
    billing_type: Literal["same", "different"] = "same"
    billing_info: ShippingInfoSchema | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [
                        {"product_id": "prod-001", "quantity": 2, "size": "M", "color": "Navy"},
                    ],
                    "gift_wrap": False,
                    "shipping_info": {
                        "full_name": "Asha Rao",
                        "address": "12 MG Road",
                        "city": "Bengaluru",
                        "state": "KA",
                        "country": "IN",
                        "postal_code": "560001",
                        "phone": "+91-9800000000",
                    },
                    "billing_type": "same",
                }
            ]
        }
    }

    def billing(self) -> ShippingInfo | None:
        return self.billing_info.to_shipping_info() if self.billing_info is not None else None


class UpdateStatusRequest(BaseModel):
    status: str

    model_config = {"json_schema_extra": {"examples": [{"status": "Shipped"}]}}


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderItemSchema(BaseModel):
    product_id: str
    name: str
    price: float
    quantity: int
    size: str | None = ""
    color: str | None = ""
    image: str | None = ""
    gift_wrap: bool = False


class OrderPricingSchema(BaseModel):
    items_price: float = 0.0
    shipping_price: float = 0.0
    gift_wrap_price: float = 0.0
    total_price: float = 0.0
    currency: str = "INR"

    @classmethod
    def from_pricing(cls, pricing: OrderPricing) -> "OrderPricingSchema":
        return cls.model_validate(pricing.to_dict())


class PaymentInfoSchema(BaseModel):
    external_payment_id: str | None = None
    status: str | None = None
    provider: str | None = None
    method: str | None = None
    gateway_order_id: str | None = None


class OrderSchema(BaseModel):
    id: str
    customer_id: str
    items: list[OrderItemSchema] = Field(default_factory=list)
    status: str
    payment_info: PaymentInfoSchema | None = None
    pricing: OrderPricingSchema = Field(default_factory=OrderPricingSchema)
    shipping_info: ShippingInfoSchema | None = None
    billing_type: str = "same"
    billing_info: ShippingInfoSchema | None = None
    inventory_reserved: bool = False
    paid_at: datetime | None = None
    delivered_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_order(cls, order: Order) -> "OrderSchema":
        return cls.model_validate(order.to_dict())


class OrderResponse(BaseModel):
    success: bool = True
    order: OrderSchema

    @classmethod
    def of(cls, order: Order) -> "OrderResponse":
        return cls(order=OrderSchema.from_order(order))


class OrderListResponse(BaseModel):
    success: bool = True
    count: int
    orders: list[OrderSchema]


class AdminOrderListResponse(OrderListResponse):
    total_amount: float


class StatusResponse(BaseModel):
    success: bool = True
    message: str
