"""Pydantic request/response schemas for the Payments API."""

from pydantic import AliasChoices, BaseModel, Field

from ordering.api.schemas import CartRequest, CreateOrderRequest, OrderPricingSchema, OrderSchema
from payments.payment.verification import PaymentConfirmation


class CheckoutRequest(CartRequest):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [{"product_id": "prod-001", "quantity": 1, "size": "M"}],
                    "gift_wrap": False,
                }
            ]
        }
    }


class CheckoutResponse(BaseModel):
    success: bool = True
    gateway_order_id: str
    amount: int
    currency: str
    receipt: str
    key_id: str
    pricing: OrderPricingSchema


class VerifyPaymentRequest(CreateOrderRequest):
    """Client confirmation after paying, plus the cart it paid for.

    Accepts the gateway's own field names (``razorpay_order_id`` and
    friends) as well as the neutral ones.
    """

    gateway_order_id: str = Field(
        default="",
        validation_alias=AliasChoices("gateway_order_id", "razorpay_order_id"),
    )
    payment_id: str = Field(
        default="",
        validation_alias=AliasChoices("payment_id", "razorpay_payment_id"),
    )
    signature: str = Field(
        default="",
        validation_alias=AliasChoices("signature", "razorpay_signature"),
    )

    def confirmation(self) -> PaymentConfirmation:
        return PaymentConfirmation(
            gateway_order_id=self.gateway_order_id,
            payment_id=self.payment_id,
            signature=self.signature,
            cart_items=self.cart_items(),
            options=self.options(),
            shipping_info=self.shipping_info.to_shipping_info(),
            billing_type=self.billing_type,
            billing_info=self.billing(),
        )


class VerifyPaymentResponse(BaseModel):
    success: bool = True
    created: bool
    order: OrderSchema


class WebhookResponse(BaseModel):
    success: bool = True
    event: str
    status: str
    duplicate: bool = False
    order_id: str | None = None
