"""FastAPI routes for the Payments domain: checkout, verification and webhooks."""

from fastapi import APIRouter, BackgroundTasks, Depends, Header, Request, Response
from starlette.concurrency import run_in_threadpool

from ordering.api.schemas import OrderPricingSchema, OrderSchema
from payments.api.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
    WebhookResponse,
)
from shared.customer import Customer
from shared.http import current_customer, get_container

# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/orders", tags=["payments"])


@checkout_router.post("/checkout", response_model=CheckoutResponse)
def open_checkout(
    body: CheckoutRequest,
    customer: Customer = Depends(current_customer),
    container=Depends(get_container),
) -> CheckoutResponse:
    """Price the cart and open a gateway order the client can pay against."""
    session = container.verifier.open_checkout(body.cart_items(), body.options(), customer)
    return CheckoutResponse(
        gateway_order_id=session.gateway_order.gateway_order_id,
        amount=session.gateway_order.amount,
        currency=session.gateway_order.currency,
        receipt=session.gateway_order.receipt,
        key_id=session.key_id,
        pricing=OrderPricingSchema.from_pricing(session.pricing),
    )


@checkout_router.post("/payment/verify", status_code=201, response_model=VerifyPaymentResponse)
def verify_payment(
    body: VerifyPaymentRequest,
    response: Response,
    background_tasks: BackgroundTasks,
    customer: Customer = Depends(current_customer),
    container=Depends(get_container),
) -> VerifyPaymentResponse:
    """Verify a completed payment and create its order.

    201 with the new order on the first call; 200 with the same order on any
    replay for the same payment id.
    """
    result = container.verifier.verify_and_consume(body.confirmation(), customer)
    if result.created:
        background_tasks.add_task(container.dispatcher.dispatch, result.order, customer)
    else:
        response.status_code = 200
    return VerifyPaymentResponse(created=result.created, order=OrderSchema.from_order(result.order))


# ---------------------------------------------------------------------------
# Webhook Router
# ---------------------------------------------------------------------------
webhook_router = APIRouter(prefix="/payments", tags=["payments"])


@webhook_router.post("/webhook", response_model=WebhookResponse)
async def process_webhook(
    request: Request,
    x_razorpay_signature: str = Header(default=""),
    x_razorpay_event_id: str = Header(default=""),
    container=Depends(get_container),
) -> WebhookResponse:
    """Process a gateway webhook. The signature covers the raw body."""
    raw_body = await request.body()
    outcome = await run_in_threadpool(
        container.webhooks.process,
        raw_body,
        x_razorpay_signature,
        x_razorpay_event_id or None,
    )
    return WebhookResponse(
        event=outcome.event_type,
        status=outcome.status,
        duplicate=outcome.duplicate,
        order_id=outcome.order_id,
    )
