"""Checkout opening and payment verification.

Verification turns a client-side payment confirmation into exactly one order:

    1. Reject confirmations with missing fields or a bad signature
    2. Replay: an order already recorded for the payment id is returned as is
    3. Ask the gateway whether the payment actually succeeded
    4. Claim the payment id, so concurrent confirmations cannot both proceed
    5. Re-price the cart, reserve stock and persist the order

Nothing is reserved or written before steps 1-3 pass.

A claim is a lease. A confirmation that fails after claiming removes its
claim; if even that fails, the claim lapses after ``claim_ttl`` seconds and
the next confirmation for the payment takes it over.
"""

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

import structlog

from ordering.checkout.pricing import CartItem, CartOptions, LineItemNormalizer
from ordering.order.order import Order, OrderPricing, PaymentInfo, ShippingInfo, utcnow
from ordering.order.placement import OrderPlacement
from ordering.order.queries import OrderQueries
from payments.domain import payments
from payments.gateway.port import GatewayOrder, PaymentGateway
from payments.payment.claim import PaymentClaim, as_utc
from payments.payment.signature import verify_checkout_signature
from shared.customer import Customer
from shared.errors import (
    ConflictError,
    InternalError,
    PaymentNotSuccessful,
    SignatureMismatch,
    ValidationError,
)
from shared.persistence import add_new, update_if

logger = structlog.get_logger(__name__)

RECEIPT_MAX_LENGTH = 40


def to_minor_units(amount: float) -> int:
    return int((Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def make_receipt(customer_id: str, now_ms: int | None = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"rcpt_{str(customer_id)[-6:]}_{now_ms}"[:RECEIPT_MAX_LENGTH]


@dataclass(frozen=True)
class PaymentConfirmation:
    gateway_order_id: str
    payment_id: str
    signature: str
    cart_items: Sequence[CartItem] = field(default_factory=list)
    options: CartOptions = field(default_factory=CartOptions)
    shipping_info: ShippingInfo | None = None
    billing_type: str = "same"
    billing_info: ShippingInfo | None = None


@dataclass(frozen=True)
class VerificationResult:
    order: Order
    created: bool


@dataclass(frozen=True)
class CheckoutSession:
    gateway_order: GatewayOrder
    key_id: str
    pricing: OrderPricing
    item_count: int



class PaymentVerifier:
    def __init__(
        self,
        gateway: PaymentGateway,
        normalizer: LineItemNormalizer,
        placement: OrderPlacement,
        secret: str,
        key_id: str = "",
        provider: str = "razorpay",
        claim_ttl: int = 300,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.gateway = gateway
        self.normalizer = normalizer
        self.placement = placement
        self.secret = secret
        self.key_id = key_id
        self.provider = provider
        self.claim_ttl = claim_ttl
        self.clock = clock
        self.queries = OrderQueries()

    def open_checkout(
        self,
        cart_items: Sequence[CartItem],
        options: CartOptions | None,
        customer: Customer,
    ) -> CheckoutSession:
        """Price the cart and open a gateway order for its total."""
        priced = self.normalizer.normalize_and_price(cart_items, options)
        gateway_order = self.gateway.create_order(
            amount=to_minor_units(priced.pricing.total_price),
            currency=priced.pricing.currency,
            receipt=make_receipt(customer.id),
            metadata={"user_id": customer.id, "item_count": priced.item_count},
        )
        logger.info(
            "Checkout opened",
            customer_id=customer.id,
            gateway_order_id=gateway_order.gateway_order_id,
            total=priced.pricing.total_price,
        )
        return CheckoutSession(
            gateway_order=gateway_order,
            key_id=self.key_id,
            pricing=priced.pricing,
            item_count=priced.item_count,
        )

    def verify_and_consume(self, confirmation: PaymentConfirmation, customer: Customer) -> VerificationResult:
        gateway_order_id = str(confirmation.gateway_order_id or "").strip()
        payment_id = str(confirmation.payment_id or "").strip()
        signature = str(confirmation.signature or "").strip()

        if not gateway_order_id or not payment_id or not signature:
            raise ValidationError("Payment confirmation is incomplete", field="payment")
        if not self.secret:
            raise InternalError("Payment verification is not configured")
        if not verify_checkout_signature(self.secret, gateway_order_id, payment_id, signature):
            logger.warning(
                "Payment signature mismatch",
                customer_id=customer.id,
                gateway_order_id=gateway_order_id,
                payment_id=payment_id,
            )
            raise SignatureMismatch("Payment signature verification failed")

        existing = self.queries.find_by_payment_id(payment_id)
        if existing is not None:
            logger.info("Payment already consumed, returning order", order_id=existing.id, payment_id=payment_id)
            return VerificationResult(order=existing, created=False)

        payment = self.gateway.fetch_payment(payment_id)
        if not payment.successful:
            raise PaymentNotSuccessful(f"Payment is {payment.status or 'not completed'}")

        claim = self._claim(payment_id, gateway_order_id, customer)
        if claim is None:
            existing = self.queries.find_by_payment_id(payment_id)
            if existing is not None:
                return VerificationResult(order=existing, created=False)
            raise ConflictError("Payment is already being processed", field="payment")

        try:
            order = self._consume(confirmation, customer, gateway_order_id, payment_id, signature, payment)
        except Exception:
            self._release_claim(claim)
            raise

        logger.info(
            "Payment verified, order created",
            order_id=order.id,
            customer_id=customer.id,
            payment_id=payment_id,
            total=order.pricing.total_price,
        )
        return VerificationResult(order=order, created=True)

    def _claim(self, payment_id: str, gateway_order_id: str, customer: Customer) -> PaymentClaim | None:
        """Take the payment id, or an expired claim on it. None when someone else holds it."""
        now = self.clock()
        with payments.domain_context():
            claims = payments.repository_for(PaymentClaim)
            claim = PaymentClaim(
                id=payment_id,
                gateway_order_id=gateway_order_id,
                customer_id=customer.id,
                claimed_at=now,
            )
            if add_new(claims, claim):
                return claim

            held = claims.get_or_none(payment_id)
            if held is None or not held.expired(now, self.claim_ttl):
                return None

            # Another order may have been recorded before the lease ran out
            if self.queries.find_by_payment_id(payment_id) is not None:
                return None

            stale_at = held.claimed_at
            taken = update_if(
                claims,
                payment_id,
                lambda current: as_utc(current.claimed_at) == as_utc(stale_at),
                lambda current: current.take_over(customer.id, gateway_order_id, now),
            )
            if taken is not None:
                logger.warning(
                    "Expired payment claim taken over",
                    payment_id=payment_id,
                    claimed_at=str(stale_at),
                    customer_id=customer.id,
                )
            return taken

    def _release_claim(self, claim: PaymentClaim) -> None:
        """Remove our claim so the payment can be retried right away.

        Only called while another error is propagating, so a failure here is
        logged rather than raised; the claim then lapses with its lease.
        """
        try:
            with payments.domain_context():
                payments.repository_for(PaymentClaim).release(claim.id, claim.claimed_at)
        except Exception:
            logger.exception(
                "Payment claim could not be released, it lapses after its lease",
                payment_id=claim.id,
                claim_ttl=self.claim_ttl,
            )

    def _consume(self, confirmation, customer, gateway_order_id, payment_id, signature, payment) -> Order:
        priced = self.normalizer.normalize_and_price(confirmation.cart_items, confirmation.options)

        if payment.amount is not None and payment.amount < to_minor_units(priced.pricing.total_price):
            raise PaymentNotSuccessful("Paid amount does not cover the order total")

        return self.placement.persist_reserved(
            customer.id,
            priced,
            payment_info=PaymentInfo(
                external_payment_id=payment_id,
                status="paid",
                provider=self.provider,
                method=payment.method,
                gateway_order_id=gateway_order_id,
                signature=signature,
            ),
            shipping_info=confirmation.shipping_info,
            billing_type=confirmation.billing_type,
            billing_info=confirmation.billing_info,
            paid_at=utcnow(),
        )
