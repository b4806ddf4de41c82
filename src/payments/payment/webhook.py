"""Payment webhook processing.

Gateway callbacks are authenticated with an HMAC of the raw body, then
deduplicated by recording a webhook event keyed by the gateway event id
(or, when the gateway sends none, a hash of the body). A redelivered event
finds its key taken and has no further effect.
"""

import hashlib
import json
from dataclasses import dataclass

import structlog

from ordering.domain import ordering
from ordering.order.lifecycle import OrderLifecycle
from ordering.order.order import Order, utcnow
from ordering.order.queries import OrderQueries
from payments.domain import payments
from payments.payment.signature import verify_webhook_signature
from payments.payment.webhook_event import WebhookEvent
from shared.errors import InternalError, SignatureMismatch, ValidationError
from shared.persistence import add_new, update_if

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class WebhookOutcome:
    event_type: str
    status: str  # processed, ignored
    duplicate: bool = False
    order_id: str | None = None
    note: str = ""


def _entity(payload: dict, name: str) -> dict:
    entity = ((payload.get("payload") or {}).get(name) or {}).get("entity")
    return entity if isinstance(entity, dict) else {}


def dedupe_key(raw_body: bytes, event_id: str | None) -> str:
    if event_id:
        return f"event:{event_id}"
    return f"hash:{hashlib.sha256(raw_body).hexdigest()}"


class WebhookProcessor:
    def __init__(self, lifecycle: OrderLifecycle, secret: str) -> None:
        self.lifecycle = lifecycle
        self.secret = secret
        self.queries = OrderQueries()

    def process(self, raw_body: bytes, signature: str, event_id: str | None = None) -> WebhookOutcome:
        if not self.secret:
            raise InternalError("Webhook secret is not configured")
        if not signature:
            raise ValidationError("Missing webhook signature", field="signature")
        if not verify_webhook_signature(self.secret, raw_body, signature):
            raise SignatureMismatch("Invalid webhook signature")

        try:
            payload = json.loads(raw_body)
        except ValueError:
            raise ValidationError("Webhook body is not valid JSON", field="body") from None
        if not isinstance(payload, dict) or not payload.get("event"):
            raise ValidationError("Webhook event type is missing", field="event")

        event_type = str(payload["event"])
        payment = _entity(payload, "payment")
        refund = _entity(payload, "refund")
        payment_id = payment.get("id") or refund.get("payment_id")
        gateway_order_id = payment.get("order_id") or _entity(payload, "order").get("id")

        key = dedupe_key(raw_body, event_id or payload.get("id"))
        event = WebhookEvent(
            id=key,
            event_type=event_type,
            payment_id=payment_id,
            gateway_order_id=gateway_order_id,
        )
        with payments.domain_context():
            recorded = add_new(payments.repository_for(WebhookEvent), event)
        if not recorded:
            logger.info("Duplicate webhook ignored", event_type=event_type, dedupe_key=key)
            return WebhookOutcome(event_type=event_type, status="ignored", duplicate=True, note="duplicate")

        try:
            outcome = self._handle(event_type, payment_id, gateway_order_id)
        except Exception as exc:
            self._record(key, "failed", str(exc))
            raise

        self._record(key, outcome.status, outcome.note)
        logger.info(
            "Webhook processed",
            event_type=event_type,
            status=outcome.status,
            order_id=outcome.order_id,
            note=outcome.note,
        )
        return outcome

    def _record(self, key: str, status: str, note: str) -> None:
        with payments.domain_context():
            update_if(
                payments.repository_for(WebhookEvent),
                key,
                lambda event: True,
                lambda event: event.finish(status, note),
            )

    def _find_order(self, payment_id, gateway_order_id) -> Order | None:
        order = self.queries.find_by_payment_id(payment_id) if payment_id else None
        if order is None and gateway_order_id:
            order = self.queries.find_by_gateway_order_id(gateway_order_id)
        return order

    def _set_payment_status(self, order: Order, status: str, unless: tuple = (), paid: bool = False) -> bool:
        """Record ``status`` unless the order's payment status is already one of ``unless``."""

        def change(current: Order) -> None:
            paid_at = (current.paid_at or utcnow()) if paid else None
            current.record_payment_status(status, paid_at=paid_at)

        with ordering.domain_context():
            saved = update_if(
                ordering.repository_for(Order),
                order.id,
                lambda current: current.payment_status not in unless,
                change,
            )
        return saved is not None

    def _handle(self, event_type: str, payment_id, gateway_order_id) -> WebhookOutcome:
        handled = {"payment.captured", "order.paid", "payment.failed", "refund.created", "refund.processed"}
        if event_type not in handled:
            return WebhookOutcome(event_type=event_type, status="ignored", note="unhandled event")

        order = self._find_order(payment_id, gateway_order_id)
        if order is None:
            return WebhookOutcome(event_type=event_type, status="ignored", note="order not found")

        if event_type in ("payment.captured", "order.paid"):
            if self._set_payment_status(order, "paid", unless=("paid",), paid=True):
                note = "marked paid"
            else:
                note = "already paid"

        elif event_type == "payment.failed":
            if not self._set_payment_status(order, "failed", unless=("paid",)):
                note = "already paid"
            else:
                note = "marked failed"
                if order.inventory_reserved and not order.is_terminal:
                    self.lifecycle.cancel(order.id)
                    note = "marked failed, order cancelled"

        elif event_type == "refund.created":
            if self._set_payment_status(order, "refund_initiated", unless=("refunded",)):
                note = "refund initiated"
            else:
                note = "already refunded"

        else:  # refund.processed
            self._set_payment_status(order, "refunded")
            note = "refunded"

        return WebhookOutcome(event_type=event_type, status="processed", order_id=order.id, note=note)
