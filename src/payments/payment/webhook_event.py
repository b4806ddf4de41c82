"""Received webhook events, keyed by their dedupe key."""

from enum import Enum

from protean.fields import DateTime, String

from ordering.order.order import utcnow
from payments.domain import payments


class WebhookEventStatus(Enum):
    RECEIVED = "received"
    PROCESSED = "processed"
    IGNORED = "ignored"
    FAILED = "failed"


@payments.aggregate
class WebhookEvent:
    event_type = String(required=True, max_length=100)
    payment_id = String(max_length=255)
    gateway_order_id = String(max_length=255)
    status = String(
        choices=WebhookEventStatus,
        default=WebhookEventStatus.RECEIVED.value,
    )
    note = String(max_length=500, default="")
    received_at = DateTime(default=utcnow)
    processed_at = DateTime()

    def finish(self, status: str, note: str) -> None:
        self.status = status
        self.note = note[:500]
        self.processed_at = utcnow()
