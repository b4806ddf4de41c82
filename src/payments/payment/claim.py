"""Payment claims: which confirmation owns a gateway payment id.

A claim is keyed by the payment id, so only one confirmation can hold it at
a time. It carries a lease: a claim older than the lease, left behind by a
confirmation that died or could not remove it, may be taken over.
"""

from datetime import UTC, datetime, timedelta

from protean.fields import DateTime, Identifier, String

from payments.domain import payments


def as_utc(moment: datetime) -> datetime:
    """SQL backends may hand datetimes back without tzinfo; they are stored as UTC."""
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=UTC)


@payments.aggregate
class PaymentClaim:
    gateway_order_id = String(max_length=255)
    customer_id = Identifier()
    claimed_at = DateTime(required=True)

    def expired(self, now: datetime, ttl_seconds: int) -> bool:
        return as_utc(self.claimed_at) <= now - timedelta(seconds=ttl_seconds)

    def take_over(self, customer_id: str, gateway_order_id: str, now: datetime) -> None:
        self.customer_id = customer_id
        self.gateway_order_id = gateway_order_id
        self.claimed_at = now


@payments.repository(part_of=PaymentClaim)
class PaymentClaimRepository:
    def release(self, payment_id: str, claimed_at: datetime) -> bool:
        """Remove the claim, but only while it is still the lease taken at ``claimed_at``."""
        claim = self.get_or_none(payment_id)
        if claim is None or as_utc(claim.claimed_at) != as_utc(claimed_at):
            return False
        self._dao.delete(claim)
        return True
