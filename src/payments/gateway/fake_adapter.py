"""Configurable fake payment gateway for development and testing.

This adapter simulates the gateway without any external calls. Payments are
reported as captured unless configured otherwise, either for every payment or
for a specific payment id, and the whole gateway can be marked unreachable.
"""

from uuid import uuid4

from payments.gateway.port import GatewayOrder, GatewayPayment, PaymentGateway
from shared.errors import GatewayError


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.payment_status: str = "captured"
        self.payment_method: str = "card"
        self.reachable: bool = True
        self.payments: dict[str, GatewayPayment] = {}
        self.calls: list[dict] = []

    def configure(self, payment_status: str = "captured", reachable: bool = True) -> None:
        """Configure gateway behavior at runtime."""
        self.payment_status = payment_status
        self.reachable = reachable

    def set_payment(self, payment_id: str, status: str, amount: int | None = None, method: str = "card") -> None:
        """Pin the reported state of one payment id."""
        self.payments[payment_id] = GatewayPayment(
            payment_id=payment_id,
            status=status,
            method=method,
            amount=amount,
        )

    def _check_reachable(self) -> None:
        if not self.reachable:
            raise GatewayError("Payment gateway is unreachable")

    def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        metadata: dict | None = None,
    ) -> GatewayOrder:
        self.calls.append(
            {
                "method": "create_order",
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "metadata": dict(metadata or {}),
            }
        )
        self._check_reachable()
        return GatewayOrder(
            gateway_order_id=f"order_fake_{uuid4().hex[:14]}",
            amount=amount,
            currency=currency,
            receipt=receipt,
        )

    def fetch_payment(self, payment_id: str) -> GatewayPayment:
        self.calls.append({"method": "fetch_payment", "payment_id": payment_id})
        self._check_reachable()
        if payment_id in self.payments:
            return self.payments[payment_id]
        return GatewayPayment(
            payment_id=payment_id,
            status=self.payment_status,
            method=self.payment_method,
        )
