"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement.
This enables swapping between FakeGateway (dev/test) and RazorpayGateway
(production) without changing any checkout code. Adapters raise
``GatewayError`` when the gateway cannot be reached or answers with an error.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

SUCCESSFUL_PAYMENT_STATUSES = frozenset({"captured", "authorized"})


@dataclass(frozen=True)
class GatewayOrder:
    """An order opened on the gateway, awaiting client-side payment."""

    gateway_order_id: str
    amount: int  # minor units
    currency: str
    receipt: str
    status: str = "created"


@dataclass(frozen=True)
class GatewayPayment:
    """A payment as reported by the gateway."""

    payment_id: str
    status: str
    method: str | None = None
    gateway_order_id: str | None = None
    amount: int | None = None  # minor units
    currency: str | None = None
    raw: dict = field(default_factory=dict, compare=False)

    @property
    def successful(self) -> bool:
        return self.status in SUCCESSFUL_PAYMENT_STATUSES


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        metadata: dict | None = None,
    ) -> GatewayOrder:
        """Open a gateway order for ``amount`` minor units."""
        ...

    @abstractmethod
    def fetch_payment(self, payment_id: str) -> GatewayPayment:
        """Look up the current state of a payment."""
        ...
