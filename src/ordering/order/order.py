"""Order aggregate and its status state machine.

State Machine:
    PROCESSING → SHIPPED → DELIVERED
    PROCESSING → DELIVERED
    PROCESSING / SHIPPED → CANCELLED

DELIVERED and CANCELLED are terminal. DELIVERED is also the only state from
which an order may be deleted.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import (
    Boolean,
    DateTime,
    Float,
    Identifier,
    Integer,
    List,
    String,
    ValueObject,
)

from ordering.domain import ordering
from shared.errors import InvalidTransition


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


class BillingType(Enum):
    SAME = "same"
    DIFFERENT = "different"


# State machine transition map
_VALID_TRANSITIONS = {
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}

TERMINAL_STATES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}


def parse_status(value) -> OrderStatus:
    """Accept a status by value ("Shipped") or by name ("SHIPPED"), any case."""
    if isinstance(value, OrderStatus):
        return value
    text = str(value or "").strip().lower()
    for status in OrderStatus:
        if text in (status.value.lower(), status.name.lower()):
            return status
    raise InvalidTransition(f"Unknown order status: {value}")


def assert_can_transition(current: OrderStatus, target: OrderStatus) -> None:
    if target not in _VALID_TRANSITIONS.get(current, set()):
        raise InvalidTransition(f"Cannot transition from {current.value} to {target.value}")


def utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class OrderItem:
    """One purchased line, with name, price and image captured at checkout."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    size = String(max_length=50, default="")
    color = String(max_length=50, default="")
    image = String(max_length=1024, default="")
    gift_wrap = Boolean(default=False)


@ordering.value_object(part_of="Order")
class OrderPricing:
    """Totals locked at checkout; catalogue price changes never touch them."""

    items_price = Float(default=0.0)
    shipping_price = Float(default=0.0)
    gift_wrap_price = Float(default=0.0)
    total_price = Float(default=0.0)
    currency = String(max_length=3, default="INR")


@ordering.value_object(part_of="Order")
class ShippingInfo:
    full_name = String(max_length=255, default="")
    address = String(max_length=500, default="")
    city = String(max_length=100, default="")
    state = String(max_length=100, default="")
    country = String(max_length=100, default="")
    postal_code = String(max_length=20, default="")
    phone = String(max_length=30, default="")


@ordering.value_object(part_of="Order")
class PaymentInfo:
    """Where the order's money stands.

    ``status`` is "pending" for manually placed orders, "paid" once a
    gateway payment is verified, and then follows gateway webhooks.
    """

    external_payment_id = String(max_length=255)
    status = String(max_length=50, default="pending")
    provider = String(max_length=50, default="manual")
    method = String(max_length=50)
    gateway_order_id = String(max_length=255)
    signature = String(max_length=255)

    def with_status(self, status: str) -> "PaymentInfo":
        return PaymentInfo(**{**self.to_dict(), "status": status})


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    customer_id = Identifier(required=True)
    items = List(content_type=ValueObject(OrderItem))
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PROCESSING.value,
    )
    payment_info = ValueObject(PaymentInfo)
    pricing = ValueObject(OrderPricing)
    shipping_info = ValueObject(ShippingInfo)
    billing_type = String(
        choices=BillingType,
        default=BillingType.SAME.value,
    )
    billing_info = ValueObject(ShippingInfo)
    inventory_reserved = Boolean(default=False)
    paid_at = DateTime()
    delivered_at = DateTime()
    created_at = DateTime(default=utcnow)
    updated_at = DateTime(default=utcnow)

    @property
    def code(self) -> str:
        """Short human-facing reference used in notices."""
        return str(self.id).replace("-", "")[-8:].upper()

    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def payment_status(self) -> str | None:
        return self.payment_info.status if self.payment_info else None

    @property
    def is_terminal(self) -> bool:
        return self.current_status in TERMINAL_STATES

    def owned_by(self, customer_id: str) -> bool:
        return self.customer_id == str(customer_id)

    def transition_to(self, target: OrderStatus) -> None:
        """Move to ``target``.

        Cancelling a reserved order clears ``inventory_reserved`` in the same
        write; the caller that saved it owns giving the stock back.
        """
        assert_can_transition(self.current_status, target)

        now = utcnow()
        self.status = target.value
        self.updated_at = now
        if target == OrderStatus.DELIVERED:
            self.delivered_at = now
        if target == OrderStatus.CANCELLED:
            self.inventory_reserved = False

    def record_payment_status(self, status: str, paid_at: datetime | None = None) -> None:
        self.payment_info = (self.payment_info or PaymentInfo()).with_status(status)
        if paid_at is not None:
            self.paid_at = paid_at
        self.updated_at = utcnow()


@ordering.repository(part_of=Order)
class OrderRepository:
    def newest_first(self) -> list[Order]:
        return self.query.order_by("-created_at").limit(None).all().items

    def for_customer(self, customer_id: str) -> list[Order]:
        return self.query.filter(customer_id=str(customer_id)).order_by("-created_at").limit(None).all().items

    def find_by_payment_id(self, payment_id: str) -> Order | None:
        return self._first(payment_info_external_payment_id=str(payment_id))

    def find_by_gateway_order_id(self, gateway_order_id: str) -> Order | None:
        return self._first(payment_info_gateway_order_id=str(gateway_order_id))

    def _first(self, **filters) -> Order | None:
        items = self.query.filter(**filters).limit(1).all().items
        return items[0] if items else None
