"""Read side for orders."""

from dataclasses import dataclass

from ordering.domain import ordering
from ordering.order.order import Order
from shared.customer import Customer
from shared.errors import AuthorizationError, NotFoundError


@dataclass(frozen=True)
class OrderListing:
    orders: list[Order]
    total_amount: float


class OrderQueries:
    def get(self, order_id: str, requester: Customer) -> Order:
        with ordering.domain_context():
            order = ordering.repository_for(Order).get_or_none(str(order_id))
        if order is None:
            raise NotFoundError("Order not found", field="order_id")

        if not requester.is_admin and not order.owned_by(requester.id):
            raise AuthorizationError("You are not allowed to view this order")
        return order

    def list_for_customer(self, customer_id: str) -> list[Order]:
        with ordering.domain_context():
            return ordering.repository_for(Order).for_customer(customer_id)

    def list_all(self) -> OrderListing:
        with ordering.domain_context():
            orders = ordering.repository_for(Order).newest_first()
        total = round(sum(order.pricing.total_price for order in orders if order.pricing), 2)
        return OrderListing(orders=orders, total_amount=total)

    def find_by_payment_id(self, payment_id: str) -> Order | None:
        with ordering.domain_context():
            return ordering.repository_for(Order).find_by_payment_id(payment_id)

    def find_by_gateway_order_id(self, gateway_order_id: str) -> Order | None:
        with ordering.domain_context():
            return ordering.repository_for(Order).find_by_gateway_order_id(gateway_order_id)
