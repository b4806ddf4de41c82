"""Order status transitions and their inventory side effects."""

import structlog

from inventory.stock.reservation import ReservationEngine
from ordering.domain import ordering
from ordering.order.order import Order, OrderStatus, assert_can_transition, parse_status
from shared.errors import ConflictError, NotFoundError, ValidationError
from shared.persistence import update_if

logger = structlog.get_logger(__name__)


class OrderLifecycle:
    def __init__(self, engine: ReservationEngine) -> None:
        self.engine = engine

    def _load(self, order_id: str) -> Order:
        order = ordering.repository_for(Order).get_or_none(str(order_id))
        if order is None:
            raise NotFoundError("Order not found", field="order_id")
        return order

    def update_status(self, order_id: str, status) -> Order:
        """Move an order to ``status``.

        The save is guarded on the status and reservation flag that were
        read, so of two concurrent transitions only one can commit. Moving a
        reserved order to Cancelled clears the flag in that same save, and
        only the caller that won it releases stock.
        """
        with ordering.domain_context():
            order = self._load(order_id)
            target = parse_status(status)
            assert_can_transition(order.current_status, target)

            seen_status, seen_reserved = order.status, order.inventory_reserved
            saved = update_if(
                ordering.repository_for(Order),
                order.id,
                lambda current: current.status == seen_status and current.inventory_reserved == seen_reserved,
                lambda current: current.transition_to(target),
            )
            if saved is None:
                raise ConflictError("Order was modified by another request, please retry", field="status")

        if target == OrderStatus.CANCELLED and seen_reserved:
            self.engine.release(saved.items)
            logger.info("Order cancelled, stock released", order_id=saved.id, lines=len(saved.items))

        logger.info(
            "Order status updated",
            order_id=saved.id,
            from_status=seen_status,
            to_status=target.value,
        )
        return saved

    def cancel(self, order_id: str) -> Order:
        return self.update_status(order_id, OrderStatus.CANCELLED)

    def delete(self, order_id: str) -> None:
        with ordering.domain_context():
            order = self._load(order_id)
            if order.current_status != OrderStatus.DELIVERED:
                raise ValidationError("Only delivered orders can be deleted", field="status")
            ordering.repository_for(Order)._dao.delete(order)
        logger.info("Order deleted", order_id=order.id)
