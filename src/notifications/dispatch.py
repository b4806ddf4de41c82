"""Fire-and-forget order notifications.

The dispatcher hands each notice to a small thread pool and returns at once.
Failures are logged and never reach the checkout request that triggered them.
"""

from concurrent.futures import Future, ThreadPoolExecutor

import structlog

from notifications.channel.email_port import EmailPort
from notifications.templates.order_placed import OrderPlacedAdminTemplate
from ordering.order.order import Order
from shared.customer import Customer

logger = structlog.get_logger(__name__)


class OrderNotifier:
    def __init__(self, channel: EmailPort, admin_email: str = "") -> None:
        self.channel = channel
        self.admin_email = admin_email

    @staticmethod
    def build_context(order: Order, customer: Customer) -> dict:
        return {
            "order_code": order.code,
            "customer_name": customer.name,
            "customer_email": customer.email,
            "payment_status": order.payment_info.status,
            "payment_provider": order.payment_info.provider,
            "currency": order.pricing.currency,
            "items_price": order.pricing.items_price,
            "shipping_price": order.pricing.shipping_price,
            "gift_wrap_price": order.pricing.gift_wrap_price,
            "total_price": order.pricing.total_price,
            "shipping": order.shipping_info.to_dict() if order.shipping_info else {},
            "items": [item.to_dict() for item in order.items],
        }

    def notify(self, order: Order, customer: Customer) -> dict | None:
        if not self.admin_email:
            logger.debug("No admin email configured, skipping order notice", order_id=order.id)
            return None

        content = OrderPlacedAdminTemplate.render(self.build_context(order, customer))
        result = self.channel.send(to=self.admin_email, subject=content["subject"], body=content["body"])
        if result.get("status") != "sent":
            logger.warning("Order notice not delivered", order_id=order.id, error=result.get("error"))
        return result


class NotificationDispatcher:
    def __init__(self, notifier: OrderNotifier, max_workers: int = 2) -> None:
        self.notifier = notifier
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="notify")

    def dispatch(self, order: Order, customer: Customer) -> Future:
        future = self._executor.submit(self.notifier.notify, order, customer)
        future.add_done_callback(lambda f: self._log_failure(f, order.id))
        return future

    @staticmethod
    def _log_failure(future: Future, order_id: str) -> None:
        exc = future.exception()
        if exc is not None:
            logger.warning(
                "Order notification failed",
                order_id=order_id,
                error=str(exc),
                exc_info=exc,
            )

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
