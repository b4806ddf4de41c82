"""Order placement: reserve stock, then persist the order.

An order is only ever saved after its reservation succeeded. If the save
fails, the reservation is released before the error propagates.
"""

from collections.abc import Sequence
from datetime import datetime

import structlog

from inventory.stock.reservation import ReservationEngine
from ordering.checkout.pricing import CartItem, CartOptions, LineItemNormalizer, PricedCart
from ordering.domain import ordering
from ordering.order.order import BillingType, Order, OrderItem, PaymentInfo, ShippingInfo, utcnow

logger = structlog.get_logger(__name__)


class OrderPlacement:
    def __init__(self, normalizer: LineItemNormalizer, engine: ReservationEngine) -> None:
        self.normalizer = normalizer
        self.engine = engine

    def place_order(
        self,
        customer_id: str,
        cart_items: Sequence[CartItem],
        options: CartOptions | None = None,
        shipping_info: ShippingInfo | None = None,
        billing_type: str = "same",
        billing_info: ShippingInfo | None = None,
    ) -> Order:
        """Create an unpaid order; payment is collected outside the gateway flow."""
        priced = self.normalizer.normalize_and_price(cart_items, options)
        order = self.persist_reserved(
            customer_id,
            priced,
            payment_info=PaymentInfo(status="pending", provider="manual"),
            shipping_info=shipping_info,
            billing_type=billing_type,
            billing_info=billing_info,
        )
        logger.info(
            "Order placed",
            order_id=order.id,
            customer_id=customer_id,
            total=order.pricing.total_price,
        )
        return order

    def persist_reserved(
        self,
        customer_id: str,
        priced: PricedCart,
        payment_info: PaymentInfo,
        shipping_info: ShippingInfo | None = None,
        billing_type: str = "same",
        billing_info: ShippingInfo | None = None,
        paid_at: datetime | None = None,
    ) -> Order:
        reserved = self.engine.reserve(priced.stock_requests)

        try:
            items = [
                OrderItem(
                    product_id=line.product_id,
                    name=line.name,
                    price=line.price,
                    quantity=line.quantity,
                    size=line.size,
                    color=line.color,
                    image=line.image,
                    gift_wrap=priced_line.gift_wrap,
                )
                for line, priced_line in zip(reserved, priced.lines, strict=True)
            ]
            different_billing = billing_type == BillingType.DIFFERENT.value
            now = utcnow()
            with ordering.domain_context():
                order = Order(
                    customer_id=str(customer_id),
                    items=items,
                    payment_info=payment_info,
                    pricing=priced.pricing,
                    shipping_info=shipping_info or ShippingInfo(),
                    billing_type=BillingType.DIFFERENT.value if different_billing else BillingType.SAME.value,
                    billing_info=billing_info if different_billing else None,
                    inventory_reserved=True,
                    paid_at=paid_at,
                    created_at=now,
                    updated_at=now,
                )
                ordering.repository_for(Order).add(order)
        except Exception:
            logger.exception("Order persistence failed, releasing reservation", customer_id=str(customer_id))
            self.engine.release(reserved)
            raise

        return order
