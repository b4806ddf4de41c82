"""Inventory reservation engine.

Reserves stock for a batch of order lines with one conditional update per
line. A batch is not atomic across products: every applied step is recorded
and, when a later line fails, the recorded steps are released in reverse order
before the failure propagates. Callers never observe a half-reserved batch.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

import structlog

from catalogue.domain import catalogue
from catalogue.product.product import Product
from shared.errors import InsufficientStock, InvalidQuantity, ProductUnavailable, ValidationError
from shared.persistence import update_if

logger = structlog.get_logger(__name__)


def is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


@dataclass(frozen=True)
class StockRequest:
    """One line to reserve.

    ``name``, ``price`` and ``image`` are optional snapshots already resolved
    by pricing; when absent they are taken from the product at reservation
    time.
    """

    product_id: str
    quantity: int
    size: str = ""
    color: str = ""
    name: str | None = None
    price: float | None = None
    image: str | None = None


@dataclass(frozen=True)
class ReservationRecord:
    product_id: str
    quantity: int
    size: str = ""
    used_size_bucket: bool = False


@dataclass(frozen=True)
class ReservedItem:
    """A normalized line whose quantity has been taken out of stock."""

    product_id: str
    name: str
    price: float
    image: str
    quantity: int
    size: str = ""
    color: str = ""


class ReservationEngine:
    def reserve(self, items: Sequence[StockRequest]) -> list[ReservedItem]:
        if not items:
            raise ValidationError("No items to reserve", field="items")

        applied: list[ReservationRecord] = []
        reserved: list[ReservedItem] = []
        with catalogue.domain_context():
            try:
                for item in items:
                    record, line = self._reserve_one(item)
                    applied.append(record)
                    reserved.append(line)
            except Exception:
                self._rollback(applied)
                raise

        logger.debug("Stock reserved", lines=len(reserved))
        return reserved

    def _reserve_one(self, item: StockRequest) -> tuple[ReservationRecord, ReservedItem]:
        if not is_positive_int(item.quantity):
            raise InvalidQuantity("Quantity must be a positive whole number")

        products = catalogue.repository_for(Product)
        product_id = str(item.product_id or "").strip()
        product = products.get_or_none(product_id) if product_id else None
        if product is None:
            raise ProductUnavailable("Product is no longer available")

        size = product.resolve_size(item.size)
        bucket = product.bucket_for(size)
        quantity = item.quantity

        def has_room(current: Product) -> bool:
            if current.stock < quantity:
                return False
            return bucket is None or current.pieces_in(bucket) >= quantity

        saved = update_if(products, product.id, has_room, lambda current: current.take(quantity, bucket))
        if saved is None:
            label = f"{product.name} ({size})" if bucket is not None else product.name
            raise InsufficientStock(f"Insufficient stock for {label}")

        record = ReservationRecord(
            product_id=product.id,
            quantity=quantity,
            size=size,
            used_size_bucket=bucket is not None,
        )
        line = ReservedItem(
            product_id=product.id,
            name=item.name if item.name is not None else product.name,
            price=item.price if item.price is not None else product.price,
            image=item.image or product.representative_image(item.color),
            quantity=quantity,
            size=size,
            color=str(item.color or "").strip(),
        )
        return record, line

    def _rollback(self, applied: list[ReservationRecord]) -> None:
        """Undo exactly what ``reserve`` applied.

        A size bucket is only restored when the reservation drew from one,
        even if the product gained a bucket for that size in the meantime.
        """
        if not applied:
            return
        logger.warning(
            "Rolling back partial reservation",
            lines=len(applied),
            product_ids=[record.product_id for record in applied],
        )
        for record in reversed(applied):
            self._release_logged(record.product_id, record.quantity, record.size, record.used_size_bucket)

    def release(self, items: Iterable) -> None:
        """Give reserved quantities back to stock.

        Accepts anything with ``product_id``, ``quantity`` and ``size``
        attributes (reserved items, order lines). The size bucket, if the
        product has one for the line's size, is restored too. Never raises: a
        failed line is logged and the remaining lines still run.
        """
        with catalogue.domain_context():
            for item in items:
                product_id = str(getattr(item, "product_id", "") or "").strip()
                quantity = getattr(item, "quantity", 0)
                if not product_id or not is_positive_int(quantity):
                    continue
                self._release_logged(product_id, quantity, getattr(item, "size", "") or "")

    def _release_logged(self, product_id: str, quantity: int, size: str, use_bucket: bool | None = None) -> None:
        try:
            self._release_one(product_id, quantity, size, use_bucket)
        except Exception:
            logger.exception(
                "Stock release failed",
                product_id=product_id,
                quantity=quantity,
            )

    def _release_one(self, product_id: str, quantity: int, size: str, use_bucket: bool | None) -> None:
        """Put ``quantity`` back.

        ``use_bucket`` None restores whatever bucket the product holds for
        ``size`` now; False restores stock only.
        """
        products = catalogue.repository_for(Product)

        def restore(current: Product) -> None:
            bucket = current.bucket_for(size) if use_bucket is not False else None
            current.put_back(quantity, bucket)

        saved = update_if(products, product_id, lambda current: True, restore)
        if saved is None:
            logger.warning("Released product no longer exists", product_id=product_id, quantity=quantity)
