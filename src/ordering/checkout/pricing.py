"""Cart normalization and authoritative pricing.

Prices always come from the catalogue, never from the client. Stock checks
made here are advisory: the reservation engine's conditional update is the
final word, so a cart that prices cleanly can still fail reservation.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from catalogue.product.lookup import ProductCatalogue
from inventory.stock.reservation import StockRequest, is_positive_int
from ordering.order.order import OrderItem, OrderPricing
from shared.errors import InvalidProduct, InvalidQuantity, ValidationError

SHIPPING_FLAT = 100.0
GIFT_WRAP_FLAT = 50.0

_CENTS = Decimal("0.01")


def round2(value) -> float:
    """Round to two decimals, half away from zero."""
    return float(Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class CartItem:
    product_id: str
    quantity: object
    size: str = ""
    color: str = ""
    gift_wrap: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping) -> "CartItem":
        return cls(
            product_id=str(data.get("product_id") or data.get("product") or "").strip(),
            quantity=data.get("quantity"),
            size=str(data.get("size") or "").strip(),
            color=str(data.get("color") or "").strip(),
            gift_wrap=bool(data.get("gift_wrap", False)),
        )


@dataclass(frozen=True)
class CartOptions:
    # Legacy whole-cart gift wrap flag
    gift_wrap: bool = False


@dataclass(frozen=True)
class PricedCart:
    lines: list[OrderItem]
    pricing: OrderPricing
    stock_requests: list[StockRequest] = field(default_factory=list)

    @property
    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)


class LineItemNormalizer:
    def __init__(
        self,
        catalogue: ProductCatalogue,
        shipping_flat: float = SHIPPING_FLAT,
        gift_wrap_flat: float = GIFT_WRAP_FLAT,
        currency: str = "INR",
    ) -> None:
        self.catalogue = catalogue
        self.shipping_flat = shipping_flat
        self.gift_wrap_flat = gift_wrap_flat
        self.currency = currency

    def normalize_and_price(self, cart_items: Sequence[CartItem], options: CartOptions | None = None) -> PricedCart:
        options = options or CartOptions()
        if not cart_items:
            raise ValidationError("Cart is empty", field="items")

        for item in cart_items:
            if not item.product_id:
                raise ValidationError("Product is required for every item", field="product_id")

        products = {p.id: p for p in self.catalogue.find_products_by_ids(item.product_id for item in cart_items)}

        lines: list[OrderItem] = []
        for item in cart_items:
            product = products.get(item.product_id)
            if product is None:
                raise InvalidProduct(f"Invalid product: {item.product_id}")

            quantity = item.quantity
            if not is_positive_int(quantity):
                raise InvalidQuantity(f"Invalid quantity for {product.name}")
            if quantity > product.stock:
                raise InvalidQuantity(f"Only {product.stock} left for {product.name}")

            size = product.resolve_size(item.size)
            bucket = product.bucket_for(size)
            if bucket is not None and quantity > product.size_buckets[bucket]:
                raise InvalidQuantity(f"Only {product.size_buckets[bucket]} left in size {size} for {product.name}")

            color = product.resolve_color(item.color)

            lines.append(
                OrderItem(
                    product_id=product.id,
                    name=product.name,
                    price=product.price,
                    quantity=quantity,
                    size=size,
                    color=color,
                    image=product.representative_image(color),
                    gift_wrap=item.gift_wrap,
                )
            )

        pricing = self.price(lines, options)
        return PricedCart(
            lines=lines,
            pricing=pricing,
            stock_requests=[
                StockRequest(
                    product_id=line.product_id,
                    quantity=line.quantity,
                    size=line.size,
                    color=line.color,
                    name=line.name,
                    price=line.price,
                    image=line.image,
                )
                for line in lines
            ],
        )

    def price(self, lines: Sequence[OrderItem], options: CartOptions) -> OrderPricing:
        items_price = round2(sum(Decimal(str(line.price)) * line.quantity for line in lines))
        shipping_price = self.shipping_flat if lines else 0.0

        wrapped_units = sum(line.quantity for line in lines if line.gift_wrap)
        if wrapped_units:
            gift_wrap_price = round2(Decimal(str(self.gift_wrap_flat)) * wrapped_units)
        elif options.gift_wrap and lines:
            gift_wrap_price = self.gift_wrap_flat
        else:
            gift_wrap_price = 0.0

        return OrderPricing(
            items_price=items_price,
            shipping_price=round2(shipping_price),
            gift_wrap_price=round2(gift_wrap_price),
            total_price=round2(Decimal(str(items_price)) + Decimal(str(shipping_price)) + Decimal(str(gift_wrap_price))),
            currency=self.currency,
        )
