"""Tests for LineItemNormalizer.normalize_and_price."""

import pytest
from catalogue.product.product import PLACEHOLDER_IMAGE
from ordering.checkout.pricing import CartItem, CartOptions, LineItemNormalizer, round2
from shared.errors import (
    InvalidColor,
    InvalidProduct,
    InvalidQuantity,
    InvalidSize,
    ValidationError,
)


class TestRound2:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(1.005, 1.01), (2.675, 2.68), (0.125, 0.13), (-1.005, -1.01), (10, 10.0), (19.994, 19.99)],
    )
    def test_half_away_from_zero(self, raw, expected):
        assert round2(raw) == expected


class TestNormalization:
    def test_snapshots_catalogue_fields(self, normalizer, add_product):
        product = add_product(name="Silk Saree", price=2499.5, images=["/saree.png"])

        priced = normalizer.normalize_and_price([CartItem(product_id=product.id, quantity=2)])

        line = priced.lines[0]
        assert (line.name, line.price, line.quantity, line.image) == ("Silk Saree", 2499.5, 2, "/saree.png")
        assert priced.stock_requests[0].product_id == product.id
        assert priced.item_count == 2

    def test_resolves_size_and_colour(self, normalizer, add_product):
        product = add_product(
            sizes=["S", "M"],
            size_buckets={"M": 3},
            color_images={"Indigo": ["/indigo.png"]},
            images=["/main.png"],
        )

        priced = normalizer.normalize_and_price(
            [CartItem(product_id=product.id, quantity=1, size="m", color="INDIGO")]
        )

        line = priced.lines[0]
        assert (line.size, line.color, line.image) == ("M", "Indigo", "/indigo.png")

    def test_placeholder_image(self, normalizer, add_product):
        product = add_product()
        priced = normalizer.normalize_and_price([CartItem(product_id=product.id, quantity=1)])
        assert priced.lines[0].image == PLACEHOLDER_IMAGE

    def test_empty_cart(self, normalizer):
        with pytest.raises(ValidationError):
            normalizer.normalize_and_price([])

    def test_blank_product_id(self, normalizer):
        with pytest.raises(ValidationError) as exc_info:
            normalizer.normalize_and_price([CartItem(product_id="", quantity=1)])
        assert "product_id" in exc_info.value.messages

    def test_unknown_product(self, normalizer):
        with pytest.raises(InvalidProduct) as exc_info:
            normalizer.normalize_and_price([CartItem(product_id="ghost", quantity=1)])
        assert exc_info.value.status_code == 404

    @pytest.mark.parametrize("quantity", [0, -2, 1.5, "3", None, False])
    def test_invalid_quantity(self, normalizer, add_product, quantity):
        product = add_product()
        with pytest.raises(InvalidQuantity):
            normalizer.normalize_and_price([CartItem(product_id=product.id, quantity=quantity)])

    def test_quantity_above_stock(self, normalizer, add_product):
        product = add_product(stock=2)
        with pytest.raises(InvalidQuantity) as exc_info:
            normalizer.normalize_and_price([CartItem(product_id=product.id, quantity=3)])
        assert "Only 2 left" in exc_info.value.message

    def test_quantity_above_bucket(self, normalizer, add_product):
        product = add_product(stock=10, size_buckets={"M": 1, "L": 9})
        with pytest.raises(InvalidQuantity):
            normalizer.normalize_and_price([CartItem(product_id=product.id, quantity=2, size="M")])

    def test_missing_size(self, normalizer, add_product):
        product = add_product(sizes=["S"])
        with pytest.raises(InvalidSize):
            normalizer.normalize_and_price([CartItem(product_id=product.id, quantity=1)])

    def test_invalid_colour(self, normalizer, add_product):
        product = add_product(colors=["Red"])
        with pytest.raises(InvalidColor):
            normalizer.normalize_and_price([CartItem(product_id=product.id, quantity=1, color="Green")])

    def test_normalization_does_not_touch_stock(self, normalizer, add_product, stock_of):
        product = add_product(stock=4)
        normalizer.normalize_and_price([CartItem(product_id=product.id, quantity=4)])
        assert stock_of(product.id) == 4

    def test_from_mapping(self):
        item = CartItem.from_mapping({"product": " p1 ", "quantity": 2, "size": " M ", "gift_wrap": True})
        assert item == CartItem(product_id="p1", quantity=2, size="M", color="", gift_wrap=True)


class TestPricing:
    def test_items_and_flat_shipping(self, normalizer, add_product):
        shirt = add_product(price=333.335)
        scarf = add_product(price=99.99)

        priced = normalizer.normalize_and_price(
            [CartItem(product_id=shirt.id, quantity=3), CartItem(product_id=scarf.id, quantity=1)]
        )

        assert priced.pricing.items_price == 1100.0  # 1000.005 + 99.99 = 1099.995 -> 1100.00
        assert priced.pricing.shipping_price == 100.0
        assert priced.pricing.gift_wrap_price == 0.0
        assert priced.pricing.total_price == 1200.0
        assert priced.pricing.currency == "INR"

    def test_gift_wrap_per_flagged_unit(self, normalizer, add_product):
        shirt = add_product(price=500.0)
        scarf = add_product(price=200.0)

        priced = normalizer.normalize_and_price(
            [
                CartItem(product_id=shirt.id, quantity=2, gift_wrap=True),
                CartItem(product_id=scarf.id, quantity=1),
            ],
            CartOptions(gift_wrap=True),
        )

        assert priced.pricing.gift_wrap_price == 100.0
        assert priced.pricing.total_price == 1400.0

    def test_legacy_whole_cart_gift_wrap(self, normalizer, add_product):
        shirt = add_product(price=500.0)

        priced = normalizer.normalize_and_price(
            [CartItem(product_id=shirt.id, quantity=3)],
            CartOptions(gift_wrap=True),
        )

        assert priced.pricing.gift_wrap_price == 50.0
        assert priced.pricing.total_price == 1650.0

    def test_configured_fees(self, catalogue, add_product):
        normalizer = LineItemNormalizer(catalogue, shipping_flat=49.5, gift_wrap_flat=20.0, currency="USD")
        shirt = add_product(price=10.0)

        priced = normalizer.normalize_and_price([CartItem(product_id=shirt.id, quantity=1, gift_wrap=True)])

        assert priced.pricing.shipping_price == 49.5
        assert priced.pricing.gift_wrap_price == 20.0
        assert priced.pricing.total_price == 79.5
        assert priced.pricing.currency == "USD"

    def test_empty_lines_cost_nothing(self, normalizer):
        pricing = normalizer.price([], CartOptions(gift_wrap=True))
        assert pricing.total_price == 0.0
