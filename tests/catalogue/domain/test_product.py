"""Tests for product size/colour resolution and image selection."""

import pytest
from catalogue.product.product import PLACEHOLDER_IMAGE, Product
from shared.errors import InvalidColor, InvalidSize, ValidationError


def _make_product(**overrides) -> Product:
    fields = {"id": "prod-1", "name": "Kurta", "price": 799.0, "stock": 5}
    fields.update(overrides)
    return Product(**fields)


class TestSizeResolution:
    def test_no_sizes_passes_request_through_trimmed(self):
        product = _make_product()
        assert product.resolve_size("  XL ") == "XL"
        assert product.resolve_size(None) == ""

    def test_case_insensitive_match_returns_canonical_label(self):
        product = _make_product(sizes=["S", "M", "L"])
        assert product.resolve_size(" m ") == "M"

    def test_size_required_when_vocabulary_declared(self):
        product = _make_product(sizes=["S", "M"])
        with pytest.raises(InvalidSize) as exc_info:
            product.resolve_size("")
        assert "size" in exc_info.value.messages
        assert "Please select size" in exc_info.value.message

    def test_no_prefix_matching(self):
        product = _make_product(sizes=["XL"])
        with pytest.raises(InvalidSize):
            product.resolve_size("X")

    def test_bucket_labels_act_as_vocabulary(self):
        product = _make_product(size_buckets={"M": 2, "L": 1})
        assert product.requires_size() is True
        assert product.resolve_size("l") == "L"
        with pytest.raises(InvalidSize):
            product.resolve_size("S")

    def test_declared_sizes_win_over_buckets(self):
        product = _make_product(sizes=["S", "M"], size_buckets={"M": 1})
        assert product.resolve_size("S") == "S"
        assert product.bucket_for("S") is None
        assert product.bucket_for("m") == "M"


class TestColorResolution:
    def test_union_of_colors_and_image_groups(self):
        product = _make_product(colors=["Red"], color_images={"Blue": ["/b.png"], "Red": ["/r.png"]})
        assert product.color_names == ["Red", "Blue"]
        assert product.resolve_color("blue") == "Blue"

    def test_color_required_when_declared(self):
        product = _make_product(colors=["Red"])
        with pytest.raises(InvalidColor) as exc_info:
            product.resolve_color("")
        assert "color" in exc_info.value.messages

    def test_unknown_color_rejected(self):
        product = _make_product(color_images={"Blue": ["/b.png"]})
        with pytest.raises(InvalidColor):
            product.resolve_color("Green")

    def test_no_colors_passes_through(self):
        assert _make_product().resolve_color(" Teal ") == "Teal"


class TestRepresentativeImage:
    def test_prefers_colour_group_image(self):
        product = _make_product(images=["/main.png"], color_images={"Blue": ["/blue-1.png", "/blue-2.png"]})
        assert product.representative_image("blue") == "/blue-1.png"

    def test_falls_back_to_first_product_image(self):
        product = _make_product(images=["/main.png", "/alt.png"], color_images={"Blue": []})
        assert product.representative_image("Blue") == "/main.png"

    def test_placeholder_when_no_images(self):
        assert _make_product().representative_image() == PLACEHOLDER_IMAGE


class TestStockMovements:
    def test_take_and_put_back_move_stock_and_bucket_together(self):
        product = _make_product(stock=5, size_buckets={"M": 3, "L": 2})

        product.take(2, "M")
        assert (product.stock, product.size_buckets) == (3, {"M": 1, "L": 2})

        product.put_back(2, "M")
        assert (product.stock, product.size_buckets) == (5, {"M": 3, "L": 2})

    def test_take_without_bucket_leaves_buckets_alone(self):
        product = _make_product(stock=5, size_buckets={"M": 3})
        product.take(1)
        assert product.stock == 4
        assert product.pieces_in("M") == 3

    def test_bucket_cannot_go_negative(self):
        product = _make_product(stock=5, size_buckets={"M": 1})
        with pytest.raises(ValidationError) as exc_info:
            product.take(2, "M")
        assert "size_buckets" in exc_info.value.messages

    def test_stock_cannot_go_negative(self):
        from protean.exceptions import ValidationError as ProteanValidationError

        product = _make_product(stock=1)
        with pytest.raises(ProteanValidationError):
            product.take(2)
