"""Product aggregate as the checkout core sees it.

The catalogue owns products; checkout reads them and, through the
reservation engine only, changes ``stock`` and ``size_buckets``.

Variant vocabulary:
    sizes:        ordered size labels ("XS", "S", "M", ...)
    size_buckets: pieces held per size, a subdivision of ``stock``
    colors:       directly declared colour names
    color_images: colour group name -> image URLs
"""

from protean import invariant
from protean.fields import Dict, Float, Integer, List, String

from catalogue.domain import catalogue
from shared.errors import InvalidColor, InvalidSize, ValidationError

PLACEHOLDER_IMAGE = "/images/placeholder.png"


def _normalize_key(value) -> str:
    return str(value or "").strip().lower()


def _clean(values) -> list[str]:
    return [label for label in (str(value or "").strip() for value in values or []) if label]


@catalogue.aggregate
class Product:
    """Product aggregate root."""

    name: String(required=True, max_length=255)
    price: Float(required=True, min_value=0.0)
    stock: Integer(default=0, min_value=0)
    images: List(content_type=String)
    sizes: List(content_type=String)
    size_buckets: Dict()
    colors: List(content_type=String)
    color_images: Dict()

    @invariant.post
    def size_buckets_cannot_be_negative(self):
        for size, pieces in (self.size_buckets or {}).items():
            if not isinstance(pieces, int) or pieces < 0:
                raise ValidationError(f"Size {size} must hold a whole, non-negative count", field="size_buckets")

    # -------------------------------------------------------------------
    # Sizes
    # -------------------------------------------------------------------
    @property
    def size_labels(self) -> list[str]:
        return _clean(self.sizes)

    @property
    def bucket_labels(self) -> list[str]:
        return _clean((self.size_buckets or {}).keys())

    def requires_size(self) -> bool:
        return bool(self.size_labels or self.bucket_labels)

    def resolve_size(self, requested) -> str:
        """Return the canonical size label for a requested size.

        The declared vocabulary wins over the bucket labels. Matching is
        case-insensitive and exact; products without sizes pass the request
        through unchanged.
        """
        requested_size = str(requested or "").strip()
        vocabulary = self.size_labels or self.bucket_labels
        if not vocabulary:
            return requested_size

        if not requested_size:
            raise InvalidSize(f"Please select size for {self.name}")

        matched = next((label for label in vocabulary if _normalize_key(label) == _normalize_key(requested_size)), None)
        if matched is None:
            raise InvalidSize(f"Invalid size selected for {self.name}")
        return matched

    def bucket_for(self, size) -> str | None:
        """Return the bucket key holding pieces for ``size``, if any."""
        if not _normalize_key(size):
            return None
        return next((key for key in self.size_buckets or {} if _normalize_key(key) == _normalize_key(size)), None)

    def pieces_in(self, bucket: str) -> int:
        return (self.size_buckets or {}).get(bucket, 0)

    def take(self, quantity: int, bucket: str | None = None) -> None:
        """Remove ``quantity`` pieces from stock and, when given, from one size bucket."""
        self.stock = self.stock - quantity
        if bucket is not None:
            self.size_buckets = {**self.size_buckets, bucket: self.size_buckets[bucket] - quantity}

    def put_back(self, quantity: int, bucket: str | None = None) -> None:
        self.stock = self.stock + quantity
        if bucket is not None:
            self.size_buckets = {**self.size_buckets, bucket: self.size_buckets[bucket] + quantity}

    # -------------------------------------------------------------------
    # Colours
    # -------------------------------------------------------------------
    @property
    def color_names(self) -> list[str]:
        names: list[str] = []
        for name in _clean(self.colors) + _clean((self.color_images or {}).keys()):
            if name not in names:
                names.append(name)
        return names

    def resolve_color(self, requested) -> str:
        requested_color = str(requested or "").strip()
        available = self.color_names
        if not available:
            return requested_color

        if not requested_color:
            raise InvalidColor(f"Please select colour for {self.name}")

        matched = next((name for name in available if name.lower() == requested_color.lower()), None)
        if matched is None:
            raise InvalidColor(f"Invalid colour selected for {self.name}")
        return matched

    def representative_image(self, color: str = "") -> str:
        """Image shown on the order line: colour group first, then product images."""
        if color:
            for group, urls in (self.color_images or {}).items():
                if _normalize_key(group) == _normalize_key(color) and urls:
                    return urls[0]
        if self.images:
            return self.images[0]
        return PLACEHOLDER_IMAGE
