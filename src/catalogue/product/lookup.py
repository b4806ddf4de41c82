"""Catalogue read path used by checkout."""

from collections.abc import Iterable

from catalogue.domain import catalogue
from catalogue.product.product import Product


@catalogue.repository(part_of=Product)
class ProductRepository:
    def find_by_ids(self, ids: list[str]) -> list[Product]:
        if not ids:
            return []
        return self.query.filter(id__in=ids).limit(None).all().items


class ProductCatalogue:
    """Read-only view over products, plus seeding for dev and tests."""

    def find_products_by_ids(self, ids: Iterable[str]) -> list[Product]:
        """Fetch every referenced product once; unknown ids are omitted."""
        product_ids = list(dict.fromkeys(str(i).strip() for i in ids if str(i or "").strip()))
        with catalogue.domain_context():
            found = {p.id: p for p in catalogue.repository_for(Product).find_by_ids(product_ids)}
        return [found[pid] for pid in product_ids if pid in found]

    def get(self, product_id: str) -> Product | None:
        with catalogue.domain_context():
            return catalogue.repository_for(Product).get_or_none(str(product_id))

    def add(self, product: Product) -> Product:
        with catalogue.domain_context():
            return catalogue.repository_for(Product).add(product)
