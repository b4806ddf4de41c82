"""ShopCheckout database management CLI.

Creates or drops the tables of every checkout domain behind DATABASE_URL and
seeds products from a JSON file (a list of product records).

Usage:
    python src/manage.py setup-db
    python src/manage.py drop-db
    python src/manage.py seed-products products.json
"""

import argparse
import json
import sys
from pathlib import Path

from catalogue.domain import catalogue as catalogue_domain
from catalogue.product.lookup import ProductCatalogue
from catalogue.product.product import Product
from container import DOMAINS, init_domains
from shared.config import Settings
from shared.db import drop_db, setup_db


def _init() -> None:
    settings = Settings.from_env()
    if not settings.database_url:
        print("DATABASE_URL is not set; nothing to manage for the in-memory provider.")
        sys.exit(1)
    init_domains(settings)


def setup_database():
    _init()
    for domain in DOMAINS:
        print(f"Creating tables for {domain.name}...")
        setup_db(domain)
    print("Done.")


def drop_database():
    _init()
    for domain in DOMAINS:
        print(f"Dropping tables for {domain.name}...")
        drop_db(domain)
    print("Done.")


def seed_products(path: Path):
    _init()
    for domain in DOMAINS:
        setup_db(domain)
    catalogue = ProductCatalogue()

    added = skipped = 0
    for record in json.loads(path.read_text(encoding="utf-8")):
        if record.get("id") and catalogue.get(record["id"]) is not None:
            skipped += 1
            continue
        with catalogue_domain.domain_context():
            product = Product(**record)
        catalogue.add(product)
        added += 1
    print(f"Seeded {added} products ({skipped} already present).")


def main():
    parser = argparse.ArgumentParser(description="ShopCheckout database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create the tables of every domain")
    subparsers.add_parser("drop-db", help="Drop the tables of every domain")
    seed_parser = subparsers.add_parser("seed-products", help="Insert products from a JSON file")
    seed_parser.add_argument("path", type=Path)

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "seed-products":
        seed_products(args.path)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
