import os
from pathlib import Path
from uuid import uuid4

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Pins the environment, then initializes every checkout domain on the
    in-memory provider.
    """
    os.environ["CHECKOUT_ENV"] = session.config.option.env
    os.environ.pop("DATABASE_URL", None)
    os.environ.setdefault("PAYMENT_GATEWAY", "fake")

    from container import init_domains
    from shared.config import Settings

    init_domains(Settings.from_env())


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from container import DOMAINS
    from shared.db import reset_data

    for domain in DOMAINS:
        reset_data(domain)


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------
@pytest.fixture()
def catalogue():
    from catalogue.product.lookup import ProductCatalogue

    return ProductCatalogue()


@pytest.fixture()
def add_product(catalogue):
    """Factory that seeds a product and returns it."""
    from catalogue.product.product import Product

    def _add(**overrides):
        fields = {
            "id": f"prod-{uuid4().hex[:8]}",
            "name": "Linen Shirt",
            "price": 1000.0,
            "stock": 10,
        }
        fields.update(overrides)
        return catalogue.add(Product(**fields))

    return _add


@pytest.fixture()
def stock_of(catalogue):
    """Read the current stock (and optionally one size bucket) of a product."""

    def _read(product_id, size=None):
        product = catalogue.get(product_id)
        if size is None:
            return product.stock
        return product.stock, product.size_buckets[size]

    return _read


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------
@pytest.fixture()
def engine():
    from inventory.stock.reservation import ReservationEngine

    return ReservationEngine()


@pytest.fixture()
def normalizer(catalogue):
    from ordering.checkout.pricing import LineItemNormalizer

    return LineItemNormalizer(catalogue, shipping_flat=100.0, gift_wrap_flat=50.0)


@pytest.fixture()
def placement(normalizer, engine):
    from ordering.order.placement import OrderPlacement

    return OrderPlacement(normalizer, engine)


@pytest.fixture()
def lifecycle(engine):
    from ordering.order.lifecycle import OrderLifecycle

    return OrderLifecycle(engine)


@pytest.fixture()
def queries():
    from ordering.order.queries import OrderQueries

    return OrderQueries()


@pytest.fixture()
def gateway():
    from payments.gateway.fake_adapter import FakeGateway

    return FakeGateway()


@pytest.fixture()
def payment_secret():
    return "test-key-secret"


@pytest.fixture()
def webhook_secret():
    return "test-webhook-secret"


@pytest.fixture()
def verifier(gateway, normalizer, placement, payment_secret):
    from payments.payment.verification import PaymentVerifier

    return PaymentVerifier(
        gateway,
        normalizer,
        placement,
        secret=payment_secret,
        key_id="rzp_test_key",
    )


@pytest.fixture()
def customer():
    from shared.customer import Customer

    return Customer(id="cust-001", name="Asha Rao", email="asha@example.com")


@pytest.fixture()
def admin():
    from shared.customer import Customer

    return Customer(id="admin-001", name="Store Admin", email="admin@example.com", role="admin")


@pytest.fixture()
def email():
    from notifications.channel.fake_email import FakeEmailAdapter

    return FakeEmailAdapter()


@pytest.fixture()
def settings(payment_secret, webhook_secret):
    from shared.config import Settings

    return Settings(
        env="test",
        payment_gateway="fake",
        razorpay_key_id="rzp_test_key",
        razorpay_secret=payment_secret,
        razorpay_webhook_secret=webhook_secret,
        admin_email="orders@shop.example",
    )


@pytest.fixture()
def container(settings, gateway, email):
    from container import build_container

    container = build_container(settings, gateway=gateway, email=email)
    yield container
    container.close()


# ---------------------------------------------------------------------------
# Order records
# ---------------------------------------------------------------------------
@pytest.fixture()
def stored_order():
    """Read an order straight from its repository (None when absent)."""
    from ordering.domain import ordering
    from ordering.order.order import Order

    def _read(order_id):
        with ordering.domain_context():
            return ordering.repository_for(Order).get_or_none(order_id)

    return _read


@pytest.fixture()
def stored_orders():
    """Every stored order, newest first."""
    from ordering.domain import ordering
    from ordering.order.order import Order

    def _read():
        with ordering.domain_context():
            return ordering.repository_for(Order).newest_first()

    return _read


@pytest.fixture()
def edit_order():
    """Apply ``change`` to a stored order behind the services' back and save it."""
    from ordering.domain import ordering
    from ordering.order.order import Order

    def _edit(order_id, change):
        with ordering.domain_context():
            repository = ordering.repository_for(Order)
            order = repository.get(order_id)
            change(order)
            return repository.add(order)

    return _edit
