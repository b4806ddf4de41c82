"""Composition root: builds every checkout service with explicit collaborators."""

from dataclasses import dataclass

import structlog
from protean.domain import Domain

from catalogue.domain import catalogue as catalogue_domain
from catalogue.product.lookup import ProductCatalogue
from inventory.stock.reservation import ReservationEngine
from notifications.channel.email_port import EmailPort
from notifications.channel.fake_email import FakeEmailAdapter
from notifications.dispatch import NotificationDispatcher, OrderNotifier
from ordering.checkout.pricing import LineItemNormalizer
from ordering.domain import ordering
from ordering.order.lifecycle import OrderLifecycle
from ordering.order.placement import OrderPlacement
from ordering.order.queries import OrderQueries
from payments.domain import payments
from payments.gateway import build_gateway
from payments.gateway.port import PaymentGateway
from payments.payment.verification import PaymentVerifier
from payments.payment.webhook import WebhookProcessor
from shared.config import Settings
from shared.db import init_domain

logger = structlog.get_logger(__name__)

DOMAINS: tuple[Domain, ...] = (catalogue_domain, ordering, payments)

_initialized: set[str] = set()


def init_domains(settings: Settings) -> None:
    """Initialize every bounded context once per process."""
    for domain in DOMAINS:
        if domain.name in _initialized:
            continue
        init_domain(domain, settings)
        _initialized.add(domain.name)
        logger.debug("Domain initialized", domain=domain.name)


@dataclass
class Container:
    settings: Settings
    catalogue: ProductCatalogue
    engine: ReservationEngine
    normalizer: LineItemNormalizer
    placement: OrderPlacement
    lifecycle: OrderLifecycle
    queries: OrderQueries
    gateway: PaymentGateway
    verifier: PaymentVerifier
    webhooks: WebhookProcessor
    email: EmailPort
    dispatcher: NotificationDispatcher

    def close(self) -> None:
        self.dispatcher.shutdown(wait=True)


def build_container(
    settings: Settings | None = None,
    gateway: PaymentGateway | None = None,
    email: EmailPort | None = None,
) -> Container:
    """Wire the services. Any collaborator may be passed in to override the default."""
    settings = settings or Settings.from_env()
    init_domains(settings)
    gateway = gateway or build_gateway(settings)
    email = email or FakeEmailAdapter()

    catalogue = ProductCatalogue()
    engine = ReservationEngine()
    normalizer = LineItemNormalizer(
        catalogue,
        shipping_flat=settings.shipping_flat,
        gift_wrap_flat=settings.gift_wrap_flat,
        currency=settings.currency,
    )
    placement = OrderPlacement(normalizer, engine)
    lifecycle = OrderLifecycle(engine)
    verifier = PaymentVerifier(
        gateway,
        normalizer,
        placement,
        secret=settings.razorpay_secret,
        key_id=settings.razorpay_key_id,
        provider=settings.payment_gateway,
        claim_ttl=settings.payment_claim_ttl,
    )
    dispatcher = NotificationDispatcher(
        OrderNotifier(email, admin_email=settings.admin_email),
        max_workers=settings.notification_workers,
    )

    return Container(
        settings=settings,
        catalogue=catalogue,
        engine=engine,
        normalizer=normalizer,
        placement=placement,
        lifecycle=lifecycle,
        queries=OrderQueries(),
        gateway=gateway,
        verifier=verifier,
        webhooks=WebhookProcessor(lifecycle, settings.razorpay_webhook_secret),
        email=email,
        dispatcher=dispatcher,
    )
