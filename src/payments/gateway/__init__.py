"""Payment gateway factory.

Builds the adapter named by settings:
- FakeGateway for development and testing
- RazorpayGateway for production
"""

from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import PaymentGateway
from payments.gateway.razorpay_adapter import RazorpayGateway
from shared.config import Settings


def build_gateway(settings: Settings) -> PaymentGateway:
    if settings.payment_gateway == "razorpay":
        return RazorpayGateway(
            key_id=settings.razorpay_key_id,
            key_secret=settings.razorpay_secret,
            base_url=settings.razorpay_base_url,
        )
    if settings.payment_gateway == "fake":
        return FakeGateway()
    raise ValueError(f"Unknown payment gateway: {settings.payment_gateway}")
