"""Runtime settings read from the environment."""

import os
from dataclasses import dataclass


def _env(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


@dataclass(frozen=True)
class Settings:
    env: str = "development"
    database_url: str | None = None
    payment_gateway: str = "fake"
    razorpay_key_id: str = ""
    razorpay_secret: str = ""
    razorpay_webhook_secret: str = ""
    razorpay_base_url: str = "https://api.razorpay.com/v1"
    currency: str = "INR"
    shipping_flat: float = 100.0
    gift_wrap_flat: float = 50.0
    admin_email: str = ""
    notification_workers: int = 2
    payment_claim_ttl: int = 300
    log_level: str = ""
    log_dir: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            env=_env("CHECKOUT_ENV", "development").lower(),
            database_url=_env("DATABASE_URL") or None,
            payment_gateway=_env("PAYMENT_GATEWAY", "fake").lower(),
            razorpay_key_id=_env("RAZORPAY_API_KEY"),
            razorpay_secret=_env("RAZORPAY_SECRET_KEY"),
            razorpay_webhook_secret=_env("RAZORPAY_WEBHOOK_SECRET"),
            razorpay_base_url=_env("RAZORPAY_BASE_URL", "https://api.razorpay.com/v1"),
            currency=_env("CHECKOUT_CURRENCY", "INR").upper(),
            shipping_flat=float(_env("SHIPPING_FLAT", "100")),
            gift_wrap_flat=float(_env("GIFT_WRAP_FLAT", "50")),
            admin_email=_env("ADMIN_EMAIL").lower(),
            notification_workers=int(_env("NOTIFICATION_WORKERS", "2")),
            payment_claim_ttl=int(_env("PAYMENT_CLAIM_TTL", "300")),
            log_level=_env("LOG_LEVEL").upper(),
            log_dir=_env("LOG_DIR") or None,
        )

    @property
    def is_production(self) -> bool:
        return self.env == "production"
