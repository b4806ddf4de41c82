"""HMAC-SHA256 signatures used by the gateway.

Checkout confirmations are signed over ``"<gateway order id>|<payment id>"``
with the key secret; webhooks are signed over the raw request body with the
webhook secret. Both are lowercase hex digests and are compared in constant
time.
"""

import hashlib
import hmac


def _digest(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def checkout_signature(secret: str, gateway_order_id: str, payment_id: str) -> str:
    return _digest(secret, f"{gateway_order_id}|{payment_id}".encode())


def verify_checkout_signature(secret: str, gateway_order_id: str, payment_id: str, signature: str) -> bool:
    expected = checkout_signature(secret, gateway_order_id, payment_id)
    return hmac.compare_digest(expected.encode(), str(signature or "").strip().lower().encode("utf-8"))


def webhook_signature(secret: str, raw_body: bytes) -> str:
    return _digest(secret, raw_body)


def verify_webhook_signature(secret: str, raw_body: bytes, signature: str) -> bool:
    expected = webhook_signature(secret, raw_body)
    return hmac.compare_digest(expected.encode(), str(signature or "").strip().lower().encode("utf-8"))
