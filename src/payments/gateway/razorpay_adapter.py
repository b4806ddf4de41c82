"""Razorpay payment gateway adapter.

Talks to the Razorpay REST API over httpx with HTTP basic auth
(key id / key secret). Transport failures and non-2xx answers surface as
``GatewayError`` so callers only ever deal with the checkout taxonomy.
"""

import httpx
import structlog

from payments.gateway.port import GatewayOrder, GatewayPayment, PaymentGateway
from shared.errors import GatewayError

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://api.razorpay.com/v1"


class RazorpayGateway(PaymentGateway):
    """Production Razorpay gateway adapter."""

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not key_id or not key_secret:
            raise GatewayError("Razorpay credentials are not configured")
        self.key_id = key_id
        self.client = httpx.Client(
            base_url=base_url.rstrip("/"),
            auth=(key_id, key_secret),
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            response = self.client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Razorpay request rejected",
                path=path,
                status_code=exc.response.status_code,
                body=exc.response.text[:500],
            )
            raise GatewayError(f"Payment gateway returned {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.warning("Razorpay request failed", path=path, error=str(exc))
            raise GatewayError("Payment gateway is unreachable") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise GatewayError("Payment gateway returned an unreadable response") from exc

    def create_order(
        self,
        amount: int,
        currency: str,
        receipt: str,
        metadata: dict | None = None,
    ) -> GatewayOrder:
        data = self._request(
            "POST",
            "/orders",
            json={
                "amount": amount,
                "currency": currency,
                "receipt": receipt,
                "notes": {key: str(value) for key, value in (metadata or {}).items()},
            },
        )
        return GatewayOrder(
            gateway_order_id=data["id"],
            amount=int(data.get("amount", amount)),
            currency=data.get("currency", currency),
            receipt=data.get("receipt", receipt),
            status=data.get("status", "created"),
        )

    def fetch_payment(self, payment_id: str) -> GatewayPayment:
        data = self._request("GET", f"/payments/{payment_id}")
        return GatewayPayment(
            payment_id=data.get("id", payment_id),
            status=str(data.get("status", "")).lower(),
            method=data.get("method"),
            gateway_order_id=data.get("order_id"),
            amount=data.get("amount"),
            currency=data.get("currency"),
            raw=data,
        )
