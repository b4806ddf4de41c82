"""Tests for gateway port/adapter integration."""

import json

import httpx
import pytest
from payments.gateway import build_gateway
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import GatewayOrder, GatewayPayment
from payments.gateway.razorpay_adapter import RazorpayGateway
from shared.config import Settings
from shared.errors import GatewayError


class TestFakeGateway:
    def test_create_order(self):
        gateway = FakeGateway()
        order = gateway.create_order(amount=120000, currency="INR", receipt="rcpt_1", metadata={"user_id": "c1"})
        assert isinstance(order, GatewayOrder)
        assert order.gateway_order_id.startswith("order_fake_")
        assert order.amount == 120000

    def test_default_payment_captured(self):
        payment = FakeGateway().fetch_payment("pay_1")
        assert isinstance(payment, GatewayPayment)
        assert payment.status == "captured"
        assert payment.successful is True

    def test_configured_status(self):
        gateway = FakeGateway()
        gateway.configure(payment_status="failed")
        assert gateway.fetch_payment("pay_1").successful is False

    def test_pinned_payment(self):
        gateway = FakeGateway()
        gateway.set_payment("pay_2", status="authorized", amount=500)
        payment = gateway.fetch_payment("pay_2")
        assert (payment.status, payment.amount, payment.successful) == ("authorized", 500, True)

    def test_unreachable(self):
        gateway = FakeGateway()
        gateway.configure(reachable=False)
        with pytest.raises(GatewayError):
            gateway.fetch_payment("pay_1")

    def test_call_logging(self):
        gateway = FakeGateway()
        gateway.create_order(amount=100, currency="INR", receipt="r")
        gateway.fetch_payment("pay_1")
        assert [call["method"] for call in gateway.calls] == ["create_order", "fetch_payment"]


def _razorpay(handler) -> RazorpayGateway:
    return RazorpayGateway(
        key_id="rzp_test_key",
        key_secret="rzp_test_secret",
        base_url="https://api.razorpay.test/v1",
        transport=httpx.MockTransport(handler),
    )


class TestRazorpayGateway:
    def test_create_order_posts_minor_units_with_basic_auth(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"id": "order_abc", "amount": 54900, "currency": "INR", "receipt": "rcpt_x", "status": "created"},
            )

        order = _razorpay(handler).create_order(
            amount=54900, currency="INR", receipt="rcpt_x", metadata={"user_id": "c1", "item_count": 2}
        )

        assert order == GatewayOrder(
            gateway_order_id="order_abc", amount=54900, currency="INR", receipt="rcpt_x", status="created"
        )
        assert seen["url"] == "https://api.razorpay.test/v1/orders"
        assert seen["auth"].startswith("Basic ")
        assert seen["body"]["notes"] == {"user_id": "c1", "item_count": "2"}

    def test_fetch_payment(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/payments/pay_123"
            return httpx.Response(
                200,
                json={"id": "pay_123", "status": "captured", "method": "upi", "order_id": "order_abc", "amount": 100},
            )

        payment = _razorpay(handler).fetch_payment("pay_123")

        assert payment.status == "captured"
        assert payment.method == "upi"
        assert payment.gateway_order_id == "order_abc"
        assert payment.amount == 100

    def test_error_status_becomes_gateway_error(self):
        gateway = _razorpay(lambda request: httpx.Response(401, json={"error": {"code": "BAD_REQUEST_ERROR"}}))
        with pytest.raises(GatewayError) as exc_info:
            gateway.fetch_payment("pay_1")
        assert exc_info.value.status_code == 503

    def test_transport_failure_becomes_gateway_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(GatewayError, match="unreachable"):
            _razorpay(handler).create_order(amount=1, currency="INR", receipt="r")

    def test_unreadable_body(self):
        gateway = _razorpay(lambda request: httpx.Response(200, content=b"<html>"))
        with pytest.raises(GatewayError):
            gateway.fetch_payment("pay_1")

    def test_missing_credentials(self):
        with pytest.raises(GatewayError):
            RazorpayGateway(key_id="", key_secret="")


class TestBuildGateway:
    def test_fake_by_default(self):
        assert isinstance(build_gateway(Settings()), FakeGateway)

    def test_razorpay(self):
        gateway = build_gateway(Settings(payment_gateway="razorpay", razorpay_key_id="k", razorpay_secret="s"))
        assert isinstance(gateway, RazorpayGateway)
        gateway.close()

    def test_unknown(self):
        with pytest.raises(ValueError):
            build_gateway(Settings(payment_gateway="paypal"))
