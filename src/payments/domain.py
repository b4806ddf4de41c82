"""Payments bounded context: payment claims and gateway webhook events."""

from protean.domain import Domain

payments = Domain(name="payments")
