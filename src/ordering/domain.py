"""Ordering bounded context: order placement, lifecycle and order queries."""

from protean.domain import Domain

ordering = Domain(name="ordering")
