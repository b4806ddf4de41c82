"""Catalogue bounded context: the products checkout prices and reserves."""

from protean.domain import Domain

catalogue = Domain(name="catalogue")
