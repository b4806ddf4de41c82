"""Tests for OrderQueries."""

import pytest
from ordering.checkout.pricing import CartItem
from ordering.order.order import PaymentInfo
from shared.customer import Customer
from shared.errors import AuthorizationError, NotFoundError


@pytest.fixture()
def place(placement, add_product):
    product = add_product(price=100.0, stock=50)

    def _place(customer_id, quantity=1):
        return placement.place_order(customer_id, [CartItem(product_id=product.id, quantity=quantity)])

    return _place


class TestGet:
    def test_owner_can_read(self, queries, place, customer):
        order = place(customer.id)
        assert queries.get(order.id, customer).id == order.id

    def test_other_customer_is_refused(self, queries, place, customer):
        order = place(customer.id)
        with pytest.raises(AuthorizationError):
            queries.get(order.id, Customer(id="someone-else"))

    def test_admin_can_read_any(self, queries, place, customer, admin):
        order = place(customer.id)
        assert queries.get(order.id, admin).customer_id == customer.id

    def test_missing(self, queries, customer):
        with pytest.raises(NotFoundError):
            queries.get("ghost", customer)


class TestListing:
    def test_list_for_customer_only_returns_own(self, queries, place):
        mine = [place("c1"), place("c1")]
        place("c2")

        orders = queries.list_for_customer("c1")

        assert {o.id for o in orders} == {o.id for o in mine}

    def test_list_all_totals_amounts(self, queries, place):
        place("c1", quantity=1)  # 100 + 100 shipping
        place("c2", quantity=3)  # 300 + 100 shipping

        listing = queries.list_all()

        assert len(listing.orders) == 2
        assert listing.total_amount == 600.0

    def test_find_by_payment_id_without_match(self, queries, place):
        place("c1")
        assert queries.find_by_payment_id("pay_missing") is None

    def test_listings_are_newest_first(self, queries, place):
        first = place("c1")
        second = place("c1")

        assert [o.id for o in queries.list_for_customer("c1")] == [second.id, first.id]
        assert [o.id for o in queries.list_all().orders] == [second.id, first.id]


class TestPaymentLookups:
    @pytest.fixture()
    def paid_order(self, placement, normalizer, add_product):
        product = add_product(price=100.0, stock=5)
        priced = normalizer.normalize_and_price([CartItem(product_id=product.id, quantity=1)])
        placement.persist_reserved("c1", priced, payment_info=PaymentInfo(status="pending"))
        return placement.persist_reserved(
            "c1",
            priced,
            payment_info=PaymentInfo(external_payment_id="pay_1", gateway_order_id="order_1", status="paid"),
        )

    def test_find_by_payment_id(self, queries, paid_order):
        assert queries.find_by_payment_id("pay_1").id == paid_order.id

    def test_find_by_gateway_order_id(self, queries, paid_order):
        assert queries.find_by_gateway_order_id("order_1").id == paid_order.id
        assert queries.find_by_gateway_order_id("order_2") is None
