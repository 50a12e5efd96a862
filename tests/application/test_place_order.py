"""Integration tests for the PlaceOrder (checkout) use case."""

import pytest

from olm.application.dto import OrderItemSpec
from olm.application.place_order import PlaceOrderHandler
from olm.domain.exceptions import ValidationError
from olm.domain.model.lifecycle import OrderStatus
from tests.fakes import FakeOrderRepository


def _handler(**kwargs):
    repo = FakeOrderRepository()
    return PlaceOrderHandler(repo, **kwargs), repo


def _spec(name="Milk", qty=2, price="45.00"):
    return OrderItemSpec(product_id=name.lower(), product_name=name, quantity=qty, unit_price=price)


class TestPlaceOrder:

    def test_small_order_pays_delivery_fee(self):
        handler, repo = _handler(delivery_fee="30", free_delivery_above="500")
        dto = handler.handle("cust-1", "store-1", "vend-1", [_spec()])

        assert dto.status == "pending"
        assert dto.subtotal == "INR 90.00"
        assert dto.delivery_fee == "INR 30.00"
        assert dto.total == "INR 120.00"

        stored = repo.get_by_id(dto.id)
        assert stored.status == OrderStatus.PENDING
        assert len(stored.status_history) == 1

    def test_free_delivery_at_threshold(self):
        handler, _ = _handler(delivery_fee="30", free_delivery_above="500")
        dto = handler.handle("cust-1", "store-1", "vend-1", [_spec("Rice", 1, "500")])
        assert dto.delivery_fee == "INR 0.00"
        assert dto.total == "INR 500.00"

    def test_tax_and_discount(self):
        handler, _ = _handler(delivery_fee="0", tax_rate="0.05")
        dto = handler.handle(
            "cust-1", "store-1", "vend-1", [_spec("Oil", 1, "200")], discount="15"
        )
        assert dto.tax == "INR 10.00"
        assert dto.discount == "INR 15.00"
        assert dto.total == "INR 195.00"

    def test_empty_cart_rejected(self):
        handler, _ = _handler()
        with pytest.raises(ValidationError, match="at least one item"):
            handler.handle("cust-1", "store-1", "vend-1", [])

    def test_bad_quantity_rejected(self):
        handler, _ = _handler()
        with pytest.raises(ValidationError, match="must be positive"):
            handler.handle("cust-1", "store-1", "vend-1", [_spec(qty=0)])

    def test_note_is_kept(self):
        handler, repo = _handler()
        dto = handler.handle("cust-1", "store-1", "vend-1", [_spec()], customer_note=" Ring twice ")
        assert repo.get_by_id(dto.id).customer_note == "Ring twice"
