"""Integration tests for the RateOrder use case."""

import pytest

from olm.application.rate_order import RateOrderHandler
from olm.domain.exceptions import EntityNotFoundError, ValidationError
from olm.domain.model.lifecycle import OrderStatus
from olm.domain.model.order import RatingKind
from tests.builders import CUSTOMER, Harness
from tests.fakes import FakeOrderRepository


def _delivered(h: Harness):
    order = h.place()
    h.advance_to(order.id, OrderStatus.DELIVERED)
    return order


class RatedMeanwhileRepository(FakeOrderRepository):
    """Lets another store rating land just before the first write."""

    def __init__(self) -> None:
        super().__init__()
        self.interfered = False

    def update_status(self, order, expected):
        if not self.interfered:
            self.interfered = True
            other = self.get_by_id(order.id)
            before = other.revision
            other.rate(RatingKind.STORE, 1, CUSTOMER)
            assert super().update_status(other, before)
        return super().update_status(order, expected)


class TestRateOrder:

    def test_rates_store_then_delivery(self):
        h = Harness()
        order = _delivered(h)
        handler = RateOrderHandler(h.repo, clock=h.clock)

        handler.handle(order.id, "store", 5, CUSTOMER, review="Fresh")
        dto = handler.handle(order.id, "delivery", 4, CUSTOMER)

        assert dto.store_rating == 5
        assert dto.delivery_rating == 4
        stored = h.repo.get_by_id(order.id)
        assert stored.store_rating.review == "Fresh"
        assert len(stored.status_history) == 8

    def test_undelivered_order_refused(self):
        h = Harness()
        order = h.place()
        h.advance_to(order.id, OrderStatus.ON_THE_WAY)
        with pytest.raises(ValidationError, match="Can only rate delivered orders"):
            RateOrderHandler(h.repo).handle(order.id, "store", 5, CUSTOMER)
        assert h.repo.get_by_id(order.id).store_rating is None

    def test_second_rating_of_same_kind_refused(self):
        h = Harness()
        order = _delivered(h)
        handler = RateOrderHandler(h.repo)
        handler.handle(order.id, "store", 5, CUSTOMER)
        with pytest.raises(ValidationError, match="already rated"):
            handler.handle(order.id, "store", 2, CUSTOMER)

    def test_concurrent_rating_wins_once(self):
        h = Harness()
        order = _delivered(h)
        repo = RatedMeanwhileRepository()
        repo.save(h.repo.get_by_id(order.id))

        with pytest.raises(ValidationError, match="already rated"):
            RateOrderHandler(repo).handle(order.id, "store", 5, CUSTOMER)

        assert repo.get_by_id(order.id).store_rating.score == 1

    def test_unknown_order(self):
        h = Harness()
        with pytest.raises(EntityNotFoundError):
            RateOrderHandler(h.repo).handle("nope", "store", 5, CUSTOMER)
