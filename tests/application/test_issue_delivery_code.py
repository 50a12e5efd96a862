"""Integration tests for the IssueDeliveryCode use case."""

import pytest

from olm.application.issue_delivery_code import IssueDeliveryCodeHandler
from olm.domain.exceptions import EntityNotFoundError, ValidationError
from olm.domain.model.lifecycle import OrderStatus, Role
from olm.domain.model.value_objects import Actor
from tests.builders import ADMIN, CUSTOMER, PARTNER, Harness


def _handler(h: Harness) -> IssueDeliveryCodeHandler:
    return IssueDeliveryCodeHandler(h.repo, h.codes)


class TestIssueDeliveryCode:

    def test_customer_gets_code_that_completes_delivery(self):
        h = Harness()
        order = h.place()
        h.advance_to(order.id, OrderStatus.ON_THE_WAY)

        code = _handler(h).handle(order.id, CUSTOMER)
        dto = h.move(order.id, OrderStatus.DELIVERED, PARTNER, proof=code)

        assert dto.status == "delivered"

    def test_admin_may_issue(self):
        h = Harness()
        order = h.place()
        h.advance_to(order.id, OrderStatus.ASSIGNED)
        assert _handler(h).handle(order.id, ADMIN).isdigit()

    def test_other_customer_refused(self):
        h = Harness()
        order = h.place()
        h.advance_to(order.id, OrderStatus.ASSIGNED)
        with pytest.raises(ValidationError, match="does not belong"):
            _handler(h).handle(order.id, Actor(Role.CUSTOMER, "cust-9"))

    def test_partner_refused(self):
        h = Harness()
        order = h.place()
        h.advance_to(order.id, OrderStatus.ASSIGNED)
        with pytest.raises(ValidationError, match="Only the customer"):
            _handler(h).handle(order.id, PARTNER)

    def test_not_before_assignment(self):
        h = Harness()
        order = h.place()
        with pytest.raises(ValidationError, match="once a delivery partner is assigned"):
            _handler(h).handle(order.id, CUSTOMER)

    def test_unknown_order(self):
        h = Harness()
        with pytest.raises(EntityNotFoundError):
            _handler(h).handle("nope", CUSTOMER)
