"""Shared builders for tests."""

from __future__ import annotations

from olm.application.dto import TransitionMetadata
from olm.application.request_transition import RequestTransitionHandler
from olm.domain.model.lifecycle import OrderStatus, Role
from olm.domain.model.order import Order, OrderLineItem
from olm.domain.model.value_objects import Actor, Money, Quantity
from olm.domain.service.delivery_codes import DeliveryCodeService
from tests.fakes import (
    FakeDeliveryCodeStore,
    FakeOrderRepository,
    FixedClock,
    RecordingNotifier,
)

CUSTOMER = Actor(Role.CUSTOMER, "cust-1")
VENDOR = Actor(Role.VENDOR, "vend-1")
PARTNER = Actor(Role.DELIVERY_PARTNER, "rider-1")
OTHER_PARTNER = Actor(Role.DELIVERY_PARTNER, "rider-2")
ADMIN = Actor(Role.ADMIN, "admin-1")


def make_item(name: str = "Milk", qty: int = 2, price: str = "45.00") -> OrderLineItem:
    return OrderLineItem(
        product_id=name.lower(),
        product_name=name,
        quantity=Quantity(qty),
        unit_price=Money.of(price),
    )


def make_order(**overrides) -> Order:
    kwargs = dict(
        customer_id=CUSTOMER.user_id,
        store_id="store-1",
        vendor_id=VENDOR.user_id,
        items=[make_item()],
    )
    kwargs.update(overrides)
    return Order.create(**kwargs)


class Harness:
    """A transition handler wired to in-memory fakes."""

    def __init__(self, notifier=None, max_active_deliveries: int = 5) -> None:
        self.clock = FixedClock()
        self.repo = FakeOrderRepository()
        self.codes = DeliveryCodeService(FakeDeliveryCodeStore(self.clock), clock=self.clock)
        self.notifier = notifier or RecordingNotifier()
        self.handler = RequestTransitionHandler(
            order_repo=self.repo,
            notifier=self.notifier,
            delivery_codes=self.codes,
            max_active_deliveries=max_active_deliveries,
            clock=self.clock,
        )

    def place(self, **overrides) -> Order:
        order = make_order(at=self.clock(), **overrides)
        self.repo.save(order)
        return order

    def move(self, order_id: str, target, actor: Actor, **metadata):
        self.clock.advance(minutes=1)
        return self.handler.handle(order_id, target, actor, TransitionMetadata(**metadata))

    def advance_to(self, order_id: str, status: OrderStatus, partner: Actor = PARTNER) -> None:
        """Walk the happy path until the order reaches *status*."""
        path = [
            (OrderStatus.CONFIRMED, VENDOR),
            (OrderStatus.PREPARING, VENDOR),
            (OrderStatus.READY, VENDOR),
            (OrderStatus.ASSIGNED, partner),
            (OrderStatus.PICKED_UP, partner),
            (OrderStatus.ON_THE_WAY, partner),
        ]
        for target, actor in path:
            if self.repo.get_by_id(order_id).status == status:
                return
            self.move(order_id, target, actor)
        if status == OrderStatus.DELIVERED:
            code = self.codes.issue(order_id)
            self.move(order_id, OrderStatus.DELIVERED, partner, proof=code)
