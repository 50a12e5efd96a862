"""In-memory fakes for testing.

These implement the same abstract interfaces as the SQLite and Redis
adapters but keep everything in dicts. No file I/O, no side effects.
"""

from __future__ import annotations

import copy
import threading
from datetime import datetime, timedelta, timezone

from olm.domain.events import OrderStatusChanged
from olm.domain.model.lifecycle import ACTIVE_DELIVERY_STATUSES
from olm.domain.model.order import Order, Revision
from olm.domain.repository.delivery_code_store import DeliveryCode, DeliveryCodeStore
from olm.domain.repository.order_repository import OrderQuery, OrderRepository
from olm.domain.service.notifier import Notifier


class FakeOrderRepository(OrderRepository):
    """Hands out copies, so concurrent callers never share an Order."""

    def __init__(self) -> None:
        self._store: dict[str, Order] = {}
        self._lock = threading.Lock()
        self.lost_updates = 0

    def get_by_id(self, order_id: str) -> Order | None:
        with self._lock:
            order = self._store.get(order_id)
            return copy.deepcopy(order) if order else None

    def save(self, order: Order) -> None:
        with self._lock:
            self._store[order.id] = copy.deepcopy(order)

    def update_status(self, order: Order, expected: Revision) -> bool:
        with self._lock:
            current = self._store.get(order.id)
            if current is None or current.revision != expected:
                self.lost_updates += 1
                return False
            self._store[order.id] = copy.deepcopy(order)
            return True

    def count_active_for_partner(self, partner_id: str) -> int:
        with self._lock:
            return sum(
                1
                for o in self._store.values()
                if o.delivery_partner_id == partner_id
                and o.status in ACTIVE_DELIVERY_STATUSES
            )

    def find(self, query: OrderQuery) -> list[Order]:
        with self._lock:
            orders = [copy.deepcopy(o) for o in self._store.values()]
        result = [
            o
            for o in orders
            if (query.statuses is None or o.status in query.statuses)
            and (query.customer_id is None or o.customer_id == query.customer_id)
            and (query.vendor_id is None or o.vendor_id == query.vendor_id)
            and (
                query.delivery_partner_id is None
                or o.delivery_partner_id == query.delivery_partner_id
            )
            and (not query.unassigned_only or o.delivery_partner_id is None)
        ]
        result.sort(key=lambda o: o.created_at, reverse=not query.oldest_first)
        return result[: query.limit] if query.limit is not None else result


class FixedClock:
    """A clock you move by hand."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeDeliveryCodeStore(DeliveryCodeStore):

    def __init__(self, clock: FixedClock) -> None:
        self._clock = clock
        self._store: dict[str, DeliveryCode] = {}

    def save(self, order_id: str, code: DeliveryCode) -> None:
        self._store[order_id] = code

    def get(self, order_id: str) -> DeliveryCode | None:
        code = self._store.get(order_id)
        if code is None or code.expires_at <= self._clock():
            return None
        return code

    def record_failure(self, order_id: str) -> int:
        code = self._store.get(order_id)
        if code is None:
            return 0
        updated = DeliveryCode(code.code, code.expires_at, code.attempts + 1)
        self._store[order_id] = updated
        return updated.attempts

    def delete(self, order_id: str) -> None:
        self._store.pop(order_id, None)


class RecordingNotifier(Notifier):

    def __init__(self) -> None:
        self.events: list[OrderStatusChanged] = []

    def notify(self, event: OrderStatusChanged) -> None:
        self.events.append(event)


class ExplodingNotifier(Notifier):

    def __init__(self) -> None:
        self.calls = 0

    def notify(self, event: OrderStatusChanged) -> None:
        self.calls += 1
        raise RuntimeError("push gateway unreachable")
