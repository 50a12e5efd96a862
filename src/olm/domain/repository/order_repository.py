"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from olm.domain.model.lifecycle import OrderStatus
from olm.domain.model.order import Order, Revision


@dataclass(frozen=True)
class OrderQuery:
    """Filter for ``OrderRepository.find``.  Unset fields match anything."""

    statuses: frozenset[OrderStatus] | None = None
    customer_id: str | None = None
    vendor_id: str | None = None
    delivery_partner_id: str | None = None
    unassigned_only: bool = False
    oldest_first: bool = False
    limit: int | None = None


class OrderRepository(ABC):

    @abstractmethod
    def get_by_id(self, order_id: str) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist a newly created order."""

    @abstractmethod
    def update_status(self, order: Order, expected: Revision) -> bool:
        """Atomically replace the stored order if it still matches *expected*.

        The match covers status, assigned delivery partner and version
        (history entries plus ratings), so an appended history entry or a
        new rating lands in the same write.
        Returns False when another writer changed the order first.
        """

    @abstractmethod
    def count_active_for_partner(self, partner_id: str) -> int:
        """Orders assigned to *partner_id* that are not yet delivered."""

    @abstractmethod
    def find(self, query: OrderQuery) -> list[Order]:
        """Return orders matching *query*, newest first unless asked otherwise."""
