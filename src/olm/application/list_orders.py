"""Application service: List Orders use case (query).

Role-aware views over the order store: what a delivery partner can
pick up, and what each party sees as "my orders".
"""

from __future__ import annotations

from olm.application.dto import OrderDTO, order_to_dto
from olm.domain.model.lifecycle import (
    ACTIVE_DELIVERY_STATUSES,
    TERMINAL_STATUSES,
    OrderStatus,
    Role,
)
from olm.domain.model.value_objects import Actor
from olm.domain.repository.order_repository import OrderQuery, OrderRepository

_ACTIVE_FOR_ROLE: dict[Role, frozenset[OrderStatus]] = {
    Role.CUSTOMER: frozenset(
        {
            OrderStatus.PENDING,
            OrderStatus.CONFIRMED,
            OrderStatus.PREPARING,
            OrderStatus.READY,
        }
    ) | ACTIVE_DELIVERY_STATUSES,
    Role.VENDOR: frozenset(
        {
            OrderStatus.PENDING,
            OrderStatus.CONFIRMED,
            OrderStatus.PREPARING,
            OrderStatus.READY,
        }
    ),
    Role.DELIVERY_PARTNER: ACTIVE_DELIVERY_STATUSES,
    Role.ADMIN: frozenset(OrderStatus) - TERMINAL_STATUSES,
}


class ListOrdersHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def available_for_pickup(self, limit: int = 50) -> list[OrderDTO]:
        """Ready, unclaimed orders, oldest first."""
        orders = self._order_repo.find(
            OrderQuery(
                statuses=frozenset({OrderStatus.READY}),
                unassigned_only=True,
                oldest_first=True,
                limit=limit,
            )
        )
        return [order_to_dto(o) for o in orders]

    def for_actor(
        self,
        actor: Actor,
        active_only: bool = False,
        status: str | OrderStatus | None = None,
        limit: int | None = None,
    ) -> list[OrderDTO]:
        """Orders that belong to *actor*, newest first.  Admins see all."""
        statuses = None
        if status is not None:
            statuses = frozenset({OrderStatus.parse(status)})
        elif active_only:
            statuses = _ACTIVE_FOR_ROLE[actor.role]

        query = OrderQuery(
            statuses=statuses,
            customer_id=actor.user_id if actor.role == Role.CUSTOMER else None,
            vendor_id=actor.user_id if actor.role == Role.VENDOR else None,
            delivery_partner_id=(
                actor.user_id if actor.role == Role.DELIVERY_PARTNER else None
            ),
            limit=limit,
        )
        return [order_to_dto(o) for o in self._order_repo.find(query)]
