"""Application service: Issue Delivery Code use case.

The customer asks for the code they will read out at the door.  A new
request replaces any earlier code.
"""

from __future__ import annotations

from olm.domain.exceptions import EntityNotFoundError, ValidationError
from olm.domain.model.lifecycle import ACTIVE_DELIVERY_STATUSES, Role
from olm.domain.model.value_objects import Actor
from olm.domain.repository.order_repository import OrderRepository
from olm.domain.service.delivery_codes import DeliveryCodeService


class IssueDeliveryCodeHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        delivery_codes: DeliveryCodeService,
    ) -> None:
        self._order_repo = order_repo
        self._delivery_codes = delivery_codes

    def handle(self, order_id: str, actor: Actor) -> str:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order {order_id} not found")

        if actor.role == Role.CUSTOMER:
            if actor.user_id != order.customer_id:
                raise ValidationError(
                    f"Order {order.order_number} does not belong to customer {actor.user_id}"
                )
        elif actor.role != Role.ADMIN:
            raise ValidationError("Only the customer can request a delivery code")

        if order.status not in ACTIVE_DELIVERY_STATUSES:
            raise ValidationError(
                f"Delivery codes are issued once a delivery partner is assigned "
                f"(order is {order.status.value})"
            )

        return self._delivery_codes.issue(order.id)
