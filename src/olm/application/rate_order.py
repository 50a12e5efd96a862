"""Application service: Rate Order use case.

After delivery the customer may rate the store and the delivery once
each.  The rating is stored with the same conditional write as status
changes, so two concurrent ratings of the same kind cannot both land.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from olm.application.dto import OrderDTO, order_to_dto
from olm.domain.exceptions import ConcurrentUpdateError, EntityNotFoundError
from olm.domain.model.order import RatingKind
from olm.domain.model.value_objects import Actor
from olm.domain.repository.order_repository import OrderRepository

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RateOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        max_update_attempts: int = 3,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._order_repo = order_repo
        self._max_update_attempts = max_update_attempts
        self._clock = clock

    def handle(
        self,
        order_id: str,
        kind: str | RatingKind,
        score: int,
        actor: Actor,
        review: str = "",
    ) -> OrderDTO:
        kind = RatingKind.parse(kind)

        for _ in range(self._max_update_attempts):
            order = self._order_repo.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order {order_id} not found")

            expected = order.revision
            order.rate(kind, score, actor, review=review, at=self._clock())
            if self._order_repo.update_status(order, expected):
                logger.info(
                    "Order %s: %s rated %d by %s",
                    order.order_number, kind.value, score, actor,
                )
                return order_to_dto(order)

        raise ConcurrentUpdateError(
            f"Order {order_id} kept changing; gave up after "
            f"{self._max_update_attempts} attempts"
        )
