"""Application service: Request Transition use case.

The only writer of an order's status and status history.  Every role
(customer, vendor, delivery partner, admin) changes an order through
this handler.

Writes are conditional on the revision read at load time.  For the
``ready -> assigned`` claim that makes assignment at-most-once across
processes: the loser of a race gets AlreadyAssignedError.  Any other
lost write is re-read and re-validated.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from olm.application.dto import OrderDTO, TransitionMetadata, order_to_dto
from olm.domain.events import OrderStatusChanged
from olm.domain.exceptions import (
    AlreadyAssignedError,
    ConcurrentUpdateError,
    EntityNotFoundError,
    TooManyActiveOrdersError,
)
from olm.domain.model.lifecycle import OrderStatus
from olm.domain.model.order import Order, StatusHistoryEntry
from olm.domain.model.value_objects import Actor
from olm.domain.repository.order_repository import OrderRepository
from olm.domain.service.delivery_codes import DeliveryCodeService
from olm.domain.service.notification_policy import recipients_for
from olm.domain.service.notifier import Notifier

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RequestTransitionHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        notifier: Notifier,
        delivery_codes: DeliveryCodeService,
        max_active_deliveries: int = 5,
        max_update_attempts: int = 3,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._order_repo = order_repo
        self._notifier = notifier
        self._delivery_codes = delivery_codes
        self._max_active_deliveries = max_active_deliveries
        self._max_update_attempts = max_update_attempts
        self._clock = clock

    def handle(
        self,
        order_id: str,
        target: str | OrderStatus,
        actor: Actor,
        metadata: TransitionMetadata | None = None,
    ) -> OrderDTO:
        """Move an order to *target* on behalf of *actor*.

        Raises EntityNotFoundError, InvalidTransitionError,
        UnauthorizedTransitionError, NotCancellableError,
        AlreadyAssignedError, ProofInvalidError or
        TooManyActiveOrdersError; persisted state is untouched when
        any of them is raised.
        """
        target = OrderStatus.parse(target)
        metadata = metadata or TransitionMetadata()
        proof_checked = False

        for attempt in range(1, self._max_update_attempts + 1):
            order = self._load(order_id)
            expected = order.revision
            previous = order.status

            edge = order.check_transition(target, actor)

            if edge.is_claim:
                self._check_partner_capacity(actor)

            if edge.requires_proof and not proof_checked:
                self._delivery_codes.check(order.id, metadata.proof)
                proof_checked = True

            entry = order.apply_transition(
                target,
                actor,
                note=metadata.note,
                reason=metadata.reason,
                at=self._clock(),
            )

            if self._order_repo.update_status(order, expected):
                if edge.requires_proof:
                    self._delivery_codes.consume(order.id)
                break

            if edge.is_claim:
                logger.info(
                    "Claim of order %s by %s lost the race", order.order_number, actor
                )
                raise AlreadyAssignedError(
                    f"Order {order.order_number} was just assigned to another delivery partner",
                    current=OrderStatus.READY, requested=target, role=actor.role,
                )

            logger.info(
                "Order %s changed during %s -> %s (attempt %d), retrying",
                order.order_number, previous.value, target.value, attempt,
            )
        else:
            raise ConcurrentUpdateError(
                f"Order {order_id} kept changing; gave up after "
                f"{self._max_update_attempts} attempts"
            )

        logger.info(
            "Order %s: %s -> %s by %s",
            order.order_number, previous.value, target.value, actor,
        )
        self._publish(order, previous, entry)
        return order_to_dto(order)

    # --- Internal helpers -----------------------------------------------------

    def _load(self, order_id: str) -> Order:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order {order_id} not found")
        return order

    def _check_partner_capacity(self, actor: Actor) -> None:
        active = self._order_repo.count_active_for_partner(actor.user_id)
        if active >= self._max_active_deliveries:
            raise TooManyActiveOrdersError(
                f"You have {active} active orders. Complete some before accepting more."
            )

    def _publish(
        self, order: Order, previous: OrderStatus, entry: StatusHistoryEntry
    ) -> None:
        event = OrderStatusChanged(
            order_id=order.id,
            order_number=order.order_number,
            from_status=previous,
            to_status=entry.status,
            actor=entry.actor,
            occurred_at=entry.timestamp,
            recipients=recipients_for(previous, entry.status, entry.actor.role),
            customer_id=order.customer_id,
            vendor_id=order.vendor_id,
            # On rejection the partner is already cleared; keep who it was.
            delivery_partner_id=order.delivery_partner_id or (
                entry.actor.user_id if previous == OrderStatus.ASSIGNED else None
            ),
            note=entry.note,
        )
        try:
            self._notifier.notify(event)
        except Exception:
            # The transition is already persisted; never fail it here.
            logger.exception(
                "Could not dispatch notification for order %s (%s -> %s)",
                order.order_number, previous.value, entry.status.value,
            )
