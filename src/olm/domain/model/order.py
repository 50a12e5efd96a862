"""Order aggregate, the core of the domain.

The Order is an aggregate root that owns its line items, its price
snapshot and its status history.  Status changes go through
``apply_transition`` only; everything else is fixed at checkout.
"""

from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from olm.domain.exceptions import (
    AlreadyAssignedError,
    UnauthorizedTransitionError,
    ValidationError,
)
from olm.domain.model.lifecycle import (
    ACTIVE_DELIVERY_STATUSES,
    Edge,
    OrderStatus,
    Role,
    is_terminal,
    resolve_edge,
)
from olm.domain.model.value_objects import Actor, Money, Quantity


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class StatusHistoryEntry:
    """One line of the audit trail.  Never edited once appended."""

    status: OrderStatus
    timestamp: datetime
    actor: Actor
    note: str | None = None


@dataclass(frozen=True)
class OrderLineItem:
    """Captures the price snapshot of a product at checkout time."""

    product_id: str
    product_name: str
    quantity: Quantity
    unit_price: Money  # locked at checkout

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Money
    delivery_fee: Money
    discount: Money
    tax: Money
    total: Money

    @staticmethod
    def compute(
        items: list[OrderLineItem],
        delivery_fee: Money,
        discount: Money,
        tax: Money,
    ) -> PriceBreakdown:
        subtotal = Money.zero(delivery_fee.currency)
        for item in items:
            subtotal = subtotal + item.line_total

        gross = subtotal + delivery_fee + tax
        if gross < discount:
            raise ValidationError(
                f"Discount {discount} exceeds order amount {gross}"
            )
        return PriceBreakdown(
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            discount=discount,
            tax=tax,
            total=gross - discount,
        )


@dataclass(frozen=True)
class Cancellation:
    reason: str
    cancelled_at: datetime
    cancelled_by: Role


class RatingKind(Enum):
    STORE = "store"
    DELIVERY = "delivery"

    @classmethod
    def parse(cls, raw: str | RatingKind) -> RatingKind:
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            raise ValidationError(
                f"Unknown rating type '{raw}'. Expected store or delivery"
            ) from None


@dataclass(frozen=True)
class Rating:
    score: int  # 1..5
    review: str
    rated_at: datetime


@dataclass(frozen=True)
class Revision:
    """What a conditional write must still find in the store.

    ``version`` counts history entries plus ratings, so it only grows.
    """

    status: OrderStatus
    delivery_partner_id: str | None
    version: int


# ---------------------------------------------------------------------------
# Constants for business rules
# ---------------------------------------------------------------------------
MAX_LINE_ITEMS = 50
MIN_RATING = 1
MAX_RATING = 5


def generate_order_number(at: datetime) -> str:
    """``ORD`` + ``YYMMDD`` + four random digits, e.g. ``ORD2610190042``."""
    return f"ORD{at:%y%m%d}{secrets.randbelow(10000):04d}"


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use the ``Order.create()`` factory for new orders; it enforces all
    checkout rules.  The ``__init__`` is intentionally simple so the
    repository can reconstitute persisted orders without re-validating.
    """

    id: str
    order_number: str
    customer_id: str
    store_id: str
    vendor_id: str
    items: list[OrderLineItem]
    pricing: PriceBreakdown
    status: OrderStatus = OrderStatus.PENDING
    status_history: list[StatusHistoryEntry] = field(default_factory=list)
    delivery_partner_id: str | None = None
    cancellation: Cancellation | None = None
    customer_note: str = ""
    created_at: datetime = field(default_factory=_utcnow)
    store_rating: Rating | None = None
    delivery_rating: Rating | None = None

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        customer_id: str,
        store_id: str,
        vendor_id: str,
        items: list[OrderLineItem],
        delivery_fee: Money | None = None,
        discount: Money | None = None,
        tax: Money | None = None,
        customer_note: str = "",
        at: datetime | None = None,
    ) -> Order:
        """Create a new pending order, enforcing all invariants."""
        for label, value in (
            ("Customer", customer_id),
            ("Store", store_id),
            ("Vendor", vendor_id),
        ):
            if not value or not str(value).strip():
                raise ValidationError(f"{label} id is required")

        if not items:
            raise ValidationError("Order must contain at least one item")

        if len(items) > MAX_LINE_ITEMS:
            raise ValidationError(f"Maximum {MAX_LINE_ITEMS} items per order")

        currency = items[0].unit_price.currency
        pricing = PriceBreakdown.compute(
            items,
            delivery_fee=delivery_fee or Money.zero(currency),
            discount=discount or Money.zero(currency),
            tax=tax or Money.zero(currency),
        )

        created_at = at or _utcnow()
        customer = Actor(role=Role.CUSTOMER, user_id=customer_id.strip())
        return Order(
            id=uuid.uuid4().hex,
            order_number=generate_order_number(created_at),
            customer_id=customer_id.strip(),
            store_id=store_id.strip(),
            vendor_id=vendor_id.strip(),
            items=list(items),
            pricing=pricing,
            status=OrderStatus.PENDING,
            status_history=[
                StatusHistoryEntry(
                    status=OrderStatus.PENDING,
                    timestamp=created_at,
                    actor=customer,
                    note="Order placed by customer",
                )
            ],
            customer_note=customer_note.strip(),
            created_at=created_at,
        )

    # --- State transitions ----------------------------------------------------

    def check_transition(self, target: OrderStatus, actor: Actor) -> Edge:
        """Validate *actor* moving this order to *target*; mutates nothing."""
        if (
            target == OrderStatus.ASSIGNED
            and self.delivery_partner_id is not None
            and self.status in ACTIVE_DELIVERY_STATUSES
            and actor.role == Role.DELIVERY_PARTNER
        ):
            raise AlreadyAssignedError(
                f"Order {self.order_number} is already assigned to a delivery partner",
                current=self.status, requested=target, role=actor.role,
            )

        edge = resolve_edge(self.status, target, actor.role)
        self._check_party(edge, actor)
        return edge

    def apply_transition(
        self,
        target: OrderStatus,
        actor: Actor,
        note: str | None = None,
        reason: str | None = None,
        at: datetime | None = None,
    ) -> StatusHistoryEntry:
        """Validate, then append history and move to *target*.

        Persisting the result is the caller's job and must be a
        conditional write against ``revision`` taken before this call.
        """
        edge = self.check_transition(target, actor)
        at = at or _utcnow()

        if edge.is_claim:
            self.delivery_partner_id = actor.user_id
        elif edge.is_rejection:
            self.delivery_partner_id = None

        if target == OrderStatus.CANCELLED:
            self.cancellation = Cancellation(
                reason=reason or note or f"Cancelled by {actor.role.value}",
                cancelled_at=at,
                cancelled_by=actor.role,
            )

        entry = StatusHistoryEntry(status=target, timestamp=at, actor=actor, note=note)
        self.status_history.append(entry)
        self.status = target
        return entry

    def rate(
        self,
        kind: RatingKind,
        score: int,
        actor: Actor,
        review: str = "",
        at: datetime | None = None,
    ) -> Rating:
        """Record the customer's rating of the store or the delivery.

        Only delivered orders can be rated, once per kind.
        """
        if actor.role != Role.CUSTOMER or actor.user_id != self.customer_id:
            raise ValidationError(
                f"Only the customer of order {self.order_number} can rate it"
            )
        if self.status != OrderStatus.DELIVERED:
            raise ValidationError(
                f"Can only rate delivered orders (order is {self.status.value})"
            )
        if isinstance(score, bool) or not isinstance(score, int) or not (
            MIN_RATING <= score <= MAX_RATING
        ):
            raise ValidationError(
                f"Rating must be a whole number from {MIN_RATING} to {MAX_RATING}"
            )
        if kind == RatingKind.DELIVERY and self.delivery_partner_id is None:
            raise ValidationError("This order has no delivery partner to rate")

        attr = f"{kind.value}_rating"
        if getattr(self, attr) is not None:
            raise ValidationError(
                f"The {kind.value} for order {self.order_number} is already rated"
            )

        rating = Rating(score=score, review=review.strip(), rated_at=at or _utcnow())
        setattr(self, attr, rating)
        return rating

    # --- Computed properties --------------------------------------------------

    @property
    def revision(self) -> Revision:
        return Revision(
            status=self.status,
            delivery_partner_id=self.delivery_partner_id,
            version=len(self.status_history) + len(self.ratings),
        )

    @property
    def ratings(self) -> list[Rating]:
        return [r for r in (self.store_rating, self.delivery_rating) if r is not None]

    @property
    def total(self) -> Money:
        return self.pricing.total

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.status)

    def reached_at(self, status: OrderStatus) -> datetime | None:
        """When the order last entered *status*, or None."""
        for entry in reversed(self.status_history):
            if entry.status == status:
                return entry.timestamp
        return None

    @property
    def delivery_minutes(self) -> int | None:
        """Whole minutes from pickup to delivery."""
        picked_up = self.reached_at(OrderStatus.PICKED_UP)
        delivered = self.reached_at(OrderStatus.DELIVERED)
        if picked_up is None or delivered is None:
            return None
        return round((delivered - picked_up).total_seconds() / 60)

    # --- Internal helpers -----------------------------------------------------

    def _check_party(self, edge: Edge, actor: Actor) -> None:
        if actor.role == Role.ADMIN:
            return

        if actor.role == Role.VENDOR:
            owner = self.vendor_id
        elif actor.role == Role.CUSTOMER:
            owner = self.customer_id
        elif edge.is_claim:
            return
        else:
            owner = self.delivery_partner_id

        if actor.user_id != owner:
            raise UnauthorizedTransitionError(
                f"Order {self.order_number} does not belong to "
                f"{actor.role.value} {actor.user_id}",
                current=self.status, requested=edge.target, role=actor.role,
            )
