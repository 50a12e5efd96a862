"""Order lifecycle state machine.

The one transition table every role goes through.  Customer, vendor,
delivery and admin flows all resolve their status changes here instead
of comparing status strings on their own.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from olm.domain.exceptions import (
    InvalidTransitionError,
    NotCancellableError,
    UnauthorizedTransitionError,
    ValidationError,
)


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    ASSIGNED = "assigned"
    PICKED_UP = "picked_up"
    ON_THE_WAY = "on_the_way"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"

    @classmethod
    def parse(cls, raw: str | OrderStatus) -> OrderStatus:
        """Accept 'picked_up', 'Picked-Up' or 'picked up' alike."""
        if isinstance(raw, cls):
            return raw
        normalized = str(raw).strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(s.value for s in cls)
            raise ValidationError(
                f"Unknown order status '{raw}'. Expected one of: {valid}"
            ) from None


class Role(Enum):
    CUSTOMER = "customer"
    VENDOR = "vendor"
    DELIVERY_PARTNER = "delivery_partner"
    ADMIN = "admin"

    @classmethod
    def parse(cls, raw: str | Role) -> Role:
        if isinstance(raw, cls):
            return raw
        normalized = str(raw).strip().lower().replace("-", "_").replace(" ", "_")
        if normalized == "delivery":
            return cls.DELIVERY_PARTNER
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(r.value for r in cls)
            raise ValidationError(
                f"Unknown role '{raw}'. Expected one of: {valid}"
            ) from None


TERMINAL_STATUSES = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REFUNDED}
)
CANCELLABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.CONFIRMED})
ACTIVE_DELIVERY_STATUSES = frozenset(
    {OrderStatus.ASSIGNED, OrderStatus.PICKED_UP, OrderStatus.ON_THE_WAY}
)


@dataclass(frozen=True)
class Edge:
    source: OrderStatus
    target: OrderStatus
    roles: frozenset[Role]
    name: str

    @property
    def requires_proof(self) -> bool:
        return self.target == OrderStatus.DELIVERED

    @property
    def is_claim(self) -> bool:
        return self.name == "claim"

    @property
    def is_rejection(self) -> bool:
        return self.name == "reject"


def _edge(source: OrderStatus, target: OrderStatus, name: str, *roles: Role) -> Edge:
    return Edge(source=source, target=target, roles=frozenset(roles), name=name)


_S = OrderStatus
_R = Role

EDGES: tuple[Edge, ...] = (
    _edge(_S.PENDING, _S.CONFIRMED, "confirm", _R.VENDOR),
    _edge(_S.PENDING, _S.CANCELLED, "cancel", _R.CUSTOMER, _R.VENDOR),
    _edge(_S.CONFIRMED, _S.PREPARING, "start_preparing", _R.VENDOR),
    _edge(_S.CONFIRMED, _S.CANCELLED, "cancel", _R.CUSTOMER, _R.VENDOR),
    _edge(_S.PREPARING, _S.READY, "mark_ready", _R.VENDOR),
    _edge(_S.READY, _S.ASSIGNED, "claim", _R.DELIVERY_PARTNER),
    _edge(_S.ASSIGNED, _S.PICKED_UP, "pick_up", _R.DELIVERY_PARTNER),
    _edge(_S.ASSIGNED, _S.READY, "reject", _R.DELIVERY_PARTNER),
    _edge(_S.PICKED_UP, _S.ON_THE_WAY, "depart", _R.DELIVERY_PARTNER),
    _edge(_S.ON_THE_WAY, _S.DELIVERED, "deliver", _R.DELIVERY_PARTNER),
    # Payment-reversal path, admin only.
    _edge(_S.DELIVERED, _S.REFUNDED, "refund", _R.ADMIN),
    _edge(_S.CANCELLED, _S.REFUNDED, "refund", _R.ADMIN),
)

TRANSITIONS: dict[tuple[OrderStatus, OrderStatus], Edge] = {
    (e.source, e.target): e for e in EDGES
}


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL_STATUSES


def allowed_targets(current: OrderStatus) -> list[OrderStatus]:
    return [e.target for e in EDGES if e.source == current]


def is_legal_successor(previous: OrderStatus, following: OrderStatus) -> bool:
    return (previous, following) in TRANSITIONS


def is_valid_history(statuses: list[OrderStatus]) -> bool:
    """True if *statuses* starts at pending and only follows table edges."""
    if not statuses or statuses[0] != OrderStatus.PENDING:
        return False
    return all(
        is_legal_successor(prev, nxt) for prev, nxt in zip(statuses, statuses[1:])
    )


def resolve_edge(current: OrderStatus, target: OrderStatus, role: Role) -> Edge:
    """Return the edge for current -> target or raise why it is refused.

    Order of checks: terminal source, cancellation window, table
    membership, then the actor's role.
    """
    edge = TRANSITIONS.get((current, target))

    if is_terminal(current) and edge is None:
        raise InvalidTransitionError(
            f"Order is {current.value}; no further transition to "
            f"{target.value} is permitted (role={role.value})",
            current=current, requested=target, role=role,
        )

    if target == OrderStatus.CANCELLED and current not in CANCELLABLE_STATUSES:
        raise NotCancellableError(
            f"Order cannot be cancelled once it is {current.value}",
            current=current, requested=target, role=role,
        )

    if edge is None:
        raise InvalidTransitionError(
            f"Cannot change status from {current.value} to {target.value} "
            f"(role={role.value})",
            current=current, requested=target, role=role,
        )

    if role not in edge.roles:
        allowed = ", ".join(sorted(r.value for r in edge.roles))
        raise UnauthorizedTransitionError(
            f"Role {role.value} may not move an order from {current.value} "
            f"to {target.value} (allowed: {allowed})",
            current=current, requested=target, role=role,
        )

    return edge
