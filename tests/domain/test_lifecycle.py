"""Unit tests for the order status transition table."""

import pytest

from olm.domain.exceptions import (
    InvalidTransitionError,
    NotCancellableError,
    UnauthorizedTransitionError,
    ValidationError,
)
from olm.domain.model.lifecycle import (
    TERMINAL_STATUSES,
    OrderStatus,
    Role,
    allowed_targets,
    is_legal_successor,
    is_valid_history,
    resolve_edge,
)

S = OrderStatus

HAPPY_PATH = [
    S.PENDING, S.CONFIRMED, S.PREPARING, S.READY,
    S.ASSIGNED, S.PICKED_UP, S.ON_THE_WAY, S.DELIVERED,
]


class TestParsing:

    @pytest.mark.parametrize("raw", ["picked_up", "Picked-Up", "picked up", " PICKED_UP "])
    def test_status_aliases(self, raw):
        assert OrderStatus.parse(raw) == S.PICKED_UP

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError, match="Unknown order status 'shipped'"):
            OrderStatus.parse("shipped")

    def test_delivery_is_alias_for_partner(self):
        assert Role.parse("delivery") == Role.DELIVERY_PARTNER

    def test_unknown_role_rejected(self):
        with pytest.raises(ValidationError, match="Unknown role"):
            Role.parse("driver")


class TestTable:

    def test_happy_path_is_legal(self):
        assert is_valid_history(HAPPY_PATH)

    def test_history_must_start_pending(self):
        assert not is_valid_history([S.CONFIRMED, S.PREPARING])
        assert not is_valid_history([])

    def test_history_with_skipped_step_is_invalid(self):
        assert not is_valid_history([S.PENDING, S.PREPARING])

    def test_rejection_returns_to_ready(self):
        assert is_legal_successor(S.ASSIGNED, S.READY)
        assert is_valid_history([S.PENDING, S.CONFIRMED, S.PREPARING, S.READY,
                                 S.ASSIGNED, S.READY, S.ASSIGNED])

    def test_refunded_has_no_successors(self):
        assert allowed_targets(S.REFUNDED) == []

    def test_delivered_and_cancelled_only_refund(self):
        assert allowed_targets(S.DELIVERED) == [S.REFUNDED]
        assert allowed_targets(S.CANCELLED) == [S.REFUNDED]

    def test_pending_targets(self):
        assert set(allowed_targets(S.PENDING)) == {S.CONFIRMED, S.CANCELLED}


class TestResolveEdge:

    @pytest.mark.parametrize("current,target,role", [
        (S.PENDING, S.CONFIRMED, Role.VENDOR),
        (S.PENDING, S.CANCELLED, Role.CUSTOMER),
        (S.CONFIRMED, S.CANCELLED, Role.VENDOR),
        (S.READY, S.ASSIGNED, Role.DELIVERY_PARTNER),
        (S.ON_THE_WAY, S.DELIVERED, Role.DELIVERY_PARTNER),
        (S.DELIVERED, S.REFUNDED, Role.ADMIN),
    ])
    def test_authorized_edges(self, current, target, role):
        edge = resolve_edge(current, target, role)
        assert edge.source == current
        assert edge.target == target

    def test_unknown_edge_is_invalid(self):
        with pytest.raises(InvalidTransitionError) as info:
            resolve_edge(S.PENDING, S.DELIVERED, Role.DELIVERY_PARTNER)
        err = info.value
        assert err.current == S.PENDING
        assert err.requested == S.DELIVERED
        assert err.role == Role.DELIVERY_PARTNER

    def test_wrong_role_is_unauthorized(self):
        with pytest.raises(UnauthorizedTransitionError, match="allowed: vendor"):
            resolve_edge(S.PENDING, S.CONFIRMED, Role.CUSTOMER)

    def test_partner_cannot_cancel(self):
        with pytest.raises(UnauthorizedTransitionError):
            resolve_edge(S.PENDING, S.CANCELLED, Role.DELIVERY_PARTNER)

    @pytest.mark.parametrize("current", [S.PREPARING, S.READY, S.ASSIGNED,
                                         S.PICKED_UP, S.ON_THE_WAY])
    def test_cancel_after_confirmed_not_cancellable(self, current):
        with pytest.raises(NotCancellableError):
            resolve_edge(current, S.CANCELLED, Role.CUSTOMER)

    @pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES, key=lambda s: s.value))
    @pytest.mark.parametrize("target", [S.CANCELLED, S.CONFIRMED, S.PENDING, S.DELIVERED])
    def test_terminal_states_refuse(self, terminal, target):
        with pytest.raises(InvalidTransitionError):
            resolve_edge(terminal, target, Role.ADMIN)

    def test_refund_needs_admin(self):
        with pytest.raises(UnauthorizedTransitionError):
            resolve_edge(S.DELIVERED, S.REFUNDED, Role.CUSTOMER)

    def test_refunded_cannot_refund_again(self):
        with pytest.raises(InvalidTransitionError):
            resolve_edge(S.REFUNDED, S.REFUNDED, Role.ADMIN)

    def test_edge_flags(self):
        assert resolve_edge(S.READY, S.ASSIGNED, Role.DELIVERY_PARTNER).is_claim
        assert resolve_edge(S.ASSIGNED, S.READY, Role.DELIVERY_PARTNER).is_rejection
        assert resolve_edge(S.ON_THE_WAY, S.DELIVERED, Role.DELIVERY_PARTNER).requires_proof
