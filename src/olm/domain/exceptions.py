"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class TransitionError(DomainException):
    """A status change was refused.

    Carries the order's current status, the requested status and the
    role of the actor so callers can build an actionable message.
    """

    def __init__(self, message: str, current=None, requested=None, role=None) -> None:
        super().__init__(message)
        self.current = current
        self.requested = requested
        self.role = role


class InvalidTransitionError(TransitionError):
    """The requested status is not reachable from the current one."""


class UnauthorizedTransitionError(TransitionError):
    """The edge exists but this actor may not trigger it."""


class NotCancellableError(TransitionError):
    """Cancellation requested after the order left pending/confirmed."""


class AlreadyAssignedError(TransitionError):
    """Another delivery partner claimed the order first.

    Expected under normal load; the partner should pick another order.
    """


class ProofInvalidError(DomainException):
    """The delivery proof code is missing, expired, exhausted or wrong."""


class TooManyActiveOrdersError(DomainException):
    """The delivery partner already carries the maximum number of orders."""


class ConcurrentUpdateError(DomainException):
    """The order kept changing underneath the update."""
