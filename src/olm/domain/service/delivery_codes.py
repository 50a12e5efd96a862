"""Domain service: issue and check delivery proof codes.

The customer reads the code to the delivery partner at the door; the
partner supplies it as proof when marking the order delivered.  Codes
are numeric, time-bounded and single-use (``consume``), and allow a
limited number of wrong guesses.
"""

from __future__ import annotations

import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable

from olm.domain.exceptions import ProofInvalidError, ValidationError
from olm.domain.repository.delivery_code_store import DeliveryCode, DeliveryCodeStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DeliveryCodeService:

    def __init__(
        self,
        store: DeliveryCodeStore,
        ttl_seconds: int = 1800,
        max_attempts: int = 3,
        length: int = 4,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if length < 4:
            raise ValidationError("Delivery codes need at least 4 digits")
        if max_attempts < 1:
            raise ValidationError("At least one verification attempt is required")
        self._store = store
        self._ttl = timedelta(seconds=ttl_seconds)
        self._max_attempts = max_attempts
        self._length = length
        self._clock = clock

    def issue(self, order_id: str) -> str:
        """Create a fresh code for *order_id*, replacing any earlier one."""
        code = f"{secrets.randbelow(10 ** self._length):0{self._length}d}"
        self._store.save(
            order_id,
            DeliveryCode(code=code, expires_at=self._clock() + self._ttl),
        )
        logger.info("Issued delivery code for order %s", order_id)
        return code

    def check(self, order_id: str, candidate: str | None) -> None:
        """Raise ProofInvalidError unless *candidate* is the live code.

        A match leaves the code in place; call ``consume`` once the
        delivery is stored.  Wrong guesses count against the limit.
        """
        if not candidate:
            raise ProofInvalidError("A delivery code is required to complete delivery")

        stored = self._store.get(order_id)
        if stored is None or stored.expires_at <= self._clock():
            self._store.delete(order_id)
            raise ProofInvalidError(
                "No valid delivery code for this order. Ask the customer to request a new one."
            )

        if stored.attempts >= self._max_attempts:
            self._store.delete(order_id)
            raise ProofInvalidError(
                "Too many wrong attempts. Ask the customer to request a new code."
            )

        if not hmac.compare_digest(stored.code, str(candidate).strip()):
            attempts = self._store.record_failure(order_id)
            remaining = self._max_attempts - attempts
            logger.warning(
                "Wrong delivery code for order %s (%d attempt(s) left)",
                order_id, max(remaining, 0),
            )
            if remaining <= 0:
                self._store.delete(order_id)
                raise ProofInvalidError(
                    "Invalid delivery code. No attempts left; ask the customer for a new code."
                )
            raise ProofInvalidError(
                f"Invalid delivery code. {remaining} attempt"
                f"{'s' if remaining != 1 else ''} remaining."
            )

        logger.info("Delivery code matched for order %s", order_id)

    def consume(self, order_id: str) -> None:
        """Retire the code for *order_id* after a successful delivery."""
        self._store.delete(order_id)
