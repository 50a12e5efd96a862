"""Abstract store for delivery proof codes.

Backed by something with expiry (a database column or a cache TTL) so
codes survive restarts and work across several server processes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class DeliveryCode:
    code: str
    expires_at: datetime
    attempts: int = 0


class DeliveryCodeStore(ABC):

    @abstractmethod
    def save(self, order_id: str, code: DeliveryCode) -> None:
        """Store *code* for *order_id*, replacing any previous one."""

    @abstractmethod
    def get(self, order_id: str) -> DeliveryCode | None:
        """Return the live code for *order_id*, or None if absent or expired."""

    @abstractmethod
    def record_failure(self, order_id: str) -> int:
        """Count one wrong guess; return the new attempt count."""

    @abstractmethod
    def delete(self, order_id: str) -> None:
        """Forget the code for *order_id*."""
