"""Abstract notification port.

Implementations live in the infrastructure layer.  The lifecycle
manager calls ``notify`` after the write and never waits on delivery.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from olm.domain.events import OrderStatusChanged


class Notifier(ABC):

    @abstractmethod
    def notify(self, event: OrderStatusChanged) -> None:
        """Hand *event* over for best-effort delivery."""
