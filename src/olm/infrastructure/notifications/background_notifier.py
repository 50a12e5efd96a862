"""Fire-and-forget wrapper around another Notifier.

``notify`` only queues the event on a thread pool and returns.  A
failing delegate is logged from the done-callback and never reaches
the caller.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor

from olm.domain.events import OrderStatusChanged
from olm.domain.service.notifier import Notifier

logger = logging.getLogger(__name__)


class BackgroundNotifier(Notifier):

    def __init__(self, delegate: Notifier, workers: int = 2) -> None:
        self._delegate = delegate
        self._executor = ThreadPoolExecutor(
            max_workers=workers, thread_name_prefix="olm-notify"
        )

    def notify(self, event: OrderStatusChanged) -> None:
        future = self._executor.submit(self._delegate.notify, event)
        future.add_done_callback(lambda f: self._log_failure(f, event))

    def close(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> BackgroundNotifier:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @staticmethod
    def _log_failure(future: Future, event: OrderStatusChanged) -> None:
        exc = future.exception()
        if exc is not None:
            logger.warning(
                "Notification for order %s (%s -> %s) failed: %s",
                event.order_number,
                event.from_status.value,
                event.to_status.value,
                exc,
            )
