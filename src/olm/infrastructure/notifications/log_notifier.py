"""Notifier that renders messages and writes them to the log."""

from __future__ import annotations

import logging

from olm.domain.events import OrderStatusChanged
from olm.domain.service.notifier import Notifier
from olm.infrastructure.notifications.messages import render

logger = logging.getLogger(__name__)


class LogNotifier(Notifier):

    def notify(self, event: OrderStatusChanged) -> None:
        for message in render(event):
            logger.info(
                "notify %s:%s [%s] %s - %s",
                message.role.value,
                message.user_id or "*",
                message.kind,
                message.title,
                message.body,
            )
