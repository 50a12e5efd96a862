"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

import logging

from olm.application.request_transition import RequestTransitionHandler
from olm.domain.repository.delivery_code_store import DeliveryCodeStore
from olm.domain.service.delivery_codes import DeliveryCodeService
from olm.domain.service.notifier import Notifier
from olm.infrastructure.config import Settings, get_settings
from olm.infrastructure.notifications.background_notifier import BackgroundNotifier
from olm.infrastructure.notifications.log_notifier import LogNotifier
from olm.infrastructure.persistence.redis_delivery_code_store import (
    RedisDeliveryCodeStore,
)
from olm.infrastructure.persistence.sqlite_delivery_code_store import (
    SqliteDeliveryCodeStore,
)
from olm.infrastructure.persistence.sqlite_order_repository import (
    SqliteOrderRepository,
)

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def order_repository(settings: Settings | None = None) -> SqliteOrderRepository:
    settings = settings or get_settings()
    return SqliteOrderRepository(settings.database_path)


def delivery_code_store(settings: Settings | None = None) -> DeliveryCodeStore:
    settings = settings or get_settings()
    if settings.delivery_code_backend == "redis":
        logger.debug("Using Redis delivery code store at %s", settings.redis_url)
        return RedisDeliveryCodeStore.from_url(settings.redis_url)
    return SqliteDeliveryCodeStore(settings.database_path)


def delivery_code_service(settings: Settings | None = None) -> DeliveryCodeService:
    settings = settings or get_settings()
    return DeliveryCodeService(
        delivery_code_store(settings),
        ttl_seconds=settings.delivery_code_ttl_seconds,
        max_attempts=settings.delivery_code_max_attempts,
        length=settings.delivery_code_length,
    )


def notifier(settings: Settings | None = None) -> BackgroundNotifier:
    settings = settings or get_settings()
    return BackgroundNotifier(LogNotifier(), workers=settings.notification_workers)


def transition_handler(
    notifier: Notifier,
    settings: Settings | None = None,
) -> RequestTransitionHandler:
    settings = settings or get_settings()
    return RequestTransitionHandler(
        order_repo=order_repository(settings),
        notifier=notifier,
        delivery_codes=delivery_code_service(settings),
        max_active_deliveries=settings.max_active_deliveries,
        max_update_attempts=settings.max_update_attempts,
    )
