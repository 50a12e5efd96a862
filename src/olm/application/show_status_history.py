"""Application service: Show Status History use case (query)."""

from __future__ import annotations

from olm.application.dto import StatusHistoryEntryDTO, history_entry_to_dto
from olm.domain.exceptions import EntityNotFoundError
from olm.domain.repository.order_repository import OrderRepository


class ShowStatusHistoryHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, order_id: str) -> list[StatusHistoryEntryDTO]:
        """Oldest first; always starts with the ``pending`` entry."""
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order {order_id} not found")
        return [history_entry_to_dto(entry) for entry in order.status_history]
