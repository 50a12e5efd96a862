"""Domain events raised by the order lifecycle."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from olm.domain.model.lifecycle import OrderStatus, Role
from olm.domain.model.value_objects import Actor


@dataclass(frozen=True)
class OrderStatusChanged:
    """Raised once per successful transition, after the write."""

    order_id: str
    order_number: str
    from_status: OrderStatus
    to_status: OrderStatus
    actor: Actor
    occurred_at: datetime
    recipients: tuple[Role, ...]
    customer_id: str
    vendor_id: str
    delivery_partner_id: str | None = None
    note: str | None = None
