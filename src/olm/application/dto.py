"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass

from olm.domain.model.order import Order, StatusHistoryEntry

_TIME_FORMAT = "%Y-%m-%d %H:%M UTC"


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: a cart line as handed over by checkout."""

    product_id: str
    product_name: str
    quantity: int
    unit_price: str


@dataclass(frozen=True)
class TransitionMetadata:
    """Optional input for a status change.

    ``proof`` is the customer's delivery code (needed to deliver);
    ``reason`` is kept on cancellation and falls back to ``note``.
    """

    note: str | None = None
    proof: str | None = None
    reason: str | None = None


@dataclass(frozen=True)
class OrderLineItemDTO:
    product_name: str
    quantity: int
    unit_price: str  # formatted, e.g. "INR 45.00"
    line_total: str


@dataclass(frozen=True)
class StatusHistoryEntryDTO:
    status: str
    timestamp: str
    actor_role: str
    actor_id: str
    note: str | None


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: str
    order_number: str
    status: str
    customer_id: str
    store_id: str
    vendor_id: str
    delivery_partner_id: str | None
    items: list[OrderLineItemDTO]
    subtotal: str
    delivery_fee: str
    discount: str
    tax: str
    total: str
    created_at: str
    history: list[StatusHistoryEntryDTO]
    cancellation_reason: str | None = None
    delivery_minutes: int | None = None
    store_rating: int | None = None
    delivery_rating: int | None = None


@dataclass(frozen=True)
class PartnerStatsDTO:
    total_deliveries: int
    today_deliveries: int
    active_orders: int
    total_earnings: str
    today_earnings: str
    average_rating: float | None


@dataclass(frozen=True)
class VendorStatsDTO:
    total_orders: int
    today_orders: int
    pending_orders: int
    total_revenue: str
    today_revenue: str
    average_rating: float | None


def history_entry_to_dto(entry: StatusHistoryEntry) -> StatusHistoryEntryDTO:
    return StatusHistoryEntryDTO(
        status=entry.status.value,
        timestamp=entry.timestamp.strftime(_TIME_FORMAT),
        actor_role=entry.actor.role.value,
        actor_id=entry.actor.user_id,
        note=entry.note,
    )


def order_to_dto(order: Order) -> OrderDTO:
    pricing = order.pricing
    return OrderDTO(
        id=order.id,
        order_number=order.order_number,
        status=order.status.value,
        customer_id=order.customer_id,
        store_id=order.store_id,
        vendor_id=order.vendor_id,
        delivery_partner_id=order.delivery_partner_id,
        items=[
            OrderLineItemDTO(
                product_name=item.product_name,
                quantity=item.quantity.value,
                unit_price=str(item.unit_price),
                line_total=str(item.line_total),
            )
            for item in order.items
        ],
        subtotal=str(pricing.subtotal),
        delivery_fee=str(pricing.delivery_fee),
        discount=str(pricing.discount),
        tax=str(pricing.tax),
        total=str(pricing.total),
        created_at=order.created_at.strftime(_TIME_FORMAT),
        history=[history_entry_to_dto(e) for e in order.status_history],
        cancellation_reason=order.cancellation.reason if order.cancellation else None,
        delivery_minutes=order.delivery_minutes,
        store_rating=order.store_rating.score if order.store_rating else None,
        delivery_rating=order.delivery_rating.score if order.delivery_rating else None,
    )
