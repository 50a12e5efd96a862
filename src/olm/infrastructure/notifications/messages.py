"""Push message texts for order status changes.

Only the wording lives here; getting a message onto a device is the
transport's problem.
"""

from __future__ import annotations

from dataclasses import dataclass

from olm.domain.events import OrderStatusChanged
from olm.domain.model.lifecycle import OrderStatus, Role


@dataclass(frozen=True)
class Notification:
    role: Role
    user_id: str | None  # None means every user with that role
    title: str
    body: str
    kind: str


_S = OrderStatus
_R = Role

# (target status, recipient role) -> (kind, title, body template)
_TEMPLATES: dict[tuple[OrderStatus, Role], tuple[str, str, str]] = {
    (_S.CONFIRMED, _R.CUSTOMER): (
        "order_accepted", "Order Accepted!",
        "Your order #{ref} has been accepted by the store",
    ),
    (_S.PREPARING, _R.CUSTOMER): (
        "order_preparing", "Order Being Prepared",
        "The store is packing your order #{ref}",
    ),
    (_S.READY, _R.CUSTOMER): (
        "order_ready", "Order Ready!",
        "Your order #{ref} is ready for delivery",
    ),
    (_S.READY, _R.DELIVERY_PARTNER): (
        "delivery_available", "New Delivery Available!",
        "Order #{ref} is ready for pickup",
    ),
    (_S.ASSIGNED, _R.CUSTOMER): (
        "partner_assigned", "Delivery Partner Assigned",
        "A delivery partner will pick up your order #{ref} soon",
    ),
    (_S.ASSIGNED, _R.VENDOR): (
        "partner_assigned", "Delivery Partner Assigned",
        "A delivery partner is on the way to collect order #{ref}",
    ),
    (_S.PICKED_UP, _R.CUSTOMER): (
        "order_picked_up", "Order Picked Up!",
        "Your order #{ref} has left the store",
    ),
    (_S.PICKED_UP, _R.VENDOR): (
        "order_picked_up", "Order Picked Up!",
        "Order #{ref} has been picked up by the delivery partner",
    ),
    (_S.ON_THE_WAY, _R.CUSTOMER): (
        "order_on_the_way", "Order On The Way",
        "Your order #{ref} is on the way. Keep your delivery code handy",
    ),
    (_S.DELIVERED, _R.CUSTOMER): (
        "order_delivered", "Order Delivered!",
        "Your order #{ref} has been delivered",
    ),
    (_S.DELIVERED, _R.VENDOR): (
        "order_completed", "Order Completed!",
        "Order #{ref} has been successfully delivered",
    ),
    (_S.DELIVERED, _R.DELIVERY_PARTNER): (
        "delivery_completed", "Delivery Completed!",
        "You've completed order #{ref}",
    ),
    (_S.CANCELLED, _R.CUSTOMER): (
        "order_cancelled", "Order Cancelled",
        "Order #{ref} has been cancelled. {note}",
    ),
    (_S.CANCELLED, _R.VENDOR): (
        "order_cancelled", "Order Cancelled",
        "Order #{ref} was cancelled by the customer. {note}",
    ),
    (_S.REFUNDED, _R.CUSTOMER): (
        "order_refunded", "Refund Issued",
        "Your payment for order #{ref} has been refunded",
    ),
}


def render(event: OrderStatusChanged) -> list[Notification]:
    """One Notification per recipient role of *event*."""
    ref = event.order_number[-6:]
    notifications: list[Notification] = []
    for role in event.recipients:
        template = _TEMPLATES.get((event.to_status, role))
        if template is None:
            continue
        kind, title, body = template
        notifications.append(
            Notification(
                role=role,
                user_id=_user_for(event, role),
                title=title,
                body=body.format(ref=ref, note=event.note or "").strip(),
                kind=kind,
            )
        )
    return notifications


def _user_for(event: OrderStatusChanged, role: Role) -> str | None:
    if role == Role.CUSTOMER:
        return event.customer_id
    if role == Role.VENDOR:
        return event.vendor_id
    if role == Role.DELIVERY_PARTNER and event.to_status != OrderStatus.READY:
        return event.delivery_partner_id
    return None
