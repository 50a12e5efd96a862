"""CLI commands for the Order aggregate."""

from __future__ import annotations

import click

from olm.application.dto import OrderDTO, OrderItemSpec, TransitionMetadata
from olm.application.issue_delivery_code import IssueDeliveryCodeHandler
from olm.application.list_orders import ListOrdersHandler
from olm.application.order_stats import OrderStatsHandler
from olm.application.place_order import PlaceOrderHandler
from olm.application.rate_order import RateOrderHandler
from olm.application.show_order import ShowOrderHandler
from olm.application.show_status_history import ShowStatusHistoryHandler
from olm.domain.exceptions import DomainException
from olm.domain.model.lifecycle import OrderStatus, Role, allowed_targets
from olm.domain.model.order import RatingKind
from olm.domain.model.value_objects import Actor
from olm.infrastructure.bootstrap import (
    delivery_code_service,
    notifier,
    order_repository,
    transition_handler,
)
from olm.infrastructure.config import get_settings

_ROLES = click.Choice([r.value for r in Role], case_sensitive=False)
_STATUSES = click.Choice([s.value for s in OrderStatus], case_sensitive=False)
_RATING_KINDS = click.Choice([k.value for k in RatingKind], case_sensitive=False)


def _parse_items(raw: str) -> list[OrderItemSpec]:
    """Parse 'Milk:2:45.00,Bread:1:30' into OrderItemSpec list."""
    specs: list[OrderItemSpec] = []
    for chunk in raw.split(","):
        chunk = chunk.strip()
        parts = chunk.rsplit(":", 2)
        if len(parts) != 3:
            raise click.BadParameter(
                f"Invalid item format '{chunk}'. Expected 'ProductName:Quantity:Price'."
            )
        name, qty_str, price = (p.strip() for p in parts)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{name}'."
            )
        specs.append(
            OrderItemSpec(
                product_id=name.lower().replace(" ", "-"),
                product_name=name,
                quantity=qty,
                unit_price=price,
            )
        )
    return specs


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order {dto.order_number}  (status={dto.status})")
    click.echo(f"ID:       {dto.id}")
    click.echo(f"Customer: {dto.customer_id}   Store: {dto.store_id}   Vendor: {dto.vendor_id}")
    if dto.delivery_partner_id:
        click.echo(f"Partner:  {dto.delivery_partner_id}")
    click.echo(f"Created:  {dto.created_at}")
    if dto.cancellation_reason:
        click.echo(f"Cancelled: {dto.cancellation_reason}")
    next_statuses = allowed_targets(OrderStatus.parse(dto.status))
    if next_statuses:
        click.echo(f"Next:     {', '.join(s.value for s in next_statuses)}")
    for label, score in (("Store", dto.store_rating), ("Delivery", dto.delivery_rating)):
        if score is not None:
            click.echo(f"{label + ' rating:':<17}{score}/5")
    click.echo()
    click.echo(f"  {'Product':<20} {'Qty':>5} {'Price':>12} {'Total':>12}")
    click.echo(f"  {'-'*51}")
    for item in dto.items:
        click.echo(
            f"  {item.product_name:<20} {item.quantity:>5} {item.unit_price:>12} {item.line_total:>12}"
        )
    click.echo(f"  {'-'*51}")
    for label, value in (
        ("Subtotal", dto.subtotal),
        ("Delivery fee", dto.delivery_fee),
        ("Tax", dto.tax),
        ("Discount", dto.discount),
        ("Order Total", dto.total),
    ):
        click.echo(f"  {label:<27} {value:>24}")


def _display_summary(orders: list[OrderDTO]) -> None:
    if not orders:
        click.echo("No orders found.")
        return
    click.echo(f"{'Order':<16} {'Status':<12} {'Customer':<12} {'Partner':<12} {'Total':>14}")
    click.echo("-" * 70)
    for dto in orders:
        click.echo(
            f"{dto.order_number:<16} {dto.status:<12} {dto.customer_id:<12} "
            f"{dto.delivery_partner_id or '-':<12} {dto.total:>14}"
        )


@click.command("place")
@click.option("--customer", required=True, help="Customer user id.")
@click.option("--store", required=True, help="Store id.")
@click.option("--vendor", required=True, help="Vendor user id.")
@click.option("--items", required=True, help="Items as 'Name:Qty:Price,Name:Qty:Price'.")
@click.option("--discount", default="0", show_default=True, help="Discount amount.")
@click.option("--note", default="", help="Note for the store.")
def order_place(customer: str, store: str, vendor: str, items: str, discount: str, note: str) -> None:
    """Place a new order (checkout)."""
    specs = _parse_items(items)
    settings = get_settings()

    handler = PlaceOrderHandler(
        order_repo=order_repository(),
        delivery_fee=settings.delivery_fee,
        free_delivery_above=settings.free_delivery_above,
        tax_rate=settings.tax_rate,
        currency=settings.currency,
    )

    try:
        dto = handler.handle(
            customer_id=customer,
            store_id=store,
            vendor_id=vendor,
            item_specs=specs,
            discount=discount,
            customer_note=note,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number} placed  (status={dto.status})")
    _display_order(dto)


@click.command("show")
@click.option("--id", "order_id", required=True, help="Order ID to display.")
def order_show(order_id: str) -> None:
    """Show details of an existing order."""
    handler = ShowOrderHandler(order_repo=order_repository())

    try:
        dto = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("history")
@click.option("--id", "order_id", required=True, help="Order ID.")
def order_history(order_id: str) -> None:
    """Show the status history of an order."""
    handler = ShowStatusHistoryHandler(order_repo=order_repository())

    try:
        entries = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"{'#':>3}  {'Status':<12} {'When':<21} {'By':<28} Note")
    click.echo("-" * 80)
    for n, entry in enumerate(entries, start=1):
        who = f"{entry.actor_role}:{entry.actor_id}"
        click.echo(
            f"{n:>3}  {entry.status:<12} {entry.timestamp:<21} {who:<28} {entry.note or ''}"
        )


@click.command("transition")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.option("--to", "target", required=True, type=_STATUSES, help="Target status.")
@click.option("--role", required=True, type=_ROLES, help="Role of the acting user.")
@click.option("--user", "user_id", required=True, help="Acting user id.")
@click.option("--note", default=None, help="Note recorded in the history.")
@click.option("--proof", default=None, help="Customer's delivery code (for 'delivered').")
@click.option("--reason", default=None, help="Cancellation reason.")
def order_transition(
    order_id: str,
    target: str,
    role: str,
    user_id: str,
    note: str | None,
    proof: str | None,
    reason: str | None,
) -> None:
    """Move an order to another status."""
    with notifier() as dispatch:
        handler = transition_handler(dispatch)
        try:
            actor = Actor.of(role, user_id)
            dto = handler.handle(
                order_id,
                target,
                actor,
                TransitionMetadata(note=note, proof=proof, reason=reason),
            )
        except DomainException as exc:
            raise click.ClickException(str(exc))

    click.echo(f"Order {dto.order_number} is now {dto.status}.")


@click.command("code")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.option("--customer", required=True, help="Customer user id.")
def order_code(order_id: str, customer: str) -> None:
    """Issue the delivery code the customer gives the delivery partner."""
    handler = IssueDeliveryCodeHandler(
        order_repo=order_repository(),
        delivery_codes=delivery_code_service(),
    )

    try:
        code = handler.handle(order_id, Actor.of(Role.CUSTOMER, customer))
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Delivery code: {code}")


@click.command("list")
@click.option("--role", required=True, type=_ROLES, help="Role of the viewing user.")
@click.option("--user", "user_id", required=True, help="Viewing user id.")
@click.option("--active", is_flag=True, default=False, help="Only orders still in progress.")
@click.option("--status", default=None, type=_STATUSES, help="Only orders in this status.")
@click.option("--limit", default=20, show_default=True, type=int)
def order_list(role: str, user_id: str, active: bool, status: str | None, limit: int) -> None:
    """List orders visible to a user."""
    handler = ListOrdersHandler(order_repo=order_repository())

    try:
        orders = handler.for_actor(
            Actor.of(role, user_id), active_only=active, status=status, limit=limit
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_summary(orders)


@click.command("available")
@click.option("--limit", default=50, show_default=True, type=int)
def order_available(limit: int) -> None:
    """List ready orders waiting for a delivery partner."""
    handler = ListOrdersHandler(order_repo=order_repository())
    _display_summary(handler.available_for_pickup(limit=limit))


@click.command("rate")
@click.option("--id", "order_id", required=True, help="Order ID.")
@click.option("--customer", required=True, help="Customer user id.")
@click.option("--type", "kind", required=True, type=_RATING_KINDS, help="What is rated.")
@click.option("--score", required=True, type=click.IntRange(1, 5), help="1 to 5.")
@click.option("--review", default="", help="Optional review text.")
def order_rate(order_id: str, customer: str, kind: str, score: int, review: str) -> None:
    """Rate the store or the delivery of a delivered order."""
    handler = RateOrderHandler(
        order_repo=order_repository(),
        max_update_attempts=get_settings().max_update_attempts,
    )

    try:
        dto = handler.handle(
            order_id, kind, score, Actor.of(Role.CUSTOMER, customer), review=review
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Thanks! Order {dto.order_number}: {kind} rated {score}/5.")


@click.command("stats")
@click.option(
    "--role",
    required=True,
    type=click.Choice([Role.VENDOR.value, Role.DELIVERY_PARTNER.value], case_sensitive=False),
)
@click.option("--user", "user_id", required=True, help="Vendor or delivery partner id.")
def order_stats(role: str, user_id: str) -> None:
    """Dashboard numbers for a vendor or a delivery partner."""
    handler = OrderStatsHandler(
        order_repo=order_repository(), currency=get_settings().currency
    )
    rows: list[tuple[str, object]]

    if Role.parse(role) == Role.VENDOR:
        vendor = handler.for_vendor(user_id)
        rows = [
            ("Total orders", vendor.total_orders),
            ("Today's orders", vendor.today_orders),
            ("Pending orders", vendor.pending_orders),
            ("Total revenue", vendor.total_revenue),
            ("Today's revenue", vendor.today_revenue),
            ("Store rating", vendor.average_rating),
        ]
    else:
        partner = handler.for_partner(user_id)
        rows = [
            ("Total deliveries", partner.total_deliveries),
            ("Today's deliveries", partner.today_deliveries),
            ("Active orders", partner.active_orders),
            ("Total earnings", partner.total_earnings),
            ("Today's earnings", partner.today_earnings),
            ("Delivery rating", partner.average_rating),
        ]

    for label, value in rows:
        click.echo(f"{label:<20} {'-' if value is None else value}")
