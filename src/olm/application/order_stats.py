"""Application service: Order Stats use case (query).

Dashboard numbers for a delivery partner or a vendor, derived from the
orders' status and status history.  "Today" starts at midnight UTC.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

from olm.application.dto import PartnerStatsDTO, VendorStatsDTO
from olm.domain.model.lifecycle import ACTIVE_DELIVERY_STATUSES, OrderStatus
from olm.domain.model.order import Order, Rating
from olm.domain.model.value_objects import Money
from olm.domain.repository.order_repository import OrderQuery, OrderRepository

# Orders a vendor still has to act on.
VENDOR_PENDING_STATUSES = frozenset(
    {OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PREPARING}
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _average(ratings: list[Rating]) -> float | None:
    if not ratings:
        return None
    return round(sum(r.score for r in ratings) / len(ratings), 2)


def _sum(amounts: list[Money], currency: str) -> Money:
    total = Money.zero(currency)
    for amount in amounts:
        total = total + amount
    return total


class OrderStatsHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        currency: str = "INR",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._order_repo = order_repo
        self._currency = currency
        self._clock = clock

    def for_partner(self, partner_id: str) -> PartnerStatsDTO:
        """Deliveries and earnings (delivery fees) of one delivery partner."""
        orders = self._order_repo.find(OrderQuery(delivery_partner_id=partner_id))
        midnight = self._midnight()

        delivered = [o for o in orders if o.status == OrderStatus.DELIVERED]
        delivered_today = [
            o for o in delivered if o.reached_at(OrderStatus.DELIVERED) >= midnight
        ]
        return PartnerStatsDTO(
            total_deliveries=len(delivered),
            today_deliveries=len(delivered_today),
            active_orders=sum(1 for o in orders if o.status in ACTIVE_DELIVERY_STATUSES),
            total_earnings=str(self._fees(delivered)),
            today_earnings=str(self._fees(delivered_today)),
            average_rating=_average(
                [o.delivery_rating for o in delivered if o.delivery_rating]
            ),
        )

    def for_vendor(self, vendor_id: str) -> VendorStatsDTO:
        """Order counts and revenue (delivered totals) of one vendor."""
        orders = self._order_repo.find(OrderQuery(vendor_id=vendor_id))
        midnight = self._midnight()

        today = [o for o in orders if o.created_at >= midnight]
        delivered = [o for o in orders if o.status == OrderStatus.DELIVERED]
        return VendorStatsDTO(
            total_orders=len(orders),
            today_orders=len(today),
            pending_orders=sum(1 for o in orders if o.status in VENDOR_PENDING_STATUSES),
            total_revenue=str(self._revenue(delivered)),
            today_revenue=str(
                self._revenue([o for o in delivered if o.created_at >= midnight])
            ),
            average_rating=_average([o.store_rating for o in orders if o.store_rating]),
        )

    def _midnight(self) -> datetime:
        return self._clock().astimezone(timezone.utc).replace(
            hour=0, minute=0, second=0, microsecond=0
        )

    def _fees(self, orders: list[Order]) -> Money:
        return _sum([o.pricing.delivery_fee for o in orders], self._currency)

    def _revenue(self, orders: list[Order]) -> Money:
        return _sum([o.total for o in orders], self._currency)
