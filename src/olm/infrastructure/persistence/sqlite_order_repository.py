"""SQLite-backed implementation of OrderRepository.

Each order is stored as a JSON document.  ``status``,
``delivery_partner_id`` and ``version`` (history entries plus ratings)
are mirrored into columns so the conditional status update is a single
``UPDATE ... WHERE`` that SQLite applies atomically, across threads
and processes alike.
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import closing
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from olm.domain.model.lifecycle import ACTIVE_DELIVERY_STATUSES, OrderStatus, Role
from olm.domain.model.order import (
    Cancellation,
    Order,
    OrderLineItem,
    PriceBreakdown,
    Rating,
    Revision,
    StatusHistoryEntry,
)
from olm.domain.model.value_objects import Actor, Money, Quantity
from olm.domain.repository.order_repository import OrderQuery, OrderRepository

_SCHEMA = """
CREATE TABLE IF NOT EXISTS orders (
    id                  TEXT PRIMARY KEY,
    order_number        TEXT NOT NULL UNIQUE,
    status              TEXT NOT NULL,
    customer_id         TEXT NOT NULL,
    vendor_id           TEXT NOT NULL,
    delivery_partner_id TEXT,
    version             INTEGER NOT NULL,
    created_at          TEXT NOT NULL,
    document            TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS ix_orders_status ON orders (status, created_at);
CREATE INDEX IF NOT EXISTS ix_orders_partner ON orders (delivery_partner_id, status);
CREATE INDEX IF NOT EXISTS ix_orders_vendor ON orders (vendor_id, status);
CREATE INDEX IF NOT EXISTS ix_orders_customer ON orders (customer_id, created_at);
"""


def _rating_to_raw(rating: Rating | None) -> dict | None:
    if rating is None:
        return None
    return {
        "score": rating.score,
        "review": rating.review,
        "rated_at": rating.rated_at.isoformat(),
    }


def _rating_to_domain(raw: dict | None) -> Rating | None:
    if not raw:
        return None
    return Rating(
        score=raw["score"],
        review=raw.get("review", ""),
        rated_at=datetime.fromisoformat(raw["rated_at"]),
    )

class SqliteOrderRepository(OrderRepository):

    def __init__(self, db_path: Path, timeout: float = 10.0) -> None:
        self._db_path = db_path
        self._timeout = timeout
        self._ensure_schema()

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: str) -> Order | None:
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT document FROM orders WHERE id = ?", (order_id,)
            ).fetchone()
        return self._to_domain(json.loads(row[0])) if row else None

    def save(self, order: Order) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "INSERT INTO orders (id, order_number, status, customer_id, vendor_id, "
                "delivery_partner_id, version, created_at, document) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    order.id,
                    order.order_number,
                    order.status.value,
                    order.customer_id,
                    order.vendor_id,
                    order.delivery_partner_id,
                    order.revision.version,
                    order.created_at.isoformat(),
                    json.dumps(self._to_raw(order)),
                ),
            )

    def update_status(self, order: Order, expected: Revision) -> bool:
        with closing(self._connect()) as conn, conn:
            cursor = conn.execute(
                "UPDATE orders SET status = ?, delivery_partner_id = ?, version = ?, "
                "document = ? "
                "WHERE id = ? AND status = ? AND version = ? "
                "AND delivery_partner_id IS ?",
                (
                    order.status.value,
                    order.delivery_partner_id,
                    order.revision.version,
                    json.dumps(self._to_raw(order)),
                    order.id,
                    expected.status.value,
                    expected.version,
                    expected.delivery_partner_id,
                ),
            )
            return cursor.rowcount == 1

    def count_active_for_partner(self, partner_id: str) -> int:
        statuses = sorted(s.value for s in ACTIVE_DELIVERY_STATUSES)
        placeholders = ", ".join("?" for _ in statuses)
        with closing(self._connect()) as conn:
            row = conn.execute(
                f"SELECT COUNT(*) FROM orders WHERE delivery_partner_id = ? "
                f"AND status IN ({placeholders})",
                (partner_id, *statuses),
            ).fetchone()
        return row[0]

    def find(self, query: OrderQuery) -> list[Order]:
        clauses: list[str] = []
        params: list[object] = []

        if query.statuses is not None:
            statuses = sorted(s.value for s in query.statuses)
            clauses.append(f"status IN ({', '.join('?' for _ in statuses)})")
            params.extend(statuses)
        for column in ("customer_id", "vendor_id", "delivery_partner_id"):
            value = getattr(query, column)
            if value is not None:
                clauses.append(f"{column} = ?")
                params.append(value)
        if query.unassigned_only:
            clauses.append("delivery_partner_id IS NULL")

        sql = "SELECT document FROM orders"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY created_at " + ("ASC" if query.oldest_first else "DESC")
        if query.limit is not None:
            sql += " LIMIT ?"
            params.append(query.limit)

        with closing(self._connect()) as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._to_domain(json.loads(r[0])) for r in rows]

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        pricing = order.pricing
        return {
            "id": order.id,
            "order_number": order.order_number,
            "customer_id": order.customer_id,
            "store_id": order.store_id,
            "vendor_id": order.vendor_id,
            "delivery_partner_id": order.delivery_partner_id,
            "status": order.status.value,
            "created_at": order.created_at.isoformat(),
            "customer_note": order.customer_note,
            "currency": pricing.total.currency,
            "items": [
                {
                    "product_id": item.product_id,
                    "product_name": item.product_name,
                    "quantity": item.quantity.value,
                    "unit_price": str(item.unit_price.amount),
                }
                for item in order.items
            ],
            "pricing": {
                "subtotal": str(pricing.subtotal.amount),
                "delivery_fee": str(pricing.delivery_fee.amount),
                "discount": str(pricing.discount.amount),
                "tax": str(pricing.tax.amount),
                "total": str(pricing.total.amount),
            },
            "status_history": [
                {
                    "status": entry.status.value,
                    "timestamp": entry.timestamp.isoformat(),
                    "actor_role": entry.actor.role.value,
                    "actor_id": entry.actor.user_id,
                    "note": entry.note,
                }
                for entry in order.status_history
            ],
            "cancellation": (
                {
                    "reason": order.cancellation.reason,
                    "cancelled_at": order.cancellation.cancelled_at.isoformat(),
                    "cancelled_by": order.cancellation.cancelled_by.value,
                }
                if order.cancellation
                else None
            ),
            "store_rating": _rating_to_raw(order.store_rating),
            "delivery_rating": _rating_to_raw(order.delivery_rating),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        currency = raw.get("currency", "INR")

        def money(value: str) -> Money:
            return Money(Decimal(value), currency)

        items = [
            OrderLineItem(
                product_id=i["product_id"],
                product_name=i["product_name"],
                quantity=Quantity(i["quantity"]),
                unit_price=money(i["unit_price"]),
            )
            for i in raw["items"]
        ]
        p = raw["pricing"]
        pricing = PriceBreakdown(
            subtotal=money(p["subtotal"]),
            delivery_fee=money(p["delivery_fee"]),
            discount=money(p["discount"]),
            tax=money(p["tax"]),
            total=money(p["total"]),
        )
        history = [
            StatusHistoryEntry(
                status=OrderStatus(h["status"]),
                timestamp=datetime.fromisoformat(h["timestamp"]),
                actor=Actor(role=Role(h["actor_role"]), user_id=h["actor_id"]),
                note=h.get("note"),
            )
            for h in raw["status_history"]
        ]
        c = raw.get("cancellation")
        cancellation = (
            Cancellation(
                reason=c["reason"],
                cancelled_at=datetime.fromisoformat(c["cancelled_at"]),
                cancelled_by=Role(c["cancelled_by"]),
            )
            if c
            else None
        )
        return Order(
            id=raw["id"],
            order_number=raw["order_number"],
            customer_id=raw["customer_id"],
            store_id=raw["store_id"],
            vendor_id=raw["vendor_id"],
            items=items,
            pricing=pricing,
            status=OrderStatus(raw["status"]),
            status_history=history,
            delivery_partner_id=raw.get("delivery_partner_id"),
            cancellation=cancellation,
            customer_note=raw.get("customer_note", ""),
            created_at=datetime.fromisoformat(raw["created_at"]),
            store_rating=_rating_to_domain(raw.get("store_rating")),
            delivery_rating=_rating_to_domain(raw.get("delivery_rating")),
        )

    # --- Connection helpers ---------------------------------------------------

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path, timeout=self._timeout)

    def _ensure_schema(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        with closing(self._connect()) as conn, conn:
            conn.executescript(_SCHEMA)
