"""Application service: Place Order use case (checkout).

Builds the price snapshot once and stores the order as ``pending``.
Nothing downstream recomputes these amounts.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from olm.application.dto import OrderDTO, OrderItemSpec, order_to_dto
from olm.domain.exceptions import ValidationError
from olm.domain.model.order import Order, OrderLineItem
from olm.domain.model.value_objects import Money, Quantity
from olm.domain.repository.order_repository import OrderRepository

logger = logging.getLogger(__name__)


class PlaceOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        delivery_fee: str = "30",
        free_delivery_above: str = "500",
        tax_rate: str = "0",
        currency: str = "INR",
    ) -> None:
        self._order_repo = order_repo
        self._currency = currency
        self._delivery_fee = Money.of(delivery_fee, currency)
        self._free_delivery_above = Money.of(free_delivery_above, currency)
        self._tax_rate = Decimal(str(tax_rate))

    def handle(
        self,
        customer_id: str,
        store_id: str,
        vendor_id: str,
        item_specs: list[OrderItemSpec],
        discount: str = "0",
        customer_note: str = "",
    ) -> OrderDTO:
        """Place a new order.

        Steps:
        1. Build OrderLineItems from the cart lines (price snapshot).
        2. Work out delivery fee and tax from the subtotal.
        3. Let the Order aggregate validate all checkout rules.
        4. Persist and return a DTO.
        """
        line_items = [
            OrderLineItem(
                product_id=spec.product_id,
                product_name=spec.product_name,
                quantity=Quantity(spec.quantity),
                unit_price=Money.of(spec.unit_price, self._currency),
            )
            for spec in item_specs
        ]
        if not line_items:
            raise ValidationError("Order must contain at least one item")

        subtotal = Money.zero(self._currency)
        for item in line_items:
            subtotal = subtotal + item.line_total

        if subtotal >= self._free_delivery_above:
            delivery_fee = Money.zero(self._currency)
        else:
            delivery_fee = self._delivery_fee

        order = Order.create(
            customer_id=customer_id,
            store_id=store_id,
            vendor_id=vendor_id,
            items=line_items,
            delivery_fee=delivery_fee,
            discount=Money.of(discount, self._currency),
            tax=subtotal.scaled(self._tax_rate),
            customer_note=customer_note,
        )
        self._order_repo.save(order)

        logger.info(
            "Order %s placed by customer %s (total %s)",
            order.order_number, order.customer_id, order.total,
        )
        return order_to_dto(order)
