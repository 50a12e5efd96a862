"""Who hears about which status change."""

from __future__ import annotations

from olm.domain.model.lifecycle import OrderStatus, Role

_S = OrderStatus
_R = Role

# Keyed by target status; the rejection edge and cancellation are
# special-cased below.
_RECIPIENTS: dict[OrderStatus, tuple[Role, ...]] = {
    _S.CONFIRMED: (_R.CUSTOMER,),
    _S.PREPARING: (_R.CUSTOMER,),
    _S.READY: (_R.CUSTOMER, _R.DELIVERY_PARTNER),
    _S.ASSIGNED: (_R.CUSTOMER, _R.VENDOR),
    _S.PICKED_UP: (_R.CUSTOMER, _R.VENDOR),
    _S.ON_THE_WAY: (_R.CUSTOMER,),
    _S.DELIVERED: (_R.CUSTOMER, _R.VENDOR, _R.DELIVERY_PARTNER),
    _S.REFUNDED: (_R.CUSTOMER,),
}


def recipients_for(
    from_status: OrderStatus,
    to_status: OrderStatus,
    actor_role: Role,
) -> tuple[Role, ...]:
    """Roles to notify for *from_status* -> *to_status*.

    ``DELIVERY_PARTNER`` on a ``ready`` order means every available
    partner (a broadcast); elsewhere it means the assigned partner.
    """
    if from_status == _S.ASSIGNED and to_status == _S.READY:
        # Rejected by the partner: offer it to the pool again.
        return (_R.DELIVERY_PARTNER,)

    if to_status == _S.CANCELLED:
        if actor_role == _R.CUSTOMER:
            return (_R.VENDOR,)
        if actor_role == _R.VENDOR:
            return (_R.CUSTOMER,)
        return (_R.CUSTOMER, _R.VENDOR)

    return _RECIPIENTS.get(to_status, ())
