# artisan_market/services/order_status.py
from __future__ import annotations

from ..extensions import db
from ..errors import Forbidden, InvalidTransition, ValidationError
from ..model import Order, ORDER_STATUSES, PENDING, SHIPPED, DELIVERED, CANCELLED
from ..model.order import utcnow

ARTISAN_TRANSITIONS = {
    PENDING: {SHIPPED, CANCELLED},
    SHIPPED: {DELIVERED},
}
CUSTOMER_TRANSITIONS = {
    PENDING: {CANCELLED},
}

_STAMP = {
    SHIPPED: "shipped_at",
    DELIVERED: "delivered_at",
    CANCELLED: "cancelled_at",
}


def can_transition(current: str, requested: str, *, as_artisan: bool, as_customer: bool) -> bool:
    if as_artisan:
        if current == requested or requested in ARTISAN_TRANSITIONS.get(current, ()):
            return True
    if as_customer:
        if requested in CUSTOMER_TRANSITIONS.get(current, ()):
            return True
    return False


def transition(order: Order, requested: str, actor_id) -> Order:
    """Move ``order`` to ``requested`` on behalf of ``actor_id``.

    The artisan who owns the order may ship, deliver or cancel a pending
    order; the customer may only cancel while it is Pending. Re-requesting
    the current status is a no-op for the artisan.
    """
    as_artisan = actor_id is not None and order.artisan_id == actor_id
    as_customer = actor_id is not None and order.customer_id == actor_id
    if not as_artisan and not as_customer:
        raise Forbidden("Not authorized to update this order")

    if requested not in ORDER_STATUSES:
        raise ValidationError("Invalid status")

    current = order.status
    if not can_transition(current, requested, as_artisan=as_artisan, as_customer=as_customer):
        raise InvalidTransition(f"Cannot change status from {current} to {requested}")

    if current == requested:
        return order

    order.status = requested
    setattr(order, _STAMP[requested], utcnow())
    db.session.commit()
    return order
