# artisan_market/services/checkout_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass

from ..extensions import db
from ..errors import ValidationError
from ..model import Order, Product, CustomerSnapshot
from ..utils.money import D, ZERO
from . import coupon_service
from .coupon_service import CouponQuote

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int = 1

    @classmethod
    def clamp(cls, product_id, quantity) -> "CartLine":
        try:
            qty = int(quantity or 1)
        except (TypeError, ValueError):
            qty = 1
        return cls(product_id=int(product_id), quantity=max(1, qty))


def _resolve(lines):
    """(product, line) pairs for lines whose product still exists."""
    ids = {ln.product_id for ln in lines}
    products = Product.query.filter(Product.id.in_(ids)).all() if ids else []
    pmap = {p.id: p for p in products}
    resolved = []
    for ln in lines:
        p = pmap.get(ln.product_id)
        if p is None:
            log.info("checkout: product %s no longer exists, line skipped", ln.product_id)
            continue
        resolved.append((p, ln))
    return resolved


def checkout(customer: CustomerSnapshot, lines, coupon: CouponQuote | None = None,
             payment_id: str | None = None) -> list[Order]:
    """Turn cart lines into Pending orders, one per resolved line.

    Prices and artisans come from the product rows. The coupon discount is
    computed on the resolved subtotal and applied to the first order only,
    capped at that order's gross; whatever is left over is dropped.
    Lines whose product is gone are skipped without error.
    """
    if not lines:
        raise ValidationError("No items to place order")

    resolved = _resolve(lines)

    pool = ZERO
    if coupon is not None and resolved:
        subtotal = sum((D(p.price) * ln.quantity for p, ln in resolved), ZERO)
        if subtotal < D(coupon.min_subtotal):
            log.info("checkout: coupon %s dropped, subtotal %s below minimum", coupon.code, subtotal)
            coupon = None
        else:
            pool = coupon_service.compute_discount(coupon, subtotal)

    created = []
    for p, ln in resolved:
        gross = D(p.price) * ln.quantity
        applied = ZERO
        if not created and pool > 0:
            applied = min(pool, gross)
            pool -= applied
        order = Order.place(
            product=p,
            customer=customer,
            quantity=ln.quantity,
            unit_price=p.price,
            applied_discount=applied,
            coupon_id=coupon.id if coupon else None,
            coupon_code=coupon.code if coupon else None,
            payment_id=payment_id,
        )
        db.session.add(order)
        created.append(order)

    db.session.commit()
    if len(created) < len(lines):
        log.warning("checkout: %d of %d lines placed", len(created), len(lines))
    return created
