# artisan_market/services/coupon_service.py
"""Coupon ledger: validation, discount computation and usage counting.

Validation never mutates a coupon. Usage is recorded once per confirmed
payment by the payment webhook, which guards against double counting through
the ``coupon_counted`` flag on the orders of that payment.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import or_

from ..extensions import db
from ..errors import (
    Conflict,
    CouponExpired,
    CouponLimitReached,
    CouponMinimumNotMet,
    CouponNotFound,
    NotFound,
    ValidationError,
)
from ..model import Coupon, Order
from ..utils.money import D, ZERO, floor_money, as_number

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CouponQuote:
    id: int
    code: str
    type: str
    amount: Decimal
    min_subtotal: Decimal = ZERO

    @classmethod
    def from_coupon(cls, c: Coupon) -> "CouponQuote":
        return cls(id=c.id, code=c.code, type=c.type, amount=D(c.amount), min_subtotal=D(c.min_subtotal))

    def as_api(self):
        return {
            "id": self.id,
            "code": self.code,
            "type": self.type,
            "amount": as_number(self.amount),
            "minSubtotal": as_number(self.min_subtotal),
        }


def _now():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def validate(code, subtotal) -> CouponQuote:
    code = Coupon.normalize_code(code)
    coupon = Coupon.query.filter_by(code=code, active=True).first() if code else None
    if not coupon:
        raise CouponNotFound()
    if coupon.expires_at and coupon.expires_at < _now():
        raise CouponExpired()
    if coupon.exhausted:
        raise CouponLimitReached()
    sub = D(subtotal)
    if sub < D(coupon.min_subtotal):
        raise CouponMinimumNotMet(f"Minimum subtotal ₹{as_number(coupon.min_subtotal)} required")
    return CouponQuote.from_coupon(coupon)


def compute_discount(quote: CouponQuote, subtotal) -> Decimal:
    sub = max(ZERO, D(subtotal))
    if quote.type == "percent":
        disc = floor_money(sub * D(quote.amount) / Decimal(100))
    else:
        disc = min(sub, D(quote.amount))
    return max(ZERO, min(disc, sub))


def quote_for(coupon_id=None, code=None) -> CouponQuote | None:
    """Resolve the coupon a checkout refers to, by id first, then by code.

    Inactive coupons resolve to None. Limits and expiry are not re-checked:
    the customer may already have paid against a quote that was valid when
    the payment was created. The caller checks ``min_subtotal``.
    """
    coupon = None
    if coupon_id is not None:
        coupon = Coupon.query.filter_by(id=coupon_id, active=True).first()
    if coupon is None and code:
        coupon = Coupon.query.filter_by(code=Coupon.normalize_code(code), active=True).first()
    return CouponQuote.from_coupon(coupon) if coupon else None


def record_usage(coupon_id) -> bool:
    """Add one use in a single UPDATE; refuses to go past ``usage_limit``."""
    updated = (
        Coupon.query
        .filter(Coupon.id == coupon_id)
        .filter(or_(Coupon.usage_limit <= 0, Coupon.used_count < Coupon.usage_limit))
        .update({Coupon.used_count: Coupon.used_count + 1}, synchronize_session=False)
    )
    if not updated:
        log.warning("coupon %s: usage not recorded (missing or limit reached)", coupon_id)
        return False
    return True


# ---- administration ---------------------------------------------------------
def _naive_utc(dt):
    # store naive UTC
    if dt is not None and dt.tzinfo:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def create_coupon(body) -> Coupon:
    code = Coupon.normalize_code(body.code)
    if not code:
        raise ValidationError("Missing fields")
    if Coupon.query.filter_by(code=code).first():
        raise Conflict("Coupon code already exists")
    c = Coupon(
        code=code,
        type=body.type,
        amount=D(body.amount),
        min_subtotal=D(body.min_subtotal or 0),
        expires_at=_naive_utc(body.expires_at),
        active=body.active is not False,
        usage_limit=body.usage_limit or 0,
    )
    db.session.add(c)
    db.session.commit()
    log.info("coupon %s created (%s %s)", c.code, c.type, c.amount)
    return c


def update_coupon(coupon_id, body) -> Coupon:
    c = db.session.get(Coupon, coupon_id)
    if not c:
        raise NotFound("Not found")
    patch = body.model_dump(exclude_unset=True)
    if "code" in patch and patch["code"] is not None:
        code = Coupon.normalize_code(patch["code"])
        clash = Coupon.query.filter(Coupon.code == code, Coupon.id != c.id).first()
        if clash:
            raise Conflict("Coupon code already exists")
        c.code = code
    if patch.get("type") is not None:
        c.type = patch["type"]
    if patch.get("amount") is not None:
        c.amount = D(patch["amount"])
    if patch.get("min_subtotal") is not None:
        c.min_subtotal = D(patch["min_subtotal"])
    if "expires_at" in patch:
        c.expires_at = _naive_utc(patch["expires_at"])
    if patch.get("active") is not None:
        c.active = patch["active"]
    if patch.get("usage_limit") is not None:
        c.usage_limit = patch["usage_limit"]
    db.session.commit()
    return c


def delete_coupon(coupon_id) -> None:
    c = db.session.get(Coupon, coupon_id)
    if not c:
        raise NotFound("Not found")
    # orders keep coupon_code for audit
    Order.detach_coupon(c.id)
    db.session.delete(c)
    db.session.commit()
