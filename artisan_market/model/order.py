from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import NO_VALUE, NEVER_SET

from ..extensions import db
from ..errors import ImmutableFieldError
from ..utils.money import D, ZERO, as_number

PENDING, SHIPPED, DELIVERED, CANCELLED = "Pending", "Shipped", "Delivered", "Cancelled"
ORDER_STATUSES = (PENDING, SHIPPED, DELIVERED, CANCELLED)

# frozen once the row is inserted
FINANCIAL_FIELDS = ("amount", "discount", "coupon_id", "coupon_code")


def utcnow() -> datetime:
    # naive UTC, matching the DateTime columns
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class CustomerSnapshot:
    """Customer identity copied onto an order at checkout."""
    user_id: int | None
    name: str
    email: str | None = None


class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(db.Integer, db.ForeignKey("product.id", ondelete="SET NULL"), nullable=True, index=True)
    product_name = db.Column(db.String(255))
    artisan_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=True, index=True)

    # Customer snapshot
    customer_name = db.Column(db.String(180), nullable=False)
    customer_email = db.Column(db.String(255))

    # Money snapshot
    quantity = db.Column(db.Integer, nullable=False, default=1)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    amount = db.Column(db.Numeric(12, 2), nullable=False)

    # Coupon attribution; the whole discount lands on the first order of a checkout
    coupon_id = db.Column(db.Integer, db.ForeignKey("coupon.id", ondelete="SET NULL"), nullable=True, index=True)
    coupon_code = db.Column(db.String(64), nullable=True)
    discount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    coupon_counted = db.Column(db.Boolean, nullable=False, default=False)

    status = db.Column(db.String(20), nullable=False, default=PENDING, index=True)
    payment_id = db.Column(db.String(64), nullable=True, index=True)
    payment_verified = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    shipped_at = db.Column(db.DateTime, nullable=True)
    delivered_at = db.Column(db.DateTime, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    product = db.relationship("Product", lazy="joined")
    artisan = db.relationship("User", foreign_keys=[artisan_id], lazy="joined")
    customer = db.relationship("User", foreign_keys=[customer_id], lazy="select")

    @classmethod
    def place(cls, *, product, customer: CustomerSnapshot, quantity: int, unit_price,
              applied_discount=ZERO, coupon_id=None, coupon_code=None, payment_id=None) -> "Order":
        gross = D(unit_price) * int(quantity)
        applied = max(ZERO, min(D(applied_discount), gross))
        return cls(
            product_id=product.id,
            product=product,
            product_name=product.name,
            artisan_id=product.artisan_id,
            customer_id=customer.user_id,
            customer_name=customer.name,
            customer_email=customer.email,
            quantity=int(quantity),
            unit_price=D(unit_price),
            amount=max(ZERO, gross - applied),
            coupon_id=coupon_id,
            coupon_code=coupon_code,
            discount=applied,
            coupon_counted=False,
            status=PENDING,
            payment_id=payment_id or None,
            payment_verified=False,
        )

    @classmethod
    def detach_product(cls, product_id) -> int:
        """Unlink orders from a product about to be deleted; ``product_name`` stays."""
        return cls.query.filter(cls.product_id == product_id).update(
            {cls.product_id: None}, synchronize_session=False
        )

    @classmethod
    def detach_coupon(cls, coupon_id) -> int:
        """Unlink orders from a coupon about to be deleted; ``coupon_code`` stays."""
        return cls.query.filter(cls.coupon_id == coupon_id).update(
            {cls.coupon_id: None}, synchronize_session=False
        )

    @property
    def customer_snapshot(self) -> CustomerSnapshot:
        return CustomerSnapshot(self.customer_id, self.customer_name, self.customer_email)

    @property
    def short_ref(self) -> str:
        return f"{self.id:06d}"

    def as_api(self):
        if self.product is not None:
            product = self.product.as_summary()
        else:
            product = {"_id": self.product_id, "name": self.product_name, "image": None, "artisan": None}
        return {
            "_id": self.id,
            "product": product,
            "artisan": self.artisan_id,
            "customer": self.customer_id,
            "customerName": self.customer_name,
            "customerEmail": self.customer_email,
            "quantity": self.quantity,
            "amount": as_number(self.amount),
            "couponId": self.coupon_id,
            "couponCode": self.coupon_code,
            "discount": as_number(self.discount),
            "couponCounted": self.coupon_counted,
            "status": self.status,
            "paymentId": self.payment_id,
            "paymentVerified": self.payment_verified,
            "shippedAt": self.shipped_at.isoformat() if self.shipped_at else None,
            "deliveredAt": self.delivered_at.isoformat() if self.delivered_at else None,
            "cancelledAt": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


def _freeze(name):
    @event.listens_for(getattr(Order, name), "set", active_history=True)
    def _guard(target, value, oldvalue, initiator):
        if not inspect(target).persistent:
            return
        if oldvalue is NO_VALUE or oldvalue is NEVER_SET or oldvalue == value:
            return
        raise ImmutableFieldError(f"order {target.id}: {name} cannot change after checkout")


for _name in FINANCIAL_FIELDS:
    _freeze(_name)
