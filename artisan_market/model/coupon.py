# --- artisan_market/model/coupon.py ---

from ..extensions import db
from sqlalchemy.sql import func

COUPON_TYPES = ("percent", "flat")


class Coupon(db.Model):
    __tablename__ = "coupon"
    __table_args__ = (
        db.CheckConstraint("amount >= 0", name="ck_coupon_amount_nonnegative"),
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), unique=True, nullable=False, index=True)  # stored uppercase

    # "percent" or "flat"
    type = db.Column(db.String(16), nullable=False, default="percent")
    amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    min_subtotal = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    expires_at = db.Column(db.DateTime, nullable=True)

    usage_limit = db.Column(db.Integer, nullable=False, default=0)  # 0 = unlimited
    used_count = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    @staticmethod
    def normalize_code(code) -> str:
        return str(code or "").strip().upper()

    @property
    def exhausted(self) -> bool:
        return bool(self.usage_limit and self.usage_limit > 0 and self.used_count >= self.usage_limit)

    def as_api(self):
        from ..utils.money import as_number
        return {
            "_id": self.id,
            "code": self.code,
            "type": self.type,
            "amount": as_number(self.amount),
            "minSubtotal": as_number(self.min_subtotal),
            "active": self.active,
            "expiresAt": self.expires_at.isoformat() if self.expires_at else None,
            "usageLimit": self.usage_limit,
            "usedCount": self.used_count,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
