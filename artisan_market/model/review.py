# artisan_market/model/review.py
from sqlalchemy.sql import func
from ..extensions import db


class Review(db.Model):
    __tablename__ = "review"
    # one review per user per product
    __table_args__ = (db.UniqueConstraint("product_id", "user_id", name="uq_review_product_user"),)

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("product.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    rating = db.Column(db.Integer, nullable=False)
    text = db.Column(db.Text, nullable=False, default="")
    is_approved = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    product = db.relationship("Product", lazy="joined")
    user = db.relationship("User", lazy="joined")

    def as_api(self):
        return {
            "_id": self.id,
            "product": {"_id": self.product.id, "name": self.product.name} if self.product else self.product_id,
            "user": {"_id": self.user.id, "name": self.user.name, "email": self.user.email} if self.user else self.user_id,
            "rating": self.rating,
            "text": self.text,
            "isApproved": self.is_approved,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
