# artisan_market/model/product.py
from ..extensions import db
from sqlalchemy.sql import func


class Product(db.Model):
    __tablename__ = "product"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    image = db.Column(db.String(1024))

    # generated or artisan-supplied copy
    description = db.Column(db.Text, nullable=False, default="")
    story = db.Column(db.Text, nullable=False, default="")
    caption = db.Column(db.Text, nullable=False, default="")

    category = db.Column(db.String(64), index=True)
    region = db.Column(db.String(128))
    price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    stock = db.Column(db.Integer, default=0)

    rating = db.Column(db.Float, default=0.0)
    rating_count = db.Column(db.Integer, default=0)

    artisan_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    artisan = db.relationship("User", lazy="joined")

    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, onupdate=func.now(), server_default=func.now())

    def as_summary(self):
        """The slice of a product embedded in orders."""
        return {
            "_id": self.id,
            "name": self.name,
            "image": self.image,
            "artisan": self.artisan.as_public() if self.artisan else None,
        }

    def as_api(self):
        from ..utils.money import as_number
        return {
            "_id": self.id,
            "name": self.name,
            "image": self.image,
            "description": self.description,
            "story": self.story,
            "caption": self.caption,
            "category": self.category,
            "region": self.region,
            "price": as_number(self.price),
            "stock": self.stock,
            "rating": self.rating or 0,
            "ratingCount": self.rating_count or 0,
            "artisan": self.artisan.as_public() if self.artisan else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
