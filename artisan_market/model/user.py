# --- artisan_market/model/user.py ---

from sqlalchemy.sql import func
from ..extensions import db


class User(db.Model):
    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(180), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False, default="")
    avatar = db.Column(db.String(512), nullable=True)
    role = db.Column(db.String(50), nullable=False, default="user", index=True)  # roles: user, admin

    created_at = db.Column(db.DateTime, server_default=func.now())

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def as_dict(self):
        return {
            "_id": self.id,
            "name": self.name,
            "email": self.email,
            "avatar": self.avatar,
            "role": self.role,
        }

    def as_public(self):
        return {"_id": self.id, "name": self.name, "email": self.email, "avatar": self.avatar}
