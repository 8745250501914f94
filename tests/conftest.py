import hashlib
import hmac
import json

import pytest
from flask_jwt_extended import create_access_token

from artisan_market import create_app
from artisan_market.config import Config
from artisan_market.extensions import db
from artisan_market.model import Coupon, Product, User
from artisan_market.utils.money import D


class UnitConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET_KEY = "unit-test-jwt-secret-0123456789abcdef"
    RAZORPAY_KEY_ID = "rzp_test_key"
    RAZORPAY_KEY_SECRET = "rzp-key-secret"
    RAZORPAY_WEBHOOK_SECRET = "rzp-webhook-secret"
    ADMIN_EMAIL = ""
    ADMIN_EMAIL_APP_PASSWORD = ""
    LOG_LEVEL = "WARNING"

    @staticmethod
    def init_app(app):
        pass


class FakeOrders:
    def __init__(self):
        self.created = []

    def create(self, data):
        self.created.append(data)
        return {"id": f"order_{len(self.created)}", "entity": "order", "status": "created", **data}


class FakeRazorpay:
    def __init__(self):
        self.order = FakeOrders()


@pytest.fixture
def razorpay_client():
    return FakeRazorpay()


@pytest.fixture
def app(razorpay_client):
    app = create_app(UnitConfig, payment_client=razorpay_client)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(name, email, role="user"):
    u = User(name=name, email=email, role=role, password_hash="x")
    db.session.add(u)
    db.session.commit()
    return u


@pytest.fixture
def admin(app):
    return make_user("Admin", "admin@example.com", role="admin")


@pytest.fixture
def artisan(app):
    return make_user("Asha Potter", "asha@example.com")


@pytest.fixture
def other_artisan(app):
    return make_user("Ravi Weaver", "ravi@example.com")


@pytest.fixture
def customer(app):
    return make_user("Meera", "meera@example.com")


@pytest.fixture
def stranger(app):
    return make_user("Stranger", "stranger@example.com")


@pytest.fixture
def auth():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(identity=str(user.id))}"}
    return _headers


@pytest.fixture
def make_product(app):
    def _make(artisan, price, name="Clay Vase"):
        p = Product(name=name, price=D(price), artisan_id=artisan.id, stock=10)
        db.session.add(p)
        db.session.commit()
        return p
    return _make


@pytest.fixture
def make_coupon(app):
    def _make(code="SAVE500", type="flat", amount=500, min_subtotal=0, usage_limit=0,
              used_count=0, active=True, expires_at=None):
        c = Coupon(code=code, type=type, amount=D(amount), min_subtotal=D(min_subtotal),
                   usage_limit=usage_limit, used_count=used_count, active=active, expires_at=expires_at)
        db.session.add(c)
        db.session.commit()
        return c
    return _make


def reload(model, pk):
    db.session.expire_all()
    return db.session.get(model, pk)


def webhook_body(payment_id, event_type="payment.captured"):
    return json.dumps({
        "entity": "event",
        "type": event_type,
        "event": event_type,
        "payload": {"payment": {"entity": {"id": payment_id, "amount": 50000}}},
    }).encode("utf-8")


def webhook_signature(body, secret=UnitConfig.RAZORPAY_WEBHOOK_SECRET):
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
