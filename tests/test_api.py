import hashlib
import hmac

from artisan_market.config import PaymentSettings
from artisan_market.model import Coupon, Order, Product
from artisan_market.services.payment_service import PaymentGateway

from conftest import reload, webhook_body, webhook_signature


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.get_json()["status"] == "healthy"


# ---- auth -------------------------------------------------------------------
def test_signup_login_me(client):
    r = client.post("/api/auth/signup", json={"name": "Asha", "email": "ASHA@example.com", "password": "secret1"})
    assert r.status_code == 201
    assert r.get_json()["user"]["role"] == "admin"  # first account

    r = client.post("/api/auth/login", json={"email": "asha@example.com", "password": "secret1"})
    assert r.status_code == 200
    token = r.get_json()["token"]

    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.get_json()["user"]["email"] == "asha@example.com"

    r = client.post("/api/auth/login", json={"email": "asha@example.com", "password": "wrong-pass"})
    assert r.status_code == 401


def test_protected_routes_need_token(client):
    r = client.post("/api/coupons/validate", json={"code": "X", "subtotal": 1})
    assert r.status_code == 401


# ---- coupons ----------------------------------------------------------------
def test_validate_coupon_contract(client, auth, customer, make_coupon):
    c = make_coupon(code="SAVE500", type="flat", amount=500, min_subtotal=100)
    r = client.post("/api/coupons/validate", json={"code": " save500", "subtotal": 1000}, headers=auth(customer))
    assert r.status_code == 200
    assert r.get_json() == {"id": c.id, "code": "SAVE500", "type": "flat", "amount": 500, "minSubtotal": 100}


def test_validate_coupon_errors(client, auth, customer, make_coupon):
    make_coupon(code="ONCE", usage_limit=1, used_count=1)
    make_coupon(code="BIG", min_subtotal=2000)
    h = auth(customer)

    r = client.post("/api/coupons/validate", json={"subtotal": 10}, headers=h)
    assert r.status_code == 400
    assert r.get_json()["message"] == "Coupon code is required"

    r = client.post("/api/coupons/validate", json={"code": "nope", "subtotal": 10}, headers=h)
    assert r.status_code == 404
    assert r.get_json() == {"message": "Coupon not found"}

    r = client.post("/api/coupons/validate", json={"code": "once", "subtotal": 5000}, headers=h)
    assert r.status_code == 400
    assert r.get_json()["message"] == "Coupon usage limit reached"

    r = client.post("/api/coupons/validate", json={"code": "big", "subtotal": 1999}, headers=h)
    assert r.status_code == 400
    assert "2000" in r.get_json()["message"]


def test_coupon_admin_crud(client, auth, admin, customer):
    h = auth(admin)
    r = client.post("/api/coupons", json={"code": "fest20", "type": "percent", "amount": 20, "usageLimit": 5},
                    headers=h)
    assert r.status_code == 201
    created = r.get_json()
    assert created["code"] == "FEST20"
    assert created["usedCount"] == 0

    r = client.post("/api/coupons", json={"code": "FEST20", "type": "flat", "amount": 1}, headers=h)
    assert r.status_code == 409

    r = client.post("/api/coupons", json={"code": "X"}, headers=h)
    assert r.status_code == 400

    r = client.put(f"/api/coupons/{created['_id']}", json={"active": False, "code": "fest25"}, headers=h)
    assert r.status_code == 200
    assert r.get_json()["code"] == "FEST25"
    assert r.get_json()["active"] is False

    r = client.get("/api/coupons", headers=h)
    assert [c["code"] for c in r.get_json()] == ["FEST25"]

    r = client.get("/api/coupons", headers=auth(customer))
    assert r.status_code == 403

    r = client.delete(f"/api/coupons/{created['_id']}", headers=h)
    assert r.status_code == 200
    assert reload(Coupon, created["_id"]) is None
    r = client.delete(f"/api/coupons/{created['_id']}", headers=h)
    assert r.status_code == 404


# ---- checkout & orders ------------------------------------------------------
def test_checkout_contract(client, auth, customer, artisan, make_product, make_coupon):
    cheap = make_product(artisan, 300, name="Bowl")
    dear = make_product(artisan, 700, name="Rug")
    c = make_coupon(code="SAVE500", type="flat", amount=500)

    r = client.post("/api/orders/checkout", headers=auth(customer), json={
        "items": [{"_id": cheap.id, "quantity": 1}, {"_id": dear.id, "quantity": 0}, {"_id": 9999}],
        "customerName": "Meera K",
        "paymentId": "pay_XYZ",
        # the client's discount figure is not trusted
        "coupon": {"id": c.id, "code": "SAVE500", "discount": 999999},
    })
    assert r.status_code == 201
    data = r.get_json()
    assert data["message"] == "Order placed"
    orders = sorted(data["orders"], key=lambda o: o["_id"])
    assert len(orders) == 2
    first, second = orders
    assert (first["amount"], first["discount"]) == (0, 300)
    assert (second["amount"], second["discount"]) == (700, 0)
    assert first["status"] == "Pending"
    assert first["customerName"] == "Meera K"
    assert first["customerEmail"] == customer.email
    assert first["paymentId"] == "pay_XYZ"
    assert first["couponCode"] == "SAVE500"
    assert first["couponCounted"] is False
    assert first["paymentVerified"] is False
    assert first["product"]["name"] == "Bowl"
    assert first["product"]["artisan"]["name"] == artisan.name


def test_checkout_rejects_empty_cart(client, auth, customer):
    r = client.post("/api/orders/checkout", headers=auth(customer), json={"items": []})
    assert r.status_code == 400
    assert r.get_json() == {"message": "No items to place order"}


def test_status_update_flow(client, auth, customer, artisan, stranger, make_product):
    p = make_product(artisan, 250)
    r = client.post("/api/orders/checkout", headers=auth(customer), json={"items": [{"_id": p.id, "quantity": 2}]})
    order_id = r.get_json()["orders"][0]["_id"]
    url = f"/api/orders/{order_id}/status"

    r = client.patch(url, json={"status": "Delivered"}, headers=auth(artisan))
    assert r.status_code == 400
    assert r.get_json()["message"] == "Cannot change status from Pending to Delivered"

    r = client.patch(url, json={"status": "Shipped"}, headers=auth(stranger))
    assert r.status_code == 403

    r = client.patch(url, json={"status": "Shipped"}, headers=auth(artisan))
    assert r.status_code == 200
    assert r.get_json()["order"]["status"] == "Shipped"
    assert r.get_json()["order"]["shippedAt"] is not None

    r = client.put(url, json={"status": "Cancelled"}, headers=auth(customer))
    assert r.status_code == 400

    r = client.put(url, json={"status": "Delivered"}, headers=auth(artisan))
    assert r.status_code == 200
    assert reload(Order, order_id).status == "Delivered"

    r = client.patch("/api/orders/424242/status", json={"status": "Shipped"}, headers=auth(artisan))
    assert r.status_code == 404


def test_order_listings(client, auth, customer, artisan, other_artisan, make_product):
    a = make_product(artisan, 100)
    b = make_product(other_artisan, 900)
    client.post("/api/orders/checkout", headers=auth(customer),
                json={"items": [{"_id": a.id}, {"_id": b.id}, {"_id": a.id, "quantity": 3}]})

    r = client.get("/api/orders/mine?sort=amount_desc", headers=auth(artisan))
    data = r.get_json()
    assert data["total"] == 2
    assert [o["amount"] for o in data["items"]] == [300, 100]

    r = client.get("/api/orders/customer?pageSize=2&page=2", headers=auth(customer))
    data = r.get_json()
    assert (data["total"], data["page"], data["pageSize"]) == (3, 2, 2)
    assert len(data["items"]) == 1

    r = client.get("/api/orders/customer?status=Shipped", headers=auth(customer))
    assert r.get_json()["total"] == 0


# ---- payments ---------------------------------------------------------------
def test_payment_config(client):
    assert client.get("/api/payments/config").get_json() == {"keyId": "rzp_test_key", "enabled": True}


def test_create_order_recomputes_discount(client, auth, customer, make_coupon, razorpay_client):
    make_coupon(code="SAVE500", type="flat", amount=500)
    r = client.post("/api/payments/create-order", headers=auth(customer),
                    json={"subtotal": 1200, "couponCode": "save500"})
    assert r.status_code == 200
    data = r.get_json()
    assert (data["subtotal"], data["discount"], data["payable"]) == (1200, 500, 700)
    assert data["coupon"]["code"] == "SAVE500"
    assert data["keyId"] == "rzp_test_key"
    assert data["order"]["amount"] == 70000
    assert razorpay_client.order.created[-1]["amount"] == 70000


def test_create_order_accepts_legacy_amount(client, auth, customer):
    r = client.post("/api/payments/create-order", headers=auth(customer), json={"amount": 50})
    assert r.get_json()["payable"] == 50
    assert r.get_json()["coupon"] is None


def test_create_order_requires_amount(client, auth, customer):
    r = client.post("/api/payments/create-order", headers=auth(customer), json={})
    assert r.status_code == 400
    assert r.get_json() == {"message": "Amount is required"}


def test_verify_payment(client, auth, customer):
    sig = hmac.new(b"rzp-key-secret", b"order_1|pay_1", hashlib.sha256).hexdigest()
    payload = {"razorpay_order_id": "order_1", "razorpay_payment_id": "pay_1", "razorpay_signature": sig}
    r = client.post("/api/payments/verify", headers=auth(customer), json=payload)
    assert r.get_json() == {"valid": True}

    r = client.post("/api/payments/verify", headers=auth(customer), json={**payload, "razorpay_signature": "0" * 64})
    assert r.status_code == 400
    assert r.get_json()["valid"] is False

    r = client.post("/api/payments/verify", headers=auth(customer), json={"razorpay_order_id": "order_1"})
    assert r.status_code == 400
    assert r.get_json()["message"] == "Missing payment params"


def test_webhook_endpoint_is_idempotent(client, auth, customer, artisan, make_product, make_coupon):
    c = make_coupon(code="SAVE500", type="flat", amount=500, usage_limit=5)
    p = make_product(artisan, 1000)
    client.post("/api/orders/checkout", headers=auth(customer), json={
        "items": [{"_id": p.id}], "paymentId": "pay_W1", "coupon": {"id": c.id, "code": "SAVE500"},
    })

    body = webhook_body("pay_W1")
    for _ in range(2):
        r = client.post("/api/payments/webhook", data=body, content_type="application/json",
                        headers={"x-razorpay-signature": webhook_signature(body)})
        assert r.status_code == 200
        assert r.get_data(as_text=True) == "ok"

    assert reload(Coupon, c.id).used_count == 1
    (o,) = Order.query.filter_by(payment_id="pay_W1").all()
    assert o.payment_verified is True and o.coupon_counted is True


def test_webhook_endpoint_rejects_bad_signature(client):
    body = webhook_body("pay_W1")
    r = client.post("/api/payments/webhook", data=body, content_type="application/json",
                    headers={"x-razorpay-signature": "forged"})
    assert r.status_code == 400
    assert r.get_data(as_text=True) == "Invalid signature"


# ---- products & reviews -----------------------------------------------------
def test_product_create_uses_fallback_copy(client, auth, artisan):
    r = client.post("/api/products", headers=auth(artisan), json={"name": "Terracotta Lamp", "price": 450})
    assert r.status_code == 201
    data = r.get_json()
    assert data["description"].startswith("Beautiful handcrafted Terracotta Lamp")
    assert data["caption"].endswith("#TerracottaLamp")
    assert data["artisan"]["_id"] == artisan.id

    r = client.get("/api/products/mine/list", headers=auth(artisan))
    assert [p["name"] for p in r.get_json()] == ["Terracotta Lamp"]


def test_generate_content_needs_name(client):
    assert client.post("/api/products/generate", json={}).status_code == 400
    r = client.post("/api/products/generate", json={"productName": "Jute Bag"})
    assert set(r.get_json()) == {"description", "story", "caption"}


def test_only_owner_deletes_product(client, auth, artisan, stranger, make_product):
    p = make_product(artisan, 10)
    assert client.delete(f"/api/products/{p.id}", headers=auth(stranger)).status_code == 403
    assert client.delete(f"/api/products/{p.id}", headers=auth(artisan)).status_code == 200
    assert reload(Product, p.id) is None


def test_reviews_and_moderation(client, auth, admin, customer, stranger, artisan, make_product):
    p = make_product(artisan, 10)
    url = f"/api/products/{p.id}/reviews"

    assert client.post(url, json={"rating": 6}, headers=auth(customer)).status_code == 400
    assert client.post(url, json={"rating": 4, "text": "Lovely"}, headers=auth(customer)).status_code == 201
    assert client.post(url, json={"rating": 5}, headers=auth(customer)).status_code == 409
    assert client.post(url, json={"rating": 2}, headers=auth(stranger)).status_code == 201
    assert reload(Product, p.id).rating == 3.0

    reviews = client.get("/api/reviews?status=approved", headers=auth(admin)).get_json()
    low = next(rv for rv in reviews if rv["rating"] == 2)
    r = client.patch(f"/api/reviews/{low['_id']}/approval", json={"isApproved": False}, headers=auth(admin))
    assert r.status_code == 200
    assert r.get_json()["isApproved"] is False

    p = reload(Product, p.id)
    assert (p.rating, p.rating_count) == (4.0, 1)
    assert [rv["rating"] for rv in client.get(url).get_json()] == [4]
    assert len(client.get("/api/reviews?status=pending", headers=auth(admin)).get_json()) == 1
    assert client.get("/api/reviews", headers=auth(customer)).status_code == 403


def test_webhook_endpoint_rejects_malformed_body(client):
    body = b"{not json"
    r = client.post("/api/payments/webhook", data=body, content_type="application/json",
                    headers={"x-razorpay-signature": webhook_signature(body)})
    assert r.status_code == 400
    assert r.get_data(as_text=True) == "Malformed webhook body"


def test_verify_payment_without_key_secret(app, client, auth, customer):
    app.extensions["payment_gateway"] = PaymentGateway(PaymentSettings(key_id="k"))
    sig = hmac.new(b"rzp-key-secret", b"order_1|pay_1", hashlib.sha256).hexdigest()
    r = client.post("/api/payments/verify", headers=auth(customer), json={
        "razorpay_order_id": "order_1", "razorpay_payment_id": "pay_1", "razorpay_signature": sig,
    })
    assert r.status_code == 400
    assert r.get_json() == {"message": "Invalid signature", "valid": False}


def test_checkout_ignores_inactive_coupon(client, auth, customer, artisan, make_product, make_coupon):
    p = make_product(artisan, 600)
    c = make_coupon(code="OLDSALE", type="flat", amount=500, active=False, min_subtotal=5000)
    r = client.post("/api/orders/checkout", headers=auth(customer), json={
        "items": [{"_id": p.id}], "coupon": {"id": c.id, "code": "OLDSALE", "discount": 500},
    })
    (o,) = r.get_json()["orders"]
    assert (o["amount"], o["discount"]) == (600, 0)
