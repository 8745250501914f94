# artisan_market/payment/routes.py
from flask import request, jsonify, current_app

from ..extensions import db
from ..errors import ApiError, ValidationError
from ..schemas import CreatePaymentRequest, VerifyPaymentRequest
from ..services import payment_gateway
from ..utils.api import err
from ..utils.money import as_number
from ..utils.decorators import login_required
from . import bp


@bp.get("/config")
def payment_config():
    gw = payment_gateway()
    return jsonify({"keyId": gw.settings.key_id, "enabled": gw.enabled})


@bp.post("/create-order")
@login_required
def create_order():
    body = CreatePaymentRequest.model_validate(request.get_json(silent=True) or {})
    gw = payment_gateway()
    intent = gw.create_intent(body.effective_subtotal, body.coupon_code)
    coupon = None
    if intent.coupon:
        coupon = {
            "id": intent.coupon.id,
            "code": intent.coupon.code,
            "type": intent.coupon.type,
            "amount": as_number(intent.coupon.amount),
        }
    return jsonify({
        "order": intent.order,
        "keyId": gw.settings.key_id,
        "subtotal": as_number(intent.subtotal),
        "discount": as_number(intent.discount),
        "payable": as_number(intent.payable),
        "coupon": coupon,
    })


@bp.post("/verify")
@login_required
def verify_payment():
    gw = payment_gateway()
    body = VerifyPaymentRequest.model_validate(request.get_json(silent=True) or {})
    if not body.razorpay_order_id or not body.razorpay_payment_id or not body.razorpay_signature:
        raise ValidationError("Missing payment params")
    if not gw.verify_signature(body.razorpay_order_id, body.razorpay_payment_id, body.razorpay_signature):
        return err("Invalid signature", 400, {"valid": False})
    return jsonify({"valid": True})


@bp.post("/webhook")
def webhook():
    raw = request.get_data(cache=False)
    signature = request.headers.get("x-razorpay-signature")
    try:
        payment_id = payment_gateway().handle_webhook(raw, signature)
    except ApiError as e:
        current_app.logger.warning("webhook rejected: %s", e.message)
        return e.message, e.status_code, {"Content-Type": "text/plain"}
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Webhook error")
        return "error", 500, {"Content-Type": "text/plain"}
    if payment_id:
        current_app.logger.info("webhook: payment %s confirmed", payment_id)
    return "ok", 200, {"Content-Type": "text/plain"}
