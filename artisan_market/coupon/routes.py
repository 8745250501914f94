# artisan_market/coupon/routes.py
from __future__ import annotations
from flask import request, jsonify, current_app

from ..model import Coupon
from ..schemas import CouponValidateRequest, CouponCreateRequest, CouponUpdateRequest
from ..services import coupon_service
from ..utils.api import ok, err
from ..utils.decorators import login_required, role_required
from . import bp


@bp.post("/validate")
@login_required
def validate_coupon():
    body = CouponValidateRequest.model_validate(request.get_json(silent=True) or {})
    if not body.code.strip():
        return err("Coupon code is required", 400)
    quote = coupon_service.validate(body.code, body.subtotal)
    return jsonify(quote.as_api()), 200


# ---- admin ------------------------------------------------------------------
@bp.get("")
@role_required("admin")
def list_coupons():
    q = Coupon.query
    active = request.args.get("active")
    if active is not None:
        q = q.filter(Coupon.active == (active.lower() == "true"))
    items = q.order_by(Coupon.created_at.desc(), Coupon.id.desc()).all()
    current_app.logger.debug("list_coupons called, count = %d", len(items))
    return jsonify([c.as_api() for c in items]), 200


@bp.post("")
@role_required("admin")
def create_coupon():
    data = request.get_json(silent=True) or {}
    if not data.get("code") or not data.get("type") or data.get("amount") is None:
        return err("Missing fields", 400)
    c = coupon_service.create_coupon(CouponCreateRequest.model_validate(data))
    return jsonify(c.as_api()), 201


@bp.put("/<int:coupon_id>")
@role_required("admin")
def update_coupon(coupon_id: int):
    body = CouponUpdateRequest.model_validate(request.get_json(silent=True) or {})
    c = coupon_service.update_coupon(coupon_id, body)
    return jsonify(c.as_api()), 200


@bp.delete("/<int:coupon_id>")
@role_required("admin")
def delete_coupon(coupon_id: int):
    coupon_service.delete_coupon(coupon_id)
    return ok("Deleted")
