# artisan_market/review/routes.py
from flask import request, jsonify

from ..extensions import db
from ..errors import NotFound
from ..model import Review
from ..schemas import ReviewApprovalRequest
from ..product.routes import refresh_rating
from ..utils.decorators import role_required
from . import bp


@bp.get("")
@role_required("admin")
def list_reviews():
    """status: all | pending | approved"""
    q = Review.query
    status = request.args.get("status")
    if status == "pending":
        q = q.filter(Review.is_approved.is_(False))
    elif status == "approved":
        q = q.filter(Review.is_approved.is_(True))
    items = q.order_by(Review.created_at.desc(), Review.id.desc()).all()
    return jsonify([r.as_api() for r in items])


@bp.patch("/<int:review_id>/approval")
@role_required("admin")
def set_approval(review_id: int):
    body = ReviewApprovalRequest.model_validate(request.get_json(silent=True) or {})
    r = db.session.get(Review, review_id)
    if not r:
        raise NotFound("Not found")
    r.is_approved = bool(body.is_approved)
    db.session.flush()
    refresh_rating(r.product_id)
    db.session.commit()
    return jsonify(r.as_api())
