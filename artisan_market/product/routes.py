from flask import request, jsonify, current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import Conflict, Forbidden, NotFound, ValidationError
from ..model import Order, Product, Review
from ..schemas import ProductCreateRequest, GenerateContentRequest, ReviewCreateRequest
from ..services import content_service, content_generator, mailer
from ..utils.money import D
from ..utils.decorators import login_required, current_user
from . import bp


# ---------- helpers ----------
def _get_product(product_id: int) -> Product:
    p = db.session.get(Product, product_id)
    if not p:
        raise NotFound("Product not found")
    return p


def refresh_rating(product_id: int) -> None:
    """Recompute a product's rating from its approved reviews."""
    avg, count = (
        db.session.query(func.avg(Review.rating), func.count(Review.id))
        .filter(Review.product_id == product_id, Review.is_approved.is_(True))
        .one()
    )
    p = db.session.get(Product, product_id)
    if p is None:
        return
    p.rating = round(float(avg), 1) if count else 0.0
    p.rating_count = int(count or 0)


# ---------- content ----------
@bp.post("/generate")
def generate_content():
    body = GenerateContentRequest.model_validate(request.get_json(silent=True) or {})
    name = (body.product_name or body.name or "").strip()
    if not name:
        raise ValidationError("Product name is required")
    return jsonify(content_service.generate(name, content_generator()))


# ---------- products ----------
@bp.post("")
@login_required
def add_product():
    artisan = current_user()
    body = ProductCreateRequest.model_validate(request.get_json(silent=True) or {})
    name = body.name.strip()

    # copy supplied by the client (from an earlier /generate) wins over a fresh generation
    if body.description or body.story or body.caption:
        base = content_service.fallback_content(name)
        copy = {
            "description": body.description or base["description"],
            "story": body.story or base["story"],
            "caption": body.caption or base["caption"],
        }
    else:
        copy = content_service.generate(name, content_generator())

    p = Product(
        name=name,
        image=body.image,
        category=(body.category or "").strip().lower() or None,
        region=(body.region or "").strip() or None,
        price=D(body.price),
        stock=body.stock,
        artisan_id=artisan.id,
        **copy,
    )
    db.session.add(p)
    db.session.commit()

    mailer().product_added(p, artisan)
    return jsonify(p.as_api()), 201


@bp.get("/<int:product_id>")
def get_product(product_id: int):
    return jsonify(_get_product(product_id).as_api())


@bp.get("/mine/list")
@login_required
def my_products():
    items = (
        Product.query.filter(Product.artisan_id == current_user().id)
        .order_by(Product.created_at.desc(), Product.id.desc())
        .all()
    )
    return jsonify([p.as_api() for p in items])


@bp.delete("/<int:product_id>")
@login_required
def delete_product(product_id: int):
    p = _get_product(product_id)
    if p.artisan_id != current_user().id:
        raise Forbidden("Not authorized to delete this product")
    # orders keep their product_name snapshot; reviews go with the product
    Review.query.filter(Review.product_id == p.id).delete(synchronize_session=False)
    Order.detach_product(p.id)
    db.session.delete(p)
    db.session.commit()
    current_app.logger.info("product %s deleted by artisan %s", product_id, p.artisan_id)
    return jsonify({"message": "Product deleted"})


# ---------- reviews ----------
@bp.get("/<int:product_id>/reviews")
def product_reviews(product_id: int):
    items = (
        Review.query.filter(Review.product_id == product_id, Review.is_approved.is_(True))
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )
    return jsonify([r.as_api() for r in items])


@bp.post("/<int:product_id>/reviews")
@login_required
def add_review(product_id: int):
    body = ReviewCreateRequest.model_validate(request.get_json(silent=True) or {})
    if body.rating is None or body.rating < 1 or body.rating > 5:
        raise ValidationError("Rating must be between 1 and 5")
    p = _get_product(product_id)
    db.session.add(Review(product_id=p.id, user_id=current_user().id, rating=body.rating, text=body.text or ""))
    try:
        db.session.flush()
    except IntegrityError as e:
        db.session.rollback()
        raise Conflict("You have already reviewed this product") from e
    refresh_rating(p.id)
    db.session.commit()
    return jsonify({"message": "Review added"}), 201
