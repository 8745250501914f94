# artisan_market/order/routes.py
from flask import request, jsonify

from ..extensions import db
from ..errors import NotFound
from ..model import Order, CustomerSnapshot
from ..schemas import CheckoutRequest, StatusUpdateRequest
from ..services import checkout_service, coupon_service, order_status, mailer
from ..services.checkout_service import CartLine
from ..utils.api import ok, parse_page_args
from ..utils.decorators import login_required, current_user
from . import bp

_SORTS = {
    "placed_desc": (Order.created_at.desc(), Order.id.desc()),
    "placed_asc": (Order.created_at.asc(), Order.id.asc()),
    "amount_desc": (Order.amount.desc(),),
    "amount_asc": (Order.amount.asc(),),
    "status_asc": (Order.status.asc(), Order.created_at.desc()),
    "status_desc": (Order.status.desc(), Order.created_at.desc()),
}


def _list(q):
    """
    Query params:
      - page, pageSize (max 50)
      - status=Pending|Shipped|Delivered|Cancelled|all
      - sort=placed_desc|placed_asc|amount_desc|amount_asc|status_asc|status_desc
    """
    page, page_size = parse_page_args(request.args)
    status = request.args.get("status")
    if status and status != "all":
        q = q.filter(Order.status == status)
    total = q.count()
    order_by = _SORTS.get(request.args.get("sort") or "placed_desc", _SORTS["placed_desc"])
    items = q.order_by(*order_by).offset((page - 1) * page_size).limit(page_size).all()
    return jsonify({"items": [o.as_api() for o in items], "total": total, "page": page, "pageSize": page_size})


@bp.get("/mine")
@login_required
def my_orders():
    return _list(Order.query.filter(Order.artisan_id == current_user().id))


@bp.get("/customer")
@login_required
def customer_orders():
    return _list(Order.query.filter(Order.customer_id == current_user().id))


@bp.post("/checkout")
@login_required
def checkout():
    user = current_user()
    body = CheckoutRequest.model_validate(request.get_json(silent=True) or {})

    lines = [CartLine.clamp(it.product_id, it.quantity) for it in body.items]
    quote = None
    if body.coupon and (body.coupon.id is not None or body.coupon.code):
        quote = coupon_service.quote_for(body.coupon.id, body.coupon.code)

    customer = CustomerSnapshot(
        user_id=user.id,
        name=(body.customer_name or "").strip() or user.name or "Customer",
        email=user.email,
    )
    orders = checkout_service.checkout(customer, lines, coupon=quote, payment_id=body.payment_id)
    mailer().order_placed(orders, customer.email, customer.name, body.payment_id)

    orders = sorted(orders, key=lambda o: o.id, reverse=True)
    return ok("Order placed", {"orders": [o.as_api() for o in orders]}, status=201)


@bp.route("/<int:order_id>/status", methods=["PATCH", "PUT"])
@login_required
def update_status(order_id: int):
    order = db.session.get(Order, order_id)
    if not order:
        raise NotFound("Order not found")
    body = StatusUpdateRequest.model_validate(request.get_json(silent=True) or {})
    before = order.status
    order_status.transition(order, body.status, current_user().id)
    if order.status != before:
        mailer().status_changed(order)
    return ok("Order status updated", {"order": order.as_api()})
