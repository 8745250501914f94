# ------- artisan_market/utils/decorators.py -------
from functools import wraps
from flask import jsonify
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from ..extensions import db
from ..utils.api import api_error
from ..model.user import User


def _current_user():
    verify_jwt_in_request()
    uid = get_jwt_identity()
    try:
        uid = int(uid)
    except (TypeError, ValueError):
        uid = None
    return db.session.get(User, uid) if uid else None


def current_user() -> User:
    """The authenticated user; only valid inside a login_required view."""
    return _current_user()


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not _current_user():
            return jsonify(api_error("Not authorized")), 401
        return fn(*args, **kwargs)
    return wrapper


def role_required(*roles, message: str | None = None):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            u = _current_user()
            if not u:
                return jsonify(api_error("Not authorized")), 401
            if u.role not in roles:
                return jsonify(api_error(message or "Admin access required")), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator
