from flask import Blueprint

bp = Blueprint("review", __name__, url_prefix="/api/reviews")

from . import routes  # noqa: E402,F401
