# artisan_market/errors.py
from flask import jsonify
from pydantic import ValidationError as PydanticValidationError
from werkzeug.exceptions import HTTPException

from .extensions import db


class ApiError(Exception):
    status_code = 400
    message = "Bad request"

    def __init__(self, message: str | None = None, status_code: int | None = None, data: dict | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        if status_code is not None:
            self.status_code = status_code
        self.data = data or {}

    def as_api(self):
        return {"message": self.message, **self.data}


class ValidationError(ApiError):
    status_code = 400
    message = "Invalid request"


class NotFound(ApiError):
    status_code = 404
    message = "Not found"


class Forbidden(ApiError):
    status_code = 403
    message = "Forbidden"


class Conflict(ApiError):
    status_code = 409
    message = "Conflict"


class InvalidTransition(ApiError):
    status_code = 400
    message = "Invalid status transition"


class ExternalServiceError(ApiError):
    status_code = 500
    message = "External service error"


class NotConfigured(ExternalServiceError):
    status_code = 400
    message = "Payment not configured"


class InvalidAmount(ValidationError):
    message = "Amount is required"


class InvalidSignature(ValidationError):
    message = "Invalid signature"


# ---- coupon ledger ----------------------------------------------------------
class CouponError(ApiError):
    pass


class CouponNotFound(CouponError, NotFound):
    message = "Coupon not found"


class CouponExpired(CouponError, ValidationError):
    message = "Coupon expired"


class CouponLimitReached(CouponError, ValidationError):
    message = "Coupon usage limit reached"


class CouponMinimumNotMet(CouponError, ValidationError):
    message = "Minimum subtotal not met"


class ImmutableFieldError(RuntimeError):
    """Raised when a persisted order's financial field is modified."""


def _first_schema_error(e: PydanticValidationError) -> str:
    errs = e.errors()
    if not errs:
        return "Invalid request"
    first = errs[0]
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    return f"{loc}: {first.get('msg')}" if loc else first.get("msg", "Invalid request")


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(e):
        r = jsonify(e.as_api())
        r.status_code = e.status_code
        return r

    @app.errorhandler(PydanticValidationError)
    def handle_schema_error(e):
        r = jsonify({"message": _first_schema_error(e)})
        r.status_code = 400
        return r

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        r = jsonify({"message": e.description or e.name})
        r.status_code = e.code or 500
        return r

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        db.session.rollback()
        app.logger.exception("Unhandled error: %s", e)
        r = jsonify({"message": "Server error"})
        r.status_code = 500
        return r
