# artisan_market/services/payment_service.py
"""Razorpay adapter: payment orders, signature checks and webhook handling."""
from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time
from dataclasses import dataclass
from decimal import Decimal

import razorpay
from razorpay.errors import BadRequestError, GatewayError, ServerError

from ..config import PaymentSettings
from ..errors import (
    CouponError,
    ExternalServiceError,
    InvalidAmount,
    InvalidSignature,
    NotConfigured,
    ValidationError,
)
from ..extensions import db
from ..model import Order
from ..utils.money import D, ZERO, to_minor_units
from . import coupon_service
from .coupon_service import CouponQuote

log = logging.getLogger(__name__)


def sign(secret: str, payload: bytes | str) -> str:
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


@dataclass(frozen=True)
class PaymentIntent:
    order: dict
    subtotal: Decimal
    discount: Decimal
    payable: Decimal
    coupon: CouponQuote | None = None


class PaymentGateway:
    def __init__(self, settings: PaymentSettings, client=None):
        self.settings = settings
        self._client = client

    @property
    def enabled(self) -> bool:
        return self.settings.enabled

    @property
    def client(self):
        if self._client is None:
            self._client = razorpay.Client(auth=(self.settings.key_id, self.settings.key_secret))
        return self._client

    @client.setter
    def client(self, value):
        self._client = value

    # ---- create -----------------------------------------------------------
    def create_intent(self, subtotal, coupon_code: str | None = None) -> PaymentIntent:
        sub = D(subtotal)
        if sub <= 0:
            raise InvalidAmount()

        discount, quote = ZERO, None
        if coupon_code:
            try:
                quote = coupon_service.validate(coupon_code, sub)
                discount = coupon_service.compute_discount(quote, sub)
            except CouponError as e:
                log.info("coupon %r not applied to payment: %s", coupon_code, e.message)
                quote = None

        payable = max(ZERO, sub - discount)
        if not self.enabled:
            raise NotConfigured()

        data = {
            "amount": to_minor_units(payable),
            "currency": self.settings.currency,
            "receipt": f"rcpt_{int(time.time() * 1000)}",
        }
        try:
            order = self.client.order.create(data=data)
        except (BadRequestError, GatewayError, ServerError, OSError) as e:
            log.error("razorpay order creation failed: %s", e)
            raise ExternalServiceError("Failed to create payment order") from e
        return PaymentIntent(order=order, subtotal=sub, discount=discount, payable=payable, coupon=quote)

    # ---- verify -----------------------------------------------------------
    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        if not self.settings.key_secret or not order_id or not payment_id or not signature:
            return False
        expected = sign(self.settings.key_secret, f"{order_id}|{payment_id}")
        return hmac.compare_digest(expected, str(signature))

    # ---- webhook ----------------------------------------------------------
    def handle_webhook(self, raw_body: bytes, signature: str | None) -> str | None:
        """Authenticate and apply a webhook delivery; returns the payment id handled.

        The signature is checked against the raw body before anything is
        parsed. Replays are harmless: orders are already verified and the
        coupon claim below only succeeds once per payment.
        """
        secret = self.settings.webhook_secret
        if not secret:
            raise NotConfigured("Webhook not configured")
        expected = sign(secret, raw_body or b"")
        if not signature or not hmac.compare_digest(expected, str(signature)):
            raise InvalidSignature()

        try:
            event = json.loads((raw_body or b"").decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ValidationError("Malformed webhook body") from e

        if not isinstance(event, dict) or event.get("entity") != "event":
            return None
        if not str(event.get("type") or event.get("event") or "").startswith("payment."):
            return None
        payment_id = (((event.get("payload") or {}).get("payment") or {}).get("entity") or {}).get("id")
        if not payment_id:
            return None

        confirm_payment(payment_id)
        return payment_id


def confirm_payment(payment_id: str) -> None:
    """Mark every order of a payment verified and count its coupon once."""
    Order.query.filter(Order.payment_id == payment_id).update(
        {Order.payment_verified: True}, synchronize_session=False
    )

    one = (
        Order.query
        .filter(Order.payment_id == payment_id,
                Order.coupon_id.isnot(None),
                Order.coupon_counted.is_(False))
        .first()
    )
    if one is not None:
        coupon_id = one.coupon_id
        # the claim is a compare-and-set: only one delivery flips the flags
        claimed = (
            Order.query
            .filter(Order.payment_id == payment_id,
                    Order.coupon_id == coupon_id,
                    Order.coupon_counted.is_(False))
            .update({Order.coupon_counted: True}, synchronize_session=False)
        )
        if claimed:
            coupon_service.record_usage(coupon_id)
            log.info("payment %s: coupon %s usage recorded", payment_id, coupon_id)

    db.session.commit()
