# artisan_market/schemas.py
"""Request bodies, one model per API operation."""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ---- auth -------------------------------------------------------------------
class SignupRequest(_Body):
    name: str = Field(min_length=2)
    email: str
    password: str = Field(min_length=6)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        return v.strip()

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("invalid email")
        return v


class LoginRequest(_Body):
    email: str
    password: str = Field(min_length=6)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, v: str) -> str:
        return v.strip().lower()


# ---- coupons ----------------------------------------------------------------
class CouponValidateRequest(_Body):
    code: str = ""
    subtotal: float = 0


class CouponCreateRequest(_Body):
    code: str = Field(min_length=1)
    type: Literal["percent", "flat"]
    amount: float = Field(ge=0)
    min_subtotal: float = Field(default=0, ge=0, alias="minSubtotal")
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")
    active: bool = True
    usage_limit: int = Field(default=0, ge=0, alias="usageLimit")


class CouponUpdateRequest(_Body):
    code: Optional[str] = None
    type: Optional[Literal["percent", "flat"]] = None
    amount: Optional[float] = Field(default=None, ge=0)
    min_subtotal: Optional[float] = Field(default=None, ge=0, alias="minSubtotal")
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")
    active: Optional[bool] = None
    usage_limit: Optional[int] = Field(default=None, ge=0, alias="usageLimit")


# ---- orders -----------------------------------------------------------------
class CheckoutItem(_Body):
    product_id: int = Field(alias="_id")
    quantity: Optional[float] = None


class CheckoutCoupon(_Body):
    id: Optional[int] = None
    code: Optional[str] = None
    # client-side figure, informational only; the server recomputes it
    discount: Optional[float] = None


class CheckoutRequest(_Body):
    items: List[CheckoutItem] = Field(default_factory=list)
    customer_name: Optional[str] = Field(default=None, alias="customerName")
    payment_id: Optional[str] = Field(default=None, alias="paymentId")
    coupon: Optional[CheckoutCoupon] = None


class StatusUpdateRequest(_Body):
    status: str = ""


# ---- payments ---------------------------------------------------------------
class CreatePaymentRequest(_Body):
    subtotal: Optional[float] = None
    amount: Optional[float] = None  # legacy clients send amount
    coupon_code: Optional[str] = Field(default=None, alias="couponCode")

    @property
    def effective_subtotal(self) -> float:
        return self.amount if self.amount else (self.subtotal or 0)


class VerifyPaymentRequest(_Body):
    razorpay_order_id: str = ""
    razorpay_payment_id: str = ""
    razorpay_signature: str = ""


# ---- products & reviews -----------------------------------------------------
class ProductCreateRequest(_Body):
    name: str = Field(min_length=2)
    image: Optional[str] = None
    description: Optional[str] = None
    story: Optional[str] = None
    caption: Optional[str] = None
    category: Optional[str] = None
    region: Optional[str] = None
    price: float = Field(default=0, ge=0)
    stock: int = Field(default=0, ge=0)


class GenerateContentRequest(_Body):
    name: Optional[str] = None
    product_name: Optional[str] = Field(default=None, alias="productName")


class ReviewCreateRequest(_Body):
    rating: Optional[int] = None
    text: str = ""


class ReviewApprovalRequest(_Body):
    is_approved: bool = Field(default=False, alias="isApproved")
