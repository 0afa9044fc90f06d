"""Request bodies and response views for the HTTP layer."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _not_null(value):
    # updates send only the fields present; null is allowed only for clearable columns
    if value is None:
        raise ValueError("may not be null")
    return value


# ------------------------------ auth ------------------------------
class RegisterRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(min_length=8, max_length=128)
    name: str = Field(min_length=1, max_length=255)


class LoginRequest(BaseModel):
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=128)


class ForgotPasswordRequest(BaseModel):
    email: str = Field(min_length=1, max_length=255)


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1, max_length=256)
    password: str = Field(min_length=8, max_length=128)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    role: str


# ------------------------------ categories ------------------------------
class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _name_not_null(cls, value):
        return _not_null(value)


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None


# ------------------------------ coupons ------------------------------
class CouponCreate(BaseModel):
    code: str = Field(min_length=1, max_length=64)
    discount_percent: Decimal = Field(gt=0, le=100)
    expires_at: Optional[datetime] = None
    is_active: bool = True


class CouponUpdate(BaseModel):
    code: Optional[str] = Field(default=None, min_length=1, max_length=64)
    discount_percent: Optional[Decimal] = Field(default=None, gt=0, le=100)
    expires_at: Optional[datetime] = None
    is_active: Optional[bool] = None

    @field_validator("code", "discount_percent", "is_active")
    @classmethod
    def _required_not_null(cls, value):
        return _not_null(value)


class CouponOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    discount_percent: Decimal
    expires_at: Optional[datetime] = None
    is_active: bool
