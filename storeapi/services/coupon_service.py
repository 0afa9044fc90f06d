"""
Coupon use cases (list, create, update, delete).
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from storeapi.core.errors import AppError, FailureKind
from storeapi.db.models import Coupon
from storeapi.repositories.sql_repository import SQLRepository

logger = logging.getLogger(__name__)
_repo = SQLRepository()


def list_coupons() -> list[Coupon]:
    try:
        return _repo.list_coupons()
    except SQLAlchemyError:
        logger.exception("Error fetching coupons")
        raise AppError(FailureKind.INTERNAL_FAILURE, "Error fetching coupons")


def create_coupon(data: dict) -> Coupon:
    try:
        return _repo.create_coupon(data)
    except IntegrityError:
        raise AppError(FailureKind.INVALID_INPUT, "Coupon code already exists")
    except SQLAlchemyError:
        logger.exception("Error creating coupon")
        raise AppError(FailureKind.INTERNAL_FAILURE, "Error creating coupon")


def update_coupon(coupon_id: int, data: dict) -> Coupon:
    try:
        coupon = _repo.update_coupon(coupon_id, data)
    except IntegrityError:
        raise AppError(FailureKind.INVALID_INPUT, "Coupon code already exists")
    except SQLAlchemyError:
        logger.exception("Error updating coupon %s", coupon_id)
        raise AppError(FailureKind.INTERNAL_FAILURE, "Error updating coupon")
    if not coupon:
        raise AppError(FailureKind.NOT_FOUND, "Coupon not found")
    return coupon


def delete_coupon(coupon_id: int) -> None:
    try:
        deleted = _repo.delete_coupon(coupon_id)
    except SQLAlchemyError:
        logger.exception("Error deleting coupon %s", coupon_id)
        raise AppError(FailureKind.INTERNAL_FAILURE, "Error deleting coupon")
    if not deleted:
        raise AppError(FailureKind.NOT_FOUND, "Coupon not found")
