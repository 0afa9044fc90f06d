"""
Product category use cases (list, create, update, delete).
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from storeapi.core.errors import AppError, FailureKind
from storeapi.db.models import ProductCategory
from storeapi.repositories.sql_repository import SQLRepository

logger = logging.getLogger(__name__)
_repo = SQLRepository()


def list_categories() -> list[ProductCategory]:
    try:
        return _repo.list_categories()
    except SQLAlchemyError:
        logger.exception("Error fetching categories")
        raise AppError(FailureKind.INTERNAL_FAILURE, "Failed to fetch categories")


def create_category(data: dict) -> ProductCategory:
    try:
        return _repo.create_category(data)
    except SQLAlchemyError:
        logger.exception("Error creating category")
        raise AppError(FailureKind.INTERNAL_FAILURE, "Failed to create category")


def update_category(category_id: int, data: dict) -> ProductCategory:
    try:
        category = _repo.update_category(category_id, data)
    except SQLAlchemyError:
        logger.exception("Error updating category %s", category_id)
        raise AppError(FailureKind.INTERNAL_FAILURE, "Failed to update category")
    if not category:
        raise AppError(FailureKind.NOT_FOUND, "Category not found")
    return category


def delete_category(category_id: int) -> None:
    try:
        if not _repo.get_category(category_id):
            raise AppError(FailureKind.NOT_FOUND, "Category not found")
        deleted = _repo.delete_category(category_id)
    except SQLAlchemyError:
        logger.exception("Error deleting category %s", category_id)
        raise AppError(FailureKind.INTERNAL_FAILURE, "Failed to delete category")
    if not deleted:
        raise AppError(FailureKind.INTERNAL_FAILURE, "Failed to delete category")
