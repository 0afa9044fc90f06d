"""High-level data access helpers backed by SQLAlchemy."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select, update, delete

from storeapi.db.models import Coupon, ProductCategory, User
from storeapi.db.session import get_session

CATEGORY_FIELDS = ("name", "description")
COUPON_FIELDS = ("code", "discount_percent", "expires_at", "is_active")


def _only(data: dict, fields: tuple[str, ...]) -> dict:
    return {key: data[key] for key in fields if key in data}


class SQLRepository:
    """CRUD helpers wrapping the SQLAlchemy session."""

    # -------------------------- users --------------------------
    def get_user(self, user_id: int) -> Optional[User]:
        with get_session() as session:
            return session.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        with get_session() as session:
            stmt = select(User).where(User.email == email)
            return session.execute(stmt).scalar_one_or_none()

    def create_user(self, email: str, name: str, password_hash: str, role: str = "user") -> User:
        """Insert a user; a duplicate email surfaces as sqlalchemy IntegrityError."""
        now = datetime.now(timezone.utc)
        entity = User(
            email=email,
            name=name,
            password_hash=password_hash,
            role=role,
            created_at=now,
            updated_at=now,
        )
        with get_session() as session:
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return entity

    def update_user_password(self, user_id: int, password_hash: str) -> None:
        with get_session() as session:
            stmt = (
                update(User)
                .where(User.id == user_id)
                .values(password_hash=password_hash, updated_at=datetime.now(timezone.utc))
            )
            session.execute(stmt)
            session.commit()

    # -------------------------- reset tokens --------------------------
    def set_reset_token(self, user_id: int, token_fingerprint: str, expires_at: datetime) -> None:
        """Store the reset fingerprint/expiry pair, replacing any outstanding one."""
        with get_session() as session:
            stmt = (
                update(User)
                .where(User.id == user_id)
                .values(reset_token=token_fingerprint, reset_token_expires=expires_at)
            )
            session.execute(stmt)
            session.commit()

    def find_user_by_reset_token(self, token_fingerprint: str, now: datetime) -> Optional[User]:
        with get_session() as session:
            stmt = select(User).where(
                User.reset_token == token_fingerprint,
                User.reset_token_expires > now,
            )
            return session.execute(stmt).scalar_one_or_none()

    def consume_reset_token(self, user_id: int, token_fingerprint: str, password_hash: str, now: datetime) -> bool:
        """
        Atomically swap the password and clear the reset pair, but only while the
        stored fingerprint still matches and has not expired.

        Returns True when this call won; a concurrent redemption of the same
        token, or an expired one, matches zero rows and returns False.
        """
        with get_session() as session:
            stmt = (
                update(User)
                .where(
                    User.id == user_id,
                    User.reset_token == token_fingerprint,
                    User.reset_token_expires > now,
                )
                .values(
                    password_hash=password_hash,
                    reset_token=None,
                    reset_token_expires=None,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            result = session.execute(stmt)
            session.commit()
            return result.rowcount == 1

    # -------------------------- categories --------------------------
    def list_categories(self) -> list[ProductCategory]:
        with get_session() as session:
            stmt = select(ProductCategory).order_by(ProductCategory.id)
            return session.execute(stmt).scalars().all()

    def get_category(self, category_id: int) -> Optional[ProductCategory]:
        with get_session() as session:
            return session.get(ProductCategory, category_id)

    def create_category(self, data: dict) -> ProductCategory:
        now = datetime.now(timezone.utc)
        entity = ProductCategory(**_only(data, CATEGORY_FIELDS), created_at=now, updated_at=now)
        with get_session() as session:
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return entity

    def update_category(self, category_id: int, data: dict) -> Optional[ProductCategory]:
        with get_session() as session:
            entity = session.get(ProductCategory, category_id)
            if not entity:
                return None
            for key, value in _only(data, CATEGORY_FIELDS).items():
                setattr(entity, key, value)
            entity.updated_at = datetime.now(timezone.utc)
            session.commit()
            session.refresh(entity)
            return entity

    def delete_category(self, category_id: int) -> bool:
        with get_session() as session:
            result = session.execute(delete(ProductCategory).where(ProductCategory.id == category_id))
            session.commit()
            return result.rowcount > 0

    # -------------------------- coupons --------------------------
    def list_coupons(self) -> list[Coupon]:
        with get_session() as session:
            stmt = select(Coupon).order_by(Coupon.id)
            return session.execute(stmt).scalars().all()

    def get_coupon(self, coupon_id: int) -> Optional[Coupon]:
        with get_session() as session:
            return session.get(Coupon, coupon_id)

    def create_coupon(self, data: dict) -> Coupon:
        now = datetime.now(timezone.utc)
        entity = Coupon(**_only(data, COUPON_FIELDS), created_at=now, updated_at=now)
        with get_session() as session:
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return entity

    def update_coupon(self, coupon_id: int, data: dict) -> Optional[Coupon]:
        with get_session() as session:
            entity = session.get(Coupon, coupon_id)
            if not entity:
                return None
            for key, value in _only(data, COUPON_FIELDS).items():
                setattr(entity, key, value)
            entity.updated_at = datetime.now(timezone.utc)
            session.commit()
            session.refresh(entity)
            return entity

    def delete_coupon(self, coupon_id: int) -> bool:
        with get_session() as session:
            result = session.execute(delete(Coupon).where(Coupon.id == coupon_id))
            session.commit()
            return result.rowcount > 0
