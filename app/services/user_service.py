"""
User service — lookup & create helpers.

The auth core only needs ``get_by_id`` (to resolve the recipient of a
new-IP notice); ``create`` and ``list_users`` back the user endpoints.
"""

import logging
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User

logger = logging.getLogger(__name__)


class UserLookup(Protocol):
    async def get_by_id(self, user_id: int) -> User | None: ...


class DuplicateEmailError(ValueError):
    pass


class SqlUserStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_by_id(self, user_id: int) -> User | None:
        stmt = select(User).where(User.id == user_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, email: str) -> User:
        user = User(email=email)
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError as exc:
            raise DuplicateEmailError(f"user with email {email!r} already exists") from exc
        logger.info("User %s created", user.id)
        return user

    async def list_users(self) -> list[User]:
        stmt = select(User).order_by(User.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
