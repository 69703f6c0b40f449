"""
User model.

Users are created out of band (``POST /api/v1/user/create``); the auth
core only reads them to resolve the recipient of a new-IP notice.
"""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(256), unique=True, index=True, nullable=False)

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email}>"
