"""
Models package — import every model so SQLAlchemy's Base.metadata
knows about all tables (critical for `create_all` / Alembic).
"""

from app.models.base import Base, TimestampMixin
from app.models.session import UserSession
from app.models.user import User

__all__ = [
    "Base",
    "TimestampMixin",
    "User",
    "UserSession",
]
