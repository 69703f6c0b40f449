"""
User session model — one row per user.

Each row holds the *current generation* of the user's token pair:
- ``access_token_id``: jti of the only access token that may refresh
- ``refresh_token_hash``: bcrypt digest of the current refresh secret
- ``ip``: client address the generation was minted for
- ``created_at``: unix seconds; equals the access token's ``iat``
- ``version``: bumped by every compare-and-update (optimistic locking)

``uq_sessions_user_id`` enforces the single-session-per-user rule at
the database level.
"""

from sqlalchemy import BigInteger, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class UserSession(Base):
    __tablename__ = "sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    access_token_id: Mapped[str] = mapped_column(String(64), nullable=False)
    refresh_token_hash: Mapped[str] = mapped_column(String(128), nullable=False)
    ip: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    version: Mapped[int] = mapped_column(BigInteger, nullable=False, default=1, server_default="1")

    __table_args__ = (
        UniqueConstraint("user_id", name="uq_sessions_user_id"),
    )

    def __repr__(self) -> str:
        return f"<UserSession user={self.user_id} version={self.version} ip={self.ip}>"
