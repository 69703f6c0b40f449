"""
Session store — persistence for the one-row-per-user session table.

Handles:
- Inserting the first session for a user
- Fetching the session by user id
- Compare-and-update keyed on (id, version) — the only way a row changes
- Listing sessions (diagnostics endpoint)

All statements are Core-level on the mapped table and return plain
``SessionRecord`` values, so callers never see stale ORM identity-map
state after a versioned UPDATE.
"""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AuthError, ErrorKind
from app.models.session import UserSession

logger = logging.getLogger(__name__)

sessions_table = UserSession.__table__

# PostgreSQL names the violated constraint; SQLite names the column.
_DUPLICATE_SESSION_MARKERS = (
    "uq_sessions_user_id",
    "UNIQUE constraint failed: sessions.user_id",
)


def is_duplicate_session(exc: IntegrityError) -> bool:
    """True when ``exc`` is the one-session-per-user constraint firing."""
    message = str(exc.orig)
    return any(marker in message for marker in _DUPLICATE_SESSION_MARKERS)


@dataclass(frozen=True)
class SessionRecord:
    user_id: int
    access_token_id: str
    refresh_token_hash: str
    ip: str
    created_at: int
    id: int | None = None
    version: int = 1

    @classmethod
    def from_row(cls, row: Any) -> "SessionRecord":
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            access_token_id=row["access_token_id"],
            refresh_token_hash=row["refresh_token_hash"],
            ip=row["ip"],
            created_at=row["created_at"],
            version=row["version"],
        )


class SessionStore(Protocol):
    async def create(self, record: SessionRecord) -> SessionRecord: ...

    async def get_by_user_id(self, user_id: int) -> SessionRecord | None: ...

    async def compare_and_update(
        self,
        session_id: int,
        expected_version: int,
        *,
        access_token_id: str,
        refresh_token_hash: str,
        ip: str,
        created_at: int,
    ) -> SessionRecord | None: ...


class SqlSessionStore:
    """``SessionStore`` backed by an ``AsyncSession``."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def create(self, record: SessionRecord) -> SessionRecord:
        stmt = (
            insert(sessions_table)
            .values(
                user_id=record.user_id,
                access_token_id=record.access_token_id,
                refresh_token_hash=record.refresh_token_hash,
                ip=record.ip,
                created_at=record.created_at,
                version=1,
            )
            .returning(*sessions_table.c)
        )
        try:
            result = await self.db.execute(stmt)
        except IntegrityError as exc:
            if not is_duplicate_session(exc):
                raise
            # Another request created the row first.
            raise AuthError(
                ErrorKind.CONFLICT,
                f"session for user {record.user_id} already exists",
            ) from exc
        created = SessionRecord.from_row(result.mappings().one())
        logger.debug("Session %s created for user %s", created.id, created.user_id)
        return created

    async def get_by_user_id(self, user_id: int) -> SessionRecord | None:
        stmt = select(sessions_table).where(sessions_table.c.user_id == user_id)
        result = await self.db.execute(stmt)
        row = result.mappings().one_or_none()
        return SessionRecord.from_row(row) if row is not None else None

    async def compare_and_update(
        self,
        session_id: int,
        expected_version: int,
        *,
        access_token_id: str,
        refresh_token_hash: str,
        ip: str,
        created_at: int,
    ) -> SessionRecord | None:
        """
        Replace the generation of session ``session_id`` if and only if its
        version is still ``expected_version``.

        Returns the updated record, or ``None`` when no row matched (the
        row was rotated concurrently).
        """
        stmt = (
            update(sessions_table)
            .where(
                sessions_table.c.id == session_id,
                sessions_table.c.version == expected_version,
            )
            .values(
                access_token_id=access_token_id,
                refresh_token_hash=refresh_token_hash,
                ip=ip,
                created_at=created_at,
                version=sessions_table.c.version + 1,
            )
            .returning(*sessions_table.c)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().one_or_none()
        if row is None:
            return None
        return SessionRecord.from_row(row)

    async def list_sessions(self) -> list[SessionRecord]:
        stmt = select(sessions_table).order_by(sessions_table.c.id)
        result = await self.db.execute(stmt)
        return [SessionRecord.from_row(row) for row in result.mappings().all()]
