"""Shared test doubles and database setup."""

from contextlib import asynccontextmanager
from datetime import timedelta

from sqlalchemy import event
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.security import TokenCodec
from app.models import Base, User
from app.services.auth_service import AuthService
from app.services.session_service import SqlSessionStore
from app.services.user_service import SqlUserStore

SECRET = "unit-test-secret"
START = 1_700_000_000


class FakeClock:
    def __init__(self, now: float = START) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta.total_seconds()


class RecordingNotifier:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[tuple[str, str]] = []

    async def send_login_from_new_ip(self, old_ip: str, email: str) -> None:
        self.calls.append((old_ip, email))
        if self.fail:
            raise ConnectionRefusedError("smtp is down")


@asynccontextmanager
async def open_db(foreign_keys: bool = False):
    """In-memory SQLite with the full schema; yields a session factory.

    SQLite ignores ``REFERENCES`` unless ``foreign_keys`` is switched on
    per connection, which PostgreSQL always enforces.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    if foreign_keys:

        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield async_sessionmaker(engine, expire_on_commit=False)
    finally:
        await engine.dispose()


async def add_user(db, email: str = "user@gmail.com") -> User:
    return await SqlUserStore(db).create(email)


def make_codec(clock) -> TokenCodec:
    return TokenCodec(SECRET, "HS512", clock=clock)


def make_service(db, clock, notifier, *, sessions=None, **kwargs) -> AuthService:
    kwargs.setdefault("bcrypt_rounds", 4)
    return AuthService(
        sessions=sessions or SqlSessionStore(db),
        users=SqlUserStore(db),
        notifier=notifier,
        codec=make_codec(clock),
        clock=clock,
        **kwargs,
    )
