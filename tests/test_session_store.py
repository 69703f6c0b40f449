"""Tests for the SQL session store against in-memory SQLite."""

import pytest
from sqlalchemy import insert
from sqlalchemy.exc import IntegrityError

from app.core.errors import AuthError, ErrorKind
from app.services.session_service import (
    SessionRecord,
    SqlSessionStore,
    is_duplicate_session,
    sessions_table,
)
from helpers import add_user, open_db


def record(user_id: int, **overrides) -> SessionRecord:
    values = dict(
        user_id=user_id,
        access_token_id="jti-1",
        refresh_token_hash="hash-1",
        ip="::1",
        created_at=100,
    )
    values.update(overrides)
    return SessionRecord(**values)


async def test_create_and_get_by_user_id():
    async with open_db() as factory, factory() as db:
        user = await add_user(db)
        store = SqlSessionStore(db)

        created = await store.create(record(user.id))
        fetched = await store.get_by_user_id(user.id)

        assert created.id is not None
        assert created.version == 1
        assert fetched == created


async def test_get_missing_user_returns_none():
    async with open_db() as factory, factory() as db:
        assert await SqlSessionStore(db).get_by_user_id(42) is None


async def test_compare_and_update_bumps_version():
    async with open_db() as factory, factory() as db:
        user = await add_user(db)
        store = SqlSessionStore(db)
        created = await store.create(record(user.id))

        updated = await store.compare_and_update(
            created.id,
            created.version,
            access_token_id="jti-2",
            refresh_token_hash="hash-2",
            ip="10.0.0.1",
            created_at=200,
        )

        assert updated is not None
        assert updated.id == created.id
        assert updated.version == created.version + 1
        assert (updated.access_token_id, updated.refresh_token_hash, updated.ip, updated.created_at) == (
            "jti-2", "hash-2", "10.0.0.1", 200,
        )
        assert await store.get_by_user_id(user.id) == updated


async def test_compare_and_update_with_stale_version_changes_nothing():
    async with open_db() as factory, factory() as db:
        user = await add_user(db)
        store = SqlSessionStore(db)
        created = await store.create(record(user.id))
        await store.compare_and_update(
            created.id, created.version,
            access_token_id="jti-2", refresh_token_hash="hash-2", ip="::1", created_at=200,
        )

        stale = await store.compare_and_update(
            created.id, created.version,
            access_token_id="jti-3", refresh_token_hash="hash-3", ip="::1", created_at=300,
        )

        assert stale is None
        current = await store.get_by_user_id(user.id)
        assert current.access_token_id == "jti-2"
        assert current.version == 2


async def test_second_session_for_same_user_is_conflict():
    async with open_db() as factory, factory() as db:
        user = await add_user(db)
        store = SqlSessionStore(db)
        await store.create(record(user.id))

        with pytest.raises(AuthError) as exc_info:
            await store.create(record(user.id, access_token_id="jti-other"))

        assert exc_info.value.kind is ErrorKind.CONFLICT


async def test_session_for_unknown_user_is_not_a_conflict():
    async with open_db(foreign_keys=True) as factory, factory() as db:
        store = SqlSessionStore(db)

        with pytest.raises(IntegrityError) as exc_info:
            await store.create(record(999))

        assert not is_duplicate_session(exc_info.value)


async def test_duplicate_session_is_recognised():
    async with open_db(foreign_keys=True) as factory, factory() as db:
        user = await add_user(db)
        store = SqlSessionStore(db)
        await store.create(record(user.id))

        with pytest.raises(IntegrityError) as exc_info:
            await db.execute(
                insert(sessions_table).values(
                    user_id=user.id,
                    access_token_id="jti-2",
                    refresh_token_hash="hash-2",
                    ip="::1",
                    created_at=200,
                    version=1,
                )
            )

        assert is_duplicate_session(exc_info.value)


async def test_list_sessions_orders_by_id():
    async with open_db() as factory, factory() as db:
        first = await add_user(db, "a@example.com")
        second = await add_user(db, "b@example.com")
        store = SqlSessionStore(db)
        await store.create(record(second.id))
        await store.create(record(first.id))

        sessions = await store.list_sessions()

        assert [s.user_id for s in sessions] == [second.id, first.id]
