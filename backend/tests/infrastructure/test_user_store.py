"""User Store: SQL statements against an in-memory SQLite database.

Invariants:
    - create/list/get round-trip with store-assigned id and aware timestamps
    - update/delete report affected rows
    - SQLAlchemy failures and unencodable text surface as StoreError
"""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from userapi.core.domain_types import UserId, UserPayload
from userapi.core.errors import StoreError
from userapi.infrastructure.database import failed_operation
from userapi.infrastructure.user_store import SqlUserRepository


@pytest.fixture
def repo(db_manager):
    return SqlUserRepository(db_manager)


async def test_create_then_list(repo):
    await repo.create(UserPayload("Ada", "ada@example.com"))
    records = await repo.list_all()
    assert len(records) == 1
    record = records[0]
    assert record.id >= 1
    assert (record.name, record.email) == ("Ada", "ada@example.com")
    assert record.created_at.tzinfo is not None
    assert record.updated_at.tzinfo is not None


async def test_ids_are_unique_and_increasing(repo):
    for i in range(3):
        await repo.create(UserPayload(f"u{i}", f"u{i}@example.com"))
    ids = [r.id for r in await repo.list_all()]
    assert ids == sorted(set(ids))
    assert len(ids) == 3


async def test_get_missing_returns_none(repo):
    assert await repo.get(UserId(404)) is None


async def test_update_reports_matched_rows(repo):
    await repo.create(UserPayload("a", "a@example.com"))
    user_id = (await repo.list_all())[0].id

    assert await repo.update(user_id, UserPayload("b", "b@example.com")) == 1
    assert await repo.update(UserId(user_id + 100), UserPayload("c", "c")) == 0

    record = await repo.get(user_id)
    assert (record.name, record.email) == ("b", "b@example.com")
    assert record.updated_at >= record.created_at


async def test_delete_reports_affected_rows(repo):
    await repo.create(UserPayload("a", "a@example.com"))
    user_id = (await repo.list_all())[0].id

    assert await repo.delete(user_id) == 1
    assert await repo.delete(user_id) == 0
    assert await repo.list_all() == []


async def test_store_failure_raises_store_error(repo, test_engine):
    async with test_engine.begin() as conn:
        await conn.execute(text("DROP TABLE users"))

    with pytest.raises(StoreError) as info:
        await repo.list_all()
    assert info.value.http_status == 500
    assert info.value.message == "Internal Server Error"
    assert info.value.operation == "execute"


async def test_health_check(db_manager):
    assert await db_manager.health_check() is True


async def test_unencodable_text_raises_store_error(repo):
    with pytest.raises(StoreError) as info:
        await repo.create(UserPayload("\ud800", "b"))
    assert info.value.operation == "encode"
    assert await repo.list_all() == []


@pytest.mark.parametrize(
    "exc, operation",
    [
        (IntegrityError("INSERT", {}, Exception("dup")), "commit"),
        (OperationalError("SELECT", {}, Exception("gone")), "execute"),
        (SQLAlchemyError("boom"), "unknown"),
        (UnicodeEncodeError("utf-8", "\ud800", 0, 1, "surrogates not allowed"), "encode"),
        (RuntimeError("other"), "unknown"),
    ],
)
def test_failed_operation_names(exc, operation):
    assert failed_operation(exc) == operation
