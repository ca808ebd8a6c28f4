"""User Store: SQLAlchemy implementation of the UserRepository protocol.

Invariants:
    - Each operation is exactly one parameterized statement in its own session
    - update() and delete() return the affected-row count; callers decide what zero means
    - Timestamps leave the store timezone-aware (naive values are UTC)
"""

from datetime import datetime, timezone

from sqlalchemy import delete, func, insert, select, update

from userapi.core.domain_types import UserId, UserPayload, UserRecord
from userapi.infrastructure.database import DatabaseSessionManager
from userapi.models.user import User as UserModel


class SqlUserRepository:
    """Users table access over a DatabaseSessionManager."""

    def __init__(self, db_manager: DatabaseSessionManager):
        self._db = db_manager

    async def create(self, payload: UserPayload) -> None:
        async with self._db.session() as db:
            await db.execute(
                insert(UserModel).values(name=payload.name, email=payload.email),
            )
            await db.commit()

    async def list_all(self) -> list[UserRecord]:
        async with self._db.session() as db:
            result = await db.execute(
                select(UserModel).order_by(UserModel.id),
            )
            return [_to_record(row) for row in result.scalars().all()]

    async def get(self, user_id: UserId) -> UserRecord | None:
        async with self._db.session() as db:
            result = await db.execute(
                select(UserModel).where(UserModel.id == user_id),
            )
            row = result.scalar_one_or_none()
            return _to_record(row) if row is not None else None

    async def update(self, user_id: UserId, payload: UserPayload) -> int:
        async with self._db.session() as db:
            result = await db.execute(
                update(UserModel)
                .where(UserModel.id == user_id)
                .values(
                    name=payload.name,
                    email=payload.email,
                    updated_at=func.now(),
                )
                .execution_options(synchronize_session=False),
            )
            await db.commit()
            return result.rowcount

    async def delete(self, user_id: UserId) -> int:
        async with self._db.session() as db:
            result = await db.execute(
                delete(UserModel)
                .where(UserModel.id == user_id)
                .execution_options(synchronize_session=False),
            )
            await db.commit()
            return result.rowcount


def _to_record(row: UserModel) -> UserRecord:
    return UserRecord(
        id=UserId(row.id),
        name=row.name,
        email=row.email,
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
