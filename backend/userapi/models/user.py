"""User ORM: the single persisted entity.

Invariants:
    - id is a store-generated BIGINT primary key, immutable once assigned
    - created_at and updated_at are server-defaulted to now(); updated_at is
      refreshed by the update statement, never by the client
"""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from userapi.db.base import Base

# SQLite only autoincrements INTEGER PRIMARY KEY columns
_ID_TYPE = BigInteger().with_variant(Integer, "sqlite")


class User(Base):
    """One row of the users table."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(
        _ID_TYPE, primary_key=True, autoincrement=True,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(),
    )
