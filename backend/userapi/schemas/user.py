"""User Schemas: the public JSON shape of a user record.

Invariants:
    - Serialized keys: id, name, email, createdAt, updatedAt
    - Timestamps are RFC 3339 and always carry an offset
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from userapi.core.domain_types import UserRecord


class UserResponse(BaseModel):
    """User response: public-facing record data."""
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    email: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @field_serializer("created_at", "updated_at")
    def serialize_timestamp(self, value: datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserResponse":
        return cls(
            id=record.id,
            name=record.name,
            email=record.email,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
