"""User Response: public JSON shape of a record."""

from datetime import datetime, timezone

from userapi.core.domain_types import UserId, UserRecord
from userapi.schemas.user import UserResponse


def _record(**overrides) -> UserRecord:
    values = dict(
        id=UserId(1),
        name="Ada",
        email="ada@example.com",
        created_at=datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        updated_at=datetime(2024, 1, 2, 3, 4, 6, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return UserRecord(**values)


def test_serializes_camel_case_keys():
    dumped = UserResponse.from_record(_record()).model_dump(by_alias=True)
    assert dumped == {
        "id": 1,
        "name": "Ada",
        "email": "ada@example.com",
        "createdAt": "2024-01-02T03:04:05+00:00",
        "updatedAt": "2024-01-02T03:04:06+00:00",
    }


def test_naive_timestamps_serialize_as_utc():
    record = _record(created_at=datetime(2024, 1, 2, 3, 4, 5))
    dumped = UserResponse.from_record(record).model_dump(by_alias=True)
    assert dumped["createdAt"] == "2024-01-02T03:04:05+00:00"


def test_round_trips_through_aliases():
    dumped = UserResponse.from_record(_record()).model_dump(by_alias=True)
    assert UserResponse.model_validate(dumped).name == "Ada"
