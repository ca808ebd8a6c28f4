"""Domain Types: the user record, the inbound payload and the id type.

Invariants:
    - UserId wraps a positive 64-bit integer assigned by the store
    - UserPayload holds only client-writable fields (name, email)
    - UserRecord timestamps are server-assigned, never client-supplied

Design Decisions:
    - Frozen dataclasses: core values are never mutated after construction
    - NewType for UserId: zero runtime cost, full type-checker support
"""

from dataclasses import dataclass
from datetime import datetime
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", int)

MAX_USER_ID = 2**63 - 1


# ─── Values ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class UserPayload:
    """Decoded create/update body. Missing members default to empty strings."""
    name: str = ""
    email: str = ""


@dataclass(frozen=True)
class UserRecord:
    """One user as stored."""
    id: UserId
    name: str
    email: str
    created_at: datetime
    updated_at: datetime
