"""Boundary Protocols: the contract between the route handlers and the store.

Invariants:
    - Handlers depend on UserRepository, never on SQLAlchemy directly
    - Implementations raise StoreError (core/errors.py) on any store failure
    - The store is the only source of truth; implementations hold no record state

Design Decisions:
    - Protocol over ABC: structural subtyping, tests can pass any fake
"""

from typing import Protocol

from userapi.core.domain_types import UserId, UserPayload, UserRecord


class UserRepository(Protocol):
    """Contract for user persistence, implemented by infrastructure/user_store.py."""
    async def create(self, payload: UserPayload) -> None: ...
    async def list_all(self) -> list[UserRecord]: ...
    async def get(self, user_id: UserId) -> UserRecord | None: ...
    async def update(self, user_id: UserId, payload: UserPayload) -> int: ...
    async def delete(self, user_id: UserId) -> int: ...
