"""User Routes: Create/List/Get/Update/Delete over the users table.

Invariants:
    - Each handler is one request/response transaction; no cross-request state
    - Malformed or non-positive ids answer 404, same as an absent id
    - Create/Update/Delete succeed with 200 and an empty body
    - Update answers 200 even when no row matched; Delete answers 404 in that case

Design Decisions:
    - Path ids taken as str and parsed by core.parse_user_id, so id format
      errors never surface as 422 validation errors
    - Repository injected via Depends(get_user_repository) from app.state
"""

import logging

from fastapi import APIRouter, Depends, Request, Response, status

from userapi.api.request_body import read_body
from userapi.core.domain_types import UserPayload
from userapi.core.errors import NotFoundError
from userapi.core.payload_decoder import decode_request_body, parse_user_id
from userapi.core.repository_protocols import UserRepository
from userapi.schemas.user import UserResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["users"], redirect_slashes=False)


def get_user_repository(request: Request) -> UserRepository:
    """FastAPI dependency for the store client built at startup."""
    return request.app.state.user_repository


async def _decode_user_body(request: Request) -> UserPayload:
    limit = request.app.state.settings.max_body_bytes
    body = await read_body(request, limit)
    return decode_request_body(
        body, request.headers.get("content-type"), max_bytes=limit,
    )


@router.post("", status_code=status.HTTP_200_OK, response_class=Response)
async def create_user(
    request: Request, users: UserRepository = Depends(get_user_repository),
):
    """Create a user from {name, email}."""
    payload = await _decode_user_body(request)
    await users.create(payload)
    return Response(status_code=status.HTTP_200_OK)


@router.get("", response_model=list[UserResponse])
async def list_users(users: UserRepository = Depends(get_user_repository)):
    """List every user in insertion order."""
    records = await users.list_all()
    return [UserResponse.from_record(r) for r in records]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str, users: UserRepository = Depends(get_user_repository),
):
    record = await users.get(parse_user_id(user_id))
    if record is None:
        raise NotFoundError()
    return UserResponse.from_record(record)


@router.put("/{user_id}", status_code=status.HTTP_200_OK, response_class=Response)
async def update_user(
    user_id: str,
    request: Request,
    users: UserRepository = Depends(get_user_repository),
):
    """Replace name and email; the store refreshes updated_at."""
    uid = parse_user_id(user_id)
    payload = await _decode_user_body(request)
    matched = await users.update(uid, payload)
    if matched == 0:
        logger.info(
            f"Update matched no user {uid}", extra={"user_id": uid},
        )
    return Response(status_code=status.HTTP_200_OK)


@router.delete("/{user_id}", status_code=status.HTTP_200_OK, response_class=Response)
async def delete_user(
    user_id: str, users: UserRepository = Depends(get_user_repository),
):
    uid = parse_user_id(user_id)
    if await users.delete(uid) == 0:
        raise NotFoundError()
    return Response(status_code=status.HTTP_200_OK)
