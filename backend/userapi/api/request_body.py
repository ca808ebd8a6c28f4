"""Request Body Reader: streams a request body under a hard size cap.

Invariants:
    - A declared Content-Length over the cap is rejected before reading
    - The stream is abandoned as soon as it passes the cap
    - JSON is never parsed here
"""

from fastapi import Request

from userapi.core.errors import PayloadTooLargeError


async def read_body(request: Request, limit: int) -> bytes:
    """Return the full body, or raise PayloadTooLargeError once it exceeds limit."""
    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > limit:
        raise PayloadTooLargeError(limit)

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise PayloadTooLargeError(limit)
    return bytes(body)
