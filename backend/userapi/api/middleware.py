"""Middleware Chain: fault recovery, access logging and security headers.

Invariants:
    - Order, outermost first: RecoverPanicMiddleware -> RequestLoggingMiddleware
      -> SecureHeadersMiddleware -> routes
    - Recovery never lets one bad request take the process down; once a
      response has started it re-raises so the server drops the connection
    - Every request is access-logged regardless of outcome
    - Every response produced inside the chain carries the fixed security headers

Design Decisions:
    - Pure ASGI classes over BaseHTTPMiddleware: no extra task per request and
      exceptions reach the recovery layer unwrapped
"""

import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from userapi.core.errors import InternalError

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "Content-Security-Policy": "default-src 'self'",
    "Referrer-Policy": "origin-when-cross-origin",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "deny",
    "X-XSS-Protection": "0",
}


class SecureHeadersMiddleware:
    """Set the fixed security headers on every response."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in SECURITY_HEADERS.items():
                    headers[name] = value
            await send(message)

        await self.app(scope, receive, send_with_headers)


class RequestLoggingMiddleware:
    """Log remote address, protocol, method and request URI for every request."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        client = scope.get("client")
        remote_addr = f"{client[0]}:{client[1]}" if client else "-"
        protocol = f"HTTP/{scope.get('http_version', '1.1')}"
        uri = _request_uri(scope)
        logger.info(
            f"{remote_addr} {protocol} {scope['method']} {uri}",
            extra={
                "remote_addr": remote_addr,
                "protocol": protocol,
                "method": scope["method"],
                "uri": uri,
            },
        )
        await self.app(scope, receive, send)


class RecoverPanicMiddleware:
    """Turn any exception escaping the inner layers into a generic 500."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_tracking_start(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_tracking_start)
        except Exception as exc:
            logger.error(
                f"Unhandled exception on {scope.get('path')}: {exc}",
                extra={"path": scope.get("path"), "error_code": "INTERNAL_ERROR"},
                exc_info=True,
            )
            if response_started:
                raise
            response = JSONResponse(
                status_code=500,
                content=InternalError().to_response(),
                headers={"Connection": "close"},
            )
            await response(scope, receive, send)


def setup_middleware(app: FastAPI) -> None:
    """Install the chain; add_middleware wraps, so the last added is outermost."""
    app.add_middleware(SecureHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RecoverPanicMiddleware)


def _request_uri(scope: Scope) -> str:
    raw_path = scope.get("raw_path") or scope.get("path", "").encode()
    uri = raw_path.split(b"?", 1)[0].decode("latin-1")
    query = scope.get("query_string", b"")
    if query:
        uri = f"{uri}?{query.decode('latin-1')}"
    return uri
