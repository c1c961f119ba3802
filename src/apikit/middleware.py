"""FastAPI middleware for request tracing, logging and response shaping."""

import time
import uuid
from collections.abc import Awaitable, Callable

import structlog
from starlette.datastructures import Headers, MutableHeaders
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from apikit.logging import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
    "Pragma": "no-cache",
}


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Add request ID to every request for tracing.

    - Reads X-Request-ID from request headers, or generates a UUID if missing
    - Binds request_id to structlog context (auto-included in all logs, and
      used as the ``uid`` of error responses)
    - Adds X-Request-ID to response headers

    Usage:
        app.add_middleware(RequestIDMiddleware)

        # In any endpoint or dependency:
        logger.info("something_happened")  # request_id automatically included
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        # Use existing request ID or generate new one
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

        # Bind to structlog context: all logs in this request will include it
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        response = await call_next(request)

        # Add to response headers for client tracing
        response.headers[REQUEST_ID_HEADER] = request_id

        return response


def _headers_as_string(headers: Headers | MutableHeaders) -> str:
    return "; ".join(f"{name}: {value}" for name, value in headers.items())


class RequestResponseLoggerMiddleware(BaseHTTPMiddleware):
    """Debug-log every request on arrival and every response on its way out."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        start = time.perf_counter()
        logger.debug(
            "request_received",
            uri=str(request.url),
            method=request.method,
            headers=_headers_as_string(request.headers),
        )

        response = await call_next(request)

        logger.debug(
            "response_sent",
            response_time_ms=round((time.perf_counter() - start) * 1000, 2),
            uri=str(request.url),
            status_code=response.status_code,
            headers=_headers_as_string(response.headers),
        )
        return response


def normalize_path(path: str) -> str:
    """Strip trailing slashes, keeping the root path as ``/``."""
    if path == "":
        return "/"
    if len(path) > 1:
        return path.rstrip("/") or "/"
    return path


class RemoveTrailingSlashMiddleware(BaseHTTPMiddleware):
    """Serve ``/users/`` as ``/users``.

    By default the path is rewritten in place; with ``redirect=True`` the client
    gets a 301 to the normalized URL instead.
    """

    def __init__(self, app: ASGIApp, redirect: bool = False) -> None:
        super().__init__(app)
        self.redirect = redirect

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        path = request.scope["path"]
        normalized = normalize_path(path)
        if normalized != path:
            if self.redirect:
                location = request.url.replace(path=normalize_path(request.url.path))
                return RedirectResponse(url=str(location), status_code=301)
            request.scope["path"] = normalized
            request.scope["raw_path"] = normalized.encode()

        return await call_next(request)


class NoCacheMiddleware:
    """Mark every response as non-cacheable.

    Plain ASGI: the inner stack must run in the caller's task so the request id
    bound by inner middleware reaches the outermost error handler.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in NO_CACHE_HEADERS.items():
                    headers.setdefault(name, value)
            await send(message)

        await self.app(scope, receive, send_with_headers)
