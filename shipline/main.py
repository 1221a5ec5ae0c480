# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
FastAPI application.

Responsibilities
----------------
* Instantiate the FastAPI app.
* Register the middleware stack (outermost first): CORS, gzip, security
  headers, request logging, body-size ceiling, request timeout, general
  rate limit.
* Install the centralized error responder.
* Mount the feature routers (health, auth, vessels) under /api.
* Open the store on startup and release it on shutdown.

Production note
---------------
CORS origins come from settings (client port + CORS_ORIGIN).  Cookies are
only marked Secure when ENVIRONMENT=production.
"""

import asyncio
import time
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import Response
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from shipline import __version__
from shipline.auth.router import router as auth_router
from shipline.core.config import settings
from shipline.core.errors import (
    RequestTimeout,
    RequestTooLarge,
    TooManyRequests,
    error_response,
    register_exception_handlers,
)
from shipline.core.logger import logger
from shipline.core.ratelimit import general_limiter
from shipline.core.security import get_client_ip
from shipline.database import close_db, init_db
from shipline.health.router import router as health_router
from shipline.vessels.router import router as vessel_router

app = FastAPI(title="Shipping Line API", version=__version__)


# ---------------------------------------------------------------------------
# Middleware (added innermost first – Starlette wraps in reverse order)
# ---------------------------------------------------------------------------


class _RateLimitMiddleware(BaseHTTPMiddleware):
    """General per-client budget; 429 envelope once it is spent."""

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS":
            return await call_next(request)
        key = get_client_ip(request)
        if not general_limiter.hit(key):
            return error_response(TooManyRequests(), headers=general_limiter.headers(key))
        response: Response = await call_next(request)
        # a narrower budget (auth, api) that refused the request keeps its own numbers
        for name, value in general_limiter.headers(key).items():
            response.headers.setdefault(name, value)
        return response


_SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


class _TimeoutMiddleware(BaseHTTPMiddleware):
    """
    Stamp every request with a deadline REQUEST_TIMEOUT_SECONDS out.

    Reads that overrun it are abandoned with 504.  Writes are never cut off
    mid-flight; the vessel service checks the deadline before committing and
    rolls back instead, so a 504 always means nothing was written.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request.state.deadline = time.monotonic() + settings.request_timeout_seconds
        if request.method not in _SAFE_METHODS:
            return await call_next(request)
        try:
            return await asyncio.wait_for(call_next(request), timeout=settings.request_timeout_seconds)
        except asyncio.TimeoutError:
            logger.error("%s %s timed out", request.method, request.url.path)
            return error_response(RequestTimeout())


class _BodySizeMiddleware:
    """
    Reject bodies above MAX_REQUEST_BYTES.

    A declared Content-Length over the ceiling is refused before the app
    runs.  Chunked bodies carry no length, so the bytes are counted as they
    are received and the read fails with 413 once the ceiling is crossed.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = settings.max_request_bytes
        length = Headers(scope=scope).get("content-length")
        if length and length.isdigit() and int(length) > limit:
            await error_response(RequestTooLarge())(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    raise HTTPException(status_code=413)
            return message

        await self.app(scope, limited_receive, send)


# Logs every inbound request: method, path, client IP, status, latency and
# the resolved user id (set on request.state by the auth guards).  Bodies are
# NOT echoed – login payloads never reach the log.
class _RequestLogMiddleware(BaseHTTPMiddleware):
    """Log method, path, client IP, response status and latency (ms)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        logger.info(
            "%s %s | client=%s user=%s status=%d latency=%.1fms",
            request.method,
            request.url.path,
            get_client_ip(request),
            getattr(request.state, "user_id", None) or "-",
            response.status_code,
            elapsed_ms,
        )
        return response


class _SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


app.add_middleware(_RateLimitMiddleware)
app.add_middleware(_TimeoutMiddleware)
app.add_middleware(_BodySizeMiddleware)
app.add_middleware(_RequestLogMiddleware)
app.add_middleware(_SecurityHeadersMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=1024)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=[
        "Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization", "Cache-Control",
    ],
)

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(vessel_router)

# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@app.on_event("startup")
async def _on_startup():
    logger.info("Shipping Line API starting up (environment=%s)", settings.environment)
    init_db()


@app.on_event("shutdown")
async def _on_shutdown():
    logger.info("Shipping Line API shutting down")
    close_db()


# ---------------------------------------------------------------------------
# Service description
# ---------------------------------------------------------------------------


@app.get("/")
def root():
    return {
        "message": "Shipping Line API",
        "version": __version__,
        "status": "operational",
        "documentation": "/api/health",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/api")
def api_info():
    return {
        "name": "Shipping Line API",
        "version": __version__,
        "description": "RESTful API for managing shipping vessels and schedules",
        "endpoints": {
            "auth": {
                "login": "POST /api/auth/login",
                "logout": "POST /api/auth/logout",
                "me": "GET /api/auth/me",
                "refresh": "POST /api/auth/refresh",
                "check": "GET /api/auth/check",
            },
            "vessels": {
                "list": "GET /api/vessels",
                "create": "POST /api/vessels",
                "get": "GET /api/vessels/:id",
                "update": "PUT /api/vessels/:id",
                "delete": "DELETE /api/vessels/:id",
                "stats": "GET /api/vessels/stats",
                "bulkDelete": "DELETE /api/vessels/bulk",
            },
            "health": {
                "status": "GET /api/health",
                "ready": "GET /api/health/ready",
                "live": "GET /api/health/live",
            },
        },
    }
