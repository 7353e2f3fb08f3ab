"""FastAPI application that serves a rate-limited API."""
from __future__ import annotations

import asyncio
import contextlib
import logging
import uuid
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from app.config import Settings, get_settings
from app.logging_config import configure_logging
from app.rate_limit import SlidingWindowLimiter
from app.utils import monotonic_ms

configure_logging()
LOGGER = logging.getLogger(__name__)

TOO_MANY_REQUESTS_MESSAGE = "Too many requests. Please wait."
REQUEST_ID_HEADER = "X-Request-ID"


async def _sweep_periodically(limiter: SlidingWindowLimiter, interval_ms: int) -> None:
    while True:
        await asyncio.sleep(interval_ms / 1000)
        removed = limiter.sweep(monotonic_ms())
        if removed:
            LOGGER.debug("Evicted %d idle clients", removed)


def create_app(settings: Settings) -> FastAPI:
    """Build the application around a freshly constructed limiter."""

    rate_limiter = SlidingWindowLimiter(
        settings.rate_limit_window_ms,
        settings.rate_limit_max_requests,
        clock=monotonic_ms,
    )

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        sweeper = asyncio.create_task(
            _sweep_periodically(rate_limiter, settings.sweep_interval_ms)
        )
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper

    app = FastAPI(title="Rate-limited API", lifespan=lifespan)
    app.state.settings = settings
    app.state.rate_limiter = rate_limiter

    @app.middleware("http")
    async def apply_rate_limiting(request: Request, call_next):  # type: ignore[override]
        client_ip = request.client.host if request.client else "unknown"
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        log_extra = {"client_ip": client_ip, "request_id": request_id}
        if not rate_limiter.allow(client_ip):
            LOGGER.info("Rate limit exceeded", extra={**log_extra, "decision": "deny"})
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={"message": TOO_MANY_REQUESTS_MESSAGE},
                headers={REQUEST_ID_HEADER: request_id},
            )
        try:
            response = await call_next(request)
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("Unhandled exception", extra=log_extra)
            raise exc
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @app.get("/", response_class=PlainTextResponse)
    async def index() -> str:
        """Greet callers that made it past the limiter."""

        return "Hello, this is a rate-limited API!"

    return app


app = create_app(get_settings())


if __name__ == "__main__":  # pragma: no cover - executed only when run directly
    settings = get_settings()
    LOGGER.info("Server running on port %d", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
