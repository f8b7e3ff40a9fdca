"""HTTP intake for browser-side error reports.

Error boundaries and window-level handlers in the browser POST their
errors here. Reports are accepted immediately and filed in the
background.

Endpoints:
- POST /api/errors: submit one client error report
- GET /api/errors/stats: dedup cache statistics
- GET /health: liveness check
"""

import logging
from typing import Any

from aiohttp import web

from tripwire.core.cache import ErrorCache
from tripwire.core.collector import collect_error_context
from tripwire.core.ports import ErrorReporterPort

from .middleware import error_reporting_middleware

logger = logging.getLogger(__name__)

MAX_BODY_SIZE = 1024 * 1024

REPORTER_KEY = web.AppKey("reporter", ErrorReporterPort)
CACHE_KEY = web.AppKey("cache", ErrorCache)

# Payload keys folded into additional_data
_CLIENT_FACTS = ("type", "componentStack", "source", "lineno", "colno")


def _optional_str(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is None or value == "":
        return None
    return str(value)


def build_client_context_args(
    payload: dict[str, Any], request: web.Request
) -> dict[str, Any]:
    """Map a browser error payload onto collect_error_context() arguments."""
    additional: dict[str, Any] = {}
    extra = payload.get("additionalData")
    if isinstance(extra, dict):
        additional.update(extra)
    for key in _CLIENT_FACTS:
        if payload.get(key) is not None:
            additional[key] = payload[key]

    return {
        "url": _optional_str(payload, "url"),
        "user_agent": request.headers.get("User-Agent"),
        "user_id": _optional_str(payload, "userId"),
        "session_id": _optional_str(payload, "sessionId"),
        "additional_data": additional or None,
    }


async def handle_client_error(request: web.Request) -> web.Response:
    """Accept one client error report and file it in the background."""
    if request.content_length is not None and request.content_length > MAX_BODY_SIZE:
        return web.json_response({"error": "Request body too large"}, status=413)

    try:
        payload = await request.json()
    except ValueError:
        return web.json_response({"error": "Invalid JSON body"}, status=400)

    if not isinstance(payload, dict):
        return web.json_response({"error": "Expected a JSON object"}, status=400)

    error = {"message": payload.get("message") or "", "stack": payload.get("stack")}
    context = collect_error_context(error, **build_client_context_args(payload, request))

    request.app[REPORTER_KEY].dispatch(context)
    logger.info(
        f"Accepted client error report: {context.message[:100]}",
        extra={"url": context.url},
    )
    return web.json_response({"status": "accepted"}, status=202)


async def handle_stats(request: web.Request) -> web.Response:
    """Return dedup cache statistics."""
    cache = request.app.get(CACHE_KEY)
    if cache is None:
        return web.json_response({"error": "Cache statistics unavailable"}, status=404)

    stats = cache.stats()
    return web.json_response(
        {
            "total_entries": stats.total_entries,
            "total_occurrences": stats.total_occurrences,
            "oldest_occurrence_age_hours": stats.oldest_occurrence_age_hours,
        }
    )


async def handle_health(request: web.Request) -> web.Response:
    """Health check is always public."""
    return web.json_response({"status": "healthy"})


def create_app(
    reporter: ErrorReporterPort, cache: ErrorCache | None = None
) -> web.Application:
    """Build the intake application.

    Args:
        reporter: Reporter that receives client error reports.
        cache: Dedup cache exposed through the stats endpoint (optional).

    Returns:
        Configured aiohttp application.
    """
    app = web.Application(
        middlewares=[error_reporting_middleware(reporter)],
        client_max_size=MAX_BODY_SIZE,
    )
    app[REPORTER_KEY] = reporter
    if cache is not None:
        app[CACHE_KEY] = cache

    app.router.add_post("/api/errors", handle_client_error)
    app.router.add_get("/api/errors/stats", handle_stats)
    app.router.add_get("/health", handle_health)
    return app
