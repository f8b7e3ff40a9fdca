"""aiohttp error-handling middleware.

Wraps request handlers so that unhandled exceptions are reported to the
issue tracker in the background and answered with a generic JSON 500.
The response never waits on, or depends on, the report.
"""

import logging
from collections.abc import Awaitable, Callable

from aiohttp import web

from tripwire.core.collector import collect_error_context
from tripwire.core.ports import ErrorReporterPort

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Our team has been notified."

# Never forwarded to the issue tracker
SENSITIVE_HEADERS = frozenset({"authorization", "cookie", "proxy-authorization"})

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def _reportable_headers(request: web.Request) -> dict[str, str]:
    return {
        name: value
        for name, value in request.headers.items()
        if name.lower() not in SENSITIVE_HEADERS
    }


def _dispatch(reporter: ErrorReporterPort | None, error: BaseException, **facts) -> None:
    if reporter is None:
        return
    try:
        context = collect_error_context(error, **facts)
        reporter.dispatch(context)
    except Exception as e:
        logger.error(f"Failed to dispatch error report: {e}", exc_info=True)


def error_reporting_middleware(
    reporter: ErrorReporterPort | None,
) -> Callable[[web.Request, Handler], Awaitable[web.StreamResponse]]:
    """Build a middleware that reports unhandled handler exceptions.

    web.HTTPException subclasses are normal control flow in aiohttp and
    pass through untouched.

    Args:
        reporter: Reporter to dispatch to; None disables reporting.

    Returns:
        An aiohttp middleware.
    """

    @web.middleware
    async def middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        try:
            return await handler(request)
        except web.HTTPException:
            raise
        except Exception as error:
            _dispatch(
                reporter,
                error,
                url=str(request.url),
                user_agent=request.headers.get("User-Agent"),
                request_method=request.method,
                additional_data={"headers": _reportable_headers(request)},
            )
            logger.error(
                f"Unhandled error in {request.method} {request.path}: {error}",
                exc_info=True,
            )
            return web.json_response({"error": GENERIC_ERROR_MESSAGE}, status=500)

    return middleware


def create_error_response(
    message: str,
    status: int = 500,
    error: BaseException | None = None,
    reporter: ErrorReporterPort | None = None,
) -> web.Response:
    """Return a JSON error response, reporting server errors.

    Only 5xx responses that carry the underlying error are reported.
    """
    if status >= 500 and error is not None:
        _dispatch(reporter, error)
    return web.json_response({"error": message}, status=status)
