"""Process-wide hooks for uncaught exceptions.

Chains sys.excepthook, threading.excepthook and the event loop's
exception handler so that errors nobody caught are still reported.
Previous hooks keep running; reporting is added on top.
"""

import asyncio
import logging
import sys
import threading
from collections.abc import Callable
from types import TracebackType
from typing import Any

from tripwire.core.collector import collect_error_context
from tripwire.core.ports import ErrorReporterPort

logger = logging.getLogger(__name__)


class GlobalErrorHandlers:
    """Installs and removes the process-wide reporting hooks.

    Reports are handed to the given event loop thread-safely, so the
    hooks work from any thread as long as the loop is running.
    """

    def __init__(self, reporter: ErrorReporterPort, loop: asyncio.AbstractEventLoop):
        self.reporter = reporter
        self.loop = loop
        self.installed = False
        self._previous_excepthook: Callable[..., Any] | None = None
        self._previous_threading_hook: Callable[..., Any] | None = None
        self._previous_loop_handler: Callable[..., Any] | None = None

    def _submit(self, error: BaseException, kind: str, **extra: Any) -> None:
        """Collect context and dispatch it on the event loop."""
        try:
            context = collect_error_context(
                error, additional_data={"type": kind, **extra}
            )
            if self.loop.is_closed():
                logger.warning(f"Event loop closed, dropping {kind} report")
                return
            self.loop.call_soon_threadsafe(self.reporter.dispatch, context)
        except Exception as e:
            logger.error(f"Failed to submit {kind} report: {e}", exc_info=True)

    def _excepthook(
        self,
        exc_type: type[BaseException],
        exc_value: BaseException,
        exc_tb: TracebackType | None,
    ) -> None:
        if not issubclass(exc_type, KeyboardInterrupt):
            self._submit(exc_value, "uncaughtException")
        assert self._previous_excepthook is not None
        self._previous_excepthook(exc_type, exc_value, exc_tb)

    def _threading_hook(self, args: "threading.ExceptHookArgs") -> None:
        if args.exc_value is not None and not issubclass(args.exc_type, SystemExit):
            self._submit(
                args.exc_value,
                "threadException",
                thread=args.thread.name if args.thread else None,
            )
        assert self._previous_threading_hook is not None
        self._previous_threading_hook(args)

    def _loop_handler(
        self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]
    ) -> None:
        exception = context.get("exception")
        if exception is not None:
            self._submit(
                exception,
                "unhandledTaskException",
                message=context.get("message"),
            )
        if self._previous_loop_handler is not None:
            self._previous_loop_handler(loop, context)
        else:
            loop.default_exception_handler(context)

    def install(self) -> None:
        """Install all hooks. Safe to call twice."""
        if self.installed:
            return
        self._previous_excepthook = sys.excepthook
        self._previous_threading_hook = threading.excepthook
        self._previous_loop_handler = self.loop.get_exception_handler()

        sys.excepthook = self._excepthook
        threading.excepthook = self._threading_hook
        self.loop.set_exception_handler(self._loop_handler)
        self.installed = True
        logger.debug("Global error handlers installed")

    def uninstall(self) -> None:
        """Restore the hooks that were active before install()."""
        if not self.installed:
            return
        if sys.excepthook == self._excepthook:
            sys.excepthook = self._previous_excepthook or sys.__excepthook__
        if threading.excepthook == self._threading_hook:
            threading.excepthook = (
                self._previous_threading_hook or threading.__excepthook__
            )
        if not self.loop.is_closed():
            self.loop.set_exception_handler(self._previous_loop_handler)
        self.installed = False
        logger.debug("Global error handlers removed")


def install_global_handlers(
    reporter: ErrorReporterPort,
    loop: asyncio.AbstractEventLoop | None = None,
) -> Callable[[], None]:
    """Install reporting hooks and return a callable that removes them.

    Args:
        reporter: Reporter receiving uncaught errors.
        loop: Event loop to dispatch on (defaults to the running loop).
    """
    handlers = GlobalErrorHandlers(reporter, loop or asyncio.get_running_loop())
    handlers.install()
    return handlers.uninstall
