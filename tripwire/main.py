"""Composition root for the Tripwire error-reporting pipeline.

This module is the ONLY location that imports both core domain logic
and concrete adapter implementations. All wiring of dependencies
happens here, creating a clear entry point for the application.

Module Structure:
- Configuration loading via config module
- Issue tracker instantiation
- Reporter, cache and sweeper initialization
- Global hooks and the intake HTTP server
"""

import asyncio
import logging
import signal
import sys
from datetime import timedelta

from aiohttp import web

from tripwire.adapters.hooks.global_handlers import install_global_handlers
from tripwire.adapters.scheduler.sweeper import CacheSweeper
from tripwire.adapters.tracker.github_issues import GitHubIssueTracker
from tripwire.adapters.tracker.linear import LinearIssueTracker
from tripwire.adapters.web.intake import create_app
from tripwire.config import Settings, load_settings
from tripwire.core.cache import ErrorCache
from tripwire.core.ports import IssueTrackerPort
from tripwire.core.reporter import DeduplicatingReporter, ReporterConfig


def configure_logging(log_level: str, log_format: str) -> None:
    """Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json, text).
    """
    level = getattr(logging, log_level, logging.INFO)

    if log_format == "json":
        format_str = '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}'
    else:
        format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def build_tracker(settings: Settings, config: ReporterConfig) -> IssueTrackerPort:
    """Instantiate the issue tracker selected by configuration.

    Raises:
        ValueError: If the backend is unknown or the credential is empty.
    """
    if settings.error_tracker_backend == "linear":
        return LinearIssueTracker(
            api_key=config.api_key,
            api_url=settings.linear_api_url,
            timeout_seconds=settings.tracker_timeout_seconds,
        )
    if settings.error_tracker_backend == "github":
        return GitHubIssueTracker(
            github_token=config.api_key,
            api_base_url=settings.github_api_url,
            timeout_seconds=settings.tracker_timeout_seconds,
        )
    raise ValueError(f"Unknown issue tracker backend: {settings.error_tracker_backend}")


def build_reporter(settings: Settings, cache: ErrorCache) -> DeduplicatingReporter:
    """Build the reporter; no tracker is created while reporting is disabled."""
    return DeduplicatingReporter.from_config(
        settings.reporter_config(),
        tracker_factory=lambda config: build_tracker(settings, config),
        cache=cache,
        call_timeout_seconds=settings.tracker_timeout_seconds,
    )


async def _wait_for_shutdown() -> None:
    """Block until SIGTERM/SIGINT (or cancellation)."""
    loop = asyncio.get_running_loop()
    stop = asyncio.Event()
    try:
        loop.add_signal_handler(signal.SIGTERM, stop.set)
        loop.add_signal_handler(signal.SIGINT, stop.set)
    except NotImplementedError:
        # Signal handlers not available on Windows
        logging.getLogger(__name__).debug("Signal handlers not available on this platform")
    await stop.wait()


async def bootstrap() -> None:
    """Load configuration, wire adapters, and serve the intake endpoint.

    Steps:
    1. Load configuration from environment
    2. Configure logging
    3. Build cache, tracker and reporter
    4. Start the cache sweeper and install global hooks
    5. Serve the intake app until shutdown
    """
    settings = load_settings()

    configure_logging(settings.log_level, settings.log_format)
    logger = logging.getLogger(__name__)
    logger.info("Loading Tripwire error reporting...")

    cache = ErrorCache(ttl=timedelta(hours=settings.cache_ttl_hours))
    reporter = build_reporter(settings, cache)
    await reporter.initialize()
    logger.info(
        f"Error reporting {'enabled' if reporter.active else 'disabled'} "
        f"(environment={settings.environment}, backend={settings.error_tracker_backend})"
    )

    sweeper = CacheSweeper(cache, interval_seconds=settings.cache_sweep_interval_seconds)
    sweeper.start()
    uninstall_hooks = install_global_handlers(reporter)

    runner = web.AppRunner(create_app(reporter, cache))
    await runner.setup()
    try:
        site = web.TCPSite(runner, settings.intake_host, settings.intake_port)
        await site.start()
        logger.info(
            f"Error intake listening on {settings.intake_host}:{settings.intake_port}"
        )
        await _wait_for_shutdown()
    finally:
        logger.info("Shutting down...")
        await runner.cleanup()
        await sweeper.stop()
        uninstall_hooks()
        await reporter.aclose()


def main() -> None:
    """Application entry point.

    Exit codes:
        0: Successful shutdown
        1: Fatal bootstrap or runtime error
        130: Interrupted by user (SIGINT/KeyboardInterrupt)
    """
    logger = logging.getLogger(__name__)
    try:
        asyncio.run(bootstrap())
    except KeyboardInterrupt:
        logger.warning("Shutdown requested by user (SIGINT)")
        sys.exit(130)
    except asyncio.CancelledError:
        logger.info("Graceful shutdown completed")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
