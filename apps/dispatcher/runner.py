"""
Dispatch Runner - Process Lifecycle

Resolves configuration, wires the shared HTTP client into the dispatcher,
and maps the outcome of one run onto the process exit status.

Exit status:
- 1 if configuration is missing or invalid, or the user fetch fails
- 0 otherwise, whatever the outcome of individual deliveries

Usage:
    python -m apps.dispatcher --destination-url https://example.test/users

    DESTINATION_API_URL=https://example.test/users biz-dispatch
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Sequence

import httpx
from pydantic import ValidationError

from apps.dispatcher.dispatcher import UserDispatcher
from utils.api_client import UserAPIClient
from utils.config import Settings, get_settings, require_destination_url
from utils.errors import ConfigError, FetchError
from utils.logging import setup_logging

logger = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Forward users with matching email domains to the destination API"
    )
    parser.add_argument(
        "--destination-url",
        default=None,
        help="Destination API URL (default: $DESTINATION_API_URL)",
    )
    parser.add_argument(
        "--source-url",
        default=None,
        help="Source API URL (default: $SOURCE_API_URL)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: $LOG_LEVEL)",
    )
    return parser.parse_args(argv)


def setup_signal_handlers(shutdown_event: asyncio.Event) -> dict[int, object]:
    """Register loop handlers that cancel the run on SIGINT/SIGTERM.

    Must be called from the running event loop; setting the event from a loop
    handler wakes any coroutine waiting on it.

    Returns:
        Previously installed handlers, keyed by signal number
    """
    loop = asyncio.get_running_loop()

    def signal_handler(signum: int) -> None:
        logger.info(f"Received signal {signum}, cancelling run")
        shutdown_event.set()

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.getsignal(signum)
        loop.add_signal_handler(signum, signal_handler, signum)
    return previous


def restore_signal_handlers(previous: dict[int, object]) -> None:
    loop = asyncio.get_running_loop()
    for signum, handler in previous.items():
        loop.remove_signal_handler(signum)
        # None means the handler was not installed from Python
        if handler is not None:
            signal.signal(signum, handler)


async def run_dispatch(
    settings: Settings,
    destination_url: str,
    source_url: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    """
    Run one dispatch pass with a freshly created shared HTTP client.

    Args:
        settings: Resolved settings
        destination_url: Destination API URL
        source_url: Source API URL
        transport: Optional httpx transport override

    Raises:
        FetchError: If the user list cannot be fetched
    """
    shutdown_event = asyncio.Event()
    previous_handlers = setup_signal_handlers(shutdown_event)

    try:
        async with httpx.AsyncClient(
            timeout=settings.HTTP_TIMEOUT, transport=transport
        ) as http_client:
            api = UserAPIClient(
                http_client,
                source_url=source_url,
                max_attempts=settings.DELIVERY_MAX_ATTEMPTS,
                retry_delay=settings.DELIVERY_RETRY_DELAY,
            )
            dispatcher = UserDispatcher(
                api,
                destination_url,
                email_suffix=settings.EMAIL_SUFFIX,
                shutdown_event=shutdown_event,
            )
            await dispatcher.run()
    finally:
        restore_signal_handlers(previous_handlers)


def main(argv: Sequence[str] | None = None, transport: httpx.AsyncBaseTransport | None = None) -> int:
    """
    Main entry point.

    Returns:
        Process exit status
    """
    args = _parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as e:
        setup_logging(level=args.log_level or "INFO")
        logger.critical("Invalid configuration: %s", e)
        return 1

    setup_logging(level=args.log_level or settings.LOG_LEVEL, format_type=settings.LOG_FORMAT)

    try:
        destination_url = require_destination_url(
            args.destination_url if args.destination_url is not None else settings.DESTINATION_API_URL
        )
    except ConfigError as e:
        logger.critical("%s", e)
        return 1

    source_url = args.source_url or settings.SOURCE_API_URL
    logger.info(
        "Destination API URL: %s",
        destination_url,
        extra={"source_url": source_url, "app_version": settings.APP_VERSION},
    )

    try:
        asyncio.run(run_dispatch(settings, destination_url, source_url, transport=transport))
    except FetchError as e:
        logger.critical("User processing failed: %s", e)
        return 1

    logger.info("Service finished.")
    return 0


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
