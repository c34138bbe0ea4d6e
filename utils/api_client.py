"""
User API Client - Source Fetch and Destination Delivery

Wraps a caller-owned httpx.AsyncClient with the two operations the
dispatcher needs:
- fetch_users: single GET to the source API, no retry
- send_user: POST to the destination API with fixed-delay retries (tenacity)

Both operations observe an optional shutdown event. Setting it while a
request is in flight cancels the request (TransportError); setting it during
the inter-retry delay aborts delivery with DeliveryCancelledError.

Usage:
    async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT) as http_client:
        api = UserAPIClient(http_client, source_url=settings.SOURCE_API_URL)
        users = await api.fetch_users()
        await api.send_user(UserPayload.from_record(users[0]), destination_url)
"""

import asyncio
import logging
from typing import Protocol, runtime_checkable

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from utils.errors import (
    APIError,
    DeliveryCancelledError,
    DeliveryFailedError,
    FetchError,
    StatusError,
    TransportError,
)
from utils.schemas import UserPayload, UserRecord, parse_users

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 2.0
MAX_ERROR_BODY = 200


@runtime_checkable
class UserAPI(Protocol):
    """Capability interface the dispatcher depends on."""

    async def fetch_users(
        self, shutdown_event: asyncio.Event | None = None
    ) -> list[UserRecord]:
        """
        Fetch all user records from the source API.

        Raises:
            FetchError: On transport, status or decode failure
        """
        ...

    async def send_user(
        self,
        payload: UserPayload,
        destination_url: str,
        shutdown_event: asyncio.Event | None = None,
    ) -> None:
        """
        Deliver one payload to the destination API.

        Raises:
            DeliveryError: On exhausted retries or cancellation
        """
        ...


class _RetryCancelled(Exception):
    """Raised out of the tenacity sleep hook when the shutdown event fires."""


class UserAPIClient:
    """httpx-backed implementation of UserAPI."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        source_url: str,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
    ) -> None:
        """
        Initialize the client.

        Args:
            http_client: Shared client, owned and closed by the caller
            source_url: Source API endpoint returning the user list
            max_attempts: Delivery attempt budget per payload
            retry_delay: Seconds to wait between failed delivery attempts
        """
        self.http_client = http_client
        self.source_url = source_url
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay

    async def fetch_users(
        self, shutdown_event: asyncio.Event | None = None
    ) -> list[UserRecord]:
        try:
            try:
                request = self.http_client.build_request("GET", self.source_url)
            except httpx.InvalidURL as e:
                raise TransportError(f"failed to create request: {e}") from e

            response = await self._send(request, shutdown_event)

            if response.status_code != httpx.codes.OK:
                raise StatusError(response.status_code, _truncate(response.text))

            users = parse_users(response.content)
        except APIError as e:
            raise FetchError(e) from e

        logger.debug("Fetched users", extra={"url": self.source_url, "count": len(users)})
        return users

    async def send_user(
        self,
        payload: UserPayload,
        destination_url: str,
        shutdown_event: asyncio.Event | None = None,
    ) -> None:
        try:
            request = self.http_client.build_request(
                "POST",
                destination_url,
                content=payload.to_json(),
                headers={"Content-Type": "application/json"},
            )
        except httpx.InvalidURL as e:
            raise DeliveryFailedError(
                payload.email, 0, TransportError(f"failed to create request: {e}")
            ) from e

        async def wait_or_cancel(seconds: float) -> None:
            if await _wait_for_event(shutdown_event, seconds):
                raise _RetryCancelled()

        def log_retry(retry_state: RetryCallState) -> None:
            logger.warning(
                "Destination API: attempt %d/%d for %s failed: %s; retrying in %.1fs",
                retry_state.attempt_number,
                self.max_attempts,
                payload.email,
                retry_state.outcome.exception(),
                retry_state.next_action.sleep,
                extra={"email": payload.email, "attempt": retry_state.attempt_number},
            )

        retrying = AsyncRetrying(
            retry=retry_if_exception_type(APIError),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.retry_delay),
            sleep=wait_or_cancel,
            before_sleep=log_retry,
        )

        attempts = 0
        try:
            async for attempt in retrying:
                with attempt:
                    attempts += 1
                    await self._deliver(request, shutdown_event)
        except _RetryCancelled as e:
            raise DeliveryCancelledError(payload.email, attempts) from e
        except RetryError as e:
            last_error = e.last_attempt.exception()
            logger.warning(
                "Destination API: failed to send user %s after %d attempts: %s",
                payload.email,
                attempts,
                last_error,
            )
            raise DeliveryFailedError(payload.email, attempts, last_error) from last_error

        logger.info(
            "Destination API: sent user %s",
            payload.email,
            extra={"email": payload.email, "attempts": attempts},
        )

    async def _deliver(
        self, request: httpx.Request, shutdown_event: asyncio.Event | None
    ) -> None:
        """Run one delivery attempt; any non-2xx status is a failure."""
        response = await self._send(request, shutdown_event)
        if not response.is_success:
            raise StatusError(response.status_code, _truncate(response.text))

    async def _send(
        self, request: httpx.Request, shutdown_event: asyncio.Event | None
    ) -> httpx.Response:
        """
        Send a request, racing it against the shutdown event.

        Raises:
            TransportError: If sending fails or the shutdown event fires first
        """
        if shutdown_event is None:
            return await self._send_unguarded(request)

        if shutdown_event.is_set():
            raise TransportError("request cancelled before it was sent")

        send_task = asyncio.create_task(self._send_unguarded(request))
        cancel_task = asyncio.create_task(shutdown_event.wait())

        done, pending = await asyncio.wait(
            [send_task, cancel_task], return_when=asyncio.FIRST_COMPLETED
        )

        # Cancel pending tasks
        for task in pending:
            task.cancel()
            try:
                await task
            except (asyncio.CancelledError, TransportError):
                pass

        if send_task not in done:
            raise TransportError(f"request cancelled: {request.method} {request.url}")

        return send_task.result()

    async def _send_unguarded(self, request: httpx.Request) -> httpx.Response:
        try:
            return await self.http_client.send(request)
        except httpx.HTTPError as e:
            raise TransportError(f"request failed: {e!r}") from e


async def _wait_for_event(event: asyncio.Event | None, seconds: float) -> bool:
    """Wait up to `seconds`; return True if the event was set."""
    if event is None:
        await asyncio.sleep(seconds)
        return False

    if event.is_set():
        return True

    try:
        await asyncio.wait_for(event.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        return False
    return True


def _truncate(text: str) -> str:
    if len(text) <= MAX_ERROR_BODY:
        return text
    return text[:MAX_ERROR_BODY] + "..."
