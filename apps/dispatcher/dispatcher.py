"""
User Dispatcher - Fetch, Filter, Forward

Fetches users once, then delivers every user whose email ends with the
configured suffix, one at a time. Delivery failures are logged and counted;
they never abort the loop. A fetch failure aborts the run before any delivery.
"""

import asyncio
import logging
import time

from utils.api_client import UserAPI
from utils.errors import DeliveryError, FetchError
from utils.schemas import DispatchSummary, UserPayload

logger = logging.getLogger(__name__)

DEFAULT_EMAIL_SUFFIX = ".biz"


def matches_suffix(email: str, suffix: str = DEFAULT_EMAIL_SUFFIX) -> bool:
    """Case-sensitive exact suffix match."""
    return email.endswith(suffix)


class UserDispatcher:
    """
    Single-pass dispatcher over the source API's user list.

    Handles:
    - One fetch per run
    - Suffix filtering
    - Sequential delivery with per-record error isolation
    """

    def __init__(
        self,
        api: UserAPI,
        destination_url: str,
        email_suffix: str = DEFAULT_EMAIL_SUFFIX,
        shutdown_event: asyncio.Event | None = None,
    ) -> None:
        """
        Initialize dispatcher.

        Args:
            api: Source/destination API client
            destination_url: URL every matching payload is POSTed to
            email_suffix: Suffix an email must end with to be delivered
            shutdown_event: Cancellation signal shared with the API client
        """
        self.api = api
        self.destination_url = destination_url
        self.email_suffix = email_suffix
        self.shutdown_event = shutdown_event or asyncio.Event()

    async def run(self) -> DispatchSummary:
        """
        Fetch users and deliver the matching ones.

        Returns:
            Counters for the run

        Raises:
            FetchError: If the user list cannot be fetched
        """
        start_time = time.time()

        try:
            users = await self.api.fetch_users(self.shutdown_event)
        except FetchError as e:
            logger.error("Fetch users error: %s", e, extra={"error": str(e)})
            raise

        summary = DispatchSummary(fetched=len(users))
        logger.info("Fetched %d users", len(users))

        for user in users:
            if not matches_suffix(user.email, self.email_suffix):
                logger.info("User %s (not %s): skipping", user.email, self.email_suffix)
                summary.skipped += 1
                continue

            summary.matched += 1
            logger.info(
                "User %s (%s): sending to destination API", user.email, self.email_suffix
            )
            payload = UserPayload.from_record(user)

            try:
                await self.api.send_user(payload, self.destination_url, self.shutdown_event)
            except DeliveryError as e:
                summary.failed += 1
                logger.error(
                    "Send to destination API error for %s (%s): %s",
                    user.name,
                    user.email,
                    e,
                    extra={"user_id": user.id, "error_type": type(e).__name__},
                )
                continue

            summary.delivered += 1
            logger.info("User %s (%s) sent to destination API", user.name, user.email)

        elapsed_time = time.time() - start_time
        logger.info(
            "User processing finished: fetched=%d, matched=%d, delivered=%d, failed=%d, "
            "skipped=%d, elapsed=%.3fs",
            summary.fetched,
            summary.matched,
            summary.delivered,
            summary.failed,
            summary.skipped,
            elapsed_time,
        )
        return summary
