"""
Error Taxonomy

Fatal errors (ConfigError, FetchError) stop the run. DeliveryError is scoped
to a single record and is logged by the dispatcher without aborting the loop.
"""


class DispatchError(Exception):
    """Base class for all errors raised by the dispatch pipeline."""


class ConfigError(DispatchError):
    """Required configuration is missing or invalid."""


class APIError(DispatchError):
    """A single HTTP exchange failed."""


class TransportError(APIError):
    """The request could not be built, sent, or was cancelled in flight."""


class StatusError(APIError):
    """The response status was not the expected one."""

    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        message = f"unexpected status: {status_code}"
        if body:
            message = f"{message}, body: {body}"
        super().__init__(message)


class DecodeError(APIError):
    """The response body was not a valid list of user records."""


class FetchError(DispatchError):
    """Fetching users from the source API failed."""

    def __init__(self, reason: APIError) -> None:
        self.reason = reason
        super().__init__(f"source API: {reason}")


class DeliveryError(DispatchError):
    """Delivering one payload to the destination API failed."""

    def __init__(self, message: str, email: str) -> None:
        self.email = email
        super().__init__(message)


class DeliveryFailedError(DeliveryError):
    """Every delivery attempt failed."""

    def __init__(self, email: str, attempts: int, last_error: APIError) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"destination API: failed after {attempts} attempts: {last_error}", email
        )


class DeliveryCancelledError(DeliveryError):
    """The run was cancelled while waiting to retry a delivery."""

    def __init__(self, email: str, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(
            f"destination API: cancelled during retry after {attempts} attempts", email
        )
