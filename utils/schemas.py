"""
Pydantic Schemas - Data Validation Models

Defines the schemas that flow through the dispatch pipeline:
- User records returned by the source API
- Outbound payloads sent to the destination API
- Per-run dispatch summary

Usage:
    from utils.schemas import UserPayload, UserRecord

    users = parse_users(response.content)
    payload = UserPayload.from_record(users[0])
"""

from typing import Any

import orjson
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from utils.errors import DecodeError


class UserRecord(BaseModel):
    """User record as returned by the source API.

    Only id, name and email are kept; any other field is ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int = Field(..., description="User ID")
    name: str = Field(..., description="Full name")
    email: str = Field(..., description="Email address")


class UserPayload(BaseModel):
    """Outbound payload for the destination API."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Full name")
    email: str = Field(..., description="Email address")

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserPayload":
        return cls(name=record.name, email=record.email)

    def to_json(self) -> bytes:
        return orjson.dumps(self.model_dump())


class DispatchSummary(BaseModel):
    """Counters for one dispatch run."""

    fetched: int = 0
    matched: int = 0
    delivered: int = 0
    failed: int = 0
    skipped: int = 0


_users_adapter = TypeAdapter(list[UserRecord])


def parse_users(body: bytes) -> list[UserRecord]:
    """
    Decode a source API response body into user records.

    Args:
        body: Raw response body

    Returns:
        Validated user records in response order

    Raises:
        DecodeError: If the body is not JSON, not an array, or a record is invalid
    """
    try:
        raw: Any = orjson.loads(body)
    except orjson.JSONDecodeError as e:
        raise DecodeError(f"invalid JSON: {e}") from e

    if not isinstance(raw, list):
        raise DecodeError(f"expected a JSON array, got {type(raw).__name__}")

    try:
        return _users_adapter.validate_python(raw)
    except ValidationError as e:
        # First line of the validation error is enough for the log
        raise DecodeError(f"invalid user record: {str(e).splitlines()[0]}") from e
