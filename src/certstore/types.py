"""Result models returned by storage operations."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

# Text layout of every timestamp written by the backend clock.
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


def parse_timestamp(value: str) -> datetime:
    """Parse a backend timestamp into an aware UTC datetime."""
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


class KeyInfo(BaseModel):
    """Metadata about a stored key."""

    model_config = ConfigDict(frozen=True)

    key: str
    size: int = Field(ge=0)
    modified: datetime
    # No directory-like keys exist in this store.
    is_terminal: bool = True


class LeaseInfo(BaseModel):
    """A lease row as seen against the backend clock."""

    model_config = ConfigDict(frozen=True)

    key: str
    expires: datetime
    active: bool
