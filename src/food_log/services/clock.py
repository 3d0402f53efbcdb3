"""Clock helpers shared by the log services."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(tz=UTC)
