"""Shared test fixtures and constants."""

from datetime import datetime, timezone

INSTITUTION_ID = "inst-portland-cc"


def make_timestamp(day: int) -> datetime:
    """A fixed createdAt value; larger days are later."""
    return datetime(2023, 9, day, 12, 0, tzinfo=timezone.utc)


def fenced(payload: str) -> str:
    """Wrap a JSON payload the way the summarizer model returns it."""
    return f"```json\n{payload}\n```"
