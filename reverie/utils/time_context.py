"""Time helpers shared by processors and the consciousness loop."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class TimeContext(BaseModel):
    """Coarse description of "now" handed to the inference backend"""

    timestamp: datetime
    time_of_day: str = Field(description="morning, afternoon, evening or night")
    day_of_week: str
    is_recent: bool = True


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    """Canonical serialised form for persisted timestamps (second precision)."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="seconds")


def parse_iso(value: str | datetime | None) -> datetime | None:
    """Parse a persisted timestamp, returning ``None`` for empty or invalid input."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def get_time_context(moment: datetime | None = None) -> TimeContext:
    moment = moment or utc_now()
    hour = moment.hour
    if 5 <= hour < 12:
        time_of_day = "morning"
    elif 12 <= hour < 17:
        time_of_day = "afternoon"
    elif 17 <= hour < 22:
        time_of_day = "evening"
    else:
        time_of_day = "night"

    return TimeContext(
        timestamp=moment,
        time_of_day=time_of_day,
        day_of_week=moment.strftime("%A"),
        is_recent=True,
    )


__all__ = ["TimeContext", "get_time_context", "parse_iso", "to_iso", "utc_now"]
