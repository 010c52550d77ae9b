from __future__ import annotations

from datetime import datetime


def local_now() -> datetime:
    return datetime.now().astimezone()


def clock_time(value: datetime | None, missing: str = "N/A") -> str:
    if value is None:
        return missing
    return value.strftime("%H:%M:%S")
