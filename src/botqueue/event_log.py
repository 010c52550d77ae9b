from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from .app_logging import LOGGER_NAME, log_with_fields
from .utils import clock_time


class EventLog:
    """Append-only sink of human-readable dispatcher lines.

    Each line is stamped with the dispatcher clock (``HH:MM:SS - message``) and
    mirrored to ``logger`` as a structured event.
    """

    def __init__(self, clock: Callable[[], datetime], logger: logging.Logger | None = None) -> None:
        self.clock = clock
        self.logger = logger or logging.getLogger(LOGGER_NAME)
        self._lines: list[str] = []

    def record(self, event: str, text: str, **fields: object) -> str:
        line = f"{clock_time(self.clock())} - {text}"
        self._lines.append(line)
        log_with_fields(self.logger, logging.INFO, event, text=text, **fields)
        return line

    def lines(self) -> list[str]:
        return list(self._lines)
