from datetime import UTC, datetime
import json
import logging
import unittest

from botqueue.app_logging import JsonFormatter
from botqueue.event_log import EventLog


class CapturingHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


class EventLogTest(unittest.TestCase):
    def test_lines_are_stamped_and_mirrored(self) -> None:
        logger = logging.getLogger("test_botqueue_events")
        logger.handlers.clear()
        logger.propagate = False
        logger.setLevel(logging.INFO)
        handler = CapturingHandler()
        logger.addHandler(handler)

        events = EventLog(lambda: datetime(2025, 1, 1, 7, 5, 9, tzinfo=UTC), logger)
        line = events.record("worker_added", "Worker #1 added", worker_id=1)

        self.assertEqual(line, "07:05:09 - Worker #1 added")
        self.assertEqual(events.lines(), [line])

        payload = json.loads(JsonFormatter().format(handler.records[0]))
        self.assertEqual(payload["message"], "worker_added")
        self.assertEqual(payload["worker_id"], 1)
        self.assertEqual(payload["text"], "Worker #1 added")
        self.assertEqual(payload["level"], "INFO")


if __name__ == "__main__":
    unittest.main()
