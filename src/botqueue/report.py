from __future__ import annotations

from datetime import datetime
from pathlib import Path

from .dispatcher import Dispatcher
from .utils import clock_time

REPORT_TITLE = "=== Bot Queue Dispatch Report ==="


def format_report(dispatcher: Dispatcher, generated_at: datetime) -> str:
    status = dispatcher.get_status()
    lines = [
        REPORT_TITLE,
        f"Execution Time: {clock_time(generated_at)}",
        "",
        "--- System Status ---",
        f"Total Workers: {status.workers}",
        f"Queued Jobs: {status.queued}",
        f"In-Progress Jobs: {status.in_progress}",
        f"Done Jobs: {status.done}",
        f"Total Jobs: {status.total_jobs}",
        "",
        "--- Execution Log ---",
        *dispatcher.get_log(),
        "",
        "--- Job Details ---",
    ]
    for job in dispatcher.get_jobs():
        lines.append(
            f"Job #{job.id} ({job.priority.value}) - Status: {job.state.value} "
            f"| Created: {clock_time(job.submitted_at)} | Completed: {clock_time(job.completed_at)}"
        )
    return "\n".join(lines)


def write_report(dispatcher: Dispatcher, path: Path, generated_at: datetime | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    text = format_report(dispatcher, generated_at or dispatcher.scheduler.now())
    path.write_text(text + "\n", encoding="utf-8")
    return path
