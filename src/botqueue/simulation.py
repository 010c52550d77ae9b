from __future__ import annotations

import logging
from dataclasses import dataclass

from .app_logging import LOGGER_NAME, log_with_fields
from .dispatcher import Dispatcher
from .models import DispatcherStatus
from .scheduler import Scheduler

ACTIONS = ("submit", "add_worker", "remove_worker", "wait")


@dataclass(frozen=True, slots=True)
class Step:
    action: str
    priority: bool = False
    seconds: float = 0.0

    def describe(self) -> str:
        if self.action == "submit":
            return f"submit {'high' if self.priority else 'standard'}"
        if self.action == "wait":
            return f"wait {self.seconds:g}s"
        return self.action


DEFAULT_STEPS: tuple[Step, ...] = (
    Step("submit"),
    Step("submit"),
    Step("wait", seconds=1),
    Step("submit", priority=True),
    Step("add_worker"),
    Step("wait", seconds=11),
    Step("add_worker"),
    Step("submit", priority=True),
    Step("submit"),
    Step("wait", seconds=12),
    Step("remove_worker"),
    Step("wait", seconds=15),
)


def parse_step(raw: object, index: int) -> Step:
    """Build a step from ``"add_worker"`` or ``{"action": ..., ...}`` config entries."""
    label = f"simulation.steps[{index}]"
    if isinstance(raw, str):
        raw = {"action": raw}
    if not isinstance(raw, dict):
        raise ValueError(f"`{label}` must be a string or a mapping")

    action = str(raw.get("action", "")).strip().lower()
    if action not in ACTIONS:
        raise ValueError(f"`{label}.action` must be one of {', '.join(ACTIONS)}, found: {action!r}")

    if action == "submit":
        priority = str(raw.get("priority", "standard")).strip().lower()
        if priority not in {"high", "standard"}:
            raise ValueError(f"`{label}.priority` must be `high` or `standard`")
        return Step(action, priority=priority == "high")

    if action == "wait":
        if "seconds" not in raw:
            raise ValueError(f"Missing `{label}.seconds` in config")
        seconds = float(raw["seconds"])
        if seconds < 0:
            raise ValueError(f"`{label}.seconds` must be >= 0")
        return Step(action, seconds=seconds)

    return Step(action)


def run_simulation(
    dispatcher: Dispatcher,
    scheduler: Scheduler,
    steps: tuple[Step, ...] | list[Step] = DEFAULT_STEPS,
    logger: logging.Logger | None = None,
) -> DispatcherStatus:
    logger = logger or logging.getLogger(LOGGER_NAME)
    for index, step in enumerate(steps):
        log_with_fields(logger, logging.INFO, "simulation_step", index=index, step=step.describe())
        if step.action == "submit":
            dispatcher.submit_job(step.priority)
        elif step.action == "add_worker":
            dispatcher.add_worker()
        elif step.action == "remove_worker":
            dispatcher.remove_worker()
        elif step.action == "wait":
            scheduler.advance(step.seconds)
        else:
            raise ValueError(f"Unknown simulation action: {step.action}")
    return dispatcher.get_status()
