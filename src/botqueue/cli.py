from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import yaml

from .app_logging import log_with_fields, setup_logger
from .config import AppConfig, load_config
from .dispatcher import Dispatcher
from .report import write_report
from .scheduler import RealtimeScheduler, Scheduler
from .simulation import run_simulation


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="botqueue", description="Priority job dispatch simulator")
    parser.add_argument("--config", default=None, help="Path to botqueue YAML config")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run the configured scenario and write the report")
    run_parser.add_argument(
        "--realtime",
        action="store_true",
        help="Wait on the wall clock instead of advancing virtual time",
    )
    run_parser.add_argument("--report", default=None, help="Override the report path")
    run_parser.add_argument(
        "--drain",
        action="store_true",
        help="Keep advancing time after the scenario until no completion is pending",
    )
    subparsers.add_parser("steps", help="Print the configured scenario steps")
    return parser


def cmd_run(
    config: AppConfig,
    *,
    realtime: bool = False,
    report: str | None = None,
    drain: bool = False,
) -> int:
    try:
        logger = setup_logger(config.paths.log)
    except OSError as exc:
        print(f"failed to open log {config.paths.log}: {exc}", file=sys.stderr)
        return 1
    scheduler = RealtimeScheduler() if realtime or config.simulation.realtime else Scheduler()
    dispatcher = Dispatcher(
        scheduler,
        processing_seconds=config.processing.duration_seconds,
        logger=logger,
    )
    status = run_simulation(dispatcher, scheduler, config.simulation.steps, logger=logger)
    if drain:
        scheduler.run_until_idle()
        status = dispatcher.get_status()

    report_path = Path(report) if report else config.paths.report
    try:
        write_report(dispatcher, report_path)
    except OSError as exc:
        log_with_fields(logger, logging.ERROR, "report_write_failed", path=str(report_path), error=str(exc))
        print(f"failed to write report {report_path}: {exc}", file=sys.stderr)
        return 1

    print("Jobs:")
    print(f"  {'queued':12} {status.queued}")
    print(f"  {'in_progress':12} {status.in_progress}")
    print(f"  {'done':12} {status.done}")
    print(f"  {'total':12} {status.total_jobs}")
    print(f"\nWorkers: {status.workers}")
    print(f"\nResults written to {report_path}")
    return 0


def cmd_steps(config: AppConfig) -> int:
    for index, step in enumerate(config.simulation.steps):
        print(f"{index:3} {step.describe()}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = load_config(args.config)
    except (OSError, ValueError, TypeError, yaml.YAMLError) as exc:
        print(f"invalid config: {exc}", file=sys.stderr)
        return 2

    if args.command == "run":
        return cmd_run(
            config,
            realtime=bool(args.realtime),
            report=args.report,
            drain=bool(args.drain),
        )
    if args.command == "steps":
        return cmd_steps(config)
    parser.error(f"Unknown command: {args.command}")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
