from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .dispatcher import DEFAULT_PROCESSING_SECONDS
from .simulation import DEFAULT_STEPS, Step, parse_step


@dataclass(slots=True)
class PathsConfig:
    report: Path
    log: Path | None


@dataclass(slots=True)
class ProcessingConfig:
    duration_seconds: float = DEFAULT_PROCESSING_SECONDS


@dataclass(slots=True)
class SimulationConfig:
    realtime: bool = False
    steps: tuple[Step, ...] = DEFAULT_STEPS


@dataclass(slots=True)
class AppConfig:
    paths: PathsConfig
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)


def default_config(base_dir: Path | None = None) -> AppConfig:
    base = base_dir or Path.cwd()
    return AppConfig(paths=PathsConfig(report=base / "result.txt", log=None))


def _mapping(raw: dict, key: str) -> dict:
    value = raw.get(key, {})
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"`{key}` must be a mapping")
    return value


def load_config(path: str | Path | None) -> AppConfig:
    if path is None:
        return default_config()

    config_path = Path(path).expanduser().resolve()
    raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError("Config root must be a mapping")

    paths_raw = _mapping(raw, "paths")
    processing_raw = _mapping(raw, "processing")
    simulation_raw = _mapping(raw, "simulation")

    def to_path(value: object) -> Path:
        output = Path(str(value)).expanduser()
        if not output.is_absolute():
            output = config_path.parent / output
        return output

    paths = PathsConfig(
        report=to_path(paths_raw.get("report", "result.txt")),
        log=to_path(paths_raw["log"]) if paths_raw.get("log") else None,
    )

    processing = ProcessingConfig(
        duration_seconds=float(processing_raw.get("duration_seconds", DEFAULT_PROCESSING_SECONDS)),
    )
    if processing.duration_seconds <= 0:
        raise ValueError("`processing.duration_seconds` must be > 0")

    steps_raw = simulation_raw.get("steps")
    if steps_raw is None:
        steps = DEFAULT_STEPS
    elif isinstance(steps_raw, list):
        steps = tuple(parse_step(item, idx) for idx, item in enumerate(steps_raw))
    else:
        raise ValueError("`simulation.steps` must be a list")

    realtime = simulation_raw.get("realtime", False)
    if not isinstance(realtime, bool):
        raise ValueError("`simulation.realtime` must be a boolean")

    simulation = SimulationConfig(
        realtime=realtime,
        steps=steps,
    )
    return AppConfig(paths=paths, processing=processing, simulation=simulation)
