"""Resolver configuration: defaults, optional agentplan.json, environment overrides."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from agentplan.workflow.phases import (
    DEFAULT_CATEGORY_PHASES,
    DEFAULT_PRECEDENCE,
    PhaseGraph,
    phase_graph_from,
)

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "agentplan.json"


def _safe_int(value: str, default: int | None) -> int | None:
    try:
        return int(value)
    except ValueError:
        return default


def _safe_float(value: str, default: float | None) -> float | None:
    try:
        return float(value)
    except ValueError:
        return default


@dataclass
class ResolverConfig:
    agents_dir: str | None = None
    workers: int | None = None  # None = os.cpu_count()
    load_timeout: float | None = None  # seconds; None = no deadline
    strict: bool = False
    log_level: str = "WARNING"
    exclude_names: list[str] = field(default_factory=lambda: ["README.md"])
    phases: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_CATEGORY_PHASES))
    precedence: list[tuple[str, str]] = field(default_factory=lambda: list(DEFAULT_PRECEDENCE))

    @classmethod
    def from_env(cls) -> ResolverConfig:
        config = cls()
        _apply_env(config)
        return config

    @classmethod
    def from_file(cls, path: Path) -> ResolverConfig:
        config = cls()

        if path.exists():
            try:
                data = json.loads(path.read_text())
                section = data.get("resolver", {})
                if isinstance(section, dict):
                    _apply(config, section)
            except (json.JSONDecodeError, OSError, AttributeError) as e:
                logger.warning(f"Failed to load resolver config from {path}: {e}")

        _apply_env(config)
        return config

    def phase_graph(self) -> PhaseGraph:
        """A fresh, unbuilt graph from the configured phases and edges."""
        return phase_graph_from(self.phases, self.precedence)


def _apply(config: ResolverConfig, data: dict[str, object]) -> None:
    if isinstance(data.get("agents_dir"), str):
        config.agents_dir = data["agents_dir"]  # type: ignore[assignment]
    if isinstance(data.get("workers"), int) and data["workers"] > 0:  # type: ignore[operator]
        config.workers = data["workers"]  # type: ignore[assignment]
    if isinstance(data.get("load_timeout"), (int, float)):
        config.load_timeout = float(data["load_timeout"])  # type: ignore[arg-type]
    if isinstance(data.get("strict"), bool):
        config.strict = data["strict"]  # type: ignore[assignment]
    if isinstance(data.get("log_level"), str):
        config.log_level = data["log_level"]  # type: ignore[assignment]
    names = data.get("exclude_names")
    if isinstance(names, list) and all(isinstance(n, str) for n in names):
        config.exclude_names = list(names)
    phases = data.get("phases")
    if isinstance(phases, dict):
        config.phases = {
            str(k): v for k, v in phases.items() if isinstance(v, int) and not isinstance(v, bool)
        }
    edges = data.get("precedence")
    if isinstance(edges, list):
        config.precedence = [
            (str(e[0]), str(e[1])) for e in edges if isinstance(e, list) and len(e) == 2
        ]


def _apply_env(config: ResolverConfig) -> None:
    if agents_dir := os.environ.get("AGENTS_DIR"):
        config.agents_dir = agents_dir
    if workers := os.environ.get("AGENTPLAN_WORKERS"):
        config.workers = _safe_int(workers, config.workers)
    if timeout := os.environ.get("AGENTPLAN_LOAD_TIMEOUT"):
        config.load_timeout = _safe_float(timeout, config.load_timeout)
    if strict := os.environ.get("AGENTPLAN_STRICT"):
        config.strict = strict.lower() in ("true", "1", "yes")
    if log_level := os.environ.get("AGENTPLAN_LOG_LEVEL"):
        config.log_level = log_level.upper()


def load_resolver_config(path: Path | None = None) -> ResolverConfig:
    if path is None:
        path = Path.cwd() / CONFIG_FILENAME
    return ResolverConfig.from_file(path)
