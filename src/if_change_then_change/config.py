"""Configuration loading helpers for if-change-then-change."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml

from .index import MAX_HOPS

DEFAULT_CONFIG_FILE = "ictc.yaml"


def _filter_kwargs(data: Dict[str, Any], *, allowed: set[str]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if key in allowed}


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{name}' must be a mapping.")
    return value


@dataclass(frozen=True)
class RepoConfig:
    root: str = "."


@dataclass(frozen=True)
class DiscoveryConfig:
    max_hops: int = MAX_HOPS


@dataclass(frozen=True)
class OutputConfig:
    # Path shown for diagnostics about the diff itself rather than a file.
    stdin_label: str = "stdin"


@dataclass(frozen=True)
class LoggingConfig:
    dir: str | None = None
    stream: bool = False


@dataclass(frozen=True)
class Config:
    """Aggregated configuration for a check run."""

    repo: RepoConfig = field(default_factory=RepoConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def default(cls) -> "Config":
        return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        repo = RepoConfig(**_filter_kwargs(_section(data, "repo"), allowed=set(RepoConfig.__annotations__.keys())))
        discovery = DiscoveryConfig(
            **_filter_kwargs(_section(data, "discovery"), allowed=set(DiscoveryConfig.__annotations__.keys()))
        )
        output = OutputConfig(
            **_filter_kwargs(_section(data, "output"), allowed=set(OutputConfig.__annotations__.keys()))
        )
        logging_cfg = LoggingConfig(
            **_filter_kwargs(_section(data, "logging"), allowed=set(LoggingConfig.__annotations__.keys()))
        )
        if not isinstance(repo.root, str):
            raise ValueError("repo.root must be a string.")
        # bool is an int subclass.
        if isinstance(discovery.max_hops, bool) or not isinstance(discovery.max_hops, int) or discovery.max_hops < 0:
            raise ValueError("discovery.max_hops must be a non-negative integer.")
        if not isinstance(output.stdin_label, str):
            raise ValueError("output.stdin_label must be a string.")
        if logging_cfg.dir is not None and not isinstance(logging_cfg.dir, str):
            raise ValueError("logging.dir must be a string.")
        if not isinstance(logging_cfg.stream, bool):
            raise ValueError("logging.stream must be a boolean.")
        return cls(repo=repo, discovery=discovery, output=output, logging=logging_cfg)

    @classmethod
    def load(cls, path: str | Path | None = None) -> "Config":
        """Load configuration from *path* if it exists, otherwise defaults."""

        if path is None:
            path = Path(DEFAULT_CONFIG_FILE)
        else:
            path = Path(path)
        if not path.exists():
            return cls.default()
        raw = yaml.safe_load(path.read_text()) or {}
        if not isinstance(raw, dict):
            raise ValueError("Config file must contain a mapping at the top level.")
        return cls.from_dict(raw)


__all__ = [
    "Config",
    "DEFAULT_CONFIG_FILE",
    "DiscoveryConfig",
    "LoggingConfig",
    "OutputConfig",
    "RepoConfig",
]
