"""CLI entrypoint for if-change-then-change."""

from __future__ import annotations

import argparse
import dataclasses
import sys
from pathlib import Path
from typing import Iterable, TextIO

import yaml

from . import config as config_module, controller, diff, logging


def _parse_args(args: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="if-change-then-change",
        description="Report if-change-then-change obligations that a unified diff leaves unmet.",
    )
    parser.add_argument("--diff", default="-", help="Path to the unified diff ('-' reads stdin, the default)")
    parser.add_argument("--root", default=None, help="Repository root that diff and then-change paths are relative to")
    parser.add_argument(
        "--config",
        default=None,
        help=f"Path to YAML configuration file (defaults to ./{config_module.DEFAULT_CONFIG_FILE} if present)",
    )
    parser.add_argument("--max-hops", type=int, default=None, help="How far to follow then-change targets")
    parser.add_argument("--log-dir", default=None, help="Directory to persist structured run events into")
    parser.add_argument("-v", "--verbose", action="store_true", help="Echo structured events to stderr")
    return parser.parse_args(list(args) if args is not None else None)


def _apply_overrides(cfg: config_module.Config, ns: argparse.Namespace) -> config_module.Config:
    if ns.root is not None:
        cfg = dataclasses.replace(cfg, repo=dataclasses.replace(cfg.repo, root=ns.root))
    if ns.max_hops is not None:
        cfg = dataclasses.replace(cfg, discovery=dataclasses.replace(cfg.discovery, max_hops=ns.max_hops))
    if ns.log_dir is not None:
        cfg = dataclasses.replace(cfg, logging=dataclasses.replace(cfg.logging, dir=ns.log_dir))
    if ns.verbose:
        cfg = dataclasses.replace(cfg, logging=dataclasses.replace(cfg.logging, stream=True))
    return cfg


def _read_diff(source: str, stdin: TextIO) -> str:
    if source == "-":
        return stdin.read()
    return Path(source).read_text()


def main(argv: Iterable[str] | None = None) -> int:
    ns = _parse_args(argv)
    try:
        cfg = _apply_overrides(config_module.Config.load(ns.config), ns)
    except (ValueError, yaml.YAMLError) as exc:
        print(f"if-change-then-change: invalid config: {exc}", file=sys.stderr)
        return 1
    logger = logging.RunLogger(cfg.logging.dir, stream=cfg.logging.stream)
    try:
        diff_text = _read_diff(ns.diff, sys.stdin)
        result = controller.run_check(diff_text, config=cfg, logger=logger)
    except (OSError, UnicodeDecodeError, diff.DiffParseError) as exc:
        logger.log_event("run.error", error=str(exc))
        print(f"if-change-then-change: {exc}", file=sys.stderr)
        return 1
    sys.stdout.write(result.render())
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
