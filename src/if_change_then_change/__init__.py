"""if-change-then-change package."""

from . import (
    classify,
    config,
    controller,
    correlate,
    diagnostics,
    diff,
    index,
    logging,
    main,
    parser,
    types,
)  # noqa: F401

__all__ = [
    "classify",
    "config",
    "controller",
    "correlate",
    "diagnostics",
    "diff",
    "index",
    "logging",
    "main",
    "parser",
    "types",
]
