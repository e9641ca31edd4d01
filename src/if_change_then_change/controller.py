"""Controller running one check over a diff."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Set

from . import config as config_module, correlate, diagnostics as engine, diff as diff_module, index, logging, types


@dataclass
class CheckResult:
    diagnostics: List[types.Diagnostic]
    annotations: index.AnnotationIndex
    touched: Dict[str, types.FileAnnotations] = field(default_factory=dict)
    diff_paths: Set[str] = field(default_factory=set)

    def render(self) -> str:
        return "".join(f"{diagnostic}\n" for diagnostic in self.diagnostics)


def _diagnostics_payload(diagnostics: List[types.Diagnostic]) -> List[Dict[str, object]]:
    return [
        {
            "path": d.position.path,
            "start_line": d.position.start_line,
            "end_line": d.position.end_line,
            "message": d.message,
        }
        for d in diagnostics
    ]


def run_check(
    diff_text: str,
    *,
    config: config_module.Config | None = None,
    logger: logging.RunLogger | None = None,
) -> CheckResult:
    """Parse *diff_text*, discover annotations and report unmet obligations.

    Raises :class:`diff.DiffParseError` when the diff itself is unusable.
    """

    cfg = config or config_module.Config.default()
    if logger is None:
        logger = logging.RunLogger(cfg.logging.dir, stream=cfg.logging.stream)
    root = Path(cfg.repo.root)
    label = cfg.output.stdin_label
    logger.log_event("run.start", root=str(root), max_hops=cfg.discovery.max_hops)

    # One list carries every diagnostic through each phase.
    diagnostics: List[types.Diagnostic] = []

    patch_set = diff_module.parse_diff(diff_text)
    logger.log_event("diff.parsed", count=len(patch_set.files), git=patch_set.is_git)
    diffs_by_path = diff_module.diffs_by_post_diff_path(patch_set, diagnostics, stdin_label=label)
    for path in sorted(diffs_by_path):
        logger.log_event("diff.file", path=path, hunks=len(diffs_by_path[path].hunks))
    diff_paths = set(diffs_by_path)

    annotations = index.build_index(
        diff_paths,
        root=root,
        diagnostics=diagnostics,
        max_hops=cfg.discovery.max_hops,
        stdin_label=label,
        logger=logger,
    )
    logger.log_event("index.built", count=len(annotations.files), malformed=sorted(annotations.malformed))

    touched = correlate.correlate(annotations, diffs_by_path, logger=logger)
    engine.evaluate(touched, annotations, diff_paths, diagnostics)
    logger.log_event("engine.done", diagnostics=len(diagnostics))

    result = CheckResult(diagnostics=diagnostics, annotations=annotations, touched=touched, diff_paths=diff_paths)
    logger.log_json("diagnostics", _diagnostics_payload(diagnostics))
    logger.log_text("report", result.render())
    logger.log_event("run.finish", diagnostics=len(diagnostics))
    return result
