"""Discovery of every file taking part in a co-change obligation."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Deque, Dict, Iterable, List, Optional, Set, Tuple

from . import parser, types

# Targets are followed this many hops beyond the files in the diff. Files
# reached at the last hop are parsed, and their targets checked for existence,
# but those targets are not read in turn.
MAX_HOPS = 1

# (path, hop, text)
_Pending = Tuple[str, int, str]


@dataclass
class AnnotationIndex:
    """Parsed annotations keyed by repository-relative path."""

    root: Path
    files: Dict[str, types.FileAnnotations] = field(default_factory=dict)
    malformed: Set[str] = field(default_factory=set)

    def get(self, path: str) -> Optional[types.FileAnnotations]:
        return self.files.get(path)


def read_file(root: Path, path: str) -> Optional[str]:
    """Return the text of *path* under *root*, or ``None`` when it cannot be read."""

    file_path = root / path
    if not file_path.is_file():
        return None
    try:
        return file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


class _Discovery:
    def __init__(
        self,
        root: Path,
        diff_paths: Set[str],
        diagnostics: List[types.Diagnostic],
        max_hops: int,
        logger,
    ):
        self.root = root
        self.diff_paths = diff_paths
        self.diagnostics = diagnostics
        self.max_hops = max_hops
        self.logger = logger
        self.queued: Set[str] = set(diff_paths)
        self.queue: Deque[_Pending] = deque()
        self.index = AnnotationIndex(root=root)

    def _log(self, kind: str, **data) -> None:
        if self.logger is not None:
            self.logger.log_event(kind, **data)

    def _filter_targets(self, block: types.AnnotationBlock, hop: int) -> types.AnnotationBlock:
        kept: List[Tuple[int, types.BlockKey]] = []
        for lineno, key in block.then_change:
            target = key.path
            if target == block.key.path:
                # Self-references are never obligations.
                continue
            if target in self.diff_paths or target in self.queued:
                kept.append((lineno, key))
                continue
            if not (self.root / target).is_file():
                self.diagnostics.append(
                    types.Diagnostic(
                        types.at(block.key.path, lineno),
                        f"then-change references file that does not exist: '{target}'",
                    )
                )
                continue
            if hop >= self.max_hops:
                kept.append((lineno, key))
                continue
            text = read_file(self.root, target)
            if text is None:
                # Unread targets carry no obligation.
                self.diagnostics.append(
                    types.Diagnostic(
                        types.at(block.key.path, lineno),
                        f"then-change references file that could not be read: '{target}'",
                    )
                )
                self._log("index.unreadable", path=target, hop=hop + 1)
                continue
            kept.append((lineno, key))
            self.queued.add(target)
            self.queue.append((target, hop + 1, text))
        return replace(block, then_change=kept)

    def _visit(self, path: str, hop: int, text: str) -> None:
        result = parser.parse_text(path, text)
        if not result.ok:
            self.diagnostics.extend(result.diagnostics)
            self.index.malformed.add(path)
            self._log("index.file", path=path, hop=hop, malformed=True, errors=len(result.diagnostics))
            return

        annotations = result.annotations()
        annotations.blocks = [self._filter_targets(block, hop) for block in annotations.blocks]
        self.index.files[path] = annotations
        self._log("index.file", path=path, hop=hop, malformed=False, blocks=len(annotations))

    def run(self, stdin_label: str) -> AnnotationIndex:
        for path in sorted(self.diff_paths):
            text = read_file(self.root, path)
            if text is None:
                self.diagnostics.append(
                    types.Diagnostic(
                        types.at(stdin_label),
                        f"diff references file that does not exist: '{path}'",
                    )
                )
                self._log("index.unreadable", path=path, hop=0)
                continue
            self.queue.append((path, 0, text))
        while self.queue:
            self._visit(*self.queue.popleft())
        return self.index


def build_index(
    diff_paths: Iterable[str],
    *,
    root: Path | str = ".",
    diagnostics: List[types.Diagnostic],
    max_hops: int = MAX_HOPS,
    stdin_label: str = "stdin",
    logger=None,
) -> AnnotationIndex:
    """Parse the diff's files and every then-change target reachable from them.

    Read and parse failures are appended to *diagnostics*. A file with
    malformed annotations is recorded in ``malformed`` and left out of
    ``files``, so obligations pointing at it can never be satisfied.
    """

    discovery = _Discovery(Path(root), set(diff_paths), diagnostics, max_hops, logger)
    return discovery.run(stdin_label)
