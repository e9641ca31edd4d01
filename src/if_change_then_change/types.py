"""Core datatypes for if-change-then-change."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional, Tuple


class MarkerKind(str, enum.Enum):
    """Kinds of line recognised by the annotation classifier."""

    SOURCE_LINE = "source_line"
    IF_CHANGE = "if_change"
    THEN_CHANGE_INLINE = "then_change_inline"
    THEN_CHANGE_BLOCK_START = "then_change_block_start"
    END_CHANGE = "end_change"


@dataclass(frozen=True)
class LineMarker:
    """Classification of a single line; ``target`` is set for inline then-changes."""

    kind: MarkerKind
    target: Optional[str] = None


@dataclass(frozen=True)
class BlockKey:
    """Identifies the file an annotation block belongs to."""

    path: str


@dataclass(frozen=True)
class AnnotationBlock:
    """One parsed if-change ... then-change region.

    Line numbers are 0-indexed. ``then_change`` holds ``(line, key)`` pairs in
    file order, one for each declared target.
    """

    key: BlockKey
    then_change: List[Tuple[int, BlockKey]]
    if_change_line: int
    then_change_line: int
    end_change_line: int

    def __post_init__(self) -> None:
        if not self.if_change_line <= self.then_change_line <= self.end_change_line:
            raise ValueError(
                "block markers out of order: "
                f"{self.if_change_line}, {self.then_change_line}, {self.end_change_line}"
            )

    @property
    def content_range(self) -> range:
        """Lines expected to change, including the marker lines themselves."""

        return range(self.if_change_line, self.end_change_line + 1)

    @property
    def position(self) -> "DiagnosticPosition":
        content = self.content_range
        return DiagnosticPosition(self.key.path, content.start, content.stop)

    def targets(self) -> List[str]:
        return [key.path for _line, key in self.then_change]


@dataclass
class FileAnnotations:
    """All annotation blocks parsed from one file, in file order."""

    blocks: List[AnnotationBlock] = field(default_factory=list)

    def corresponding_block(self, source: AnnotationBlock) -> Optional[AnnotationBlock]:
        # Annotation density per file is small; a linear scan is enough.
        for block in self.blocks:
            for _line, key in block.then_change:
                if key == source.key:
                    return block
        return None

    def __len__(self) -> int:
        return len(self.blocks)


@dataclass(frozen=True)
class DiagnosticPosition:
    """A file plus an optional 0-indexed, inclusive-exclusive line range."""

    path: str
    start_line: Optional[int] = None
    end_line: Optional[int] = None

    def __str__(self) -> str:
        if self.start_line is None:
            return self.path
        if self.end_line is None or self.end_line - self.start_line <= 1:
            return f"{self.path}:{self.start_line + 1}"
        return f"{self.path}:{self.start_line + 1}-{self.end_line}"


@dataclass(frozen=True)
class Diagnostic:
    """A single finding, tied to where the user is expected to act."""

    position: DiagnosticPosition
    message: str

    def sort_key(self) -> Tuple[str, int, str, int]:
        # A missing line sorts before any line in the same file.
        pos = self.position
        start = -1 if pos.start_line is None else pos.start_line
        end = -1 if pos.end_line is None else pos.end_line
        return (pos.path, start, self.message, end)

    def __str__(self) -> str:
        return f"{self.position} - {self.message}"


def at(path: str, line: int | None = None, end: int | None = None) -> DiagnosticPosition:
    """Shorthand for building a :class:`DiagnosticPosition`."""

    return DiagnosticPosition(path=path, start_line=line, end_line=end)


def sort_diagnostics(diagnostics: List[Diagnostic]) -> List[Diagnostic]:
    return sorted(diagnostics, key=Diagnostic.sort_key)
