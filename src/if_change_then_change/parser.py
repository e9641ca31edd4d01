"""Line-by-line state machine that turns annotated text into blocks.

Parsing aims to report as many malformed annotations as possible in one pass:

- every line is classified independently of the parser state, and each
  (state, marker) pair is handled explicitly so errors point at the line that
  caused them;
- an error resets the parser to ``IDLE`` and scanning continues;
- blocks found before and after an error are still returned.

Block comments cannot be detected reliably with the generic comment
heuristic, so inside a then-change block every source line is taken as a
target path until an end-change closes it::

    <!-- if-change -->
    some code here
    <!--
        then-change
            other.html
        end-change
    -->
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from . import classify as classify_module, types

MSG_THEN_CHANGE_ORPHAN = "then-change must follow an if-change"
MSG_END_CHANGE_ORPHAN = "end-change must follow an if-change and then-change"
MSG_IF_CHANGE_NESTED = "if-change may not be nested"
MSG_IF_CHANGE_IN_THEN_CHANGE = "then-change must be closed by an end-change before another if-change"
MSG_THEN_CHANGE_IN_THEN_CHANGE = "then-change must be closed by an end-change before another then-change"
MSG_IF_CHANGE_UNCLOSED = "if-change must be closed by a then-change"
MSG_THEN_CHANGE_UNCLOSED = "then-change must be closed by an end-change"
MSG_INVALID_PATH = "then-change does not reference a valid path"


class ParseState(enum.Enum):
    IDLE = "idle"
    OPENED = "opened"
    COLLECTING = "collecting"


@dataclass
class _BlockBuilder:
    path: str
    if_change_line: int
    then_change_line: Optional[int] = None
    then_change: List[Tuple[int, types.BlockKey]] = field(default_factory=list)

    def build(self, end_change_line: int) -> types.AnnotationBlock:
        then_change_line = end_change_line if self.then_change_line is None else self.then_change_line
        return types.AnnotationBlock(
            key=types.BlockKey(self.path),
            then_change=list(self.then_change),
            if_change_line=self.if_change_line,
            then_change_line=then_change_line,
            end_change_line=end_change_line,
        )


@dataclass
class ParseResult:
    """Blocks and structural diagnostics for one file."""

    path: str
    blocks: List[types.AnnotationBlock] = field(default_factory=list)
    diagnostics: List[types.Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.diagnostics

    def annotations(self) -> types.FileAnnotations:
        return types.FileAnnotations(list(self.blocks))


class BlockParser:
    """Parse the annotation blocks of a single file."""

    def __init__(self, path: str):
        self.path = path
        self.state = ParseState.IDLE
        self._builder: Optional[_BlockBuilder] = None
        self._result = ParseResult(path=path)

    def _error(self, lineno: int, message: str) -> None:
        self._result.diagnostics.append(types.Diagnostic(types.at(self.path, lineno), message))

    def _reset(self) -> None:
        self.state = ParseState.IDLE
        self._builder = None

    def _fail(self, lineno: int, message: str) -> None:
        self._error(lineno, message)
        self._reset()

    def _add_target(self, lineno: int, target: str) -> None:
        assert self._builder is not None
        target = target.strip()
        if not target:
            self._error(lineno, MSG_INVALID_PATH)
            return
        self._builder.then_change.append((lineno, types.BlockKey(target)))

    def _close(self, lineno: int) -> None:
        assert self._builder is not None
        self._result.blocks.append(self._builder.build(lineno))
        self._reset()

    def feed(self, lineno: int, line: str) -> None:
        marker = classify_module.classify(line)
        kind = marker.kind
        if self.state is ParseState.IDLE:
            if kind is types.MarkerKind.IF_CHANGE:
                self._builder = _BlockBuilder(path=self.path, if_change_line=lineno)
                self.state = ParseState.OPENED
            elif kind in (types.MarkerKind.THEN_CHANGE_INLINE, types.MarkerKind.THEN_CHANGE_BLOCK_START):
                self._error(lineno, MSG_THEN_CHANGE_ORPHAN)
            elif kind is types.MarkerKind.END_CHANGE:
                self._error(lineno, MSG_END_CHANGE_ORPHAN)
        elif self.state is ParseState.OPENED:
            assert self._builder is not None
            if kind is types.MarkerKind.IF_CHANGE:
                self._fail(lineno, MSG_IF_CHANGE_NESTED)
            elif kind is types.MarkerKind.THEN_CHANGE_INLINE:
                self._builder.then_change_line = lineno
                self._add_target(lineno, marker.target or "")
                self._close(lineno)
            elif kind is types.MarkerKind.THEN_CHANGE_BLOCK_START:
                self._builder.then_change_line = lineno
                self.state = ParseState.COLLECTING
            elif kind is types.MarkerKind.END_CHANGE:
                self._fail(lineno, MSG_END_CHANGE_ORPHAN)
        else:
            if kind is types.MarkerKind.SOURCE_LINE:
                self._add_target(lineno, classify_module.strip_comment(line))
            elif kind is types.MarkerKind.END_CHANGE:
                self._close(lineno)
            elif kind is types.MarkerKind.IF_CHANGE:
                self._fail(lineno, MSG_IF_CHANGE_IN_THEN_CHANGE)
            else:
                self._fail(lineno, MSG_THEN_CHANGE_IN_THEN_CHANGE)

    def finish(self, last_lineno: int) -> ParseResult:
        """Flag an unterminated block at *last_lineno* and return the result."""

        if self.state is ParseState.OPENED:
            self._fail(last_lineno, MSG_IF_CHANGE_UNCLOSED)
        elif self.state is ParseState.COLLECTING:
            self._fail(last_lineno, MSG_THEN_CHANGE_UNCLOSED)
        return self._result


def parse_lines(path: str, lines: List[str]) -> ParseResult:
    parser = BlockParser(path)
    for lineno, line in enumerate(lines):
        parser.feed(lineno, line)
    return parser.finish(max(len(lines) - 1, 0))


def parse_text(path: str, text: str) -> ParseResult:
    """Parse every annotation block in *text*, which was read from *path*."""

    return parse_lines(path, text.splitlines())
