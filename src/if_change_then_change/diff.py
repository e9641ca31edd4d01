"""Unified diff reading: patched files, hunks and classified lines."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from . import types

DEV_NULL = "/dev/null"

_QUOTED_RE = re.compile(r'"((?:[^"\\]|\\.)*)"')
_QUOTED_TAIL_RE = re.compile(r'^(?P<source>\S.*?) "(?P<target>(?:[^"\\]|\\.)*)"$')
_ESCAPES = {"a": "\a", "b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t", "v": "\v"}
_HUNK_HEADER_RE = re.compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d+))? \+(?P<new_start>\d+)(?:,(?P<new_count>\d+))? @@"
)


class DiffParseError(RuntimeError):
    """Raised when the diff envelope cannot be parsed at all."""


@dataclass(frozen=True)
class DiffLine:
    """One line of a hunk body. ``kind`` is ``+``, ``-`` or a space."""

    kind: str
    text: str
    source_line_no: Optional[int] = None
    target_line_no: Optional[int] = None

    @property
    def is_added(self) -> bool:
        return self.kind == "+"

    @property
    def is_removed(self) -> bool:
        return self.kind == "-"

    @property
    def is_context(self) -> bool:
        return self.kind == " "


@dataclass
class Hunk:
    source_start: int
    source_length: int
    target_start: int
    target_length: int
    lines: List[DiffLine] = field(default_factory=list)


@dataclass
class PatchedFile:
    source_file: str
    target_file: str
    hunks: List[Hunk] = field(default_factory=list)

    @property
    def is_removed_file(self) -> bool:
        return self.target_file == DEV_NULL


@dataclass
class PatchSet:
    files: List[PatchedFile] = field(default_factory=list)
    is_git: bool = False


def _header_path(line: str) -> str:
    # Drop the optional tab-separated timestamp after the path.
    path = line[4:].split("\t", 1)[0].rstrip()
    match = _QUOTED_RE.fullmatch(path)
    return _unquote(match.group(1)) if match else path


def _unquote(text: str) -> str:
    """Undo git's C-style quoting; octal escapes are UTF-8 bytes."""

    out = bytearray()
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text):
            octal = text[i + 1 : i + 4]
            if len(octal) == 3 and all(c in "01234567" for c in octal):
                out.append(int(octal, 8) & 0xFF)
                i += 4
                continue
            out.extend(_ESCAPES.get(text[i + 1], text[i + 1]).encode("utf-8"))
            i += 2
            continue
        out.extend(ch.encode("utf-8"))
        i += 1
    return out.decode("utf-8", errors="replace")


def _git_header_paths(line: str) -> Optional[Tuple[str, str]]:
    """Split a ``diff --git`` line into its two paths, or ``None``."""

    rest = line[len("diff --git ") :]
    quoted_source = _QUOTED_RE.match(rest)
    if quoted_source is not None:
        target = rest[quoted_source.end() :]
        if not target.startswith(" ") or not target.strip():
            return None
        target = target[1:]
        quoted_target = _QUOTED_RE.fullmatch(target)
        return _unquote(quoted_source.group(1)), (_unquote(quoted_target.group(1)) if quoted_target else target)
    quoted_target = _QUOTED_TAIL_RE.match(rest)
    if quoted_target is not None:
        return quoted_target.group("source"), _unquote(quoted_target.group("target"))
    # Unquoted paths may hold spaces. Without a rename both sides name the same
    # file, which pins the split; otherwise split at the first " b/".
    half = (len(rest) - 1) // 2
    if len(rest) % 2 == 1 and rest[half] == " " and rest[:2] == "a/" and rest[half + 1 : half + 3] == "b/":
        if rest[2:half] == rest[half + 3 :]:
            return rest[:half], rest[half + 1 :]
    split = rest.find(" b/")
    if split > 0:
        return rest[:split], rest[split + 1 :]
    parts = rest.split(" ")
    if len(parts) == 2 and all(parts):
        return parts[0], parts[1]
    return None


class _Reader:
    def __init__(self, text: str):
        self.lines = text.splitlines()
        self.patch_set = PatchSet(is_git=text.startswith("diff --git"))
        self.hunk: Optional[Hunk] = None
        self.source_left = 0
        self.target_left = 0
        self.source_no = 0
        self.target_no = 0
        # Paths from the last "diff --git" line, until ---/+++ headers replace them.
        self.git_section: Optional[PatchedFile] = None

    @property
    def current(self) -> Optional[PatchedFile]:
        files = self.patch_set.files
        return files[-1] if files else None

    def _flush_git_section(self) -> None:
        if self.git_section is not None:
            self.patch_set.files.append(self.git_section)
            self.git_section = None

    def _start_hunk(self, lineno: int, line: str) -> None:
        if self.git_section is not None or self.current is None:
            raise DiffParseError(f"line {lineno + 1}: hunk appears before file header")
        match = _HUNK_HEADER_RE.match(line)
        if not match:
            raise DiffParseError(f"line {lineno + 1}: malformed hunk header: {line!r}")
        old_count = match.group("old_count")
        new_count = match.group("new_count")
        self.hunk = Hunk(
            source_start=int(match.group("old_start")),
            source_length=1 if old_count is None else int(old_count),
            target_start=int(match.group("new_start")),
            target_length=1 if new_count is None else int(new_count),
        )
        self.current.hunks.append(self.hunk)
        self.source_left = self.hunk.source_length
        self.target_left = self.hunk.target_length
        self.source_no = self.hunk.source_start
        self.target_no = self.hunk.target_start
        if not self.source_left and not self.target_left:
            self.hunk = None

    def _hunk_line(self, lineno: int, line: str) -> None:
        assert self.hunk is not None
        kind = line[:1] or " "
        text = line[1:]
        if kind == "+":
            if not self.target_left:
                raise DiffParseError(f"line {lineno + 1}: hunk has more added lines than declared")
            self.hunk.lines.append(DiffLine("+", text, target_line_no=self.target_no))
            self.target_no += 1
            self.target_left -= 1
        elif kind == "-":
            if not self.source_left:
                raise DiffParseError(f"line {lineno + 1}: hunk has more removed lines than declared")
            self.hunk.lines.append(DiffLine("-", text, source_line_no=self.source_no))
            self.source_no += 1
            self.source_left -= 1
        elif kind == " ":
            if not self.source_left or not self.target_left:
                raise DiffParseError(f"line {lineno + 1}: hunk has more context lines than declared")
            self.hunk.lines.append(
                DiffLine(" ", text, source_line_no=self.source_no, target_line_no=self.target_no)
            )
            self.source_no += 1
            self.target_no += 1
            self.source_left -= 1
            self.target_left -= 1
        else:
            raise DiffParseError(f"line {lineno + 1}: unexpected line inside hunk: {line!r}")
        if not self.source_left and not self.target_left:
            self.hunk = None

    def read(self) -> PatchSet:
        i = 0
        while i < len(self.lines):
            line = self.lines[i]
            if self.hunk is not None:
                if not line.startswith("\\"):
                    self._hunk_line(i, line)
                i += 1
                continue
            if line.startswith("diff --git"):
                self._flush_git_section()
                paths = _git_header_paths(line)
                if paths is None:
                    raise DiffParseError(f"line {i + 1}: malformed git header: {line!r}")
                self.git_section = PatchedFile(*paths)
            elif line.startswith("new file mode") and self.git_section is not None:
                self.git_section.source_file = DEV_NULL
            elif line.startswith("deleted file mode") and self.git_section is not None:
                self.git_section.target_file = DEV_NULL
            elif line.startswith("--- ") and i + 1 < len(self.lines) and self.lines[i + 1].startswith("+++ "):
                self.git_section = None
                self.patch_set.files.append(
                    PatchedFile(_header_path(line), _header_path(self.lines[i + 1]))
                )
                i += 1
            elif line.startswith("@@"):
                self._start_hunk(i, line)
            # Anything else outside a hunk is envelope metadata or preamble text.
            i += 1
        if self.hunk is not None:
            raise DiffParseError("diff ended in the middle of a hunk")
        self._flush_git_section()
        return self.patch_set


def parse_diff(text: str) -> PatchSet:
    """Parse unified diff *text*; git style is detected by a ``diff --git`` preamble."""

    return _Reader(text).read()


def diffs_by_post_diff_path(
    patch_set: PatchSet,
    diagnostics: List[types.Diagnostic],
    *,
    stdin_label: str = "stdin",
) -> Dict[str, PatchedFile]:
    """Key each patched file by its path after the diff is applied.

    Deleted files are skipped. In git diffs, ``a/`` and ``b/`` prefixes are
    stripped; a pair that breaks that convention is reported and skipped.
    """

    result: Dict[str, PatchedFile] = {}
    for patched in patch_set.files:
        source, target = patched.source_file, patched.target_file
        if patch_set.is_git:
            source_ok = source.startswith("a/") or source == DEV_NULL
            target_ok = target.startswith("b/") or target == DEV_NULL
            if not source_ok or not target_ok:
                diagnostics.append(
                    types.Diagnostic(
                        types.at(stdin_label),
                        "invalid git diff: expected a/before.path -> b/after.path, "
                        f"but got '{source}' -> '{target}'",
                    )
                )
                continue
            if target == DEV_NULL:
                continue
            result[target[2:]] = patched
        else:
            if target == DEV_NULL:
                continue
            result[target] = patched
    return result
