"""Work out which annotation blocks a diff actually touched."""

from __future__ import annotations

from typing import Dict, Iterator, Mapping, Tuple

from . import diff as diff_module, index as index_module, types


def _changed_spans(hunk: diff_module.Hunk) -> Iterator[Tuple[int, int]]:
    """Yield the 0-indexed post-diff lines each added or removed line sits between.

    An added line occupies its own line. A removed line leaves a gap between
    the latest numbered line of the hunk and the line after it, and only
    touches a block whose range holds both sides of that gap.
    """

    # An empty post-diff side names the line before the gap; otherwise the first line after it.
    previous = hunk.target_start - 1 if hunk.target_length == 0 else hunk.target_start - 2
    for line in hunk.lines:
        if line.target_line_no is not None:
            # target_line_no is 1-indexed
            previous = line.target_line_no - 1
        if line.is_added:
            yield previous, previous
        elif line.is_removed:
            yield previous, previous + 1


def is_touched(block: types.AnnotationBlock, patched_file: diff_module.PatchedFile) -> bool:
    content = block.content_range
    for hunk in patched_file.hunks:
        for first, last in _changed_spans(hunk):
            if first in content and last in content:
                return True
    return False


def touched_blocks(
    annotations: types.FileAnnotations,
    patched_file: diff_module.PatchedFile,
) -> types.FileAnnotations:
    """Blocks of *annotations* whose content range overlaps an added or removed line."""

    return types.FileAnnotations([block for block in annotations.blocks if is_touched(block, patched_file)])


def correlate(
    index: index_module.AnnotationIndex,
    diffs_by_path: Mapping[str, diff_module.PatchedFile],
    *,
    logger=None,
) -> Dict[str, types.FileAnnotations]:
    """Map each diff path to its touched blocks, omitting paths with none."""

    touched: Dict[str, types.FileAnnotations] = {}
    for path in sorted(index.files):
        patched_file = diffs_by_path.get(path)
        if patched_file is None:
            continue
        blocks = touched_blocks(index.files[path], patched_file)
        if blocks:
            touched[path] = blocks
            if logger is not None:
                logger.log_event(
                    "correlate.touched",
                    path=path,
                    ranges=[_display_range(block) for block in blocks.blocks],
                )
    return touched


def _display_range(block: types.AnnotationBlock) -> Tuple[int, int]:
    content = block.content_range
    return (content.start + 1, content.stop)
