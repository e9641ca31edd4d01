"""Turn touched blocks into diagnostics about unmet co-change obligations."""

from __future__ import annotations

from typing import AbstractSet, List, Mapping

from . import index as index_module, types

MSG_MISSING_BLOCK = "expected an if-change-then-change in this file that matches {source}"
MSG_MISSING_CHANGE = "expected change here due to change in {source}"


def check_block(
    block: types.AnnotationBlock,
    *,
    touched: Mapping[str, types.FileAnnotations],
    index: index_module.AnnotationIndex,
    diff_paths: AbstractSet[str],
) -> List[types.Diagnostic]:
    """Diagnostics for every unsatisfied target of one touched *block*."""

    found: List[types.Diagnostic] = []
    source = block.position
    for target in block.targets():
        touched_target = touched.get(target)
        if touched_target is not None and touched_target.corresponding_block(block) is not None:
            continue

        match = None
        annotations = index.get(target)
        if annotations is not None:
            match = annotations.corresponding_block(block)

        if match is None:
            found.append(types.Diagnostic(types.at(target), MSG_MISSING_BLOCK.format(source=source)))
            position = types.at(target)
        else:
            position = match.position

        if match is not None or target not in diff_paths:
            found.append(types.Diagnostic(position, MSG_MISSING_CHANGE.format(source=source)))
    return found


def evaluate(
    touched: Mapping[str, types.FileAnnotations],
    index: index_module.AnnotationIndex,
    diff_paths: AbstractSet[str],
    diagnostics: List[types.Diagnostic],
) -> List[types.Diagnostic]:
    """Append obligation diagnostics to *diagnostics* and return them sorted."""

    for path in sorted(touched):
        for block in touched[path].blocks:
            diagnostics.extend(check_block(block, touched=touched, index=index, diff_paths=diff_paths))
    diagnostics[:] = types.sort_diagnostics(diagnostics)
    return diagnostics
