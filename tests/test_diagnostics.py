from pathlib import Path

from if_change_then_change import diagnostics as engine, index, parser, types


def _annotations(path: str, text: str) -> types.FileAnnotations:
    return parser.parse_text(path, text).annotations()


A_TEXT = "# if-change\nx\n# then-change b.sh\n"
B_TEXT = "echo b\n# if-change\ny\n# then-change a.sh\n"


def _index(**files: types.FileAnnotations) -> index.AnnotationIndex:
    built = index.AnnotationIndex(root=Path("."))
    for name, annotations in files.items():
        built.files[name.replace("_", ".")] = annotations
    return built


def test_symmetric_pair_both_touched_is_satisfied():
    a, b = _annotations("a.sh", A_TEXT), _annotations("b.sh", B_TEXT)
    built = _index(a_sh=a, b_sh=b)
    found = engine.evaluate({"a.sh": a, "b.sh": b}, built, {"a.sh", "b.sh"}, [])
    assert found == []


def test_untouched_matching_block_gets_expected_change():
    a, b = _annotations("a.sh", A_TEXT), _annotations("b.sh", B_TEXT)
    built = _index(a_sh=a, b_sh=b)
    found = engine.evaluate({"a.sh": a}, built, {"a.sh"}, [])
    assert [str(d) for d in found] == ["b.sh:2-4 - expected change here due to change in a.sh:1-3"]


def test_target_in_diff_without_annotation_only_missing_block():
    a, d = _annotations("a.sh", A_TEXT.replace("b.sh", "d.sh")), _annotations("d.sh", "echo d\n")
    built = _index(a_sh=a, d_sh=d)
    found = engine.evaluate({"a.sh": a}, built, {"a.sh", "d.sh"}, [])
    assert [str(d) for d in found] == ["d.sh - expected an if-change-then-change in this file that matches a.sh:1-3"]


def test_target_outside_diff_without_annotation_gets_both():
    a, d = _annotations("a.sh", A_TEXT.replace("b.sh", "d.sh")), _annotations("d.sh", "echo d\n")
    built = _index(a_sh=a, d_sh=d)
    found = engine.evaluate({"a.sh": a}, built, {"a.sh"}, [])
    assert [str(d) for d in found] == [
        "d.sh - expected an if-change-then-change in this file that matches a.sh:1-3",
        "d.sh - expected change here due to change in a.sh:1-3",
    ]


def test_touched_target_block_for_another_file_does_not_satisfy():
    a = _annotations("a.sh", A_TEXT)
    b = _annotations("b.sh", "# if-change\ny\n# then-change c.sh\n# if-change\nz\n# then-change a.sh\n")
    touched_b = types.FileAnnotations([b.blocks[0]])
    built = _index(a_sh=a, b_sh=b)
    found = engine.evaluate({"a.sh": a, "b.sh": touched_b}, built, {"a.sh", "b.sh"}, [])
    assert [str(d) for d in found] == [
        "b.sh:4-6 - expected change here due to change in a.sh:1-3",
        "c.sh - expected an if-change-then-change in this file that matches b.sh:1-3",
        "c.sh - expected change here due to change in b.sh:1-3",
    ]


def test_existing_diagnostics_are_kept_and_sorted_with_new_ones():
    a, b = _annotations("a.sh", A_TEXT), _annotations("b.sh", B_TEXT)
    built = _index(a_sh=a, b_sh=b)
    earlier = [types.Diagnostic(types.at("z.sh", 0), "parse error"), types.Diagnostic(types.at("stdin"), "bad pair")]
    found = engine.evaluate({"a.sh": a}, built, {"a.sh"}, earlier)
    assert found is earlier
    assert [str(d) for d in found] == [
        "b.sh:2-4 - expected change here due to change in a.sh:1-3",
        "stdin - bad pair",
        "z.sh:1 - parse error",
    ]
