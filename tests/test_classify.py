import pytest

from if_change_then_change import classify, types

K = types.MarkerKind


@pytest.mark.parametrize(
    "line",
    [
        "# if-change",
        "// if-change",
        "-- if-change",
        "/* if-change */",
        "<!-- if-change -->",
        "<!-- if-change-->",
        "    # if-change",
        "if-change",
    ],
)
def test_if_change_in_any_comment_style(line):
    assert classify.classify(line).kind is K.IF_CHANGE


@pytest.mark.parametrize(
    "line",
    [
        "# if-change-should-not-count",
        "# if-changed",
        "x = 1  # if-change",
        "echo if-change",
    ],
)
def test_if_change_inside_longer_text_is_source(line):
    assert classify.classify(line).kind is K.SOURCE_LINE


@pytest.mark.parametrize(
    "line, target",
    [
        ("# then-change b.sh", "b.sh"),
        ("// then-change src/lib/b.ts", "src/lib/b.ts"),
        ("/* then-change foo.bar */", "foo.bar"),
        ("/* then-change foo.bar**/", "foo.bar"),
        ("<!--then-change foo.bar----->", "foo.bar"),
        ("   --   then-change   dir/x.sql", "dir/x.sql"),
    ],
)
def test_inline_then_change_extracts_target(line, target):
    marker = classify.classify(line)
    assert marker.kind is K.THEN_CHANGE_INLINE
    assert marker.target == target


@pytest.mark.parametrize("line", ["# then-change", "<!-- then-change -->", "/* then-change */", "  then-change"])
def test_then_change_without_target_starts_block(line):
    marker = classify.classify(line)
    assert marker.kind is K.THEN_CHANGE_BLOCK_START
    assert marker.target is None


def test_then_change_glued_to_a_word_is_source():
    assert classify.classify("    then-change6a.foo").kind is K.SOURCE_LINE


@pytest.mark.parametrize("line", ["# end-change", "<!-- end-change -->", "        end-change -->"])
def test_end_change(line):
    assert classify.classify(line).kind is K.END_CHANGE


def test_plain_source_line():
    assert classify.classify('export VERSION="0.3.1-alpha"').kind is K.SOURCE_LINE
    assert classify.classify("").kind is K.SOURCE_LINE


def test_strip_comment_trims_punctuation_both_ends():
    assert classify.strip_comment("#   tests/data/push.sh") == "tests/data/push.sh"
    assert classify.strip_comment("<!--   page.html -->") == "page.html"
    assert classify.strip_comment("  #  ") == ""
