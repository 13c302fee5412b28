from stitch.core.models import LineKind, ScanMode, ScanState
from stitch.editing.lexer import LineScanner, is_section_header, join_lines, scan, split_lines


def kinds(text):
    return [line.kind for line in scan(text)]


def test_basic_classification():
    """Each structural line gets its lexical kind."""
    text = (
        "name: Demo\n"
        "# Components\n"
        "components:\n"
        "  - ref: api\n"
        "    name: API\n"
        "\n"
        "assets: []"
    )
    assert kinds(text) == [
        LineKind.FIELD,
        LineKind.COMMENT,
        LineKind.SECTION_HEADER,
        LineKind.ITEM_START,
        LineKind.FIELD,
        LineKind.BLANK,
        LineKind.SECTION_HEADER,
    ]


def test_indent_and_content_are_precomputed():
    line = scan("    name: API  ")[0]
    assert line.indent == 4
    assert line.content == "name: API"
    assert line.raw == "    name: API  "


def test_block_scalar_content_is_not_structure():
    """Inside a block scalar, `- ref:` lines and blank lines are plain text."""
    text = (
        "    description: |\n"
        "      - ref: fake\n"
        "\n"
        "      components:\n"
        "    name: after"
    )
    assert kinds(text) == [
        LineKind.PIPE_INDICATOR,
        LineKind.PIPE_CONTENT,
        LineKind.PIPE_CONTENT,
        LineKind.PIPE_CONTENT,
        LineKind.FIELD,
    ]


def test_pipe_variants_open_blocks():
    for indicator in ("|", "|-", "|+"):
        lines = scan(f"notes: {indicator}\n  text")
        assert lines[0].kind is LineKind.PIPE_INDICATOR
        assert lines[1].kind is LineKind.PIPE_CONTENT


def test_pipe_inside_value_is_not_an_indicator():
    """A value that merely contains a pipe is an ordinary field."""
    assert scan("cmd: a | b")[0].kind is LineKind.FIELD


def test_step_threads_explicit_state():
    """The scanner state can be driven one line at a time."""
    scanner = LineScanner()
    line, state = scanner.step(ScanState(), 0, "  notes: |-")
    assert line.kind is LineKind.PIPE_INDICATOR
    assert state == ScanState(ScanMode.IN_BLOCK_SCALAR, 2)

    line, state = scanner.step(state, 1, "    text")
    assert line.kind is LineKind.PIPE_CONTENT
    assert state.mode is ScanMode.IN_BLOCK_SCALAR

    line, state = scanner.step(state, 2, "  next: 1")
    assert line.kind is LineKind.FIELD
    assert state == ScanState()


def test_section_header_requires_column_zero():
    assert is_section_header("components:", 0)
    assert is_section_header("components: []", 0)
    assert not is_section_header("components:", 2)
    assert not is_section_header("name: Demo", 0)


def test_split_and_join_round_trip_trailing_newline():
    text = "a: 1\nb: 2\n"
    assert split_lines(text) == ["a: 1", "b: 2", ""]
    assert join_lines(split_lines(text)) == text
