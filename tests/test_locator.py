from stitch.editing.lexer import scan
from stitch.editing.locator import (
    continuation_end,
    extract_ref_value,
    find_field,
    find_item,
    find_section,
    find_top_level_field,
    strip_quotes,
)

DOC = (
    "name: Demo\n"                 # 0
    "\n"                           # 1
    "components:\n"                # 2
    "  - ref: api\n"               # 3
    "    name: API\n"              # 4
    "    description: |\n"         # 5
    "      line one\n"             # 6
    "\n"                           # 7
    "      - ref: fake\n"          # 8
    "    assets: [A01]\n"          # 9
    "\n"                           # 10
    "  - ref: \"db\"\n"            # 11
    "    name: DB\n"               # 12
    "    tags:\n"                  # 13
    "      - storage\n"            # 14
    "\n"                           # 15
    "# Assets\n"                   # 16
    "assets:\n"                    # 17
    "  - ref: A01\n"               # 18
    "    name: Data\n"             # 19
)


def test_strip_quotes_and_ref_extraction():
    assert strip_quotes(' "api" ') == "api"
    assert strip_quotes("'db'") == "db"
    assert extract_ref_value('- ref: "api-server"') == "api-server"
    assert extract_ref_value("name: x") is None


def test_find_section_top_level_only():
    """A nested key with the section's name is never taken for the section."""
    lines = scan(DOC)
    section = find_section(lines, "assets")
    assert section.start_index == 17
    assert not section.is_empty_marker
    assert find_section(lines, "threats") is None


def test_find_section_empty_marker():
    section = find_section(scan("name: x\ncomponents: []\n"), "components")
    assert section.start_index == 1
    assert section.is_empty_marker


def test_find_item_spans_block_scalar():
    """The block scalar's blank line and fake ref stay inside the item."""
    lines = scan(DOC)
    item = find_item(lines, find_section(lines, "components"), "api")
    assert item.start_index == 3
    assert item.end_index == 9
    assert item.indent == 2
    assert item.field_indent == 4


def test_find_item_quoted_ref_and_nested_list():
    lines = scan(DOC)
    item = find_item(lines, find_section(lines, "components"), "db")
    assert item.start_index == 11
    assert item.end_index == 14


def test_find_item_missing():
    lines = scan(DOC)
    assert find_item(lines, find_section(lines, "components"), "fake") is None
    assert find_item(lines, find_section(lines, "components"), "A01") is None


def test_find_field():
    lines = scan(DOC)
    item = find_item(lines, find_section(lines, "components"), "api")
    match = find_field(lines, item, "assets")
    assert match.line_index == 9
    assert match.existing_value == "[A01]"
    pipe = find_field(lines, item, "description")
    assert pipe.is_pipe_style
    assert find_field(lines, item, "missing") is None


def test_find_field_ignores_other_indents():
    """Fields at an indent other than the item's field indent are not fields of the item."""
    text = (
        "components:\n"
        "  - ref: api\n"
        "    name: API\n"
        "      owner: nested\n"
    )
    lines = scan(text)
    item = find_item(lines, find_section(lines, "components"), "api")
    assert find_field(lines, item, "owner") is None


def test_continuation_end():
    lines = scan(DOC)
    assert continuation_end(lines, 5, 4, True) == 8
    assert continuation_end(lines, 13, 4, False) == 14
    assert continuation_end(lines, 4, 4, False) == 4


def test_find_top_level_field():
    lines = scan(DOC)
    match = find_top_level_field(lines, "name")
    assert match.line_index == 0
    assert match.existing_value == "Demo"
    assert find_top_level_field(lines, "description") is None
