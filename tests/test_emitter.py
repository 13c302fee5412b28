import pytest

from stitch.core.errors import InvalidEditError, UnsupportedValueError
from stitch.editing.emitter import format_item, format_value, round_half_up, yaml_quote


def test_plain_strings_stay_bare():
    assert yaml_quote("plain") == "plain"
    assert yaml_quote("api-server") == "api-server"


def test_strings_that_yaml_would_misread_are_quoted():
    """Colons, hashes, reserved words and special leading characters force quotes."""
    assert yaml_quote("Service: API") == '"Service: API"'
    assert yaml_quote("true") == '"true"'
    assert yaml_quote("") == '""'
    assert yaml_quote("[draft]") == '"[draft]"'
    assert yaml_quote(" padded") == '" padded"'


def test_quoting_escapes_backslash_and_double_quote():
    assert yaml_quote('say "hi" # now') == '"say \\"hi\\" # now"'
    assert yaml_quote('C:\\temp') == '"C:\\\\temp"'


def test_multiline_strings_become_pipe_blocks():
    """Each line is indented two spaces deeper than the field; empty lines stay empty."""
    assert yaml_quote("one\n\ntwo", "    ") == "|\n      one\n\n      two"


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(-2.5) == -2
    assert round_half_up(2.4) == 2


def test_format_value():
    assert format_value(True) == "true"
    assert format_value(False) == "false"
    assert format_value(3.6) == "4"
    assert format_value([]) == "[]"
    assert format_value(["A01", "x: y"]) == '[A01, "x: y"]'


def test_unsupported_values_are_rejected():
    with pytest.raises(UnsupportedValueError):
        format_value({"nested": 1})
    # Still an InvalidEditError for callers that only know the broader type
    with pytest.raises(InvalidEditError):
        format_value(object())


def test_format_item_puts_ref_first_and_skips_empty_values():
    lines = format_item(
        {"name": "API", "ref": "api", "assets": [], "description": "a\nb"},
        base_indent=2,
    )
    assert lines == [
        "  - ref: api",
        "    name: API",
        "    description: |",
        "      a",
        "      b",
    ]
