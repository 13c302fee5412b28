import pytest

from stitch.core.errors import InvalidEditError
from stitch.editing.reorder import reorder_section


def test_swap_two_items():
    doc = (
        "assets:\n"
        "  - ref: asset-1\n"
        "    name: First\n"
        "  - ref: asset-2\n"
        "    name: Second\n"
    )
    assert reorder_section(doc, "assets", ["asset-2", "asset-1"]) == (
        "assets:\n"
        "  - ref: asset-2\n"
        "    name: Second\n"
        "\n"
        "  - ref: asset-1\n"
        "    name: First\n"
    )


def test_blocks_travel_intact_and_unlisted_items_drop():
    """Block scalars move with their item; unknown and repeated refs are ignored."""
    doc = (
        "components:\n"
        "  - ref: a\n"
        "    description: |\n"
        "      text\n"
        "\n"
        "      more\n"
        "  - ref: b\n"
        "    name: B\n"
        "  - ref: c\n"
        "    name: C\n"
        "\n"
        "# Assets\n"
        "assets: []\n"
    )
    assert reorder_section(doc, "components", ["c", "missing", "a", "c"]) == (
        "components:\n"
        "  - ref: c\n"
        "    name: C\n"
        "\n"
        "  - ref: a\n"
        "    description: |\n"
        "      text\n"
        "\n"
        "      more\n"
        "\n"
        "# Assets\n"
        "assets: []\n"
    )


def test_unknown_section_is_noop():
    doc = "assets: []\n"
    assert reorder_section(doc, "components", ["a"]) == doc
    assert reorder_section(doc, "assets", ["a"]) == doc


def test_order_must_be_a_list():
    with pytest.raises(InvalidEditError):
        reorder_section("assets: []\n", "assets", "asset-1")


def test_empty_result_collapses_section():
    """With no listed item left the header gets `[]` rather than an empty body."""
    doc = (
        "components:\n"
        "  - ref: a\n"
        "    name: A\n"
        "\n"
        "assets: []\n"
    )
    expected = "components: []\n\nassets: []\n"
    assert reorder_section(doc, "components", []) == expected
    assert reorder_section(doc, "components", ["zzz"]) == expected
