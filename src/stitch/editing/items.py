#!/usr/bin/env python3
"""
STITCH ITEMS - Item Mutator
---------------------------
Appends whole items to a section and removes them again.

append_item has four placement cases:
1. `name: []`        -> the marker expands into a header plus the item
2. existing items    -> after the last item's true end, one blank line before
3. bare `name:`      -> directly under the header
4. no section at all -> a new section at the end of the document

remove_item collapses a section whose last item is removed back to the
`name: []` marker so a header is never left without a body.

Author: Stitch Team
Date: 2026-10-18
"""

import logging
from typing import Any, Dict, List

from stitch.core.errors import InvalidEditError
from stitch.core.models import SectionPosition
from stitch.editing.emitter import format_item
from stitch.editing.lexer import EMPTY_ARRAY_MARKER, join_lines, measure, scan
from stitch.editing.locator import find_item, find_section, item_starts, locate_item
from stitch.editing.normalizer import normalize_whitespace

logger = logging.getLogger("stitch.editing.items")

ITEM_STEP = 2


def _split_trailing_blanks(raw: List[str]):
    """Separates the blank lines at the very end of a document."""
    end = len(raw)
    while end > 0 and not raw[end - 1].strip():
        end -= 1
    return raw[:end], raw[end:]


def append_item(doc: str, section: str, fields: Dict[str, Any]) -> str:
    """
    Appends a new item built from `fields` (insertion order kept, `ref`
    first) to `section`, creating the section when it does not exist.
    """
    if not isinstance(fields, dict):
        raise InvalidEditError(f"Item fields must be a mapping, got {type(fields).__name__}")

    lines = scan(doc)
    raw = [line.raw for line in lines]
    section_pos = find_section(lines, section)

    if section_pos is None:
        body, tail = _split_trailing_blanks(raw)
        block = [f"{section}:"] + format_item(fields, ITEM_STEP)
        if body:
            block.insert(0, '')
        logger.debug("append_item: created section %r", section)
        return normalize_whitespace(join_lines(body + block + tail))

    header_indent = ' ' * section_pos.indent
    if section_pos.is_empty_marker:
        new_lines = [f"{header_indent}{section}:"]
        new_lines += format_item(fields, section_pos.indent + ITEM_STEP)
        raw[section_pos.start_index:section_pos.start_index + 1] = new_lines
        return normalize_whitespace(join_lines(raw))

    existing = item_starts(lines, section_pos)
    if existing:
        last = locate_item(lines, existing[-1], section_pos)
        new_lines = [''] + format_item(fields, last.indent)
        raw[last.end_index + 1:last.end_index + 1] = new_lines
    else:
        at = section_pos.start_index + 1
        raw[at:at] = format_item(fields, section_pos.indent + ITEM_STEP)

    return normalize_whitespace(join_lines(raw))


def _drop_orphans(raw: List[str], section_pos: SectionPosition):
    """
    Removes indented leftovers under a header that just became `name: []`.
    Stops at the first blank line and at anything at or below the section
    indent, comments included, since those introduce what follows.
    """
    i = section_pos.start_index + 1
    while i < len(raw):
        content, indent = measure(raw[i])
        if not content or indent <= section_pos.indent:
            break
        del raw[i]


def remove_item(doc: str, section: str, ref: str) -> str:
    """
    Deletes the item `ref` from `section`, including its block scalars,
    nested lists and indented comments. Comments at the item's own indent
    that follow it are kept, since they introduce the next item.
    """
    lines = scan(doc)
    section_pos = find_section(lines, section)
    if section_pos is None:
        logger.debug("remove_item: section %r not found", section)
        return doc

    item = find_item(lines, section_pos, ref)
    if item is None:
        logger.debug("remove_item: ref %r not found in %r", ref, section)
        return doc

    raw = [line.raw for line in lines]
    del raw[item.start_index:item.end_index + 1]

    remaining = scan(join_lines(raw))
    if not item_starts(remaining, section_pos):
        raw[section_pos.start_index] = f"{' ' * section_pos.indent}{section}: {EMPTY_ARRAY_MARKER}"
        _drop_orphans(raw, section_pos)

    return normalize_whitespace(join_lines(raw))
