#!/usr/bin/env python3
"""
STITCH FIELDS - Field Accessor / Mutator
----------------------------------------
Surgical updates of a single field, either inside a section item or at the
top level of the document. Only the lines of the touched field are rewritten;
the result is passed through the normalizer.

Author: Stitch Team
Date: 2026-10-18
"""

import logging
import re
from typing import Any, List, Optional, Sequence

from stitch.core.models import ItemPosition, Line
from stitch.editing.emitter import describe, format_field_lines, is_empty_value, yaml_quote
from stitch.editing.lexer import join_lines, scan
from stitch.editing.locator import (
    continuation_end,
    find_field,
    find_item,
    find_section,
    find_top_level_field,
)
from stitch.editing.normalizer import normalize_whitespace

logger = logging.getLogger("stitch.editing.fields")

DEFAULT_FIELD_STEP = 4
# Optional top-level fields are placed after the first of these that exists
ANCHOR_FIELDS = ('description', 'name', 'schema_version')


def _last_content_line(lines: List[Line], item: ItemPosition) -> int:
    """Last line of the item that holds data (comments do not count)."""
    last = item.start_index
    for line in lines[item.start_index:item.end_index + 1]:
        if not line.content:
            continue
        if line.in_block:
            last = line.index
        elif not line.content.startswith('#') and (
                line.indent > item.indent or line.content.startswith('-')):
            last = line.index
    return last


def update_field(doc: str, section: str, ref: str, field: str, value: Any) -> str:
    """
    Sets `field` of the item `ref` in `section` to `value`.

    A None value or an empty list removes the field together with its
    continuation lines. A missing field is inserted after the item's last
    content line at the item's field indent. Unknown sections or refs leave
    the document untouched.
    """
    lines = scan(doc)
    section_pos = find_section(lines, section)
    if section_pos is None:
        logger.debug("update_field: section %r not found", section)
        return doc

    item = find_item(lines, section_pos, ref)
    if item is None:
        logger.debug("update_field: ref %r not found in %r", ref, section)
        return doc

    raw = [line.raw for line in lines]
    match = find_field(lines, item, field)

    if is_empty_value(value):
        if match is not None:
            end = continuation_end(lines, match.line_index, match.indent, match.is_pipe_style)
            del raw[match.line_index:end + 1]
            logger.debug("Removed %s.%s from %r", section, field, ref)
        return normalize_whitespace(join_lines(raw))

    if match is not None:
        end = continuation_end(lines, match.line_index, match.indent, match.is_pipe_style)
        raw[match.line_index:end + 1] = format_field_lines(field, value, ' ' * match.indent)
    else:
        indent = item.field_indent or item.indent + DEFAULT_FIELD_STEP
        at = _last_content_line(lines, item) + 1
        raw[at:at] = format_field_lines(field, value, ' ' * indent)

    logger.debug("Set %s[%s].%s = %s", section, ref, field, describe(value))
    return normalize_whitespace(join_lines(raw))


def update_top_level_field(doc: str, field: str, value: str) -> str:
    """Rewrites an existing `field: value` line at column 0."""
    lines = scan(doc)
    match = find_top_level_field(lines, field)
    if match is None:
        logger.debug("update_top_level_field: %r not found", field)
        return doc

    raw = [line.raw for line in lines]
    end = continuation_end(lines, match.line_index, 0, match.is_pipe_style)
    raw[match.line_index:end + 1] = format_field_lines(field, value, '')
    return normalize_whitespace(join_lines(raw))


def _anchor_insert_index(lines: List[Line]) -> Optional[int]:
    for anchor in ANCHOR_FIELDS:
        match = find_top_level_field(lines, anchor)
        if match is not None:
            return continuation_end(lines, match.line_index, 0, match.is_pipe_style) + 1
    return None


def update_optional_top_level_field(doc: str, field: str, value: Optional[str]) -> str:
    """
    Adds, updates or removes an optional top-level field.

    An empty or whitespace-only value removes the field. A new field goes
    right after `description`, else `name`, else `schema_version`.
    """
    trimmed = (value or '').strip()
    lines = scan(doc)
    match = find_top_level_field(lines, field)
    raw = [line.raw for line in lines]

    if not trimmed:
        if match is None:
            return doc
        end = continuation_end(lines, match.line_index, 0, match.is_pipe_style)
        del raw[match.line_index:end + 1]
        return normalize_whitespace(join_lines(raw))

    if match is not None:
        return update_top_level_field(doc, field, trimmed)

    at = _anchor_insert_index(lines)
    if at is None:
        logger.debug("update_optional_top_level_field: no anchor for %r", field)
        return doc
    raw[at:at] = format_field_lines(field, trimmed, '')
    return normalize_whitespace(join_lines(raw))


def _string_array_end(lines: List[Line], start: int) -> int:
    """Last line of a `field:` block followed by indented `- value` lines."""
    if re.search(r':\s*\[\s*\]', lines[start].content):
        return start
    end = start
    for line in lines[start + 1:]:
        if not line.content:
            continue
        if line.indent > 0 and line.content.startswith('-'):
            end = line.index
        else:
            break
    return end


def update_top_level_string_array(doc: str, field: str, values: Sequence[str]) -> str:
    """
    Writes a top-level list of strings in block style:

        participants:
          - Alice
          - "Bob: reviewer"

    An empty list removes the field with all of its elements.
    """
    lines = scan(doc)
    match = find_top_level_field(lines, field)
    raw = [line.raw for line in lines]

    if not values:
        if match is None:
            return doc
        end = _string_array_end(lines, match.line_index)
        del raw[match.line_index:end + 1]
        return normalize_whitespace(join_lines(raw))

    block = [f"{field}:"] + [f"  - {yaml_quote(v)}" for v in values]
    if match is not None:
        end = _string_array_end(lines, match.line_index)
        raw[match.line_index:end + 1] = block
    else:
        at = _anchor_insert_index(lines)
        if at is None:
            logger.debug("update_top_level_string_array: no anchor for %r", field)
            return doc
        raw[at:at] = block
    return normalize_whitespace(join_lines(raw))
