#!/usr/bin/env python3
"""
STITCH LOCATOR - Section, Item and Field Positioning (Phase 2)
--------------------------------------------------------------
Finds where things live inside a scanned document:

* find_section  - a top-level named section and its header line
* find_item     - the inclusive line range of the item whose `ref` matches
* find_field    - a named simple field inside an item
* continuation_end - the last line of a multi-line field value

Items are located in two phases. The coarse pass stops at the next sibling
`- ref:` line or at the section boundary; the forward scan then settles the
true end as the last line indented deeper than the item, so block scalars
(which may contain blank lines and text at any deeper indent) and
multi-line arrays are bounded correctly.

Author: Stitch Team
Date: 2026-10-18
"""

import re
from typing import List, Optional

from stitch.core.models import FieldMatch, ItemPosition, Line, LineKind, SectionPosition
from stitch.editing.lexer import EMPTY_ARRAY_MARKER

REF_PATTERN = re.compile(r'^-?\s*ref:\s*(.+)$')
ANY_FIELD_PATTERN = re.compile(r'^(\s+)(\w+):')
PIPE_VALUES = ('|', '|-', '|+')


def strip_quotes(value: str) -> str:
    """Trims a token and removes one pair of surrounding quotes."""
    value = value.strip()
    if value[:1] in ('"', "'"):
        value = value[1:]
    if value[-1:] in ('"', "'"):
        value = value[:-1]
    return value


def extract_ref_value(content: str) -> Optional[str]:
    """`- ref: "api"` -> `api`"""
    match = REF_PATTERN.match(content)
    if not match:
        return None
    return strip_quotes(match.group(1))


def is_leaving_section(line: Line, section_indent: int) -> bool:
    """A non-blank, non-comment, non-dash line at or above the section indent."""
    if line.in_block:
        return False
    return (bool(line.content)
            and not line.content.startswith('#')
            and line.indent <= section_indent
            and not line.content.startswith('-'))


def find_section(lines: List[Line], name: str) -> Optional[SectionPosition]:
    """
    Finds the first top-level line whose content is `name:` or starts with
    `name: `. Nested keys of the same name (e.g. a component's `assets:`
    list) and block-scalar text are never mistaken for the section.
    """
    header = f"{name}:"
    for line in lines:
        if line.indent != 0 or line.in_block:
            continue
        if line.content == header or line.content.startswith(header + ' '):
            value = line.content[len(header):].strip()
            return SectionPosition(
                start_index=line.index,
                indent=line.indent,
                is_empty_marker=value.replace(' ', '') == EMPTY_ARRAY_MARKER,
            )
    return None


def section_end(lines: List[Line], section: SectionPosition) -> int:
    """Exclusive index of the first line outside the section."""
    for line in lines[section.start_index + 1:]:
        if is_leaving_section(line, section.indent):
            return line.index
    return len(lines)


def item_starts(lines: List[Line], section: SectionPosition) -> List[Line]:
    """All `- ref:` lines belonging to the section, in document order."""
    end = section_end(lines, section)
    return [line for line in lines[section.start_index + 1:end]
            if line.kind is LineKind.ITEM_START]


def detect_field_indent(line: Line) -> int:
    """Indent of a simple `key:` line, or 0 when the line is not one."""
    if line.in_block or line.content.startswith('-') or line.content.startswith('#'):
        return 0
    match = ANY_FIELD_PATTERN.match(line.raw)
    return len(match.group(1)) if match else 0


def item_true_end(lines: List[Line], start: int, coarse_end: int, item_indent: int) -> int:
    """
    Forward scan from the `- ref:` line: the last line before `coarse_end`
    (exclusive) that is indented deeper than the item. Blank lines and
    comments sitting at the item's own indent are left to what follows.
    """
    last = start
    for line in lines[start + 1:coarse_end]:
        if line.in_block:
            if line.content:
                last = line.index
            continue
        if not line.content:
            continue
        if line.indent > item_indent:
            last = line.index
        elif (line.indent == item_indent and line.content.startswith('-')
              and line.kind is not LineKind.ITEM_START):
            # Sequence entries written flush with the item dash
            last = line.index
    return last


def _coarse_end(lines: List[Line], start_line: Line, section: SectionPosition) -> int:
    for line in lines[start_line.index + 1:]:
        if is_leaving_section(line, section.indent):
            return line.index
        if line.kind is LineKind.ITEM_START and line.indent <= start_line.indent:
            return line.index
    return len(lines)


def locate_item(lines: List[Line], start_line: Line, section: SectionPosition) -> ItemPosition:
    """Builds the ItemPosition for a known `- ref:` line."""
    coarse_end = _coarse_end(lines, start_line, section)
    end = item_true_end(lines, start_line.index, coarse_end, start_line.indent)

    field_indent = 0
    for line in lines[start_line.index + 1:end + 1]:
        field_indent = detect_field_indent(line)
        if field_indent:
            break

    return ItemPosition(
        start_index=start_line.index,
        end_index=end,
        indent=start_line.indent,
        field_indent=field_indent,
    )


def find_item(lines: List[Line], section: SectionPosition, ref: str) -> Optional[ItemPosition]:
    """
    Finds the item whose `ref` equals `ref` (quotes ignored) within the
    section. Returns None when no such item exists.
    """
    for line in item_starts(lines, section):
        if extract_ref_value(line.content) == ref:
            return locate_item(lines, line, section)
    return None


def find_field(lines: List[Line], item: ItemPosition, name: str) -> Optional[FieldMatch]:
    """
    Finds `name:` among the item's simple fields. Once a field indent has
    been detected, lines at any other indent are not considered fields of
    this item.
    """
    pattern = re.compile(rf'^(\s*){re.escape(name)}:\s*(.*)$')
    for line in lines[item.start_index + 1:item.end_index + 1]:
        if line.in_block or line.content.startswith('#'):
            continue
        match = pattern.match(line.raw)
        if not match:
            continue
        indent = len(match.group(1))
        if item.field_indent and indent != item.field_indent:
            continue
        existing = match.group(2).strip()
        return FieldMatch(
            line_index=line.index,
            indent=indent,
            existing_value=existing,
            is_pipe_style=existing in PIPE_VALUES,
        )
    return None


def find_top_level_field(lines: List[Line], name: str) -> Optional[FieldMatch]:
    """Same as find_field but for keys written at column 0."""
    pattern = re.compile(rf'^{re.escape(name)}:(?:\s+(.*))?$')
    for line in lines:
        if line.indent != 0 or line.in_block:
            continue
        match = pattern.match(line.raw.rstrip())
        if match:
            existing = (match.group(1) or '').strip()
            return FieldMatch(
                line_index=line.index,
                indent=0,
                existing_value=existing,
                is_pipe_style=existing in PIPE_VALUES,
            )
    return None


def continuation_end(lines: List[Line], start: int, field_indent: int, is_pipe_style: bool) -> int:
    """
    Returns the index of the last line belonging to the value that starts
    on line `start` (the field line itself when the value is single-line).

    Block scalars continue through blank lines and deeper-indented lines up
    to the first non-blank line at or below the field. Other values continue
    only through deeper-indented, non-blank lines. Trailing blank lines are
    never claimed.
    """
    last = start
    for line in lines[start + 1:]:
        if not line.content:
            if is_pipe_style:
                continue
            break
        if line.indent <= field_indent:
            break
        last = line.index
    return last
