#!/usr/bin/env python3
"""
STITCH REORDER - Section Reorder Engine
---------------------------------------
Moves whole item blocks around inside one section. Blocks are cut out
verbatim, so block scalars, nested lists and comments travel with their
item byte-for-byte.

Author: Stitch Team
Date: 2026-10-18
"""

import logging
from typing import Dict, List, Sequence

from stitch.core.errors import InvalidEditError
from stitch.core.models import Line, LineKind, SectionPosition
from stitch.editing.lexer import EMPTY_ARRAY_MARKER, join_lines, scan
from stitch.editing.locator import extract_ref_value, find_section, is_leaving_section
from stitch.editing.normalizer import normalize_whitespace

logger = logging.getLogger("stitch.editing.reorder")


def _introduces_next_key(lines: List[Line], index: int, section_indent: int) -> bool:
    """Look-ahead past comments and blanks: does a top-level key follow?"""
    for line in lines[index + 1:]:
        if not line.content or line.kind is LineKind.COMMENT:
            continue
        return line.indent <= section_indent and not line.content.startswith('-')
    return False


def section_extent(lines: List[Line], section: SectionPosition) -> int:
    """
    Exclusive end of the section's content: the next top-level key, or a
    top-level comment that introduces it. Trailing blank lines are left out.
    """
    end = len(lines)
    for line in lines[section.start_index + 1:]:
        if is_leaving_section(line, section.indent):
            end = line.index
            break
        if (line.kind is LineKind.COMMENT and line.indent <= section.indent
                and _introduces_next_key(lines, line.index, section.indent)):
            end = line.index
            break

    while end > section.start_index + 1 and not lines[end - 1].content:
        end -= 1
    return end


def _trim(block: List[str]) -> List[str]:
    while block and not block[-1].strip():
        block.pop()
    return block


def reorder_section(doc: str, section: str, new_order: Sequence[str]) -> str:
    """
    Reassembles `section` with its items in `new_order`, one blank line
    apart. Refs with no item are skipped; items left out of `new_order` are
    dropped. Anything between the header and the first item stays put.
    When nothing is left the section collapses to `name: []`.
    """
    if isinstance(new_order, str):
        raise InvalidEditError("new_order must be a list of refs")

    lines = scan(doc)
    section_pos = find_section(lines, section)
    if section_pos is None:
        logger.debug("reorder_section: section %r not found", section)
        return doc

    end = section_extent(lines, section_pos)
    body = lines[section_pos.start_index + 1:end]
    starts = [line for line in body if line.kind is LineKind.ITEM_START]
    if not starts:
        return doc

    item_indent = starts[0].indent
    starts = [line for line in starts if line.indent == item_indent]
    raw = [line.raw for line in lines]

    blocks: Dict[str, List[str]] = {}
    bounds = [line.index for line in starts] + [end]
    for start_line, stop in zip(starts, bounds[1:]):
        blocks[extract_ref_value(start_line.content)] = _trim(raw[start_line.index:stop])

    reordered: List[str] = []
    seen = set()
    for ref in new_order:
        if ref not in blocks or ref in seen:
            continue
        if reordered:
            reordered.append('')
        reordered.extend(blocks[ref])
        seen.add(ref)

    if not reordered:
        header = f"{' ' * section_pos.indent}{section}: {EMPTY_ARRAY_MARKER}"
        result = raw[:section_pos.start_index] + [header] + raw[end:]
        return normalize_whitespace(join_lines(result))

    preamble = raw[section_pos.start_index + 1:starts[0].index]
    result = raw[:section_pos.start_index + 1] + preamble + reordered + raw[end:]
    return normalize_whitespace(join_lines(result))
