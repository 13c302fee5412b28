#!/usr/bin/env python3
"""
STITCH NORMALIZER - Whitespace Discipline (Final Pass)
------------------------------------------------------
Every mutating operation ends here. The pass drops all blank lines outside
block scalars and re-inserts exactly the ones the layout rules call for:

1. One blank line before each section header and before each top-level
   comment that introduces a top-level key, unless the previous line is a
   comment or a top-level field (or already blank).
2. One blank line between sibling items. When a comment block at the
   item's own indent (or shallower) sits directly above the next sibling,
   the blank line goes above the comments. Comments indented deeper belong
   to the item before them and stay attached to it.
3. No blank lines between the fields of an item or between consecutive
   top-level fields.
4. Block-scalar interiors pass through untouched; only the trailing blank
   lines at the very end of a block are dropped.

Since the output depends only on the non-blank lines and on whether a blank
line preceded them, running the pass twice yields the same text.

Author: Stitch Team
Date: 2026-10-18
"""

import re
from typing import List, Optional

from stitch.core.models import Line, LineKind
from stitch.editing.lexer import join_lines, scan

TOP_LEVEL_KEY = re.compile(r'^[\w.-]+:')

EMPTY = 'empty'
SECTION = 'section'
ITEM = 'item'
FIELD = 'field'
COMMENT = 'comment'
TOP_LEVEL_FIELD = 'top-level-field'
PIPE_INDICATOR = 'pipe-indicator'
PIPE_CONTENT = 'pipe-content'


def _next_structural(lines: List[Line], start: int) -> Optional[Line]:
    """The next line after `start` that is neither blank nor a comment."""
    for line in lines[start + 1:]:
        if line.content and line.kind is not LineKind.COMMENT:
            return line
    return None


def _introduces_top_level_key(lines: List[Line], index: int) -> bool:
    ahead = _next_structural(lines, index)
    return (ahead is not None and ahead.indent == 0
            and not ahead.in_block and not ahead.content.startswith('-'))


def _introduces_sibling_item(lines: List[Line], index: int, item_indent: int) -> bool:
    ahead = _next_structural(lines, index)
    return (item_indent != -1 and ahead is not None
            and ahead.kind is LineKind.ITEM_START and ahead.indent == item_indent)


def _classify(line: Line) -> str:
    if line.kind is LineKind.COMMENT:
        return COMMENT
    if line.kind is LineKind.SECTION_HEADER:
        return SECTION
    if line.kind is LineKind.ITEM_START:
        return ITEM
    if line.indent == 0 and TOP_LEVEL_KEY.match(line.content):
        return TOP_LEVEL_FIELD
    return FIELD


class WhitespaceNormalizer:
    """Single forward pass over a scanned document."""

    def __init__(self):
        self.result: List[str] = []
        self.pipe_lines: List[str] = []
        self.previous = EMPTY
        self.item_indent = -1
        # The last comment appended sits inside the current item body
        self.inner_comment = False

    def _last_is_blank(self) -> bool:
        return bool(self.result) and self.result[-1] == ''

    def _flush_pipe(self):
        while self.pipe_lines and not self.pipe_lines[-1].strip():
            self.pipe_lines.pop()
        self.result.extend(self.pipe_lines)
        self.pipe_lines = []

    def _inside_item(self, line: Line) -> bool:
        return self.item_indent != -1 and line.indent > self.item_indent

    def _needs_blank(self, lines: List[Line], line: Line, kind: str) -> bool:
        if not self.result or self._last_is_blank():
            return False

        if kind == SECTION:
            return self.previous not in (COMMENT, TOP_LEVEL_FIELD)

        after_item_body = self.previous == COMMENT and self.inner_comment

        if kind == COMMENT and line.indent == 0 and _introduces_top_level_key(lines, line.index):
            return self.previous not in (SECTION, TOP_LEVEL_FIELD, COMMENT) or after_item_body

        if kind == COMMENT:
            if self._inside_item(line):
                return False
            return ((self.previous not in (SECTION, COMMENT) or after_item_body)
                    and _introduces_sibling_item(lines, line.index, self.item_indent))

        if kind == ITEM:
            return (self.item_indent != -1 and line.indent == self.item_indent
                    and (self.previous in (ITEM, FIELD, PIPE_CONTENT, PIPE_INDICATOR, EMPTY)
                         or after_item_body))

        return False

    def run(self, text: str) -> str:
        lines = scan(text)

        for line in lines:
            if line.kind is LineKind.PIPE_CONTENT:
                self.pipe_lines.append(line.raw)
                self.previous = PIPE_CONTENT
                continue

            if self.pipe_lines:
                self._flush_pipe()

            if line.kind is LineKind.BLANK:
                self.previous = EMPTY
                continue

            if line.kind is LineKind.PIPE_INDICATOR:
                self.result.append(line.raw)
                self.previous = PIPE_INDICATOR
                continue

            kind = _classify(line)
            if self._needs_blank(lines, line, kind):
                self.result.append('')

            if kind == SECTION or (kind == COMMENT and line.indent == 0
                                   and _introduces_top_level_key(lines, line.index)):
                self.item_indent = -1
            elif kind == ITEM:
                self.item_indent = line.indent

            self.inner_comment = kind == COMMENT and self._inside_item(line)
            self.result.append(line.raw)
            self.previous = kind

        self._flush_pipe()
        normalized = join_lines(self.result)
        if text.endswith('\n') and normalized:
            normalized += '\n'
        return normalized


def normalize_whitespace(text: str) -> str:
    """Applies the blank-line rules. Idempotent."""
    return WhitespaceNormalizer().run(text)
