#!/usr/bin/env python3
"""
STITCH LEXER - Line Scanner (Phase 1)
-------------------------------------
Decomposes raw document text into Line records with indentation and
stripped content precomputed, and classifies each line's lexical kind.

Classification is contextual: once a `key: |` line opens a block scalar,
every following blank or deeper-indented line is block content until the
first non-blank line at or below the opening field's indent. That state is
carried explicitly in a ScanState so `step` can be exercised on its own.

Author: Stitch Team
Date: 2026-10-18
"""

import re
from typing import List, Tuple

from stitch.core.models import Line, LineKind, ScanMode, ScanState

# `key: |`, `key: |-`, `- key: |+` or a bare `- |`
PIPE_PATTERN = re.compile(r'(?:^-|:)\s*\|[-+]?$')
SECTION_PATTERN = re.compile(r'^([\w.-]+):\s*(\[\s*\])?$')
ITEM_PREFIX = '- ref:'
EMPTY_ARRAY_MARKER = '[]'


def split_lines(text: str) -> List[str]:
    """Split on LF only so that a trailing newline survives a round trip."""
    return text.split('\n')


def join_lines(lines: List[str]) -> str:
    return '\n'.join(lines)


def measure(raw: str) -> Tuple[str, int]:
    """Returns (content, indent) for a raw line."""
    stripped = raw.lstrip()
    return stripped.strip(), len(raw) - len(stripped)


def is_pipe_indicator(content: str) -> bool:
    return bool(PIPE_PATTERN.search(content))


def is_section_header(content: str, indent: int) -> bool:
    return indent == 0 and bool(SECTION_PATTERN.match(content))


class LineScanner:
    """
    Orchestrates the transition from raw text to classified Lines.
    Maintains block state (|, |-, |+) so content inside literals is never
    mistaken for structure.
    """

    def step(self, state: ScanState, index: int, raw: str) -> Tuple[Line, ScanState]:
        """
        Classifies one line given the state left by the previous one.
        Returns the Line and the state for the next line.
        """
        content, indent = measure(raw)

        # 1. Block Protection
        if state.mode is ScanMode.IN_BLOCK_SCALAR:
            if not content or indent > state.block_indent:
                return Line(index, raw, content, indent, LineKind.PIPE_CONTENT), state
            state = ScanState()

        # 2. Structural classification
        if not content:
            kind = LineKind.BLANK
        elif content.startswith('#'):
            kind = LineKind.COMMENT
        elif content.startswith(ITEM_PREFIX):
            kind = LineKind.ITEM_START
        elif is_pipe_indicator(content):
            kind = LineKind.PIPE_INDICATOR
            state = ScanState(ScanMode.IN_BLOCK_SCALAR, indent)
        elif is_section_header(content, indent):
            kind = LineKind.SECTION_HEADER
        else:
            kind = LineKind.FIELD

        return Line(index, raw, content, indent, kind), state

    def scan(self, text: str) -> List[Line]:
        """
        Decomposes a document into Lines. This is the primary interface
        for every editing operation.
        """
        state = ScanState()
        lines = []
        for i, raw in enumerate(split_lines(text)):
            line, state = self.step(state, i, raw)
            lines.append(line)
        return lines


_scanner = LineScanner()


def scan(text: str) -> List[Line]:
    return _scanner.scan(text)
