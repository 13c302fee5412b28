#!/usr/bin/env python3
"""
STITCH CORE MODELS
------------------
Defines the fundamental data structures used across the Stitch editor.
Every editing operation works on a flat list of Line records; the other
models describe positions inside that list.

Author: Stitch Team
Date: 2026-10-18
"""

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Optional, Tuple


class LineKind(Enum):
    """Lexical kind of a line, assigned in context by the LineScanner."""
    BLANK = "blank"
    SECTION_HEADER = "section"
    ITEM_START = "item"
    FIELD = "field"
    COMMENT = "comment"
    PIPE_INDICATOR = "pipe-indicator"
    PIPE_CONTENT = "pipe-content"


class ScanMode(Enum):
    NORMAL = "normal"
    IN_BLOCK_SCALAR = "in-block-scalar"


class ScanState(NamedTuple):
    """
    The scanner state carried from one line to the next.
    `block_indent` is the indent of the field that opened the block scalar.
    """
    mode: ScanMode = ScanMode.NORMAL
    block_indent: int = -1


@dataclass(frozen=True)
class Line:
    """
    The atomic unit of a document.

    `content` is the line with surrounding whitespace removed; `raw` is kept
    untouched so that every line an edit does not touch is written back
    byte-for-byte.
    """
    index: int              # Position in the document (0-based)
    raw: str                # The original unmutated line
    content: str            # Stripped text used for classification
    indent: int             # Leading whitespace count
    kind: LineKind          # Contextual lexical kind

    @property
    def in_block(self) -> bool:
        return self.kind is LineKind.PIPE_CONTENT


@dataclass
class SectionPosition:
    start_index: int
    indent: int
    is_empty_marker: bool = False   # Header written as `name: []`


@dataclass
class ItemPosition:
    start_index: int        # The `- ref:` line
    end_index: int          # Inclusive, last content line of the item
    indent: int             # Indent of the `- ref:` line
    field_indent: int = 0   # 0 until a simple field has been observed


@dataclass
class FieldMatch:
    line_index: int
    indent: int
    existing_value: str
    is_pipe_style: bool = False


class OccurrenceKind(Enum):
    """The syntactic positions a reference value can occupy."""
    OWN_DEFINITION = "own-definition"
    INLINE_ARRAY_ELEMENT = "inline-array-element"
    MULTILINE_ARRAY_ELEMENT = "multiline-array-element"
    SCALAR_FIELD = "scalar-field"
    COMPOSITE_REF_COMPONENT = "composite-ref-component"


@dataclass(frozen=True)
class Occurrence:
    kind: OccurrenceKind
    line_index: int
    field: str              # Field the value sits in ("ref" for definitions)
    value: str              # Quote-stripped token as found in the document


@dataclass
class RenameOptions:
    """
    Controls which syntactic positions `rename_ref` rewrites.

    Attributes:
        array_fields: Fields holding inline or multi-line lists of refs.
        scalar_fields: Fields holding a single ref (e.g. source/destination).
        regenerate_composite_refs: Recompute `A->B` / `A<->B` refs of
            relation items from their (possibly renamed) endpoints.
        ensure_unique: Suffix `-1`, `-2`, ... when the new ref is taken.
        require_ref_exists: Raise RefNotFoundError when the old ref is not
            defined by any item.
    """
    array_fields: Tuple[str, ...] = ()
    scalar_fields: Tuple[str, ...] = ()
    regenerate_composite_refs: bool = False
    ensure_unique: bool = True
    require_ref_exists: bool = True

    def __post_init__(self):
        # A bare string is left alone so validation can reject it
        if not isinstance(self.array_fields, str):
            self.array_fields = tuple(self.array_fields or ())
        if not isinstance(self.scalar_fields, str):
            self.scalar_fields = tuple(self.scalar_fields or ())


class RenameResult(NamedTuple):
    document: str
    actual_ref: str


@dataclass
class RelationItem:
    """A relation item whose own ref is derived from two endpoint fields."""
    ref_line: int
    source: Optional[str] = None
    destination: Optional[str] = None
    direction: str = "unidirectional"
