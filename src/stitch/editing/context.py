#!/usr/bin/env python3
"""
STITCH EDIT CONTEXT
-------------------
The record of one editing session: the text that went in, the text that
came out, and what happened in between.

Author: Stitch Team
Date: 2026-10-18
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class EditContext:
    """
    Maintains the state of a single edit session.

    Created by the EditPipeline and updated after every operation.
    """
    original_text: str                                          # Input before any operation
    text: str = ""                                              # Current document text
    applied: List[Dict[str, Any]] = field(default_factory=list)  # Operations run so far
    actual_refs: Dict[str, str] = field(default_factory=dict)    # Requested -> actual ref for renames
    logs: List[str] = field(default_factory=list)               # One human-readable line per operation

    def __post_init__(self):
        if not self.text:
            self.text = self.original_text

    @property
    def changed(self) -> bool:
        return self.text != self.original_text
