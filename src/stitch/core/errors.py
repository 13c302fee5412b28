#!/usr/bin/env python3
"""
STITCH ERRORS
-------------
Exception hierarchy for the editor. Editing operations are tolerant by
default (an unlocatable target returns the document unchanged); these
exceptions cover the deliberate failures: a rename of a ref that does not
exist, and contract violations by the caller.

Author: Stitch Team
Date: 2026-10-18
"""


class StitchError(Exception):
    """Base class for every error raised by Stitch."""


class RefNotFoundError(StitchError, LookupError):
    """Raised when a rename targets a ref that no item defines."""

    def __init__(self, ref: str):
        self.ref = ref
        super().__init__(f"Reference '{ref}' not found in document")


class InvalidEditError(StitchError, ValueError):
    """Malformed operation parameters or option combinations."""


class UnsupportedValueError(InvalidEditError, TypeError):
    """A field value that cannot be written as a scalar, number or list."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Unsupported field value of type {type(value).__name__}: {value!r}")


class ScriptError(StitchError):
    """An edit script that cannot be loaded or names an unknown operation."""
