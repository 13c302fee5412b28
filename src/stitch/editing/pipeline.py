#!/usr/bin/env python3
"""
STITCH EDIT PIPELINE - Sequential Operation Runner
--------------------------------------------------
Applies a list of operations to a document in order. Each operation is a
plain mapping, typically loaded from an edit script:

    - op: update_field
      section: components
      ref: api
      field: name
      value: "Service: API"
    - op: rename_ref
      kind: component
      old: api
      new: gateway

Every operation is one of the text -> text functions of the editing
package, so the pipeline itself holds no document model.

Author: Stitch Team
Date: 2026-10-18
"""

import logging
from typing import Any, Callable, Dict, Iterable

from stitch.core.errors import ScriptError, StitchError
from stitch.core.models import RenameResult
from stitch.editing.context import EditContext
from stitch.editing.fields import (
    update_field,
    update_optional_top_level_field,
    update_top_level_field,
    update_top_level_string_array,
)
from stitch.editing.items import append_item, remove_item
from stitch.editing.normalizer import normalize_whitespace
from stitch.editing.refs import regenerate_all_refs
from stitch.editing.rename import remove_ref_from_array_fields, rename_kind_ref, rename_ref
from stitch.editing.reorder import reorder_section

logger = logging.getLogger("stitch.editing.pipeline")


def _rename(doc: str, old: str, new: str, kind: str = None, **options) -> RenameResult:
    if kind is not None:
        if options:
            raise ScriptError("rename_ref takes either 'kind' or explicit options, not both")
        return rename_kind_ref(doc, kind, old, new)
    return rename_ref(doc, old, new, **options)


OPERATIONS: Dict[str, Callable[..., Any]] = {
    'update_field':
        lambda doc, section, ref, field, value=None: update_field(doc, section, ref, field, value),
    'update_top_level_field':
        lambda doc, field, value: update_top_level_field(doc, field, value),
    'update_optional_top_level_field':
        lambda doc, field, value=None: update_optional_top_level_field(doc, field, value),
    'update_top_level_string_array':
        lambda doc, field, values: update_top_level_string_array(doc, field, values),
    'append_item':
        lambda doc, section, fields: append_item(doc, section, fields),
    'remove_item':
        lambda doc, section, ref: remove_item(doc, section, ref),
    'rename_ref': _rename,
    'remove_ref_from_array_fields':
        lambda doc, ref, fields: remove_ref_from_array_fields(doc, ref, fields),
    'reorder_section':
        lambda doc, section, order: reorder_section(doc, section, order),
    'normalize':
        lambda doc: normalize_whitespace(doc),
    'regenerate_refs':
        lambda doc: regenerate_all_refs(doc),
}


class EditPipeline:
    """
    The Orchestrator: runs operations strictly in the given order, each on
    the output of the previous one.
    """

    def __init__(self, operations: Dict[str, Callable[..., Any]] = None):
        self.operations = dict(OPERATIONS if operations is None else operations)

    def _resolve(self, position: int, operation: Any):
        if not isinstance(operation, dict):
            raise ScriptError(f"Operation #{position} must be a mapping, got {type(operation).__name__}")
        params = dict(operation)
        name = params.pop('op', None)
        if name not in self.operations:
            raise ScriptError(f"Operation #{position}: unknown op {name!r}")
        return name, params

    def run(self, text: str, operations: Iterable[Dict[str, Any]]) -> EditContext:
        """
        Applies `operations` to `text`. Raises ScriptError for malformed
        operations; a StitchError raised by an operation propagates unchanged.
        """
        context = EditContext(original_text=text)

        for position, operation in enumerate(operations, start=1):
            name, params = self._resolve(position, operation)
            before = context.text
            try:
                outcome = self.operations[name](context.text, **params)
            except StitchError:
                raise
            except TypeError as e:
                raise ScriptError(f"Operation #{position} ({name}): bad parameters: {e}") from e

            if isinstance(outcome, RenameResult):
                context.text = outcome.document
                context.actual_refs[params['new']] = outcome.actual_ref
                detail = f"{params['old']} -> {outcome.actual_ref}"
            else:
                context.text = outcome
                detail = ', '.join(f"{k}={v!r}" for k, v in params.items() if k in ('section', 'ref', 'field'))

            status = "changed" if context.text != before else "no change"
            context.logs.append(f"{name}({detail}): {status}")
            context.applied.append(operation)
            logger.debug("op #%d %s: %s", position, name, status)

        return context
