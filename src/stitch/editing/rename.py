#!/usr/bin/env python3
"""
STITCH RENAME - Reference Rename Engine
---------------------------------------
A ref value can appear in five syntactic positions:

    - ref: api                      own definition
    assets: [api, db]               inline array element
    components:                     multi-line array element
      - api
    source: api                     scalar field
    - ref: api->db                  composite ref of a relation item

iter_occurrences finds every occurrence of every value in the positions an
options set enables; rewrite_refs maps a whole {old: new} table over them in
one pass, so several renames never chain into each other. Matching is always
exact-token equality on the trimmed, quote-stripped value, which is what
keeps `api` from touching `api-server`.

Author: Stitch Team
Date: 2026-10-18
"""

import dataclasses
import logging
import re
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

from stitch.core.errors import InvalidEditError, RefNotFoundError
from stitch.core.models import (
    Line,
    LineKind,
    Occurrence,
    OccurrenceKind,
    RelationItem,
    RenameOptions,
    RenameResult,
)
from stitch.editing.emitter import yaml_quote
from stitch.editing.lexer import join_lines, scan
from stitch.editing.locator import extract_ref_value, strip_quotes
from stitch.editing.normalizer import normalize_whitespace

logger = logging.getLogger("stitch.editing.rename")

REF_LINE = re.compile(r'^(\s*-?\s*)ref:\s*(.+)$')
LIST_ELEMENT = re.compile(r'^(\s*)-\s*(.+)$')
RELATION_FIELD = re.compile(r'^\s+(source|destination|direction):\s*(.+)$')

BIDIRECTIONAL = 'bidirectional'

# Where each kind of entity is referenced from elsewhere in a threat model
RENAME_PROFILES: Dict[str, RenameOptions] = {
    'component': RenameOptions(
        array_fields=('components', 'affected_components', 'implemented_in'),
        scalar_fields=('source', 'destination'),
        regenerate_composite_refs=True,
    ),
    'asset': RenameOptions(array_fields=('assets', 'affected_assets')),
    'boundary': RenameOptions(),
    'threat': RenameOptions(array_fields=('mitigates',)),
    'control': RenameOptions(),
    'data_flow': RenameOptions(
        array_fields=('affected_data_flows',),
        ensure_unique=False,
        require_ref_exists=False,
    ),
}

SECTION_FOR_KIND: Dict[str, str] = {
    'component': 'components',
    'asset': 'assets',
    'boundary': 'boundaries',
    'threat': 'threats',
    'control': 'controls',
    'data_flow': 'data_flows',
}


# --- Token helpers ---------------------------------------------------------

def _inline_array_pattern(name: str):
    return re.compile(rf'^(\s*){re.escape(name)}:\s*\[(.*)\]$')


def _block_header_pattern(name: str):
    return re.compile(rf'^(\s*){re.escape(name)}:\s*$')


def _scalar_pattern(name: str):
    return re.compile(rf'^(\s*){re.escape(name)}:\s*(.+)$')


def split_elements(body: str) -> List[str]:
    """`a, "b" , c` -> ['a', '"b"', 'c']"""
    if not body.strip():
        return []
    return [element.strip() for element in body.split(',')]


def compose_ref(source: str, destination: str, direction: Optional[str] = None) -> str:
    """The ref a relation item derives from its endpoints."""
    arrow = '<->' if direction == BIDIRECTIONAL else '->'
    return f"{source}{arrow}{destination}"


def _structural(line: Line) -> bool:
    return bool(line.content) and not line.in_block and line.kind is not LineKind.COMMENT


def collect_refs(lines: Sequence[Line]) -> List[str]:
    """Every `ref:` value in document order, block text excluded."""
    refs = []
    for line in lines:
        if not _structural(line):
            continue
        match = REF_LINE.match(line.raw.rstrip())
        if match:
            refs.append(strip_quotes(match.group(2)))
    return refs


def make_ref_unique(doc: str, desired: str, exclude: Optional[str] = None) -> str:
    """
    Returns `desired`, or `desired-1`, `desired-2`, ... when the document
    already defines it. `exclude` is left out of the check, so a ref being
    renamed does not collide with itself.
    """
    taken = {ref for ref in collect_refs(scan(doc)) if ref != exclude}
    if desired not in taken:
        return desired
    counter = 1
    while f"{desired}-{counter}" in taken:
        counter += 1
    return f"{desired}-{counter}"


def collect_relation_items(lines: Sequence[Line]) -> List[RelationItem]:
    """Items carrying both a `source` and a `destination` field."""
    relations = []
    current = None
    current_indent = -1
    for line in lines:
        if not _structural(line):
            continue
        if line.kind is LineKind.ITEM_START:
            current = RelationItem(ref_line=line.index)
            current_indent = line.indent
            relations.append(current)
            continue
        if current is None:
            continue
        if line.indent <= current_indent:
            current = None
            continue
        match = RELATION_FIELD.match(line.raw.rstrip())
        if match:
            setattr(current, match.group(1), strip_quotes(match.group(2)))
    return [r for r in relations if r.source and r.destination]


def _block_arrays(lines: Sequence[Line], fields: Iterable[str]) -> Iterator[Tuple[str, int, List[int]]]:
    """
    Yields (field, header_index, element_indices) for every multi-line list
    written under a bare `field:` header. Elements are `- value` lines
    without a colon, at or below the header's indent; blank lines and
    comments between them do not end the list.
    """
    headers = {name: _block_header_pattern(name) for name in fields}
    if not headers:
        return

    active = None
    for line in lines:
        if active is not None:
            field, header, indent, elements = active
            if not line.content or line.kind is LineKind.COMMENT:
                continue
            if (LIST_ELEMENT.match(line.raw) and ':' not in line.content
                    and line.indent >= indent and not line.in_block):
                elements.append(line.index)
                continue
            yield field, header, elements
            active = None

        if not _structural(line):
            continue
        for name, pattern in headers.items():
            if pattern.match(line.raw.rstrip()):
                active = (name, line.index, line.indent, [])
                break

    if active is not None:
        field, header, _, elements = active
        yield field, header, elements


# --- Occurrence model -----------------------------------------------------

def iter_occurrences(
    lines: Sequence[Line],
    array_fields: Iterable[str] = (),
    scalar_fields: Iterable[str] = (),
    composite: bool = False,
) -> Iterator[Occurrence]:
    """Every ref-valued token in the positions enabled by the arguments."""
    array_fields = tuple(array_fields)
    element_field = {}
    for field, _, elements in _block_arrays(lines, array_fields):
        for index in elements:
            element_field[index] = field

    inline = [(name, _inline_array_pattern(name)) for name in array_fields]
    scalars = [(name, _scalar_pattern(name)) for name in scalar_fields]

    for line in lines:
        if not _structural(line):
            continue
        text = line.raw.rstrip()

        match = REF_LINE.match(text)
        if match:
            yield Occurrence(OccurrenceKind.OWN_DEFINITION, line.index, 'ref',
                             strip_quotes(match.group(2)))
            continue

        if line.index in element_field:
            value = LIST_ELEMENT.match(text).group(2)
            yield Occurrence(OccurrenceKind.MULTILINE_ARRAY_ELEMENT, line.index,
                             element_field[line.index], strip_quotes(value))
            continue

        for name, pattern in inline:
            match = pattern.match(text)
            if match:
                for element in split_elements(match.group(2)):
                    yield Occurrence(OccurrenceKind.INLINE_ARRAY_ELEMENT, line.index,
                                     name, strip_quotes(element))
                break
        else:
            for name, pattern in scalars:
                match = pattern.match(text)
                if match:
                    yield Occurrence(OccurrenceKind.SCALAR_FIELD, line.index,
                                     name, strip_quotes(match.group(2)))
                    break

    if composite:
        for relation in collect_relation_items(lines):
            for endpoint in (relation.source, relation.destination):
                yield Occurrence(OccurrenceKind.COMPOSITE_REF_COMPONENT,
                                 relation.ref_line, 'ref', endpoint)


def find_occurrences(doc: str, ref: str, options: Optional[RenameOptions] = None) -> List[Occurrence]:
    """All occurrences of exactly `ref` that a rename with `options` would visit."""
    options = options or RenameOptions()
    occurrences = iter_occurrences(scan(doc), options.array_fields, options.scalar_fields,
                                   options.regenerate_composite_refs)
    return [occ for occ in occurrences if occ.value == ref]


# --- Rewriting --------------------------------------------------------------

def _rewrite_definition(raw: str, new: str) -> str:
    prefix = REF_LINE.match(raw.rstrip()).group(1)
    return f"{prefix}ref: {yaml_quote(new)}"


def _rewrite_inline(raw: str, field: str, mapping: Mapping[str, str]) -> str:
    match = _inline_array_pattern(field).match(raw.rstrip())
    elements = []
    for element in split_elements(match.group(2)):
        token = strip_quotes(element)
        elements.append(yaml_quote(mapping[token]) if token in mapping else element)
    return f"{match.group(1)}{field}: [{', '.join(elements)}]"


def _rewrite_element(raw: str, new: str) -> str:
    indent = LIST_ELEMENT.match(raw).group(1)
    return f"{indent}- {yaml_quote(new)}"


def _rewrite_scalar(raw: str, field: str, new: str) -> str:
    indent = _scalar_pattern(field).match(raw.rstrip()).group(1)
    return f"{indent}{field}: {yaml_quote(new)}"


def rewrite_refs(
    doc: str,
    mapping: Mapping[str, str],
    array_fields: Iterable[str] = (),
    scalar_fields: Iterable[str] = (),
    regenerate_composite_refs: bool = False,
) -> str:
    """
    Replaces every occurrence whose value is a key of `mapping` with the
    mapped value, all at once. Relation items get their composite ref
    recomputed from their mapped endpoints unless their own ref was mapped
    directly. The result is not normalized.
    """
    lines = scan(doc)
    raw = [line.raw for line in lines]
    rewritten: Set[int] = set()

    for occ in iter_occurrences(lines, array_fields, scalar_fields):
        if occ.value not in mapping or occ.line_index in rewritten:
            continue
        original = lines[occ.line_index].raw
        if occ.kind is OccurrenceKind.OWN_DEFINITION:
            raw[occ.line_index] = _rewrite_definition(original, mapping[occ.value])
        elif occ.kind is OccurrenceKind.INLINE_ARRAY_ELEMENT:
            raw[occ.line_index] = _rewrite_inline(original, occ.field, mapping)
        elif occ.kind is OccurrenceKind.MULTILINE_ARRAY_ELEMENT:
            raw[occ.line_index] = _rewrite_element(original, mapping[occ.value])
        else:
            raw[occ.line_index] = _rewrite_scalar(original, occ.field, mapping[occ.value])
        rewritten.add(occ.line_index)

    if regenerate_composite_refs:
        for relation in collect_relation_items(lines):
            if relation.ref_line in rewritten:
                continue
            composite = compose_ref(
                mapping.get(relation.source, relation.source),
                mapping.get(relation.destination, relation.destination),
                relation.direction,
            )
            if composite != extract_ref_value(lines[relation.ref_line].content):
                raw[relation.ref_line] = _rewrite_definition(lines[relation.ref_line].raw, composite)

    return join_lines(raw)


# --- Public operations -----------------------------------------------------

def _resolve_options(options: Optional[RenameOptions], overrides: Dict) -> RenameOptions:
    try:
        if options is None:
            options = RenameOptions(**overrides)
        elif overrides:
            options = dataclasses.replace(options, **overrides)
    except TypeError as e:
        raise InvalidEditError(f"Invalid rename options: {e}") from e

    for name in ('array_fields', 'scalar_fields'):
        fields = getattr(options, name)
        if isinstance(fields, str) or not all(isinstance(f, str) and f for f in fields):
            raise InvalidEditError(f"{name} must be a list of field names, got {fields!r}")
    for name in ('regenerate_composite_refs', 'ensure_unique', 'require_ref_exists'):
        if not isinstance(getattr(options, name), bool):
            raise InvalidEditError(f"{name} must be a boolean")
    return options


def rename_ref(doc: str, old_ref: str, new_ref: str,
               options: Optional[RenameOptions] = None, **overrides) -> RenameResult:
    """
    Renames `old_ref` to `new_ref` and cascades the change through every
    position `options` enables.

    Returns (document, actual_ref); actual_ref differs from new_ref when
    uniquing had to append a suffix. Raises RefNotFoundError when no item
    defines `old_ref` and the options require one.
    """
    options = _resolve_options(options, overrides)
    if not isinstance(old_ref, str) or not isinstance(new_ref, str) or not new_ref.strip():
        raise InvalidEditError("Refs must be non-empty strings")

    if old_ref == new_ref:
        return RenameResult(doc, new_ref)

    if options.require_ref_exists and old_ref not in collect_refs(scan(doc)):
        raise RefNotFoundError(old_ref)

    actual_ref = new_ref
    if options.ensure_unique:
        actual_ref = make_ref_unique(doc, new_ref, exclude=old_ref)
        if actual_ref != new_ref:
            logger.info("Ref %r is taken, renaming %r to %r instead", new_ref, old_ref, actual_ref)

    updated = rewrite_refs(
        doc,
        {old_ref: actual_ref},
        options.array_fields,
        options.scalar_fields,
        options.regenerate_composite_refs,
    )
    return RenameResult(normalize_whitespace(updated), actual_ref)


def rename_kind_ref(doc: str, kind: str, old_ref: str, new_ref: str) -> RenameResult:
    """Renames using the profile registered for an entity kind."""
    if kind not in RENAME_PROFILES:
        raise InvalidEditError(f"Unknown entity kind {kind!r}; expected one of {sorted(RENAME_PROFILES)}")
    return rename_ref(doc, old_ref, new_ref, RENAME_PROFILES[kind])


def rename_component_ref(doc: str, old_ref: str, new_ref: str) -> RenameResult:
    """Also rewrites source/destination and regenerates data-flow refs."""
    return rename_kind_ref(doc, 'component', old_ref, new_ref)


def rename_asset_ref(doc: str, old_ref: str, new_ref: str) -> RenameResult:
    return rename_kind_ref(doc, 'asset', old_ref, new_ref)


def rename_boundary_ref(doc: str, old_ref: str, new_ref: str) -> RenameResult:
    return rename_kind_ref(doc, 'boundary', old_ref, new_ref)


def rename_threat_ref(doc: str, old_ref: str, new_ref: str) -> RenameResult:
    return rename_kind_ref(doc, 'threat', old_ref, new_ref)


def rename_control_ref(doc: str, old_ref: str, new_ref: str) -> RenameResult:
    return rename_kind_ref(doc, 'control', old_ref, new_ref)


def rename_data_flow_ref(doc: str, old_ref: str, new_ref: str) -> RenameResult:
    """Data-flow refs may be derived values, so neither existence nor uniqueness is enforced."""
    return rename_kind_ref(doc, 'data_flow', old_ref, new_ref)


def remove_ref_from_array_fields(doc: str, ref: str, field_names: Sequence[str]) -> str:
    """
    Drops `ref` from the named inline and multi-line arrays. A list left
    empty loses its whole field line.
    """
    if isinstance(field_names, str):
        raise InvalidEditError("field_names must be a list of field names")

    lines = scan(doc)
    raw = [line.raw for line in lines]
    drop: Set[int] = set()

    for _, header, elements in _block_arrays(lines, field_names):
        hits = [i for i in elements
                if strip_quotes(LIST_ELEMENT.match(lines[i].raw).group(2)) == ref]
        drop.update(hits)
        if hits and len(hits) == len(elements):
            drop.add(header)

    patterns = [(name, _inline_array_pattern(name)) for name in field_names]
    for line in lines:
        if line.index in drop or not _structural(line):
            continue
        for name, pattern in patterns:
            match = pattern.match(line.raw.rstrip())
            if not match:
                continue
            elements = split_elements(match.group(2))
            kept = [e for e in elements if strip_quotes(e) != ref]
            if len(kept) != len(elements):
                if kept:
                    raw[line.index] = f"{match.group(1)}{name}: [{', '.join(kept)}]"
                else:
                    drop.add(line.index)
            break

    return normalize_whitespace(join_lines([r for i, r in enumerate(raw) if i not in drop]))
