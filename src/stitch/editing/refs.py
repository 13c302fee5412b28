#!/usr/bin/env python3
"""
STITCH REFS - Reference Generation
----------------------------------
Fresh refs for new items (`component-1`, `A01`, `T02`, ...), the placeholder
names that go with them, data-flow refs derived from their endpoints, and a
bulk pass that re-derives every ref in a document from the item names.

Author: Stitch Team
Date: 2026-10-18
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, Set

from ruamel.yaml.error import YAMLError

from stitch.core.errors import InvalidEditError
from stitch.editing.exporter import DocumentExporter
from stitch.editing.lexer import scan
from stitch.editing.locator import extract_ref_value, find_section, item_starts
from stitch.editing.normalizer import normalize_whitespace
from stitch.editing.rename import RENAME_PROFILES, SECTION_FOR_KIND, compose_ref, rewrite_refs

logger = logging.getLogger("stitch.editing.refs")

TRAILING_NUMBER = re.compile(r'\d+$')

PLACEHOLDER_PATTERNS = {
    'component': re.compile(r'^Component \d+$'),
    'boundary': re.compile(r'^Boundary \d+$'),
    'asset': re.compile(r'^Asset A\d{2}$'),
    'threat': re.compile(r'^Threat T\d{2}$'),
    'control': re.compile(r'^Control C\d{2}$'),
    'data_flow': re.compile(r'^DF\d+$'),
}

# Sections whose refs are re-derived from `name`, in processing order
NAMED_SECTIONS = ('components', 'boundaries', 'assets', 'threats', 'controls')


def generate_unique_ref(prefix: str, existing: Iterable[str],
                        uppercase: bool = False, zero_pad: bool = False) -> str:
    """
    First free ref of the form `prefix-N`, or `PREFIXNN` with zero_pad.

    >>> generate_unique_ref('component', {'component-1'})
    'component-2'
    >>> generate_unique_ref('a', set(), uppercase=True, zero_pad=True)
    'A01'
    """
    taken = set(existing)
    head = prefix.upper() if uppercase else prefix
    counter = 1
    while True:
        ref = f"{head}{counter:02d}" if zero_pad else f"{head}-{counter}"
        if ref not in taken:
            return ref
        counter += 1


def section_refs(doc: str, section: str) -> List[str]:
    """Refs of the items in one section, read straight from the text."""
    lines = scan(doc)
    section_pos = find_section(lines, section)
    if section_pos is None:
        return []
    return [extract_ref_value(line.content) for line in item_starts(lines, section_pos)]


def generate_component_ref(doc: str) -> str:
    return generate_unique_ref('component', section_refs(doc, 'components'))


def generate_boundary_ref(doc: str) -> str:
    return generate_unique_ref('boundary', section_refs(doc, 'boundaries'))


def generate_asset_ref(doc: str) -> str:
    return generate_unique_ref('A', section_refs(doc, 'assets'), uppercase=True, zero_pad=True)


def generate_threat_ref(doc: str) -> str:
    return generate_unique_ref('T', section_refs(doc, 'threats'), uppercase=True, zero_pad=True)


def generate_control_ref(doc: str) -> str:
    return generate_unique_ref('C', section_refs(doc, 'controls'), uppercase=True, zero_pad=True)


def _numbered(label: str, ref: str) -> str:
    match = TRAILING_NUMBER.search(ref)
    return f"{label} {match.group(0)}" if match else label


def generate_component_name(ref: str) -> str:
    """`component-3` -> `Component 3`"""
    return _numbered('Component', ref)


def generate_boundary_name(ref: str) -> str:
    return _numbered('Boundary', ref)


def generate_asset_name(ref: str) -> str:
    return f"Asset {ref}"


def generate_threat_name(ref: str) -> str:
    return f"Threat {ref}"


def generate_control_name(ref: str) -> str:
    return f"Control {ref}"


def is_placeholder_name(kind: str, name: str) -> bool:
    """True for names the generators above would have produced."""
    pattern = PLACEHOLDER_PATTERNS.get(kind)
    if pattern is None:
        raise InvalidEditError(f"Unknown entity kind {kind!r}")
    return bool(pattern.match(name))


def generate_data_flow_ref(source: str, destination: str, direction: Optional[str] = None,
                           existing: Optional[Iterable[str]] = None) -> str:
    """`api->db`, or `api->db_1`, `api->db_2`, ... when taken."""
    base = compose_ref(source, destination, direction)
    taken = set(existing or ())
    if base not in taken:
        return base
    counter = 1
    while f"{base}_{counter}" in taken:
        counter += 1
    return f"{base}_{counter}"


def slugify(text) -> str:
    """`My API (v2)` -> `my-api-v2`"""
    slug = str(text).lower().strip()
    slug = re.sub(r'[^\w\s-]', '', slug, flags=re.ASCII)
    slug = re.sub(r'[\s_]+', '-', slug)
    return slug.strip('-')


def _unique_slug(base: str, taken: Set[str]) -> str:
    if base not in taken:
        return base
    counter = 2
    while f"{base}-{counter}" in taken:
        counter += 1
    return f"{base}-{counter}"


def build_ref_map(model: Dict) -> Dict[str, str]:
    """
    Old ref -> new ref for a parsed document. Named items get the slug of
    their name; data flows are rebuilt from their remapped endpoints. New
    refs are unique across all sections.
    """
    mapping: Dict[str, str] = {}
    taken: Set[str] = set()

    for section in NAMED_SECTIONS:
        for entity in model.get(section) or []:
            if not isinstance(entity, dict) or entity.get('ref') is None:
                continue
            old = str(entity['ref'])
            slug = slugify(entity.get('name', '')) or old
            new = _unique_slug(slug, taken)
            taken.add(new)
            mapping[old] = new

    for flow in model.get(SECTION_FOR_KIND['data_flow']) or []:
        if not isinstance(flow, dict) or flow.get('ref') is None:
            continue
        source = str(flow.get('source', ''))
        destination = str(flow.get('destination', ''))
        new = compose_ref(mapping.get(source, source), mapping.get(destination, destination),
                          flow.get('direction'))
        new = _unique_slug(new, taken)
        taken.add(new)
        mapping[str(flow['ref'])] = new

    return mapping


def regenerate_all_refs(doc: str) -> str:
    """
    Re-derives every item ref from its name and rewrites all references in
    a single pass, so a new ref that equals some other old ref is never
    renamed a second time.
    """
    try:
        model = DocumentExporter().load(doc)
    except YAMLError as e:
        raise InvalidEditError(f"Failed to regenerate refs: {e}") from e
    if not isinstance(model, dict):
        raise InvalidEditError("Failed to regenerate refs: document root is not a mapping")

    mapping = {old: new for old, new in build_ref_map(model).items() if old != new}
    if not mapping:
        return doc

    array_fields: List[str] = []
    for options in RENAME_PROFILES.values():
        array_fields.extend(f for f in options.array_fields if f not in array_fields)

    logger.info("Regenerating %d refs", len(mapping))
    updated = rewrite_refs(doc, mapping, array_fields, ('source', 'destination'))
    return normalize_whitespace(updated)
