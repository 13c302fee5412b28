#!/usr/bin/env python3
"""
STITCH VALIDATOR - The Judge
----------------------------
The final gate before an edited document is written to disk. The line
editor never parses the document; the validator does, with ruamel.yaml, and
checks the threat-model shape the editor relies on: a root mapping, the
required top-level fields, sections that are lists of mappings with unique
refs, and references that point at something that exists.

Author: Stitch Team
Date: 2026-10-18
"""

import logging
from typing import Any, Dict, List, Tuple

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

# Standardized logging for audit trails
logger = logging.getLogger("stitch.validator")

SECTIONS = ("components", "boundaries", "assets", "data_flows", "threats", "controls")

# field -> section whose refs it may name
REFERENCE_FIELDS = {
    "components": "components",
    "affected_components": "components",
    "implemented_in": "components",
    "source": "components",
    "destination": "components",
    "assets": "assets",
    "affected_assets": "assets",
    "mitigates": "threats",
    "affected_data_flows": "data_flows",
}


class DocumentValidator:
    """
    Enforces structural integrity on edited threat models.
    Provides the abort signal when an edit produced a document that no
    longer has the shape the editor and its consumers expect.
    """

    def __init__(self):
        self.yaml = YAML(typ='safe', pure=True)
        # Fields every threat model must carry
        self.required_fields = ["schema_version", "name", "components"]

    def load(self, text: str) -> Any:
        return self.yaml.load(text)

    def validate_document(self, text: str, strict: bool = False) -> Tuple[bool, str]:
        """
        The primary integrity check. Returns (valid, message); in strict mode
        dangling references fail the check instead of producing a warning.
        """
        try:
            doc = self.load(text)
        except YAMLError as e:
            return False, f"Parse Error: {e}"

        if not isinstance(doc, dict):
            return False, "Aborting: Document root is not a mapping."

        # --- TEST 1: Required top-level fields ---
        for field in self.required_fields:
            if field not in doc:
                return False, f"Validation Failed: Missing required top-level field '{field}'."

        # --- TEST 2: Section shape & ref uniqueness ---
        seen: Dict[str, str] = {}
        for section in SECTIONS:
            items = doc.get(section)
            if items is None:
                continue
            if not isinstance(items, list):
                return False, f"Logic Error: '{section}' must be a list."
            for position, item in enumerate(items):
                if not isinstance(item, dict):
                    return False, f"Logic Error: '{section}[{position}]' must be a mapping."
                if item.get("ref") in (None, ""):
                    return False, f"Structural Error: '{section}[{position}].ref' is required but missing."
                ref = str(item["ref"])
                if ref in seen:
                    return False, f"Duplicate ref '{ref}' in '{section}' (already used in '{seen[ref]}')."
                seen[ref] = section

        # --- TEST 3: Referential integrity ---
        dangling = self.find_dangling_refs(doc)
        if dangling:
            summary = ", ".join(dangling)
            if strict:
                return False, f"Strict Mode Violation: Dangling references: {summary}"
            logger.warning("Dangling references: %s", summary)
            return True, f"Warning: Dangling references: {summary}"

        return True, "Document passes structural integrity check."

    def find_dangling_refs(self, doc: Dict[str, Any]) -> List[str]:
        """`section[index].field -> ref` for every reference with no target."""
        known = {
            section: {str(item.get("ref")) for item in doc.get(section) or [] if isinstance(item, dict)}
            for section in SECTIONS
        }

        dangling = []
        for section in SECTIONS:
            for position, item in enumerate(doc.get(section) or []):
                if not isinstance(item, dict):
                    continue
                for field, target in REFERENCE_FIELDS.items():
                    value = item.get(field)
                    if value is None:
                        continue
                    values = value if isinstance(value, list) else [value]
                    for ref in values:
                        if str(ref) not in known[target]:
                            dangling.append(f"{section}[{position}].{field} -> {ref}")
        return dangling
