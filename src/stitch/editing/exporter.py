#!/usr/bin/env python3
"""
STITCH EXPORTER - Bulk Model Serialization
------------------------------------------
The one path that goes through a YAML library instead of line splicing:
brand-new documents are dumped from plain Python data with ruamel.yaml,
then run through the normalizer so they follow the same blank-line layout
as edited documents. Existing documents are never re-serialized.

Author: Stitch Team
Date: 2026-10-18
"""

import io
from typing import Any, Dict, List

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap, CommentedSeq
from ruamel.yaml.scalarstring import LiteralScalarString

from stitch.editing.emitter import round_half_up
from stitch.editing.normalizer import normalize_whitespace

# Position and size fields written as whole numbers, per section
ROUNDED_FIELDS = {
    'components': ('x', 'y'),
    'boundaries': ('x', 'y', 'width', 'height'),
}


class DocumentExporter:
    """
    The Serializer: converts a threat-model dictionary into document text,
    and parses text back into plain data.
    """

    def __init__(self):
        self.yaml = YAML(typ='rt')
        # Items at indent 2, their fields at indent 4
        self.yaml.indent(mapping=2, sequence=4, offset=2)
        self.yaml.width = 4096
        self.loader = YAML(typ='safe', pure=True)
        self.preferred_order = [
            "schema_version", "name", "description", "participants",
            "components", "boundaries", "assets", "data_flows", "threats", "controls",
        ]
        self.item_order = ["ref", "name", "description"]

    def _get_sorted_map(self, data: Dict, order: List[str]) -> CommentedMap:
        """Preferred keys first; unknown keys keep their original relative position."""
        keys = list(data.keys())

        def sort_logic(key):
            if key in order:
                return order.index(key)
            return len(order) + keys.index(key)

        sorted_map = CommentedMap()
        for key in sorted(keys, key=sort_logic):
            sorted_map[key] = self._convert(data[key], key)
        return sorted_map

    def _convert(self, value: Any, section: str = '') -> Any:
        if isinstance(value, dict):
            return self._get_sorted_map(value, self.item_order)

        if isinstance(value, (list, tuple)):
            if all(not isinstance(v, (dict, list, tuple)) for v in value):
                # Scalar lists are written inline: [a, b]
                seq = CommentedSeq([self._convert(v) for v in value])
                seq.fa.set_flow_style()
                return seq
            items = []
            for item in value:
                if isinstance(item, dict):
                    item = self._round_positions(item, section)
                items.append(self._convert(item))
            return CommentedSeq(items)

        if isinstance(value, str) and '\n' in value:
            return LiteralScalarString(value)
        return value

    @staticmethod
    def _round_positions(item: Dict, section: str) -> Dict:
        rounded = dict(item)
        for name in ROUNDED_FIELDS.get(section, ()):
            if isinstance(rounded.get(name), (int, float)) and not isinstance(rounded[name], bool):
                rounded[name] = round_half_up(rounded[name])
        return rounded

    def model_to_yaml(self, model: Dict[str, Any]) -> str:
        """Dumps a whole model as a new, normalized document."""
        stream = io.StringIO()
        self.yaml.dump(self._get_sorted_map(model, self.preferred_order), stream)
        return normalize_whitespace(stream.getvalue())

    def load(self, text: str) -> Any:
        """Parses document text into plain dicts, lists and scalars."""
        return self.loader.load(text)
