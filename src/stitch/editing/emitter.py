#!/usr/bin/env python3
"""
STITCH EMITTER - Value Formatting
---------------------------------
Turns Python values into the exact text written back into a document.
The same rules apply wherever a value is written (field updates, new items,
renamed refs), so a value always looks the same regardless of which
operation produced it.

Author: Stitch Team
Date: 2026-10-18
"""

import math
import re
from typing import Any, Dict, List, Optional

from stitch.core.errors import UnsupportedValueError

RESERVED_WORDS = frozenset(['true', 'false', 'null', 'yes', 'no'])
SPECIAL_START = re.compile(r'^[{\[\]&*!|>\'"%@`]')
BLOCK_STEP = '  '


def needs_quotes(value: str) -> bool:
    return (
        ':' in value
        or '#' in value
        or value.startswith(' ')
        or value.endswith(' ')
        or bool(SPECIAL_START.match(value))
        or value == ''
        or value in RESERVED_WORDS
    )


def yaml_quote(value: str, indent: str = '') -> str:
    """
    Quotes a string value when YAML would otherwise misread it.
    Multi-line strings are written in pipe style, each line indented two
    spaces deeper than `indent`.
    """
    if '\n' in value:
        block_indent = indent + BLOCK_STEP
        body = [block_indent + line if line else '' for line in value.split('\n')]
        return '|\n' + '\n'.join(body)

    if needs_quotes(value):
        escaped = value.replace('\\', '\\\\').replace('"', '\\"')
        return f'"{escaped}"'
    return value


def round_half_up(number: float) -> int:
    """2.5 -> 3, -2.5 -> -2, matching the rounding editors expect."""
    return int(math.floor(number + 0.5))


def is_empty_value(value: Any) -> bool:
    """None and empty lists mean 'no field'."""
    return value is None or (isinstance(value, (list, tuple)) and len(value) == 0)


def format_scalar(value: Any, indent: str = '') -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (int, float)):
        return str(round_half_up(value))
    if isinstance(value, str):
        return yaml_quote(value, indent)
    raise UnsupportedValueError(value)


def format_value(value: Any, indent: str = '') -> str:
    """Formats a scalar, number or list. Lists are always written inline."""
    if isinstance(value, (list, tuple)):
        if not value:
            return '[]'
        return '[' + ', '.join(format_scalar(v) for v in value) + ']'
    return format_scalar(value, indent)


def format_field_line(name: str, value: Any, indent: str) -> str:
    """`{indent}{name}: {value}`; a pipe block comes back with its lines joined by LF."""
    return f"{indent}{name}: {format_value(value, indent)}"


def format_field_lines(name: str, value: Any, indent: str) -> List[str]:
    return format_field_line(name, value, indent).split('\n')


def format_item(fields: Dict[str, Any], base_indent: int, ref_field: str = 'ref') -> List[str]:
    """
    Formats a mapping as a list item. The first emitted field carries the
    `- ` dash; `ref` is always emitted first so the item starts with its
    `- ref:` line. None values and empty lists are omitted.
    """
    ordered = list(fields.items())
    if ref_field in fields:
        ordered.sort(key=lambda kv: kv[0] != ref_field)

    dash_indent = ' ' * base_indent
    field_indent = dash_indent + '  '
    lines: List[str] = []
    for name, value in ordered:
        if is_empty_value(value):
            continue
        prefix = dash_indent + '- ' if not lines else field_indent
        rendered = format_field_line(name, value, field_indent)
        # Re-prefix the first line only; pipe content already carries its indent
        head, sep, tail = rendered.partition('\n')
        lines.append(prefix + head[len(field_indent):])
        if sep:
            lines.extend(tail.split('\n'))
    return lines


def describe(value: Optional[Any]) -> str:
    """Short repr used in log lines."""
    text = repr(value)
    return text if len(text) <= 60 else text[:57] + '...'
