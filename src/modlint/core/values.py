#!/usr/bin/env python3
"""
MODLINT VALUE KINDS
-------------------
Schema defaults, examples and rendered manifests all arrive as loosely
typed YAML trees. This module classifies every node into one of six kinds
so that the rest of the pipeline dispatches on a closed set instead of
guessing with ad-hoc isinstance chains.

Author: ModLint Team
Date: 2026-01-16
"""

import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping


class ValueKind(Enum):
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


def kind_of(value: Any) -> ValueKind:
    """Classifies a plain value. Raises TypeError for anything outside the six kinds."""
    if value is None:
        return ValueKind.NULL
    # bool is a subclass of int, so it must be tested first
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (list, tuple)):
        return ValueKind.SEQUENCE
    if isinstance(value, Mapping):
        return ValueKind.MAPPING
    raise TypeError(f"unsupported value type {type(value).__name__}")


def to_plain(value: Any) -> Any:
    """
    Converts a loaded YAML tree (ruamel CommentedMap/CommentedSeq, scalar
    subclasses, timestamps) into plain dicts, lists and scalars.
    Keys are coerced to strings the same way a JSON round-trip would.
    """
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()

    kind = kind_of(value)
    if kind is ValueKind.MAPPING:
        return {str(k): to_plain(v) for k, v in value.items()}
    if kind is ValueKind.SEQUENCE:
        return [to_plain(v) for v in value]
    if kind is ValueKind.BOOL:
        return bool(value)
    if kind is ValueKind.NUMBER:
        return float(value) if isinstance(value, float) else int(value)
    if kind is ValueKind.STRING:
        return str(value)
    return None


def deep_copy(value: Any) -> Any:
    """Copies into plain dicts and lists; frozen trees thaw on the way."""
    kind = kind_of(value)
    if kind is ValueKind.MAPPING:
        return {k: deep_copy(v) for k, v in value.items()}
    if kind is ValueKind.SEQUENCE:
        return [deep_copy(v) for v in value]
    return value


def freeze(value: Any) -> Any:
    kind = kind_of(value)
    if kind is ValueKind.MAPPING:
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if kind is ValueKind.SEQUENCE:
        return tuple(freeze(v) for v in value)
    return value


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Returns a new mapping where `override` wins. Nested mappings merge
    recursively; every other kind (sequences included) is replaced whole.
    Neither input is mutated.
    """
    result = deep_copy(dict(base))
    for key, value in override.items():
        current = result.get(key)
        if kind_of(value) is ValueKind.MAPPING and kind_of(current) is ValueKind.MAPPING:
            result[key] = deep_merge(current, value)
        else:
            result[key] = deep_copy(value)
    return result
