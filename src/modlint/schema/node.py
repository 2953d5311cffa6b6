#!/usr/bin/env python3
"""
MODLINT SCHEMA NODE
-------------------
A read-only view over one OpenAPI schema object. Nodes are built once from
the loaded YAML tree and never change afterwards; combinator handling
produces new nodes instead of patching existing ones, so a caller's schema
tree can be shared between modules and threads.

Author: ModLint Team
Date: 2026-01-16
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Tuple

from modlint.core.values import ValueKind, deep_copy, kind_of

EXAMPLES_KEY = "x-examples"

_EMPTY: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True)
class SchemaNode:
    types: Tuple[str, ...] = ()
    properties: Mapping[str, "SchemaNode"] = field(default_factory=lambda: _EMPTY)
    enum: Tuple[Any, ...] = ()
    # None doubles as "absent", matching how JSON null decodes
    default: Any = None
    items: Optional["SchemaNode"] = None
    all_of: Tuple["SchemaNode", ...] = ()
    one_of: Tuple["SchemaNode", ...] = ()
    any_of: Tuple["SchemaNode", ...] = ()
    extensions: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)

    def has_type(self, name: str) -> bool:
        return name in self.types

    @property
    def has_default(self) -> bool:
        return self.default is not None

    @property
    def examples(self) -> Any:
        return self.extensions.get(EXAMPLES_KEY)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], path: str = "#") -> "SchemaNode":
        """
        Builds a node tree from a plain mapping. The input is copied, so
        later mutation of `raw` cannot leak into the node.
        Raises ValueError on structurally impossible schemas.
        """
        if kind_of(raw) is not ValueKind.MAPPING:
            raise ValueError(f"{path}: schema must be a mapping, got {kind_of(raw).value}")

        raw_type = raw.get("type")
        if raw_type is None:
            types: Tuple[str, ...] = ()
        elif isinstance(raw_type, str):
            types = (raw_type,)
        elif kind_of(raw_type) is ValueKind.SEQUENCE:
            types = tuple(str(t) for t in raw_type)
        else:
            raise ValueError(f"{path}/type: expected string or list")

        raw_props = raw.get("properties") or {}
        if kind_of(raw_props) is not ValueKind.MAPPING:
            raise ValueError(f"{path}/properties: expected mapping")
        properties = {
            str(name): cls.from_mapping(sub, f"{path}/properties/{name}")
            for name, sub in raw_props.items()
        }

        raw_enum = raw.get("enum") or ()
        if kind_of(raw_enum) is not ValueKind.SEQUENCE:
            raise ValueError(f"{path}/enum: expected list")

        # Tuple-form items (a list of schemas) never drives synthesis.
        items = None
        raw_items = raw.get("items")
        if raw_items is not None and kind_of(raw_items) is ValueKind.MAPPING:
            items = cls.from_mapping(raw_items, f"{path}/items")

        extensions = {k: deep_copy(v) for k, v in raw.items() if str(k).startswith("x-")}

        return cls(
            types=types,
            properties=MappingProxyType(properties),
            enum=tuple(deep_copy(v) for v in raw_enum),
            default=deep_copy(raw.get("default")),
            items=items,
            all_of=cls._branches(raw, "allOf", path),
            one_of=cls._branches(raw, "oneOf", path),
            any_of=cls._branches(raw, "anyOf", path),
            extensions=MappingProxyType(extensions),
        )

    @classmethod
    def _branches(cls, raw: Mapping[str, Any], key: str, path: str) -> Tuple["SchemaNode", ...]:
        branches = raw.get(key) or ()
        if kind_of(branches) is not ValueKind.SEQUENCE:
            raise ValueError(f"{path}/{key}: expected list")
        return tuple(cls.from_mapping(b, f"{path}/{key}/{i}") for i, b in enumerate(branches))


def merge_schemas(root: SchemaNode, branches: Iterable[SchemaNode]) -> SchemaNode:
    """
    Returns a copy of `root` with its combinators cleared and the properties
    of every branch laid over its own. On key collisions the later branch
    wins. `root` and the branches are left untouched.
    """
    merged = dict(root.properties)
    for branch in branches:
        merged.update(branch.properties)
    return replace(
        root,
        properties=MappingProxyType(merged),
        all_of=(),
        one_of=(),
        any_of=(),
    )
