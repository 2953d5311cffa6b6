#!/usr/bin/env python3
"""
MODLINT SCHEMA VALUE SYNTHESIZER
--------------------------------
Walks an OpenAPI values schema and produces one representative values
document for template rendering. Each property is resolved by the first
matching rule, in this order:

  1. x-examples       first element (list form, no key when empty) or the mapping itself
  2. enum             the default when it is one of the members, else enum[0]
  3. object type      skipped without a default, otherwise its properties
  4. default          used verbatim
  5. array type       the item schema's default, assigned unwrapped
  6. allOf            all branches merged over the node, then its properties
  7. oneOf            variant 0 merged over the node
  8. anyOf            variant 0 merged over the node
  9. anything else    no key

The walk is a pure function of the schema: nodes are immutable and every
emitted value is a fresh copy. A property that cannot be synthesized aborts
the whole document with CompositionError.

Author: ModLint Team
Date: 2026-01-16
"""

import logging
from typing import Any, Dict, Mapping, Tuple, Union

from modlint.core.errors import CompositionError
from modlint.core.values import ValueKind, deep_copy, kind_of
from modlint.schema.node import EXAMPLES_KEY, SchemaNode, merge_schemas

logger = logging.getLogger("modlint.synthesizer")

OBJECT_TYPE = "object"
ARRAY_TYPE = "array"

_SKIP = object()


def _is_member(value: Any, options: Tuple[Any, ...]) -> bool:
    # True == 1 in Python, but a boolean is never an integer enum member.
    kind = kind_of(value)
    return any(kind_of(option) is kind and option == value for option in options)


class SchemaValueSynthesizer:
    """Stateless; one instance can serve any number of schemas and threads."""

    def synthesize(self, schema: Union[SchemaNode, Mapping[str, Any]]) -> Dict[str, Any]:
        if not isinstance(schema, SchemaNode):
            try:
                schema = SchemaNode.from_mapping(schema)
            except ValueError as e:
                raise CompositionError(str(e))
        return self._properties(schema, ())

    def _properties(self, node: SchemaNode, path: Tuple[str, ...]) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for key, prop in node.properties.items():
            value = self._property(key, prop, path + (key,))
            if value is not _SKIP:
                result[key] = value
        return result

    def _property(self, key: str, prop: SchemaNode, path: Tuple[str, ...]) -> Any:
        if prop.examples is not None:
            return self._example(prop.examples, path)

        if prop.enum:
            if prop.has_default and _is_member(prop.default, prop.enum):
                return deep_copy(prop.default)
            return deep_copy(prop.enum[0])

        if prop.has_type(OBJECT_TYPE):
            if not prop.has_default:
                return _SKIP
            return self._properties(prop, path)

        if prop.has_default:
            return deep_copy(prop.default)

        if prop.has_type(ARRAY_TYPE) and prop.items is not None:
            # The item default stands in for the whole array, unwrapped.
            if prop.items.has_default:
                return deep_copy(prop.items.default)
            return _SKIP

        if prop.all_of:
            return self._properties(merge_schemas(prop, prop.all_of), path)

        if prop.one_of:
            return self._properties(merge_schemas(prop, prop.one_of[:1]), path)

        if prop.any_of:
            return self._properties(merge_schemas(prop, prop.any_of[:1]), path)

        return _SKIP

    def _example(self, examples: Any, path: Tuple[str, ...]) -> Any:
        where = ".".join(path)
        try:
            kind = kind_of(examples)
        except TypeError as e:
            raise CompositionError(f"{where}: malformed {EXAMPLES_KEY}: {e}")

        if kind is ValueKind.SEQUENCE:
            if not examples:
                return _SKIP
            return deep_copy(examples[0])
        if kind is ValueKind.MAPPING:
            return deep_copy(examples)

        logger.debug(f"Rejecting {EXAMPLES_KEY} of kind {kind.value} at {where}")
        raise CompositionError(f"{where}: {EXAMPLES_KEY} must be a list or a mapping, got {kind.value}")
