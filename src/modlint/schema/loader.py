#!/usr/bin/env python3
"""
MODLINT SCHEMA LOADER
---------------------
Reads the `openapi/` pair (config-values.yaml + values.yaml) of a module or
of the shared global directory and turns it into SchemaNode trees.

Two source conventions are honoured before nodes are built:
  * local `$ref: "#/..."` pointers are expanded in place
  * `x-extend: {schema: config-values.yaml}` in values.yaml inherits the
    config schema's properties, definitions and required list

Author: ModLint Team
Date: 2026-01-16
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ruamel.yaml import YAML, YAMLError

from modlint.core.errors import SchemaError
from modlint.core.values import ValueKind, kind_of, to_plain
from modlint.schema.node import SchemaNode

logger = logging.getLogger("modlint.schema")

CONFIG_VALUES_FILE = "config-values.yaml"
VALUES_FILE = "values.yaml"
OPENAPI_DIR = "openapi"
GLOBAL_OVERRIDE_DIR = Path("global-hooks") / OPENAPI_DIR
EXTEND_KEY = "x-extend"

BUNDLED_GLOBAL_DIR = Path(__file__).resolve().parent / "global-openapi"


@dataclass(frozen=True)
class SchemaSet:
    """The schemas found in one openapi directory. Either may be absent."""
    config: Optional[SchemaNode] = None
    values: Optional[SchemaNode] = None

    @property
    def empty(self) -> bool:
        return self.config is None and self.values is None


def _read_document(path: Path) -> Optional[Dict[str, Any]]:
    if not path.is_file():
        logger.debug(f"Schema file not present: {path}")
        return None

    yaml = YAML(typ="safe")
    try:
        doc = to_plain(yaml.load(path.read_text(encoding="utf-8-sig")))
    except (YAMLError, OSError, UnicodeDecodeError, TypeError) as e:
        raise SchemaError(f"read {path.name}: {e}", path=str(path))

    if doc is None:
        return None
    if kind_of(doc) is not ValueKind.MAPPING:
        raise SchemaError(f"{path.name}: top level must be a mapping", path=str(path))
    return doc


def _resolve_pointer(root: Dict[str, Any], ref: str) -> Any:
    target: Any = root
    tokens = ref[2:].split("/") if ref.startswith("#/") else []
    for token in tokens:
        token = token.replace("~1", "/").replace("~0", "~")
        if kind_of(target) is ValueKind.MAPPING and token in target:
            target = target[token]
        elif kind_of(target) is ValueKind.SEQUENCE and token.isdigit() and int(token) < len(target):
            target = target[int(token)]
        else:
            raise SchemaError(f"unresolvable $ref {ref!r}")
    return target


def expand_refs(node: Any, root: Dict[str, Any], stack: Optional[List[str]] = None) -> Any:
    """Returns a copy of `node` with every local $ref replaced by its target."""
    stack = stack or []
    kind = kind_of(node)

    if kind is ValueKind.MAPPING:
        ref = node.get("$ref")
        if isinstance(ref, str):
            if not ref.startswith("#"):
                raise SchemaError(f"remote $ref {ref!r} is not supported")
            if ref in stack:
                raise SchemaError(f"circular $ref {ref!r}")
            return expand_refs(_resolve_pointer(root, ref), root, stack + [ref])
        return {k: expand_refs(v, root, stack) for k, v in node.items()}

    if kind is ValueKind.SEQUENCE:
        return [expand_refs(v, root, stack) for v in node]

    return node


def apply_extend(child: Dict[str, Any], parent: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if parent is None or EXTEND_KEY not in child:
        return child

    extended = dict(child)
    extended["properties"] = {**(parent.get("properties") or {}), **(child.get("properties") or {})}
    extended["definitions"] = {**(parent.get("definitions") or {}), **(child.get("definitions") or {})}

    required = list(parent.get("required") or [])
    required += [r for r in child.get("required") or [] if r not in required]
    if required:
        extended["required"] = required
    return extended


def _build(doc: Dict[str, Any], name: str) -> SchemaNode:
    try:
        return SchemaNode.from_mapping(expand_refs(doc, doc))
    except ValueError as e:
        raise SchemaError(f"load '{name}' schema: {e}")


def load_openapi_dir(directory: Union[str, Path]) -> SchemaSet:
    directory = Path(directory)
    config_doc = _read_document(directory / CONFIG_VALUES_FILE)
    values_doc = _read_document(directory / VALUES_FILE)

    config = _build(config_doc, "config") if config_doc is not None else None
    values = None
    if values_doc is not None:
        values = _build(apply_extend(values_doc, config_doc), "values")

    return SchemaSet(config=config, values=values)


def load_module_schemas(module_path: Union[str, Path]) -> SchemaSet:
    return load_openapi_dir(Path(module_path) / OPENAPI_DIR)


def load_global_schemas(root: Optional[Union[str, Path]] = None) -> SchemaSet:
    """
    Loads the cluster-wide schema. A `global-hooks/openapi` directory under
    `root` replaces the bundled copy when both of its files exist.
    """
    if root is not None:
        override = Path(root) / GLOBAL_OVERRIDE_DIR
        if (override / CONFIG_VALUES_FILE).is_file() and (override / VALUES_FILE).is_file():
            logger.info(f"Using global schema from {override}")
            return load_openapi_dir(override)
        logger.debug(f"No usable global schema under {override}, using bundled copy")

    schemas = load_openapi_dir(BUNDLED_GLOBAL_DIR)
    if schemas.values is None:
        raise SchemaError("cannot find global values schema")
    return schemas
