#!/usr/bin/env python3
"""
MODLINT MODULE FACADE
---------------------
The read-only surface every lint rule works against. A Module only exists
once its pipeline run has finished; its object store is sealed by then.

Author: ModLint Team
Date: 2026-01-16
"""

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from ruamel.yaml import YAML, YAMLError

from modlint.core.errors import ChartLoadError
from modlint.core.models import Chart, ModuleDescriptor
from modlint.core.values import ValueKind, deep_copy, kind_of, to_plain
from modlint.storage.store import ObjectStore, ResourceIndex, StoreObject

logger = logging.getLogger("modlint.module")

MODULE_FILE = "module.yaml"
CHART_FILE = "Chart.yaml"
NAMESPACE_FILE = ".namespace"


def _read_yaml_mapping(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        doc = to_plain(YAML(typ="safe").load(path.read_text(encoding="utf-8-sig")))
    except (YAMLError, OSError, UnicodeDecodeError, TypeError) as e:
        raise ChartLoadError(f"parse {path.name}: {e}", path=str(path.parent))
    if doc is None:
        return {}
    if kind_of(doc) is not ValueKind.MAPPING:
        raise ChartLoadError(f"{path.name} must hold a mapping", path=str(path.parent))
    return doc


def _string_field(doc: Mapping[str, Any], key: str) -> str:
    value = doc.get(key)
    return value if isinstance(value, str) else ""


def read_module_identity(module_path: str) -> Tuple[str, str]:
    """
    Returns (name, namespace).
    The name comes from module.yaml, then Chart.yaml. The namespace comes
    from module.yaml, then the `.namespace` file; it may end up empty.
    """
    path = Path(module_path)
    module_yaml = _read_yaml_mapping(path / MODULE_FILE)
    chart_yaml = _read_yaml_mapping(path / CHART_FILE)

    name = _string_field(module_yaml, "name") or _string_field(chart_yaml, "name")

    namespace = _string_field(module_yaml, "namespace")
    if not namespace:
        namespace_file = path / NAMESPACE_FILE
        try:
            namespace = namespace_file.read_text(encoding="utf-8").rstrip(" \t\n")
        except FileNotFoundError:
            namespace = ""
        except (OSError, UnicodeDecodeError) as e:
            raise ChartLoadError(f"read {NAMESPACE_FILE}: {e}", module=name, path=module_path)

    if not namespace:
        logger.debug(f"{name or module_path}: no namespace declared")
    return name, namespace


class Module:
    """What lint rules see: identity, chart and the indexed rendered objects."""

    def __init__(self, descriptor: ModuleDescriptor, store: ObjectStore,
                 values: Optional[Dict[str, Any]] = None):
        store.seal()
        self._descriptor = descriptor
        self._store = store
        self._values = values

    def __str__(self) -> str:
        return f"{{Name: {self.get_name()}, Namespace: {self.get_namespace()}, Path: {self.get_path()}}}"

    def __repr__(self) -> str:
        return f"Module({self.get_name()!r}, objects={len(self._store)})"

    def get_name(self) -> str:
        return self._descriptor.name

    def get_namespace(self) -> str:
        return self._descriptor.namespace

    def get_path(self) -> str:
        return self._descriptor.path

    def get_chart(self) -> Chart:
        return self._descriptor.chart

    def get_metadata(self) -> Dict[str, Any]:
        return deep_copy(self._descriptor.chart.metadata)

    def get_object_store(self) -> ObjectStore:
        return self._store

    def get_storage(self) -> Mapping[ResourceIndex, StoreObject]:
        return self._store.storage

    def get_values(self) -> Optional[Dict[str, Any]]:
        """The Values the chart was rendered with, or None without a values schema."""
        if self._values is None:
            return None
        return deep_copy(self._values)
