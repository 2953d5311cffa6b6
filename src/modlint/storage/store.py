#!/usr/bin/env python3
"""
MODLINT OBJECT STORE - Rendered Object Registry
-----------------------------------------------
Every document a module renders ends up here, keyed by its identity
triple {Kind, Name, Namespace}. Lint rules read from the store; nothing
writes to it once the module that owns it has been built.

Author: ModLint Team
Date: 2026-01-16
"""

import hashlib
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional

from modlint.core.errors import ConversionError, IndexConflictError
from modlint.core.values import ValueKind, deep_copy, freeze, kind_of
from modlint.storage.kube import Container, PodSecurityContext, PodSpec, convert_pod_spec

# Where each workload kind keeps its pod spec.
POD_SPEC_PATHS = {
    "Pod": ("spec",),
    "Deployment": ("spec", "template", "spec"),
    "DaemonSet": ("spec", "template", "spec"),
    "StatefulSet": ("spec", "template", "spec"),
    "ReplicaSet": ("spec", "template", "spec"),
    "Job": ("spec", "template", "spec"),
    "CronJob": ("spec", "jobTemplate", "spec", "template", "spec"),
}


@dataclass(frozen=True)
class ResourceIndex:
    kind: str
    name: str
    namespace: str = ""

    def as_string(self) -> str:
        if self.namespace:
            return f"{self.namespace}/{self.kind}/{self.name}"
        return f"{self.kind}/{self.name}"


def _metadata_field(content: Mapping[str, Any], key: str) -> str:
    metadata = content.get("metadata")
    if kind_of(metadata) is not ValueKind.MAPPING:
        return ""
    value = metadata.get(key)
    return value if isinstance(value, str) else ""


class StoreObject:
    """
    One rendered document. `content` is a frozen view of the parsed
    mapping; `unstructured()` hands out a mutable copy when a rule needs one.
    """

    __slots__ = ("path", "content", "raw", "hash")

    def __init__(self, path: str, content: Mapping[str, Any], raw: bytes):
        self.path = path
        self.content = freeze(content)
        self.raw = raw
        self.hash = hashlib.sha256(raw).hexdigest()

    def __repr__(self) -> str:
        return f"StoreObject({self.identity()!r}, path={self.path!r})"

    def get_kind(self) -> str:
        kind = self.content.get("kind")
        return kind if isinstance(kind, str) else ""

    def get_name(self) -> str:
        return _metadata_field(self.content, "name")

    def get_namespace(self) -> str:
        return _metadata_field(self.content, "namespace")

    def index(self) -> ResourceIndex:
        return ResourceIndex(kind=self.get_kind(), name=self.get_name(), namespace=self.get_namespace())

    def identity(self) -> str:
        """`Kind/Namespace/Name`, or `Kind/Name` for cluster-scoped objects."""
        if self.get_namespace():
            return f"{self.get_kind()}/{self.get_namespace()}/{self.get_name()}"
        return f"{self.get_kind()}/{self.get_name()}"

    def short_path(self) -> str:
        """Template path without the leading chart directory."""
        parts = self.path.split("/")
        return "/".join(parts[1:])

    def unstructured(self) -> Dict[str, Any]:
        return deep_copy(self.content)

    def _pod_spec(self) -> Optional[Mapping[str, Any]]:
        kind = self.get_kind()
        path = POD_SPEC_PATHS.get(kind)
        if path is None:
            return None

        node: Any = self.content
        walked: List[str] = []
        for key in path:
            walked.append(key)
            node = node.get(key)
            if node is None:
                return {}
            if kind_of(node) is not ValueKind.MAPPING:
                raise ConversionError(f"convert {kind} failed: {'.'.join(walked)} is not a mapping")
        return node

    def _spec(self) -> Optional[PodSpec]:
        raw = self._pod_spec()
        if raw is None:
            return None
        return convert_pod_spec(raw, self.get_kind())

    def get_containers(self) -> List[Container]:
        """Main containers of a workload; empty for kinds without a pod template."""
        spec = self._spec()
        return list(spec.containers) if spec is not None else []

    def get_init_containers(self) -> List[Container]:
        spec = self._spec()
        return list(spec.init_containers) if spec is not None else []

    def get_all_containers(self) -> List[Container]:
        spec = self._spec()
        return list(spec.init_containers) + list(spec.containers) if spec is not None else []

    def get_pod_security_context(self) -> Optional[PodSecurityContext]:
        spec = self._spec()
        return spec.security_context if spec is not None else None

    def is_host_network(self) -> bool:
        spec = self._spec()
        return spec is not None and bool(spec.host_network)


class ObjectStore:
    """
    Identity-keyed registry of rendered objects.
    A conflicting put is rejected and the object already stored stays.
    """

    def __init__(self):
        self._storage: Dict[ResourceIndex, StoreObject] = {}
        self._sealed = False

    def put(self, path: str, content: Mapping[str, Any], raw: bytes) -> StoreObject:
        if self._sealed:
            raise RuntimeError("object store is read-only once its module is built")

        obj = StoreObject(path, content, raw)
        index = obj.index()
        if index in self._storage:
            raise IndexConflictError(index.as_string(), object_path=path)

        self._storage[index] = obj
        return obj

    def seal(self):
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def exists(self, index: ResourceIndex) -> bool:
        return index in self._storage

    def get(self, index: ResourceIndex) -> Optional[StoreObject]:
        return self._storage.get(index)

    @property
    def storage(self) -> Mapping[ResourceIndex, StoreObject]:
        return MappingProxyType(self._storage)

    def __len__(self) -> int:
        return len(self._storage)

    def __iter__(self) -> Iterator[StoreObject]:
        return iter(list(self._storage.values()))
