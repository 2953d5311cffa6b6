#!/usr/bin/env python3
"""
MODLINT VALUE COMPOSER
----------------------
Assembles the helm-style render context for one module:

    {Chart, Capabilities, Release, Values}

`Values` holds the module's synthesized defaults under its camel-cased
name and the cluster-wide defaults under `global`. Templates dereference
`global.modulesImages.digests` unconditionally, so placeholder digests are
always injected there.

Author: ModLint Team
Date: 2026-01-16
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ruamel.yaml import YAML, YAMLError

from modlint.core.errors import CompositionError
from modlint.core.models import ModuleDescriptor
from modlint.core.values import ValueKind, deep_copy, deep_merge, kind_of, to_plain
from modlint.render.camel import to_lower_camel
from modlint.schema.loader import SchemaSet
from modlint.schema.synthesizer import SchemaValueSynthesizer

logger = logging.getLogger("modlint.composer")

DIGESTS_FILE = "images_digests.json"
PLACEHOLDER_DIGEST = "sha256:d478cd82cb6a604e3a27383daf93637326d402570b2f3bec835d1f84c9ed0acc"
PLACEHOLDER_REGISTRY = "registry.example.com/deckhouse"
VPA_API_VERSION = "autoscaling.k8s.io/v1/VerticalPodAutoscaler"

DEFAULT_DIGESTS: Dict[str, Any] = {
    "common": {
        "init": PLACEHOLDER_DIGEST,
        "container": PLACEHOLDER_DIGEST,
    },
    "prompp": {
        "prompp": PLACEHOLDER_DIGEST,
    },
    "module": {
        "container": PLACEHOLDER_DIGEST,
    },
    "controlPlaneManager": {
        "kubeApiserver": PLACEHOLDER_DIGEST,
        "kubeControllerManager": PLACEHOLDER_DIGEST,
        "kubeScheduler": PLACEHOLDER_DIGEST,
    },
}

DEFAULT_API_VERSIONS = [
    "v1",
    "admissionregistration.k8s.io/v1",
    "apiextensions.k8s.io/v1",
    "apps/v1",
    "authentication.k8s.io/v1",
    "authorization.k8s.io/v1",
    "autoscaling/v1",
    "autoscaling/v2",
    "batch/v1",
    "certificates.k8s.io/v1",
    "coordination.k8s.io/v1",
    "discovery.k8s.io/v1",
    "events.k8s.io/v1",
    "networking.k8s.io/v1",
    "node.k8s.io/v1",
    "policy/v1",
    "rbac.authorization.k8s.io/v1",
    "scheduling.k8s.io/v1",
    "storage.k8s.io/v1",
]

KUBE_VERSION = {"Version": "v1.30.0", "Major": "1", "Minor": "30"}


def default_capabilities() -> Dict[str, Any]:
    versions = list(DEFAULT_API_VERSIONS)
    if VPA_API_VERSION not in versions:
        versions.append(VPA_API_VERSION)
    return {"APIVersions": versions, "KubeVersion": dict(KUBE_VERSION)}


def load_image_digests(module_path: str) -> Dict[str, Any]:
    """
    Reads `images_digests.json` from the directory holding the module.
    Falls back to the built-in placeholders when it is absent or empty.
    """
    candidate = Path(module_path).parent / DIGESTS_FILE
    if not candidate.is_file() or candidate.stat().st_size == 0:
        return deep_copy(DEFAULT_DIGESTS)

    try:
        with open(candidate, "r", encoding="utf-8") as f:
            digests = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise CompositionError(f"read {DIGESTS_FILE}: {e}", path=str(candidate))

    if kind_of(digests) is not ValueKind.MAPPING:
        raise CompositionError(f"{DIGESTS_FILE} must hold a mapping", path=str(candidate))
    logger.debug(f"Using image digests from {candidate}")
    return digests


def load_values_file(path: str) -> Dict[str, Any]:
    """Reads a user values file for deep-merging over the composed Values."""
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            doc = to_plain(YAML(typ="safe").load(f))
    except (OSError, UnicodeDecodeError, YAMLError, TypeError) as e:
        raise CompositionError(f"failed to override values from file: {e}", path=path)

    if doc is None:
        return {}
    if kind_of(doc) is not ValueKind.MAPPING:
        raise CompositionError("failed to override values from file: top level must be a mapping", path=path)
    return doc


class ValueComposer:
    """
    Merges module and global synthesized values into a render context.
    A module without a values schema yields None; reporting that is the
    job of a dedicated lint rule, not of construction.
    """

    def __init__(self, global_schemas: Optional[SchemaSet] = None,
                 synthesizer: Optional[SchemaValueSynthesizer] = None):
        self.global_schemas = global_schemas
        self.synthesizer = synthesizer or SchemaValueSynthesizer()

    def compose(self, module: ModuleDescriptor, module_schemas: SchemaSet,
                overrides: Optional[Mapping[str, Any]] = None,
                digests: Optional[Mapping[str, Any]] = None) -> Optional[Dict[str, Any]]:
        if module_schemas.values is None:
            logger.debug(f"{module.name}: no values schema, nothing to compose")
            return None

        values_key = to_lower_camel(module.name)

        try:
            module_values = self.synthesizer.synthesize(module_schemas.values)
            global_values: Dict[str, Any] = {}
            if self.global_schemas is not None and self.global_schemas.values is not None:
                global_values = self.synthesizer.synthesize(self.global_schemas.values)
        except CompositionError as e:
            e.module, e.path = module.name, module.path
            raise

        values = {values_key: module_values, "global": global_values}
        values = self.apply_digests(values, values_key, digests if digests is not None else DEFAULT_DIGESTS)

        if overrides:
            values = deep_merge(values, overrides)

        return self.context(module, values)

    @staticmethod
    def context(module: ModuleDescriptor, values: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "Chart": deep_copy(module.chart.metadata),
            "Capabilities": default_capabilities(),
            "Release": {
                "Name": module.name,
                "Namespace": module.namespace,
                "IsUpgrade": True,
                "IsInstall": True,
                "Revision": 0,
                "Service": "Helm",
            },
            "Values": values,
        }

    @staticmethod
    def apply_digests(values: Dict[str, Any], values_key: str,
                      digests: Mapping[str, Any]) -> Dict[str, Any]:
        digests = deep_copy(dict(digests))
        digests.setdefault(values_key, {"container": PLACEHOLDER_DIGEST})

        injected = {
            "global": {
                "modulesImages": {
                    "digests": digests,
                    "registry": {"base": PLACEHOLDER_REGISTRY},
                },
            },
        }
        return deep_merge(values, injected)
