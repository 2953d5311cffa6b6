#!/usr/bin/env python3
"""
MODLINT KUBERNETES VIEWS
------------------------
Typed, read-only pydantic models of the pod-level fields lint rules care
about. Field names are snake_case and read their camelCase wire names
through aliases. Validation is strict about types and ignores unknown
fields, the same contract the apiserver's unstructured converter offers.

Author: ModLint Team
Date: 2026-01-16
"""

from typing import Annotated, Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from modlint.core.errors import ConversionError
from modlint.core.values import deep_copy


def _quantity(value: Any) -> Any:
    # `memory: 128` is as valid as `memory: "128"`.
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


Quantity = Annotated[str, BeforeValidator(_quantity)]


class KubeModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        strict=True,
        frozen=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # An explicit null reads as an absent field.
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class SeccompProfile(KubeModel):
    type: Optional[str] = None
    localhost_profile: Optional[str] = None


class Capabilities(KubeModel):
    add: List[str] = []
    drop: List[str] = []


class SecurityContext(KubeModel):
    privileged: Optional[bool] = None
    allow_privilege_escalation: Optional[bool] = None
    read_only_root_filesystem: Optional[bool] = None
    run_as_non_root: Optional[bool] = None
    run_as_user: Optional[int] = None
    run_as_group: Optional[int] = None
    capabilities: Optional[Capabilities] = None
    seccomp_profile: Optional[SeccompProfile] = None


class PodSecurityContext(KubeModel):
    run_as_non_root: Optional[bool] = None
    run_as_user: Optional[int] = None
    run_as_group: Optional[int] = None
    fs_group: Optional[int] = None
    supplemental_groups: List[int] = []
    seccomp_profile: Optional[SeccompProfile] = None


class ContainerPort(KubeModel):
    container_port: Optional[int] = None
    host_port: Optional[int] = None
    name: Optional[str] = None
    protocol: Optional[str] = None


class EnvVar(KubeModel):
    name: str = ""
    value: Optional[str] = None
    value_from: Optional[Dict[str, Any]] = None


class VolumeMount(KubeModel):
    name: str = ""
    mount_path: str = ""
    read_only: Optional[bool] = None


class ResourceRequirements(KubeModel):
    limits: Dict[str, Quantity] = {}
    requests: Dict[str, Quantity] = {}


class Container(KubeModel):
    name: str = ""
    image: Optional[str] = None
    image_pull_policy: Optional[str] = None
    command: List[str] = []
    args: List[str] = []
    env: List[EnvVar] = []
    ports: List[ContainerPort] = []
    volume_mounts: List[VolumeMount] = []
    resources: ResourceRequirements = ResourceRequirements()
    security_context: Optional[SecurityContext] = None
    liveness_probe: Optional[Dict[str, Any]] = None
    readiness_probe: Optional[Dict[str, Any]] = None


class PodSpec(KubeModel):
    containers: List[Container] = []
    init_containers: List[Container] = []
    security_context: Optional[PodSecurityContext] = None
    host_network: Optional[bool] = None


def convert_pod_spec(raw: Mapping[str, Any], kind: str) -> PodSpec:
    """Validates a (possibly frozen) pod spec; any mismatch becomes ConversionError."""
    try:
        return PodSpec.model_validate(deep_copy(raw))
    except ValidationError as e:
        raise ConversionError(f"convert {kind} failed: {e}") from e
