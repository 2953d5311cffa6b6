#!/usr/bin/env python3
"""
MODLINT CORE MODELS
-------------------
Defines the fundamental data structures shared across the pipeline.
These models represent a module before anything has been rendered.

Author: ModLint Team
Date: 2026-01-16
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ChartFile:
    """
    One file of a template bundle.
    `name` is chart-relative and always uses forward slashes.
    """
    name: str
    data: bytes

    @property
    def is_template(self) -> bool:
        return self.name.startswith("templates/")


@dataclass
class Chart:
    """
    The template bundle built from a module directory.

    Every file the ignore rules let through lands in `files`; the helpers
    below slice it the way the renderer and the lint rules need.
    """
    metadata: Dict[str, Any]
    files: List[ChartFile] = field(default_factory=list)
    values: Dict[str, Any] = field(default_factory=dict)  # the chart's own values.yaml

    @property
    def name(self) -> str:
        return str(self.metadata.get("name") or "")

    @property
    def version(self) -> str:
        return str(self.metadata.get("version", ""))

    @property
    def templates(self) -> List[ChartFile]:
        return [f for f in self.files if f.is_template]

    def get_file(self, name: str) -> Optional[ChartFile]:
        for f in self.files:
            if f.name == name:
                return f
        return None


@dataclass(frozen=True)
class ModuleDescriptor:
    """Identity of a module as discovered on disk. Never mutated after creation."""
    name: str                 # from module.yaml, falling back to Chart.yaml
    namespace: str            # may be empty
    path: str                 # absolute
    chart: Chart
