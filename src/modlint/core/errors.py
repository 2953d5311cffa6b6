#!/usr/bin/env python3
"""
MODLINT ERRORS - Failure Taxonomy
---------------------------------
Every stage of module materialization raises a subclass of ModuleBuildError.
The category prefix survives into the rendered message so that reporting
code can tell schema problems from render problems without isinstance checks.

Author: ModLint Team
Date: 2026-01-16
"""

from typing import Optional


class ModuleBuildError(Exception):
    """Base class for anything that aborts the construction of one module."""

    prefix: str = ""

    def __init__(self, message: str, module: Optional[str] = None, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.module = module
        self.path = path

    def __str__(self) -> str:
        if self.prefix:
            return f"{self.prefix}: {self.message}"
        return self.message


class SchemaError(ModuleBuildError):
    """Malformed or unreadable OpenAPI schema."""
    prefix = "schemas load"


class CompositionError(ModuleBuildError):
    """Value synthesis or merge failed."""
    prefix = "generate values"


class ChartLoadError(ModuleBuildError):
    """Filesystem problems while building the template bundle."""
    prefix = "chart load"


class IrregularFileError(ChartLoadError):
    def __init__(self, name: str, **kwargs):
        super().__init__(f"cannot load irregular file {name} as it has file mode type bits set", **kwargs)
        self.file_name = name


class IgnoreRuleError(ChartLoadError):
    pass


class RenderError(ModuleBuildError):
    """The templating engine refused the chart."""
    prefix = "helm chart render"


class DocumentError(ModuleBuildError):
    """A rendered document is not a YAML mapping."""

    def __init__(self, file_path: str, reason: str, **kwargs):
        super().__init__(reason, **kwargs)
        self.file_path = file_path

    def __str__(self) -> str:
        return f'manifest "{self.file_path}" unmarshal: {self.message}'


class IndexConflictError(ModuleBuildError):
    """Two rendered objects share {Kind, Name, Namespace}."""
    prefix = "helm chart object already exists"

    def __init__(self, identity: str, object_path: Optional[str] = None, **kwargs):
        super().__init__(f'object "{identity}" already exists', **kwargs)
        self.identity = identity
        self.object_path = object_path


class ConversionError(Exception):
    """
    Raised by typed accessors when generic content does not fit the
    Kubernetes structure. Never aborts module construction.
    """
