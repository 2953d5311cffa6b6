#!/usr/bin/env python3
"""
MODLINT BUILD CONTEXT
---------------------
The working record for one module while it moves through the
materialization pipeline. Each phase fills in its own fields.

Author: ModLint Team
Date: 2026-01-16
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from modlint.core.models import ModuleDescriptor
from modlint.schema.loader import SchemaSet
from modlint.storage.store import ObjectStore


@dataclass
class BuildContext:
    """
    Never handed to lint rules. Only the Module built from a completed
    context is, and only once every phase has succeeded.
    """
    module_path: str                                       # absolute module directory
    descriptor: Optional[ModuleDescriptor] = None          # name, namespace, chart
    schemas: SchemaSet = field(default_factory=SchemaSet)  # module openapi schemas
    render_context: Optional[Dict[str, Any]] = None        # {Chart, Capabilities, Release, Values}
    composed: bool = False                                 # False when the module has no values schema
    rendered: Dict[str, str] = field(default_factory=dict) # template path -> rendered text
    store: ObjectStore = field(default_factory=ObjectStore)
    ingested: bool = False                                 # False when the dedup cache skipped the render
