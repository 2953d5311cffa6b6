#!/usr/bin/env python3
"""
MODLINT ENGINE - Run Orchestrator
---------------------------------
Builds every requested module through one MaterializationPipeline. A
module that fails is recorded and dropped; the others carry on. The
render dedup cache lives exactly as long as the engine that owns it.

Author: ModLint Team
Date: 2026-01-16
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from modlint.core.errors import ModuleBuildError
from modlint.core.module import Module
from modlint.core.pipeline import MaterializationPipeline
from modlint.core.settings import LintSettings
from modlint.render.composer import load_values_file
from modlint.render.renderer import HelmTemplateEngine, TemplateEngine
from modlint.render.splitter import RenderCache
from modlint.schema.loader import load_global_schemas

logger = logging.getLogger("modlint.engine")


@dataclass
class ModuleErrorRecord:
    """A module that was dropped, and why."""
    name: str       # may be empty when the failure came before identity was known
    path: str
    message: str    # carries the category prefix, e.g. "helm chart render: ..."
    category: str = ""


@dataclass
class RunResult:
    modules: List[Module] = field(default_factory=list)
    errors: List[ModuleErrorRecord] = field(default_factory=list)
    duration: float = 0.0

    @property
    def failed(self) -> bool:
        return bool(self.errors)


class MaterializationEngine:
    """
    Entry point for library callers and the CLI alike.
    The global schema and the values override file are read once, up front;
    a problem with either is fatal for the whole run.
    """

    def __init__(self, settings: Optional[LintSettings] = None,
                 engine: Optional[TemplateEngine] = None):
        self.settings = settings or LintSettings()
        self.cache = RenderCache()

        global_schemas = load_global_schemas(self.settings.global_root)
        overrides = load_values_file(self.settings.values_file) if self.settings.values_file else None

        self.pipeline = MaterializationPipeline(
            global_schemas=global_schemas,
            engine=engine or HelmTemplateEngine(self.settings.helm_bin, self.settings.helm_timeout),
            cache=self.cache,
            overrides=overrides,
        )

    def build_module(self, module_path: Union[str, Path]) -> Union[Module, ModuleErrorRecord]:
        try:
            return self.pipeline.build(module_path)
        except ModuleBuildError as e:
            record = ModuleErrorRecord(
                name=e.module or "",
                path=e.path or str(module_path),
                message=str(e),
                category=e.prefix,
            )
            logger.error(f"Module {record.name or record.path} dropped: {record.message}")
            return record

    def compose_values(self, module_path: Union[str, Path]) -> Optional[Dict[str, Any]]:
        """The Values a module would be rendered with; None without a values schema."""
        ctx = self.pipeline.run(module_path, render=False)
        return ctx.render_context["Values"] if ctx.composed else None

    def build_all(self, module_paths: Sequence[Union[str, Path]],
                  progress_callback: Optional[Callable[[int, int], None]] = None) -> RunResult:
        """
        Builds the modules in the given order. With more than one worker the
        builds overlap, but results still come back in input order.
        """
        started = time.time()
        result = RunResult()
        total = len(module_paths)

        if self.settings.workers > 1 and total > 1:
            with ThreadPoolExecutor(max_workers=self.settings.workers) as pool:
                outcomes = pool.map(self.build_module, module_paths)
                built = self._collect(outcomes, result, total, progress_callback)
        else:
            built = self._collect(map(self.build_module, module_paths), result, total, progress_callback)

        result.duration = time.time() - started
        logger.info(f"Built {built}/{total} modules in {result.duration:.2f}s")
        return result

    @staticmethod
    def _collect(outcomes, result: RunResult, total: int,
                 progress_callback: Optional[Callable[[int, int], None]]) -> int:
        processed = 0
        for outcome in outcomes:
            if isinstance(outcome, Module):
                result.modules.append(outcome)
            else:
                result.errors.append(outcome)
            processed += 1
            if progress_callback:
                progress_callback(processed, total)
        return len(result.modules)

    def generate_summary(self, result: RunResult) -> Dict[str, Any]:
        total = len(result.modules) + len(result.errors)
        if not total:
            return {"total_modules": 0, "built": 0, "failed": 0, "objects": 0, "success_rate": 0}

        by_category: Dict[str, int] = {}
        for record in result.errors:
            key = record.category or "other"
            by_category[key] = by_category.get(key, 0) + 1

        return {
            "total_modules": total,
            "built": len(result.modules),
            "failed": len(result.errors),
            "objects": sum(len(m.get_object_store()) for m in result.modules),
            "success_rate": len(result.modules) / total,
            "failures_by_category": by_category,
            "render_cache_entries": len(self.cache),
            "duration_seconds": round(result.duration, 3),
            "summary_timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
        }
