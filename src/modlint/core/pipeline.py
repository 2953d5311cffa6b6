#!/usr/bin/env python3
"""
MODLINT MATERIALIZATION PIPELINE - Module Builder
-------------------------------------------------
Coordinates the construction of one module in a fixed order:

    descriptor -> chart load -> schemas -> values -> render -> split/dedup -> store

Any phase may raise a ModuleBuildError. The pipeline never catches those:
a failed module is simply never turned into a Module, so a half-filled
object store cannot reach the lint rules.

Author: ModLint Team
Date: 2026-01-16
"""

import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from modlint.chart.loader import ChartLoader
from modlint.core.context import BuildContext
from modlint.core.errors import ModuleBuildError
from modlint.core.models import ModuleDescriptor
from modlint.core.module import Module, read_module_identity
from modlint.core.values import deep_merge
from modlint.render.composer import ValueComposer, load_image_digests
from modlint.render.renderer import TemplateEngine, TemplateRenderer
from modlint.render.splitter import DocumentSplitter, RenderCache
from modlint.schema.loader import SchemaSet, load_module_schemas

logger = logging.getLogger("modlint.pipeline")


class MaterializationPipeline:
    """
    Turns module directories into Modules. One instance may build many
    modules; the render cache it holds is shared between all of them.
    """

    def __init__(self, global_schemas: Optional[SchemaSet] = None,
                 engine: Optional[TemplateEngine] = None,
                 cache: Optional[RenderCache] = None,
                 overrides: Optional[Mapping[str, Any]] = None):
        """
        Args:
            global_schemas: cluster-wide schemas; no `global` defaults without them.
            engine: template engine, `helm template` when omitted.
            cache: render dedup cache, a fresh one when omitted.
            overrides: values deep-merged over the composed Values.
        """
        self.chart_loader = ChartLoader()
        self.composer = ValueComposer(global_schemas)
        self.renderer = TemplateRenderer(engine)
        self.splitter = DocumentSplitter(cache)
        self.overrides = dict(overrides or {})

    @property
    def cache(self) -> RenderCache:
        return self.splitter.cache

    def run(self, module_path: Union[str, Path], render: bool = True) -> BuildContext:
        """
        Executes every phase and returns the filled context. With
        `render=False` it stops once the values are composed.
        """
        ctx = BuildContext(module_path=str(Path(module_path).resolve()))
        try:
            self._prepare(ctx)
            if render:
                self._materialize(ctx)
        except ModuleBuildError as e:
            # Label the failure with whatever identity is known by now.
            if e.module is None and ctx.descriptor is not None:
                e.module = ctx.descriptor.name
            e.path = e.path or ctx.module_path
            raise
        return ctx

    def _prepare(self, ctx: BuildContext):
        # --- PHASE 1: IDENTITY & CHART ---
        name, namespace = read_module_identity(ctx.module_path)
        chart = self.chart_loader.load(name, ctx.module_path)
        ctx.descriptor = ModuleDescriptor(
            name=name,
            namespace=namespace,
            path=ctx.module_path,
            chart=chart,
        )
        module = ctx.descriptor
        logger.info(f"Building module {module.name} from {module.path}")

        # --- PHASE 2: SCHEMAS ---
        ctx.schemas = load_module_schemas(module.path)

        # --- PHASE 3: VALUE COMPOSITION ---
        # A module without a values schema still renders; only the values are empty.
        digests = load_image_digests(module.path)
        ctx.render_context = self.composer.compose(module, ctx.schemas, self.overrides, digests)
        ctx.composed = ctx.render_context is not None
        if not ctx.composed:
            ctx.render_context = self.composer.context(module, deep_merge({}, self.overrides))

    def _materialize(self, ctx: BuildContext):
        module = ctx.descriptor

        # --- PHASE 4: RENDER ---
        ctx.rendered = self.renderer.render(module, ctx.render_context)

        # --- PHASE 5: SPLIT, DEDUP & INDEX ---
        ctx.ingested = self.splitter.ingest(module.name, ctx.rendered, ctx.store)

        logger.info(f"Module {module.name}: {len(ctx.store)} objects indexed")

    def build(self, module_path: Union[str, Path]) -> Module:
        ctx = self.run(module_path)
        values = ctx.render_context["Values"] if ctx.composed else None
        return Module(ctx.descriptor, ctx.store, values)
