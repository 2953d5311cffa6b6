#!/usr/bin/env python3
"""
MODLINT TEMPLATE RENDERER
-------------------------
Template execution is delegated, never reimplemented. The default engine
shells out to `helm template` on a scratch copy of the bundle and maps the
combined output back to per-template text keyed by `<chart>/<path>`.

Any callable with the TemplateEngine signature can stand in for helm,
which is how the test-suite drives the pipeline without the binary.

Author: ModLint Team
Date: 2026-01-16
"""

import io
import logging
import os
import re
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from ruamel.yaml import YAML

from modlint.core.errors import RenderError
from modlint.core.models import Chart, ModuleDescriptor

logger = logging.getLogger("modlint.renderer")

TemplateEngine = Callable[[Chart, Dict[str, Any]], Dict[str, str]]

HELM_BIN_ENV = "MODLINT_HELM_BIN"
DEFAULT_NAMESPACE = "default"
CHART_API_VERSION = "v2"

_SOURCE_HEADER = re.compile(r"^---[ \t]*\n# Source: (.+?)[ \t]*\n", re.MULTILINE)


def split_helm_output(stdout: str) -> Dict[str, str]:
    """
    Regroups `helm template` output by its `# Source:` headers. Several
    documents from one template are joined back with `---`.
    """
    files: Dict[str, str] = {}
    # The first header only matches once it has a separator like the others.
    if not stdout.startswith("---"):
        stdout = "---\n" + stdout
    parts = _SOURCE_HEADER.split(stdout)
    for path, body in zip(parts[1::2], parts[2::2]):
        body = body.rstrip()
        if path in files:
            files[path] = f"{files[path]}\n---\n{body}"
        else:
            files[path] = body
    return files


class HelmTemplateEngine:
    """Runs the helm binary. Release and capability data travel as CLI flags."""

    def __init__(self, helm_bin: Optional[str] = None, timeout: int = 60):
        self.helm_bin = helm_bin or os.environ.get(HELM_BIN_ENV, "helm")
        self.timeout = timeout

    def __call__(self, chart: Chart, context: Dict[str, Any]) -> Dict[str, str]:
        release = context.get("Release", {})
        capabilities = context.get("Capabilities", {})

        with tempfile.TemporaryDirectory(prefix="modlint-") as scratch:
            chart_dir = Path(scratch) / chart.name
            self._write_chart(chart, chart_dir)

            values_file = Path(scratch) / "render-values.yaml"
            yaml = YAML(typ="safe")
            yaml.default_flow_style = False
            stream = io.StringIO()
            yaml.dump(context.get("Values") or {}, stream)
            values_file.write_text(stream.getvalue(), encoding="utf-8")

            cmd = [
                self.helm_bin, "template", release.get("Name") or chart.name, str(chart_dir),
                "--namespace", release.get("Namespace") or DEFAULT_NAMESPACE,
                "--values", str(values_file),
            ]
            if release.get("IsUpgrade"):
                cmd.append("--is-upgrade")
            for api_version in capabilities.get("APIVersions", []):
                cmd.extend(["--api-versions", api_version])
            kube_version = capabilities.get("KubeVersion", {}).get("Version")
            if kube_version:
                cmd.extend(["--kube-version", kube_version])

            logger.debug(f"Running: {' '.join(cmd)}")
            try:
                result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
            except FileNotFoundError:
                raise RenderError(f"helm binary {self.helm_bin!r} not found")
            except subprocess.TimeoutExpired:
                raise RenderError(f"helm template timed out after {self.timeout}s")

        if result.returncode != 0:
            raise RenderError(result.stderr.strip() or f"helm exited with code {result.returncode}")

        return split_helm_output(result.stdout)

    @staticmethod
    def _write_chart(chart: Chart, chart_dir: Path):
        for f in chart.files:
            # Values come exclusively from the render context.
            if f.name == "values.yaml":
                continue
            target = chart_dir / f.name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(f.data)

        # helm refuses charts without an apiVersion; module charts often omit it.
        if "apiVersion" not in chart.metadata:
            yaml = YAML(typ="safe")
            yaml.default_flow_style = False
            stream = io.StringIO()
            yaml.dump({"apiVersion": CHART_API_VERSION, **chart.metadata}, stream)
            (chart_dir / "Chart.yaml").write_text(stream.getvalue(), encoding="utf-8")


class TemplateRenderer:
    """Thin wrapper that pins the error contract of whatever engine it runs."""

    def __init__(self, engine: Optional[TemplateEngine] = None):
        self.engine = engine or HelmTemplateEngine()

    def render(self, module: ModuleDescriptor, context: Dict[str, Any]) -> Dict[str, str]:
        if not module.name:
            raise RenderError("helm chart must have a name", path=module.path)

        try:
            return self.engine(module.chart, context)
        except RenderError as e:
            e.module, e.path = module.name, module.path
            raise
