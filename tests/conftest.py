import re
from pathlib import Path
from typing import Any, Dict, Optional

import pytest

from modlint.core.models import Chart

_VALUE_REF = re.compile(r"\{\{\s*\.Values\.([A-Za-z0-9_.]+)\s*\}\}")
_RELEASE_REF = re.compile(r"\{\{\s*\.Release\.([A-Za-z]+)\s*\}\}")


class EchoEngine:
    """
    Stand-in for helm: substitutes `{{ .Values.a.b }}` and
    `{{ .Release.X }}` and nothing else. Records every call.
    """

    def __init__(self):
        self.calls = []

    def __call__(self, chart: Chart, context: Dict[str, Any]) -> Dict[str, str]:
        self.calls.append((chart.name, context))

        def lookup(match, root):
            node = root
            for part in match.group(1).split("."):
                node = node[part]
            return str(node)

        rendered = {}
        for template in chart.templates:
            text = template.data.decode("utf-8")
            text = _VALUE_REF.sub(lambda m: lookup(m, context["Values"]), text)
            text = _RELEASE_REF.sub(lambda m: lookup(m, context["Release"]), text)
            rendered[f"{chart.name}/{template.name}"] = text
        return rendered


@pytest.fixture
def echo_engine():
    return EchoEngine()


VALUES_SCHEMA = """
type: object
properties:
  replicas:
    type: integer
    default: 2
  logLevel:
    type: string
    enum: [Info, Debug, Error]
  internal:
    type: object
    default: {}
    properties:
      port:
        type: integer
        x-examples: [8080]
"""

DEPLOYMENT = """apiVersion: apps/v1
kind: Deployment
metadata:
  name: {{ .Release.Name }}
  namespace: {{ .Release.Namespace }}
spec:
  replicas: {{ .Values.echoServer.replicas }}
  template:
    spec:
      containers:
      - name: server
        image: registry.example.com/echo@{{ .Values.global.modulesImages.digests.echoServer.container }}
        args: ["--log-level={{ .Values.echoServer.logLevel }}"]
        ports:
        - containerPort: {{ .Values.echoServer.internal.port }}
"""

SERVICE = """apiVersion: v1
kind: Service
metadata:
  name: web
  namespace: {{ .Release.Namespace }}
spec:
  ports:
  - port: 80
"""


@pytest.fixture
def make_module(tmp_path):
    """
    Writes a module directory under tmp_path/modules/<name> and returns its
    path. Files default to a small deployable module; pass a mapping of
    relative path -> content (None deletes a default) to change it.
    """

    def _make(name: str = "echo-server", files: Optional[Dict[str, Optional[str]]] = None,
              namespace: Optional[str] = "d8-echo") -> Path:
        root = tmp_path / "modules" / name
        layout: Dict[str, Optional[str]] = {
            "Chart.yaml": f"name: {name}\nversion: 1.0.0\n",
            "openapi/values.yaml": VALUES_SCHEMA,
            "templates/deployment.yaml": DEPLOYMENT,
            "templates/service.yaml": SERVICE,
        }
        if namespace is not None:
            layout[".namespace"] = namespace + "\n"
        layout.update(files or {})

        for rel, content in layout.items():
            if content is None:
                continue
            target = root / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        return root

    return _make
