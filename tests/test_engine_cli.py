#!/usr/bin/env python3
"""
MODLINT TEST SUITE - Engine & CLI
---------------------------------
Failure isolation across modules, run summaries and the command line.

Author: ModLint Team
Date: 2026-01-16
"""

import io

import pytest
from rich.console import Console

from modlint.cli.main import ModLintCLI
from modlint.core.engine import MaterializationEngine, ModuleErrorRecord
from modlint.core.errors import CompositionError, SchemaError
from modlint.core.settings import LintSettings

BROKEN_DUPLICATE = {
    "templates/service-copy.yaml": "kind: Service\nmetadata:\n  name: web\n  namespace: d8-echo\n",
}


@pytest.fixture
def patched_helm(monkeypatch, echo_engine):
    """Routes every engine the CLI creates to the echo engine."""
    monkeypatch.setattr("modlint.core.engine.HelmTemplateEngine", lambda *args, **kwargs: echo_engine)
    return echo_engine


def run_cli(argv):
    buffer = io.StringIO()
    cli = ModLintCLI(Console(file=buffer, width=200, color_system=None))
    code = cli.run(argv)
    return code, buffer.getvalue()


def test_failed_module_does_not_stop_the_run(make_module, echo_engine):
    good = make_module("echo-server")
    bad = make_module("broken", files=dict(BROKEN_DUPLICATE, **{
        "Chart.yaml": "name: echo-server\nversion: 1.0.0\n",
        ".namespace": "d8-echo\n",
    }))

    engine = MaterializationEngine(engine=echo_engine)
    result = engine.build_all([bad, good])

    assert [m.get_name() for m in result.modules] == ["echo-server"]
    assert len(result.errors) == 1
    record = result.errors[0]
    assert isinstance(record, ModuleErrorRecord)
    assert record.name == "echo-server"
    assert record.path == str(bad.resolve())
    assert record.message.startswith("helm chart object already exists:")
    assert result.failed


def test_parallel_build_keeps_input_order(make_module, echo_engine):
    paths = []
    for i in range(4):
        name = f"mod-{i}"
        paths.append(make_module(name, files={
            "openapi/values.yaml": None,
            "templates/deployment.yaml": None,
            "templates/service.yaml": f"kind: ConfigMap\nmetadata:\n  name: cm-{i}\n",
        }))

    engine = MaterializationEngine(LintSettings(workers=3), engine=echo_engine)
    progress = []
    result = engine.build_all(paths, progress_callback=lambda done, total: progress.append((done, total)))

    assert [m.get_name() for m in result.modules] == ["mod-0", "mod-1", "mod-2", "mod-3"]
    assert progress[-1] == (4, 4)
    assert not result.failed


def test_summary(make_module, echo_engine):
    engine = MaterializationEngine(engine=echo_engine)
    result = engine.build_all([
        make_module("echo-server"),
        make_module("other", files={"openapi/values.yaml": "properties:\n  a:\n    x-examples: bad\n"}),
    ])
    summary = engine.generate_summary(result)

    assert summary["total_modules"] == 2
    assert summary["built"] == 1
    assert summary["failed"] == 1
    assert summary["objects"] == 2
    assert summary["failures_by_category"] == {"generate values": 1}
    assert summary["success_rate"] == 0.5


def test_empty_summary(echo_engine):
    engine = MaterializationEngine(engine=echo_engine)
    assert engine.generate_summary(engine.build_all([]))["total_modules"] == 0


def test_each_engine_owns_its_cache(make_module, echo_engine):
    path = make_module()
    first = MaterializationEngine(engine=echo_engine).build_all([path])
    second = MaterializationEngine(engine=echo_engine).build_all([path])
    assert len(first.modules[0].get_storage()) == len(second.modules[0].get_storage()) == 2


def test_values_file_is_merged(tmp_path, make_module, echo_engine):
    override = tmp_path / "override.yaml"
    override.write_text("echoServer:\n  logLevel: Debug\n")
    engine = MaterializationEngine(LintSettings(values_file=str(override)), engine=echo_engine)

    values = engine.compose_values(make_module())
    assert values["echoServer"]["logLevel"] == "Debug"
    assert values["echoServer"]["replicas"] == 2
    assert echo_engine.calls == []


def test_broken_values_file_is_fatal(tmp_path, echo_engine):
    override = tmp_path / "override.yaml"
    override.write_text("[unclosed\n")
    with pytest.raises(CompositionError):
        MaterializationEngine(LintSettings(values_file=str(override)), engine=echo_engine)


def test_broken_global_schema_is_fatal(tmp_path, echo_engine):
    openapi = tmp_path / "global-hooks" / "openapi"
    openapi.mkdir(parents=True)
    (openapi / "config-values.yaml").write_text("properties: {}\n")
    (openapi / "values.yaml").write_text("- nope\n")
    with pytest.raises(SchemaError):
        MaterializationEngine(LintSettings(global_root=str(tmp_path)), engine=echo_engine)


@pytest.mark.parametrize("kwargs", [{"workers": 0}, {"helm_timeout": 0}])
def test_invalid_settings(kwargs):
    with pytest.raises(ValueError):
        LintSettings(**kwargs)


def test_helm_bin_from_environment(monkeypatch):
    monkeypatch.setenv("MODLINT_HELM_BIN", "/opt/helm/bin/helm")
    assert LintSettings().helm_bin == "/opt/helm/bin/helm"


def test_cli_render(make_module, patched_helm):
    code, output = run_cli(["render", str(make_module())])

    assert code == 0
    assert "Deployment" in output
    assert "templates/service.yaml" in output
    assert "Summary Report" in output


def test_cli_render_reports_failures(make_module, patched_helm):
    bad = make_module(files=BROKEN_DUPLICATE)
    code, output = run_cli(["render", "--quiet", str(bad)])

    assert code == 1
    assert "Dropped Modules" in output
    assert "already exists" in output


def test_cli_render_missing_directory(tmp_path, patched_helm):
    code, output = run_cli(["render", str(tmp_path / "nope")])
    assert code == 1
    assert "not found" in output


def test_cli_values(make_module, patched_helm):
    code, output = run_cli(["values", str(make_module())])

    assert code == 0
    assert "echoServer:" in output
    assert "logLevel: Info" in output
    assert patched_helm.calls == []


def test_cli_values_without_schema(make_module, patched_helm):
    code, output = run_cli(["values", str(make_module(files={"openapi/values.yaml": None}))])
    assert code == 0
    assert "no values schema" in output


def test_cli_values_failure(make_module, patched_helm):
    code, output = run_cli(["values", str(make_module(files={"openapi/values.yaml": "- nope\n"}))])
    assert code == 1
    assert "schemas load" in output


def test_cli_without_command_prints_help(patched_helm, capsys):
    code, _ = run_cli([])
    assert code == 0
    assert "usage: modlint" in capsys.readouterr().out


def test_binary_tagged_document_drops_only_its_module(make_module, echo_engine):
    bad = make_module("binary", files={"templates/secret.yaml": "kind: Secret\nmetadata:\n  name: s\ndata:\n  k: !!binary aGVsbG8=\n"})
    good = make_module("echo-server")

    result = MaterializationEngine(engine=echo_engine).build_all([bad, good])

    assert [m.get_name() for m in result.modules] == ["echo-server"]
    (record,) = result.errors
    assert record.name == "binary"
    assert record.message.startswith('manifest "templates/secret.yaml" unmarshal:')


@pytest.mark.parametrize("rel, category", [
    (".namespace", "chart load"),
    ("module.yaml", "chart load"),
    (".helmignore", "chart load"),
    ("openapi/values.yaml", "schemas load"),
    ("openapi/config-values.yaml", "schemas load"),
])
def test_undecodable_file_drops_only_its_module(make_module, echo_engine, rel, category):
    bad = make_module("undecodable")
    (bad / rel).write_bytes(b"\xff\xfe-ns\n")
    good = make_module("echo-server")

    result = MaterializationEngine(engine=echo_engine).build_all([bad, good])

    assert [m.get_name() for m in result.modules] == ["echo-server"]
    (record,) = result.errors
    assert record.category == category
    assert record.path.startswith(str(bad.resolve()))


def test_undecodable_values_file_is_fatal(tmp_path, echo_engine):
    override = tmp_path / "override.yaml"
    override.write_bytes(b"a: \xff\n")
    with pytest.raises(CompositionError, match="failed to override values from file"):
        MaterializationEngine(LintSettings(values_file=str(override)), engine=echo_engine)
