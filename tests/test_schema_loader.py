#!/usr/bin/env python3
"""
MODLINT TEST SUITE - Schema Loading
-----------------------------------
openapi directory reading, $ref expansion, x-extend inheritance and the
global schema lookup.

Author: ModLint Team
Date: 2026-01-16
"""

import dataclasses

import pytest

from modlint.core.errors import SchemaError
from modlint.schema.loader import (
    apply_extend,
    expand_refs,
    load_global_schemas,
    load_module_schemas,
    load_openapi_dir,
)
from modlint.schema.node import SchemaNode, merge_schemas
from modlint.schema.synthesizer import SchemaValueSynthesizer


def write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_missing_openapi_dir_is_empty(tmp_path):
    schemas = load_module_schemas(tmp_path)
    assert schemas.empty
    assert schemas.values is None


def test_values_extend_config_values(tmp_path):
    write(tmp_path / "openapi" / "config-values.yaml", """
type: object
properties:
  logLevel:
    type: string
    default: Info
  replicas:
    type: integer
    default: 1
""")
    write(tmp_path / "openapi" / "values.yaml", """
x-extend:
  schema: config-values.yaml
type: object
properties:
  replicas:
    type: integer
    default: 3
  internal:
    type: object
    default: {}
    properties:
      token:
        type: string
        x-examples: ["abc"]
""")
    schemas = load_module_schemas(tmp_path)

    assert set(schemas.config.properties) == {"logLevel", "replicas"}
    values = SchemaValueSynthesizer().synthesize(schemas.values)
    # The child's own definition of `replicas` wins over the inherited one.
    assert values == {"logLevel": "Info", "replicas": 3, "internal": {"token": "abc"}}


def test_values_without_extend_stand_alone(tmp_path):
    write(tmp_path / "config-values.yaml", "properties:\n  a:\n    default: 1\n")
    write(tmp_path / "values.yaml", "properties:\n  b:\n    default: 2\n")
    schemas = load_openapi_dir(tmp_path)
    assert SchemaValueSynthesizer().synthesize(schemas.values) == {"b": 2}


def test_local_refs_are_expanded(tmp_path):
    write(tmp_path / "values.yaml", """
definitions:
  port:
    type: integer
    default: 8080
  endpoint:
    type: object
    default: {}
    properties:
      port:
        $ref: "#/definitions/port"
properties:
  web:
    $ref: "#/definitions/endpoint"
""")
    schemas = load_openapi_dir(tmp_path)
    assert SchemaValueSynthesizer().synthesize(schemas.values) == {"web": {"port": 8080}}


@pytest.mark.parametrize("doc, fragment", [
    ({"properties": {"a": {"$ref": "other.yaml#/x"}}}, "remote"),
    ({"properties": {"a": {"$ref": "#/definitions/missing"}}}, "unresolvable"),
    ({"definitions": {"loop": {"$ref": "#/definitions/loop"}}, "properties": {"a": {"$ref": "#/definitions/loop"}}},
     "circular"),
])
def test_bad_refs(doc, fragment):
    with pytest.raises(SchemaError) as exc:
        expand_refs(doc, doc)
    assert fragment in str(exc.value)


def test_ref_pointer_escapes():
    doc = {"definitions": {"a/b": {"default": 1}}, "properties": {"x": {"$ref": "#/definitions/a~1b"}}}
    assert expand_refs(doc, doc)["properties"]["x"] == {"default": 1}


def test_apply_extend_merges_required():
    parent = {"properties": {"a": {}}, "required": ["a"]}
    child = {"x-extend": {"schema": "config-values.yaml"}, "properties": {"b": {}}, "required": ["b", "a"]}
    extended = apply_extend(child, parent)

    assert set(extended["properties"]) == {"a", "b"}
    assert extended["required"] == ["a", "b"]
    assert "a" not in child["properties"]


@pytest.mark.parametrize("content", ["- just\n- a list\n", "key: [unclosed\n"])
def test_unreadable_schema_is_schema_error(tmp_path, content):
    write(tmp_path / "openapi" / "values.yaml", content)
    with pytest.raises(SchemaError) as exc:
        load_module_schemas(tmp_path)
    assert str(exc.value).startswith("schemas load:")


def test_structurally_invalid_schema(tmp_path):
    write(tmp_path / "openapi" / "values.yaml", "properties:\n  a:\n    enum: notalist\n")
    with pytest.raises(SchemaError) as exc:
        load_module_schemas(tmp_path)
    assert "values" in str(exc.value)


def test_bundled_global_schema():
    schemas = load_global_schemas()
    values = SchemaValueSynthesizer().synthesize(schemas.values)

    assert values["modules"]["https"]["mode"] == "CertManager"
    assert values["modules"]["publicDomainTemplate"] == "%s.example.com"
    assert values["discovery"]["clusterDomain"] == "cluster.local"
    assert values["enabledModules"] == ["vertical-pod-autoscaler", "prometheus", "cert-manager", "operator-prometheus"]
    assert "highAvailability" not in values


def test_global_override_directory(tmp_path):
    write(tmp_path / "global-hooks" / "openapi" / "config-values.yaml", "properties:\n  a:\n    default: 1\n")
    write(tmp_path / "global-hooks" / "openapi" / "values.yaml",
          "x-extend:\n  schema: config-values.yaml\nproperties:\n  b:\n    default: 2\n")

    values = SchemaValueSynthesizer().synthesize(load_global_schemas(tmp_path).values)
    assert values == {"a": 1, "b": 2}


def test_incomplete_override_falls_back_to_bundled(tmp_path):
    write(tmp_path / "global-hooks" / "openapi" / "values.yaml", "properties:\n  b:\n    default: 2\n")
    values = SchemaValueSynthesizer().synthesize(load_global_schemas(tmp_path).values)
    assert "discovery" in values


def test_merge_schemas_is_pure():
    root = SchemaNode.from_mapping({
        "properties": {"keep": {"default": 0}},
        "oneOf": [{"properties": {"a": {"default": 1}}}],
    })
    branch_a = SchemaNode.from_mapping({"properties": {"x": {"default": "a"}}})
    branch_b = SchemaNode.from_mapping({"properties": {"x": {"default": "b"}}})

    merged = merge_schemas(root, [branch_a, branch_b])

    assert merged.one_of == ()
    assert set(merged.properties) == {"keep", "x"}
    assert merged.properties["x"].default == "b"
    assert set(root.properties) == {"keep"}
    assert len(root.one_of) == 1


def test_schema_node_copies_its_input():
    raw = {"properties": {"a": {"default": [1]}}}
    node = SchemaNode.from_mapping(raw)
    raw["properties"]["a"]["default"].append(2)
    assert node.properties["a"].default == [1]
    with pytest.raises(TypeError):
        node.properties["b"] = node


def test_empty_schema_node_defaults():
    """Mapping defaults come from factories, so the class defines on every supported Python."""
    node = SchemaNode()
    assert dict(node.properties) == {}
    assert dict(node.extensions) == {}
    with pytest.raises(TypeError):
        node.properties["x"] = SchemaNode()

    fields = {f.name: f for f in dataclasses.fields(SchemaNode)}
    for name in ("properties", "extensions"):
        assert fields[name].default is dataclasses.MISSING
