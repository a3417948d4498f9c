import json
import re

import pytest

from infradiagram.compiler import build_graph
from infradiagram.ir import GenerationError, Graph, Node, NodeKind, NotFoundError
from infradiagram.renderer import (
    diff_files,
    emit_block,
    export_files,
    format_attribute,
    format_value,
    generate_block,
    generate_files,
)

HEADER = re.compile(r'^(resource|data) "([^"]+)" "([^"]+)" \{|^(module|variable|output) "([^"]+)" \{', re.MULTILINE)


def _node(kind, block_name, resource_type=None, **config):
    return Node(
        id=kind.node_id(block_name, resource_type),
        kind=kind,
        name=block_name,
        resource_type=resource_type,
        config=config,
    )


def _graph(*nodes):
    graph = Graph()
    for node in nodes:
        graph.nodes[node.id] = node
    return graph


# ─── Values ───────────────────────────────────────────────────────────────────


def test_whole_string_reference_is_unwrapped():
    assert format_value("${resource_type.main.id}") == "resource_type.main.id"


def test_template_strings_stay_quoted():
    assert format_value("${var.a}-${var.b}") == '"${var.a}-${var.b}"'


@pytest.mark.parametrize("value", [None, True, False, 0, 42, -7, 2.5, "", "plain", 'say "hi"\n\ttab\\'])
def test_primitive_literals_round_trip(value):
    assert json.loads(format_value(value)) == value


def test_non_finite_numbers_are_rejected():
    with pytest.raises(GenerationError):
        format_value(float("nan"))


def test_unsupported_types_are_rejected():
    with pytest.raises(GenerationError):
        format_value({1, 2})


def test_lists_one_element_per_line():
    assert format_value(["a", 1, "${var.x}"]) == '[\n  "a",\n  1,\n  var.x,\n]'
    assert format_value([]) == "[]"


def test_maps_inside_values_are_objects():
    assert format_value([{"name": "a", "my-key": 1}]) == '[\n  {\n    name = "a"\n    my-key = 1\n  },\n]'
    assert format_value({"a b": True}) == '{\n  "a b" = true\n}'


def test_nested_map_attribute_is_a_block():
    assert format_attribute("versioning", {"enabled": True}) == "  versioning {\n    enabled = true\n  }"
    assert format_attribute("lifecycle", {}) == "  lifecycle {}"


def test_nested_map_with_non_identifier_keys_is_an_object():
    text = format_attribute("metadata", {"labels": {"app.kubernetes.io/name": "web", "tier": "front"}})
    assert text == (
        "  metadata {\n"
        "    labels = {\n"
        '      "app.kubernetes.io/name" = "web"\n'
        '      tier = "front"\n'
        "    }\n"
        "  }"
    )


def test_dynamic_block_from_for_each_map():
    text = format_attribute("setting", {
        "for_each": "${var.settings}",
        "iterator": "s",
        "content": {"name": "${s.value.name}"},
    })

    assert text == "\n".join([
        '  dynamic "setting" {',
        "    for_each = var.settings",
        "    iterator = s",
        "    content {",
        "      name = s.value.name",
        "    }",
        "  }",
    ])


def test_dynamic_attribute_holding_descriptors():
    text = format_attribute("dynamic", {
        "ingress": {"for_each": "${var.ports}", "labels": ["a"], "content": {"port": "${ingress.value}"}},
    })

    assert text.startswith('  dynamic "ingress" {')
    assert '    labels = ["a"]' in text
    assert "      port = ingress.value" in text


def test_dynamic_descriptor_without_for_each_fails():
    with pytest.raises(GenerationError):
        format_attribute("dynamic", {"ingress": {"content": {}}})


# ─── Blocks ───────────────────────────────────────────────────────────────────


def test_resource_block():
    node = _node(
        NodeKind.RESOURCE, "assets", "google_storage_bucket",
        name="assets",
        _position_hint=3,
        depends_on=["resource.project.p", "${module.net}"],
        location="EU",
    )

    assert emit_block(node) == "\n".join([
        'resource "google_storage_bucket" "assets" {',
        '  name = "assets"',
        '  location = "EU"',
        "  depends_on = [",
        "    project.p,",
        "    module.net,",
        "  ]",
        "}",
    ])


def test_data_block_header():
    node = _node(NodeKind.DATA, "current", "google_project")
    assert emit_block(node).startswith('data "google_project" "current" {')


def test_module_without_source_gets_local_path_first():
    node = _node(NodeKind.MODULE, "net", cidr="10.0.0.0/16")
    lines = emit_block(node).splitlines()

    assert lines[0] == 'module "net" {'
    assert lines[1] == '  source = "./modules/net"'
    assert lines[2] == '  cidr = "10.0.0.0/16"'


def test_module_source_is_always_first():
    node = _node(NodeKind.MODULE, "net", cidr="10.0.0.0/16", source="git::https://example.com/net.git")
    assert emit_block(node).splitlines()[1] == '  source = "git::https://example.com/net.git"'


def test_variable_block():
    node = _node(
        NodeKind.VARIABLE, "region",
        description="Deployment region",
        type="string",
        default="eu",
        validation={"condition": "${length(var.region) > 0}", "error_message": "Required"},
    )

    assert emit_block(node) == "\n".join([
        'variable "region" {',
        '  description = "Deployment region"',
        "  type = string",
        '  default = "eu"',
        "  validation {",
        "    condition = length(var.region) > 0",
        '    error_message = "Required"',
        "  }",
        "}",
    ])


def test_variable_type_expression_is_bare():
    node = _node(NodeKind.VARIABLE, "tags", type="map(string)", default={})
    text = emit_block(node)
    assert "  type = map(string)" in text
    assert "  default = {}" in text


def test_output_defaults_to_null_value():
    node = _node(NodeKind.OUTPUT, "nothing", sensitive=True)
    assert emit_block(node) == 'output "nothing" {\n  value = null\n  sensitive = true\n}'


def test_output_value_reference():
    node = _node(NodeKind.OUTPUT, "id", value="${google_storage_bucket.assets.id}", description="Bucket id")
    lines = emit_block(node).splitlines()
    assert lines[1] == "  value = google_storage_bucket.assets.id"
    assert lines[2] == '  description = "Bucket id"'


def test_resource_without_type_aborts_generation():
    broken = _node(NodeKind.RESOURCE, "b", None)
    graph = _graph(_node(NodeKind.VARIABLE, "region"), broken)

    with pytest.raises(GenerationError):
        generate_files(graph)


# ─── Files ────────────────────────────────────────────────────────────────────


def test_files_are_split_by_kind(network_graph):
    files = generate_files(network_graph)

    assert sorted(files) == ["main.tf", "outputs.tf", "variables.tf"]
    assert 'resource "net" "vpc" {' in files["main.tf"]
    assert files["variables.tf"].startswith('variable "region" {')
    assert files["outputs.tf"] == 'output "subnet_id" {\n  value = subnet.s.id\n}\n'


def test_empty_files_are_omitted():
    files = generate_files(_graph(_node(NodeKind.RESOURCE, "b", "google_storage_bucket")), extension="hcl")
    assert list(files) == ["main.hcl"]
    assert generate_files(Graph()) == {}


def test_generation_preserves_block_identity(network_config):
    graph = build_graph(network_config)
    text = "\n".join(generate_files(graph).values())

    found = set()
    for match in HEADER.finditer(text):
        if match.group(1):
            found.add((match.group(1), match.group(2), match.group(3)))
        else:
            found.add((match.group(4), None, match.group(5)))

    expected = {(n.kind.key, n.resource_type, n.name) for n in graph.nodes.values()}
    assert found == expected


def test_terraform_block_lists_providers():
    graph = _graph(
        _node(NodeKind.RESOURCE, "b", "google_storage_bucket"),
        _node(NodeKind.DATA, "caller", "aws_caller_identity"),
    )
    main = generate_files(graph, include_terraform_block=True)["main.tf"]

    assert main.startswith("terraform {")
    assert '    aws = {\n      source = "hashicorp/aws"\n    }' in main
    assert '      source = "hashicorp/google"' in main


def test_generate_block_by_id(network_graph):
    assert generate_block(network_graph, "var.region").startswith('variable "region"')
    with pytest.raises(NotFoundError):
        generate_block(network_graph, "var.region", (NodeKind.MODULE,))
    with pytest.raises(NotFoundError):
        generate_block(network_graph, "module.missing")


def test_diff_reports_changed_added_and_removed():
    diff = diff_files(
        {"main.tf": "a\n", "old.tf": "x\n", "same.tf": "s\n"},
        {"main.tf": "b\n", "outputs.tf": "o\n", "same.tf": "s\n"},
    )

    assert sorted(diff) == ["main.tf", "old.tf", "outputs.tf"]
    assert diff["old.tf"]["removed"] is True
    assert diff["outputs.tf"]["added"] is True
    assert diff["main.tf"]["generated"] == "b\n"


def test_export_writes_basenames_only(tmp_path):
    written = export_files({"main.tf": "m\n", "../evil.tf": "e\n"}, tmp_path / "out")

    assert sorted(item["filename"] for item in written) == ["evil.tf", "main.tf"]
    assert (tmp_path / "out" / "main.tf").read_text() == "m\n"
    assert not (tmp_path / "evil.tf").exists()
