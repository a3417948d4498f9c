import pytest

from infradiagram.editor import (
    add_edge,
    add_node,
    delete_edge,
    delete_node,
    resolve_edge,
    update_edge,
    update_layout,
    update_node,
)
from infradiagram.ir import Direction, EdgeType, Graph, NotFoundError, ValidationError
from infradiagram.renderer import generate_files

BUCKET = {"kind": "resource", "resourceType": "storage_bucket", "name": "b2"}


def _assert_integrity(graph):
    for edge in graph.edges.values():
        assert edge.source_id in graph.nodes
        assert edge.target_id in graph.nodes


# ─── Nodes ────────────────────────────────────────────────────────────────────


def test_add_node_to_empty_graph():
    graph = add_node(Graph(), BUCKET)

    assert list(graph.nodes) == ["resource.storage_bucket.b2"]
    assert graph.edges == {}
    assert graph.width > 0
    assert graph.height > 0
    node = graph.nodes["resource.storage_bucket.b2"]
    assert (node.width, node.height) == (180, 80)


def test_add_node_keeps_explicit_size():
    graph = add_node(Graph(), {"kind": "module", "name": "net", "width": 320, "height": 90})
    node = graph.nodes["module.net"]
    assert (node.width, node.height) == (320, 90)


def test_add_node_accepts_legacy_type_field():
    graph = add_node(Graph(), {"type": "variable", "name": "region"})
    assert "var.region" in graph.nodes


@pytest.mark.parametrize("payload", [
    {"name": "x"},
    {"kind": "lambda", "name": "x"},
    {"kind": "resource", "name": "x"},
    {"kind": "variable"},
    {"kind": "variable", "name": "x", "config": ["a"]},
    {"kind": "variable", "name": "x", "width": -5},
    {"kind": "variable", "name": "x", "id": "var.y"},
])
def test_add_node_rejects_invalid_payloads(payload):
    with pytest.raises(ValidationError):
        add_node(Graph(), payload)


def test_add_duplicate_node_is_rejected(network_graph):
    with pytest.raises(ValidationError):
        add_node(network_graph, {"kind": "variable", "name": "region"})


def test_add_then_delete_restores_node_ids(network_graph):
    added = add_node(network_graph, BUCKET)
    restored = delete_node(added, "resource.storage_bucket.b2")

    assert set(restored.nodes) == set(network_graph.nodes)


def test_failed_mutation_leaves_input_untouched(network_graph):
    before = set(network_graph.nodes)
    with pytest.raises(ValidationError):
        add_node(network_graph, {"kind": "resource", "name": "no_type"})
    assert set(network_graph.nodes) == before


def test_delete_node_cascades_only_incident_edges(network_graph):
    incident = {e.id for e in network_graph.incident_edges("resource.net.vpc")}
    unrelated = set(network_graph.edges) - incident
    assert len(incident) == 2

    graph = delete_node(network_graph, "resource.net.vpc")

    assert "resource.net.vpc" not in graph.nodes
    assert set(graph.edges) == unrelated
    _assert_integrity(graph)


def test_delete_missing_node(network_graph):
    with pytest.raises(NotFoundError):
        delete_node(network_graph, "resource.nope.nope")


def test_update_missing_node(network_graph):
    with pytest.raises(NotFoundError):
        update_node(network_graph, "var.nope", {"label": "x"})


def test_positional_update_skips_layout(network_graph):
    graph = update_node(network_graph, "var.region", {"x": 999, "y": 5})

    assert (graph.nodes["var.region"].x, graph.nodes["var.region"].y) == (999, 5)
    for node_id, node in graph.nodes.items():
        if node_id != "var.region":
            original = network_graph.nodes[node_id]
            assert (node.x, node.y) == (original.x, original.y)


def test_non_positional_update_relayouts(network_graph):
    moved = update_node(network_graph, "var.region", {"x": 999, "y": 5})
    relabelled = update_node(moved, "var.region", {"label": "Region"})

    node = relabelled.nodes["var.region"]
    assert node.label == "Region"
    assert (node.x, node.y) == (network_graph.nodes["var.region"].x, network_graph.nodes["var.region"].y)


def test_update_without_relayout_keeps_manual_position(network_graph):
    moved = update_node(network_graph, "var.region", {"x": 999, "y": 5})
    relabelled = update_node(moved, "var.region", {"label": "Region"}, relayout=False)

    assert (relabelled.nodes["var.region"].x, relabelled.nodes["var.region"].y) == (999, 5)


def test_update_node_merges_config_shallowly(network_graph):
    graph = update_node(network_graph, "resource.net.vpc", {"config": {"auto_create_subnetworks": False}})
    assert graph.nodes["resource.net.vpc"].config == {"auto_create_subnetworks": False}
    assert network_graph.nodes["resource.net.vpc"].config == {"region": "${var.region}"}


@pytest.mark.parametrize("patch", [
    {"id": "var.other"},
    {"kind": "output"},
    {"colour": "red"},
    {"name": ""},
    {"x": "left"},
    {"x": None},
    {"y": None},
    {"width": None},
])
def test_update_node_rejects_invalid_patches(network_graph, patch):
    with pytest.raises(ValidationError):
        update_node(network_graph, "var.region", patch)


@pytest.mark.parametrize("node_id, patch", [
    ("var.region", {"name": "zone"}),
    ("var.region", {"resourceType": "string"}),
    ("resource.net.vpc", {"resourceType": "network"}),
    ("resource.net.vpc", {"name": "main"}),
])
def test_update_node_cannot_change_identity(network_graph, node_id, patch):
    with pytest.raises(ValidationError, match="immutable"):
        update_node(network_graph, node_id, patch)


def test_renamed_variable_cannot_duplicate_a_block(network_graph):
    with pytest.raises(ValidationError):
        update_node(network_graph, "var.region", {"name": "zone"})

    graph = add_node(network_graph, {"kind": "variable", "name": "zone"})
    files = generate_files(graph)
    assert files["variables.tf"].count('variable "zone"') == 1
    assert files["variables.tf"].count('variable "region"') == 1


def test_update_node_accepts_unchanged_identity(network_graph):
    graph = update_node(network_graph, "resource.net.vpc", {"name": "vpc", "resourceType": "net", "label": "VPC"})
    assert graph.nodes["resource.net.vpc"].label == "VPC"


# ─── Edges ────────────────────────────────────────────────────────────────────


def test_add_edge_derives_id_from_pair(network_graph):
    graph = add_edge(network_graph, {"sourceId": "var.region", "targetId": "output.subnet_id"})

    edge = graph.edges["var.region:output.subnet_id"]
    assert edge.type is EdgeType.REFERENCE
    _assert_integrity(graph)


def test_depends_on_edge_gets_default_label(network_graph):
    graph = add_edge(network_graph, {
        "sourceId": "resource.net.vpc",
        "targetId": "output.subnet_id",
        "type": "depends_on",
    })
    assert graph.edges["resource.net.vpc:output.subnet_id"].label == "depends_on"


def test_add_edge_missing_endpoint(network_graph):
    with pytest.raises(NotFoundError):
        add_edge(network_graph, {"sourceId": "var.region", "targetId": "var.nope"})
    with pytest.raises(NotFoundError):
        add_edge(network_graph, {"sourceId": "var.nope", "targetId": "var.region"})


def test_add_edge_requires_endpoints(network_graph):
    with pytest.raises(ValidationError):
        add_edge(network_graph, {"sourceId": "var.region"})


def test_add_edge_rejects_unknown_type(network_graph):
    with pytest.raises(ValidationError):
        add_edge(network_graph, {"sourceId": "var.region", "targetId": "output.subnet_id", "type": "calls"})


def test_parallel_edges_are_addressable_by_id(network_graph):
    pair = {"sourceId": "var.region", "targetId": "output.subnet_id"}
    graph = add_edge(add_edge(network_graph, pair), pair)

    assert "var.region:output.subnet_id" in graph.edges
    assert "var.region:output.subnet_id:2" in graph.edges

    trimmed = delete_edge(graph, "var.region:output.subnet_id:2")
    assert "var.region:output.subnet_id:2" not in trimmed.edges
    assert "var.region:output.subnet_id" in trimmed.edges


def test_ambiguous_pair_reference_is_rejected(network_graph):
    pair = {"sourceId": "var.region", "targetId": "output.subnet_id"}
    graph = add_edge(add_edge(add_edge(network_graph, pair), pair), pair)
    graph = delete_edge(graph, "var.region:output.subnet_id")

    with pytest.raises(ValidationError):
        resolve_edge(graph, "var.region:output.subnet_id")
    assert resolve_edge(graph, "var.region:output.subnet_id:3").id == "var.region:output.subnet_id:3"


def test_unknown_edge_reference(network_graph):
    with pytest.raises(NotFoundError):
        resolve_edge(network_graph, "var.region:output.subnet_id:9")


def test_update_edge_by_pair(network_graph):
    graph = update_edge(network_graph, "resource.net.vpc:resource.subnet.s", {"verb": "hosts"})
    assert graph.edges["resource.net.vpc:resource.subnet.s"].verb == "hosts"


def test_update_edge_endpoints_are_immutable(network_graph):
    with pytest.raises(ValidationError):
        update_edge(network_graph, "resource.net.vpc:resource.subnet.s", {"targetId": "output.subnet_id"})


def test_update_missing_edge(network_graph):
    with pytest.raises(NotFoundError):
        update_edge(network_graph, "var.region:output.subnet_id", {"label": "x"})


def test_delete_edge_leaves_nodes(network_graph):
    graph = delete_edge(network_graph, "var.region:resource.net.vpc")

    assert "var.region:resource.net.vpc" not in graph.edges
    assert set(graph.nodes) == set(network_graph.nodes)


# ─── Layout options ───────────────────────────────────────────────────────────


def test_update_layout_switches_direction(network_graph):
    graph = update_layout(network_graph, {"rankdir": "tb", "ranksep": 50})

    assert graph.options.direction is Direction.TOP_TO_BOTTOM
    assert graph.options.rank_spacing == 50
    assert graph.nodes["output.subnet_id"].y > graph.nodes["var.region"].y


@pytest.mark.parametrize("options", [{"rankdir": "diagonal"}, {"nodesep": -1}, {"ranksep": "wide"}])
def test_update_layout_rejects_bad_options(network_graph, options):
    with pytest.raises(ValidationError):
        update_layout(network_graph, options)


def test_sequence_of_edits_keeps_integrity(network_graph):
    graph = add_node(network_graph, BUCKET)
    graph = add_edge(graph, {"sourceId": "resource.storage_bucket.b2", "targetId": "resource.subnet.s"})
    graph = delete_node(graph, "resource.subnet.s")
    graph = add_edge(graph, {"sourceId": "var.region", "targetId": "resource.storage_bucket.b2"})
    graph = delete_node(graph, "var.region")

    _assert_integrity(graph)
    assert set(graph.nodes) == {"resource.net.vpc", "resource.storage_bucket.b2", "output.subnet_id"}
