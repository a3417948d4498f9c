from infradiagram.compiler.references import (
    candidate_ids,
    dependency_candidates,
    extract_expressions,
    scan_references,
    to_terraform_address,
    unwrap_reference,
)


def test_extracts_every_interpolation_in_order():
    assert extract_expressions("${var.a}-${ var.b }") == ["var.a", "var.b"]
    assert extract_expressions("plain text") == []


def test_unwraps_only_whole_string_references():
    assert unwrap_reference("${resource_type.main.id}") == "resource_type.main.id"
    assert unwrap_reference("${var.a}-${var.b}") is None
    assert unwrap_reference("prefix-${var.a}") is None


def test_candidates_keep_exact_path_first():
    assert candidate_ids("resource.google_storage_bucket.b.name") == [
        "resource.google_storage_bucket.b.name",
        "resource.google_storage_bucket.b",
    ]
    assert candidate_ids("var.region") == ["var.region"]
    assert candidate_ids("module.net.subnet_id") == ["module.net.subnet_id", "module.net"]


def test_bare_address_maps_to_resource_id():
    assert "resource.aws_instance.web" in candidate_ids("aws_instance.web.id")


def test_index_and_splat_are_ignored():
    assert "resource.aws_instance.web" in candidate_ids("aws_instance.web[0].id")
    assert "resource.aws_instance.web" in candidate_ids("aws_instance.web[*].id")


def test_non_block_roots_do_not_become_resources():
    assert candidate_ids("local.name") == []
    assert candidate_ids("each.value") == []
    assert candidate_ids("count.index") == []


def test_expressions_with_calls_have_no_candidates():
    assert candidate_ids('lookup(var.tags, "env")') == []


def test_scan_uses_nearest_enclosing_key():
    config = {
        "tags": {"env": "${var.env}"},
        "members": ["${var.a}", "literal"],
    }
    matches = list(scan_references(config))

    assert [(m.key, m.expression) for m in matches] == [
        ("env", "var.env"),
        ("members", "var.a"),
    ]


def test_dependency_entries_accept_wrapped_forms():
    assert dependency_candidates("${module.net}") == ["module.net"]
    assert dependency_candidates("resource.project.p") == ["resource.project.p"]
    assert dependency_candidates(42) == []


def test_terraform_address_drops_resource_prefix_only():
    assert to_terraform_address("resource.project.p") == "project.p"
    assert to_terraform_address("data.google_project.current") == "data.google_project.current"
    assert to_terraform_address("${module.net}") == "module.net"
