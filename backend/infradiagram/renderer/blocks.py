from typing import Any, Callable, Dict, List

from infradiagram.compiler.references import to_terraform_address, unwrap_reference
from infradiagram.ir.diagram import Node, NodeKind
from infradiagram.ir.errors import GenerationError
from infradiagram.renderer.values import INDENT, format_attribute, format_value, quote

INTERNAL_PREFIX = "_"


# ============================================================
# Shared helpers
# ============================================================

def _require_name(node: Node) -> None:
    if not node.name:
        raise GenerationError(
            f"Invalid {node.kind.key} node {node.id}: missing name",
            details=[{"node_id": node.id, "field": "name"}],
        )


def _require_typed(node: Node) -> None:
    if not node.resource_type or not node.name:
        raise GenerationError(
            f"Invalid {node.kind.key} node {node.id}: missing resourceType or name",
            details=[{"node_id": node.id, "field": "resourceType" if node.name else "name"}],
        )


def _attributes(node: Node) -> Dict[str, Any]:
    config = node.config or {}
    if not isinstance(config, dict):
        raise GenerationError(f"Node {node.id} config must be a mapping")
    return config


def _body(config: Dict[str, Any], skip: tuple = ()) -> List[str]:
    lines = []
    for key, value in config.items():
        if key.startswith(INTERNAL_PREFIX) or key == "depends_on" or key in skip:
            continue
        lines.append(format_attribute(key, value, 1))
    return lines


def _depends_on(node: Node, config: Dict[str, Any]) -> List[str]:
    deps = config.get("depends_on")
    if not deps:
        return []
    if not isinstance(deps, list):
        raise GenerationError(f"Node {node.id}: depends_on must be a list")

    lines = [f"{INDENT}depends_on = ["]
    for dep in deps:
        if not isinstance(dep, str) or not dep.strip():
            raise GenerationError(f"Node {node.id}: depends_on entries must be identifiers")
        lines.append(f"{INDENT * 2}{to_terraform_address(dep.strip())},")
    lines.append(f"{INDENT}]")
    return lines


def _block(header: str, lines: List[str]) -> str:
    if not lines:
        return f"{header} {{\n}}"
    return header + " {\n" + "\n".join(lines) + "\n}"


# ============================================================
# Per-kind emitters
# ============================================================

def emit_resource(node: Node) -> str:
    _require_typed(node)
    config = _attributes(node)
    lines = _body(config) + _depends_on(node, config)
    return _block(f"resource {quote(node.resource_type)} {quote(node.name)}", lines)


def emit_data(node: Node) -> str:
    _require_typed(node)
    config = _attributes(node)
    lines = _body(config) + _depends_on(node, config)
    return _block(f"data {quote(node.resource_type)} {quote(node.name)}", lines)


def emit_module(node: Node) -> str:
    _require_name(node)
    config = _attributes(node)

    source = config.get("source") or f"./modules/{node.name}"
    lines = [f"{INDENT}source = {format_value(source, 1)}"]
    lines += _body(config, skip=("source",))
    lines += _depends_on(node, config)
    return _block(f"module {quote(node.name)}", lines)


def emit_variable(node: Node) -> str:
    _require_name(node)
    config = _attributes(node)
    lines: List[str] = []

    if config.get("description"):
        lines.append(f"{INDENT}description = {quote(str(config['description']))}")

    if config.get("type"):
        type_expr = config["type"]
        if not isinstance(type_expr, str):
            raise GenerationError(f"Variable {node.id}: type must be a type expression string")
        lines.append(f"{INDENT}type = {unwrap_reference(type_expr) or type_expr}")

    if "default" in config:
        lines.append(f"{INDENT}default = {format_value(config['default'], 1)}")

    for flag in ("sensitive", "nullable"):
        if isinstance(config.get(flag), bool):
            lines.append(f"{INDENT}{flag} = {format_value(config[flag])}")

    validations = config.get("validation") or []
    if isinstance(validations, dict):
        validations = [validations]
    for validation in validations:
        if not isinstance(validation, dict):
            raise GenerationError(f"Variable {node.id}: validation blocks must be mappings")
        lines.append(f"{INDENT}validation {{")
        for key, value in validation.items():
            lines.append(format_attribute(key, value, 2))
        lines.append(f"{INDENT}}}")

    return _block(f"variable {quote(node.name)}", lines)


def emit_output(node: Node) -> str:
    _require_name(node)
    config = _attributes(node)

    value = config["value"] if "value" in config else None
    lines = [f"{INDENT}value = {format_value(value, 1)}"]

    if config.get("description"):
        lines.append(f"{INDENT}description = {quote(str(config['description']))}")

    if "sensitive" in config and config["sensitive"] is not None:
        sensitive = config["sensitive"]
        if isinstance(sensitive, str):
            sensitive = sensitive.strip().lower() == "true"
        lines.append(f"{INDENT}sensitive = {format_value(bool(sensitive))}")

    lines += _depends_on(node, config)
    return _block(f"output {quote(node.name)}", lines)


EMITTERS: Dict[NodeKind, Callable[[Node], str]] = {
    NodeKind.RESOURCE: emit_resource,
    NodeKind.DATA: emit_data,
    NodeKind.MODULE: emit_module,
    NodeKind.VARIABLE: emit_variable,
    NodeKind.OUTPUT: emit_output,
}


def emit_block(node: Node) -> str:
    return EMITTERS[node.kind](node)
