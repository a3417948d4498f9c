"""
Shared value and attribute formatting for configuration text.

format_value     -> right-hand side of `key = value`
format_attribute -> one attribute line, nested block or dynamic block
"""

import math
import numbers
import re
from typing import Any, List

from infradiagram.compiler.references import unwrap_reference
from infradiagram.ir.errors import GenerationError

INDENT = "  "

_IDENTIFIER = re.compile(r"^[A-Za-z_][\w-]*$")

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def quote(text: str) -> str:
    return '"' + "".join(_ESCAPES.get(ch, ch) for ch in text) + '"'


def _object_key(key: Any) -> str:
    key = str(key)
    return key if _IDENTIFIER.match(key) else quote(key)


def _number(value: numbers.Number) -> str:
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise GenerationError(f"Cannot emit non-finite number {value!r}")
        return repr(value)
    return str(value)


def format_value(value: Any, level: int = 0) -> str:
    """
    Render a value. Multi-line results indent their inner lines relative
    to `level`; the first line carries no indentation.
    """
    if value is None:
        return "null"

    if isinstance(value, bool):
        return "true" if value else "false"

    if isinstance(value, numbers.Number):
        return _number(value)

    if isinstance(value, str):
        reference = unwrap_reference(value)
        if reference is not None:
            return reference
        return quote(value)

    pad = INDENT * (level + 1)
    closing = INDENT * level

    if isinstance(value, (list, tuple)):
        if not value:
            return "[]"
        items = "".join(f"{pad}{format_value(item, level + 1)},\n" for item in value)
        return f"[\n{items}{closing}]"

    if isinstance(value, dict):
        if not value:
            return "{}"
        entries = "".join(
            f"{pad}{_object_key(key)} = {format_value(item, level + 1)}\n"
            for key, item in value.items()
        )
        return f"{{\n{entries}{closing}}}"

    raise GenerationError(f"Cannot emit value of type {type(value).__name__}")


def is_dynamic_block(value: Any) -> bool:
    return isinstance(value, dict) and "for_each" in value


def _dynamic_block(block_type: str, descriptor: dict, level: int) -> List[str]:
    pad = INDENT * level
    inner = INDENT * (level + 1)

    lines = [f"{pad}dynamic {quote(str(block_type))} {{"]
    lines.append(f"{inner}for_each = {format_value(descriptor['for_each'], level + 1)}")

    if descriptor.get("iterator"):
        lines.append(f"{inner}iterator = {unwrap_reference(descriptor['iterator']) or descriptor['iterator']}")

    labels = descriptor.get("labels")
    if isinstance(labels, list) and labels:
        lines.append(f"{inner}labels = [{', '.join(quote(str(label)) for label in labels)}]")

    content = descriptor.get("content")
    if isinstance(content, dict):
        if content:
            lines.append(f"{inner}content {{")
            for key, item in content.items():
                lines.append(format_attribute(key, item, level + 2))
            lines.append(f"{inner}}}")
        else:
            lines.append(f"{inner}content {{}}")

    lines.append(f"{pad}}}")
    return lines


def format_attribute(key: str, value: Any, level: int = 1) -> str:
    """One attribute at `level`, indentation included on every line."""
    pad = INDENT * level

    # dynamic = { setting = { for_each = ..., content = {...} } }
    if key == "dynamic" and isinstance(value, (dict, list)) and not is_dynamic_block(value):
        descriptors = value if isinstance(value, list) else [value]
        lines: List[str] = []
        for descriptor in descriptors:
            if not isinstance(descriptor, dict):
                raise GenerationError("Dynamic block descriptors must be mappings")
            if is_dynamic_block(descriptor):
                lines.extend(_dynamic_block(descriptor.get("type") or "block", descriptor, level))
                continue
            for block_type, inner_descriptor in descriptor.items():
                if not is_dynamic_block(inner_descriptor):
                    raise GenerationError(f"Dynamic block '{block_type}' is missing for_each")
                lines.extend(_dynamic_block(block_type, inner_descriptor, level))
        return "\n".join(lines)

    if is_dynamic_block(value):
        block_type = value.get("type") or (key if key != "dynamic" else "block")
        return "\n".join(_dynamic_block(block_type, value, level))

    # Block bodies only take identifier keys; anything else is a map literal
    if isinstance(value, dict) and all(_IDENTIFIER.match(str(child)) for child in value):
        if not value:
            return f"{pad}{key} {{}}"
        lines = [f"{pad}{key} {{"]
        for child_key, child in value.items():
            lines.append(format_attribute(child_key, child, level + 1))
        lines.append(f"{pad}}}")
        return "\n".join(lines)

    return f"{pad}{key} = {format_value(value, level)}"
