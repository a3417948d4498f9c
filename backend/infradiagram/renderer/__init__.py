from infradiagram.renderer.blocks import emit_block
from infradiagram.renderer.generator import (
    diff_files,
    export_files,
    generate_block,
    generate_files,
)
from infradiagram.renderer.values import format_attribute, format_value

__all__ = [
    "emit_block",
    "diff_files",
    "export_files",
    "generate_block",
    "generate_files",
    "format_attribute",
    "format_value",
]
