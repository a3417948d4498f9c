import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from infradiagram.ir.diagram import Graph, NodeKind
from infradiagram.ir.errors import NotFoundError
from infradiagram.renderer.blocks import emit_block
from infradiagram.renderer.values import quote

logger = logging.getLogger(__name__)

# file stem -> kinds emitted into it, in emission order
FILE_LAYOUT = [
    ("main", (NodeKind.RESOURCE, NodeKind.DATA, NodeKind.MODULE)),
    ("variables", (NodeKind.VARIABLE,)),
    ("outputs", (NodeKind.OUTPUT,)),
]

REQUIRED_VERSION = ">= 1.0.0"


def provider_names(graph: Graph) -> List[str]:
    """Provider prefixes of every resource and data type (google_storage_bucket -> google)."""
    names = set()
    for node in graph.nodes.values():
        if node.kind in (NodeKind.RESOURCE, NodeKind.DATA) and node.resource_type:
            names.add(node.resource_type.split("_", 1)[0])
    return sorted(names)


def terraform_block(graph: Graph) -> str:
    lines = ["terraform {", f"  required_version = {quote(REQUIRED_VERSION)}"]
    providers = provider_names(graph)
    if providers:
        lines.append("")
        lines.append("  required_providers {")
        for name in providers:
            lines.append(f"    {name} = {{")
            lines.append(f"      source = {quote('hashicorp/' + name)}")
            lines.append("    }")
        lines.append("  }")
    lines.append("}")
    return "\n".join(lines)


def generate_files(
    graph: Graph,
    extension: str = "tf",
    include_terraform_block: bool = False,
) -> Dict[str, str]:
    """
    Render a graph into file name -> configuration text.

    All blocks are rendered before anything is returned: one node that
    cannot be emitted fails the whole call. Empty files are omitted.
    """
    files: Dict[str, str] = {}

    for stem, kinds in FILE_LAYOUT:
        blocks: List[str] = []
        if stem == "main" and include_terraform_block:
            blocks.append(terraform_block(graph))
        for kind in kinds:
            for node in graph.nodes_of(kind):
                blocks.append(emit_block(node))

        text = "\n\n".join(blocks)
        if text.strip():
            files[f"{stem}.{extension}"] = text + "\n"

    logger.info(
        "[codegen] generated %s from %d nodes",
        ", ".join(sorted(files)) or "no files",
        len(graph.nodes),
    )
    return files


def generate_block(graph: Graph, node_id: str, kinds: Optional[Tuple[NodeKind, ...]] = None) -> str:
    """One block by node id. `kinds` restricts which node kinds may be addressed."""
    node = graph.nodes.get(node_id)
    if node is None or (kinds and node.kind not in kinds):
        label = kinds[0].key.capitalize() if kinds else "Node"
        raise NotFoundError(f"{label} with ID {node_id} not found", details=[{"node_id": node_id}])
    return emit_block(node)


def diff_files(original: Dict[str, str], generated: Dict[str, str]) -> Dict[str, dict]:
    diff = {}
    for filename in sorted(set(original) | set(generated)):
        before = original.get(filename, "")
        after = generated.get(filename, "")
        if before != after:
            diff[filename] = {
                "original": before,
                "generated": after,
                "added": filename not in original,
                "removed": filename not in generated,
            }
    return diff


def export_files(files: Dict[str, str], output_dir) -> List[dict]:
    target = Path(output_dir)
    target.mkdir(parents=True, exist_ok=True)

    exported = []
    for filename, content in files.items():
        path = target / Path(filename).name
        path.write_text(content, encoding="utf-8")
        exported.append({"filename": path.name, "path": str(path)})

    logger.info("[codegen] exported %d files to %s", len(exported), target)
    return exported
