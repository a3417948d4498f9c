from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends

from infradiagram import config
from infradiagram.api.serializers import from_snapshot, to_snapshot
from infradiagram.editor import DiagramService
from infradiagram.editor.service import render_files
from infradiagram.enhancer import get_enhancer
from infradiagram.ir.diagram import Graph, NodeKind
from infradiagram.ir.errors import ValidationError
from infradiagram.renderer import diff_files, export_files, generate_block
from infradiagram.schemas import (
    CodeGenerateRequest,
    ConnectionCreateRequest,
    ConnectionUpdateRequest,
    ExportRequest,
    GenerateDiagramRequest,
    LayoutOptionsRequest,
    NodeCreateRequest,
    NodeUpdateRequest,
    PreviewRequest,
)
from infradiagram.validation import check_code, raise_on_errors

diagram_router = APIRouter(prefix="/api/diagram", tags=["diagram"])
code_router = APIRouter(prefix="/api/code-generator", tags=["code-generator"])

_service: Optional[DiagramService] = None


def get_service() -> DiagramService:
    global _service
    if _service is None:
        _service = DiagramService(enhancer=get_enhancer())
    return _service


def _diagram_response(diagram_id: str, graph: Graph, **extra):
    return {"success": True, "diagram": to_snapshot(graph, diagram_id), **extra}


# ============================================================
# Diagrams
# ============================================================

@diagram_router.post("/generate")
def generate_diagram(request: GenerateDiagramRequest, service: DiagramService = Depends(get_service)):
    layout_options = request.layout_options.model_dump(exclude_none=True) if request.layout_options else None
    diagram_id, graph = service.create(request.parsed_data, layout_options)

    if not request.enhance:
        return _diagram_response(diagram_id, graph)

    result = service.enhance(diagram_id)
    return _diagram_response(
        diagram_id,
        result.graph,
        polished=result.polished,
        groups=result.groups,
        annotations=result.annotations,
    )


@diagram_router.get("/{diagram_id}")
def get_diagram(diagram_id: str, service: DiagramService = Depends(get_service)):
    return _diagram_response(diagram_id, service.get(diagram_id))


@diagram_router.delete("/{diagram_id}")
def delete_diagram(diagram_id: str, service: DiagramService = Depends(get_service)):
    service.delete(diagram_id)
    return {"success": True, "id": diagram_id}


@diagram_router.put("/{diagram_id}/layout")
def update_layout(
    diagram_id: str,
    options: Optional[LayoutOptionsRequest] = None,
    service: DiagramService = Depends(get_service),
):
    raw = options.model_dump(exclude_none=True) if options else None
    return _diagram_response(diagram_id, service.update_layout(diagram_id, raw))


@diagram_router.post("/{diagram_id}/nodes")
def add_node(diagram_id: str, node: NodeCreateRequest, service: DiagramService = Depends(get_service)):
    graph = service.add_node(diagram_id, node.model_dump(exclude_unset=True))
    return _diagram_response(diagram_id, graph)


@diagram_router.put("/{diagram_id}/nodes/{node_id}")
def update_node(
    diagram_id: str,
    node_id: str,
    patch: NodeUpdateRequest,
    service: DiagramService = Depends(get_service),
):
    graph = service.update_node(diagram_id, node_id, patch.model_dump(exclude_unset=True))
    return _diagram_response(diagram_id, graph)


@diagram_router.delete("/{diagram_id}/nodes/{node_id}")
def delete_node(diagram_id: str, node_id: str, service: DiagramService = Depends(get_service)):
    return _diagram_response(diagram_id, service.delete_node(diagram_id, node_id))


@diagram_router.post("/{diagram_id}/connections")
def add_connection(
    diagram_id: str,
    connection: ConnectionCreateRequest,
    service: DiagramService = Depends(get_service),
):
    graph = service.add_edge(diagram_id, connection.model_dump(exclude_unset=True))
    return _diagram_response(diagram_id, graph)


@diagram_router.put("/{diagram_id}/connections/{edge_id}")
def update_connection(
    diagram_id: str,
    edge_id: str,
    patch: ConnectionUpdateRequest,
    service: DiagramService = Depends(get_service),
):
    graph = service.update_edge(diagram_id, edge_id, patch.model_dump(exclude_unset=True))
    return _diagram_response(diagram_id, graph)


@diagram_router.delete("/{diagram_id}/connections/{edge_id}")
def delete_connection(diagram_id: str, edge_id: str, service: DiagramService = Depends(get_service)):
    return _diagram_response(diagram_id, service.delete_edge(diagram_id, edge_id))


@diagram_router.post("/{diagram_id}/enhance")
def enhance_diagram(diagram_id: str, service: DiagramService = Depends(get_service)):
    result = service.enhance(diagram_id)
    return _diagram_response(
        diagram_id,
        result.graph,
        polished=result.polished,
        groups=result.groups,
        annotations=result.annotations,
    )


# ============================================================
# Code generation
# ============================================================

def _resolve_graph(request: CodeGenerateRequest, service: DiagramService) -> Graph:
    if request.diagram_id:
        return service.get(request.diagram_id)
    if request.diagram_data is None:
        raise ValidationError("No diagram data provided")

    graph = from_snapshot(request.diagram_data)
    raise_on_errors(graph)
    return graph


def _generate(request: CodeGenerateRequest, service: DiagramService):
    if request.diagram_id:
        return service.generate_code(request.diagram_id, request.include_terraform_block)
    return render_files(_resolve_graph(request, service), request.include_terraform_block)


@code_router.post("/generate")
def generate_code(request: CodeGenerateRequest, service: DiagramService = Depends(get_service)):
    return {"success": True, "data": {"generatedCode": _generate(request, service)}}


@code_router.post("/resource/{node_id}")
def generate_resource_code(
    node_id: str,
    request: CodeGenerateRequest,
    service: DiagramService = Depends(get_service),
):
    graph = _resolve_graph(request, service)
    code = generate_block(graph, node_id, (NodeKind.RESOURCE, NodeKind.DATA))
    return {"success": True, "data": {"id": node_id, "code": code}}


@code_router.post("/module/{node_id}")
def generate_module_code(
    node_id: str,
    request: CodeGenerateRequest,
    service: DiagramService = Depends(get_service),
):
    graph = _resolve_graph(request, service)
    code = generate_block(graph, node_id, (NodeKind.MODULE,))
    return {"success": True, "data": {"id": node_id, "code": code}}


@code_router.post("/preview")
def preview_changes(request: PreviewRequest, service: DiagramService = Depends(get_service)):
    files = _generate(request, service)
    diff = diff_files(request.original_code, files) if request.original_code is not None else None
    checks = {filename: check_code(text).to_dict() for filename, text in files.items()}
    return {"success": True, "data": {"generatedCode": files, "diff": diff, "checks": checks}}


def _export_target(output_directory: str) -> Path:
    root = Path(config.EXPORT_ROOT).resolve()
    target = (root / output_directory).resolve()
    if target != root and root not in target.parents:
        raise ValidationError(
            "Output directory must stay inside the export root",
            details=[{"outputDirectory": output_directory}],
        )
    return target


@code_router.post("/export")
def export_code(request: ExportRequest):
    if not request.generated_code:
        raise ValidationError("No generated code provided")
    target = _export_target(request.output_directory)
    files = export_files(request.generated_code, target)
    return {"success": True, "data": {"outputDirectory": str(target), "files": files}}
