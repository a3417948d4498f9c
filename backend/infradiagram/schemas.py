from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class RequestModel(BaseModel):
    """Accepts both the camelCase wire names and the Python field names."""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class LayoutOptionsRequest(RequestModel):
    direction: Optional[str] = Field(None, alias="rankdir")
    node_spacing: Optional[float] = Field(None, alias="nodesep")
    rank_spacing: Optional[float] = Field(None, alias="ranksep")
    margin_x: Optional[float] = Field(None, alias="marginx")
    margin_y: Optional[float] = Field(None, alias="marginy")


class GenerateDiagramRequest(RequestModel):
    parsed_data: Dict[str, Any] = Field(..., alias="parsedData")
    layout_options: Optional[LayoutOptionsRequest] = Field(None, alias="layoutOptions")
    enhance: bool = True  # best-effort, skipped when no enhancer is configured


class NodeCreateRequest(RequestModel):
    id: Optional[str] = None
    kind: Optional[str] = None
    type: Optional[str] = None  # legacy name for `kind`
    resource_type: Optional[str] = Field(None, alias="resourceType")
    name: Optional[str] = None
    label: Optional[str] = None
    config: Optional[Dict[str, Any]] = None
    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    icon: Optional[str] = None


class NodeUpdateRequest(NodeCreateRequest):
    pass


class ConnectionCreateRequest(RequestModel):
    source_id: str = Field(..., alias="sourceId")
    target_id: str = Field(..., alias="targetId")
    type: Optional[str] = None
    label: Optional[str] = None
    verb: Optional[str] = None


class ConnectionUpdateRequest(RequestModel):
    id: Optional[str] = None
    source_id: Optional[str] = Field(None, alias="sourceId")
    target_id: Optional[str] = Field(None, alias="targetId")
    type: Optional[str] = None
    label: Optional[str] = None
    verb: Optional[str] = None


class CodeGenerateRequest(RequestModel):
    """Either a stored diagram id or a full client-side snapshot."""
    diagram_id: Optional[str] = Field(None, alias="diagramId")
    diagram_data: Optional[Dict[str, Any]] = Field(None, alias="diagramData")
    include_terraform_block: Optional[bool] = Field(None, alias="includeTerraformBlock")


class PreviewRequest(CodeGenerateRequest):
    original_code: Optional[Dict[str, str]] = Field(None, alias="originalCode")


class ExportRequest(RequestModel):
    generated_code: Dict[str, str] = Field(..., alias="generatedCode")
    output_directory: str = Field(..., alias="outputDirectory")
