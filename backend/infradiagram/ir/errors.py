from typing import Any, Dict, List, Optional


class DiagramError(Exception):
    """Base class for every failure raised by the diagram engine."""

    code = "diagram_error"

    def __init__(self, message: str, details: Optional[List[Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": "error",
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(DiagramError):
    """Malformed node or edge payload."""

    code = "validation_error"


class NotFoundError(DiagramError):
    """A mutation addressed an unknown diagram, node or edge."""

    code = "not_found"


class GenerationError(DiagramError):
    """A node lacks a field its block emitter requires."""

    code = "generation_error"


class LayoutError(DiagramError):
    """Layout failed on a structurally valid graph. Always a defect."""

    code = "layout_error"
