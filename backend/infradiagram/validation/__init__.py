"""
Snapshot and generated-code validation.
"""

from infradiagram.validation.code_check import CodeCheckResult, check_code
from infradiagram.validation.diagram_validator import (
    DiagramValidationResult,
    DiagramValidator,
    ValidationIssue,
    ValidationSeverity,
    raise_on_errors,
    validate_diagram,
)

__all__ = [
    "CodeCheckResult",
    "DiagramValidationResult",
    "DiagramValidator",
    "ValidationIssue",
    "ValidationSeverity",
    "check_code",
    "raise_on_errors",
    "validate_diagram",
]
