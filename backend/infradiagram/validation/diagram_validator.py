"""
Diagram Validator - Checks a graph snapshot before it is trusted.

Catches issues like:
- Edges whose endpoints are not nodes of the diagram
- Nodes with an empty id
- Self loops
- Orphaned nodes (no connections)
- Parallel edges between the same ordered pair
"""

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple

from infradiagram.ir.diagram import Graph
from infradiagram.ir.errors import ValidationError


class ValidationSeverity(Enum):
    ERROR = "error"      # Snapshot is structurally broken
    WARNING = "warning"  # Usable, but probably not what the user meant
    INFO = "info"


@dataclass
class ValidationIssue:
    """A single validation issue found in the diagram"""
    severity: ValidationSeverity
    code: str
    message: str
    node_id: Optional[str] = None
    edge_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "node_id": self.node_id,
            "edge_id": self.edge_id,
        }


@dataclass
class DiagramValidationResult:
    is_valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=dict)

    def _count(self, severity: ValidationSeverity) -> int:
        return sum(1 for i in self.issues if i.severity == severity)

    @property
    def error_count(self) -> int:
        return self._count(ValidationSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return self._count(ValidationSeverity.WARNING)

    @property
    def info_count(self) -> int:
        return self._count(ValidationSeverity.INFO)

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "info_count": self.info_count,
            "issues": [i.to_dict() for i in self.issues],
            "stats": self.stats,
        }

    def get_summary(self) -> str:
        status = "Valid" if self.is_valid else "Invalid"
        return (
            f"{status} | Errors: {self.error_count}, "
            f"Warnings: {self.warning_count}, Info: {self.info_count}"
        )


class DiagramValidator:
    """
    Usage:
        result = DiagramValidator().validate(graph)
        if not result.is_valid:
            for issue in result.issues:
                ...
    """

    def __init__(self, strict_mode: bool = False):
        self.strict_mode = strict_mode

    def validate(self, graph: Graph) -> DiagramValidationResult:
        node_ids = set(graph.nodes)
        issues: List[ValidationIssue] = []

        issues.extend(self._check_node_ids(graph))
        issues.extend(self._check_missing_edge_references(graph, node_ids))
        issues.extend(self._check_self_loops(graph))
        issues.extend(self._check_orphaned_nodes(graph, node_ids))
        issues.extend(self._check_parallel_edges(graph))

        has_errors = any(i.severity == ValidationSeverity.ERROR for i in issues)
        has_warnings = any(i.severity == ValidationSeverity.WARNING for i in issues)
        is_valid = not has_errors
        if self.strict_mode:
            is_valid = not has_errors and not has_warnings

        return DiagramValidationResult(
            is_valid=is_valid,
            issues=issues,
            stats=self._calculate_stats(graph, node_ids),
        )

    def _check_node_ids(self, graph: Graph) -> List[ValidationIssue]:
        issues = []
        for key, node in graph.nodes.items():
            if not key or not key.strip() or not node.id:
                issues.append(ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    code="EMPTY_NODE_ID",
                    message="Node has an empty id",
                ))
            elif node.id != key:
                issues.append(ValidationIssue(
                    severity=ValidationSeverity.ERROR,
                    code="NODE_ID_MISMATCH",
                    message=f"Node stored under '{key}' carries id '{node.id}'",
                    node_id=key,
                ))
        return issues

    def _check_missing_edge_references(self, graph: Graph, node_ids: Set[str]) -> List[ValidationIssue]:
        issues = []
        for edge in graph.edges.values():
            for role, endpoint in (("source", edge.source_id), ("target", edge.target_id)):
                if endpoint not in node_ids:
                    issues.append(ValidationIssue(
                        severity=ValidationSeverity.ERROR,
                        code=f"MISSING_{role.upper()}_NODE",
                        message=f"Connection {edge.id} references non-existent {role} node '{endpoint}'",
                        node_id=endpoint,
                        edge_id=edge.id,
                    ))
        return issues

    def _check_self_loops(self, graph: Graph) -> List[ValidationIssue]:
        return [
            ValidationIssue(
                severity=ValidationSeverity.WARNING,
                code="SELF_LOOP",
                message=f"Connection {edge.id} loops on node '{edge.source_id}'",
                node_id=edge.source_id,
                edge_id=edge.id,
            )
            for edge in graph.edges.values()
            if edge.source_id == edge.target_id
        ]

    def _check_orphaned_nodes(self, graph: Graph, node_ids: Set[str]) -> List[ValidationIssue]:
        connected = set()
        for edge in graph.edges.values():
            connected.add(edge.source_id)
            connected.add(edge.target_id)

        return [
            ValidationIssue(
                severity=ValidationSeverity.INFO,
                code="ORPHANED_NODE",
                message=f"Node '{node_id}' has no connections",
                node_id=node_id,
            )
            for node_id in sorted(node_ids - connected)
        ]

    def _check_parallel_edges(self, graph: Graph) -> List[ValidationIssue]:
        issues = []
        pairs: Dict[Tuple[str, str], int] = defaultdict(int)
        for edge in graph.edges.values():
            pairs[edge.pair] += 1
        for (source, target), count in pairs.items():
            if count > 1:
                issues.append(ValidationIssue(
                    severity=ValidationSeverity.INFO,
                    code="PARALLEL_EDGES",
                    message=f"{count} connections run from '{source}' to '{target}'; address them by id",
                    node_id=source,
                ))
        return issues

    def _calculate_stats(self, graph: Graph, node_ids: Set[str]) -> Dict[str, int]:
        kinds: Dict[str, int] = defaultdict(int)
        for node in graph.nodes.values():
            kinds[node.kind.key] += 1
        stats = {"nodes": len(graph.nodes), "edges": len(graph.edges)}
        stats.update(kinds)
        return stats


def validate_diagram(graph: Graph, strict: bool = False) -> DiagramValidationResult:
    """Convenience function to validate a diagram."""
    return DiagramValidator(strict_mode=strict).validate(graph)


def raise_on_errors(graph: Graph) -> DiagramValidationResult:
    """Validate and raise ValidationError if any error-level issue is found."""
    result = validate_diagram(graph)
    if not result.is_valid:
        errors = [i for i in result.issues if i.severity == ValidationSeverity.ERROR]
        raise ValidationError(
            f"Diagram validation failed with {len(errors)} errors",
            details=[i.to_dict() for i in errors],
        )
    return result
