"""
Reference resolution for interpolated configuration strings.

Finds `${...}` expressions inside attribute values and turns each one into the
node ids it may point at. Deterministic, no graph access: callers decide which
candidate actually exists.
"""

import re
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional

# One interpolation occurrence inside a larger string
INTERPOLATION_PATTERN = re.compile(r"\$\{([^{}]+)\}")

# A string that is nothing but a single interpolation
WHOLE_REFERENCE_PATTERN = re.compile(r"^\$\{([^{}]+)\}$")

_ADDRESS_PATTERN = re.compile(r"^[A-Za-z_][\w-]*(\.[A-Za-z_][\w-]*)*$")
_INDEX_PATTERN = re.compile(r"\[[^\]]*\]")

KIND_PREFIXES = ("resource", "data", "module", "var", "output")

# Address roots that never name a block in the diagram
_NON_BLOCK_ROOTS = {"local", "each", "count", "self", "path", "terraform"}


@dataclass
class ReferenceMatch:
    key: Optional[str]      # nearest enclosing attribute key
    expression: str         # text between ${ and }
    candidates: List[str]   # node ids to try, most specific first


def extract_expressions(value: str) -> List[str]:
    """All interpolation bodies in a string, one per occurrence."""
    return [m.strip() for m in INTERPOLATION_PATTERN.findall(value)]


def unwrap_reference(value: str) -> Optional[str]:
    """Bare reference text if the whole string is one interpolation."""
    match = WHOLE_REFERENCE_PATTERN.match(value)
    if not match:
        return None
    return match.group(1).strip()


def candidate_ids(expression: str) -> List[str]:
    """
    Node ids an expression may refer to.

    The raw path always comes first so exact ids keep priority; the
    remaining entries map Terraform-style addresses onto diagram ids.
    """
    path = expression.strip()
    # aws_instance.web[0].id and splat forms address the same block
    address = _INDEX_PATTERN.sub("", path)
    if not _ADDRESS_PATTERN.match(address):
        return []

    parts = address.split(".")
    candidates = [path, address]
    root = parts[0]

    if root in _NON_BLOCK_ROOTS:
        return []

    if root == "resource" and len(parts) >= 3:
        candidates.append(".".join(parts[:3]))
    elif root == "data" and len(parts) >= 3:
        candidates.append(".".join(parts[:3]))
    elif root in ("var", "module", "output") and len(parts) >= 2:
        candidates.append(".".join(parts[:2]))
    elif root not in KIND_PREFIXES and len(parts) >= 2:
        # google_storage_bucket.assets.name -> resource.google_storage_bucket.assets
        candidates.append(f"resource.{parts[0]}.{parts[1]}")

    deduped: List[str] = []
    for candidate in candidates:
        if candidate not in deduped:
            deduped.append(candidate)
    return deduped


def scan_references(config: Any, key: Optional[str] = None) -> Iterator[ReferenceMatch]:
    """Walk a config value and yield every interpolation occurrence in order."""
    if isinstance(config, str):
        for expression in extract_expressions(config):
            yield ReferenceMatch(
                key=key,
                expression=expression,
                candidates=candidate_ids(expression),
            )
    elif isinstance(config, dict):
        for child_key, child in config.items():
            yield from scan_references(child, child_key)
    elif isinstance(config, list):
        for item in config:
            yield from scan_references(item, key)


def dependency_candidates(entry: Any) -> List[str]:
    """Candidate ids for one `depends_on` entry (bare, prefixed or ${}-wrapped)."""
    if not isinstance(entry, str):
        return []
    bare = unwrap_reference(entry) or entry.strip()
    return candidate_ids(bare)


def to_terraform_address(node_id: str) -> str:
    """Inverse of the id scheme: `resource.t.n` -> `t.n`; other kinds unchanged."""
    bare = unwrap_reference(node_id) or node_id
    if bare.startswith("resource."):
        return bare[len("resource."):]
    return bare
