import re
from dataclasses import dataclass, field
from typing import List

BLOCK_KEYWORDS = ("resource", "data", "module", "variable", "output", "terraform", "provider", "locals")

_BLOCK_START = re.compile(r"^\s*(\w+)\b", re.MULTILINE)


@dataclass
class CodeCheckResult:
    valid: bool
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"valid": self.valid, "errors": self.errors}


def _brace_balance(code: str) -> List[str]:
    """Count braces outside string literals and `#` comments."""
    depth = 0
    in_string = False
    escaped = False
    in_comment = False

    for ch in code:
        if in_comment:
            in_comment = ch != "\n"
            continue
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "#":
            in_comment = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth < 0:
                return ["Code has unbalanced braces"]

    if in_string:
        return ["Code has an unterminated string literal"]
    if depth != 0:
        return ["Code has unbalanced braces"]
    return []


def check_code(code: str) -> CodeCheckResult:
    """Structural sanity check for generated configuration text."""
    if not isinstance(code, str) or not code.strip():
        return CodeCheckResult(valid=False, errors=["Code is empty"])

    errors = _brace_balance(code)
    keywords = set(_BLOCK_START.findall(code))
    if not keywords.intersection(BLOCK_KEYWORDS):
        errors.append("Code does not contain any configuration block")

    return CodeCheckResult(valid=not errors, errors=errors)
