"""
Shared data models for the request body scanner.

Rule maps, extraction results and stage results used across the
extraction -> merge -> transform pipeline.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union


# =============================================================================
# RULES
# =============================================================================

@dataclass(frozen=True)
class RuleObject:
    """A structured rule token, e.g. ``Rule.in_(["draft", "published"])``."""
    name: str
    args: Tuple[Any, ...] = ()
    expression: str = ""

    def __str__(self) -> str:
        return self.expression or self.name


RuleToken = Union[str, RuleObject]
RuleMap = Dict[str, List[RuleToken]]


class CodeNode(NamedTuple):
    """A matched AST node together with the source lines of its file."""
    node: ast.AST
    lines: List[str]


@dataclass(frozen=True)
class ExtractionResult:
    """Rules recovered by one extractor for one handler."""
    rules: RuleMap = field(default_factory=dict)
    nodes: Tuple[CodeNode, ...] = ()
    source: str = ""
    error: Optional[StageResult] = None

    def is_empty(self) -> bool:
        return not self.rules

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "rules": {path: [str(token) for token in tokens] for path, tokens in self.rules.items()},
            "nodes": len(self.nodes),
            "error": self.error.to_dict() if self.error else None,
        }


# =============================================================================
# STAGE RESULTS
# =============================================================================

class StageStatus(Enum):
    OK = "ok"
    FAILED = "failed"


class ErrorKind(Enum):
    EXTRACTION = "extraction"
    TRANSFORMATION = "transformation"
    PIPELINE = "pipeline"


@dataclass
class StageResult:
    """
    Outcome of one synthesis stage.

    Either carries a value (``StageStatus.OK``) or the kind and message of
    the failure together with the original exception.
    """
    status: StageStatus
    value: Any = None
    error_kind: Optional[ErrorKind] = None
    message: str = ""
    exception: Optional[BaseException] = None

    @classmethod
    def ok(cls, value: Any) -> "StageResult":
        return cls(status=StageStatus.OK, value=value)

    @classmethod
    def failed(cls, kind: ErrorKind, exception: BaseException) -> "StageResult":
        return cls(
            status=StageStatus.FAILED,
            error_kind=kind,
            message=str(exception),
            exception=exception,
        )

    def is_success(self) -> bool:
        return self.status == StageStatus.OK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "message": self.message,
        }
