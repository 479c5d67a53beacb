"""
Typed outcomes for engine operations.

PURPOSE: Every engine operation reports success or one of a fixed set of failure/notice kinds
         with enough structure for a caller to render a message and, where applicable, offer
         the suggested correction.
CONTEXT: Issues in `errors` block progression; issues in `notices` are informational
         (slab correction, overlap flagged after a swap, transient non-100 totals).
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class IssueKind(str, Enum):
    VALIDATION_ERROR = "ValidationError"
    SLAB_MISMATCH = "SlabMismatchNotice"
    INCOMPLETE_ANSWERS = "IncompleteAnswers"
    INVALID_SUBSTITUTION = "InvalidSubstitution"
    ALLOCATION_SUM_MISMATCH = "AllocationSumMismatch"
    OVERLAP_DETECTED = "OverlapDetected"
    CONTENT_GENERATION = "ContentGenerationError"
    INVALID_OVERRIDE = "InvalidOverride"


@dataclass(frozen=True)
class Issue:
    kind: IssueKind
    message: str
    suggestion: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "suggestion": self.suggestion,
            "details": self.details,
        }


@dataclass
class Outcome(Generic[T]):
    """
    Result of an engine operation.

    attributes:
    - value: the produced value (None on failure).
    - errors: list[Issue] – blocking problems; non-empty means the operation failed.
    - notices: list[Issue] – non-blocking issues the caller should surface.
    """

    value: Optional[T] = None
    errors: List[Issue] = field(default_factory=list)
    notices: List[Issue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @classmethod
    def success(cls, value: T, notices: Optional[List[Issue]] = None) -> "Outcome[T]":
        return cls(value=value, notices=list(notices or []))

    @classmethod
    def failure(cls, kind: IssueKind, message: str, suggestion: Optional[str] = None,
                **details: Any) -> "Outcome[T]":
        return cls(errors=[Issue(kind, message, suggestion, dict(details))])

    def has(self, kind: IssueKind) -> bool:
        return any(i.kind == kind for i in self.errors + self.notices)


class ContentGenerationError(Exception):
    """
    Raised by content-generation adapters when a response is missing, malformed,
    times out, or breaks the response contract.

    attributes:
    - need: str – which content need failed (e.g. 'recommend_schemes').
    - raw: str|None – the offending raw text, truncated, for diagnostics.
    """

    def __init__(self, message: str, need: str = "", raw: Optional[str] = None):
        super().__init__(message)
        self.need = need
        self.raw = raw[:500] if raw else raw

    def to_issue(self) -> Issue:
        return Issue(IssueKind.CONTENT_GENERATION, str(self), details={"need": self.need})
