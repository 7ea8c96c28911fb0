from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Strongest to weakest.
Confidence = Literal["exact", "parameter-match", "normalized"]
MismatchReason = Literal["method-mismatch", "path-structure-mismatch", "parameter-count-mismatch", "no-candidate"]
Severity = Literal["HIGH", "MEDIUM"]

CONFIDENCE_TIERS: tuple[str, ...] = ("exact", "parameter-match", "normalized")
MISMATCH_REASONS: tuple[str, ...] = ("method-mismatch", "path-structure-mismatch", "parameter-count-mismatch", "no-candidate")
# Sentinel reasons for structurally invalid input; never surfaced as a bucket.
INVALID_PATH_REASONS: frozenset[str] = frozenset({"invalid-path-1", "invalid-path-2"})


class AuditModel(BaseModel):
    """Base for every record: immutable, snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class RouteInfo(AuditModel):
    """A route exposed by the backend."""

    method: str
    path: str
    handler: str | None = None
    middleware: tuple[str, ...] = ()
    module: str | None = None
    is_legacy: bool = False
    requires_auth: bool = False
    file: str | None = None
    line: int | None = None


class APICallInfo(AuditModel):
    """An HTTP call site in the frontend.

    `full_path` is the path combined with any base URL prefix; it is what gets compared
    against route templates. Extractors must resolve it, the matcher never infers it.
    """

    method: str
    path: str
    full_path: str
    component: str | None = None
    file: str | None = None
    line: int | None = None
    has_base_url: bool = Field(default=False, alias="hasBaseURL")


class MatchedPair(AuditModel):
    frontend: APICallInfo
    backend: RouteInfo
    confidence: Confidence


class Statistics(AuditModel):
    total_frontend: int
    total_backend: int
    matched_count: int
    # matched_count / total_backend (backend routes are the audited surface), 0 when no routes.
    match_rate: float
    improvement_from_previous: float = 0.0


class MatchResult(AuditModel):
    matched: list[MatchedPair] = Field(default_factory=list)
    unmatched_frontend: list[APICallInfo] = Field(default_factory=list)
    unmatched_backend: list[RouteInfo] = Field(default_factory=list)
    statistics: Statistics


class Suggestion(AuditModel):
    frontend: APICallInfo
    backend: RouteInfo
    similarity: float
    reason: str
    suggested_action: str


class CandidateMismatch(AuditModel):
    """An unmatched call paired with the first backend route that explains why."""

    frontend: APICallInfo
    backend: RouteInfo
    details: str


class NoCandidate(AuditModel):
    route: Union[APICallInfo, RouteInfo]
    type: Literal["frontend", "backend"]


class AnalysisStatistics(AuditModel):
    total_unmatched_frontend: int = 0
    total_unmatched_backend: int = 0
    method_mismatch_count: int = 0
    path_structure_mismatch_count: int = 0
    parameter_count_mismatch_count: int = 0
    no_candidate_count: int = 0


class UnmatchedAnalysis(AuditModel):
    by_reason: dict[str, list[Union[CandidateMismatch, NoCandidate]]]
    statistics: AnalysisStatistics


class DuplicatePrefixIssue(AuditModel):
    file: str | None = None
    line: int | None = None
    path: str
    full_path: str
    issue: str
    severity: Severity
    suggested_fix: str


class RouteAuditReport(AuditModel):
    match_result: MatchResult
    suggestions: list[Suggestion] = Field(default_factory=list)
    analysis: UnmatchedAnalysis
    duplicate_prefixes: list[DuplicatePrefixIssue] = Field(default_factory=list)
