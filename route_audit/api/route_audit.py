from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from pydantic import Field

from route_audit.matching.models import (
    APICallInfo,
    AuditModel,
    DuplicatePrefixIssue,
    MatchResult,
    RouteAuditReport,
    RouteInfo,
    Suggestion,
    UnmatchedAnalysis,
)
from route_audit.matching.route_matcher import RouteMatcher

router = APIRouter(prefix="/audit/routes", tags=["route-audit"])

_matcher = RouteMatcher()


class MatchRequest(AuditModel):
    frontend_calls: list[APICallInfo] = Field(default_factory=list)
    backend_routes: list[RouteInfo] = Field(default_factory=list)
    # Match rate of an earlier audit pass, for improvement tracking.
    previous_match_rate: float | None = None


class UnmatchedRequest(AuditModel):
    unmatched_frontend: list[APICallInfo] = Field(default_factory=list)
    unmatched_backend: list[RouteInfo] = Field(default_factory=list)


class CallsRequest(AuditModel):
    calls: list[APICallInfo] = Field(default_factory=list)


class SuggestionsResponse(AuditModel):
    suggestions: list[Suggestion]


class DuplicatePrefixesResponse(AuditModel):
    issues: list[DuplicatePrefixIssue]


def _previous(body: MatchRequest) -> dict[str, Any] | None:
    if body.previous_match_rate is None:
        return None
    return {"statistics": {"matchRate": body.previous_match_rate}}


@router.post("/match", response_model=MatchResult)
def match(body: MatchRequest) -> MatchResult:
    return _matcher.match_routes(body.frontend_calls, body.backend_routes, _previous(body))


@router.post("/suggestions", response_model=SuggestionsResponse)
def suggestions(body: UnmatchedRequest) -> SuggestionsResponse:
    return SuggestionsResponse(suggestions=_matcher.suggest_matches(body.unmatched_frontend, body.unmatched_backend))


@router.post("/analysis", response_model=UnmatchedAnalysis)
def analysis(body: UnmatchedRequest) -> UnmatchedAnalysis:
    return _matcher.analyze_unmatched_routes(body.unmatched_frontend, body.unmatched_backend)


@router.post("/duplicate-prefixes", response_model=DuplicatePrefixesResponse)
def duplicate_prefixes(body: CallsRequest) -> DuplicatePrefixesResponse:
    return DuplicatePrefixesResponse(issues=_matcher.detect_duplicate_prefixes(body.calls))


@router.post("/report", response_model=RouteAuditReport)
def report(body: MatchRequest) -> RouteAuditReport:
    return _matcher.audit(body.frontend_calls, body.backend_routes, _previous(body))
