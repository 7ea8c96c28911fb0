from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Sequence

from loguru import logger

from route_audit.core.settings import settings
from route_audit.matching.models import (
    INVALID_PATH_REASONS,
    MISMATCH_REASONS,
    AnalysisStatistics,
    APICallInfo,
    CandidateMismatch,
    DuplicatePrefixIssue,
    MatchedPair,
    MatchResult,
    MismatchReason,
    NoCandidate,
    RouteAuditReport,
    RouteInfo,
    Statistics,
    Suggestion,
    UnmatchedAnalysis,
)
from route_audit.matching.path_comparator import (
    PathMismatch,
    fix_duplicate_api_prefix,
    has_duplicate_api_prefix,
    paths_match,
    paths_match_with_reason,
)
from route_audit.matching.similarity import path_similarity
from route_audit.utils.perf import perf_span, timed


def _methods_equal(a: str, b: str) -> bool:
    return str(a).upper() == str(b).upper()


def _previous_match_rate(previous: Any) -> float | None:
    """Read statistics.matchRate from a MatchResult or a saved JSON report."""

    if previous is None:
        return None
    if isinstance(previous, MatchResult):
        return float(previous.statistics.match_rate)
    if isinstance(previous, Mapping):
        stats = previous.get("statistics")
        if isinstance(stats, Statistics):
            return float(stats.match_rate)
        if isinstance(stats, Mapping):
            raw = stats.get("matchRate", stats.get("match_rate"))
            try:
                rate = float(raw or 0.0)
            except (TypeError, ValueError):
                return None
            return rate if math.isfinite(rate) else None
    return None


class RouteMatcher:
    """Reconciles frontend call sites with backend routes.

    Assignment is greedy first-fit: each call, in input order, takes the first
    still-unclaimed route it matches. A route is consumed once matched, so several
    calls that fit the same parameterized route yield one match and leave the rest
    unmatched. Permuting the input can change which pairs are formed.
    """

    def __init__(self, config: Any = None) -> None:
        # Module grouping hints from the caller; the algorithms never read them.
        self.config = config

    def _routes_match(self, call: APICallInfo, route: RouteInfo) -> bool:
        if not _methods_equal(call.method, route.method):
            return False
        return paths_match(call.full_path, route.path)

    def match_routes(
        self,
        frontend_calls: Sequence[APICallInfo],
        backend_routes: Sequence[RouteInfo],
        previous_results: Any = None,
    ) -> MatchResult:
        logger.info("Matching {} frontend calls to {} backend routes", len(frontend_calls), len(backend_routes))

        matched: list[MatchedPair] = []
        unmatched_frontend: list[APICallInfo] = []
        pool: list[RouteInfo] = list(backend_routes)

        with perf_span("route_matcher.match_routes", calls=len(frontend_calls), routes=len(backend_routes)):
            for call in frontend_calls:
                for i, route in enumerate(pool):
                    if not self._routes_match(call, route):
                        continue
                    result = paths_match_with_reason(call.full_path, route.path, call.method, route.method)
                    confidence = result.confidence or "exact"
                    matched.append(MatchedPair(frontend=call, backend=route, confidence=confidence))
                    del pool[i]
                    break
                else:
                    unmatched_frontend.append(call)

        total_backend = len(backend_routes)
        match_rate = float(len(matched) / total_backend) if total_backend > 0 else 0.0
        previous_rate = _previous_match_rate(previous_results)
        improvement = match_rate - previous_rate if previous_rate is not None else 0.0

        statistics = Statistics(
            total_frontend=len(frontend_calls),
            total_backend=total_backend,
            matched_count=len(matched),
            match_rate=match_rate,
            improvement_from_previous=float(improvement),
        )

        logger.info(
            "Matched {} routes ({:.1f}%), {} unmatched frontend, {} unmatched backend",
            len(matched),
            match_rate * 100.0,
            len(unmatched_frontend),
            len(pool),
        )
        return MatchResult(
            matched=matched,
            unmatched_frontend=unmatched_frontend,
            unmatched_backend=pool,
            statistics=statistics,
        )

    def _calculate_similarity(self, path_a: str, path_b: str) -> float:
        return path_similarity(path_a, path_b)

    @timed("route_matcher.suggest_matches")
    def suggest_matches(
        self,
        unmatched_frontend: Sequence[APICallInfo],
        unmatched_backend: Sequence[RouteInfo],
    ) -> list[Suggestion]:
        logger.info("Generating match suggestions")
        min_similarity = float(getattr(settings, "SUGGESTION_MIN_SIMILARITY", 0.7))
        max_per_call = max(0, int(getattr(settings, "SUGGESTION_MAX_PER_CALL", 3)))

        suggestions: list[Suggestion] = []
        for call in unmatched_frontend:
            candidates: list[tuple[float, RouteInfo]] = []
            for route in unmatched_backend:
                sim = self._calculate_similarity(call.full_path, route.path)
                if sim > min_similarity:
                    candidates.append((sim, route))

            # Stable: equal scores keep backend order.
            candidates.sort(key=lambda c: c[0], reverse=True)

            for sim, route in candidates[:max_per_call]:
                if not _methods_equal(call.method, route.method):
                    reason = "HTTP method mismatch: paths are similar but the methods differ"
                    action = f"Change frontend method from {call.method} to {route.method}"
                else:
                    reason = "Path structure is similar but not identical"
                    action = f'Review path differences: "{call.full_path}" vs "{route.path}"'
                suggestions.append(
                    Suggestion(frontend=call, backend=route, similarity=sim, reason=reason, suggested_action=action)
                )

        logger.info("Generated {} match suggestions", len(suggestions))
        return suggestions

    @timed("route_matcher.analyze_unmatched_routes")
    def analyze_unmatched_routes(
        self,
        unmatched_frontend: Sequence[APICallInfo],
        unmatched_backend: Sequence[RouteInfo],
    ) -> UnmatchedAnalysis:
        """Attribute every unmatched call, and every unreferenced route, to one reason bucket.

        For each call the backend list is scanned in order and the first non-sentinel
        reason wins, not the most informative one. An earlier path-structure-mismatch
        therefore hides a later parameter-count-mismatch.
        """

        logger.info("Analyzing unmatched routes")
        by_reason: dict[MismatchReason, list[CandidateMismatch | NoCandidate]] = {r: [] for r in MISMATCH_REASONS}
        referenced: set[int] = set()

        for call in unmatched_frontend:
            found: tuple[RouteInfo, PathMismatch] | None = None
            for route in unmatched_backend:
                result = paths_match_with_reason(call.full_path, route.path, call.method, route.method)
                if isinstance(result, PathMismatch) and result.reason not in INVALID_PATH_REASONS:
                    found = (route, result)
                    break

            if found is None:
                by_reason["no-candidate"].append(NoCandidate(route=call, type="frontend"))
                continue

            route, mismatch = found
            if mismatch.reason == "method-mismatch":
                details = f"Frontend: {call.method}, Backend: {route.method}"
            elif mismatch.reason == "parameter-count-mismatch":
                details = f"Different route families: {mismatch.details}"
            else:
                details = mismatch.details or "Path segments do not match"
            by_reason[mismatch.reason].append(CandidateMismatch(frontend=call, backend=route, details=details))
            referenced.add(id(route))

        for route in unmatched_backend:
            if id(route) not in referenced:
                by_reason["no-candidate"].append(NoCandidate(route=route, type="backend"))

        statistics = AnalysisStatistics(
            total_unmatched_frontend=len(unmatched_frontend),
            total_unmatched_backend=len(unmatched_backend),
            method_mismatch_count=len(by_reason["method-mismatch"]),
            path_structure_mismatch_count=len(by_reason["path-structure-mismatch"]),
            parameter_count_mismatch_count=len(by_reason["parameter-count-mismatch"]),
            no_candidate_count=len(by_reason["no-candidate"]),
        )
        logger.info(
            "Analysis complete: {} method mismatches, {} path structure mismatches, {} parameter count mismatches, {} no candidates",
            statistics.method_mismatch_count,
            statistics.path_structure_mismatch_count,
            statistics.parameter_count_mismatch_count,
            statistics.no_candidate_count,
        )
        return UnmatchedAnalysis(by_reason=by_reason, statistics=statistics)

    def detect_duplicate_prefixes(self, calls: Sequence[APICallInfo]) -> list[DuplicatePrefixIssue]:
        logger.info("Detecting duplicate API prefixes")
        prefix = str(getattr(settings, "API_PREFIX", "/api") or "/api").rstrip("/")
        issues: list[DuplicatePrefixIssue] = []

        for call in calls:
            if has_duplicate_api_prefix(call.path) or has_duplicate_api_prefix(call.full_path):
                issues.append(
                    DuplicatePrefixIssue(
                        file=call.file,
                        line=call.line,
                        path=call.path,
                        full_path=call.full_path,
                        issue=f"Duplicate {prefix} prefix detected",
                        severity="HIGH",
                        suggested_fix=fix_duplicate_api_prefix(call.path),
                    )
                )

            # The base URL already supplies the prefix.
            if prefix and call.has_base_url and (call.path == prefix or call.path.startswith(prefix + "/")):
                issues.append(
                    DuplicatePrefixIssue(
                        file=call.file,
                        line=call.line,
                        path=call.path,
                        full_path=call.full_path,
                        issue=f"Path starts with {prefix} but base URL already includes {prefix}",
                        severity="MEDIUM",
                        suggested_fix=call.path[len(prefix):] or "/",
                    )
                )

        logger.info("Found {} duplicate prefix issues", len(issues))
        return issues

    def audit(
        self,
        frontend_calls: Sequence[APICallInfo],
        backend_routes: Sequence[RouteInfo],
        previous_results: Any = None,
    ) -> RouteAuditReport:
        match_result = self.match_routes(frontend_calls, backend_routes, previous_results)
        suggestions = self.suggest_matches(match_result.unmatched_frontend, match_result.unmatched_backend)
        analysis = self.analyze_unmatched_routes(match_result.unmatched_frontend, match_result.unmatched_backend)
        issues = self.detect_duplicate_prefixes(frontend_calls)
        return RouteAuditReport(
            match_result=match_result,
            suggestions=suggestions,
            analysis=analysis,
            duplicate_prefixes=issues,
        )
