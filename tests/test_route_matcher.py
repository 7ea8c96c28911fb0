from __future__ import annotations

import math
import random
import time

import pytest

from route_audit.matching.models import CONFIDENCE_TIERS, MatchResult
from route_audit.matching.path_comparator import paths_match
from route_audit.matching.route_matcher import RouteMatcher


@pytest.fixture
def matcher() -> RouteMatcher:
    return RouteMatcher({})


def _assert_invariants(result: MatchResult, calls, routes) -> None:
    assert len(result.matched) + len(result.unmatched_frontend) == len(calls)
    assert len(result.matched) + len(result.unmatched_backend) == len(routes)
    for pair in result.matched:
        assert pair.frontend.method.upper() == pair.backend.method.upper()
        assert paths_match(pair.frontend.full_path, pair.backend.path)
        assert pair.confidence in CONFIDENCE_TIERS
    expected_rate = len(result.matched) / len(routes) if routes else 0.0
    assert result.statistics.match_rate == pytest.approx(expected_rate)
    assert 0.0 <= result.statistics.match_rate <= 1.0


def test_parameterized_route_matches_literal_call(matcher, make_route, make_call) -> None:
    routes = [make_route("GET", "/api/tasks/:id")]
    calls = [make_call("get", "/api/tasks/123", path="/tasks/123", has_base_url=True)]

    result = matcher.match_routes(calls, routes)

    assert len(result.matched) == 1
    assert result.matched[0].confidence in {"parameter-match", "exact"}
    assert result.unmatched_frontend == []
    assert result.unmatched_backend == []
    _assert_invariants(result, calls, routes)


def test_method_mismatch_prevents_match(matcher, make_route, make_call) -> None:
    routes = [make_route("POST", "/api/auth/login")]
    calls = [make_call("GET", "/api/auth/login", path="/auth/login")]

    result = matcher.match_routes(calls, routes)

    assert result.matched == []
    assert result.unmatched_frontend == calls
    assert result.unmatched_backend == routes
    assert result.statistics.match_rate == 0.0


def test_trailing_slashes_match_with_normalized_confidence(matcher, make_route, make_call) -> None:
    routes = [make_route("GET", "/api/clients")]
    calls = [make_call("get", "/api/clients//", path="/clients//")]

    result = matcher.match_routes(calls, routes)

    assert len(result.matched) == 1
    assert result.matched[0].confidence == "normalized"


def test_exact_confidence(matcher, make_route, make_call) -> None:
    result = matcher.match_routes([make_call("get", "/api/clients")], [make_route("GET", "/api/clients")])
    assert result.matched[0].confidence == "exact"


def test_first_fit_consumes_parameterized_route(matcher, make_route, make_call) -> None:
    routes = [make_route("GET", "/api/tasks/:id", handler="getTask")]
    calls = [make_call("get", f"/api/tasks/{n}") for n in (1, 2, 3, 4, 5)]

    result = matcher.match_routes(calls, routes)

    assert len(result.matched) == 1
    assert result.matched[0].frontend.full_path == "/api/tasks/1"
    assert [c.full_path for c in result.unmatched_frontend] == ["/api/tasks/2", "/api/tasks/3", "/api/tasks/4", "/api/tasks/5"]
    assert result.unmatched_backend == []
    assert result.statistics.match_rate == 1.0


def test_first_fit_takes_first_route_in_pool_order(matcher, make_route, make_call) -> None:
    generic = make_route("GET", "/api/tasks/:id", handler="generic")
    specific = make_route("GET", "/api/tasks/archived", handler="archived")
    calls = [make_call("get", "/api/tasks/archived")]

    result = matcher.match_routes(calls, [generic, specific])

    assert result.matched[0].backend.handler == "generic"
    assert result.unmatched_backend == [specific]


def test_unmatched_lists_keep_input_order(matcher, make_route, make_call) -> None:
    routes = [
        make_route("GET", "/api/a"),
        make_route("GET", "/api/b"),
        make_route("GET", "/api/c"),
        make_route("GET", "/api/d"),
    ]
    calls = [make_call("get", "/api/z"), make_call("get", "/api/c"), make_call("get", "/api/y")]

    result = matcher.match_routes(calls, routes)

    assert [r.path for r in result.unmatched_backend] == ["/api/a", "/api/b", "/api/d"]
    assert [c.full_path for c in result.unmatched_frontend] == ["/api/z", "/api/y"]


def test_caller_lists_are_not_mutated(matcher, make_route, make_call) -> None:
    routes = [make_route("GET", "/api/a"), make_route("GET", "/api/b")]
    calls = [make_call("get", "/api/a")]
    routes_before = list(routes)

    matcher.match_routes(calls, routes)

    assert routes == routes_before


def test_statistics(matcher, make_route, make_call) -> None:
    routes = [make_route("GET", "/api/a"), make_route("GET", "/api/b"), make_route("GET", "/api/c"), make_route("GET", "/api/d")]
    calls = [make_call("get", "/api/a"), make_call("get", "/api/b"), make_call("get", "/api/x")]

    stats = matcher.match_routes(calls, routes).statistics

    assert stats.total_frontend == 3
    assert stats.total_backend == 4
    assert stats.matched_count == 2
    # Denominator is the backend route count.
    assert stats.match_rate == pytest.approx(0.5)
    assert stats.improvement_from_previous == 0.0


def test_empty_backend_gives_zero_rate(matcher, make_call) -> None:
    result = matcher.match_routes([make_call("get", "/api/a")], [])

    assert result.statistics.match_rate == 0.0
    assert math.isfinite(result.statistics.match_rate)
    assert len(result.unmatched_frontend) == 1


def test_empty_inputs(matcher) -> None:
    result = matcher.match_routes([], [])
    assert result.matched == []
    assert result.statistics.match_rate == 0.0
    assert result.statistics.improvement_from_previous == 0.0


def test_rerun_with_identical_inputs_has_no_improvement(matcher, make_route, make_call) -> None:
    routes = [make_route("GET", "/api/a"), make_route("POST", "/api/b")]
    calls = [make_call("get", "/api/a")]

    first = matcher.match_routes(calls, routes)
    second = matcher.match_routes(calls, routes, first)

    assert second.statistics.improvement_from_previous == 0.0


def test_improvement_from_previous(matcher, make_route, make_call) -> None:
    routes = [make_route("GET", "/api/a"), make_route("GET", "/api/b")]

    before = matcher.match_routes([make_call("get", "/api/a")], routes)
    after = matcher.match_routes([make_call("get", "/api/a"), make_call("get", "/api/b")], routes, before)

    assert before.statistics.match_rate == pytest.approx(0.5)
    assert after.statistics.improvement_from_previous == pytest.approx(0.5)


def test_improvement_from_saved_report_mapping(matcher, make_route, make_call) -> None:
    routes = [make_route("GET", "/api/a")]
    calls = [make_call("get", "/api/a")]

    saved = {"statistics": {"matchRate": 0.25}}
    result = matcher.match_routes(calls, routes, saved)
    assert result.statistics.improvement_from_previous == pytest.approx(0.75)

    # No statistics at all counts as no previous result.
    assert matcher.match_routes(calls, routes, {"matched": []}).statistics.improvement_from_previous == 0.0


def test_random_inputs_keep_invariants(matcher, make_route, make_call) -> None:
    rng = random.Random(7)
    words = ["tasks", "task", "clients", "projects", "invoices", ":id", "${id}", "42", "items"]
    methods = ["get", "GET", "post", "PUT", "delete"]

    def rand_path() -> str:
        n = rng.randint(1, 4)
        return "/api/" + "/".join(rng.choice(words) for _ in range(n)) + rng.choice(["", "/", "?q=1"])

    for _ in range(25):
        routes = [make_route(rng.choice(methods), rand_path()) for _ in range(rng.randint(0, 12))]
        calls = [make_call(rng.choice(methods), rand_path()) for _ in range(rng.randint(0, 12))]
        _assert_invariants(matcher.match_routes(calls, routes), calls, routes)


def test_150_routes_complete_quickly(matcher, make_route, make_call) -> None:
    modules = ["tasks", "clients", "projects", "invoices", "quotes"]
    routes = []
    calls = []
    for i in range(75):
        mod = modules[i % len(modules)]
        routes.append(make_route("GET", f"/api/{mod}/v{i}/:id"))
        calls.append(make_call("get", f"/api/{mod}/v{i}/{i}"))

    t0 = time.perf_counter()
    report = matcher.audit(calls, routes)
    elapsed = time.perf_counter() - t0

    assert elapsed < 5.0
    assert report.match_result.statistics.matched_count == 75
    assert report.match_result.statistics.match_rate == 1.0
