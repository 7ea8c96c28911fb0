"""Offline route audit over a JSON inventory.

The inventory holds the two extracted lists in their camelCase record shape:

  {"backendRoutes": [{"method": "GET", "path": "/api/tasks/:id", ...}, ...],
   "frontendCalls": [{"method": "get", "path": "/tasks/${id}", "fullPath": "/api/tasks/${id}", ...}, ...]}

Usage:
  python scripts/audit_routes.py route_inventory.json [--previous last_report.json] [--out report.json]
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from loguru import logger


def _load_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def run(inventory_path: Path, previous_path: Path | None = None) -> dict[str, Any]:
    from route_audit.matching.models import APICallInfo, RouteInfo
    from route_audit.matching.route_matcher import RouteMatcher

    inventory = _load_json(inventory_path)
    routes = [RouteInfo.model_validate(r) for r in inventory.get("backendRoutes", [])]
    calls = [APICallInfo.model_validate(c) for c in inventory.get("frontendCalls", [])]

    previous: Any = None
    if previous_path is not None:
        prev = _load_json(previous_path)
        # Accept a full report or a bare match result.
        previous = prev.get("matchResult", prev) if isinstance(prev, dict) else None

    report = RouteMatcher().audit(calls, routes, previous)

    stats = report.match_result.statistics
    a = report.analysis.statistics
    logger.info(
        "Route audit: {}/{} backend routes matched ({:.1f}%), improvement {:+.1f}pp; "
        "method={} structure={} family={} no-candidate={}; prefix issues={}",
        stats.matched_count,
        stats.total_backend,
        stats.match_rate * 100.0,
        stats.improvement_from_previous * 100.0,
        a.method_mismatch_count,
        a.path_structure_mismatch_count,
        a.parameter_count_mismatch_count,
        a.no_candidate_count,
        len(report.duplicate_prefixes),
    )
    return report.model_dump(mode="json", by_alias=True)


def main(argv: list[str] | None = None) -> int:
    # Ensure repo root is on sys.path so `import route_audit` works when running as a script.
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

    from route_audit.core.settings import settings
    from route_audit.utils.logger import configure_logging

    ap = argparse.ArgumentParser(description="Match frontend API calls to backend routes.")
    ap.add_argument("inventory", type=Path)
    ap.add_argument("--previous", type=Path, default=None, help="earlier report, for improvement tracking")
    ap.add_argument("--out", type=Path, default=None, help="write the JSON report here instead of stdout")
    args = ap.parse_args(argv)

    configure_logging(settings.LOG_LEVEL)

    out = run(args.inventory, args.previous)
    text = json.dumps(out, indent=2)
    if args.out is not None:
        args.out.write_text(text, encoding="utf-8")
    else:
        print(text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
