"""Path normalization and parameter-aware comparison of route paths.

Routes come from the server (`/api/tasks/:id`) and calls from client code
(`/api/tasks/${taskId}`), so both parameter syntaxes are recognized by a single
predicate and every rule below stays syntax-agnostic.

Nothing in this module raises on malformed path or method strings: bad input
degrades to a non-match with a diagnostic reason.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from route_audit.core.settings import settings
from route_audit.matching.models import Confidence

_MULTI_SLASH = re.compile(r"/{2,}")
_TEMPLATE_PARAM = re.compile(r"^\$\{([^{}]+)\}$")


@dataclass(frozen=True)
class PathMatch:
    confidence: Confidence

    @property
    def match(self) -> bool:
        return True

    @property
    def reason(self) -> None:
        return None


@dataclass(frozen=True)
class PathMismatch:
    # method-mismatch | path-structure-mismatch | parameter-count-mismatch | invalid-path-1 | invalid-path-2
    reason: str
    details: str = ""

    @property
    def match(self) -> bool:
        return False

    @property
    def confidence(self) -> None:
        return None


PathComparison = PathMatch | PathMismatch


def normalize_path(path: Any) -> str:
    """Strip query string and fragment, collapse repeated slashes, drop trailing slashes.

    Case and parameter syntax are left alone. Returns "" for non-strings and for
    input that is empty once the query string is gone.
    """

    if not isinstance(path, str):
        return ""
    out = path.strip()
    for sep in ("?", "#"):
        idx = out.find(sep)
        if idx != -1:
            out = out[:idx]
    if not out:
        return ""
    if not out.startswith("/"):
        out = "/" + out
    out = _MULTI_SLASH.sub("/", out)
    if len(out) > 1:
        out = out.rstrip("/") or "/"
    return out


def get_path_segments(path: Any) -> list[str]:
    return [s for s in normalize_path(path).split("/") if s]


def is_parameter(segment: Any) -> bool:
    """True for `:name` (router placeholder) and `${expr}` (template literal) segments."""

    if not isinstance(segment, str) or not segment:
        return False
    if segment.startswith(":"):
        return True
    return _TEMPLATE_PARAM.match(segment) is not None


def extract_parameter_names(path: Any) -> list[str]:
    names: list[str] = []
    for seg in get_path_segments(path):
        if seg.startswith(":"):
            names.append(seg[1:])
            continue
        m = _TEMPLATE_PARAM.match(seg)
        if m:
            names.append(m.group(1).strip())
    return names


def _prefix() -> str:
    p = normalize_path(getattr(settings, "API_PREFIX", "/api") or "/api")
    return p if p != "/" else ""


def _has_prefix(path: str, prefix: str) -> bool:
    return bool(prefix) and (path == prefix or path.startswith(prefix + "/"))


def remove_api_prefix(path: Any) -> str:
    norm = normalize_path(path)
    prefix = _prefix()
    if not _has_prefix(norm, prefix):
        return norm
    return norm[len(prefix):] or "/"


def add_api_prefix(path: Any) -> str:
    norm = normalize_path(path)
    prefix = _prefix()
    if not norm or norm == "/":
        return prefix or "/"
    if _has_prefix(norm, prefix):
        return norm
    return prefix + norm


def _duplicate_marker() -> str:
    prefix = _prefix()
    return prefix + prefix


def has_duplicate_api_prefix(path: Any) -> bool:
    """True when the normalized path contains the prefix twice in a row (`/api/api`)."""

    marker = _duplicate_marker()
    return bool(marker) and marker in normalize_path(path)


def fix_duplicate_api_prefix(path: Any) -> str:
    """Suggested correction for a doubled prefix. Never applied to matcher input."""

    if not isinstance(path, str):
        return ""
    marker = _duplicate_marker()
    if not marker:
        return path
    out = path if marker in path else normalize_path(path)
    prefix = _prefix()
    while marker in out:
        out = out.replace(marker, prefix)
    return out


def path_to_regex(path: Any) -> re.Pattern[str]:
    """Anchored pattern for a route template; each parameter segment matches one non-slash run."""

    segments = get_path_segments(path)
    if not segments:
        return re.compile(r"^/?$" if normalize_path(path) == "/" else r"^$")
    parts = ["[^/]+" if is_parameter(seg) else re.escape(seg) for seg in segments]
    return re.compile("^/" + "/".join(parts) + "$")


def paths_match_with_reason(
    path_a: Any,
    path_b: Any,
    method_a: Any = None,
    method_b: Any = None,
    *,
    family_threshold: int | None = None,
) -> PathComparison:
    norm_a = normalize_path(path_a)
    if not norm_a:
        return PathMismatch("invalid-path-1", "First path is empty or not a string")
    norm_b = normalize_path(path_b)
    if not norm_b:
        return PathMismatch("invalid-path-2", "Second path is empty or not a string")

    # Reported regardless of path shape: the most actionable diagnostic.
    if method_a is not None and method_b is not None and str(method_a).upper() != str(method_b).upper():
        return PathMismatch("method-mismatch", f"Methods differ: {str(method_a).upper()} vs {str(method_b).upper()}")

    segs_a = [s for s in norm_a.split("/") if s]
    segs_b = [s for s in norm_b.split("/") if s]
    if len(segs_a) != len(segs_b):
        return PathMismatch("path-structure-mismatch", f"Different segment counts: {len(segs_a)} vs {len(segs_b)}")

    substituted = False
    mismatched: list[int] = []
    for i, (seg_a, seg_b) in enumerate(zip(segs_a, segs_b)):
        if seg_a == seg_b:
            continue
        if is_parameter(seg_a) or is_parameter(seg_b):
            substituted = True
            continue
        mismatched.append(i)

    if mismatched:
        threshold = family_threshold
        if threshold is None:
            threshold = int(getattr(settings, "PATH_FAMILY_MISMATCH_THRESHOLD", 2))
        positions = ", ".join(str(i) for i in mismatched)
        if len(mismatched) > threshold:
            return PathMismatch("parameter-count-mismatch", f"{len(mismatched)} segments differ (positions {positions})")
        return PathMismatch("path-structure-mismatch", f"Mismatched segments at positions: {positions}")

    if substituted:
        return PathMatch("parameter-match")
    if path_a == path_b:
        return PathMatch("exact")
    return PathMatch("normalized")


def paths_match(path_a: Any, path_b: Any) -> bool:
    return paths_match_with_reason(path_a, path_b).match
