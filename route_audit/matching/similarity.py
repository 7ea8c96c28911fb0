from __future__ import annotations

from typing import Any

from route_audit.core.settings import settings
from route_audit.matching.path_comparator import get_path_segments, is_parameter

# Per-position awards.
SCORE_IDENTICAL = 1.0
SCORE_BOTH_PARAMS = 1.0
SCORE_ONE_PARAM = 0.95
SCORE_SUBSTRING = 0.7


def segment_score(seg_a: str, seg_b: str) -> float:
    if seg_a == seg_b:
        return SCORE_IDENTICAL
    param_a = is_parameter(seg_a)
    param_b = is_parameter(seg_b)
    if param_a and param_b:
        return SCORE_BOTH_PARAMS
    if param_a or param_b:
        # Template vs literal value: almost as good as two placeholders.
        return SCORE_ONE_PARAM
    if seg_a in seg_b or seg_b in seg_a:
        # "task" vs "tasks"
        return SCORE_SUBSTRING
    return 0.0


def path_similarity(path_a: Any, path_b: Any, *, max_segment_diff: int | None = None) -> float:
    """Similarity in [0, 1] of two paths, used for suggestions only, never for matching.

    Positions are aligned left to right up to the shorter path; the sum of awards is
    divided by the longer segment count. Two empty paths score 1.0.
    """

    segs_a = get_path_segments(path_a)
    segs_b = get_path_segments(path_b)

    limit = max_segment_diff
    if limit is None:
        limit = int(getattr(settings, "SIMILARITY_MAX_SEGMENT_DIFF", 2))
    if abs(len(segs_a) - len(segs_b)) > limit:
        return 0.0

    longest = max(len(segs_a), len(segs_b))
    if longest == 0:
        return 1.0

    total = sum(segment_score(a, b) for a, b in zip(segs_a, segs_b))
    return float(total / longest)
