"""
Final score calculation.

total = 0.6 x creative + 0.4 x compliance, where creative is the weighted sum
of the sub-scores and compliance is the breakdown's overall score (70 when
the model produced none).
"""
import math
from typing import Any, Dict, Mapping, Optional, Tuple

from app.constants import (
    UNIVERSAL_WEIGHTS,
    CREATIVE_SCORE_WEIGHT,
    COMPLIANCE_SCORE_WEIGHT,
    DEFAULT_COMPLIANCE_SCORE,
    SCORE_MIN,
    GRADE_THRESHOLDS,
    GRADE_FALLBACK,
)


def round_half_up(value: float) -> int:
    """Rounds .5 up (84.5 -> 85), unlike Python's banker's rounding."""
    return int(math.floor(value + 0.5))


def compute_creative_score(sub_scores: Optional[Mapping[str, Any]]) -> float:
    """Weighted sum over the universal weights; missing or zero scores add nothing."""
    if not sub_scores:
        return 0.0

    creative = 0.0
    for key, weight in UNIVERSAL_WEIGHTS.items():
        score = sub_scores.get(key)
        if score:
            creative += float(score) * weight
    return creative


def compute_compliance_score(compliance_breakdown: Optional[Mapping[str, Any]]) -> float:
    if compliance_breakdown:
        overall = compliance_breakdown.get("overallScore")
        if overall is not None:
            return float(overall)
    return float(DEFAULT_COMPLIANCE_SCORE)


def grade_for(total_score: int) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if total_score >= threshold:
            return grade
    return GRADE_FALLBACK


def compute_total_score(full_result: Dict[str, Any]) -> Tuple[int, str]:
    """
    Computes the total score and grade of a (camelCase) full result.

    Returns:
        (total_score, grade)
    """
    creative = compute_creative_score(full_result.get("subScores"))
    compliance = compute_compliance_score(full_result.get("complianceBreakdown"))

    total = max(SCORE_MIN, round_half_up(
        CREATIVE_SCORE_WEIGHT * creative + COMPLIANCE_SCORE_WEIGHT * compliance
    ))
    return total, grade_for(total)
