"""
Utility functions for building the dashboard, comparison and history views
of stored analyses.
"""
from typing import Any, Dict, List, Optional

from app.constants import Impact, SUB_SCORE_DETAILS, PRIORITY_SUGGESTIONS_LIMIT, SCORE_MAX
from app.models import Analysis, User


def sub_score_label(key: str) -> str:
    details = SUB_SCORE_DETAILS.get(key)
    return details["name"] if details else key


def _sub_scores(analysis: Analysis) -> Dict[str, Any]:
    return (analysis.full_result or {}).get("subScores") or {}


def _impact_priority(diagnostic: Dict[str, Any]) -> int:
    try:
        return Impact(diagnostic.get("impact")).priority
    except ValueError:
        return 0


def build_priority_suggestions(
    full_result: Optional[Dict[str, Any]],
    limit: int = PRIORITY_SUGGESTIONS_LIMIT
) -> List[Dict[str, Any]]:
    """
    Picks the diagnostics to fix first: highest impact first, keeping the
    timeline order among diagnostics of equal impact.
    """
    diagnostics = (full_result or {}).get("diagnostics") or []
    ranked = sorted(diagnostics, key=_impact_priority, reverse=True)
    return ranked[:limit]


def build_sub_score_chart(full_result: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Radar chart rows, one per scored key, in the order the model returned them."""
    sub_scores = (full_result or {}).get("subScores") or {}
    return [
        {
            "subject": sub_score_label(key),
            "key": key,
            "score": int(score or 0),
            "fullMark": SCORE_MAX,
        }
        for key, score in sub_scores.items()
    ]


def build_dashboard(analysis: Analysis, user: User) -> Dict[str, Any]:
    """
    Args:
        analysis: A record the user is allowed to see
        user: Caller

    Returns:
        Dict with analysis, prioritySuggestions, subScoreChart and isOwner
    """
    return {
        "analysis": analysis,
        "priority_suggestions": build_priority_suggestions(analysis.full_result),
        "sub_score_chart": build_sub_score_chart(analysis.full_result),
        "is_owner": analysis.uploader_id == user.id,
    }


def build_comparison(analysis_a: Analysis, analysis_b: Analysis) -> Dict[str, Any]:
    """
    Side-by-side sub-scores of two analyses.

    Rows cover the union of both score sets (A's keys first); a score missing
    on one side counts as 0. `diff` is A minus B.
    """
    scores_a = _sub_scores(analysis_a)
    scores_b = _sub_scores(analysis_b)

    keys = list(dict.fromkeys([*scores_a.keys(), *scores_b.keys()]))
    rows = []
    for key in keys:
        score_a = int(scores_a.get(key) or 0)
        score_b = int(scores_b.get(key) or 0)
        rows.append({
            "key": key,
            "subject": sub_score_label(key),
            "score_a": score_a,
            "score_b": score_b,
            "diff": score_a - score_b,
        })

    total_diff = None
    if analysis_a.total_score is not None and analysis_b.total_score is not None:
        total_diff = analysis_a.total_score - analysis_b.total_score

    return {
        "analysis_a": analysis_a,
        "analysis_b": analysis_b,
        "rows": rows,
        "total_score_diff": total_diff,
    }
