import pytest

from app.constants import SUB_SCORE_KEYS
from app.constants.scoring import HOOK_EFFECTIVENESS, CTA_CLARITY
from app.core.scoring import (
    round_half_up,
    compute_creative_score,
    compute_compliance_score,
    compute_total_score,
    grade_for,
)


@pytest.mark.parametrize("value, expected", [(84.5, 85), (84.49, 84), (0.5, 1), (2.5, 3), (90.0, 90)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


@pytest.mark.parametrize("total, grade", [(100, "A"), (90, "A"), (89, "B"), (80, "B"), (79, "C"), (70, "C"), (69, "D"), (0, "D")])
def test_grade_thresholds(total, grade):
    assert grade_for(total) == grade


def test_creative_score_skips_missing_and_zero():
    assert compute_creative_score(None) == 0.0
    assert compute_creative_score({HOOK_EFFECTIVENESS: 0, "Unknown": 100}) == 0.0
    assert compute_creative_score({HOOK_EFFECTIVENESS: 100}) == pytest.approx(15.0)


def test_compliance_defaults_to_seventy():
    assert compute_compliance_score(None) == 70.0
    assert compute_compliance_score({"overallSummary": "fine"}) == 70.0
    assert compute_compliance_score({"overallScore": 95}) == 95.0


def test_total_score_with_full_sub_scores():
    full_result = {
        "subScores": {key: 80 for key in SUB_SCORE_KEYS},
        "complianceBreakdown": {"overallScore": 90},
    }

    assert compute_total_score(full_result) == (84, "B")


def test_total_score_without_compliance():
    full_result = {"subScores": {key: 100 for key in SUB_SCORE_KEYS}}

    assert compute_total_score(full_result) == (88, "B")


def test_total_score_with_partial_sub_scores():
    # 0.6 * (90 * 0.15 + 50 * 0.10) + 0.4 * 70 = 0.6 * 18.5 + 28 = 39.1
    full_result = {"subScores": {HOOK_EFFECTIVENESS: 90, CTA_CLARITY: 50}}

    assert compute_total_score(full_result) == (39, "D")


def test_total_score_of_empty_result():
    assert compute_total_score({}) == (28, "D")
