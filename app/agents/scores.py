"""
Scores & compliance agent.

Rates every sub-score 0-100 and produces the legal / social / ad-policy
compliance breakdown. Issue timestamps are snapped onto the sampled frames.
"""
import logging
from typing import Any, Dict, Sequence

from ..constants import LLM_TEMP_SCORING, SUB_SCORE_KEYS, SUB_SCORE_DETAILS
from ..models import AnalysisOptions, FullAnalysisResult, PreliminaryAnalysisResult
from ..prompts import (
    JSON_OUTPUT_STRICT,
    STRATEGIST_SYSTEM_PROMPT,
    AD_CONTEXT_TEMPLATE,
    FRAME_TIMESTAMPS_TEMPLATE,
    SAFE_AREA_INSTRUCTION,
    format_timestamps,
    language_name,
    language_instruction,
)
from ..utils.llm import chat_json, user_content
from ..utils.media import Frame, find_closest_timestamp

logger = logging.getLogger(__name__)

# ============================================================================
# PROMPTS
# ============================================================================

USER_PROMPT_TEMPLATE = """Task: Generate performance scores and a compliance risk analysis for a
vertical video ad.
{context}{timestamps}
**Instructions:**
1. **Sub-Scores:** Give a brutally honest integer score (0-100) for EVERY key below:
{sub_score_list}
   - When scoring "Readability" and "Composition & Visibility", heavily penalize on-screen text
     outside the central 4:5 safe area.
   - **Hook Effectiveness:** pinpoint the single most powerful "pattern interrupt" inside the first
     3 seconds (the first major visual change, surprising event or direct question that breaks the
     scroll). Score that specific peak moment, whether it lands at 0.5s, 1.5s or 2.8s. Do not
     default to the last frame of the window.
2. **Compliance Analysis:** Analyze Legal, Social and Ad Policy risk. For each category give a
   score (100 = no risk), a summary and a list of specific issues, each with a description, a
   severity ("high", "medium" or "low") and optionally the most relevant timestamp in seconds.
   Then give an overall score and overall summary.
{safe_area}{language}
Respond with a JSON object of this shape:
{{
  "subScores": {{"<key>": <0-100>, ...}},
  "complianceBreakdown": {{
    "overallScore": <0-100>,
    "overallSummary": "...",
    "legal": {{"score": <0-100>, "summary": "...", "issues": [{{"description": "...", "severity": "high", "timestamp": 1.5}}]}},
    "social": {{...}},
    "adPolicy": {{...}}
  }}
}}
{json_rules}"""


def _sub_score_list() -> str:
    return "\n".join(
        f'   - "{key}": {SUB_SCORE_DETAILS[key]["description"]}' for key in SUB_SCORE_KEYS
    )


def generate_scores_and_compliance(
    frames: Sequence[Frame],
    preliminary: PreliminaryAnalysisResult,
    options: AnalysisOptions,
    model: str
) -> Dict[str, Any]:
    """
    Returns:
        Partial full result (camelCase) with `subScores` and, when the model
        returned a usable one, `complianceBreakdown`
    """
    timestamps = [frame.timestamp for frame in frames]

    prompt = USER_PROMPT_TEMPLATE.format(
        context=AD_CONTEXT_TEMPLATE.format(
            core_theme=preliminary.core_theme,
            transcript=preliminary.transcript,
            placement=options.placement.value,
        ),
        timestamps=FRAME_TIMESTAMPS_TEMPLATE.format(timestamps=format_timestamps(timestamps)),
        sub_score_list=_sub_score_list(),
        safe_area=SAFE_AREA_INSTRUCTION,
        language=language_instruction(options.language),
        json_rules=JSON_OUTPUT_STRICT,
    )
    result = chat_json(
        model,
        STRATEGIST_SYSTEM_PROMPT.format(language_name=language_name(options.language)),
        user_content(prompt, frames),
        LLM_TEMP_SCORING,
    )

    partial = FullAnalysisResult.model_validate({
        "subScores": result.get("subScores") or {},
        "complianceBreakdown": result.get("complianceBreakdown"),
    })

    unknown = set(partial.sub_scores or {}) - set(SUB_SCORE_KEYS)
    if unknown:
        logger.warning(f"Ignoring unknown sub-score keys: {sorted(unknown)}")
        partial.sub_scores = {k: v for k, v in partial.sub_scores.items() if k in SUB_SCORE_KEYS}

    breakdown = partial.compliance_breakdown
    if breakdown is not None:
        for category in breakdown.categories().values():
            for issue in category.issues:
                # 0 or missing means "no particular moment"
                issue.timestamp = (
                    find_closest_timestamp(issue.timestamp, timestamps) if issue.timestamp else None
                )
    else:
        logger.warning("Model returned no usable compliance breakdown")

    return partial.to_json_dict()
