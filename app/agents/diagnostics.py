"""
Diagnostics agent: time-stamped optimisation points, each illustrated with
the sampled frame it refers to.
"""
import logging
from typing import Any, Dict, Sequence

from ..constants import LLM_TEMP_DIAGNOSTICS, Impact, FixType
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

USER_PROMPT_TEMPLATE = """Task: Generate a detailed, time-stamped diagnostic report for a vertical
video ad.
{context}{timestamps}
**Instructions:**
1. Identify the specific moments worth optimizing.
2. Pin each diagnostic to the most relevant frame timestamp listed above.
{safe_area}   If any text falls outside the central 4:5 safe area you MUST create a diagnostic whose
   "penaltyReason" explains that the text will be cropped, and whose "fixType" is "Text/Graphics".
3. For "penaltyReason":
   - identify the concrete visual or audio flaw ("At 4.1s, thin white font over a bright background");
   - explain the psychological impact on the viewer ("causes high cognitive load");
   - link it to a business KPI ("harms CTR and CVR").
4. For "suggestion", give a strategic recommendation about what to achieve, not the exact wording.
   DO NOT provide specific copy examples.
5. Rate "impact" as one of {impacts} and choose "fixType" from {fix_types}.
{language}
Respond with a JSON object:
{{"diagnostics": [{{"timestamp": 1.5, "title": "...", "penaltyReason": "...", "suggestion": "...", "impact": "high", "fixType": "Pacing"}}]}}
{json_rules}"""


def _choices(enum_cls) -> str:
    return ", ".join(f'"{member.value}"' for member in enum_cls)


def generate_diagnostics(
    frames: Sequence[Frame],
    preliminary: PreliminaryAnalysisResult,
    options: AnalysisOptions,
    model: str
) -> Dict[str, Any]:
    """
    Returns:
        Partial full result (camelCase) with `diagnostics` sorted by timestamp
    """
    timestamps = [frame.timestamp for frame in frames]
    frame_by_timestamp = {frame.timestamp: frame for frame in frames}

    prompt = USER_PROMPT_TEMPLATE.format(
        context=AD_CONTEXT_TEMPLATE.format(
            core_theme=preliminary.core_theme,
            transcript=preliminary.transcript,
            placement=options.placement.value,
        ),
        timestamps=FRAME_TIMESTAMPS_TEMPLATE.format(timestamps=format_timestamps(timestamps)),
        safe_area=SAFE_AREA_INSTRUCTION,
        impacts=_choices(Impact),
        fix_types=_choices(FixType),
        language=language_instruction(options.language),
        json_rules=JSON_OUTPUT_STRICT,
    )
    result = chat_json(
        model,
        STRATEGIST_SYSTEM_PROMPT.format(language_name=language_name(options.language)),
        user_content(prompt, frames),
        LLM_TEMP_DIAGNOSTICS,
    )

    partial = FullAnalysisResult.model_validate({"diagnostics": result.get("diagnostics") or []})
    diagnostics = partial.diagnostics or []

    for item in diagnostics:
        closest = find_closest_timestamp(item.timestamp, timestamps)
        frame = frame_by_timestamp.get(closest)
        item.timestamp = closest
        item.screenshot_url = frame.data_url if frame else ""

    diagnostics.sort(key=lambda d: d.timestamp)
    logger.info(f"{len(diagnostics)} diagnostic(s) generated")

    return {"diagnostics": [item.to_json_dict() for item in diagnostics]}
