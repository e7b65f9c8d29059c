"""
Preliminary report agent: verified transcript, core theme, scene tags and
compliance risk words from a handful of keyframes.
"""
import logging
from typing import Any, List

from ..constants import LLM_TEMP_PRELIMINARY, PRELIMINARY_FRAME_COUNT
from ..models import AnalysisOptions, PreliminaryAnalysisResult
from ..prompts import JSON_OUTPUT_STRICT, language_name, language_instruction
from ..utils.llm import chat_json, user_content
from ..utils.media import extract_frames, extract_audio_wav
from .transcription import generate_transcript

logger = logging.getLogger(__name__)

# ============================================================================
# PROMPTS
# ============================================================================

SYSTEM_PROMPT = (
    "You are an efficient assistant specializing in video advertisement analysis. "
    "Your output is always valid JSON written in {language_name}."
)

USER_PROMPT_TEMPLATE = """Analyze the attached keyframes of a video advertisement together with its
**verified transcript**.

**Verified Transcript:**
---
{transcript}
---

**Tasks:**
1. "coreTheme": the video's core theme or main message.
2. "sceneTags": scene tags (objects, styles, concepts) visible in the keyframes.
3. "riskWords": every potential compliance risk word from the transcript or on-screen text. Be
   extremely strict and consider three perspectives: legal (e.g. unsubstantiated medical claims),
   social perception (sensitive topics) and advertising policy (exaggerated claims). Flag:
   - exaggerated claims and superlatives ("guaranteed", "100% effective", "best", "number one");
   - unproven efficacy or medical claims ("natural", "antibacterial", "slimming", "cures");
   - misleading guarantees ("money back if it doesn't work");
   - misleading origin or authority ("doctor recommended" when not verifiable);
   - misleading scarcity ("today only", "last chance");
   - sensitive topics (finance, health, discrimination).
{language}
Respond with a JSON object: {{"coreTheme": "...", "sceneTags": ["..."], "riskWords": ["..."]}}
{json_rules}"""


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if isinstance(v, (str, int, float)) and str(v).strip()]


def generate_preliminary_report(
    video_path: str,
    model: str,
    options: AnalysisOptions
) -> PreliminaryAnalysisResult:
    """
    Runs the preliminary stage on a stored video.

    Args:
        video_path: Local path of the upload
        model: Chat model id
        options: Placement and output language

    Returns:
        PreliminaryAnalysisResult with the verified transcript merged in
    """
    frames = extract_frames(video_path, PRELIMINARY_FRAME_COUNT)
    wav_bytes = extract_audio_wav(video_path)

    transcript = generate_transcript(frames, wav_bytes, model, options.language)
    logger.info(f"Transcript ready ({len(transcript)} chars)")

    prompt = USER_PROMPT_TEMPLATE.format(
        transcript=transcript or "(no speech or on-screen text)",
        language=language_instruction(options.language),
        json_rules=JSON_OUTPUT_STRICT,
    )
    result = chat_json(
        model,
        SYSTEM_PROMPT.format(language_name=language_name(options.language)),
        user_content(prompt, frames),
        LLM_TEMP_PRELIMINARY,
    )

    core_theme = result.get("coreTheme")
    return PreliminaryAnalysisResult(
        core_theme=core_theme if isinstance(core_theme, str) else "",
        scene_tags=_string_list(result.get("sceneTags")),
        risk_words=_string_list(result.get("riskWords")),
        transcript=transcript,
    )
