"""
Strategy agent: key strengths and the high-level improvement package.
"""
from typing import Any, Dict, Sequence

from ..constants import LLM_TEMP_STRATEGY, SuggestionType
from ..models import AnalysisOptions, FullAnalysisResult, PreliminaryAnalysisResult
from ..prompts import (
    JSON_OUTPUT_STRICT,
    STRATEGIST_SYSTEM_PROMPT,
    AD_CONTEXT_TEMPLATE,
    language_name,
    language_instruction,
)
from ..utils.llm import chat_json, user_content
from ..utils.media import Frame

USER_PROMPT_TEMPLATE = """Task: Identify the key strengths of a vertical video ad and provide a
strategic improvement package.
{context}
**Instructions:**
1. "strengths": 3-4 key strengths, each with a "title" and a short "description" of why it works.
2. "improvementPackage": high-level strategic advice, each item with a "type" (one of {types}),
   a "title", a "description" and an "actionableItem". The actionable item describes a strategic
   direction or principle to follow, NOT example copy (e.g. "use a more urgent verb and state the
   next step explicitly" rather than a ready-made slogan).
{language}
Respond with a JSON object:
{{"strengths": [{{"title": "...", "description": "..."}}], "improvementPackage": [{{"type": "Hook", "title": "...", "description": "...", "actionableItem": "..."}}]}}
{json_rules}"""


def generate_strengths_and_improvements(
    frames: Sequence[Frame],
    preliminary: PreliminaryAnalysisResult,
    options: AnalysisOptions,
    model: str
) -> Dict[str, Any]:
    """
    Returns:
        Partial full result (camelCase) with `strengths` and `improvementPackage`
    """
    prompt = USER_PROMPT_TEMPLATE.format(
        context=AD_CONTEXT_TEMPLATE.format(
            core_theme=preliminary.core_theme,
            transcript=preliminary.transcript,
            placement=options.placement.value,
        ),
        types=", ".join(f'"{t.value}"' for t in SuggestionType),
        language=language_instruction(options.language),
        json_rules=JSON_OUTPUT_STRICT,
    )
    result = chat_json(
        model,
        STRATEGIST_SYSTEM_PROMPT.format(language_name=language_name(options.language)),
        user_content(prompt, frames),
        LLM_TEMP_STRATEGY,
    )

    partial = FullAnalysisResult.model_validate({
        "strengths": result.get("strengths") or [],
        "improvementPackage": result.get("improvementPackage") or [],
    })
    return partial.to_json_dict()
