import logging
from typing import List

from ..config import get_settings
from ..constants import LLM_TEMP_COPYWRITING, DEFAULT_LANGUAGE
from ..prompts import JSON_OUTPUT_STRICT, language_name
from ..utils.llm import chat_json

logger = logging.getLogger(__name__)

SUGGESTION_COUNT = 3

SYSTEM_PROMPT = (
    "You are an expert copywriter for short-form vertical video ads. All your output is in "
    "{language_name} and strictly follows the requested JSON format."
)

USER_PROMPT_TEMPLATE = """Generate concrete copy examples that implement a strategic principle.

**Context:**
- Video's Core Theme: {video_theme}
- Copy's Purpose: {suggestion_type}
- Guiding Principle: "{original_text}"

**Instructions:**
1. Write {count} concrete copy suggestions that implement the Guiding Principle.
2. Give each one a different angle (urgency, a pain point, a key benefit) while staying on principle.
3. Write them in {language_name}.
4. Keep them short enough for on-screen text or a voiceover in a fast-paced video.

Respond with a JSON object: {{"suggestions": ["...", "...", "..."]}}
{json_rules}"""


def generate_copy_suggestions(
    original_text: str,
    suggestion_type: str,
    video_theme: str,
    language: str = DEFAULT_LANGUAGE
) -> List[str]:
    """
    Turns an improvement principle into ready-to-use copy lines.

    Args:
        original_text: The actionable principle from the improvement package
        suggestion_type: Hook, Editing, Subtitles or CTA
        video_theme: Core theme from the preliminary report
        language: Output language code

    Returns:
        Up to three copy lines
    """
    settings = get_settings()
    lang = language_name(language)

    prompt = USER_PROMPT_TEMPLATE.format(
        video_theme=video_theme,
        suggestion_type=suggestion_type,
        original_text=original_text,
        count=SUGGESTION_COUNT,
        language_name=lang,
        json_rules=JSON_OUTPUT_STRICT,
    )
    result = chat_json(
        settings.openai_model,
        SYSTEM_PROMPT.format(language_name=lang),
        prompt,
        LLM_TEMP_COPYWRITING,
    )

    suggestions = result.get("suggestions")
    if not isinstance(suggestions, list):
        logger.warning(f"Copy suggestions missing from model output: {result!r}")
        return []
    return [s.strip() for s in suggestions if isinstance(s, str) and s.strip()][:SUGGESTION_COUNT]
