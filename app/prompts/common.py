"""
Common prompt components and instructions.

Reusable prompt snippets that can be composed into full prompts.
"""
from app.constants import LANGUAGE_NAMES, DEFAULT_LANGUAGE

# ============================================================================
# JSON OUTPUT INSTRUCTIONS
# ============================================================================

JSON_OUTPUT_STRICT = """
**CRITICAL: OUTPUT FORMAT**
- Return ONLY valid JSON, no explanations before or after
- No markdown code blocks (no ```json```)
- Ensure proper JSON escaping for quotes and special characters
- Structure must exactly match the schema provided
"""

# ============================================================================
# LANGUAGE INSTRUCTIONS
# ============================================================================

LANGUAGE_OUTPUT_INSTRUCTION = """
**LANGUAGE**: Every text value in your output MUST be written in {language_name}.
"""

NUMBERS_AS_DIGITS_INSTRUCTION = """
**NUMBERS**: ALL numbers must be output as Arabic numerals (0-9). Use a period (.) for decimals.
- CORRECT: "7999", "2.0"
- FORBIDDEN: numbers spelled out in words or native numeral characters
"""


def language_name(code: str) -> str:
    """Prompt-facing name for a language code; unknown codes are passed through."""
    return LANGUAGE_NAMES.get(code or DEFAULT_LANGUAGE, code)


def language_instruction(code: str) -> str:
    return LANGUAGE_OUTPUT_INSTRUCTION.format(language_name=language_name(code))


# ============================================================================
# AD CREATIVE CONTEXT
# ============================================================================

STRATEGIST_SYSTEM_PROMPT = (
    "You are a world-class performance marketing creative strategist. "
    "Your output is always valid JSON written in {language_name}."
)

AD_CONTEXT_TEMPLATE = """
**Context:**
- Core Theme: {core_theme}
- Transcript: {transcript}
- Target Placement: {placement}
"""

FRAME_TIMESTAMPS_TEMPLATE = """- Frame Timestamps (seconds, one per attached image in order): {timestamps}
"""

SAFE_AREA_INSTRUCTION = """
**4:5 Feed Safe Area (CRITICAL):** This 9:16 video may be cropped to 4:5 in feeds, cutting off
the top and bottom ~15% of the frame. Any on-screen text or subtitle outside the central 4:5
safe area will be cropped and its message lost.
"""


def format_timestamps(timestamps) -> str:
    return ", ".join(f"{t:.1f}" for t in timestamps)
