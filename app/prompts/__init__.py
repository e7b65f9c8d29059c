"""
Prompts Package.

Centralized location for reusable prompt components and instructions.
Each agent module imports common snippets and defines its own specific prompts.
"""

from .common import (
    # JSON Instructions
    JSON_OUTPUT_STRICT,

    # Language
    LANGUAGE_OUTPUT_INSTRUCTION,
    NUMBERS_AS_DIGITS_INSTRUCTION,
    language_name,
    language_instruction,

    # Ad creative context
    STRATEGIST_SYSTEM_PROMPT,
    AD_CONTEXT_TEMPLATE,
    FRAME_TIMESTAMPS_TEMPLATE,
    SAFE_AREA_INSTRUCTION,
    format_timestamps,
)

__all__ = [
    "JSON_OUTPUT_STRICT",
    "LANGUAGE_OUTPUT_INSTRUCTION",
    "NUMBERS_AS_DIGITS_INSTRUCTION",
    "language_name",
    "language_instruction",
    "STRATEGIST_SYSTEM_PROMPT",
    "AD_CONTEXT_TEMPLATE",
    "FRAME_TIMESTAMPS_TEMPLATE",
    "SAFE_AREA_INSTRUCTION",
    "format_timestamps",
]
