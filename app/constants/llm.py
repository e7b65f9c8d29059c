"""
LLM (Large Language Model) Configuration Constants.

Model names, temperature settings, and other LLM-specific parameters.
"""

# ============================================================================
# MODEL NAMES
# ============================================================================

OPENAI_MODEL_FAST = "gpt-4o-mini"
"""Fast, cost-effective model for routine analysis tasks."""

OPENAI_MODEL_SMART = "gpt-4o"
"""Advanced model for multimodal scoring and diagnostics."""

AVAILABLE_MODELS = {
    "GPT-4o - Standard": OPENAI_MODEL_SMART,
    "GPT-4o mini - Fast": OPENAI_MODEL_FAST,
}
"""Display labels offered at upload time, mapped to provider model ids."""

DEFAULT_MODEL_LABEL = "GPT-4o - Standard"


# ============================================================================
# TEMPERATURE SETTINGS
# ============================================================================
# Lower temperature = more deterministic/focused
# Higher temperature = more creative/varied

LLM_TEMP_TRANSCRIPTION = 0.0
"""Temperature for verbatim transcription and word verification."""

LLM_TEMP_PRELIMINARY = 0.2
"""Temperature for theme, scene tags and risk words."""

LLM_TEMP_SCORING = 0.2
"""Temperature for sub-scores and compliance analysis."""

LLM_TEMP_DIAGNOSTICS = 0.3
"""Temperature for time-stamped diagnostics."""

LLM_TEMP_STRATEGY = 0.5
"""Temperature for strengths and improvement package."""

LLM_TEMP_COPYWRITING = 0.8
"""Temperature for concrete copy suggestions."""


# ============================================================================
# LANGUAGES
# ============================================================================

DEFAULT_LANGUAGE = "zh-TW"

LANGUAGE_NAMES = {
    "zh-TW": "Traditional Chinese",
    "zh-CN": "Simplified Chinese",
    "en": "English",
    "ja": "Japanese",
}
"""Language codes accepted in analysis options, with the name used in prompts."""

IMAGE_DETAIL = "high"
"""Detail level requested for frame images."""
