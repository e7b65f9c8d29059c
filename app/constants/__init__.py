"""
Application Constants Package.

This package centralizes all constants used throughout the application,
organized by domain/concern for better maintainability.

All constants are re-exported from this __init__.py for convenience. You can
import either from the main package or specific modules:

    from app.constants import AnalysisStatus, UNIVERSAL_WEIGHTS
    from app.constants.enums import AnalysisStatus
    from app.constants.scoring import UNIVERSAL_WEIGHTS
"""

# ============================================================================
# ENUMERATIONS
# ============================================================================

from .enums import (
    UserRole,
    AnalysisStatus,
    Placement,
    Severity,
    Impact,
    FixType,
    SuggestionType,
)

# ============================================================================
# SCORING
# ============================================================================

from .scoring import (
    SUB_SCORE_KEYS,
    SUB_SCORE_DETAILS,
    UNIVERSAL_WEIGHTS,
    CREATIVE_SCORE_WEIGHT,
    COMPLIANCE_SCORE_WEIGHT,
    DEFAULT_COMPLIANCE_SCORE,
    SCORE_MIN,
    SCORE_MAX,
    GRADE_THRESHOLDS,
    GRADE_FALLBACK,
    GRADES,
    PRIORITY_SUGGESTIONS_LIMIT,
)

# ============================================================================
# LLM CONFIGURATION
# ============================================================================

from .llm import (
    OPENAI_MODEL_FAST,
    OPENAI_MODEL_SMART,
    AVAILABLE_MODELS,
    DEFAULT_MODEL_LABEL,
    LLM_TEMP_TRANSCRIPTION,
    LLM_TEMP_PRELIMINARY,
    LLM_TEMP_SCORING,
    LLM_TEMP_DIAGNOSTICS,
    LLM_TEMP_STRATEGY,
    LLM_TEMP_COPYWRITING,
    DEFAULT_LANGUAGE,
    LANGUAGE_NAMES,
    IMAGE_DETAIL,
)

# ============================================================================
# MEDIA
# ============================================================================

from .media import (
    PRELIMINARY_FRAME_COUNT,
    FULL_FRAME_COUNT,
    FRAME_JPEG_QUALITY,
    THUMBNAIL_JPEG_QUALITY,
    THUMBNAIL_MAX_SEEK_SECONDS,
    AUDIO_SAMPLE_RATE,
    FFPROBE_TIMEOUT,
    FFMPEG_FRAME_TIMEOUT,
    FFMPEG_AUDIO_TIMEOUT,
    ALLOWED_VIDEO_EXTENSIONS,
    UPLOAD_CHUNK_SIZE,
)

# ============================================================================
# API
# ============================================================================

from .api import DEFAULT_TIMEOUT_HTTPX

# ============================================================================
# RETRY CONFIGURATION
# ============================================================================

from .retry import (
    DEFAULT_RETRY_MAX_ATTEMPTS,
    DEFAULT_RETRY_BASE_DELAY,
    DEFAULT_RETRY_BACKOFF_FACTOR,
    DEFAULT_RETRY_MAX_DELAY,
    LLM_MAX_RETRY_ATTEMPTS,
    LLM_BASE_DELAY,
    TRANSCRIPTION_MAX_RETRY_ATTEMPTS,
)

# ============================================================================
# PUBLIC API
# ============================================================================

__all__ = [
    # Enums
    "UserRole",
    "AnalysisStatus",
    "Placement",
    "Severity",
    "Impact",
    "FixType",
    "SuggestionType",

    # Scoring
    "SUB_SCORE_KEYS",
    "SUB_SCORE_DETAILS",
    "UNIVERSAL_WEIGHTS",
    "CREATIVE_SCORE_WEIGHT",
    "COMPLIANCE_SCORE_WEIGHT",
    "DEFAULT_COMPLIANCE_SCORE",
    "SCORE_MIN",
    "SCORE_MAX",
    "GRADE_THRESHOLDS",
    "GRADE_FALLBACK",
    "GRADES",
    "PRIORITY_SUGGESTIONS_LIMIT",

    # LLM
    "OPENAI_MODEL_FAST",
    "OPENAI_MODEL_SMART",
    "AVAILABLE_MODELS",
    "DEFAULT_MODEL_LABEL",
    "LLM_TEMP_TRANSCRIPTION",
    "LLM_TEMP_PRELIMINARY",
    "LLM_TEMP_SCORING",
    "LLM_TEMP_DIAGNOSTICS",
    "LLM_TEMP_STRATEGY",
    "LLM_TEMP_COPYWRITING",
    "DEFAULT_LANGUAGE",
    "LANGUAGE_NAMES",
    "IMAGE_DETAIL",

    # Media
    "PRELIMINARY_FRAME_COUNT",
    "FULL_FRAME_COUNT",
    "FRAME_JPEG_QUALITY",
    "THUMBNAIL_JPEG_QUALITY",
    "THUMBNAIL_MAX_SEEK_SECONDS",
    "AUDIO_SAMPLE_RATE",
    "FFPROBE_TIMEOUT",
    "FFMPEG_FRAME_TIMEOUT",
    "FFMPEG_AUDIO_TIMEOUT",
    "ALLOWED_VIDEO_EXTENSIONS",
    "UPLOAD_CHUNK_SIZE",

    # API
    "DEFAULT_TIMEOUT_HTTPX",

    # Retry
    "DEFAULT_RETRY_MAX_ATTEMPTS",
    "DEFAULT_RETRY_BASE_DELAY",
    "DEFAULT_RETRY_BACKOFF_FACTOR",
    "DEFAULT_RETRY_MAX_DELAY",
    "LLM_MAX_RETRY_ATTEMPTS",
    "LLM_BASE_DELAY",
    "TRANSCRIPTION_MAX_RETRY_ATTEMPTS",
]
