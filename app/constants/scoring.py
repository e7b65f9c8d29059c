"""
Scoring Constants.

Sub-score catalogue, weights used for the final creative score, and grade
thresholds.
"""

# ============================================================================
# SUB-SCORES
# ============================================================================

HOOK_EFFECTIVENESS = "Hook Effectiveness"
RHYTHM_AND_RETENTION = "Rhythm & Retention"
READABILITY = "Readability"
VISUAL_QUALITY = "Visual Quality"
COMPOSITION = "Composition & Visibility"
BRAND_PRESENCE = "Brand Presence"
AUDIO_QUALITY = "Audio Quality"
MESSAGE_DENSITY = "Message Density"
CTA_CLARITY = "CTA Clarity"
PLATFORM_FIT = "Platform Fit"

SUB_SCORE_KEYS = [
    HOOK_EFFECTIVENESS,
    RHYTHM_AND_RETENTION,
    READABILITY,
    VISUAL_QUALITY,
    COMPOSITION,
    BRAND_PRESENCE,
    AUDIO_QUALITY,
    MESSAGE_DENSITY,
    CTA_CLARITY,
    PLATFORM_FIT,
]
"""Keys the model must score, in display order."""

SUB_SCORE_DETAILS = {
    HOOK_EFFECTIVENESS: {
        "name": "開場鉤子",
        "description": "Ability to grab attention within the first 3 seconds.",
    },
    RHYTHM_AND_RETENTION: {
        "name": "節奏與留存",
        "description": "Sustained attention through editing rhythm and audio-visual elements.",
    },
    READABILITY: {
        "name": "字幕可讀性",
        "description": "Clarity and placement of on-screen text and subtitles.",
    },
    VISUAL_QUALITY: {
        "name": "視覺品質",
        "description": "Sharpness, exposure and color stability of the footage.",
    },
    COMPOSITION: {
        "name": "構圖與可見度",
        "description": "Visibility of key elements (faces, product) inside the safe area.",
    },
    BRAND_PRESENCE: {
        "name": "品牌露出",
        "description": "Timing and duration of brand identifiers (logo).",
    },
    AUDIO_QUALITY: {
        "name": "音訊品質",
        "description": "Voice clarity, volume balance and background noise.",
    },
    MESSAGE_DENSITY: {
        "name": "資訊密度",
        "description": "Amount of information conveyed without cognitive overload.",
    },
    CTA_CLARITY: {
        "name": "行動呼籲清晰度",
        "description": "Clarity and timing of the call to action.",
    },
    PLATFORM_FIT: {
        "name": "平台適配度",
        "description": "Fit with platform specs for size, length and cover.",
    },
}


# ============================================================================
# FINAL SCORE
# ============================================================================
# Universal weights must sum to 1.0

UNIVERSAL_WEIGHTS = {
    HOOK_EFFECTIVENESS: 0.15,
    RHYTHM_AND_RETENTION: 0.12,
    READABILITY: 0.10,
    VISUAL_QUALITY: 0.10,
    COMPOSITION: 0.08,
    BRAND_PRESENCE: 0.08,
    AUDIO_QUALITY: 0.10,
    MESSAGE_DENSITY: 0.09,
    CTA_CLARITY: 0.10,
    PLATFORM_FIT: 0.08,
}
"""Weight of each sub-score in the creative score."""

CREATIVE_SCORE_WEIGHT = 0.6
"""Share of the creative score in the total score."""

COMPLIANCE_SCORE_WEIGHT = 0.4
"""Share of the compliance score in the total score."""

DEFAULT_COMPLIANCE_SCORE = 70
"""Compliance score used when the model returned no compliance breakdown."""

SCORE_MIN = 0
SCORE_MAX = 100


# ============================================================================
# GRADES
# ============================================================================

GRADE_THRESHOLDS = [
    (90, "A"),
    (80, "B"),
    (70, "C"),
]
"""(minimum total score, grade), checked in order."""

GRADE_FALLBACK = "D"

GRADES = ["A", "B", "C", "D"]


# ============================================================================
# DASHBOARD
# ============================================================================

PRIORITY_SUGGESTIONS_LIMIT = 3
"""Number of diagnostics highlighted on the results dashboard."""
