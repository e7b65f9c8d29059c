"""
Enumeration classes for the application.

All enum types used throughout the application for type safety and validation.
"""

from enum import Enum


class UserRole(str, Enum):
    """Role of an account. Admins can see and manage every analysis."""
    USER = "user"
    ADMIN = "admin"


class AnalysisStatus(str, Enum):
    """
    Lifecycle of an analysis record.

    - PROCESSING: Record created, pipeline not started yet
    - ANALYZING_PRELIMINARY: Transcript, theme and risk words in progress
    - PRELIMINARY_COMPLETE: Preliminary report stored
    - ANALYZING_FULL: Scores, diagnostics and strategy in progress
    - FULL_COMPLETE: Final score and grade stored
    - ERROR: The pipeline failed
    """
    PROCESSING = "processing"
    ANALYZING_PRELIMINARY = "analyzing-preliminary"
    PRELIMINARY_COMPLETE = "preliminary-complete"
    ANALYZING_FULL = "analyzing-full"
    FULL_COMPLETE = "full-complete"
    ERROR = "error"


class Placement(str, Enum):
    """Target placement of the ad creative."""
    REELS = "Reels"
    STORIES = "Stories"
    FEED = "Feed"


class Severity(str, Enum):
    """Severity of a compliance issue."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Impact(str, Enum):
    """
    Commercial impact of a diagnostic item.

    `priority` orders diagnostics for the results dashboard (higher first).
    """
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def priority(self) -> int:
        priorities = {
            self.HIGH: 3,
            self.MEDIUM: 2,
            self.LOW: 1
        }
        return priorities[self]


class FixType(str, Enum):
    """Kind of edit needed to fix a diagnostic."""
    RE_EDIT = "Re-edit"
    TEXT_GRAPHICS = "Text/Graphics"
    COLOR_LIGHTING = "Color/Lighting"
    AUDIO = "Audio"
    PACING = "Pacing"


class SuggestionType(str, Enum):
    """Area an improvement suggestion targets."""
    HOOK = "Hook"
    EDITING = "Editing"
    SUBTITLES = "Subtitles"
    CTA = "CTA"
