import logging
from datetime import datetime, timezone
from typing import Dict, Any, Optional, List

from pydantic import BaseModel, ConfigDict, Field as PydanticField, ValidationError, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy import Column, DateTime, ForeignKey, JSON, String
from sqlmodel import SQLModel, Field

from app.constants import (
    AnalysisStatus,
    Placement,
    Severity,
    Impact,
    FixType,
    SuggestionType,
    DEFAULT_LANGUAGE,
    SCORE_MIN,
    SCORE_MAX,
)

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# DATABASE TABLE
# ============================================================================

class Analysis(SQLModel, table=True):
    """
    One user-submitted video and its analysis lifecycle.

    `preliminary_result` and `full_result` hold the camelCase JSON of
    PreliminaryAnalysisResult / FullAnalysisResult. They are always replaced,
    never mutated in place, so SQLAlchemy picks up the change.
    """
    __tablename__ = "analyses"

    id: Optional[int] = Field(default=None, primary_key=True)
    video_name: str = Field(max_length=255)
    thumbnail_url: str = Field(default="")
    video_url: Optional[str] = None
    video_path: Optional[str] = None
    status: str = Field(default=AnalysisStatus.PROCESSING.value, max_length=50)
    progress_message: Optional[str] = Field(default=None, max_length=255)
    preliminary_result: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    full_result: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    total_score: Optional[int] = None
    grade: Optional[str] = Field(default=None, max_length=10)
    date: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), index=True, nullable=False)
    )
    uploader_id: str = Field(
        sa_column=Column(String(255), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    )
    uploader_name: str = Field(max_length=255)
    is_public: bool = Field(default=False)
    model_used: Optional[str] = Field(default=None, max_length=255)


# ============================================================================
# AI RESULT MODELS
# ============================================================================

class CamelModel(BaseModel):
    """Base for payloads exchanged with clients and the AI provider (camelCase on the wire)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


def _keep_valid(model_cls, items: Any) -> List[Any]:
    """Drop list items the model returned in an unusable shape."""
    if not isinstance(items, list):
        return []
    valid = []
    for item in items:
        try:
            valid.append(model_cls.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Dropping invalid {model_cls.__name__} from model output: {e}")
    return valid


def _clamp_score(value: Any) -> int:
    return int(max(SCORE_MIN, min(SCORE_MAX, round(float(value)))))


class AnalysisOptions(CamelModel):
    """Options guiding the full analysis."""
    placement: Placement = Placement.REELS
    language: str = DEFAULT_LANGUAGE


class LowConfidenceWord(CamelModel):
    """Word flagged by the first transcription pass."""
    suspected_word: str
    reason: str = ""
    alternatives: List[str] = PydanticField(default_factory=list)


class PreliminaryAnalysisResult(CamelModel):
    """Stage 1 result: verified transcript plus theme, tags and risk words."""
    core_theme: str = ""
    scene_tags: List[str] = PydanticField(default_factory=list)
    risk_words: List[str] = PydanticField(default_factory=list)
    transcript: str = ""


class ComplianceIssue(CamelModel):
    description: str
    timestamp: Optional[float] = None
    severity: Severity = Severity.MEDIUM


class ComplianceCategoryReport(CamelModel):
    score: int = PydanticField(description="0-100, 100 means no risk")
    issues: List[ComplianceIssue] = PydanticField(default_factory=list)
    summary: str = ""

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, v):
        return _clamp_score(v)

    @field_validator("issues", mode="before")
    @classmethod
    def drop_invalid_issues(cls, v):
        return _keep_valid(ComplianceIssue, v)


class ComplianceBreakdown(CamelModel):
    overall_score: int
    overall_summary: str = ""
    legal: ComplianceCategoryReport
    social: ComplianceCategoryReport
    ad_policy: ComplianceCategoryReport

    @field_validator("overall_score", mode="before")
    @classmethod
    def clamp_score(cls, v):
        return _clamp_score(v)

    def categories(self) -> Dict[str, ComplianceCategoryReport]:
        return {"legal": self.legal, "social": self.social, "adPolicy": self.ad_policy}


class DiagnosticItem(CamelModel):
    timestamp: float
    screenshot_url: str = ""
    title: str
    penalty_reason: str = ""
    suggestion: str = ""
    impact: Impact = Impact.MEDIUM
    fix_type: FixType = FixType.RE_EDIT


class ImprovementSuggestion(CamelModel):
    type: SuggestionType
    title: str
    description: str = ""
    actionable_item: str = ""


class StrengthItem(CamelModel):
    title: str
    description: str = ""


class FullAnalysisResult(CamelModel):
    """
    Stage 2 result. Every part is optional: the three concurrent requests each
    fill in their own keys and are merged into the stored record as they land.
    """
    sub_scores: Optional[Dict[str, int]] = None
    diagnostics: Optional[List[DiagnosticItem]] = None
    improvement_package: Optional[List[ImprovementSuggestion]] = None
    strengths: Optional[List[StrengthItem]] = None
    compliance_breakdown: Optional[ComplianceBreakdown] = None

    @field_validator("sub_scores", mode="before")
    @classmethod
    def clamp_sub_scores(cls, v):
        if v is None:
            return None
        if not isinstance(v, dict):
            return {}
        scores = {}
        for key, value in v.items():
            try:
                scores[key] = _clamp_score(value)
            except (TypeError, ValueError):
                logger.warning(f"Dropping non-numeric sub-score {key!r}: {value!r}")
        return scores

    @field_validator("diagnostics", mode="before")
    @classmethod
    def drop_invalid_diagnostics(cls, v):
        return None if v is None else _keep_valid(DiagnosticItem, v)

    @field_validator("improvement_package", mode="before")
    @classmethod
    def drop_invalid_suggestions(cls, v):
        return None if v is None else _keep_valid(ImprovementSuggestion, v)

    @field_validator("strengths", mode="before")
    @classmethod
    def drop_invalid_strengths(cls, v):
        return None if v is None else _keep_valid(StrengthItem, v)

    @field_validator("compliance_breakdown", mode="before")
    @classmethod
    def drop_invalid_breakdown(cls, v):
        if v is None:
            return None
        try:
            return ComplianceBreakdown.model_validate(v)
        except ValidationError as e:
            logger.warning(f"Dropping invalid compliance breakdown from model output: {e}")
            return None
