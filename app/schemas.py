from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, field_validator

from app.constants import AnalysisStatus, SuggestionType
from app.models import CamelModel


# ============================================================================
# AUTH & USERS
# ============================================================================

class LoginRequest(CamelModel):
    # Optional so that a missing field is a 400 with a message, not a 422
    username: Optional[str] = None
    password: Optional[str] = None


class UserRead(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    role: str


class LoginResponse(CamelModel):
    user: UserRead
    token: str
    message: str = "Login successful"


class MeResponse(CamelModel):
    user: UserRead


class MessageResponse(CamelModel):
    message: str


# ============================================================================
# ANALYSES
# ============================================================================

class AnalysisCreate(CamelModel):
    video_name: str = Field(min_length=1, max_length=255)
    model_used: Optional[str] = None


class AnalysisUpdate(CamelModel):
    """
    Partial update. Unknown fields (including id, uploaderId, uploaderName and
    date) are ignored; only the fields actually sent are written.
    """
    model_config = ConfigDict(extra="ignore")

    video_name: Optional[str] = None
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None
    status: Optional[AnalysisStatus] = None
    progress_message: Optional[str] = None
    preliminary_result: Optional[Dict[str, Any]] = None
    full_result: Optional[Dict[str, Any]] = None
    total_score: Optional[int] = None
    grade: Optional[str] = None
    is_public: Optional[bool] = None
    model_used: Optional[str] = None

    @field_validator("video_name", "thumbnail_url", "status", "is_public", mode="before")
    @classmethod
    def not_null(cls, value: Any) -> Any:
        # These columns are NOT NULL; omit the field instead of sending null
        if value is None:
            raise ValueError("may not be null")
        return value

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class AnalysisRead(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    video_name: str
    thumbnail_url: str = ""
    video_url: Optional[str] = None
    status: str
    progress_message: Optional[str] = None
    preliminary_result: Optional[Dict[str, Any]] = None
    full_result: Optional[Dict[str, Any]] = None
    total_score: Optional[int] = None
    grade: Optional[str] = None
    date: datetime
    uploader_id: str
    uploader_name: str
    is_public: bool = False
    model_used: Optional[str] = None


class HistoryResponse(CamelModel):
    mine: List[AnalysisRead]
    public: List[AnalysisRead]


class SubScoreChartRow(CamelModel):
    subject: str
    key: str
    score: int
    full_mark: int = 100


class DashboardResponse(CamelModel):
    analysis: AnalysisRead
    priority_suggestions: List[Dict[str, Any]]
    sub_score_chart: List[SubScoreChartRow]
    is_owner: bool


class ComparisonRow(CamelModel):
    key: str
    subject: str
    score_a: int
    score_b: int
    diff: int


class ComparisonResponse(CamelModel):
    analysis_a: AnalysisRead
    analysis_b: AnalysisRead
    rows: List[ComparisonRow]
    total_score_diff: Optional[int] = None


# ============================================================================
# COPY SUGGESTIONS
# ============================================================================

class CopySuggestionRequest(CamelModel):
    original_text: str = Field(min_length=1)
    suggestion_type: SuggestionType
    video_theme: str = ""
    language: Optional[str] = None


class CopySuggestionResponse(CamelModel):
    suggestions: List[str]


# ============================================================================
# ADMIN & HEALTH
# ============================================================================

class AdminStats(CamelModel):
    total_analyses: int
    public_analyses: int
    by_status: Dict[str, int]
    by_grade: Dict[str, int]
    average_total_score: Optional[float] = None
    recent_analyses: List[AnalysisRead]
    generated_at: datetime


class HealthResponse(CamelModel):
    status: str = "OK"
    timestamp: datetime
    openai_configured: bool
