from .user import User
from .analysis import (
    Analysis,
    AnalysisOptions,
    CamelModel,
    LowConfidenceWord,
    PreliminaryAnalysisResult,
    ComplianceIssue,
    ComplianceCategoryReport,
    ComplianceBreakdown,
    DiagnosticItem,
    ImprovementSuggestion,
    StrengthItem,
    FullAnalysisResult,
    utc_now,
)

__all__ = [
    "User",
    "Analysis",
    "AnalysisOptions",
    "CamelModel",
    "LowConfidenceWord",
    "PreliminaryAnalysisResult",
    "ComplianceIssue",
    "ComplianceCategoryReport",
    "ComplianceBreakdown",
    "DiagnosticItem",
    "ImprovementSuggestion",
    "StrengthItem",
    "FullAnalysisResult",
    "utc_now",
]
