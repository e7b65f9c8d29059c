import logging
from pathlib import Path
from typing import Optional, List, Dict, Any, Iterable

from sqlalchemy import func
from sqlmodel import Session, select, or_

from ..models import Analysis, User, utc_now
from ..constants import AnalysisStatus, GRADES
from ..constants.messages import PROGRESS_QUEUED

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base exception for analysis-record operations."""
    pass


class AnalysisNotFoundError(StorageError):
    """No analysis with this id."""
    pass


class AnalysisForbiddenError(StorageError):
    """Caller is neither the uploader nor an admin."""
    pass


class EmptyUpdateError(StorageError):
    """Update payload had nothing left after dropping protected fields."""
    pass


# Never writable through an update, whatever the caller sends
PROTECTED_FIELDS = {"id", "uploader_id", "uploader_name", "date"}

UPDATABLE_FIELDS = {
    "video_name",
    "thumbnail_url",
    "video_url",
    "status",
    "progress_message",
    "preliminary_result",
    "full_result",
    "total_score",
    "grade",
    "is_public",
    "model_used",
}


def can_view(analysis: Analysis, user: User) -> bool:
    return user.is_admin or analysis.uploader_id == user.id or analysis.is_public


def can_modify(analysis: Analysis, user: User) -> bool:
    return user.is_admin or analysis.uploader_id == user.id


def create_analysis(
    session: Session,
    user: User,
    video_name: str,
    model_used: Optional[str] = None,
    video_path: Optional[str] = None
) -> Analysis:
    """
    Creates a queued analysis record owned by `user`.

    Args:
        session: Database session
        user: Uploader
        video_name: Original file name of the video
        model_used: Model label chosen at upload time
        video_path: Local path of the uploaded file, if stored

    Returns:
        Analysis: The persisted record (status processing, progress "In queue")
    """
    analysis = Analysis(
        video_name=video_name,
        status=AnalysisStatus.PROCESSING.value,
        progress_message=PROGRESS_QUEUED,
        thumbnail_url="",
        uploader_id=user.id,
        uploader_name=user.name,
        model_used=model_used,
        video_path=video_path,
    )
    session.add(analysis)
    session.commit()
    session.refresh(analysis)

    if video_path:
        analysis.video_url = f"/api/analyses/{analysis.id}/video"
        session.add(analysis)
        session.commit()
        session.refresh(analysis)

    logger.info(f"[analysis {analysis.id}] Created by {user.id} for '{video_name}'")
    return analysis


def get_analysis(session: Session, analysis_id: int) -> Optional[Analysis]:
    return session.get(Analysis, analysis_id)


def get_visible_analysis(session: Session, analysis_id: int, user: User) -> Analysis:
    """
    Fetches an analysis the caller is allowed to see.

    Raises:
        AnalysisNotFoundError: No such record
        AnalysisForbiddenError: Record is private and belongs to someone else
    """
    analysis = get_analysis(session, analysis_id)
    if analysis is None:
        raise AnalysisNotFoundError(f"Analysis {analysis_id} not found")
    if not can_view(analysis, user):
        raise AnalysisForbiddenError("You do not have access to this analysis.")
    return analysis


def list_analyses(
    session: Session,
    user: Optional[User] = None,
    search: Optional[str] = None,
    grade: Optional[str] = None
) -> List[Analysis]:
    """
    Lists analyses visible to `user`, newest first.

    Admins (or user=None) see every record; other users see their own records
    plus the public ones.

    Args:
        session: Database session
        user: Caller, None for an unrestricted listing
        search: Case-insensitive substring of the video name
        grade: Restrict to completed analyses with this grade

    Returns:
        List of Analysis sorted by date then id, descending
    """
    statement = select(Analysis)

    if user is not None and not user.is_admin:
        statement = statement.where(
            or_(Analysis.uploader_id == user.id, Analysis.is_public == True)  # noqa: E712
        )

    if search:
        statement = statement.where(func.lower(Analysis.video_name).contains(search.lower()))

    if grade:
        statement = statement.where(
            Analysis.grade == grade.upper(),
            Analysis.status == AnalysisStatus.FULL_COMPLETE.value,
        )

    statement = statement.order_by(Analysis.date.desc(), Analysis.id.desc())
    return list(session.exec(statement).all())


def apply_updates(session: Session, analysis: Analysis, updates: Dict[str, Any]) -> Analysis:
    """
    Writes `updates` onto the record without any ownership check.

    Used by the pipeline; API callers go through `update_analysis`.
    """
    for field, value in updates.items():
        if field not in UPDATABLE_FIELDS:
            continue
        if isinstance(value, AnalysisStatus):
            value = value.value
        setattr(analysis, field, value)

    session.add(analysis)
    session.commit()
    session.refresh(analysis)
    return analysis


def update_analysis(
    session: Session,
    analysis_id: int,
    user: User,
    updates: Dict[str, Any]
) -> Analysis:
    """
    Partially updates an analysis owned by the caller (or any analysis for admins).

    Protected fields (id, uploader, date) are silently dropped.

    Raises:
        EmptyUpdateError: Nothing left to update
        AnalysisNotFoundError: No such record
        AnalysisForbiddenError: Caller is neither owner nor admin
    """
    cleaned = {
        k: v for k, v in updates.items()
        if k not in PROTECTED_FIELDS and k in UPDATABLE_FIELDS
    }
    if not cleaned:
        raise EmptyUpdateError("No update fields provided.")

    analysis = get_analysis(session, analysis_id)
    if analysis is None:
        raise AnalysisNotFoundError(f"Analysis {analysis_id} not found")
    if not can_modify(analysis, user):
        raise AnalysisForbiddenError("Forbidden: You can only update your own analyses.")

    return apply_updates(session, analysis, cleaned)


def delete_analysis(session: Session, analysis_id: int, user: User) -> bool:
    """
    Deletes an analysis and its uploaded file.

    Returns:
        True if a record was deleted, False if it did not exist

    Raises:
        AnalysisForbiddenError: Caller is neither owner nor admin
    """
    analysis = get_analysis(session, analysis_id)
    if analysis is None:
        return False
    if not can_modify(analysis, user):
        raise AnalysisForbiddenError("Forbidden: You can only delete your own analyses.")

    video_path = analysis.video_path
    session.delete(analysis)
    session.commit()

    if video_path:
        Path(video_path).unlink(missing_ok=True)

    logger.info(f"[analysis {analysis_id}] Deleted by {user.id}")
    return True


def merge_full_result(
    session: Session,
    analysis_id: int,
    partial: Dict[str, Any],
    progress_message: Optional[str] = None
) -> Analysis:
    """
    Merges a partial full-analysis result into the stored one.

    Keys already present are overwritten by the partial, others are kept, so the
    concurrent stage-2 requests can land in any order.
    """
    analysis = get_analysis(session, analysis_id)
    if analysis is None:
        raise AnalysisNotFoundError(f"Analysis {analysis_id} not found")

    merged = {**(analysis.full_result or {}), **partial}
    updates: Dict[str, Any] = {"full_result": merged}
    if progress_message:
        updates["progress_message"] = progress_message
    return apply_updates(session, analysis, updates)


def split_history(analyses: Iterable[Analysis], user: User) -> Dict[str, List[Analysis]]:
    """
    Groups a listing for the history sidebar: the caller's own records, and
    public records uploaded by others.
    """
    mine: List[Analysis] = []
    public: List[Analysis] = []
    for analysis in analyses:
        if analysis.uploader_id == user.id:
            mine.append(analysis)
        elif analysis.is_public:
            public.append(analysis)
    return {"mine": mine, "public": public}


def compute_admin_stats(session: Session, recent_limit: int = 10) -> Dict[str, Any]:
    """
    Aggregates counts for the admin dashboard.

    Returns:
        Dict with total, public count, counts by status and grade, the average
        total score of completed analyses, and the most recent records
    """
    analyses = list_analyses(session)

    by_status = {status.value: 0 for status in AnalysisStatus}
    by_grade = {grade: 0 for grade in GRADES}
    completed_scores: List[int] = []
    public_count = 0

    for analysis in analyses:
        by_status[analysis.status] = by_status.get(analysis.status, 0) + 1
        if analysis.is_public:
            public_count += 1
        if analysis.status == AnalysisStatus.FULL_COMPLETE.value:
            if analysis.grade:
                by_grade[analysis.grade] = by_grade.get(analysis.grade, 0) + 1
            if analysis.total_score is not None:
                completed_scores.append(analysis.total_score)

    average = round(sum(completed_scores) / len(completed_scores), 1) if completed_scores else None

    return {
        "total_analyses": len(analyses),
        "public_analyses": public_count,
        "by_status": by_status,
        "by_grade": by_grade,
        "average_total_score": average,
        "recent_analyses": analyses[:recent_limit],
        "generated_at": utc_now(),
    }
