"""
Celery task running the analysis pipeline outside the API process.

Used instead of in-process background tasks when TASK_QUEUE_ENABLED is set.
The worker reads the upload from the shared upload directory and writes
progress to the same database as the API.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

from celery import Celery

from .config import get_settings
from .models import AnalysisOptions

logger = logging.getLogger(__name__)

settings = get_settings()

celery_app = Celery(
    "ad_analyzer",
    broker=settings.redis_url,
    backend=settings.redis_url,
)


@celery_app.task(name="workflow.process_upload")
def process_upload(
    analysis_id: int,
    video_path: str,
    model_used: Optional[str] = None,
    options: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Runs the full analysis for an uploaded video.

    Args:
        analysis_id: Record created at upload time
        video_path: Path of the upload, readable by the worker
        model_used: Display label of the chosen model
        options: Camel-cased AnalysisOptions

    Returns:
        Dictionary with the analysis id, final status, score and grade
    """
    from .core.workflow import run_analysis

    analysis_options = AnalysisOptions.model_validate(options or {})
    logger.info(f"[analysis {analysis_id}] Worker picked up {video_path}")

    # run_analysis marks the record as error before re-raising
    analysis = asyncio.run(run_analysis(analysis_id, video_path, model_used, analysis_options))

    return {
        "analysis_id": analysis.id,
        "status": analysis.status,
        "total_score": analysis.total_score,
        "grade": analysis.grade,
    }
