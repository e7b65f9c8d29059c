"""
Main module for ad video analysis business logic.

`run_analysis` orchestrates the whole pipeline for one stored upload:
- Thumbnail and preliminary report (transcript, theme, risk words), concurrently
- Keyframe extraction for the full analysis
- Scores & compliance, diagnostics and strategy, concurrently, each persisted
  as soon as it lands
- Final score and grade

Progress callback is called with: (step_name: str, percent: int, message: str)
"""
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from app.agents import (
    generate_preliminary_report,
    generate_scores_and_compliance,
    generate_diagnostics,
    generate_strengths_and_improvements,
)
from app.constants import AnalysisStatus, FULL_FRAME_COUNT
from app.constants.messages import (
    PROGRESS_PRELIMINARY,
    PROGRESS_PRELIMINARY_DONE,
    PROGRESS_FULL_FRAMES,
    PROGRESS_SCORES_DONE,
    PROGRESS_DIAGNOSTICS_DONE,
    PROGRESS_STRATEGY_DONE,
    PROGRESS_SCORING,
    PROGRESS_COMPLETE,
    PROGRESS_ERROR,
    STEP_PRELIMINARY,
    STEP_PRELIMINARY_DONE,
    STEP_FRAMES,
    STEP_SCORES,
    STEP_DIAGNOSTICS,
    STEP_STRATEGY,
    STEP_FINAL,
    STEP_COMPLETE,
    FULL_STAGE_PERCENT_RANGE,
)
from app.core.scoring import compute_total_score
from app.db.database import session_scope
from app.models import Analysis, AnalysisOptions
from app.services.storage import (
    AnalysisNotFoundError,
    apply_updates,
    get_analysis,
    merge_full_result,
)
from app.utils.llm import resolve_model
from app.utils.media import MediaExtractionError, extract_frames, generate_thumbnail

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, str], Awaitable[None]]

# Thread pool for blocking ffmpeg and provider calls
executor = ThreadPoolExecutor(max_workers=10)


async def _run_in_executor(func, *args):
    """
    Run a synchronous function in a thread pool executor.

    Args:
        func: Synchronous function to run
        *args: Arguments to pass to the function

    Returns:
        Result from the function
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(executor, func, *args)


async def _no_progress(step: str, percent: int, message: str) -> None:
    return None


async def _report(progress_callback: ProgressCallback, step: Tuple[str, int], message: str) -> None:
    name, percent = step
    await progress_callback(name, percent, message)


def _update_record(analysis_id: int, updates: Dict[str, Any]) -> Analysis:
    with session_scope() as session:
        analysis = get_analysis(session, analysis_id)
        if analysis is None:
            raise AnalysisNotFoundError(f"Analysis {analysis_id} no longer exists")
        return apply_updates(session, analysis, updates)


def _merge_partial(analysis_id: int, partial: Dict[str, Any], message: str) -> Analysis:
    with session_scope() as session:
        return merge_full_result(session, analysis_id, partial, progress_message=message)


def _finalize(analysis_id: int) -> Analysis:
    """Computes the total score and grade from the merged full result."""
    with session_scope() as session:
        analysis = get_analysis(session, analysis_id)
        if analysis is None:
            raise AnalysisNotFoundError(f"Analysis {analysis_id} no longer exists")
        total_score, grade = compute_total_score(analysis.full_result or {})
        return apply_updates(session, analysis, {
            "total_score": total_score,
            "grade": grade,
            "status": AnalysisStatus.FULL_COMPLETE,
            "progress_message": PROGRESS_COMPLETE,
        })


def _mark_failed(analysis_id: int) -> None:
    try:
        _update_record(analysis_id, {"status": AnalysisStatus.ERROR, "progress_message": PROGRESS_ERROR})
    except AnalysisNotFoundError:
        logger.warning(f"[analysis {analysis_id}] Record deleted before the failure could be stored")


async def run_analysis(
    analysis_id: int,
    video_path: str,
    model_used: Optional[str] = None,
    options: Optional[AnalysisOptions] = None,
    progress_callback: Optional[ProgressCallback] = None
) -> Analysis:
    """
    Runs the full analysis pipeline for an uploaded video.

    Args:
        analysis_id: Record created at upload time
        video_path: Local path of the upload
        model_used: Display label chosen at upload (mapped to a model id)
        options: Placement and output language
        progress_callback: Async callable receiving (step, percent, message)

    Returns:
        The completed Analysis record

    Raises:
        MediaExtractionError: The video could not be decoded
        ValueError: No OpenAI API key configured
        APIError: The AI provider failed
        asyncio.CancelledError: The run was cancelled; the record is marked as error
    """
    options = options or AnalysisOptions()
    progress = progress_callback or _no_progress
    model = resolve_model(model_used)
    logger.info(f"[analysis {analysis_id}] Starting with model {model}, placement {options.placement.value}")

    try:
        # Stage 1: thumbnail + preliminary report
        await _run_in_executor(_update_record, analysis_id, {
            "status": AnalysisStatus.ANALYZING_PRELIMINARY,
            "progress_message": PROGRESS_PRELIMINARY,
        })
        await _report(progress, STEP_PRELIMINARY, PROGRESS_PRELIMINARY)

        thumbnail_url, preliminary = await asyncio.gather(
            _run_in_executor(generate_thumbnail, video_path),
            _run_in_executor(generate_preliminary_report, video_path, model, options),
        )

        await _run_in_executor(_update_record, analysis_id, {
            "thumbnail_url": thumbnail_url,
            "preliminary_result": preliminary.to_json_dict(),
            "status": AnalysisStatus.ANALYZING_FULL,
            "progress_message": PROGRESS_PRELIMINARY_DONE,
        })
        await _report(progress, STEP_PRELIMINARY_DONE, PROGRESS_PRELIMINARY_DONE)
        logger.info(f"[analysis {analysis_id}] Preliminary report stored")

        # Stage 2: full analysis on more keyframes
        await _report(progress, STEP_FRAMES, PROGRESS_FULL_FRAMES)
        frames = await _run_in_executor(extract_frames, video_path, FULL_FRAME_COUNT)
        if not frames:
            raise MediaExtractionError("Could not extract frames from the video for analysis.")

        agents = [
            (generate_scores_and_compliance, STEP_SCORES, PROGRESS_SCORES_DONE),
            (generate_diagnostics, STEP_DIAGNOSTICS, PROGRESS_DIAGNOSTICS_DONE),
            (generate_strengths_and_improvements, STEP_STRATEGY, PROGRESS_STRATEGY_DONE),
        ]
        start, end = FULL_STAGE_PERCENT_RANGE
        completed = 0
        merge_lock = asyncio.Lock()

        async def _full_part(agent, step: str, message: str) -> None:
            nonlocal completed
            partial = await _run_in_executor(agent, frames, preliminary, options, model)
            # Merges read-modify-write full_result, so they run one at a time
            async with merge_lock:
                await _run_in_executor(_merge_partial, analysis_id, partial, message)
                completed += 1
                logger.info(f"[analysis {analysis_id}] {agent.__name__} stored ({completed}/{len(agents)})")
                await progress(step, start + (end - start) * completed // len(agents), message)

        await asyncio.gather(*(_full_part(*agent) for agent in agents))

        # Stage 3: final score
        await _report(progress, STEP_FINAL, PROGRESS_SCORING)
        analysis = await _run_in_executor(_finalize, analysis_id)

        await _report(progress, STEP_COMPLETE, PROGRESS_COMPLETE)
        logger.info(f"[analysis {analysis_id}] Complete: {analysis.total_score} ({analysis.grade})")
        return analysis

    except asyncio.CancelledError:
        logger.warning(f"[analysis {analysis_id}] Analysis cancelled")
        _mark_failed(analysis_id)
        raise

    except Exception as e:
        logger.error(f"[analysis {analysis_id}] Analysis failed: {e}", exc_info=True)
        _mark_failed(analysis_id)
        raise
