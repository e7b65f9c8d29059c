import asyncio
import threading

import pytest

from app.constants import SUB_SCORE_KEYS
from app.constants.messages import PROGRESS_COMPLETE, PROGRESS_ERROR
from app.core import workflow
from app.models import AnalysisOptions, PreliminaryAnalysisResult, User
from app.services.storage import AnalysisNotFoundError, create_analysis, get_analysis
from app.utils.api_helpers import PermanentAPIError
from app.utils.media import Frame, MediaExtractionError

FRAMES = [Frame(timestamp=float(t), base64_data=f"frame{t}") for t in range(1, 13)]


@pytest.fixture
def analysis(session):
    user = session.get(User, "user-123")
    return create_analysis(session, user, "promo.mp4", model_used="GPT-4o mini - Fast", video_path="/tmp/promo.mp4")


@pytest.fixture
def pipeline(monkeypatch):
    """Replaces media extraction and every agent with canned results."""
    calls = {}

    def fake_preliminary(video_path, model, options):
        calls["preliminary"] = (video_path, model, options.placement.value)
        return PreliminaryAnalysisResult(core_theme="Spring sale", transcript="Buy now", risk_words=["best"])

    def fake_scores(frames, preliminary, options, model):
        calls["scores"] = len(frames)
        return {
            "subScores": {key: 80 for key in SUB_SCORE_KEYS},
            "complianceBreakdown": {"overallScore": 90},
        }

    def fake_diagnostics(frames, preliminary, options, model):
        return {"diagnostics": [{"timestamp": 2.0, "title": "Late logo", "impact": "high"}]}

    def fake_strategy(frames, preliminary, options, model):
        return {"strengths": [{"title": "Clear offer"}], "improvementPackage": []}

    monkeypatch.setattr(workflow, "generate_thumbnail", lambda path: "data:image/jpeg;base64,thumb")
    monkeypatch.setattr(workflow, "extract_frames", lambda path, n: FRAMES[:n])
    monkeypatch.setattr(workflow, "generate_preliminary_report", fake_preliminary)
    monkeypatch.setattr(workflow, "generate_scores_and_compliance", fake_scores)
    monkeypatch.setattr(workflow, "generate_diagnostics", fake_diagnostics)
    monkeypatch.setattr(workflow, "generate_strengths_and_improvements", fake_strategy)
    return calls


def _run(analysis_id, **kwargs):
    events = []

    async def progress(step, percent, message):
        events.append((step, percent, message))

    result = asyncio.run(workflow.run_analysis(analysis_id, "/tmp/promo.mp4", progress_callback=progress, **kwargs))
    return result, events


def test_run_analysis_completes(session, analysis, pipeline):
    options = AnalysisOptions(placement="Stories", language="en")

    result, events = _run(analysis.id, model_used="GPT-4o mini - Fast", options=options)

    assert result.status == "full-complete"
    assert result.progress_message == PROGRESS_COMPLETE
    assert result.total_score == 84
    assert result.grade == "B"
    assert result.thumbnail_url == "data:image/jpeg;base64,thumb"
    assert result.preliminary_result["coreTheme"] == "Spring sale"
    assert set(result.full_result) == {
        "subScores", "complianceBreakdown", "diagnostics", "strengths", "improvementPackage",
    }

    assert pipeline["preliminary"] == ("/tmp/promo.mp4", "gpt-4o-mini", "Stories")
    assert pipeline["scores"] == 12

    steps = [step for step, _, _ in events]
    assert steps[:3] == ["preliminary", "preliminary_done", "frames"]
    assert set(steps[3:6]) == {"scores", "diagnostics", "strategy"}
    assert [percent for step, percent, _ in events[3:6]] == [60, 75, 90]
    assert all(message.endswith("complete") for _, _, message in events[3:6])
    assert steps[-2:] == ["final", "complete"]
    assert events[-1][1] == 100

    session.expire_all()
    stored = get_analysis(session, analysis.id)
    assert stored.status == "full-complete"
    assert stored.total_score == 84


def test_run_analysis_without_frames_marks_error(session, analysis, pipeline, monkeypatch):
    monkeypatch.setattr(workflow, "extract_frames", lambda path, n: [])

    with pytest.raises(MediaExtractionError):
        _run(analysis.id)

    session.expire_all()
    stored = get_analysis(session, analysis.id)
    assert stored.status == "error"
    assert stored.progress_message == PROGRESS_ERROR
    assert stored.preliminary_result["coreTheme"] == "Spring sale"


def test_agent_failure_marks_error(session, analysis, pipeline, monkeypatch):
    def failing_diagnostics(frames, preliminary, options, model):
        raise PermanentAPIError("400 bad request")

    monkeypatch.setattr(workflow, "generate_diagnostics", failing_diagnostics)

    with pytest.raises(PermanentAPIError):
        _run(analysis.id)

    session.expire_all()
    stored = get_analysis(session, analysis.id)
    assert stored.status == "error"
    assert stored.total_score is None


def test_preliminary_failure_marks_error(session, analysis, pipeline, monkeypatch):
    def no_key(video_path, model, options):
        raise ValueError("OPENAI_API_KEY not configured in environment variables")

    monkeypatch.setattr(workflow, "generate_preliminary_report", no_key)

    with pytest.raises(ValueError):
        _run(analysis.id)

    session.expire_all()
    assert get_analysis(session, analysis.id).status == "error"


def test_deleted_record_fails_cleanly(session, analysis, pipeline):
    analysis_id = analysis.id
    session.delete(analysis)
    session.commit()

    with pytest.raises(AnalysisNotFoundError):
        _run(analysis_id)


def test_cancelled_run_marks_error(session, analysis, pipeline, monkeypatch):
    started = threading.Event()
    release = threading.Event()

    def slow_preliminary(video_path, model, options):
        started.set()
        release.wait(5)
        return PreliminaryAnalysisResult(core_theme="Late")

    monkeypatch.setattr(workflow, "generate_preliminary_report", slow_preliminary)

    async def cancel_mid_run():
        task = asyncio.create_task(workflow.run_analysis(analysis.id, "/tmp/promo.mp4"))
        while not started.is_set():
            await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    try:
        asyncio.run(cancel_mid_run())
    finally:
        release.set()

    session.expire_all()
    stored = get_analysis(session, analysis.id)
    assert stored.status == "error"
    assert stored.progress_message == PROGRESS_ERROR
