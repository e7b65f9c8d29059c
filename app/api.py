"""
FastAPI application for the ad video analyzer.

Exposes authentication, analysis-record CRUD with ownership rules, video
upload with background or streamed (SSE) analysis, dashboard / comparison /
report views, copy suggestions and admin endpoints.
"""
from fastapi import FastAPI, HTTPException, Depends, UploadFile, File, Form, BackgroundTasks, Query, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse, FileResponse, PlainTextResponse
from sqlmodel import Session
from typing import Optional, List, Set
from contextlib import asynccontextmanager
from pathlib import Path
from uuid import uuid4
import logging
import asyncio
import json

from app.agents import generate_copy_suggestions
from app.config import get_settings
from app.constants import Placement, DEFAULT_LANGUAGE, DEFAULT_MODEL_LABEL, ALLOWED_VIDEO_EXTENSIONS, UPLOAD_CHUNK_SIZE
from app.constants.messages import PROGRESS_STARTED, STEP_QUEUED
from app.core.auth import get_current_user, require_admin
from app.core.security import create_access_token
from app.core.workflow import run_analysis
from app.db import init_db, get_session
from app.models import Analysis, AnalysisOptions, User, utc_now
from app.schemas import (
    LoginRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    UserRead,
    AnalysisCreate,
    AnalysisUpdate,
    AnalysisRead,
    HistoryResponse,
    DashboardResponse,
    ComparisonResponse,
    CopySuggestionRequest,
    CopySuggestionResponse,
    AdminStats,
    HealthResponse,
)
from app.services.storage import (
    AnalysisNotFoundError,
    AnalysisForbiddenError,
    EmptyUpdateError,
    create_analysis,
    list_analyses,
    get_visible_analysis,
    update_analysis,
    delete_analysis,
    split_history,
    compute_admin_stats,
)
from app.services.users import authenticate_user, list_users
from app.tasks import process_upload
from app.utils.analysis_metadata import build_dashboard, build_comparison
from app.utils.api_helpers import APIError
from app.utils.report_formatter import generate_markdown_report

# Logging configuration
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(
    title="Ad Video Analyzer API",
    description="Scores vertical video ads, flags compliance risks and suggests improvements",
    version="1.0.0",
    lifespan=lifespan
)

# Streamed analyses keep running after the client disconnects
_running_analyses: Set[asyncio.Task] = set()

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _read(analysis: Analysis) -> AnalysisRead:
    return AnalysisRead.model_validate(analysis)


def _visible_or_raise(session: Session, analysis_id: int, user: User) -> Analysis:
    try:
        return get_visible_analysis(session, analysis_id, user)
    except AnalysisNotFoundError:
        raise HTTPException(status_code=404, detail="Analysis not found")
    except AnalysisForbiddenError as e:
        raise HTTPException(status_code=403, detail=str(e))


# ============================================================================
# AUTH
# ============================================================================

@app.post("/api/auth/login", response_model=LoginResponse)
def login(body: LoginRequest, session: Session = Depends(get_session)):
    """Exchange a name (or user id) and password for a bearer token."""
    if not body.username or not body.password:
        raise HTTPException(status_code=400, detail="Username and password are required")

    user = authenticate_user(session, body.username, body.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token(user.id, user.name, user.role)
    logger.info(f"User {user.id} logged in")
    return LoginResponse(user=UserRead.model_validate(user), token=token)


@app.get("/api/auth/me", response_model=MeResponse)
def me(user: User = Depends(get_current_user)):
    return MeResponse(user=UserRead.model_validate(user))


@app.post("/api/auth/logout", response_model=MessageResponse)
def logout(user: User = Depends(get_current_user)):
    # Tokens are stateless; the client just drops it
    return MessageResponse(message="Logout successful")


@app.get("/api/users", response_model=List[UserRead])
def get_users(admin: User = Depends(require_admin), session: Session = Depends(get_session)):
    return [UserRead.model_validate(u) for u in list_users(session)]


# ============================================================================
# ANALYSES
# ============================================================================

@app.get("/api/analyses", response_model=List[AnalysisRead])
def get_analyses(
    search: Optional[str] = None,
    grade: Optional[str] = None,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Analyses visible to the caller (own + public, everything for admins), newest first."""
    return [_read(a) for a in list_analyses(session, user, search=search, grade=grade)]


@app.post("/api/analyses", response_model=AnalysisRead, status_code=status.HTTP_201_CREATED)
def post_analysis(
    body: AnalysisCreate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    analysis = create_analysis(session, user, body.video_name, model_used=body.model_used)
    return _read(analysis)


async def _save_upload(file: UploadFile) -> Path:
    """
    Streams an upload to the upload directory.

    Raises:
        HTTPException: 400 for unsupported extensions, 413 when over the size limit
    """
    settings = get_settings()
    suffix = Path(file.filename or "").suffix.lower()
    if suffix not in ALLOWED_VIDEO_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported video type '{suffix or file.filename}'. Allowed: {', '.join(sorted(ALLOWED_VIDEO_EXTENSIONS))}"
        )

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    destination = upload_dir / f"{uuid4().hex}{suffix}"
    max_bytes = settings.max_upload_mb * 1024 * 1024

    written = 0
    too_large = False
    with destination.open("wb") as out:
        while True:
            chunk = await file.read(UPLOAD_CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if written > max_bytes:
                too_large = True
                break
            out.write(chunk)

    if too_large:
        destination.unlink(missing_ok=True)
        raise HTTPException(status_code=413, detail=f"Video exceeds {settings.max_upload_mb} MB")
    if written == 0:
        destination.unlink(missing_ok=True)
        raise HTTPException(status_code=400, detail="Uploaded file is empty")

    logger.info(f"Stored upload {file.filename} ({written} bytes) as {destination}")
    return destination


async def _create_upload_record(
    file: UploadFile,
    model_used: Optional[str],
    user: User,
    session: Session
) -> Analysis:
    video_path = await _save_upload(file)
    return create_analysis(
        session,
        user,
        Path(file.filename).name,
        model_used=model_used,
        video_path=str(video_path),
    )


@app.post("/api/analyses/upload", response_model=AnalysisRead, status_code=status.HTTP_202_ACCEPTED)
async def upload_video(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    model_used: Optional[str] = Form(DEFAULT_MODEL_LABEL, alias="modelUsed"),
    placement: Placement = Form(Placement.REELS),
    language: str = Form(DEFAULT_LANGUAGE),
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """
    Stores the video and starts the analysis in the background.

    Poll GET /api/analyses/{id} for progress.
    """
    analysis = await _create_upload_record(file, model_used, user, session)
    options = AnalysisOptions(placement=placement, language=language)

    if get_settings().task_queue_enabled:
        process_upload.delay(analysis.id, analysis.video_path, model_used, options.to_json_dict())
        logger.info(f"[analysis {analysis.id}] Dispatched to task queue")
    else:
        background_tasks.add_task(run_analysis, analysis.id, analysis.video_path, model_used, options)

    return _read(analysis)


@app.post("/api/analyses/upload/stream")
async def upload_video_stream(
    file: UploadFile = File(...),
    model_used: Optional[str] = Form(DEFAULT_MODEL_LABEL, alias="modelUsed"),
    placement: Placement = Form(Placement.REELS),
    language: str = Form(DEFAULT_LANGUAGE),
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """
    Stores the video and runs the analysis with streaming progress (SSE).

    Returns Server-Sent Events with progress updates:
    - Progress events: {"type": "progress", "step": "scores", "percent": 60, "message": "..."}
    - Completion event: {"type": "complete", "data": {...analysis record...}}
    - Error events: {"type": "error", "message": "..."}
    """
    analysis = await _create_upload_record(file, model_used, user, session)
    options = AnalysisOptions(placement=placement, language=language)

    return StreamingResponse(
        stream_analysis(analysis.id, analysis.video_path, model_used, options),
        media_type="text/event-stream"
    )


async def stream_analysis(
    analysis_id: int,
    video_path: str,
    model_used: Optional[str],
    options: AnalysisOptions
):
    """
    Runs the analysis as a task and yields its progress as SSE lines.

    If the client goes away the task is left running so the record still
    reaches full-complete or error and can be polled.
    """
    progress_queue = asyncio.Queue()

    async def progress_callback(step: str, percent: int, message: str):
        """Callback called by workflow to report progress"""
        await progress_queue.put({
            "type": "progress",
            "step": step,
            "percent": percent,
            "message": message
        })

    async def run_and_report():
        """Run analysis and send completion/error"""
        try:
            completed = await run_analysis(
                analysis_id,
                video_path,
                model_used,
                options,
                progress_callback=progress_callback
            )
            await progress_queue.put({
                "type": "complete",
                "data": _read(completed).model_dump(by_alias=True, mode="json")
            })
        except Exception as e:
            await progress_queue.put({
                "type": "error",
                "message": str(e)
            })
        finally:
            await progress_queue.put(None)  # Signal completion

    step, percent = STEP_QUEUED
    await progress_callback(step, percent, PROGRESS_STARTED)

    analysis_task = asyncio.create_task(run_and_report())
    _running_analyses.add(analysis_task)
    analysis_task.add_done_callback(_running_analyses.discard)

    try:
        while True:
            event = await progress_queue.get()
            if event is None:
                break
            yield f"data: {json.dumps(event, ensure_ascii=False)}\n\n"
    finally:
        if not analysis_task.done():
            logger.info(f"[analysis {analysis_id}] Client disconnected, analysis continues in background")


@app.get("/api/analyses/history", response_model=HistoryResponse)
def get_history(
    search: Optional[str] = None,
    grade: Optional[str] = None,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Sidebar data: the caller's own analyses and public ones from other users."""
    groups = split_history(list_analyses(session, user, search=search, grade=grade), user)
    return HistoryResponse(
        mine=[_read(a) for a in groups["mine"]],
        public=[_read(a) for a in groups["public"]],
    )


@app.get("/api/analyses/compare", response_model=ComparisonResponse)
def compare_analyses(
    a: int = Query(..., description="First analysis id"),
    b: int = Query(..., description="Second analysis id"),
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    if a == b:
        raise HTTPException(status_code=400, detail="Choose two different analyses to compare.")

    analysis_a = _visible_or_raise(session, a, user)
    analysis_b = _visible_or_raise(session, b, user)
    return ComparisonResponse.model_validate(build_comparison(analysis_a, analysis_b), from_attributes=True)


@app.get("/api/analyses/{analysis_id}", response_model=AnalysisRead)
def get_analysis_endpoint(
    analysis_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    return _read(_visible_or_raise(session, analysis_id, user))


@app.patch("/api/analyses/{analysis_id}", response_model=AnalysisRead)
def patch_analysis(
    analysis_id: int,
    body: AnalysisUpdate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    try:
        analysis = update_analysis(session, analysis_id, user, body.changes())
    except EmptyUpdateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AnalysisNotFoundError:
        raise HTTPException(status_code=404, detail="Analysis not found")
    except AnalysisForbiddenError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return _read(analysis)


@app.delete("/api/analyses/{analysis_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_analysis_endpoint(
    analysis_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Deletes an analysis. Deleting a missing analysis also returns 204."""
    try:
        delete_analysis(session, analysis_id, user)
    except AnalysisForbiddenError as e:
        raise HTTPException(status_code=403, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/api/analyses/{analysis_id}/video")
def get_video(
    analysis_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    analysis = _visible_or_raise(session, analysis_id, user)
    if not analysis.video_path or not Path(analysis.video_path).is_file():
        raise HTTPException(status_code=404, detail="Video file not available")
    return FileResponse(analysis.video_path, filename=analysis.video_name)


@app.get("/api/analyses/{analysis_id}/dashboard", response_model=DashboardResponse)
def get_dashboard(
    analysis_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    analysis = _visible_or_raise(session, analysis_id, user)
    return DashboardResponse.model_validate(build_dashboard(analysis, user), from_attributes=True)


@app.get("/api/analyses/{analysis_id}/report", response_class=PlainTextResponse)
def get_report(
    analysis_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Markdown export of an analysis."""
    analysis = _visible_or_raise(session, analysis_id, user)
    return PlainTextResponse(generate_markdown_report(analysis), media_type="text/markdown")


# ============================================================================
# COPY SUGGESTIONS
# ============================================================================

@app.post("/api/copy-suggestions", response_model=CopySuggestionResponse)
async def copy_suggestions(body: CopySuggestionRequest, user: User = Depends(get_current_user)):
    """Turns an improvement principle into three concrete copy lines."""
    try:
        suggestions = await asyncio.to_thread(
            generate_copy_suggestions,
            body.original_text,
            body.suggestion_type.value,
            body.video_theme,
            body.language or DEFAULT_LANGUAGE,
        )
    except ValueError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except APIError as e:
        logger.error(f"Copy suggestion generation failed: {e}")
        raise HTTPException(status_code=502, detail="AI provider request failed")
    return CopySuggestionResponse(suggestions=suggestions)


# ============================================================================
# ADMIN
# ============================================================================

@app.get("/api/admin/analyses", response_model=List[AnalysisRead])
def admin_list_analyses(admin: User = Depends(require_admin), session: Session = Depends(get_session)):
    return [_read(a) for a in list_analyses(session)]


@app.get("/api/admin/stats", response_model=AdminStats)
def admin_stats(admin: User = Depends(require_admin), session: Session = Depends(get_session)):
    return AdminStats.model_validate(compute_admin_stats(session), from_attributes=True)


@app.delete("/api/admin/analyses/{analysis_id}", status_code=status.HTTP_204_NO_CONTENT)
def admin_delete_analysis(
    analysis_id: int,
    admin: User = Depends(require_admin),
    session: Session = Depends(get_session)
):
    if not delete_analysis(session, analysis_id, admin):
        raise HTTPException(status_code=404, detail="Analysis not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# HEALTH
# ============================================================================

@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health endpoint to check that the API is up."""
    settings = get_settings()
    return HealthResponse(
        status="OK",
        timestamp=utc_now(),
        openai_configured=bool(settings.openai_api_key)
    )
