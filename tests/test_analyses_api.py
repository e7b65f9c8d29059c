import asyncio
import json
from datetime import datetime, timezone

from sqlmodel import select

from app.config import get_settings
from app.constants.messages import PROGRESS_QUEUED
from app.db import session_scope
from app.models import Analysis, AnalysisOptions
from app.services.storage import apply_updates, get_analysis


def test_create_analysis_defaults(client, user_headers):
    response = client.post("/api/analyses", json={"videoName": "spring-sale.mp4"}, headers=user_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["videoName"] == "spring-sale.mp4"
    assert body["status"] == "processing"
    assert body["progressMessage"] == PROGRESS_QUEUED
    assert body["thumbnailUrl"] == ""
    assert body["uploaderId"] == "user-123"
    assert body["uploaderName"] == "Demo User"
    assert body["isPublic"] is False
    assert "videoPath" not in body


def test_create_analysis_requires_name(client, user_headers):
    response = client.post("/api/analyses", json={"videoName": ""}, headers=user_headers)

    assert response.status_code == 422


def test_analyses_require_auth(client):
    assert client.get("/api/analyses").status_code == 401
    assert client.post("/api/analyses", json={"videoName": "x.mp4"}).status_code == 401


def test_list_shows_own_and_public(client, make_analysis, other_user, user_headers, admin_headers):
    own = make_analysis()
    public = make_analysis(uploader_id=other_user.id, uploader_name=other_user.name, is_public=True)
    private = make_analysis(uploader_id=other_user.id, uploader_name=other_user.name)

    ids = [a["id"] for a in client.get("/api/analyses", headers=user_headers).json()]
    assert set(ids) == {own.id, public.id}

    admin_ids = [a["id"] for a in client.get("/api/analyses", headers=admin_headers).json()]
    assert set(admin_ids) == {own.id, public.id, private.id}


def test_list_newest_first_with_id_tiebreak(client, make_analysis, user_headers):
    older = make_analysis(date=datetime(2024, 1, 1, tzinfo=timezone.utc))
    same_a = make_analysis(date=datetime(2024, 6, 1, tzinfo=timezone.utc))
    same_b = make_analysis(date=datetime(2024, 6, 1, tzinfo=timezone.utc))

    ids = [a["id"] for a in client.get("/api/analyses", headers=user_headers).json()]

    assert ids == [same_b.id, same_a.id, older.id]


def test_list_search_and_grade_filters(client, make_analysis, user_headers):
    summer = make_analysis(video_name="Summer_Sale.mp4", status="full-complete", total_score=92, grade="A")
    make_analysis(video_name="winter.mp4", status="full-complete", total_score=75, grade="C")
    make_analysis(video_name="summer-draft.mp4", status="analyzing-full", grade="A")

    by_name = client.get("/api/analyses", params={"search": "SUMMER"}, headers=user_headers).json()
    assert {a["videoName"] for a in by_name} == {"Summer_Sale.mp4", "summer-draft.mp4"}

    by_grade = client.get("/api/analyses", params={"grade": "a"}, headers=user_headers).json()
    assert [a["id"] for a in by_grade] == [summer.id]


def test_get_analysis_visibility(client, make_analysis, other_user, user_headers, admin_headers):
    private = make_analysis(uploader_id=other_user.id, uploader_name=other_user.name)
    public = make_analysis(uploader_id=other_user.id, uploader_name=other_user.name, is_public=True)

    assert client.get(f"/api/analyses/{private.id}", headers=user_headers).status_code == 403
    assert client.get(f"/api/analyses/{public.id}", headers=user_headers).status_code == 200
    assert client.get(f"/api/analyses/{private.id}", headers=admin_headers).status_code == 200
    assert client.get("/api/analyses/9999", headers=user_headers).status_code == 404


def test_patch_updates_allowed_fields(client, make_analysis, user_headers):
    analysis = make_analysis()

    response = client.patch(
        f"/api/analyses/{analysis.id}",
        json={"isPublic": True, "videoName": "renamed.mp4"},
        headers=user_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["isPublic"] is True
    assert body["videoName"] == "renamed.mp4"


def test_patch_ignores_protected_fields(client, session, make_analysis, user_headers):
    analysis = make_analysis()

    response = client.patch(
        f"/api/analyses/{analysis.id}",
        json={"id": 777, "uploaderId": "admin-001", "uploaderName": "Mallory", "isPublic": True},
        headers=user_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == analysis.id
    assert body["uploaderId"] == "user-123"
    assert body["uploaderName"] == "Demo User"


def test_patch_with_only_protected_fields_is_rejected(client, make_analysis, user_headers):
    analysis = make_analysis()

    response = client.patch(
        f"/api/analyses/{analysis.id}",
        json={"uploaderId": "admin-001", "date": "2020-01-01T00:00:00"},
        headers=user_headers,
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "No update fields provided."


def test_patch_ownership(client, make_analysis, other_user, user_headers, admin_headers):
    foreign = make_analysis(uploader_id=other_user.id, uploader_name=other_user.name, is_public=True)

    forbidden = client.patch(f"/api/analyses/{foreign.id}", json={"isPublic": False}, headers=user_headers)
    assert forbidden.status_code == 403
    assert forbidden.json()["detail"] == "Forbidden: You can only update your own analyses."

    assert client.patch(f"/api/analyses/{foreign.id}", json={"isPublic": False}, headers=admin_headers).status_code == 200
    assert client.patch("/api/analyses/9999", json={"isPublic": True}, headers=user_headers).status_code == 404


def test_patch_rejects_null_for_required_fields(client, session, make_analysis, user_headers):
    analysis = make_analysis(video_name="keep.mp4", status="full-complete")

    for body in ({"videoName": None}, {"status": None, "isPublic": None}, {"thumbnailUrl": None}):
        response = client.patch(f"/api/analyses/{analysis.id}", json=body, headers=user_headers)
        assert response.status_code == 422

    session.expire_all()
    stored = get_analysis(session, analysis.id)
    assert stored.video_name == "keep.mp4"
    assert stored.status == "full-complete"
    assert stored.is_public is False

    cleared = client.patch(f"/api/analyses/{analysis.id}", json={"progressMessage": None}, headers=user_headers)
    assert cleared.status_code == 200


def test_video_download(client, make_analysis, other_user, tmp_path, user_headers):
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"clipdata")
    mine = make_analysis(video_name="clip.mp4", video_path=str(video))
    missing = make_analysis(video_path=str(tmp_path / "gone.mp4"))
    foreign = make_analysis(uploader_id=other_user.id, uploader_name=other_user.name, video_path=str(video))

    response = client.get(f"/api/analyses/{mine.id}/video", headers=user_headers)
    assert response.status_code == 200
    assert response.content == b"clipdata"

    assert client.get(f"/api/analyses/{missing.id}/video", headers=user_headers).status_code == 404
    assert client.get(f"/api/analyses/{foreign.id}/video", headers=user_headers).status_code == 403


def test_delete_analysis(client, session, make_analysis, tmp_path, user_headers):
    video = tmp_path / "video.mp4"
    video.write_bytes(b"fake")
    analysis = make_analysis(video_path=str(video))

    response = client.delete(f"/api/analyses/{analysis.id}", headers=user_headers)

    assert response.status_code == 204
    assert client.get(f"/api/analyses/{analysis.id}", headers=user_headers).status_code == 404
    assert not video.exists()


def test_delete_missing_analysis_is_no_content(client, user_headers):
    assert client.delete("/api/analyses/9999", headers=user_headers).status_code == 204


def test_delete_foreign_analysis_forbidden(client, make_analysis, other_user, user_headers):
    foreign = make_analysis(uploader_id=other_user.id, uploader_name=other_user.name, is_public=True)

    assert client.delete(f"/api/analyses/{foreign.id}", headers=user_headers).status_code == 403
    assert client.get(f"/api/analyses/{foreign.id}", headers=user_headers).status_code == 200


def test_history_groups(client, make_analysis, other_user, user_headers):
    own_public = make_analysis(is_public=True)
    own_private = make_analysis()
    other_public = make_analysis(uploader_id=other_user.id, uploader_name=other_user.name, is_public=True)
    make_analysis(uploader_id=other_user.id, uploader_name=other_user.name)

    body = client.get("/api/analyses/history", headers=user_headers).json()

    assert {a["id"] for a in body["mine"]} == {own_public.id, own_private.id}
    assert [a["id"] for a in body["public"]] == [other_public.id]


# ============================================================================
# UPLOADS
# ============================================================================

def test_upload_starts_background_analysis(client, session, monkeypatch, user_headers):
    calls = []

    async def fake_run_analysis(analysis_id, video_path, model_used=None, options=None, progress_callback=None):
        calls.append((analysis_id, video_path, model_used, options))

    monkeypatch.setattr("app.api.run_analysis", fake_run_analysis)

    response = client.post(
        "/api/analyses/upload",
        files={"file": ("promo.mp4", b"\x00\x00\x00\x18ftypmp42", "video/mp4")},
        data={"modelUsed": "GPT-4o mini - Fast", "placement": "Stories", "language": "en"},
        headers=user_headers,
    )

    assert response.status_code == 202
    body = response.json()
    assert body["videoName"] == "promo.mp4"
    assert body["status"] == "processing"
    assert body["modelUsed"] == "GPT-4o mini - Fast"
    assert body["videoUrl"] == f"/api/analyses/{body['id']}/video"

    assert len(calls) == 1
    analysis_id, video_path, model_used, options = calls[0]
    assert analysis_id == body["id"]
    assert model_used == "GPT-4o mini - Fast"
    assert options.placement.value == "Stories"
    assert options.language == "en"

    stored = session.exec(select(Analysis).where(Analysis.id == body["id"])).one()
    assert stored.video_path == video_path

    video = client.get(body["videoUrl"], headers=user_headers)
    assert video.status_code == 200
    assert video.content == b"\x00\x00\x00\x18ftypmp42"


def test_upload_rejects_unsupported_extension(client, user_headers):
    response = client.post(
        "/api/analyses/upload",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=user_headers,
    )

    assert response.status_code == 400


def test_upload_rejects_empty_file(client, user_headers):
    response = client.post(
        "/api/analyses/upload",
        files={"file": ("empty.mp4", b"", "video/mp4")},
        headers=user_headers,
    )

    assert response.status_code == 400


def _events(response):
    return [
        json.loads(line[len("data: "):])
        for line in response.text.splitlines()
        if line.startswith("data: ")
    ]


def test_upload_stream_reports_progress_and_result(client, monkeypatch, user_headers):
    async def fake_run_analysis(analysis_id, video_path, model_used=None, options=None, progress_callback=None):
        await progress_callback("preliminary", 10, "working")
        with session_scope() as session:
            analysis = get_analysis(session, analysis_id)
            return apply_updates(session, analysis, {"status": "full-complete", "total_score": 88, "grade": "B"})

    monkeypatch.setattr("app.api.run_analysis", fake_run_analysis)

    response = client.post(
        "/api/analyses/upload/stream",
        files={"file": ("promo.mov", b"movdata", "video/quicktime")},
        headers=user_headers,
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")

    events = _events(response)
    assert events[0]["type"] == "progress"
    assert events[0]["step"] == "queued"
    assert events[1] == {"type": "progress", "step": "preliminary", "percent": 10, "message": "working"}
    assert events[-1]["type"] == "complete"
    assert events[-1]["data"]["totalScore"] == 88
    assert events[-1]["data"]["grade"] == "B"


def test_upload_stream_reports_errors(client, monkeypatch, user_headers):
    async def failing_run_analysis(*args, **kwargs):
        raise RuntimeError("ffmpeg exploded")

    monkeypatch.setattr("app.api.run_analysis", failing_run_analysis)

    response = client.post(
        "/api/analyses/upload/stream",
        files={"file": ("promo.mp4", b"data", "video/mp4")},
        headers=user_headers,
    )

    events = _events(response)
    assert events[-1] == {"type": "error", "message": "ffmpeg exploded"}


def test_stream_disconnect_lets_analysis_finish(make_analysis, monkeypatch):
    from app import api

    analysis = make_analysis()

    async def slow_run_analysis(analysis_id, video_path, model_used=None, options=None, progress_callback=None):
        with session_scope() as session:
            apply_updates(session, get_analysis(session, analysis_id), {"status": "analyzing-preliminary"})
        await progress_callback("preliminary", 10, "working")
        await asyncio.sleep(0.01)
        with session_scope() as session:
            return apply_updates(session, get_analysis(session, analysis_id), {"status": "full-complete"})

    monkeypatch.setattr("app.api.run_analysis", slow_run_analysis)

    async def read_two_events_then_disconnect():
        stream = api.stream_analysis(analysis.id, "/tmp/ad.mp4", None, AnalysisOptions())
        received = [await stream.__anext__(), await stream.__anext__()]
        await stream.aclose()
        await asyncio.gather(*list(api._running_analyses))
        return received

    received = asyncio.run(read_two_events_then_disconnect())

    assert '"step": "preliminary"' in received[1]
    with session_scope() as session:
        assert get_analysis(session, analysis.id).status == "full-complete"


def test_upload_dispatches_to_task_queue(client, monkeypatch, user_headers):
    dispatched = []

    class FakeTask:
        def delay(self, *args):
            dispatched.append(args)

    async def not_called(*args, **kwargs):
        raise AssertionError("analysis should run on the worker")

    monkeypatch.setenv("TASK_QUEUE_ENABLED", "true")
    get_settings.cache_clear()
    monkeypatch.setattr("app.api.process_upload", FakeTask())
    monkeypatch.setattr("app.api.run_analysis", not_called)

    response = client.post(
        "/api/analyses/upload",
        files={"file": ("promo.mp4", b"mp4data", "video/mp4")},
        data={"modelUsed": "GPT-4o - Standard", "placement": "Stories", "language": "en"},
        headers=user_headers,
    )

    assert response.status_code == 202
    body = response.json()
    assert len(dispatched) == 1
    analysis_id, video_path, model_used, options = dispatched[0]
    assert analysis_id == body["id"]
    assert video_path.endswith(".mp4")
    assert model_used == "GPT-4o - Standard"
    assert options == {"placement": "Stories", "language": "en"}


# ============================================================================
# ADMIN & HEALTH
# ============================================================================

def test_admin_endpoints_require_admin(client, user_headers):
    assert client.get("/api/admin/analyses", headers=user_headers).status_code == 403
    assert client.get("/api/admin/stats", headers=user_headers).status_code == 403
    assert client.delete("/api/admin/analyses/1", headers=user_headers).status_code == 403


def test_admin_stats(client, make_analysis, other_user, admin_headers):
    make_analysis(status="full-complete", total_score=90, grade="A", is_public=True)
    make_analysis(status="full-complete", total_score=75, grade="C")
    make_analysis(uploader_id=other_user.id, uploader_name=other_user.name, status="error")

    body = client.get("/api/admin/stats", headers=admin_headers).json()

    assert body["totalAnalyses"] == 3
    assert body["publicAnalyses"] == 1
    assert body["byStatus"]["full-complete"] == 2
    assert body["byStatus"]["error"] == 1
    assert body["byGrade"] == {"A": 1, "B": 0, "C": 1, "D": 0}
    assert body["averageTotalScore"] == 82.5
    assert len(body["recentAnalyses"]) == 3
    assert body["generatedAt"].endswith(("Z", "+00:00"))


def test_admin_delete(client, make_analysis, other_user, admin_headers):
    foreign = make_analysis(uploader_id=other_user.id, uploader_name=other_user.name)

    assert client.delete(f"/api/admin/analyses/{foreign.id}", headers=admin_headers).status_code == 204
    assert client.delete(f"/api/admin/analyses/{foreign.id}", headers=admin_headers).status_code == 404
    assert client.get("/api/admin/analyses", headers=admin_headers).json() == []


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "OK"
    assert "openaiConfigured" in body
    assert body["timestamp"].endswith(("Z", "+00:00"))
