"""
HTTP shell tests: response shapes and error status codes.
"""

import pytest
from fastapi.testclient import TestClient

from services.orchestrator import JobOrchestrator
from services.orchestrator.server import app, get_orchestrator

from conftest import IMAGES, make_response


@pytest.fixture
def client(config, http_client):
    orchestrator = JobOrchestrator(config, http_client=http_client)
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "POST /generate-video" in response.json()["endpoints"]


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert isinstance(body["config_issues"], list)


def test_generate_video(client, payload, http_client):
    response = client.post("/generate-video", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["jobId"] == "render-123"
    assert body["provider"] == "shotstack"
    assert body["totalImages"] == len(IMAGES)
    assert body["estimatedTimeSeconds"] == 60
    http_client.request.assert_called_once()


def test_generate_video_with_luma(client, payload, http_client):
    http_client.request.return_value = make_response(201, {"id": "gen-abc"})
    payload["provider"] = "luma"

    response = client.post("/generate-video", json=payload)

    assert response.status_code == 200
    assert response.json()["jobId"] == "gen-abc"
    assert response.json()["totalSegments"] == len(IMAGES) - 1


def test_too_few_images_is_400(client, payload, http_client):
    payload["images"] = IMAGES[:4]

    response = client.post("/generate-video", json=payload)

    assert response.status_code == 400
    assert "error" in response.json()
    http_client.request.assert_not_called()


def test_malformed_body_is_400(client):
    response = client.post("/generate-video", json={"images": "not-a-list"})
    assert response.status_code == 400


def test_provider_rejection_is_502(client, payload, http_client):
    http_client.request.return_value = make_response(400, {"success": False, "message": "Bad Request"})

    response = client.post("/generate-video", json=payload)

    assert response.status_code == 502
    assert response.json()["error"].startswith("Failed to start video rendering")


def test_missing_credential_is_500(unconfigured, http_client, payload):
    orchestrator = JobOrchestrator(unconfigured, http_client=http_client)
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    try:
        response = TestClient(app).post("/generate-video", json=payload)
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert "SHOTSTACK_API_KEY" in response.json()["error"]


def test_check_video_status_done(client, http_client):
    http_client.request.return_value = make_response(
        200, {"success": True, "response": {"status": "done", "url": "https://cdn.example.com/v.mp4"}}
    )

    response = client.post("/check-video-status", json={"jobId": "render-123"})

    assert response.status_code == 200
    assert response.json() == {
        "status": "done",
        "videoUrl": "https://cdn.example.com/v.mp4",
        "rawStatus": "done",
    }


def test_check_video_status_processing_hides_url(client, http_client):
    http_client.request.return_value = make_response(
        200, {"success": True, "response": {"status": "saving", "url": "https://cdn.example.com/partial.mp4"}}
    )

    response = client.post("/check-video-status", json={"jobId": "render-123", "provider": "shotstack"})

    assert response.json()["status"] == "processing"
    assert response.json()["videoUrl"] is None


def test_check_video_status_missing_job_id(client, http_client):
    response = client.post("/check-video-status", json={})

    assert response.status_code == 400
    assert response.json()["error"] == "Job ID is required"
    http_client.request.assert_not_called()


def test_check_video_status_query_failure_is_502(client, http_client):
    http_client.request.return_value = make_response(500, text="Internal Server Error")

    response = client.post("/check-video-status", json={"jobId": "render-123"})

    assert response.status_code == 502
    assert response.json()["error"] == "Failed to check video status"
    assert response.json()["details"] == "Internal Server Error"


def test_check_video_status_control_character_is_400(client, http_client):
    response = client.post("/check-video-status", json={"jobId": "render-123\n"})

    assert response.status_code == 400
    assert response.json()["error"] == "Job ID is not a valid provider job identifier"
    http_client.request.assert_not_called()
