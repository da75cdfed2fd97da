"""HTTP surface: auth guard, acknowledgement semantics and webhook routing."""

from typing import List
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from post_enhancer.config import Settings
from post_enhancer.dependencies import get_enhancer, get_job_waiter
from post_enhancer.exceptions import GenerationFailed
from post_enhancer.main import create_app
from post_enhancer.models.schemas import EnhanceRequest
from post_enhancer.services.job_waiter import CallbackJobWaiter, JobWaiter, PollingJobWaiter

AUTH = {"X-Enhancer-Key": "test-secret"}
ENHANCE_BODY = {
    "post_id": 7,
    "post_url": "https://blog.example.com/attic",
    "title": "Attic Insulation Guide",
    "focus_keyword": "attic insulation",
}


class FakeEnhancer:
    def __init__(self) -> None:
        self.calls: List[EnhanceRequest] = []

    async def enhance(self, request: EnhanceRequest) -> None:
        self.calls.append(request)


@pytest.fixture
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture
def enhancer(app) -> FakeEnhancer:
    fake = FakeEnhancer()
    app.dependency_overrides[get_enhancer] = lambda: fake
    return fake


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def test_health_is_public(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True, "service": "Post Enhancer", "version": "1.1.0"}


def test_enhance_without_secret_is_rejected(client, enhancer):
    response = client.post("/enhance", json=ENHANCE_BODY)

    assert response.status_code == 401
    assert response.json() == {"detail": "unauthorized"}
    assert enhancer.calls == []


def test_enhance_with_wrong_secret_is_rejected(client, enhancer):
    response = client.post("/enhance", json=ENHANCE_BODY, headers={"X-Enhancer-Key": "nope"})

    assert response.status_code == 401
    assert enhancer.calls == []


def test_enhance_rejects_before_validating_body(client, enhancer):
    response = client.post("/enhance", json={"unexpected": True})
    assert response.status_code == 401


def test_enhance_acknowledges_and_schedules_pipeline(client, enhancer):
    response = client.post("/enhance", json=ENHANCE_BODY, headers=AUTH)

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Enhancement started"}
    # TestClient runs background tasks before returning
    assert len(enhancer.calls) == 1
    assert enhancer.calls[0].post_id == 7
    assert enhancer.calls[0].focus_keyword == "attic insulation"


def test_enhance_invalid_body(client, enhancer):
    response = client.post("/enhance", json={"title": "missing post id"}, headers=AUTH)

    assert response.status_code == 422
    assert enhancer.calls == []


def test_secret_check_fails_closed_without_configured_token(monkeypatch):
    monkeypatch.setenv("AUTH_TOKEN", "")
    app = create_app(Settings())
    fake = FakeEnhancer()
    app.dependency_overrides[get_enhancer] = lambda: fake

    with TestClient(app) as c:
        response = c.post("/enhance", json=ENHANCE_BODY, headers={"X-Enhancer-Key": ""})

    assert response.status_code == 401
    assert fake.calls == []


def test_kie_callback_is_public_and_forwards_payload(app, client):
    waiter = MagicMock(spec=CallbackJobWaiter)
    waiter.handle_callback.return_value = True
    app.dependency_overrides[get_job_waiter] = lambda: waiter
    payload = {"code": 200, "data": {"taskId": "abc123", "state": "fail", "failMsg": "quota exceeded"}}

    response = client.post("/kie-callback", json=payload)

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    waiter.handle_callback.assert_called_once_with(payload)


def test_kie_callback_with_unparsable_body(app, client):
    waiter = MagicMock(spec=CallbackJobWaiter)
    app.dependency_overrides[get_job_waiter] = lambda: waiter

    response = client.post("/kie-callback", content=b"{not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    waiter.handle_callback.assert_not_called()


def test_kie_callback_ignored_in_polling_mode(monkeypatch):
    monkeypatch.setenv("WAITER_MODE", "polling")
    app = create_app(Settings())
    assert isinstance(app.state.services.job_waiter, PollingJobWaiter)

    with TestClient(app) as c:
        response = c.post("/kie-callback", json={"data": {"taskId": "abc123", "state": "success"}})

    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_kie_callback_settles_real_waiter_registry(app, client):
    waiter = app.state.services.job_waiter
    assert isinstance(waiter, CallbackJobWaiter)

    # Nothing is pending, so the webhook must be a harmless no-op.
    response = client.post("/kie-callback", json={"data": {"taskId": "ghost", "state": "success", "resultJson": "{}"}})

    assert response.status_code == 200
    assert waiter.pending_count == 0


def _fake_waiter(app, **submit_kwargs) -> MagicMock:
    waiter = MagicMock(spec=JobWaiter)
    waiter.submit = AsyncMock(**submit_kwargs)
    app.dependency_overrides[get_job_waiter] = lambda: waiter
    return waiter


def test_generate_image_requires_secret(app, client):
    waiter = _fake_waiter(app, return_value="http://x/img.jpg")

    response = client.post("/generate-image", json={"prompt": "a roof"})

    assert response.status_code == 401
    waiter.submit.assert_not_awaited()


def test_generate_image_requires_prompt_or_topic(app, client):
    _fake_waiter(app, return_value="http://x/img.jpg")

    response = client.post("/generate-image", json={}, headers=AUTH)

    assert response.status_code == 400
    assert response.json() == {"detail": "prompt or topic required"}


def test_generate_image_with_prompt(app, client):
    waiter = _fake_waiter(app, return_value="http://x/img.jpg")

    response = client.post("/generate-image", json={"prompt": "a roof"}, headers=AUTH)

    assert response.status_code == 200
    assert response.json() == {"success": True, "url": "http://x/img.jpg", "prompt": "a roof", "error": None}
    waiter.submit.assert_awaited_once_with("a roof", "1:1")


def test_generate_image_builds_prompt_from_topic(app, client, settings):
    waiter = _fake_waiter(app, return_value="http://x/img.jpg")

    response = client.post("/generate-image", json={"topic": "basement walls"}, headers=AUTH)

    expected_prompt = settings.SOCIAL_IMAGE_PROMPT_TEMPLATE.format(topic="basement walls")
    assert response.status_code == 200
    assert response.json()["prompt"] == expected_prompt
    waiter.submit.assert_awaited_once_with(expected_prompt, "1:1")


def test_generate_image_transport_error(app, client):
    _fake_waiter(app, side_effect=httpx.ConnectError("dns"))

    response = client.post("/generate-image", json={"prompt": "a roof"}, headers=AUTH)

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "dns"}


def test_generate_image_topic_template_with_other_braces(app, client, settings):
    settings.SOCIAL_IMAGE_PROMPT_TEMPLATE = 'Photo about {topic}, style {"mood": "calm"} {0}'
    waiter = _fake_waiter(app, return_value="http://x/img.jpg")

    response = client.post("/generate-image", json={"topic": "roofs"}, headers=AUTH)

    assert response.status_code == 200
    assert response.json()["prompt"] == 'Photo about roofs, style {"mood": "calm"} {0}'
    waiter.submit.assert_awaited_once_with('Photo about roofs, style {"mood": "calm"} {0}', "1:1")


def test_kie_callback_with_unhashable_task_id(app, client):
    waiter = app.state.services.job_waiter

    response = client.post("/kie-callback", json={"data": {"taskId": ["a"], "state": "success"}})

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert waiter.pending_count == 0


def test_generate_image_failure(app, client):
    _fake_waiter(app, side_effect=GenerationFailed("quota exceeded"))

    response = client.post("/generate-image", json={"prompt": "a roof"}, headers=AUTH)

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert "quota exceeded" in body["error"]
