from __future__ import annotations

from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_dispatcher, get_query_service, get_submission_service
from app.config import get_settings
from app.main import app
from app.notifications.models import Notification
from app.notifications.queries import NotificationQueryService
from app.notifications.submission import SubmissionService

TASK_SECRET = "cycle-secret"


@pytest.fixture
def client(store, directory, make_dispatcher):
  store.rows[1] = Notification(id=1, country_id=4, title="Hello", message="World")
  directory.populate(4, 2)
  dispatcher = make_dispatcher()
  settings = replace(get_settings(), task_secret=TASK_SECRET)
  app.dependency_overrides[get_submission_service] = lambda: SubmissionService(store=store)
  app.dependency_overrides[get_query_service] = lambda: NotificationQueryService(store=store)
  app.dependency_overrides[get_dispatcher] = lambda: dispatcher
  app.dependency_overrides[get_settings] = lambda: settings
  yield TestClient(app)
  app.dependency_overrides.clear()


def test_health_check(client):
  response = client.get("/health")

  assert response.status_code == 200
  assert response.json()["status"] == "ok"


def test_submit_returns_notification_id(client, store):
  response = client.post("/v1/push-notifications", json={"title": "New", "message": "Body", "country_id": 4})

  assert response.status_code == 200
  assert response.json() == {"success": True, "result": {"notification_id": 2}}
  assert store.rows[2].title == "New"


def test_submit_long_title_returns_validation_envelope(client, store):
  response = client.post("/v1/push-notifications", json={"title": "t" * 256, "message": "Body", "country_id": 4})

  assert response.status_code == 422
  assert response.json() == {"success": False, "message": "Invalid data", "errors": {"title": ["title must be at most 255 characters"]}}
  assert store.created == []


def test_submit_non_integer_country_uses_validation_envelope(client):
  response = client.post("/v1/push-notifications", json={"title": "Hi", "message": "Body", "country_id": "four"})

  assert response.status_code == 422
  body = response.json()
  assert body["success"] is False
  assert body["message"] == "Invalid data"
  assert "country_id" in body["errors"]


def test_submit_unknown_country_returns_null_result(client):
  response = client.post("/v1/push-notifications", json={"title": "Hi", "message": "Body", "country_id": 999})

  assert response.status_code == 404
  assert response.json() == {"success": False, "result": None}


def test_details_returns_snapshot(client):
  response = client.get("/v1/push-notifications/1")

  assert response.status_code == 200
  assert response.json() == {"success": True, "result": {"id": 1, "title": "Hello", "message": "World", "sent": 0, "failed": 0, "in_progress": 0, "in_queue": 0}}


def test_details_unknown_id_returns_null_result(client):
  response = client.get("/v1/push-notifications/404")

  assert response.status_code == 404
  assert response.json() == {"success": False, "result": None}


def test_cycle_requires_task_secret(client, sender):
  response = client.post("/internal/push-notifications/cycle", headers={"X-Pushcast-Task-Secret": "wrong"})

  assert response.status_code == 403
  assert response.json() == {"success": False, "result": None}
  assert sender.calls == []


def test_cycle_is_forbidden_when_secret_is_not_configured(client):
  app.dependency_overrides[get_settings] = lambda: replace(get_settings(), task_secret=None)

  response = client.post("/internal/push-notifications/cycle", headers={"X-Pushcast-Task-Secret": ""})

  assert response.status_code == 403


def test_cycle_with_secret_header_returns_summaries(client):
  response = client.post("/internal/push-notifications/cycle", headers={"X-Pushcast-Task-Secret": TASK_SECRET})

  assert response.status_code == 200
  assert response.json() == {"success": True, "result": [{"notification_id": 1, "title": "Hello", "message": "World", "sent": 2, "failed": 0}]}


def test_cycle_accepts_bearer_secret(client):
  response = client.post("/internal/push-notifications/cycle", headers={"Authorization": f"Bearer {TASK_SECRET}"})

  assert response.status_code == 200
  assert response.json()["success"] is True


def test_action_send_and_details(client):
  sent = client.post("/", json={"action": "send", "title": "Hello", "message": "World", "country_id": 4})
  notification_id = sent.json()["result"]["notification_id"]

  details = client.post("/", json={"action": "details", "notification_id": notification_id})

  assert sent.status_code == 200
  assert details.json()["result"]["id"] == notification_id


def test_action_details_unknown_id_returns_null_result(client):
  response = client.post("/", json={"action": "details", "notification_id": 999})

  assert response.status_code == 404
  assert response.json() == {"success": False, "result": None}


def test_action_cron_requires_secret(client, sender):
  forbidden = client.post("/", json={"action": "cron"})
  allowed = client.post("/", json={"action": "cron"}, headers={"X-Pushcast-Task-Secret": TASK_SECRET})

  assert forbidden.status_code == 403
  assert allowed.status_code == 200
  assert [item["notification_id"] for item in allowed.json()["result"]] == [1]
  assert len(sender.calls) == 2


def test_unknown_action_is_a_validation_error(client):
  response = client.post("/", json={"action": "delete"})

  assert response.status_code == 422
  assert response.json()["success"] is False


def test_unhandled_errors_return_500_envelope(client):
  class _BrokenQueries:
    async def get_details(self, notification_id: int):
      raise RuntimeError("database exploded")

  app.dependency_overrides[get_query_service] = lambda: _BrokenQueries()

  response = TestClient(app, raise_server_exceptions=False).get("/v1/push-notifications/1")

  assert response.status_code == 500
  assert response.json() == {"success": False, "result": None}
