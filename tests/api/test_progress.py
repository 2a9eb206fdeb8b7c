"""Tests for the SCORM player progress endpoints."""

from __future__ import annotations

import asyncio
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from lms.models.course import Course
from lms.models.user import User
from lms.repos.store import Store
from lms.services import order_service


@pytest.fixture
def enrollment_id(store: Store, course: Course, user: User, order_payload) -> str:
    result = asyncio.run(order_service.process_order(store, order_payload()))
    return str(result.created[0].id)


# ---- 401 / 403 / 404 ----


def test_requires_token(client: TestClient, enrollment_id: str) -> None:
    assert client.get(f"/api/progress/{enrollment_id}").status_code == 401


def test_other_user_forbidden(
    client: TestClient, enrollment_id: str, other_user: User, token_for
) -> None:
    headers = {"Authorization": f"Bearer {token_for(other_user)}"}
    assert client.get(f"/api/progress/{enrollment_id}", headers=headers).status_code == 403
    resp = client.put(f"/api/progress/{enrollment_id}", json={"progress": 90}, headers=headers)
    assert resp.status_code == 403


def test_unknown_enrollment(client: TestClient, auth_headers) -> None:
    resp = client.put(f"/api/progress/{uuid4()}", json={"progress": 10}, headers=auth_headers)
    assert resp.status_code == 404


# ---- reads and writes ----


def test_initial_progress(client: TestClient, enrollment_id: str, auth_headers) -> None:
    resp = client.get(f"/api/progress/{enrollment_id}", headers=auth_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["progress"] == 0
    assert body["completed"] is False
    assert body["scorm_data"] == {}


def test_post_and_put_accumulate_time(client: TestClient, enrollment_id: str, auth_headers) -> None:
    resp = client.post(
        "/api/progress",
        json={"enrollment_id": enrollment_id, "progress": 25, "time_spent": 120},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    resp = client.put(
        f"/api/progress/{enrollment_id}", json={"time_spent": 30}, headers=auth_headers
    )
    body = resp.json()
    assert body["time_spent"] == 150
    assert body["progress"] == 25
    assert body["last_accessed_at"] is not None


def test_scorm_data_merged_across_updates(
    client: TestClient, enrollment_id: str, auth_headers
) -> None:
    client.put(
        f"/api/progress/{enrollment_id}",
        json={
            "scorm_data": {
                "score": 40,
                "bookmarks": [{"lesson_id": "l1", "timestamp": 12.5}],
                "interactions": [{"id": "q1", "type": "choice", "result": "correct"}],
                "raw_data": {"cmi.location": "l1"},
            }
        },
        headers=auth_headers,
    )
    resp = client.put(
        f"/api/progress/{enrollment_id}",
        json={
            "scorm_data": {
                "completion_status": "incomplete",
                "bookmarks": [{"lesson_id": "l1", "timestamp": 80}],
                "interactions": [{"id": "q2", "type": "choice", "result": "wrong"}],
                "raw_data": {"cmi.suspend_data": "abc"},
            }
        },
        headers=auth_headers,
    )
    scorm = resp.json()["scorm_data"]
    assert scorm["score"] == 40
    assert scorm["completion_status"] == "incomplete"
    assert scorm["bookmarks"] == [{"lesson_id": "l1", "timestamp": 80}]
    assert [i["id"] for i in scorm["interactions"]] == ["q1", "q2"]
    assert scorm["raw_data"] == {"cmi.location": "l1", "cmi.suspend_data": "abc"}


def test_completion_completes_enrollment(
    client: TestClient, enrollment_id: str, auth_headers
) -> None:
    resp = client.put(
        f"/api/progress/{enrollment_id}",
        json={"progress": 100, "completed": True},
        headers=auth_headers,
    )
    assert resp.json()["completed"] is True
    enrollment = client.get(f"/api/enrollments/{enrollment_id}", headers=auth_headers).json()
    assert enrollment["status"] == "completed"
    assert enrollment["completed_at"] is not None


@pytest.mark.parametrize(
    "body",
    [
        {"progress": 101},
        {"progress": -1},
        {"time_spent": -5},
        {"scorm_data": {"score": 150}},
        {"scorm_data": {"completion_status": "done"}},
    ],
)
def test_invalid_updates_rejected(
    client: TestClient, enrollment_id: str, auth_headers, body: dict
) -> None:
    resp = client.put(f"/api/progress/{enrollment_id}", json=body, headers=auth_headers)
    assert resp.status_code == 400


# ---- player camelCase bodies ----


def test_camel_case_time_spent_accumulates(
    client: TestClient, enrollment_id: str, auth_headers
) -> None:
    client.put(f"/api/progress/{enrollment_id}", json={"timeSpent": 5}, headers=auth_headers)
    resp = client.put(f"/api/progress/{enrollment_id}", json={"timeSpent": 3}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["time_spent"] == 8


def test_camel_case_post_body(client: TestClient, enrollment_id: str, auth_headers) -> None:
    resp = client.post(
        "/api/progress",
        json={"enrollmentId": enrollment_id, "timeSpent": 2, "progress": 10},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["time_spent"] == 2
    assert resp.json()["progress"] == 10


def test_camel_case_scorm_data_stored_snake_case(
    client: TestClient, enrollment_id: str, auth_headers
) -> None:
    client.put(
        f"/api/progress/{enrollment_id}",
        json={"scormData": {"bookmarks": [{"lessonId": "l1", "timestamp": 4}]}},
        headers=auth_headers,
    )
    resp = client.put(
        f"/api/progress/{enrollment_id}",
        json={
            "scormData": {
                "maxScore": 100,
                "minScore": 0,
                "completionStatus": "completed",
                "successStatus": "passed",
                "bookmarks": [{"lessonId": "l1", "timestamp": 9}],
                "rawData": {"cmi.exit": "suspend"},
            }
        },
        headers=auth_headers,
    )
    scorm = resp.json()["scorm_data"]
    assert scorm["bookmarks"] == [{"lesson_id": "l1", "timestamp": 9}]
    assert scorm["max_score"] == 100
    assert scorm["min_score"] == 0
    assert scorm["completion_status"] == "completed"
    assert scorm["success_status"] == "passed"
    assert scorm["raw_data"] == {"cmi.exit": "suspend"}
