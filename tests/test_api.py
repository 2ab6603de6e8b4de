from datetime import time

import httpx
import pytest

from app import config
from app.core import TimeGrid
from app.deps import get_grid
from app.main import app
from app.routers import bookings_routes

ANCHORED = TimeGrid(day_start=time(7, 45), day_end=time(20, 45), interval_minutes=75)


def signup_and_login(client, email, role, full_name="Test User", **extra):
    payload = {"email": email, "password": "secret123", "full_name": full_name, "role": role, **extra}
    res = client.post("/auth/signup", json=payload)
    assert res.status_code == 201, res.text
    profile = res.json()

    res = client.post("/auth/login", data={"username": email, "password": "secret123"})
    assert res.status_code == 200, res.text
    headers = {"Authorization": f"Bearer {res.json()['access_token']}"}
    return profile, headers


@pytest.fixture
def anchored_grid():
    app.dependency_overrides[get_grid] = lambda: ANCHORED
    yield ANCHORED
    app.dependency_overrides.pop(get_grid, None)


@pytest.fixture
def notified(monkeypatch):
    calls = []

    async def record(booking_id):
        calls.append(booking_id)

    monkeypatch.setattr(bookings_routes, "notify_booking_created", record)
    return calls


@pytest.fixture
def professor(client):
    return signup_and_login(client, "prof@uni.test", "professor", full_name="Prof P", department="CS")


@pytest.fixture
def student(client):
    return signup_and_login(client, "student@uni.test", "student", full_name="Student S")


def add_slot(client, headers, weekday=2, start="09:00", end="10:15", type="consultation", visible=True):
    return client.post(
        "/professors/me/schedule",
        json={
            "weekday": weekday, "start_time": start, "end_time": end,
            "type": type, "visible_to_students": visible,
        },
        headers=headers,
    )


def request_booking(client, headers, professor_id, on_date, start="09:00", end="10:15"):
    return client.post(
        "/bookings",
        json={
            "professor_id": professor_id, "date": on_date.isoformat(),
            "start_time": start, "end_time": end, "mode": "onsite", "topic": "Project feedback",
        },
        headers=headers,
    )


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_grid_endpoint(client):
    body = client.get("/grid").json()
    assert body["boundaries"][0] == "07:00:00"
    assert body["boundaries"][-1] == "20:45:00"
    assert len(body["slots"]) == 11
    assert body["slots"][0]["label"] == "7:00 AM - 8:15 AM"


def test_signup_login_me(client, student):
    profile, headers = student
    assert profile["role"] == "student"
    assert "password_hash" not in profile

    me = client.get("/me", headers=headers).json()
    assert me["id"] == profile["id"]

    res = client.patch("/me", json={"program": "BSc Informatics"}, headers=headers)
    assert res.status_code == 200
    assert res.json()["program"] == "BSc Informatics"


def test_duplicate_signup(client, student):
    res = client.post(
        "/auth/signup",
        json={"email": "student@uni.test", "password": "secret123", "full_name": "Again", "role": "student"},
    )
    assert res.status_code == 409


def test_bad_login_and_missing_token(client, student):
    res = client.post("/auth/login", data={"username": "student@uni.test", "password": "nope"})
    assert res.status_code == 401
    assert client.get("/me").status_code == 401
    assert client.get("/me", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_scenario_a_booking_created_pending(client, professor, student, anchored_grid, notified, next_weekday):
    prof, prof_headers = professor
    _, student_headers = student

    assert add_slot(client, prof_headers).status_code == 201

    res = request_booking(client, student_headers, prof["id"], next_weekday(2))
    assert res.status_code == 201, res.text
    booking = res.json()
    assert booking["status"] == "pending"
    assert booking["start_time"] == "09:00:00"
    assert notified == [booking["id"]]


def test_scenario_b_class_slot_unavailable(client, professor, student, anchored_grid, notified, next_weekday):
    prof, prof_headers = professor
    _, student_headers = student

    add_slot(client, prof_headers, type="class")
    res = request_booking(client, student_headers, prof["id"], next_weekday(2))
    assert res.status_code == 409
    assert notified == []


def test_scenario_c_confirm_then_cancel(client, professor, student, anchored_grid, notified, next_weekday):
    prof, prof_headers = professor
    _, student_headers = student
    add_slot(client, prof_headers)
    booking_id = request_booking(client, student_headers, prof["id"], next_weekday(2)).json()["id"]

    res = client.patch(f"/bookings/{booking_id}/confirm", json={"notes": "bring laptop"}, headers=prof_headers)
    assert res.status_code == 200
    assert res.json()["status"] == "confirmed"
    assert res.json()["professor_notes"] == "bring laptop"

    confirmed = client.get("/professors/me/bookings", headers=prof_headers).json()
    assert [b["id"] for b in confirmed] == [booking_id]
    assert confirmed[0]["student"]["full_name"] == "Student S"

    res = client.patch(f"/bookings/{booking_id}/cancel", headers=student_headers)
    assert res.status_code == 200
    assert res.json()["status"] == "cancelled"

    res = client.patch(f"/bookings/{booking_id}/cancel", headers=student_headers)
    assert res.status_code == 409


def test_scenario_d_duplicate_block(client, professor, anchored_grid):
    _, headers = professor
    assert add_slot(client, headers).status_code == 201
    res = add_slot(client, headers, type="class")
    assert res.status_code == 409
    assert "delete" in res.json()["detail"]


def test_scenario_e_other_student_cannot_cancel(client, professor, student, anchored_grid, notified, next_weekday):
    prof, prof_headers = professor
    _, student_headers = student
    _, intruder_headers = signup_and_login(client, "other@uni.test", "student")
    add_slot(client, prof_headers)
    booking_id = request_booking(client, student_headers, prof["id"], next_weekday(2)).json()["id"]

    res = client.patch(f"/bookings/{booking_id}/cancel", headers=intruder_headers)
    assert res.status_code == 403

    mine = client.get("/students/me/bookings", headers=student_headers).json()
    assert mine[0]["status"] == "pending"
    assert mine[0]["professor"]["full_name"] == "Prof P"


def test_decline_without_body(client, professor, student, anchored_grid, notified, next_weekday):
    prof, prof_headers = professor
    _, student_headers = student
    add_slot(client, prof_headers)
    booking_id = request_booking(client, student_headers, prof["id"], next_weekday(2)).json()["id"]

    res = client.patch(f"/bookings/{booking_id}/decline", headers=prof_headers)
    assert res.status_code == 200
    assert res.json()["status"] == "declined"

    requests = client.get("/professors/me/requests?status=declined", headers=prof_headers).json()
    assert [r["id"] for r in requests] == [booking_id]


def test_roles_are_enforced(client, professor, student, anchored_grid, notified, next_weekday):
    prof, prof_headers = professor
    _, student_headers = student

    assert add_slot(client, student_headers).status_code == 403
    add_slot(client, prof_headers)

    # professors cannot request bookings, students cannot decide them
    assert request_booking(client, prof_headers, prof["id"], next_weekday(2)).status_code == 403
    booking_id = request_booking(client, student_headers, prof["id"], next_weekday(2)).json()["id"]
    assert client.patch(f"/bookings/{booking_id}/confirm", headers=student_headers).status_code == 403


def test_invalid_block_input(client, professor):
    _, headers = professor
    assert add_slot(client, headers, weekday=6, start="09:30", end="10:45").status_code == 422
    assert add_slot(client, headers, start="09:00", end="10:15").status_code == 422  # default grid
    assert add_slot(client, headers, start="09:30", end="12:00").status_code == 422


def test_block_update_and_delete(client, professor):
    _, headers = professor
    block = add_slot(client, headers, start="09:30", end="10:45").json()

    res = client.patch(f"/professors/me/schedule/{block['id']}", json={"note": "Room 12"}, headers=headers)
    assert res.status_code == 200
    assert res.json()["note"] == "Room 12"

    assert client.delete(f"/professors/me/schedule/{block['id']}", headers=headers).status_code == 204
    assert client.delete(f"/professors/me/schedule/{block['id']}", headers=headers).status_code == 404
    assert client.get("/professors/me/schedule", headers=headers).json() == []


def test_student_and_editor_views(client, professor, student):
    prof, prof_headers = professor
    _, student_headers = student
    add_slot(client, prof_headers, weekday=1, start="07:00", end="08:15", type="class")
    add_slot(client, prof_headers, weekday=1, start="08:15", end="09:30", type="consultation", visible=False)
    add_slot(client, prof_headers, weekday=3, start="09:30", end="10:45", type="consultation")

    public = client.get(f"/professors/{prof['id']}/schedule", headers=student_headers).json()
    assert [(b["weekday"], b["type"]) for b in public] == [(1, "class"), (3, "consultation")]

    cells = client.get(f"/professors/{prof['id']}/availability", headers=student_headers).json()
    states = {(c["weekday"], c["start_time"]): c["state"] for c in cells}
    assert states[(1, "07:00:00")] == "occupied:class"
    assert states[(1, "08:15:00")] == "unset"
    assert states[(3, "09:30:00")] == "bookable:consultation"

    editor = client.get("/professors/me/schedule/grid", headers=prof_headers).json()
    editor_states = {(c["weekday"], c["start_time"]): c["state"] for c in editor}
    assert editor_states[(1, "08:15:00")] == "bookable:consultation"

    # the editor still shows which slots students can actually book
    editor_bookable = {(c["weekday"], c["start_time"]): c["bookable_by_students"] for c in editor}
    assert editor_bookable[(1, "08:15:00")] is False
    assert editor_bookable[(3, "09:30:00")] is True
    assert editor_bookable[(1, "07:00:00")] is False


def test_professor_directory(client, professor, student):
    prof, prof_headers = professor
    _, student_headers = student

    res = client.patch("/professors/me", json={"office_location": "B-101", "bio": "Databases"}, headers=prof_headers)
    assert res.status_code == 200

    listing = client.get("/professors?search=prof", headers=student_headers).json()
    assert [p["id"] for p in listing] == [prof["id"]]
    assert listing[0]["office_location"] == "B-101"

    detail = client.get(f"/professors/{prof['id']}", headers=student_headers).json()
    assert detail["profile"]["email"] == "prof@uni.test"

    assert client.get("/professors/9999", headers=student_headers).status_code == 404
    assert client.get("/professors/9999/availability", headers=student_headers).status_code == 404


def test_notification_failure_does_not_fail_booking(
    client, professor, student, anchored_grid, monkeypatch, next_weekday
):
    prof, prof_headers = professor
    _, student_headers = student
    monkeypatch.setattr(config, "NOTIFY_FUNCTION_URL", "https://functions.test/send-booking-notification")

    async def unreachable(self, url, json=None, headers=None):
        raise httpx.ConnectTimeout("timed out", request=httpx.Request("POST", url))

    monkeypatch.setattr(httpx.AsyncClient, "post", unreachable)

    add_slot(client, prof_headers)
    res = request_booking(client, student_headers, prof["id"], next_weekday(2))
    assert res.status_code == 201
    assert client.get("/students/me/bookings", headers=student_headers).json()[0]["status"] == "pending"


def test_professor_edit_visible_from_me(client, professor):
    prof, headers = professor

    res = client.patch("/professors/me", json={"department": "Math", "teams_email": "p@teams.test"}, headers=headers)
    assert res.status_code == 200, res.text
    assert res.json()["department"] == res.json()["profile"]["department"] == "Math"

    me = client.get("/me", headers=headers).json()
    assert me["department"] == "Math"
    assert me["teams_email"] == "p@teams.test"

    mine = client.get("/professors/me", headers=headers)
    assert mine.status_code == 200
    assert mine.json()["id"] == prof["id"]
    assert mine.json()["department"] == "Math"


def test_professor_me_requires_professor(client, student):
    _, headers = student
    assert client.get("/professors/me", headers=headers).status_code == 403
