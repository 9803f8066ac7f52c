"""
HTTP tests for the v1 API, run against the in-memory backend.
"""
from fastapi.testclient import TestClient

from conftest import (
    PARTICIPANT_TOKEN,
    STUDENT_ID,
    STUDENT_TOKEN,
    TEACHER_ID,
    TEACHER_TOKEN,
    bearer,
    make_event,
)


NEW_EVENT = {
    "title": "Robotics Workshop",
    "description": "Build a line follower",
    "date": "2025-12-01",
    "time": "14:30",
    "location": "Lab 2",
    "category": "Workshop",
    "max_registrations": 20,
}


class TestEvents:
    def test_anonymous_listing(self, client: TestClient, backend):
        backend.tables["events"].append(make_event(title="Science Fair"))

        response = client.get("/api/v1/events/")

        assert response.status_code == 200
        body = response.json()
        assert body["found"] == 1
        assert body["counts"] == {"total": 1, "upcoming": 1, "ongoing": 0, "completed": 0}
        card = body["events"][0]
        assert card["title"] == "Science Fair"
        assert card["action"] == {"label": "Register", "disabled": True, "registration_percentage": 0.0}
        assert body["can_manage_events"] is False

    def test_filters_narrow_the_list_but_not_the_counts(self, client: TestClient, backend):
        backend.tables["events"].extend(
            [
                make_event(title="Science Fair", category="Academic"),
                make_event(title="Football Match", category="Sports", status="ongoing"),
            ]
        )

        response = client.get("/api/v1/events/", params={"category": "Sports", "status": "ongoing"})

        body = response.json()
        assert [e["title"] for e in body["events"]] == ["Football Match"]
        assert body["counts"]["total"] == 2

        response = client.get("/api/v1/events/", params={"search": "FAIR"})
        assert [e["title"] for e in response.json()["events"]] == ["Science Fair"]

    def test_register_then_duplicate(self, client: TestClient, backend):
        event = make_event()
        backend.tables["events"].append(event)
        url = f"/api/v1/events/{event['id']}/registration"

        response = client.post(url, headers=bearer(STUDENT_TOKEN))
        assert response.status_code == 201
        body = response.json()
        assert body["notification"]["description"] == "Successfully registered for event!"
        assert body["events"][0]["is_registered"] is True
        assert body["events"][0]["registrations"] == 1

        response = client.post(url, headers=bearer(STUDENT_TOKEN))
        assert response.status_code == 409
        assert response.json()["detail"]["description"] == "You are already registered for this event"

    def test_unregister(self, client: TestClient, backend):
        event = make_event()
        backend.tables["events"].append(event)
        backend.tables["event_registrations"].append({"event_id": event["id"], "user_id": STUDENT_ID})

        response = client.delete(f"/api/v1/events/{event['id']}/registration", headers=bearer(STUDENT_TOKEN))

        assert response.status_code == 200
        assert response.json()["events"][0]["is_registered"] is False
        assert backend.tables["event_registrations"] == []

    def test_registration_requires_authentication(self, client: TestClient, backend):
        event = make_event()
        backend.tables["events"].append(event)

        assert client.post(f"/api/v1/events/{event['id']}/registration").status_code == 401
        response = client.post(f"/api/v1/events/{event['id']}/registration", headers=bearer("bogus"))
        assert response.status_code == 401

    def test_viewer_token_is_forwarded_to_backend(self, client: TestClient, backend):
        client.get("/api/v1/events/", headers=bearer(STUDENT_TOKEN))
        assert STUDENT_TOKEN in backend.tokens

    def test_toggle(self, client: TestClient, backend):
        open_event = make_event()
        full_event = make_event(max_registrations=1)
        backend.tables["events"].extend([open_event, full_event])
        backend.tables["event_registrations"].append({"event_id": full_event["id"], "user_id": TEACHER_ID})

        response = client.post(f"/api/v1/events/{open_event['id']}/toggle", headers=bearer(STUDENT_TOKEN))
        assert response.status_code == 200
        assert response.json()["notification"]["description"] == "Successfully registered for event!"

        response = client.post(f"/api/v1/events/{full_event['id']}/toggle", headers=bearer(STUDENT_TOKEN))
        assert response.status_code == 409

        response = client.post("/api/v1/events/unknown/toggle", headers=bearer(STUDENT_TOKEN))
        assert response.status_code == 404

    def test_create_event(self, client: TestClient, backend):
        response = client.post("/api/v1/events/", json=NEW_EVENT, headers=bearer(TEACHER_TOKEN))

        assert response.status_code == 201
        assert response.json()["notification"]["description"] == "Event created successfully!"
        assert backend.tables["events"][0]["created_by"] == TEACHER_ID
        assert response.json()["events"][0]["title"] == "Robotics Workshop"

    def test_participants_cannot_create_events(self, client: TestClient, backend):
        response = client.post("/api/v1/events/", json=NEW_EVENT, headers=bearer(PARTICIPANT_TOKEN))
        assert response.status_code == 403
        assert backend.tables["events"] == []

    def test_unknown_category_is_rejected(self, client: TestClient):
        payload = dict(NEW_EVENT, category="Gaming")
        response = client.post("/api/v1/events/", json=payload, headers=bearer(TEACHER_TOKEN))
        assert response.status_code == 422

    def test_failed_refresh_returns_previous_events(self, client: TestClient, backend):
        backend.tables["events"].append(make_event(title="Science Fair"))
        client.get("/api/v1/events/", headers=bearer(STUDENT_TOKEN))

        backend.fail("select", "events")
        response = client.get("/api/v1/events/", headers=bearer(STUDENT_TOKEN))

        body = response.json()
        assert response.status_code == 200
        assert [e["title"] for e in body["events"]] == ["Science Fair"]
        assert body["notifications"][0]["description"] == "Failed to load events"

    def test_categories(self, client: TestClient):
        body = client.get("/api/v1/events/categories").json()
        assert body["categories"][0] == "All"
        assert "Workshop" in body["categories"]
        assert body["statuses"] == ["All", "upcoming", "ongoing", "completed"]


class TestDashboardAndCalendar:
    def test_dashboard(self, client: TestClient, backend):
        event = make_event(max_registrations=4)
        backend.tables["events"].extend([event, make_event(status="completed", max_registrations=6)])
        backend.tables["event_registrations"].append({"event_id": event["id"], "user_id": STUDENT_ID})

        body = client.get("/api/v1/dashboard/", headers=bearer(STUDENT_TOKEN)).json()

        assert body["stats"] == {
            "total_events": 2,
            "total_registrations": 1,
            "upcoming_count": 1,
            "participation_rate": 10,
        }
        assert len(body["upcoming_events"]) == 1
        assert body["upcoming_events"][0]["action"]["label"] == "Unregister"
        assert body["can_manage_events"] is True

    def test_calendar(self, client: TestClient, backend):
        backend.tables["events"].append(make_event(date="2025-11-14"))

        body = client.get("/api/v1/calendar/", params={"year": 2025, "month": 11}).json()

        assert body["title"] == "November 2025"
        assert body["days"][13]["has_event"] is True

    def test_calendar_reports_failed_fetch(self, client: TestClient, backend):
        backend.tables["events"].append(make_event(date="2025-11-14"))
        backend.fail("select", "events")

        response = client.get("/api/v1/calendar/", params={"year": 2025, "month": 11})

        assert response.status_code == 200
        body = response.json()
        assert body["days"][13]["has_event"] is False
        assert body["notifications"] == [
            {"title": "Error", "description": "Failed to load events", "variant": "destructive"}
        ]

    def test_calendar_without_errors_has_no_notifications(self, client: TestClient, backend):
        body = client.get("/api/v1/calendar/", params={"year": 2025, "month": 11}).json()
        assert body["notifications"] == []

    def test_calendar_rejects_bad_month(self, client: TestClient):
        assert client.get("/api/v1/calendar/", params={"year": 2025, "month": 13}).status_code == 422


class TestProfile:
    def test_profile_lists_registered_events(self, client: TestClient, backend):
        event = make_event(title="Science Fair")
        backend.tables["events"].append(event)
        backend.tables["event_registrations"].extend(
            [
                {"event_id": event["id"], "user_id": STUDENT_ID, "registered_at": "2025-10-02T09:00:00+00:00"},
                {"event_id": event["id"], "user_id": TEACHER_ID, "registered_at": "2025-10-03T09:00:00+00:00"},
            ]
        )

        body = client.get("/api/v1/profile/", headers=bearer(STUDENT_TOKEN)).json()

        assert body["profile"]["first_name"] == "Ada"
        assert body["profile"]["role"] == "student"
        [mine] = body["events"]
        assert mine["title"] == "Science Fair"
        assert mine["registrations"] == 2
        assert mine["is_registered"] is True
        assert mine["registered_at"].startswith("2025-10-02")

    def test_profile_requires_authentication(self, client: TestClient):
        assert client.get("/api/v1/profile/").status_code == 401


class TestAnnouncements:
    def test_post_list_and_delete(self, client: TestClient, backend):
        response = client.post(
            "/api/v1/announcements/",
            json={"title": "Library closed", "content": "Closed on Friday for inventory."},
            headers=bearer(TEACHER_TOKEN),
        )
        assert response.status_code == 201
        body = response.json()
        assert body["notification"]["title"] == "Announcement created"
        [announcement] = body["announcements"]
        assert announcement["creator_name"] == "Alan Turing"

        listing = client.get("/api/v1/announcements/").json()
        assert [a["title"] for a in listing["announcements"]] == ["Library closed"]
        assert listing["can_post"] is False

        response = client.delete(f"/api/v1/announcements/{announcement['id']}", headers=bearer(TEACHER_TOKEN))
        assert response.status_code == 200
        assert response.json()["notification"]["title"] == "Announcement deleted"
        assert response.json()["announcements"] == []

    def test_missing_fields(self, client: TestClient, backend):
        response = client.post(
            "/api/v1/announcements/", json={"title": "Only a title"}, headers=bearer(TEACHER_TOKEN)
        )
        assert response.status_code == 400
        assert response.json()["detail"]["title"] == "Missing fields"
        assert backend.tables["announcements"] == []

    def test_newest_first_and_unknown_author(self, client: TestClient, backend):
        backend.tables["announcements"].extend(
            [
                {"id": "a1", "title": "Old", "content": "...", "created_by": "gone", "created_at": "2025-01-01T00:00:00+00:00"},
                {"id": "a2", "title": "New", "content": "...", "created_by": TEACHER_ID, "created_at": "2025-02-01T00:00:00+00:00"},
            ]
        )

        body = client.get("/api/v1/announcements/", headers=bearer(TEACHER_TOKEN)).json()

        assert [a["title"] for a in body["announcements"]] == ["New", "Old"]
        assert body["announcements"][1]["creator_name"] == "Unknown"
        assert body["can_post"] is True

    def test_only_author_can_delete(self, client: TestClient, backend):
        backend.tables["announcements"].append(
            {"id": "a1", "title": "Mine", "content": "...", "created_by": TEACHER_ID, "created_at": "2025-01-01T00:00:00+00:00"}
        )
        response = client.delete("/api/v1/announcements/a1", headers=bearer(STUDENT_TOKEN))

        assert response.status_code == 400
        assert response.json()["detail"]["title"] == "Error deleting announcement"
        assert response.json()["detail"]["variant"] == "destructive"
        assert len(backend.tables["announcements"]) == 1

    def test_fetch_failure(self, client: TestClient, backend):
        backend.fail("select", "announcements", "relation does not exist")
        body = client.get("/api/v1/announcements/").json()
        assert body["announcements"] == []
        assert body["notifications"][0]["title"] == "Error fetching announcements"


class TestAuth:
    def test_sign_up_student(self, client: TestClient, auth):
        payload = {
            "email": "new@school.edu",
            "password": "secret123",
            "confirm_password": "secret123",
            "first_name": "New",
            "last_name": "Student",
            "role": "student",
            "student_id": "S-42",
            "grade": "10",
            "section": "B",
        }
        response = client.post("/api/v1/auth/signup", json=payload)

        assert response.status_code == 201
        assert response.json()["session"] is None
        assert auth.signups[0]["metadata"]["student_id"] == "S-42"
        assert auth.signups[0]["metadata"]["role"] == "student"

    def test_participant_metadata_drops_class_details(self, client: TestClient, auth):
        payload = {
            "email": "guest@example.com",
            "password": "secret123",
            "confirm_password": "secret123",
            "first_name": "Guest",
            "last_name": "Parent",
            "role": "participant",
            "student_id": "S-1",
        }
        client.post("/api/v1/auth/signup", json=payload)
        assert "student_id" not in auth.signups[0]["metadata"]

    def test_sign_up_password_mismatch(self, client: TestClient, auth):
        payload = {
            "email": "new@school.edu",
            "password": "secret123",
            "confirm_password": "secret321",
            "first_name": "New",
            "last_name": "Student",
        }
        response = client.post("/api/v1/auth/signup", json=payload)

        assert response.status_code == 400
        assert response.json()["detail"]["description"] == "Passwords do not match"
        assert auth.signups == []

    def test_teachers_cannot_sign_up(self, client: TestClient):
        payload = {
            "email": "t@school.edu",
            "password": "secret123",
            "confirm_password": "secret123",
            "first_name": "T",
            "last_name": "T",
            "role": "teacher",
        }
        assert client.post("/api/v1/auth/signup", json=payload).status_code == 422

    def test_sign_in_session_and_sign_out(self, client: TestClient, app):
        response = client.post("/api/v1/auth/signin", json={"email": "ada@school.edu", "password": "secret123"})
        assert response.status_code == 200
        token = response.json()["session"]["access_token"]

        session = client.get("/api/v1/auth/session", headers=bearer(token)).json()
        assert session["user"]["id"] == STUDENT_ID
        assert session["profile"]["role"] == "student"

        client.get("/api/v1/events/", headers=bearer(token))
        assert len(app.state.feeds) == 1

        response = client.post("/api/v1/auth/signout", headers=bearer(token))
        assert response.status_code == 200
        assert len(app.state.feeds) == 0
        assert client.get("/api/v1/auth/session", headers=bearer(token)).status_code == 401

    def test_sign_in_with_wrong_password(self, client: TestClient):
        response = client.post("/api/v1/auth/signin", json={"email": "ada@school.edu", "password": "nope"})
        assert response.status_code == 401
        assert response.json()["detail"]["description"] == "Invalid login credentials"
