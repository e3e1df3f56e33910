# backend/tests/routes/test_schedule_routes.py
"""
HTTP tests for /api/v1/schedule and /api/v1/sessions.
"""


class TestScheduleRoutes:
    def test_schedule_window(self, client, make_workshop, make_rule):
        yoga = make_workshop(title="Yoga")
        rule = make_rule(yoga)

        response = client.get("/api/v1/schedule", params={"from": "2025-10-01", "to": "2025-10-07"})

        assert response.status_code == 200
        body = response.json()
        assert (body["from"], body["to"], body["count"]) == ("2025-10-01", "2025-10-07", 2)
        first = body["occurrences"][0]
        assert (first["date"], first["time"], first["studio"]) == ("2025-10-01", "18:00", "Studio A")
        assert first["title"] == "Yoga"
        assert first["source"] == "recurring"
        assert first["rule_id"] == rule.id
        assert body["conflicts"] == []

    def test_inverted_window_is_rejected(self, client):
        response = client.get("/api/v1/schedule", params={"from": "2025-10-07", "to": "2025-10-01"})

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_WINDOW"

    def test_missing_window_is_a_validation_error(self, client):
        response = client.get("/api/v1/schedule", params={"from": "2025-10-07"})

        assert response.status_code == 422
        assert response.json()["code"] == "validation_error"


class TestGridRoutes:
    def test_draft_then_saved_grid(self, client, make_workshop, make_rule):
        yoga = make_workshop()
        make_rule(yoga)

        draft = client.get("/api/v1/schedule/grid").json()
        assert draft["persisted"] is False
        assert draft["grid"]["Monday"] == {"18:00": {"Studio A": yoga.id}}

        saved = client.put(
            "/api/v1/schedule/grid", json={"grid": {"tue": {"7:00": {"Dome": yoga.slug}}}}
        )
        assert saved.status_code == 200
        assert saved.json()["grid"] == {"Tuesday": {"07:00": {"Dome": yoga.slug}}}

        assert client.get("/api/v1/schedule/grid").json()["persisted"] is True

    def test_unknown_workshop_in_grid(self, client):
        response = client.put(
            "/api/v1/schedule/grid", json={"grid": {"Monday": {"09:00": {"Dome": "ghost"}}}}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "UNKNOWN_WORKSHOP"

    def test_patch_single_cell(self, client, make_workshop):
        yoga = make_workshop()

        response = client.patch(
            "/api/v1/schedule/grid/cell",
            json={"day": "Friday", "slot": "08:00", "studio": "Studio B", "workshop_id": yoga.id},
        )

        assert response.status_code == 200
        assert response.json()["grid"] == {"Friday": {"08:00": {"Studio B": yoga.id}}}


class TestSessionRoutes:
    def test_materialize_is_idempotent(self, client, make_workshop, make_rule):
        make_rule(make_workshop())
        window = {"from": "2025-10-01", "to": "2025-10-07"}

        first = client.post("/api/v1/sessions/materialize", json=window)
        second = client.post("/api/v1/sessions/materialize", json=window)

        assert first.status_code == 200
        assert (first.json()["created"], first.json()["updated"]) == (2, 0)
        assert (second.json()["created"], second.json()["updated"]) == (0, 2)
        assert second.json()["upserts"] == 2

        listing = client.get("/api/v1/sessions", params=window).json()
        assert listing["count"] == 2
        assert listing["sessions"][0]["remaining"] == 12
        assert listing["sessions"][0]["local_date"] == "2025-10-01"

    def test_session_availability(self, client, make_workshop, make_session):
        session = make_session(make_workshop(), capacity=5, booked_count=5)

        response = client.get(f"/api/v1/sessions/{session.id}/availability")

        assert response.status_code == 200
        assert response.json() == {
            "session_id": session.id,
            "capacity": 5,
            "booked": 5,
            "remaining": 0,
            "status": "full",
        }

    def test_unknown_session(self, client):
        response = client.get(f"/api/v1/sessions/01H{'Z' * 23}/availability")

        assert response.status_code == 404
        assert response.json()["code"] == "SESSION_NOT_FOUND"

    def test_bad_status_filter(self, client):
        response = client.get("/api/v1/sessions", params={"status": "asleep"})

        assert response.status_code == 400

    def test_patch_session_capacity(self, client, make_workshop, make_session):
        session = make_session(make_workshop(), capacity=5, booked_count=5, status="full")

        response = client.patch(f"/api/v1/sessions/{session.id}", json={"capacity": 8})

        assert response.status_code == 200
        body = response.json()
        assert (body["capacity"], body["booked_count"], body["status"]) == (8, 5, "scheduled")

    def test_patch_capacity_below_booked_seats(self, client, make_workshop, make_session):
        session = make_session(make_workshop(), capacity=5, booked_count=3)

        response = client.patch(f"/api/v1/sessions/{session.id}", json={"capacity": 2})

        assert response.status_code == 409
        assert response.json()["code"] == "CAPACITY_BELOW_BOOKED"

    def test_patch_cancels_session(self, client, make_workshop, make_session):
        session = make_session(make_workshop(), capacity=5)

        response = client.patch(f"/api/v1/sessions/{session.id}", json={"status": "cancelled"})

        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        again = client.patch(f"/api/v1/sessions/{session.id}", json={"capacity": 6})
        assert again.status_code == 422
        assert again.json()["code"] == "SESSION_CANCELLED"

    def test_patch_rejects_booked_count(self, client, make_workshop, make_session):
        session = make_session(make_workshop(), capacity=5)

        response = client.patch(f"/api/v1/sessions/{session.id}", json={"booked_count": 0})

        assert response.status_code == 422
        assert response.json()["code"] == "validation_error"

    def test_patch_unknown_session(self, client):
        response = client.patch(f"/api/v1/sessions/01H{'Z' * 23}", json={"capacity": 3})

        assert response.status_code == 404
        assert response.json()["code"] == "SESSION_NOT_FOUND"
