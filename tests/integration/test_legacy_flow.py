"""End-to-end tests for the dead man's switch and heir access

The owner configures a switch, stops checking in, the admin sweep walks the
reminder schedule until the switch triggers, and the trusted contacts redeem
the issued codes.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta

import pytest

ADMIN_HEADERS = {"Authorization": "Bearer test-admin-key"}
CODE_PATTERN = re.compile(r"^[A-Z2-9]{4}-[A-Z2-9]{4}-[A-Z2-9]{4}$")


def sweep(client, when: datetime) -> dict:
    response = client.post(
        "/api/admin/switch-sweep", headers=ADMIN_HEADERS, params={"now": when.isoformat()}
    )
    assert response.status_code == 200, response.text
    return response.json()


def add_contact(client, headers, email):
    response = client.post(
        "/api/contacts",
        headers=headers,
        json={"name": email.split("@")[0].title(), "email": email, "relationship": "Friend"},
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def owner(client, signup):
    """Owner with two contacts, one entry, two wills and a 7-day switch."""
    headers = signup(name="Margaret Hamilton")
    contacts = [
        add_contact(client, headers, "lauren@example.com"),
        add_contact(client, headers, "dean@example.com"),
    ]
    client.post(
        "/api/entries",
        headers=headers,
        json={
            "title": "Apollo",
            "content": "We landed.",
            "tags": ["work"],
            "images": ["https://img.example.com/moon.jpg"],
        },
    )
    active = client.post(
        "/api/wills", headers=headers, json={"title": "My Will", "content": "Books to Lauren."}
    ).json()
    inactive = client.post(
        "/api/wills",
        headers=headers,
        json={"title": "Old Draft", "content": "Superseded.", "is_active": False},
    ).json()
    switch = client.put(
        "/api/switch",
        headers=headers,
        json={
            "check_in_interval_days": 7,
            "trusted_contact_ids": [c["id"] for c in contacts],
            "custom_message": "  Be kind to each other.  ",
        },
    ).json()
    return {
        "headers": headers,
        "contacts": contacts,
        "active_will": active,
        "inactive_will": inactive,
        "due": datetime.fromisoformat(switch["next_check_in_due"]),
    }


def trigger(client, owner) -> list[dict]:
    """Run daily sweeps past the grace period; return the issued codes."""
    due = owner["due"]
    for day in range(3):
        report = sweep(client, due + timedelta(days=day, minutes=1))
        assert len(report["notified"]) == 1
        assert report["triggered"] == []

    report = sweep(client, due + timedelta(days=3, minutes=1))
    assert len(report["triggered"]) == 1
    assert report["codes_issued"] == 2

    codes = client.get("/api/legacy-access/codes", headers=owner["headers"]).json()
    assert len(codes) == 2
    return codes


class TestSwitch:
    def test_configure(self, client, owner):
        switch = client.get("/api/switch", headers=owner["headers"]).json()

        assert switch["status"] == "active"
        assert switch["check_in_interval_days"] == 7
        assert switch["custom_message"] == "Be kind to each other."
        assert switch["notifications_sent"] == 0

    def test_no_switch(self, client, signup):
        assert client.get("/api/switch", headers=signup()).status_code == 404

    @pytest.mark.parametrize("days", [6, 366])
    def test_interval_bounds(self, client, signup, days):
        response = client.put(
            "/api/switch", headers=signup(), json={"check_in_interval_days": days}
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Check-in interval must be between 7 and 365 days"

    def test_foreign_contact_rejected(self, client, signup):
        other = signup()
        foreign = add_contact(client, other, "x@example.com")

        response = client.put(
            "/api/switch",
            headers=signup(),
            json={"check_in_interval_days": 30, "trusted_contact_ids": [foreign["id"]]},
        )
        assert response.status_code == 404

    def test_not_due_sweep_does_nothing(self, client, owner):
        report = sweep(client, owner["due"] - timedelta(hours=1))

        assert report == {
            "evaluated": 0,
            "notified": [],
            "triggered": [],
            "failed": [],
            "codes_issued": 0,
        }

    def test_check_in_resets_reminders(self, client, owner):
        sweep(client, owner["due"] + timedelta(minutes=1))
        current = client.get("/api/switch", headers=owner["headers"]).json()
        assert current["notifications_sent"] == 1

        switch = client.post("/api/switch/check-in", headers=owner["headers"]).json()

        assert switch["notifications_sent"] == 0
        assert datetime.fromisoformat(switch["next_check_in_due"]) > owner["due"]

    def test_paused_switch_is_skipped(self, client, owner):
        paused = client.post("/api/switch/pause", headers=owner["headers"]).json()
        assert paused["status"] == "paused"

        report = sweep(client, owner["due"] + timedelta(days=30))
        assert report["evaluated"] == 0

        resumed = client.post("/api/switch/resume", headers=owner["headers"]).json()
        assert resumed["status"] == "active"
        assert datetime.fromisoformat(resumed["next_check_in_due"]) > owner["due"]

    def test_triggered_switch_is_frozen_but_deletable(self, client, owner):
        trigger(client, owner)
        headers = owner["headers"]

        assert client.get("/api/switch", headers=headers).json()["status"] == "triggered"
        assert client.post("/api/switch/check-in", headers=headers).status_code == 409
        assert client.post("/api/switch/pause", headers=headers).status_code == 409
        response = client.put("/api/switch", headers=headers, json={"check_in_interval_days": 30})
        assert response.status_code == 409

        assert client.delete("/api/switch", headers=headers).status_code == 204
        assert client.delete("/api/switch", headers=headers).status_code == 404

    def test_trigger_runs_once(self, client, owner):
        trigger(client, owner)

        report = sweep(client, owner["due"] + timedelta(days=10))
        assert report["evaluated"] == 0

    def test_sweep_requires_admin_key(self, client):
        response = client.post("/api/admin/switch-sweep")
        assert response.status_code == 401

        response = client.post(
            "/api/admin/switch-sweep", headers={"Authorization": "Bearer wrong"}
        )
        assert response.status_code == 403


class TestHeirAccess:
    def test_codes_have_expected_format(self, client, owner):
        codes = trigger(client, owner)

        assert all(CODE_PATTERN.match(c["access_code"]) for c in codes)
        assert {c["contact_id"] for c in codes} == {c["id"] for c in owner["contacts"]}
        assert all(c["is_active"] for c in codes)

    def test_full_heir_flow(self, client, owner):
        code = trigger(client, owner)[0]["access_code"]

        verify = client.post("/api/legacy/verify", json={"code": code.lower()}).json()
        assert verify == {"status": "needs_registration", "owner_name": "Margaret Hamilton"}

        response = client.post("/api/legacy/view", json={"code": code})
        assert response.status_code == 403

        response = client.post(
            "/api/legacy/register",
            json={
                "code": code,
                "name": "Lauren",
                "email": "Lauren@Example.com",
                "relationship": "Daughter",
            },
        )
        assert response.status_code == 201
        assert response.json()["email"] == "lauren@example.com"

        verify = client.post("/api/legacy/verify", json={"code": code}).json()
        assert verify["status"] == "granted"

        bundle = client.post("/api/legacy/view", json={"code": code}).json()
        assert bundle["user"]["name"] == "Margaret Hamilton"
        assert [e["title"] for e in bundle["entries"]] == ["Apollo"]
        assert [w["title"] for w in bundle["wills"]] == ["My Will"]
        assert bundle["photos"] == ["https://img.example.com/moon.jpg"]
        assert bundle["message"] == "Be kind to each other."

    def test_second_registration_conflicts(self, client, owner):
        code = trigger(client, owner)[0]["access_code"]
        payload = {"code": code, "name": "Lauren", "email": "lauren@example.com"}

        assert client.post("/api/legacy/register", json=payload).status_code == 201
        assert client.post("/api/legacy/register", json=payload).status_code == 409

    def test_registration_validates_input(self, client, owner):
        code = trigger(client, owner)[0]["access_code"]

        response = client.post(
            "/api/legacy/register", json={"code": code, "name": "Lauren", "email": "bad"}
        )
        assert response.status_code == 400

    def test_export_and_will_download(self, client, owner):
        code = trigger(client, owner)[1]["access_code"]
        client.post(
            "/api/legacy/register", json={"code": code, "name": "Dean", "email": "d@example.com"}
        )

        export = client.post("/api/legacy/export", json={"code": code}).json()
        assert set(export) == {"user", "message", "entries", "wills", "exportedAt"}
        assert export["entries"][0]["title"] == "Apollo"
        assert export["entries"][0]["tags"] == ["work"]
        assert export["wills"][0]["title"] == "My Will"

        will_id = owner["active_will"]["id"]
        response = client.post(f"/api/legacy/wills/{will_id}/download", json={"code": code})
        assert response.status_code == 200
        assert 'filename="My_Will.txt"' in response.headers["content-disposition"]
        assert "Books to Lauren." in response.text

        inactive_id = owner["inactive_will"]["id"]
        response = client.post(f"/api/legacy/wills/{inactive_id}/download", json={"code": code})
        assert response.status_code == 404

    @pytest.mark.parametrize("code", ["", "nope", "AAAA-BBBB-CCCC"])
    def test_invalid_codes(self, client, code):
        assert client.post("/api/legacy/verify", json={"code": code}).json() == {
            "status": "invalid",
            "owner_name": None,
        }
        assert client.post("/api/legacy/view", json={"code": code}).status_code == 404
        response = client.post(
            "/api/legacy/register", json={"code": code, "name": "X", "email": "x@example.com"}
        )
        assert response.status_code == 404

    def test_revoked_code_stops_working(self, client, owner):
        codes = trigger(client, owner)
        code = codes[0]

        response = client.delete(
            f"/api/legacy-access/codes/{code['id']}", headers=owner["headers"]
        )
        assert response.status_code == 204

        verify = client.post("/api/legacy/verify", json={"code": code["access_code"]}).json()
        assert verify["status"] == "invalid"

    def test_owner_issued_code(self, client, owner):
        contact_id = owner["contacts"][0]["id"]

        response = client.post(
            "/api/legacy-access/codes", headers=owner["headers"], json={"contact_id": contact_id}
        )
        assert response.status_code == 201
        code = response.json()["access_code"]

        verify = client.post("/api/legacy/verify", json={"code": code}).json()
        assert verify["status"] == "needs_registration"

    def test_owner_cannot_issue_for_unknown_contact(self, client, owner):
        response = client.post(
            "/api/legacy-access/codes", headers=owner["headers"], json={"contact_id": "missing"}
        )
        assert response.status_code == 404

    def test_deactivated_owner_still_reachable(self, client, owner):
        code = trigger(client, owner)[0]["access_code"]
        client.post(
            "/api/legacy/register", json={"code": code, "name": "L", "email": "l@example.com"}
        )

        client.post("/api/profile/deactivate", headers=owner["headers"])

        assert client.post("/api/legacy/view", json={"code": code}).status_code == 200
