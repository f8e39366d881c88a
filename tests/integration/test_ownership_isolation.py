"""One user must never see or change another user's records.

Every owner-scoped endpoint answers 404 for foreign ids, the same as for ids
that do not exist.
"""

from __future__ import annotations

import pytest


@pytest.fixture
def records(client, signup):
    alice = signup(name="Alice")
    entry = client.post(
        "/api/entries", headers=alice, json={"title": "Private", "content": "Secret"}
    ).json()
    contact = client.post(
        "/api/contacts",
        headers=alice,
        json={"name": "Sam", "email": "sam@example.com", "relationship": "Friend"},
    ).json()
    will = client.post("/api/wills", headers=alice, json={"title": "W", "content": "C"}).json()
    session = client.post("/api/chat/sessions", headers=alice, json={}).json()
    code = client.post("/api/legacy-access/codes", headers=alice, json={}).json()
    return {
        "alice": alice,
        "entry": entry["id"],
        "contact": contact["id"],
        "will": will["id"],
        "session": session["id"],
        "code": code["id"],
    }


@pytest.fixture
def mallory(signup):
    return signup(name="Mallory")


def test_lists_are_scoped(client, records, mallory):
    assert client.get("/api/entries", headers=mallory).json() == {"entries": [], "total": 0}
    assert client.get("/api/contacts", headers=mallory).json() == []
    assert client.get("/api/wills", headers=mallory).json() == []
    assert client.get("/api/chat/sessions", headers=mallory).json() == []
    assert client.get("/api/legacy-access/codes", headers=mallory).json() == []


@pytest.mark.parametrize(
    ("method", "path", "body"),
    [
        ("GET", "/api/entries/{entry}", None),
        ("PUT", "/api/entries/{entry}", {"title": "Mine now"}),
        ("DELETE", "/api/entries/{entry}", None),
        ("GET", "/api/contacts/{contact}", None),
        ("PUT", "/api/contacts/{contact}", {"name": "Mine now"}),
        ("DELETE", "/api/contacts/{contact}", None),
        ("GET", "/api/wills/{will}", None),
        ("PUT", "/api/wills/{will}", {"title": "Mine now"}),
        ("DELETE", "/api/wills/{will}", None),
        ("GET", "/api/wills/{will}/download", None),
        (
            "POST",
            "/api/wills/{will}/attachments",
            {"name": "a.pdf", "url": "https://x.example.com", "type": "application/pdf", "size": 1},
        ),
        ("GET", "/api/chat/sessions/{session}", None),
        ("DELETE", "/api/chat/sessions/{session}", None),
        ("POST", "/api/chat/sessions/{session}/messages", {"text": "hello"}),
        ("DELETE", "/api/legacy-access/codes/{code}", None),
    ],
)
def test_foreign_ids_are_not_found(client, records, mallory, method, path, body):
    url = path.format(**records)

    response = client.request(method, url, headers=mallory, json=body)

    assert response.status_code == 404


def test_records_survive_foreign_attempts(client, records, mallory):
    client.delete(f"/api/entries/{records['entry']}", headers=mallory)
    client.delete(f"/api/contacts/{records['contact']}", headers=mallory)
    client.put(f"/api/wills/{records['will']}", headers=mallory, json={"title": "Mine"})
    client.delete(f"/api/chat/sessions/{records['session']}", headers=mallory)
    client.delete(f"/api/legacy-access/codes/{records['code']}", headers=mallory)

    alice = records["alice"]
    assert client.get(f"/api/entries/{records['entry']}", headers=alice).status_code == 200
    assert client.get(f"/api/contacts/{records['contact']}", headers=alice).status_code == 200
    assert client.get(f"/api/wills/{records['will']}", headers=alice).json()["title"] == "W"
    assert client.get(f"/api/chat/sessions/{records['session']}", headers=alice).status_code == 200
    codes = client.get("/api/legacy-access/codes", headers=alice).json()
    assert codes[0]["is_active"] is True


def test_switch_cannot_use_foreign_contacts(client, records, mallory):
    response = client.put(
        "/api/switch",
        headers=mallory,
        json={"check_in_interval_days": 30, "trusted_contact_ids": [records["contact"]]},
    )

    assert response.status_code == 404


def test_owner_cannot_issue_code_for_foreign_contact(client, records, mallory):
    response = client.post(
        "/api/legacy-access/codes", headers=mallory, json={"contact_id": records["contact"]}
    )

    assert response.status_code == 404
