"""Integration tests for the wisdom assistant chat"""

from __future__ import annotations

from legacy_diary.chat.responder import GREETING_RESPONSE, REPEAT_RESPONSE, WELCOME_MESSAGE


def new_session(client, headers, title=None):
    response = client.post("/api/chat/sessions", headers=headers, json={"title": title})
    assert response.status_code == 201, response.text
    return response.json()


def say(client, headers, session_id, text):
    response = client.post(
        f"/api/chat/sessions/{session_id}/messages", headers=headers, json={"text": text}
    )
    assert response.status_code == 200, response.text
    return response.json()


def test_session_opens_with_welcome(client, signup):
    session = new_session(client, signup())

    assert session["title"] == "Reflection"
    assert len(session["messages"]) == 1
    assert session["messages"][0]["sender"] == "bot"
    assert session["messages"][0]["text"] == WELCOME_MESSAGE
    assert session["messages"][0]["rule"] == "welcome"


def test_conversation_is_stored_in_order(client, signup):
    headers = signup()
    session = new_session(client, headers, title="  Evening thoughts ")

    exchange = say(client, headers, session["id"], "Hello there")
    assert exchange["rule"] == "greeting"
    assert exchange["bot_message"]["text"] == GREETING_RESPONSE

    stored = client.get(f"/api/chat/sessions/{session['id']}", headers=headers).json()
    assert stored["title"] == "Evening thoughts"
    assert [m["sender"] for m in stored["messages"]] == ["bot", "user", "bot"]
    assert stored["messages"][1]["text"] == "Hello there"


def test_repeat_detected_across_messages(client, signup):
    headers = signup()
    session = new_session(client, headers)

    say(client, headers, session["id"], "tell me something")
    exchange = say(client, headers, session["id"], "Tell me   something")

    assert exchange["rule"] == "repeat"
    assert exchange["bot_message"]["text"] == REPEAT_RESPONSE


def test_memory_reply_uses_own_entries(client, signup):
    headers = signup()
    entry = client.post(
        "/api/entries",
        headers=headers,
        json={"title": "Grandma's garden", "content": "Tomatoes everywhere.", "tags": ["garden"]},
    ).json()
    session = new_session(client, headers)

    exchange = say(client, headers, session["id"], "tomatoes")

    assert exchange["rule"] == "memory"
    assert exchange["referenced_entry_id"] == entry["id"]
    assert exchange["context_entry_ids"] == [entry["id"]]
    assert "Grandma's garden" in exchange["bot_message"]["text"]


def test_sessions_listed_most_recent_first(client, signup):
    headers = signup()
    first = new_session(client, headers, title="First")
    second = new_session(client, headers, title="Second")

    say(client, headers, first["id"], "hi")

    listing = client.get("/api/chat/sessions", headers=headers).json()
    assert [s["id"] for s in listing] == [first["id"], second["id"]]
    assert "messages" not in listing[0]


def test_empty_message_rejected(client, signup):
    headers = signup()
    session = new_session(client, headers)

    response = client.post(
        f"/api/chat/sessions/{session['id']}/messages", headers=headers, json={"text": "   "}
    )
    assert response.status_code == 400


def test_delete_session(client, signup):
    headers = signup()
    session = new_session(client, headers)

    assert client.delete(f"/api/chat/sessions/{session['id']}", headers=headers).status_code == 204
    assert client.get(f"/api/chat/sessions/{session['id']}", headers=headers).status_code == 404


def test_stateless_respond(client, signup):
    headers = signup()

    reply = client.post(
        "/api/chat/respond",
        headers=headers,
        json={"message": "why", "previous_message": "why"},
    ).json()
    assert reply["rule"] == "repeat"

    reply = client.post(
        "/api/chat/respond", headers=headers, json={"message": "I feel grateful"}
    ).json()
    assert reply["rule"] == "emotion"
    assert client.get("/api/chat/sessions", headers=headers).json() == []
