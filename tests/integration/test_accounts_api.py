"""Integration tests for registration, sessions, profile and subscriptions"""

from __future__ import annotations


def register(client, email="ada@example.com", password="correct horse", tier="free"):
    return client.post(
        "/api/auth/register",
        json={
            "name": "Ada Lovelace",
            "email": email,
            "password": password,
            "subscription_tier": tier,
        },
    )


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestRegistration:
    def test_register_returns_session(self, client):
        response = register(client, email="  Ada@Example.com ")

        assert response.status_code == 201
        body = response.json()
        assert body["token"]
        assert body["user"]["email"] == "ada@example.com"
        assert body["user"]["subscription_tier"] == "free"
        assert "password_hash" not in body["user"]

    def test_duplicate_email_rejected(self, client):
        register(client)
        response = register(client, email="ADA@example.com")

        assert response.status_code == 400
        assert response.json()["detail"] == "An account with this email already exists"

    def test_short_password_rejected(self, client):
        response = register(client, password="short")

        assert response.status_code == 400
        assert "at least 8 characters" in response.json()["detail"]

    def test_unknown_tier_rejected(self, client):
        assert register(client, tier="platinum").status_code == 400


class TestSessions:
    def test_login_and_profile(self, client):
        register(client)
        response = client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "correct horse"}
        )

        assert response.status_code == 200
        profile = client.get("/api/profile", headers=bearer(response.json()["token"]))
        assert profile.status_code == 200
        assert profile.json()["name"] == "Ada Lovelace"

    def test_wrong_password(self, client):
        register(client)
        response = client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "wrong horse"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_missing_token(self, client):
        response = client.get("/api/profile")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_unknown_token(self, client):
        response = client.get("/api/profile", headers=bearer("not-a-real-token"))

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired session"

    def test_logout_invalidates_token(self, client):
        token = register(client).json()["token"]

        assert client.post("/api/auth/logout", headers=bearer(token)).json() == {"success": True}
        assert client.get("/api/profile", headers=bearer(token)).status_code == 401


class TestProfile:
    def test_update_profile(self, client, signup):
        headers = signup()
        response = client.put(
            "/api/profile",
            headers=headers,
            json={
                "name": "Grace B. Hopper",
                "bio": "  Rear admiral  ",
                "social_links": {"linkedin": "https://linkedin.com/in/grace"},
            },
        )

        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Grace B. Hopper"
        assert body["bio"] == "Rear admiral"
        assert body["social_links"] == {"linkedin": "https://linkedin.com/in/grace"}

    def test_blank_name_rejected(self, client, signup):
        response = client.put("/api/profile", headers=signup(), json={"name": "   "})
        assert response.status_code == 400

    def test_change_email_requires_password(self, client, signup):
        headers = signup(email="grace@example.com")

        response = client.put(
            "/api/profile/email",
            headers=headers,
            json={"new_email": "hopper@example.com", "password": "wrong password"},
        )
        assert response.status_code == 401

        response = client.put(
            "/api/profile/email",
            headers=headers,
            json={"new_email": "Hopper@Example.com", "password": "correct horse"},
        )
        assert response.status_code == 200
        assert response.json()["email"] == "hopper@example.com"

    def test_change_email_to_taken_address(self, client, signup):
        signup(email="taken@example.com")
        headers = signup(email="grace@example.com")

        response = client.put(
            "/api/profile/email",
            headers=headers,
            json={"new_email": "taken@example.com", "password": "correct horse"},
        )
        assert response.status_code == 400

    def test_password_change_signs_out_other_sessions(self, client):
        current = register(client).json()["token"]
        other = client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "correct horse"}
        ).json()["token"]

        response = client.put(
            "/api/profile/password",
            headers=bearer(current),
            json={"current_password": "correct horse", "new_password": "battery staple"},
        )

        assert response.status_code == 200
        assert client.get("/api/profile", headers=bearer(current)).status_code == 200
        assert client.get("/api/profile", headers=bearer(other)).status_code == 401

        login = client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "battery staple"}
        )
        assert login.status_code == 200

    def test_password_change_wrong_current(self, client, signup):
        response = client.put(
            "/api/profile/password",
            headers=signup(),
            json={"current_password": "nope nope", "new_password": "battery staple"},
        )
        assert response.status_code == 401

    def test_deactivate_ends_sessions_and_blocks_login(self, client):
        token = register(client).json()["token"]

        assert client.post("/api/profile/deactivate", headers=bearer(token)).status_code == 200
        assert client.get("/api/profile", headers=bearer(token)).status_code == 401

        response = client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "correct horse"}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "This account has been deactivated"

    def test_delete_account_removes_data(self, client):
        token = register(client).json()["token"]
        client.post(
            "/api/entries", headers=bearer(token), json={"title": "Day one", "content": "Hello"}
        )

        assert client.delete("/api/profile", headers=bearer(token)).status_code == 204
        assert client.get("/api/entries", headers=bearer(token)).status_code == 401

        # The email is free again
        assert register(client).status_code == 201


class TestSubscriptions:
    def test_list_tiers(self, client):
        response = client.get("/api/subscriptions")

        assert response.status_code == 200
        assert [t["id"] for t in response.json()] == ["free", "premium", "gold"]

    def test_get_tier(self, client):
        assert client.get("/api/subscriptions/gold").json()["price"] == 19.99
        assert client.get("/api/subscriptions/platinum").status_code == 404

    def test_change_tier(self, client, signup):
        headers = signup()

        response = client.put(
            "/api/profile/subscription", headers=headers, json={"tier_id": "premium"}
        )
        assert response.status_code == 200
        assert response.json()["subscription_tier"] == "premium"

        response = client.put(
            "/api/profile/subscription", headers=headers, json={"tier_id": "diamond"}
        )
        assert response.status_code == 400
