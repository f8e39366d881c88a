"""
Pytest configuration shared by the unit and integration tests.

Environment overrides are applied before anything imports legacy_diary.config,
so every test run uses fast password hashing, no background WAL thread and
rate limits high enough not to interfere.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from pathlib import Path

import pytest

_BOOT_DIR = Path(tempfile.mkdtemp(prefix="legacy-diary-tests-"))

os.environ["LEGACY_DIARY_ENV"] = "test"
os.environ["LEGACY_DIARY_DB_PATH"] = str(_BOOT_DIR / "boot.db")
os.environ["LEGACY_DIARY_PASSWORD_BCRYPT_ROUNDS"] = "4"
os.environ["LEGACY_DIARY_WAL_CHECKPOINT_SECONDS"] = "0"
os.environ["LEGACY_DIARY_RATE_LIMIT_RPM"] = "100000"
os.environ["LEGACY_DIARY_RATE_LIMIT_RPH"] = "1000000"
os.environ["LEGACY_DIARY_RATE_LIMIT_LEGACY_RPM"] = "100000"
os.environ["LEGACY_DIARY_ADMIN_API_KEY"] = "test-admin-key"

from legacy_diary.accounts import AccountService, User  # noqa: E402
from legacy_diary.accounts.service import clear_session_cache  # noqa: E402
from legacy_diary.infrastructure.database import init_database, reset_pool  # noqa: E402
from legacy_diary.journal.models import DiaryEntry  # noqa: E402
from legacy_diary.observability import telemetry  # noqa: E402

@pytest.fixture(autouse=True)
def fresh_database(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Point the pool at an empty database for every test."""
    db_path = tmp_path / "legacy_diary.db"
    monkeypatch.setenv("LEGACY_DIARY_DB_PATH", str(db_path))
    reset_pool()
    init_database()
    clear_session_cache()
    telemetry.reset()

    yield db_path

    reset_pool()


@pytest.fixture
def make_user() -> Callable[..., User]:
    """Register users directly through the service layer."""
    counter = {"n": 0}

    def _make(
        name: str = "Ada Lovelace",
        email: str | None = None,
        password: str = "correct horse",
        tier: str = "free",
    ) -> User:
        counter["n"] += 1
        return AccountService.register(
            name, email or f"user{counter['n']}@example.com", password, tier
        )

    return _make


@pytest.fixture
def user(make_user: Callable[..., User]) -> User:
    return make_user()


def _entry(
    entry_id: str,
    content: str,
    tags: list[str] | None = None,
    title: str | None = None,
    day: int = 1,
    month: int = 1,
    year: int = 2024,
) -> DiaryEntry:
    """In-memory entry for engine tests (not persisted)."""
    created = datetime(year, month, day, 12, 0, tzinfo=UTC)
    return DiaryEntry(
        id=entry_id,
        user_id="user-1",
        title=title or f"Entry {entry_id}",
        content=content,
        tags=tags or [],
        created_at=created,
        updated_at=created,
    )


@pytest.fixture
def make_entry() -> Callable[..., DiaryEntry]:
    return _entry


@pytest.fixture
def client() -> Iterator:
    from fastapi.testclient import TestClient

    from legacy_diary.api.app import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def signup(client) -> Callable[..., dict[str, str]]:
    """Register through the API and return Authorization headers."""
    counter = {"n": 0}

    def _signup(
        name: str = "Grace Hopper",
        email: str | None = None,
        password: str = "correct horse",
        tier: str = "free",
    ) -> dict[str, str]:
        counter["n"] += 1
        response = client.post(
            "/api/auth/register",
            json={
                "name": name,
                "email": email or f"member{counter['n']}@example.com",
                "password": password,
                "subscription_tier": tier,
            },
        )
        assert response.status_code == 201, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _signup
