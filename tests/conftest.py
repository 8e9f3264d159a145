from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from moodwall.app.core import config
from moodwall.app.services.storage import StorageService
from moodwall.db import create_engine, create_session_factory, init_db


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def app_client(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> Generator[TestClient, None, None]:
    """Client bound to a fresh app and database; no credentials attached."""

    monkeypatch.setenv("VERSION", "0.1.0-test")
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "logs" / "moodwall.log"))
    db_path = tmp_path / f"test_{uuid4().hex}.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")
    config.get_settings.cache_clear()

    from moodwall.app.main import create_app

    with TestClient(create_app()) as client:
        yield client
    config.get_settings.cache_clear()


@pytest.fixture()
def register_user(app_client: TestClient) -> Callable[[str], dict[str, str]]:
    """Register a user and return bearer headers for them."""

    def _register(nickname: str = "sunny") -> dict[str, str]:
        response = app_client.post("/api/v1/auth/register", json={"nickname": nickname})
        assert response.status_code == 201, response.text
        app_client.cookies.clear()
        token = response.json()["data"]["token"]
        return {"Authorization": f"Bearer {token}"}

    return _register


@pytest.fixture()
def test_client(
    app_client: TestClient, register_user: Callable[[str], dict[str, str]]
) -> TestClient:
    """Client authenticated as a freshly registered user."""

    app_client.headers.update(register_user("sunny"))
    return app_client


@pytest.fixture()
async def temp_session_factory(tmp_path: Path):
    db_path = tmp_path / f"unit_{uuid4().hex}.db"
    database_url = f"sqlite+aiosqlite:///{db_path}"
    engine = create_engine(database_url)
    session_factory = create_session_factory(engine)
    await init_db(engine, session_factory)
    try:
        yield session_factory
    finally:
        await engine.dispose()


@pytest.fixture()
async def storage(temp_session_factory) -> StorageService:
    return StorageService(temp_session_factory)
