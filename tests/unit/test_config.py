from __future__ import annotations

from pathlib import Path

import pytest

from moodwall.app.core import config
from moodwall.app.core.config import get_settings


@pytest.fixture(autouse=True)
def reset_settings_cache() -> None:
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


def test_settings_read_values_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("VERSION", "9.9.9")
    monkeypatch.setenv("DATABASE_URL", "postgres://user:pass@db:5432/moods")
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
    monkeypatch.setenv("SESSION_TTL_DAYS", "0")
    monkeypatch.chdir(tmp_path)

    settings = get_settings()

    assert settings.version == "9.9.9"
    assert settings.database_url == "postgresql+asyncpg://user:pass@db:5432/moods"
    assert settings.cors_origins == ["https://a.example", "https://b.example"]
    assert settings.session_ttl_days == 1
    assert settings.log_file.parent.exists()


def test_settings_fallback_to_version_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    version_file = tmp_path / "VERSION"
    version_file.write_text("1.2.3", encoding="utf-8")
    monkeypatch.delenv("VERSION", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("CORS_ORIGINS", raising=False)
    monkeypatch.chdir(tmp_path)

    settings = get_settings()

    assert settings.version == "1.2.3"
    assert settings.database_url.startswith("sqlite+aiosqlite:///")
    assert settings.cors_origins == ["*"]
    assert settings.seed_emotions is True
