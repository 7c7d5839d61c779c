"""Tests for Settings loading."""

import pytest

from app.config import Settings

pytestmark = pytest.mark.unit


class TestSettings:
    def test_reads_dotenv_file(self) -> None:
        assert Settings.model_config["env_file"] == ".env"

    def test_environment_overrides_defaults(self, monkeypatch) -> None:
        monkeypatch.setenv("DB_NAME", "graph_test")
        monkeypatch.setenv("MAX_PAGE_SIZE", "50")
        monkeypatch.delenv("DATABASE_URL", raising=False)

        settings = Settings(_env_file=None)

        assert settings.max_page_size == 50
        assert settings.sqlalchemy_url.endswith("/graph_test")
        assert settings.sqlalchemy_url.startswith("mysql+aiomysql://")

    def test_database_url_wins(self, monkeypatch) -> None:
        monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite://")

        assert Settings(_env_file=None).sqlalchemy_url == "sqlite+aiosqlite://"
