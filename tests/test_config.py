"""Tests for core/config.py and the operator CLI in main.py."""

from __future__ import annotations

import pydantic
import pytest

import main as cli
from core.config import Settings


class TestSettings:
    def test_production_requires_database_url(self):
        with pytest.raises(pydantic.ValidationError, match="DATABASE_URL is required"):
            Settings(environment="production", database_url="")

    def test_development_falls_back_to_sqlite_file(self):
        settings = Settings(environment="development", database_url="")
        assert settings.database_url.startswith("sqlite:///")
        assert settings.database_url.endswith("taskify.db")

    def test_production_forces_secure_cookies(self):
        settings = Settings(environment="production", database_url="sqlite://", secure_cookies=False)
        assert settings.is_production
        assert settings.secure_cookies is True

    def test_development_keeps_cookie_setting(self):
        assert Settings(database_url="sqlite://", secure_cookies=False).secure_cookies is False

    @pytest.mark.parametrize("ttl", [0, -1])
    def test_ttl_must_be_positive(self, ttl):
        with pytest.raises(pydantic.ValidationError):
            Settings(database_url="sqlite://", session_ttl_days=ttl)

    @pytest.mark.parametrize("rounds", [3, 32])
    def test_bcrypt_rounds_bounded(self, rounds):
        with pytest.raises(pydantic.ValidationError):
            Settings(database_url="sqlite://", bcrypt_rounds=rounds)

    def test_defaults(self):
        settings = Settings(database_url="sqlite://")
        assert settings.session_cookie_name == "taskify-session-id"
        assert settings.session_ttl_days == 7


class TestCli:
    @pytest.fixture
    def file_settings(self, tmp_path, monkeypatch) -> Settings:
        settings = Settings(database_url=f"sqlite:///{tmp_path / 'cli.db'}")
        monkeypatch.setattr(cli, "get_settings", lambda: settings)
        return settings

    def test_init_db_creates_schema(self, file_settings, tmp_path, capsys):
        assert cli.main(["init-db"]) == 0
        assert (tmp_path / "cli.db").exists()
        assert "up to date" in capsys.readouterr().out

    def test_purge_sessions_reports_count(self, file_settings, capsys):
        cli.main(["init-db"])
        assert cli.main(["purge-sessions"]) == 0
        assert "Removed 0 expired session(s)." in capsys.readouterr().out

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            cli.main([])
