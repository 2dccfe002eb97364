"""
Tests for environment configuration.
"""
import pytest
from zoneinfo import ZoneInfo
from sqlalchemy import create_engine, inspect

from progress_engine.config import configure_logging, get_database_url, get_local_timezone
from progress_engine.constants import DEFAULT_DATABASE_URL
from progress_engine.database import get_db, init_db


class TestConfig:
    """Tests for environment-driven settings"""

    def test_database_url_default_and_override(self, monkeypatch):
        monkeypatch.delenv("PROGRESS_ENGINE_DATABASE_URL", raising=False)
        assert get_database_url() == DEFAULT_DATABASE_URL

        monkeypatch.setenv("PROGRESS_ENGINE_DATABASE_URL", "postgresql://localhost/progress")
        assert get_database_url() == "postgresql://localhost/progress"

    def test_timezone(self, monkeypatch):
        monkeypatch.setenv("PROGRESS_ENGINE_TIMEZONE", "Europe/Berlin")
        assert get_local_timezone() == ZoneInfo("Europe/Berlin")

        monkeypatch.setenv("PROGRESS_ENGINE_TIMEZONE", "")
        assert get_local_timezone() is None

    def test_unknown_timezone_logs_warning(self, monkeypatch, caplog):
        monkeypatch.setenv("PROGRESS_ENGINE_TIMEZONE", "Not/AZone")
        assert get_local_timezone() is None
        assert "Unknown timezone" in caplog.text

    def test_configure_logging_writes_to_log_dir(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PROGRESS_ENGINE_LOG_DIR", str(tmp_path / "logs"))
        monkeypatch.setenv("PROGRESS_ENGINE_LOG_FILE", "engine.log")

        log_path = configure_logging("debug")

        assert log_path == tmp_path / "logs" / "engine.log"
        assert log_path.exists()


class TestDatabase:
    """Tests for the database helpers"""

    def test_init_db_creates_tables(self):
        engine = create_engine("sqlite://")
        init_db(bind=engine)

        tables = set(inspect(engine).get_table_names())
        assert {
            "challenges", "challenge_participants", "daily_entries", "periodic_task_completions",
            "onetime_task_completions", "achievements", "participant_achievements",
        } <= tables

    def test_get_db_closes_session(self):
        generator = get_db()
        session = next(generator)
        assert session is not None
        with pytest.raises(StopIteration):
            next(generator)
