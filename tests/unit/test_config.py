"""Tests for runtime config — env-driven settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from stagecomment.config import ActionConfig


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ["LOG_LEVEL", "DEBUG", "HISTORY_LIMIT", "TAG", "BASE_STAGING_URL"]:
        monkeypatch.delenv(f"STAGECOMMENT_{name}", raising=False)


class TestActionConfig:
    def test_defaults(self):
        config = ActionConfig(_env_file=None)
        assert config.log_level == "INFO"
        assert config.server_url == "https://github.com"
        assert config.api_base_url == "https://api.github.com"
        assert config.history_limit is None
        assert config.tag is None
        assert config.verify_deploy is True
        assert config.display_timezone == "UTC"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("STAGECOMMENT_HISTORY_LIMIT", "20")
        monkeypatch.setenv("STAGECOMMENT_BASE_STAGING_URL", "https://staging.example.com")
        monkeypatch.setenv("STAGECOMMENT_TAG", "docs")
        config = ActionConfig(_env_file=None)
        assert config.history_limit == 20
        assert config.base_staging_url == "https://staging.example.com"
        assert config.tag == "docs"

    def test_negative_history_limit_rejected(self):
        with pytest.raises(ValidationError):
            ActionConfig(_env_file=None, history_limit=-1)

    def test_effective_log_level(self):
        assert ActionConfig(_env_file=None, log_level="warning").effective_log_level == "WARNING"
        assert ActionConfig(_env_file=None, debug=True).effective_log_level == "DEBUG"

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("STAGECOMMENT_DISPLAY_TIMEZONE=Europe/Paris\n", encoding="utf-8")
        assert ActionConfig(_env_file=env_file).display_timezone == "Europe/Paris"
