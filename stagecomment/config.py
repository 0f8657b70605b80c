"""Runtime configuration — env-driven via pydantic-settings.

Reads ``STAGECOMMENT_*`` environment variables and an optional ``.env``
file.  CLI options override these values per invocation.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ActionConfig(BaseSettings):
    """Settings for one stagecomment invocation.

    Examples
    --------
    Override via environment::

        export STAGECOMMENT_BASE_STAGING_URL=https://staging.example.com
        export STAGECOMMENT_HISTORY_LIMIT=20
        export STAGECOMMENT_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="STAGECOMMENT_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"
    debug: bool = False

    # GitHub
    api_base_url: str = "https://api.github.com"
    server_url: str = "https://github.com"
    github_token: str = ""
    http_timeout_seconds: float = 15.0

    # Ledger
    base_staging_url: str = ""
    tag: str | None = None
    history_limit: int | None = Field(default=None, ge=0)  # None keeps everything
    display_timezone: str = "UTC"

    # Post-success verification
    verify_deploy: bool = True
    preview_timeout_seconds: float = 10.0

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level.upper()


# Module-level singleton, import as `from stagecomment.config import config`
config = ActionConfig()
