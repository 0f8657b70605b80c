"""Build phase events reported by the CI job."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class BuildPhase(str, Enum):
    """The three lifecycle phases a CI job reports for one commit.

    Values match the ``mode`` argument the job passes on each invocation.
    """

    STARTED = "pre"
    SUCCEEDED = "post"
    FAILED = "failure"


class BuildContext(BaseModel):
    """Everything the caller knows about the build being reported."""

    model_config = ConfigDict(frozen=True)

    commit_sha: str = Field(min_length=7)
    commit_link: str
    run_link: str
    started_at: datetime
    deploy_url: str | None = None  # where this commit's preview is published
    pr_id: str | None = None  # empty on push builds
    preview_url: str | None = None  # stable url used in the narrative text
    run_id: str | None = None
    job_id: str | None = None
    branch: str | None = None  # head branch for pull request builds
    base_branch: str | None = None  # empty on push builds

    @property
    def commit_short_id(self) -> str:
        return self.commit_sha[:7]
