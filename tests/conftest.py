"""Shared test fixtures for stagecomment."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import pytest

from stagecomment.bridge.store import InMemoryCommentStore
from stagecomment.models.entry import BuildEntry, BuildStatus, LedgerState
from stagecomment.models.events import BuildContext

REPO_URL = "https://github.com/acme/site"
STAGING_URL = "https://staging.example.com"


@pytest.fixture
def store() -> InMemoryCommentStore:
    """Provide an empty in-memory comment store."""
    return InMemoryCommentStore()


@pytest.fixture
def started_at() -> datetime:
    """A fixed, timezone-aware build start time."""
    return datetime(2026, 10, 18, 15, 4, 5, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Entry and context factories shared across test modules
# ---------------------------------------------------------------------------


@pytest.fixture
def make_entry() -> Callable[..., BuildEntry]:
    """Factory fixture: build a BuildEntry with sensible defaults."""

    def _factory(
        key: str = "abc1234",
        status: BuildStatus = BuildStatus.SUCCESS,
        **overrides: Any,
    ) -> BuildEntry:
        defaults: dict[str, Any] = {
            "status": status,
            "commit_short_id": key,
            "commit_link": f"{REPO_URL}/commit/{key}000",
            "deploy_url": f"{STAGING_URL}/commit/{key}/",
            "started_at": "Oct 18 at 3:04:05 PM",
            "build_duration": "1m 2s",
            "run_link": f"{REPO_URL}/actions/runs/42",
        }
        if status is BuildStatus.IN_PROGRESS:
            defaults["build_duration"] = None
        if status is BuildStatus.FAILURE:
            defaults["deploy_url"] = None
            defaults["build_duration"] = None
        defaults.update(overrides)
        return BuildEntry(**defaults)

    return _factory


@pytest.fixture
def make_state(make_entry: Callable[..., BuildEntry]) -> Callable[..., LedgerState]:
    """Factory fixture: a LedgerState from a list of commit ids (head first)."""

    def _factory(*keys: str) -> LedgerState:
        entries = [make_entry(key) for key in keys]
        return LedgerState(latest=entries[0], history=tuple(entries[1:]))

    return _factory


@pytest.fixture
def make_context(started_at: datetime) -> Callable[..., BuildContext]:
    """Factory fixture: build a BuildContext for a commit sha."""

    def _factory(sha: str = "abc1234def5678", **overrides: Any) -> BuildContext:
        defaults: dict[str, Any] = {
            "commit_sha": sha,
            "commit_link": f"{REPO_URL}/commit/{sha}",
            "run_link": f"{REPO_URL}/actions/runs/42",
            "started_at": started_at,
            "deploy_url": f"{STAGING_URL}/commit/{sha[:7]}/",
            "pr_id": "17",
            "preview_url": f"{STAGING_URL}/pr/17/",
        }
        defaults.update(overrides)
        return BuildContext(**defaults)

    return _factory
