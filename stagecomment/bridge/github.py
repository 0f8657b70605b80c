"""GitHub REST comment store and run metadata lookups.

Comments live either on a pull request (issue comments) or on a commit
(commit comments, for push builds).  ``GitHubRepository`` resolves the
pull request head and the current job id for the ledger row.  All HTTP
errors propagate as ``httpx.HTTPStatusError``; nothing is retried.
"""

from __future__ import annotations

import logging

import httpx
from pydantic import BaseModel, ConfigDict

from stagecomment.bridge.store import Comment

logger = logging.getLogger(__name__)

DEFAULT_API_BASE_URL = "https://api.github.com"
_PAGE_SIZE = 100
_MAX_PAGES = 50


def github_headers(token: str) -> dict[str, str]:
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
        "User-Agent": "stagecomment/0.1",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def build_client(token: str, timeout: float = 15.0) -> httpx.Client:
    """Return an ``httpx.Client`` authenticated against the GitHub API."""
    return httpx.Client(timeout=timeout, headers=github_headers(token))


def _repo_url(api_base_url: str, repository: str) -> str:
    if repository.count("/") != 1:
        raise ValueError(f"Repository must be 'owner/name': {repository!r}")
    return f"{api_base_url.rstrip('/')}/repos/{repository}"


def _to_comment(payload: object) -> Comment:
    if not isinstance(payload, dict):
        raise RuntimeError("comment payload is not an object")
    return Comment(comment_id=int(payload["id"]), body=str(payload.get("body") or ""))


class GitHubCommentStore:
    """Comment store backed by the GitHub REST API.

    Parameters
    ----------
    client:
        An ``httpx.Client`` carrying auth headers (see ``build_client``).
    repository:
        ``owner/name`` of the repository.
    issue_number:
        Pull request number; comments are issue comments.
    commit_sha:
        Commit sha for push builds; comments are commit comments.
    api_base_url:
        Base URL of the REST API (GitHub Enterprise installs differ).
    """

    def __init__(
        self,
        client: httpx.Client,
        repository: str,
        *,
        issue_number: int | None = None,
        commit_sha: str | None = None,
        api_base_url: str = DEFAULT_API_BASE_URL,
    ) -> None:
        if (issue_number is None) == (commit_sha is None):
            raise ValueError("Exactly one of issue_number or commit_sha is required")
        self._client = client
        self._repo_url = _repo_url(api_base_url, repository)
        self._issue_number = issue_number
        self._commit_sha = commit_sha

    @property
    def store_name(self) -> str:
        return "github"

    @property
    def _collection_url(self) -> str:
        if self._issue_number is not None:
            return f"{self._repo_url}/issues/{self._issue_number}/comments"
        return f"{self._repo_url}/commits/{self._commit_sha}/comments"

    def _comment_url(self, comment_id: int) -> str:
        if self._issue_number is not None:
            return f"{self._repo_url}/issues/comments/{comment_id}"
        return f"{self._repo_url}/comments/{comment_id}"

    def list_comments(self) -> list[Comment]:
        comments: list[Comment] = []
        for page in range(1, _MAX_PAGES + 1):
            resp = self._client.get(
                self._collection_url,
                params={"per_page": _PAGE_SIZE, "page": page},
            )
            resp.raise_for_status()
            payload = resp.json()
            if not isinstance(payload, list):
                raise RuntimeError("comment list payload is not an array")
            comments.extend(_to_comment(item) for item in payload)
            if len(payload) < _PAGE_SIZE:
                break
        else:
            logger.warning(
                "Stopped listing %s after %d pages; a ledger comment beyond %d "
                "comments will not be found",
                self._collection_url,
                _MAX_PAGES,
                _MAX_PAGES * _PAGE_SIZE,
            )
        logger.debug("Listed %d comments from %s", len(comments), self._collection_url)
        return comments

    def create(self, body: str) -> Comment:
        resp = self._client.post(self._collection_url, json={"body": body})
        resp.raise_for_status()
        comment = _to_comment(resp.json())
        logger.info("Created comment %s", comment.comment_id)
        return comment

    def update(self, comment_id: int, body: str) -> Comment:
        resp = self._client.patch(self._comment_url(comment_id), json={"body": body})
        resp.raise_for_status()
        comment = _to_comment(resp.json())
        logger.info("Updated comment %s", comment.comment_id)
        return comment


class PullRequest(BaseModel):
    """The parts of a pull request a ledger row is keyed and labelled by."""

    model_config = ConfigDict(frozen=True)

    number: int
    head_sha: str
    head_ref: str
    base_ref: str


class GitHubRepository:
    """Read-only lookups that resolve build metadata from the REST API.

    On ``pull_request`` events the checked-out sha is a synthetic merge
    commit, so the head sha has to come from the pull request itself.
    """

    def __init__(
        self,
        client: httpx.Client,
        repository: str,
        *,
        api_base_url: str = DEFAULT_API_BASE_URL,
    ) -> None:
        self._client = client
        self._repo_url = _repo_url(api_base_url, repository)

    def pull_request(self, number: int) -> PullRequest:
        resp = self._client.get(f"{self._repo_url}/pulls/{number}")
        resp.raise_for_status()
        payload = resp.json()
        if not isinstance(payload, dict):
            raise RuntimeError("pull request payload is not an object")
        pull = PullRequest(
            number=int(payload["number"]),
            head_sha=str(payload["head"]["sha"]),
            head_ref=str(payload["head"]["ref"]),
            base_ref=str(payload["base"]["ref"]),
        )
        logger.debug("Pull request #%d head is %s (%s)", number, pull.head_sha, pull.head_ref)
        return pull

    def find_job_id(self, run_id: str, job_name: str) -> str | None:
        """Return the id of the job named *job_name* in run *run_id*, if any."""
        url = f"{self._repo_url}/actions/runs/{run_id}/jobs"
        for page in range(1, _MAX_PAGES + 1):
            resp = self._client.get(url, params={"per_page": _PAGE_SIZE, "page": page})
            resp.raise_for_status()
            payload = resp.json()
            jobs = payload.get("jobs") if isinstance(payload, dict) else None
            if not isinstance(jobs, list):
                raise RuntimeError("job list payload has no jobs array")
            for job in jobs:
                if isinstance(job, dict) and job.get("name") == job_name:
                    return str(job["id"])
            if len(jobs) < _PAGE_SIZE:
                break
        logger.warning("No job named %r in run %s", job_name, run_id)
        return None
