"""Permalink and staging URL helpers."""

from __future__ import annotations


def commit_link(server_url: str, repository: str, sha: str) -> str:
    return f"{server_url.rstrip('/')}/{repository}/commit/{sha}"


def run_link(
    server_url: str, repository: str, run_id: str, job_id: str | None = None
) -> str:
    """Permalink to an Actions run, or to one job within it."""
    url = f"{server_url.rstrip('/')}/{repository}/actions/runs/{run_id}"
    if job_id:
        url = f"{url}/job/{job_id}"
    return url


def commit_preview_url(base_staging_url: str, commit_short_id: str) -> str:
    return f"{base_staging_url.rstrip('/')}/commit/{commit_short_id}/"


def pr_preview_url(base_staging_url: str, pr_id: str) -> str:
    return f"{base_staging_url.rstrip('/')}/pr/{pr_id}/"
