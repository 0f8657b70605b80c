"""``stagecomment pre|post|failure`` — report one build phase to the ledger.

Each command builds a ledger entry for the current commit, reconciles it
into the ledger comment on the pull request (or commit) and writes the
comment back.  ``post`` optionally checks that the preview is reachable.

For pull request builds the ledger is keyed by the head commit of the
pull request, looked up through the API; ``--sha`` is only used as is for
push builds and dry runs.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import NoReturn

import httpx
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from stagecomment.bridge.github import GitHubCommentStore, GitHubRepository, build_client
from stagecomment.bridge.preview import PreviewCheck
from stagecomment.bridge.store import CommentStore, InMemoryCommentStore
from stagecomment.config import config
from stagecomment.core import staging
from stagecomment.core.codec import LedgerCodecError
from stagecomment.core.formatting import parse_build_time
from stagecomment.core.updater import LedgerUpdater, UpdateResult
from stagecomment.display.renderer import LedgerRenderer
from stagecomment.models.events import BuildContext, BuildPhase

logger = logging.getLogger(__name__)

console = Console(stderr=True)


# ---------------------------------------------------------------------------
# Shared options
# ---------------------------------------------------------------------------

_REPOSITORY = typer.Option(
    ..., "--repository", "-R", envvar="GITHUB_REPOSITORY",
    help="Repository as owner/name.",
)
_SHA = typer.Option(
    ..., "--sha", envvar="GITHUB_SHA",
    help="Full sha of the commit being built.  Replaced by the head sha for pull requests.",
)
_RUN_ID = typer.Option(
    ..., "--run-id", envvar="GITHUB_RUN_ID", help="Actions run id, used for permalinks."
)
_JOB_ID = typer.Option(
    None, "--job-id", envvar="STAGECOMMENT_JOB_ID",
    help="Actions job id; links the row to the job instead of the run.",
)
_JOB_NAME = typer.Option(
    None, "--job-name", envvar="STAGECOMMENT_JOB_NAME",
    help="Name of this job; its id is looked up when --job-id is not given.",
)
_PR = typer.Option(
    None, "--pr", envvar="STAGECOMMENT_PR",
    help="Pull request number.  Without it the ledger is kept on the commit.",
)
_BRANCH = typer.Option(
    None, "--branch", envvar="GITHUB_REF_NAME",
    help="Branch being built.  Replaced by the head branch for pull requests.",
)
_BASE_BRANCH = typer.Option(
    None, "--base-branch", envvar="GITHUB_BASE_REF",
    help="Pull request base branch.  Replaced by the API value for pull requests.",
)
_BUILD_TIME = typer.Option(
    ..., "--build-time", envvar="STAGECOMMENT_BUILD_TIME",
    help="Build start (epoch seconds/ms or ISO 8601).  Pass the same value to every phase.",
)
_BASE_STAGING_URL = typer.Option(
    None, "--base-staging-url", help="Base URL of the staging host."
)
_TAG = typer.Option(
    None, "--tag", "-t", help="Scope the ledger to one comment when several jobs report."
)
_TOKEN = typer.Option(
    "", "--token", envvar="GITHUB_TOKEN", help="GitHub API token.", show_default=False
)
_HISTORY_LIMIT = typer.Option(
    None, "--history-limit", min=0, help="Keep at most this many previous builds."
)
_DRY_RUN = typer.Option(
    False, "--dry-run", help="Do not call GitHub; print the rendered comment body."
)
_BODY_FILE = typer.Option(
    None, "--body-file", exists=True, dir_okay=False,
    help="Existing comment body to reconcile into (dry run only).",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def open_client(token: str) -> httpx.Client:
    """Return the authenticated client used for every GitHub call."""
    return build_client(token or config.github_token, config.http_timeout_seconds)


def open_store(client: httpx.Client, repository: str, context: BuildContext) -> CommentStore:
    """Return the GitHub store holding the ledger for *context*."""
    return GitHubCommentStore(
        client,
        repository,
        issue_number=int(context.pr_id) if context.pr_id else None,
        commit_sha=None if context.pr_id else context.commit_sha,
        api_base_url=config.api_base_url,
    )


def pr_number(pr: str | None) -> str | None:
    """Normalise the ``--pr`` value; an empty string means a push build."""
    pr = pr or None
    if pr is not None and not pr.isdigit():
        raise ValueError(f"Pull request number must be numeric: {pr!r}")
    return pr


def build_context(
    *,
    repository: str,
    sha: str,
    run_id: str,
    job_id: str | None,
    pr: str | None,
    build_time: str,
    base_staging_url: str | None,
    branch: str | None = None,
    base_branch: str | None = None,
) -> BuildContext:
    """Assemble the BuildContext from CLI options and config."""
    pr = pr_number(pr)
    base = base_staging_url or config.base_staging_url
    deploy_url = staging.commit_preview_url(base, sha[:7]) if base else None
    preview_url = None
    if base:
        preview_url = staging.pr_preview_url(base, pr) if pr else deploy_url

    return BuildContext(
        commit_sha=sha,
        commit_link=staging.commit_link(config.server_url, repository, sha),
        run_link=staging.run_link(config.server_url, repository, run_id, job_id),
        started_at=parse_build_time(build_time),
        deploy_url=deploy_url,
        pr_id=pr,
        preview_url=preview_url,
        run_id=run_id,
        job_id=job_id or None,
        branch=branch or None,
        base_branch=base_branch or None,
    )


def resolve_context(
    client: httpx.Client | None,
    *,
    repository: str,
    sha: str,
    run_id: str,
    job_id: str | None,
    job_name: str | None,
    pr: str | None,
    branch: str | None,
    base_branch: str | None,
    build_time: str,
    base_staging_url: str | None,
) -> BuildContext:
    """Fill in metadata only the API knows, then build the context.

    Without a client (dry runs) the option values are used unchanged.
    """
    pr = pr_number(pr)
    if client is not None:
        repo = GitHubRepository(client, repository, api_base_url=config.api_base_url)
        if pr is not None:
            pull = repo.pull_request(int(pr))
            sha, branch, base_branch = pull.head_sha, pull.head_ref, pull.base_ref
        if job_name and not job_id:
            job_id = repo.find_job_id(run_id, job_name)

    return build_context(
        repository=repository,
        sha=sha,
        run_id=run_id,
        job_id=job_id,
        pr=pr,
        build_time=build_time,
        base_staging_url=base_staging_url,
        branch=branch,
        base_branch=base_branch,
    )


def write_outputs(context: BuildContext, result: UpdateResult) -> None:
    """Append step outputs to ``$GITHUB_OUTPUT`` when running in Actions."""
    output_path = os.environ.get("GITHUB_OUTPUT")
    if not output_path:
        return
    outputs = {
        "runId": context.run_id or "",
        "jobId": context.job_id or "",
        "deployUrl": result.state.latest.deploy_url or "",
        "branch": context.branch or "",
        "sha": context.commit_sha,
        "commitUrl": context.deploy_url or "",
        "prId": context.pr_id or "",
        "baseBranch": context.base_branch or "",
        "commentId": str(result.comment_id),
    }
    with open(output_path, "a", encoding="utf-8") as handle:
        for key, value in outputs.items():
            handle.write(f"{key}={value}\n")


def _fail(title: str, exc: Exception) -> NoReturn:
    console.print(f"[bold red]{title}:[/bold red] {escape(str(exc))}")
    raise typer.Exit(code=1)


def _report(
    phase: BuildPhase,
    *,
    repository: str,
    sha: str,
    run_id: str,
    job_id: str | None,
    job_name: str | None,
    pr: str | None,
    branch: str | None,
    base_branch: str | None,
    build_time: str,
    base_staging_url: str | None,
    tag: str | None,
    token: str,
    history_limit: int | None,
    dry_run: bool,
    body_file: Path | None,
    duration_seconds: float | None = None,
    verify: bool = False,
) -> None:
    client = None if dry_run else open_client(token)
    try:
        try:
            context = resolve_context(
                client,
                repository=repository,
                sha=sha,
                run_id=run_id,
                job_id=job_id,
                job_name=job_name,
                pr=pr,
                branch=branch,
                base_branch=base_branch,
                build_time=build_time,
                base_staging_url=base_staging_url,
            )
        except httpx.HTTPError as exc:
            _fail("GitHub request failed", exc)
        except (ValueError, ValidationError) as exc:
            _fail("Invalid build parameters", exc)

        if client is None:
            bodies = [body_file.read_text(encoding="utf-8")] if body_file else []
            store: CommentStore = InMemoryCommentStore(bodies)
        else:
            store = open_store(client, repository, context)

        try:
            updater = LedgerUpdater(
                store,
                tag=tag if tag is not None else config.tag,
                history_limit=history_limit if history_limit is not None else config.history_limit,
            )
            check = None
            if verify and not dry_run:
                check = PreviewCheck(timeout=config.preview_timeout_seconds)
            result = updater.report(
                phase,
                context,
                duration_seconds=duration_seconds,
                check=check,
                tz=config.display_timezone,
            )
        except LedgerCodecError as exc:
            console.print(
                f"[bold red]Ledger comment could not be updated:[/bold red] {escape(str(exc))}"
            )
            console.print("[dim]The comment was left unchanged.[/dim]")
            raise typer.Exit(code=1)
        except httpx.HTTPError as exc:
            _fail("GitHub request failed", exc)
        except ValueError as exc:
            _fail("Error", exc)
    finally:
        if client is not None:
            client.close()

    LedgerRenderer(console=console).print_result(result)
    write_outputs(context, result)
    if dry_run:
        typer.echo(result.body)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def pre_cmd(
    repository: str = _REPOSITORY,
    sha: str = _SHA,
    run_id: str = _RUN_ID,
    build_time: str = _BUILD_TIME,
    job_id: str = _JOB_ID,
    job_name: str = _JOB_NAME,
    pr: str = _PR,
    branch: str = _BRANCH,
    base_branch: str = _BASE_BRANCH,
    base_staging_url: str = _BASE_STAGING_URL,
    tag: str = _TAG,
    token: str = _TOKEN,
    history_limit: int = _HISTORY_LIMIT,
    dry_run: bool = _DRY_RUN,
    body_file: Path = _BODY_FILE,
) -> None:
    """Record that a build has started."""
    _report(
        BuildPhase.STARTED,
        repository=repository, sha=sha, run_id=run_id, job_id=job_id,
        job_name=job_name, pr=pr, branch=branch, base_branch=base_branch,
        build_time=build_time, base_staging_url=base_staging_url, tag=tag,
        token=token, history_limit=history_limit, dry_run=dry_run,
        body_file=body_file,
    )


def post_cmd(
    repository: str = _REPOSITORY,
    sha: str = _SHA,
    run_id: str = _RUN_ID,
    build_time: str = _BUILD_TIME,
    build_duration: float = typer.Option(
        ..., "--build-duration", min=0, help="Length of the build in seconds."
    ),
    verify: bool = typer.Option(
        config.verify_deploy, "--verify/--no-verify",
        help="Check the preview is reachable and clear its link if not.",
    ),
    job_id: str = _JOB_ID,
    job_name: str = _JOB_NAME,
    pr: str = _PR,
    branch: str = _BRANCH,
    base_branch: str = _BASE_BRANCH,
    base_staging_url: str = _BASE_STAGING_URL,
    tag: str = _TAG,
    token: str = _TOKEN,
    history_limit: int = _HISTORY_LIMIT,
    dry_run: bool = _DRY_RUN,
    body_file: Path = _BODY_FILE,
) -> None:
    """Record that a build succeeded."""
    _report(
        BuildPhase.SUCCEEDED,
        repository=repository, sha=sha, run_id=run_id, job_id=job_id,
        job_name=job_name, pr=pr, branch=branch, base_branch=base_branch,
        build_time=build_time, base_staging_url=base_staging_url, tag=tag,
        token=token, history_limit=history_limit, dry_run=dry_run,
        body_file=body_file,
        duration_seconds=build_duration,
        verify=verify,
    )


def failure_cmd(
    repository: str = _REPOSITORY,
    sha: str = _SHA,
    run_id: str = _RUN_ID,
    build_time: str = _BUILD_TIME,
    job_id: str = _JOB_ID,
    job_name: str = _JOB_NAME,
    pr: str = _PR,
    branch: str = _BRANCH,
    base_branch: str = _BASE_BRANCH,
    base_staging_url: str = _BASE_STAGING_URL,
    tag: str = _TAG,
    token: str = _TOKEN,
    history_limit: int = _HISTORY_LIMIT,
    dry_run: bool = _DRY_RUN,
    body_file: Path = _BODY_FILE,
) -> None:
    """Record that a build failed."""
    _report(
        BuildPhase.FAILED,
        repository=repository, sha=sha, run_id=run_id, job_id=job_id,
        job_name=job_name, pr=pr, branch=branch, base_branch=base_branch,
        build_time=build_time, base_staging_url=base_staging_url, tag=tag,
        token=token, history_limit=history_limit, dry_run=dry_run,
        body_file=body_file,
    )
