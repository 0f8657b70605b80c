"""Narrative paragraph shown above the build table.

The wording follows the head entry's status, so a late event that only
patches a history row leaves the paragraph unchanged.
"""

from __future__ import annotations

from stagecomment.core.codec import link
from stagecomment.models.entry import BuildStatus, LedgerState


def _subject(pr_id: str | None) -> str:
    return f"this Pull Request (#{pr_id})" if pr_id else "this commit"


def narrative_for(
    state: LedgerState,
    *,
    pr_id: str | None = None,
    preview_url: str | None = None,
    unreachable: bool = False,
) -> str:
    """Return the paragraph describing the head build of *state*.

    *unreachable* is set only when a published preview failed its
    reachability check; a success without any preview url is described
    without a link.
    """
    latest = state.latest
    subject = _subject(pr_id)
    url = preview_url or latest.deploy_url

    if latest.status is BuildStatus.FAILURE:
        return (
            "There was an error building a deploy preview for the last commit.\n"
            "For more details, check the output of the action run "
            f"{link('here', latest.run_link)}."
        )

    if latest.status is BuildStatus.SUCCESS:
        if unreachable:
            return (
                f"A deploy preview was built for {subject},\n"
                "but the preview could not be reached."
            )
        if url is None:
            return f"A deploy preview has been created for {subject}."
        return (
            f"A deploy preview has been created for {subject},\n"
            f"which is available at {url}."
        )

    if url is None:
        return f"A deploy preview is being created for {subject}."
    return (
        f"A deploy preview is being created for {subject},\n"
        f"which will be available at {url} once completed."
    )
