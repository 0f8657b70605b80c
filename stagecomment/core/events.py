"""Build phase -> BuildEntry.

STARTED    In progress, deploy url points where the preview will appear.
SUCCEEDED  Success, with a formatted duration and the deploy url.
FAILED     Failure, no deploy url and no duration.

Phases are not validated against each other: the reconciler lets any
event win at its commit id.
"""

from __future__ import annotations

from stagecomment.core.formatting import format_duration, format_started_at
from stagecomment.models.entry import BuildEntry, BuildStatus
from stagecomment.models.events import BuildContext, BuildPhase

PHASE_STATUS: dict[BuildPhase, BuildStatus] = {
    BuildPhase.STARTED: BuildStatus.IN_PROGRESS,
    BuildPhase.SUCCEEDED: BuildStatus.SUCCESS,
    BuildPhase.FAILED: BuildStatus.FAILURE,
}


def entry_for_phase(
    phase: BuildPhase,
    context: BuildContext,
    *,
    duration_seconds: float | None = None,
    tz: str = "UTC",
) -> BuildEntry:
    """Build the ledger entry describing *phase* of the build in *context*."""
    deploy_url: str | None = None
    build_duration: str | None = None

    if phase is BuildPhase.STARTED:
        deploy_url = context.deploy_url
    elif phase is BuildPhase.SUCCEEDED:
        if duration_seconds is None:
            raise ValueError("A build duration is required to report success")
        deploy_url = context.deploy_url
        build_duration = format_duration(duration_seconds)

    return BuildEntry(
        status=PHASE_STATUS[phase],
        commit_short_id=context.commit_short_id,
        commit_link=context.commit_link,
        deploy_url=deploy_url,
        started_at=format_started_at(context.started_at, tz),
        build_duration=build_duration,
        run_link=context.run_link,
    )
