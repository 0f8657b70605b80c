"""LedgerUpdater — one decode -> reconcile -> encode -> write cycle.

Each call is the whole unit of work for one invocation.  Nothing is
cached between calls: the stored comment is re-read every time.

Decode errors propagate unchanged and nothing is written, so a corrupted
ledger is never replaced by a fresh one.  The store has no locking;
concurrent writers on the same comment race and the last write wins.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict

from stagecomment.bridge.store import CommentStore, find_ledger_comment
from stagecomment.core import codec
from stagecomment.core.events import entry_for_phase
from stagecomment.core.narrative import narrative_for
from stagecomment.core.reconciler import ReconcileOutcome, classify, reconcile
from stagecomment.models.entry import BuildEntry, LedgerState
from stagecomment.models.events import BuildContext, BuildPhase

if TYPE_CHECKING:
    from stagecomment.bridge.preview import PreviewCheck

logger = logging.getLogger(__name__)


class UpdateResult(BaseModel):
    """What a single update wrote."""

    model_config = ConfigDict(frozen=True)

    action: Literal["created", "updated"]
    comment_id: int
    outcome: ReconcileOutcome
    state: LedgerState
    body: str
    deploy_verified: bool | None = None  # None when no check ran


class LedgerUpdater:
    """Applies build entries to the ledger comment held by a store.

    Parameters
    ----------
    store:
        Where the ledger comment lives.
    tag:
        Optional ledger scope; only comments with this tag's sentinel
        are considered.
    history_limit:
        Optional cap on the number of previous builds kept.
    """

    def __init__(
        self,
        store: CommentStore,
        *,
        tag: str | None = None,
        history_limit: int | None = None,
    ) -> None:
        codec.sentinel(tag)  # reject unusable tags up front
        self._store = store
        self._tag = tag
        self._history_limit = history_limit

    @property
    def tag(self) -> str | None:
        return self._tag

    def load(self) -> LedgerState | None:
        """Decode the current ledger, or None if there is no ledger comment."""
        comment = find_ledger_comment(self._store, self._tag)
        return codec.parse(comment.body) if comment is not None else None

    def apply(
        self,
        entry: BuildEntry,
        *,
        pr_id: str | None = None,
        preview_url: str | None = None,
        unreachable: bool = False,
    ) -> UpdateResult:
        """Reconcile *entry* into the stored ledger and write it back.

        *unreachable* marks a success whose preview failed verification;
        it only changes the narrative.

        Raises
        ------
        MalformedLedgerError, EmptyLedgerError
            The existing ledger comment could not be decoded.  The stored
            comment is left untouched.
        """
        comment = find_ledger_comment(self._store, self._tag)
        prior = codec.parse(comment.body) if comment is not None else None

        outcome = classify(entry, prior)
        state = reconcile(entry, prior, history_limit=self._history_limit)
        body = codec.render(
            state,
            narrative=narrative_for(
                state, pr_id=pr_id, preview_url=preview_url, unreachable=unreachable
            ),
            tag=self._tag,
        )

        if comment is None:
            written = self._store.create(body)
            action: Literal["created", "updated"] = "created"
        else:
            written = self._store.update(comment.comment_id, body)
            action = "updated"

        logger.info(
            "Ledger %s (%s) for commit %s: %d previous build(s)",
            action,
            outcome.value,
            entry.commit_short_id,
            len(state.history),
        )
        return UpdateResult(
            action=action,
            comment_id=written.comment_id,
            outcome=outcome,
            state=state,
            body=body,
        )

    def report(
        self,
        phase: BuildPhase,
        context: BuildContext,
        *,
        duration_seconds: float | None = None,
        check: PreviewCheck | None = None,
        tz: str = "UTC",
    ) -> UpdateResult:
        """Record *phase* of the build described by *context*.

        When a check is given for a successful build, the deploy URL is
        fetched after the first write.  If it cannot be reached the entry is reconciled a second
        time without a deploy URL.
        """
        entry = entry_for_phase(
            phase, context, duration_seconds=duration_seconds, tz=tz
        )
        result = self.apply(entry, pr_id=context.pr_id, preview_url=context.preview_url)

        if phase is not BuildPhase.SUCCEEDED or check is None or entry.deploy_url is None:
            return result

        if check.reachable(entry.deploy_url):
            return result.model_copy(update={"deploy_verified": True})

        logger.warning(
            "Preview for %s is unreachable; clearing its deploy url",
            entry.commit_short_id,
        )
        cleared = entry.model_copy(update={"deploy_url": None})
        second = self.apply(
            cleared,
            pr_id=context.pr_id,
            preview_url=context.preview_url,
            unreachable=True,
        )
        return second.model_copy(update={"deploy_verified": False})
