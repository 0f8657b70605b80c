"""Ledger reconciliation — fold one new BuildEntry into the prior state.

Matching is by commit id, not by position.  The started / succeeded /
failed invocations for one commit therefore converge on a single row no
matter which of them actually fire, or in which order.

Rules
-----
1. No prior state: the entry becomes the whole ledger.
2. Same commit as the head: the head is replaced, history untouched.
3. Same commit as a history entry: that entry is replaced in place.
4. New commit: the entry becomes the head and the old head is pushed to
   the front of the history.

Everything here is a pure function over frozen models.
"""

from __future__ import annotations

from enum import Enum

from stagecomment.models.entry import BuildEntry, LedgerState


class ReconcileOutcome(str, Enum):
    """Which reconciliation rule applied."""

    CREATED = "created"
    UPDATED_HEAD = "updated_head"
    UPDATED_HISTORY = "updated_history"
    PROMOTED = "promoted"


def classify(entry: BuildEntry, prior: LedgerState | None) -> ReconcileOutcome:
    """Report which rule ``reconcile`` would apply to *entry*."""
    if prior is None:
        return ReconcileOutcome.CREATED
    if prior.latest.commit_short_id == entry.commit_short_id:
        return ReconcileOutcome.UPDATED_HEAD
    if prior.find(entry.commit_short_id) is not None:
        return ReconcileOutcome.UPDATED_HISTORY
    return ReconcileOutcome.PROMOTED


def cap_history(state: LedgerState, limit: int) -> LedgerState:
    """Keep only the *limit* most recent history entries."""
    if limit < 0:
        raise ValueError(f"History limit cannot be negative: {limit}")
    if len(state.history) <= limit:
        return state
    return state.model_copy(update={"history": state.history[:limit]})


def reconcile(
    entry: BuildEntry,
    prior: LedgerState | None = None,
    *,
    history_limit: int | None = None,
) -> LedgerState:
    """Return the ledger that results from reporting *entry*.

    Parameters
    ----------
    entry:
        The newly observed build entry.
    prior:
        The decoded ledger, or None on the first run.
    history_limit:
        Optional cap on the history length.  Retention is unbounded
        unless this is given.
    """
    outcome = classify(entry, prior)

    if outcome is ReconcileOutcome.CREATED:
        state = LedgerState(latest=entry)
    elif outcome is ReconcileOutcome.UPDATED_HEAD:
        state = LedgerState(latest=entry, history=prior.history)
    elif outcome is ReconcileOutcome.UPDATED_HISTORY:
        history = tuple(
            entry if e.commit_short_id == entry.commit_short_id else e
            for e in prior.history
        )
        state = LedgerState(latest=prior.latest, history=history)
    else:
        state = LedgerState(latest=entry, history=(prior.latest, *prior.history))

    if history_limit is not None:
        state = cap_history(state, history_limit)
    return state
