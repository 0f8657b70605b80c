"""End-to-end integration tests — pre / post / failure across several commits.

These tests exercise the codec, reconciler, narrative and LedgerUpdater
working together against one stored comment.
"""

from __future__ import annotations

import pytest

from stagecomment.core import codec
from stagecomment.core.reconciler import ReconcileOutcome, reconcile
from stagecomment.core.updater import LedgerUpdater
from stagecomment.models.entry import BuildStatus
from stagecomment.models.events import BuildPhase


class TestReconcileWalkthrough:
    """Started, succeeded, then a new commit starts."""

    def test_walkthrough(self, make_entry):
        state = reconcile(make_entry("abc1234", status=BuildStatus.IN_PROGRESS))
        assert state.keys == ["abc1234"]
        assert state.history == ()

        state = reconcile(
            make_entry("abc1234", status=BuildStatus.SUCCESS, build_duration="1m 2s"), state
        )
        assert state.keys == ["abc1234"]
        assert state.latest.status is BuildStatus.SUCCESS
        assert state.latest.build_duration == "1m 2s"
        assert state.history == ()

        state = reconcile(make_entry("def5678", status=BuildStatus.IN_PROGRESS), state)
        assert state.keys == ["def5678", "abc1234"]
        assert state.latest.status is BuildStatus.IN_PROGRESS
        assert state.history[0].status is BuildStatus.SUCCESS


class TestThreePhaseFlow:
    """Phases reported through the updater, decoded back from the comment."""

    @pytest.fixture
    def updater(self, store) -> LedgerUpdater:
        return LedgerUpdater(store)

    def test_full_pull_request_lifecycle(self, store, updater, make_context):
        first = make_context("abc1234aaaaaaa")
        second = make_context("def5678bbbbbbb")

        created = updater.report(BuildPhase.STARTED, first)
        assert created.outcome is ReconcileOutcome.CREATED

        updater.report(BuildPhase.SUCCEEDED, first, duration_seconds=62)
        promoted = updater.report(BuildPhase.STARTED, second)
        assert promoted.outcome is ReconcileOutcome.PROMOTED

        final = updater.report(BuildPhase.FAILED, second, duration_seconds=10)
        assert final.outcome is ReconcileOutcome.UPDATED_HEAD

        comments = store.list_comments()
        assert len(comments) == 1
        state = codec.parse(comments[0].body)
        assert state == final.state
        assert state.keys == ["def5678", "abc1234"]
        assert state.latest.status is BuildStatus.FAILURE
        assert state.latest.deploy_url is None
        assert state.history[0].status is BuildStatus.SUCCESS
        assert state.history[0].build_duration == "1m 2s"
        assert "There was an error" in comments[0].body

    def test_late_event_patches_history(self, store, updater, make_context):
        first = make_context("abc1234aaaaaaa")
        second = make_context("def5678bbbbbbb")
        updater.report(BuildPhase.STARTED, first)
        updater.report(BuildPhase.STARTED, second)

        late = updater.report(BuildPhase.SUCCEEDED, first, duration_seconds=300)
        assert late.outcome is ReconcileOutcome.UPDATED_HISTORY
        assert late.state.keys == ["def5678", "abc1234"]
        assert late.state.latest.status is BuildStatus.IN_PROGRESS
        assert late.state.history[0].build_duration == "5m 0s"
        # narrative still describes the head build
        assert "is being created" in late.body

    def test_many_commits_keep_order(self, updater, make_context):
        shas = [f"{n:07d}ffffff" for n in range(8)]
        for sha in shas:
            updater.report(BuildPhase.STARTED, make_context(sha))
        assert updater.load().keys == [sha[:7] for sha in reversed(shas)]

    def test_rerender_is_stable(self, store, updater, make_context):
        context = make_context()
        updater.report(BuildPhase.STARTED, context)
        before = store.list_comments()[0].body
        updater.report(BuildPhase.STARTED, context)
        assert store.list_comments()[0].body == before
