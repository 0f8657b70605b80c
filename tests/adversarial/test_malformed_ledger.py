"""Adversarial tests — hand-edited and hostile ledger comments.

These tests verify that the ledger:
1. Refuses to decode comments whose table was damaged by hand
2. Never overwrites a comment it could not decode
3. Keeps injected text out of the table grammar
4. Keeps ledgers with different tags apart
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from stagecomment.bridge.store import InMemoryCommentStore
from stagecomment.core import codec
from stagecomment.core.codec import (
    LedgerCodecError,
    LedgerEncodeError,
    MalformedLedgerError,
)
from stagecomment.core.updater import LedgerUpdater
from stagecomment.models.entry import LedgerState


class TestHandEditedComments:
    """Users can edit the comment; damaged tables must be rejected whole."""

    @pytest.fixture
    def body(self, make_state) -> str:
        return codec.render(make_state("aaa1111", "bbb2222", "ccc3333"), narrative="Hi.")

    def _replace_row(self, body: str, index: int, row: str) -> str:
        lines = body.split("\n")
        rows = [i for i, line in enumerate(lines) if codec.is_table_row(line)]
        lines[rows[index]] = row
        return "\n".join(lines)

    @pytest.mark.parametrize(
        "row",
        [
            "| 🟢 | Success | ~ | [x](y) | z |",
            "| 🟢 | Success | ~ | [x](y) | z | ~ | [r](s) | extra |",
            "| 🟢 | Success | ~ | x | Oct 18 | ~ | [r](s) |",
            "| 🟢 | Done | ~ | [x](y) | Oct 18 | ~ | [r](s) |",
            "| ⚪ | Success | ~ | [x](y) | Oct 18 | ~ | [r](s) |",
            "| 🟢 | Success | ~ | [x](y) | ~ | ~ | [r](s) |",
            "| 🟢 | Success | ~ | [x y](z) | Oct 18 | ~ | [r](s) |",
        ],
    )
    def test_damaged_history_row(self, body, row):
        with pytest.raises(MalformedLedgerError):
            codec.parse(self._replace_row(body, -1, row))

    def test_damaged_head_row(self, body):
        with pytest.raises(MalformedLedgerError):
            codec.parse(self._replace_row(body, 0, "| broken |"))

    def test_copied_row_is_a_duplicate(self, body):
        lines = body.split("\n")
        row = next(line for line in lines if "aaa1111" in line and codec.is_table_row(line))
        with pytest.raises(MalformedLedgerError, match="Inconsistent"):
            codec.parse(body + "\n" + row)

    def test_every_codec_error_carries_raw_text(self, body):
        damaged = self._replace_row(body, -1, "| nope |")
        with pytest.raises(LedgerCodecError) as excinfo:
            codec.parse(damaged)
        assert excinfo.value.raw

    def test_damaged_comment_is_never_overwritten(self, body, make_entry):
        damaged = self._replace_row(body, -1, "| nope |")
        store = InMemoryCommentStore([damaged])
        updater = LedgerUpdater(store)
        for key in ["aaa1111", "ddd4444"]:
            with pytest.raises(MalformedLedgerError):
                updater.apply(make_entry(key))
        assert [c.body for c in store.list_comments()] == [damaged]


class TestInjection:
    """Values that would change the table structure are refused up front."""

    @pytest.mark.parametrize("field", ["started_at", "run_link", "commit_link"])
    def test_pipe_in_cell(self, make_entry, field):
        with pytest.raises(ValidationError):
            make_entry(**{field: "a | b"})

    def test_newline_in_deploy_url(self, make_entry):
        with pytest.raises(ValidationError):
            make_entry(deploy_url="https://x/\n| 🟢 |")

    def test_placeholder_as_value(self, make_entry):
        with pytest.raises(ValidationError):
            make_entry(build_duration="~")

    def test_narrative_cannot_forge_rows_or_sentinels(self, make_state):
        state = make_state("aaa1111")
        for narrative in ["| 🟢 | Success |", "x\n<!-- ci/staging-comment-action-other -->"]:
            with pytest.raises(LedgerEncodeError):
                codec.render(state, narrative=narrative)

    def test_narrative_with_inline_pipe_is_fine(self, make_state):
        state = make_state("aaa1111", "bbb2222")
        body = codec.render(state, narrative="Preview a | b, see below.")
        assert codec.parse(body) == state


class TestTagIsolation:
    def test_foreign_ledger_is_left_alone(self, make_entry):
        foreign = codec.render(LedgerState(latest=make_entry("zzz0000")), tag="other")
        store = InMemoryCommentStore([foreign])
        LedgerUpdater(store, tag="mine").apply(make_entry("aaa1111"))
        assert store.get(1).body == foreign
        assert len(store.list_comments()) == 2

    def test_damaged_foreign_ledger_does_not_block(self, make_entry):
        store = InMemoryCommentStore([codec.sentinel("other") + "\n| junk |"])
        result = LedgerUpdater(store, tag="mine").apply(make_entry("aaa1111"))
        assert result.action == "created"
