"""Build ledger models — one row per build attempt, keyed by commit.

The ledger is persisted only as a Markdown table inside a comment body.
These models are the structured side of that table: frozen, validated on
construction, and free of anything the table grammar cannot carry.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class BuildStatus(str, Enum):
    """Lifecycle outcome of one build attempt (value is the table cell text)."""

    IN_PROGRESS = "In&#8209;progress"
    SUCCESS = "Success"
    FAILURE = "Failure"


class BuildGlyph(str, Enum):
    """Status indicator rendered in the first column."""

    IN_PROGRESS = "🟡"
    SUCCESS = "🟢"
    FAILURE = "🔴"


STATUS_GLYPHS: dict[BuildStatus, BuildGlyph] = {
    BuildStatus.IN_PROGRESS: BuildGlyph.IN_PROGRESS,
    BuildStatus.SUCCESS: BuildGlyph.SUCCESS,
    BuildStatus.FAILURE: BuildGlyph.FAILURE,
}

GLYPH_STATUSES: dict[BuildGlyph, BuildStatus] = {
    glyph: status for status, glyph in STATUS_GLYPHS.items()
}

# Reserved cell text for an absent optional value.
PLACEHOLDER = "~"

# Characters that would break a table cell or the link grammar.
_CELL_FORBIDDEN = ("|", "\n", "\r")
_KEY_FORBIDDEN = ("`", "[", "]", "(", ")")


def _check_cell(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    if value != value.strip():
        raise ValueError("must not have surrounding whitespace")
    if value == PLACEHOLDER:
        raise ValueError(f"{PLACEHOLDER!r} is reserved for absent values")
    for char in _CELL_FORBIDDEN:
        if char in value:
            raise ValueError(f"must not contain {char!r}")
    return value


class BuildEntry(BaseModel):
    """A single ledger row describing one build attempt.

    ``commit_short_id`` is the identity key: two entries with the same
    short id describe the same build attempt at different phases.
    The glyph is derived from ``status`` and is never stored separately.
    """

    model_config = ConfigDict(frozen=True)

    status: BuildStatus
    commit_short_id: str = Field(min_length=1)
    commit_link: str
    deploy_url: str | None = None  # only when an artifact was published
    started_at: str
    build_duration: str | None = None  # only once the build has finished
    run_link: str

    @field_validator(
        "commit_link", "deploy_url", "started_at", "build_duration", "run_link"
    )
    @classmethod
    def _valid_cell(cls, value: str | None) -> str | None:
        if value is None:
            return value
        return _check_cell(value)

    @field_validator("commit_short_id")
    @classmethod
    def _valid_key(cls, value: str) -> str:
        _check_cell(value)
        if any(char.isspace() for char in value):
            raise ValueError("commit id must not contain whitespace")
        for char in _KEY_FORBIDDEN:
            if char in value:
                raise ValueError(f"commit id must not contain {char!r}")
        return value

    @property
    def glyph(self) -> BuildGlyph:
        return STATUS_GLYPHS[self.status]


class LedgerState(BaseModel):
    """The full ledger: the head entry plus older entries, newest first.

    No two entries (head included) may share a ``commit_short_id``.
    """

    model_config = ConfigDict(frozen=True)

    latest: BuildEntry
    history: tuple[BuildEntry, ...] = ()

    @model_validator(mode="after")
    def _unique_keys(self) -> LedgerState:
        seen: set[str] = set()
        for entry in self.entries:
            if entry.commit_short_id in seen:
                raise ValueError(
                    f"duplicate commit id in ledger: {entry.commit_short_id!r}"
                )
            seen.add(entry.commit_short_id)
        return self

    @property
    def entries(self) -> tuple[BuildEntry, ...]:
        """All entries in document order (head first)."""
        return (self.latest, *self.history)

    @property
    def keys(self) -> list[str]:
        return [entry.commit_short_id for entry in self.entries]

    def find(self, commit_short_id: str) -> BuildEntry | None:
        """Return the entry for a commit id, or None."""
        for entry in self.entries:
            if entry.commit_short_id == commit_short_id:
                return entry
        return None
