"""Ledger codec — LedgerState <-> Markdown table inside a comment body.

The comment body is the only durable copy of the ledger, so the table is
treated as a strict grammar with a parser/printer pair:

- ``render_row`` and ``parse_row`` are exact inverses.
- ``parse`` is all-or-nothing.  A single bad row fails the whole document;
  a corrupted ledger is never silently truncated.
- The placeholder token ``~`` stands for an absent optional value and is
  never confused with an empty string.

Table layout (one row per build, fixed column order)::

    | | Status | Url | Commit | Started at | Duration | Job |
    |-|-|-|-|-|-|-|
    | 🟢 | Success | [link](https://…) | [`abc1234`](https://…) | Oct 18 at 3:04:05 PM | 1m 2s | [link](https://…) |
"""

from __future__ import annotations

import re

from pydantic import ValidationError

from stagecomment.models.entry import (
    GLYPH_STATUSES,
    PLACEHOLDER,
    BuildEntry,
    BuildGlyph,
    BuildStatus,
    LedgerState,
)


# ---------------------------------------------------------------------------
# Grammar constants
# ---------------------------------------------------------------------------

SENTINEL_PREFIX = "ci/staging-comment-action"
HEADER_ROW = "| | Status | Url | Commit | Started at | Duration | Job |"
SEPARATOR_ROW = "|-|-|-|-|-|-|-|"
NULL_TOKEN = PLACEHOLDER
COLUMN_COUNT = 7
LINK_TEXT = "link"
DETAILS_HEADING = "#### Build details"
NO_PREVIOUS_BUILDS = "No previous builds found"

_ROW_PATTERN = re.compile(r"^\|.+\|$")
_LINE_SPLIT = re.compile(r"\r?\n")
# Display text never contains brackets, so the first "](" ends it.
_LINK_PATTERN = re.compile(r"^\[([^\[\]]*)\]\((.*)\)$")

# Literal non-breaking hyphen, as it appears once the entity is decoded.
_STATUS_ALIASES: dict[str, BuildStatus] = {
    "In\u2011progress": BuildStatus.IN_PROGRESS,
}


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class LedgerCodecError(ValueError):
    """Base class for ledger encode/decode failures.

    ``raw`` holds the offending text (a row, a cell or a whole body).
    """

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class MalformedLedgerError(LedgerCodecError):
    """A table row has the wrong cell count, a bad link or an unknown token."""


class EmptyLedgerError(LedgerCodecError):
    """The body carries the sentinel but no build rows."""


class LedgerEncodeError(LedgerCodecError):
    """A state or narrative cannot be written without breaking the grammar."""


# ---------------------------------------------------------------------------
# Sentinel
# ---------------------------------------------------------------------------


def sentinel(tag: str | None = None) -> str:
    """Return the hidden HTML comment that marks a ledger-owned body.

    A tag scopes the ledger so several can live on the same pull request.
    """
    if not tag:
        return f"<!-- {SENTINEL_PREFIX} -->"
    if "-->" in tag or "\n" in tag or "\r" in tag or tag != tag.strip():
        raise ValueError(f"Invalid ledger tag: {tag!r}")
    return f"<!-- {SENTINEL_PREFIX}-{tag} -->"


def is_ledger_comment(body: str, tag: str | None = None) -> bool:
    """Whether *body* belongs to the ledger scoped by *tag*.

    The closing ``-->`` is part of the match, so the untagged sentinel and
    every tagged one are mutually exclusive.
    """
    return body.strip().startswith(sentinel(tag))


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------


def is_table_row(line: str) -> bool:
    """Whether a line is a build row (header and separator excluded)."""
    stripped = line.strip()
    if stripped in (HEADER_ROW, SEPARATOR_ROW):
        return False
    return bool(_ROW_PATTERN.match(stripped))


def parse_link(markdown: str) -> tuple[str, str]:
    """Split an inline ``[text](url)`` link into ``(text, url)``."""
    match = _LINK_PATTERN.match(markdown)
    if match is None:
        raise MalformedLedgerError(
            f"Unable to parse markdown link {markdown!r}", raw=markdown
        )
    return match.group(1), match.group(2)


def _parse_status(glyph_cell: str, status_cell: str, line: str) -> BuildStatus:
    try:
        glyph = BuildGlyph(glyph_cell.replace("\ufe0f", ""))
    except ValueError:
        raise MalformedLedgerError(
            f"Unrecognized status glyph {glyph_cell!r}", raw=line
        ) from None

    try:
        status = BuildStatus(status_cell)
    except ValueError:
        status = _STATUS_ALIASES.get(status_cell)  # type: ignore[assignment]
        if status is None:
            raise MalformedLedgerError(
                f"Unrecognized build status {status_cell!r}", raw=line
            ) from None

    if GLYPH_STATUSES[glyph] is not status:
        raise MalformedLedgerError(
            f"Status glyph {glyph_cell!r} disagrees with status {status_cell!r}",
            raw=line,
        )
    return status


def _optional(cell: str) -> str | None:
    return None if cell == NULL_TOKEN else cell


def _required(cell: str, column: str, line: str) -> str:
    if cell == NULL_TOKEN:
        raise MalformedLedgerError(
            f"Column {column!r} may not hold the placeholder {NULL_TOKEN!r}",
            raw=line,
        )
    return cell


def parse_row(line: str) -> BuildEntry:
    """Parse one table row into a BuildEntry.

    Raises
    ------
    MalformedLedgerError
        Wrong cell count, unparseable link, unknown glyph/status, or a
        value the entry model rejects.
    """
    stripped = line.strip()
    if not _ROW_PATTERN.match(stripped):
        raise MalformedLedgerError(f"Not a table row: {line!r}", raw=line)

    cells = [cell.strip() for cell in stripped[1:-1].split("|")]
    if len(cells) != COLUMN_COUNT:
        raise MalformedLedgerError(
            f"Incorrect number of cells in build entry "
            f"(expected {COLUMN_COUNT}, got {len(cells)}): {cells!r}",
            raw=line,
        )

    glyph_cell, status_cell, deploy_cell, commit_cell, started, duration, run_cell = cells
    status = _parse_status(glyph_cell, status_cell, line)

    deploy_url: str | None = None
    if _optional(deploy_cell) is not None:
        _, deploy_url = parse_link(deploy_cell)

    commit_text, commit_link = parse_link(_required(commit_cell, "Commit", line))
    if len(commit_text) >= 2 and commit_text.startswith("`") and commit_text.endswith("`"):
        commit_text = commit_text[1:-1]

    _, run_link = parse_link(_required(run_cell, "Job", line))

    try:
        return BuildEntry(
            status=status,
            commit_short_id=commit_text,
            commit_link=commit_link,
            deploy_url=deploy_url,
            started_at=_required(started, "Started at", line),
            build_duration=_optional(duration),
            run_link=run_link,
        )
    except ValidationError as exc:
        raise MalformedLedgerError(
            f"Invalid build entry {line!r}: {exc.errors()[0]['msg']}", raw=line
        ) from exc


def parse(body: str) -> LedgerState:
    """Decode a ledger comment body into a LedgerState.

    The first row is the head entry; the remaining rows, in document
    order, are the history.

    Raises
    ------
    MalformedLedgerError
        Any row fails to parse, or two rows share a commit id.
    EmptyLedgerError
        No build rows were found.
    """
    entries = [
        parse_row(line) for line in _LINE_SPLIT.split(body) if is_table_row(line)
    ]
    if not entries:
        raise EmptyLedgerError("Too few build entries parsed from comment", raw=body)

    try:
        return LedgerState(latest=entries[0], history=tuple(entries[1:]))
    except ValidationError as exc:
        raise MalformedLedgerError(
            f"Inconsistent ledger: {exc.errors()[0]['msg']}", raw=body
        ) from exc


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------


def link(text: str, url: str) -> str:
    """Construct an inline Markdown link."""
    return f"[{text}]({url})"


def render_row(entry: BuildEntry) -> str:
    """Render one BuildEntry as a table row (inverse of ``parse_row``)."""
    cells = [
        entry.glyph.value,
        entry.status.value,
        link(LINK_TEXT, entry.deploy_url) if entry.deploy_url is not None else NULL_TOKEN,
        link(f"`{entry.commit_short_id}`", entry.commit_link),
        entry.started_at,
        entry.build_duration if entry.build_duration is not None else NULL_TOKEN,
        link(LINK_TEXT, entry.run_link),
    ]
    return "| " + " | ".join(cells) + " |"


def _check_narrative(narrative: str) -> None:
    for line in _LINE_SPLIT.split(narrative):
        stripped = line.strip()
        if stripped.startswith("|") or stripped.startswith(f"<!-- {SENTINEL_PREFIX}"):
            raise LedgerEncodeError(
                f"Narrative line would be read back as ledger markup: {line!r}",
                raw=narrative,
            )


def _previous_builds(history: tuple[BuildEntry, ...]) -> str:
    if not history:
        return NO_PREVIOUS_BUILDS
    return "\n".join([HEADER_ROW, SEPARATOR_ROW, *(render_row(e) for e in history)])


def render(state: LedgerState, *, narrative: str = "", tag: str | None = None) -> str:
    """Encode a LedgerState as a complete comment body.

    Parameters
    ----------
    state:
        The ledger to render.
    narrative:
        Human-readable paragraph placed between the sentinel and the table.
    tag:
        Optional ledger scope, embedded in the sentinel line.
    """
    narrative = narrative.strip()
    _check_narrative(narrative)

    parts = [sentinel(tag)]
    if narrative:
        parts.append(narrative + "\n")
    parts.extend([
        DETAILS_HEADING,
        "",
        HEADER_ROW,
        SEPARATOR_ROW,
        render_row(state.latest),
        "",
        "<details><summary>Previous builds</summary>",
        "<p>",
        "",
        _previous_builds(state.history),
        "",
        "</p>",
        "</details>",
    ])
    return "\n".join(parts)
