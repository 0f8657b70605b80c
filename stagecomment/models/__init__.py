"""stagecomment data models — all Pydantic v2, all frozen (immutable)."""

from stagecomment.models.entry import (
    GLYPH_STATUSES,
    PLACEHOLDER,
    STATUS_GLYPHS,
    BuildEntry,
    BuildGlyph,
    BuildStatus,
    LedgerState,
)
from stagecomment.models.events import BuildContext, BuildPhase

__all__ = [
    # entry
    "BuildStatus",
    "BuildGlyph",
    "STATUS_GLYPHS",
    "GLYPH_STATUSES",
    "PLACEHOLDER",
    "BuildEntry",
    "LedgerState",
    # events
    "BuildPhase",
    "BuildContext",
]
