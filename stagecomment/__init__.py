"""stagecomment: a running ledger of preview builds kept in a PR comment.

Each CI invocation (build started, succeeded, failed) decodes the ledger
table from the existing comment, reconciles the new event into it by
commit id, and writes the re-rendered comment back.
"""

__version__ = "0.1.0"
__description__ = "Build/deploy ledger for pull request comments"

from stagecomment.core.codec import (
    EmptyLedgerError,
    LedgerCodecError,
    LedgerEncodeError,
    MalformedLedgerError,
    is_ledger_comment,
    parse,
    render,
)
from stagecomment.core.reconciler import reconcile
from stagecomment.core.updater import LedgerUpdater
from stagecomment.models import BuildEntry, BuildStatus, LedgerState

__all__ = [
    "BuildEntry",
    "BuildStatus",
    "LedgerState",
    "LedgerUpdater",
    "LedgerCodecError",
    "MalformedLedgerError",
    "EmptyLedgerError",
    "LedgerEncodeError",
    "is_ledger_comment",
    "parse",
    "render",
    "reconcile",
    "__version__",
]
