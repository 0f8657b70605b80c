"""Collaborators outside the ledger core — comment storage and preview checks.

Modules
-------
store
    ``CommentStore`` protocol, ``find_ledger_comment`` and the in-memory store.
github
    ``GitHubCommentStore`` over the GitHub REST API (httpx).
preview
    ``PreviewCheck`` — post-success reachability check for a preview URL.
"""

from stagecomment.bridge.preview import PreviewCheck
from stagecomment.bridge.store import (
    Comment,
    CommentStore,
    InMemoryCommentStore,
    find_ledger_comment,
)

__all__ = [
    "Comment",
    "CommentStore",
    "InMemoryCommentStore",
    "PreviewCheck",
    "find_ledger_comment",
]
