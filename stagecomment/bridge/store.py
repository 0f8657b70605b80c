"""Comment store protocol — where ledger comment bodies live.

The store is the only durable copy of a ledger.  It offers no locking:
two jobs writing the same comment concurrently race, and the last write
wins.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

from stagecomment.core.codec import is_ledger_comment

logger = logging.getLogger(__name__)


class Comment(BaseModel):
    """A stored comment: its id and raw body."""

    model_config = ConfigDict(frozen=True)

    comment_id: int
    body: str


@runtime_checkable
class CommentStore(Protocol):
    """Protocol every comment backend implements.

    Attributes
    ----------
    store_name : str
        Human-readable identifier (e.g. ``"github"``, ``"memory"``).
    """

    @property
    def store_name(self) -> str:
        """Return the name of this store."""
        ...

    def list_comments(self) -> list[Comment]:
        """Return all comments on the target, oldest first."""
        ...

    def create(self, body: str) -> Comment:
        """Create a new comment with *body*."""
        ...

    def update(self, comment_id: int, body: str) -> Comment:
        """Replace the body of an existing comment."""
        ...


def find_ledger_comment(store: CommentStore, tag: str | None = None) -> Comment | None:
    """Return the first comment owned by the ledger scoped by *tag*.

    Comments carrying another tag's sentinel are skipped; they belong to
    a different ledger and mean "no prior state" for this one.
    """
    for comment in store.list_comments():
        if is_ledger_comment(comment.body, tag):
            logger.debug(
                "Found ledger comment %s in %s store", comment.comment_id, store.store_name
            )
            return comment
    return None


class InMemoryCommentStore:
    """List-backed comment store for tests and dry runs."""

    def __init__(self, bodies: list[str] | None = None) -> None:
        self._comments: list[Comment] = []
        self._next_id = 1
        for body in bodies or []:
            self.create(body)

    @property
    def store_name(self) -> str:
        return "memory"

    def list_comments(self) -> list[Comment]:
        return list(self._comments)

    def create(self, body: str) -> Comment:
        comment = Comment(comment_id=self._next_id, body=body)
        self._next_id += 1
        self._comments.append(comment)
        return comment

    def update(self, comment_id: int, body: str) -> Comment:
        for index, existing in enumerate(self._comments):
            if existing.comment_id == comment_id:
                updated = existing.model_copy(update={"body": body})
                self._comments[index] = updated
                return updated
        raise KeyError(f"No comment with id {comment_id}")

    def get(self, comment_id: int) -> Comment | None:
        for comment in self._comments:
            if comment.comment_id == comment_id:
                return comment
        return None
