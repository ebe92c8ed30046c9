"""Aggregate representing a comment on a post."""

from dataclasses import dataclass
from datetime import datetime

from agora.domain import errors, events
from agora.domain.utils import strip_html_tags, utc_now

from .base import ArchivableAggregate

# pylint: disable=too-many-arguments

MAX_CONTENT_LENGTH = 5000


@dataclass(frozen=True, slots=True)
class CommentRecord:
    """Persisted state of a comment."""

    id: str
    post_id: str
    author_id: str
    parent_id: str | None
    content: str
    like_count: int
    helpful_count: int
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None
    version: int = 0


class Comment(ArchivableAggregate):
    """A comment on a post, or a reply to another comment.

    Threads are two levels deep at most; the add-comment use case refuses a
    reply to a reply.
    """

    RECORD_TYPE = CommentRecord
    ENTITY_NAME = "Comment"

    def __init__(
        self,
        aggregate_id: str,
        post_id: str,
        author_id: str,
        parent_id: str | None,
        content: str,
        like_count: int,
        helpful_count: int,
        created_at: datetime,
        updated_at: datetime,
        deleted_at: datetime | None = None,
        version: int = 0,
    ) -> None:
        super().__init__(aggregate_id, created_at, updated_at, deleted_at, version)
        _validate_content(content)
        self._post_id = post_id
        self._author_id = author_id
        self._parent_id = parent_id
        self._content = content
        self._like_count = like_count
        self._helpful_count = helpful_count

    @classmethod
    def create(
        cls,
        aggregate_id: str,
        post_id: str,
        author_id: str,
        content: str,
        parent_id: str | None = None,
    ) -> "Comment":
        now = utc_now()
        comment = cls(
            aggregate_id,
            post_id=post_id,
            author_id=author_id,
            parent_id=parent_id,
            content=content,
            like_count=0,
            helpful_count=0,
            created_at=now,
            updated_at=now,
        )
        comment._record(
            events.CommentCreated(
                comment_id=aggregate_id,
                post_id=post_id,
                author_id=author_id,
                parent_id=parent_id,
                content=content,
            )
        )
        return comment

    # --- Properties ---

    @property
    def post_id(self) -> str:
        return self._post_id

    @property
    def author_id(self) -> str:
        return self._author_id

    @property
    def parent_id(self) -> str | None:
        return self._parent_id

    @property
    def content(self) -> str:
        return self._content

    @property
    def like_count(self) -> int:
        return self._like_count

    @property
    def helpful_count(self) -> int:
        return self._helpful_count

    @property
    def is_reply(self) -> bool:
        return self._parent_id is not None

    @property
    def is_top_level(self) -> bool:
        return self._parent_id is None

    # --- State Transitions ---

    def update(self, content: str) -> None:
        self.ensure_not_archived()
        _validate_content(content)
        self._content = content
        self._touch()
        self._record(events.CommentUpdated(comment_id=self.id, post_id=self._post_id))

    def increment_like_count(self) -> None:
        self.ensure_not_archived()
        self._like_count += 1
        self._touch()

    def decrement_like_count(self) -> None:
        self.ensure_not_archived()
        if self._like_count > 0:
            self._like_count -= 1
            self._touch()

    def increment_helpful_count(self) -> None:
        self.ensure_not_archived()
        self._helpful_count += 1
        self._touch()

    # --- Lifecycle Events ---

    def _archived_event(self) -> events.DomainEvent:
        return events.CommentArchived(comment_id=self.id, post_id=self._post_id)

    def _restored_event(self) -> events.DomainEvent:
        return events.CommentRestored(comment_id=self.id, post_id=self._post_id)


def _validate_content(content: str) -> None:
    if not content or not content.strip():
        raise errors.ValidationError("Comment content is required")
    if len(strip_html_tags(content).strip()) < 1:
        raise errors.ValidationError("Comment content must be at least 1 character")
    if len(content) > MAX_CONTENT_LENGTH:
        raise errors.ValidationError(
            f"Comment content must not exceed {MAX_CONTENT_LENGTH} characters"
        )
