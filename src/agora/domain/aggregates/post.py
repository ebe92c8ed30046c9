"""Aggregate representing a community post."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from agora.domain import errors, events
from agora.domain.utils import check_text_length, strip_html_tags, utc_now

from .base import ArchivableAggregate

# pylint: disable=too-many-arguments,too-many-instance-attributes,too-many-locals


@dataclass(frozen=True, slots=True)
class PostRecord:
    """Persisted state of a post."""

    id: str
    community_id: str
    author_id: str
    title: str
    content: str
    is_pinned: bool
    is_solved: bool
    like_count: int
    helpful_count: int
    comment_count: int
    view_count: int
    published_at: datetime | None
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None
    version: int = 0


class Post(ArchivableAggregate):
    """A post in a community. Starts as a draft until published."""

    RECORD_TYPE = PostRecord
    ENTITY_NAME = "Post"

    def __init__(
        self,
        aggregate_id: str,
        community_id: str,
        author_id: str,
        title: str,
        content: str,
        is_pinned: bool,
        is_solved: bool,
        like_count: int,
        helpful_count: int,
        comment_count: int,
        view_count: int,
        published_at: datetime | None,
        created_at: datetime,
        updated_at: datetime,
        deleted_at: datetime | None = None,
        version: int = 0,
    ) -> None:
        super().__init__(aggregate_id, created_at, updated_at, deleted_at, version)
        _validate_title(title)
        _validate_content(content)
        self._community_id = community_id
        self._author_id = author_id
        self._title = title
        self._content = content
        self._is_pinned = is_pinned
        self._is_solved = is_solved
        self._like_count = like_count
        self._helpful_count = helpful_count
        self._comment_count = comment_count
        self._view_count = view_count
        self._published_at = published_at

    # --- Construction Paths ---

    @classmethod
    def create(
        cls,
        aggregate_id: str,
        community_id: str,
        author_id: str,
        title: str,
        content: str,
    ) -> "Post":
        """Create a new draft post.

        Raises:
            ValidationError: If the title or content is invalid.
        """
        now = utc_now()
        post = cls(
            aggregate_id,
            community_id=community_id,
            author_id=author_id,
            title=title,
            content=content,
            is_pinned=False,
            is_solved=False,
            like_count=0,
            helpful_count=0,
            comment_count=0,
            view_count=0,
            published_at=None,
            created_at=now,
            updated_at=now,
        )
        post._record(
            events.PostCreated(
                post_id=aggregate_id,
                community_id=community_id,
                author_id=author_id,
                title=title,
            )
        )
        return post

    # --- Properties ---

    @property
    def community_id(self) -> str:
        return self._community_id

    @property
    def author_id(self) -> str:
        return self._author_id

    @property
    def title(self) -> str:
        return self._title

    @property
    def content(self) -> str:
        return self._content

    @property
    def is_pinned(self) -> bool:
        return self._is_pinned

    @property
    def is_solved(self) -> bool:
        return self._is_solved

    @property
    def like_count(self) -> int:
        return self._like_count

    @property
    def helpful_count(self) -> int:
        return self._helpful_count

    @property
    def comment_count(self) -> int:
        return self._comment_count

    @property
    def view_count(self) -> int:
        return self._view_count

    @property
    def published_at(self) -> datetime | None:
        return self._published_at

    @property
    def is_draft(self) -> bool:
        return self._published_at is None

    @property
    def is_published(self) -> bool:
        return self._published_at is not None

    # --- State Transitions ---

    def update(self, *, title: str | None = None, content: str | None = None) -> None:
        """Change the title and/or content.

        Raises:
            ArchivedEntityError: If the post is archived.
            ValidationError: If a supplied field is invalid.
        """
        self.ensure_not_archived()
        changes: dict[str, Any] = {}
        if title is not None:
            _validate_title(title)
            changes["title"] = title
        if content is not None:
            _validate_content(content)
            changes["content"] = content
        self._title = changes.get("title", self._title)
        self._content = changes.get("content", self._content)
        self._touch()
        self._record(events.PostUpdated(post_id=self.id, changes=changes))

    def publish(self) -> None:
        """Publish a draft post.

        Raises:
            ArchivedEntityError: If the post is archived.
            InvalidTransitionError: If the post is already published.
        """
        self.ensure_not_archived()
        if self.is_published:
            raise errors.InvalidTransitionError("Post is already published")
        _validate_title(self._title)
        _validate_content(self._content)
        self._published_at = utc_now()
        self._updated_at = self._published_at
        self._record(
            events.PostPublished(
                post_id=self.id,
                community_id=self._community_id,
                author_id=self._author_id,
                published_at=self._published_at,
            )
        )

    def pin(self) -> None:
        self.ensure_not_archived()
        self._ensure_published()
        if self._is_pinned:
            raise errors.InvalidTransitionError("Post is already pinned")
        self._is_pinned = True
        self._touch()
        self._record(events.PostPinned(post_id=self.id))

    def unpin(self) -> None:
        self.ensure_not_archived()
        if not self._is_pinned:
            raise errors.InvalidTransitionError("Post is not pinned")
        self._is_pinned = False
        self._touch()
        self._record(events.PostUnpinned(post_id=self.id))

    def mark_solved(self) -> None:
        self.ensure_not_archived()
        self._ensure_published()
        if self._is_solved:
            raise errors.InvalidTransitionError("Post is already marked as solved")
        self._is_solved = True
        self._touch()
        self._record(events.PostSolved(post_id=self.id))

    def mark_unsolved(self) -> None:
        self.ensure_not_archived()
        if not self._is_solved:
            raise errors.InvalidTransitionError("Post is not marked as solved")
        self._is_solved = False
        self._touch()
        self._record(events.PostUnsolved(post_id=self.id))

    # --- Counters ---

    def increment_like_count(self) -> None:
        self.ensure_not_archived()
        self._like_count += 1
        self._touch()

    def decrement_like_count(self) -> None:
        """Decrease the like count, never going below zero."""
        self.ensure_not_archived()
        if self._like_count > 0:
            self._like_count -= 1
            self._touch()

    def increment_helpful_count(self) -> None:
        self.ensure_not_archived()
        self._helpful_count += 1
        self._touch()

    def increment_comment_count(self) -> None:
        self.ensure_not_archived()
        self._comment_count += 1
        self._touch()

    def decrement_comment_count(self) -> None:
        """Decrease the comment count, never going below zero."""
        self.ensure_not_archived()
        if self._comment_count > 0:
            self._comment_count -= 1
            self._touch()

    def increment_view_count(self) -> None:
        self.ensure_not_archived()
        self._view_count += 1
        self._touch()

    # --- Lifecycle Events ---

    def _archived_event(self) -> events.DomainEvent:
        return events.PostArchived(post_id=self.id)

    def _restored_event(self) -> events.DomainEvent:
        return events.PostRestored(post_id=self.id)

    # --- Internal Helpers ---

    def _ensure_published(self) -> None:
        if not self.is_published:
            raise errors.InvalidTransitionError(
                "Cannot perform this action on unpublished post"
            )


def _validate_title(title: str) -> None:
    check_text_length(title, "Post title", minimum=3, maximum=200)


def _validate_content(content: str) -> None:
    if not content or not content.strip():
        raise errors.ValidationError("Post content is required")
    if len(strip_html_tags(content).strip()) < 10:
        raise errors.ValidationError("Post content must be at least 10 characters")
