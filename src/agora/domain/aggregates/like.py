"""Aggregate representing a like on a post or a comment."""

from dataclasses import dataclass
from datetime import datetime

from agora.domain import errors, events
from agora.domain.utils import utc_now

from .base import Aggregate


@dataclass(frozen=True, slots=True)
class LikeRecord:
    """Persisted state of a like."""

    id: str
    user_id: str
    post_id: str | None
    comment_id: str | None
    created_at: datetime
    version: int = 0


class Like(Aggregate):
    """A user's like of exactly one post or one comment.

    Likes are never archived; unliking deletes the like outright.
    """

    RECORD_TYPE = LikeRecord
    ENTITY_NAME = "Like"

    def __init__(
        self,
        aggregate_id: str,
        user_id: str,
        post_id: str | None,
        comment_id: str | None,
        created_at: datetime,
        version: int = 0,
    ) -> None:
        super().__init__(aggregate_id, created_at, version)
        if not post_id and not comment_id:
            raise errors.ValidationError(
                "Like must be associated with either a post or a comment"
            )
        if post_id and comment_id:
            raise errors.ValidationError(
                "Like cannot be associated with both a post and a comment"
            )
        self._user_id = user_id
        self._post_id = post_id
        self._comment_id = comment_id

    # --- Construction Paths ---

    @classmethod
    def create_for_post(cls, aggregate_id: str, user_id: str, post_id: str) -> "Like":
        if not post_id:
            raise errors.ValidationError("Post ID is required when liking a post")
        like = cls(aggregate_id, user_id, post_id, None, utc_now())
        like._record_created()
        return like

    @classmethod
    def create_for_comment(
        cls, aggregate_id: str, user_id: str, comment_id: str
    ) -> "Like":
        if not comment_id:
            raise errors.ValidationError(
                "Comment ID is required when liking a comment"
            )
        like = cls(aggregate_id, user_id, None, comment_id, utc_now())
        like._record_created()
        return like

    # --- Properties ---

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def post_id(self) -> str | None:
        return self._post_id

    @property
    def comment_id(self) -> str | None:
        return self._comment_id

    @property
    def is_post_like(self) -> bool:
        return self._post_id is not None

    @property
    def is_comment_like(self) -> bool:
        return self._comment_id is not None

    @property
    def target_id(self) -> str:
        """ID of the liked post or comment."""
        return self._post_id or self._comment_id or ""

    @property
    def target_type(self) -> str:
        return "post" if self.is_post_like else "comment"

    def _record_created(self) -> None:
        self._record(
            events.LikeCreated(
                like_id=self.id,
                user_id=self._user_id,
                post_id=self._post_id,
                comment_id=self._comment_id,
            )
        )
