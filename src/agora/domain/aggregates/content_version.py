"""Aggregate representing an immutable snapshot of post or comment content."""

from dataclasses import dataclass
from datetime import datetime

from agora.domain import errors, events
from agora.domain.utils import is_int, utc_now
from agora.domain.value_objects import ContentType

from .base import Aggregate


@dataclass(frozen=True, slots=True)
class ContentVersionRecord:
    """Persisted state of a content version."""

    id: str
    content_type: ContentType
    content_id: str
    content: str
    version_number: int
    created_at: datetime
    version: int = 0


class ContentVersion(Aggregate):
    """Numbered snapshot of a post's or a comment's content.

    Version numbers start at 1 for each piece of content. ``content_id`` points
    at a post or a comment depending on ``content_type``. Snapshots never change
    once recorded; they form the edit history of their content.
    """

    RECORD_TYPE = ContentVersionRecord
    ENTITY_NAME = "Content version"

    def __init__(
        self,
        aggregate_id: str,
        content_type: ContentType,
        content_id: str,
        content: str,
        version_number: int,
        created_at: datetime,
        version: int = 0,
    ) -> None:
        super().__init__(aggregate_id, created_at, version)
        if not isinstance(content_type, ContentType):
            valid = ", ".join(t.value for t in ContentType)
            raise errors.ValidationError(
                f"Invalid content type. Must be one of: {valid}"
            )
        if not content or not content.strip():
            raise errors.ValidationError(
                "Content snapshot is required and cannot be empty"
            )
        if not is_int(version_number):
            raise errors.ValidationError("Version number must be an integer")
        if version_number < 1:
            raise errors.ValidationError("Version number must be at least 1")
        if not content_id:
            raise errors.ValidationError("Content ID is required")
        self._content_type = content_type
        self._content_id = content_id
        self._content = content
        self._version_number = version_number

    @classmethod
    def create(
        cls,
        aggregate_id: str,
        content_type: ContentType,
        content_id: str,
        content: str,
        version_number: int,
    ) -> "ContentVersion":
        snapshot = cls(
            aggregate_id,
            content_type=content_type,
            content_id=content_id,
            content=content,
            version_number=version_number,
            created_at=utc_now(),
        )
        snapshot._record(
            events.ContentVersionRecorded(
                content_version_id=aggregate_id,
                content_type=content_type,
                content_id=content_id,
                version_number=version_number,
            )
        )
        return snapshot

    # --- Properties ---

    @property
    def content_type(self) -> ContentType:
        return self._content_type

    @property
    def content_id(self) -> str:
        return self._content_id

    @property
    def content(self) -> str:
        return self._content

    @property
    def version_number(self) -> int:
        return self._version_number

    @property
    def is_post_version(self) -> bool:
        return self._content_type is ContentType.POST

    @property
    def is_comment_version(self) -> bool:
        return self._content_type is ContentType.COMMENT
