"""Aggregate representing a course."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from agora.domain import errors, events
from agora.domain.utils import check_text_length, utc_now

from .base import ArchivableAggregate

# pylint: disable=too-many-arguments


@dataclass(frozen=True, slots=True)
class CourseRecord:
    """Persisted state of a course."""

    id: str
    community_id: str
    instructor_id: str
    title: str
    description: str
    is_published: bool
    published_at: datetime | None
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None
    version: int = 0


class Course(ArchivableAggregate):
    """A course offered in a community.

    Courses start as drafts. A published course must be unpublished before it
    can be archived.
    """

    RECORD_TYPE = CourseRecord
    ENTITY_NAME = "Course"

    def __init__(
        self,
        aggregate_id: str,
        community_id: str,
        instructor_id: str,
        title: str,
        description: str,
        is_published: bool,
        published_at: datetime | None,
        created_at: datetime,
        updated_at: datetime,
        deleted_at: datetime | None = None,
        version: int = 0,
    ) -> None:
        super().__init__(aggregate_id, created_at, updated_at, deleted_at, version)
        _validate_title(title)
        _validate_description(description)
        self._community_id = community_id
        self._instructor_id = instructor_id
        self._title = title
        self._description = description
        self._is_published = is_published
        self._published_at = published_at

    # --- Construction Paths ---

    @classmethod
    def create(
        cls,
        aggregate_id: str,
        community_id: str,
        instructor_id: str,
        title: str,
        description: str,
    ) -> "Course":
        """Create a new draft course.

        Args:
            aggregate_id (str): The unique identifier for the course.
            community_id (str): The community offering the course.
            instructor_id (str): The user teaching the course.
            title (str): 3 to 200 characters once trimmed.
            description (str): 10 to 5000 characters once trimmed.

        Returns:
            Course: The new, unpublished course.
        """
        now = utc_now()
        course = cls(
            aggregate_id,
            community_id=community_id,
            instructor_id=instructor_id,
            title=title,
            description=description,
            is_published=False,
            published_at=None,
            created_at=now,
            updated_at=now,
        )
        course._record(
            events.CourseCreated(
                course_id=aggregate_id,
                community_id=community_id,
                instructor_id=instructor_id,
                title=title,
            )
        )
        return course

    # --- Properties ---

    @property
    def community_id(self) -> str:
        return self._community_id

    @property
    def instructor_id(self) -> str:
        return self._instructor_id

    @property
    def title(self) -> str:
        return self._title

    @property
    def description(self) -> str:
        return self._description

    @property
    def is_published(self) -> bool:
        return self._is_published

    @property
    def published_at(self) -> datetime | None:
        """When the course was last published. Kept after unpublishing."""
        return self._published_at

    @property
    def is_draft(self) -> bool:
        return not self._is_published

    # --- State Transitions ---

    def update(
        self, *, title: str | None = None, description: str | None = None
    ) -> None:
        self.ensure_not_archived()
        changes: dict[str, Any] = {}
        if title is not None:
            _validate_title(title)
            changes["title"] = title
        if description is not None:
            _validate_description(description)
            changes["description"] = description
        self._title = changes.get("title", self._title)
        self._description = changes.get("description", self._description)
        self._touch()
        self._record(events.CourseUpdated(course_id=self.id, changes=changes))

    def publish(self) -> None:
        """Publish the course.

        Raises:
            ArchivedEntityError: If the course is archived.
            InvalidTransitionError: If the course is already published.
        """
        self.ensure_not_archived()
        if self._is_published:
            raise errors.InvalidTransitionError("Course is already published")
        self._is_published = True
        self._published_at = utc_now()
        self._updated_at = self._published_at
        self._record(
            events.CoursePublished(
                course_id=self.id,
                community_id=self._community_id,
                published_at=self._published_at,
            )
        )

    def unpublish(self) -> None:
        self.ensure_not_archived()
        if not self._is_published:
            raise errors.InvalidTransitionError("Course is not published")
        self._is_published = False
        self._touch()
        self._record(events.CourseUnpublished(course_id=self.id))

    # --- Lifecycle Events ---

    def _check_can_archive(self) -> None:
        if self._is_published:
            raise errors.InvalidTransitionError(
                "Cannot archive published course. Unpublish first"
            )

    def _archived_event(self) -> events.DomainEvent:
        return events.CourseArchived(course_id=self.id)

    def _restored_event(self) -> events.DomainEvent:
        return events.CourseRestored(course_id=self.id)


def _validate_title(title: str) -> None:
    check_text_length(title, "Course title", minimum=3, maximum=200)


def _validate_description(description: str) -> None:
    check_text_length(description, "Course description", minimum=10, maximum=5000)
