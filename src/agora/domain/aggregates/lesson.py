"""Aggregate representing a lesson inside a course."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from agora.domain import errors, events
from agora.domain.utils import (
    UNSET,
    Unset,
    check_text_length,
    is_absolute_url,
    is_int,
    utc_now,
)
from agora.domain.value_objects import LessonType

from .base import ArchivableAggregate

# pylint: disable=too-many-arguments,too-many-instance-attributes,too-many-locals


@dataclass(frozen=True, slots=True)
class LessonRecord:
    """Persisted state of a lesson."""

    id: str
    course_id: str
    section_id: str | None
    title: str
    content: str
    lesson_type: LessonType
    video_url: str | None
    pdf_url: str | None
    order: int
    drip_available_at: datetime | None
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None
    version: int = 0


class Lesson(ArchivableAggregate):
    """A single lesson of a course.

    What a lesson must carry depends on its type: TEXT lessons need content,
    VIDEO_EMBED lessons a video URL and PDF lessons a PDF URL. The type is fixed
    at creation.
    """

    RECORD_TYPE = LessonRecord
    ENTITY_NAME = "Lesson"

    def __init__(
        self,
        aggregate_id: str,
        course_id: str,
        section_id: str | None,
        title: str,
        content: str,
        lesson_type: LessonType,
        video_url: str | None,
        pdf_url: str | None,
        order: int,
        drip_available_at: datetime | None,
        created_at: datetime,
        updated_at: datetime,
        deleted_at: datetime | None = None,
        version: int = 0,
    ) -> None:
        super().__init__(aggregate_id, created_at, updated_at, deleted_at, version)
        _validate_title(title)
        _validate_content(content, lesson_type)
        _validate_type_specific_fields(lesson_type, video_url, pdf_url)
        _validate_order(order)
        self._course_id = course_id
        self._section_id = section_id
        self._title = title
        self._content = content
        self._lesson_type = lesson_type
        self._video_url = video_url
        self._pdf_url = pdf_url
        self._order = order
        self._drip_available_at = drip_available_at

    # --- Construction Paths ---

    @classmethod
    def create(
        cls,
        aggregate_id: str,
        course_id: str,
        title: str,
        lesson_type: LessonType,
        order: int,
        *,
        content: str = "",
        video_url: str | None = None,
        pdf_url: str | None = None,
        section_id: str | None = None,
    ) -> "Lesson":
        """Create a new lesson without a drip date.

        Raises:
            ValidationError: If a field is invalid or a field required by
                *lesson_type* is missing.
        """
        now = utc_now()
        lesson = cls(
            aggregate_id,
            course_id=course_id,
            section_id=section_id,
            title=title,
            content=content,
            lesson_type=lesson_type,
            video_url=video_url,
            pdf_url=pdf_url,
            order=order,
            drip_available_at=None,
            created_at=now,
            updated_at=now,
        )
        lesson._record(
            events.LessonCreated(
                lesson_id=aggregate_id,
                course_id=course_id,
                lesson_type=lesson_type,
                order=order,
            )
        )
        return lesson

    # --- Properties ---

    @property
    def course_id(self) -> str:
        return self._course_id

    @property
    def section_id(self) -> str | None:
        return self._section_id

    @property
    def title(self) -> str:
        return self._title

    @property
    def content(self) -> str:
        return self._content

    @property
    def lesson_type(self) -> LessonType:
        return self._lesson_type

    @property
    def video_url(self) -> str | None:
        return self._video_url

    @property
    def pdf_url(self) -> str | None:
        return self._pdf_url

    @property
    def order(self) -> int:
        return self._order

    @property
    def drip_available_at(self) -> datetime | None:
        return self._drip_available_at

    # --- State Transitions ---

    def update(
        self,
        *,
        title: str | None = None,
        content: str | None = None,
        video_url: str | None | Unset = UNSET,
        pdf_url: str | None | Unset = UNSET,
        order: int | None = None,
    ) -> None:
        """Apply the supplied changes, then re-check the type-specific fields.

        The lesson is left untouched if any check fails.

        Raises:
            ArchivedEntityError: If the lesson is archived.
            ValidationError: If a supplied field is invalid, or the result no
                longer carries what the lesson type requires.
        """
        self.ensure_not_archived()
        changes: dict[str, Any] = {}
        if title is not None:
            _validate_title(title)
            changes["title"] = title
        if content is not None:
            _validate_content(content, self._lesson_type)
            changes["content"] = content
        if video_url is not UNSET:
            changes["video_url"] = video_url
        if pdf_url is not UNSET:
            changes["pdf_url"] = pdf_url
        if order is not None:
            _validate_order(order)
            changes["order"] = order

        _validate_type_specific_fields(
            self._lesson_type,
            changes.get("video_url", self._video_url),
            changes.get("pdf_url", self._pdf_url),
        )

        self._title = changes.get("title", self._title)
        self._content = changes.get("content", self._content)
        self._video_url = changes.get("video_url", self._video_url)
        self._pdf_url = changes.get("pdf_url", self._pdf_url)
        self._order = changes.get("order", self._order)
        self._touch()
        self._record(
            events.LessonUpdated(
                lesson_id=self.id, course_id=self._course_id, changes=changes
            )
        )

    def set_drip_date(self, available_at: datetime) -> None:
        """Hold the lesson back until *available_at*."""
        self.ensure_not_archived()
        self._drip_available_at = available_at
        self._touch()
        self._record(
            events.LessonDripScheduled(
                lesson_id=self.id, course_id=self._course_id, available_at=available_at
            )
        )

    def clear_drip_date(self) -> None:
        self.ensure_not_archived()
        self._drip_available_at = None
        self._touch()
        self._record(
            events.LessonDripScheduled(
                lesson_id=self.id, course_id=self._course_id, available_at=None
            )
        )

    # --- Queries ---

    def is_available(self, at: datetime | None = None) -> bool:
        """True if the lesson has no drip date or the drip date has passed."""
        if self._drip_available_at is None:
            return True
        return (at or utc_now()) >= self._drip_available_at

    # --- Lifecycle Events ---

    def _archived_event(self) -> events.DomainEvent:
        return events.LessonArchived(lesson_id=self.id, course_id=self._course_id)

    def _restored_event(self) -> events.DomainEvent:
        return events.LessonRestored(lesson_id=self.id, course_id=self._course_id)


def _validate_title(title: str) -> None:
    check_text_length(title, "Lesson title", minimum=3, maximum=200)


def _validate_content(content: str, lesson_type: LessonType) -> None:
    if lesson_type is LessonType.TEXT and (not content or not content.strip()):
        raise errors.ValidationError("Lesson content is required for TEXT type")


def _validate_type_specific_fields(
    lesson_type: LessonType, video_url: str | None, pdf_url: str | None
) -> None:
    if lesson_type is LessonType.VIDEO_EMBED:
        if not video_url or not video_url.strip():
            raise errors.ValidationError("Video URL is required for VIDEO_EMBED type")
        _validate_url(video_url, "Video URL")
    if lesson_type is LessonType.PDF:
        if not pdf_url or not pdf_url.strip():
            raise errors.ValidationError("PDF URL is required for PDF type")
        _validate_url(pdf_url, "PDF URL")


def _validate_url(url: str, field_name: str) -> None:
    if not is_absolute_url(url):
        raise errors.ValidationError(f"{field_name} must be a valid URL")


def _validate_order(order: int) -> None:
    if order < 0:
        raise errors.ValidationError("Lesson order must be greater than or equal to 0")
    if not is_int(order):
        raise errors.ValidationError("Lesson order must be an integer")
