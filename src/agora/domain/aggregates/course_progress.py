"""Aggregate tracking one user's progress through one course."""

import math
from dataclasses import dataclass
from datetime import datetime

from agora.domain import errors, events
from agora.domain.utils import utc_now

from .base import Aggregate

# pylint: disable=too-many-arguments


@dataclass(frozen=True, slots=True)
class CourseProgressRecord:
    """Persisted state of a user's course progress."""

    id: str
    user_id: str
    course_id: str
    completed_lesson_ids: tuple[str, ...]
    last_accessed_lesson_id: str | None
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime
    version: int = 0


class CourseProgress(Aggregate):
    """Lessons a user has completed in a course. Never archived."""

    RECORD_TYPE = CourseProgressRecord
    ENTITY_NAME = "Course progress"

    def __init__(
        self,
        aggregate_id: str,
        user_id: str,
        course_id: str,
        completed_lesson_ids: tuple[str, ...],
        last_accessed_lesson_id: str | None,
        completed_at: datetime | None,
        created_at: datetime,
        updated_at: datetime,
        version: int = 0,
    ) -> None:
        super().__init__(aggregate_id, created_at, version)
        self._user_id = user_id
        self._course_id = course_id
        self._completed_lesson_ids = list(completed_lesson_ids)
        self._last_accessed_lesson_id = last_accessed_lesson_id
        self._completed_at = completed_at
        self._updated_at = updated_at

    @classmethod
    def create(cls, aggregate_id: str, user_id: str, course_id: str) -> "CourseProgress":
        now = utc_now()
        progress = cls(
            aggregate_id,
            user_id=user_id,
            course_id=course_id,
            completed_lesson_ids=(),
            last_accessed_lesson_id=None,
            completed_at=None,
            created_at=now,
            updated_at=now,
        )
        progress._record(
            events.CourseProgressStarted(
                progress_id=aggregate_id, user_id=user_id, course_id=course_id
            )
        )
        return progress

    # --- Properties ---

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def course_id(self) -> str:
        return self._course_id

    @property
    def completed_lesson_ids(self) -> tuple[str, ...]:
        """Completed lessons, in completion order."""
        return tuple(self._completed_lesson_ids)

    @property
    def last_accessed_lesson_id(self) -> str | None:
        return self._last_accessed_lesson_id

    @property
    def completed_at(self) -> datetime | None:
        return self._completed_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    @property
    def is_completed(self) -> bool:
        return self._completed_at is not None

    # --- State Transitions ---

    def mark_lesson_complete(self, lesson_id: str) -> None:
        """Record *lesson_id* as completed.

        Raises:
            ValidationError: If *lesson_id* is empty.
            InvalidTransitionError: If the lesson is already completed.
        """
        _require_lesson_id(lesson_id)
        if self.is_lesson_completed(lesson_id):
            raise errors.InvalidTransitionError("Lesson is already marked as complete")
        self._completed_lesson_ids.append(lesson_id)
        self._touch()
        self._record(
            events.LessonCompleted(
                progress_id=self.id,
                user_id=self._user_id,
                course_id=self._course_id,
                lesson_id=lesson_id,
            )
        )

    def mark_lesson_incomplete(self, lesson_id: str) -> None:
        _require_lesson_id(lesson_id)
        if not self.is_lesson_completed(lesson_id):
            raise errors.InvalidTransitionError("Lesson is not marked as complete")
        self._completed_lesson_ids.remove(lesson_id)
        self._touch()
        self._record(
            events.LessonMarkedIncomplete(
                progress_id=self.id,
                user_id=self._user_id,
                course_id=self._course_id,
                lesson_id=lesson_id,
            )
        )

    def update_last_accessed(self, lesson_id: str) -> None:
        _require_lesson_id(lesson_id)
        self._last_accessed_lesson_id = lesson_id
        self._touch()

    def mark_course_complete(self) -> None:
        """Stamp the course as completed.

        Raises:
            InvalidTransitionError: If no lesson is completed yet, or the course
                is already marked complete.
        """
        if not self._completed_lesson_ids:
            raise errors.InvalidTransitionError(
                "Cannot mark course complete with no completed lessons"
            )
        if self.is_completed:
            raise errors.InvalidTransitionError("Course is already marked as complete")
        self._completed_at = utc_now()
        self._updated_at = self._completed_at
        self._record(
            events.CourseCompleted(
                progress_id=self.id,
                user_id=self._user_id,
                course_id=self._course_id,
                completed_at=self._completed_at,
            )
        )

    # --- Queries ---

    def is_lesson_completed(self, lesson_id: str) -> bool:
        return lesson_id in self._completed_lesson_ids

    def completion_percentage(self, total_lessons: int) -> int:
        """Share of *total_lessons* completed, as a whole percentage.

        Halves round up, so 1 of 8 lessons gives 13.
        """
        if total_lessons == 0:
            return 0
        percentage = len(self._completed_lesson_ids) / total_lessons * 100
        return math.floor(percentage + 0.5)

    def _touch(self) -> None:
        self._updated_at = utc_now()


def _require_lesson_id(lesson_id: str) -> None:
    if not lesson_id or not lesson_id.strip():
        raise errors.ValidationError("Lesson ID cannot be empty")
