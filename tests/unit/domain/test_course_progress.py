"""Unit tests for the CourseProgress aggregate."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from agora.domain import errors, events
from agora.domain.aggregates import CourseProgress

# pylint: disable=magic-value-comparison,too-few-public-methods


class TestLessonCompletion:
    """Tests for marking lessons complete and incomplete."""

    @staticmethod
    def test_start_records_event(make_progress):
        progress = make_progress(aggregate_id="progress-1")
        (event,) = progress.dequeue_uncommitted()
        assert isinstance(event, events.CourseProgressStarted)
        assert event.aggregate_id == "progress-1"
        assert event.user_id == "student-1"
        assert progress.completed_lesson_ids == ()
        assert not progress.is_completed

    @staticmethod
    def test_completion_order_is_kept(make_progress):
        progress = make_progress()
        for lesson_id in ("lesson-3", "lesson-1", "lesson-2"):
            progress.mark_lesson_complete(lesson_id)
        assert progress.completed_lesson_ids == ("lesson-3", "lesson-1", "lesson-2")
        assert progress.is_lesson_completed("lesson-1")

    @staticmethod
    def test_duplicate_completion_rejected(make_progress):
        progress = make_progress()
        progress.mark_lesson_complete("lesson-1")
        with pytest.raises(
            errors.InvalidTransitionError, match="Lesson is already marked as complete"
        ):
            progress.mark_lesson_complete("lesson-1")
        assert progress.completed_lesson_ids == ("lesson-1",)

    @staticmethod
    def test_mark_incomplete(make_progress):
        progress = make_progress()
        progress.mark_lesson_complete("lesson-1")
        progress.dequeue_uncommitted()
        progress.mark_lesson_incomplete("lesson-1")
        assert not progress.is_lesson_completed("lesson-1")
        (event,) = progress.dequeue_uncommitted()
        assert isinstance(event, events.LessonMarkedIncomplete)
        with pytest.raises(errors.InvalidTransitionError, match="Lesson is not marked as complete"):
            progress.mark_lesson_incomplete("lesson-1")

    @staticmethod
    @pytest.mark.parametrize(
        "method", ["mark_lesson_complete", "mark_lesson_incomplete", "update_last_accessed"]
    )
    def test_blank_lesson_id(make_progress, method):
        with pytest.raises(errors.ValidationError, match="Lesson ID cannot be empty"):
            getattr(make_progress(), method)(" ")

    @staticmethod
    def test_update_last_accessed(make_progress):
        progress = make_progress()
        before = progress.updated_at
        progress.update_last_accessed("lesson-2")
        assert progress.last_accessed_lesson_id == "lesson-2"
        assert progress.updated_at >= before


class TestCourseCompletion:
    """Tests for mark_course_complete."""

    @staticmethod
    def test_requires_completed_lessons(make_progress):
        with pytest.raises(
            errors.InvalidTransitionError,
            match="Cannot mark course complete with no completed lessons",
        ):
            make_progress().mark_course_complete()

    @staticmethod
    def test_complete_once(make_progress):
        progress = make_progress()
        progress.mark_lesson_complete("lesson-1")
        progress.dequeue_uncommitted()
        progress.mark_course_complete()
        assert progress.is_completed
        assert progress.updated_at == progress.completed_at
        (event,) = progress.dequeue_uncommitted()
        assert isinstance(event, events.CourseCompleted)
        with pytest.raises(
            errors.InvalidTransitionError, match="Course is already marked as complete"
        ):
            progress.mark_course_complete()

    @staticmethod
    def test_reconstitute_round_trip(make_progress):
        progress = make_progress()
        progress.mark_lesson_complete("lesson-1")
        progress.mark_course_complete()
        rebuilt = CourseProgress.reconstitute(progress.to_persistence())
        assert rebuilt.to_persistence() == progress.to_persistence()


class TestCompletionPercentage:
    """Tests for completion_percentage."""

    @staticmethod
    @pytest.mark.parametrize(
        "completed, total, expected",
        [(0, 0, 0), (0, 4, 0), (1, 8, 13), (1, 3, 33), (2, 3, 67), (4, 4, 100)],
    )
    def test_rounding(make_progress, completed, total, expected):
        """Halves round up."""
        progress = make_progress()
        for index in range(completed):
            progress.mark_lesson_complete(f"lesson-{index}")
        assert progress.completion_percentage(total) == expected


@pytest.mark.property
@given(data=st.data(), total=st.integers(min_value=1, max_value=60))
def test_completion_percentage_is_bounded(data, total):
    """Completing k of n lessons always yields a whole percentage in [0, 100]."""
    completed = data.draw(st.integers(min_value=0, max_value=total))
    progress = CourseProgress.create("progress-1", "student-1", "course-1")
    for index in range(completed):
        progress.mark_lesson_complete(f"lesson-{index}")
    percentage = progress.completion_percentage(total)
    assert 0 <= percentage <= 100
    assert (percentage == 100) == (completed == total)
