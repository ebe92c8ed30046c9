"""Handlers for courses, lessons, course progress and certificates."""

import logging
import secrets
import string
from collections.abc import Callable

from agora.domain.aggregates import Certificate, Course, CourseProgress, Lesson
from agora.interfaces.id_generator import IdGenerator
from agora.interfaces.unit_of_work import AbstractUnitOfWork
from agora.service_layer import commands
from agora.service_layer.errors import (
    AccessDeniedError,
    CertificateAlreadyIssuedError,
    CourseNotCompletedError,
    InvalidLessonError,
    ProgressNotStartedError,
)

logger = logging.getLogger(__name__)

VERIFICATION_ALPHABET = string.ascii_uppercase + string.digits
VERIFICATION_CODE_LENGTH = 8

# ============================================================================
#                               Courses
# ============================================================================


def create_course(
    cmd: commands.CreateCourse, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> str:
    """Create a draft course and return its ID."""

    course = Course.create(
        aggregate_id=id_generator.new_id(),
        community_id=cmd.community_id,
        instructor_id=cmd.instructor_id,
        title=cmd.title,
        description=cmd.description,
    )
    with uow:
        uow.communities.require(cmd.community_id)
        uow.courses.add(course)
        uow.commit()
    return course.id


def update_course(cmd: commands.UpdateCourse, uow: AbstractUnitOfWork) -> None:
    with uow:
        course = _require_taught(uow, cmd.course_id, cmd.requested_by)
        course.update(title=cmd.title, description=cmd.description)
        uow.courses.update(course)
        uow.commit()


def publish_course(cmd: commands.PublishCourse, uow: AbstractUnitOfWork) -> None:
    with uow:
        course = _require_taught(uow, cmd.course_id, cmd.requested_by)
        course.publish()
        uow.courses.update(course)
        uow.commit()


def unpublish_course(cmd: commands.UnpublishCourse, uow: AbstractUnitOfWork) -> None:
    with uow:
        course = _require_taught(uow, cmd.course_id, cmd.requested_by)
        course.unpublish()
        uow.courses.update(course)
        uow.commit()


def archive_course(cmd: commands.ArchiveCourse, uow: AbstractUnitOfWork) -> None:
    with uow:
        course = _require_taught(uow, cmd.course_id, cmd.requested_by)
        course.archive()
        uow.courses.update(course)
        uow.commit()


def _require_taught(uow: AbstractUnitOfWork, course_id: str, user_id: str) -> Course:
    course = uow.courses.require(course_id)
    if course.instructor_id != user_id:
        raise AccessDeniedError(user_id, f"manage course {course_id}")
    return course


# ============================================================================
#                               Lessons
# ============================================================================


def add_lesson(
    cmd: commands.AddLesson, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> str:
    """Add a lesson to a course and return its ID.

    Without an explicit ``order`` the lesson goes after the course's last one.
    """

    with uow:
        course = uow.courses.require(cmd.course_id)
        order = cmd.order
        if order is None:
            existing = uow.lessons.list_by_course(course.id)
            order = max((lesson.order for lesson in existing), default=-1) + 1

        lesson = Lesson.create(
            aggregate_id=id_generator.new_id(),
            course_id=course.id,
            title=cmd.title,
            lesson_type=cmd.lesson_type,
            order=order,
            content=cmd.content,
            video_url=cmd.video_url,
            pdf_url=cmd.pdf_url,
            section_id=cmd.section_id,
        )
        uow.lessons.add(lesson)
        uow.commit()
    return lesson.id


def update_lesson(cmd: commands.UpdateLesson, uow: AbstractUnitOfWork) -> None:
    with uow:
        lesson = uow.lessons.require(cmd.lesson_id)
        lesson.update(
            title=cmd.title,
            content=cmd.content,
            video_url=cmd.video_url,
            pdf_url=cmd.pdf_url,
            order=cmd.order,
        )
        uow.lessons.update(lesson)
        uow.commit()


def schedule_lesson_drip(
    cmd: commands.ScheduleLessonDrip, uow: AbstractUnitOfWork
) -> None:
    with uow:
        lesson = uow.lessons.require(cmd.lesson_id)
        lesson.set_drip_date(cmd.available_at)
        uow.lessons.update(lesson)
        uow.commit()


def clear_lesson_drip(cmd: commands.ClearLessonDrip, uow: AbstractUnitOfWork) -> None:
    with uow:
        lesson = uow.lessons.require(cmd.lesson_id)
        lesson.clear_drip_date()
        uow.lessons.update(lesson)
        uow.commit()


# ============================================================================
#                               Progress
# ============================================================================


def start_course_progress(
    cmd: commands.StartCourseProgress,
    uow: AbstractUnitOfWork,
    id_generator: IdGenerator,
) -> str:
    """Return the ID of the user's progress in the course, creating it if needed."""

    with uow:
        existing = uow.course_progress.find_by_user_and_course(
            cmd.user_id, cmd.course_id
        )
        if existing is not None:
            logger.debug(
                "StartCourseProgress %s/%s: already started; noop",
                cmd.user_id,
                cmd.course_id,
            )
            return existing.id

        uow.courses.require(cmd.course_id)
        progress = CourseProgress.create(
            id_generator.new_id(), user_id=cmd.user_id, course_id=cmd.course_id
        )
        uow.course_progress.add(progress)
        uow.commit()
    return progress.id


def complete_lesson(cmd: commands.CompleteLesson, uow: AbstractUnitOfWork) -> None:
    """Mark a lesson complete, and the course once every lesson is done.

    Raises:
        ProgressNotStartedError: If the user has no progress in the course.
        InvalidLessonError: If the lesson belongs to another course.
    """

    with uow:
        progress = _require_progress(uow, cmd.user_id, cmd.course_id)
        _require_course_lesson(uow, cmd.lesson_id, cmd.course_id)

        progress.mark_lesson_complete(cmd.lesson_id)

        lessons = uow.lessons.list_by_course(cmd.course_id)
        lesson_ids = {lesson.id for lesson in lessons}
        if (
            not progress.is_completed
            and lesson_ids
            and lesson_ids <= set(progress.completed_lesson_ids)
        ):
            progress.mark_course_complete()

        uow.course_progress.update(progress)
        uow.commit()


def mark_lesson_incomplete(
    cmd: commands.MarkLessonIncomplete, uow: AbstractUnitOfWork
) -> None:
    with uow:
        progress = _require_progress(uow, cmd.user_id, cmd.course_id)
        progress.mark_lesson_incomplete(cmd.lesson_id)
        uow.course_progress.update(progress)
        uow.commit()


def record_lesson_access(
    cmd: commands.RecordLessonAccess, uow: AbstractUnitOfWork
) -> None:
    with uow:
        progress = _require_progress(uow, cmd.user_id, cmd.course_id)
        _require_course_lesson(uow, cmd.lesson_id, cmd.course_id)
        progress.update_last_accessed(cmd.lesson_id)
        uow.course_progress.update(progress)
        uow.commit()


def _require_progress(
    uow: AbstractUnitOfWork, user_id: str, course_id: str
) -> CourseProgress:
    progress = uow.course_progress.find_by_user_and_course(user_id, course_id)
    if progress is None:
        raise ProgressNotStartedError(user_id, course_id)
    return progress


def _require_course_lesson(
    uow: AbstractUnitOfWork, lesson_id: str, course_id: str
) -> Lesson:
    lesson = uow.lessons.require(lesson_id)
    if lesson.course_id != course_id:
        raise InvalidLessonError(lesson_id, course_id)
    return lesson


# ============================================================================
#                               Certificates
# ============================================================================


def issue_certificate(
    cmd: commands.IssueCertificate,
    uow: AbstractUnitOfWork,
    id_generator: IdGenerator,
) -> str:
    """Issue a certificate for a completed course and return its ID.

    Raises:
        CourseNotCompletedError: If the user's progress is missing or unfinished.
        CertificateAlreadyIssuedError: If the user already holds one.
    """

    with uow:
        course = uow.courses.require(cmd.course_id, include_archived=True)
        progress = uow.course_progress.find_by_user_and_course(
            cmd.user_id, cmd.course_id
        )
        if progress is None or not progress.is_completed:
            raise CourseNotCompletedError(cmd.user_id, cmd.course_id)
        if uow.certificates.find_by_user_and_course(cmd.user_id, cmd.course_id):
            raise CertificateAlreadyIssuedError(cmd.user_id, cmd.course_id)

        certificate = Certificate.create(
            aggregate_id=id_generator.new_id(),
            course_id=course.id,
            user_id=cmd.user_id,
            user_name=cmd.user_name,
            course_name=course.title,
            instructor_name=cmd.instructor_name,
            verification_code=new_verification_code(),
        )
        uow.certificates.add(certificate)
        uow.commit()
    logger.info(
        "Certificate %s issued to %s for course %s",
        certificate.id,
        cmd.user_id,
        cmd.course_id,
    )
    return certificate.id


def new_verification_code() -> str:
    return "".join(
        secrets.choice(VERIFICATION_ALPHABET) for _ in range(VERIFICATION_CODE_LENGTH)
    )


def attach_certificate_pdf(
    cmd: commands.AttachCertificatePdf, uow: AbstractUnitOfWork
) -> None:
    with uow:
        certificate = uow.certificates.require(cmd.certificate_id)
        certificate.set_pdf_url(cmd.pdf_url)
        uow.certificates.update(certificate)
        uow.commit()


def verify_certificate(
    cmd: commands.VerifyCertificate, uow: AbstractUnitOfWork
) -> Certificate | None:
    with uow:
        return uow.certificates.find_by_verification_code(
            cmd.verification_code.strip().upper()
        )


def list_certificates(
    cmd: commands.ListCertificates, uow: AbstractUnitOfWork
) -> list[Certificate]:
    with uow:
        return uow.certificates.list_by_user(cmd.user_id)


COMMAND_HANDLERS: dict[type, Callable[..., object]] = {
    commands.CreateCourse: create_course,
    commands.UpdateCourse: update_course,
    commands.PublishCourse: publish_course,
    commands.UnpublishCourse: unpublish_course,
    commands.ArchiveCourse: archive_course,
    commands.AddLesson: add_lesson,
    commands.UpdateLesson: update_lesson,
    commands.ScheduleLessonDrip: schedule_lesson_drip,
    commands.ClearLessonDrip: clear_lesson_drip,
    commands.StartCourseProgress: start_course_progress,
    commands.CompleteLesson: complete_lesson,
    commands.MarkLessonIncomplete: mark_lesson_incomplete,
    commands.RecordLessonAccess: record_lesson_access,
    commands.IssueCertificate: issue_certificate,
    commands.AttachCertificatePdf: attach_certificate_pdf,
    commands.VerifyCertificate: verify_certificate,
    commands.ListCertificates: list_certificates,
}
