"""Application-level errors raised by service layer handlers.

Domain rule violations surface as :mod:`agora.domain.errors`; missing or
conflicting records as :mod:`agora.interfaces.errors`. The errors below cover
rules that span several aggregates or depend on who is asking.
"""

# pylint: disable=too-few-public-methods


class ApplicationError(Exception):
    """Base class for all application-level errors."""


class AccessDeniedError(ApplicationError):
    """Raised when the requesting user may not perform the operation."""

    def __init__(self, user_id: str, action: str) -> None:
        super().__init__(f"User {user_id} is not allowed to {action}")
        self.user_id = user_id
        self.action = action


class AlreadySubscribedError(ApplicationError):
    """Raised when a user already holds an ACTIVE or TRIALING subscription."""

    def __init__(self, user_id: str, community_id: str) -> None:
        super().__init__(
            f"User {user_id} already has an active subscription to {community_id}"
        )
        self.user_id = user_id
        self.community_id = community_id


class TierNotActiveError(ApplicationError):
    """Raised when subscribing to or checking out an inactive payment tier."""

    def __init__(self, tier_id: str) -> None:
        super().__init__(f"Payment tier {tier_id} is not active")
        self.tier_id = tier_id


class CouponUnavailableError(ApplicationError):
    """Raised when a coupon code is unknown or cannot currently be used."""

    def __init__(self, code: str, reason: str = "is not available") -> None:
        super().__init__(f"Coupon {code} {reason}")
        self.code = code


class InvalidLessonError(ApplicationError):
    """Raised when a lesson does not belong to the course it is used with."""

    def __init__(self, lesson_id: str, course_id: str) -> None:
        super().__init__(f"Lesson {lesson_id} does not belong to course {course_id}")
        self.lesson_id = lesson_id
        self.course_id = course_id


class SpaceNestingError(ApplicationError):
    """Raised when a space would be nested more than two levels deep."""

    def __init__(self, parent_space_id: str) -> None:
        super().__init__(
            f"Space {parent_space_id} is itself nested; spaces nest one level only"
        )
        self.parent_space_id = parent_space_id


class CommentNestingError(ApplicationError):
    """Raised when replying to a reply."""

    def __init__(self, parent_id: str) -> None:
        super().__init__(f"Comment {parent_id} is a reply; replies cannot be nested")
        self.parent_id = parent_id


class ProgressNotStartedError(ApplicationError):
    """Raised when tracking progress in a course the user never started."""

    def __init__(self, user_id: str, course_id: str) -> None:
        super().__init__(f"User {user_id} has not started course {course_id}")
        self.user_id = user_id
        self.course_id = course_id


class CourseNotCompletedError(ApplicationError):
    """Raised when issuing a certificate for a course the user has not finished."""

    def __init__(self, user_id: str, course_id: str) -> None:
        super().__init__(f"User {user_id} has not completed course {course_id}")
        self.user_id = user_id
        self.course_id = course_id


class CertificateAlreadyIssuedError(ApplicationError):
    """Raised when a user already holds the certificate of a course."""

    def __init__(self, user_id: str, course_id: str) -> None:
        super().__init__(
            f"User {user_id} already has a certificate for course {course_id}"
        )
        self.user_id = user_id
        self.course_id = course_id


class CurrentVersionRestoreError(ApplicationError):
    """Raised when restoring the version a post already shows."""

    def __init__(self, post_id: str, version_number: int) -> None:
        super().__init__(f"Version {version_number} is the current version of {post_id}")
        self.post_id = post_id
        self.version_number = version_number
