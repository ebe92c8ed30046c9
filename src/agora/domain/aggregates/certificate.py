"""Aggregate representing a course completion certificate."""

import re
from dataclasses import dataclass
from datetime import datetime

from agora.domain import errors, events
from agora.domain.utils import is_absolute_url, utc_now

from .base import Aggregate

# pylint: disable=too-many-arguments

VERIFICATION_CODE_RE = re.compile(r"^[A-Z0-9]{8}$")


@dataclass(frozen=True, slots=True)
class CertificateRecord:
    """Persisted state of a certificate."""

    id: str
    course_id: str
    user_id: str
    user_name: str
    course_name: str
    instructor_name: str
    issued_at: datetime
    pdf_url: str | None
    verification_code: str
    version: int = 0


class Certificate(Aggregate):
    """Proof that a user completed a course.

    A certificate is immutable once issued. The only later change is attaching
    the URL of its rendered PDF, which happens exactly once.
    """

    RECORD_TYPE = CertificateRecord
    ENTITY_NAME = "Certificate"

    def __init__(
        self,
        aggregate_id: str,
        course_id: str,
        user_id: str,
        user_name: str,
        course_name: str,
        instructor_name: str,
        issued_at: datetime,
        pdf_url: str | None,
        verification_code: str,
        version: int = 0,
    ) -> None:
        super().__init__(aggregate_id, issued_at, version)
        _require_name(user_name, "User name")
        _require_name(course_name, "Course name")
        _require_name(instructor_name, "Instructor name")
        _validate_verification_code(verification_code)
        self._course_id = course_id
        self._user_id = user_id
        self._user_name = user_name
        self._course_name = course_name
        self._instructor_name = instructor_name
        self._pdf_url = pdf_url
        self._verification_code = verification_code

    @classmethod
    def create(
        cls,
        aggregate_id: str,
        course_id: str,
        user_id: str,
        user_name: str,
        course_name: str,
        instructor_name: str,
        verification_code: str,
    ) -> "Certificate":
        """Issue a certificate now. The PDF URL is attached later."""
        certificate = cls(
            aggregate_id,
            course_id=course_id,
            user_id=user_id,
            user_name=user_name,
            course_name=course_name,
            instructor_name=instructor_name,
            issued_at=utc_now(),
            pdf_url=None,
            verification_code=verification_code,
        )
        certificate._record(
            events.CertificateIssued(
                certificate_id=aggregate_id,
                user_id=user_id,
                course_id=course_id,
                verification_code=verification_code,
            )
        )
        return certificate

    # --- Properties ---

    @property
    def course_id(self) -> str:
        return self._course_id

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def user_name(self) -> str:
        return self._user_name

    @property
    def course_name(self) -> str:
        return self._course_name

    @property
    def instructor_name(self) -> str:
        return self._instructor_name

    @property
    def issued_at(self) -> datetime:
        return self._created_at

    @property
    def pdf_url(self) -> str | None:
        return self._pdf_url

    @property
    def verification_code(self) -> str:
        return self._verification_code

    @property
    def has_pdf(self) -> bool:
        return self._pdf_url is not None

    # --- State Transitions ---

    def set_pdf_url(self, url: str) -> None:
        """Attach the URL of the rendered PDF.

        Raises:
            InvalidTransitionError: If a PDF URL is already set.
            ValidationError: If *url* is empty or not an absolute URL.
        """
        if self._pdf_url is not None:
            raise errors.InvalidTransitionError("Certificate PDF URL is already set")
        if not url or not url.strip():
            raise errors.ValidationError("PDF URL cannot be empty")
        if not is_absolute_url(url):
            raise errors.ValidationError("PDF URL must be a valid URL")
        self._pdf_url = url
        self._record(
            events.CertificatePdfAttached(
                certificate_id=self.id,
                user_id=self._user_id,
                course_id=self._course_id,
                pdf_url=url,
            )
        )


def _require_name(name: str, field_name: str) -> None:
    if not name or not name.strip():
        raise errors.ValidationError(f"{field_name} cannot be empty")


def _validate_verification_code(code: str) -> None:
    if not code or not code.strip():
        raise errors.ValidationError("Verification code cannot be empty")
    if not VERIFICATION_CODE_RE.match(code):
        raise errors.ValidationError(
            "Verification code must be 8 alphanumeric characters (uppercase)"
        )
