"""Module including value objects used across the domain layer."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import ClassVar

from agora.domain.errors import ValidationError
from agora.domain.utils import is_web_url, utc_now

_MB = 1024 * 1024


class LessonType(Enum):
    """Enumeration of lesson content types."""

    TEXT = "TEXT"
    VIDEO_EMBED = "VIDEO_EMBED"
    PDF = "PDF"


class ChannelPermission(Enum):
    """Who may read and post in a channel."""

    PUBLIC = "PUBLIC"
    MEMBERS_ONLY = "MEMBERS_ONLY"
    TIER_GATED = "TIER_GATED"


class DiscountType(Enum):
    """How a coupon's discount value is applied."""

    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


class SubscriptionStatus(Enum):
    """Enumeration of possible subscription statuses."""

    ACTIVE = "ACTIVE"
    TRIALING = "TRIALING"
    CANCELLED = "CANCELLED"
    PAST_DUE = "PAST_DUE"


class BillingInterval(Enum):
    """Billing period of a subscription."""

    MONTHLY = "MONTHLY"
    ANNUAL = "ANNUAL"


class NotificationType(Enum):
    """Enumeration of notification kinds."""

    MENTION = "MENTION"
    REPLY = "REPLY"
    NEW_POST = "NEW_POST"
    LIKE = "LIKE"
    COMMENT_ON_POST = "COMMENT_ON_POST"


class ContentType(Enum):
    """Kind of content a version snapshot belongs to."""

    POST = "POST"
    COMMENT = "COMMENT"


# pylint: disable=too-many-instance-attributes


@dataclass(frozen=True)
class PostAttachment:
    """A file uploaded alongside a post.

    Equality ignores ``created_at``.
    """

    MAX_FILE_SIZE: ClassVar[int] = 10 * _MB
    ALLOWED_MIME_TYPES: ClassVar[tuple[str, ...]] = (
        # Images
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/svg+xml",
        # Documents
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        # Text
        "text/plain",
        "text/markdown",
        "text/csv",
    )

    id: str
    post_id: str
    file_name: str
    file_url: str
    file_size: int
    mime_type: str
    created_at: datetime = field(default_factory=utc_now, compare=False)

    def __post_init__(self) -> None:
        if not self.file_name or not self.file_name.strip():
            raise ValidationError("File name is required")
        if len(self.file_name) > 255:
            raise ValidationError("File name must not exceed 255 characters")

        if not self.file_url or not self.file_url.strip():
            raise ValidationError("File URL is required")
        if not is_web_url(self.file_url, schemes=("https",)):
            raise ValidationError("Invalid file URL format")

        if self.file_size <= 0:
            raise ValidationError("File size must be greater than 0")
        if self.file_size > self.MAX_FILE_SIZE:
            raise ValidationError(
                f"File size must not exceed {self.MAX_FILE_SIZE // _MB}MB"
            )

        if not self.mime_type or not self.mime_type.strip():
            raise ValidationError("MIME type is required")
        if self.mime_type.lower() not in self.ALLOWED_MIME_TYPES:
            raise ValidationError(
                f"MIME type '{self.mime_type}' is not allowed. "
                f"Allowed types: {', '.join(self.ALLOWED_MIME_TYPES)}"
            )

    @property
    def file_size_formatted(self) -> str:
        """Size in MB or KB with two decimals, or plain bytes below 1 KB."""
        kb = self.file_size / 1024
        mb = kb / 1024
        if mb >= 1:
            return f"{mb:.2f} MB"
        if kb >= 1:
            return f"{kb:.2f} KB"
        return f"{self.file_size} bytes"

    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    def is_pdf(self) -> bool:
        return self.mime_type == "application/pdf"

    def is_document(self) -> bool:
        """True for Word, Excel and PowerPoint formats (legacy and OOXML)."""
        return any(
            marker in self.mime_type
            for marker in ("msword", "ms-excel", "ms-powerpoint", "officedocument")
        )


@dataclass(frozen=True)
class Attachment:
    """A file stored in object storage (S3 or CloudFront) and linked to a post.

    Images may be up to 10MB; every other allowed type up to 25MB.
    """

    MAX_IMAGE_SIZE: ClassVar[int] = 10 * _MB
    MAX_FILE_SIZE: ClassVar[int] = 25 * _MB

    IMAGE_TYPES: ClassVar[tuple[str, ...]] = (
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/svg+xml",
    )
    DOCUMENT_TYPES: ClassVar[tuple[str, ...]] = (
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "text/plain",
        "text/csv",
    )
    VIDEO_TYPES: ClassVar[tuple[str, ...]] = ("video/mp4", "video/webm", "video/ogg")
    AUDIO_TYPES: ClassVar[tuple[str, ...]] = (
        "audio/mpeg",
        "audio/ogg",
        "audio/wav",
        "audio/webm",
    )
    ARCHIVE_TYPES: ClassVar[tuple[str, ...]] = (
        "application/zip",
        "application/x-zip-compressed",
        "application/x-rar-compressed",
    )

    id: str
    post_id: str
    url: str
    filename: str
    mime_type: str
    size: int
    uploaded_by: str
    created_at: datetime = field(default_factory=utc_now, compare=False)

    def __post_init__(self) -> None:
        if not self.filename or not self.filename.strip():
            raise ValidationError("Attachment filename cannot be empty")

        allowed = self.allowed_mime_types()
        if self.mime_type not in allowed:
            raise ValidationError(
                f"MIME type '{self.mime_type}' is not allowed. "
                f"Allowed types: {', '.join(allowed)}"
            )

        if self.size <= 0:
            raise ValidationError("Attachment size must be greater than 0")
        image = self.is_image()
        max_size = self.MAX_IMAGE_SIZE if image else self.MAX_FILE_SIZE
        if self.size > max_size:
            raise ValidationError(
                f"Attachment size ({format_bytes(self.size)}) exceeds maximum "
                f"allowed size of {max_size // _MB}MB for "
                f"{'images' if image else 'files'}"
            )

        if not self.url or not self.url.strip():
            raise ValidationError("Attachment URL cannot be empty")
        if not self.url.startswith("https://"):
            raise ValidationError("Attachment URL must use HTTPS protocol")
        if not any(
            marker in self.url
            for marker in (".s3.", "s3.amazonaws.com", ".cloudfront.net")
        ):
            raise ValidationError("Attachment URL must be a valid S3 or CloudFront URL")

    @classmethod
    def allowed_mime_types(cls) -> tuple[str, ...]:
        return (
            cls.IMAGE_TYPES
            + cls.DOCUMENT_TYPES
            + cls.VIDEO_TYPES
            + cls.AUDIO_TYPES
            + cls.ARCHIVE_TYPES
        )

    # --- Classification ---

    def is_image(self) -> bool:
        return self.mime_type in self.IMAGE_TYPES

    def is_document(self) -> bool:
        return self.mime_type in self.DOCUMENT_TYPES

    def is_video(self) -> bool:
        return self.mime_type in self.VIDEO_TYPES

    def is_audio(self) -> bool:
        return self.mime_type in self.AUDIO_TYPES

    def is_archive(self) -> bool:
        return self.mime_type in self.ARCHIVE_TYPES

    @property
    def file_type(self) -> str:
        """Category of the file; unknown categories count as documents."""
        if self.is_image():
            return "image"
        if self.is_video():
            return "video"
        if self.is_audio():
            return "audio"
        if self.is_archive():
            return "archive"
        return "document"

    @property
    def formatted_size(self) -> str:
        return format_bytes(self.size)

    @property
    def file_extension(self) -> str:
        """Lower-cased extension without the dot, or an empty string."""
        parts = self.filename.split(".")
        return parts[-1].lower() if len(parts) > 1 else ""


def format_bytes(size: int) -> str:
    """Render a byte count with the largest unit that keeps the value >= 1.

    Examples:
        >>> format_bytes(0)
        '0 Bytes'
        >>> format_bytes(2621440)
        '2.5 MB'
    """
    if size == 0:
        return "0 Bytes"
    units = ("Bytes", "KB", "MB", "GB")
    exponent = 0
    value = float(size)
    while value >= 1024 and exponent < len(units) - 1:
        value /= 1024
        exponent += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {units[exponent]}"
