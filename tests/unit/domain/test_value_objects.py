"""Unit tests for the attachment value objects."""

import dataclasses

import pytest

from agora.domain.errors import ValidationError
from agora.domain.value_objects import Attachment, PostAttachment, format_bytes

# pylint: disable=magic-value-comparison,too-few-public-methods

MB = 1024 * 1024
S3_URL = "https://agora-uploads.s3.amazonaws.com/posts/post-1/diagram.png"


def _post_attachment(**overrides):
    params = {
        "id": "att-1",
        "post_id": "post-1",
        "file_name": "notes.pdf",
        "file_url": "https://files.example.com/notes.pdf",
        "file_size": 2048,
        "mime_type": "application/pdf",
    }
    params.update(overrides)
    return PostAttachment(**params)


def _attachment(**overrides):
    params = {
        "id": "att-1",
        "post_id": "post-1",
        "url": S3_URL,
        "filename": "Diagram.PNG",
        "mime_type": "image/png",
        "size": 3 * MB,
        "uploaded_by": "author-1",
    }
    params.update(overrides)
    return Attachment(**params)


class TestPostAttachment:
    """Tests for PostAttachment."""

    @staticmethod
    def test_valid_attachment_is_frozen():
        attachment = _post_attachment()
        assert attachment.is_pdf()
        assert not attachment.is_image()
        with pytest.raises(dataclasses.FrozenInstanceError):
            attachment.file_size = 1  # type: ignore[misc]

    @staticmethod
    def test_equality_ignores_created_at():
        first = _post_attachment()
        second = dataclasses.replace(first, created_at=first.created_at.replace(year=2000))
        assert first == second

    @staticmethod
    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"file_name": ""}, "File name is required"),
            ({"file_name": "x" * 256}, "File name must not exceed 255 characters"),
            ({"file_url": "http://files.example.com/a.pdf"}, "Invalid file URL format"),
            ({"file_size": 0}, "File size must be greater than 0"),
            ({"file_size": 10 * MB + 1}, "File size must not exceed 10MB"),
            ({"mime_type": "application/x-sh"}, "MIME type 'application/x-sh' is not allowed"),
        ],
    )
    def test_invalid_fields(overrides, message):
        with pytest.raises(ValidationError, match=message):
            _post_attachment(**overrides)

    @staticmethod
    @pytest.mark.parametrize(
        "size, expected",
        [(512, "512 bytes"), (2048, "2.00 KB"), (int(2.5 * MB), "2.50 MB")],
    )
    def test_file_size_formatted(size, expected):
        assert _post_attachment(file_size=size).file_size_formatted == expected

    @staticmethod
    def test_document_detection():
        docx = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
        assert _post_attachment(mime_type=docx, file_name="a.docx").is_document()
        assert not _post_attachment(mime_type="text/plain").is_document()


class TestAttachment:
    """Tests for Attachment."""

    @staticmethod
    def test_classification():
        attachment = _attachment()
        assert attachment.file_type == "image"
        assert attachment.file_extension == "png"
        assert attachment.formatted_size == "3 MB"

    @staticmethod
    @pytest.mark.parametrize(
        "mime_type, file_type",
        [
            ("video/mp4", "video"),
            ("audio/mpeg", "audio"),
            ("application/zip", "archive"),
            ("text/csv", "document"),
        ],
    )
    def test_file_type(mime_type, file_type):
        assert _attachment(mime_type=mime_type).file_type == file_type

    @staticmethod
    def test_extension_missing():
        assert _attachment(filename="README").file_extension == ""

    @staticmethod
    def test_size_limits_depend_on_type():
        """Images stop at 10MB while other files may reach 25MB."""
        with pytest.raises(ValidationError, match="maximum allowed size of 10MB for images"):
            _attachment(size=11 * MB)
        video = _attachment(mime_type="video/mp4", filename="clip.mp4", size=20 * MB)
        assert video.size == 20 * MB
        with pytest.raises(ValidationError, match="maximum allowed size of 25MB for files"):
            _attachment(mime_type="video/mp4", size=26 * MB)

    @staticmethod
    @pytest.mark.parametrize(
        "url, message",
        [
            ("", "Attachment URL cannot be empty"),
            ("http://bucket.s3.amazonaws.com/a.png", "Attachment URL must use HTTPS protocol"),
            ("https://example.com/a.png", "Attachment URL must be a valid S3 or CloudFront URL"),
        ],
    )
    def test_url_rules(url, message):
        with pytest.raises(ValidationError, match=message):
            _attachment(url=url)

    @staticmethod
    def test_cloudfront_url_accepted():
        assert _attachment(url="https://d111111abcdef8.cloudfront.net/a.png").url

    @staticmethod
    def test_rejects_unknown_mime_type():
        with pytest.raises(ValidationError, match="MIME type 'image/bmp' is not allowed"):
            _attachment(mime_type="image/bmp")


@pytest.mark.parametrize(
    "size, expected",
    [(0, "0 Bytes"), (1, "1 Bytes"), (1536, "1.5 KB"), (2621440, "2.5 MB"), (3 * 1024**3, "3 GB")],
)
def test_format_bytes(size, expected):
    assert format_bytes(size) == expected
