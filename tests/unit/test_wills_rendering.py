"""Unit tests for will attachment validation and plain-text download"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from legacy_diary.utils.validators import ValidationError
from legacy_diary.wills.models import WillAttachmentCreate
from legacy_diary.wills.service import (
    download_filename,
    is_allowed_attachment_type,
    render_will_text,
    validate_attachment,
)


def attachment(**overrides) -> WillAttachmentCreate:
    fields = {
        "name": "deed.pdf",
        "url": "https://files.example.com/deed.pdf",
        "type": "application/pdf",
        "size": 1024,
    }
    fields.update(overrides)
    return WillAttachmentCreate(**fields)


@pytest.mark.parametrize(
    "mime_type",
    [
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "image/png",
        "IMAGE/JPEG",
    ],
)
def test_allowed_types(mime_type):
    assert is_allowed_attachment_type(mime_type)


@pytest.mark.parametrize("mime_type", ["text/plain", "application/zip", "video/mp4", ""])
def test_disallowed_types(mime_type):
    assert not is_allowed_attachment_type(mime_type)


def test_validate_attachment_assigns_id_and_normalizes_type():
    result = validate_attachment(attachment(type=" Image/PNG ", name=" photo.png "))

    assert result.id
    assert result.type == "image/png"
    assert result.name == "photo.png"


def test_attachment_size_limit():
    validate_attachment(attachment(size=10 * 1024 * 1024))

    with pytest.raises(ValidationError, match="under 10MB"):
        validate_attachment(attachment(size=10 * 1024 * 1024 + 1))


def test_attachment_type_rejected():
    with pytest.raises(ValidationError, match="Only PDF, Word documents, and images"):
        validate_attachment(attachment(type="text/html"))


def test_attachment_requires_url():
    with pytest.raises(ValidationError, match="attachment url is required"):
        validate_attachment(attachment(url="  "))


def test_negative_size_rejected():
    with pytest.raises(ValidationError):
        validate_attachment(attachment(size=-1))


def test_render_will_text():
    text = render_will_text(
        "My Last Wishes",
        "Give the piano to Sam.",
        created_at=datetime(2024, 3, 5, 10, 0, tzinfo=UTC),
        updated_at=datetime(2024, 11, 20, 10, 0, tzinfo=UTC),
        accessed_at=datetime(2025, 1, 2, tzinfo=UTC),
    )

    assert text == (
        "LAST WILL AND TESTAMENT\n"
        "My Last Wishes\n"
        "\n"
        "Created: March 5, 2024\n"
        "Last Updated: November 20, 2024\n"
        "\n"
        "Give the piano to Sam.\n"
        "\n"
        "---\n"
        "This document was accessed through Digital Legacy Diary\n"
        "Access Date: January 2, 2025\n"
    )


def test_download_filename():
    assert download_filename("My Last Wishes!") == "My_Last_Wishes_.txt"
    assert download_filename("Résumé 2024") == "R_sum__2024.txt"
