"""
Wills module - wills, attachment metadata and plain-text rendering.
"""

from legacy_diary.wills.models import (
    Will,
    WillAttachment,
    WillAttachmentCreate,
    WillCreate,
    WillUpdate,
)
from legacy_diary.wills.service import WillService, render_will_text

__all__ = [
    "Will",
    "WillAttachment",
    "WillAttachmentCreate",
    "WillCreate",
    "WillService",
    "WillUpdate",
    "render_will_text",
]
