from __future__ import annotations

import base64
import binascii

from core.errors import InvalidUpload
from domain.models import UploadedDocument
from domain.value_objects import DocumentPreview

PREVIEWABLE_IMAGES = {"image/jpeg", "image/png", "image/gif", "image/webp"}


def render_preview(document: UploadedDocument | None) -> DocumentPreview:
    """Decode a stored upload for inline display (PDF viewer or image)."""
    if document is None or not document.has_content:
        raise InvalidUpload("Document data not available for preview")

    mime = (document.mime_type or "").lower()
    if mime != "application/pdf" and mime not in PREVIEWABLE_IMAGES:
        raise InvalidUpload("Preview not available for this file type")

    content = document.content
    # tolerate data URLs written by older clients
    if content.startswith("data:") and "," in content:
        content = content.split(",", 1)[1]
    try:
        data = base64.b64decode(content, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidUpload("Document data is not valid base64") from e

    return DocumentPreview(media_type=mime, filename=document.name, data=data)
