"""
The requester's answer store.

An IntakeSession is created at the start of an intake, passed explicitly to
every engine, and only cleared by reset().
"""

from __future__ import annotations

import base64
import logging
import uuid
from collections.abc import Mapping
from typing import Any

from core.config import settings
from core.errors import InvalidUpload
from domain.models import (
    INTAKE_SLOTS,
    CompletionLedger,
    DocumentSlot,
    IntakeSession,
    UploadedDocument,
    utcnow,
)
from services.documents.pdf_inspect import PDFInspectError, count_pages

logger = logging.getLogger(__name__)

REVIEWER_ROLES = {"procurement", "ir35", "ap"}


def new_session(reviewer_role: str | None = None) -> IntakeSession:
    role = reviewer_role if reviewer_role in REVIEWER_ROLES else None
    return IntakeSession(session_id=str(uuid.uuid4()), reviewer_role=role)


def _touch(session: IntakeSession) -> None:
    session.updated_at = utcnow()


def update_answers(session: IntakeSession, fields: Mapping[str, Any]) -> IntakeSession:
    session.answers = {**session.answers, **dict(fields)}
    _touch(session)
    return session


def build_document(
    filename: str,
    mime_type: str | None,
    data: bytes,
    max_mb: int | None = None,
    allowed_mime: set[str] | None = None,
) -> UploadedDocument:
    allowed = allowed_mime or settings.ALLOWED_MIME
    limit_mb = max_mb if max_mb is not None else settings.MAX_UPLOAD_MB

    if not mime_type or mime_type not in allowed:
        raise InvalidUpload(f"unsupported content-type: {mime_type}")
    if not data:
        raise InvalidUpload("empty file")
    if len(data) > limit_mb * 1024 * 1024:
        raise InvalidUpload(f"file larger than {limit_mb}MB")
    if mime_type == "application/pdf":
        try:
            pages = count_pages(data)
        except PDFInspectError as e:
            raise InvalidUpload(f"unreadable PDF: {e}") from e
        if pages == 0:
            raise InvalidUpload("PDF has no pages")

    return UploadedDocument(
        name=(filename or "upload").split("/")[-1],
        size_bytes=len(data),
        mime_type=mime_type,
        content=base64.b64encode(data).decode("ascii"),
    )


def _slot(slot: DocumentSlot | str) -> DocumentSlot:
    try:
        value = DocumentSlot(slot)
    except ValueError as e:
        raise InvalidUpload(f"unknown upload slot: {slot}") from e
    if value not in INTAKE_SLOTS:
        raise InvalidUpload(f"slot {value.value} is not filled during intake")
    return value


def set_upload(
    session: IntakeSession, slot: DocumentSlot | str, document: UploadedDocument
) -> IntakeSession:
    key = _slot(slot).value
    session.uploads = {**session.uploads, key: document}
    _touch(session)
    logger.info("session %s uploaded %s (%s bytes)", session.session_id, key, document.size_bytes)
    return session


def remove_upload(session: IntakeSession, slot: DocumentSlot | str) -> IntakeSession:
    key = _slot(slot).value
    session.uploads = {k: v for k, v in session.uploads.items() if k != key}
    _touch(session)
    return session


def record_questionnaire(session: IntakeSession, questionnaire_id: str) -> IntakeSession:
    """The procurement questionnaire itself runs elsewhere; we only keep its outcome."""
    return update_answers(
        session, {"questionnaireSubmitted": True, "questionnaireId": questionnaire_id}
    )


def reset(session: IntakeSession) -> IntakeSession:
    session.current_section = 1
    session.ledger = CompletionLedger()
    session.answers = {}
    session.uploads = {}
    session.submission_id = None
    _touch(session)
    logger.info("session %s reset", session.session_id)
    return session
