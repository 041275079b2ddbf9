"""
Unit tests for the intake session answer store.

- upload acceptance rules (type, size, readable PDF)
- slot handling
- reset clears everything
"""

from __future__ import annotations

import base64

import pytest

from core.errors import InvalidUpload
from services.intake.session import (
    build_document,
    new_session,
    record_questionnaire,
    remove_upload,
    reset,
    set_upload,
    update_answers,
)


def test_build_document_encodes_pdf(pdf_bytes):
    doc = build_document("letterhead.pdf", "application/pdf", pdf_bytes)
    assert doc.size_bytes == len(pdf_bytes)
    assert base64.b64decode(doc.content) == pdf_bytes
    assert doc.to_document()["mimeType"] == "application/pdf"


def test_build_document_strips_client_path(pdf_bytes):
    doc = build_document("C:/Users/jane/letterhead.pdf", "application/pdf", pdf_bytes)
    assert doc.name == "letterhead.pdf"


def test_rejects_unsupported_type():
    with pytest.raises(InvalidUpload):
        build_document("sheet.xlsx", "application/vnd.ms-excel", b"data")


def test_rejects_oversize(pdf_bytes):
    with pytest.raises(InvalidUpload, match="larger than"):
        build_document("photo.png", "image/png", b"x" * (1024 * 1024 + 1), max_mb=1)


def test_rejects_unreadable_pdf():
    with pytest.raises(InvalidUpload, match="unreadable PDF"):
        build_document("broken.pdf", "application/pdf", b"not a pdf at all")


def test_rejects_empty_file():
    with pytest.raises(InvalidUpload, match="empty"):
        build_document("empty.png", "image/png", b"")


def test_set_upload_replaces_slot(pdf_bytes):
    session = new_session()
    first = build_document("a.pdf", "application/pdf", pdf_bytes)
    second = build_document("b.pdf", "application/pdf", pdf_bytes)
    set_upload(session, "letterhead", first)
    set_upload(session, "letterhead", second)
    assert session.uploads["letterhead"].name == "b.pdf"
    remove_upload(session, "letterhead")
    assert "letterhead" not in session.uploads


def test_reviewer_slots_not_accepted_during_intake(pdf_bytes):
    session = new_session()
    doc = build_document("c.pdf", "application/pdf", pdf_bytes)
    with pytest.raises(InvalidUpload):
        set_upload(session, "contract", doc)
    with pytest.raises(InvalidUpload):
        set_upload(session, "selfie", doc)


def test_questionnaire_outcome_recorded():
    session = record_questionnaire(new_session(), "Q-42")
    assert session.answers["questionnaireSubmitted"] is True
    assert session.answers["questionnaireId"] == "Q-42"


def test_unknown_role_hint_ignored():
    assert new_session("procurement").reviewer_role == "procurement"
    assert new_session("admin").reviewer_role is None


def test_reset_clears_state(completed_session):
    completed_session.submission_id = "SUP-1"
    update_answers(completed_session, {"extra": 1})
    reset(completed_session)
    assert completed_session.answers == {}
    assert completed_session.uploads == {}
    assert completed_session.ledger.completed_sections == set()
    assert completed_session.ledger.visited_sections == [1]
    assert completed_session.current_section == 1
    assert completed_session.submission_id is None
