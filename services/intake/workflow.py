"""
Section "Next" handling and the final submit.

complete_section is the only place a section gets marked complete, and it
only does so after the section's format rules pass. submit is the Review &
Submit section's action: it needs sections 1-6 marked complete and section 7
open, then re-runs both the completeness check and the format rules over all
seven sections, so answers edited after their section was completed cannot
reach a persisted record.
"""

from __future__ import annotations

import copy
import logging
import secrets
import string
import time
from collections.abc import Mapping
from typing import Any

from core.config import settings
from core.errors import AlreadySubmitted, IncompleteSubmission, SectionValidationError
from domain.models import TOTAL_SECTIONS, IntakeSession, SubmissionRecord, UploadedDocument
from services.intake.disclosure import chain_complete, first_blocker
from services.intake.gating import (
    can_navigate_to,
    form_progress,
    mark_section_complete,
    next_section,
    section_statuses,
)
from services.intake.schemas import normalise_section, validate_section
from services.intake.session import update_answers
from services.intake.validator import missing_fields_by_section
from services.persistence.repository import SubmissionRepository
from services.pipeline.stages import current_stage

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_uppercase + string.digits

SECTION_NOT_COMPLETED = "Section not completed"
REVIEW_NOT_OPEN = "Open Review & Submit before submitting"


def new_submission_id(prefix: str | None = None) -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(6))
    return f"{prefix or settings.SUBMISSION_ID_PREFIX}-{int(time.time() * 1000)}-{suffix}"


def _section_errors(session: IntakeSession, section: int) -> list[str]:
    errors = validate_section(section, session.answers)
    if section == 2 and not chain_complete(session.answers, session.uploads):
        errors.append(f"prescreening: {first_blocker(session.answers, session.uploads)}")
    return errors


def complete_section(
    session: IntakeSession, section: int, fields: Mapping[str, Any] | None = None
) -> IntakeSession:
    if not 1 <= section <= TOTAL_SECTIONS:
        raise SectionValidationError(section, [f"unknown section: {section}"])
    if fields:
        update_answers(session, fields)

    errors = _section_errors(session, section)
    if errors:
        logger.info("section %s rejected for %s: %s", section, session.session_id, errors)
        raise SectionValidationError(section, errors)

    normalised = normalise_section(section, session.answers)
    if normalised:
        update_answers(session, normalised)
    mark_section_complete(session, section)
    if section == session.current_section:
        next_section(session)
    return session


def submit(
    session: IntakeSession,
    repository: SubmissionRepository,
    submitted_by: str | None = None,
) -> SubmissionRecord:
    if session.submission_id:
        raise AlreadySubmitted(session.submission_id)

    missing = missing_fields_by_section(session.answers, session.uploads)
    if not can_navigate_to(TOTAL_SECTIONS, session.ledger, 1):
        for section in range(1, TOTAL_SECTIONS):
            if section not in session.ledger.completed_sections:
                missing.setdefault(section, []).append(SECTION_NOT_COMPLETED)
    if session.current_section != TOTAL_SECTIONS:
        missing.setdefault(TOTAL_SECTIONS, []).append(REVIEW_NOT_OPEN)
    if missing:
        raise IncompleteSubmission(dict(sorted(missing.items())))

    for section in range(1, TOTAL_SECTIONS + 1):
        errors = _section_errors(session, section)
        if errors:
            logger.info(
                "submit of %s rejected at section %s: %s", session.session_id, section, errors
            )
            raise SectionValidationError(section, errors)
    mark_section_complete(session, TOTAL_SECTIONS)

    # snapshot by value: later edits to the session must not reach the record
    uploads = {
        slot: UploadedDocument.model_validate(doc.to_document())
        for slot, doc in session.uploads.items()
    }
    record = SubmissionRecord(
        submission_id=new_submission_id(),
        submitted_by=submitted_by or session.answers.get("nhsEmail"),
        form_data=copy.deepcopy(session.answers),
        uploaded_files=uploads,
    )
    record = record.model_copy(update={"current_stage": current_stage(record)})
    repository.create(record)

    session.submission_id = record.submission_id
    logger.info("session %s submitted as %s", session.session_id, record.submission_id)
    return record


def progress(session: IntakeSession) -> dict[str, Any]:
    return {
        "currentSection": session.current_section,
        "percent": form_progress(session),
        "sections": {str(s): status.value for s, status in section_statuses(session).items()},
        "completedSections": sorted(session.ledger.completed_sections),
    }
