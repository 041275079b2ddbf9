from __future__ import annotations

import mimetypes
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from apps.api.deps import get_session_repository, get_submission_repository
from apps.api.schemas.intake import AnswersIn, NavigateIn, QuestionnaireIn, SubmitIn, SubmitOut
from domain.models import IntakeSession
from services.intake import session as intake
from services.intake.disclosure import is_hard_blocked, question_locks
from services.intake.gating import go_to_section, prev_section
from services.intake.requirements import UPLOAD_LABELS, missing_upload_slots, required_upload_slots
from services.intake.validator import missing_fields, missing_fields_by_section
from services.intake.workflow import complete_section, progress, submit
from services.persistence.repository import IntakeSessionRepository, SubmissionRepository

router = APIRouter(prefix="/intake", tags=["intake"])


def _view(session: IntakeSession) -> dict[str, Any]:
    return {
        "sessionId": session.session_id,
        "reviewerRole": session.reviewer_role,
        "currentSection": session.current_section,
        "answers": session.answers,
        "uploads": {
            slot: {
                "name": doc.name,
                "sizeBytes": doc.size_bytes,
                "mimeType": doc.mime_type,
                "uploadedAt": doc.uploaded_at.isoformat(),
            }
            for slot, doc in session.uploads.items()
        },
        "progress": progress(session),
        "submissionId": session.submission_id,
    }


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
def start_session(
    role: Optional[str] = Query(default=None),
    sessions: IntakeSessionRepository = Depends(get_session_repository),
):
    # role only picks a presentation hint; it grants nothing
    session = intake.new_session(reviewer_role=role)
    sessions.save(session)
    return _view(session)


@router.get("/sessions/{session_id}")
def get_session(
    session_id: str, sessions: IntakeSessionRepository = Depends(get_session_repository)
):
    return _view(sessions.get(session_id))


@router.patch("/sessions/{session_id}/answers")
def save_answers(
    session_id: str,
    payload: AnswersIn,
    sessions: IntakeSessionRepository = Depends(get_session_repository),
):
    session = intake.update_answers(sessions.get(session_id), payload.fields)
    sessions.save(session)
    return _view(session)


@router.post("/sessions/{session_id}/sections/{section}/complete")
def complete(
    session_id: str,
    section: int,
    payload: AnswersIn,
    sessions: IntakeSessionRepository = Depends(get_session_repository),
):
    session = sessions.get(session_id)
    try:
        complete_section(session, section, payload.fields)
    finally:
        # typed answers are kept even when the section is rejected
        sessions.save(session)
    return _view(session)


@router.post("/sessions/{session_id}/navigate")
def navigate(
    session_id: str,
    payload: NavigateIn,
    sessions: IntakeSessionRepository = Depends(get_session_repository),
):
    session = sessions.get(session_id)
    moved = go_to_section(session, payload.target)
    if moved:
        sessions.save(session)
    return {"moved": moved, **_view(session)}


@router.post("/sessions/{session_id}/back")
def back(session_id: str, sessions: IntakeSessionRepository = Depends(get_session_repository)):
    session = sessions.get(session_id)
    moved = prev_section(session)
    if moved:
        sessions.save(session)
    return {"moved": moved, **_view(session)}


@router.get("/sessions/{session_id}/prescreening")
def prescreening(
    session_id: str, sessions: IntakeSessionRepository = Depends(get_session_repository)
):
    session = sessions.get(session_id)
    return {
        "hardBlocked": is_hard_blocked(session.answers),
        "questions": [
            {
                "number": lock.number,
                "key": lock.key,
                "locked": lock.locked,
                "satisfied": lock.satisfied,
                "reason": lock.reason,
            }
            for lock in question_locks(session.answers, session.uploads)
        ],
    }


@router.get("/sessions/{session_id}/missing")
def missing(
    session_id: str,
    section: Optional[int] = Query(default=None, ge=1, le=7),
    sessions: IntakeSessionRepository = Depends(get_session_repository),
):
    session = sessions.get(session_id)
    if section is not None:
        return {"section": section, "missing": missing_fields(section, session.answers, session.uploads)}
    by_section = missing_fields_by_section(session.answers, session.uploads)
    return {"missing": {str(s): labels for s, labels in by_section.items()}}


@router.get("/sessions/{session_id}/requirements")
def requirements(
    session_id: str, sessions: IntakeSessionRepository = Depends(get_session_repository)
):
    session = sessions.get(session_id)
    required = required_upload_slots(session.answers, session.uploads)
    absent = missing_upload_slots(session.answers, session.uploads)
    return {
        "required": sorted(s.value for s in required),
        "missing": [{"slot": s.value, "label": UPLOAD_LABELS[s]} for s in sorted(absent, key=lambda s: s.value)],
    }


@router.put("/sessions/{session_id}/uploads/{slot}")
async def upload(
    session_id: str,
    slot: str,
    file: UploadFile = File(...),  # noqa: B008  (FastAPI pattern)
    sessions: IntakeSessionRepository = Depends(get_session_repository),
):
    session = sessions.get(session_id)
    ctype = file.content_type or mimetypes.guess_type(file.filename or "")[0]
    document = intake.build_document(file.filename or slot, ctype, await file.read())
    intake.set_upload(session, slot, document)
    sessions.save(session)
    return _view(session)


@router.delete("/sessions/{session_id}/uploads/{slot}")
def remove_upload(
    session_id: str, slot: str, sessions: IntakeSessionRepository = Depends(get_session_repository)
):
    session = intake.remove_upload(sessions.get(session_id), slot)
    sessions.save(session)
    return _view(session)


@router.post("/sessions/{session_id}/questionnaire")
def questionnaire_done(
    session_id: str,
    payload: QuestionnaireIn,
    sessions: IntakeSessionRepository = Depends(get_session_repository),
):
    session = intake.record_questionnaire(sessions.get(session_id), payload.questionnaire_id)
    sessions.save(session)
    return _view(session)


@router.post(
    "/sessions/{session_id}/submit",
    response_model=SubmitOut,
    status_code=status.HTTP_201_CREATED,
)
def submit_session(
    session_id: str,
    payload: Optional[SubmitIn] = None,
    sessions: IntakeSessionRepository = Depends(get_session_repository),
    submissions: SubmissionRepository = Depends(get_submission_repository),
):
    session = sessions.get(session_id)
    record = submit(session, submissions, submitted_by=payload.submitted_by if payload else None)
    sessions.save(session)
    return SubmitOut(
        submission_id=record.submission_id,
        status=record.status.value,
        current_stage=record.current_stage.value if record.current_stage else None,
    )


@router.post("/sessions/{session_id}/reset")
def reset_session(
    session_id: str, sessions: IntakeSessionRepository = Depends(get_session_repository)
):
    session = intake.reset(sessions.get(session_id))
    sessions.save(session)
    return _view(session)
