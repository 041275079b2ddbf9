from fastapi import APIRouter, Depends, HTTPException, Response

from apps.api.deps import get_session_repository, get_submission_repository
from domain.models import DocumentSlot
from domain.value_objects import DocumentPreview
from services.documents.export import export_submission_pdf
from services.documents.preview import render_preview
from services.persistence.repository import IntakeSessionRepository, SubmissionRepository

router = APIRouter(tags=["documents"])


def _inline(preview: DocumentPreview) -> Response:
    disposition = "inline" if preview.inline else "attachment"
    return Response(
        content=preview.data,
        media_type=preview.media_type,
        headers={"Content-Disposition": f'{disposition}; filename="{preview.filename}"'},
    )


@router.get("/intake/sessions/{session_id}/uploads/{slot}/preview")
def preview_intake_upload(
    session_id: str,
    slot: str,
    sessions: IntakeSessionRepository = Depends(get_session_repository),
):
    session = sessions.get(session_id)
    document = session.uploads.get(slot)
    if document is None:
        raise HTTPException(status_code=404, detail="No document available to preview")
    return _inline(render_preview(document))


@router.get("/submissions/{submission_id}/documents/{slot}/preview")
def preview_submission_document(
    submission_id: str,
    slot: str,
    submissions: SubmissionRepository = Depends(get_submission_repository),
):
    record = submissions.get(submission_id)
    if slot == DocumentSlot.CONTRACT.value and record.contract_drafter is not None:
        document = record.contract_drafter.contract
    else:
        document = record.uploaded_files.get(slot)
    if document is None:
        raise HTTPException(status_code=404, detail="No document available to preview")
    return _inline(render_preview(document))


@router.get("/submissions/{submission_id}/export.pdf")
def export_submission(
    submission_id: str,
    submissions: SubmissionRepository = Depends(get_submission_repository),
):
    record = submissions.get(submission_id)
    return _inline(
        DocumentPreview(
            media_type="application/pdf",
            filename=f"supplier-request-{record.submission_id}.pdf",
            data=export_submission_pdf(record),
            inline=False,
        )
    )
