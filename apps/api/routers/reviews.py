from __future__ import annotations

import datetime as dt
import mimetypes
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from apps.api.deps import get_submission_repository
from apps.api.schemas.reviews import (
    APDecisionIn,
    OPWDecisionIn,
    PBPDecisionIn,
    ProcurementDecisionIn,
    RequesterResponseIn,
    StageResultOut,
)
from core.errors import InvalidUpload
from domain.models import Stage, SubmissionRecord
from services.intake.session import build_document
from services.persistence.repository import SubmissionRepository
from services.pipeline import decisions
from services.pipeline.stages import current_stage, is_actionable, is_reachable

router = APIRouter(prefix="/submissions", tags=["reviews"])


def _result(record: SubmissionRecord) -> StageResultOut:
    return StageResultOut(
        submission_id=record.submission_id,
        version=record.version,
        status=record.status.value,
        current_stage=record.current_stage.value if record.current_stage else None,
    )


def _pipeline(record: SubmissionRecord) -> dict:
    return {
        "currentStage": current_stage(record).value,
        "stages": {
            stage.value: {
                "reachable": is_reachable(stage, record),
                "actionable": is_actionable(stage, record),
            }
            for stage in Stage
        },
    }


@router.get("")
def list_submissions(submissions: SubmissionRepository = Depends(get_submission_repository)):
    return [s.to_document() for s in submissions.list_summaries()]


@router.get("/{submission_id}")
def get_submission(
    submission_id: str, submissions: SubmissionRepository = Depends(get_submission_repository)
):
    record = submissions.get(submission_id)
    return {"record": record.to_document(), "pipeline": _pipeline(record)}


@router.get("/{submission_id}/pipeline")
def pipeline_state(
    submission_id: str, submissions: SubmissionRepository = Depends(get_submission_repository)
):
    return _pipeline(submissions.get(submission_id))


@router.post("/{submission_id}/pbp-review", response_model=StageResultOut)
def pbp_review(
    submission_id: str,
    payload: PBPDecisionIn,
    submissions: SubmissionRepository = Depends(get_submission_repository),
):
    record = decisions.record_pbp_decision(
        submissions,
        submission_id,
        decision=payload.decision,
        signer_name=payload.signer_name,
        signed_date=payload.signed_date,
        comments=payload.comments,
        base_version=payload.base_version,
    )
    return _result(record)


@router.post("/{submission_id}/requester-response", response_model=StageResultOut)
def requester_response(
    submission_id: str,
    payload: RequesterResponseIn,
    submissions: SubmissionRepository = Depends(get_submission_repository),
):
    record = decisions.respond_to_information_request(
        submissions,
        submission_id,
        message=payload.message,
        author_name=payload.author_name,
        base_version=payload.base_version,
    )
    return _result(record)


@router.post("/{submission_id}/procurement-review", response_model=StageResultOut)
def procurement_review(
    submission_id: str,
    payload: ProcurementDecisionIn,
    submissions: SubmissionRepository = Depends(get_submission_repository),
):
    record = decisions.record_procurement_decision(
        submissions,
        submission_id,
        decision=payload.decision,
        classification=payload.classification,
        signer_name=payload.signer_name,
        signed_date=payload.signed_date,
        comments=payload.comments,
        external_reference=payload.external_reference,
        base_version=payload.base_version,
    )
    return _result(record)


@router.post("/{submission_id}/opw-review", response_model=StageResultOut)
def opw_review(
    submission_id: str,
    payload: OPWDecisionIn,
    submissions: SubmissionRepository = Depends(get_submission_repository),
):
    record = decisions.record_opw_decision(
        submissions,
        submission_id,
        decision=payload.decision,
        ir35_status=payload.ir35_status,
        rationale=payload.rationale,
        signer_name=payload.signer_name,
        signed_date=payload.signed_date,
        comments=payload.comments,
        base_version=payload.base_version,
    )
    return _result(record)


@router.post("/{submission_id}/contract", response_model=StageResultOut)
async def contract_upload(
    submission_id: str,
    file: UploadFile = File(...),  # noqa: B008  (FastAPI pattern)
    uploaded_by: str = Form("", alias="uploadedBy"),  # noqa: B008
    uploaded_on: Optional[dt.date] = Form(None, alias="date"),  # noqa: B008
    base_version: Optional[int] = Form(None, alias="baseVersion"),  # noqa: B008
    submissions: SubmissionRepository = Depends(get_submission_repository),
):
    ctype = file.content_type or mimetypes.guess_type(file.filename or "")[0]
    if ctype != "application/pdf":
        raise InvalidUpload("Please upload a PDF file")
    document = build_document(file.filename or "contract.pdf", ctype, await file.read())
    record = decisions.record_contract_upload(
        submissions,
        submission_id,
        document=document,
        uploaded_by=uploaded_by,
        uploaded_on=uploaded_on,
        base_version=base_version,
    )
    return _result(record)


@router.post("/{submission_id}/ap-review", response_model=StageResultOut)
def ap_review(
    submission_id: str,
    payload: APDecisionIn,
    submissions: SubmissionRepository = Depends(get_submission_repository),
):
    record = decisions.record_ap_decision(
        submissions,
        submission_id,
        decision=payload.decision,
        bank_details_verified=payload.bank_details_verified,
        company_details_verified=payload.company_details_verified,
        vat_verified=payload.vat_verified,
        insurance_verified=payload.insurance_verified,
        supplier_number=payload.supplier_number,
        supplier_name=payload.supplier_name,
        signer_name=payload.signer_name,
        signed_date=payload.signed_date,
        comments=payload.comments,
        base_version=payload.base_version,
    )
    return _result(record)
