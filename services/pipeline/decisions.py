"""
Reviewer stage writes.

Every function here is a read-modify-write against the repository: load the
record fresh, check the stage is reachable and not yet decided, validate the
reviewer's input, then write the new sub-object, status and current stage
over the loaded document with the loaded version as base. Every other key is
stored exactly as it was read. A concurrent write in between surfaces as
StaleWriteError instead of being overwritten.
"""

from __future__ import annotations

import datetime as dt
import logging
import time
import uuid
from typing import Any

from pydantic.alias_generators import to_camel

from core.errors import (
    StageAlreadyDecided,
    StageNotReachable,
    StagePreconditionError,
    StaleWriteError,
)
from domain.models import (
    APDecision,
    Classification,
    ContractRecord,
    Decision,
    Exchange,
    IR35Status,
    OPWDecision,
    OutsideIR35Process,
    PBPDecision,
    ProcurementDecision,
    Stage,
    SubmissionRecord,
    SubmissionStatus,
    UploadedDocument,
)
from services.persistence.repository import SubmissionRepository
from services.pipeline.stages import current_stage, is_actionable, is_reachable

logger = logging.getLogger(__name__)

REQUESTER_RESPONSE = "requester_response"


def _blank(value: Any) -> bool:
    return not (isinstance(value, str) and value.strip())


def _load(
    repository: SubmissionRepository, submission_id: str, base_version: int | None
) -> tuple[dict[str, Any], SubmissionRecord]:
    raw, record = repository.load(submission_id)
    # the caller saw an older version of this record when it built its decision
    if base_version is not None and base_version != record.version:
        raise StaleWriteError(submission_id, base_version, record.version)
    return raw, record


_DECISION_FIELD = {
    Stage.PBP_REVIEW: "pbp_review",
    Stage.PROCUREMENT_REVIEW: "procurement_review",
    Stage.OPW_REVIEW: "opw_review",
    Stage.CONTRACT_UPLOAD: "contract_drafter",
    Stage.AP_REVIEW: "ap_review",
}


def _guard(stage: Stage, record: SubmissionRecord) -> None:
    if is_actionable(stage, record):
        return
    if is_reachable(stage, record) and getattr(record, _DECISION_FIELD[stage]) is not None:
        raise StageAlreadyDecided(stage.value, record.submission_id)
    raise StageNotReachable(stage.value, record.submission_id)


def _decision(
    value: Decision | str | None, allowed: tuple[Decision, ...]
) -> tuple[Decision | None, list[str]]:
    try:
        decision = Decision(value)
    except ValueError:
        decision = None
    if decision not in allowed:
        options = ", ".join(d.value for d in allowed)
        return None, [f"decision: must be one of {options}"]
    return decision, []


def _signature_errors(
    decision: Decision | None,
    signer_name: str | None,
    signed_date: dt.date | None,
    comments: str | None,
) -> list[str]:
    errors = []
    if decision in (Decision.REJECTED, Decision.INFO_REQUIRED) and _blank(comments):
        errors.append("Please provide comments explaining your decision")
    if _blank(signer_name):
        errors.append("Please provide your digital signature (full name)")
    if signed_date is None:
        errors.append("Please select a date for your signature")
    return errors


def _status_after(record: SubmissionRecord, decision: Decision) -> SubmissionStatus:
    if decision == Decision.REJECTED:
        return SubmissionStatus.REJECTED
    return record.status


def _commit(
    repository: SubmissionRepository,
    raw: dict[str, Any],
    record: SubmissionRecord,
    update: dict[str, Any],
    **summary: Any,
) -> SubmissionRecord:
    merged = record.model_copy(update=update)
    merged = merged.model_copy(update={"current_stage": current_stage(merged)})
    # only the keys this stage owns are serialised; the rest of raw is written back as read
    document = merged.to_document()
    changed = {to_camel(name): document[to_camel(name)] for name in (*update, "current_stage")}
    saved = repository.update(raw, changed)
    repository.patch_summary(
        saved.submission_id,
        status=saved.status.value,
        currentStage=saved.current_stage.value,
        **summary,
    )
    logger.info(
        "submission %s now v%s at %s (%s)",
        saved.submission_id,
        saved.version,
        saved.current_stage.value,
        saved.status.value,
    )
    return saved


def _exchange_id() -> str:
    return f"EXC-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


def record_pbp_decision(
    repository: SubmissionRepository,
    submission_id: str,
    *,
    decision: Decision | str,
    signer_name: str,
    signed_date: dt.date | None,
    comments: str | None = None,
    base_version: int | None = None,
) -> SubmissionRecord:
    raw, record = _load(repository, submission_id, base_version)
    _guard(Stage.PBP_REVIEW, record)

    value, errors = _decision(
        decision, (Decision.APPROVED, Decision.REJECTED, Decision.INFO_REQUIRED)
    )
    errors += _signature_errors(value, signer_name, signed_date, comments)
    if errors:
        raise StagePreconditionError(Stage.PBP_REVIEW.value, errors)

    info_request = value == Decision.INFO_REQUIRED
    previous = record.pbp_review
    exchange = Exchange(
        id=_exchange_id(),
        type="info_request" if info_request else "decision",
        author="pbp",
        author_name=signer_name.strip(),
        message=(comments or "").strip(),
        decision=None if info_request else value,
    )
    fields = {
        "decision": value,
        "comments": comments,
        "signer_name": signer_name.strip(),
        "signed_date": signed_date,
        "exchanges": [*(previous.exchanges if previous else []), exchange],
        "awaiting": "requester" if info_request else None,
    }
    if previous is None:
        review = PBPDecision(**fields)
    else:
        review = previous.model_copy(update={**fields, "reviewed_at": exchange.timestamp})

    if info_request:
        status = SubmissionStatus.INFO_REQUIRED
    elif value == Decision.REJECTED:
        status = SubmissionStatus.REJECTED
    else:
        status = SubmissionStatus.PENDING_REVIEW
    return _commit(
        repository, raw, record, {"pbp_review": review, "status": status}, pbpStatus=value.value
    )


def respond_to_information_request(
    repository: SubmissionRepository,
    submission_id: str,
    *,
    message: str,
    author_name: str | None = None,
    base_version: int | None = None,
) -> SubmissionRecord:
    raw, record = _load(repository, submission_id, base_version)
    pbp = record.pbp_review
    if pbp is None or pbp.decision != Decision.INFO_REQUIRED or pbp.awaiting != "requester":
        raise StageNotReachable(REQUESTER_RESPONSE, submission_id)
    if _blank(message):
        raise StagePreconditionError(REQUESTER_RESPONSE, ["Please enter a response message"])

    if _blank(author_name):
        form = record.form_data
        author_name = f"{form.get('firstName') or ''} {form.get('lastName') or ''}".strip()
    exchange = Exchange(
        id=_exchange_id(),
        type="requester_response",
        author="requester",
        author_name=(author_name or "Requester").strip(),
        message=message.strip(),
    )
    review = pbp.model_copy(update={"exchanges": [*pbp.exchanges, exchange], "awaiting": "pbp"})
    return _commit(
        repository,
        raw,
        record,
        {"pbp_review": review, "status": SubmissionStatus.PENDING_REVIEW},
        pbpStatus="awaiting_pbp",
    )


def record_procurement_decision(
    repository: SubmissionRepository,
    submission_id: str,
    *,
    decision: Decision | str,
    classification: Classification | str | None,
    signer_name: str,
    signed_date: dt.date | None,
    comments: str | None = None,
    external_reference: str | None = None,
    base_version: int | None = None,
) -> SubmissionRecord:
    raw, record = _load(repository, submission_id, base_version)
    _guard(Stage.PROCUREMENT_REVIEW, record)

    value, errors = _decision(decision, (Decision.APPROVED, Decision.REJECTED))
    errors += _signature_errors(value, signer_name, signed_date, comments)
    try:
        supplier_class = Classification(classification)
    except ValueError:
        supplier_class = None
        errors.append("classification: must be standard or opw_ir35")
    if value == Decision.APPROVED and _blank(external_reference):
        errors.append("Please provide the Alemba Call Reference Number")
    if errors:
        raise StagePreconditionError(Stage.PROCUREMENT_REVIEW.value, errors)

    review = ProcurementDecision(
        decision=value,
        comments=comments,
        signer_name=signer_name.strip(),
        signed_date=signed_date,
        classification=supplier_class,
        external_reference=external_reference.strip() if value == Decision.APPROVED else None,
    )
    return _commit(
        repository,
        raw,
        record,
        {"procurement_review": review, "status": _status_after(record, value)},
        procurementStatus=value.value,
    )


def _outside_ir35_process(record: SubmissionRecord) -> OutsideIR35Process:
    form = record.form_data
    requester = f"{form.get('firstName') or ''} {form.get('lastName') or ''}".strip()
    return OutsideIR35Process(
        supplier_name=form.get("contactName"),
        supplier_email=form.get("contactEmail"),
        requester_name=requester or None,
        requester_email=form.get("nhsEmail"),
    )


def record_opw_decision(
    repository: SubmissionRepository,
    submission_id: str,
    *,
    ir35_status: IR35Status | str | None,
    rationale: str | None,
    signer_name: str,
    signed_date: dt.date | None,
    decision: Decision | str = Decision.APPROVED,
    comments: str | None = None,
    base_version: int | None = None,
) -> SubmissionRecord:
    raw, record = _load(repository, submission_id, base_version)
    _guard(Stage.OPW_REVIEW, record)

    value, errors = _decision(decision, (Decision.APPROVED, Decision.REJECTED))
    errors += _signature_errors(value, signer_name, signed_date, comments)
    try:
        status = IR35Status(ir35_status)
    except ValueError:
        status = None
        errors.append("Please select an IR35 determination")
    if _blank(rationale):
        errors.append("Please provide a rationale for your determination")
    if errors:
        raise StagePreconditionError(Stage.OPW_REVIEW.value, errors)

    review = OPWDecision(
        decision=value,
        comments=comments,
        signer_name=signer_name.strip(),
        signed_date=signed_date,
        ir35_status=status,
        rationale=rationale.strip(),
        outside_ir35_process=(
            _outside_ir35_process(record) if status == IR35Status.OUTSIDE else None
        ),
    )
    return _commit(
        repository,
        raw,
        record,
        {"opw_review": review, "status": _status_after(record, value)},
        ir35Status=status.value,
    )


def record_contract_upload(
    repository: SubmissionRepository,
    submission_id: str,
    *,
    document: UploadedDocument | None,
    uploaded_by: str,
    uploaded_on: dt.date | None = None,
    base_version: int | None = None,
) -> SubmissionRecord:
    raw, record = _load(repository, submission_id, base_version)
    _guard(Stage.CONTRACT_UPLOAD, record)

    errors = []
    if document is None or not document.has_content:
        errors.append("Please upload the contract document")
    elif document.mime_type != "application/pdf":
        errors.append("Please upload a PDF file")
    if _blank(uploaded_by):
        errors.append("Please provide your signature (full name)")
    if errors:
        raise StagePreconditionError(Stage.CONTRACT_UPLOAD.value, errors)

    contract = ContractRecord(
        contract=document,
        uploaded_by=uploaded_by.strip(),
        uploaded_on=uploaded_on or dt.date.today(),
    )
    return _commit(
        repository, raw, record, {"contract_drafter": contract}, contractUploaded=True
    )


def record_ap_decision(
    repository: SubmissionRepository,
    submission_id: str,
    *,
    bank_details_verified: bool,
    company_details_verified: bool,
    signer_name: str,
    signed_date: dt.date | None,
    decision: Decision | str = Decision.APPROVED,
    vat_verified: bool = False,
    insurance_verified: bool = False,
    supplier_number: str = "",
    supplier_name: str | None = None,
    comments: str | None = None,
    base_version: int | None = None,
) -> SubmissionRecord:
    raw, record = _load(repository, submission_id, base_version)
    _guard(Stage.AP_REVIEW, record)

    value, errors = _decision(decision, (Decision.APPROVED, Decision.REJECTED))
    errors += _signature_errors(value, signer_name, signed_date, comments)
    if bank_details_verified is not True:
        errors.append("Bank details verification is required")
    if company_details_verified is not True:
        errors.append("Company details verification is required")
    if errors:
        raise StagePreconditionError(Stage.AP_REVIEW.value, errors)

    review = APDecision(
        decision=value,
        comments=comments,
        signer_name=signer_name.strip(),
        signed_date=signed_date,
        bank_details_verified=True,
        company_details_verified=True,
        vat_verified=bool(vat_verified),
        insurance_verified=bool(insurance_verified),
        supplier_number=(supplier_number or "").strip(),
        supplier_name=supplier_name or record.form_data.get("companyName"),
    )
    status = SubmissionStatus.APPROVED if value == Decision.APPROVED else SubmissionStatus.REJECTED
    return _commit(
        repository,
        raw,
        record,
        {"ap_review": review, "status": status},
        apStatus="verified" if value == Decision.APPROVED else "rejected",
    )
