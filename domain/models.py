from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SCHEMA_VERSION = 1
TOTAL_SECTIONS = 7


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class RecordModel(BaseModel):
    """Base for everything that is persisted as JSON (camelCase on the wire)."""

    # extra="allow" keeps keys written by other sessions/tools intact on rewrite
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class SubmissionStatus(str, Enum):
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    INFO_REQUIRED = "info_required"


class Decision(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    INFO_REQUIRED = "info_required"


class Classification(str, Enum):
    STANDARD = "standard"
    OPW_IR35 = "opw_ir35"


class IR35Status(str, Enum):
    INSIDE = "inside"
    OUTSIDE = "outside"


class Stage(str, Enum):
    PBP_REVIEW = "pbp_review"
    PROCUREMENT_REVIEW = "procurement_review"
    OPW_REVIEW = "opw_review"
    CONTRACT_UPLOAD = "contract_upload"
    AP_REVIEW = "ap_review"


class PipelineState(str, Enum):
    PBP_REVIEW = "pbp_review"
    AWAITING_REQUESTER = "awaiting_requester"
    PROCUREMENT_REVIEW = "procurement_review"
    OPW_REVIEW = "opw_review"
    CONTRACT_UPLOAD = "contract_upload"
    AP_REVIEW = "ap_review"
    VERIFIED = "verified"
    TERMINATED = "terminated"


class DocumentSlot(str, Enum):
    LETTERHEAD = "letterhead"
    PROCUREMENT_APPROVAL = "procurementApproval"
    CEST_FORM = "cestForm"
    PASSPORT_PHOTO = "passportPhoto"
    LICENCE_FRONT = "licenceFront"
    LICENCE_BACK = "licenceBack"
    OPW_CONTRACT = "opwContract"
    CONTRACT = "contract"


# slots the requester can fill during intake
INTAKE_SLOTS = (
    DocumentSlot.LETTERHEAD,
    DocumentSlot.PROCUREMENT_APPROVAL,
    DocumentSlot.CEST_FORM,
    DocumentSlot.PASSPORT_PHOTO,
    DocumentSlot.LICENCE_FRONT,
    DocumentSlot.LICENCE_BACK,
)


class UploadedDocument(RecordModel):
    name: str
    size_bytes: int = Field(ge=0)
    mime_type: str
    content: str  # base64
    uploaded_at: dt.datetime = Field(default_factory=utcnow)

    @property
    def has_content(self) -> bool:
        return bool(self.content)


# ----- review sub-objects -----


class Exchange(RecordModel):
    id: str
    type: Literal["decision", "info_request", "requester_response"]
    author: Literal["pbp", "requester"]
    author_name: str
    message: str
    timestamp: dt.datetime = Field(default_factory=utcnow)
    decision: Optional[Decision] = None


class ReviewDecision(RecordModel):
    decision: Decision
    comments: Optional[str] = None
    signer_name: str
    signed_date: dt.date
    reviewed_at: dt.datetime = Field(default_factory=utcnow)


class PBPDecision(ReviewDecision):
    exchanges: list[Exchange] = []
    awaiting: Optional[Literal["requester", "pbp"]] = None


class ProcurementDecision(ReviewDecision):
    classification: Classification
    external_reference: Optional[str] = None


class OutsideIR35Process(RecordModel):
    supplier_name: Optional[str] = None
    supplier_email: Optional[str] = None
    requester_name: Optional[str] = None
    requester_email: Optional[str] = None
    status: str = "Awaiting_Consultancy_Agreement"
    notified_at: dt.datetime = Field(default_factory=utcnow)


class OPWDecision(ReviewDecision):
    ir35_status: IR35Status
    rationale: str
    outside_ir35_process: Optional[OutsideIR35Process] = Field(
        default=None, alias="outsideIR35Process"
    )


class ContractRecord(RecordModel):
    contract: UploadedDocument
    uploaded_by: str
    uploaded_on: dt.date = Field(alias="date")
    submitted_at: dt.datetime = Field(default_factory=utcnow)


class APDecision(ReviewDecision):
    bank_details_verified: bool
    company_details_verified: bool
    vat_verified: bool = False
    insurance_verified: bool = False
    supplier_number: str = ""
    supplier_name: Optional[str] = None


# ----- submission -----


class SubmissionRecord(RecordModel):
    schema_version: int = SCHEMA_VERSION
    version: int = 0
    submission_id: str
    submission_date: dt.datetime = Field(default_factory=utcnow)
    submitted_by: Optional[str] = None
    status: SubmissionStatus = SubmissionStatus.PENDING_REVIEW
    current_stage: Optional[PipelineState] = None
    form_data: dict[str, Any] = {}
    uploaded_files: dict[str, UploadedDocument] = {}

    pbp_review: Optional[PBPDecision] = None
    procurement_review: Optional[ProcurementDecision] = None
    opw_review: Optional[OPWDecision] = None
    contract_drafter: Optional[ContractRecord] = None
    ap_review: Optional[APDecision] = None


class SubmissionSummary(RecordModel):
    submission_id: str
    submission_date: dt.datetime
    submitted_by: Optional[str] = None
    status: SubmissionStatus = SubmissionStatus.PENDING_REVIEW
    current_stage: Optional[PipelineState] = None


# ----- intake -----


class CompletionLedger(RecordModel):
    completed_sections: set[int] = set()
    visited_sections: list[int] = [1]


class IntakeSession(RecordModel):
    session_id: str
    current_section: int = 1
    ledger: CompletionLedger = Field(default_factory=CompletionLedger)
    answers: dict[str, Any] = {}
    uploads: dict[str, UploadedDocument] = {}
    reviewer_role: Optional[str] = None
    submission_id: Optional[str] = None
    created_at: dt.datetime = Field(default_factory=utcnow)
    updated_at: dt.datetime = Field(default_factory=utcnow)
