from __future__ import annotations

import datetime as dt
from typing import Optional

from apps.api.schemas.intake import ApiModel


class SignedDecisionIn(ApiModel):
    signer_name: str = ""
    signed_date: Optional[dt.date] = None
    comments: Optional[str] = None
    # version the reviewer saw when the page was opened
    base_version: Optional[int] = None


class PBPDecisionIn(SignedDecisionIn):
    decision: str


class RequesterResponseIn(ApiModel):
    message: str = ""
    author_name: Optional[str] = None
    base_version: Optional[int] = None


class ProcurementDecisionIn(SignedDecisionIn):
    decision: str
    classification: Optional[str] = None
    external_reference: Optional[str] = None


class OPWDecisionIn(SignedDecisionIn):
    decision: str = "approved"
    ir35_status: Optional[str] = None
    rationale: Optional[str] = None


class APDecisionIn(SignedDecisionIn):
    decision: str = "approved"
    bank_details_verified: bool = False
    company_details_verified: bool = False
    vat_verified: bool = False
    insurance_verified: bool = False
    supplier_number: str = ""
    supplier_name: Optional[str] = None


class StageResultOut(ApiModel):
    submission_id: str
    version: int
    status: str
    current_stage: Optional[str] = None
