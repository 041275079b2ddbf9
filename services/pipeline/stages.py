"""
Approval pipeline position, inferred from the review sub-objects.

Nothing here reads SubmissionRecord.current_stage: that tag is written
alongside each decision for querying, but the sub-objects stay the source
of truth.
"""

from __future__ import annotations

from domain.models import (
    Classification,
    Decision,
    PipelineState,
    Stage,
    SubmissionRecord,
)

__all__ = [
    "Stage",
    "PipelineState",
    "pbp_required",
    "is_reachable",
    "is_actionable",
    "current_stage",
]


def pbp_required(record: SubmissionRecord) -> bool:
    """PBP review only runs when the requester had not engaged procurement."""
    return record.form_data.get("procurementEngaged") == "no"


def _procurement_approved(record: SubmissionRecord) -> bool:
    review = record.procurement_review
    return review is not None and review.decision == Decision.APPROVED


def _opw_route(record: SubmissionRecord) -> bool:
    return (
        _procurement_approved(record)
        and record.procurement_review.classification == Classification.OPW_IR35
    )


def is_reachable(stage: Stage, record: SubmissionRecord) -> bool:
    stage = Stage(stage)
    if stage == Stage.PBP_REVIEW:
        return pbp_required(record)
    if stage == Stage.PROCUREMENT_REVIEW:
        if not pbp_required(record):
            return True
        return record.pbp_review is not None and record.pbp_review.decision == Decision.APPROVED
    if stage == Stage.OPW_REVIEW:
        return _opw_route(record)
    if stage == Stage.CONTRACT_UPLOAD:
        return (
            _opw_route(record)
            and record.opw_review is not None
            and record.opw_review.decision == Decision.APPROVED
        )
    if stage == Stage.AP_REVIEW:
        return _procurement_approved(record)
    return False


def is_actionable(stage: Stage, record: SubmissionRecord) -> bool:
    """Reachable and still waiting for its decision."""
    stage = Stage(stage)
    if not is_reachable(stage, record):
        return False
    if stage == Stage.PBP_REVIEW:
        pbp = record.pbp_review
        # an information request reopens PBP once the requester has answered
        return pbp is None or (pbp.decision == Decision.INFO_REQUIRED and pbp.awaiting == "pbp")
    if stage == Stage.PROCUREMENT_REVIEW:
        return record.procurement_review is None
    if stage == Stage.OPW_REVIEW:
        return record.opw_review is None
    if stage == Stage.CONTRACT_UPLOAD:
        return record.contract_drafter is None
    if stage == Stage.AP_REVIEW:
        if _opw_route(record) and record.contract_drafter is None:
            return False
        return record.ap_review is None
    return False


def current_stage(record: SubmissionRecord) -> PipelineState:
    if pbp_required(record):
        pbp = record.pbp_review
        if pbp is None:
            return PipelineState.PBP_REVIEW
        if pbp.decision == Decision.REJECTED:
            return PipelineState.TERMINATED
        if pbp.decision == Decision.INFO_REQUIRED:
            if pbp.awaiting == "requester":
                return PipelineState.AWAITING_REQUESTER
            return PipelineState.PBP_REVIEW

    procurement = record.procurement_review
    if procurement is None:
        return PipelineState.PROCUREMENT_REVIEW
    if procurement.decision != Decision.APPROVED:
        return PipelineState.TERMINATED

    if procurement.classification == Classification.OPW_IR35:
        opw = record.opw_review
        if opw is None:
            return PipelineState.OPW_REVIEW
        if opw.decision != Decision.APPROVED:
            return PipelineState.TERMINATED
        if record.contract_drafter is None:
            return PipelineState.CONTRACT_UPLOAD

    ap = record.ap_review
    if ap is None:
        return PipelineState.AP_REVIEW
    if ap.decision == Decision.APPROVED:
        return PipelineState.VERIFIED
    return PipelineState.TERMINATED
