"""
Progressive disclosure for the pre-screening section.

Seven questions form a strict chain: question i is unlocked only when every
question before it is satisfied. Lock state is recomputed from
(answers, uploads) on every call and never stored, so it cannot drift from
the data after a reload.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, NamedTuple

from domain.models import DocumentSlot
from domain.value_objects import QuestionLock
from services.intake.requirements import has_upload
from services.intake.validator import (
    JUSTIFICATION_MIN_CHARS,
    SERVICE_CATEGORIES,
    USAGE_FREQUENCIES,
    justification_ok,
)

LETTERHEAD_BLOCK_REASON = 'You must select "Yes" and upload a letterhead to proceed'


class _Question(NamedTuple):
    key: str
    # returns None when satisfied, otherwise the reason later questions stay locked
    check: Callable[[Mapping[str, Any], Mapping[str, Any]], str | None]


def _supplier_connection(answers, uploads) -> str | None:
    answer = answers.get("supplierConnection")
    if answer not in ("yes", "no"):
        return "Please answer the supplier connection question first"
    details = answers.get("connectionDetails")
    if answer == "yes" and not (isinstance(details, str) and details.strip()):
        return "Please describe your connection to this supplier first"
    return None


def _letterhead(answers, uploads) -> str | None:
    answer = answers.get("letterheadAvailable")
    if answer == "no":
        return LETTERHEAD_BLOCK_REASON
    if answer != "yes":
        return "Answer the letterhead question first"
    if not has_upload(uploads, DocumentSlot.LETTERHEAD):
        return "Please upload the letterhead document"
    return None


def _justification(answers, uploads) -> str | None:
    if not justification_ok(answers):
        return f"Please provide justification first (minimum {JUSTIFICATION_MIN_CHARS} characters)"
    return None


def _usage_frequency(answers, uploads) -> str | None:
    if answers.get("usageFrequency") not in USAGE_FREQUENCIES:
        return "Please select usage frequency first"
    return None


def _service_category(answers, uploads) -> str | None:
    if answers.get("serviceCategory") not in SERVICE_CATEGORIES:
        return "Please select the service category first"
    return None


def _procurement(answers, uploads) -> str | None:
    answer = answers.get("procurementEngaged")
    if answer == "yes":
        if not has_upload(uploads, DocumentSlot.PROCUREMENT_APPROVAL):
            return "Please upload the procurement approval document"
        return None
    if answer == "no":
        if answers.get("questionnaireSubmitted") is not True:
            return "Please complete the procurement questionnaire first"
        return None
    return "Answer the procurement question first"


def _acknowledgement(answers, uploads) -> str | None:
    if answers.get("prescreeningAcknowledgement") is not True:
        return "Please confirm the pre-screening acknowledgement"
    return None


CHAIN: tuple[_Question, ...] = (
    _Question("supplierConnection", _supplier_connection),
    _Question("letterheadAvailable", _letterhead),
    _Question("justification", _justification),
    _Question("usageFrequency", _usage_frequency),
    _Question("serviceCategory", _service_category),
    _Question("procurementEngaged", _procurement),
    _Question("prescreeningAcknowledgement", _acknowledgement),
)


def question_locks(
    answers: Mapping[str, Any] | None, uploads: Mapping[str, Any] | None
) -> list[QuestionLock]:
    answers = answers if isinstance(answers, Mapping) else {}
    uploads = uploads if isinstance(uploads, Mapping) else {}

    locks = []
    blocker: str | None = None
    for number, question in enumerate(CHAIN, start=1):
        unmet = question.check(answers, uploads)
        locks.append(
            QuestionLock(
                number=number,
                key=question.key,
                locked=blocker is not None,
                satisfied=unmet is None,
                reason=blocker,
            )
        )
        if blocker is None and unmet is not None:
            blocker = unmet
    return locks


def is_unlocked(number: int, answers, uploads) -> bool:
    return not question_locks(answers, uploads)[number - 1].locked


def is_hard_blocked(answers: Mapping[str, Any] | None) -> bool:
    """'No letterhead' stops the chain until the requester flips it to yes."""
    return (answers or {}).get("letterheadAvailable") == "no"


def chain_complete(answers, uploads) -> bool:
    return all(lock.satisfied and not lock.locked for lock in question_locks(answers, uploads))


def first_blocker(answers, uploads) -> str | None:
    for question in CHAIN:
        unmet = question.check(answers or {}, uploads or {})
        if unmet is not None:
            return unmet
    return None
