"""
Unit tests for the pre-screening question chain.

- a question is unlocked only when every earlier one is satisfied
- "no letterhead" hard-blocks the chain
- lock state is a pure function of (answers, uploads)
"""

from __future__ import annotations

from conftest import make_document

from services.intake.disclosure import (
    LETTERHEAD_BLOCK_REASON,
    chain_complete,
    is_hard_blocked,
    is_unlocked,
    question_locks,
)


def _locked(answers, uploads):
    return [lock.number for lock in question_locks(answers, uploads) if lock.locked]


def test_empty_answers_only_first_question_open():
    assert _locked({}, {}) == [2, 3, 4, 5, 6, 7]


def test_connection_yes_needs_details():
    answers = {"supplierConnection": "yes"}
    assert not is_unlocked(2, answers, {})
    answers["connectionDetails"] = "My brother-in-law is a director"
    assert is_unlocked(2, answers, {})


def test_letterhead_upload_opens_justification_only():
    """Connection "no" opens Q2; letterhead yes + upload opens Q3 but not Q4..Q7."""
    answers = {"supplierConnection": "no"}
    assert is_unlocked(2, answers, {})
    assert _locked(answers, {}) == [3, 4, 5, 6, 7]

    answers["letterheadAvailable"] = "yes"
    uploads = {"letterhead": make_document()}
    assert is_unlocked(3, answers, uploads)
    assert _locked(answers, uploads) == [4, 5, 6, 7]


def test_letterhead_yes_without_upload_keeps_justification_locked():
    answers = {"supplierConnection": "no", "letterheadAvailable": "yes"}
    assert not is_unlocked(3, answers, {})


def test_letterhead_no_hard_blocks():
    answers = {
        "supplierConnection": "no",
        "letterheadAvailable": "no",
        "justification": "A long enough justification",
        "usageFrequency": "regular",
    }
    locks = question_locks(answers, {"letterhead": make_document()})
    assert is_hard_blocked(answers)
    assert [lock.number for lock in locks if lock.locked] == [3, 4, 5, 6, 7]
    assert locks[2].reason == LETTERHEAD_BLOCK_REASON


def test_short_justification_keeps_frequency_locked():
    answers = {
        "supplierConnection": "no",
        "letterheadAvailable": "yes",
        "justification": "too short",
    }
    uploads = {"letterhead": make_document()}
    assert not is_unlocked(4, answers, uploads)
    answers["justification"] = "   padded   "
    assert not is_unlocked(4, answers, uploads)
    answers["justification"] = "Ten chars!"
    assert is_unlocked(4, answers, uploads)


def test_procurement_no_needs_questionnaire(section_answers):
    answers = {**section_answers[2], "procurementEngaged": "no"}
    uploads = {"letterhead": make_document()}
    assert not is_unlocked(7, answers, uploads)
    answers["questionnaireSubmitted"] = True
    assert is_unlocked(7, answers, uploads)
    assert chain_complete(answers, uploads)


def test_procurement_yes_needs_approval_upload(section_answers):
    answers = section_answers[2]
    uploads = {"letterhead": make_document()}
    assert not is_unlocked(7, answers, uploads)
    uploads["procurementApproval"] = make_document("approval.pdf")
    assert is_unlocked(7, answers, uploads)


def test_unlocked_implies_predecessors_satisfied(section_answers):
    """Monotonicity: every unlocked question has only satisfied predecessors."""
    full = section_answers[2]
    uploads = {"letterhead": make_document(), "procurementApproval": make_document()}
    keys = list(full)
    for n in range(len(keys) + 1):
        partial = {k: full[k] for k in keys[:n]}
        locks = question_locks(partial, uploads)
        for lock in locks:
            if not lock.locked:
                assert all(prev.satisfied for prev in locks[: lock.number - 1])


def test_empty_upload_content_does_not_count():
    answers = {"supplierConnection": "no", "letterheadAvailable": "yes"}
    empty = make_document().model_copy(update={"content": ""})
    assert not is_unlocked(3, answers, {"letterhead": empty})


def test_locks_are_pure():
    answers = {"supplierConnection": "no", "letterheadAvailable": "yes"}
    uploads = {"letterhead": make_document()}
    assert question_locks(answers, uploads) == question_locks(answers, uploads)
