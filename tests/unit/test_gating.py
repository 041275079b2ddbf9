"""
Unit tests for section gating.

- backward navigation is always free
- forward navigation needs every earlier section marked complete
- status derivation (active / pending / complete / incomplete)
"""

from __future__ import annotations

from domain.models import CompletionLedger
from domain.value_objects import SectionStatus
from services.intake.gating import (
    can_navigate_to,
    form_progress,
    go_to_section,
    mark_section_complete,
    next_section,
    prev_section,
    section_status,
)
from services.intake.session import new_session, remove_upload, update_answers


def test_backward_navigation_always_allowed():
    """Any target at or before the current section is reachable."""
    ledger = CompletionLedger()
    for target in range(1, 6):
        assert can_navigate_to(target, ledger, current_section=5)


def test_forward_navigation_requires_all_predecessors_complete():
    """Section 4 needs 1, 2 and 3 in the completed set."""
    ledger = CompletionLedger(completed_sections={1, 2})
    assert not can_navigate_to(4, ledger, current_section=1)
    ledger.completed_sections.add(3)
    assert can_navigate_to(4, ledger, current_section=1)


def test_forward_navigation_gap_is_denied():
    """Completing 1 and 3 does not open 4 while 2 is missing."""
    ledger = CompletionLedger(completed_sections={1, 3})
    assert not can_navigate_to(4, ledger, current_section=3)


def test_out_of_range_target_denied():
    ledger = CompletionLedger(completed_sections=set(range(1, 8)))
    assert not can_navigate_to(0, ledger, current_section=1)
    assert not can_navigate_to(8, ledger, current_section=1)


def test_go_to_section_denied_is_noop():
    """A denied jump leaves the session untouched."""
    session = new_session()
    assert go_to_section(session, 3) is False
    assert session.current_section == 1
    assert session.ledger.visited_sections == [1]


def test_go_to_section_records_visit():
    session = new_session()
    mark_section_complete(session, 1)
    assert go_to_section(session, 2) is True
    assert session.current_section == 2
    assert session.ledger.visited_sections == [1, 2]


def test_next_and_prev_bounds():
    session = new_session()
    assert prev_section(session) is False
    assert next_section(session) is True
    assert session.current_section == 2
    session.current_section = 7
    assert next_section(session) is False


def test_section_status_derivation(section_answers):
    """active beats everything; unvisited is pending; visited is complete or incomplete."""
    session = new_session()
    update_answers(session, section_answers[1])
    mark_section_complete(session, 1)
    go_to_section(session, 2)

    assert section_status(session, 2) == SectionStatus.ACTIVE
    assert section_status(session, 1) == SectionStatus.COMPLETE
    assert section_status(session, 5) == SectionStatus.PENDING

    update_answers(session, {"jobTitle": ""})
    assert section_status(session, 1) == SectionStatus.INCOMPLETE


def test_completion_survives_upload_removal(completed_session):
    """Completion is a progress flag; removing an upload shows up as incomplete, not uncompleted."""
    remove_upload(completed_session, "letterhead")
    completed_session.current_section = 1
    assert 2 in completed_session.ledger.completed_sections
    assert section_status(completed_session, 2) == SectionStatus.INCOMPLETE
    assert can_navigate_to(7, completed_session.ledger, completed_session.current_section)


def test_form_progress_rounds():
    session = new_session()
    assert form_progress(session) == 0
    for s in (1, 2, 3):
        mark_section_complete(session, s)
    assert form_progress(session) == 43
