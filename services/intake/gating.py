from __future__ import annotations

import logging

from domain.models import TOTAL_SECTIONS, CompletionLedger, IntakeSession
from domain.value_objects import SectionStatus
from services.intake.validator import missing_fields

logger = logging.getLogger(__name__)


def _valid(section: int) -> bool:
    return isinstance(section, int) and 1 <= section <= TOTAL_SECTIONS


def can_navigate_to(target: int, ledger: CompletionLedger, current_section: int) -> bool:
    """Backward is always free; forward needs every earlier section marked complete."""
    if not _valid(target):
        return False
    if target <= current_section:
        return True
    return all(s in ledger.completed_sections for s in range(1, target))


def _visit(session: IntakeSession, section: int) -> None:
    session.current_section = section
    if section not in session.ledger.visited_sections:
        session.ledger.visited_sections.append(section)


def go_to_section(session: IntakeSession, target: int) -> bool:
    if not can_navigate_to(target, session.ledger, session.current_section):
        # the UI should never offer this jump; ignore it
        logger.debug("navigation to section %s denied for %s", target, session.session_id)
        return False
    _visit(session, target)
    return True


def next_section(session: IntakeSession) -> bool:
    if session.current_section >= TOTAL_SECTIONS:
        return False
    _visit(session, session.current_section + 1)
    return True


def prev_section(session: IntakeSession) -> bool:
    if session.current_section <= 1:
        return False
    _visit(session, session.current_section - 1)
    return True


def mark_section_complete(session: IntakeSession, section: int) -> None:
    # progress flag only; field validity is re-derived by section_status
    if _valid(section):
        session.ledger.completed_sections.add(section)


def section_status(session: IntakeSession, section: int) -> SectionStatus:
    if section == session.current_section:
        return SectionStatus.ACTIVE
    if section not in session.ledger.visited_sections:
        return SectionStatus.PENDING
    if not missing_fields(section, session.answers, session.uploads):
        return SectionStatus.COMPLETE
    return SectionStatus.INCOMPLETE


def section_statuses(session: IntakeSession) -> dict[int, SectionStatus]:
    return {s: section_status(session, s) for s in range(1, TOTAL_SECTIONS + 1)}


def form_progress(session: IntakeSession) -> int:
    return round(len(session.ledger.completed_sections) / TOTAL_SECTIONS * 100)
