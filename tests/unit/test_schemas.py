"""
Unit tests for section format rules.

- field and cross-field messages are "<field>: <message>"
- normalisation of CRN and postcode
"""

from __future__ import annotations

from services.intake.schemas import normalise_section, validate_section


def test_valid_sections_pass(section_answers):
    for section, answers in section_answers.items():
        assert validate_section(section, answers) == [], section


def test_nhs_email_domain(section_answers):
    answers = {**section_answers[1], "nhsEmail": "jane@example.com"}
    assert validate_section(1, answers) == [
        "nhsEmail: Email must be an NHS email address ending in @nhs.net"
    ]


def test_crn_format_message(section_answers):
    answers = {**section_answers[3], "crn": "12AB"}
    assert validate_section(3, answers) == ["crn: CRN must be 7 or 8 digits"]


def test_uk_bank_details_required_for_domestic(section_answers):
    answers = {**section_answers[6], "sortCode": "12", "accountNumber": ""}
    errors = validate_section(6, answers)
    assert "sortCode: UK Sort Code must be exactly 6 digits" in errors
    assert "accountNumber: UK Account Number must be exactly 8 digits" in errors


def test_expired_liability_insurance(section_answers):
    answers = {**section_answers[6], "plExpiry": "2001-01-01"}
    assert "plExpiry: Expiry date must be today or in the future" in validate_section(6, answers)


def test_prescreening_letterhead_no(section_answers):
    answers = {**section_answers[2], "letterheadAvailable": "no"}
    assert "letterheadAvailable: A letterhead with bank details is required" in validate_section(
        2, answers
    )


def test_review_requires_acknowledgement():
    assert validate_section(7, {"finalAcknowledgement": False}) == [
        "finalAcknowledgement: You must acknowledge before submitting"
    ]


def test_unknown_section():
    assert validate_section(12, {}) == ["unknown section: 12"]


def test_normalise_pads_seven_digit_crn():
    assert normalise_section(3, {"crn": "1234567"}) == {"crn": "01234567"}
    assert normalise_section(3, {"crn": "12345678"}) == {}


def test_normalise_postcode():
    assert normalise_section(4, {"postcode": "ls1  4ap"}) == {"postcode": "LS1 4AP"}
