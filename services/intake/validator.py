"""
Per-section completeness check.

missing_fields(section, answers, uploads) returns human-readable labels in a
fixed order. It is the completeness oracle for section status and the final
submit, so it must never raise: anything absent or of the wrong shape is
simply reported as missing.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from domain.models import TOTAL_SECTIONS, DocumentSlot
from services.intake.requirements import (
    IDENTITY_SLOTS,
    UPLOAD_LABELS,
    has_upload,
    missing_upload_slots,
)

JUSTIFICATION_MIN_CHARS = 10

YES_NO = ("yes", "no")
USAGE_FREQUENCIES = ("one-off", "occasional", "regular")
SERVICE_CATEGORIES = ("clinical", "non-clinical")


def _text(answers: Mapping[str, Any], key: str) -> bool:
    value = answers.get(key)
    return isinstance(value, str) and bool(value.strip())


def _choice(answers: Mapping[str, Any], key: str, options: tuple[str, ...] | None = None) -> bool:
    if not _text(answers, key):
        return False
    return options is None or answers[key] in options


def _amount(answers: Mapping[str, Any], key: str) -> bool:
    value = answers.get(key)
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return value > 0
    if isinstance(value, str):
        try:
            return float(value.replace(",", "")) > 0
        except ValueError:
            return False
    return False


def _items(answers: Mapping[str, Any], key: str) -> bool:
    value = answers.get(key)
    return isinstance(value, (list, tuple)) and any(
        isinstance(v, str) and v.strip() for v in value
    )


def justification_ok(answers: Mapping[str, Any]) -> bool:
    value = answers.get("justification")
    return isinstance(value, str) and len(value.strip()) >= JUSTIFICATION_MIN_CHARS


def _section1(answers, uploads) -> list[str]:
    missing = []
    for key, label in (
        ("firstName", "First Name"),
        ("lastName", "Last Name"),
        ("jobTitle", "Job Title"),
        ("department", "Department"),
        ("nhsEmail", "NHS Email"),
        ("phoneNumber", "Phone Number"),
    ):
        if not _text(answers, key):
            missing.append(label)
    return missing


def _section2(answers, uploads) -> list[str]:
    missing = []
    if not _choice(answers, "supplierConnection", YES_NO):
        missing.append("Supplier Connection")
    elif answers["supplierConnection"] == "yes" and not _text(answers, "connectionDetails"):
        missing.append("Connection Details")
    if not _choice(answers, "letterheadAvailable", YES_NO):
        missing.append("Letterhead Available")
    if not justification_ok(answers):
        missing.append("Justification")
    if not _choice(answers, "usageFrequency", USAGE_FREQUENCIES):
        missing.append("Usage Frequency")
    if not _choice(answers, "serviceCategory", SERVICE_CATEGORIES):
        missing.append("Service Category")
    if not _choice(answers, "procurementEngaged", YES_NO):
        missing.append("Procurement Engagement")

    absent = missing_upload_slots(answers, uploads)
    if DocumentSlot.LETTERHEAD in absent:
        missing.append(UPLOAD_LABELS[DocumentSlot.LETTERHEAD])
    if DocumentSlot.PROCUREMENT_APPROVAL in absent:
        missing.append(UPLOAD_LABELS[DocumentSlot.PROCUREMENT_APPROVAL])
    if answers.get("procurementEngaged") == "no" and answers.get("questionnaireSubmitted") is not True:
        missing.append("Procurement Questionnaire")

    if answers.get("prescreeningAcknowledgement") is not True:
        missing.append("Pre-screening Acknowledgement")
    return missing


def _section3(answers, uploads) -> list[str]:
    missing = []
    supplier_type = answers.get("supplierType")
    registered = answers.get("companiesHouseRegistered")

    if not _choice(answers, "companiesHouseRegistered", YES_NO):
        missing.append("Companies House Registration Status")
    if not _text(answers, "supplierType"):
        missing.append("Supplier Type")

    if registered == "yes" and supplier_type == "limited_company" and not _text(answers, "crn"):
        missing.append("Company Registration Number")

    if supplier_type == "charity":
        if not _text(answers, "charityNumber"):
            missing.append("Charity Number")
        if registered == "yes" and not _text(answers, "crnCharity"):
            missing.append("Charity Registration Number")

    if supplier_type == "sole_trader":
        id_type = answers.get("idType")
        if not _text(answers, "idType"):
            missing.append("ID Type")
        if id_type == "passport" and not has_upload(uploads, DocumentSlot.PASSPORT_PHOTO):
            missing.append(UPLOAD_LABELS[DocumentSlot.PASSPORT_PHOTO])
        if id_type == "driving_licence":
            if not has_upload(uploads, DocumentSlot.LICENCE_FRONT):
                missing.append(UPLOAD_LABELS[DocumentSlot.LICENCE_FRONT])
            if not has_upload(uploads, DocumentSlot.LICENCE_BACK):
                missing.append(UPLOAD_LABELS[DocumentSlot.LICENCE_BACK])

    if supplier_type == "public_sector" and not _text(answers, "organisationType"):
        missing.append("Organisation Type")

    if not _amount(answers, "annualValue"):
        missing.append("Annual Value")
    if not _text(answers, "employeeCount"):
        missing.append("Employee Count")
    return missing


def _section4(answers, uploads) -> list[str]:
    missing = []
    for key, label in (
        ("companyName", "Company Name"),
        ("registeredAddress", "Registered Address"),
        ("city", "City"),
        ("postcode", "Postcode"),
        ("contactName", "Contact Name"),
        ("contactEmail", "Contact Email"),
        ("contactPhone", "Contact Phone"),
    ):
        if not _text(answers, key):
            missing.append(label)
    return missing


def _section5(answers, uploads) -> list[str]:
    missing = []
    if not _items(answers, "serviceType"):
        missing.append("Service Type")
    if not _text(answers, "serviceDescription"):
        missing.append("Service Description")
    return missing


def _section6(answers, uploads) -> list[str]:
    missing = []
    if not _choice(answers, "overseasSupplier", YES_NO):
        missing.append("Overseas Supplier Status")
    if answers.get("overseasSupplier") == "yes":
        for key, label in (
            ("iban", "IBAN"),
            ("swiftCode", "SWIFT Code"),
            ("bankRouting", "Bank Routing Number"),
        ):
            if not _text(answers, key):
                missing.append(label)

    if not _choice(answers, "accountsAddressSame", YES_NO):
        missing.append("Accounts Address Same")
    if answers.get("accountsAddressSame") == "no":
        for key, label in (
            ("accountsAddress", "Accounts Address"),
            ("accountsCity", "Accounts City"),
            ("accountsPostcode", "Accounts Postcode"),
            ("accountsPhone", "Accounts Phone"),
            ("accountsEmail", "Accounts Email"),
        ):
            if not _text(answers, key):
                missing.append(label)

    if not _choice(answers, "ghxDunsKnown", YES_NO):
        missing.append("GHX/DUNS Known")
    if answers.get("ghxDunsKnown") == "yes" and not _text(answers, "ghxDunsNumber"):
        missing.append("GHX/DUNS Number")

    if not _choice(answers, "cisRegistered", YES_NO):
        missing.append("CIS Registration Status")
    if answers.get("cisRegistered") == "yes" and not _text(answers, "utrNumber"):
        missing.append("UTR Number")

    if not _choice(answers, "publicLiability", YES_NO):
        missing.append("Public Liability Insurance")
    if answers.get("publicLiability") == "yes":
        if not _amount(answers, "plCoverage"):
            missing.append("Public Liability Coverage")
        if not _text(answers, "plExpiry"):
            missing.append("Public Liability Expiry Date")

    if not _choice(answers, "vatRegistered", YES_NO):
        missing.append("VAT Registration Status")
    if answers.get("vatRegistered") == "yes" and not _text(answers, "vatNumber"):
        missing.append("VAT Number")
    return missing


def _section7(answers, uploads) -> list[str]:
    # review & submit re-checks every upload whose need was decided earlier
    missing = []
    absent = missing_upload_slots(answers, uploads)
    if DocumentSlot.LETTERHEAD in absent:
        missing.append("Letterhead with Bank Details (Upload Required)")
    if DocumentSlot.PROCUREMENT_APPROVAL in absent:
        missing.append("Procurement Approval Document (Upload Required)")
    if DocumentSlot.CEST_FORM in absent:
        missing.append("CEST Form (Upload Required for Sole Traders)")
    if any(slot in absent for slot in IDENTITY_SLOTS):
        missing.append("Passport or Driving Licence (Upload Required for Sole Traders)")
    return missing


_RULES: dict[int, Callable[[Mapping[str, Any], Mapping[str, Any]], list[str]]] = {
    1: _section1,
    2: _section2,
    3: _section3,
    4: _section4,
    5: _section5,
    6: _section6,
    7: _section7,
}


def missing_fields(
    section: int, answers: Mapping[str, Any] | None, uploads: Mapping[str, Any] | None
) -> list[str]:
    rule = _RULES.get(section)
    if rule is None:
        return []
    if not isinstance(answers, Mapping):
        answers = {}
    if not isinstance(uploads, Mapping):
        uploads = {}
    return rule(answers, uploads)


def missing_fields_by_section(
    answers: Mapping[str, Any] | None, uploads: Mapping[str, Any] | None
) -> dict[int, list[str]]:
    """Only sections that still have gaps appear in the result."""
    result = {}
    for section in range(1, TOTAL_SECTIONS + 1):
        missing = missing_fields(section, answers, uploads)
        if missing:
            result[section] = missing
    return result
