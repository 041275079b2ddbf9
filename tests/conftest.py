"""
Shared fixtures: an in-memory store, repositories on top of it, a real
one-page PDF and a complete set of valid answers for all seven sections.
"""

from __future__ import annotations

import base64
import copy
import io

import pytest
from reportlab.pdfgen import canvas

from domain.models import DocumentSlot, SubmissionRecord, UploadedDocument
from services.intake.session import new_session, set_upload
from services.intake.workflow import complete_section
from services.persistence.repository import IntakeSessionRepository, SubmissionRepository
from services.persistence.store import InMemoryKeyValueStore

SECTION_ANSWERS = {
    1: {
        "firstName": "Jane",
        "lastName": "Smith",
        "jobTitle": "Estates Manager",
        "department": "Estates",
        "nhsEmail": "jane.smith@nhs.net",
        "phoneNumber": "01234 567890",
    },
    2: {
        "supplierConnection": "no",
        "letterheadAvailable": "yes",
        "justification": "Specialist deep cleaning for theatre suites",
        "usageFrequency": "regular",
        "serviceCategory": "non-clinical",
        "procurementEngaged": "yes",
        "prescreeningAcknowledgement": True,
    },
    3: {
        "companiesHouseRegistered": "yes",
        "supplierType": "limited_company",
        "crn": "1234567",
        "annualValue": 25000,
        "employeeCount": "small",
    },
    4: {
        "companyName": "Acme Cleaning Ltd",
        "registeredAddress": "1 High Street",
        "city": "Leeds",
        "postcode": "ls1 4ap",
        "contactName": "Tom Jones",
        "contactEmail": "tom@acme.co.uk",
        "contactPhone": "0113 496 0000",
    },
    5: {
        "serviceType": ["cleaning"],
        "serviceDescription": "Deep cleaning of theatre suites twice a month",
    },
    6: {
        "overseasSupplier": "no",
        "sortCode": "12-34-56",
        "accountNumber": "12345678",
        "accountsAddressSame": "yes",
        "ghxDunsKnown": "no",
        "cisRegistered": "no",
        "publicLiability": "yes",
        "plCoverage": 5000000,
        "plExpiry": "2099-12-31",
        "vatRegistered": "yes",
        "vatNumber": "GB123456789",
    },
    7: {"finalAcknowledgement": True},
}


def make_pdf(text: str = "Acme Cleaning Ltd") -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf)
    c.drawString(72, 750, text)
    c.showPage()
    c.save()
    return buf.getvalue()


def make_document(name: str = "letterhead.pdf", data: bytes | None = None) -> UploadedDocument:
    data = data if data is not None else make_pdf()
    return UploadedDocument(
        name=name,
        size_bytes=len(data),
        mime_type="application/pdf",
        content=base64.b64encode(data).decode("ascii"),
    )


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def submissions(store):
    return SubmissionRepository(store)


@pytest.fixture
def sessions(store):
    return IntakeSessionRepository(store)


@pytest.fixture
def pdf_bytes():
    return make_pdf()


@pytest.fixture
def section_answers():
    return copy.deepcopy(SECTION_ANSWERS)


@pytest.fixture
def all_answers(section_answers):
    merged = {}
    for fields in section_answers.values():
        merged.update(fields)
    return merged


@pytest.fixture
def standard_uploads():
    return {
        DocumentSlot.LETTERHEAD.value: make_document("letterhead.pdf"),
        DocumentSlot.PROCUREMENT_APPROVAL.value: make_document("approval.pdf"),
    }


@pytest.fixture
def completed_session(section_answers, standard_uploads):
    """A session that went through every section's Next action."""
    session = new_session()
    for slot, doc in standard_uploads.items():
        set_upload(session, slot, doc)
    for section in range(1, 8):
        complete_section(session, section, section_answers[section])
    return session


@pytest.fixture
def make_record(submissions, all_answers, standard_uploads):
    """Persist a fresh pending submission; form_data overrides are merged in."""

    counter = iter(range(1, 1000))

    def _make(**form_overrides) -> SubmissionRecord:
        record = SubmissionRecord(
            submission_id=f"SUP-TEST-{next(counter):03d}",
            submitted_by="jane.smith@nhs.net",
            form_data={**all_answers, **form_overrides},
            uploaded_files=standard_uploads,
        )
        return submissions.create(record)

    return _make
