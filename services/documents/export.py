"""
Printable summary of a submission.

Formats whatever the record holds at call time (form snapshot, uploads and
any review sub-objects present) into a PDF. Never writes to the record.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Iterable
from typing import Any
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from domain.models import SubmissionRecord
from services.pipeline.stages import current_stage

logger = logging.getLogger(__name__)

# (heading, [(answer key, label)]) in form order
FORM_LAYOUT: tuple[tuple[str, tuple[tuple[str, str], ...]], ...] = (
    (
        "Section 1: Requester Information",
        (
            ("firstName", "First Name"),
            ("lastName", "Last Name"),
            ("jobTitle", "Job Title"),
            ("department", "Department"),
            ("nhsEmail", "NHS Email"),
            ("phoneNumber", "Phone Number"),
        ),
    ),
    (
        "Section 2: Pre-screening",
        (
            ("supplierConnection", "Supplier Connection"),
            ("connectionDetails", "Connection Details"),
            ("letterheadAvailable", "Letterhead Available"),
            ("justification", "Justification"),
            ("usageFrequency", "Usage Frequency"),
            ("serviceCategory", "Service Category"),
            ("procurementEngaged", "Procurement Engaged"),
            ("questionnaireId", "Questionnaire Reference"),
        ),
    ),
    (
        "Section 3: Supplier Classification",
        (
            ("companiesHouseRegistered", "Companies House Registered"),
            ("supplierType", "Supplier Type"),
            ("crn", "Company Registration Number"),
            ("charityNumber", "Charity Number"),
            ("organisationType", "Organisation Type"),
            ("idType", "ID Type"),
            ("annualValue", "Annual Value"),
            ("employeeCount", "Employee Count"),
        ),
    ),
    (
        "Section 4: Supplier Details",
        (
            ("companyName", "Company Name"),
            ("tradingName", "Trading Name"),
            ("registeredAddress", "Registered Address"),
            ("city", "City"),
            ("postcode", "Postcode"),
            ("contactName", "Contact Name"),
            ("contactEmail", "Contact Email"),
            ("contactPhone", "Contact Phone"),
            ("website", "Website"),
        ),
    ),
    (
        "Section 5: Service Description",
        (
            ("serviceType", "Service Type"),
            ("serviceDescription", "Service Description"),
        ),
    ),
    (
        "Section 6: Financial Information",
        (
            ("overseasSupplier", "Overseas Supplier"),
            ("accountsAddressSame", "Accounts Address Same"),
            ("ghxDunsNumber", "GHX/DUNS Number"),
            ("cisRegistered", "CIS Registered"),
            ("publicLiability", "Public Liability Insurance"),
            ("plCoverage", "Public Liability Coverage"),
            ("plExpiry", "Public Liability Expiry"),
            ("vatRegistered", "VAT Registered"),
            ("vatNumber", "VAT Number"),
        ),
    ),
)


def _fmt(value: Any) -> str:
    if value is None or value == "":
        return "-"
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (list, tuple)):
        return ", ".join(_fmt(v) for v in value) or "-"
    if hasattr(value, "value"):
        value = value.value
    text = str(value)
    if text in ("yes", "no"):
        return text.capitalize()
    return text


def _table(rows: Iterable[tuple[str, Any]], body_style) -> Table:
    data = [
        [Paragraph(f"<b>{escape(label)}</b>", body_style), Paragraph(escape(_fmt(value)), body_style)]
        for label, value in rows
    ]
    table = Table(data, colWidths=[55 * mm, 115 * mm])
    table.setStyle(
        TableStyle(
            [
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("BACKGROUND", (0, 0), (0, -1), colors.whitesmoke),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ]
        )
    )
    return table


def _review_rows(record: SubmissionRecord) -> list[tuple[str, list[tuple[str, Any]]]]:
    sections = []
    if record.pbp_review:
        r = record.pbp_review
        sections.append(
            (
                "PBP Review",
                [
                    ("Decision", r.decision),
                    ("Comments", r.comments),
                    ("Signed by", r.signer_name),
                    ("Date", r.signed_date.isoformat()),
                    ("Messages", len(r.exchanges)),
                ],
            )
        )
    if record.procurement_review:
        r = record.procurement_review
        sections.append(
            (
                "Procurement Review",
                [
                    ("Decision", r.decision),
                    ("Classification", r.classification),
                    ("Alemba Reference", r.external_reference),
                    ("Comments", r.comments),
                    ("Signed by", r.signer_name),
                    ("Date", r.signed_date.isoformat()),
                ],
            )
        )
    if record.opw_review:
        r = record.opw_review
        sections.append(
            (
                "OPW / IR35 Review",
                [
                    ("Decision", r.decision),
                    ("IR35 Status", r.ir35_status),
                    ("Rationale", r.rationale),
                    ("Signed by", r.signer_name),
                    ("Date", r.signed_date.isoformat()),
                ],
            )
        )
    if record.contract_drafter:
        r = record.contract_drafter
        sections.append(
            (
                "Contract",
                [
                    ("Document", r.contract.name),
                    ("Uploaded by", r.uploaded_by),
                    ("Date", r.uploaded_on.isoformat()),
                ],
            )
        )
    if record.ap_review:
        r = record.ap_review
        sections.append(
            (
                "AP Control Verification",
                [
                    ("Decision", r.decision),
                    ("Bank details verified", r.bank_details_verified),
                    ("Company details verified", r.company_details_verified),
                    ("VAT verified", r.vat_verified),
                    ("Insurance verified", r.insurance_verified),
                    ("Supplier Number", r.supplier_number),
                    ("Signed by", r.signer_name),
                    ("Date", r.signed_date.isoformat()),
                ],
            )
        )
    return sections


def export_submission_pdf(record: SubmissionRecord) -> bytes:
    styles = getSampleStyleSheet()
    body = styles["BodyText"]
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        title=f"Supplier Setup Request {record.submission_id}",
        leftMargin=20 * mm,
        rightMargin=20 * mm,
    )

    story: list[Any] = [
        Paragraph("New Supplier Setup Request", styles["Title"]),
        _table(
            [
                ("Submission ID", record.submission_id),
                ("Submitted", record.submission_date.strftime("%d/%m/%Y %H:%M")),
                ("Submitted by", record.submitted_by),
                ("Status", record.status),
                ("Stage", current_stage(record)),
            ],
            body,
        ),
        Spacer(1, 6 * mm),
    ]

    form = record.form_data
    for heading, fields in FORM_LAYOUT:
        rows = [(label, form.get(key)) for key, label in fields if key in form]
        if not rows:
            continue
        story += [Paragraph(heading, styles["Heading2"]), _table(rows, body), Spacer(1, 4 * mm)]

    if record.uploaded_files:
        story += [
            Paragraph("Uploaded Documents", styles["Heading2"]),
            _table(
                [(slot, f"{doc.name} ({doc.size_bytes} bytes)") for slot, doc in record.uploaded_files.items()],
                body,
            ),
            Spacer(1, 4 * mm),
        ]

    for heading, rows in _review_rows(record):
        story += [Paragraph(heading, styles["Heading2"]), _table(rows, body), Spacer(1, 4 * mm)]

    doc.build(story)
    logger.debug("exported %s (%s bytes)", record.submission_id, buf.tell())
    return buf.getvalue()
