"""
Which document uploads a request needs, as one pure function.

Every caller (pre-screening locks, per-section missing fields, the final
submit check) asks this module instead of re-deriving the conditions.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from domain.models import DocumentSlot

UPLOAD_LABELS: dict[DocumentSlot, str] = {
    DocumentSlot.LETTERHEAD: "Letterhead with Bank Details",
    DocumentSlot.PROCUREMENT_APPROVAL: "Procurement Approval Document",
    DocumentSlot.CEST_FORM: "CEST Form",
    DocumentSlot.PASSPORT_PHOTO: "Passport Photo",
    DocumentSlot.LICENCE_FRONT: "Driving Licence (Front)",
    DocumentSlot.LICENCE_BACK: "Driving Licence (Back)",
    DocumentSlot.OPW_CONTRACT: "OPW Contract",
    DocumentSlot.CONTRACT: "Contract",
}

IDENTITY_SLOTS = (
    DocumentSlot.PASSPORT_PHOTO,
    DocumentSlot.LICENCE_FRONT,
    DocumentSlot.LICENCE_BACK,
)


def has_upload(uploads: Mapping[str, Any] | None, slot: DocumentSlot | str) -> bool:
    """A slot counts as uploaded only when it holds a document with content."""
    if not uploads:
        return False
    key = slot.value if isinstance(slot, DocumentSlot) else slot
    doc = uploads.get(key)
    if doc is None:
        return False
    content = doc.get("content") if isinstance(doc, Mapping) else getattr(doc, "content", None)
    return isinstance(content, str) and bool(content.strip())


def is_sole_trader(answers: Mapping[str, Any] | None) -> bool:
    answers = answers or {}
    return answers.get("supplierType") == "sole_trader" or answers.get("soleTraderStatus") == "yes"


def uses_driving_licence(answers: Mapping[str, Any], uploads: Mapping[str, Any] | None) -> bool:
    id_type = answers.get("idType")
    if id_type == "driving_licence":
        return True
    if id_type == "passport":
        return False
    # no ID type chosen yet: follow whichever route the uploads already started
    return not has_upload(uploads, DocumentSlot.PASSPORT_PHOTO) and (
        has_upload(uploads, DocumentSlot.LICENCE_FRONT)
        or has_upload(uploads, DocumentSlot.LICENCE_BACK)
    )


def required_upload_slots(
    answers: Mapping[str, Any] | None, uploads: Mapping[str, Any] | None
) -> set[DocumentSlot]:
    answers = answers or {}
    required = {DocumentSlot.LETTERHEAD}

    if answers.get("procurementEngaged") == "yes":
        required.add(DocumentSlot.PROCUREMENT_APPROVAL)

    if is_sole_trader(answers):
        required.add(DocumentSlot.CEST_FORM)
        if uses_driving_licence(answers, uploads):
            required.update({DocumentSlot.LICENCE_FRONT, DocumentSlot.LICENCE_BACK})
        else:
            required.add(DocumentSlot.PASSPORT_PHOTO)

    return required


def missing_upload_slots(
    answers: Mapping[str, Any] | None, uploads: Mapping[str, Any] | None
) -> set[DocumentSlot]:
    return {s for s in required_upload_slots(answers, uploads) if not has_upload(uploads, s)}
