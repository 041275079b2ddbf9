"""
Integration test for the HTTP surface: intake through to AP verification
against the in-memory store.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import SECTION_ANSWERS, make_pdf

from apps.api.deps import get_store
from apps.api.main import app
from services.persistence.store import InMemoryKeyValueStore


@pytest.fixture
def client():
    kv = InMemoryKeyValueStore()
    app.dependency_overrides[get_store] = lambda: kv
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _upload(client, sid, slot, name="doc.pdf"):
    r = client.put(
        f"/intake/sessions/{sid}/uploads/{slot}",
        files={"file": (name, make_pdf(), "application/pdf")},
    )
    assert r.status_code == 200, r.text
    return r


def _completed(client) -> str:
    sid = client.post("/intake/sessions").json()["sessionId"]
    _upload(client, sid, "letterhead")
    _upload(client, sid, "procurementApproval")
    for section in range(1, 8):
        r = client.post(
            f"/intake/sessions/{sid}/sections/{section}/complete",
            json={"fields": SECTION_ANSWERS[section]},
        )
        assert r.status_code == 200, r.text
    return sid


def _submitted(client) -> str:
    sid = _completed(client)
    r = client.post(f"/intake/sessions/{sid}/submit", json={})
    assert r.status_code == 201, r.text
    return r.json()["submissionId"]


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}


def test_prescreening_locks(client):
    sid = client.post("/intake/sessions").json()["sessionId"]
    client.patch(f"/intake/sessions/{sid}/answers", json={"fields": {"supplierConnection": "no"}})
    body = client.get(f"/intake/sessions/{sid}/prescreening").json()
    assert [q["locked"] for q in body["questions"]] == [False, False, True, True, True, True, True]
    assert body["hardBlocked"] is False


def test_forward_jump_denied(client):
    sid = client.post("/intake/sessions").json()["sessionId"]
    body = client.post(f"/intake/sessions/{sid}/navigate", json={"target": 4}).json()
    assert body["moved"] is False
    assert body["currentSection"] == 1


def test_section_errors_are_422(client):
    sid = client.post("/intake/sessions").json()["sessionId"]
    fields = {**SECTION_ANSWERS[1], "nhsEmail": "jane@gmail.com"}
    r = client.post(f"/intake/sessions/{sid}/sections/1/complete", json={"fields": fields})
    assert r.status_code == 422
    assert r.json()["detail"]["errors"] == [
        "nhsEmail: Email must be an NHS email address ending in @nhs.net"
    ]
    # rejected answers are still saved
    assert client.get(f"/intake/sessions/{sid}").json()["answers"]["nhsEmail"] == "jane@gmail.com"


def test_bad_upload_type(client):
    sid = client.post("/intake/sessions").json()["sessionId"]
    r = client.put(
        f"/intake/sessions/{sid}/uploads/letterhead",
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )
    assert r.status_code == 400


def test_incomplete_submit(client):
    sid = client.post("/intake/sessions").json()["sessionId"]
    r = client.post(f"/intake/sessions/{sid}/submit", json={})
    assert r.status_code == 422
    assert "Letterhead with Bank Details" in r.json()["detail"]["missing"]["2"]


def test_submit_without_section_steps_refused(client):
    """Answers patched in directly never count as completed sections."""
    sid = client.post("/intake/sessions").json()["sessionId"]
    _upload(client, sid, "letterhead")
    _upload(client, sid, "procurementApproval")
    fields = {}
    for section in range(1, 8):
        fields.update(SECTION_ANSWERS[section])
    client.patch(f"/intake/sessions/{sid}/answers", json={"fields": fields})

    r = client.post(f"/intake/sessions/{sid}/submit", json={})
    assert r.status_code == 422
    missing = r.json()["detail"]["missing"]
    assert missing["1"] == ["Section not completed"]
    assert missing["7"] == ["Open Review & Submit before submitting"]
    assert client.get("/submissions").json() == []


def test_submit_rejects_answers_edited_after_completion(client):
    sid = _completed(client)
    client.patch(f"/intake/sessions/{sid}/answers", json={"fields": {"nhsEmail": "jane@gmail.com"}})
    r = client.post(f"/intake/sessions/{sid}/submit", json={})
    assert r.status_code == 422
    assert r.json()["detail"]["errors"] == [
        "nhsEmail: Email must be an NHS email address ending in @nhs.net"
    ]

    client.patch(
        f"/intake/sessions/{sid}/answers",
        json={"fields": {"nhsEmail": "jane.smith@nhs.net", "finalAcknowledgement": False}},
    )
    r = client.post(f"/intake/sessions/{sid}/submit", json={})
    assert r.status_code == 422
    assert r.json()["detail"]["errors"] == [
        "finalAcknowledgement: You must acknowledge before submitting"
    ]
    assert client.get("/submissions").json() == []


def test_unknown_ids_are_404(client):
    assert client.get("/intake/sessions/nope").status_code == 404
    assert client.get("/submissions/SUP-404").status_code == 404


def test_full_standard_flow(client):
    sub = _submitted(client)
    state = client.get(f"/submissions/{sub}/pipeline").json()
    assert state["currentStage"] == "procurement_review"
    assert state["stages"]["pbp_review"]["reachable"] is False

    r = client.post(
        f"/submissions/{sub}/procurement-review",
        json={
            "decision": "approved",
            "classification": "standard",
            "externalReference": "ALM-2041",
            "signerName": "Pat Buyer",
            "signedDate": "2026-10-19",
        },
    )
    assert r.status_code == 200, r.text
    assert r.json()["version"] == 1

    r = client.post(
        f"/submissions/{sub}/opw-review",
        json={"ir35Status": "inside", "rationale": "x", "signerName": "O", "signedDate": "2026-10-19"},
    )
    assert r.status_code == 409

    r = client.post(
        f"/submissions/{sub}/ap-review",
        json={"bankDetailsVerified": True, "signerName": "Alex", "signedDate": "2026-10-19"},
    )
    assert r.status_code == 422
    assert r.json()["detail"]["errors"] == ["Company details verification is required"]

    stale = client.post(
        f"/submissions/{sub}/ap-review",
        json={
            "bankDetailsVerified": True,
            "companyDetailsVerified": True,
            "signerName": "Alex",
            "signedDate": "2026-10-19",
            "baseVersion": 0,
        },
    )
    assert stale.status_code == 409
    assert stale.json()["detail"]["currentVersion"] == 1

    r = client.post(
        f"/submissions/{sub}/ap-review",
        json={
            "bankDetailsVerified": True,
            "companyDetailsVerified": True,
            "supplierNumber": "SUP-000981",
            "signerName": "Alex",
            "signedDate": "2026-10-19",
            "baseVersion": 1,
        },
    )
    assert r.status_code == 200, r.text
    assert r.json()["currentStage"] == "verified"

    listing = client.get("/submissions").json()
    assert listing[0]["apStatus"] == "verified"

    pdf = client.get(f"/submissions/{sub}/export.pdf")
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")

    preview = client.get(f"/submissions/{sub}/documents/letterhead/preview")
    assert preview.status_code == 200
    assert preview.headers["content-disposition"].startswith("inline")


def test_opw_contract_flow(client):
    sub = _submitted(client)
    client.post(
        f"/submissions/{sub}/procurement-review",
        json={
            "decision": "approved",
            "classification": "opw_ir35",
            "externalReference": "ALM-7",
            "signerName": "Pat Buyer",
            "signedDate": "2026-10-19",
        },
    )
    r = client.post(
        f"/submissions/{sub}/opw-review",
        json={
            "ir35Status": "outside",
            "rationale": "Supplier controls delivery",
            "signerName": "Olu Panel",
            "signedDate": "2026-10-19",
        },
    )
    assert r.json()["currentStage"] == "contract_upload"

    r = client.post(
        f"/submissions/{sub}/contract",
        files={"file": ("contract.pdf", make_pdf("Agreement"), "application/pdf")},
        data={"uploadedBy": "Chris Drafter"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["currentStage"] == "ap_review"

    record = client.get(f"/submissions/{sub}").json()["record"]
    assert record["contractDrafter"]["uploadedBy"] == "Chris Drafter"
    assert record["opwReview"]["outsideIR35Process"]["status"] == "Awaiting_Consultancy_Agreement"
    assert client.get(f"/submissions/{sub}/documents/contract/preview").status_code == 200
