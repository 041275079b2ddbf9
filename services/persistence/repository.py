"""
Submission and intake-session repositories over a KeyValueStore.

Keys:
  submission_{id}   one SubmissionRecord document
  all_submissions   ordered list of summaries (registry)
  intake_{id}       one IntakeSession document

Stage writes go through update(): the raw document as loaded is written back
with only the changed top-level keys replaced, so sub-objects written by
earlier stages (or by other tools) are stored exactly as they were read.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from core.config import settings
from core.errors import (
    MalformedSubmission,
    SessionNotFound,
    StaleWriteError,
    SubmissionNotFound,
)
from domain.models import SCHEMA_VERSION, IntakeSession, SubmissionRecord, SubmissionSummary
from services.observability.metrics import timing_metric
from services.persistence.store import KeyValueStore

logger = logging.getLogger(__name__)


def submission_key(submission_id: str) -> str:
    return f"submission_{submission_id}"


class SubmissionRepository:
    def __init__(self, store: KeyValueStore, registry_key: str | None = None):
        self.store = store
        self.registry_key = registry_key or settings.REGISTRY_KEY

    def create(self, record: SubmissionRecord) -> SubmissionRecord:
        with timing_metric("submission.create"):
            self.store.put(submission_key(record.submission_id), record.to_document())
            summary = SubmissionSummary(
                submission_id=record.submission_id,
                submission_date=record.submission_date,
                submitted_by=record.submitted_by,
                status=record.status,
                current_stage=record.current_stage,
            )
            self.store.append(self.registry_key, summary.to_document())
        logger.info("created submission %s", record.submission_id)
        return record

    def load(self, submission_id: str) -> tuple[dict[str, Any], SubmissionRecord]:
        """Raw stored document plus its parsed form."""
        with timing_metric("submission.get"):
            raw = self.store.get(submission_key(submission_id))
        if raw is None:
            raise SubmissionNotFound(submission_id)
        if not isinstance(raw, dict):
            raise MalformedSubmission(submission_id)
        schema_version = raw.get("schemaVersion", SCHEMA_VERSION)
        if schema_version != SCHEMA_VERSION:
            logger.warning(
                "submission %s has unsupported schemaVersion %r", submission_id, schema_version
            )
            raise MalformedSubmission(submission_id)
        try:
            return raw, SubmissionRecord.model_validate(raw)
        except ValidationError as e:
            logger.warning("submission %s failed to parse: %s", submission_id, e)
            raise MalformedSubmission(submission_id) from e

    def get(self, submission_id: str) -> SubmissionRecord:
        return self.load(submission_id)[1]

    def update(self, document: dict[str, Any], fields: dict[str, Any]) -> SubmissionRecord:
        """Write fields over document as the next version, or fail if someone wrote in between.

        document is the raw JSON as returned by load(); every key not named in
        fields is written back untouched.
        """
        submission_id = document["submissionId"]
        base_version = document.get("version", 0)
        updated = {**document, **fields, "version": base_version + 1}
        key = submission_key(submission_id)
        with timing_metric("submission.save"):
            written = self.store.replace(key, updated, expected_version=base_version)
        if not written:
            current = self.store.get(key)
            if current is None:
                raise SubmissionNotFound(submission_id)
            current_version = current.get("version", 0) if isinstance(current, dict) else None
            raise StaleWriteError(submission_id, base_version, current_version)
        return SubmissionRecord.model_validate(updated)

    def _registry(self) -> list[dict[str, Any]]:
        raw = self.store.get(self.registry_key)
        return list(raw) if isinstance(raw, list) else []

    def list_summaries(self) -> list[SubmissionSummary]:
        out = []
        for entry in self._registry():
            try:
                out.append(SubmissionSummary.model_validate(entry))
            except ValidationError:
                logger.warning("skipping malformed registry entry: %r", entry)
        return out

    def patch_summary(self, submission_id: str, **fields: Any) -> None:
        # registry patches are last-writer-wins; the record itself is versioned
        registry = self._registry()
        for entry in registry:
            if isinstance(entry, dict) and entry.get("submissionId") == submission_id:
                entry.update(fields)
                break
        else:
            logger.warning("registry has no entry for %s", submission_id)
            return
        self.store.put(self.registry_key, registry)


class IntakeSessionRepository:
    def __init__(self, store: KeyValueStore):
        self.store = store

    @staticmethod
    def key(session_id: str) -> str:
        return f"intake_{session_id}"

    def save(self, session: IntakeSession) -> IntakeSession:
        with timing_metric("intake.save"):
            self.store.put(self.key(session.session_id), session.to_document())
        return session

    def get(self, session_id: str) -> IntakeSession:
        raw = self.store.get(self.key(session_id))
        if raw is None:
            raise SessionNotFound(session_id)
        try:
            return IntakeSession.model_validate(raw)
        except ValidationError as e:
            raise SessionNotFound(session_id) from e

    def delete(self, session_id: str) -> None:
        self.store.delete(self.key(session_id))
