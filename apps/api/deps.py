from functools import lru_cache

from fastapi import Depends

from services.persistence.repository import IntakeSessionRepository, SubmissionRepository
from services.persistence.store import KeyValueStore, build_store


@lru_cache
def get_store() -> KeyValueStore:
    """One store per process; backend picked by STORE_BACKEND."""
    return build_store()


def get_submission_repository(store=Depends(get_store)) -> SubmissionRepository:
    return SubmissionRepository(store)


def get_session_repository(store=Depends(get_store)) -> IntakeSessionRepository:
    return IntakeSessionRepository(store)
