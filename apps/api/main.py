# apps/api/main.py

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from apps.api.routers import documents, intake, reviews
from core.config import settings
from core.errors import (
    AlreadySubmitted,
    IncompleteSubmission,
    InvalidUpload,
    OnboardingError,
    SectionValidationError,
    SessionNotFound,
    StageAlreadyDecided,
    StageNotReachable,
    StagePreconditionError,
    StaleWriteError,
    SubmissionNotFound,
)
from core.logging import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Supplier Onboarding API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(intake.router)
app.include_router(reviews.router)
app.include_router(documents.router)


def _status_for(exc: OnboardingError) -> int:
    if isinstance(exc, (SessionNotFound, SubmissionNotFound)):
        return 404
    if isinstance(exc, (AlreadySubmitted, StageNotReachable, StageAlreadyDecided, StaleWriteError)):
        return 409
    if isinstance(exc, (SectionValidationError, IncompleteSubmission, StagePreconditionError)):
        return 422
    if isinstance(exc, InvalidUpload):
        return 400
    return 500


def _detail(exc: OnboardingError) -> dict:
    detail: dict = {"error": type(exc).__name__, "message": str(exc)}
    if isinstance(exc, (SectionValidationError, StagePreconditionError)):
        detail["errors"] = exc.errors
    if isinstance(exc, IncompleteSubmission):
        detail["missing"] = {str(s): labels for s, labels in exc.missing.items()}
    if isinstance(exc, StaleWriteError):
        detail["currentVersion"] = exc.current_version
    return detail


@app.exception_handler(OnboardingError)
async def onboarding_error_handler(request: Request, exc: OnboardingError):
    code = _status_for(exc)
    if code >= 500:
        logger.error("unhandled onboarding error on %s: %s", request.url.path, exc)
    else:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, code, exc)
    return JSONResponse(status_code=code, content={"detail": _detail(exc)})


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}
