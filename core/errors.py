from __future__ import annotations


class OnboardingError(Exception):
    pass


class SectionValidationError(OnboardingError):
    def __init__(self, section: int, errors: list[str]):
        self.section = section
        self.errors = errors
        super().__init__(f"section {section} failed validation: {'; '.join(errors)}")


class IncompleteSubmission(OnboardingError):
    def __init__(self, missing: dict[int, list[str]]):
        self.missing = missing
        super().__init__(f"incomplete sections: {sorted(missing)}")


class AlreadySubmitted(OnboardingError):
    def __init__(self, submission_id: str):
        self.submission_id = submission_id
        super().__init__(f"session already submitted as {submission_id}")


class InvalidUpload(OnboardingError):
    pass


class SessionNotFound(OnboardingError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"intake session not found: {session_id}")


class SubmissionNotFound(OnboardingError):
    def __init__(self, submission_id: str):
        self.submission_id = submission_id
        super().__init__(f"submission not found: {submission_id}")


class MalformedSubmission(SubmissionNotFound):
    """A stored record that does not parse; handled exactly like a miss."""


class StagePreconditionError(OnboardingError):
    def __init__(self, stage: str, errors: list[str]):
        self.stage = stage
        self.errors = errors
        super().__init__(f"{stage}: {'; '.join(errors)}")


class StageNotReachable(OnboardingError):
    def __init__(self, stage: str, submission_id: str):
        self.stage = stage
        self.submission_id = submission_id
        super().__init__(f"{stage} is not reachable for {submission_id}")


class StageAlreadyDecided(OnboardingError):
    def __init__(self, stage: str, submission_id: str):
        self.stage = stage
        self.submission_id = submission_id
        super().__init__(f"{stage} already decided for {submission_id}")


class StaleWriteError(OnboardingError):
    def __init__(self, submission_id: str, base_version: int, current_version: int | None):
        self.submission_id = submission_id
        self.base_version = base_version
        self.current_version = current_version
        super().__init__(
            f"stale write to {submission_id}: based on v{base_version}, stored is v{current_version}"
        )
