from dataclasses import dataclass
from enum import Enum


class SectionStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    COMPLETE = "complete"
    INCOMPLETE = "incomplete"


@dataclass(frozen=True)
class QuestionLock:
    number: int  # 1..7 within pre-screening
    key: str  # answer field the question writes
    locked: bool
    satisfied: bool
    reason: str | None = None  # why it is locked (first unmet predecessor)


@dataclass(frozen=True)
class DocumentPreview:
    media_type: str
    filename: str
    data: bytes
    inline: bool = True
