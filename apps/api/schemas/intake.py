from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnswersIn(ApiModel):
    fields: dict[str, Any] = Field(default_factory=dict)


class NavigateIn(ApiModel):
    target: int


class QuestionnaireIn(ApiModel):
    questionnaire_id: str = Field(min_length=1)


class SubmitIn(ApiModel):
    submitted_by: Optional[str] = None


class SubmitOut(ApiModel):
    submission_id: str
    status: str
    current_stage: Optional[str] = None
