"""
Pydantic schemas for the questions API. Field names are camelCase on the wire.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SubmitQuestionRequest(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    # Minimum length is checked by the store engine.
    question: Optional[str] = None


class SubmitQuestionResponse(CamelModel):
    success: Literal[True] = True
    message: str
    question_id: int


class AnswerRequest(CamelModel):
    answer: Optional[str] = None
    author: Optional[str] = None
    is_owner: bool = False
    parent_answer_id: Optional[int] = None

    @field_validator("parent_answer_id", mode="before")
    @classmethod
    def _blank_parent_is_top_level(cls, value):
        if value in ("", 0, "0"):
            return None
        return value


class AnswerResponse(CamelModel):
    success: Literal[True] = True
    message: str
    reply: dict


class LikeRequest(CamelModel):
    user_id: str = "anonymous"


class LikeResponse(CamelModel):
    success: Literal[True] = True
    likes: int
    is_liked: bool


class ErrorResponse(CamelModel):
    success: Literal[False] = False
    message: str
