"""
HTTP routes for the questions API.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request

from forum.dependencies import get_store_engine
from forum.schemas import (
    AnswerRequest,
    AnswerResponse,
    LikeRequest,
    LikeResponse,
    SubmitQuestionRequest,
    SubmitQuestionResponse,
)
from forum.store import StoreEngine
from shared.forum_doc_convert import question_to_dict, reply_to_dict

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/submit-question", response_model=SubmitQuestionResponse)
def submit_question(
    payload: SubmitQuestionRequest,
    request: Request,
    store: StoreEngine = Depends(get_store_engine),
):
    question_id = store.submit_question(
        payload.name,
        payload.email,
        payload.question,
        ip=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )
    return SubmitQuestionResponse(
        message="Question submitted successfully", question_id=question_id
    )


@router.get("/questions", response_model=list[dict])
def list_questions(store: StoreEngine = Depends(get_store_engine)):
    return [question_to_dict(question) for question in store.list_questions()]


@router.post("/questions/{question_id}/answer", response_model=AnswerResponse)
def post_answer(
    question_id: int,
    payload: AnswerRequest,
    store: StoreEngine = Depends(get_store_engine),
):
    reply = store.post_reply(
        question_id,
        payload.answer,
        author=payload.author,
        is_owner=payload.is_owner,
        parent_answer_id=payload.parent_answer_id,
    )
    return AnswerResponse(
        message="Reply posted successfully", reply=reply_to_dict(reply)
    )


@router.post("/questions/{question_id}/like", response_model=LikeResponse)
def like_question(
    question_id: int,
    payload: Optional[LikeRequest] = None,
    store: StoreEngine = Depends(get_store_engine),
):
    payload = payload or LikeRequest()
    result = store.toggle_like(question_id, payload.user_id)
    return LikeResponse(likes=result.likes, is_liked=result.is_liked)
