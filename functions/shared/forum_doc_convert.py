"""
Helpers to convert the persisted questions JSON document into dataclass
instances and back.
"""

from __future__ import annotations

import json
from dataclasses import fields
from typing import Any, Callable

from dacite import Config, DaciteError, from_dict

from shared.forum_doc import Question, QuestionCollection, QuestionStatus, Reply
from shared.json_utils import camel_to_snake, snake_to_camel

_DACITE_CONFIG = Config(cast=[QuestionStatus])

_QUESTION_FIELDS = {f.name for f in fields(Question)} - {"extra"}
_REPLY_FIELDS = {f.name for f in fields(Reply)} - {"extra"}


class MalformedDocumentError(ValueError):
    """Raised when stored bytes cannot be decoded into a collection."""


def _split_known(data: dict, known: set[str]) -> dict:
    """Maps stored camelCase keys onto field names; the rest go to `extra`."""
    prepared: dict = {"extra": {}}
    for key, value in data.items():
        name = camel_to_snake(key) if isinstance(key, str) else key
        if name in known:
            prepared[name] = value
        else:
            prepared["extra"][key] = value
    return prepared


def _prepare_reply(data: Any) -> Any:
    if not isinstance(data, dict):
        return data
    prepared = _split_known(data, _REPLY_FIELDS)
    if isinstance(prepared.get("replies"), list):
        prepared["replies"] = [_prepare_reply(child) for child in prepared["replies"]]
    return prepared


def _entity_to_dict(
    entity: Question | Reply, children: str, child_to_dict: Callable[[Reply], dict]
) -> dict:
    data: dict = {}
    for f in fields(entity):
        if f.name == "extra":
            continue
        value = getattr(entity, f.name)
        if value is None:
            continue
        if f.name == children:
            value = [child_to_dict(child) for child in value]
        data[snake_to_camel(f.name)] = value
    for key, value in entity.extra.items():
        data.setdefault(key, value)
    return data


def reply_to_dict(reply: Reply) -> dict:
    return _entity_to_dict(reply, "replies", reply_to_dict)


def question_to_dict(question: Question) -> dict:
    return _entity_to_dict(question, "answers", reply_to_dict)


def collection_to_dict(collection: QuestionCollection) -> dict:
    return {"questions": [question_to_dict(q) for q in collection.questions]}


def question_from_dict(data: dict) -> Question:
    prepared = _split_known(data, _QUESTION_FIELDS)
    if isinstance(prepared.get("answers"), list):
        prepared["answers"] = [_prepare_reply(reply) for reply in prepared["answers"]]
    return from_dict(data_class=Question, data=prepared, config=_DACITE_CONFIG)


def encode_collection(collection: QuestionCollection) -> bytes:
    return json.dumps(collection_to_dict(collection), indent=2).encode("utf-8")


def decode_collection(raw: bytes | None) -> QuestionCollection:
    """
    Decodes stored bytes, normalizing empty or legacy-shaped documents.

    Empty input, a non-object top level, or a missing/non-list `questions`
    field all yield an empty collection. Invalid JSON, questions with
    wrongly-typed fields, or reply threads nested too deeply to decode raise
    MalformedDocumentError.
    """
    if raw is None or not raw.strip():
        return QuestionCollection()
    try:
        payload = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedDocumentError(f"invalid JSON: {exc}") from exc
    except RecursionError as exc:
        raise MalformedDocumentError("document is nested too deeply") from exc

    if not isinstance(payload, dict):
        return QuestionCollection()
    questions = payload.get("questions")
    if not isinstance(questions, list):
        return QuestionCollection()

    if not all(isinstance(item, dict) for item in questions):
        raise MalformedDocumentError("question entries must be objects")
    try:
        return QuestionCollection(
            questions=[question_from_dict(item) for item in questions]
        )
    except (DaciteError, TypeError, ValueError) as exc:
        raise MalformedDocumentError(f"invalid question entry: {exc}") from exc
    except RecursionError as exc:
        raise MalformedDocumentError("reply thread is nested too deeply") from exc
