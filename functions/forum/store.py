"""
Store engine: read-modify-write cycles over an ordered chain of backends.

The engine keeps no copy of the collection between calls. Every operation
re-reads from the backends, so concurrent mutations can still overwrite each
other (last save wins). When the primary backend is versioned, a concurrent
write surfaces as a ConflictError and the engine falls back to the next
backend instead of reloading and retrying.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Mapping, Optional, Sequence, TypeVar

from forum.errors import NotFoundError, StoreError, ValidationError
from forum.storage import BackendError, ConflictError, StorageBackend
from shared import likes, reply_tree
from shared.forum_doc import (
    DEFAULT_AUTHOR,
    LikeResult,
    Question,
    QuestionCollection,
    QuestionStatus,
    Reply,
)
from shared.forum_doc_convert import (
    MalformedDocumentError,
    decode_collection,
    encode_collection,
)

logger = logging.getLogger(__name__)

MIN_QUESTION_LENGTH = 5
# Replies deeper than this are refused; decoding and encoding the document
# recurse once per level.
MAX_REPLY_DEPTH = 50
DEFAULT_USER_ID = "anonymous"

T = TypeVar("T")


class IdGenerator:
    """Millisecond wall-clock ids, strictly increasing within this process."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            self._last = max(int(self._clock() * 1000), self._last + 1)
            return self._last


def utc_now_iso() -> str:
    now = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return now.replace("+00:00", "Z")


@dataclass
class _Snapshot:
    collection: QuestionCollection
    # Version tokens seen during the read, keyed by backend name.
    versions: Dict[str, str] = field(default_factory=dict)


class StoreEngine:
    def __init__(
        self,
        backends: Sequence[StorageBackend],
        id_generator: Optional[Callable[[], int]] = None,
        clock: Callable[[], str] = utc_now_iso,
        max_reply_depth: int = MAX_REPLY_DEPTH,
    ):
        if not backends:
            raise ValueError("StoreEngine requires at least one storage backend")
        self.backends = list(backends)
        self._next_id = id_generator or IdGenerator()
        self._now = clock
        self.max_reply_depth = max_reply_depth

    @property
    def primary(self) -> StorageBackend:
        return self.backends[0]

    def initialize(self) -> QuestionCollection:
        """
        Make sure the primary backend holds a document, creating an empty one
        if nothing is stored yet. Safe to call more than once.
        """
        try:
            blob = self.primary.fetch()
        except BackendError as exc:
            logger.warning("Initial fetch from %s failed: %s", self.primary.name, exc)
            return self.load()

        if blob is not None:
            try:
                return decode_collection(blob.data)
            except MalformedDocumentError as exc:
                logger.warning("Malformed document in %s: %s", self.primary.name, exc)
                return self.load()

        collection = QuestionCollection()
        if self.save(collection):
            logger.info("Created empty questions document")
        else:
            logger.error("Could not create the questions document on any backend")
        return collection

    def _read(self) -> _Snapshot:
        versions: Dict[str, str] = {}
        for backend in self.backends:
            try:
                blob = backend.fetch()
            except BackendError as exc:
                logger.warning("Fetch from %s failed: %s", backend.name, exc)
                continue
            if blob is None:
                return _Snapshot(QuestionCollection(), versions)
            if blob.version:
                versions[backend.name] = blob.version
            try:
                return _Snapshot(decode_collection(blob.data), versions)
            except MalformedDocumentError as exc:
                logger.warning("Malformed document in %s: %s", backend.name, exc)
        logger.error("No storage backend could be read; using an empty collection")
        return _Snapshot(QuestionCollection(), versions)

    def load(self) -> QuestionCollection:
        """Returns the first readable collection, or an empty one."""
        return self._read().collection

    def save(
        self,
        collection: QuestionCollection,
        versions: Optional[Mapping[str, str]] = None,
    ) -> bool:
        """
        Writes the collection to the first backend that accepts it.

        `versions` carries tokens from the read half of the same cycle; a
        versioned backend without a token only accepts a create.
        """
        data = encode_collection(collection)
        versions = versions or {}
        for backend in self.backends:
            try:
                backend.store(data, version=versions.get(backend.name))
            except ConflictError as exc:
                logger.warning("Concurrent update detected on %s: %s", backend.name, exc)
                continue
            except BackendError as exc:
                logger.warning("Store to %s failed: %s", backend.name, exc)
                continue
            logger.info(
                "Saved %d questions to %s", len(collection.questions), backend.name
            )
            return True
        logger.error("All storage backends rejected the write")
        return False

    def _mutate(self, apply: Callable[[QuestionCollection], T]) -> T:
        snapshot = self._read()
        result = apply(snapshot.collection)
        if not self.save(snapshot.collection, versions=snapshot.versions):
            raise StoreError("Failed to save changes")
        return result

    def _unique_id(self, collection: QuestionCollection) -> int:
        taken = set()
        for question in collection.questions:
            taken.add(question.id)
            taken.update(reply.id for reply in reply_tree.iter_replies(question.answers))
        candidate = self._next_id()
        while candidate in taken:
            candidate = self._next_id()
        return candidate

    @staticmethod
    def _find_question(collection: QuestionCollection, question_id: int) -> Question:
        for question in collection.questions:
            if question.id == question_id:
                return question
        raise NotFoundError("Question not found")

    def list_questions(self) -> list[Question]:
        return self.load().questions

    def submit_question(
        self,
        name: Optional[str],
        email: Optional[str],
        question: Optional[str],
        *,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> int:
        text = (question or "").strip()
        if len(text) < MIN_QUESTION_LENGTH:
            raise ValidationError(
                f"Question must be at least {MIN_QUESTION_LENGTH} characters"
            )

        def apply(collection: QuestionCollection) -> int:
            new_question = Question(
                id=self._unique_id(collection),
                question=text,
                name=name or DEFAULT_AUTHOR,
                email=email or "",
                timestamp=self._now(),
                ip=ip,
                user_agent=user_agent,
            )
            collection.questions.append(new_question)
            return new_question.id

        question_id = self._mutate(apply)
        logger.info("Question %d submitted", question_id)
        return question_id

    def post_reply(
        self,
        question_id: int,
        content: Optional[str],
        author: Optional[str] = None,
        is_owner: bool = False,
        parent_answer_id: Optional[int] = None,
    ) -> Reply:
        text = (content or "").strip()
        if not text:
            raise ValidationError("Reply cannot be empty")

        def apply(collection: QuestionCollection) -> Reply:
            question = self._find_question(collection, question_id)
            if parent_answer_id is not None:
                parent_depth = reply_tree.reply_depth(question.answers, parent_answer_id)
                if parent_depth is not None and parent_depth + 1 >= self.max_reply_depth:
                    raise ValidationError(
                        f"Replies cannot be nested more than {self.max_reply_depth} levels deep"
                    )
            reply = Reply(
                id=self._unique_id(collection),
                content=text,
                author=author or DEFAULT_AUTHOR,
                is_owner=bool(is_owner),
                date=self._now(),
                parent_answer_id=parent_answer_id,
            )
            if reply_tree.attach(question.answers, parent_answer_id, reply).attached_as_child:
                return reply

            if parent_answer_id is not None:
                logger.info(
                    "Parent reply %s not found on question %s, adding at top level",
                    parent_answer_id,
                    question_id,
                )
            question.answers.append(reply)
            if reply.is_owner:
                question.status = QuestionStatus.ANSWERED
                question.response = text
                question.responded_at = reply.date
            return reply

        reply = self._mutate(apply)
        logger.info("Reply %d posted on question %d", reply.id, question_id)
        return reply

    def toggle_like(
        self, question_id: int, user_id: Optional[str] = DEFAULT_USER_ID
    ) -> LikeResult:
        def apply(collection: QuestionCollection) -> LikeResult:
            question = self._find_question(collection, question_id)
            return likes.toggle(question, user_id or DEFAULT_USER_ID)

        return self._mutate(apply)
