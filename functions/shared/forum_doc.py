# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from enum import StrEnum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

DEFAULT_AUTHOR = "Anonymous"


class QuestionStatus(StrEnum):
    PENDING = "pending"
    ANSWERED = "answered"


@dataclass
class Reply:
    id: int
    content: str
    author: str = DEFAULT_AUTHOR
    is_owner: bool = False
    date: str = ""
    replies: List["Reply"] = field(default_factory=list)
    # Provenance only: the reply id the caller asked to nest under.
    parent_answer_id: Optional[int] = None
    # Stored keys this model does not know about, kept as-is on save.
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Question:
    id: int
    question: str
    name: str = DEFAULT_AUTHOR
    email: str = ""
    timestamp: str = ""
    status: QuestionStatus = QuestionStatus.PENDING
    likes: int = 0
    liked_by: List[str] = field(default_factory=list)
    answers: List[Reply] = field(default_factory=list)
    ip: Optional[str] = None
    user_agent: Optional[str] = None
    response: Optional[str] = None
    responded_at: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class QuestionCollection:
    """The whole persisted document; questions are kept in insertion order."""

    questions: List[Question] = field(default_factory=list)


@dataclass
class LikeResult:
    likes: int
    is_liked: bool
