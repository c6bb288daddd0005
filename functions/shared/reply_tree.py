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

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from shared.forum_doc import Reply


@dataclass
class AttachResult:
    attached_as_child: bool


def iter_replies(forest: List[Reply]) -> Iterator[Reply]:
    """
    Yields every reply in the forest in pre-order.

    Siblings are visited in sequence order, each subtree fully before the
    next sibling. Uses an explicit stack so deep threads cannot exhaust the
    interpreter's recursion limit.
    """
    stack = list(reversed(forest))
    while stack:
        reply = stack.pop()
        yield reply
        stack.extend(reversed(reply.replies))


def iter_replies_with_depth(forest: List[Reply]) -> Iterator[Tuple[Reply, int]]:
    """Pre-order like `iter_replies`, paired with depth (top level is 0)."""
    stack = [(reply, 0) for reply in reversed(forest)]
    while stack:
        reply, depth = stack.pop()
        yield reply, depth
        stack.extend((child, depth + 1) for child in reversed(reply.replies))


def reply_depth(forest: List[Reply], reply_id: int) -> Optional[int]:
    """Depth of the first pre-order reply with `reply_id`, or None."""
    for reply, depth in iter_replies_with_depth(forest):
        if reply.id == reply_id:
            return depth
    return None


def find_reply(forest: List[Reply], reply_id: int) -> Optional[Reply]:
    """Returns the first pre-order reply with `reply_id`, or None."""
    for reply in iter_replies(forest):
        if reply.id == reply_id:
            return reply
    return None


def attach(
    forest: List[Reply], parent_id: Optional[int], new_reply: Reply
) -> AttachResult:
    """
    Appends `new_reply` under the first reply whose id is `parent_id`.

    Returns attached_as_child=False when `parent_id` is None or not present;
    the caller then places the reply at the top level of the forest.
    """
    if parent_id is None:
        return AttachResult(attached_as_child=False)
    parent = find_reply(forest, parent_id)
    if parent is None:
        return AttachResult(attached_as_child=False)
    parent.replies.append(new_reply)
    return AttachResult(attached_as_child=True)
