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

from shared.forum_doc import LikeResult, Question


def toggle(question: Question, user_id: str) -> LikeResult:
    """
    Likes the question for `user_id`, or removes an existing like.

    `liked_by` is de-duplicated and `likes` is recomputed from it, so a
    drifted stored counter is corrected on the next toggle.
    """
    liked_by = list(dict.fromkeys(question.liked_by))
    if user_id in liked_by:
        liked_by.remove(user_id)
        is_liked = False
    else:
        liked_by.append(user_id)
        is_liked = True

    question.liked_by = liked_by
    question.likes = len(liked_by)
    return LikeResult(likes=question.likes, is_liked=is_liked)
