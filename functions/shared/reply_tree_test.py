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

import unittest

from shared import reply_tree
from shared.forum_doc import Reply


def _reply(reply_id, *children):
    return Reply(id=reply_id, content=f"reply {reply_id}", replies=list(children))


class ReplyTreeTest(unittest.TestCase):

    def setUp(self):
        # 1 -> (2 -> 3), 4 -> 5
        self.forest = [_reply(1, _reply(2, _reply(3))), _reply(4, _reply(5))]

    def test_iter_replies_is_pre_order(self):
        ids = [r.id for r in reply_tree.iter_replies(self.forest)]
        self.assertEqual(ids, [1, 2, 3, 4, 5])

    def test_attach_to_nested_parent(self):
        new_reply = _reply(10)
        result = reply_tree.attach(self.forest, 3, new_reply)

        self.assertTrue(result.attached_as_child)
        self.assertIs(self.forest[0].replies[0].replies[0].replies[0], new_reply)
        self.assertEqual(len(self.forest), 2)

    def test_attach_appends_after_existing_children(self):
        reply_tree.attach(self.forest, 4, _reply(10))
        self.assertEqual([r.id for r in self.forest[1].replies], [5, 10])

    def test_missing_parent_is_left_to_caller(self):
        result = reply_tree.attach(self.forest, 99, _reply(10))
        self.assertFalse(result.attached_as_child)
        self.assertEqual([r.id for r in reply_tree.iter_replies(self.forest)], [1, 2, 3, 4, 5])

    def test_none_parent_skips_search(self):
        result = reply_tree.attach(self.forest, None, _reply(10))
        self.assertFalse(result.attached_as_child)

    def test_duplicate_ids_first_pre_order_match_wins(self):
        forest = [_reply(1, _reply(7)), _reply(7)]
        new_reply = _reply(10)

        reply_tree.attach(forest, 7, new_reply)

        self.assertEqual(forest[0].replies[0].replies, [new_reply])
        self.assertEqual(forest[1].replies, [])

    def test_deep_thread_does_not_recurse(self):
        root = _reply(0)
        node = root
        for reply_id in range(1, 5000):
            child = _reply(reply_id)
            node.replies.append(child)
            node = child

        self.assertTrue(reply_tree.attach([root], 4999, _reply(-1)).attached_as_child)
        self.assertEqual(node.replies[0].id, -1)

    def test_iter_replies_with_depth(self):
        pairs = [(r.id, depth) for r, depth in reply_tree.iter_replies_with_depth(self.forest)]
        self.assertEqual(pairs, [(1, 0), (2, 1), (3, 2), (4, 0), (5, 1)])

    def test_reply_depth(self):
        self.assertEqual(reply_tree.reply_depth(self.forest, 3), 2)
        self.assertEqual(reply_tree.reply_depth(self.forest, 4), 0)
        self.assertIsNone(reply_tree.reply_depth(self.forest, 42))

    def test_find_reply(self):
        self.assertEqual(reply_tree.find_reply(self.forest, 5).content, "reply 5")
        self.assertIsNone(reply_tree.find_reply(self.forest, 42))


if __name__ == "__main__":
    unittest.main()
