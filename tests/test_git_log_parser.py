import os
import sys
import unittest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from git_log_parser import ENTRY_SEP, FIELD_SEP, GRAPH_LOG_FORMAT, parse_decorations, parse_graph_log


def entry(sha, parents="", refs="", subject="msg", author="Alice", date="2 hours ago"):
    return FIELD_SEP.join([sha, sha[:7], subject, author, date, parents, refs]) + ENTRY_SEP


class TestParseDecorations(unittest.TestCase):
    def test_empty(self):
        self.assertEqual(parse_decorations(""), ([], [], False))
        self.assertEqual(parse_decorations("   "), ([], [], False))

    def test_head_branch_and_tag(self):
        branches, tags, is_head = parse_decorations("HEAD -> main, tag: v1.1, origin/main, origin/HEAD")
        self.assertEqual(branches, ["main"])
        self.assertEqual(tags, ["v1.1"])
        self.assertTrue(is_head)

    def test_remote_prefix_is_removed(self):
        branches, tags, is_head = parse_decorations("origin/feature/login, develop")
        self.assertEqual(branches, ["feature/login", "develop"])
        self.assertEqual(tags, [])
        self.assertFalse(is_head)

    def test_origin_head_does_not_mark_head(self):
        branches, _, is_head = parse_decorations("origin/HEAD, origin/main")
        self.assertEqual(branches, ["main"])
        self.assertFalse(is_head)

    def test_detached_head(self):
        branches, tags, is_head = parse_decorations("HEAD, tag: v2.0")
        self.assertEqual(branches, [])
        self.assertEqual(tags, ["v2.0"])
        self.assertTrue(is_head)

    def test_multiple_tags_keep_order(self):
        _, tags, _ = parse_decorations("tag: v1.0, tag: release-1")
        self.assertEqual(tags, ["v1.0", "release-1"])

    def test_branch_name_containing_head_is_kept(self):
        branches, _, is_head = parse_decorations("fix-HEADER, origin/HEAD, upstream/HEAD")
        self.assertEqual(branches, ["fix-HEADER"])
        self.assertFalse(is_head)


class TestParseGraphLog(unittest.TestCase):
    def test_format_has_seven_fields(self):
        self.assertEqual(GRAPH_LOG_FORMAT.count(FIELD_SEP), 6)
        self.assertTrue(GRAPH_LOG_FORMAT.endswith(ENTRY_SEP))

    def test_parses_entries_in_order(self):
        output = (
            entry("c" * 40, parents="b" * 40 + " " + "d" * 40, refs="HEAD -> main", subject="Merge feature")
            + "\n"
            + entry("b" * 40, parents="a" * 40)
            + "\n"
            + entry("a" * 40)
        )
        commits = parse_graph_log(output)

        self.assertEqual([commit.hash for commit in commits], ["c" * 40, "b" * 40, "a" * 40])
        merge = commits[0]
        self.assertEqual(merge.parents, ("b" * 40, "d" * 40))
        self.assertTrue(merge.is_merge)
        self.assertTrue(merge.is_head)
        self.assertEqual(merge.branches, ("main",))
        self.assertEqual(merge.message, "Merge feature")
        self.assertEqual(merge.short_hash, "c" * 7)
        self.assertEqual(merge.author, "Alice")
        self.assertEqual(merge.date, "2 hours ago")
        self.assertTrue(commits[2].is_root)

    def test_subject_may_contain_separators_used_elsewhere(self):
        commits = parse_graph_log(entry("a" * 40, subject="fix: a, b -> c (HEAD)"))
        self.assertEqual(commits[0].message, "fix: a, b -> c (HEAD)")
        self.assertFalse(commits[0].is_head)

    def test_empty_output(self):
        self.assertEqual(parse_graph_log(""), [])
        self.assertEqual(parse_graph_log("\n"), [])

    def test_malformed_entry_is_skipped(self):
        output = "garbage" + ENTRY_SEP + entry("a" * 40)
        commits = parse_graph_log(output)
        self.assertEqual(len(commits), 1)
        self.assertEqual(commits[0].hash, "a" * 40)


if __name__ == "__main__":
    unittest.main()
