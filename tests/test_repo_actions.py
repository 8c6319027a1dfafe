import os
import sys
import unittest
from unittest.mock import MagicMock

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from git_manager import GitManager, GitOperationError
from repo_actions import ACTIONS, dispatch_action


class TestDispatchAction(unittest.TestCase):
    def setUp(self):
        self.manager = MagicMock(spec=GitManager)
        self.manager.repo = MagicMock()
        self.manager.repo_path = "/work/project"

    def test_unknown_action(self):
        result = dispatch_action(self.manager, "explode")
        self.assertFalse(result.success)
        self.assertEqual(result.message, "Unknown action: explode")

    def test_missing_repository(self):
        result = dispatch_action(None, "fetch")
        self.assertFalse(result.success)
        self.assertEqual(result.message, "Repository not found")

        self.manager.repo = None
        self.assertEqual(dispatch_action(self.manager, "fetch").message, "Repository not found")

    def test_checkout(self):
        result = dispatch_action(self.manager, "checkout", branch="develop")
        self.assertTrue(result.success)
        self.manager.checkout.assert_called_once_with("develop")

    def test_required_fields(self):
        cases = {
            "checkout": ("Branch name is required", {}),
            "commit": ("Commit message is required", {"message": "   "}),
            "create-branch": ("Branch name is required", {"name": ""}),
            "merge": ("Branch name is required", {}),
            "rebase": ("Branch name is required", {}),
            "delete-branch": ("Branch name is required", {}),
            "delete-remote-branch": ("Branch name is required", {}),
            "search-commits": ("Search query is required", {}),
            "get-file-diff": ("File path is required", {}),
        }
        for action, (message, data) in cases.items():
            with self.subTest(action=action):
                result = dispatch_action(self.manager, action, **data)
                self.assertFalse(result.success)
                self.assertEqual(result.message, message)
        self.manager.checkout.assert_not_called()
        self.manager.commit.assert_not_called()

    def test_stage_all_or_files(self):
        dispatch_action(self.manager, "stage", all=True)
        self.manager.stage_all.assert_called_once_with()

        dispatch_action(self.manager, "stage", files=["a.txt", "b.txt"])
        self.manager.stage_files.assert_called_once_with(["a.txt", "b.txt"])

    def test_unstage_and_discard(self):
        dispatch_action(self.manager, "unstage", files=["a.txt"])
        dispatch_action(self.manager, "discard", files=["b.txt"])
        self.manager.unstage_files.assert_called_once_with(["a.txt"])
        self.manager.discard_changes.assert_called_once_with(["b.txt"])

    def test_commit_reports_hash(self):
        self.manager.commit.return_value = "1a2b3c4"

        result = dispatch_action(self.manager, "commit", message="  Add feature  ")

        self.manager.commit.assert_called_once_with("Add feature")
        self.assertTrue(result.success)
        self.assertEqual(result.message, "Committed: 1a2b3c4")
        self.assertEqual(result.payload, "1a2b3c4")

    def test_pull_message(self):
        self.manager.pull.return_value = ""
        self.assertEqual(dispatch_action(self.manager, "pull").message, "Already up to date")

        self.manager.pull.return_value = "Fast-forward"
        self.assertEqual(dispatch_action(self.manager, "pull").message, "Fast-forward")

    def test_git_error_becomes_failed_result(self):
        self.manager.push.side_effect = GitOperationError("rejected: non-fast-forward", command="push")

        result = dispatch_action(self.manager, "push")

        self.assertFalse(result.success)
        self.assertEqual(result.message, "rejected: non-fast-forward")

    def test_delete_branch_force_flag(self):
        dispatch_action(self.manager, "delete-branch", branch="topic", force=True)
        self.manager.delete_branch.assert_called_once_with("topic", force=True)

    def test_search_commits_payload(self):
        self.manager.search_commits.return_value = [{"hash": "abc", "message": "Fix", "date": "now", "author": "A"}]

        result = dispatch_action(self.manager, "search-commits", query="fix")

        self.manager.search_commits.assert_called_once_with("fix", 20)
        self.assertEqual(result.message, "1 commits found")
        self.assertEqual(len(result.payload), 1)

    def test_file_diff_payload(self):
        self.manager.get_file_diff.return_value = "+line"

        result = dispatch_action(self.manager, "get-file-diff", path="a.txt", staged=True)

        self.manager.get_file_diff.assert_called_once_with("a.txt", True)
        self.assertEqual(result.payload, "+line")

    def test_every_action_is_dispatchable(self):
        data = {"branch": "b", "message": "m", "name": "n", "query": "q", "path": "p", "files": ["f"]}
        for action in ACTIONS:
            with self.subTest(action=action):
                self.assertTrue(dispatch_action(self.manager, action, **data).success)


if __name__ == "__main__":
    unittest.main()
