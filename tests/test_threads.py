import os
import sys
import unittest
from unittest.mock import MagicMock

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from git_manager import CommitDiff, GitManager, GitOperationError, RepoStatus
from threads import CommitDiffThread, RepoStatusThread


class TestCommitDiffThread(unittest.TestCase):
    def setUp(self):
        self.manager = MagicMock(spec=GitManager)
        self.results = []

    def run_thread(self):
        thread = CommitDiffThread(self.manager, "abc1234")
        thread.finished.connect(lambda *args: self.results.append(args))
        # 直接在当前线程执行 run，信号同步送达
        thread.run()

    def test_success(self):
        diff = CommitDiff(files=[], diff="")
        self.manager.get_commit_diff.return_value = diff
        self.run_thread()
        self.assertEqual(self.results, [("abc1234", True, diff, "")])

    def test_git_error(self):
        self.manager.get_commit_diff.side_effect = GitOperationError("bad object abc1234")
        self.run_thread()
        self.assertEqual(self.results, [("abc1234", False, None, "bad object abc1234")])

    def test_unexpected_error_is_reported(self):
        self.manager.get_commit_diff.side_effect = ValueError("broken numstat line")
        with self.assertLogs(level="ERROR"):
            self.run_thread()
        self.assertEqual(self.results, [("abc1234", False, None, "broken numstat line")])


class TestRepoStatusThread(unittest.TestCase):
    def setUp(self):
        self.manager = MagicMock(spec=GitManager)
        self.results = []

    def run_thread(self, token):
        thread = RepoStatusThread(self.manager, token)
        thread.finished.connect(lambda *args: self.results.append(args))
        thread.run()

    def test_result_carries_token(self):
        status = RepoStatus(current_branch="main", is_clean=True)
        self.manager.get_status.return_value = status
        self.manager.get_branches.return_value = []
        self.manager.get_recent_commits.return_value = []

        self.run_thread(7)

        token, success, overview, error_message = self.results[0]
        self.assertEqual((token, success, error_message), (7, True, ""))
        self.assertIs(overview["status"], status)

    def test_failure_carries_token(self):
        self.manager.get_status.side_effect = GitOperationError("not a git repository")
        self.run_thread(3)
        self.assertEqual(self.results, [(3, False, None, "not a git repository")])


if __name__ == "__main__":
    unittest.main()
