import os
import shutil
import sys
import tempfile
import unittest
from unittest.mock import MagicMock, patch

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt6.QtWidgets import QApplication

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from git_graph_data import CommitRecord
from git_graph_layout import calculate_graph_layout
from git_manager import BranchInfo, GitManager, RepoStatus
from git_manager_window import GitManagerWindow
from repo_registry import RepoRegistry
from settings import Settings

app = QApplication.instance() or QApplication(sys.argv)


def overview(branch):
    return {
        "status": RepoStatus(current_branch=branch, is_clean=True),
        "branches": [BranchInfo(name=branch, current=True)],
        "commits": [],
    }


class TestGitManagerWindow(unittest.TestCase):
    """后台线程不真正启动：_start_thread 被替换，结果由测试直接送达"""

    def setUp(self):
        self.config_dir = tempfile.mkdtemp()
        settings = Settings(self.config_dir)
        registry = RepoRegistry(os.path.join(self.config_dir, "repos.json"))
        self.window = GitManagerWindow(settings=settings, registry=registry)
        self.started = []
        patcher = patch.object(self.window, "_start_thread", side_effect=self.started.append)
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self):
        self.window.deleteLater()
        shutil.rmtree(self.config_dir)

    def make_manager(self, path):
        manager = MagicMock(spec=GitManager)
        manager.repo_path = path
        return manager

    def test_late_status_from_previous_repository_is_dropped(self):
        self.window.git_manager = self.make_manager("/repos/alpha")
        self.window.refresh_status()
        alpha_thread = self.started[-1]

        # 切换到另一个仓库
        self.window.git_manager = self.make_manager("/repos/beta")
        self.window.refresh_status()
        beta_thread = self.started[-1]
        self.assertNotEqual(alpha_thread.token, beta_thread.token)

        self.window.on_status_loaded(beta_thread.token, True, overview("beta"), "")
        self.window.on_status_loaded(alpha_thread.token, True, overview("alpha"), "")

        self.assertEqual([b.name for b in self.window.repo_panel.branches], ["beta"])
        self.assertTrue(self.window.repo_panel.sync_label.text().startswith("beta"))

    def test_status_after_close_is_dropped(self):
        self.window.git_manager = self.make_manager("/repos/alpha")
        self.window.refresh_status()
        thread = self.started[-1]

        self.window.close_repo()
        self.window.on_status_loaded(thread.token, True, overview("alpha"), "")

        self.assertEqual(self.window.repo_panel.branches, [])
        self.assertEqual(self.window.repo_panel.sync_label.text(), "")

    def test_stale_graph_result_is_dropped(self):
        records = [
            CommitRecord(hash="b" * 40, parents=("a" * 40,), short_hash="bbbbbbb", message="Second"),
            CommitRecord(hash="a" * 40, short_hash="aaaaaaa", message="First"),
        ]
        self.window.git_manager = self.make_manager("/repos/alpha")
        self.window.refresh_graph()
        first_token = self.started[-1].token
        self.window.refresh_graph()
        current_token = self.started[-1].token
        self.assertEqual(current_token, self.window._graph_token)

        self.window.on_graph_loaded(current_token, records, calculate_graph_layout(records))
        label_text = self.window.graph_status_label.text()
        self.assertEqual(set(self.window.graph_view.commit_items), {"a" * 40, "b" * 40})

        stale = [CommitRecord(hash="c" * 40, short_hash="ccccccc", message="Old repository")]
        self.window.on_graph_loaded(first_token, stale, calculate_graph_layout(stale))

        self.assertEqual(set(self.window.graph_view.commit_items), {"a" * 40, "b" * 40})
        self.assertEqual(self.window.graph_status_label.text(), label_text)
        self.assertEqual(self.window.records, records)

    def test_stale_graph_error_is_dropped(self):
        self.window.git_manager = self.make_manager("/repos/alpha")
        self.window.refresh_graph()
        first_token = self.started[-1].token
        self.window.refresh_graph()
        self.assertEqual(self.window.graph_status_label.text(), "Loading history...")

        self.window.on_graph_error(first_token, "fatal: not a git repository")
        self.assertEqual(self.window.graph_status_label.text(), "Loading history...")

        self.window.on_graph_error(self.window._graph_token, "fatal: not a git repository")
        self.assertEqual(self.window.graph_status_label.text(), "Failed to load history")


if __name__ == "__main__":
    unittest.main()
