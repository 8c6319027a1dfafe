import logging
from typing import TYPE_CHECKING, Optional

from PyQt6.QtCore import QThread, pyqtSignal

from git_graph_layout import COLUMN_WIDTH, ROW_HEIGHT, calculate_graph_layout
from git_manager import GitOperationError
from repo_actions import dispatch_action

if TYPE_CHECKING:
    from git_manager import GitManager


class GraphLoadThread(QThread):
    """在后台获取提交记录并计算提交图布局

    token 用于区分请求：切换仓库或刷新后，旧请求的结果由窗口丢弃。
    """

    finished = pyqtSignal(int, object, object)  # (token, records, layout)
    error = pyqtSignal(int, str)  # (token, error_message)

    def __init__(
        self,
        git_manager: "GitManager",
        token: int,
        limit: int = 100,
        row_height: int = ROW_HEIGHT,
        column_width: int = COLUMN_WIDTH,
        parent=None,
    ):
        super().__init__(parent)
        self.git_manager = git_manager
        self.token = token
        self.limit = limit
        self.row_height = row_height
        self.column_width = column_width

    def run(self):
        try:
            records = self.git_manager.get_commit_graph(limit=self.limit)
            layout = calculate_graph_layout(records, row_height=self.row_height, column_width=self.column_width)
            self.finished.emit(self.token, records, layout)
        except GitOperationError as e:
            self.error.emit(self.token, e.message)
        except Exception as e:
            logging.exception("加载提交图失败")
            self.error.emit(self.token, str(e))


class RepoStatusThread(QThread):
    """用于在后台读取仓库状态、分支列表和最近提交的线程

    与 GraphLoadThread 一样带 token，切换仓库后旧仓库的状态不会覆盖面板。
    """

    finished = pyqtSignal(int, bool, object, str)  # (token, success, overview, error_message)

    def __init__(self, git_manager: "GitManager", token: int, recent_limit: int = 5, parent=None):
        super().__init__(parent)
        self.git_manager = git_manager
        self.token = token
        self.recent_limit = recent_limit

    def run(self):
        try:
            overview = {
                "status": self.git_manager.get_status(),
                "branches": self.git_manager.get_branches(),
                "commits": self.git_manager.get_recent_commits(self.recent_limit),
            }
            self.finished.emit(self.token, True, overview, "")
        except GitOperationError as e:
            self.finished.emit(self.token, False, None, e.message)
        except Exception as e:
            logging.exception("读取仓库状态失败")
            self.finished.emit(self.token, False, None, str(e))


class RepoActionThread(QThread):
    """用于在后台执行 push/pull/merge 等操作的线程"""

    finished = pyqtSignal(str, bool, str, object)  # (action, success, message, payload)

    def __init__(self, git_manager: Optional["GitManager"], action: str, data: Optional[dict] = None, parent=None):
        super().__init__(parent)
        self.git_manager = git_manager
        self.action = action
        self.data = data or {}

    def run(self):
        """执行操作；dispatch_action 不会抛出 git 错误"""
        result = dispatch_action(self.git_manager, self.action, **self.data)
        self.finished.emit(self.action, result.success, result.message, result.payload)


class CommitDiffThread(QThread):
    finished = pyqtSignal(str, bool, object, str)  # (commit_hash, success, CommitDiff, error_message)

    def __init__(self, git_manager: "GitManager", commit_hash: str, parent=None):
        super().__init__(parent)
        self.git_manager = git_manager
        self.commit_hash = commit_hash

    def run(self):
        try:
            diff = self.git_manager.get_commit_diff(self.commit_hash)
            self.finished.emit(self.commit_hash, True, diff, "")
        except GitOperationError as e:
            self.finished.emit(self.commit_hash, False, None, e.message)
        except Exception as e:
            logging.exception("读取提交 %s 的改动失败", self.commit_hash)
            self.finished.emit(self.commit_hash, False, None, str(e))
