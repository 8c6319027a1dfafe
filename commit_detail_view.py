from html import escape
from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QColor, QFont
from PyQt6.QtWidgets import (
    QLabel,
    QPlainTextEdit,
    QSplitter,
    QTextBrowser,
    QTextEdit,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
    QWidget,
)

from git_graph_data import CommitRecord
from git_manager import CommitDiff, split_diff_by_file
from syntax_highlighter import DiffHighlighter

# 常量用于分支显示
MAX_BRANCHES_TO_SHOW = 3

STATUS_COLORS = {"A": "#22c55e", "M": "#f59e0b", "D": "#ef4444"}


class CommitHeaderView(QTextBrowser):
    """显示提交信息、作者、时间和引用，分支过多时可展开/折叠"""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setReadOnly(True)
        self.setOpenLinks(False)
        self.setFrameShape(QTextEdit.Shape.NoFrame)
        self.setStyleSheet("background-color: #f5f5f5; padding: 5px;")
        self.setMaximumHeight(140)
        self.branches_expanded = False
        self.current_commit: Optional[CommitRecord] = None
        self.anchorClicked.connect(self.handle_branch_link_click)

    def show_commit(self, commit: Optional[CommitRecord]):
        if self.current_commit is None or commit is None or commit.hash != self.current_commit.hash:
            self.branches_expanded = False
        self.current_commit = commit
        if commit is None:
            self.clear()
            return
        self._render()

    def branch_text(self) -> str:
        branches = list(self.current_commit.branches) if self.current_commit else []
        if not branches:
            return ""
        if len(branches) > MAX_BRANCHES_TO_SHOW and not self.branches_expanded:
            shown = ", ".join(escape(b) for b in branches[:MAX_BRANCHES_TO_SHOW])
            hidden_count = len(branches) - MAX_BRANCHES_TO_SHOW
            return f'{shown} <a href="#more_branches">(+{hidden_count} more)</a>'
        less_link = ""
        if self.branches_expanded and len(branches) > MAX_BRANCHES_TO_SHOW:
            less_link = f' <a href="#less_branches">(-{len(branches) - MAX_BRANCHES_TO_SHOW} less)</a>'
        return ", ".join(escape(b) for b in branches) + less_link

    def _render(self):
        commit = self.current_commit
        parents = " ".join(p[:7] for p in commit.parents) or "-"
        lines = [
            f"<p><b>{escape(commit.message)}</b></p>",
            f"<p>{commit.short_hash} {escape(commit.author)} · {escape(commit.date)} · parents: {parents}</p>",
        ]
        branch_text = self.branch_text()
        if branch_text:
            lines.append(f"<p>Branches: {branch_text}</p>")
        if commit.tags:
            lines.append(f"<p>Tags: {', '.join(escape(t) for t in commit.tags)}</p>")
        self.setHtml("".join(lines))

    def handle_branch_link_click(self, url):
        if url.fragment() == "more_branches":
            self.branches_expanded = True
            self._render()
        elif url.fragment() == "less_branches":
            self.branches_expanded = False
            self._render()


class CommitDetailView(QWidget):
    """
    提交详情面板
    上方为提交信息，中间为修改的文件列表（增删行数），下方为高亮显示的 diff。
    点击文件只显示该文件的 diff。
    """

    def __init__(self, parent=None):
        super().__init__(parent)
        self.current_diff: Optional[CommitDiff] = None
        self._file_sections: dict = {}

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.header_view = CommitHeaderView(self)
        layout.addWidget(self.header_view)

        self.status_label = QLabel(self)
        self.status_label.setStyleSheet("color: #8c8c8c; padding: 2px 5px;")
        layout.addWidget(self.status_label)

        splitter = QSplitter(Qt.Orientation.Vertical, self)

        self.file_tree = QTreeWidget(self)
        self.file_tree.setHeaderLabels(["File", "+", "-"])
        self.file_tree.setRootIsDecorated(False)
        self.file_tree.setColumnWidth(0, 260)
        self.file_tree.itemClicked.connect(self._on_file_clicked)
        splitter.addWidget(self.file_tree)

        self.diff_view = QPlainTextEdit(self)
        self.diff_view.setReadOnly(True)
        self.diff_view.setLineWrapMode(QPlainTextEdit.LineWrapMode.NoWrap)
        self.diff_view.setFont(QFont("monospace", 9))
        self.highlighter = DiffHighlighter(self.diff_view.document())
        splitter.addWidget(self.diff_view)
        splitter.setSizes([120, 400])

        layout.addWidget(splitter)

    def clear(self):
        self.current_diff = None
        self._file_sections = {}
        self.header_view.show_commit(None)
        self.status_label.clear()
        self.file_tree.clear()
        self.diff_view.clear()

    def show_commit(self, commit: Optional[CommitRecord]):
        """切换到新的提交，diff 稍后由 show_diff 填充"""
        self.clear()
        self.header_view.show_commit(commit)
        if commit is not None:
            self.status_label.setText("Loading changes...")

    def show_diff(self, diff: CommitDiff):
        self.current_diff = diff
        self._file_sections = split_diff_by_file(diff.diff)
        self.file_tree.clear()

        additions = sum(f.additions for f in diff.files)
        deletions = sum(f.deletions for f in diff.files)
        self.status_label.setText(f"{len(diff.files)} files changed, +{additions} -{deletions}")

        for stat in diff.files:
            item = QTreeWidgetItem([f"{stat.status}  {stat.path}", str(stat.additions), str(stat.deletions)])
            item.setData(0, Qt.ItemDataRole.UserRole, stat.path)
            item.setToolTip(0, stat.path)
            color = STATUS_COLORS.get(stat.status)
            if color:
                item.setForeground(0, QColor(color))
            self.file_tree.addTopLevelItem(item)

        self.diff_view.setPlainText(diff.diff)

    def show_error(self, message: str):
        self.status_label.setText(f"Failed to load changes: {message}")

    def _on_file_clicked(self, item: QTreeWidgetItem, column: int):
        path = item.data(0, Qt.ItemDataRole.UserRole)
        section = self._file_sections.get(path)
        if section is not None:
            self.diff_view.setPlainText(section)
        elif self.current_diff is not None:
            self.diff_view.setPlainText(self.current_diff.diff)

    def show_file_diff(self, diff: str):
        """显示工作区或暂存区单个文件的 diff"""
        self.clear()
        self.status_label.setText("Working tree diff")
        self.diff_view.setPlainText(diff or "No changes")
