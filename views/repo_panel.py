from typing import Optional

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtWidgets import (
    QComboBox,
    QDialog,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QMenu,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from components.new_branch_dialog import NewBranchDialog
from git_manager import BranchInfo, RepoStatus


class ChangeListWidget(QListWidget):
    """文件变更列表，item 的 UserRole 保存文件路径"""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setSelectionMode(QListWidget.SelectionMode.ExtendedSelection)
        self.setMaximumHeight(120)

    def set_files(self, files: list[tuple[str, str]]):
        self.clear()
        for status, path in files:
            item = QListWidgetItem(f"{status}  {path}")
            item.setData(Qt.ItemDataRole.UserRole, path)
            item.setToolTip(path)
            self.addItem(item)

    def selected_paths(self) -> list[str]:
        return [item.data(Qt.ItemDataRole.UserRole) for item in self.selectedItems()]


class RepoPanel(QWidget):
    """
    仓库操作面板：分支切换、ahead/behind、暂存区与工作区文件、提交以及远程操作。
    所有操作通过 action_requested(action, data) 发给窗口执行。
    """

    action_requested = pyqtSignal(str, dict)
    file_diff_requested = pyqtSignal(str, bool)  # (path, staged)
    search_requested = pyqtSignal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.status: Optional[RepoStatus] = None
        self.branches: list[BranchInfo] = []
        self._updating = False

        layout = QVBoxLayout(self)
        layout.setContentsMargins(5, 5, 5, 5)

        # 分支
        branch_layout = QHBoxLayout()
        self.branch_combo = QComboBox()
        self.branch_combo.currentIndexChanged.connect(self._on_branch_changed)
        branch_layout.addWidget(self.branch_combo, 1)
        self.new_branch_btn = QToolButton()
        self.new_branch_btn.setText("New")
        self.new_branch_btn.setToolTip("Create new branch")
        self.new_branch_btn.clicked.connect(self.show_new_branch_dialog)
        branch_layout.addWidget(self.new_branch_btn)
        self.branch_menu_btn = QToolButton()
        self.branch_menu_btn.setText("...")
        self.branch_menu_btn.setPopupMode(QToolButton.ToolButtonPopupMode.InstantPopup)
        self.branch_menu = QMenu(self)
        self.branch_menu.aboutToShow.connect(self._populate_branch_menu)
        self.branch_menu_btn.setMenu(self.branch_menu)
        branch_layout.addWidget(self.branch_menu_btn)
        layout.addLayout(branch_layout)

        self.sync_label = QLabel()
        self.sync_label.setStyleSheet("color: #8c8c8c;")
        layout.addWidget(self.sync_label)

        # 远程
        remote_layout = QGridLayout()
        for column, (text, action) in enumerate((("Fetch", "fetch"), ("Pull", "pull"), ("Push", "push"))):
            button = QPushButton(text)
            button.clicked.connect(lambda _, a=action: self.action_requested.emit(a, {}))
            remote_layout.addWidget(button, 0, column)
        layout.addLayout(remote_layout)

        # 暂存区
        staged_header = QHBoxLayout()
        self.staged_label = QLabel("Staged")
        staged_header.addWidget(self.staged_label)
        staged_header.addStretch()
        self.unstage_btn = QToolButton()
        self.unstage_btn.setText("Unstage")
        self.unstage_btn.clicked.connect(self._unstage_selected)
        staged_header.addWidget(self.unstage_btn)
        layout.addLayout(staged_header)
        self.staged_list = ChangeListWidget()
        self.staged_list.itemDoubleClicked.connect(lambda item: self._request_file_diff(item, True))
        layout.addWidget(self.staged_list)

        # 工作区
        changes_header = QHBoxLayout()
        self.changes_label = QLabel("Changes")
        changes_header.addWidget(self.changes_label)
        changes_header.addStretch()
        self.stage_btn = QToolButton()
        self.stage_btn.setText("Stage")
        self.stage_btn.clicked.connect(self._stage_selected)
        changes_header.addWidget(self.stage_btn)
        self.stage_all_btn = QToolButton()
        self.stage_all_btn.setText("Stage All")
        self.stage_all_btn.clicked.connect(lambda: self.action_requested.emit("stage", {"all": True}))
        changes_header.addWidget(self.stage_all_btn)
        self.discard_btn = QToolButton()
        self.discard_btn.setText("Discard")
        self.discard_btn.clicked.connect(self._discard_selected)
        changes_header.addWidget(self.discard_btn)
        layout.addLayout(changes_header)
        self.changes_list = ChangeListWidget()
        self.changes_list.itemDoubleClicked.connect(lambda item: self._request_file_diff(item, False))
        layout.addWidget(self.changes_list)

        # 提交
        self.commit_edit = QPlainTextEdit()
        self.commit_edit.setPlaceholderText("Commit message")
        self.commit_edit.setMaximumHeight(70)
        self.commit_edit.textChanged.connect(self._update_commit_button)
        layout.addWidget(self.commit_edit)
        self.commit_btn = QPushButton("Commit")
        self.commit_btn.clicked.connect(self._commit)
        layout.addWidget(self.commit_btn)

        # 搜索
        self.search_edit = QLineEdit()
        self.search_edit.setPlaceholderText("Search commits...")
        self.search_edit.returnPressed.connect(self._search)
        layout.addWidget(self.search_edit)
        self.search_results = QListWidget()
        layout.addWidget(self.search_results)

        self._update_commit_button()

    # ---- 数据更新 ----

    def update_overview(self, status: RepoStatus, branches: list[BranchInfo]):
        self.status = status
        self.branches = branches

        self._updating = True
        try:
            self.branch_combo.clear()
            for branch in branches:
                label = branch.name if branch.local else f"{branch.name} (remote)"
                self.branch_combo.addItem(label, branch.name)
                if branch.current:
                    self.branch_combo.setCurrentIndex(self.branch_combo.count() - 1)
            if status.current_branch == "HEAD":
                self.branch_combo.insertItem(0, "(detached HEAD)", "")
                self.branch_combo.setCurrentIndex(0)
        finally:
            self._updating = False

        self.sync_label.setText(self.sync_text(status))
        self.staged_label.setText(f"Staged ({len(status.staged)})")
        self.staged_list.set_files([(change.status, change.path) for change in status.staged])

        changes = [(change.status, change.path) for change in status.unstaged]
        changes.extend(("?", path) for path in status.untracked)
        self.changes_label.setText(f"Changes ({len(changes)})")
        self.changes_list.set_files(changes)
        self._update_commit_button()

    @staticmethod
    def sync_text(status: RepoStatus) -> str:
        parts = []
        if status.ahead:
            parts.append(f"↑{status.ahead}")
        if status.behind:
            parts.append(f"↓{status.behind}")
        state = "clean" if status.is_clean else "modified"
        return f"{status.current_branch} · {state}" + (f" · {' '.join(parts)}" if parts else "")

    def clear(self):
        self.status = None
        self.branches = []
        self._updating = True
        self.branch_combo.clear()
        self._updating = False
        self.sync_label.clear()
        self.staged_list.clear()
        self.changes_list.clear()
        self.search_results.clear()
        self._update_commit_button()

    def show_search_results(self, commits: list[dict]):
        self.search_results.clear()
        for commit in commits:
            item = QListWidgetItem(f"{commit['hash']}  {commit['message']}")
            item.setToolTip(f"{commit['author']} · {commit['date']}")
            self.search_results.addItem(item)

    def current_branch(self) -> Optional[str]:
        return self.status.current_branch if self.status else None

    # ---- 操作 ----

    def _on_branch_changed(self, index: int):
        if self._updating or index < 0:
            return
        branch = self.branch_combo.itemData(index)
        if branch and branch != self.current_branch():
            self.action_requested.emit("checkout", {"branch": branch})

    def _populate_branch_menu(self):
        self.branch_menu.clear()
        current = self.current_branch()
        others = [b for b in self.branches if b.name != current]

        merge_menu = self.branch_menu.addMenu("Merge into current")
        rebase_menu = self.branch_menu.addMenu("Rebase current onto")
        delete_menu = self.branch_menu.addMenu("Delete branch")
        for branch in others:
            merge_menu.addAction(
                branch.name, lambda _=False, b=branch.name: self.action_requested.emit("merge", {"branch": b})
            )
            rebase_menu.addAction(
                branch.name, lambda _=False, b=branch.name: self.action_requested.emit("rebase", {"branch": b})
            )
            if branch.local:
                delete_menu.addAction(branch.name, lambda _=False, b=branch.name: self._delete_branch(b))
            else:
                delete_menu.addAction(
                    f"{branch.name} (remote)",
                    lambda _=False, b=branch.remote: self._confirm_and_emit(
                        f"Delete remote branch {b}?", "delete-remote-branch", {"branch": b}
                    ),
                )

        self.branch_menu.addSeparator()
        self.branch_menu.addAction("Abort merge", lambda: self.action_requested.emit("abort-merge", {}))
        self.branch_menu.addAction("Abort rebase", lambda: self.action_requested.emit("abort-rebase", {}))

    def _delete_branch(self, branch: str):
        reply = QMessageBox.question(
            self,
            "Delete Branch",
            f"Delete branch {branch}?\n\nChoose 'Yes to All' to force delete unmerged work.",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.YesToAll | QMessageBox.StandardButton.No,
        )
        if reply == QMessageBox.StandardButton.No:
            return
        force = reply == QMessageBox.StandardButton.YesToAll
        self.action_requested.emit("delete-branch", {"branch": branch, "force": force})

    def _confirm_and_emit(self, question: str, action: str, data: dict):
        reply = QMessageBox.question(self, "Confirm", question)
        if reply == QMessageBox.StandardButton.Yes:
            self.action_requested.emit(action, data)

    def show_new_branch_dialog(self):
        dialog = NewBranchDialog(self, self.current_branch(), [b.name for b in self.branches])
        if dialog.exec() == QDialog.DialogCode.Accepted:
            self.action_requested.emit("create-branch", {"name": dialog.get_branch_name()})

    def _stage_selected(self):
        files = self.changes_list.selected_paths()
        if files:
            self.action_requested.emit("stage", {"files": files})

    def _unstage_selected(self):
        files = self.staged_list.selected_paths()
        if files:
            self.action_requested.emit("unstage", {"files": files})

    def _discard_selected(self):
        untracked = set(self.status.untracked) if self.status else set()
        # 未跟踪文件不能用 checkout 丢弃
        files = [path for path in self.changes_list.selected_paths() if path not in untracked]
        if files:
            self._confirm_and_emit(f"Discard changes in {len(files)} file(s)?", "discard", {"files": files})

    def _request_file_diff(self, item: QListWidgetItem, staged: bool):
        self.file_diff_requested.emit(item.data(Qt.ItemDataRole.UserRole), staged)

    def _update_commit_button(self):
        has_staged = bool(self.status and self.status.staged)
        self.commit_btn.setEnabled(has_staged and bool(self.commit_edit.toPlainText().strip()))

    def _commit(self):
        message = self.commit_edit.toPlainText().strip()
        if message:
            self.action_requested.emit("commit", {"message": message})

    def on_commit_succeeded(self):
        self.commit_edit.clear()

    def _search(self):
        query = self.search_edit.text().strip()
        if query:
            self.search_requested.emit(query)
