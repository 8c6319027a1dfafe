from typing import Optional

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtWidgets import QHBoxLayout, QLabel, QListWidget, QListWidgetItem, QToolButton, QVBoxLayout, QWidget

from repo_registry import Repo

TOOL_BUTTON_STYLE = """
    QToolButton {
        border: none;
        background-color: transparent;
        padding: 2px 6px;
    }
    QToolButton:hover {
        background-color: #e0e0e0;
    }
"""


class SideBarWidget(QWidget):
    """左侧仓库列表：收藏的仓库排在前面，可添加、删除、收藏和调整顺序"""

    repo_selected = pyqtSignal(str)  # repo id
    add_repo_requested = pyqtSignal()
    remove_repo_requested = pyqtSignal(str)
    toggle_favorite_requested = pyqtSignal(str)
    reorder_requested = pyqtSignal(list)  # ordered repo ids

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setMinimumWidth(180)
        self.setStyleSheet("background-color: #f0f0f0;")

        layout = QVBoxLayout(self)
        layout.setContentsMargins(5, 10, 5, 10)
        layout.setSpacing(6)

        header = QHBoxLayout()
        header.addWidget(QLabel("Repositories"))
        header.addStretch()
        self.add_btn = self._tool_button("+", "Add repository", self.add_repo_requested.emit)
        header.addWidget(self.add_btn)
        layout.addLayout(header)

        self.repo_list = QListWidget()
        self.repo_list.currentItemChanged.connect(self._on_current_changed)
        layout.addWidget(self.repo_list)

        actions = QHBoxLayout()
        self.favorite_btn = self._tool_button("★", "Toggle favorite", self._on_toggle_favorite)
        self.up_btn = self._tool_button("↑", "Move up", lambda: self._move_current(-1))
        self.down_btn = self._tool_button("↓", "Move down", lambda: self._move_current(1))
        self.remove_btn = self._tool_button("−", "Remove repository", self._on_remove)
        for button in (self.favorite_btn, self.up_btn, self.down_btn, self.remove_btn):
            actions.addWidget(button)
        actions.addStretch()
        layout.addLayout(actions)

        self._updating = False

    def _tool_button(self, text: str, tooltip: str, slot) -> QToolButton:
        button = QToolButton()
        button.setText(text)
        button.setToolTip(tooltip)
        button.setStyleSheet(TOOL_BUTTON_STYLE)
        button.clicked.connect(slot)
        return button

    def set_repos(self, repos: list[Repo], current_id: Optional[str] = None):
        """重新填充列表，不触发 repo_selected"""
        self._updating = True
        try:
            self.repo_list.clear()
            for repo in repos:
                item = QListWidgetItem(f"★ {repo.name}" if repo.favorite else repo.name)
                item.setData(Qt.ItemDataRole.UserRole, repo.id)
                item.setToolTip(repo.path)
                self.repo_list.addItem(item)
                if repo.id == current_id:
                    self.repo_list.setCurrentItem(item)
        finally:
            self._updating = False

    def repo_ids(self) -> list[str]:
        return [self.repo_list.item(i).data(Qt.ItemDataRole.UserRole) for i in range(self.repo_list.count())]

    def current_repo_id(self) -> Optional[str]:
        item = self.repo_list.currentItem()
        return item.data(Qt.ItemDataRole.UserRole) if item else None

    def _on_current_changed(self, current, previous):
        if self._updating or current is None:
            return
        self.repo_selected.emit(current.data(Qt.ItemDataRole.UserRole))

    def _on_toggle_favorite(self):
        repo_id = self.current_repo_id()
        if repo_id:
            self.toggle_favorite_requested.emit(repo_id)

    def _on_remove(self):
        repo_id = self.current_repo_id()
        if repo_id:
            self.remove_repo_requested.emit(repo_id)

    def _move_current(self, offset: int):
        row = self.repo_list.currentRow()
        target = row + offset
        if row < 0 or not 0 <= target < self.repo_list.count():
            return
        ids = self.repo_ids()
        ids[row], ids[target] = ids[target], ids[row]
        self.reorder_requested.emit(ids)
