import logging
from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtGui import QFont
from PyQt6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QPushButton,
    QVBoxLayout,
)

from folder_browser import BrowseResult, list_folders
from git_manager import is_git_repo


class FolderPickerDialog(QDialog):
    """浏览本地文件夹并选择一个 Git 仓库

    双击文件夹进入，Git 仓库排在最前并加粗显示。
    """

    def __init__(self, parent=None, start_path: Optional[str] = None):
        super().__init__(parent)
        self.setWindowTitle("Add Repository")
        self.resize(480, 420)
        self.current: Optional[BrowseResult] = None

        layout = QVBoxLayout(self)

        path_layout = QHBoxLayout()
        self.up_button = QPushButton("Up")
        self.up_button.clicked.connect(self.go_up)
        path_layout.addWidget(self.up_button)
        self.path_edit = QLineEdit()
        self.path_edit.returnPressed.connect(lambda: self.browse(self.path_edit.text()))
        path_layout.addWidget(self.path_edit)
        layout.addLayout(path_layout)

        self.folder_list = QListWidget()
        self.folder_list.itemDoubleClicked.connect(self._on_item_double_clicked)
        self.folder_list.currentItemChanged.connect(lambda *_: self._update_buttons())
        layout.addWidget(self.folder_list)

        self.error_label = QLabel()
        self.error_label.setStyleSheet("color: #ef4444;")
        layout.addWidget(self.error_label)

        self.buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Cancel | QDialogButtonBox.StandardButton.Ok,
            Qt.Orientation.Horizontal,
            self,
        )
        self.buttons.button(QDialogButtonBox.StandardButton.Ok).setText("Add")
        self.buttons.accepted.connect(self.accept)
        self.buttons.rejected.connect(self.reject)
        layout.addWidget(self.buttons)

        self.browse(start_path)

    def browse(self, path: Optional[str]):
        try:
            result = list_folders(path)
        except (FileNotFoundError, OSError) as e:
            logging.warning("无法打开文件夹 %s: %s", path, e)
            self.error_label.setText(str(e))
            return

        self.error_label.clear()
        self.current = result
        self.path_edit.setText(result.current)
        self.folder_list.clear()
        for folder in result.folders:
            item = QListWidgetItem(f"{folder.name}  (git)" if folder.is_git_repo else folder.name)
            item.setData(Qt.ItemDataRole.UserRole, folder.path)
            if folder.is_git_repo:
                font = QFont()
                font.setBold(True)
                item.setFont(font)
            self.folder_list.addItem(item)
        self._update_buttons()

    def go_up(self):
        if self.current is not None:
            self.browse(self.current.parent)

    def _on_item_double_clicked(self, item: QListWidgetItem):
        self.browse(item.data(Qt.ItemDataRole.UserRole))

    def selected_path(self) -> Optional[str]:
        """选中的文件夹；没有选中时为当前文件夹"""
        item = self.folder_list.currentItem()
        if item is not None:
            return item.data(Qt.ItemDataRole.UserRole)
        return self.current.current if self.current else None

    def _update_buttons(self):
        path = self.selected_path()
        self.buttons.button(QDialogButtonBox.StandardButton.Ok).setEnabled(bool(path) and is_git_repo(path))
