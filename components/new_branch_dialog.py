from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QVBoxLayout,
)


class NewBranchDialog(QDialog):
    """新建分支对话框，创建后自动切换到新分支"""

    def __init__(self, parent=None, current_branch: Optional[str] = None, existing: Optional[list[str]] = None):
        super().__init__(parent)
        self.setWindowTitle("Create New Branch")
        self.setMinimumWidth(350)
        self.existing = set(existing or [])

        layout = QVBoxLayout(self)

        if current_branch:
            layout.addWidget(QLabel(f"Branch from: {current_branch}"))

        branch_layout = QHBoxLayout()
        branch_layout.addWidget(QLabel("Branch Name:"))
        self.name_edit = QLineEdit()
        self.name_edit.setPlaceholderText("feature/my-change")
        self.name_edit.textChanged.connect(self._validate)
        branch_layout.addWidget(self.name_edit)
        layout.addLayout(branch_layout)

        self.error_label = QLabel()
        self.error_label.setStyleSheet("color: #ef4444;")
        layout.addWidget(self.error_label)

        self.buttons = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Cancel | QDialogButtonBox.StandardButton.Ok,
            Qt.Orientation.Horizontal,
            self,
        )
        self.buttons.accepted.connect(self.accept)
        self.buttons.rejected.connect(self.reject)
        layout.addWidget(self.buttons)

        self._validate()

    def validation_error(self) -> str:
        name = self.get_branch_name()
        if not name:
            return "Branch name is required"
        if " " in name:
            return "Branch name cannot contain spaces"
        if name in self.existing:
            return "Branch already exists"
        return ""

    def _validate(self):
        error = self.validation_error()
        # 空名称时不显示错误，只禁用按钮
        self.error_label.setText(error if self.get_branch_name() else "")
        self.buttons.button(QDialogButtonBox.StandardButton.Ok).setEnabled(not error)

    def get_branch_name(self) -> str:
        """获取输入的分支名称"""
        return self.name_edit.text().strip()
