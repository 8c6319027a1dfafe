from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtWidgets import QFrame, QLabel, QPushButton, QSizePolicy, QVBoxLayout

NOTIFICATION_STYLES = {
    "info": ("#f0f0f0", "#cccccc"),
    "success": ("#ecfdf5", "#22c55e"),
    "error": ("#fef2f2", "#ef4444"),
}


class NotificationWidget(QFrame):
    """窗口右上角的提示框，几秒后自动隐藏"""

    def __init__(self, parent=None, timeout_ms: int = 7000):
        super().__init__(parent)
        self.timeout_ms = timeout_ms
        self.level = "info"

        self.setFixedWidth(300)
        self.setMinimumHeight(50)
        self.setFrameShape(QFrame.Shape.StyledPanel)
        self._apply_style("info")
        self.hide()

        layout = QVBoxLayout(self)

        self.message_label = QLabel()
        self.message_label.setWordWrap(True)
        self.message_label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        self.message_label.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)

        self.close_button = QPushButton("Close")
        self.close_button.clicked.connect(self.hide_widget)
        self.close_button.setSizePolicy(QSizePolicy.Policy.Fixed, QSizePolicy.Policy.Fixed)

        layout.addWidget(self.message_label)
        layout.addWidget(self.close_button, alignment=Qt.AlignmentFlag.AlignRight)

        self.hide_timer = QTimer(self)
        self.hide_timer.setSingleShot(True)
        self.hide_timer.timeout.connect(self.hide_widget)

    def _apply_style(self, level: str):
        background, border = NOTIFICATION_STYLES.get(level, NOTIFICATION_STYLES["info"])
        self.level = level
        self.setStyleSheet(
            f"""
            NotificationWidget {{
                background-color: {background};
                border: 1px solid {border};
                border-radius: 5px;
            }}
        """
        )

    def show_message(self, message: str, level: str = "info"):
        self._apply_style(level)
        self.message_label.setText(message)
        self.adjustSize()
        if self.parentWidget():
            parent_rect = self.parentWidget().rect()
            self.move(parent_rect.right() - self.width() - 10, 10)  # 10px margin
        self.show()
        # 错误信息停留更久
        self.hide_timer.start(self.timeout_ms * 2 if level == "error" else self.timeout_ms)
        self.raise_()

    def show_success(self, message: str):
        self.show_message(message, "success")

    def show_error(self, message: str):
        self.show_message(message, "error")

    def hide_widget(self):
        self.hide()
        if self.hide_timer.isActive():
            self.hide_timer.stop()
