import logging
import os
import sys

from PyQt6.QtWidgets import QApplication

from git_manager_window import GitManagerWindow

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(filename)s:%(lineno)d - %(message)s"


def setup_logging():
    # 根据环境变量设置日志级别
    log_level = logging.DEBUG if os.getenv("DEBUG") == "1" else logging.INFO
    logging.basicConfig(level=log_level, format=LOG_FORMAT)
    # add file handler
    if os.getenv("LOG_TO_FILE") == "1":
        file_handler = logging.FileHandler("git_dashboard.log")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(file_handler)


def main():
    setup_logging()
    app = QApplication(sys.argv)
    app.setApplicationName("Git Dashboard")

    window = GitManagerWindow()
    window.show()

    # 启动后窗口可能没有焦点
    window.activateWindow()
    window.raise_()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
