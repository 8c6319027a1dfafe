import logging
import os
from typing import Optional

from PyQt6.QtCore import QObject, Qt, QTimer, pyqtSignal
from PyQt6.QtGui import QGuiApplication
from PyQt6.QtWidgets import QDialog, QLabel, QMainWindow, QSplitter, QVBoxLayout, QWidget
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from commit_detail_view import CommitDetailView
from components.folder_picker_dialog import FolderPickerDialog
from components.notification_widget import NotificationWidget
from git_graph_data import CommitRecord, GraphLayout
from git_graph_view import GitGraphView
from git_manager import GitManager
from repo_registry import RepoRegistry, RepoRegistryError
from settings import get_settings
from threads import CommitDiffThread, GraphLoadThread, RepoActionThread, RepoStatusThread
from views.repo_panel import RepoPanel
from views.side_bar_widget import SideBarWidget

# 这些操作只读取数据，完成后不需要刷新仓库
READ_ONLY_ACTIONS = {"search-commits", "get-file-diff"}


class GitChangeHandler(FileSystemEventHandler, QObject):
    """Handles file system events from watchdog and signals the main window."""

    git_changed = pyqtSignal(str, str)  # (event_type, path) refs/HEAD 变化
    worktree_changed = pyqtSignal(str, str)  # (event_type, path) 工作区文件变化

    def on_any_event(self, event):
        event_type = event.event_type
        path = event.src_path

        if self._is_git_change_of_interest(path):
            logging.debug("Git watchdog event: %s on %s", event_type, path)
            self.git_changed.emit(event_type, path)
            return

        # Ignore other .git directory changes to prevent loops
        if ".git" in path.split(os.sep):
            return

        if event_type in ("created", "deleted", "modified", "moved"):
            self.worktree_changed.emit(event_type, path)

    def _is_git_change_of_interest(self, path):
        git_paths_of_interest = [
            ".git/refs/",
            ".git/logs/HEAD",
            ".git/HEAD",
            ".git/index",
            ".git/FETCH_HEAD",
            ".git/ORIG_HEAD",
            ".git/MERGE_HEAD",
        ]
        normalized = path.replace(os.sep, "/")
        return any(git_path in normalized for git_path in git_paths_of_interest)


class GitManagerWindow(QMainWindow):
    def __init__(self, settings=None, registry: Optional[RepoRegistry] = None):
        super().__init__()
        self.setWindowTitle(self.tr("Git Dashboard"))

        self.settings = settings or get_settings()
        self.registry = registry or RepoRegistry(self.settings.repos_file)
        self.git_manager: Optional[GitManager] = None
        self.current_repo_id: Optional[str] = None
        self.current_commit_hash: Optional[str] = None
        self.records: list[CommitRecord] = []
        self.layout_result: Optional[GraphLayout] = None

        # 每次请求提交图时递增，旧请求的结果直接丢弃
        self._graph_token = 0
        self._status_token = 0
        self._threads = []

        self._restore_geometry()

        self.observer = None
        self.git_refresh_timer = QTimer(self)
        self.git_refresh_timer.setSingleShot(True)
        self.git_refresh_timer.setInterval(500)  # 0.5-second delay for git changes
        self.git_refresh_timer.timeout.connect(self._throttled_git_refresh)

        self.status_refresh_timer = QTimer(self)
        self.status_refresh_timer.setSingleShot(True)
        self.status_refresh_timer.setInterval(1000)  # 1-second delay to debounce refreshes
        self.status_refresh_timer.timeout.connect(self.refresh_status)

        main_widget = QWidget()
        self.setCentralWidget(main_widget)
        main_layout = QVBoxLayout(main_widget)
        main_layout.setContentsMargins(0, 0, 0, 0)

        self.side_bar = SideBarWidget()
        self.side_bar.repo_selected.connect(self.open_repo)
        self.side_bar.add_repo_requested.connect(self.show_add_repo_dialog)
        self.side_bar.remove_repo_requested.connect(self.remove_repo)
        self.side_bar.toggle_favorite_requested.connect(self.toggle_favorite)
        self.side_bar.reorder_requested.connect(self.reorder_repos)

        self.repo_panel = RepoPanel()
        self.repo_panel.action_requested.connect(self.run_action)
        self.repo_panel.file_diff_requested.connect(
            lambda path, staged: self.run_action("get-file-diff", {"path": path, "staged": staged})
        )
        self.repo_panel.search_requested.connect(lambda query: self.run_action("search-commits", {"query": query}))

        self.graph_view = GitGraphView()
        self.graph_view.commit_item_clicked.connect(self.on_commit_selected)
        self.graph_view.action_requested.connect(lambda action, ref: self.run_action(action, {"branch": ref}))

        self.commit_detail = CommitDetailView()

        self.graph_status_label = QLabel()
        self.graph_status_label.setStyleSheet("color: #8c8c8c; padding: 2px 5px;")
        graph_container = QWidget()
        graph_layout = QVBoxLayout(graph_container)
        graph_layout.setContentsMargins(0, 0, 0, 0)
        graph_layout.addWidget(self.graph_status_label)
        graph_layout.addWidget(self.graph_view)

        self.right_splitter = QSplitter(Qt.Orientation.Vertical)
        self.right_splitter.addWidget(graph_container)
        self.right_splitter.addWidget(self.commit_detail)
        self.right_splitter.setSizes([500, 300])

        self.main_splitter = QSplitter(Qt.Orientation.Horizontal)
        self.main_splitter.addWidget(self.side_bar)
        self.main_splitter.addWidget(self.repo_panel)
        self.main_splitter.addWidget(self.right_splitter)
        self.main_splitter.setSizes([200, 300, 800])
        main_layout.addWidget(self.main_splitter)

        self.notification_widget = NotificationWidget(self)
        self.restore_splitter_state()

        self.reload_repo_list()
        last_repo_id = self.settings.get_last_repo_id()
        if last_repo_id and self.registry.get_repo_by_id(last_repo_id):
            self.open_repo(last_repo_id)

    # ---- 仓库列表 ----

    def reload_repo_list(self):
        self.side_bar.set_repos(self.registry.get_sorted_repos(), self.current_repo_id)

    def show_add_repo_dialog(self):
        dialog = FolderPickerDialog(self)
        if dialog.exec() == QDialog.DialogCode.Accepted:
            self.add_repo(dialog.selected_path())

    def add_repo(self, path: str):
        try:
            repo = self.registry.add_repo(path)
        except RepoRegistryError as e:
            self.notification_widget.show_error(str(e))
            return
        self.reload_repo_list()
        self.open_repo(repo.id)

    def remove_repo(self, repo_id: str):
        self.registry.remove_repo(repo_id)
        if repo_id == self.current_repo_id:
            self.close_repo()
        self.reload_repo_list()

    def toggle_favorite(self, repo_id: str):
        self.registry.toggle_favorite(repo_id)
        self.reload_repo_list()

    def reorder_repos(self, ordered_ids: list):
        self.registry.reorder_repos(ordered_ids)
        self.reload_repo_list()

    def open_repo(self, repo_id: str):
        repo = self.registry.get_repo_by_id(repo_id)
        if repo is None:
            self.notification_widget.show_error("Repository not found")
            return

        git_manager = GitManager(repo.path)
        if not git_manager.initialize():
            self.notification_widget.show_error(f"Not a valid git repository: {repo.path}")
            return

        logging.info("Opening repository %s (%s)", repo.name, repo.path)
        self.git_manager = git_manager
        self.current_repo_id = repo.id
        self.current_commit_hash = None
        self.settings.set_last_repo_id(repo.id)
        self.setWindowTitle(f"{repo.name} - Git Dashboard")
        self.side_bar.set_repos(self.registry.get_sorted_repos(), repo.id)
        self.commit_detail.clear()
        self.graph_view.clear_graph()

        self.start_watching_folder(repo.path)
        self.refresh_all()

    def close_repo(self):
        self.stop_watching_folder()
        self.git_manager = None
        self.current_repo_id = None
        self.current_commit_hash = None
        self._graph_token += 1
        self._status_token += 1
        self.graph_view.clear_graph()
        self.graph_status_label.clear()
        self.commit_detail.clear()
        self.repo_panel.clear()
        self.setWindowTitle(self.tr("Git Dashboard"))

    # ---- 后台线程 ----

    def _start_thread(self, thread):
        self._threads = [t for t in self._threads if not t.isFinished()]
        self._threads.append(thread)
        thread.start()

    def refresh_all(self):
        self.refresh_graph()
        self.refresh_status()

    def refresh_graph(self):
        if not self.git_manager:
            return
        self._graph_token += 1
        self.graph_status_label.setText("Loading history...")
        thread = GraphLoadThread(
            self.git_manager,
            self._graph_token,
            limit=self.settings.get_graph_limit(),
            row_height=self.settings.get_row_height(),
            column_width=self.settings.get_column_width(),
        )
        thread.finished.connect(self.on_graph_loaded)
        thread.error.connect(self.on_graph_error)
        self._start_thread(thread)

    def on_graph_loaded(self, token: int, records: list, layout: GraphLayout):
        if token != self._graph_token:
            logging.debug("Dropping stale graph result %d (current %d)", token, self._graph_token)
            return
        self.records = records
        self.layout_result = layout
        self.graph_view.populate_graph(records, layout)
        self.graph_status_label.setText(f"{len(records)} commits · {layout.max_lane} lanes")

        if self.current_commit_hash and self.current_commit_hash in self.graph_view.commit_items:
            self.graph_view.select_commit(self.current_commit_hash)
        elif self.current_commit_hash:
            self.current_commit_hash = None
            self.commit_detail.clear()

    def on_graph_error(self, token: int, message: str):
        if token != self._graph_token:
            return
        self.graph_status_label.setText("Failed to load history")
        self.notification_widget.show_error(f"Failed to load history: {message}")

    def refresh_status(self):
        if not self.git_manager:
            return
        self._status_token += 1
        thread = RepoStatusThread(self.git_manager, self._status_token)
        thread.finished.connect(self.on_status_loaded)
        self._start_thread(thread)

    def on_status_loaded(self, token: int, success: bool, overview, error_message: str):
        if token != self._status_token:
            logging.debug("Dropping stale status result %d (current %d)", token, self._status_token)
            return
        if not success:
            logging.error("Failed to read repository status: %s", error_message)
            self.notification_widget.show_error(error_message)
            return
        self.repo_panel.update_overview(overview["status"], overview["branches"])

    def run_action(self, action: str, data: dict):
        if not self.git_manager:
            self.notification_widget.show_error("Repository not found")
            return
        thread = RepoActionThread(self.git_manager, action, data)
        thread.finished.connect(self.on_action_finished)
        self._start_thread(thread)

    def on_action_finished(self, action: str, success: bool, message: str, payload):
        if not success:
            self.notification_widget.show_error(message)
            # 失败的 merge/rebase 可能留下冲突状态，需要刷新
            if action not in READ_ONLY_ACTIONS:
                self.refresh_all()
            return

        if action == "search-commits":
            self.repo_panel.show_search_results(payload or [])
            self.notification_widget.show_message(message)
            return
        if action == "get-file-diff":
            self.current_commit_hash = None
            self.commit_detail.show_file_diff(payload or "")
            return

        if action == "commit":
            self.repo_panel.on_commit_succeeded()
        self.notification_widget.show_success(message)
        self.refresh_all()

    def on_commit_selected(self, commit_hash: str):
        if not self.git_manager:
            return
        self.current_commit_hash = commit_hash
        commit = next((r for r in self.records if r.hash == commit_hash), None)
        self.commit_detail.show_commit(commit)

        thread = CommitDiffThread(self.git_manager, commit_hash)
        thread.finished.connect(self.on_commit_diff_loaded)
        self._start_thread(thread)

    def on_commit_diff_loaded(self, commit_hash: str, success: bool, diff, error_message: str):
        if commit_hash != self.current_commit_hash:
            return
        if success:
            self.commit_detail.show_diff(diff)
        else:
            self.commit_detail.show_error(error_message)

    # ---- 文件监控 ----

    def start_watching_folder(self, folder_path):
        """Starts the watchdog observer for the given folder."""
        self.stop_watching_folder()

        event_handler = GitChangeHandler()
        event_handler.git_changed.connect(self.handle_git_change)
        event_handler.worktree_changed.connect(self.handle_worktree_change)

        self.observer = Observer()
        self.observer.schedule(event_handler, folder_path, recursive=True)
        self.observer.start()
        # 保持引用，避免 handler 被回收
        self._event_handler = event_handler
        logging.info("Started watching folder for changes: %s", folder_path)

    def stop_watching_folder(self):
        """Stops the watchdog observer if it's running."""
        if self.observer and self.observer.is_alive():
            self.observer.stop()
            self.observer.join()
            logging.info("Stopped watching folder.")
        self.observer = None

    def handle_git_change(self, event_type, path):
        logging.debug("Git change event: %s - %s", event_type, path)
        self.git_refresh_timer.start()

    def handle_worktree_change(self, event_type, path):
        self.status_refresh_timer.start()

    def _throttled_git_refresh(self):
        if self.git_manager and self.git_manager.repo:
            logging.info("Git change detected, refreshing commit graph and status.")
            self.refresh_all()

    # ---- 窗口状态 ----

    def _restore_geometry(self):
        geometry = self.settings.get_window_geometry()
        if geometry and len(geometry) == 4:
            self.setGeometry(*geometry)
            return

        screen = QGuiApplication.primaryScreen()
        if screen:
            available = screen.availableGeometry()
            self.setGeometry(
                available.x() + int(available.width() * 0.1),
                available.y() + int(available.height() * 0.1),
                int(available.width() * 0.8),
                int(available.height() * 0.8),
            )
        else:
            self.resize(1280, 800)

    def save_splitter_state(self):
        self.settings.save_splitter_state(
            {"main": list(self.main_splitter.sizes()), "right": list(self.right_splitter.sizes())}
        )

    def restore_splitter_state(self):
        state = self.settings.get_splitter_state()
        if not isinstance(state, dict):
            return
        main_sizes = state.get("main")
        if main_sizes and len(main_sizes) == len(self.main_splitter.sizes()):
            self.main_splitter.setSizes(main_sizes)
        right_sizes = state.get("right")
        if right_sizes and len(right_sizes) == len(self.right_splitter.sizes()):
            self.right_splitter.setSizes(right_sizes)

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self.reposition_notification_widget()

    def reposition_notification_widget(self):
        if hasattr(self, "notification_widget") and self.notification_widget:
            x = self.width() - self.notification_widget.width() - 10  # 10 for margin
            self.notification_widget.move(x, 10)
            if self.notification_widget.isVisible():
                self.notification_widget.raise_()

    def closeEvent(self, event):
        """保存窗口状态，停止文件监控并等待后台线程结束"""
        self.save_splitter_state()
        geometry = self.geometry()
        self.settings.save_window_geometry([geometry.x(), geometry.y(), geometry.width(), geometry.height()])
        self.stop_watching_folder()
        for thread in self._threads:
            thread.wait(2000)
        super().closeEvent(event)
