# git_graph_view.py

from typing import Optional

from PyQt6.QtCore import QRectF, Qt, pyqtSignal
from PyQt6.QtGui import QAction, QBrush, QColor, QPainter, QPen
from PyQt6.QtWidgets import QApplication, QGraphicsRectItem, QGraphicsScene, QGraphicsView, QMenu

from git_graph_data import CommitRecord, GraphLayout
from git_graph_items import (
    BACKGROUND_COLOR,
    MAX_BRANCH_LABELS,
    MAX_TAG_LABELS,
    REF_PADDING_X,
    CommitCircle,
    CommitMessageItem,
    EdgeLine,
    ReferenceLabel,
)

ROW_HIGHLIGHT_COLOR = QColor("#eef4ff")
TEXT_GAP = 12


class GitGraphView(QGraphicsView):
    """提交图视图：左侧绘制泳道和提交节点，右侧是分支标签和提交信息"""

    commit_item_clicked = pyqtSignal(str)
    # (action, ref) - checkout / merge / rebase 等请求交给窗口处理
    action_requested = pyqtSignal(str, str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.scene = QGraphicsScene(self)
        self.setScene(self.scene)

        self.setRenderHint(QPainter.RenderHint.Antialiasing)
        self.setDragMode(QGraphicsView.DragMode.ScrollHandDrag)  # Enable panning
        self.setTransformationAnchor(QGraphicsView.ViewportAnchor.AnchorUnderMouse)  # Zoom towards mouse
        self.setAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop)
        self.setBackgroundBrush(QBrush(BACKGROUND_COLOR))

        self._records: list[CommitRecord] = []
        self._layout: Optional[GraphLayout] = None
        self._commit_items: dict[str, CommitCircle] = {}
        self._edge_items: list[EdgeLine] = []
        self._ref_labels: list[ReferenceLabel] = []
        self._message_items: list[CommitMessageItem] = []
        self._row_highlight: Optional[QGraphicsRectItem] = None

        self._zoom_factor_base = 1.1  # Base factor for zooming

        self.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)
        self.customContextMenuRequested.connect(self._show_context_menu)

    @property
    def commit_items(self) -> dict[str, CommitCircle]:
        return self._commit_items

    @property
    def edge_items(self) -> list[EdgeLine]:
        return self._edge_items

    def clear_graph(self):
        self.scene.clear()
        self._records = []
        self._layout = None
        self._commit_items.clear()
        self._edge_items.clear()
        self._ref_labels.clear()
        self._message_items.clear()
        self._row_highlight = None

    def populate_graph(self, records: list[CommitRecord], layout: GraphLayout):
        self.clear_graph()
        if not records:
            return

        self._records = list(records)
        self._layout = layout

        for edge in layout.edges:
            edge_item = EdgeLine(edge)
            self.scene.addItem(edge_item)
            self._edge_items.append(edge_item)

        text_x = layout.width + TEXT_GAP
        for commit, node in zip(records, layout.nodes):
            commit_item = CommitCircle(commit, node)
            self.scene.addItem(commit_item)
            self._commit_items[commit.hash] = commit_item

            x = text_x
            for label in self._create_ref_labels(commit):
                label.setPos(x, node.y - label.boundingRect().height() / 2 + REF_PADDING_X / 2)
                self.scene.addItem(label)
                self._ref_labels.append(label)
                x += label.boundingRect().width() + REF_PADDING_X

            msg_item = CommitMessageItem(commit)
            msg_item.setPos(x, node.y - msg_item.boundingRect().height() / 2)
            self.scene.addItem(msg_item)
            self._message_items.append(msg_item)

        right = max((item.pos().x() + item.boundingRect().width() for item in self._message_items), default=text_x)
        self.scene.setSceneRect(QRectF(0, 0, right + TEXT_GAP, max(layout.height, 1)))

    def _create_ref_labels(self, commit: CommitRecord) -> list[ReferenceLabel]:
        labels = [ReferenceLabel(name) for name in commit.branches[:MAX_BRANCH_LABELS]]
        hidden = len(commit.branches) - MAX_BRANCH_LABELS
        if hidden > 0:
            more = ReferenceLabel(f"+{hidden}")
            more.setToolTip("\n".join(commit.branches[MAX_BRANCH_LABELS:]))
            labels.append(more)
        labels.extend(ReferenceLabel(tag, is_tag=True) for tag in commit.tags[:MAX_TAG_LABELS])
        return labels

    def record_at(self, scene_y: float) -> Optional[CommitRecord]:
        """根据场景 y 坐标找到所在行的提交"""
        if self._layout is None or scene_y < 0:
            return None
        row = int(scene_y // self._layout.row_height)
        if row >= len(self._records):
            return None
        return self._records[row]

    def select_commit(self, commit_hash: str):
        item = self._commit_items.get(commit_hash)
        if item is None or self._layout is None:
            return
        self.scene.clearSelection()
        item.setSelected(True)
        self._highlight_row(item.node.row)
        self.ensureVisible(item)

    def _highlight_row(self, row: int):
        if self._row_highlight is None:
            self._row_highlight = QGraphicsRectItem()
            self._row_highlight.setBrush(QBrush(ROW_HIGHLIGHT_COLOR))
            self._row_highlight.setPen(QPen(Qt.PenStyle.NoPen))
            self._row_highlight.setZValue(-2)
            self.scene.addItem(self._row_highlight)
        row_height = self._layout.row_height
        self._row_highlight.setRect(0, row * row_height, self.scene.sceneRect().width(), row_height)

    def wheelEvent(self, event):
        """Ctrl + 滚轮缩放，否则正常滚动"""
        if event.modifiers() & Qt.KeyboardModifier.ControlModifier:
            if event.angleDelta().y() > 0:
                self.zoom_in()
            else:
                self.zoom_out()
            event.accept()
        else:
            super().wheelEvent(event)

    def zoom_in(self):
        self.scale(self._zoom_factor_base, self._zoom_factor_base)

    def zoom_out(self):
        self.scale(1.0 / self._zoom_factor_base, 1.0 / self._zoom_factor_base)

    def keyPressEvent(self, event):
        if event.modifiers() & Qt.KeyboardModifier.ControlModifier and event.key() in (
            Qt.Key.Key_Plus,
            Qt.Key.Key_Equal,
        ):
            self.zoom_in()
        elif event.modifiers() & Qt.KeyboardModifier.ControlModifier and event.key() == Qt.Key.Key_Minus:
            self.zoom_out()
        else:
            super().keyPressEvent(event)

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            # Clicking anywhere on a row selects its commit
            commit = self.record_at(self.mapToScene(event.position().toPoint()).y())
            if commit is not None:
                self.select_commit(commit.hash)
                self.commit_item_clicked.emit(commit.hash)
        super().mousePressEvent(event)

    def _show_context_menu(self, pos):
        commit = self.record_at(self.mapToScene(pos).y())
        if commit is None:
            return

        menu = QMenu(self)

        copy_action = QAction("Copy Commit Hash", self)
        copy_action.triggered.connect(lambda: self._copy_commit_sha(commit.hash))
        menu.addAction(copy_action)

        if commit.branches:
            menu.addSeparator()
            for branch in commit.branches:
                checkout_action = QAction(f"Checkout {branch}", self)
                checkout_action.triggered.connect(lambda _, b=branch: self.action_requested.emit("checkout", b))
                menu.addAction(checkout_action)
            for branch in commit.branches:
                merge_action = QAction(f"Merge {branch} into current", self)
                merge_action.triggered.connect(lambda _, b=branch: self.action_requested.emit("merge", b))
                menu.addAction(merge_action)
                rebase_action = QAction(f"Rebase current onto {branch}", self)
                rebase_action.triggered.connect(lambda _, b=branch: self.action_requested.emit("rebase", b))
                menu.addAction(rebase_action)

        menu.exec(self.viewport().mapToGlobal(pos))

    def _copy_commit_sha(self, sha):
        QApplication.clipboard().setText(sha)


if __name__ == "__main__":
    import sys

    from git_graph_layout import calculate_graph_layout
    from git_manager import GitManager

    app = QApplication(sys.argv)

    manager = GitManager(sys.argv[1] if len(sys.argv) > 1 else ".")
    if not manager.initialize():
        print("Not a git repository")
        sys.exit(1)

    records = manager.get_commit_graph(limit=200)
    view = GitGraphView()
    view.populate_graph(records, calculate_graph_layout(records))
    view.setWindowTitle("Git Commit Graph")
    view.resize(900, 600)
    view.show()

    sys.exit(app.exec())
