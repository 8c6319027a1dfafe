# git_graph_items.py

from html import escape

from PyQt6.QtCore import QPointF, QRectF, Qt
from PyQt6.QtGui import QBrush, QColor, QFont, QPainterPath, QPen
from PyQt6.QtWidgets import QGraphicsEllipseItem, QGraphicsItem, QGraphicsPathItem, QGraphicsTextItem

from git_graph_data import CommitRecord, ConnectorEdge, NodePosition
from git_graph_layout import NODE_RADIUS

# Lane colours, indexed by ConnectorEdge.color_index / NodePosition.color_index
COLOR_PALETTE = [
    QColor("#3b82f6"),  # blue
    QColor("#22c55e"),  # green
    QColor("#f59e0b"),  # amber
    QColor("#ef4444"),  # red
    QColor("#8b5cf6"),  # violet
    QColor("#06b6d4"),  # cyan
    QColor("#ec4899"),  # pink
    QColor("#f97316"),  # orange
]

BACKGROUND_COLOR = QColor("#ffffff")
SELECTED_COMMIT_COLOR = QColor(Qt.GlobalColor.yellow)
HOVER_COMMIT_COLOR = QColor(Qt.GlobalColor.lightGray)

EDGE_THICKNESS = 2
HEAD_RADIUS_EXTRA = 2

REF_PADDING_X = 4
REF_PADDING_Y = 2
REF_BACKGROUND_COLOR_BRANCH = QColor("#e6f7ff")  # Light blue
REF_BORDER_COLOR_BRANCH = QColor("#91d5ff")
REF_TEXT_COLOR_BRANCH = QColor("#1d4ed8")

REF_BACKGROUND_COLOR_TAG = QColor("#fffbe6")  # Light yellow
REF_BORDER_COLOR_TAG = QColor("#ffe58f")
REF_TEXT_COLOR_TAG = QColor("#b45309")

# Configuration for CommitMessageItem
COMMIT_MSG_MAX_LENGTH = 72
COMMIT_MSG_COLOR = QColor("#444444")
COMMIT_META_COLOR = QColor("#8c8c8c")
COMMIT_HASH_COLOR = QColor("#3b82f6")
COMMIT_MSG_FONT_FAMILY = "Arial"
COMMIT_MSG_FONT_SIZE = 9

# Labels shown before "+N"
MAX_BRANCH_LABELS = 2
MAX_TAG_LABELS = 1


def lane_color(color_index: int) -> QColor:
    return COLOR_PALETTE[color_index % len(COLOR_PALETTE)]


class CommitCircle(QGraphicsEllipseItem):
    def __init__(self, commit: CommitRecord, node: NodePosition, parent: QGraphicsItem = None):
        radius = NODE_RADIUS + HEAD_RADIUS_EXTRA if commit.is_head else NODE_RADIUS
        super().__init__(-radius, -radius, 2 * radius, 2 * radius, parent)
        self.commit = commit
        self.node = node
        self.base_color = lane_color(node.color_index)
        # HEAD is drawn filled, other commits hollow
        self.fill_color = self.base_color if commit.is_head else BACKGROUND_COLOR
        self.current_brush_color = self.fill_color

        self.setFlag(QGraphicsItem.GraphicsItemFlag.ItemIsSelectable, True)
        self.setAcceptHoverEvents(True)
        self.setZValue(1)

        self.setBrush(QBrush(self.fill_color))
        self.setPen(QPen(self.base_color, EDGE_THICKNESS))
        self.setPos(node.x, node.y)

        self.setToolTip(
            f"SHA: {commit.hash}\n"
            f"Author: {commit.author}\n"
            f"Date: {commit.date}\n"
            f"Message: {commit.message}"
        )

    def itemChange(self, change, value):
        if change == QGraphicsItem.GraphicsItemChange.ItemSelectedChange:
            self.current_brush_color = SELECTED_COMMIT_COLOR if value else self.fill_color
            self.setBrush(QBrush(self.current_brush_color))
        return super().itemChange(change, value)

    def hoverEnterEvent(self, event):
        if not self.isSelected():
            self.setBrush(QBrush(HOVER_COMMIT_COLOR))
        super().hoverEnterEvent(event)

    def hoverLeaveEvent(self, event):
        if not self.isSelected():
            self.setBrush(QBrush(self.current_brush_color))
        super().hoverLeaveEvent(event)


def edge_path(edge: ConnectorEdge) -> QPainterPath:
    """Straight line within a lane, vertical S-curve between lanes."""
    path = QPainterPath(QPointF(edge.x1, edge.y1))
    if edge.is_straight:
        path.lineTo(edge.x2, edge.y2)
    else:
        mid_y = (edge.y1 + edge.y2) / 2
        path.cubicTo(QPointF(edge.x1, mid_y), QPointF(edge.x2, mid_y), QPointF(edge.x2, edge.y2))
    return path


class EdgeLine(QGraphicsPathItem):
    def __init__(self, edge: ConnectorEdge, parent: QGraphicsItem = None):
        super().__init__(parent)
        self.edge = edge
        self.line_color = lane_color(edge.color_index)

        pen = QPen(
            self.line_color,
            EDGE_THICKNESS,
            Qt.PenStyle.DashLine if edge.is_terminus else Qt.PenStyle.SolidLine,
            Qt.PenCapStyle.RoundCap,
            Qt.PenJoinStyle.RoundJoin,
        )
        self.setPen(pen)
        self.setZValue(-1)  # Draw edges behind commits
        self.setPath(edge_path(edge))


class ReferenceLabel(QGraphicsTextItem):
    def __init__(self, text: str, is_tag: bool = False, parent: QGraphicsItem = None):
        super().__init__(text, parent)
        self.text = text
        self.setFont(QFont(COMMIT_MSG_FONT_FAMILY, 8))

        if is_tag:
            self.bg_color = REF_BACKGROUND_COLOR_TAG
            self.border_color = REF_BORDER_COLOR_TAG
            self.text_color = REF_TEXT_COLOR_TAG
        else:
            self.bg_color = REF_BACKGROUND_COLOR_BRANCH
            self.border_color = REF_BORDER_COLOR_BRANCH
            self.text_color = REF_TEXT_COLOR_BRANCH

        self.setDefaultTextColor(self.text_color)
        self.setToolTip(text)

    def paint(self, painter, option, widget=None):
        painter.setPen(QPen(self.border_color, 1))
        painter.setBrush(QBrush(self.bg_color))
        painter.drawRoundedRect(self.boundingRect(), 3, 3)
        super().paint(painter, option, widget)

    def boundingRect(self) -> QRectF:
        # Adjust bounding rect to include padding for background drawing
        rect = super().boundingRect()
        rect.adjust(-REF_PADDING_X, -REF_PADDING_Y, REF_PADDING_X, REF_PADDING_Y)
        return rect


def truncate_message(message: str, max_length: int = COMMIT_MSG_MAX_LENGTH) -> str:
    if len(message) > max_length:
        return message[: max_length - 3] + "..."
    return message


class CommitMessageItem(QGraphicsTextItem):
    """Short hash, subject and author/date for one row."""

    def __init__(self, commit: CommitRecord, parent: QGraphicsItem = None):
        super().__init__(parent)
        self.commit = commit
        display_text = truncate_message(commit.message)

        self.setHtml(
            f'<span style="color:{COMMIT_HASH_COLOR.name()}; font-family:monospace;">{commit.short_hash}</span>'
            f"&nbsp;&nbsp;<span style=\"color:{COMMIT_MSG_COLOR.name()};\">{escape(display_text)}</span>"
            f"&nbsp;&nbsp;<span style=\"color:{COMMIT_META_COLOR.name()};\">"
            f"{escape(commit.author)} · {escape(commit.date)}</span>"
        )
        self.setFont(QFont(COMMIT_MSG_FONT_FAMILY, COMMIT_MSG_FONT_SIZE))

        if display_text != commit.message:
            self.setToolTip(f"Full message: {commit.message}")
