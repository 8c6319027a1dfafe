import logging

from pygments import lexers, styles
from pygments.token import Generic
from pygments.util import ClassNotFound
from PyQt6.QtGui import QColor, QFont, QSyntaxHighlighter, QTextCharFormat

# 整行背景色，叠加在 Pygments 的前景色之上
LINE_BACKGROUNDS = {
    "+": QColor("#e6ffed"),
    "-": QColor("#ffeef0"),
    "@": QColor("#f1f8ff"),
}


class DiffHighlighter(QSyntaxHighlighter):
    """使用 Pygments 的 diff 词法分析器高亮 unified diff 文本"""

    def __init__(self, parent=None, style_name: str = "friendly"):
        super().__init__(parent)
        self.lexer = lexers.get_lexer_by_name("diff")
        self.style_formats = {}
        self.default_text_format = QTextCharFormat()
        self.default_text_format.setForeground(QColor("#000000"))
        self._load_style(style_name)

    def _load_style(self, style_name: str):
        try:
            style = styles.get_style_by_name(style_name)
        except ClassNotFound:
            logging.warning("未找到 Pygments 样式 '%s'，使用 default", style_name)
            style = styles.get_style_by_name("default")

        self.style_formats = {}
        for token_type, style_definition in style:
            qt_format = QTextCharFormat()
            if style_definition["color"]:
                qt_format.setForeground(QColor(f"#{style_definition['color']}"))
            if style_definition["bold"]:
                qt_format.setFontWeight(QFont.Weight.Bold)
            if style_definition["italic"]:
                qt_format.setFontItalic(True)
            self.style_formats[token_type] = qt_format

    def _format_for(self, token_type) -> QTextCharFormat:
        # 子类型没有单独样式时沿用父类型，例如 Generic.Inserted
        while token_type not in self.style_formats and token_type.parent is not None:
            token_type = token_type.parent
        return self.style_formats.get(token_type, self.default_text_format)

    def highlightBlock(self, text):
        self.setFormat(0, len(text), self.default_text_format)
        if not text:
            return

        background = None
        if not text.startswith(("+++", "---")):
            background = LINE_BACKGROUNDS.get(text[0])

        for index, token_type, token_text in self.lexer.get_tokens_unprocessed(text):
            fmt = QTextCharFormat(self._format_for(token_type))
            if token_type in Generic.Heading or token_type in Generic.Subheading:
                fmt.setFontWeight(QFont.Weight.Bold)
            if background is not None:
                fmt.setBackground(background)
            self.setFormat(index, len(token_text), fmt)
