"""Full-screen transparent overlay hosting the drawing surface."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtGui import (
    QAction, QColor, QKeyEvent, QMouseEvent, QPainter, QWheelEvent
)
from PyQt6.QtWidgets import QLabel, QWidget

from ..core.surface import TEXT_CURSOR_TIME, DrawingSurface, PointerHint, Tool

logger = logging.getLogger(__name__)

OSD_TIME = 1500  # ms

POINTER_SHAPES = {
    PointerHint.DEFAULT: Qt.CursorShape.ArrowCursor,
    PointerHint.CROSSHAIR: Qt.CursorShape.CrossCursor,
    PointerHint.POINTING_HAND: Qt.CursorShape.PointingHandCursor,
    PointerHint.MOVE_OR_RESIZE_WINDOW: Qt.CursorShape.SizeAllCursor,
}

TOOL_KEYS = {
    Qt.Key.Key_P: Tool.NONE,
    Qt.Key.Key_L: Tool.LINE,
    Qt.Key.Key_E: Tool.ELLIPSE,
    Qt.Key.Key_R: Tool.RECTANGLE,
    Qt.Key.Key_T: Tool.TEXT,
    Qt.Key.Key_Y: Tool.POLYGON,
    Qt.Key.Key_U: Tool.POLYLINE,
    Qt.Key.Key_M: Tool.MOVE,
    Qt.Key.Key_S: Tool.RESIZE,
    Qt.Key.Key_I: Tool.MIRROR,
}


class DrawingArea(QWidget):
    """
    Overlay widget adapting Qt input events to a DrawingSurface.

    Left button draws or transforms, middle button toggles fill, right
    button finishes the element. Shift draws with the eraser or
    duplicates the transformed element, Ctrl switches to the alternate
    transformation.
    """

    def __init__(self, surface: DrawingSurface, parent: Optional[QWidget] = None) -> None:
        """Initialize the overlay."""
        super().__init__(parent)
        self.surface = surface

        self.setWindowFlags(
            Qt.WindowType.FramelessWindowHint | Qt.WindowType.WindowStaysOnTopHint
        )
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground, True)
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

        # On-screen messages
        self._osd = QLabel(self)
        self._osd.setStyleSheet(
            "background-color: rgba(0, 0, 0, 160); color: white; padding: 8px; border-radius: 6px;"
        )
        self._osd.hide()
        self._osd_timer = QTimer(self)
        self._osd_timer.setSingleShot(True)
        self._osd_timer.timeout.connect(self._osd.hide)

        self._cursor_timer = QTimer(self)
        self._cursor_timer.setInterval(TEXT_CURSOR_TIME)
        self._cursor_timer.timeout.connect(self.surface.blink_text_cursor)

        # Text typed in writing mode
        self._text = ""
        self._cursor = 0

        surface.repaint_requested.connect(self.update)
        surface.pointer_hint_changed.connect(self._on_pointer_hint_changed)
        surface.osd_message.connect(self.show_osd)

        self._create_actions()
        surface.update_pointer_hint()

    def _create_actions(self) -> None:
        """Keyboard shortcuts for the page and style actions."""
        shortcuts: Dict[str, Callable[[], None]] = {
            "Ctrl+Z": self.surface.undo,
            "Ctrl+Shift+Z": self.surface.redo,
            "Delete": self.surface.delete_last_element,
            "Shift+Delete": self.surface.erase,
            "Ctrl+L": self.surface.smooth_last_element,
            "Ctrl+B": self.surface.toggle_background,
            "Ctrl+G": self.surface.toggle_grid,
            "Ctrl+Tab": self.surface.toggle_color,
            "Ctrl+A": self.surface.toggle_fill,
            "Ctrl+D": self.surface.toggle_dash,
            "Ctrl+J": self.surface.toggle_line_join,
            "Ctrl+K": self.surface.toggle_line_cap,
            "Ctrl+R": self.surface.toggle_fill_rule,
            "Ctrl+W": self.surface.toggle_font_weight,
            "Ctrl+I": self.surface.toggle_font_style,
            "Ctrl+F": self.surface.toggle_font_family,
            "Ctrl+Shift+A": self.surface.toggle_text_alignment,
            "Ctrl+KP_Add": lambda: self.surface.increment_line_width(1),
            "Ctrl+KP_Subtract": lambda: self.surface.increment_line_width(-1),
            "Ctrl+S": lambda: self.surface.save_as_json(),
            "Ctrl+Shift+S": lambda: self.surface.export_svg(),
            "Ctrl+O": self.surface.load_next_json,
            "Ctrl+Shift+O": self.surface.load_previous_json,
        }
        for index in range(len(self.surface.palette)):
            shortcuts[f"Ctrl+{index + 1}"] = lambda i=index: self.surface.select_color(i)

        for sequence, callback in shortcuts.items():
            action = QAction(self)
            action.setShortcut(sequence)
            action.triggered.connect(callback)
            self.addAction(action)

    # === Surface outputs ===

    def _on_pointer_hint_changed(self, name: str) -> None:
        self.setCursor(POINTER_SHAPES.get(name, Qt.CursorShape.ArrowCursor))

    def show_osd(self, message: str) -> None:
        """Show a short message in the middle of the overlay."""
        self._osd.setText(message)
        self._osd.adjustSize()
        self._osd.move(
            (self.width() - self._osd.width()) // 2,
            (self.height() - self._osd.height()) // 2
        )
        self._osd.show()
        self._osd_timer.start(OSD_TIME)

    # === Qt events ===

    def resizeEvent(self, event) -> None:
        self.surface.width = self.width()
        self.surface.height = self.height()
        super().resizeEvent(event)

    def paintEvent(self, event) -> None:
        """Paint the page, a failing frame is logged and left blank."""
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        painter.setRenderHint(QPainter.RenderHint.TextAntialiasing)
        painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_Source)
        painter.fillRect(self.rect(), QColor(0, 0, 0, 1))
        painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_SourceOver)
        try:
            self.surface.paint(painter)
        finally:
            painter.end()

    def mousePressEvent(self, event: QMouseEvent) -> None:
        """Handle mouse press events."""
        self.setFocus()
        pos = event.position()
        modifiers = event.modifiers()
        control = bool(modifiers & Qt.KeyboardModifier.ControlModifier)
        shift = bool(modifiers & Qt.KeyboardModifier.ShiftModifier)

        if self.surface.is_writing:
            self._finish_writing()

        if event.button() == Qt.MouseButton.LeftButton:
            if self.surface.tool.is_manipulation:
                self.surface.grab_element_at(pos.x(), pos.y())
                self.surface.start_transforming(pos.x(), pos.y(), control, shift)
            else:
                self.surface.start_drawing(pos.x(), pos.y(), eraser=shift)
        elif event.button() == Qt.MouseButton.MiddleButton:
            self.surface.toggle_fill()
        elif event.button() == Qt.MouseButton.RightButton:
            self._stop_drawing()

    def mouseMoveEvent(self, event: QMouseEvent) -> None:
        """Handle mouse move events."""
        pos = event.position()
        control = bool(event.modifiers() & Qt.KeyboardModifier.ControlModifier)

        if self.surface.is_transforming:
            self.surface.update_transforming(pos.x(), pos.y(), control)
        elif self.surface.current_element is not None and not self.surface.is_writing:
            self.surface.update_drawing(pos.x(), pos.y(), control)
        elif self.surface.tool.is_manipulation:
            self.surface.grab_element_at(pos.x(), pos.y())

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:
        """Handle mouse release events."""
        if event.button() != Qt.MouseButton.LeftButton:
            return
        if self.surface.is_transforming:
            self.surface.stop_transforming()
        elif self.surface.current_element is not None and not self.surface.is_writing:
            self._stop_drawing()

    def wheelEvent(self, event: QWheelEvent) -> None:
        delta = event.angleDelta().y()
        if delta:
            self.surface.increment_line_width(1 if delta > 0 else -1)

    def keyPressEvent(self, event: QKeyEvent) -> None:
        """Handle key press events."""
        if self.surface.is_writing:
            self._write_key(event)
            return

        key = event.key()
        if key in (Qt.Key.Key_Return, Qt.Key.Key_Enter):
            self.surface.add_vertex()
        elif key == Qt.Key.Key_Escape:
            if self.surface.current_element is not None or self.surface.is_transforming:
                self.surface.cancel()
            else:
                self.close()
        elif key in TOOL_KEYS and event.modifiers() == Qt.KeyboardModifier.NoModifier:
            self.surface.select_tool(TOOL_KEYS[key])
        else:
            super().keyPressEvent(event)

    def closeEvent(self, event) -> None:
        self._finish_writing()
        if self.surface.config.persistent_drawing:
            self.surface.save_persistent()
        self.surface.store.flush()
        super().closeEvent(event)

    # === Writing ===

    def _stop_drawing(self) -> None:
        self.surface.stop_drawing()
        if self.surface.is_writing:
            self._text, self._cursor = "", 0
            self._cursor_timer.start()

    def _finish_writing(self, start_new_line: bool = False) -> None:
        if not self.surface.is_writing:
            return
        self.surface.stop_writing(start_new_line)
        self._text, self._cursor = "", 0
        if not self.surface.is_writing:
            self._cursor_timer.stop()

    def _write_key(self, event: QKeyEvent) -> None:
        """Edit the text being written with a single-line editing model."""
        key = event.key()
        if key == Qt.Key.Key_Escape:
            self._finish_writing()
            return
        if key in (Qt.Key.Key_Return, Qt.Key.Key_Enter):
            self._finish_writing(start_new_line=True)
            return

        if key == Qt.Key.Key_Backspace and self._cursor > 0:
            self._text = self._text[:self._cursor - 1] + self._text[self._cursor:]
            self._cursor -= 1
        elif key == Qt.Key.Key_Delete:
            self._text = self._text[:self._cursor] + self._text[self._cursor + 1:]
        elif key == Qt.Key.Key_Left:
            self._cursor = max(0, self._cursor - 1)
        elif key == Qt.Key.Key_Right:
            self._cursor = min(len(self._text), self._cursor + 1)
        elif key == Qt.Key.Key_Home:
            self._cursor = 0
        elif key == Qt.Key.Key_End:
            self._cursor = len(self._text)
        elif event.text() and event.text().isprintable():
            self._text = self._text[:self._cursor] + event.text() + self._text[self._cursor:]
            self._cursor += len(event.text())
        else:
            return

        self.surface.set_text(self._text, self._cursor)
        self._cursor_timer.start()
