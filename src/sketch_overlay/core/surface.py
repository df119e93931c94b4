"""Drawing surface: the element sequence and the gestures acting on it."""

from __future__ import annotations

import logging
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from PyQt6.QtCore import QObject, QPointF, pyqtSignal
from PyQt6.QtGui import QPainter

from .config import AppConfig
from .models import (
    FONT_GENERIC_FAMILIES, FONT_WEIGHT_NAMES, DashStyle, DrawingElement,
    FillRule, FontSpec, FontStyle, LineCap, LineJoin, LineStyle, Shape,
    SHAPE_NAMES
)
from .path_renderer import GridStyle, PathRenderer
from .serialization import DrawingFormatError, dumps_elements, loads_elements
from .storage import DrawingStore
from .svg_export import SvgExporter
from .transforms import TransformType

logger = logging.getLogger(__name__)

TEXT_CURSOR_TIME = 600  # ms


class Tool(IntEnum):
    """Drawing shapes plus the tools acting on committed elements."""

    NONE = 0
    LINE = 1
    ELLIPSE = 2
    RECTANGLE = 3
    TEXT = 4
    POLYGON = 5
    POLYLINE = 6
    MOVE = 100
    RESIZE = 101
    MIRROR = 102

    @property
    def is_manipulation(self) -> bool:
        return self in MANIPULATION_TOOLS


MANIPULATION_TOOLS = (Tool.MOVE, Tool.RESIZE, Tool.MIRROR)

TOOL_NAMES: Dict[Tool, str] = {
    **{Tool(int(shape)): name for shape, name in SHAPE_NAMES.items()},
    Tool.MOVE: "Move",
    Tool.RESIZE: "Resize",
    Tool.MIRROR: "Mirror",
}

# Transformation kind of each manipulation tool, without and with the modifier
TOOL_TRANSFORMS: Dict[Tool, Tuple[TransformType, TransformType]] = {
    Tool.MOVE: (TransformType.TRANSLATION, TransformType.ROTATION),
    Tool.RESIZE: (TransformType.SCALE_PRESERVE, TransformType.STRETCH),
    Tool.MIRROR: (TransformType.REFLECTION, TransformType.INVERSION),
}


class PointerHint:
    """Names of the pointer shapes the surface asks for."""

    DEFAULT = "DEFAULT"
    CROSSHAIR = "CROSSHAIR"
    POINTING_HAND = "POINTING_HAND"
    MOVE_OR_RESIZE_WINDOW = "MOVE_OR_RESIZE_WINDOW"


def date_string() -> str:
    """Name for drawings and exports saved without an explicit name."""
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


class DrawingSurface(QObject):
    """
    Owner of the drawing page.

    Holds the committed elements, the undone stack, the element being
    drawn and the element being transformed, and turns pointer and key
    input from the UI into element mutations. All methods run on the Qt
    event thread. The UI listens to the signals to repaint, change the
    pointer shape and show short messages.
    """

    repaint_requested = pyqtSignal()
    pointer_hint_changed = pyqtSignal(str)
    osd_message = pyqtSignal(str)

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        store: Optional[DrawingStore] = None,
        parent: Optional[QObject] = None
    ) -> None:
        """
        Initialize the surface.

        Args:
            config: Drawing defaults, the built-in defaults if None
            store: Where drawings are saved, the configured data directory if None
            parent: Parent QObject
        """
        super().__init__(parent)
        self.config = config or AppConfig()
        self.store = store or DrawingStore(
            self.config.data_path(), self.config.persistent_file_name
        )
        self.renderer = PathRenderer()

        self.elements: List[DrawingElement] = []
        self.undone_elements: List[DrawingElement] = []
        self.current_element: Optional[DrawingElement] = None
        self.grabbed_element: Optional[DrawingElement] = None
        self.grab_locked = False
        self.is_writing = False
        self.is_transforming = False
        self.text_has_cursor = False
        self._duplicate: Optional[DrawingElement] = None
        self._transform_tool = Tool.NONE

        self.json_name: Optional[str] = None
        self.last_json_contents: Optional[str] = None
        self._pointer_hint: Optional[str] = None

        self.width = 0.0
        self.height = 0.0

        self._tool = Tool.NONE
        self.apply_config(self.config)

    # === Style state ===

    def apply_config(self, config: AppConfig) -> None:
        """Reset the current style to the configured defaults."""
        self.config = config
        self.palette = list(config.palette)
        self.color = self.palette[0] if self.palette else "#000000ff"
        self.line_width = config.line_width
        self.line_join = config.line_join
        self.line_cap = config.line_cap
        self.fill = False
        self.fill_rule = config.fill_rule
        self.dashed = False
        self.dash_array = [config.dash_on, config.dash_off]
        self.dash_offset = config.dash_offset
        self.theme_font_family = config.font_family
        self.font_generic = 0
        self.font_weight = config.font_weight
        self.font_style = config.font_style
        self.font_stretch = config.font_stretch
        self.font_variant = config.font_variant
        self.text_right_aligned = config.text_right_aligned
        self.has_background = config.show_background
        self.has_grid = False
        self.renderer.background_color = self.background_color

    @property
    def background_color(self) -> Optional[str]:
        """Surface background, None when the overlay is transparent."""
        return self.config.background_color if self.has_background else None

    @property
    def grid_style(self) -> GridStyle:
        return GridStyle(
            gap=self.config.grid_gap,
            line_width=self.config.grid_line_width,
            interline_width=self.config.grid_interline_width,
            color=self.config.grid_color,
        )

    def style_settings(self) -> Dict[str, object]:
        """
        Current style as AppConfig fields.

        Used to keep the style chosen during a session as the next defaults.
        """
        return {
            "line_width": self.line_width,
            "line_join": self.line_join,
            "line_cap": self.line_cap,
            "fill_rule": self.fill_rule,
            "font_weight": self.font_weight,
            "font_style": self.font_style,
            "text_right_aligned": self.text_right_aligned,
            "show_background": self.has_background,
        }

    @property
    def font_family(self) -> str:
        if self.font_generic == 0:
            return self.theme_font_family
        return FONT_GENERIC_FAMILIES[self.font_generic]

    @property
    def tool(self) -> Tool:
        return self._tool

    @tool.setter
    def tool(self, tool: Tool) -> None:
        # A transformation belongs to the tool that started it
        if self.is_transforming:
            self.stop_transforming()
        self._tool = Tool(tool)
        if not self._tool.is_manipulation:
            self.grabbed_element = None
            self.grab_locked = False

    def _request_repaint(self) -> None:
        self.repaint_requested.emit()

    # === Queries ===

    def element_at(self, x: float, y: float) -> Optional[DrawingElement]:
        """
        Find the element under a point.

        Returns:
            The topmost element containing the point, or None
        """
        for element in reversed(self.elements):
            if self.renderer.contains_point(element, x, y):
                return element
        return None

    @property
    def pointer_hint(self) -> Optional[str]:
        return self._pointer_hint

    def _set_pointer_hint(self, name: str) -> None:
        if name != self._pointer_hint:
            self._pointer_hint = name
            self.pointer_hint_changed.emit(name)

    def update_pointer_hint(self, modifier: bool = False) -> None:
        """Pick the pointer shape for the current tool and gesture."""
        if self._tool == Tool.MIRROR and self.grab_locked:
            self._set_pointer_hint(PointerHint.CROSSHAIR)
        elif self._tool.is_manipulation:
            self._set_pointer_hint(
                PointerHint.MOVE_OR_RESIZE_WINDOW if self.grabbed_element else PointerHint.DEFAULT
            )
        elif self.current_element is None or (self.current_element.is_text and self.is_writing):
            self._set_pointer_hint(
                PointerHint.POINTING_HAND if self._tool == Tool.NONE else PointerHint.CROSSHAIR
            )
        elif self.current_element.shape != Shape.NONE and modifier:
            self._set_pointer_hint(PointerHint.MOVE_OR_RESIZE_WINDOW)

    def paint(self, painter: QPainter) -> bool:
        """Paint the page, returns False if the frame was skipped."""
        return self.renderer.render(
            painter,
            self.elements,
            current=self.current_element,
            grabbed=self.grabbed_element if not self.is_transforming else None,
            show_text_cursor=self.is_writing and self.text_has_cursor,
            writing=self.is_writing,
            grid=self.grid_style if self.has_grid else None,
            width=self.width,
            height=self.height,
        )

    # === Drawing ===

    def _new_element(self, eraser: bool) -> DrawingElement:
        shape = Shape(int(self._tool))
        width = self.line_width
        if self.dashed:
            dash_array = [self.dash_array[0] or width, self.dash_array[1] or width * 3]
        else:
            dash_array = [0.0, 0.0]

        element = DrawingElement(
            shape=shape,
            color=self.color,
            line=LineStyle(width, self.line_join, self.line_cap),
            dash=DashStyle(self.dashed, dash_array, self.dash_offset),
            fill=self.fill,
            fill_rule=self.fill_rule,
            eraser=eraser,
        )
        if shape == Shape.TEXT:
            element.fill = False
            element.font = FontSpec(
                family=self.font_family,
                weight=self.font_weight,
                style=self.font_style,
                stretch=self.font_stretch,
                variant=self.font_variant,
            )
            element.text = "Text"
            element.text_right_aligned = self.text_right_aligned
        return element

    def start_drawing(self, x: float, y: float, eraser: bool = False) -> None:
        """
        Begin a new element of the current tool's shape at (x, y).

        Args:
            x: Pointer x coordinate
            y: Pointer y coordinate
            eraser: Paint with the background instead of the color
        """
        if self.is_writing:
            self.stop_writing()
        if self._tool.is_manipulation:
            return
        if self.current_element is not None:
            self.stop_drawing()

        element = self._new_element(eraser)
        element.start_drawing(x, y)
        self.current_element = element

        if element.shape in (Shape.POLYGON, Shape.POLYLINE):
            self.osd_message.emit("Press Enter to mark vertices")
        self._request_repaint()

    def update_drawing(self, x: float, y: float, transform: bool = False) -> None:
        """Follow the pointer with the element being drawn."""
        if self.current_element is None or self.is_writing:
            return
        self.current_element.update_drawing(x, y, transform)
        self._request_repaint()
        self.update_pointer_hint(transform)

    def add_vertex(self) -> None:
        """Mark a polygon vertex or add a line control point."""
        element = self.current_element
        if element is None or self.is_writing:
            return
        if element.shape == Shape.LINE:
            if len(element.points) == 2:
                self.osd_message.emit("Press Enter to get a fourth control point")
            element.add_point()
            self.update_pointer_hint(True)
            self._request_repaint()
        elif element.shape in (Shape.POLYGON, Shape.POLYLINE):
            element.add_point()
            self._request_repaint()

    def stop_drawing(self) -> None:
        """
        Finish the element being drawn.

        Big enough elements are committed, text elements switch to writing
        mode and the rest is discarded.
        """
        element = self.current_element
        if element is None:
            return
        if self.is_writing:
            self.stop_writing()
            return

        if element.shape == Shape.POLYGON and len(element.points) < 3:
            logger.debug("Discarding polygon with less than 3 points")
            keep = False
        else:
            keep = element.stop_drawing()

        if keep and element.is_text:
            self._start_writing()
            return
        if keep:
            self.elements.append(element)

        self.current_element = None
        self._request_repaint()
        self.update_pointer_hint()

    # === Writing ===

    def _start_writing(self) -> None:
        element = self.current_element
        element.text = ""
        element.cursor_position = 0
        element.text_width = None
        self.is_writing = True
        self.text_has_cursor = True
        self.osd_message.emit("Type your text and press Escape")
        self._request_repaint()
        self.update_pointer_hint()

    def set_text(self, text: str, cursor_position: int = -1) -> None:
        """
        Replace the text being written.

        Args:
            text: Whole text of the line
            cursor_position: Cursor index, -1 for the end of the text
        """
        if not self.is_writing or self.current_element is None:
            return
        self.current_element.text = text
        self.current_element.cursor_position = cursor_position
        self.current_element.text_width = None
        self.text_has_cursor = True
        self._request_repaint()

    def blink_text_cursor(self) -> None:
        """Toggle the text cursor, called every TEXT_CURSOR_TIME ms while writing."""
        if not self.is_writing:
            return
        self.text_has_cursor = not self.text_has_cursor
        self._request_repaint()

    def stop_writing(self, start_new_line: bool = False) -> None:
        """
        Commit the text being written.

        Empty text is dropped. With ``start_new_line``, writing goes on in
        a new element just below, sharing the rotation center of the first
        line.
        """
        element = self.current_element
        if not self.is_writing or element is None:
            return

        if element.text:
            self.elements.append(element)

        if start_new_line and len(element.points) == 2:
            element.line_index = element.line_index or 0
            next_line = element.copy()
            next_line.line_index = element.line_index + 1
            height = element.line_height
            next_line.points = [QPointF(p.x(), p.y() + height) for p in element.points]
            next_line.text = ""
            next_line.cursor_position = 0
            next_line.text_width = None
            self.current_element = next_line
        else:
            self.current_element = None
            self.is_writing = False
            self.text_has_cursor = False

        self._request_repaint()

    # === Transforming ===

    def grab_element_at(self, x: float, y: float) -> Optional[DrawingElement]:
        """
        Select the element under the pointer for the manipulation tools.

        The grab does not change during a transformation or while the
        mirror tool waits for its symmetry line.
        """
        if not self._tool.is_manipulation or self.is_transforming or self.grab_locked:
            return self.grabbed_element

        element = self.element_at(x, y)
        if element is not self.grabbed_element:
            self.grabbed_element = element
            self._request_repaint()
        self.update_pointer_hint()
        return element

    def start_transforming(
        self,
        x: float,
        y: float,
        modifier: bool = False,
        duplicate: bool = False
    ) -> bool:
        """
        Begin transforming the grabbed element.

        The first press with the mirror tool only locks the grab, the
        symmetry line (or point, with the modifier) is drawn by the next
        press.

        Args:
            x: Pointer x coordinate
            y: Pointer y coordinate
            modifier: Use the alternate transformation of the tool
            duplicate: Transform a copy of the grabbed element

        Returns:
            True if a transformation started
        """
        if self.is_writing:
            self.stop_writing()
        if not self._tool.is_manipulation or self.grabbed_element is None or self.is_transforming:
            return False

        if self._tool == Tool.MIRROR:
            self.grab_locked = not self.grab_locked
            if self.grab_locked:
                self.update_pointer_hint()
                self.osd_message.emit(
                    "Mark a point of symmetry" if modifier else "Draw a line of symmetry"
                )
                return False

        target = self.grabbed_element
        if duplicate:
            target = target.copy()
            self.elements.append(target)
            self._duplicate = target

        kind = TOOL_TRANSFORMS[self._tool][int(modifier)]
        if not target.start_transform(kind, x, y):
            self._drop_duplicate()
            self.grab_locked = False
            return False

        self.grabbed_element = target
        self.is_transforming = True
        self._transform_tool = self._tool
        self._request_repaint()
        return True

    def _drop_duplicate(self) -> None:
        # Elements compare by value, a cancelled copy equals its source
        duplicate = self._duplicate
        if duplicate is not None:
            self.elements = [e for e in self.elements if e is not duplicate]
        self._duplicate = None

    def update_transforming(self, x: float, y: float, modifier: bool = False) -> None:
        """Follow the pointer, swapping to the paired kind when the modifier changes."""
        element = self.grabbed_element
        if not self.is_transforming or element is None:
            return

        wanted = TOOL_TRANSFORMS[self._transform_tool][int(modifier)]
        if element.last_transform.type != wanted:
            element.toggle_transform()
        element.update_transform(x, y)
        self._request_repaint()

    def stop_transforming(self) -> None:
        """Commit the transformation and release the grab."""
        if not self.is_transforming:
            return
        if self.grabbed_element is not None:
            self.grabbed_element.stop_transform()
        self.is_transforming = False
        self.grabbed_element = None
        self.grab_locked = False
        self._duplicate = None
        self._request_repaint()
        self.update_pointer_hint()

    def cancel(self) -> None:
        """Abandon any drawing, writing or transformation in progress."""
        if self.is_transforming and self.grabbed_element is not None:
            self.grabbed_element.cancel_transform()
        self._drop_duplicate()
        self.is_transforming = False
        self.grabbed_element = None
        self.grab_locked = False

        self.current_element = None
        self.is_writing = False
        self.text_has_cursor = False

        self._request_repaint()
        self.update_pointer_hint()

    # === Page actions ===

    def undo(self) -> None:
        if self.elements:
            self.undone_elements.append(self.elements.pop())
        self._request_repaint()

    def redo(self) -> None:
        if self.undone_elements:
            self.elements.append(self.undone_elements.pop())
        self._request_repaint()

    def delete_last_element(self) -> None:
        """
        Drop the element in progress, or the last committed one.

        Text being written is committed and writing ends.
        """
        if self.is_writing:
            self.stop_writing()
        elif self.current_element is not None:
            self.cancel()
        elif self.elements:
            self.elements.pop()
        self._request_repaint()

    def erase(self) -> None:
        """Clear the page and the undone stack."""
        self.cancel()
        self.elements = []
        self.undone_elements = []
        self._request_repaint()

    def smooth_last_element(self) -> None:
        if self.elements and self.elements[-1].shape == Shape.NONE:
            self.elements[-1].smooth_all()
            self._request_repaint()

    def toggle_background(self) -> None:
        self.has_background = not self.has_background
        self.renderer.background_color = self.background_color
        self._request_repaint()

    def toggle_grid(self) -> None:
        self.has_grid = not self.has_grid
        self.osd_message.emit("Grid" if self.has_grid else "No grid")
        self._request_repaint()

    # === Style actions ===

    def select_color(self, index: int) -> None:
        """Use a palette entry as the current color."""
        if not 0 <= index < len(self.palette):
            logger.warning(f"No palette color at index {index}")
            return
        self.color = self.palette[index]
        if self.current_element is not None:
            self.current_element.color = self.color
            self._request_repaint()
        self.osd_message.emit(self.color)

    def toggle_color(self) -> None:
        """Switch between the second and third palette colors."""
        self.select_color(2 if self.palette[1:2] == [self.color] else 1)

    def select_tool(self, tool: Tool) -> None:
        self.tool = tool
        self.osd_message.emit(TOOL_NAMES[self._tool])
        self.update_pointer_hint()
        self._request_repaint()

    def toggle_fill(self) -> None:
        self.fill = not self.fill
        self.osd_message.emit("Fill" if self.fill else "Stroke")

    def toggle_dash(self) -> None:
        self.dashed = not self.dashed
        self.osd_message.emit("Dashed line" if self.dashed else "Full line")

    def increment_line_width(self, increment: float) -> None:
        self.line_width = max(self.line_width + increment, 0)
        self.osd_message.emit(f"{self.line_width:g} px")

    def toggle_line_join(self) -> None:
        self.line_join = LineJoin((self.line_join + 1) % len(LineJoin))
        self.osd_message.emit(self.line_join.name.capitalize())

    def toggle_line_cap(self) -> None:
        self.line_cap = LineCap((self.line_cap + 1) % len(LineCap))
        self.osd_message.emit(self.line_cap.name.capitalize())

    def toggle_fill_rule(self) -> None:
        self.fill_rule = FillRule((self.fill_rule + 1) % len(FillRule))
        self.osd_message.emit("Evenodd" if self.fill_rule == FillRule.EVEN_ODD else "Nonzero")

    def _current_font(self) -> Optional[FontSpec]:
        if self.current_element is not None and self.current_element.font is not None:
            return self.current_element.font
        return None

    def _font_changed(self) -> None:
        self.current_element.text_width = None
        self._request_repaint()

    def toggle_font_weight(self) -> None:
        """Cycle through the named font weights."""
        weights = list(FONT_WEIGHT_NAMES)
        index = weights.index(self.font_weight) if self.font_weight in weights else -1
        self.font_weight = weights[(index + 1) % len(weights)]
        font = self._current_font()
        if font is not None:
            font.weight = self.font_weight
            self._font_changed()
        self.osd_message.emit(FONT_WEIGHT_NAMES[self.font_weight])

    def toggle_font_style(self) -> None:
        self.font_style = FontStyle((self.font_style + 1) % len(FontStyle))
        font = self._current_font()
        if font is not None:
            font.style = self.font_style
            self._font_changed()
        self.osd_message.emit(self.font_style.name.capitalize())

    def toggle_font_family(self) -> None:
        """Cycle through the theme font and the generic families."""
        self.font_generic = (self.font_generic + 1) % len(FONT_GENERIC_FAMILIES)
        font = self._current_font()
        if font is not None:
            font.family = self.font_family
            self._font_changed()
        self.osd_message.emit(self.font_family)

    def toggle_text_alignment(self) -> None:
        self.text_right_aligned = not self.text_right_aligned
        element = self.current_element
        if element is not None and element.text_right_aligned is not None:
            element.text_right_aligned = self.text_right_aligned
            self._request_repaint()
        self.osd_message.emit("Right aligned" if self.text_right_aligned else "Left aligned")

    # === Persistence ===

    def _finish_gestures(self) -> None:
        if self.is_writing:
            self.stop_writing()
        elif self.current_element is not None and not self.current_element.is_text:
            self.stop_drawing()
        if self.is_transforming:
            self.stop_transforming()

    def serialize(self) -> str:
        return dumps_elements(self.elements)

    @property
    def contents_changed(self) -> bool:
        """True if the page differs from the last saved or loaded drawing."""
        return self.serialize() != self.last_json_contents

    def _save_as_json(self, name: str, notify: bool = False) -> bool:
        self._finish_gestures()
        contents = self.serialize()

        if name == self.store.persistent_name:
            old_contents = self.store.read(name)
            # No file for an empty page, and no rewrite of the same page
            if not old_contents and not self.elements:
                return False
            if contents == old_contents:
                return False

        self.store.write(name, contents)
        if name != self.store.persistent_name:
            self.json_name = name
            self.last_json_contents = contents
        if notify:
            self.osd_message.emit(name)
        return True

    def save_as_json(self, name: Optional[str] = None) -> bool:
        """
        Save the page under a name, the current date by default.

        Returns:
            True if a write was queued
        """
        if name:
            return self._save_as_json(name)
        return self._save_as_json(date_string(), notify=True)

    def save_persistent(self) -> bool:
        return self._save_as_json(self.store.persistent_name)

    def sync_persistent(self) -> None:
        """Restore the persistent drawing on an empty page, save it otherwise."""
        if not self.elements:
            self.load_persistent()
        else:
            self.save_persistent()

    def _load_json(self, name: str, notify: bool = False) -> bool:
        self._finish_gestures()
        self.elements = []
        self.undone_elements = []
        self.current_element = None

        contents = self.store.read(name)
        if contents is None:
            return False

        try:
            self.elements = loads_elements(contents)
        except DrawingFormatError as e:
            logger.error(f"Cannot load drawing {name}: {e}")
            return False

        if notify:
            self.osd_message.emit(name)
        if name != self.store.persistent_name:
            self.json_name = name
            self.last_json_contents = contents
        return True

    def load_json(self, name: str, notify: bool = False) -> bool:
        """
        Replace the page with a saved drawing.

        Returns:
            True if the drawing was read, False leaves an empty page
        """
        loaded = self._load_json(name, notify)
        self._request_repaint()
        return loaded

    def load_persistent(self) -> bool:
        return self.load_json(self.store.persistent_name)

    def load_next_json(self) -> bool:
        """Load the next older saved drawing, wrapping to the newest."""
        names = self.store.list_drawings()
        if not names:
            return False
        if self.json_name in names and names.index(self.json_name) != len(names) - 1:
            name = names[names.index(self.json_name) + 1]
        else:
            name = names[0]
        return self.load_json(name, notify=True)

    def load_previous_json(self) -> bool:
        """Load the next newer saved drawing, wrapping to the oldest."""
        names = self.store.list_drawings()
        if not names:
            return False
        if self.json_name in names and names.index(self.json_name) > 0:
            name = names[names.index(self.json_name) - 1]
        else:
            name = names[-1]
        return self.load_json(name, notify=True)

    def export_svg(
        self,
        path: Optional[Path] = None,
        width: Optional[float] = None,
        height: Optional[float] = None
    ) -> bool:
        """
        Export the page as an SVG file.

        Args:
            path: Target file, a dated file in the pictures directory by default
            width: Document width, the surface width by default
            height: Document height, the surface height by default

        Returns:
            True if the file was written
        """
        self._finish_gestures()
        if path is None:
            path = self.config.pictures_path() / f"{self.config.svg_file_prefix} {date_string()}.svg"
        exporter = SvgExporter(self.background_color, self.renderer.text_layout)
        saved = exporter.save(
            self.elements,
            self.width if width is None else width,
            self.height if height is None else height,
            Path(path),
        )
        if saved:
            self.osd_message.emit(f"Saved {Path(path).name}")
        return saved
