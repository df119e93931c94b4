"""Tests for the drawing surface."""

import os

import pytest
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QImage, QPainter

from sketch_overlay.core.config import AppConfig, ConfigManager
from sketch_overlay.core.models import FillRule, FontStyle, LineJoin, Shape
from sketch_overlay.core.serialization import loads_elements
from sketch_overlay.core.storage import DrawingStore
from sketch_overlay.core.surface import DrawingSurface, PointerHint, Tool
from sketch_overlay.core.transforms import TransformType


@pytest.fixture
def store(temp_dir, deferred):
    return DrawingStore(temp_dir, scheduler=deferred)


@pytest.fixture
def surface(qapp, store):
    return DrawingSurface(AppConfig(), store)


@pytest.fixture
def messages(surface):
    received = []
    surface.osd_message.connect(received.append)
    return received


def draw(surface, tool, start, end):
    surface.select_tool(tool)
    surface.start_drawing(*start)
    surface.update_drawing(*end)
    surface.stop_drawing()


def column_alpha(surface, x, y=3):
    """Paint the surface and return the alpha of one pixel."""
    image = QImage(50, 50, QImage.Format.Format_ARGB32_Premultiplied)
    image.fill(Qt.GlobalColor.transparent)
    painter = QPainter(image)
    try:
        surface.paint(painter)
    finally:
        painter.end()
    return image.pixelColor(x, y).alpha()


class TestDrawing:
    """Tests for drawing elements."""

    def test_rectangle_committed(self, surface):
        draw(surface, Tool.RECTANGLE, (0, 0), (10, 20))

        assert len(surface.elements) == 1
        assert surface.elements[0].shape == Shape.RECTANGLE
        assert surface.current_element is None

    def test_style_applied(self, surface):
        """Test that new elements take the current style."""
        surface.toggle_fill()
        surface.toggle_dash()
        surface.select_color(4)
        draw(surface, Tool.ELLIPSE, (50, 50), (60, 50))

        element = surface.elements[0]
        assert element.fill
        assert element.dash.active
        assert element.dash.array == [5.0, 5.0]
        assert element.color == "#0080ffff"

    def test_small_element_discarded(self, surface):
        draw(surface, Tool.RECTANGLE, (0, 0), (1, 1))

        assert surface.elements == []
        assert surface.current_element is None

    def test_polygon_needs_three_points(self, surface):
        draw(surface, Tool.POLYGON, (0, 0), (10, 10))

        assert surface.elements == []

    def test_polygon_vertices(self, surface, messages):
        """Test marking polygon vertices with add_vertex."""
        surface.select_tool(Tool.POLYGON)
        surface.start_drawing(0, 0)
        surface.update_drawing(10, 0)
        surface.add_vertex()
        surface.update_drawing(10, 10)
        surface.stop_drawing()

        assert len(surface.elements) == 1
        assert len(surface.elements[0].points) == 3
        assert "Press Enter to mark vertices" in messages

    def test_eraser(self, surface):
        surface.select_tool(Tool.NONE)
        surface.start_drawing(0, 0, eraser=True)
        surface.update_drawing(10, 10)
        surface.stop_drawing()

        assert surface.elements[0].eraser

    def test_manipulation_tool_does_not_draw(self, surface):
        surface.select_tool(Tool.MOVE)
        surface.start_drawing(0, 0)

        assert surface.current_element is None

    def test_repaint_requested(self, surface):
        repaints = []
        surface.repaint_requested.connect(lambda: repaints.append(True))

        draw(surface, Tool.LINE, (0, 0), (10, 10))

        assert repaints

    def test_paint(self, surface):
        draw(surface, Tool.RECTANGLE, (5, 5), (20, 20))
        image = QImage(50, 50, QImage.Format.Format_ARGB32_Premultiplied)
        image.fill(Qt.GlobalColor.transparent)
        painter = QPainter(image)
        try:
            assert surface.paint(painter)
        finally:
            painter.end()


class TestWriting:
    """Tests for text elements."""

    def start_text(self, surface):
        surface.select_tool(Tool.TEXT)
        surface.start_drawing(0, 0)
        surface.update_drawing(0, 20)
        surface.stop_drawing()

    def test_writing_mode(self, surface):
        self.start_text(surface)

        assert surface.is_writing
        assert surface.current_element.text == ""

    def test_text_committed(self, surface):
        self.start_text(surface)
        surface.set_text("Hi", 2)
        surface.stop_writing()

        assert not surface.is_writing
        assert surface.elements[0].text == "Hi"

    def test_empty_text_dropped(self, surface):
        self.start_text(surface)
        surface.stop_writing()

        assert surface.elements == []
        assert surface.current_element is None

    def test_new_line(self, surface):
        """Test that a new line goes on just below and shares the pivot."""
        self.start_text(surface)
        surface.set_text("first")
        surface.stop_writing(start_new_line=True)

        line = surface.current_element
        assert surface.is_writing
        assert line.line_index == 1
        assert line.points[1].y() == 40
        assert line.original_pivot() == surface.elements[0].original_pivot()

        surface.set_text("second")
        surface.stop_writing()

        assert [e.text for e in surface.elements] == ["first", "second"]

    def test_cursor_blinks(self, surface):
        self.start_text(surface)
        surface.blink_text_cursor()

        assert not surface.text_has_cursor

        surface.blink_text_cursor()

        assert surface.text_has_cursor

    def test_text_alignment_follows_toggle(self, surface):
        self.start_text(surface)
        surface.toggle_text_alignment()

        assert surface.current_element.text_right_aligned is True


class TestTransforming:
    """Tests for the manipulation tools."""

    @pytest.fixture
    def rectangle(self, surface):
        draw(surface, Tool.RECTANGLE, (0, 0), (10, 20))
        return surface.elements[0]

    def test_move(self, surface, rectangle):
        surface.select_tool(Tool.MOVE)

        assert surface.grab_element_at(0, 10) is rectangle
        assert surface.start_transforming(0, 10)

        surface.update_transforming(10, 15)
        surface.stop_transforming()

        assert len(rectangle.transforms) == 1
        assert rectangle.transforms[0].slide_x == 10
        assert rectangle.transforms[0].slide_y == 5
        assert not rectangle.transforms[0].is_dragging
        assert surface.grabbed_element is None

    def test_nothing_grabbed(self, surface, rectangle):
        surface.select_tool(Tool.MOVE)
        surface.grab_element_at(200, 200)

        assert not surface.start_transforming(200, 200)

    def test_negligible_move_discarded(self, surface, rectangle):
        surface.select_tool(Tool.MOVE)
        surface.grab_element_at(0, 10)
        surface.start_transforming(0, 10)
        surface.update_transforming(0.5, 10)
        surface.stop_transforming()

        assert rectangle.transforms == []

    def test_modifier_switches_kind(self, surface, rectangle):
        surface.select_tool(Tool.MOVE)
        surface.grab_element_at(0, 10)
        surface.start_transforming(0, 10)
        surface.update_transforming(0, 0, modifier=True)

        assert rectangle.last_transform.type == TransformType.ROTATION
        assert rectangle.last_transform.angle != 0

    def test_duplicate(self, surface, rectangle):
        """Test that duplicating transforms a copy."""
        surface.select_tool(Tool.MOVE)
        surface.grab_element_at(0, 10)
        surface.start_transforming(0, 10, duplicate=True)
        surface.update_transforming(30, 10)
        surface.stop_transforming()

        assert len(surface.elements) == 2
        assert rectangle.transforms == []
        assert surface.elements[1].transforms[0].slide_x == 30

    def test_cancel_removes_duplicate(self, surface, rectangle):
        surface.select_tool(Tool.MOVE)
        surface.grab_element_at(0, 10)
        surface.start_transforming(0, 10, duplicate=True)
        surface.update_transforming(30, 10)

        surface.cancel()
        surface.cancel()

        assert surface.elements == [rectangle]
        assert rectangle.transforms == []
        assert not surface.is_transforming

    def test_cancel_duplicate_keeps_order(self, surface, rectangle):
        """Test that cancelling a duplicate leaves the same elements in the same order."""
        draw(surface, Tool.RECTANGLE, (50, 50), (70, 70))
        other = surface.elements[1]

        surface.select_tool(Tool.MOVE)
        surface.grab_element_at(0, 10)
        surface.start_transforming(0, 10, duplicate=True)
        surface.update_transforming(30, 10)
        surface.cancel()

        assert len(surface.elements) == 2
        assert surface.elements[0] is rectangle
        assert surface.elements[1] is other

    def test_tool_change_commits_transform(self, surface, rectangle):
        """Test that picking another tool during a drag commits the transformation."""
        surface.select_tool(Tool.MOVE)
        surface.grab_element_at(0, 10)
        surface.start_transforming(0, 10)
        surface.update_transforming(30, 10)

        surface.select_tool(Tool.RECTANGLE)
        surface.stop_transforming()

        assert not surface.is_transforming
        assert len(rectangle.transforms) == 1
        assert not rectangle.transforms[0].is_dragging
        saved = loads_elements(surface.serialize())
        assert saved[0].transforms[0].slide_x == 30

    def test_tool_change_keeps_kind(self, surface, rectangle):
        """Test that switching between manipulation tools never flips the kind being dragged."""
        surface.select_tool(Tool.MOVE)
        surface.grab_element_at(0, 10)
        surface.start_transforming(0, 10)
        surface.update_transforming(20, 10)

        surface.select_tool(Tool.RESIZE)
        surface.update_transforming(25, 10)
        surface.update_transforming(30, 10)

        assert [t.type for t in rectangle.transforms] == [TransformType.TRANSLATION]
        assert rectangle.transforms[0].slide_x == 20

    def test_mirror_locks_first(self, surface, rectangle, messages):
        """Test that the mirror tool needs a second press for the line."""
        surface.select_tool(Tool.MIRROR)
        surface.grab_element_at(0, 10)

        assert not surface.start_transforming(0, 10)
        assert surface.grab_locked
        assert surface.pointer_hint == PointerHint.CROSSHAIR
        assert messages[-1] == "Draw a line of symmetry"

        # The grab stays while the pointer moves away
        assert surface.grab_element_at(50, 0) is rectangle
        assert surface.start_transforming(50, 0)

        surface.update_transforming(50, 100)
        surface.stop_transforming()

        transform = rectangle.transforms[0]
        assert transform.type == TransformType.REFLECTION
        assert (transform.scale_x, transform.scale_y) == (-1.0, 1.0)
        assert transform.slide_x == 50
        assert not surface.grab_locked


class TestPageActions:
    """Tests for undo, redo and erase."""

    def test_undo_redo(self, surface):
        draw(surface, Tool.LINE, (0, 0), (10, 10))
        draw(surface, Tool.LINE, (0, 10), (10, 0))

        surface.undo()
        assert len(surface.elements) == 1
        assert len(surface.undone_elements) == 1

        surface.redo()
        assert len(surface.elements) == 2
        assert surface.undone_elements == []

    def test_undo_empty(self, surface):
        surface.undo()
        surface.redo()

        assert surface.elements == []

    def test_erase(self, surface):
        draw(surface, Tool.LINE, (0, 0), (10, 10))
        draw(surface, Tool.LINE, (0, 10), (10, 0))
        surface.undo()

        surface.erase()

        assert surface.elements == []
        assert surface.undone_elements == []

    def test_delete_last(self, surface):
        draw(surface, Tool.LINE, (0, 0), (10, 10))

        surface.delete_last_element()

        assert surface.elements == []
        assert surface.undone_elements == []

    def test_delete_cancels_current(self, surface):
        draw(surface, Tool.LINE, (0, 0), (10, 10))
        surface.start_drawing(20, 20)

        surface.delete_last_element()

        assert surface.current_element is None
        assert len(surface.elements) == 1

    def test_delete_while_writing_keeps_text(self, surface):
        """Test that the text being written is committed, not thrown away."""
        surface.select_tool(Tool.TEXT)
        surface.start_drawing(0, 0)
        surface.update_drawing(0, 20)
        surface.stop_drawing()
        surface.set_text("Hi")

        surface.delete_last_element()

        assert not surface.is_writing
        assert surface.current_element is None
        assert [e.text for e in surface.elements] == ["Hi"]

    def test_smooth_last_free_drawing(self, surface):
        surface.select_tool(Tool.NONE)
        surface.start_drawing(0, 0)
        for x, y in [(10, 5), (20, 0), (30, 5)]:
            surface.update_drawing(x, y)
        surface.stop_drawing()

        surface.smooth_last_element()

        assert surface.elements[0].points[1].y() == 0

    def test_toggle_background(self, surface):
        surface.toggle_background()

        assert surface.background_color == "#2e2e2eff"
        assert surface.renderer.background_color == "#2e2e2eff"

        surface.toggle_background()

        assert surface.background_color is None

    def test_toggle_grid(self, surface, messages):
        """Test that the grid is painted only while shown."""
        surface.width = surface.height = 50

        assert not any(column_alpha(surface, x) for x in range(9, 12))

        surface.toggle_grid()

        assert messages[-1] == "Grid"
        assert any(column_alpha(surface, x) for x in range(9, 12))
        assert column_alpha(surface, 5) == 0

        surface.toggle_grid()

        assert messages[-1] == "No grid"
        assert not any(column_alpha(surface, x) for x in range(9, 12))


class TestStyle:
    """Tests for style toggles and pointer hints."""

    def test_pointer_hint_emitted_on_change(self, surface):
        hints = []
        surface.pointer_hint_changed.connect(hints.append)

        surface.update_pointer_hint()
        surface.update_pointer_hint()
        surface.select_tool(Tool.RECTANGLE)
        surface.select_tool(Tool.MOVE)

        assert hints == [PointerHint.POINTING_HAND, PointerHint.CROSSHAIR, PointerHint.DEFAULT]

    def test_line_join_cycles(self, surface):
        surface.toggle_line_join()
        assert surface.line_join == LineJoin.BEVEL

        surface.toggle_line_join()
        assert surface.line_join == LineJoin.MITER

    def test_fill_rule(self, surface, messages):
        surface.toggle_fill_rule()

        assert surface.fill_rule == FillRule.EVEN_ODD
        assert messages == ["Evenodd"]

    def test_font_weight(self, surface, messages):
        surface.toggle_font_weight()

        assert surface.font_weight == 500
        assert messages == ["Medium"]

    def test_font_family_cycles(self, surface):
        surface.toggle_font_family()
        assert surface.font_family == "Sans-Serif"

        for _ in range(5):
            surface.toggle_font_family()
        assert surface.font_family == "Sans"

    def test_line_width_not_negative(self, surface, messages):
        surface.increment_line_width(-10)

        assert surface.line_width == 0
        assert messages == ["0 px"]

    def test_color_applies_to_current(self, surface):
        surface.select_tool(Tool.LINE)
        surface.start_drawing(0, 0)
        surface.select_color(2)

        assert surface.current_element.color == "#ffff00ff"

    def test_invalid_color_index(self, surface):
        color = surface.color
        surface.select_color(42)

        assert surface.color == color

    def test_toggle_color(self, surface, messages):
        """Test that toggling alternates the second and third palette colors."""
        surface.toggle_color()
        assert surface.color == surface.palette[1]

        surface.toggle_color()
        assert surface.color == surface.palette[2]

        surface.toggle_color()
        assert surface.color == surface.palette[1]
        assert messages == [surface.palette[1], surface.palette[2], surface.palette[1]]

    def test_style_kept_for_next_session(self, surface, temp_dir):
        """Test that the session style is written back as the next defaults."""
        manager = ConfigManager(temp_dir / "config.yaml")
        surface.increment_line_width(2)
        surface.toggle_line_join()
        surface.toggle_font_style()
        surface.toggle_background()

        assert manager.update(**surface.style_settings())

        saved = ConfigManager(temp_dir / "config.yaml").load()
        assert saved.line_width == 5.0
        assert saved.line_join == LineJoin.BEVEL
        assert saved.font_style == FontStyle.OBLIQUE
        assert saved.show_background is True


class TestPersistence:
    """Tests for saving and loading drawings."""

    def test_save_and_load(self, surface, store, deferred):
        draw(surface, Tool.RECTANGLE, (0, 0), (10, 20))

        assert surface.save_as_json("one")
        assert not surface.contents_changed

        deferred.run()
        assert store.path_for("one").exists()

        surface.erase()
        assert surface.contents_changed

        assert surface.load_json("one")
        assert len(surface.elements) == 1
        assert not surface.contents_changed

    def test_dated_name(self, surface, store, messages):
        draw(surface, Tool.LINE, (0, 0), (10, 10))

        assert surface.save_as_json()
        assert surface.json_name == messages[-1]

    def test_empty_page_not_persisted(self, surface, deferred):
        assert not surface.save_persistent()
        assert deferred.callbacks == []

    def test_same_page_not_persisted_twice(self, surface):
        draw(surface, Tool.LINE, (0, 0), (10, 10))

        assert surface.save_persistent()
        assert not surface.save_persistent()
        assert surface.json_name is None

    def test_save_finishes_drawing(self, surface):
        surface.select_tool(Tool.LINE)
        surface.start_drawing(0, 0)
        surface.update_drawing(10, 10)

        surface.save_as_json("one")

        assert surface.current_element is None
        assert len(surface.elements) == 1

    def test_load_missing(self, surface):
        draw(surface, Tool.LINE, (0, 0), (10, 10))

        assert not surface.load_json("missing")
        assert surface.elements == []

    def test_load_corrupt(self, surface, store):
        """Test that a broken document gives an empty page."""
        draw(surface, Tool.LINE, (0, 0), (10, 10))
        store.path_for("persistent").write_text("{broken", encoding="utf-8")

        assert not surface.load_persistent()
        assert surface.elements == []

    def test_load_clears_undone(self, surface, store, legacy_document):
        store.path_for("old").write_text(legacy_document, encoding="utf-8")
        draw(surface, Tool.LINE, (0, 0), (10, 10))
        surface.undo()

        assert surface.load_json("old")
        assert len(surface.elements) == 2
        assert surface.undone_elements == []
        assert surface.json_name == "old"

    def test_sync_persistent(self, surface, store, deferred):
        draw(surface, Tool.LINE, (0, 0), (10, 10))
        surface.sync_persistent()
        deferred.run()
        surface.erase()

        surface.sync_persistent()

        assert len(surface.elements) == 1

    def test_next_and_previous(self, surface, store):
        """Test cycling through saved drawings, newest first."""
        for name, mtime in [("a", 1000), ("b", 2000), ("c", 3000)]:
            path = store.path_for(name)
            path.write_text("[]", encoding="utf-8")
            os.utime(path, (mtime, mtime))

        visited = []
        for _ in range(4):
            assert surface.load_next_json()
            visited.append(surface.json_name)

        assert visited == ["c", "b", "a", "c"]

        surface.load_previous_json()
        assert surface.json_name == "a"

    def test_next_without_drawings(self, surface):
        assert not surface.load_next_json()

    def test_export_svg(self, surface, temp_dir):
        draw(surface, Tool.RECTANGLE, (0, 0), (10, 20))
        path = temp_dir / "export.svg"

        assert surface.export_svg(path, 100, 100)
        assert "<rect" in path.read_text(encoding="utf-8")
        assert not surface.export_svg(path, 100, 100)
