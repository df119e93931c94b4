"""Data models for sketch overlay drawing elements."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional

from PyQt6.QtCore import QPointF
from PyQt6.QtGui import QTransform

from .geometry import centroid, curve_center, is_near, naive_center, signed_angle
from .transforms import (
    MIN_ROTATION_ANGLE,
    PAIRED_TYPES,
    PIVOTED_TYPES,
    Transform,
    TransformType,
    chain_matrix,
    clear_pivot_caches,
    transformed_pivot,
)

logger = logging.getLogger(__name__)

MIN_DRAWING_SIZE = 3  # px
DEFAULT_COLOR = "#000000ff"


class Shape(IntEnum):
    """Kind of drawing element, values are the persisted codes."""

    NONE = 0        # free drawing
    LINE = 1
    ELLIPSE = 2
    RECTANGLE = 3
    TEXT = 4
    POLYGON = 5
    POLYLINE = 6


# Fewest points a committed element of each kind may have
MIN_POINTS: Dict[Shape, int] = {
    Shape.NONE: 2,
    Shape.LINE: 2,
    Shape.ELLIPSE: 2,
    Shape.RECTANGLE: 2,
    Shape.TEXT: 2,
    Shape.POLYGON: 3,
    Shape.POLYLINE: 2,
}

SHAPE_NAMES: Dict[Shape, str] = {
    Shape.NONE: "Free drawing",
    Shape.LINE: "Line",
    Shape.ELLIPSE: "Ellipse",
    Shape.RECTANGLE: "Rectangle",
    Shape.TEXT: "Text",
    Shape.POLYGON: "Polygon",
    Shape.POLYLINE: "Polyline",
}


class LineJoin(IntEnum):
    MITER = 0
    ROUND = 1
    BEVEL = 2


class LineCap(IntEnum):
    BUTT = 0
    ROUND = 1
    SQUARE = 2


class FillRule(IntEnum):
    WINDING = 0
    EVEN_ODD = 1


class FontStyle(IntEnum):
    NORMAL = 0
    OBLIQUE = 1
    ITALIC = 2


class FontVariant(IntEnum):
    NORMAL = 0
    SMALL_CAPS = 1


FONT_GENERIC_FAMILIES = ("Theme", "Sans-Serif", "Serif", "Monospace", "Cursive", "Fantasy")

FONT_WEIGHT_NAMES: Dict[int, str] = {
    100: "Thin",
    200: "Ultra-light",
    300: "Light",
    350: "Semi-light",
    380: "Book",
    400: "Normal",
    500: "Medium",
    600: "Semi-bold",
    700: "Bold",
    800: "Ultra-bold",
    900: "Heavy",
}

FONT_STRETCH_NAMES = (
    "Ultra-condensed", "Extra-condensed", "Condensed", "Semi-condensed", "Normal",
    "Semi-expanded", "Expanded", "Extra-expanded", "Ultra-expanded",
)
FONT_STRETCH_NORMAL = 4
MAX_FONT_WEIGHT = 900  # SVG has no heavier weight


@dataclass
class LineStyle:
    """Stroke geometry of an element."""

    width: float = 3.0
    join: LineJoin = LineJoin.ROUND
    cap: LineCap = LineCap.ROUND

    def __post_init__(self) -> None:
        self.width = max(0.0, self.width)
        self.join = LineJoin(self.join)
        self.cap = LineCap(self.cap)


@dataclass
class DashStyle:
    """Dash pattern, only effective when both lengths are positive."""

    active: bool = False
    array: List[float] = field(default_factory=lambda: [0.0, 0.0])
    offset: float = 0.0

    @property
    def is_effective(self) -> bool:
        return bool(self.active and len(self.array) >= 2 and self.array[0] and self.array[1])


@dataclass
class FontSpec:
    """Font of a text element."""

    family: str = ""
    weight: int = 400
    style: FontStyle = FontStyle.NORMAL
    stretch: int = FONT_STRETCH_NORMAL
    variant: FontVariant = FontVariant.NORMAL

    def __post_init__(self) -> None:
        self.weight = min(int(self.weight), MAX_FONT_WEIGHT)
        self.style = FontStyle(self.style)
        self.variant = FontVariant(self.variant)


@dataclass
class DrawingElement:
    """
    Data model for a single drawing element.

    The meaning of ``points`` depends on the shape:
    - free drawing, polygon, polyline: the vertices
    - line: 2 end points, or 3-4 cubic Bezier control points
    - ellipse: center, radius point and an optional ratio point
    - rectangle: two opposite corners
    - text: two points whose vertical distance is the font height,
      the second one being the anchor

    ``transforms`` is applied to the raw points in list order: the first
    entry acts first.
    """

    shape: Shape
    points: List[QPointF] = field(default_factory=list)
    color: str = DEFAULT_COLOR
    line: LineStyle = field(default_factory=LineStyle)
    dash: DashStyle = field(default_factory=DashStyle)
    fill: bool = False
    fill_rule: FillRule = FillRule.WINDING
    eraser: bool = False
    transforms: List[Transform] = field(default_factory=list)
    text: Optional[str] = None
    font: Optional[FontSpec] = None
    text_right_aligned: Optional[bool] = None
    line_index: Optional[int] = None
    # Not persisted
    cursor_position: int = -1
    text_width: Optional[float] = None
    _pivot: Optional[QPointF] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Normalize enums and make sure points are QPointF."""
        self.shape = Shape(self.shape)
        self.fill_rule = FillRule(self.fill_rule)
        self.points = [
            QPointF(p) if isinstance(p, QPointF) else QPointF(p[0], p[1])
            for p in self.points
        ]

    # === Queries ===

    @property
    def is_straight_line(self) -> bool:
        """A two-point line never gets filled."""
        return self.shape == Shape.LINE and len(self.points) == 2

    @property
    def is_text(self) -> bool:
        return self.shape == Shape.TEXT

    @property
    def last_transform(self) -> Optional[Transform]:
        return self.transforms[-1] if self.transforms else None

    @property
    def show_symmetry_guide(self) -> bool:
        """True while a reflection line or inversion point is being dragged."""
        last = self.last_transform
        return last is not None and last.shows_symmetry_guide

    @property
    def line_height(self) -> float:
        """Text height, the vertical distance between the two points."""
        if len(self.points) < 2:
            return 0.0
        return abs(self.points[1].y() - self.points[0].y())

    def validate(self) -> None:
        """
        Check the point count against the shape's minimum.

        Raises:
            ValueError: If the element has too few points
        """
        minimum = MIN_POINTS[self.shape]
        if len(self.points) < minimum:
            raise ValueError(
                f"{SHAPE_NAMES[self.shape]} needs at least {minimum} points, got {len(self.points)}"
            )
        if self.is_text and self.text is None:
            raise ValueError("Text element without text")

    def copy(self) -> DrawingElement:
        """Return an independent copy, points and transformations included."""
        return DrawingElement(
            shape=self.shape,
            points=[QPointF(p) for p in self.points],
            color=self.color,
            line=LineStyle(self.line.width, self.line.join, self.line.cap),
            dash=DashStyle(self.dash.active, list(self.dash.array), self.dash.offset),
            fill=self.fill,
            fill_rule=self.fill_rule,
            eraser=self.eraser,
            transforms=[t.copy() for t in self.transforms],
            text=self.text,
            font=FontSpec(
                self.font.family, self.font.weight, self.font.style,
                self.font.stretch, self.font.variant
            ) if self.font else None,
            text_right_aligned=self.text_right_aligned,
            line_index=self.line_index,
            cursor_position=self.cursor_position,
            text_width=self.text_width,
        )

    # === Pivots ===

    def original_pivot(self) -> QPointF:
        """The rotation and scaling center before any transformation."""
        if self._pivot is None:
            points = self.points
            if not points:
                self._pivot = QPointF(0, 0)
            elif self.shape == Shape.ELLIPSE:
                self._pivot = QPointF(points[0])
            elif self.shape == Shape.LINE and len(points) == 4:
                self._pivot = curve_center(points[0], points[1], points[2], points[3])
            elif self.shape == Shape.LINE and len(points) == 3:
                self._pivot = curve_center(points[0], points[0], points[1], points[2])
            elif self.shape == Shape.TEXT and len(points) >= 2:
                # Stacked lines share the pivot of the group's first line
                line_offset = (self.line_index or 0) * self.line_height
                self._pivot = QPointF(
                    points[1].x(),
                    max(points[0].y(), points[1].y()) - line_offset
                )
            elif len(points) >= 3:
                self._pivot = centroid(points)
            else:
                self._pivot = naive_center(points)
        return self._pivot

    def transformed_pivot(self, transform: Transform) -> QPointF:
        """Pivot of ``transform``, moved by the transformations before it."""
        return transformed_pivot(self.transforms, transform, self.original_pivot())

    def matrix(self) -> QTransform:
        """Matrix of the whole transformation chain."""
        return chain_matrix(self.transforms, self.original_pivot())

    def _points_changed(self) -> None:
        self._pivot = None
        clear_pivot_caches(self.transforms)

    # === Drawing ===

    def start_drawing(self, x: float, y: float) -> None:
        """Push the first point, twice for shapes with a live vertex."""
        self.points.append(QPointF(x, y))
        if self.shape in (Shape.POLYGON, Shape.POLYLINE):
            self.points.append(QPointF(x, y))
        self._points_changed()

    def update_drawing(self, x: float, y: float, transform: bool = False) -> None:
        """
        Follow the pointer while the element is being drawn.

        Args:
            x: Pointer x coordinate
            y: Pointer y coordinate
            transform: Modifier state. Smooths free drawing, rotates
                rectangles, ellipses and polygons instead of resizing them,
                and moves text instead of resizing it
        """
        points = self.points
        if not points:
            return
        if x == points[-1].x() and y == points[-1].y():
            return

        transform = transform or len(self.transforms) >= 1
        current = QPointF(x, y)

        if self.shape == Shape.NONE:
            points.append(current)
            if transform:
                self._smooth(len(points) - 1)

        elif self.shape in (Shape.RECTANGLE, Shape.POLYGON, Shape.POLYLINE) and transform:
            if len(points) < 2:
                return
            angle = signed_angle(self.original_pivot(), points[-1], current)
            self._set_drawing_rotation(angle)
            return

        elif self.shape == Shape.ELLIPSE and transform:
            if len(points) < 2:
                return
            if len(points) == 2:
                points.append(current)
            else:
                points[2] = current
            self._points_changed()
            center = self.original_pivot()
            angle = signed_angle(center, QPointF(center.x() + 1, center.y()), current)
            self._set_drawing_rotation(angle)
            return

        elif self.shape in (Shape.POLYGON, Shape.POLYLINE):
            points[-1] = current

        elif self.shape == Shape.TEXT and transform:
            if len(points) < 2:
                return
            slide_x, slide_y = x - points[1].x(), y - points[1].y()
            points[0] = QPointF(points[0].x() + slide_x, points[0].y() + slide_y)
            points[1] = current

        elif len(points) == 1:
            points.append(current)

        else:
            points[1] = current

        self._points_changed()

    def _set_drawing_rotation(self, angle: float) -> None:
        rotation = Transform(type=TransformType.ROTATION, angle=angle)
        if self.transforms:
            self.transforms[0] = rotation
        else:
            self.transforms.append(rotation)

    def add_point(self) -> None:
        """
        Add a vertex or a control point to the element being drawn.

        Polygons and polylines get a copy of the last vertex, unless it is
        too close to the previous one. Lines go from 2 to 3 to 4 control
        points.
        """
        points = self.points
        if self.shape in (Shape.POLYGON, Shape.POLYLINE):
            if len(points) < 2:
                return
            if not is_near(points[-2], points[-1], MIN_DRAWING_SIZE):
                points.append(QPointF(points[-1]))
        elif self.shape == Shape.LINE:
            if len(points) == 2:
                points.append(QPointF(points[1]))
            elif len(points) == 3:
                points.append(QPointF(points[2]))
                points[2] = QPointF(points[1])
        self._points_changed()

    def stop_drawing(self) -> bool:
        """
        Finish drawing.

        Drops a last point lying within 3px of the previous one (free drawing
        keeps everything) as long as the shape keeps its minimum point count,
        and drops a negligible rotation made while drawing.

        Returns:
            True if the element is worth committing
        """
        minimum = MIN_POINTS[self.shape]
        degenerate = False

        if self.shape != Shape.NONE and len(self.points) >= 2:
            if is_near(self.points[-2], self.points[-1], MIN_DRAWING_SIZE):
                if len(self.points) > minimum:
                    self.points.pop()
                    self._points_changed()
                else:
                    degenerate = True

        first = self.transforms[0] if self.transforms else None
        if first is not None and first.type == TransformType.ROTATION and abs(first.angle) < MIN_ROTATION_ANGLE:
            self.transforms.pop(0)
            clear_pivot_caches(self.transforms)

        return len(self.points) >= minimum and not degenerate

    def smooth_all(self) -> None:
        """Apply the 3-point rolling average along the whole element."""
        for i in range(len(self.points)):
            self._smooth(i)
        self._points_changed()

    def _smooth(self, i: int) -> None:
        if i < 2:
            return
        previous, following = self.points[i - 2], self.points[i]
        self.points[i - 1] = QPointF(
            (previous.x() + following.x()) / 2,
            (previous.y() + following.y()) / 2
        )

    # === Transforming ===

    def start_transform(self, kind: TransformType, x: float, y: float) -> bool:
        """
        Push a new zero-effect transformation started at (x, y).

        Returns:
            False if the element has too few points to be transformed
        """
        if len(self.points) < 2:
            logger.debug("Not enough points to transform element")
            return False
        self.transforms.append(Transform.begin(kind, x, y))
        return True

    def update_transform(self, x: float, y: float) -> None:
        """Update the transformation being dragged."""
        transform = self.last_transform
        if transform is None or not transform.is_dragging:
            return
        pivot = self.transformed_pivot(transform) if transform.type in PIVOTED_TYPES else None
        transform.update(x, y, pivot)

    def stop_transform(self) -> bool:
        """
        Commit the transformation being dragged.

        Returns:
            True if it was kept, False if it was too small and got discarded
        """
        transform = self.last_transform
        if transform is None or not transform.is_dragging:
            return False
        if transform.is_negligible():
            self.transforms.pop()
            return False
        transform.commit()
        return True

    def toggle_transform(self) -> None:
        """Replace the transformation being dragged with its paired kind."""
        transform = self.last_transform
        if transform is None or not transform.is_dragging:
            return
        self.transforms.pop()
        self.transforms.append(
            Transform.begin(PAIRED_TYPES[transform.type], transform.start.x(), transform.start.y())
        )

    def cancel_transform(self) -> None:
        """Drop the transformation being dragged, if any."""
        transform = self.last_transform
        if transform is not None and transform.is_dragging:
            self.transforms.pop()
