"""Composable affine transformations attached to drawing elements."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional, Sequence

from PyQt6.QtCore import QPointF
from PyQt6.QtGui import QTransform

from .geometry import is_near, signed_angle

logger = logging.getLogger(__name__)

INVERSION_CIRCLE_RADIUS = 12                # px
REFLECTION_TOLERANCE = 5                    # px, to select vertical and horizontal directions
STRETCH_TOLERANCE = math.pi / 8             # rad, to select vertical and horizontal directions
MIN_REFLECTION_LINE_LENGTH = 10             # px
MIN_TRANSLATION_DISTANCE = 1                # px
MIN_ROTATION_ANGLE = math.pi / 1000         # rad


class TransformType(IntEnum):
    """Kind of transformation, values are the persisted codes."""

    TRANSLATION = 0
    ROTATION = 1
    SCALE_PRESERVE = 2
    STRETCH = 3
    REFLECTION = 4
    INVERSION = 5


# Kinds swapped when the modifier key changes during a drag
PAIRED_TYPES = {
    TransformType.TRANSLATION: TransformType.ROTATION,
    TransformType.ROTATION: TransformType.TRANSLATION,
    TransformType.SCALE_PRESERVE: TransformType.STRETCH,
    TransformType.STRETCH: TransformType.SCALE_PRESERVE,
    TransformType.REFLECTION: TransformType.INVERSION,
    TransformType.INVERSION: TransformType.REFLECTION,
}

PIVOTED_TYPES = (
    TransformType.ROTATION,
    TransformType.SCALE_PRESERVE,
    TransformType.STRETCH,
)

SYMMETRY_TYPES = (TransformType.REFLECTION, TransformType.INVERSION)


@dataclass
class Transform:
    """
    One entry of an element's transformation chain.

    Only the derived parameters (slide, scale, angle) are kept once the
    transformation is committed. ``start`` and ``end`` exist while the
    user is dragging.
    """

    type: TransformType
    slide_x: float = 0.0
    slide_y: float = 0.0
    angle: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    start: Optional[QPointF] = None
    end: Optional[QPointF] = None
    # Element pivot as moved by the transformations before this one
    pivot_cache: Optional[QPointF] = field(default=None, repr=False, compare=False)

    @classmethod
    def begin(cls, kind: TransformType, x: float, y: float) -> Transform:
        """Create a zero-effect transformation started at (x, y)."""
        kind = TransformType(kind)
        start = QPointF(x, y)

        if kind == TransformType.INVERSION:
            return cls(
                type=kind,
                slide_x=x,
                slide_y=y,
                scale_x=-1.0,
                scale_y=-1.0,
                angle=math.pi + math.atan(y / (x or 1)),
                start=start,
                end=QPointF(start),
            )

        end = QPointF(start) if kind == TransformType.REFLECTION else None
        return cls(type=kind, start=start, end=end)

    @property
    def is_dragging(self) -> bool:
        """True until the transformation is committed."""
        return self.start is not None

    @property
    def shows_symmetry_guide(self) -> bool:
        """True while a reflection line or inversion point is being defined."""
        return self.type in SYMMETRY_TYPES and self.is_dragging

    def update(self, x: float, y: float, pivot: Optional[QPointF] = None) -> None:
        """
        Recompute the parameters from the live pointer position.

        Args:
            x: Pointer x coordinate
            y: Pointer y coordinate
            pivot: Transformed element pivot, required for rotation and scaling
        """
        if self.start is None:
            logger.warning(f"Ignoring update of committed {self.type.name} transformation")
            return
        if pivot is None and self.type in PIVOTED_TYPES:
            logger.warning(f"No pivot given for {self.type.name} transformation")
            return

        current = QPointF(x, y)
        sx, sy = self.start.x(), self.start.y()

        if self.type == TransformType.TRANSLATION:
            self.slide_x = x - sx
            self.slide_y = y - sy

        elif self.type == TransformType.ROTATION:
            self.angle = signed_angle(pivot, self.start, current)

        elif self.type == TransformType.SCALE_PRESERVE:
            scale = _scale_ratio(pivot, self.start, current)
            self.scale_x = self.scale_y = scale

        elif self.type == TransformType.STRETCH:
            horizontal_ref = QPointF(pivot.x() + 1, pivot.y())
            start_angle = signed_angle(pivot, horizontal_ref, self.start)
            vertical = abs(math.sin(start_angle)) >= math.sin(math.pi / 2 - STRETCH_TOLERANCE)
            horizontal = abs(math.cos(start_angle)) >= math.cos(STRETCH_TOLERANCE)
            scale = _scale_ratio(pivot, self.start, current)
            self.scale_x = 1.0 if vertical else scale
            self.scale_y = scale if vertical else 1.0
            self.angle = 0.0 if vertical or horizontal else signed_angle(pivot, horizontal_ref, current)

        elif self.type == TransformType.REFLECTION:
            self.end = current
            if is_near(self.start, current, MIN_REFLECTION_LINE_LENGTH):
                # Frozen near the start point to avoid jumps
                pass
            elif abs(y - sy) <= REFLECTION_TOLERANCE and abs(x - sx) > REFLECTION_TOLERANCE:
                self.scale_x, self.scale_y = 1.0, -1.0
                self.slide_x, self.slide_y = 0.0, sy
                self.angle = math.pi
            elif abs(x - sx) <= REFLECTION_TOLERANCE and abs(y - sy) > REFLECTION_TOLERANCE:
                self.scale_x, self.scale_y = -1.0, 1.0
                self.slide_x, self.slide_y = sx, 0.0
                self.angle = math.pi
            elif x != sx:
                tan = (y - sy) / (x - sx)
                self.scale_x, self.scale_y = 1.0, -1.0
                self.slide_x, self.slide_y = 0.0, sy - sx * tan
                self.angle = math.pi + math.atan(tan)
            elif y != sy:
                tan = (x - sx) / (y - sy)
                self.scale_x, self.scale_y = -1.0, 1.0
                self.slide_x, self.slide_y = sx - sy * tan, 0.0
                self.angle = math.pi - math.atan(tan)

        elif self.type == TransformType.INVERSION:
            self.end = current
            self.scale_x, self.scale_y = -1.0, -1.0
            self.slide_x, self.slide_y = x, y
            self.angle = math.pi + math.atan(y / (x or 1))

    def is_negligible(self) -> bool:
        """Return True if the transformation is too small to be kept."""
        if self.type == TransformType.REFLECTION:
            return (
                self.start is not None and self.end is not None and
                is_near(self.start, self.end, MIN_REFLECTION_LINE_LENGTH)
            )
        if self.type == TransformType.TRANSLATION:
            return math.hypot(self.slide_x, self.slide_y) < MIN_TRANSLATION_DISTANCE
        if self.type == TransformType.ROTATION:
            return abs(self.angle) < MIN_ROTATION_ANGLE
        return False

    def commit(self) -> None:
        """Drop the drag-only coordinates."""
        self.start = None
        self.end = None

    def copy(self) -> Transform:
        """Return an independent copy."""
        return Transform(
            type=self.type,
            slide_x=self.slide_x,
            slide_y=self.slide_y,
            angle=self.angle,
            scale_x=self.scale_x,
            scale_y=self.scale_y,
            start=QPointF(self.start) if self.start is not None else None,
            end=QPointF(self.end) if self.end is not None else None,
        )

    def apply_to(self, matrix: QTransform, pivot: Optional[QPointF] = None) -> None:
        """
        Append this transformation to a matrix, in place.

        Like QPainter, the operation added last is the first one applied
        to the points.
        """
        if self.type == TransformType.TRANSLATION:
            matrix.translate(self.slide_x, self.slide_y)

        elif self.type == TransformType.ROTATION:
            matrix.translate(pivot.x(), pivot.y())
            matrix.rotateRadians(self.angle)
            matrix.translate(-pivot.x(), -pivot.y())

        elif self.type in (TransformType.SCALE_PRESERVE, TransformType.STRETCH):
            matrix.translate(pivot.x(), pivot.y())
            matrix.rotateRadians(self.angle)
            matrix.scale(self.scale_x, self.scale_y)
            matrix.rotateRadians(-self.angle)
            matrix.translate(-pivot.x(), -pivot.y())

        elif self.type in SYMMETRY_TYPES:
            matrix.translate(self.slide_x, self.slide_y)
            matrix.rotateRadians(self.angle)
            matrix.scale(self.scale_x, self.scale_y)
            matrix.rotateRadians(-self.angle)
            matrix.translate(-self.slide_x, -self.slide_y)


def _scale_ratio(pivot: QPointF, start: QPointF, current: QPointF) -> float:
    """Ratio of pivot distances, 1 when undefined or null."""
    reference = math.hypot(start.x() - pivot.x(), start.y() - pivot.y())
    if reference == 0:
        return 1.0
    return math.hypot(current.x() - pivot.x(), current.y() - pivot.y()) / reference or 1.0


def transformed_pivot(
    chain: Sequence[Transform],
    transform: Transform,
    original_pivot: QPointF
) -> QPointF:
    """
    Map the element's original pivot through the transformations before ``transform``.

    Rotations and scalings keep their own pivot fixed, so only translations,
    reflections and inversions move it. The result is cached on the
    transformation since the chain before it no longer changes.

    Args:
        chain: The element's whole transformation chain
        transform: Entry of the chain whose pivot is wanted
        original_pivot: Pivot of the untransformed shape

    Returns:
        The pivot for ``transform``
    """
    if transform.pivot_cache is not None:
        return transform.pivot_cache

    index = next((i for i, t in enumerate(chain) if t is transform), len(chain))
    matrix = QTransform()
    for previous in reversed(chain[:index]):
        if previous.type in PIVOTED_TYPES:
            continue
        previous.apply_to(matrix)

    transform.pivot_cache = matrix.map(QPointF(original_pivot))
    return transform.pivot_cache


def chain_matrix(chain: Sequence[Transform], original_pivot: QPointF) -> QTransform:
    """
    Build the matrix of a whole chain.

    The first entry of the chain is applied first to the raw points. The
    list is walked backwards because each new matrix operation applies
    before the previous ones.
    """
    matrix = QTransform()
    for transform in reversed(chain):
        pivot = None
        if transform.type in PIVOTED_TYPES:
            pivot = transformed_pivot(chain, transform, original_pivot)
        transform.apply_to(matrix, pivot)
    return matrix


def clear_pivot_caches(chain: List[Transform]) -> None:
    """Forget cached pivots, needed when the element's points change."""
    for transform in chain:
        transform.pivot_cache = None
