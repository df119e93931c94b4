"""Tests for SVG export."""

import math
import re
import xml.etree.ElementTree as ET

import pytest
from PyQt6.QtCore import QByteArray, QPointF, QRectF, Qt
from PyQt6.QtGui import QImage, QPainter
from PyQt6.QtSvg import QSvgRenderer

from sketch_overlay.core.models import (
    DashStyle, DrawingElement, FontSpec, LineCap, LineJoin, LineStyle, Shape
)
from sketch_overlay.core.path_renderer import PathRenderer
from sketch_overlay.core.svg_export import SVG_NAMESPACE, SvgExporter
from sketch_overlay.core.transforms import Transform, TransformType

NS = {"svg": SVG_NAMESPACE}


def make_element(shape, points, **kwargs):
    return DrawingElement(shape=shape, points=[QPointF(x, y) for x, y in points], **kwargs)


class TestPrimitives:
    """Tests for element_markup."""

    def test_rectangle(self):
        """Test a plain rectangle."""
        element = make_element(
            Shape.RECTANGLE, [(0, 0), (10, 20)], line=LineStyle(2, LineJoin.MITER, LineCap.BUTT)
        )

        node = SvgExporter().element_markup(element)

        assert node.tag == "rect"
        assert node.get("x") == "0"
        assert node.get("y") == "0"
        assert node.get("width") == "10"
        assert node.get("height") == "20"
        assert node.get("stroke-width") == "2"
        assert node.get("fill") == "none"
        assert node.get("transform") is None

    def test_rectangle_normalized(self):
        element = make_element(Shape.RECTANGLE, [(10, 20), (0, 5)])

        node = SvgExporter().element_markup(element)

        assert (node.get("x"), node.get("y"), node.get("height")) == ("0", "5", "15")

    def test_straight_line_never_filled(self):
        element = make_element(Shape.LINE, [(0, 0), (10, 5)], fill=True)

        node = SvgExporter().element_markup(element)

        assert node.tag == "line"
        assert node.get("fill") == "none"
        assert node.get("stroke-linejoin") is None
        assert (node.get("x2"), node.get("y2")) == ("10", "5")

    def test_curve(self):
        element = make_element(Shape.LINE, [(0, 0), (10, 0), (10, 10), (0, 10)])

        node = SvgExporter().element_markup(element)

        assert node.tag == "path"
        assert node.get("d") == "M0 0 C 10 0, 10 10, 0 10"

    def test_circle_and_ellipse(self):
        exporter = SvgExporter()
        circle = exporter.element_markup(make_element(Shape.ELLIPSE, [(50, 50), (53, 54)]))
        ellipse = exporter.element_markup(make_element(Shape.ELLIPSE, [(50, 50), (50, 60), (70, 50)]))

        assert circle.tag == "circle"
        assert circle.get("r") == "5"
        assert ellipse.tag == "ellipse"
        assert (ellipse.get("rx"), ellipse.get("ry")) == ("20", "10")

    def test_free_drawing_path(self):
        element = make_element(Shape.NONE, [(0, 0), (10, 0), (10, 10.5)], fill=True)

        node = SvgExporter().element_markup(element)

        assert node.get("d") == "M0 0 L 10 0 L 10 10.5z"

    def test_polygon(self):
        element = make_element(Shape.POLYGON, [(0, 0), (10, 0), (5, 10)])

        node = SvgExporter().element_markup(element)

        assert node.tag == "polygon"
        assert node.get("points") == " 0,0 10,0 5,10"

    def test_polygon_too_few_points(self):
        element = make_element(Shape.POLYGON, [(0, 0), (10, 0)])

        assert SvgExporter().element_markup(element) is None

    def test_eraser_color(self):
        """Test that erasers paint the background, or nothing."""
        element = make_element(Shape.RECTANGLE, [(0, 0), (10, 10)], fill=True, eraser=True)

        assert SvgExporter().element_markup(element).get("fill") == "transparent"
        assert SvgExporter("#123456ff").element_markup(element).get("fill") == "#123456ff"

    def test_dash_and_fill_rule(self):
        element = make_element(
            Shape.POLYGON, [(0, 0), (10, 0), (5, 10)], fill=True, fill_rule=1,
            dash=DashStyle(True, [6, 3], 2),
        )

        node = SvgExporter().element_markup(element)

        assert node.get("fill-rule") == "evenodd"
        assert node.get("stroke-dasharray") == "6 3"
        assert node.get("stroke-dashoffset") == "2"

    def test_text(self, qapp):
        element = make_element(
            Shape.TEXT, [(10, 0), (10, 20)], text="Hi", font=FontSpec("Serif", 700)
        )

        node = SvgExporter().element_markup(element)

        assert node.tag == "text"
        assert node.text == "Hi"
        assert (node.get("x"), node.get("y")) == ("10", "20")
        assert node.get("font-size") == "20"
        assert node.get("font-weight") == "700"
        assert node.get("font-family") == "Serif"


class TestTransformAttribute:
    """Tests for transform_attribute."""

    def test_translation(self):
        element = make_element(
            Shape.RECTANGLE, [(0, 0), (10, 20)],
            transforms=[Transform(type=TransformType.TRANSLATION, slide_x=10, slide_y=5)],
        )

        assert SvgExporter().element_markup(element).get("transform") == "translate(10,5)"

    def test_rotation_around_pivot(self):
        element = make_element(
            Shape.RECTANGLE, [(0, 0), (10, 20)],
            transforms=[Transform(type=TransformType.ROTATION, angle=math.pi / 2)],
        )

        value = SvgExporter().transform_attribute(element)
        match = re.fullmatch(r"translate\(5,10\) rotate\(([-\d.e]+)\) translate\(-5,-10\)", value)

        assert match is not None
        assert float(match.group(1)) == pytest.approx(90)

    def test_last_transformation_written_first(self):
        """Test that the chain is written in reverse order."""
        element = make_element(
            Shape.RECTANGLE, [(0, 0), (10, 20)],
            transforms=[
                Transform(type=TransformType.TRANSLATION, slide_x=10, slide_y=5),
                Transform(type=TransformType.ROTATION, angle=0.5),
            ],
        )

        value = SvgExporter().transform_attribute(element)

        assert value.startswith("translate(15,15) rotate(")
        assert value.endswith("translate(-15,-15) translate(10,5)")

    def test_scale_keeps_stroke(self):
        element = make_element(
            Shape.RECTANGLE, [(0, 0), (10, 20)],
            transforms=[Transform(type=TransformType.SCALE_PRESERVE, scale_x=2, scale_y=2)],
        )

        node = SvgExporter().element_markup(element)

        assert node.get("vector-effect") == "non-scaling-stroke"
        assert "scale(2,2)" in node.get("transform")


class TestDocument:
    """Tests for whole documents."""

    def test_document(self):
        elements = [
            make_element(Shape.RECTANGLE, [(0, 0), (10, 20)]),
            make_element(Shape.POLYGON, [(0, 0), (10, 0)]),
            make_element(Shape.LINE, [(0, 0), (5, 5)]),
        ]

        root = ET.fromstring(SvgExporter("#2e2e2eff").export(elements, 100, 50))

        assert root.tag == f"{{{SVG_NAMESPACE}}}svg"
        assert root.get("viewBox") == "0 0 100 50"
        children = list(root)
        assert [child.tag.split("}")[1] for child in children] == ["rect", "rect", "line"]
        assert children[0].get("id") == "background"

    def test_no_background(self):
        root = ET.fromstring(SvgExporter().export([], 100, 50))

        assert root.find("svg:rect", NS) is None

    def test_save(self, temp_dir):
        path = temp_dir / "out" / "drawing.svg"
        element = make_element(Shape.RECTANGLE, [(0, 0), (10, 20)])

        assert SvgExporter().save([element], 100, 50, path)
        assert "<rect" in path.read_text(encoding="utf-8")

    def test_save_never_overwrites(self, temp_dir):
        path = temp_dir / "drawing.svg"
        path.write_text("keep", encoding="utf-8")

        assert not SvgExporter().save([], 100, 50, path)
        assert path.read_text(encoding="utf-8") == "keep"


class TestRendererAgreement:
    """Tests comparing the exported SVG with the on-screen rendering."""

    SIZE = 200

    def paint(self, draw):
        image = QImage(self.SIZE, self.SIZE, QImage.Format.Format_ARGB32_Premultiplied)
        image.fill(Qt.GlobalColor.transparent)
        painter = QPainter(image)
        try:
            painter.setRenderHint(QPainter.RenderHint.Antialiasing)
            draw(painter)
        finally:
            painter.end()
        return image

    def coverage(self, image):
        return {
            (x, y)
            for x in range(self.SIZE)
            for y in range(self.SIZE)
            if image.pixelColor(x, y).alpha() > 127
        }

    def test_transformation_chain(self, qapp):
        """Test that both renderings of a transformed element cover the same pixels."""
        element = make_element(
            Shape.RECTANGLE, [(60, 60), (120, 100)],
            color="#0000ffff", fill=True,
            line=LineStyle(2, LineJoin.MITER, LineCap.BUTT),
            transforms=[
                Transform(type=TransformType.TRANSLATION, slide_x=15, slide_y=10),
                Transform(type=TransformType.ROTATION, angle=0.4),
                Transform(type=TransformType.STRETCH, scale_x=1.3, angle=0.2),
                Transform(
                    type=TransformType.REFLECTION,
                    scale_x=1.0, scale_y=-1.0, slide_y=100, angle=math.pi,
                ),
            ],
        )
        svg = SvgExporter().export([element], self.SIZE, self.SIZE)
        svg_renderer = QSvgRenderer(QByteArray(svg.encode("utf-8")))
        assert svg_renderer.isValid()

        painted = self.coverage(self.paint(lambda p: PathRenderer().render(p, [element])))
        exported = self.coverage(
            self.paint(lambda p: svg_renderer.render(p, QRectF(0, 0, self.SIZE, self.SIZE)))
        )

        assert len(painted) > 2000
        # Anti-aliased edges may round differently
        assert len(painted ^ exported) < self.SIZE * self.SIZE * 0.02
