"""
Tests for percentage <-> pixel conversion.

Run with: pytest tests/test_converter.py -v
"""
import pytest

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.converter import (
    batch_pixel_positions_to_signature,
    batch_signature_positions_to_pixel,
    constrain_coordinates,
    convert_coordinate_system,
    create_page_dimensions_map,
    offset_coordinates,
    percentage_size_to_pixel,
    percentage_to_pixel,
    pixel_position_to_signature,
    pixel_size_to_percentage,
    pixel_to_percentage,
    round_to_precision,
    scale_coordinates,
    signature_position_to_pixel,
    to_pdf_point_space,
)
from core.errors import (
    LengthMismatchError,
    MissingPageDimensionsError,
    UnsupportedConversionError,
)
from models.position import (
    CoordinatePoint,
    CoordinateSize,
    PageDimensions,
    PixelPoint,
    PixelPosition,
    PixelSize,
    PositionArea,
    SignaturePosition,
)

A4 = PageDimensions(width=595, height=842, page_number=1)


class TestRoundToPrecision:
    """Rounding is half away from zero."""

    def test_half_up(self):
        assert round_to_precision(2.345, 2) == 2.35
        assert round_to_precision(2.5, 0) == 3.0
        assert round_to_precision(1.005, 2) == 1.01

    def test_negative_half_away(self):
        assert round_to_precision(-2.345, 2) == -2.35
        assert round_to_precision(-0.5, 0) == -1.0


class TestPointAndSize:
    """Tests for the basic mappings."""

    def test_percentage_to_pixel(self):
        assert percentage_to_pixel(CoordinatePoint(50, 50), A4) == PixelPoint(297.5, 421.0)

    def test_pixel_to_percentage(self):
        assert pixel_to_percentage(PixelPoint(297.5, 421), A4) == CoordinatePoint(50.0, 50.0)

    def test_size_to_pixel(self):
        assert percentage_size_to_pixel(CoordinateSize(20, 8), A4) == PixelSize(119.0, 67.36)

    def test_pixel_size_to_percentage(self):
        assert pixel_size_to_percentage(PixelSize(119, 67.36), A4) == CoordinateSize(20.0, 8.0)

    def test_precision_capped(self):
        """Asking for 10 decimals yields at most 4."""
        page = PageDimensions(width=3, height=3, page_number=1)
        assert pixel_to_percentage(PixelPoint(1, 1), page, precision=10).x == 33.3333
        assert pixel_to_percentage(PixelPoint(1, 1), page).x == 33.33


class TestSignaturePositionConversion:
    """Tests for whole-position conversion."""

    def test_a4_example(self):
        position = SignaturePosition(x=50, y=50, width=20, height=8, page_number=1, recipient_id="r1")
        pixel = signature_position_to_pixel(position, A4)
        assert pixel == PixelPosition(x=297.5, y=421.0, width=119.0, height=67.36, page_number=1)

    def test_pixel_to_signature_needs_recipient(self):
        pixel = PixelPosition(x=297.5, y=421, width=119, height=67.36, page_number=1)
        position = pixel_position_to_signature(pixel, "r9", A4)
        assert position == SignaturePosition(50.0, 50.0, 20.0, 8.0, 1, "r9")

    @pytest.mark.parametrize(
        "page",
        [
            PageDimensions(595, 842, 1),
            PageDimensions(612, 792, 1),
            PageDimensions(1024, 768, 1),
            PageDimensions(800, 1131.5, 1),
        ],
    )
    @pytest.mark.parametrize(
        "position",
        [
            SignaturePosition(10.25, 33.33, 15, 5.5, 1, "r1"),
            SignaturePosition(0, 0, 50, 30, 1, "r1"),
            SignaturePosition(72.17, 88.88, 12.34, 8.76, 1, "r1"),
        ],
    )
    def test_round_trip(self, position, page):
        """percentage -> pixel -> percentage returns the original values."""
        back = pixel_position_to_signature(
            signature_position_to_pixel(position, page), position.recipient_id, page
        )
        assert back.x == pytest.approx(position.x, abs=0.01)
        assert back.y == pytest.approx(position.y, abs=0.01)
        assert back.width == pytest.approx(position.width, abs=0.01)
        assert back.height == pytest.approx(position.height, abs=0.01)
        assert back.page_number == position.page_number


class TestBatchConversion:
    """Tests for batch helpers and their contract errors."""

    def setup_method(self):
        self.pages = create_page_dimensions_map(
            [PageDimensions(595, 842, 1), PageDimensions(842, 595, 2)]
        )

    def test_batch_to_pixel(self):
        positions = [
            SignaturePosition(50, 50, 20, 8, 1, "r1"),
            SignaturePosition(50, 50, 20, 8, 2, "r2"),
        ]
        pixels = batch_signature_positions_to_pixel(positions, self.pages)
        assert [p.page_number for p in pixels] == [1, 2]
        assert pixels[0].x == 297.5
        assert pixels[1].x == 421.0

    def test_batch_missing_page(self):
        positions = [SignaturePosition(10, 10, 20, 8, 3, "r1")]
        with pytest.raises(MissingPageDimensionsError) as exc:
            batch_signature_positions_to_pixel(positions, self.pages)
        assert exc.value.page_number == 3

    def test_batch_to_signature(self):
        pixels = [PixelPosition(297.5, 421, 119, 67.36, 1)]
        positions = batch_pixel_positions_to_signature(pixels, ["r1"], self.pages)
        assert positions == [SignaturePosition(50.0, 50.0, 20.0, 8.0, 1, "r1")]

    def test_batch_length_mismatch(self):
        pixels = [PixelPosition(10, 10, 100, 50, 1)]
        with pytest.raises(LengthMismatchError):
            batch_pixel_positions_to_signature(pixels, ["r1", "r2"], self.pages)

    def test_batch_to_signature_missing_page(self):
        pixels = [PixelPosition(10, 10, 100, 50, 5)]
        with pytest.raises(MissingPageDimensionsError):
            batch_pixel_positions_to_signature(pixels, ["r1"], self.pages)

    def test_page_map(self):
        assert set(self.pages) == {1, 2}
        assert self.pages[2].width == 842


class TestConvertCoordinateSystem:
    """Tests for the system dispatcher."""

    def test_same_system_is_noop(self):
        area = PositionArea(10, 10, 20, 8, id="a")
        assert convert_coordinate_system(area, "percentage", "percentage", A4) is area

    def test_percentage_to_pixel_keeps_other_fields(self):
        area = PositionArea(50, 50, 20, 8, id="a", recipient_id="r1")
        pixel = convert_coordinate_system(area, "percentage", "pixel", A4)
        assert (pixel.x, pixel.y, pixel.width, pixel.height) == (297.5, 421.0, 119.0, 67.36)
        assert pixel.id == "a"
        assert pixel.recipient_id == "r1"

    def test_pixel_to_percentage(self):
        area = PositionArea(297.5, 421, 119, 67.36)
        back = convert_coordinate_system(area, "pixel", "percentage", A4)
        assert (back.x, back.y, back.width, back.height) == (50.0, 50.0, 20.0, 8.0)

    def test_unknown_system(self):
        with pytest.raises(UnsupportedConversionError):
            convert_coordinate_system(PositionArea(1, 1, 1, 1), "points", "pixel", A4)


class TestTransforms:
    """Tests for scale / offset / constrain helpers."""

    def test_scale(self):
        area = scale_coordinates(PositionArea(10, 20, 30, 40, id="a"), 2, 0.5)
        assert (area.x, area.y, area.width, area.height) == (20, 10, 60, 20)
        assert area.id == "a"

    def test_offset_moves_corner_only(self):
        area = offset_coordinates(PositionArea(10, 20, 30, 40), 5, -5)
        assert (area.x, area.y, area.width, area.height) == (15, 15, 30, 40)

    def test_constrain_percentage(self):
        area = constrain_coordinates(PositionArea(95, -5, 20, 10), "percentage")
        assert (area.x, area.y, area.width, area.height) == (95, 0, 5, 10)

    def test_constrain_percentage_past_edge(self):
        area = constrain_coordinates(PositionArea(120, 50, 20, 10), "percentage")
        assert (area.x, area.width) == (100, 0)

    def test_constrain_pixel(self):
        pixel = constrain_coordinates(PixelPosition(500, 800, 200, 100, 1), "pixel", A4)
        assert (pixel.x, pixel.y, pixel.width, pixel.height) == (500, 800, 95, 42)

    def test_constrain_pixel_requires_page(self):
        with pytest.raises(MissingPageDimensionsError):
            constrain_coordinates(PixelPosition(1, 1, 1, 1, 1), "pixel")

    def test_inputs_not_mutated(self):
        area = PositionArea(10, 20, 30, 40)
        offset_coordinates(area, 5, 5)
        assert area.x == 10


class TestPdfPointSpace:
    """Tests for the bottom-left origin projection."""

    def test_flips_y(self):
        page = PageDimensions(width=600, height=800, page_number=1)
        rect = to_pdf_point_space(SignaturePosition(10, 10, 20, 10, 1, "r1"), page)
        assert rect == {"x": 60.0, "y": 640.0, "width": 120.0, "height": 80.0}
