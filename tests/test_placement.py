"""Unit tests for slice placement geometry."""

from __future__ import annotations

import pytest

from straddle_seal.placement import (
    DEFAULT_TARGET_DIAMETER_PT,
    MM_TO_PT,
    Anchor,
    PageGeometry,
    compute_placement,
)
from straddle_seal.seal import SealSlice

from .conftest import A4_HEIGHT, A4_WIDTH, LETTER_HEIGHT, LETTER_WIDTH

LETTER = PageGeometry(width_pt=LETTER_WIDTH, height_pt=LETTER_HEIGHT)
A4 = PageGeometry(width_pt=A4_WIDTH, height_pt=A4_HEIGHT)


def _slice(width: int, height: int, index: int = 0) -> SealSlice:
    return SealSlice(index=index, png_bytes=b"", width_px=width, height_px=height)


# --- Anchor.parse ---


class TestAnchorParse:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("upper-third", Anchor.UPPER_THIRD),
            ("center", Anchor.CENTER),
            ("lower-third", Anchor.LOWER_THIRD),
            ("1/3", Anchor.UPPER_THIRD),
            ("1/2", Anchor.CENTER),
            ("2/3", Anchor.LOWER_THIRD),
            ("  Upper_Third ", Anchor.UPPER_THIRD),
            (Anchor.LOWER_THIRD, Anchor.LOWER_THIRD),
        ],
    )
    def test_known_values(self, value, expected):
        assert Anchor.parse(value) is expected

    @pytest.mark.parametrize("value", ["bottom", "", None, "3/4"])
    def test_unknown_falls_back_to_center(self, value):
        assert Anchor.parse(value) is Anchor.CENTER


# --- compute_placement ---


class TestComputePlacement:
    def test_default_diameter_is_42mm(self):
        assert DEFAULT_TARGET_DIAMETER_PT == pytest.approx(42 * MM_TO_PT)
        assert DEFAULT_TARGET_DIAMETER_PT == pytest.approx(119.06, abs=0.01)

    def test_letter_center_scenario(self):
        p = compute_placement(_slice(200, 200), LETTER, Anchor.CENTER, 119.06)
        assert p.scaled_width_pt == pytest.approx(119.06)
        assert p.scaled_height_pt == pytest.approx(119.06)
        assert p.x_pt == pytest.approx(612 - 119.06)
        assert p.y_pt == pytest.approx(396 - 119.06 / 2)

    def test_longer_side_maps_to_diameter(self):
        p = compute_placement(_slice(40, 200), A4, Anchor.CENTER, 100.0)
        assert p.scaled_height_pt == pytest.approx(100.0)
        assert p.scaled_width_pt == pytest.approx(20.0)

    def test_wide_slice_scales_by_width(self):
        p = compute_placement(_slice(300, 100), A4, Anchor.CENTER, 90.0)
        assert p.scaled_width_pt == pytest.approx(90.0)
        assert p.scaled_height_pt == pytest.approx(30.0)

    @pytest.mark.parametrize("page", [LETTER, A4, PageGeometry(200.0, 300.0)])
    def test_center_anchor_is_vertically_centered(self, page):
        p = compute_placement(_slice(67, 200), page, Anchor.CENTER)
        assert p.y_pt + p.scaled_height_pt / 2 == pytest.approx(page.height_pt / 2)

    @pytest.mark.parametrize("anchor", list(Anchor))
    @pytest.mark.parametrize("page", [LETTER, A4])
    def test_flush_with_right_edge(self, anchor, page):
        p = compute_placement(_slice(167, 200), page, anchor)
        assert p.x_pt + p.scaled_width_pt == pytest.approx(page.width_pt)

    def test_upper_third(self):
        p = compute_placement(_slice(100, 100), LETTER, Anchor.UPPER_THIRD, 60.0)
        assert p.y_pt == pytest.approx(792 - 264 - 30)

    def test_lower_third(self):
        p = compute_placement(_slice(100, 100), LETTER, Anchor.LOWER_THIRD, 60.0)
        assert p.y_pt == pytest.approx(264 - 30)

    @pytest.mark.parametrize("page", [LETTER, A4])
    def test_thirds_symmetric_around_center(self, page):
        s = _slice(120, 200)
        upper = compute_placement(s, page, Anchor.UPPER_THIRD)
        center = compute_placement(s, page, Anchor.CENTER)
        lower = compute_placement(s, page, Anchor.LOWER_THIRD)
        assert upper.y_pt + lower.y_pt == pytest.approx(2 * center.y_pt)
        assert upper.y_pt > center.y_pt > lower.y_pt

    def test_string_anchor_accepted(self):
        s = _slice(100, 100)
        assert compute_placement(s, A4, "1/3") == compute_placement(
            s, A4, Anchor.UPPER_THIRD
        )

    def test_unknown_anchor_uses_center(self):
        s = _slice(100, 100)
        assert compute_placement(s, A4, "sideways") == compute_placement(
            s, A4, Anchor.CENTER
        )

    def test_oversized_seal_not_clamped(self):
        small = PageGeometry(width_pt=100.0, height_pt=100.0)
        p = compute_placement(_slice(50, 200), small, Anchor.CENTER, 400.0)
        assert p.scaled_height_pt == pytest.approx(400.0)
        assert p.y_pt == pytest.approx(-150.0)
        assert p.x_pt == pytest.approx(0.0)

    def test_deterministic(self):
        s = _slice(167, 200)
        assert compute_placement(s, A4, Anchor.LOWER_THIRD) == compute_placement(
            s, A4, Anchor.LOWER_THIRD
        )
