"""Placement geometry for seal slices on PDF pages."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from straddle_seal.seal import SealSlice

logger = logging.getLogger(__name__)

MM_TO_PT = 2.83465
DEFAULT_DIAMETER_MM = 42.0
DEFAULT_TARGET_DIAMETER_PT = DEFAULT_DIAMETER_MM * MM_TO_PT


class Anchor(enum.Enum):
    """Vertical position of the seal strip, measured from the top of the page."""

    UPPER_THIRD = "upper-third"
    CENTER = "center"
    LOWER_THIRD = "lower-third"

    @classmethod
    def parse(cls, value: Anchor | str | None) -> Anchor:
        """Resolve an anchor name, falling back to ``CENTER`` when unrecognized."""
        if isinstance(value, Anchor):
            return value
        if value is not None:
            key = str(value).strip().lower()
            anchor = _ANCHOR_ALIASES.get(key)
            if anchor is not None:
                return anchor
        logger.warning("Unrecognized anchor %r, using center", value)
        return cls.CENTER


_ANCHOR_ALIASES = {
    "upper-third": Anchor.UPPER_THIRD,
    "upper_third": Anchor.UPPER_THIRD,
    "1/3": Anchor.UPPER_THIRD,
    "center": Anchor.CENTER,
    "1/2": Anchor.CENTER,
    "lower-third": Anchor.LOWER_THIRD,
    "lower_third": Anchor.LOWER_THIRD,
    "2/3": Anchor.LOWER_THIRD,
}


@dataclass(frozen=True)
class PageGeometry:
    """Page size in PDF points."""

    width_pt: float
    height_pt: float


@dataclass(frozen=True)
class PlacementSpec:
    """Where and how large a slice is drawn, origin at the page's bottom-left."""

    x_pt: float
    y_pt: float
    scaled_width_pt: float
    scaled_height_pt: float


def compute_placement(
    seal_slice: SealSlice,
    page: PageGeometry,
    anchor: Anchor | str | None = Anchor.CENTER,
    target_diameter_pt: float = DEFAULT_TARGET_DIAMETER_PT,
) -> PlacementSpec:
    """Compute the placement of *seal_slice* flush against the page's right edge.

    The slice is scaled uniformly so that its longer side spans
    *target_diameter_pt*. The result is not clamped to the page; a slice
    taller than the page extends past its bounds.
    """
    scale = target_diameter_pt / max(seal_slice.width_px, seal_slice.height_px)
    scaled_width = seal_slice.width_px * scale
    scaled_height = seal_slice.height_px * scale

    height = page.height_pt
    anchor = Anchor.parse(anchor)
    if anchor is Anchor.UPPER_THIRD:
        y = height - height / 3 - scaled_height / 2
    elif anchor is Anchor.LOWER_THIRD:
        y = height / 3 - scaled_height / 2
    else:
        y = height / 2 - scaled_height / 2

    return PlacementSpec(
        x_pt=page.width_pt - scaled_width,
        y_pt=y,
        scaled_width_pt=scaled_width,
        scaled_height_pt=scaled_height,
    )
