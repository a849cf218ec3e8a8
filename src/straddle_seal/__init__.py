"""Straddle seal: imprint a sliced seal image across the edges of every PDF page."""

from straddle_seal.compositor import compose_straddle_seal, get_page_count
from straddle_seal.exceptions import StraddleSealError
from straddle_seal.placement import (
    Anchor,
    PageGeometry,
    PlacementSpec,
    compute_placement,
)
from straddle_seal.seal import SealImage, SealSlice, decode_seal, slice_seal
from straddle_seal.session import SessionConfig, SessionOrchestrator, SessionStage

__all__ = [
    "Anchor",
    "PageGeometry",
    "PlacementSpec",
    "SealImage",
    "SealSlice",
    "SessionConfig",
    "SessionOrchestrator",
    "SessionStage",
    "StraddleSealError",
    "compose_straddle_seal",
    "compute_placement",
    "decode_seal",
    "get_page_count",
    "slice_seal",
]
