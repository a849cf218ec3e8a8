"""Seal decoding and slicing using Pillow."""

from __future__ import annotations

import io
import logging
import math
import mimetypes
from dataclasses import dataclass

from PIL import Image

from straddle_seal.exceptions import (
    InvalidPageCountError,
    SealDecodeError,
    UnsupportedMediaTypeError,
)

logger = logging.getLogger(__name__)

SEAL_MEDIA_TYPE = "image/png"

_TRANSPARENT = (0, 0, 0, 0)


@dataclass(frozen=True)
class SealImage:
    """A decoded seal raster in RGBA mode."""

    width_px: int
    height_px: int
    pixels: Image.Image

    @classmethod
    def from_image(cls, image: Image.Image) -> SealImage:
        # convert() always returns a detached copy, even for RGBA input
        rgba = image.convert("RGBA")
        width, height = rgba.size
        return cls(width_px=width, height_px=height, pixels=rgba)


@dataclass(frozen=True)
class SealSlice:
    """One vertical strip of the seal, destined for page ``index``."""

    index: int
    png_bytes: bytes
    width_px: int
    height_px: int


def guess_media_type(filename: str) -> str | None:
    """Guess a declared media type from a file name."""
    media_type, _ = mimetypes.guess_type(filename)
    return media_type


def check_seal_media_type(media_type: str | None) -> None:
    """Reject anything that is not declared as a PNG image.

    Raises:
        UnsupportedMediaTypeError: If the media type is not ``image/png``.
    """
    if media_type != SEAL_MEDIA_TYPE:
        raise UnsupportedMediaTypeError(SEAL_MEDIA_TYPE, media_type)


def decode_seal(data: bytes) -> SealImage:
    """Decode encoded seal bytes into an RGBA :class:`SealImage`.

    Raises:
        SealDecodeError: If the bytes are not a readable image.
    """
    if not data:
        raise SealDecodeError("Seal image is empty")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            seal = SealImage.from_image(img)
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise SealDecodeError(f"Cannot decode seal image: {e}") from e

    if seal.width_px < 1 or seal.height_px < 1:
        raise SealDecodeError(
            f"Invalid seal dimensions: {seal.width_px}x{seal.height_px}"
        )
    logger.debug("Decoded seal image %dx%d", seal.width_px, seal.height_px)
    return seal


def compute_slice_width(seal_width: int, page_count: int) -> int:
    """Width of every slice: the seal width divided by pages, rounded up."""
    return math.ceil(seal_width / page_count)


def slice_seal(seal: SealImage, page_count: int) -> list[SealSlice]:
    """Cut *seal* into *page_count* equal-width vertical PNG slices.

    Slice ``i`` covers source columns ``[i * w, (i + 1) * w)`` where
    ``w = ceil(width / page_count)``. Columns past the source width come
    out fully transparent, so every slice is exactly ``w`` pixels wide.

    Raises:
        InvalidPageCountError: If *page_count* is not an integer >= 1.
    """
    if isinstance(page_count, bool) or not isinstance(page_count, int):
        raise InvalidPageCountError(
            f"Page count must be an integer: {page_count!r}"
        )
    if page_count < 1:
        raise InvalidPageCountError(f"Page count must be >= 1, got {page_count}")

    width = seal.width_px
    height = seal.height_px
    slice_width = compute_slice_width(width, page_count)

    # One scratch buffer, cleared and refilled for every slice
    scratch = Image.new("RGBA", (slice_width, height), _TRANSPARENT)
    slices: list[SealSlice] = []

    for index in range(page_count):
        left = index * slice_width
        right = min(left + slice_width, width)

        scratch.paste(_TRANSPARENT, (0, 0, slice_width, height))
        if left < width:
            scratch.paste(seal.pixels.crop((left, 0, right, height)), (0, 0))

        buf = io.BytesIO()
        scratch.save(buf, format="PNG")
        slices.append(
            SealSlice(
                index=index,
                png_bytes=buf.getvalue(),
                width_px=slice_width,
                height_px=height,
            )
        )
        logger.debug(
            "Slice %d: source columns [%d, %d) of %d", index, left, right, width
        )

    return slices
