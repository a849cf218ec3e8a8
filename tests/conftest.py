"""Shared pytest fixtures for straddle-seal tests."""

from __future__ import annotations

import io

import pikepdf
import pytest
from PIL import Image

from straddle_seal.seal import SealImage, decode_seal

# Standard page sizes in points
A4_WIDTH, A4_HEIGHT = 595.28, 841.89
LETTER_WIDTH, LETTER_HEIGHT = 612.0, 792.0


def _make_pdf(width: float, height: float, pages: int = 1) -> bytes:
    """Create a minimal blank PDF with the given dimensions."""
    return _make_pdf_with_sizes([(width, height)] * pages)


def _make_pdf_with_sizes(sizes: list[tuple[float, float]]) -> bytes:
    """Create a blank PDF with one page per (width, height) entry."""
    pdf = pikepdf.new()
    for size in sizes:
        pdf.add_blank_page(page_size=size)

    buf = io.BytesIO()
    pdf.save(buf)
    return buf.getvalue()


def _make_seal_png(width: int, height: int, mode: str = "RGBA") -> bytes:
    """Create a PNG whose every pixel encodes its own coordinates."""
    img = Image.new("RGBA", (width, height))
    img.putdata(
        [
            (x % 256, y % 256, (x // 256) % 256, 255)
            for y in range(height)
            for x in range(width)
        ]
    )
    if mode != "RGBA":
        img = img.convert(mode)

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def _count_images(resources: pikepdf.Object) -> int:
    """Count image XObjects, descending into form XObjects."""
    xobjects = resources.get("/XObject")
    if xobjects is None:
        return 0
    total = 0
    for _, xobj in xobjects.items():
        subtype = xobj.get("/Subtype")
        if subtype == pikepdf.Name.Image:
            total += 1
        elif subtype == pikepdf.Name.Form and "/Resources" in xobj:
            total += _count_images(xobj.Resources)
    return total


def count_page_images(pdf_bytes: bytes) -> list[int]:
    """Return the number of images drawn on each page of the PDF."""
    with pikepdf.open(io.BytesIO(pdf_bytes)) as pdf:
        return [
            _count_images(page.obj.get("/Resources", pikepdf.Dictionary()))
            for page in pdf.pages
        ]


@pytest.fixture
def letter_pdf() -> bytes:
    """Single-page US Letter PDF."""
    return _make_pdf(LETTER_WIDTH, LETTER_HEIGHT)


@pytest.fixture
def multipage_pdf() -> bytes:
    """Three-page A4 PDF."""
    return _make_pdf(A4_WIDTH, A4_HEIGHT, pages=3)


@pytest.fixture
def five_page_pdf() -> bytes:
    """Five-page A4 PDF."""
    return _make_pdf(A4_WIDTH, A4_HEIGHT, pages=5)


@pytest.fixture
def seal_png() -> bytes:
    """600x200 seal that splits evenly into three slices."""
    return _make_seal_png(600, 200)


@pytest.fixture
def odd_seal_png() -> bytes:
    """500x200 seal whose third slice overhangs the source by one column."""
    return _make_seal_png(500, 200)


@pytest.fixture
def seal(seal_png) -> SealImage:
    return decode_seal(seal_png)


@pytest.fixture
def odd_seal(odd_seal_png) -> SealImage:
    return decode_seal(odd_seal_png)
