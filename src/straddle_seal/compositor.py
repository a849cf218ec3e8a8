"""PDF compositor: draws slice overlays with ReportLab and merges them with pikepdf."""

from __future__ import annotations

import asyncio
import contextlib
import io
import logging
from collections.abc import Callable, Sequence

import pikepdf
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from straddle_seal.exceptions import CompositionError, DocumentLoadError
from straddle_seal.placement import (
    DEFAULT_TARGET_DIAMETER_PT,
    Anchor,
    PageGeometry,
    PlacementSpec,
    compute_placement,
)
from straddle_seal.seal import SealSlice

logger = logging.getLogger(__name__)

PDF_MEDIA_TYPE = "application/pdf"

ProgressCallback = Callable[[int, int], None]


def _page_geometry(page: pikepdf.Page) -> PageGeometry:
    box = page.mediabox
    width = float(box[2]) - float(box[0])
    height = float(box[3]) - float(box[1])
    return PageGeometry(width_pt=width, height_pt=height)


def get_page_geometries(pdf_bytes: bytes) -> list[PageGeometry]:
    """Read the MediaBox of every page and return their sizes in points.

    Raises:
        DocumentLoadError: If the PDF cannot be read or has no pages.
    """
    try:
        with pikepdf.open(io.BytesIO(pdf_bytes)) as pdf:
            geometries = [_page_geometry(page) for page in pdf.pages]
    except pikepdf.PasswordError as e:
        raise DocumentLoadError(f"PDF is encrypted: {e}") from e
    except pikepdf.PdfError as e:
        raise DocumentLoadError(f"Invalid PDF: {e}") from e

    if not geometries:
        raise DocumentLoadError("PDF has no pages")
    return geometries


def get_page_count(pdf_bytes: bytes) -> int:
    """Return the number of pages in the PDF.

    Raises:
        DocumentLoadError: If the PDF cannot be read or has no pages.
    """
    return len(get_page_geometries(pdf_bytes))


def generate_slice_overlay(
    page: PageGeometry,
    seal_slice: SealSlice,
    placement: PlacementSpec,
) -> bytes:
    """Generate a transparent one-page PDF with *seal_slice* drawn at *placement*.

    Raises:
        CompositionError: If the page size is invalid or drawing fails.
    """
    if page.width_pt <= 0 or page.height_pt <= 0:
        raise CompositionError(
            f"Invalid page dimensions: {page.width_pt}x{page.height_pt}"
        )

    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=(page.width_pt, page.height_pt))
    try:
        c.drawImage(
            ImageReader(io.BytesIO(seal_slice.png_bytes)),
            placement.x_pt,
            placement.y_pt,
            width=placement.scaled_width_pt,
            height=placement.scaled_height_pt,
            mask="auto",
        )
        c.save()
    except (OSError, ValueError) as e:
        raise CompositionError(
            f"Failed to draw slice {seal_slice.index}: {e}"
        ) from e
    return buf.getvalue()


async def compose_straddle_seal(
    pdf_bytes: bytes,
    slices: Sequence[SealSlice],
    anchor: Anchor | str | None = Anchor.CENTER,
    target_diameter_pt: float = DEFAULT_TARGET_DIAMETER_PT,
    progress: ProgressCallback | None = None,
) -> bytes:
    """Imprint ``slices[i]`` on page ``i`` of the PDF and return the new PDF.

    Pages are processed strictly in order. *progress* is called with
    ``(pages_done, page_count)`` after each page.

    Args:
        pdf_bytes: Bytes of the original document PDF.
        slices: One slice per page, ordered by page index.
        anchor: Vertical position of the seal strip.
        target_diameter_pt: Real-world seal diameter in points.
        progress: Optional per-page progress callback.

    Returns:
        Bytes of the stamped PDF, same page count and order as the input.

    Raises:
        DocumentLoadError: If the original PDF cannot be opened.
        CompositionError: If slices do not match the pages, or merging fails.
    """
    anchor = Anchor.parse(anchor)

    with contextlib.ExitStack() as stack:
        try:
            pdf = stack.enter_context(pikepdf.open(io.BytesIO(pdf_bytes)))
        except pikepdf.PasswordError as e:
            raise DocumentLoadError(f"PDF is encrypted: {e}") from e
        except pikepdf.PdfError as e:
            raise DocumentLoadError(f"Invalid PDF: {e}") from e

        page_count = len(pdf.pages)
        if len(slices) != page_count:
            raise CompositionError(
                f"Slice count {len(slices)} does not match page count {page_count}"
            )

        for i, page in enumerate(pdf.pages):
            seal_slice = slices[i]
            if seal_slice.index != i:
                raise CompositionError(
                    f"Slice at position {i} is for page {seal_slice.index}"
                )

            geometry = _page_geometry(page)
            placement = compute_placement(
                seal_slice, geometry, anchor, target_diameter_pt
            )
            overlay_pdf = generate_slice_overlay(geometry, seal_slice, placement)

            try:
                # Foreign stream data is read at save time; keep overlays open
                overlay = stack.enter_context(pikepdf.open(io.BytesIO(overlay_pdf)))
                page.add_overlay(overlay.pages[0], pikepdf.Rectangle(page.mediabox))
            except pikepdf.PdfError as e:
                raise CompositionError(f"Failed to merge page {i + 1}: {e}") from e

            logger.debug(
                "Page %d/%d: slice at (%.2f, %.2f) size %.2fx%.2f pt",
                i + 1,
                page_count,
                placement.x_pt,
                placement.y_pt,
                placement.scaled_width_pt,
                placement.scaled_height_pt,
            )
            if progress is not None:
                progress(i + 1, page_count)
            await asyncio.sleep(0)

        try:
            buf = io.BytesIO()
            pdf.save(buf)
        except pikepdf.PdfError as e:
            raise CompositionError(f"Failed to save PDF: {e}") from e

    logger.info("Imprinted straddle seal on %d page(s)", page_count)
    return buf.getvalue()
