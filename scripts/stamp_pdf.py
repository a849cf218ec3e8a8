#!/usr/bin/env python3
"""Visual verification tool for straddle seals.

Usage:
    # Generate a 5-page A4 sample PDF and a sample seal
    python scripts/stamp_pdf.py --generate-sample sample.pdf --pages 5
    python scripts/stamp_pdf.py --generate-seal seal.png

    # Stamp a PDF (output name derived from the input when OUTPUT is a directory)
    python scripts/stamp_pdf.py seal.png sample.pdf out/

    # Seal in the upper third, 40 mm across
    python scripts/stamp_pdf.py seal.png sample.pdf out/ \
        --anchor upper-third --diameter-mm 40
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Allow running from project root without install
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from PIL import Image, ImageDraw

from straddle_seal.exceptions import StraddleSealError
from straddle_seal.placement import MM_TO_PT, Anchor
from straddle_seal.seal import guess_media_type
from straddle_seal.session import SessionConfig, SessionOrchestrator

logger = logging.getLogger("stamp_pdf")


def generate_sample_pdf(path: Path, pages: int) -> None:
    """Generate a simple multi-page A4 PDF with numbered pages."""
    from reportlab.lib.pagesizes import A4
    from reportlab.pdfgen import canvas

    w, h = A4
    c = canvas.Canvas(str(path), pagesize=(w, h))
    for number in range(1, pages + 1):
        c.setFont("Helvetica", 24)
        c.drawString(72, h - 72, f"Sample Document, page {number} of {pages}")
        c.setFont("Helvetica", 12)
        c.drawString(72, h - 108, "Straddle seal verification page.")
        c.showPage()
    c.save()
    print(f"Generated sample PDF: {path} ({pages} pages)")


def generate_sample_seal(path: Path, size: int = 400) -> None:
    """Draw a red ring seal on a transparent background."""
    img = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    red = (200, 20, 20, 230)
    margin = size // 20
    draw.ellipse(
        (margin, margin, size - margin, size - margin),
        outline=red,
        width=size // 25,
    )
    star = size // 6
    cx = cy = size // 2
    draw.polygon(
        [(cx, cy - star), (cx + star, cy + star), (cx - star, cy + star)],
        fill=red,
    )
    img.save(path, format="PNG")
    print(f"Generated sample seal: {path} ({size}x{size} px)")


async def stamp(args: argparse.Namespace) -> Path:
    config = SessionConfig(
        anchor=Anchor.parse(args.anchor),
        target_diameter_pt=args.diameter_mm * MM_TO_PT,
    )
    session = SessionOrchestrator(config)

    seal_path = Path(args.seal)
    pdf_path = Path(args.pdf)
    await session.load_seal(seal_path.read_bytes(), guess_media_type(seal_path.name))
    await session.load_pdf(
        pdf_path.read_bytes(), guess_media_type(pdf_path.name), pdf_path.name
    )

    def report(percent: int) -> None:
        print(f"\rGenerating... {percent:3d}%", end="", flush=True)

    await session.generate(progress=report)
    print()
    return session.export(args.output)


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )

    parser = argparse.ArgumentParser(
        description="Visual straddle seal verification tool",
    )
    parser.add_argument("seal", nargs="?", help="Seal PNG")
    parser.add_argument("pdf", nargs="?", help="Input PDF")
    parser.add_argument("output", nargs="?", help="Output PDF or directory")
    parser.add_argument(
        "--generate-sample", metavar="PATH",
        help="Generate a sample PDF",
    )
    parser.add_argument(
        "--pages", type=int, default=5,
        help="Page count for --generate-sample",
    )
    parser.add_argument(
        "--generate-seal", metavar="PATH",
        help="Generate a sample seal PNG",
    )
    parser.add_argument(
        "--anchor", choices=[a.value for a in Anchor], default=Anchor.CENTER.value,
    )
    parser.add_argument(
        "--diameter-mm", type=float, default=42.0, help="Seal diameter in mm",
    )

    args = parser.parse_args()

    if args.generate_sample or args.generate_seal:
        if args.generate_sample:
            generate_sample_pdf(Path(args.generate_sample), args.pages)
        if args.generate_seal:
            generate_sample_seal(Path(args.generate_seal))
        return

    if not args.seal or not args.pdf or not args.output:
        parser.error(
            "seal, pdf and output paths required "
            "(or use --generate-sample / --generate-seal)",
        )

    for path in (args.seal, args.pdf):
        if not Path(path).exists():
            print(f"Error: {path} not found", file=sys.stderr)
            sys.exit(1)

    try:
        output = asyncio.run(stamp(args))
    except StraddleSealError as exc:
        logger.error("Stamping failed: %s", exc)
        sys.exit(1)
    print(f"Output: {output}")


if __name__ == "__main__":
    main()
