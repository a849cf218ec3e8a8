"""Saving the generated PDF to disk."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from straddle_seal.exceptions import ExportError

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_FILENAME = "带骑缝章的文档.pdf"
STAMPED_SUFFIX = "（已盖章）"

_PDF_SUFFIX_RE = re.compile(r"\.pdf\Z", re.IGNORECASE)


def derive_output_filename(original_filename: str | None) -> str:
    """Return ``<stem>（已盖章）.pdf`` for an uploaded PDF name.

    The stem is the original name with a trailing ``.pdf`` removed,
    case-insensitively. Without an original name the default is used.
    """
    if not original_filename:
        return DEFAULT_OUTPUT_FILENAME
    stem = _PDF_SUFFIX_RE.sub("", Path(original_filename).name)
    return f"{stem}{STAMPED_SUFFIX}.pdf"


def export_pdf(
    pdf_bytes: bytes,
    destination: str | os.PathLike[str],
    original_filename: str | None = None,
) -> Path:
    """Write *pdf_bytes* to *destination* and return the final path.

    If *destination* is an existing directory, the file is named with
    :func:`derive_output_filename`. The bytes are written to a temporary
    sibling first, then moved into place.

    Raises:
        ExportError: If there is nothing to export or writing fails.
    """
    if not pdf_bytes:
        raise ExportError("No generated PDF to export")

    target = Path(destination)
    if target.is_dir():
        target = target / derive_output_filename(original_filename)

    temp_path = target.with_name(f".{target.name}.tmp")
    try:
        temp_path.write_bytes(pdf_bytes)
        temp_path.replace(target)
    except OSError as e:
        temp_path.unlink(missing_ok=True)
        raise ExportError(f"Failed to save {target}: {e}") from e

    logger.info("Saved stamped PDF to %s (%d bytes)", target, len(pdf_bytes))
    return target
