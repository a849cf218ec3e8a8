"""Session orchestrator that drives upload, slicing, generation and export."""

from __future__ import annotations

import asyncio
import enum
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from straddle_seal.compositor import (
    PDF_MEDIA_TYPE,
    compose_straddle_seal,
    get_page_count,
)
from straddle_seal.exceptions import (
    CompositionError,
    ExportError,
    SessionBusyError,
    SliceError,
    StraddleSealError,
    UnsupportedMediaTypeError,
)
from straddle_seal.export import derive_output_filename, export_pdf
from straddle_seal.placement import (
    DEFAULT_DIAMETER_MM,
    DEFAULT_TARGET_DIAMETER_PT,
    MM_TO_PT,
    Anchor,
)
from straddle_seal.seal import (
    SealImage,
    SealSlice,
    check_seal_media_type,
    decode_seal,
    slice_seal,
)

logger = logging.getLogger(__name__)

DEFAULT_ANCHOR = Anchor.CENTER

# Progress schedule while generating: pages fill 10..60, then save, then done
_PROGRESS_PAGES_START = 10
_PROGRESS_PAGES_SPAN = 50
_PROGRESS_SAVED = 90
_PROGRESS_DONE = 100


class SessionStage(enum.Enum):
    IDLE = "idle"
    SEAL_LOADED = "seal-loaded"
    PDF_LOADED = "pdf-loaded"
    SLICED = "sliced"
    GENERATING = "generating"
    GENERATED = "generated"
    ERROR = "error"


class Step(enum.Enum):
    SEAL = "seal"
    PDF = "pdf"
    SLICE = "slice"
    GENERATE = "generate"


class StepStatus(enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    ERROR = "error"


class StatusLevel(enum.Enum):
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class SessionConfig:
    """Runtime configuration for a stamping session."""

    anchor: Anchor = DEFAULT_ANCHOR
    target_diameter_pt: float = DEFAULT_TARGET_DIAMETER_PT

    @classmethod
    def from_env(cls) -> SessionConfig:
        """Build configuration from environment variables."""
        anchor = Anchor.parse(
            os.environ.get("STRADDLE_SEAL_ANCHOR", DEFAULT_ANCHOR.value)
        )

        raw_diameter = os.environ.get(
            "STRADDLE_SEAL_DIAMETER_MM", str(DEFAULT_DIAMETER_MM)
        )
        try:
            diameter_mm = float(raw_diameter)
        except ValueError as e:
            raise ValueError(
                f"STRADDLE_SEAL_DIAMETER_MM must be a number: {raw_diameter!r}"
            ) from e
        if diameter_mm <= 0:
            raise ValueError(
                f"STRADDLE_SEAL_DIAMETER_MM must be positive: {raw_diameter!r}"
            )

        return cls(anchor=anchor, target_diameter_pt=diameter_mm * MM_TO_PT)


def _pending_steps() -> dict[Step, StepStatus]:
    return {step: StepStatus.PENDING for step in Step}


@dataclass
class SessionState:
    """Everything a session holds in memory between user actions."""

    seal_bytes: bytes | None = None
    seal: SealImage | None = None
    pdf_bytes: bytes | None = None
    pdf_filename: str | None = None
    page_count: int = 0
    slices: list[SealSlice] = field(default_factory=list)
    generated_pdf: bytes | None = None
    stage: SessionStage = SessionStage.IDLE
    steps: dict[Step, StepStatus] = field(default_factory=_pending_steps)
    status_message: str | None = None
    status_level: StatusLevel | None = None
    progress: int = 0

    @property
    def has_seal(self) -> bool:
        return self.seal is not None

    @property
    def has_pdf(self) -> bool:
        return self.pdf_bytes is not None

    @property
    def slices_current(self) -> bool:
        """True when there is exactly one slice for every page of the loaded PDF."""
        return bool(self.slices) and len(self.slices) == self.page_count

    @property
    def can_generate(self) -> bool:
        return self.has_seal and self.has_pdf and self.slices_current


class SessionOrchestrator:
    """Coordinates one user's seal + PDF through slicing and generation.

    Usage::

        session = SessionOrchestrator(SessionConfig.from_env())
        await session.load_seal(png_bytes, "image/png")
        await session.load_pdf(pdf_bytes, "application/pdf", "contract.pdf")
        await session.generate()
        session.export(Path("out"))

    Loading the second of the two inputs slices the seal automatically.
    A failed step is marked as errored and its exception propagates;
    artifacts of steps that already completed are kept so the failed step
    can be retried on its own.
    """

    def __init__(
        self,
        config: SessionConfig | None = None,
        state: SessionState | None = None,
    ) -> None:
        self.config = config or SessionConfig()
        self.state = state or SessionState()

    # -- Status helpers -------------------------------------------------------

    def _set_step(self, step: Step, status: StepStatus) -> None:
        self.state.steps[step] = status

    def _show_status(self, message: str, level: StatusLevel) -> None:
        self.state.status_message = message
        self.state.status_level = level

    def _set_progress(
        self, percent: int, callback: Callable[[int], None] | None
    ) -> None:
        percent = max(0, min(100, percent))
        self.state.progress = percent
        if callback is not None:
            callback(percent)

    def _refresh_stage(self) -> None:
        """Derive the stage from the artifacts currently held."""
        state = self.state
        if state.can_generate:
            state.stage = (
                SessionStage.GENERATED
                if state.generated_pdf is not None
                else SessionStage.SLICED
            )
        elif state.has_pdf:
            state.stage = SessionStage.PDF_LOADED
        elif state.has_seal:
            state.stage = SessionStage.SEAL_LOADED
        else:
            state.stage = SessionStage.IDLE

    def _fail(self, step: Step, message: str, exc: Exception) -> None:
        logger.error("%s: %s", message, exc)
        self._set_step(step, StepStatus.ERROR)
        self._show_status(f"{message}: {exc}", StatusLevel.ERROR)
        self.state.stage = SessionStage.ERROR

    def _discard_slices(self) -> None:
        """Drop slices and any generated PDF made from them."""
        state = self.state
        if state.slices or state.generated_pdf is not None:
            logger.debug("Discarding %d stale slice(s)", len(state.slices))
        state.slices = []
        state.generated_pdf = None
        state.progress = 0
        self._set_step(Step.SLICE, StepStatus.PENDING)
        self._set_step(Step.GENERATE, StepStatus.PENDING)

    def _ensure_idle(self, action: str) -> None:
        if self.state.stage is SessionStage.GENERATING:
            raise SessionBusyError(f"Cannot {action} while generation is running")

    async def _auto_slice(self) -> None:
        if self.state.has_seal and self.state.has_pdf and not self.state.slices:
            logger.debug("Seal and PDF both loaded, slicing automatically")
            await self.slice()

    # -- Operations -----------------------------------------------------------

    @property
    def output_filename(self) -> str:
        return derive_output_filename(self.state.pdf_filename)

    def set_anchor(self, anchor: Anchor | str) -> None:
        """Choose the vertical seal position used by the next generation."""
        self.config.anchor = Anchor.parse(anchor)
        logger.info("Anchor set to %s", self.config.anchor.value)

    async def load_seal(self, data: bytes, media_type: str | None) -> SealImage:
        """Validate and decode an uploaded seal image.

        Raises:
            UnsupportedMediaTypeError: If the upload is not a PNG.
            SealDecodeError: If the image cannot be decoded.
            SessionBusyError: If generation is running.
            SliceError: If automatic slicing fails afterwards.
        """
        self._ensure_idle("load a seal")
        try:
            check_seal_media_type(media_type)
        except UnsupportedMediaTypeError as exc:
            self._fail(Step.SEAL, "Please upload a PNG seal image", exc)
            raise

        self._set_step(Step.SEAL, StepStatus.IN_PROGRESS)
        self._show_status("Loading seal image...", StatusLevel.LOADING)
        try:
            seal = decode_seal(data)
        except StraddleSealError as exc:
            self._fail(Step.SEAL, "Failed to load seal image", exc)
            raise

        self.state.seal_bytes = data
        self.state.seal = seal
        self._discard_slices()
        self._set_step(Step.SEAL, StepStatus.COMPLETED)
        self._show_status("Seal image loaded", StatusLevel.SUCCESS)
        self._refresh_stage()
        logger.info("Seal loaded (%dx%d px)", seal.width_px, seal.height_px)

        await self._auto_slice()
        return seal

    async def load_pdf(
        self,
        data: bytes,
        media_type: str | None,
        filename: str | None = None,
    ) -> int:
        """Validate an uploaded PDF and read its page count.

        Returns:
            The number of pages in the PDF.

        Raises:
            UnsupportedMediaTypeError: If the upload is not a PDF.
            DocumentLoadError: If the PDF cannot be parsed.
            SessionBusyError: If generation is running.
            SliceError: If automatic slicing fails afterwards.
        """
        self._ensure_idle("load a PDF")
        if media_type != PDF_MEDIA_TYPE:
            exc = UnsupportedMediaTypeError(PDF_MEDIA_TYPE, media_type)
            self._fail(Step.PDF, "Please upload a PDF file", exc)
            raise exc

        self._set_step(Step.PDF, StepStatus.IN_PROGRESS)
        self._show_status("Loading PDF...", StatusLevel.LOADING)
        try:
            page_count = get_page_count(data)
        except StraddleSealError as exc:
            self._fail(Step.PDF, "Failed to load PDF", exc)
            raise

        self.state.pdf_bytes = data
        self.state.pdf_filename = filename
        self.state.page_count = page_count
        self._discard_slices()
        self._set_step(Step.PDF, StepStatus.COMPLETED)
        self._show_status(
            f"PDF loaded, {page_count} page(s)", StatusLevel.SUCCESS
        )
        self._refresh_stage()
        logger.info("PDF loaded: %s (%d pages)", filename or "<unnamed>", page_count)

        await self._auto_slice()
        return page_count

    async def slice(self) -> list[SealSlice]:
        """Cut the loaded seal into one slice per page of the loaded PDF.

        Slicing runs inline on the event loop without yielding, so the inputs
        cannot change before the slices are published.

        Raises:
            SessionBusyError: If generation is running.
            SliceError: If either input is missing or slicing fails.
        """
        self._ensure_idle("slice the seal")
        state = self.state
        if state.seal is None or not state.has_pdf:
            raise SliceError("A seal image and a PDF are required before slicing")

        self._discard_slices()
        self._set_step(Step.SLICE, StepStatus.IN_PROGRESS)
        self._show_status("Slicing seal...", StatusLevel.LOADING)
        try:
            slices = slice_seal(state.seal, state.page_count)
        except Exception as e:
            exc = SliceError(f"Failed to slice seal: {e}")
            self._fail(Step.SLICE, "Seal slicing failed", e)
            raise exc from e

        state.slices = slices
        self._set_step(Step.SLICE, StepStatus.COMPLETED)
        self._show_status("Seal sliced", StatusLevel.SUCCESS)
        self._refresh_stage()
        logger.info(
            "Seal sliced into %d slice(s) of %d px",
            len(slices),
            slices[0].width_px,
        )
        return slices

    async def generate(
        self, progress: Callable[[int], None] | None = None
    ) -> bytes:
        """Imprint the slices on every page and publish the stamped PDF.

        *progress* receives a monotonically increasing percentage. The
        stamped PDF is stored on the state only once it is fully saved.

        Raises:
            CompositionError: If preconditions fail or embedding/saving fails.
        """
        state = self.state
        if state.stage is SessionStage.GENERATING:
            raise CompositionError("Generation is already running")
        if not state.can_generate:
            raise CompositionError(
                "Upload a seal and a PDF and slice the seal before generating"
            )

        state.stage = SessionStage.GENERATING
        state.generated_pdf = None
        self._set_step(Step.GENERATE, StepStatus.IN_PROGRESS)
        self._show_status("Generating stamped PDF...", StatusLevel.LOADING)
        self._set_progress(0, progress)

        def on_page(done: int, total: int) -> None:
            percent = _PROGRESS_PAGES_START + round(
                done / total * _PROGRESS_PAGES_SPAN
            )
            self._set_progress(percent, progress)

        try:
            result = await compose_straddle_seal(
                state.pdf_bytes,
                state.slices,
                anchor=self.config.anchor,
                target_diameter_pt=self.config.target_diameter_pt,
                progress=on_page,
            )
        except StraddleSealError as exc:
            self._fail(Step.GENERATE, "PDF generation failed", exc)
            raise
        except Exception as e:
            exc = CompositionError(f"Unexpected error while generating: {e}")
            self._fail(Step.GENERATE, "PDF generation failed", e)
            raise exc from e
        except asyncio.CancelledError:
            logger.warning("PDF generation cancelled")
            self._set_step(Step.GENERATE, StepStatus.PENDING)
            self._show_status("PDF generation cancelled", StatusLevel.ERROR)
            self._set_progress(0, None)
            self._refresh_stage()
            raise
        self._set_progress(_PROGRESS_SAVED, progress)

        state.generated_pdf = result
        self._set_step(Step.GENERATE, StepStatus.COMPLETED)
        self._show_status("Stamped PDF generated", StatusLevel.SUCCESS)
        self._refresh_stage()
        self._set_progress(_PROGRESS_DONE, progress)
        logger.info(
            "Generated stamped PDF: %d pages, %d bytes", state.page_count, len(result)
        )
        return result

    def export(self, destination: str | os.PathLike[str]) -> Path:
        """Save the generated PDF to *destination* (a file or a directory).

        Raises:
            ExportError: If nothing has been generated or saving fails.
        """
        if self.state.generated_pdf is None:
            exc = ExportError("No generated PDF to export")
            logger.error("Export failed: %s", exc)
            self._show_status(str(exc), StatusLevel.ERROR)
            raise exc

        try:
            path = export_pdf(
                self.state.generated_pdf, destination, self.state.pdf_filename
            )
        except ExportError as exc:
            logger.error("Export failed: %s", exc)
            self._show_status(f"Failed to save PDF: {exc}", StatusLevel.ERROR)
            raise

        self._show_status(f"Saved {path.name}", StatusLevel.SUCCESS)
        return path
