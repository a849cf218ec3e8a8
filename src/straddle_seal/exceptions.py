"""Exception hierarchy for straddle-seal."""


class StraddleSealError(Exception):
    """Base exception for all straddle-seal errors."""


class UnsupportedMediaTypeError(StraddleSealError):
    """Raised when an upload's declared media type is not the expected one."""

    def __init__(self, expected: str, actual: str | None) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Unsupported media type {actual or 'unknown'}: expected {expected}"
        )


class SealDecodeError(StraddleSealError):
    """Raised when the seal image cannot be decoded."""


class DocumentLoadError(StraddleSealError):
    """Raised when the PDF document cannot be parsed."""


class InvalidPageCountError(StraddleSealError):
    """Raised when slicing is requested for fewer than one page."""


class SliceError(StraddleSealError):
    """Raised when the slicing batch fails."""


class CompositionError(StraddleSealError):
    """Raised when embedding slices or serializing the PDF fails."""


class ExportError(StraddleSealError):
    """Raised when the generated PDF cannot be saved."""


class SessionBusyError(StraddleSealError):
    """Raised when an input is changed while generation is running."""
