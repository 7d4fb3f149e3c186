from __future__ import annotations


class ProcessingError(RuntimeError):
    """Base class for failures that abort a processing job."""


class TranscodeError(ProcessingError):
    """Raised when the transcoder exits with a non-zero status."""

    def __init__(self, exit_code: int, diagnostics: str = "") -> None:
        super().__init__(f"ffmpeg failed with code {exit_code}")
        self.exit_code = exit_code
        self.diagnostics = diagnostics


class RoomplanArchiveError(ProcessingError):
    """Raised when the room scan archive or its model container is unreadable."""


class ParametricModelNotFoundError(ProcessingError):
    """Raised when the archive does not contain the parametric model file."""
