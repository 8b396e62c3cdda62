"""
Error types for octachain.

Every error is raised synchronously by the call that detected it. Admission
errors reject a single file; anything raised while a batch is being
generated aborts the whole batch.
"""

from typing import Optional


class SlicerError(Exception):
    """Base error for sample chain generation."""
    pass


class InputNotFoundError(SlicerError, FileNotFoundError):
    """Raised when an input path does not exist or cannot be read."""

    def __init__(self, path: str, reason: str = "File not found") -> None:
        super().__init__(f"{reason}: {path}")
        self.path = path


class FormatMismatchError(SlicerError):
    """
    Raised when an input WAV does not match the run's audio format.

    Attributes:
        path: Offending file
        expected: AudioSpec the run requires
        actual: AudioSpec read from the file (None if it could not be described)
    """

    def __init__(self, path: str, expected, actual=None) -> None:
        detail = f"expected {expected}"
        if actual is not None:
            detail += f", got {actual}"
        super().__init__(
            f"Invalid file (invalid sample rate / bit depth / channel count): {path} ({detail})"
        )
        self.path = path
        self.expected = expected
        self.actual = actual


class CapacityExceededError(SlicerError):
    """Raised when a batch already holds the maximum number of slices."""

    def __init__(self, capacity: int, path: Optional[str] = None) -> None:
        message = f"No more slice slots available (capacity {capacity})"
        if path is not None:
            message += f": {path}"
        super().__init__(message)
        self.capacity = capacity
        self.path = path


class DecodeError(SlicerError):
    """Raised when a WAV file cannot be decoded."""
    pass


class WriteError(SlicerError):
    """Raised when samples cannot be written to the output WAV."""
    pass


class OutputIoError(SlicerError, OSError):
    """Raised when output files cannot be removed, created or written."""
    pass
