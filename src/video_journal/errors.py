from __future__ import annotations


class VideoJournalError(RuntimeError):
    """Base class for every failure surfaced by the video journal pipeline."""


class InputValidationError(VideoJournalError):
    """Raised when user input is rejected before any stage runs."""


class StyleGuideNotFoundError(InputValidationError):
    """Raised when an explicitly requested style guide does not exist."""


class ConfigurationError(VideoJournalError):
    """Raised for malformed configuration or an unknown backend."""


class DependencyNotFoundError(VideoJournalError):
    """Raised when an external binary or model file is missing."""


class ExternalProcessError(VideoJournalError):
    """Raised when an external process or service fails."""

    def __init__(self, message: str, *, output: str | None = None) -> None:
        super().__init__(message)
        self.output = output


class ExternalTimeoutError(ExternalProcessError):
    """Raised when an external process exceeds its time budget."""

    def __init__(self, message: str, *, timeout: float | None = None, output: str | None = None) -> None:
        super().__init__(message, output=output)
        self.timeout = timeout


class EmptyResultError(VideoJournalError):
    """Raised when a stage succeeds at the process level but yields nothing."""


class StageError(VideoJournalError):
    """Wraps a stage failure with the label of the stage that produced it."""

    def __init__(self, stage: str, cause: BaseException) -> None:
        super().__init__(f"{stage} failed: {cause}")
        self.stage = stage
        self.cause = cause
