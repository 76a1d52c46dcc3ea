from typing import Optional


class LogoKitError(Exception):
    """
    Base class for every failure that crosses the kit builder's boundary.

    `stage` names the pipeline step that failed (source, master, archive, ...)
    and `cause` keeps the underlying exception for observability. The cause is
    also chained via `raise ... from` at the raise sites.
    """

    stage: Optional[str] = None

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if stage is not None:
            self.stage = stage
        self.cause = cause

    def __str__(self) -> str:
        text = f"[{self.stage}] {self.message}" if self.stage else self.message
        if self.cause is not None:
            text += f" ({type(self.cause).__name__}: {self.cause})"
        return text


class InvalidReferenceError(LogoKitError):
    """Missing, empty or unrecognised image reference."""

    stage = "input"


class SourceFetchError(LogoKitError):
    stage = "source"


class InvalidEncodingError(LogoKitError):
    stage = "source"


class UnsupportedFormatError(LogoKitError):
    stage = "source"


class MasterProductionError(LogoKitError):
    stage = "master"


class ArchiveEncodingError(LogoKitError):
    stage = "archive"


class GenerationError(LogoKitError):
    stage = "generate"
