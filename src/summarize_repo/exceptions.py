from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SummarizeRepoError(Exception):
    """Base exception for errors in the summarize_repo module."""

    @property
    def message(self) -> str:
        """Human readable description suitable for display."""
        return self.__doc__ or type(self).__name__

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class NoFilesSelectedError(SummarizeRepoError):
    """Raised when a summary is requested without any selected file."""

    @property
    def message(self) -> str:
        return "Please select one or more files to generate a summary."


@dataclass(frozen=True)
class FileReadError(SummarizeRepoError):
    """Raised when a file cannot be read as UTF-8 text."""

    name: str

    @property
    def message(self) -> str:
        return f"Could not read file: {self.name}"


@dataclass(frozen=True)
class SummaryGenerationFailedError(SummarizeRepoError):
    """Raised when composing a report fails for a reason other than I/O."""

    reason: str

    @property
    def message(self) -> str:
        return f"Summary generation failed: {self.reason}"


@dataclass(frozen=True)
class StoreCorruptedError(SummarizeRepoError):
    """Raised when the persisted summary store cannot be decoded."""

    path: Path

    @property
    def message(self) -> str:
        return f"The summary store at {self.path} is corrupted."
