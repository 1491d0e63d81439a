"""Error types raised by cakecutter.

Every failure that terminates a run is a ``CakecutterError`` subclass.  Each
class carries the process exit code the command line entry point uses when
the error reaches it.
"""

from __future__ import annotations

from pathlib import Path


class CakecutterError(Exception):
    """Base class for all fatal cakecutter errors.

    ``destination`` is only set for failures after the destination directory
    was prepared; ``rolled_back`` tells whether that output was removed.
    """

    exit_code: int = 1

    def __init__(self, message: str) -> None:
        self.message = message
        self.destination: Path | None = None
        self.rolled_back = False
        super().__init__(message)

    @property
    def kind(self) -> str:
        """Short classification used when reporting the error."""
        return type(self).__name__


class SourceConfigError(CakecutterError):
    """The template's ``cakecutter.json`` is missing, unreadable or malformed."""

    exit_code = 2


class TemplateSourceError(CakecutterError):
    """The template argument cannot be classified or materialized locally."""

    exit_code = 2


class DestinationResolutionError(CakecutterError):
    """No usable project-root placeholder directory was found."""

    exit_code = 3


class DestinationExistsError(CakecutterError):
    """The destination directory exists and overwriting is not allowed."""

    exit_code = 4

    def __init__(self, destination: str | Path) -> None:
        super().__init__(
            f"Output directory {destination} exists but overwrite_if_exists is false"
        )
        self.path = Path(destination)


class RenderError(CakecutterError):
    """Placeholder substitution failed for a path, a name or a file body."""

    exit_code = 5

    def __init__(self, message: str, source: str = "") -> None:
        self.source = source
        super().__init__(f"{source}: {message}" if source else message)


class TemplateIOError(CakecutterError):
    """A filesystem read, write, create or delete failed."""

    exit_code = 6

    def __init__(self, message: str, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else None
        super().__init__(message)
