from __future__ import annotations

from pathlib import Path
from typing import Optional


class DotfilerError(RuntimeError):
    """
    Base class for every error the tool reports to the user.

    `fatal` errors abort the whole invocation; the others are recovered at the
    per-path loop boundary in `add`, `rm` and `check`.
    """

    fatal = False

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path


class NotFoundError(DotfilerError):
    """Raised when a target path does not exist."""


class IgnoreFileMissingError(NotFoundError):
    """Raised when the repository has no ignore file to edit."""

    fatal = True


class IgnoreFileError(DotfilerError):
    """Raised when the ignore file cannot be read or written."""

    fatal = True


class OutsideRepositoryError(DotfilerError):
    """Raised when a path lies outside the repository root."""


class NoBaseFoundError(DotfilerError):
    """Raised when a path is not under any initialized mount point."""


class NotTrackedError(DotfilerError):
    """Raised when a removal target has no matching re-include line."""


class AlreadyTrackedError(DotfilerError):
    """Raised when a pattern line would be written twice."""


class AnchorNotFoundError(DotfilerError):
    """
    Raised when the line a new pattern must follow is missing.

    Callers always insert ancestors first, so this means the ignore file was
    changed underneath us and nothing should be persisted.
    """

    fatal = True


class CollaboratorError(DotfilerError):
    """Raised when git, mount or another external command fails."""


class RepositoryError(DotfilerError):
    """Raised when the working directory is not a usable dotfiles repository."""

    fatal = True


class MountError(DotfilerError):
    """Raised when a mount point is not in the state a command expects."""

    fatal = True
