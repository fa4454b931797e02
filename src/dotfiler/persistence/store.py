from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from ..domain.errors import IgnoreFileError, IgnoreFileMissingError
from ..domain.models import IgnoreFile


LOG = logging.getLogger(__name__)


README_TEMPLATE = """\
# Dotfiles

This repository is managed with dotfiler.

Your home directory is bind mounted at `{mount_dir}/`, so every change made on
either side shows up on the other. Everything under the mount point is ignored
by default and tracked files are re-included one by one in `{ignore_file}`.

    dotfiler mount            # mount $HOME at {mount_dir}/
    dotfiler add FILE...      # start tracking files or directories
    dotfiler rm FILE...       # stop tracking and delete them
    dotfiler umount           # undo the mount
"""


class IgnoreFileStore:
    """
    Reads and atomically rewrites the ignore file at the repository root.

    Every read goes back to disk: git commands run between two edits may
    have changed the file.
    """

    def __init__(self, repo_root: Path, file_name: str = ".gitignore") -> None:
        self.repo_root = repo_root
        self.path = repo_root / file_name

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> IgnoreFile:
        if not self.exists():
            raise IgnoreFileMissingError(f"No ignore file found at {self.path}. Run 'dotfiler init' first.", self.path)
        try:
            # bytes first: text mode would fold CRLF endings into LF
            text = self.path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise IgnoreFileError(f"Unable to read {self.path}: {exc}", self.path) from exc
        return IgnoreFile.from_text(text)

    def load_or_create(self) -> IgnoreFile:
        if not self.exists():
            LOG.debug("Starting a new ignore file at %s", self.path)
            return IgnoreFile()
        return self.load()

    def persist(self, ignore_file: IgnoreFile) -> None:
        """
        Replace the ignore file with `ignore_file` in one rename.

        The temporary file lives next to the target so `os.replace` never
        crosses a filesystem boundary.
        """

        tmp_name: Optional[str] = None
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
                handle.write(ignore_file.to_text())
                handle.flush()
                os.fsync(handle.fileno())
            if self.path.exists():
                os.chmod(tmp_name, self.path.stat().st_mode & 0o7777)
            else:
                os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise IgnoreFileError(f"Unable to write {self.path}: {exc}", self.path) from exc
        LOG.debug("Wrote %d lines to %s", len(ignore_file.lines), self.path)


def ensure_readme(repo_root: Path, file_name: str, mount_dir: str, ignore_file_name: str) -> Optional[Path]:
    """
    Write the companion README once. Returns its path when it was created.
    """

    readme = repo_root / file_name
    if readme.exists():
        return None
    readme.write_text(README_TEMPLATE.format(mount_dir=mount_dir, ignore_file=ignore_file_name), encoding="utf-8")
    return readme
