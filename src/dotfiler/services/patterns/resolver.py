from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Tuple

from ...domain.errors import NoBaseFoundError, NotFoundError, OutsideRepositoryError
from ...domain.models import IgnoreFile, ResolvedTarget, split_components
from .pattern_store import find_base


LOG = logging.getLogger(__name__)


def absolute(path: Path, cwd: Path) -> Path:
    """Absolute, `..`-free form of `path` without following symlinks."""
    if not path.is_absolute():
        path = cwd / path
    return Path(os.path.normpath(path))


def relative_components(path: Path, repo_root: Path) -> Tuple[str, ...]:
    root = Path(os.path.normpath(repo_root))
    try:
        return split_components(path.relative_to(root).as_posix())
    except ValueError:
        pass

    # The caller may reach the repository through a symlinked directory.
    # Resolve the parent only so a symlinked leaf is still tracked as itself.
    try:
        resolved = path.parent.resolve() / path.name
        return split_components(resolved.relative_to(root.resolve()).as_posix())
    except ValueError as exc:
        raise OutsideRepositoryError(f"{path} is outside the repository {repo_root}.", path) from exc


def resolve(path: Path, repo_root: Path, ignore_file: IgnoreFile) -> ResolvedTarget:
    if not os.path.lexists(path):
        raise NotFoundError(f"{path}: no such file or directory.", path)

    components = relative_components(path, repo_root)
    base = find_base(ignore_file, components)
    if base is None:
        raise NoBaseFoundError(f"{path} is not under any mount point initialized in this repository.", path)

    fragments = components[len(base.components) :]
    is_directory = path.is_dir() and not path.is_symlink()
    LOG.debug("Resolved %s to base '%s' fragments %s (directory=%s)", path, base.base, fragments, is_directory)
    return ResolvedTarget(base=base, fragments=fragments, is_directory=is_directory, path=path)
