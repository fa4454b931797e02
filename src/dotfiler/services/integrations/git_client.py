from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from ...domain.errors import CollaboratorError


LOG = logging.getLogger(__name__)


class GitClient:
    """
    Thin adapter over the git binary.

    The pattern engine only decides which paths to hand over; every index
    and working tree change happens here.
    """

    def __init__(self, command: Sequence[str] = ("git",)) -> None:
        if not command:
            raise ValueError("A git command must be configured.")
        self.command = list(command)

    def _run(self, args: List[str], cwd: Path, check: bool = True) -> subprocess.CompletedProcess:
        full_command = self.command + args
        LOG.debug("Running %s in %s", " ".join(full_command), cwd)
        try:
            return subprocess.run(
                full_command,
                capture_output=True,
                text=True,
                check=check,
                cwd=cwd,
            )
        except FileNotFoundError as exc:
            raise CollaboratorError(f"git executable not found: {self.command[0]}") from exc
        except subprocess.CalledProcessError as exc:
            LOG.error("git %s failed: %s", args[0], exc.stderr)
            message = (exc.stderr or "").strip() or f"exit status {exc.returncode}"
            raise CollaboratorError(f"git {args[0]} failed: {message}") from exc

    def init(self, path: Path) -> None:
        self._run(["init", "--quiet"], cwd=path)

    def current_repository_root(self, start: Path) -> Optional[Path]:
        result = self._run(["rev-parse", "--show-toplevel"], cwd=start, check=False)
        if result.returncode != 0:
            LOG.debug("No git repository around %s: %s", start, (result.stderr or "").strip())
            return None
        root = result.stdout.strip()
        return Path(root) if root else None

    def is_clean_index(self, repo_root: Path) -> bool:
        result = self._run(["diff", "--cached", "--quiet"], cwd=repo_root, check=False)
        if result.returncode not in (0, 1):
            raise CollaboratorError(f"git diff failed: {(result.stderr or '').strip()}")
        return result.returncode == 0

    def stage(self, repo_root: Path, *paths: Path) -> None:
        if not paths:
            return
        self._run(["add", "--"] + [str(path) for path in paths], cwd=repo_root)

    def unstage_and_delete(self, repo_root: Path, *paths: Path) -> None:
        if not paths:
            return
        self._run(["rm", "-r", "--quiet", "--"] + [str(path) for path in paths], cwd=repo_root)
