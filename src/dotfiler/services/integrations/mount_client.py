from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import List, Sequence

from ...domain.errors import CollaboratorError


LOG = logging.getLogger(__name__)


def _run(command: List[str], input_text: str | None = None) -> None:
    LOG.debug("Running %s", " ".join(command))
    try:
        subprocess.run(
            command,
            input=input_text,
            capture_output=True,
            text=True,
            check=True,
        )
    except FileNotFoundError as exc:
        raise CollaboratorError(f"Command not found: {command[0]}") from exc
    except subprocess.CalledProcessError as exc:
        LOG.error("%s failed: %s", command[0], exc.stderr)
        message = (exc.stderr or "").strip() or f"exit status {exc.returncode}"
        raise CollaboratorError(f"{' '.join(command)} failed: {message}") from exc


class MountClient:
    """
    Bind mounts a directory (normally $HOME) inside the repository.

    Kernel bind mounts go through `mount --bind` with the configured sudo
    prefix; the FUSE variant uses bindfs and needs no privileges.
    """

    def __init__(self, sudo_command: Sequence[str] = ("sudo",)) -> None:
        self.sudo_command = list(sudo_command)

    @staticmethod
    def is_mounted(target: Path) -> bool:
        return os.path.ismount(target)

    def bind_mount(self, source: Path, target: Path, fuse: bool = False) -> None:
        if fuse:
            _run(["bindfs", str(source), str(target)])
        else:
            _run(self.sudo_command + ["mount", "--bind", str(source), str(target)])
        LOG.info("Mounted %s at %s", source, target)

    def bind_unmount(self, target: Path, fuse: bool = False) -> None:
        if fuse:
            _run(["fusermount", "-u", str(target)])
        else:
            _run(self.sudo_command + ["umount", str(target)])
        LOG.info("Unmounted %s", target)


def _escape(path: Path) -> str:
    # fstab fields are whitespace separated; octal escapes keep paths intact.
    return str(path).replace("\\", "\\134").replace(" ", "\\040").replace("\t", "\\011")


def _unescape(field: str) -> str:
    return field.replace("\\040", " ").replace("\\011", "\t").replace("\\134", "\\")


def fstab_entry(source: Path, target: Path, fuse: bool = False) -> str:
    if fuse:
        return f"bindfs#{_escape(source)} {_escape(target)} fuse defaults 0 0"
    return f"{_escape(source)} {_escape(target)} none bind 0 0"


def add_fstab_entry(text: str, entry: str) -> str:
    lines = text.splitlines()
    if entry in lines:
        return text
    if text and not text.endswith("\n"):
        text += "\n"
    return text + entry + "\n"


def remove_fstab_entries(text: str, target: Path) -> str:
    kept: List[str] = []
    removed = 0
    for line in text.splitlines():
        fields = line.split()
        if len(fields) >= 2 and not line.lstrip().startswith("#") and Path(_unescape(fields[1])) == target:
            removed += 1
            continue
        kept.append(line)
    if not removed:
        return text
    return "\n".join(kept) + "\n" if kept else ""


class FstabEditor:
    """
    Adds or removes dotfiler bind entries in the system fstab.

    The file is normally root owned, so new content is written through
    `sudo tee` instead of opening it directly.
    """

    def __init__(self, path: Path = Path("/etc/fstab"), sudo_command: Sequence[str] = ("sudo",)) -> None:
        self.path = path
        self.sudo_command = list(sudo_command)

    def read(self) -> str:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""
        except OSError as exc:
            raise CollaboratorError(f"Unable to read {self.path}: {exc}") from exc

    def _write(self, text: str) -> None:
        _run(self.sudo_command + ["tee", str(self.path)], input_text=text)

    def add(self, source: Path, target: Path, fuse: bool = False) -> bool:
        current = self.read()
        updated = add_fstab_entry(current, fstab_entry(source, target, fuse))
        if updated == current:
            LOG.debug("fstab already mounts %s", target)
            return False
        self._write(updated)
        return True

    def remove(self, target: Path) -> bool:
        current = self.read()
        updated = remove_fstab_entries(current, target)
        if updated == current:
            LOG.debug("fstab has no entry for %s", target)
            return False
        self._write(updated)
        return True
