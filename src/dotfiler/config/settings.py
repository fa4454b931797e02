from __future__ import annotations

from dataclasses import dataclass, field
import os
import shlex
from pathlib import Path
from typing import Tuple


def _home() -> Path:
    return Path.home()


@dataclass
class DotfilerSettings:
    """
    Central configuration for the dotfiles repository commands.
    """

    home_dir: Path = field(default_factory=_home)
    ignore_file_name: str = ".gitignore"
    readme_file_name: str = "README.md"
    default_mount_dir: str = "home"
    git_command: Tuple[str, ...] = ("git",)
    sudo_command: Tuple[str, ...] = ("sudo",)
    fstab_path: Path = Path("/etc/fstab")
    use_fuse: bool = False


def get_settings() -> DotfilerSettings:
    settings = DotfilerSettings()

    home = os.getenv("DOTFILER_HOME")
    if home:
        settings.home_dir = Path(home).expanduser()

    ignore_file = os.getenv("DOTFILER_IGNORE_FILE")
    if ignore_file:
        settings.ignore_file_name = ignore_file

    readme = os.getenv("DOTFILER_README_FILE")
    if readme:
        settings.readme_file_name = readme

    mount_dir = os.getenv("DOTFILER_MOUNT_DIR")
    if mount_dir:
        settings.default_mount_dir = mount_dir

    raw_git = os.getenv("DOTFILER_GIT")
    if raw_git:
        settings.git_command = tuple(shlex.split(raw_git))

    # An empty value is meaningful here: run mount commands without sudo.
    raw_sudo = os.getenv("DOTFILER_SUDO")
    if raw_sudo is not None:
        settings.sudo_command = tuple(shlex.split(raw_sudo))

    fstab = os.getenv("DOTFILER_FSTAB")
    if fstab:
        settings.fstab_path = Path(fstab)

    use_fuse = os.getenv("DOTFILER_FUSE")
    if use_fuse is not None:
        settings.use_fuse = use_fuse.lower() in {"1", "true", "yes"}

    return settings
