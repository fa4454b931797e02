from __future__ import annotations

from pathlib import Path

import pytest

from dotfiler.domain.errors import NotTrackedError
from dotfiler.domain.models import IgnoreFile
from dotfiler.services.patterns.inclusion import InclusionSynthesizer
from dotfiler.services.patterns.removal import RemovalSynthesizer
from dotfiler.services.patterns.resolver import resolve


@pytest.fixture()
def repo(tmp_path: Path) -> Path:
    root = tmp_path / "dotfiles"
    (root / "home" / ".config" / "nvim").mkdir(parents=True)
    (root / "home" / ".bashrc").write_text("", encoding="utf-8")
    (root / "home" / ".config" / "foo.conf").write_text("", encoding="utf-8")
    (root / "home" / ".config" / "nvim" / "init.lua").write_text("", encoding="utf-8")
    return root


def include(ignore_file: IgnoreFile, repo: Path, relative: str) -> IgnoreFile:
    updated, _ = InclusionSynthesizer().apply(ignore_file, resolve(repo / relative, repo, ignore_file))
    return updated


def exclude(ignore_file: IgnoreFile, repo: Path, relative: str) -> IgnoreFile:
    updated, _ = RemovalSynthesizer().apply(ignore_file, resolve(repo / relative, repo, ignore_file))
    return updated


def test_remove_drops_only_the_leaf_line(repo: Path) -> None:
    ignore_file = IgnoreFile(lines=["/home/**", "!/home/.bashrc", "!/home/.profile"])

    updated = exclude(ignore_file, repo, "home/.bashrc")

    assert updated.lines == ["/home/**", "!/home/.profile"]


def test_add_then_remove_top_level_file_round_trips(repo: Path) -> None:
    original = IgnoreFile.from_text("/home/**\n!/home/.profile\n")

    restored = exclude(include(original, repo, "home/.bashrc"), repo, "home/.bashrc")

    assert restored.to_text() == original.to_text()


def test_add_then_remove_nested_file_keeps_chain(repo: Path) -> None:
    original = IgnoreFile(lines=["/home/**"])

    restored = exclude(include(original, repo, "home/.config/foo.conf"), repo, "home/.config/foo.conf")

    assert restored.lines == ["/home/**", "!/home/.config/"]


def test_remove_directory_drops_directory_and_glob_lines(repo: Path) -> None:
    ignore_file = include(IgnoreFile(lines=["/home/**"]), repo, "home/.config/nvim")

    updated = exclude(ignore_file, repo, "home/.config/nvim")

    assert updated.lines == ["/home/**", "!/home/.config/"]


def test_remove_inside_glob_directory_is_rejected(repo: Path) -> None:
    ignore_file = include(IgnoreFile(lines=["/home/**"]), repo, "home/.config/nvim")
    before = ignore_file.to_text()

    with pytest.raises(NotTrackedError) as excinfo:
        exclude(ignore_file, repo, "home/.config/nvim/init.lua")

    assert "!/home/.config/nvim/**" in str(excinfo.value)
    assert ignore_file.to_text() == before


def test_remove_untracked_path_fails(repo: Path) -> None:
    ignore_file = IgnoreFile(lines=["/home/**"])

    with pytest.raises(NotTrackedError) as excinfo:
        exclude(ignore_file, repo, "home/.bashrc")

    assert "!/home/.bashrc" in str(excinfo.value)


def test_remove_intermediate_directory_drops_every_line_below_it(repo: Path) -> None:
    ignore_file = include(IgnoreFile(lines=["/home/**", "!/home/.bashrc"]), repo, "home/.config/foo.conf")
    ignore_file = include(ignore_file, repo, "home/.config/nvim")

    updated = exclude(ignore_file, repo, "home/.config")

    assert updated.lines == ["/home/**", "!/home/.bashrc"]


def test_remove_directory_also_drops_redundant_lines_under_its_glob(repo: Path) -> None:
    ignore_file = IgnoreFile(
        lines=["/home/**", "!/home/.config/", "!/home/.config/nvim/", "!/home/.config/nvim/**", "!/home/.config/nvim/init.lua"]
    )

    updated = exclude(ignore_file, repo, "home/.config/nvim")

    assert updated.lines == ["/home/**", "!/home/.config/"]
