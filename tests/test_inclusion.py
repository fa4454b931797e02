from __future__ import annotations

from pathlib import Path

from dotfiler.domain.models import IgnoreFile
from dotfiler.services.patterns.inclusion import InclusionSynthesizer
from dotfiler.services.patterns.resolver import resolve


def make_repo(tmp_path: Path) -> Path:
    repo = tmp_path / "dotfiles"
    (repo / "home" / ".config" / "nvim").mkdir(parents=True)
    (repo / "home" / ".bashrc").write_text("alias ll='ls -l'\n", encoding="utf-8")
    (repo / "home" / ".config" / "foo.conf").write_text("x=1\n", encoding="utf-8")
    (repo / "home" / ".config" / "nvim" / "init.lua").write_text("-- nvim\n", encoding="utf-8")
    return repo


def add(ignore_file: IgnoreFile, repo: Path, relative: str) -> IgnoreFile:
    target = resolve(repo / relative, repo, ignore_file)
    updated, _ = InclusionSynthesizer().apply(ignore_file, target)
    return updated


def assert_chain_order(ignore_file: IgnoreFile) -> None:
    for position, line in enumerate(ignore_file.lines):
        if not line.startswith("!/"):
            continue
        parts = line[2:].rstrip("/").split("/")
        base_line = f"/{parts[0]}/**"
        assert ignore_file.index(base_line) < position
        for depth in range(2, len(parts)):
            parent = "!/" + "/".join(parts[:depth]) + "/"
            assert ignore_file.index(parent) < position, f"{parent} must precede {line}"


def test_add_single_file_inserts_one_line_after_base(tmp_path: Path) -> None:
    repo = make_repo(tmp_path)
    ignore_file = IgnoreFile(lines=["*.swp", "/home/**", "# trailer"])

    updated = add(ignore_file, repo, "home/.bashrc")

    assert updated.lines == ["*.swp", "/home/**", "!/home/.bashrc", "# trailer"]


def test_add_is_idempotent(tmp_path: Path) -> None:
    repo = make_repo(tmp_path)
    once = add(IgnoreFile(lines=["/home/**"]), repo, "home/.bashrc")

    twice = add(once, repo, "home/.bashrc")

    assert twice.to_text() == once.to_text()


def test_add_nested_file_creates_directory_chain(tmp_path: Path) -> None:
    repo = make_repo(tmp_path)

    updated = add(IgnoreFile(lines=["/home/**"]), repo, "home/.config/foo.conf")

    assert updated.lines == ["/home/**", "!/home/.config/", "!/home/.config/foo.conf"]


def test_add_directory_appends_glob(tmp_path: Path) -> None:
    repo = make_repo(tmp_path)

    updated = add(IgnoreFile(lines=["/home/**"]), repo, "home/.config/nvim")

    assert updated.lines == [
        "/home/**",
        "!/home/.config/",
        "!/home/.config/nvim/",
        "!/home/.config/nvim/**",
    ]


def test_add_reuses_existing_chain(tmp_path: Path) -> None:
    repo = make_repo(tmp_path)
    ignore_file = IgnoreFile(lines=["/home/**", "!/home/.config/", "!/home/.config/foo.conf", "!/home/.bashrc"])

    updated = add(ignore_file, repo, "home/.config/nvim")

    assert updated.lines == [
        "/home/**",
        "!/home/.config/",
        "!/home/.config/nvim/",
        "!/home/.config/nvim/**",
        "!/home/.config/foo.conf",
        "!/home/.bashrc",
    ]
    assert_chain_order(updated)


def test_add_keeps_ancestors_first_in_reordered_file(tmp_path: Path) -> None:
    repo = make_repo(tmp_path)
    ignore_file = IgnoreFile(lines=["/other/**", "/home/**", "# hand edited", "!/home/.config/"])

    updated = add(ignore_file, repo, "home/.config/foo.conf")
    updated = add(updated, repo, "home/.bashrc")

    assert_chain_order(updated)
    assert updated.lines.count("!/home/.config/") == 1


def test_required_entries_for_directory_glob(tmp_path: Path) -> None:
    repo = make_repo(tmp_path)
    ignore_file = IgnoreFile(lines=["/home/**"])
    target = resolve(repo / "home/.config", repo, ignore_file)

    entries = InclusionSynthesizer().required_entries(target)

    assert [entry.line for entry in entries] == ["!/home/.config/", "!/home/.config/**"]
