from dotfiler.domain.models import BasePattern, EntryKind, IgnoreFile, ReIncludeEntry


def test_base_pattern_parse_round_trip() -> None:
    base = BasePattern.parse("/home/**")

    assert base == BasePattern(components=("home",))
    assert base.line == "/home/**"
    assert BasePattern.parse("!/home/**") is None
    assert BasePattern.parse("/home/") is None
    assert BasePattern.parse("*.swp") is None


def test_base_pattern_matches_by_component_not_prefix() -> None:
    base = BasePattern.from_path("home")

    assert base.is_ancestor_of(("home", ".bashrc"))
    assert not base.is_ancestor_of(("home2", ".bashrc"))
    assert not base.is_ancestor_of(("home",))


def test_entry_lines_per_kind() -> None:
    base = BasePattern.from_path("home")
    file_entry = ReIncludeEntry(base=base, fragments=(".config", "foo.conf"))
    dir_entry = ReIncludeEntry(base=base, fragments=(".config",), directory=True)

    assert file_entry.line == "!/home/.config/foo.conf"
    assert file_entry.kind == EntryKind.FILE
    assert dir_entry.line == "!/home/.config/"
    assert dir_entry.kind == EntryKind.DIRECTORY
    assert dir_entry.glob_entry().line == "!/home/.config/**"
    assert dir_entry.glob_entry().kind == EntryKind.GLOB


def test_ignore_file_entries_parse_back() -> None:
    ignore_file = IgnoreFile.from_text("/home/**\n!/home/.config/\n!/home/.config/nvim/**\n*.swp\n")
    base = ignore_file.bases()[0]

    entries = ignore_file.entries(base)

    assert [entry.kind for entry in entries] == [EntryKind.DIRECTORY, EntryKind.GLOB]
    assert [entry.line for entry in entries] == ["!/home/.config/", "!/home/.config/nvim/**"]


def test_ignore_file_text_keeps_missing_trailing_newline() -> None:
    text = "/home/**\n!/home/.bashrc"

    assert IgnoreFile.from_text(text).to_text() == text
    assert IgnoreFile.from_text("").to_text() == ""


def test_entry_line_quotes_wildcards_and_trailing_spaces() -> None:
    base = BasePattern.from_path("home")
    bracket = ReIncludeEntry(base=base, fragments=("[x]", "a*b?"))
    spaced = ReIncludeEntry(base=base, fragments=("notes  ",))
    backslash = ReIncludeEntry(base=base, fragments=("dir\\name",), directory=True)

    assert bracket.line == "!/home/\\[x\\]/a\\*b\\?"
    assert spaced.line == "!/home/notes\\ \\ "
    assert backslash.line == "!/home/dir\\\\name/"
    assert backslash.glob_entry().line == "!/home/dir\\\\name/**"
    for entry in (bracket, spaced, backslash, backslash.glob_entry()):
        assert ReIncludeEntry.parse(entry.line, base) == entry


def test_ignore_file_keeps_crlf_endings() -> None:
    text = "/home/**\r\n!/home/.profile\r\n"
    ignore_file = IgnoreFile.from_text(text)

    assert ignore_file.lines == ["/home/**", "!/home/.profile"]
    assert ignore_file.to_text() == text
    ignore_file.lines.insert(1, "!/home/.bashrc")
    assert ignore_file.copy().to_text() == "/home/**\r\n!/home/.bashrc\r\n!/home/.profile\r\n"


def test_ignore_file_splits_on_line_feeds_only() -> None:
    text = "/home/**\n# page\x0cbreak same line\n"

    assert IgnoreFile.from_text(text).lines == ["/home/**", "# page\x0cbreak same line"]
    assert IgnoreFile.from_text(text).to_text() == text
