from __future__ import annotations

from typing import List, Optional, Tuple

import pathspec  # pyright: ignore[reportMissingImports]

from ...domain.models import EntryKind, IgnoreFile, NEGATION, ReIncludeEntry


class CoverageIndex:
    """
    Answers "which re-include entry makes this path visible to git?".

    Only leaf entries (files and directory globs) are compiled; directory
    entries with a trailing separator merely open the way to their children
    and never re-include file contents on their own.
    """

    def __init__(self, ignore_file: IgnoreFile) -> None:
        self._entries: List[Tuple[ReIncludeEntry, pathspec.GitIgnoreSpec]] = []
        for base in ignore_file.bases():
            for entry in ignore_file.entries(base):
                if entry.kind == EntryKind.DIRECTORY:
                    continue
                pattern = entry.line[len(NEGATION) :]
                self._entries.append((entry, pathspec.GitIgnoreSpec.from_lines([pattern])))

    def covering_entry(self, relative_path: str) -> Optional[ReIncludeEntry]:
        """
        Last leaf entry in file order matching `relative_path`, as git
        applies the last matching pattern.
        """

        found: Optional[ReIncludeEntry] = None
        for entry, spec in self._entries:
            if spec.match_file(relative_path):
                found = entry
        return found

    def covering_glob(self, relative_path: str) -> Optional[ReIncludeEntry]:
        found: Optional[ReIncludeEntry] = None
        for entry, spec in self._entries:
            if entry.kind == EntryKind.GLOB and spec.match_file(relative_path):
                found = entry
        return found
