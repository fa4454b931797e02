from __future__ import annotations

import logging
from typing import List, Tuple

from ...domain.errors import NotTrackedError
from ...domain.models import IgnoreFile, ReIncludeEntry, ResolvedTarget
from .coverage import CoverageIndex
from .pattern_store import remove_line


LOG = logging.getLogger(__name__)


class RemovalSynthesizer:
    """
    Finds and drops the leaf re-include line of a tracked path.

    Removing a directory also drops every line below it. Parent directory
    lines stay in place even when their last child goes away; they are
    reused by later additions under the same directory.
    """

    def leaf_entry(self, target: ResolvedTarget) -> ReIncludeEntry:
        return ReIncludeEntry(base=target.base, fragments=target.fragments, directory=target.is_directory)

    def apply(self, ignore_file: IgnoreFile, target: ResolvedTarget) -> Tuple[IgnoreFile, List[str]]:
        entry = self.leaf_entry(target)
        if entry.line not in ignore_file:
            raise NotTrackedError(self._untracked_reason(ignore_file, target, entry), target.path)

        lines = [entry.line]
        if target.is_directory:
            lines.extend(self._descendant_lines(ignore_file, target, entry.line))

        updated = ignore_file
        for line in lines:
            updated = remove_line(updated, line)
        return updated, lines

    @staticmethod
    def _descendant_lines(ignore_file: IgnoreFile, target: ResolvedTarget, own_line: str) -> List[str]:
        """
        Lines below a removed directory, its own glob included, as they appear
        in the file. Leaving them would orphan them from their parent line.
        """

        size = len(target.fragments)
        found: List[str] = []
        for line in ignore_file.lines:
            candidate = ReIncludeEntry.parse(line, target.base)
            if candidate is None or line == own_line or line in found:
                continue
            if candidate.fragments[:size] == target.fragments:
                found.append(line)
        return found

    @staticmethod
    def _untracked_reason(ignore_file: IgnoreFile, target: ResolvedTarget, entry: ReIncludeEntry) -> str:
        glob = CoverageIndex(ignore_file).covering_glob(target.relative_path)
        if glob is not None:
            return (
                f"{target.path} is tracked as part of '{glob.line}' and cannot be removed on its own; "
                "add an exclude rule for it instead."
            )
        return f"{target.path} is not tracked ('{entry.line}' not found)."
