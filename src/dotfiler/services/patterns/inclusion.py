from __future__ import annotations

import logging
from typing import List, Tuple

from ...domain.models import GLOB_MARKER, IgnoreFile, ReIncludeEntry, ResolvedTarget
from .pattern_store import insert_after


LOG = logging.getLogger(__name__)


class InclusionSynthesizer:
    """
    Computes and inserts the re-include lines that make a path tracked.

    Each missing line goes right after the line of its parent directory (or
    the base exclude for the first level), so ancestors always precede their
    descendants no matter how the rest of the file is ordered.
    """

    def required_entries(self, target: ResolvedTarget) -> List[ReIncludeEntry]:
        fragments = target.fragments
        if target.is_directory:
            fragments = fragments + (GLOB_MARKER,)

        entries: List[ReIncludeEntry] = []
        last = len(fragments) - 1
        for position in range(len(fragments)):
            entries.append(
                ReIncludeEntry(
                    base=target.base,
                    fragments=fragments[: position + 1],
                    directory=position < last,
                )
            )
        return entries

    def apply(self, ignore_file: IgnoreFile, target: ResolvedTarget) -> Tuple[IgnoreFile, List[str]]:
        updated = ignore_file
        inserted: List[str] = []
        anchor = target.base.line

        for entry in self.required_entries(target):
            line = entry.line
            if line not in updated:
                updated = insert_after(updated, anchor, line)
                inserted.append(line)
            anchor = line

        if not inserted:
            LOG.debug("%s is already re-included", target.relative_path)
        return updated, inserted
