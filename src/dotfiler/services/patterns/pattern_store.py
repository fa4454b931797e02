"""
Pure edits on an `IgnoreFile`.

Every function returns a new `IgnoreFile` and leaves its argument untouched,
so a failed operation never leaves a half-edited file behind.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

from ...domain.errors import AlreadyTrackedError, AnchorNotFoundError
from ...domain.models import BasePattern, IgnoreFile


LOG = logging.getLogger(__name__)


def find_base(ignore_file: IgnoreFile, components: Sequence[str]) -> Optional[BasePattern]:
    """
    First base, in file order, that is a strict ancestor of `components`.

    Matching is done per path component, so `home2/x` never matches `home`.
    """

    for base in ignore_file.bases():
        if base.is_ancestor_of(components):
            return base
    return None


def insert_after(ignore_file: IgnoreFile, anchor_line: str, new_line: str) -> IgnoreFile:
    if new_line in ignore_file:
        raise AlreadyTrackedError(f"Pattern already present: {new_line}")
    try:
        position = ignore_file.index(anchor_line)
    except ValueError as exc:
        raise AnchorNotFoundError(f"Cannot insert '{new_line}': expected line '{anchor_line}' is missing.") from exc

    updated = ignore_file.copy()
    updated.lines.insert(position + 1, new_line)
    LOG.debug("Inserted '%s' after '%s'", new_line, anchor_line)
    return updated


def remove_line(ignore_file: IgnoreFile, exact_line: str) -> IgnoreFile:
    updated = ignore_file.copy()
    updated.lines = [line for line in ignore_file.lines if line != exact_line]
    removed = len(ignore_file.lines) - len(updated.lines)
    if removed:
        LOG.debug("Removed %d occurrence(s) of '%s'", removed, exact_line)
    return updated


def add_base(ignore_file: IgnoreFile, base: BasePattern) -> IgnoreFile:
    """
    Append the blanket exclude for a new mount point.

    A base may not repeat or nest inside another one.
    """

    for existing in ignore_file.bases():
        if existing == base:
            raise AlreadyTrackedError(f"Mount point '{base.base}' is already initialized.")
        if existing.overlaps(base):
            raise AlreadyTrackedError(f"Mount point '{base.base}' overlaps existing mount point '{existing.base}'.")

    updated = ignore_file.copy()
    updated.lines.append(base.line)
    LOG.debug("Added base pattern '%s'", base.line)
    return updated
