from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import List, Optional, Sequence, Tuple, Union


SEPARATOR = "/"
GLOB_MARKER = "**"
NEGATION = "!"
ESCAPE = "\\"
WILDCARDS = frozenset("\\*?[]")


def escape_fragment(fragment: str) -> str:
    """
    Quote one path component for an ignore pattern so it only matches itself.

    Wildcard characters get a backslash, and so do trailing spaces, which git
    would strip otherwise.
    """

    stripped = fragment.rstrip(" ")
    quoted = "".join(f"{ESCAPE}{char}" if char in WILDCARDS else char for char in stripped)
    return quoted + f"{ESCAPE} " * (len(fragment) - len(stripped))


def unescape_fragment(fragment: str) -> str:
    chars: List[str] = []
    escaped = False
    for char in fragment:
        if escaped:
            chars.append(char)
            escaped = False
        elif char == ESCAPE:
            escaped = True
        else:
            chars.append(char)
    return "".join(chars)


def _pattern_path(components: Sequence[str]) -> str:
    return SEPARATOR.join(escape_fragment(part) for part in components)


def split_components(path: Union[str, PurePosixPath, Sequence[str]]) -> Tuple[str, ...]:
    """
    Normalize a repository-relative path into its components.

    Empty and `.` components are dropped so `home/`, `./home` and `home`
    compare equal.
    """

    if isinstance(path, (list, tuple)):
        parts = list(path)
    else:
        parts = str(path).split(SEPARATOR)
    return tuple(part for part in parts if part not in ("", "."))


@dataclass(frozen=True)
class BasePattern:
    """
    Blanket exclude for one mount point: `/<base>/**`.
    """

    components: Tuple[str, ...]

    @property
    def base(self) -> str:
        return SEPARATOR.join(self.components)

    @property
    def line(self) -> str:
        return f"{SEPARATOR}{_pattern_path(self.components)}{SEPARATOR}{GLOB_MARKER}"

    def is_ancestor_of(self, components: Sequence[str]) -> bool:
        size = len(self.components)
        return len(components) > size and tuple(components[:size]) == self.components

    def overlaps(self, other: "BasePattern") -> bool:
        return (
            self == other
            or self.is_ancestor_of(other.components)
            or other.is_ancestor_of(self.components)
        )

    @classmethod
    def from_path(cls, path: Union[str, PurePosixPath]) -> "BasePattern":
        components = split_components(path)
        if not components or ".." in components or any("*" in part for part in components):
            raise ValueError(f"Invalid mount point directory: {path!r}")
        return cls(components=components)

    @classmethod
    def parse(cls, line: str) -> Optional["BasePattern"]:
        suffix = f"{SEPARATOR}{GLOB_MARKER}"
        if line.startswith(NEGATION) or not line.startswith(SEPARATOR) or not line.endswith(suffix):
            return None
        inner = line[1 : -len(suffix)]
        components = split_components(inner)
        if not components or any("*" in part for part in components):
            return None
        return cls(components=tuple(unescape_fragment(part) for part in components))


class EntryKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"
    GLOB = "glob"


@dataclass(frozen=True)
class ReIncludeEntry:
    """
    One `!`-prefixed line re-including a path under a base.

    `directory` entries are written with a trailing separator; an entry whose
    last fragment is the glob marker covers everything under its parent.
    """

    base: BasePattern
    fragments: Tuple[str, ...]
    directory: bool = False

    @property
    def kind(self) -> EntryKind:
        if self.fragments and self.fragments[-1] == GLOB_MARKER:
            return EntryKind.GLOB
        if self.directory:
            return EntryKind.DIRECTORY
        return EntryKind.FILE

    @property
    def relative_path(self) -> str:
        return SEPARATOR.join(self.fragments)

    @property
    def line(self) -> str:
        fragments = self.fragments
        suffix = ""
        if self.kind == EntryKind.GLOB:
            fragments, suffix = fragments[:-1], f"{SEPARATOR}{GLOB_MARKER}"
        elif self.kind == EntryKind.DIRECTORY:
            suffix = SEPARATOR
        path = _pattern_path(self.base.components + fragments)
        return f"{NEGATION}{SEPARATOR}{path}{suffix}"

    def glob_entry(self) -> "ReIncludeEntry":
        """Entry re-including everything under this directory entry."""
        return ReIncludeEntry(base=self.base, fragments=self.fragments + (GLOB_MARKER,))

    @classmethod
    def parse(cls, line: str, base: BasePattern) -> Optional["ReIncludeEntry"]:
        prefix = f"{NEGATION}{SEPARATOR}"
        if not line.startswith(prefix):
            return None
        raw = split_components(line[len(prefix) :])
        # the glob marker is the only unquoted component
        components = tuple(part if part == GLOB_MARKER else unescape_fragment(part) for part in raw)
        if not base.is_ancestor_of(components):
            return None
        fragments = components[len(base.components) :]
        directory = line.endswith(SEPARATOR)
        return cls(base=base, fragments=fragments, directory=directory)


@dataclass(frozen=True)
class ResolvedTarget:
    base: BasePattern
    fragments: Tuple[str, ...]
    is_directory: bool
    path: Path

    @property
    def relative_path(self) -> str:
        return SEPARATOR.join(self.base.components + self.fragments)


@dataclass
class IgnoreFile:
    """
    Ordered lines of the repository ignore file.

    Line order is significant: a re-include only works when it follows the
    exclude of its base and the re-include of its parent directory.
    """

    lines: List[str] = field(default_factory=list)
    trailing_newline: bool = True
    newline: str = "\n"

    def __contains__(self, line: object) -> bool:
        return line in self.lines

    def index(self, line: str) -> int:
        return self.lines.index(line)

    def bases(self) -> List[BasePattern]:
        found: List[BasePattern] = []
        for line in self.lines:
            base = BasePattern.parse(line)
            if base is not None:
                found.append(base)
        return found

    def entries(self, base: BasePattern) -> List[ReIncludeEntry]:
        found: List[ReIncludeEntry] = []
        for line in self.lines:
            entry = ReIncludeEntry.parse(line, base)
            if entry is not None:
                found.append(entry)
        return found

    def copy(self) -> "IgnoreFile":
        return IgnoreFile(lines=list(self.lines), trailing_newline=self.trailing_newline, newline=self.newline)

    def to_text(self) -> str:
        if not self.lines:
            return ""
        text = self.newline.join(self.lines)
        return text + self.newline if self.trailing_newline else text

    @classmethod
    def from_text(cls, text: str) -> "IgnoreFile":
        """
        Split on line feeds only; a file written with CRLF endings keeps them.
        """

        if not text:
            return cls()
        trailing_newline = text.endswith("\n")
        body = text[:-1] if trailing_newline else text
        lines = [line[:-1] if line.endswith("\r") else line for line in body.split("\n")]
        first = text.find("\n")
        newline = "\r\n" if first > 0 and text[first - 1] == "\r" else "\n"
        return cls(lines=lines, trailing_newline=trailing_newline, newline=newline)
