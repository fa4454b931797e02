from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple

from ..config.settings import DotfilerSettings, get_settings
from ..domain.errors import (
    DotfilerError,
    MountError,
    NoBaseFoundError,
    NotFoundError,
    RepositoryError,
)
from ..domain.models import BasePattern, IgnoreFile, ReIncludeEntry, ResolvedTarget
from ..persistence.store import IgnoreFileStore, ensure_readme
from ..services.integrations.git_client import GitClient
from ..services.integrations.mount_client import FstabEditor, MountClient
from ..services.patterns.coverage import CoverageIndex
from ..services.patterns.inclusion import InclusionSynthesizer
from ..services.patterns.pattern_store import add_base, remove_line
from ..services.patterns.removal import RemovalSynthesizer
from ..services.patterns.resolver import absolute, resolve


LOG = logging.getLogger(__name__)


@dataclass
class PathOutcome:
    path: Path
    ok: bool
    message: str
    lines: List[str] = field(default_factory=list)


@dataclass
class OperationResult:
    outcomes: List[PathOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> List[PathOutcome]:
        return [outcome for outcome in self.outcomes if outcome.ok]

    @property
    def failed(self) -> List[PathOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0


@dataclass
class InitResult:
    repo_root: Path
    base: BasePattern
    mount_point: Path
    created_repository: bool
    created_readme: bool
    mounted: bool = False


OutcomeCallback = Callable[[PathOutcome], None]


class DotfilerOrchestrator:
    """
    Runs the dotfiler commands against the repository around `cwd`.

    `add`, `rm` and `check` handle each path on its own: the ignore file is
    reloaded, edited, persisted and handed to git before the next path is
    touched, and a failing path only marks the aggregate result as failed.
    """

    def __init__(
        self,
        settings: Optional[DotfilerSettings] = None,
        cwd: Optional[Path] = None,
        git: Optional[GitClient] = None,
        mounter: Optional[MountClient] = None,
        fstab: Optional[FstabEditor] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.cwd = cwd or Path.cwd()
        self.git = git or GitClient(self.settings.git_command)
        self.mounter = mounter or MountClient(self.settings.sudo_command)
        self.fstab = fstab or FstabEditor(self.settings.fstab_path, self.settings.sudo_command)
        self.inclusion = InclusionSynthesizer()
        self.removal = RemovalSynthesizer()

    # ------------------------------------------------------------------ Repository
    def locate_repository(self) -> Path:
        root = self.git.current_repository_root(self.cwd)
        if root is None:
            raise RepositoryError(f"{self.cwd} is not inside a git repository. Run 'dotfiler init' first.")
        self._ensure_below_home(root)
        return root

    def _ensure_below_home(self, repo_root: Path) -> None:
        home = self.settings.home_dir.resolve()
        root = repo_root.resolve()
        if root == home or root in home.parents:
            raise RepositoryError(
                f"Repository {repo_root} contains the home directory {self.settings.home_dir}; "
                "keep your dotfiles repository inside your home instead."
            )

    def _store(self, repo_root: Path) -> IgnoreFileStore:
        return IgnoreFileStore(repo_root, self.settings.ignore_file_name)

    # ------------------------------------------------------------------ init
    def init(
        self,
        directory: Optional[str] = None,
        mount: bool = False,
        fuse: Optional[bool] = None,
        fstab: bool = False,
    ) -> InitResult:
        base = BasePattern.from_path(directory or self.settings.default_mount_dir)

        root = self.git.current_repository_root(self.cwd)
        created_repository = root is None
        if root is None:
            self._ensure_below_home(self.cwd)
            self.git.init(self.cwd)
            root = self.cwd
        else:
            self._ensure_below_home(root)

        store = self._store(root)
        updated = add_base(store.load_or_create(), base)

        mount_point = root.joinpath(*base.components)
        mount_point.mkdir(parents=True, exist_ok=True)
        store.persist(updated)

        readme = ensure_readme(root, self.settings.readme_file_name, base.base, self.settings.ignore_file_name)

        if not created_repository and not self.git.is_clean_index(root):
            LOG.warning("The index of %s already has staged changes; they will be committed together.", root)
        staged = [Path(store.path.name)] + ([Path(readme.name)] if readme is not None else [])
        self.git.stage(root, *staged)
        LOG.info("Initialized mount point '%s' in %s", base.base, root)

        result = InitResult(
            repo_root=root,
            base=base,
            mount_point=mount_point,
            created_repository=created_repository,
            created_readme=readme is not None,
        )
        if mount:
            self.mount(base.base, fuse=fuse, fstab=fstab)
            result.mounted = True
        return result

    # ------------------------------------------------------------------ add / rm / check
    def add(self, paths: Iterable[Path], on_outcome: Optional[OutcomeCallback] = None) -> OperationResult:
        repo_root = self.locate_repository()
        store = self._store(repo_root)
        store.load()
        return self._for_each_path(paths, lambda path: self._add_one(repo_root, store, path), on_outcome)

    def remove(self, paths: Iterable[Path], on_outcome: Optional[OutcomeCallback] = None) -> OperationResult:
        repo_root = self.locate_repository()
        store = self._store(repo_root)
        store.load()
        return self._for_each_path(paths, lambda path: self._remove_one(repo_root, store, path), on_outcome)

    def check(self, paths: Iterable[Path], on_outcome: Optional[OutcomeCallback] = None) -> OperationResult:
        repo_root = self.locate_repository()
        store = self._store(repo_root)
        store.load()
        return self._for_each_path(paths, lambda path: self._check_one(repo_root, store, path), on_outcome)

    def _for_each_path(
        self,
        paths: Iterable[Path],
        handler: Callable[[Path], PathOutcome],
        on_outcome: Optional[OutcomeCallback],
    ) -> OperationResult:
        result = OperationResult()
        for raw_path in paths:
            path = absolute(Path(raw_path), self.cwd)
            try:
                outcome = handler(path)
            except DotfilerError as exc:
                if exc.fatal:
                    raise
                LOG.warning("Skipping %s: %s", path, exc)
                outcome = PathOutcome(path=path, ok=False, message=str(exc))
            result.outcomes.append(outcome)
            if on_outcome is not None:
                on_outcome(outcome)
        return result

    def _add_one(self, repo_root: Path, store: IgnoreFileStore, path: Path) -> PathOutcome:
        ignore_file = store.load()
        target = resolve(path, repo_root, ignore_file)
        updated, inserted = self.inclusion.apply(ignore_file, target)
        if inserted:
            store.persist(updated)
        self.git.stage(repo_root, Path(store.path.name), Path(target.relative_path))
        message = f"Added {target.relative_path}" if inserted else f"{target.relative_path} was already tracked"
        return PathOutcome(path=path, ok=True, message=message, lines=inserted)

    def _remove_one(self, repo_root: Path, store: IgnoreFileStore, path: Path) -> PathOutcome:
        ignore_file = store.load()
        target = resolve(path, repo_root, ignore_file)
        _, removed = self.removal.apply(ignore_file, target)
        self.git.unstage_and_delete(repo_root, Path(target.relative_path))

        # git rm may have rewritten the ignore file; start again from disk.
        current = store.load()
        for line in removed:
            current = remove_line(current, line)
        store.persist(current)
        self.git.stage(repo_root, Path(store.path.name))
        return PathOutcome(path=path, ok=True, message=f"Removed {target.relative_path}", lines=removed)

    def _check_one(self, repo_root: Path, store: IgnoreFileStore, path: Path) -> PathOutcome:
        ignore_file = store.load()
        target = resolve(path, repo_root, ignore_file)
        entry = self._covering_entry(ignore_file, target)
        if entry is None:
            return PathOutcome(path=path, ok=False, message=f"{target.relative_path} is not tracked")
        return PathOutcome(path=path, ok=True, message=f"{target.relative_path} is tracked by '{entry.line}'", lines=[entry.line])

    def _covering_entry(self, ignore_file: IgnoreFile, target: ResolvedTarget) -> Optional[ReIncludeEntry]:
        if target.is_directory:
            own_glob = self.removal.leaf_entry(target).glob_entry()
            if own_glob.line in ignore_file:
                return own_glob
            return CoverageIndex(ignore_file).covering_glob(target.relative_path)
        return CoverageIndex(ignore_file).covering_entry(target.relative_path)

    # ------------------------------------------------------------------ ls
    def list_entries(self) -> List[Tuple[BasePattern, List[ReIncludeEntry]]]:
        repo_root = self.locate_repository()
        ignore_file = self._store(repo_root).load()
        return [(base, ignore_file.entries(base)) for base in ignore_file.bases()]

    # ------------------------------------------------------------------ mount / umount
    def _mount_point(self, repo_root: Path, directory: Optional[str]) -> Tuple[BasePattern, Path]:
        ignore_file = self._store(repo_root).load()
        bases = ignore_file.bases()
        if directory is None:
            if len(bases) == 1:
                base = bases[0]
            else:
                base = BasePattern.from_path(self.settings.default_mount_dir)
        else:
            base = BasePattern.from_path(directory)
        if base not in bases:
            raise NoBaseFoundError(f"'{base.base}' is not a mount point of this repository. Run 'dotfiler init {base.base}'.")
        return base, repo_root.joinpath(*base.components)

    def mount(
        self,
        directory: Optional[str] = None,
        device: Optional[Path] = None,
        fuse: Optional[bool] = None,
        fstab: bool = False,
    ) -> Path:
        repo_root = self.locate_repository()
        _, target = self._mount_point(repo_root, directory)
        source = absolute(Path(device), self.cwd) if device is not None else self.settings.home_dir
        use_fuse = self.settings.use_fuse if fuse is None else fuse

        if not source.is_dir():
            raise NotFoundError(f"{source}: no such directory.", source)
        if self.mounter.is_mounted(target):
            raise MountError(f"{target} is already a mount point.", target)

        target.mkdir(parents=True, exist_ok=True)
        self.mounter.bind_mount(source, target, fuse=use_fuse)
        if fstab:
            self.fstab.add(source, target, fuse=use_fuse)
        return target

    def umount(self, directory: Optional[str] = None, fuse: Optional[bool] = None, fstab: bool = False) -> Path:
        repo_root = self.locate_repository()
        _, target = self._mount_point(repo_root, directory)
        use_fuse = self.settings.use_fuse if fuse is None else fuse

        if not self.mounter.is_mounted(target):
            raise MountError(f"{target} is not mounted.", target)

        self.mounter.bind_unmount(target, fuse=use_fuse)
        if fstab:
            self.fstab.remove(target)
        return target
