from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .. import __version__
from ..domain.errors import DotfilerError
from ..workflow.orchestrator import DotfilerOrchestrator, OperationResult, PathOutcome

app = typer.Typer(
    add_completion=False,
    help=(
        "Maintain your dotfiles in a git repository. Your home directory is bind "
        "mounted inside the repository, everything under the mount point is ignored "
        "and the files you add are re-included one by one."
    ),
)
console = Console()
err_console = Console(stderr=True)


def _get_orchestrator() -> DotfilerOrchestrator:
    return DotfilerOrchestrator()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"dotfiler {__version__}")
        raise typer.Exit()


def _fail(exc: Exception) -> None:
    err_console.print(f"[red]Error: {escape(str(exc))}[/]")
    raise typer.Exit(code=1)


def _report(outcome: PathOutcome) -> None:
    if outcome.ok:
        console.print(f"[green]{escape(outcome.message)}[/]")
        for line in outcome.lines:
            console.print(f"  [dim]{escape(line)}[/]")
    else:
        err_console.print(f"[red]{escape(str(outcome.path))}: {escape(outcome.message)}[/]")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", help="Log every pattern edit and external command."),
    version: Optional[bool] = typer.Option(
        None, "--version", "-v", callback=_version_callback, is_eager=True, help="Show the version and exit."
    ),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def init(
    directory: Optional[str] = typer.Argument(None, help="Mount point inside the repository (default: home)."),
    mount: bool = typer.Option(False, "--mount/--no-mount", help="Mount the home directory right away."),
    fuse: bool = typer.Option(False, "--fuse", "-f", help="Use bindfs instead of mount --bind."),
    fstab: bool = typer.Option(False, "--fstab", "-t", help="Also record the mount in the fstab."),
) -> None:
    """
    Create the repository (if needed) and the mount point DIR.
    """

    orchestrator = _get_orchestrator()
    try:
        result = orchestrator.init(directory, mount=mount, fuse=fuse or None, fstab=fstab)
    except (DotfilerError, ValueError) as exc:
        _fail(exc)

    if result.created_repository:
        console.print(f"[cyan]Created git repository in {escape(str(result.repo_root))}[/]")
    console.print(f"[bold green]Initialized mount point[/] {escape(result.base.base)} ({escape(result.base.line)})")
    if result.created_readme:
        console.print(f"[dim]Wrote {escape(orchestrator.settings.readme_file_name)}[/]")
    if result.mounted:
        console.print(f"[green]Mounted {escape(str(orchestrator.settings.home_dir))} at {escape(str(result.mount_point))}[/]")
    else:
        console.print(f"\n[cyan]Next:[/] [bold]dotfiler mount {escape(result.base.base)}[/]")


def _run_per_path(command: str, files: List[Path]) -> None:
    orchestrator = _get_orchestrator()
    handler = {
        "add": orchestrator.add,
        "rm": orchestrator.remove,
        "check": orchestrator.check,
    }[command]
    try:
        result: OperationResult = handler(files, on_outcome=_report)
    except (DotfilerError, ValueError) as exc:
        _fail(exc)
    raise typer.Exit(code=result.exit_code)


@app.command()
def add(files: List[Path] = typer.Argument(..., help="Files or directories to track.")) -> None:
    """
    Re-include FILEs in the ignore file and stage them.
    """

    _run_per_path("add", files)


@app.command("rm")
def remove(files: List[Path] = typer.Argument(..., help="Tracked files or directories.")) -> None:
    """
    Delete FILEs from the working tree and index and drop their re-include lines.
    """

    _run_per_path("rm", files)


app.command("remove", hidden=True)(remove)


@app.command()
def check(files: List[Path] = typer.Argument(..., help="Paths to look up.")) -> None:
    """
    Show which re-include line tracks each FILE.
    """

    _run_per_path("check", files)


@app.command("ls")
def list_entries() -> None:
    """
    List re-included paths per mount point, in ignore file order.
    """

    orchestrator = _get_orchestrator()
    try:
        groups = orchestrator.list_entries()
    except (DotfilerError, ValueError) as exc:
        _fail(exc)

    if not groups:
        console.print("[yellow]No mount points initialized yet.[/]")
        return

    table = Table(title="Tracked paths")
    table.add_column("Mount point", style="bold")
    table.add_column("Path")
    table.add_column("Kind")
    for base, entries in groups:
        if not entries:
            table.add_row(escape(base.base), "[dim]nothing tracked[/]", "")
        for entry in entries:
            table.add_row(escape(base.base), escape(entry.relative_path), entry.kind.value)
    console.print(table)


@app.command()
def mount(
    directory: Optional[str] = typer.Argument(None, help="Mount point inside the repository."),
    device: Optional[Path] = typer.Argument(None, help="Directory to mount (default: $HOME)."),
    fuse: bool = typer.Option(False, "--fuse", "-f", help="Use bindfs instead of mount --bind."),
    fstab: bool = typer.Option(False, "--fstab", "-t", help="Add an entry to the fstab."),
) -> None:
    """
    Mount $HOME (or DEVICE) at DIR.
    """

    orchestrator = _get_orchestrator()
    try:
        target = orchestrator.mount(directory, device, fuse=fuse or None, fstab=fstab)
    except (DotfilerError, ValueError) as exc:
        _fail(exc)
    console.print(f"[green]Mounted at {escape(str(target))}[/]")


@app.command()
def umount(
    directory: Optional[str] = typer.Argument(None, help="Mount point inside the repository."),
    fuse: bool = typer.Option(False, "--fuse", "-f", help="Unmount a bindfs mount."),
    fstab: bool = typer.Option(False, "--fstab", "-t", help="Remove the entry from the fstab."),
) -> None:
    """
    Unmount DIR.
    """

    orchestrator = _get_orchestrator()
    try:
        target = orchestrator.umount(directory, fuse=fuse or None, fstab=fstab)
    except (DotfilerError, ValueError) as exc:
        _fail(exc)
    console.print(f"[green]Unmounted {escape(str(target))}[/]")


def main() -> None:
    app()
