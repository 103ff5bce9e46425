"""CLI interface for rant."""

import logging
import os
import platform
import shlex
import socket
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from rantlog.compose import (
    ClaudeTextFormatter,
    ComposeError,
    choose_editor,
    open_editor,
    read_stdin,
)
from rantlog.config import (
    CONFIG_FILENAME,
    RantConfig,
    SiteConfig,
    base_directory,
    config_search_paths,
    detect_environment,
    load_config,
    merge_cli_overrides,
    resolve_site,
    write_default_config,
)
from rantlog.errors import ConfigurationError, DocumentIOError, StructureError, SyncError
from rantlog.sync import GitRepository, SyncMode, SyncOrchestrator, SyncOutcome, SyncState
from rantlog.timeline import InsertResult, append_entry

app = typer.Typer(
    name="rant",
    help="Add a timestamped rant to a site's timeline and optionally commit and push it.",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from rantlog import __version__

        console.print(f"rant {__version__}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _fail(stage: str, message: str) -> typer.Exit:
    err_console.print(f"[red]Error ({stage}):[/red] {escape(message)}")
    return typer.Exit(1)


def _sync_mode(push: bool, commit: bool, add: bool) -> SyncMode:
    if push:
        return SyncMode.PUBLISH
    if commit:
        return SyncMode.COMMIT
    if add:
        return SyncMode.STAGE
    return SyncMode.NONE


def show_environment(config: RantConfig, base_dir: Path) -> None:
    """Print host, base directory, config and site information."""
    console.print("[cyan]Environment Information:[/cyan]")
    console.print(f"[yellow]Platform:[/yellow] {platform.system()}")
    console.print(f"[yellow]Hostname:[/yellow] {socket.gethostname()}")
    console.print(f"[yellow]Detected Environment:[/yellow] {detect_environment()}")
    console.print(f"[yellow]Home Directory:[/yellow] {Path.home()}")
    console.print(f"[yellow]Base Directory:[/yellow] {base_dir}")
    for candidate in config_search_paths(base_dir):
        mark = "[green]✓[/green]" if candidate.exists() else "[red]✗[/red]"
        console.print(f"[yellow]Config File:[/yellow] {candidate} {mark}")
    console.print(f"[yellow]DROPLET_ENV:[/yellow] {os.environ.get('DROPLET_ENV') or 'Not set'}")
    console.print()
    console.print("[yellow]Available Sites:[/yellow]")
    if not config.sites:
        console.print("  (none configured, run [bold]rant --config[/bold])")
    for name, site in config.sites.items():
        mark = "[green]✓[/green]" if site.path.exists() else "[red]✗[/red]"
        default = " (default)" if name == config.default_site else ""
        console.print(f"  {name}{default}: {site.path} {mark}")


def manage_config(config_path: Path, base_dir: Path, editor_command: str = "") -> None:
    """Create the config file if needed, then open it in an editor."""
    console.print(f"[yellow]Config file location:[/yellow] {config_path}")
    try:
        if write_default_config(config_path, base_dir):
            console.print("[green]Created default configuration file[/green]")
    except OSError as exc:
        raise _fail("config", f"could not create {config_path}: {exc}") from exc

    editor = choose_editor(command=editor_command)
    try:
        subprocess.run([*shlex.split(editor), str(config_path)], check=True)
    except (OSError, subprocess.CalledProcessError) as exc:
        err_console.print(f"[red]Error opening editor:[/red] {escape(str(exc))}")
        console.print(f"[yellow]You can manually edit: {config_path}[/yellow]")
        return
    console.print("[green]Configuration updated[/green]")


def _report(outcome: SyncOutcome, site: SiteConfig) -> None:
    inserted: InsertResult = outcome.result
    entry = inserted.entry
    console.print("[green]✓ Rant added successfully![/green]")
    console.print(f"[cyan]Date: {entry.display_date}, Time: {entry.display_time}[/cyan]")
    console.print(f"[cyan]Anchor link: {entry.anchor}[/cyan]")
    console.print(f"[dim]{escape(entry.preview)}[/dim]")

    if outcome.unchanged:
        console.print(f"[yellow]No changes to {site.file} detected[/yellow]")
        return
    if SyncState.PULLED in outcome.history:
        console.print("[green]✓ Updated to latest version[/green]")
    if SyncState.STAGED in outcome.history:
        console.print(f"[green]✓ Added {site.file} to git[/green]")
    if SyncState.COMMITTED in outcome.history:
        console.print("[green]✓ Committed changes[/green]")
    if SyncState.PUSHED in outcome.history:
        console.print(f"[green]✓ Pushed to {site.remote}/{site.branch}[/green]")


@app.command()
def main(
    text: Annotated[
        Optional[list[str]],
        typer.Argument(help="Rant text. Read from stdin or an editor when omitted."),
    ] = None,
    site: Annotated[
        Optional[str],
        typer.Option("--site", "-s", help="Site to add the rant to."),
    ] = None,
    commit: Annotated[
        bool,
        typer.Option("--commit", "-c", help="Stage and commit the change."),
    ] = False,
    push: Annotated[
        bool,
        typer.Option("--push", "-p", help="Pull first, then stage, commit and push."),
    ] = False,
    add: Annotated[
        bool,
        typer.Option("--add", "-a", help="Stage the change without committing."),
    ] = False,
    editor: Annotated[
        bool,
        typer.Option("--editor", "-e", help="Compose the rant in $EDITOR."),
    ] = False,
    gui: Annotated[
        bool,
        typer.Option("--gui", help="Compose the rant in a GUI editor."),
    ] = False,
    ai_format: Annotated[
        bool,
        typer.Option("--format", "-f", help="Clean up grammar and structure with Claude."),
    ] = False,
    message: Annotated[
        Optional[str],
        typer.Option("--message", "-m", help="Commit message (with --commit or --push)."),
    ] = None,
    edit_config: Annotated[
        bool,
        typer.Option("--config", help="Create or edit the configuration file."),
    ] = False,
    show_env: Annotated[
        bool,
        typer.Option("--env", help="Show environment information."),
    ] = False,
    config_file: Annotated[
        Optional[Path],
        typer.Option("--config-file", help=f"Explicit config file instead of {CONFIG_FILENAME}."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging."),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Add a rant to a site's timeline document.

    Text comes from the arguments, then stdin, then an editor (--editor or
    --gui). --push pulls before writing so the entry lands on the latest
    shared state, and pushes to the site's configured branch.
    """
    _setup_logging(verbose)
    base_dir = base_directory()

    try:
        config = load_config(config_file, base_dir=base_dir)
    except ConfigurationError as exc:
        raise _fail("config", str(exc)) from exc
    config = merge_cli_overrides(config, gui=True if gui else None)

    if show_env:
        show_environment(config, base_dir)
        raise typer.Exit()

    if edit_config:
        manage_config(config_file or base_dir / CONFIG_FILENAME, base_dir, config.editor.command)
        raise typer.Exit()

    try:
        site_config = resolve_site(config, site)
    except ConfigurationError as exc:
        raise _fail("config", str(exc)) from exc
    if not site_config.path.is_dir():
        raise _fail("config", f"site path does not exist: {site_config.path}")

    console.print(f"[cyan]Using site: {site or config.default_site or 'default'}[/cyan]")
    console.print(f"[cyan]Path: {site_config.path}[/cyan]")

    raw_text = " ".join(text) if text else None
    wants_editor = editor or gui
    if not raw_text and not wants_editor:
        raw_text = read_stdin()
    if not raw_text and wants_editor:
        try:
            raw_text = open_editor(gui=config.editor.gui, command=config.editor.command)
        except ComposeError as exc:
            raise _fail("editor", str(exc)) from exc

    if not raw_text or not raw_text.strip():
        err_console.print("[red]Error: No rant text provided[/red]")
        console.print("[yellow]Use --help for help[/yellow]")
        raise typer.Exit(1)
    raw_text = raw_text.strip()

    if ai_format:
        console.print("[blue]Formatting with AI...[/blue]")
        formatter = ClaudeTextFormatter(model=config.format.model, timeout=config.format.timeout)
        raw_text = formatter.format(raw_text).strip()

    mode = _sync_mode(push, commit, add)
    now = datetime.now()
    orchestrator = SyncOrchestrator(site_config, GitRepository(site_config.path, site_config.remote))

    try:
        outcome = orchestrator.run(
            lambda: append_entry(site_config, raw_text, now),
            mode,
            message=message,
            now=now,
        )
    except StructureError as exc:
        raise _fail("insert", f"{exc} (document left unchanged)") from exc
    except DocumentIOError as exc:
        raise _fail(exc.operation, str(exc)) from exc
    except SyncError as exc:
        if SyncState.COMMITTED in orchestrator.history:
            err_console.print(
                "[yellow]The rant is committed locally but was not pushed. "
                f"Pull to resync with {site_config.remote}/{site_config.branch}, "
                "then push.[/yellow]"
            )
        elif orchestrator.result is not None:
            err_console.print(
                f"[yellow]The rant was written to {site_config.document_path} "
                "but not committed. Resolve manually, then re-run the git step.[/yellow]"
            )
        elif exc.stage == "pull":
            err_console.print("[yellow]You may need to manually sync before pushing.[/yellow]")
        raise _fail(exc.stage, str(exc)) from exc

    _report(outcome, site_config)


if __name__ == "__main__":
    app()
