"""hunkstage CLI: Typer application with the interactive session and init."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from hunkstage import __version__

app = typer.Typer(
    name="hunkstage",
    help="Stage, unstage and discard git changes by file, hunk or line.",
    add_completion=False,
)

console = Console(stderr=True)


def _resolve_repo_root() -> Path:
    """Find the git repo root, exit 2 on failure."""
    from hunkstage.git.adapter import GitError, get_repo_root

    try:
        return get_repo_root()
    except GitError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc


def _version_callback(value: bool) -> None:
    if value:
        print(f"hunkstage {__version__}")
        raise typer.Exit()


# ── interactive session ───────────────────────────────────────────────────────


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .hunkstage.toml"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Write a debug log to this file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at debug level"),
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
) -> None:
    """Browse unstaged and staged changes and move them between the two."""
    if ctx.invoked_subcommand is not None:
        return

    from hunkstage.app import bootstrap, run
    from hunkstage.config.loader import ConfigError, load_config
    from hunkstage.git.adapter import GitError
    from hunkstage.git.diff_parser import ParseError
    from hunkstage.keys.registry import KeymapError
    from hunkstage.log import configure_logging

    repo_root = _resolve_repo_root()

    # --- Load config ---
    try:
        cfg = load_config(repo_root, config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    # --- CLI overrides ---
    if log_file:
        cfg.logging.file = log_file
    if verbose:
        cfg.logging.level = "debug"
    configure_logging(cfg.logging.file, cfg.logging.level)

    if verbose:
        console.print(f"[dim]Repo root: {repo_root}[/dim]")
        console.print(f"[dim]Log file: {cfg.logging.file or '(none)'}[/dim]")

    # --- Initial diff ---
    try:
        state, dispatcher = bootstrap(repo_root, cfg)
    except KeymapError as exc:
        console.print(f"[bold red]Keymap error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc
    except GitError as exc:
        console.print(f"[bold red]Git error:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc
    except ParseError as exc:
        console.print(f"[bold red]Could not parse git diff:[/bold red] {exc}")
        raise typer.Exit(code=2) from exc

    if not sys.stdin.isatty():
        console.print("[bold red]Error:[/bold red] hunkstage needs an interactive terminal")
        raise typer.Exit(code=2)

    run(state, dispatcher)
    raise typer.Exit(code=0)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init(
    keys: bool = typer.Option(False, "--keys", help="Also write a starter .hunkstage-keys.yaml"),
) -> None:
    """Generate a starter .hunkstage.toml in the repo root."""
    from hunkstage.config.defaults import DEFAULT_KEYMAP_YAML, DEFAULT_TOML
    from hunkstage.config.loader import CONFIG_FILENAME
    from hunkstage.keys.registry import DEFAULT_KEYMAP_FILE

    repo_root = _resolve_repo_root()
    targets = [(repo_root / CONFIG_FILENAME, DEFAULT_TOML)]
    if keys:
        targets.append((repo_root / DEFAULT_KEYMAP_FILE, DEFAULT_KEYMAP_YAML))

    existing = [path for path, _ in targets if path.exists()]
    if existing:
        for path in existing:
            console.print(f"[yellow]⚠[/yellow]  {path.name} already exists at {path}")
        raise typer.Exit(code=1)

    for path, template in targets:
        path.write_text(template, encoding="utf-8")
        console.print(f"[green]✓[/green] Created {path}")


if __name__ == "__main__":
    app()
