from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from .config import Settings, load_settings, write_default_settings
from .errors import VCardError
from .exporter import export_vcards, serialize_all
from .parser import parse
from .report import CheckResult, print_card, print_check_report

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="vcard4: parse, validate and re-serialize vCard 4.0 files.",
)
console = Console()
err_console = Console(stderr=True)


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(None, "--config", "-c", help="TOML settings file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log parser details"),
) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=err_console, show_path=False)],
        )
    ctx.obj = load_settings(config)


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj if isinstance(ctx.obj, Settings) else Settings()


def _parse_file(path: Path, settings: Settings):
    try:
        return parse(path.read_bytes(), settings)
    except VCardError as exc:
        err_console.print(f"[bold red]{path}[/bold red]: {exc}")
        raise typer.Exit(code=1) from exc


# ── `init` command ─────────────────────────────────────────────────────────────

@app.command()
def init(
    path: Path = typer.Argument(Path("vcard4.toml"), help="Settings file to create"),
) -> None:
    """Write a settings file with the defaults, leaving an existing one alone."""
    if path.exists():
        err_console.print(f"[dim]{path}[/dim] already exists, not overwritten")
        return
    write_default_settings(path)
    err_console.print(f"Wrote default settings to [dim]{path}[/dim]")


# ── `check` command ────────────────────────────────────────────────────────────

@app.command()
def check(
    ctx: typer.Context,
    files: list[Path] = typer.Argument(..., exists=True, dir_okay=False, help=".vcf files"),
) -> None:
    """Parse each file and report card counts or the first error."""
    settings = _settings(ctx)
    results: list[CheckResult] = []
    for f in files:
        try:
            cards = parse(f.read_bytes(), settings)
            results.append(CheckResult(f, cards=len(cards)))
        except VCardError as exc:
            results.append(CheckResult(f, error=exc))

    print_check_report(results, console)
    if not all(r.ok for r in results):
        raise typer.Exit(code=1)


# ── `show` command ─────────────────────────────────────────────────────────────

@app.command()
def show(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False),
) -> None:
    """Print the typed properties of every card in a file."""
    cards = _parse_file(file, _settings(ctx))
    for i, card in enumerate(cards, start=1):
        print_card(card, i, console)


# ── `format` command ───────────────────────────────────────────────────────────

@app.command("format")
def format_(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write here instead of stdout"),
) -> None:
    """Re-serialize a file in canonical form."""
    settings = _settings(ctx)
    cards = _parse_file(file, settings)
    if output is None:
        typer.echo(serialize_all(cards, settings), nl=False)
        return
    n = export_vcards(cards, output, settings)
    err_console.print(f"Wrote [bold]{n}[/bold] card(s) to [dim]{output}[/dim]")


if __name__ == "__main__":
    app()
