from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import CONF_NAME, Settings, load_settings, write_default_config
from .datauri import DataUri
from .io import read_vcards_from_files
from .property import Photo, RawProperty, VCardProperty
from .vcard import VCard
from .version import VCardVersion

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="vcardkit: read, inspect and validate vCard 2.1 / 3.0 / 4.0 files.",
)
console = Console()


# ── Shared helpers ─────────────────────────────────────────────────────────────

def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj if isinstance(ctx.obj, Settings) else Settings()


def _read(files: list[Path], settings: Settings) -> list[tuple[VCard, str]]:
    missing = [f for f in files if not f.is_file()]
    if missing:
        for f in missing:
            console.print(f"[bold red]No such file:[/bold red] {f}")
        raise typer.Exit(code=2)
    return read_vcards_from_files(files, keep_unknown=settings.keep_unknown)


def _label(card: VCard, index: int) -> str:
    fn = card.get_formatted_name()
    if fn is not None and fn.value:
        return fn.value
    return f"card #{index}"


def _describe(prop: VCardProperty) -> str:
    if isinstance(prop, Photo):
        if prop.data is not None:
            return f"<{len(prop.data)} bytes {prop.content_type or 'unknown type'}>"
        return prop.url or ""
    if isinstance(prop, RawProperty):
        return prop.value or ""
    values = [str(v) for v in prop._values() if v not in (None, (), "")]
    return " / ".join(values)


# ── Global options ─────────────────────────────────────────────────────────────

@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None, "--config", "-c",
        help=f"Settings file (default: ./{CONF_NAME} if present).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output"),
) -> None:
    settings = load_settings(config)
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    ctx.obj = settings


# ── `validate` command ─────────────────────────────────────────────────────────

@app.command()
def validate(
    ctx: typer.Context,
    files: list[Path] = typer.Argument(..., help=".vcf files to check"),
    version: str | None = typer.Option(
        None, "--version", "-V",
        help="Validate against this vCard version (2.1, 3.0, 4.0). Overrides default_version and each card's own.",
    ),
) -> None:
    """Validate every card and list the warnings found. Exits 1 if there are any."""
    settings = _settings(ctx)
    target: VCardVersion | None = None
    if version is not None:
        target = VCardVersion.value_of(version)
        if target is None:
            console.print(f"[bold red]Unknown vCard version:[/bold red] {version}")
            raise typer.Exit(code=2)

    pairs = _read(files, settings)

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("Card")
    table.add_column("Source", style="dim")
    table.add_column("Property")
    table.add_column("Code", justify="right")
    table.add_column("Warning")

    total = 0
    for i, (card, label) in enumerate(pairs, start=1):
        result = card.validate(target or settings.version or card.version)
        for prop, warnings in result:
            for w in warnings:
                total += 1
                table.add_row(
                    _label(card, i),
                    label,
                    prop.name if prop is not None else "[dim]card[/dim]",
                    "" if w.code is None else str(w.code),
                    w.message,
                )

    if total == 0:
        console.print(f"[bold green]✓[/bold green] {len(pairs)} card(s), no warnings")
        return

    console.print(table)
    console.print(f"\n[bold yellow]{total} warning(s)[/bold yellow] in {len(pairs)} card(s)")
    raise typer.Exit(code=1)


# ── `show` command ─────────────────────────────────────────────────────────────

@app.command()
def show(
    ctx: typer.Context,
    files: list[Path] = typer.Argument(..., help=".vcf files to display"),
) -> None:
    """Print the properties of every card."""
    pairs = _read(files, _settings(ctx))
    if not pairs:
        console.print("[dim]No vCards found.[/dim]")
        return

    for i, (card, label) in enumerate(pairs, start=1):
        table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
        table.add_column("Group", style="dim")
        table.add_column("Property")
        table.add_column("Parameters", style="dim")
        table.add_column("Value")
        for prop in card:
            params = ";".join(f"{k}={','.join(v)}" for k, v in prop.parameters.items())
            table.add_row(prop.group or "", prop.name, params, _describe(prop))
        console.print(Panel(
            table,
            title=f"{_label(card, i)}  [dim]vCard {card.version.value} · {label}[/dim]",
            title_align="left",
            border_style="cyan",
        ))


# ── `datauri` command ──────────────────────────────────────────────────────────

@app.command()
def datauri(
    file: Path = typer.Argument(..., help="File to embed"),
    content_type: str | None = typer.Option(
        None, "--content-type", "-t",
        help="Media type (guessed from the file name if omitted)",
    ),
) -> None:
    """Print a file as a data: URI, ready to paste into a vCard 4.0 PHOTO."""
    if not file.is_file():
        console.print(f"[bold red]No such file:[/bold red] {file}")
        raise typer.Exit(code=2)
    typer.echo(str(DataUri.from_file(file, content_type)))


# ── `init-config` command ──────────────────────────────────────────────────────

@app.command("init-config")
def init_config(
    path: Path = typer.Argument(Path(CONF_NAME), help="Where to write the settings file"),
) -> None:
    """Write a default settings file."""
    if write_default_config(path):
        console.print(f"[green]Wrote[/green] {path}")
    else:
        console.print(f"[dim]{path} already exists, left unchanged.[/dim]")


if __name__ == "__main__":
    app()
