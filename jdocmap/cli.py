"""Typer-based CLI for jdocmap: Javadoc extraction and member lookup."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from . import __version__, config, config_manager
from .git_service import GitService
from .models import FileDoc, MethodDoc, SourceDocument
from .parser import JavaDocParser
from .session import DocumentSession
from .symbols import JsonSymbolProvider, SymbolProvider, TreeSitterSymbolProvider

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="📚 jdocmap: Javadoc extraction and cursor-to-member lookup for Java files.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"jdocmap v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log debug output to stderr."),
):
    """jdocmap: structured Javadoc for a single Java source file."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=err_console, show_path=False)],
            force=True,
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _load_document(file_path: Path) -> SourceDocument:
    text = file_path.read_text(encoding="utf-8", errors="replace")
    return SourceDocument(file_path=str(file_path.resolve()), text=text)


def _provider(symbols: Optional[Path]) -> SymbolProvider:
    if symbols is not None:
        return JsonSymbolProvider(symbols)
    return TreeSitterSymbolProvider()


def _session(symbols: Optional[Path], no_git: bool) -> DocumentSession:
    settings = config_manager.load_settings()
    git_service = None
    if settings.git_enabled and not no_git:
        git_service = GitService(timeout=settings.git_timeout)
    parser = JavaDocParser(
        git_service=git_service,
        signature_max_lines=settings.signature_max_lines,
        max_methods=settings.max_methods,
    )
    return DocumentSession.from_settings(_provider(symbols), settings, parser=parser)


def _check(mark: bool) -> str:
    return "[green]✓[/green]" if mark else "[red]✗[/red]"


def _print_header(doc: FileDoc) -> None:
    lines = [f"[bold]{doc.class_name}[/bold]"]
    if doc.package_name:
        lines.append(f"[dim]package[/dim] {doc.package_name}")
    if doc.javadoc_author or doc.javadoc_since:
        lines.append(
            f"[dim]@author[/dim] {doc.javadoc_author or '-'}  "
            f"[dim]@since[/dim] {doc.javadoc_since or '-'}"
        )
    if doc.git_info is not None:
        lines.append(
            f"[dim]git[/dim] created by {doc.git_info.author}, last changed by "
            f"{doc.git_info.last_modifier} {doc.git_info.last_modify_date}"
        )
    if doc.class_comment:
        lines.append("")
        lines.append(escape(doc.class_comment))
    console.print(Panel("\n".join(lines), title="📄 " + Path(doc.file_path).name, border_style="cyan"))


def _print_members(doc: FileDoc) -> None:
    if doc.methods:
        table = Table(title=f"Callables ({len(doc.methods)})", show_lines=False)
        table.add_column("Line", justify="right", style="dim")
        table.add_column("Name", style="bold")
        table.add_column("Kind")
        table.add_column("Access")
        table.add_column("Doc", justify="center")
        table.add_column("Owner", style="cyan")
        for m in doc.methods:
            table.add_row(
                f"{m.start_line + 1}-{m.end_line + 1}",
                m.name,
                m.kind,
                m.access_modifier,
                _check(m.has_comment),
                m.belongs_to,
            )
        console.print(table)

    if doc.fields:
        table = Table(title=f"Fields ({len(doc.fields)})")
        table.add_column("Line", justify="right", style="dim")
        table.add_column("Name", style="bold")
        table.add_column("Type")
        table.add_column("Const", justify="center")
        table.add_column("Doc", justify="center")
        for f in doc.fields:
            table.add_row(str(f.start_line + 1), f.name, f.type, _check(f.is_constant), _check(f.has_comment))
        console.print(table)

    if doc.enum_constants:
        table = Table(title=f"Enum constants ({len(doc.enum_constants)})")
        table.add_column("Line", justify="right", style="dim")
        table.add_column("Name", style="bold")
        table.add_column("Arguments")
        table.add_column("Doc", justify="center")
        for e in doc.enum_constants:
            table.add_row(str(e.start_line + 1), e.name, e.arguments, _check(e.has_comment))
        console.print(table)


def _print_method(method: MethodDoc) -> None:
    console.print(f"[bold]{method.belongs_to}.{method.name}[/bold]  [dim]({method.id})[/dim]")
    console.print(f"  lines {method.start_line + 1}-{method.end_line + 1}  {escape(method.signature)}")
    if method.description:
        console.print(f"  {escape(method.description)}")
    for param in method.tags.params:
        console.print(f"  [cyan]@param[/cyan] {param.name} [dim]{escape(param.type)}[/dim] {escape(param.description)}")
    if method.tags.returns is not None:
        console.print(f"  [cyan]@return[/cyan] [dim]{escape(method.tags.returns.type)}[/dim] {escape(method.tags.returns.description)}")
    for thrown in method.tags.throws:
        console.print(f"  [cyan]@throws[/cyan] {thrown.type} {escape(thrown.description)}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command("parse")
def parse_file(
    file_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Java source file."),
    as_json: bool = typer.Option(False, "--json", help="Print the parse result as JSON (0-based lines)."),
    symbols: Optional[Path] = typer.Option(
        None, "--symbols", "-s", exists=True, dir_okay=False,
        help="DocumentSymbol JSON saved from a language server.",
    ),
    no_git: bool = typer.Option(False, "--no-git", help="Skip git authorship lookup."),
):
    """Extract Javadoc for every callable, field and enum constant."""
    document = _load_document(file_path)
    session = _session(symbols, no_git)
    doc = session.refresh(document)
    if doc is None:
        err_console.print(f"[red]❌ Could not read declarations for {file_path}[/red]")
        raise typer.Exit(code=1)

    if as_json:
        typer.echo(json.dumps({"doc": asdict(doc), "diagnostics": session.diagnostics}, indent=2))
        return

    _print_header(doc)
    _print_members(doc)
    for message in session.diagnostics:
        err_console.print(f"[yellow]⚠ {message}[/yellow]")


@app.command("locate")
def locate(
    file_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Java source file."),
    line: int = typer.Argument(..., min=1, help="1-based line number."),
    symbols: Optional[Path] = typer.Option(
        None, "--symbols", "-s", exists=True, dir_okay=False,
        help="DocumentSymbol JSON saved from a language server.",
    ),
):
    """Show the callable whose body contains LINE."""
    session = _session(symbols, no_git=True)
    if session.refresh(_load_document(file_path)) is None:
        err_console.print(f"[red]❌ Could not read declarations for {file_path}[/red]")
        raise typer.Exit(code=1)

    method = session.locate(line - 1)
    if method is None:
        typer.echo(f"No callable contains line {line}.")
        raise typer.Exit(code=1)
    _print_method(method)


@app.command("show-config")
def show_config():
    """Show effective settings and where they are stored."""
    table = Table(title="⚙️  jdocmap settings")
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for section, values in config_manager.load_config().items():
        for name, value in values.items():
            table.add_row(f"{section}.{name}", str(value))
    console.print(table)
    console.print(f"[dim]Config file: {config.CONFIG_FILE}[/dim]")


@app.command("set-config")
def set_config(
    key: str = typer.Argument(..., help="Dotted key, e.g. index.debounce_delay_ms"),
    value: str = typer.Argument(..., help="New value."),
):
    """Persist one setting to config.toml."""
    try:
        stored = config_manager.save_setting(key, value)
    except ValueError as exc:
        err_console.print(f"[red]❌ {exc}[/red]")
        raise typer.Exit(code=1)
    typer.echo(f"Set {key} = {stored}")


if __name__ == "__main__":
    app()
