"""
Command line interface.

Usage:
    ahrefs-mcp serve --catalog tools.json          # Run the SSE server
    ahrefs-mcp tools --catalog tools.json          # List catalog tools
    ahrefs-mcp tools --catalog tools.json --json   # ... as JSON
    ahrefs-mcp doc getBacklinks --catalog tools.json
"""

from __future__ import annotations

import json
import os
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ahrefs_mcp import __version__
from ahrefs_mcp.catalog import Catalog, load_catalog
from ahrefs_mcp.dispatch import strip_namespace
from ahrefs_mcp.errors import AhrefsMCPError
from ahrefs_mcp.logging import configure_logging
from ahrefs_mcp.settings import Settings

app = typer.Typer(help="Ahrefs API v3 exposed as MCP tools", no_args_is_help=True)
console = Console(stderr=True)

CATALOG_ENV = "AHREFS_MCP_CATALOG"

_catalog_option = typer.Option(
    None,
    "--catalog",
    "-c",
    help=f"Tool catalog (JSON/YAML). Defaults to ${CATALOG_ENV}.",
)


def print_cli_error(message: str, hint: str | None = None) -> None:
    console.print(f"[bold red]Error:[/bold red] {message}")
    if hint:
        console.print(f"[dim]Hint: {hint}[/dim]")


def _load(catalog_path: Path | None) -> Catalog:
    path = catalog_path or (Path(os.environ[CATALOG_ENV]) if os.environ.get(CATALOG_ENV) else None)
    if path is None:
        print_cli_error("No catalog given", hint=f"Pass --catalog or set {CATALOG_ENV}.")
        raise typer.Exit(1)
    try:
        return load_catalog(path)
    except AhrefsMCPError as e:
        print_cli_error(e.message, hint=e.hint)
        raise typer.Exit(1) from e


@app.command("serve")
def serve_cmd(
    catalog_path: Path | None = _catalog_option,
    host: str | None = typer.Option(None, "--host", help="Bind address (env HOST)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Listen port (env PORT)"),
    log_level: str | None = typer.Option(None, "--log-level", help="Log level (env LOG_LEVEL)"),
    log_format: str | None = typer.Option(None, "--log-format", help="human or json (env LOG_FORMAT)"),
):
    """Run the MCP server over SSE."""
    try:
        settings = Settings.from_env(
            host=host,
            port=port,
            log_level=log_level.upper() if log_level else None,
            log_format=log_format,
            catalog_path=catalog_path,
        )
    except AhrefsMCPError as e:
        print_cli_error(e.message, hint=e.hint)
        raise typer.Exit(1) from e

    configure_logging(level=settings.log_level, format=settings.log_format)
    catalog = _load(settings.catalog_path)

    from ahrefs_mcp.server import serve

    serve(settings, catalog)


@app.command("tools")
def tools_cmd(
    catalog_path: Path | None = _catalog_option,
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """List the tools in a catalog."""
    catalog = _load(catalog_path)

    if output_json:
        typer.echo(
            json.dumps(
                [
                    {"name": s.name, "description": s.description, "inputSchema": s.input_schema}
                    for s in catalog.summaries()
                ],
                indent=2,
            )
        )
        return

    table = Table(title=f"{len(catalog)} tools")
    table.add_column("Tool", style="bold")
    table.add_column("Operation")
    table.add_column("Description", overflow="fold")
    for d in catalog:
        op = f"{d.binding.method} {d.binding.path}" if d.binding else "-"
        description = (d.summary.description or "").strip().split("\n")[0]
        table.add_row(d.name, op, description)
    Console().print(table)


@app.command("doc")
def doc_cmd(
    tool: str = typer.Argument(..., help="Tool name, optionally namespaced (ahrefs_getBacklinks)"),
    catalog_path: Path | None = _catalog_option,
):
    """Print a tool's input schema."""
    catalog = _load(catalog_path)
    summary = catalog.summary(strip_namespace(tool))
    if summary is None:
        print_cli_error(f"Tool '{strip_namespace(tool)}' not found.")
        raise typer.Exit(1)
    typer.echo(json.dumps(summary.input_schema, indent=2))


@app.command("version")
def version_cmd():
    """Show version."""
    typer.echo(__version__)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
