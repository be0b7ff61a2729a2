"""Command-line interface for forja client generation."""

from __future__ import annotations

import importlib
import json
import sys

import click
from rich.console import Console
from rich.table import Table

from forja.generator.typegen import GenerationError, TypeCompiler
from forja.runtime.registry import Forja, RegistrationError


def load_app(target: str) -> Forja:
    """Import ``package.module:attribute`` and return the Forja registry it names.

    The attribute may be a Forja instance or a zero-argument factory.
    """
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise click.ClickException(f"Expected module:attribute, got {target!r}")

    if "" not in sys.path:
        sys.path.insert(0, "")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise click.ClickException(f"Cannot import {module_name}: {e}") from e
    except RegistrationError as e:
        raise click.ClickException(f"Registration failed in {module_name}: {e}") from e

    app = getattr(module, attr, None)
    if app is None:
        raise click.ClickException(f"{module_name} has no attribute {attr!r}")

    if not isinstance(app, Forja) and callable(app):
        app = app()

    if not isinstance(app, Forja):
        raise click.ClickException(f"{target} is not a Forja instance")
    return app


@click.group()
def cli() -> None:
    """Forja TypeScript client generator."""


@cli.command()
@click.option("--app", "-a", "target", required=True, help="Registry to load, as module:attribute")
@click.option("--output", "-o", "output_file", required=True, help="Output TypeScript file")
def gen(target: str, output_file: str) -> None:
    """Generate the TypeScript client for a registry."""
    app = load_app(target)
    try:
        app.write_client(output_file)
    except GenerationError as e:
        raise click.ClickException(f"Cannot generate client: {e}") from e

    click.echo(f"Generated client for {len(app)} handlers in {output_file}")


@cli.command()
@click.option("--app", "-a", "target", required=True, help="Registry to load, as module:attribute")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def info(target: str, output_json: bool) -> None:
    """Display registered handlers and their routes."""
    app = load_app(target)
    compiler = TypeCompiler()

    rows = []
    try:
        for handler in app:
            rows.append(
                {
                    "key": handler.key,
                    "route": app.route(handler.namespace, handler.name),
                    "input": compiler.compile(handler.input_type),
                    "output": compiler.compile(handler.output_type),
                    "input_is_empty": handler.input_is_empty,
                }
            )
    except GenerationError as e:
        raise click.ClickException(str(e)) from e

    if output_json:
        print(json.dumps({"path": app.config.path, "handlers": rows, "types": len(compiler)}, indent=2))
    else:
        _output_plain(rows, len(compiler))


def _output_plain(rows: list[dict], type_count: int) -> None:
    """Output handler info using rich text formatting."""
    console = Console()

    console.print("[bold cyan]Handlers[/bold cyan]")
    table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    table.add_column("Handler", style="white")
    table.add_column("Route", style="green")
    table.add_column("Input", style="yellow")
    table.add_column("Output", style="yellow")

    for row in rows:
        input_type = "-" if row["input_is_empty"] else _first_line(row["input"])
        table.add_row(row["key"], row["route"], input_type, _first_line(row["output"]))

    console.print(table)
    console.print()
    console.print(f"[dim]{type_count} named types[/dim]")


def _first_line(text: str) -> str:
    """Shorten inline object literals for display."""
    first, _, rest = text.partition("\n")
    return f"{first} ...}}" if rest else first


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
