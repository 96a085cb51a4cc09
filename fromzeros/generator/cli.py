"""Command-line interface for fromzeros code generation."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING, NoReturn

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from fromzeros.generator import rust
from fromzeros.generator.derive import TRAIT_PATH, analyze, derive_all, known_types
from fromzeros.generator.errors import GenerationError
from fromzeros.generator.parser import parse, parse_json

if TYPE_CHECKING:
    from fromzeros.generator.derive import Analysis
    from fromzeros.generator.types import TypeDescriptor

FORMATS = ["auto", "rust", "json"]


def _load(input_file: str, input_format: str) -> list[TypeDescriptor]:
    """Read type definitions, picking the front-end from the format or file suffix."""
    with open(input_file, encoding="utf-8") as f:
        text = f.read()

    if input_format == "auto":
        input_format = "json" if Path(input_file).suffix == ".json" else "rust"

    source = Path(input_file).name
    if input_format == "json":
        return parse_json(text, source=source)
    return parse(text, source=source)


def _fail(error: GenerationError) -> NoReturn:
    """Report a generation error on stderr and exit."""
    console = Console(stderr=True, soft_wrap=True)
    console.print(f"[bold red]error{escape(f'[{error.code}]')}[/bold red]: {escape(str(error))}")
    sys.exit(1)


@click.group()
def cli() -> None:
    """FromZeros implementation generator."""


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input type definitions")
@click.option("--output", "-o", "output_file", required=True, help="Output file")
@click.option(
    "--format",
    "-f",
    "input_format",
    type=click.Choice(FORMATS),
    default="auto",
    help="Input format. auto picks json for .json files, rust otherwise",
)
@click.option("--trait-path", default=TRAIT_PATH, help="Path of the FromZeros trait")
@click.option(
    "--assume",
    "-a",
    multiple=True,
    help="Type known to implement FromZeros (repeatable)",
)
def gen(
    input_file: str, output_file: str, input_format: str, trait_path: str, assume: tuple[str, ...]
) -> None:
    """Generate FromZeros implementations from type definitions."""
    try:
        descriptors = _load(input_file, input_format)
        impls = derive_all(descriptors, assume=assume, trait_path=trait_path)
    except GenerationError as e:
        _fail(e)

    generated_file = rust.render(impls, comments=[f"Source: {Path(input_file).name}"])

    with open(output_file, "w", encoding="utf-8") as f:
        f.write(generated_file)


@cli.command()
@click.option("--output", "-o", "output_file", required=True, help="Output file")
def runtime(output_file: str) -> None:
    """Generate the runtime providing FromZeros for leaf types."""
    with open(output_file, "w", encoding="utf-8") as f:
        f.write(rust.runtime())
    print(f"Generated runtime in {output_file}")


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input type definitions")
@click.option(
    "--format", "-f", "input_format", type=click.Choice(FORMATS), default="auto", help="Input format"
)
@click.option("--trait-path", default=TRAIT_PATH, help="Path of the FromZeros trait")
@click.option("--assume", "-a", multiple=True, help="Type known to implement FromZeros")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def info(
    input_file: str, input_format: str, trait_path: str, assume: tuple[str, ...], output_json: bool
) -> None:
    """Display how each type definition is analyzed."""
    try:
        descriptors = _load(input_file, input_format)
    except GenerationError as e:
        _fail(e)

    known = known_types(descriptors, assume)
    results = [analyze(d, known=known, trait_path=trait_path) for d in descriptors]

    if output_json:
        _output_json(results)
    else:
        _output_plain(results)

    if not all(result.ok for result in results):
        sys.exit(1)


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input type definitions")
@click.option(
    "--format", "-f", "input_format", type=click.Choice(FORMATS), default="auto", help="Input format"
)
def describe(input_file: str, input_format: str) -> None:
    """Print the parsed type descriptors as JSON."""
    try:
        descriptors = _load(input_file, input_format)
    except GenerationError as e:
        _fail(e)

    print(json.dumps([d.to_dict() for d in descriptors], indent=2))


def _output_json(results: list[Analysis]) -> None:
    """Output analysis results as JSON."""
    data: dict = {"types": {}}

    for result in results:
        data["types"][result.name] = {
            "kind": result.kind.value,
            "representation": result.representation.value if result.representation else None,
            "zero_variant": result.zero_variant,
            "generics": [param.to_dict() for param in result.generics],
            "error": {"code": result.error.code, "message": str(result.error)}
            if result.error
            else None,
        }

    print(json.dumps(data, indent=2))


def _output_plain(results: list[Analysis]) -> None:
    """Output analysis results using rich text formatting."""
    console = Console()

    console.print("[bold cyan]Types[/bold cyan]")
    table = Table(show_header=True, box=None, padding=(0, 2, 0, 0))
    table.add_column("Name", style="white")
    table.add_column("Kind", style="dim")
    table.add_column("Layout", style="dim")
    table.add_column("Zero variant", style="yellow")
    table.add_column("Status")

    for result in results:
        layout = result.representation.value if result.representation else "-"
        status = "[green]ok[/green]" if result.error is None else f"[red]{result.error.code}[/red]"
        table.add_row(result.name, result.kind.value, layout, result.zero_variant or "-", status)

    console.print(table)

    errors = [result.error for result in results if result.error is not None]
    if errors:
        console.print()
        console.print("[bold cyan]Errors[/bold cyan]")
        for error in errors:
            console.print(escape(str(error)), soft_wrap=True)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
