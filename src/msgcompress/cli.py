"""Command-line interface for msgcompress."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from msgcompress.base import (
    CompressionAlgorithm,
    CompressionConfig,
    CompressionError,
)
from msgcompress.buffer import SliceBuffer
from msgcompress.dispatch import CompressionDispatcher
from msgcompress.engines import is_snappy_available
from msgcompress.registry import CompressorRegistry

app = typer.Typer(
    name="msgcompress",
    help="Compress and decompress message payloads",
    add_completion=False,
)


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Message compression tools."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _parse_algorithm(name: str) -> CompressionAlgorithm:
    try:
        return CompressionAlgorithm.from_name(name)
    except CompressionError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _make_dispatcher(block_size: int) -> CompressionDispatcher:
    try:
        return CompressionDispatcher(CompressionConfig(block_size=block_size))
    except CompressionError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


@app.command(name="compress")
def compress_cmd(
    file: Annotated[Path, typer.Argument(help="File to compress")],
    algorithm: Annotated[
        str,
        typer.Option("--algorithm", "-a", help="Encoding name (identity, deflate, gzip, snappy)"),
    ] = "gzip",
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output file path"),
    ] = None,
    block_size: Annotated[
        int,
        typer.Option("--block-size", help="Output block size in bytes"),
    ] = 1024,
) -> None:
    """Compress a file, falling back to a copy when it would not shrink."""
    if not file.exists():
        typer.echo(f"Error: File not found: {file}", err=True)
        raise typer.Exit(1)

    algo = _parse_algorithm(algorithm)
    dispatcher = _make_dispatcher(block_size)

    data = file.read_bytes()
    outcome = dispatcher.compress_with_result(algo, SliceBuffer.from_bytes(data, block_size))
    output = output or file.with_name(f"{file.name}.{algo.encoding_name}")
    output.write_bytes(outcome.output.join())

    table = Table(show_header=True, header_style="bold")
    table.add_column("Algorithm", style="cyan")
    table.add_column("Input", justify="right")
    table.add_column("Output", justify="right")
    table.add_column("Applied")
    table.add_row(
        algo.encoding_name,
        f"{len(data):,}",
        f"{outcome.output.length:,}",
        "yes" if outcome.applied else f"no ({outcome.reason.value})",
    )
    console = Console()
    console.print(table)
    console.print(f"Written to {output}")


@app.command(name="decompress")
def decompress_cmd(
    file: Annotated[Path, typer.Argument(help="File to decompress")],
    algorithm: Annotated[
        str,
        typer.Option("--algorithm", "-a", help="Encoding name the file was compressed with"),
    ] = "gzip",
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output file path"),
    ] = None,
    block_size: Annotated[
        int,
        typer.Option("--block-size", help="Output block size in bytes"),
    ] = 1024,
) -> None:
    """Decompress a file; exits with status 1 if the payload is corrupt."""
    if not file.exists():
        typer.echo(f"Error: File not found: {file}", err=True)
        raise typer.Exit(1)

    algo = _parse_algorithm(algorithm)
    dispatcher = _make_dispatcher(block_size)

    try:
        restored = dispatcher.decompress_or_raise(
            algo, SliceBuffer.from_bytes(file.read_bytes(), block_size)
        )
    except CompressionError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    if output is None:
        suffix = f".{algo.encoding_name}"
        name = file.name[: -len(suffix)] if file.name.endswith(suffix) else f"{file.name}.out"
        output = file.with_name(name)
    output.write_bytes(restored.join())
    typer.echo(f"Decompressed {restored.length:,} bytes to {output}")


@app.command(name="algorithms")
def algorithms_cmd() -> None:
    """List registered compressors."""
    registry = CompressorRegistry(include_snappy=True)

    table = Table(show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Algorithm")
    for name in registry.names():
        compressor = registry.get(name)
        table.add_row(name, compressor.algorithm.encoding_name if compressor else "-")
    Console().print(table)

    if not is_snappy_available():
        typer.echo("snappy: unavailable (install python-snappy)")


if __name__ == "__main__":
    app()
