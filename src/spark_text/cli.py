"""Command-line interface for Spark Text."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

from spark_text import __version__
from spark_text.config import get_settings
from spark_text.core.converter import BatchResult, DocumentConverter
from spark_text.errors import ConversionError
from spark_text.formats import EXPORT_FORMATS, SUPPORTED_EXTENSIONS
from spark_text.formatting.renderer import render
from spark_text.logging_utils import configure_logging

app = typer.Typer(
    name="spark-text",
    help="Convert rich-text editor documents between HTML, Markdown, plain text and Word.",
    add_completion=False,
)
console = Console()

EXIT_NO_CONTENT = 2


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Spark Text v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Spark Text document converter."""


def find_files(folder: Path) -> list[Path]:
    """Find all supported files in a folder, recursively."""
    files: list[Path] = []
    for ext in SUPPORTED_EXTENSIONS:
        files.extend(folder.rglob(f"*{ext}"))
    return sorted(set(files))


def convert_folder(
    converter: DocumentConverter,
    folder: Path,
    fmt: str,
    output_dir: Optional[Path],
) -> tuple[int, int]:
    """Convert all supported files in a folder. Returns (success_count, fail_count)."""
    files = find_files(folder)
    if not files:
        console.print(
            f"[yellow]No supported files found in {folder}[/yellow]\n"
            f"Supported formats: {', '.join(SUPPORTED_EXTENSIONS)}"
        )
        return 0, 0

    console.print(f"[blue]Found {len(files)} file(s) to convert[/blue]")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Converting files...", total=len(files))

        def on_complete(result: BatchResult) -> None:
            if result.ok:
                progress.console.print(f"[green]Converted:[/green] {result.output}")
            else:
                progress.console.print(
                    f"[red]Error converting {result.source.name}:[/red] {result.error}"
                )
            progress.advance(task)

        results = converter.convert_many(
            files, fmt, output_dir=output_dir, on_complete=on_complete
        )

    success = sum(1 for result in results if result.ok)
    return success, len(results) - success


@app.command()
def convert(
    path: Path = typer.Argument(
        ...,
        help="File or folder to convert",
        exists=True,
    ),
    to: str = typer.Option(
        "html",
        "--to",
        help=f"Export format: {', '.join(EXPORT_FORMATS)}",
    ),
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output directory (default: next to each source file)",
    ),
    title: Optional[str] = typer.Option(
        None,
        "--title",
        "-t",
        help="Document title (single file only; default: the file name)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
) -> None:
    """
    Convert a document, or every supported document in a folder.

    Examples:

        spark-text convert notes.html --to markdown

        spark-text convert report.md --to docx -o exports -t "Informe"

        spark-text convert /path/to/folder --to txt
    """
    settings = get_settings()
    configure_logging(settings.log_level, verbose)
    converter = DocumentConverter(settings)

    if to.lower() not in EXPORT_FORMATS and to.lower() != "md":
        console.print(
            f"[red]Error:[/red] Unsupported export format: {to}. "
            f"Supported formats: {', '.join(EXPORT_FORMATS)}"
        )
        raise typer.Exit(1)

    if path.is_dir():
        if title is not None:
            console.print(
                "[yellow]Warning:[/yellow] --title is ignored in folder mode. "
                "Each file is titled after its name."
            )
        success, fail = convert_folder(converter, path, to, output_dir)
        console.print(f"\n[bold]Complete:[/bold] {success} succeeded, {fail} failed")
        raise typer.Exit(0 if fail == 0 else 1)

    if verbose:
        console.print(f"[blue]Converting:[/blue] {path}")
        console.print(f"[blue]Format:[/blue] {to}")

    try:
        output = converter.convert_file(path, to, output_dir, title)
    except ConversionError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Error processing {path.name}:[/red] {e}")
        if verbose:
            console.print_exception()
        raise typer.Exit(1)

    console.print(f"[green]Success:[/green] {output}")


@app.command()
def salvage(
    path: Path = typer.Argument(
        ...,
        help="PDF file or raw text dump to reconstruct",
        exists=True,
        dir_okay=False,
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the reconstructed markup here (default: print it)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
) -> None:
    """
    Reconstruct structured content from a damaged PDF or extracted text.

    Exits with code 2 when no readable text could be recovered.
    """
    settings = get_settings()
    configure_logging(settings.log_level, verbose)
    converter = DocumentConverter(settings)

    try:
        result = converter.salvage_file(path)
    except ConversionError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    markup = render(result.document)
    if output is not None:
        output.write_text(markup + "\n", encoding="utf-8")
    else:
        typer.echo(markup)

    if not result.ok:
        console.print(
            f"[yellow]Warning:[/yellow] No extractable content in {path.name}"
        )
        raise typer.Exit(EXIT_NO_CONTENT)

    if output is not None:
        console.print(f"[green]Success:[/green] {output}")


if __name__ == "__main__":
    app()
