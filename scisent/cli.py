"""
Command-line interface for SciSent.

Provides commands for:
- Extracting representative body-text sentences from a PDF
- Inspecting the modal layout classification of a document
- Translating extracted sentences with DeepL
- Rendering pages to PNG
- Managing API keys

Usage:
    scisent extract paper.pdf --limit 3
    scisent classify paper.pdf
    scisent translate paper.pdf --target ZH --limit 3
    scisent render paper.pdf pages/ --width 1000
    scisent keys list
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from scisent import __version__
from scisent.config import APP_NAME, RENDER_DIR, ensure_dirs, load_settings
from scisent.errors import ScisentError
from scisent.ingest import open_source
from scisent.pipeline import ExtractionPipeline, ExtractionResult, PipelineConfig
from scisent.segment import SegmenterConfig

app = typer.Typer(
    name="scisent",
    help="SciSent: representative sentences from the body text of PDF documents",
    add_completion=False,
)
console = Console()

logger = logging.getLogger("scisent.cli")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, load_settings().log_level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(levelname)-7s %(name)s: %(message)s",
    )
    logging.getLogger("scisent").setLevel(level)


def _fail(error: Exception) -> None:
    console.print(f"[red]Error:[/] {error}", style="bold")
    raise typer.Exit(1)


def _run_pipeline(
    input_file: Path,
    limit: Optional[int],
    workers: Optional[int],
    tolerance: float = 0.0,
    lowercase_only: bool = False,
) -> ExtractionResult:
    config = PipelineConfig(
        max_workers=workers or load_settings().max_workers,
        tolerance=tolerance,
        segmenter=SegmenterConfig(lowercase_only=lowercase_only),
    )
    logger.debug("Pipeline config: %s", config.to_dict())
    pipeline = ExtractionPipeline(config)
    with open_source(input_file) as source:
        return pipeline.run(source, limit=limit)


def version_callback(value: bool):
    if value:
        console.print(f"{APP_NAME} v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """SciSent: body-text sentence extraction for PDFs."""
    pass


@app.command()
def extract(
    input_file: Path = typer.Argument(..., help="PDF file (or pdf.js JSON dump)"),
    limit: Optional[int] = typer.Option(
        None, "--limit", "-n", min=0,
        help="Maximum number of sentences to print (default: all)",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print sentences as a JSON array"),
    workers: Optional[int] = typer.Option(
        None, "--workers", "-w", min=1,
        help="Concurrent page readers",
    ),
    tolerance: float = typer.Option(
        0.0, "--tolerance", min=0.0,
        help="Numeric tolerance for layout matching (0 = exact)",
    ),
    lowercase_only: bool = typer.Option(
        False, "--lowercase-only",
        help="Only start a new sentence before a lowercase letter",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
):
    """Extract body-text sentences from a document."""
    _setup_logging(verbose)
    try:
        result = _run_pipeline(input_file, limit, workers, tolerance, lowercase_only)
    except ScisentError as e:
        _fail(e)

    if as_json:
        typer.echo(json.dumps(result.sentences, ensure_ascii=False, indent=2))
        return

    if not result.sentences:
        console.print("[yellow]No sentences found.[/]")
        return

    for i, sentence in enumerate(result.sentences, 1):
        console.print(f"[cyan]{i:>3}.[/] {sentence}", highlight=False)
    console.print(f"\n[dim]Stats: {result.stats}[/]")


@app.command()
def classify(
    input_file: Path = typer.Argument(..., help="PDF file (or pdf.js JSON dump)"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", min=1),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
):
    """Show the modal layout classification of a document."""
    _setup_logging(verbose)
    try:
        result = _run_pipeline(input_file, limit=0, workers=workers)
    except ScisentError as e:
        _fail(e)

    if result.classification is None:
        console.print("[yellow]Document has no text fragments.[/]")
        return

    table = Table(title=f"Modal Layout: {input_file.name}")
    table.add_column("Feature", style="cyan")
    table.add_column("Modal value", style="green")
    table.add_column("Count", justify="right")
    table.add_column("Distinct values", justify="right")

    for name, value in result.classification.to_dict().items():
        feature = name.replace("modal_", "")
        hist = result.histograms[feature]
        table.add_row(feature, repr(value), str(hist[value]), str(len(hist)))

    console.print(table)
    console.print(
        f"Body fragments: {result.body_fragment_count} / {result.fragment_count}"
    )


@app.command()
def translate(
    input_file: Optional[Path] = typer.Argument(None, help="PDF file to extract from"),
    input_text: Optional[str] = typer.Option(
        None, "--text", "-t",
        help="Translate this text instead of a document",
    ),
    target_lang: Optional[str] = typer.Option(
        None, "--target", "-l",
        help="Target language code (default: SCISENT_TARGET_LANG or ZH)",
    ),
    source_lang: Optional[str] = typer.Option(None, "--source", "-s", help="Source language code"),
    backend: str = typer.Option("deepl", "--backend", "-b", help="Translation backend (deepl, dummy)"),
    limit: Optional[int] = typer.Option(
        3, "--limit", "-n", min=0,
        help="Number of extracted sentences to translate",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
):
    """Translate extracted sentences (or --text) with DeepL."""
    from scisent.translate import create_translator

    _setup_logging(verbose)

    if not input_text and not input_file:
        console.print("[red]Error:[/] Provide either a document or --text", style="bold")
        raise typer.Exit(1)

    try:
        if input_text:
            sentences = [input_text]
        else:
            sentences = _run_pipeline(input_file, limit, workers=None).sentences
        translator = create_translator(
            backend,
            target_lang=target_lang,
            source_lang=source_lang,
        )
        results = translator.translate_batch(sentences)
    except (ScisentError, ValueError) as e:
        _fail(e)

    if not results:
        console.print("[yellow]No sentences to translate.[/]")
        return

    table = Table(title=f"Translations ({translator.name})")
    table.add_column("Source")
    table.add_column("Translation", style="green")
    for res in results:
        table.add_row(res.source_text, res.text)
    console.print(table)


@app.command()
def render(
    input_file: Path = typer.Argument(..., help="PDF file to render"),
    output_dir: Optional[Path] = typer.Argument(
        None, help="Directory for page-NNNN.png files (default: ~/.scisent/cache/pages)",
    ),
    width: Optional[int] = typer.Option(
        None, "--width", min=1,
        help="Target bitmap width in pixels (default: SCISENT_RENDER_WIDTH or 800)",
    ),
    scale: float = typer.Option(1.0, "--scale", min=0.1, help="Device pixel ratio"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
):
    """Render document pages to PNG images."""
    from scisent.render import PageRenderer, RenderConfig

    _setup_logging(verbose)
    settings = load_settings()
    if output_dir is None:
        ensure_dirs()
        output_dir = RENDER_DIR
    renderer = PageRenderer(RenderConfig(
        desired_width=width or settings.render_width,
        output_scale=scale,
        max_workers=settings.max_workers,
    ))
    try:
        result = renderer.render_document(input_file, output_dir)
    except ScisentError as e:
        _fail(e)

    console.print(f"[green]Rendered {len(result.outputs)} pages to:[/] {output_dir}")
    for index, message in sorted(result.failures.items()):
        console.print(f"  [yellow]Page {index + 1} failed:[/] {message}")
    if result.failures:
        raise typer.Exit(2)


@app.command()
def keys(
    action: str = typer.Argument(..., help="Action: list, set, status, delete"),
    service: Optional[str] = typer.Argument(None, help="Service name (deepl)"),
):
    """Manage API keys.

    Examples:
        scisent keys list
        scisent keys set deepl
        scisent keys status deepl
        scisent keys delete deepl
    """
    from scisent.keys import KeyManager, SERVICES

    km = KeyManager()

    if action == "list":
        table = Table(title="API Keys Status")
        table.add_column("Service", style="cyan")
        table.add_column("Status")
        table.add_column("Source", style="yellow")
        table.add_column("Value", style="dim")

        for key_info in km.list_keys():
            status = "[green]✓ Set[/]" if key_info.is_set else "[red]✗ Not set[/]"
            table.add_row(
                key_info.service,
                status,
                key_info.source,
                key_info.masked_value if key_info.is_set else "-",
            )

        console.print(table)
        console.print("\n[dim]Priority: env > keychain > config file[/]")
        return

    if action not in ("set", "status", "delete"):
        console.print(f"[red]Error:[/] Unknown action '{action}'")
        raise typer.Exit(1)

    if not service:
        console.print("[red]Error:[/] Service name required")
        console.print(f"Available services: {', '.join(SERVICES)}")
        raise typer.Exit(1)

    if action == "set":
        key = typer.prompt(f"Enter API key for {service}", hide_input=True)
        if not key.strip():
            console.print("[red]Error:[/] Key cannot be empty")
            raise typer.Exit(1)
        storage = km.set_key(service, key.strip())
        console.print(f"[green]✓[/] API key for {service} saved to {storage}")
        if storage == "config":
            console.print(f"[yellow]Note:[/] Key stored in local file ({km.config_file})")

    elif action == "status":
        key_info = km.get_key_info(service)
        if key_info.is_set:
            console.print(f"[green]✓[/] API key for {service} is set")
            console.print(f"    Source: {key_info.source}")
            console.print(f"    Value: {key_info.masked_value}")
        else:
            env_var = SERVICES.get(service, f"{service.upper()}_API_KEY")
            console.print(f"[red]✗[/] No API key found for {service}")
            console.print(f"  Set with: [cyan]scisent keys set {service}[/] or export {env_var}")

    else:
        if km.delete_key(service):
            console.print(f"[green]✓[/] API key for {service} deleted")
        else:
            console.print(f"[yellow]No stored key for {service}[/]")


@app.command()
def info():
    """Show version, dependency status and settings."""
    from scisent.keys import KeyManager

    console.print(f"[bold]{APP_NAME} v{__version__}[/]\n")

    table = Table(title="Components")
    table.add_column("Component", style="cyan")
    table.add_column("Status")
    table.add_column("Notes")

    try:
        import fitz
        table.add_row("PyMuPDF", "[green]✓ Installed[/]", f"MuPDF {fitz.VersionBind}")
    except ImportError:
        table.add_row("PyMuPDF", "[yellow]✗ Not installed[/]", "pip install PyMuPDF")

    has_key = KeyManager().get_key("deepl") is not None
    table.add_row(
        "deepl",
        "[green]✓ Available[/]" if has_key else "[yellow]⚠ No API key[/]",
        "DeepL v2 REST API",
    )
    table.add_row("dummy", "[green]✓ Available[/]", "Offline test translator")
    console.print(table)

    settings_table = Table(title="Settings")
    settings_table.add_column("Setting", style="cyan")
    settings_table.add_column("Value")
    for name, value in load_settings().to_dict().items():
        settings_table.add_row(name, str(value))
    console.print(settings_table)


if __name__ == "__main__":
    app()
