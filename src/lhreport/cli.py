"""Typer CLI — ``lhreport generate``, ``html``, ``validate`` and ``info`` commands."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import httpx
import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from lhreport.config import load_config
from lhreport.errors import ReportError, ValidationError
from lhreport.schemas.config import ReportConfig
from lhreport.schemas.report import ReportArtifact

# Load .env file from project root (if it exists)
load_dotenv()

app = typer.Typer(
    name="lhreport",
    help="Lighthouse PDF Report — turn website audit JSON into a styled PDF report.",
    no_args_is_help=True,
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every HTTP request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _load_config_or_exit(config: Path | None) -> ReportConfig:
    try:
        return load_config(config)
    except Exception as exc:
        console.print(f"[red]Config validation failed:[/] {escape(str(exc))}")
        raise typer.Exit(code=1)


def _load_audit_or_exit(source: str) -> Any:
    from lhreport.sources import load_audit

    try:
        return asyncio.run(load_audit(source))
    except ValidationError as exc:
        _print_validation_error(exc)
        raise typer.Exit(code=1)
    except (OSError, httpx.HTTPError) as exc:
        console.print(f"[red]Could not load audit data:[/] {escape(str(exc))}")
        raise typer.Exit(code=1)


def _print_validation_error(exc: ValidationError) -> None:
    console.print(f"[red]{escape(str(exc))}[/]")
    for detail in exc.details:
        console.print(f"  - {escape(detail)}")


@app.command()
def validate(
    input: str = typer.Option(..., "--input", "-i", help="Audit JSON file or http(s) URL."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Check an audit payload against the strict schema without rendering."""
    _setup_logging(verbose)
    from lhreport.schemas.audit import validate_audit_record

    data = _load_audit_or_exit(input)
    try:
        record = validate_audit_record(data)
    except ValidationError as exc:
        _print_validation_error(exc)
        raise typer.Exit(code=1)

    console.print("[green]Audit data is valid![/]\n")
    console.print(f"  Site:   {record.general_info.site_name}")
    console.print(f"  URL:    {record.general_info.site_url}")
    console.print(f"  Date:   {record.general_info.audit_date}")
    scores = record.lighthouse_scores
    if scores and scores.mobile and scores.mobile.total_score is not None:
        console.print(f"  Mobile total:  {scores.mobile.total_score:g}")
    if scores and scores.desktop and scores.desktop.total_score is not None:
        console.print(f"  Desktop total: {scores.desktop.total_score:g}")


@app.command()
def generate(
    input: str = typer.Option(..., "--input", "-i", help="Audit JSON file or http(s) URL."),
    config: Path = typer.Option(None, "--config", "-c", help="Path to report-config.yml"),
    strict: bool = typer.Option(False, "--strict", help="Reject payloads that fail the audit schema."),
    as_json: bool = typer.Option(False, "--json", help="Print the artifact descriptor as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Render an audit payload to a PDF report."""
    _setup_logging(verbose)
    cfg = _load_config_or_exit(config)
    data = _load_audit_or_exit(input)

    artifact = asyncio.run(_run_generate(cfg, data, strict=strict))

    if as_json:
        typer.echo(json.dumps(artifact.model_dump(), indent=2))
        return
    console.print(f"\n[green]PDF written to:[/] {artifact.path}")
    console.print(f"  URL:      {artifact.url}")
    console.print(f"  Size:     {artifact.size} bytes")
    console.print(f"  Duration: {artifact.duration}")


async def _run_generate(cfg: ReportConfig, data: Any, *, strict: bool) -> ReportArtifact:
    from lhreport.report.generator import ReportGenerator
    from lhreport.shared.progress import GenerationProgress

    generator = ReportGenerator(cfg)
    with GenerationProgress() as progress:
        try:
            artifact = await generator.generate(data, strict=strict, on_progress=progress.step)
        except ValidationError as exc:
            progress.failed(str(exc))
            _print_validation_error(exc)
            raise typer.Exit(code=1)
        except ReportError as exc:
            progress.failed(str(exc))
            console.print(f"[red]Report generation failed:[/] {escape(str(exc))}")
            raise typer.Exit(code=1)
        progress.done()
    return artifact


@app.command()
def html(
    input: str = typer.Option(..., "--input", "-i", help="Audit JSON file or http(s) URL."),
    output: Path = typer.Option(..., "--output", "-o", help="Where to write the assembled HTML."),
    config: Path = typer.Option(None, "--config", "-c", help="Path to report-config.yml"),
    strict: bool = typer.Option(False, "--strict", help="Reject payloads that fail the audit schema."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Write the assembled report HTML without printing a PDF.

    Assets are copied next to the output file so it opens correctly in a
    browser while working on the template.

    Example:

        lhreport html --input audit.json --output ./preview/report.html
    """
    _setup_logging(verbose)
    from lhreport.report.generator import ReportGenerator
    from lhreport.shared.storage import FileStore

    cfg = _load_config_or_exit(config)
    data = _load_audit_or_exit(input)

    generator = ReportGenerator(cfg, store=FileStore(output.parent, base_url=cfg.base_url))
    try:
        document = generator.render_html(data, strict=strict)
    except ValidationError as exc:
        _print_validation_error(exc)
        raise typer.Exit(code=1)
    except ReportError as exc:
        console.print(f"[red]Could not assemble HTML:[/] {escape(str(exc))}")
        raise typer.Exit(code=1)

    output.parent.mkdir(parents=True, exist_ok=True)
    generator.copy_assets()
    output.write_text(document, encoding="utf-8")
    console.print(f"[green]HTML written to:[/] {output}")


@app.command()
def info(
    name: str = typer.Argument(..., help="File name of a generated report."),
    config: Path = typer.Option(None, "--config", "-c", help="Path to report-config.yml"),
) -> None:
    """Show size and timestamps of a generated report."""
    from lhreport.shared.storage import FileStore

    cfg = _load_config_or_exit(config)
    store = FileStore(cfg.output_directory, base_url=cfg.base_url)
    try:
        details = store.info(name)
    except (ValueError, FileNotFoundError) as exc:
        console.print(f"[red]{escape(str(exc))}[/]")
        raise typer.Exit(code=1)

    console.print(f"[bold]{details['filename']}[/]")
    console.print(f"  URL:      {store.url(name)}")
    console.print(f"  Size:     {details['size']} bytes")
    console.print(f"  Created:  {details['created']}")
    console.print(f"  Modified: {details['modified']}")
