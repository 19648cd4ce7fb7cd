"""Command-line interface for piimask.

Provides:
- `serve`: Run the HTTP detection service.
- `detect`: Print detected entities for a text as JSON.
- `redact-text`: Print a text with every detected span replaced.
- `redact-pdf`: Redact a PDF and write an audit record next to it.
- `batch`: Redact every PDF in a directory or glob.
"""

import sys
from glob import glob
from pathlib import Path
from typing import Optional

import orjson
import typer
from rich import print

from .errors import PiimaskError
from .gateway import InferenceGateway
from .settings import get_settings

app = typer.Typer(add_completion=False, help="piimask PII detection and redaction")


def _load_gateway() -> InferenceGateway:
    try:
        return InferenceGateway.from_pretrained(get_settings())
    except PiimaskError as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)


def _read_text(text: Optional[str], file: Optional[str]) -> str:
    if text is not None:
        return text
    if file:
        return Path(file).read_text(encoding="utf-8")
    return sys.stdin.read()


def _model_ref() -> str:
    s = get_settings()
    return f"{s.model_repo}@{s.model_revision}"


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", "-i", help="Host to listen on"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to listen on"),
    log_level: str = typer.Option("info", help="uvicorn log level"),
):
    """Run the FastAPI service (defaults from PIIMASK_API_HOST / PIIMASK_API_PORT)."""
    from .api import run

    run(host=host, port=port, log_level=log_level)


@app.command()
def detect(
    text: Optional[str] = typer.Argument(None, help="Text to scan (stdin if omitted)"),
    file: Optional[str] = typer.Option(None, "--file", "-f", help="Read text from a file"),
):
    """Print detected entities as JSON."""
    from .core import detect_entities

    gateway = _load_gateway()
    try:
        entities = detect_entities(_read_text(text, file), gateway)
    except PiimaskError as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    payload = [e.model_dump() for e in entities]
    typer.echo(orjson.dumps({"entities": payload}, option=orjson.OPT_INDENT_2).decode())


@app.command("redact-text")
def redact_text(
    text: Optional[str] = typer.Argument(None, help="Text to redact (stdin if omitted)"),
    file: Optional[str] = typer.Option(None, "--file", "-f", help="Read text from a file"),
):
    """Print the sanitized text."""
    from .core import detect_and_redact_text

    gateway = _load_gateway()
    try:
        result = detect_and_redact_text(_read_text(text, file), gateway)
    except PiimaskError as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    typer.echo(result.sanitized_text)


@app.command("redact-pdf")
def redact_pdf(
    input: str = typer.Option(..., "--input", "-i", help="Input PDF path"),
    output: str = typer.Option(..., "--output", "-o", help="Output redacted PDF path"),
    workers: int = typer.Option(1, help="Page detection threads"),
    audit: bool = typer.Option(True, "--audit/--no-audit", help="Write <output>.audit.json"),
):
    """Redact PII from a PDF and write the result."""
    from .core import RunConfig, process_path

    gateway = _load_gateway()
    cfg = RunConfig(workers=workers, write_audit=audit)
    try:
        res = process_path(input, output, gateway, cfg, model_ref=_model_ref())
    except (PiimaskError, OSError) as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    print(f"[green]Redacted PDF:[/green] {res['out']}")
    if res.get("audit"):
        print(f"[green]Audit:[/green] {res['audit']}")


@app.command()
def batch(
    input_dir: str = typer.Option(..., help="Input directory or glob pattern"),
    output_dir: str = typer.Option(..., help="Output directory for PDFs"),
    workers: int = typer.Option(1, help="Page detection threads per document"),
):
    """Redact every PDF in a directory or glob."""
    from .batch import run_batch
    from .core import RunConfig

    p = Path(input_dir)
    if p.exists() and p.is_dir():
        files = sorted(str(fp) for fp in p.iterdir() if fp.suffix.lower() == ".pdf")
    else:
        files = sorted(glob(input_dir))
    if not files:
        print("[red]No inputs found[/red]")
        raise typer.Exit(code=1)

    gateway = _load_gateway()
    done, failed = run_batch(
        files, output_dir, gateway, RunConfig(workers=workers), model_ref=_model_ref()
    )
    print(f"[green]Completed {len(done)} files[/green]")
    for inp, err in failed:
        print(f"[red]Failed[/red] {inp}: {err}")
    if failed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
