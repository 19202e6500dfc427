import asyncio
import re
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from docrender.config.environment import Environment
from docrender.config.logging_config import get_logger
from docrender.engine.contract import LogLevel, OutputFormat, load_engine_factory
from docrender.errors import DocRenderError
from docrender.render.renderer import Renderer
from docrender.render.request import RenderRequest
from docrender.render.result import TextResult

console = Console()
err_console = Console(stderr=True)
log = get_logger(__name__)

_URL_RE = re.compile(r"^[a-z][a-z0-9+.-]*:", re.IGNORECASE)
_FORMATS = [f.value for f in OutputFormat]


def _is_url(value: str) -> bool:
    # Windows drive letters ("C:\...") are paths, not URL schemes
    if re.match(r"^[a-zA-Z]:[\\/]", value):
        return False
    return bool(_URL_RE.match(value)) and not value.startswith("data:")


def _default_output(source: str, is_url: bool, output_format: str) -> str:
    if is_url:
        return f"output.{output_format}"
    return f"{Path(source).stem}.{output_format}"


def _engine_sink(level: LogLevel, message: str) -> None:
    err_console.print(f"[Engine] {level.name}: {message}", markup=False, highlight=False)


@click.group()
def cli():
    """docrender CLI - render HTML documents to SVG, PNG, WebP or PDF."""
    pass


@cli.command("render")
@click.argument("source", type=str)
@click.option("-o", "--output", default=None, help="Output file path.")
@click.option("-w", "--width", default=800, type=int, show_default=True, help="Viewport width.")
@click.option("-h", "--height", default=0, type=int, help="Viewport height (0 = auto).")
@click.option("-f", "--format", "output_format", type=click.Choice(_FORMATS), default=None, help="Output format.")
@click.option("--engine", default=None, help="Engine factory as 'package.module:callable' (default: DOCRENDER_ENGINE).")
@click.option("--verbose", "-v", is_flag=True, help="Enable detailed engine logging on stderr.")
def render(
    source: str,
    output: str | None,
    width: int,
    height: int,
    output_format: str | None,
    engine: str | None,
    verbose: bool,
):
    """Render SOURCE (an HTML file or URL)."""
    engine_path = engine or Environment.get_engine_factory()
    if not engine_path:
        err_console.print("[red]Error:[/] no engine configured. Pass --engine or set DOCRENDER_ENGINE.")
        sys.exit(1)

    is_url = _is_url(source)
    fmt = output_format or "png"
    if output is None:
        output = _default_output(source, is_url, fmt)
    if output_format is None:
        ext = Path(output).suffix.lower().lstrip(".")
        if ext in _FORMATS:
            fmt = ext

    request_args: dict = {
        "width": width,
        "height": height,
        "format": fmt,
        "css": "body { background-color: white; }",
        "log_level": LogLevel.DEBUG if verbose else LogLevel.NONE,
        "on_log": _engine_sink if verbose else None,
    }
    if is_url:
        request_args["url"] = source
    else:
        path = Path(source)
        if not path.is_file():
            err_console.print(f"[red]Error:[/] File not found: {source}")
            sys.exit(1)
        request_args["value"] = path.read_text(encoding="utf-8")
        request_args["base_url"] = str(path.resolve().parent)

    try:
        factory = load_engine_factory(engine_path)
        renderer = Renderer(factory)
        result = asyncio.run(renderer.render(RenderRequest(**request_args)))
    except (DocRenderError, ImportError, AttributeError, ValueError, TypeError) as e:
        log.debug("Render failed", exc_info=True)
        err_console.print(f"[red]Error during rendering:[/] {e}")
        sys.exit(1)

    try:
        if isinstance(result, TextResult):
            Path(output).write_text(result.text, encoding="utf-8")
        else:
            Path(output).write_bytes(result.data)
    except OSError as e:
        err_console.print(f"[red]Error during rendering:[/] could not write {output}: {e}")
        sys.exit(1)
    console.print(f"[green]Successfully rendered to {output}[/]")


@cli.group()
def settings():
    """Inspect docrender configuration."""
    pass


@settings.command("show")
def show_settings():
    """Show the effective configuration values."""
    table = Table(title="Settings")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    rows = {
        "DOCRENDER_ENGINE": Environment.get_engine_factory() or "",
        "DOCRENDER_USER_AGENT": Environment.get_user_agent(),
        "DOCRENDER_MAX_WORKERS": str(Environment.get_max_workers()),
        "DOCRENDER_HTTP_TIMEOUT": str(Environment.get_http_timeout()),
        "DOCRENDER_LOG_LEVEL": Environment.get_log_level(),
    }
    for key, value in rows.items():
        table.add_row(key, value)
    console.print(table)


if __name__ == "__main__":
    cli()
