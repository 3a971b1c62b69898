"""Command line interface.

Usage:
    stencil serve                      # Start on 127.0.0.1:8089
    stencil scaffold acme              # Scaffold + build one project
    stencil update acme --view App.vue # Replace the view and rebuild
    stencil init-config                # Write .stencil/config.yaml
"""

import asyncio
from pathlib import Path

import click
from rich.console import Console

from stencil.cli.error_handler import handle_error
from stencil.foundation.config import StencilConfig, load_config, save_default_config
from stencil.foundation.errors import ErrorCode, StencilError, ValidationError
from stencil.foundation.logging import DEFAULT_LOG_DIR, configure_logging
from stencil.service import TemplateService

console = Console()


def _setup(ctx: click.Context) -> StencilConfig:
    """Load config and configure logging from the group options."""
    opts = ctx.obj
    try:
        config = load_config(opts["config_path"])
    except StencilError as e:
        handle_error(e, json_output=opts["json_output"])
    configure_logging(
        level=opts["log_level"],
        debug=opts["debug"] or config.debug,
        log_dir=DEFAULT_LOG_DIR if opts["persist_logs"] else None,
    )
    return config


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Config file path")
@click.option("--debug", is_flag=True, help="Enable DEBUG logging")
@click.option("--log-level", default=None, help="Explicit log level (DEBUG, INFO, ...)")
@click.option("--persist-logs", is_flag=True, help="Also write a DEBUG run log to .stencil/logs")
@click.option("--json", "json_output", is_flag=True, help="Print errors as JSON")
@click.pass_context
def main(
    ctx: click.Context,
    config_path: str | None,
    debug: bool,
    log_level: str | None,
    persist_logs: bool,
    json_output: bool,
) -> None:
    """Scaffold, update, and rebuild template projects."""
    ctx.obj = {
        "config_path": config_path,
        "debug": debug,
        "log_level": log_level,
        "persist_logs": persist_logs,
        "json_output": json_output,
    }


@main.command()
@click.option("--host", default=None, help="Host to bind to (default from config)")
@click.option("--port", default=None, type=int, help="Port to listen on (default from config)")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Start the HTTP server."""
    import uvicorn

    from stencil.server import create_app

    config = _setup(ctx)
    host = host or config.server.host
    port = port or config.server.port

    console.print()
    console.print("[bold green]Stencil[/bold green]")
    console.print(f"   URL: http://{host}:{port}")
    console.print(f"   Templates: {Path(config.paths.template_dir).resolve()}")
    console.print(f"   Output: {Path(config.paths.output_dir).resolve()}")
    console.print(f"   Build: {config.build.tool} (failure policy: {config.queue.failure_policy})")
    console.print()
    console.print("[dim]Press Ctrl+C to stop[/dim]")
    console.print()

    uvicorn.run(create_app(config), host=host, port=port, log_level="info")


@main.command()
@click.argument("name")
@click.pass_context
def scaffold(ctx: click.Context, name: str) -> None:
    """Scaffold NAME from the template and build it."""
    config = _setup(ctx)
    service = TemplateService(config)

    try:
        with console.status(f"Scaffolding {name}..."):
            outcome = asyncio.run(service.create(name)).unwrap()
    except StencilError as e:
        handle_error(e, json_output=ctx.obj["json_output"])

    console.print(f"[green]✓[/green] {outcome.name} → {outcome.project_dir}")
    console.print(f"  {outcome.url}")


def _read_content(field: str, path: Path | None, ctx: click.Context) -> str | None:
    if path is None:
        return None
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        handle_error(
            ValidationError(
                code=ErrorCode.INVALID_CONTENT,
                context={"field": field, "detail": f"{path} is not UTF-8 text"},
                cause=e,
            ),
            json_output=ctx.obj["json_output"],
        )


@main.command()
@click.argument("name")
@click.option("--view", "view_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--server", "server_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--clean", is_flag=True, help="Remove the build output before rebuilding")
@click.pass_context
def update(
    ctx: click.Context,
    name: str,
    view_file: Path | None,
    server_file: Path | None,
    clean: bool,
) -> None:
    """Replace the view and/or server entry file of NAME and rebuild."""
    config = _setup(ctx)
    service = TemplateService(config)

    view = _read_content("view", view_file, ctx)
    server = _read_content("server", server_file, ctx)

    try:
        with console.status(f"Updating {name}..."):
            outcome = asyncio.run(service.update(name, view=view, server=server, clean=clean)).unwrap()
    except StencilError as e:
        handle_error(e, json_output=ctx.obj["json_output"])

    if not outcome.rebuilt:
        console.print(f"[yellow]•[/yellow] Nothing to apply for {outcome.name}")
        return
    console.print(f"[green]✓[/green] {outcome.message}")
    console.print(f"  {outcome.url}")


@main.command("init-config")
@click.argument("path", default=".stencil/config.yaml", type=click.Path(dir_okay=False))
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init_config(path: str, force: bool) -> None:
    """Write a documented default config file to PATH."""
    target = Path(path)
    if target.exists() and not force:
        raise click.ClickException(f"{target} already exists (use --force to overwrite)")
    written = save_default_config(target)
    console.print(f"[green]✓[/green] Wrote {written}")
