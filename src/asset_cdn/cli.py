"""
Asset CDN CLI

Commands:
- serve: Run the HTTP service
- register: Register (or replace) an asset from a JSON body
- show: Print the stored record for an asset
- resolve: Show which object a request would be served from, without fetching it
- fetch: Stream an asset to a file or stdout through the same path as the HTTP service
"""
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import typer

from .cli_context import CLIContext
from .log_config import configure_logging
from .mappers import run_and_exit
from .printers import print_record, print_registration, print_resolution

app = typer.Typer(name="asset-cdn", help="Asset CDN CLI")


def _read_body(source: str) -> object:
    """
    Read a registration body from a file path or "-" for stdin.

    Raises:
        ValueError: If the content is not valid JSON
        FileNotFoundError: If the file does not exist
    """
    text = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Registration body is not valid JSON: {e}") from e


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(8000, "--port", help="Port to listen on"),
) -> None:
    """Run the HTTP service."""

    def _serve() -> None:
        import uvicorn

        from .api import create_app

        context = CLIContext.from_env()
        configure_logging(context.settings)
        uvicorn.run(create_app(settings=context.settings), host=host, port=port, log_config=None)

    run_and_exit(_serve)


@app.command()
def register(
    asset_id: str = typer.Argument(..., help="Asset id to register"),
    body: str = typer.Argument(..., help="Path to a JSON registration body, or - for stdin"),
) -> None:
    """Register (or replace) an asset."""

    def _register() -> None:
        context = CLIContext.from_env()
        result = context.service.register(asset_id, _read_body(body))
        print_registration(result)

    run_and_exit(_register)


@app.command()
def show(
    asset_id: str = typer.Argument(..., help="Asset id to show"),
    as_json: bool = typer.Option(False, "--json", help="Print the stored JSON document"),
) -> None:
    """Print the stored record for an asset."""

    def _show() -> None:
        context = CLIContext.from_env()
        service = context.service
        record = service.load(asset_id)
        if as_json:
            typer.echo(json.dumps(json.loads(service.metadata.get(asset_id) or "{}"), indent=2, sort_keys=True))
            return
        print_record(asset_id, record)

    run_and_exit(_show)


@app.command()
def resolve(
    asset_id: str = typer.Argument(..., help="Asset id to resolve"),
    variant: Optional[str] = typer.Argument(None, help="Variant token or trailing path, e.g. medium/photo.jpg"),
) -> None:
    """Show which object a request would be served from."""

    def _resolve() -> None:
        context = CLIContext.from_env()
        _, resolution = context.service.resolve(asset_id, variant)
        print_resolution(asset_id, resolution)

    run_and_exit(_resolve)


@app.command()
def fetch(
    asset_id: str = typer.Argument(..., help="Asset id to fetch"),
    variant: Optional[str] = typer.Argument(None, help="Variant token or trailing path"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to this file instead of stdout"),
) -> None:
    """Stream an asset to a file or stdout."""

    def _fetch() -> None:
        context = CLIContext.from_env()
        response = context.service.retrieve(asset_id, variant)
        try:
            if output is None:
                sink = sys.stdout.buffer
                for chunk in response.stream:
                    sink.write(chunk)
                sink.flush()
                return
            with open(output, "wb") as f:
                for chunk in response.stream:
                    f.write(chunk)
        finally:
            response.stream.close()
        for name, value in response.headers.items():
            typer.echo(f"{name}: {value}", err=True)

    run_and_exit(_fetch)


if __name__ == "__main__":
    app()
