"""
Human-readable output formatting for the CLI.

Centralizes CLI output so commands stay thin.
"""
from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .asset_types import AssetRecord, Resolution, VariantAsset
from .errors import AssetError, error_body
from .models import RegistrationResult

_console = Console(highlight=False)
_err_console = Console(stderr=True, highlight=False)


def print_registration(result: RegistrationResult) -> None:
    """Print the URLs handed back by a registration."""
    _console.print(f"[bold]Registered:[/] {result.asset_id}", soft_wrap=True)
    _console.print(f"[bold]CDN URL:[/] {result.cdn_url}", soft_wrap=True)

    if result.variants:
        _console.print(f"[bold]Default:[/] {result.default_variant.value} -> {result.default_url}", soft_wrap=True)
        table = Table(title="Variants")
        table.add_column("Variant", style="cyan")
        table.add_column("URL", style="yellow", overflow="fold")
        for name, url in result.variants.items():
            table.add_row(name, url)
        _console.print(table)
        return

    mode = result.storage_mode.value if result.storage_mode else "-"
    _console.print(f"[bold]Storage:[/] {mode}")
    if result.source_url:
        _console.print(f"[bold]Source URL:[/] {result.source_url}", soft_wrap=True)
    if result.storage_key:
        _console.print(f"[bold]Storage key:[/] {result.storage_key}", soft_wrap=True)


def print_record(asset_id: str, record: AssetRecord) -> None:
    """Print a stored asset record."""
    _console.print(f"[bold]Asset:[/] {asset_id}", soft_wrap=True)
    if record.content_type:
        _console.print(f"[bold]Content type:[/] {record.content_type}")
    if record.size_bytes is not None:
        _console.print(f"[bold]Size:[/] {_format_bytes(record.size_bytes)}")
    if record.original_width and record.original_height:
        _console.print(f"[bold]Original:[/] {record.original_width}x{record.original_height}")
    if record.updated_at:
        _console.print(f"[bold]Updated:[/] [dim]{record.updated_at}[/]")

    if not isinstance(record, VariantAsset):
        _console.print(f"[bold]Storage:[/] {record.storage_mode.value}")
        _console.print(f"[bold]Location:[/] {escape(record.primary_location)}", soft_wrap=True)
        return

    _console.print(f"[bold]Default variant:[/] {record.default_variant.value}")
    table = Table(title="Variants")
    table.add_column("Variant", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Dimensions", justify="right")
    table.add_column("Location", style="yellow", overflow="fold")
    for name in record.available:
        variant = record.variants[name]
        table.add_row(
            name.value,
            _format_bytes(variant.size_bytes),
            f"{variant.width}x{variant.height}",
            f"{variant.storage_mode.value}: {variant.location}",
        )
    _console.print(table)


def print_resolution(asset_id: str, resolution: Resolution) -> None:
    """Print what a retrieval would serve."""
    _console.print(f"[bold]Asset:[/] {asset_id}", soft_wrap=True)
    if resolution.actual is not None:
        line = f"[bold]Variant:[/] {resolution.actual.value}"
        if resolution.fell_back:
            line += f" [dim](requested {resolution.requested.value})[/]"
        _console.print(line)
    _console.print(f"[bold]Storage:[/] {resolution.storage_mode.value}")
    _console.print(f"[bold]Location:[/] {escape(resolution.location)}", soft_wrap=True)


def print_error(exc: BaseException) -> None:
    """Print a failure to stderr, with structured detail for asset errors."""
    if isinstance(exc, AssetError):
        body = error_body(exc)
        detail = ", ".join(
            f"{key}={value}" for key, value in body.items() if key not in ("error", "message")
        )
        _err_console.print(f"[bold red]{body['error']}:[/] {escape(body['message'])}", soft_wrap=True)
        if detail:
            _err_console.print(f"[dim]{escape(detail)}[/]", soft_wrap=True)
        return
    _err_console.print(f"[bold red]Error:[/] {escape(str(exc))}", soft_wrap=True)


def _format_bytes(size: int) -> str:
    """Format byte size in human-readable format."""
    value = float(size)
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if value < 1024.0:
            return f"{value:.1f} {unit}"
        value /= 1024.0
    return f"{value:.1f} PB"
