"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and a CLI command wrapper
so that every Typer command reports failures the same way.
"""
from __future__ import annotations

from typing import Callable, TypeVar

import typer

T = TypeVar('T')

EXIT_CODES = {
    "AssetNotFound": 1,
    "AssetValidationError": 2,
    "InvalidAssetRequest": 2,
    "ValueError": 2,
    "UpstreamUnavailable": 3,
    "AssetIntegrityError": 4,
}

FALLBACK_EXIT_CODE = 5


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    Exit codes:
    - 0: Success
    - 1: Asset, variant or object not found (AssetNotFound and subclasses)
    - 2: Bad input (AssetValidationError, InvalidAssetRequest, ValueError)
    - 3: External origin unavailable (UpstreamUnavailable)
    - 4: Stored metadata is corrupt (AssetIntegrityError)
    - 5: Anything else

    Subclasses map through their bases, so VariantNotFound exits with 1.

    Args:
        exc: Exception to map

    Returns:
        Exit code
    """
    for cls in type(exc).__mro__:
        if cls.__name__ in EXIT_CODES:
            return EXIT_CODES[cls.__name__]
    return FALLBACK_EXIT_CODE


def run_and_exit(func: Callable[[], T]) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function; on failure prints the error to stderr and
    raises typer.Exit with the mapped code, chaining the original exception.

    Args:
        func: Function to execute

    Returns:
        Function result if successful

    Raises:
        typer.Exit: With appropriate exit code if function raises exception
    """
    try:
        return func()
    except Exception as e:
        from .printers import print_error
        print_error(e)
        raise typer.Exit(code=exit_code_for(e)) from e
