"""CLI Error Handler.

Provides unified error handling for the CLI with support for:
- Human-readable output (default)
- JSON output for machine consumption
"""

import json
import sys
from typing import NoReturn

from rich.console import Console

from stencil.foundation.errors import StencilError

_err_console = Console(stderr=True)


def handle_error(error: StencilError, json_output: bool = False) -> NoReturn:
    """Report ``error`` and exit with status 1.

    Args:
        error: The failure to report.
        json_output: If True, print the error dict as JSON to stderr.
    """
    if json_output:
        error_dict = error.to_dict()
        if error.cause:
            error_dict["cause"] = str(error.cause)
        print(json.dumps(error_dict), file=sys.stderr)
        sys.exit(1)

    _err_console.print(f"[bold red]✗ {error.error_id}[/bold red] {error.message}", highlight=False)
    for hint in error.recovery_hints:
        _err_console.print(f"  [dim]→ {hint}[/dim]", highlight=False)
    output = error.context.get("output")
    if output:
        _err_console.print("  [dim]Last output:[/dim]")
        for line in output:
            _err_console.print(f"    {line}", markup=False, highlight=False)
    sys.exit(1)
