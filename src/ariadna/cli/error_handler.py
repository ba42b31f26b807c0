"""CLI Error Handler.

Prints errors for people (`Error: <message>` on stderr) or, with
ARIADNA_JSON_ERRORS=1, as a JSON document for programmatic callers.
Either way the process exits with status 1.
"""

import json
import logging
import os
import sys
from typing import NoReturn

from rich.console import Console
from rich.text import Text

from ariadna.errors import AriadnaError, ErrorCode

logger = logging.getLogger(__name__)


def json_errors_enabled() -> bool:
    return os.environ.get("ARIADNA_JSON_ERRORS", "").lower() in ("1", "true", "yes")


def handle_error(error: AriadnaError | Exception, json_output: bool | None = None) -> NoReturn:
    """Report an error and exit.

    Args:
        error: The error to report (non-Ariadna errors are wrapped as runtime errors)
        json_output: Force JSON output (default: ARIADNA_JSON_ERRORS)

    Raises:
        SystemExit: Always exits with code 1
    """
    if not isinstance(error, AriadnaError):
        error = AriadnaError(ErrorCode.RUNTIME_FAILED, {"detail": str(error)}, cause=error)

    logger.debug("Command failed: %r", error, exc_info=error.cause)

    if json_output is None:
        json_output = json_errors_enabled()

    if json_output:
        error_dict = error.to_dict()
        if error.cause:
            error_dict["cause"] = str(error.cause)
        print(json.dumps(error_dict), file=sys.stderr)
        sys.exit(1)

    _print_human_error(error)
    sys.exit(1)


def _print_human_error(error: AriadnaError) -> None:
    console = Console(stderr=True, highlight=False, soft_wrap=True)
    console.print(Text.assemble(("Error:", "bold red"), f" {error.message}"))
