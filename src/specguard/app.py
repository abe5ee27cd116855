"""Typer application and CLI entry point for specguard.

This module builds the top-level Typer application and registers the
built-in commands (``compare``, ``validate``, ``normalize``). The
:func:`main` function is the console-script entry point declared in
``pyproject.toml``.

See Also:
    :mod:`specguard.config`: Project configuration and precedence resolution.
    :mod:`specguard.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
from typing import Any, Optional

import typer

from specguard import __version__
from specguard.commands.compare import compare_command
from specguard.commands.normalize import normalize_command
from specguard.commands.validate import validate_command
from specguard.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="specguard",
    help="Resolve, validate, and diff OpenAPI 3.0/3.1 documents.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("compare")(compare_command)
app.command("validate")(validate_command)
app.command("normalize")(normalize_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"specguard {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every command.

    Initialises the global :class:`~specguard.output.OutputManager` and the
    ``logging`` level from CLI flags. Without ``--json`` or ``--plain``, the
    ``output.format`` resolved by :func:`~specguard.config.resolve_config`
    applies.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        json_output: Force JSON output format.
        plain_output: Force plain-text output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug-level diagnostic output and logging.
    """
    from specguard.config import resolve_config
    from specguard.exceptions import ConfigError
    from specguard.output import OutputFormat, OutputManager, error, set_output

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    cli_format: Optional[str] = None
    if json_output:
        cli_format = OutputFormat.JSON.value
    elif plain_output:
        cli_format = OutputFormat.PLAIN.value

    try:
        fmt = OutputFormat(resolve_config(cli_format=cli_format).output.format)
    except ConfigError as exc:
        set_output(OutputManager(no_color=no_color))
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    except ValueError:
        fmt = OutputFormat.AUTO

    set_output(
        OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    )

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``specguard`` console script.

    Unhandled :class:`~specguard.exceptions.SpecguardError` instances cause
    a clean exit with the error's ``exit_code``. Any other exception is
    reported on stderr (with a traceback under ``--verbose``) and exits with
    :data:`~specguard.exit_codes.EXIT_GENERIC_FAILURE`.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from specguard.exceptions import SpecguardError
        from specguard.output import error

        if isinstance(exc, SpecguardError):
            error(str(exc))
            sys.exit(exc.exit_code)
        logging.getLogger(__name__).debug("Unhandled exception", exc_info=True)
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
