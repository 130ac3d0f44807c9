"""Typer application and CLI entry point for linkshield.

A thin command-line surface over :class:`~linkshield.client.LinkShield`:

.. code-block:: text

    linkshield check URL          verdict score (0, 0.5, 1, -1)
    linkshield detail URL         classifier report
    linkshield dynamic URL        dynamic-analysis score
    linkshield similar DOMAIN     look-alike domains
    linkshield screenshot FILE    public screenshot URL
    linkshield cache info|clear   inspect or empty the verdict cache

The API key comes from ``--api-key`` or ``LINKSHIELD_API_KEY`` and the cache
file from ``--cache-file``, ``LINKSHIELD_CACHE_FILE`` or the XDG cache
directory (see :func:`~linkshield.config.resolve_client_config`).

:class:`~linkshield.exceptions.LinkShieldError` failures print a one-line
error and exit with the error's ``exit_code``.  Anything else is written to
a crash log under the data directory by :func:`main`.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from linkshield import __version__
from linkshield.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="linkshield",
    help="Check URLs against the LinkShield reputation service.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

cache_app = typer.Typer(no_args_is_help=True)
app.add_typer(cache_app, name="cache", help="Inspect or clear the local verdict cache.")


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"linkshield {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool, no_color: bool) -> None:
    """Send the library's log records to stderr through Rich.

    Warnings (e.g. an unreadable cache file) are always shown; cache hits,
    misses and outgoing requests only with ``--verbose``.
    """
    logger = logging.getLogger("linkshield")
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        console = Console(stderr=True, no_color=no_color)
        logger.addHandler(RichHandler(console=console, show_time=False, show_path=False))


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
    api_key: Optional[str] = typer.Option(
        None,
        "--api-key",
        "-k",
        help="API key, or env:VAR / file:PATH. Defaults to $LINKSHIELD_API_KEY.",
    ),
    cache_file: Optional[str] = typer.Option(
        None, "--cache-file", "-c", help="Verdict cache file."
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
    """Root callback executed before every sub-command.

    Installs the global :class:`~linkshield.output.OutputManager`, wires
    library logging to stderr, and stores the connection options in
    ``ctx.obj`` for the sub-commands.
    """
    from linkshield.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet))
    _configure_logging(verbose, no_color)

    ctx.ensure_object(dict)
    ctx.obj["api_key"] = api_key
    ctx.obj["cache_file"] = cache_file


@contextmanager
def _handle_errors() -> Iterator[None]:
    """Turn a :class:`LinkShieldError` into an error line and its exit code."""
    from linkshield.exceptions import LinkShieldError
    from linkshield.output import error

    try:
        yield
    except LinkShieldError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc


def _open_client(ctx: typer.Context) -> Any:
    from linkshield.client import LinkShield
    from linkshield.config import resolve_client_config

    obj = ctx.obj or {}
    config = resolve_client_config(obj.get("api_key"), obj.get("cache_file"))
    return LinkShield(config)


# ------------------------------------------------------------------ #
# Lookups
# ------------------------------------------------------------------ #


@app.command("check")
def check_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="URL to check."),
) -> None:
    """Score a URL: 0 safe, 0.5 nothing detected, 1 malicious, -1 unknown.

    Example::

        linkshield check https://example.com
    """
    from linkshield.output import get_output
    from linkshield.verdicts import verdict_label

    with _handle_errors(), _open_client(ctx) as shield:
        score = shield.check_url(url)
    get_output().print_score(url, score, verdict_label(score))


@app.command("detail")
def detail_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="URL to classify."),
) -> None:
    """Show the classifier's detailed report for a URL.

    When the report references a screenshot, its public link is added as
    ``screenshot link``.
    """
    from linkshield.output import get_output

    with _handle_errors(), _open_client(ctx) as shield:
        report = shield.get_detailed_check(url)
        data = report.model_dump(by_alias=True, exclude_none=True, exclude={"kind"})
        if report.screenshot_url:
            data["screenshot link"] = shield.get_screenshot_url(report.screenshot_url)
    get_output().format_response(data)


@app.command("dynamic")
def dynamic_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="URL to analyse in the sandbox."),
) -> None:
    """Score a URL from a dynamic (sandboxed) analysis."""
    from linkshield.output import get_output
    from linkshield.verdicts import verdict_label

    with _handle_errors(), _open_client(ctx) as shield:
        score = shield.perform_dynamic_analysis(url)
    get_output().print_score(url, score, verdict_label(score))


@app.command("similar")
def similar_command(
    ctx: typer.Context,
    domain: str = typer.Argument(help="Domain to compare, e.g. example.com."),
) -> None:
    """List well-known domains that DOMAIN resembles."""
    from linkshield.output import get_output, info

    with _handle_errors(), _open_client(ctx) as shield:
        matches = shield.check_domain_similarity(domain)

    if not matches:
        info(f"No similar domains found for {domain}.")
        return
    rows = [[m.similar_to, f"{m.similarity_percent:g}"] for m in matches]
    get_output().print_table(
        ["similar_to", "similarity_percent"], rows, title=f"Domains similar to {domain}"
    )


@app.command("screenshot")
def screenshot_command(
    file_name: str = typer.Argument(help="Screenshot file name from a detailed report."),
) -> None:
    """Print the public URL of a screenshot. No request is made."""
    from linkshield.client import endpoints
    from linkshield.models import DEFAULT_BASE_ENDPOINT
    from linkshield.output import get_output

    get_output().print_data(endpoints.screenshot_url(DEFAULT_BASE_ENDPOINT, file_name))


# ------------------------------------------------------------------ #
# Cache management
# ------------------------------------------------------------------ #


def _open_cache(ctx: typer.Context) -> Any:
    from linkshield.cache import JsonFileStorage, VerdictCache
    from linkshield.config import resolve_cache_file

    obj = ctx.obj or {}
    return VerdictCache(JsonFileStorage(resolve_cache_file(obj.get("cache_file"))))


@cache_app.command("info")
def cache_info(ctx: typer.Context) -> None:
    """Show the cache location, size and entry kinds."""
    from linkshield.output import get_output

    cache = _open_cache(ctx)
    get_output().format_response(cache.stats())


@cache_app.command("clear")
def cache_clear(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Remove every cached verdict."""
    from linkshield.output import success

    cache = _open_cache(ctx)
    if not force and not typer.confirm(f"Remove {len(cache)} cached entries?"):
        raise typer.Abort()
    cache.clear()
    success("Cache cleared.")


# ------------------------------------------------------------------ #
# Entry point
# ------------------------------------------------------------------ #


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from linkshield.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``linkshield`` console script.

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
        from linkshield.exceptions import LinkShieldError
        from linkshield.output import error

        if isinstance(exc, LinkShieldError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
