"""Typer application and CLI entry point for otplogin.

``otplogin login`` is a minimal host for :class:`~otplogin.session.LoginSession`:
it prompts for one or more tokens on the terminal, runs the full
initialize → login → commit/abort lifecycle against a fresh
:class:`~otplogin.binder.Subject`, and prints the authenticated public id
on stdout.

Exit codes come from :mod:`otplogin.exit_codes`: ``0`` on success, ``3``
when no token verified, ``6`` when the validation service is unavailable
under ``--verifier-errors raise``, ``1`` for a bad configuration.

See Also:
    :mod:`otplogin.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import logging
import signal
import sys
from typing import Any, Optional

import typer

from otplogin import __version__
from otplogin.binder import Subject
from otplogin.channels import TerminalInputChannel
from otplogin.config import ENV_CLIENT_ID, build_options
from otplogin.exceptions import AuthenticationFailed, OtpLoginError
from otplogin.exit_codes import EXIT_GENERIC_FAILURE
from otplogin.models import LoginState, OtpPrincipal
from otplogin.output import error, get_output, info, print_result, success, suggest
from otplogin.session import LoginSession
from otplogin.verifier import YubicoCloudVerifier


app = typer.Typer(
    name="otplogin",
    help="Verify YubiKey one-time passwords against a validation service.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"otplogin {__version__}")
        raise typer.Exit()


def _configure_logging() -> None:
    """Route the package loggers to stderr through Rich.

    Debug records are shown only when the installed output manager is verbose.
    """
    from rich.logging import RichHandler

    output = get_output()
    handler = RichHandler(
        console=output.stderr_console,
        show_time=False,
        show_path=False,
    )
    package_logger = logging.getLogger("otplogin")
    package_logger.handlers = [handler]
    package_logger.setLevel(logging.DEBUG if output.is_verbose else logging.WARNING)


@app.callback()
def main_callback(
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
    """Root callback: install the output manager and logging."""
    from otplogin.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    _configure_logging()


@app.command("login")
def login_command(
    client_id: Optional[str] = typer.Option(
        None,
        "--client-id",
        "-c",
        envvar=ENV_CLIENT_ID,
        help="Client id registered with the validation service.",
    ),
    api_url: Optional[str] = typer.Option(
        None, "--api-url", help="Validation endpoint URL."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Request timeout in seconds."
    ),
    verifier_errors: Optional[str] = typer.Option(
        None,
        "--verifier-errors",
        help="On verification service errors: 'reject' the token or 'raise'.",
    ),
    max_tokens: Optional[int] = typer.Option(
        None, "--max-tokens", min=1, help="Stop prompting after this many tokens."
    ),
) -> None:
    """Prompt for tokens and authenticate with the first one that verifies.

    Enter one token per prompt; an empty entry ends input.

    Example::

        otplogin login --client-id 42
    """
    subject = Subject()
    channel = TerminalInputChannel(max_secrets=max_tokens)
    info("Enter one token per prompt, an empty entry finishes input.")
    options = build_options(
        client_id=client_id,
        api_url=api_url,
        timeout=timeout,
        verifier_errors=verifier_errors,
    )

    with LoginSession(verifier_factory=YubicoCloudVerifier.from_config) as session:
        try:
            session.initialize(subject, channel, options)
            if not session.login():
                raise AuthenticationFailed("Authentication failed: no token verified")
            session.commit()
        except OtpLoginError as exc:
            if session.state is not LoginState.UNINITIALIZED:
                session.abort()
            error(str(exc))
            if client_id is None:
                suggest(f"Pass --client-id or set {ENV_CLIENT_ID}")
            raise typer.Exit(code=exc.exit_code) from None

    principal = next(iter(subject.principals_of(OtpPrincipal)))
    success(f"Authenticated YubiKey {principal.public_id}")
    print_result({"public_id": principal.public_id})


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``otplogin`` console script.

    Unhandled :class:`~otplogin.exceptions.OtpLoginError` instances cause a
    clean exit with the error's ``exit_code``; anything else exits with
    :data:`~otplogin.exit_codes.EXIT_GENERIC_FAILURE`.

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
    except OtpLoginError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
