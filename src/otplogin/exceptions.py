"""Exception hierarchy for otplogin.

All exceptions inherit from :class:`OtpLoginError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`otplogin.exit_codes`.
The CLI entry point in :func:`otplogin.app.main` catches ``OtpLoginError``
and exits with the appropriate code.

Only configuration and lifecycle errors escape
:meth:`~otplogin.session.LoginSession.login` by default. Credential problems
resolve to a ``False`` return value instead.

Subclass hierarchy::

    OtpLoginError (exit 1)
    +-- ConfigurationError          (exit 1)
    +-- IllegalStateError           (exit 2)
    +-- AuthenticationFailed        (exit 3)
    +-- CollectionFailure           (exit 1)
    +-- UnsupportedInputError       (exit 1)
    +-- VerificationError           (exit 6)
        +-- VerifierUnavailableError  (exit 6)
"""

from __future__ import annotations

from otplogin.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_VERIFIER_UNAVAILABLE,
)


class OtpLoginError(Exception):
    """Base exception for all otplogin errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigurationError(OtpLoginError):
    """Raised at initialization when the module options are missing or malformed."""

    exit_code = EXIT_GENERIC_FAILURE


class IllegalStateError(OtpLoginError):
    """Raised when lifecycle operations are called out of order or without an input channel."""

    exit_code = EXIT_INVALID_USAGE


class AuthenticationFailed(OtpLoginError):
    """Raised by the CLI host when no presented OTP verified."""

    exit_code = EXIT_AUTH_FAILURE


class CollectionFailure(OtpLoginError):
    """The input channel could not deliver secrets.

    Wraps both an unsupported-capability error and an I/O failure of the
    channel. :meth:`~otplogin.collector.SecretCollector.collect` logs it and
    degrades to an empty candidate sequence; it is never propagated to the
    host.

    Args:
        message: Description of the failed round trip.
        cause: The original exception raised by the channel.
    """

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class UnsupportedInputError(OtpLoginError):
    """Raised by an input channel that cannot satisfy a secret request (e.g. no TTY)."""


class VerificationError(OtpLoginError):
    """Raised by a verifier on transport or protocol failure.

    Distinct from a negative verification, which is a plain ``False``.
    """

    exit_code = EXIT_VERIFIER_UNAVAILABLE


class VerifierUnavailableError(VerificationError):
    """Raised by ``login()`` when verifier errors are configured to abort the attempt."""
