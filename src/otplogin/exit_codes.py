"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~otplogin.exceptions.OtpLoginError` subclass.
Host scripts can inspect the exit code of ``otplogin login`` to tell a
rejected token apart from a broken configuration without parsing stderr.

Example::

    $ otplogin login --client-id 42
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- no presented OTP verified
"""

EXIT_SUCCESS = 0
"""The login attempt succeeded and the identity was committed."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred, or the module configuration is invalid."""

EXIT_INVALID_USAGE = 2
"""The module was driven out of order or invoked with invalid arguments."""

EXIT_AUTH_FAILURE = 3
"""No presented OTP verified."""

EXIT_VERIFIER_UNAVAILABLE = 6
"""The verification service could not be reached or answered with an error."""
