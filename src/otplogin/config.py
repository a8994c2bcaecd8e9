"""Option parsing for the OTP login module.

Hosts configure the module with a flat, string-keyed options mapping (the
same mapping is typically shared by every module of a login stack).
:func:`parse_options` validates it into an immutable
:class:`~otplogin.models.LoginModuleConfig` and turns any validation problem
into a :class:`~otplogin.exceptions.ConfigurationError`, which is fatal and
not retryable.

The option key constants below are the public configuration surface.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import ValidationError

from otplogin.exceptions import ConfigurationError
from otplogin.models import LoginModuleConfig

OPTION_CLIENT_ID = "clientId"
OPTION_API_URL = "apiUrl"
OPTION_TIMEOUT = "timeout"
OPTION_PROMPT = "prompt"
OPTION_VERIFIER_ERRORS = "verifierErrors"

ENV_CLIENT_ID = "OTPLOGIN_CLIENT_ID"
"""Environment variable the CLI host reads the client id from."""


def _describe(exc: ValidationError) -> str:
    """Flatten a pydantic ``ValidationError`` into one readable line."""
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err["loc"]) or "options"
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts)


def parse_options(options: Optional[Mapping[str, Any]]) -> LoginModuleConfig:
    """Validate a module options mapping.

    Args:
        options: The options handed to the module by the host. ``None`` is
            treated as an empty mapping.

    Returns:
        The validated :class:`~otplogin.models.LoginModuleConfig`.

    Raises:
        ConfigurationError: If ``clientId`` is absent or not a positive
            decimal integer, or any other option has an invalid value.
            Signed and zero client ids (``"+42"``, ``"-5"``, ``"0"``) are
            refused even though they parse as integers.
    """
    options = dict(options or {})
    if OPTION_CLIENT_ID not in options and "client_id" not in options:
        raise ConfigurationError(f"Missing required option '{OPTION_CLIENT_ID}'")
    try:
        return LoginModuleConfig.model_validate(options)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid login module options: {_describe(exc)}") from exc


def build_options(
    client_id: Optional[str] = None,
    api_url: Optional[str] = None,
    timeout: Optional[float] = None,
    verifier_errors: Optional[str] = None,
) -> dict[str, Any]:
    """Assemble an options mapping from CLI-style values, skipping unset ones.

    Returns:
        A dict keyed by the ``OPTION_*`` constants, ready for
        :func:`parse_options`.
    """
    options: dict[str, Any] = {}
    if client_id is not None:
        options[OPTION_CLIENT_ID] = client_id
    if api_url is not None:
        options[OPTION_API_URL] = api_url
    if timeout is not None:
        options[OPTION_TIMEOUT] = timeout
    if verifier_errors is not None:
        options[OPTION_VERIFIER_ERRORS] = verifier_errors
    return options
