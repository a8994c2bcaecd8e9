"""Pydantic models shared across otplogin modules.

* :class:`LoginModuleConfig` -- the validated, immutable module options
  built once by :meth:`~otplogin.session.LoginSession.initialize`.
* :class:`OtpPrincipal` -- the identity produced by a successful login and
  bound into the host's subject container.
* :class:`LoginState` and :class:`VerifierErrorPolicy` -- enumerations
  driving the login state machine.

Option keys follow the host's camelCase convention (``clientId``); the
snake_case field names are accepted as aliases. Unknown keys are ignored
because hosts usually hand one shared options mapping to every module.
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


DEFAULT_API_URL = "https://api.yubico.com/wsapi/2.0/verify"
DEFAULT_PROMPT = "Enter authentication tokens: "

# Stricter than plain integer parsing: "0", "-5" and "+42" are refused.
_CLIENT_ID_RULE = "client id must be a positive decimal integer without a sign"


class VerifierErrorPolicy(str, enum.Enum):
    """What ``login()`` does when the verifier raises instead of answering.

    ``REJECT`` treats the failing candidate as not verified and moves on to
    the next one. ``RAISE`` stops the attempt with
    :class:`~otplogin.exceptions.VerifierUnavailableError` so a service
    outage is distinguishable from a wrong token.
    """

    REJECT = "reject"
    RAISE = "raise"


class LoginState(str, enum.Enum):
    """Lifecycle states of a :class:`~otplogin.session.LoginSession`."""

    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    COMMITTED = "committed"
    ABORTED = "aborted"
    LOGGED_OUT = "logged_out"


class LoginModuleConfig(BaseModel):
    """Validated options of one login session.

    Example::

        LoginModuleConfig.model_validate({"clientId": "42"})
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    client_id: int = Field(
        gt=0,
        validation_alias=AliasChoices("clientId", "client_id"),
        description="Client identifier registered with the verification service",
    )
    api_url: str = Field(
        default=DEFAULT_API_URL,
        validation_alias=AliasChoices("apiUrl", "api_url"),
        description="Verification endpoint used by the default verifier",
    )
    timeout: float = Field(
        default=10.0,
        gt=0,
        description="Per-request timeout in seconds for the default verifier",
    )
    prompt: str = Field(
        default=DEFAULT_PROMPT,
        description="Prompt handed to the input channel",
    )
    verifier_errors: VerifierErrorPolicy = Field(
        default=VerifierErrorPolicy.REJECT,
        validation_alias=AliasChoices("verifierErrors", "verifier_errors"),
        description="How verifier transport/protocol errors are handled: reject, raise",
    )

    @field_validator("client_id", mode="before")
    @classmethod
    def _parse_client_id(cls, value: Any) -> Any:
        # bool is an int subclass; "true" must not become client 1.
        if isinstance(value, bool):
            raise ValueError(f"{_CLIENT_ID_RULE}, got {value!r}")
        if isinstance(value, str):
            value = value.strip()
            if not value.isdigit() or int(value) == 0:
                raise ValueError(f"{_CLIENT_ID_RULE}, got {value!r}")
        return value


class OtpPrincipal(BaseModel):
    """Identity of a device that presented a verified OTP.

    Frozen and hashable, so a subject container holds at most one principal
    per public id.
    """

    model_config = ConfigDict(frozen=True)

    public_id: str = Field(description="Decoded public id of the OTP device, possibly empty")

    @property
    def name(self) -> str:
        """The principal name, i.e. the public id."""
        return self.public_id

    def __str__(self) -> str:
        return f"OtpPrincipal({self.public_id})"
