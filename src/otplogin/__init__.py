"""otplogin -- a pluggable login module that authenticates with YubiKey OTPs.

A host hands the module a principal container, an input channel and an
options mapping; the module collects candidate tokens, verifies them one by
one against a validation service, and binds an :class:`OtpPrincipal` into
the container on commit.

Typical usage::

    from otplogin import LoginSession, StaticInputChannel, Subject

    subject = Subject()
    session = LoginSession()
    session.initialize(subject, StaticInputChannel(otp), {"clientId": "42"})
    if session.login():
        session.commit()
    else:
        session.abort()

Modules:
    session: The login state machine.
    collector: Candidate collection and plausibility filtering.
    verifier: Verifier protocol and the YubiCloud client.
    binder: Principal container and identity binding.
    channels: Input channels.
    config: Option parsing.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI host (``otplogin login``).
"""

__version__ = "0.1.0"

from otplogin.binder import IdentityBinder, PrincipalContainer, Subject  # noqa: E402
from otplogin.channels import InputChannel, StaticInputChannel, TerminalInputChannel  # noqa: E402
from otplogin.collector import CandidateToken, SecretCollector  # noqa: E402
from otplogin.exceptions import (  # noqa: E402
    ConfigurationError,
    IllegalStateError,
    OtpLoginError,
    VerificationError,
    VerifierUnavailableError,
)
from otplogin.models import LoginModuleConfig, LoginState, OtpPrincipal  # noqa: E402
from otplogin.session import LoginSession  # noqa: E402
from otplogin.verifier import TokenVerifier, YubicoCloudVerifier  # noqa: E402

__all__ = [
    "CandidateToken",
    "ConfigurationError",
    "IdentityBinder",
    "IllegalStateError",
    "InputChannel",
    "LoginModuleConfig",
    "LoginSession",
    "LoginState",
    "OtpLoginError",
    "OtpPrincipal",
    "PrincipalContainer",
    "SecretCollector",
    "StaticInputChannel",
    "Subject",
    "TerminalInputChannel",
    "TokenVerifier",
    "VerificationError",
    "VerifierUnavailableError",
    "YubicoCloudVerifier",
]
