"""OTP verifier capability and its default YubiCloud implementation.

The login session only depends on the :class:`TokenVerifier` protocol:

- ``verify(token) -> bool`` -- ``True`` if the service accepted the OTP,
  ``False`` if it rejected it, :class:`~otplogin.exceptions.VerificationError`
  if no trustworthy answer could be obtained.
- ``decode_public_id(token) -> str`` -- the device's public id, assuming
  the token already verified.

:class:`YubicoCloudVerifier` talks to a YubiCloud-compatible validation
endpoint (protocol 2.0) over ``httpx``. It performs one plain request per
OTP; request signing, retries and multi-server quorum are left to the
service.
"""

from __future__ import annotations

import logging
import secrets
from typing import Callable, Protocol, runtime_checkable

import httpx

from otplogin.exceptions import VerificationError
from otplogin.models import DEFAULT_API_URL, LoginModuleConfig

logger = logging.getLogger(__name__)

OTP_MIN_LENGTH = 32
OTP_MAX_LENGTH = 48

# Statuses that say something about the OTP itself, not about the service.
_REJECTED_STATUSES = frozenset({"BAD_OTP", "REPLAYED_OTP", "REPLAYED_REQUEST"})


@runtime_checkable
class TokenVerifier(Protocol):
    """Capability that checks OTPs against a validation authority."""

    def verify(self, token: str) -> bool:
        ...

    def decode_public_id(self, token: str) -> str:
        ...


VerifierFactory = Callable[[LoginModuleConfig], TokenVerifier]
"""Builds the verifier for a session from its validated configuration."""


def is_valid_otp_format(otp: str) -> bool:
    """Check the length and character range of a YubiKey OTP."""
    if not OTP_MIN_LENGTH <= len(otp) <= OTP_MAX_LENGTH:
        return False
    return all(32 < ord(c) < 127 for c in otp)


def decode_public_id(otp: str) -> str:
    """Return the public id of *otp*: everything before the trailing 32 characters.

    Raises:
        ValueError: If *otp* is shorter than 32 characters.
    """
    if len(otp) < OTP_MIN_LENGTH:
        raise ValueError(f"OTP too short to carry a public id ({len(otp)} < {OTP_MIN_LENGTH})")
    return otp[: len(otp) - OTP_MIN_LENGTH].lower()


def parse_response(text: str) -> dict[str, str]:
    """Parse a validation response body of ``key=value`` lines."""
    fields: dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.strip().partition("=")
        if sep:
            fields[key] = value
    return fields


class YubicoCloudVerifier:
    """Verify OTPs against a YubiCloud validation endpoint.

    Args:
        client_id: Client id registered with the service.
        api_url: Validation endpoint URL.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        client_id: int,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 10.0,
    ) -> None:
        self._client_id = client_id
        self._api_url = api_url
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: LoginModuleConfig) -> "YubicoCloudVerifier":
        return cls(config.client_id, api_url=config.api_url, timeout=config.timeout)

    @property
    def client_id(self) -> int:
        return self._client_id

    def verify(self, token: str) -> bool:
        """Ask the service whether *token* is a valid, unused OTP.

        Tokens with an impossible format are rejected locally without a
        request.

        Raises:
            VerificationError: On transport failure, an HTTP error status,
                a service-level error status, or a response that does not
                echo the request.
        """
        if not is_valid_otp_format(token):
            logger.debug("OTP has an invalid format, not sending it")
            return False

        nonce = secrets.token_hex(16)
        params = {"id": str(self._client_id), "otp": token, "nonce": nonce}
        try:
            response = httpx.get(self._api_url, params=params, timeout=self._timeout)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise VerificationError(
                f"Verification request failed with status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            # The exception text may carry the request URL, which contains the OTP.
            raise VerificationError(
                f"Verification request failed ({type(exc).__name__})"
            ) from exc

        fields = parse_response(response.text)
        status = fields.get("status")
        if status is None:
            raise VerificationError("Verification response has no status")
        if status == "OK":
            if fields.get("otp") != token or fields.get("nonce") != nonce:
                raise VerificationError("Verification response does not match the request")
            return True
        if status in _REJECTED_STATUSES:
            logger.debug("Verification service rejected the OTP: %s", status)
            return False
        raise VerificationError(f"Verification service returned {status}")

    def decode_public_id(self, token: str) -> str:
        return decode_public_id(token)
