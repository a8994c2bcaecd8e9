"""Input channels that deliver raw secrets to the login module.

An input channel is the host's side of credential collection. The module
asks it for secrets exactly once per login attempt through
:meth:`InputChannel.request_secrets`; the channel may answer with zero, one
or many values so a caller can submit several credentials (e.g. a password
and an OTP) in one interaction.

Channels signal failure by raising
:class:`~otplogin.exceptions.UnsupportedInputError` (the channel cannot
serve this kind of request) or :class:`OSError` (the round trip broke).
Both are absorbed by :class:`~otplogin.collector.SecretCollector`.

Two implementations ship with the package:

- :class:`StaticInputChannel` -- secrets supplied up front by the host.
- :class:`TerminalInputChannel` -- interactive, hidden terminal prompts.
"""

from __future__ import annotations

import getpass
import sys
from typing import Optional, Protocol, Sequence, Union, runtime_checkable

from otplogin.exceptions import UnsupportedInputError

Secret = Union[str, bytes, bytearray]


@runtime_checkable
class InputChannel(Protocol):
    """Host capability that collects secrets in one interaction."""

    def request_secrets(self, prompt: str, echo_on: bool) -> Sequence[Secret]:
        """Collect zero or more secrets.

        Args:
            prompt: Text to show the user.
            echo_on: Whether typed input may be echoed back.

        Returns:
            The collected secrets, in the order they were entered.
            ``bytearray`` values are zeroed by the collector once copied.

        Raises:
            UnsupportedInputError: If the channel cannot serve the request.
            OSError: If the interaction fails.
        """
        ...


class StaticInputChannel:
    """Channel handing over secrets the host already holds.

    The secrets are copied into private buffers and handed over on the
    first request only; later requests yield nothing.

    Example::

        channel = StaticInputChannel("password", otp_from_form)
    """

    def __init__(self, *secrets: Secret) -> None:
        self._secrets: list[bytearray] = [
            bytearray(s.encode("utf-8") if isinstance(s, str) else s) for s in secrets
        ]

    def request_secrets(self, prompt: str, echo_on: bool) -> Sequence[Secret]:
        handed, self._secrets = self._secrets, []
        return handed


class TerminalInputChannel:
    """Interactive channel reading one secret per line from the terminal.

    Input is hidden via :func:`getpass.getpass` unless the request allows
    echo. Reading stops at the first empty entry, at end of input, or once
    *max_secrets* values were read.

    Args:
        max_secrets: Upper bound on secrets per request. ``None`` means
            read until an empty entry.
    """

    def __init__(self, max_secrets: Optional[int] = None) -> None:
        self._max_secrets = max_secrets

    def request_secrets(self, prompt: str, echo_on: bool) -> Sequence[Secret]:
        if not sys.stdin.isatty():
            raise UnsupportedInputError(
                "Terminal input requires an interactive terminal (stdin must be a TTY)"
            )

        secrets: list[Secret] = []
        current_prompt = prompt
        while self._max_secrets is None or len(secrets) < self._max_secrets:
            try:
                value = input(current_prompt) if echo_on else getpass.getpass(current_prompt)
            except EOFError:
                break
            if not value:
                break
            secrets.append(value)
            current_prompt = "Next token (empty to finish): "
        return secrets
