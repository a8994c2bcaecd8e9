"""Candidate collection: gather secrets, filter out non-OTPs.

:class:`SecretCollector` asks the input channel for secrets once and turns
every plausible value into a :class:`CandidateToken`. Values shorter than
:data:`MIN_OTP_LENGTH` characters are dropped before they can reach the
verifier: the user may have typed an ordinary password into the same
dialog, and it must not be sent over the network.

Candidates live in mutable ``bytearray`` buffers so they can be zeroed once
used. A ``str`` produced by :meth:`CandidateToken.reveal` is an immutable
copy that cannot be wiped; callers keep it only for the duration of one
verifier call.
"""

from __future__ import annotations

import logging
from typing import Sequence

from otplogin.channels import InputChannel, Secret
from otplogin.exceptions import CollectionFailure, UnsupportedInputError
from otplogin.models import DEFAULT_PROMPT

logger = logging.getLogger(__name__)

MIN_OTP_LENGTH = 32
"""Shortest value treated as an OTP candidate (the encrypted part of a YubiKey OTP)."""


def _zero(buffer: bytearray) -> None:
    """Overwrite *buffer* with zero bytes in place."""
    buffer[:] = bytes(len(buffer))


def _char_length(buffer: bytearray) -> int:
    """Count UTF-8 characters without decoding (continuation bytes excluded)."""
    return sum(1 for b in buffer if b & 0xC0 != 0x80)


class CandidateToken:
    """One collected secret held in a wipeable buffer.

    Args:
        secret: The raw value. ``str`` is encoded as UTF-8; ``bytes`` and
            ``bytearray`` are copied.
    """

    __slots__ = ("_buffer", "_length", "_scrubbed")

    def __init__(self, secret: Secret) -> None:
        if isinstance(secret, str):
            self._buffer = bytearray(secret.encode("utf-8"))
        else:
            self._buffer = bytearray(secret)
        self._length = _char_length(self._buffer)
        self._scrubbed = False

    @property
    def length(self) -> int:
        """Number of characters in the secret as collected."""
        return self._length

    @property
    def buffer(self) -> memoryview:
        """Read-only view of the backing buffer."""
        return memoryview(self._buffer).toreadonly()

    @property
    def is_scrubbed(self) -> bool:
        return self._scrubbed

    def reveal(self) -> str:
        """Return the secret as a string for a single verifier call.

        Raises:
            ValueError: If the token was already scrubbed.
        """
        if self._scrubbed:
            raise ValueError("Candidate token was already scrubbed")
        return self._buffer.decode("utf-8", errors="replace")

    def scrub(self) -> None:
        """Zero every byte of the backing buffer. Safe to call repeatedly."""
        _zero(self._buffer)
        self._scrubbed = True

    def __repr__(self) -> str:
        state = " scrubbed" if self._scrubbed else ""
        return f"<CandidateToken length={self._length}{state}>"


class SecretCollector:
    """Collects OTP candidates from an input channel in one round trip.

    Args:
        channel: The host's input channel.
        prompt: Prompt passed to the channel.
        echo_on: Whether the channel may echo input.
        min_length: Shortest value accepted as a candidate.
    """

    def __init__(
        self,
        channel: InputChannel,
        prompt: str = DEFAULT_PROMPT,
        echo_on: bool = False,
        min_length: int = MIN_OTP_LENGTH,
    ) -> None:
        self._channel = channel
        self._prompt = prompt
        self._echo_on = echo_on
        self._min_length = min_length

    def collect(self) -> tuple[CandidateToken, ...]:
        """Request secrets and return the plausible ones in entry order.

        A channel failure is logged and yields an empty tuple; it is never
        raised to the caller.

        Returns:
            A fresh tuple of :class:`CandidateToken`, possibly empty.
        """
        try:
            raw = self._request()
        except CollectionFailure as exc:
            logger.error("%s: %s", exc, exc.cause, exc_info=exc.cause)
            return ()

        candidates: list[CandidateToken] = []
        try:
            for value in raw:
                token = CandidateToken(value)
                if isinstance(value, bytearray):
                    _zero(value)
                if token.length < self._min_length:
                    logger.info(
                        "Skipping token, not a valid OTP (too short, %d < %d)",
                        token.length,
                        self._min_length,
                    )
                    token.scrub()
                    continue
                candidates.append(token)
        except BaseException:
            for token in candidates:
                token.scrub()
            raise
        return tuple(candidates)

    def _request(self) -> Sequence[Secret]:
        """Perform the single channel round trip.

        Raises:
            CollectionFailure: Wrapping either channel failure kind.
        """
        try:
            return list(self._channel.request_secrets(self._prompt, self._echo_on))
        except UnsupportedInputError as exc:
            raise CollectionFailure(
                "Input channel does not support secret requests", cause=exc
            ) from exc
        except OSError as exc:
            raise CollectionFailure("Input channel failed", cause=exc) from exc
