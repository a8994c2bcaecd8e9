"""Tests for candidate collection and the plausibility filter."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest

from otplogin.channels import StaticInputChannel
from otplogin.collector import MIN_OTP_LENGTH, CandidateToken, SecretCollector
from otplogin.exceptions import UnsupportedInputError


def _channel_returning(*values: object) -> MagicMock:
    channel = MagicMock()
    channel.request_secrets.return_value = list(values)
    return channel


class TestCandidateToken:
    def test_length_counts_characters(self) -> None:
        assert CandidateToken("abc").length == 3
        assert CandidateToken("ñandú").length == 5

    def test_accepts_bytes(self) -> None:
        token = CandidateToken(b"secret")
        assert token.reveal() == "secret"

    def test_scrub_zeroes_buffer(self) -> None:
        token = CandidateToken("x" * 44)
        token.scrub()
        assert token.is_scrubbed
        assert len(token.buffer) == 44
        assert not any(token.buffer)

    def test_scrub_is_idempotent(self) -> None:
        token = CandidateToken("secret")
        token.scrub()
        token.scrub()
        assert not any(token.buffer)

    def test_reveal_after_scrub_raises(self) -> None:
        token = CandidateToken("secret")
        token.scrub()
        with pytest.raises(ValueError, match="scrubbed"):
            token.reveal()

    def test_buffer_is_read_only(self) -> None:
        token = CandidateToken("secret")
        with pytest.raises(TypeError):
            token.buffer[0] = 0  # type: ignore[index]

    def test_repr_hides_secret(self) -> None:
        token = CandidateToken("hunter2hunter2")
        assert "hunter2" not in repr(token)
        assert "length=14" in repr(token)


class TestSecretCollector:
    def test_single_round_trip_with_prompt(self) -> None:
        channel = _channel_returning("a" * 44)
        SecretCollector(channel, prompt="OTP: ").collect()
        channel.request_secrets.assert_called_once_with("OTP: ", False)

    def test_keeps_entry_order(self) -> None:
        first, second = "a" * 44, "b" * 40
        tokens = SecretCollector(_channel_returning(first, second)).collect()
        assert [t.reveal() for t in tokens] == [first, second]

    def test_returns_tuple(self) -> None:
        tokens = SecretCollector(_channel_returning("a" * 44)).collect()
        assert isinstance(tokens, tuple)

    def test_empty_channel(self) -> None:
        assert SecretCollector(_channel_returning()).collect() == ()

    def test_skips_short_values(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="otplogin.collector"):
            tokens = SecretCollector(_channel_returning("password", "a" * 40)).collect()

        assert [t.length for t in tokens] == [40]
        assert "too short, 8 < 32" in caplog.text
        assert "password" not in caplog.text

    def test_length_boundary(self) -> None:
        exact = "a" * MIN_OTP_LENGTH
        one_short = "b" * (MIN_OTP_LENGTH - 1)
        tokens = SecretCollector(_channel_returning(one_short, exact)).collect()
        assert [t.reveal() for t in tokens] == [exact]

    def test_custom_min_length(self) -> None:
        tokens = SecretCollector(_channel_returning("abcd", "ab"), min_length=4).collect()
        assert [t.reveal() for t in tokens] == ["abcd"]

    def test_source_bytearrays_are_zeroed(self) -> None:
        source = bytearray(b"z" * 44)
        tokens = SecretCollector(_channel_returning(source)).collect()
        assert not any(source)
        assert tokens[0].reveal() == "z" * 44

    def test_io_failure_yields_nothing(self, caplog: pytest.LogCaptureFixture) -> None:
        channel = MagicMock()
        channel.request_secrets.side_effect = OSError("terminal went away")

        with caplog.at_level(logging.ERROR, logger="otplogin.collector"):
            assert SecretCollector(channel).collect() == ()

        assert "Input channel failed" in caplog.text
        assert "terminal went away" in caplog.text

    def test_unsupported_input_yields_nothing(self, caplog: pytest.LogCaptureFixture) -> None:
        channel = MagicMock()
        channel.request_secrets.side_effect = UnsupportedInputError("no TTY")

        with caplog.at_level(logging.ERROR, logger="otplogin.collector"):
            assert SecretCollector(channel).collect() == ()

        assert "does not support" in caplog.text

    def test_fresh_sequence_per_call(self) -> None:
        channel = StaticInputChannel("a" * 44)
        collector = SecretCollector(channel)
        assert len(collector.collect()) == 1
        assert collector.collect() == ()
