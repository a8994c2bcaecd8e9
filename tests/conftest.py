"""Shared test fixtures for otplogin.

Provides a spying verifier, OTP builders, a ready-to-use login session wired
to the spy, and output/logging isolation between tests. These fixtures are
automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

import logging
from typing import Callable

import pytest

from otplogin.binder import Subject
from otplogin.exceptions import VerificationError
from otplogin.models import LoginModuleConfig
from otplogin.output import OutputFormat, OutputManager, reset_output, set_output
from otplogin.session import LoginSession


class SpyVerifier:
    """In-memory verifier recording every token it is asked about.

    ``valid`` tokens verify, ``failing`` tokens raise
    :class:`VerificationError`, anything else is rejected.
    """

    def __init__(self) -> None:
        self.valid: set[str] = set()
        self.failing: set[str] = set()
        self.calls: list[str] = []
        self.config: LoginModuleConfig | None = None

    def verify(self, token: str) -> bool:
        self.calls.append(token)
        if token in self.failing:
            raise VerificationError("validation service unreachable")
        return token in self.valid

    def decode_public_id(self, token: str) -> str:
        return token[: len(token) - 32].lower()


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and the package logger after every test.

    The CLI installs a Rich log handler bound to the CliRunner's stderr;
    once the runner finishes that stream is closed, so the handler must not
    outlive the test.
    """
    yield
    reset_output()
    package_logger = logging.getLogger("otplogin")
    package_logger.handlers = []
    package_logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# OTP builders
# ---------------------------------------------------------------------------


@pytest.fixture
def make_otp() -> Callable[..., str]:
    """Build a 44-character YubiKey-style OTP: 12-char public id + 32-char body."""

    def _make(public_id: str = "cccccccccccb", fill: str = "h") -> str:
        return public_id + fill * 32

    return _make


# ---------------------------------------------------------------------------
# Session fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def spy_verifier() -> SpyVerifier:
    return SpyVerifier()


@pytest.fixture
def subject() -> Subject:
    return Subject()


@pytest.fixture
def session(spy_verifier: SpyVerifier) -> LoginSession:
    """A login session whose verifier factory hands out *spy_verifier*."""

    def _factory(config: LoginModuleConfig) -> SpyVerifier:
        spy_verifier.config = config
        return spy_verifier

    return LoginSession(verifier_factory=_factory)


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the duration of a test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
