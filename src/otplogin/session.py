"""Login session -- the state machine of one OTP authentication attempt.

A host drives :class:`LoginSession` through the usual pluggable-login
lifecycle::

    session = LoginSession()
    session.initialize(subject, channel, {"clientId": "42"})
    if session.login():
        session.commit()      # identity bound into the subject
    else:
        session.abort()
    ...
    session.logout()          # identity removed again

``login()`` collects candidates once, then tries them strictly in order
against the verifier and stops at the first one that verifies, so later
secrets are never exposed to the network. Every candidate buffer is zeroed
before ``login()`` returns, whatever the outcome.

States::

    UNINITIALIZED -> INITIALIZED -> LOGIN_SUCCEEDED | LOGIN_FAILED
    LOGIN_SUCCEEDED -> COMMITTED -> LOGGED_OUT
    any initialized state -> ABORTED

See Also:
    :mod:`otplogin.collector` for candidate filtering.
    :mod:`otplogin.verifier` for the verifier capability.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from otplogin.binder import IdentityBinder, PrincipalContainer
from otplogin.channels import InputChannel
from otplogin.collector import CandidateToken, SecretCollector
from otplogin.config import parse_options
from otplogin.exceptions import IllegalStateError, VerificationError, VerifierUnavailableError
from otplogin.models import LoginModuleConfig, LoginState, OtpPrincipal, VerifierErrorPolicy
from otplogin.verifier import TokenVerifier, VerifierFactory, YubicoCloudVerifier

logger = logging.getLogger(__name__)

_LOGIN_ALLOWED = frozenset({LoginState.INITIALIZED, LoginState.LOGIN_FAILED})
_COMMIT_ALLOWED = frozenset({LoginState.LOGIN_SUCCEEDED, LoginState.COMMITTED})


class LoginSession:
    """One OTP login attempt.

    A session is used by a single caller thread and is not reused across
    attempts.

    Args:
        verifier_factory: Builds the verifier from the validated
            configuration. Defaults to :meth:`YubicoCloudVerifier.from_config`.
        binder: Binds the identity into the subject. Defaults to a fresh
            :class:`~otplogin.binder.IdentityBinder`.
    """

    def __init__(
        self,
        verifier_factory: VerifierFactory = YubicoCloudVerifier.from_config,
        binder: Optional[IdentityBinder] = None,
    ) -> None:
        self._verifier_factory = verifier_factory
        self._binder = binder or IdentityBinder()
        self._state = LoginState.UNINITIALIZED
        self._subject: Optional[PrincipalContainer] = None
        self._channel: Optional[InputChannel] = None
        self._config: Optional[LoginModuleConfig] = None
        self._verifier: Optional[TokenVerifier] = None
        self._principal: Optional[OtpPrincipal] = None
        self._candidates: tuple[CandidateToken, ...] = ()

    @property
    def state(self) -> LoginState:
        return self._state

    @property
    def principal(self) -> Optional[OtpPrincipal]:
        """The identity produced by ``login()``; ``None`` unless succeeded or committed."""
        return self._principal

    @property
    def config(self) -> Optional[LoginModuleConfig]:
        return self._config

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(
        self,
        subject: Optional[PrincipalContainer],
        channel: Optional[InputChannel],
        options: Optional[Mapping[str, Any]],
    ) -> None:
        """Store the host capabilities and build the verifier.

        Args:
            subject: Container the identity is bound into on commit.
            channel: Input channel secrets are collected from. May be
                ``None``, in which case ``login()`` fails.
            options: Module options, see :mod:`otplogin.config`.

        Raises:
            ConfigurationError: If ``clientId`` is missing or malformed.
            IllegalStateError: If the session was already initialized.
        """
        if self._state is not LoginState.UNINITIALIZED:
            raise IllegalStateError("initialize() may only be called once per session")

        logger.debug("Initializing OTP login session")
        config = parse_options(options)
        self._subject = subject
        self._channel = channel
        self._config = config
        self._verifier = self._verifier_factory(config)
        self._state = LoginState.INITIALIZED

    def login(self) -> bool:
        """Collect candidates and verify them until one succeeds.

        Any exception a verifier raises, whether a
        :class:`~otplogin.exceptions.VerificationError` or a fault in a
        third-party verifier, is handled by the ``verifierErrors`` policy.

        Returns:
            ``True`` if a candidate verified and an identity was created,
            ``False`` otherwise (including when nothing was collected).

        Raises:
            IllegalStateError: If the session is not initialized, already
                committed/aborted, or has no input channel.
            VerifierUnavailableError: If the verifier failed and the
                ``verifierErrors`` option is ``raise``.
        """
        if self._state not in _LOGIN_ALLOWED:
            raise IllegalStateError(f"login() is not allowed in state '{self._state.value}'")
        if self._channel is None:
            raise IllegalStateError("No input channel available in login()")
        assert self._config is not None

        logger.debug("Begin OTP login")
        self._state = LoginState.LOGIN_FAILED
        self._principal = None
        collector = SecretCollector(self._channel, prompt=self._config.prompt)
        self._candidates = collector.collect()
        try:
            for candidate in self._candidates:
                try:
                    public_id = self._check(candidate)
                finally:
                    candidate.scrub()
                if public_id is not None:
                    logger.info("OTP verified successfully (public id %s)", public_id)
                    self._principal = OtpPrincipal(public_id=public_id)
                    self._state = LoginState.LOGIN_SUCCEEDED
                    return True
                logger.info("OTP did NOT verify")
        finally:
            self._scrub_candidates()
        return False

    def commit(self) -> bool:
        """Bind the identity into the subject.

        Committing twice is harmless: the subject keeps a single principal.

        Raises:
            IllegalStateError: If ``login()`` did not succeed, or there is
                no subject.
        """
        logger.debug("In commit()")
        if self._state not in _COMMIT_ALLOWED:
            raise IllegalStateError(f"commit() is not allowed in state '{self._state.value}'")
        if self._subject is None:
            raise IllegalStateError("No subject to bind the identity to")
        assert self._principal is not None

        self._binder.attach(self._subject, self._principal)
        self._state = LoginState.COMMITTED
        return True

    def abort(self) -> bool:
        """Abandon the attempt, removing the identity from the subject if bound.

        Raises:
            IllegalStateError: If the session was never initialized.
        """
        logger.debug("In abort()")
        if self._state is LoginState.UNINITIALIZED:
            raise IllegalStateError("abort() called before initialize()")

        if self._subject is not None:
            self._binder.detach(self._subject, self._principal)
        self._principal = None
        self._scrub_candidates()
        self._state = LoginState.ABORTED
        return True

    def logout(self) -> bool:
        """Remove the committed identity from the subject.

        Returns:
            Always ``False``: the session is no longer authenticated.

        Raises:
            IllegalStateError: If the session is not committed.
        """
        logger.debug("In logout()")
        if self._state is not LoginState.COMMITTED:
            raise IllegalStateError(f"logout() is not allowed in state '{self._state.value}'")

        if self._subject is not None:
            self._binder.detach(self._subject, self._principal)
        self._principal = None
        self._state = LoginState.LOGGED_OUT
        return False

    def close(self) -> None:
        """Scrub anything still held and release the host capabilities."""
        self._scrub_candidates()
        self._channel = None
        self._verifier = None

    def __enter__(self) -> "LoginSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check(self, candidate: CandidateToken) -> Optional[str]:
        """Verify one candidate and return its public id, or ``None`` if rejected.

        The public id of a verified token may be empty; only ``None`` means
        the token did not verify.
        """
        assert self._verifier is not None and self._config is not None
        token = candidate.reveal()
        try:
            if not self._verifier.verify(token):
                return None
            return self._verifier.decode_public_id(token)
        except Exception as exc:
            if self._config.verifier_errors is VerifierErrorPolicy.RAISE:
                raise VerifierUnavailableError(
                    f"OTP verification service unavailable: {exc}"
                ) from exc
            # Anything but a VerificationError is a fault in the verifier itself.
            logger.warning(
                "OTP verification failed, treating the token as rejected: %s",
                exc,
                exc_info=not isinstance(exc, VerificationError),
            )
            return None

    def _scrub_candidates(self) -> None:
        for candidate in self._candidates:
            candidate.scrub()
        self._candidates = ()
