"""Binding identities into the host's authenticated subject.

The host owns the container of principals that represents an authenticated
session; several login modules may write to it. The login session never
looks it up globally: it is handed in at initialization and only ever
mutated through :class:`IdentityBinder`, with set semantics (adding a present
principal or removing an absent one does nothing).

Any object with ``add`` and ``discard`` satisfies :class:`PrincipalContainer`,
including a plain ``set``. :class:`Subject` is a thread-safe default.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Hashable, Iterator, Optional, Protocol, TypeVar, runtime_checkable

from otplogin.models import OtpPrincipal

logger = logging.getLogger(__name__)

P = TypeVar("P")


@runtime_checkable
class PrincipalContainer(Protocol):
    """Host-owned, set-like collection of principals."""

    def add(self, principal: Any) -> None:
        ...

    def discard(self, principal: Any) -> None:
        ...


class Subject:
    """Default principal container.

    Mutations are serialized with a lock so modules of a login stack may
    share one subject across threads.

    Example::

        subject = Subject()
        session.initialize(subject, channel, {"clientId": "42"})
        if session.login():
            session.commit()
        subject.principals_of(OtpPrincipal)
    """

    def __init__(self) -> None:
        self._principals: set[Hashable] = set()
        self._lock = threading.Lock()

    def add(self, principal: Hashable) -> None:
        with self._lock:
            self._principals.add(principal)

    def discard(self, principal: Hashable) -> None:
        with self._lock:
            self._principals.discard(principal)

    def principals_of(self, kind: type[P]) -> set[P]:
        """Return the principals that are instances of *kind*."""
        with self._lock:
            return {p for p in self._principals if isinstance(p, kind)}

    def __contains__(self, principal: object) -> bool:
        with self._lock:
            return principal in self._principals

    def __len__(self) -> int:
        with self._lock:
            return len(self._principals)

    def __iter__(self) -> Iterator[Hashable]:
        with self._lock:
            return iter(list(self._principals))


class IdentityBinder:
    """Attach and detach an :class:`~otplogin.models.OtpPrincipal` on a container."""

    def attach(self, subject: PrincipalContainer, identity: OtpPrincipal) -> None:
        logger.debug("Attaching %s", identity)
        subject.add(identity)

    def detach(self, subject: PrincipalContainer, identity: Optional[OtpPrincipal]) -> None:
        if identity is None:
            return
        logger.debug("Detaching %s", identity)
        subject.discard(identity)
