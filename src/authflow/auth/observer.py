"""Session observer: a passive mirror of the provider's session state.

Usage:
    with SessionObserver(provider) as observer:
        await observer.wait_resolved()
        if observer.session is None:
            ...
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import TYPE_CHECKING, Self

if TYPE_CHECKING:
    from types import TracebackType

    from authflow.auth.models import Session
    from authflow.auth.protocol import (
        IdentityProviderProtocol,
        SessionCallback,
        Unsubscribe,
    )

logger = logging.getLogger(__name__)


class SessionObserver:
    """Mirror the provider's current session for the life of the process.

    Registers with the provider on construction. ``resolved`` stays False
    until the first notification arrives, which separates "signed out"
    from "still determining". ``close()`` deregisters exactly once, even
    when it races with a notification being delivered.
    """

    def __init__(
        self,
        provider: IdentityProviderProtocol,
        on_change: SessionCallback | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._session: Session | None = None
        self._resolved = False
        self._closed = False
        self._listeners: list[SessionCallback] = []
        self._resolved_event = asyncio.Event()
        if on_change is not None:
            self._listeners.append(on_change)
        self._provider_unsubscribe: Unsubscribe | None = provider.observe_session(
            self._handle_notification
        )

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def resolved(self) -> bool:
        return self._resolved

    @property
    def closed(self) -> bool:
        return self._closed

    def observe(self, on_change: SessionCallback) -> Unsubscribe:
        """Add a listener; it receives the current session if already resolved.

        Returns:
            Idempotent callable that removes the listener.
        """
        with self._lock:
            self._listeners.append(on_change)
            replay = self._resolved
            current = self._session
        if replay:
            self._notify(on_change, current)

        def unsubscribe() -> None:
            with self._lock:
                if on_change in self._listeners:
                    self._listeners.remove(on_change)

        return unsubscribe

    async def wait_resolved(self) -> Session | None:
        """Suspend until the first notification, then return the session.

        Also returns when the observer is closed first; the result is then
        whatever was last received, None if nothing was.
        """
        await self._resolved_event.wait()
        return self._session

    def close(self) -> None:
        """Deregister from the provider. Safe to call more than once."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            unsubscribe, self._provider_unsubscribe = self._provider_unsubscribe, None
            self._listeners.clear()
        self._resolved_event.set()
        if unsubscribe is not None:
            unsubscribe()
        logger.debug("Session observer closed")

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _handle_notification(self, session: Session | None) -> None:
        with self._lock:
            if self._closed:
                logger.debug("Dropping session notification after close")
                return
            self._session = session
            self._resolved = True
            listeners = list(self._listeners)
        self._resolved_event.set()
        logger.info(
            "Session changed",
            extra={"subject_id": session.subject_id if session else None},
        )
        for listener in listeners:
            self._notify(listener, session)

    @staticmethod
    def _notify(listener: SessionCallback, session: Session | None) -> None:
        try:
            listener(session)
        except Exception:
            logger.exception("Session observer listener raised")
