"""Session change fan-out shared by the provider adapters."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from authflow.auth.models import Session
    from authflow.auth.protocol import SessionCallback, Unsubscribe

logger = logging.getLogger(__name__)


class SessionBroadcaster:
    """Holds the provider's current session and notifies listeners.

    A new listener receives the current session as its first notification.
    When an event loop is running that first notification is scheduled
    with call_soon, so the registering code returns before it arrives.
    """

    def __init__(self) -> None:
        self._current: Session | None = None
        self._listeners: list[SessionCallback] = []

    @property
    def current(self) -> Session | None:
        return self._current

    def observe(self, callback: SessionCallback) -> Unsubscribe:
        """Register a listener and return its idempotent deregistration."""
        self._listeners.append(callback)

        def _initial() -> None:
            if callback in self._listeners:
                self._deliver(callback, self._current)

        try:
            asyncio.get_running_loop().call_soon(_initial)
        except RuntimeError:
            _initial()

        def unsubscribe() -> None:
            try:
                self._listeners.remove(callback)
            except ValueError:
                pass

        return unsubscribe

    def publish(self, session: Session | None) -> None:
        """Record a session change and notify every listener."""
        self._current = session
        for callback in list(self._listeners):
            self._deliver(callback, session)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    @staticmethod
    def _deliver(callback: SessionCallback, session: Session | None) -> None:
        try:
            callback(session)
        except Exception:
            logger.exception("Session listener raised; continuing delivery")
