"""Mock identity provider for testing.

This module provides an in-memory implementation of IdentityProviderProtocol
that can be used in tests and local development without calling Stytch.

Known accounts sign in with their password; any well-formed phone number
receives MOCK_VERIFICATION_CODE; guest sign-in always works. A single
failure can be injected per operation with fail_next().
"""

from __future__ import annotations

import hashlib
import re

from authflow.auth import errors
from authflow.auth.broadcast import SessionBroadcaster
from authflow.auth.models import (
    ANONYMOUS_DISPLAY,
    AuthMethod,
    CaptchaChallenge,
    ChallengeIssued,
    ChallengeTicket,
    PhoneCodeOutcome,
    ProviderFailure,
    Session,
    SessionEstablished,
    SignInOutcome,
    SignOutResult,
)
from authflow.auth.protocol import SessionCallback, Unsubscribe

# Predefined test values for consistent behaviour in tests
MOCK_ACCOUNTS: dict[str, str] = {
    "test@example.com": "correct-horse",
    "a@b.com": "secret",
    "student@uni.edu": "battery-staple",
}
MOCK_VERIFICATION_CODE = "000000"
MOCK_FEDERATED_EMAIL = "federated-user@example.com"
MOCK_RATE_LIMIT_EMAIL = "locked@example.com"

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_RE = re.compile(r"^\+[1-9]\d{6,14}$")

OPERATIONS = frozenset(
    {"password", "federated", "anonymous", "phone_send", "phone_confirm", "sign_out"}
)


def _digest(identifier: str) -> str:
    return hashlib.md5(identifier.encode()).hexdigest()  # nosec B324


def _subject_id(identifier: str) -> str:
    """Generate a deterministic subject ID from an identifier."""
    return f"mock-user-{_digest(identifier)[:8]}"


def _session_token(identifier: str) -> str:
    """Generate a deterministic session token from an identifier."""
    return f"mock-session-{_digest(identifier)[:12]}"


class MockIdentityProvider:
    """Mock implementation of IdentityProviderProtocol for testing.

    Password reasons follow the canonical vocabulary: unknown email gives
    "user-not-found", wrong password "wrong-password", malformed email
    "invalid-email", and MOCK_RATE_LIMIT_EMAIL always "too-many-requests".
    """

    def __init__(
        self,
        accounts: dict[str, str] | None = None,
        verification_code: str = MOCK_VERIFICATION_CODE,
    ) -> None:
        self._accounts = dict(MOCK_ACCOUNTS if accounts is None else accounts)
        self._verification_code = verification_code
        self._broadcaster = SessionBroadcaster()
        self._injected: dict[str, str] = {}
        self._guest_counter = 0
        # Track calls for test assertions
        self._sent_codes: list[dict[str, str]] = []
        self._captchas: list[CaptchaChallenge] = []
        self._pending: dict[str, str] = {}

    def fail_next(self, operation: str, reason: str = errors.INTERNAL_ERROR) -> None:
        """Make the next call of an operation fail with the given reason.

        Args:
            operation: One of OPERATIONS.
            reason: Reason code the failure reports.
        """
        if operation not in OPERATIONS:
            msg = f"Unknown mock operation: {operation!r}"
            raise ValueError(msg)
        self._injected[operation] = reason

    def _injected_failure(self, operation: str) -> ProviderFailure | None:
        reason = self._injected.pop(operation, None)
        return ProviderFailure(reason=reason) if reason is not None else None

    def _establish(
        self, identifier: str, display: str, method: AuthMethod
    ) -> SessionEstablished:
        session = Session(
            subject_id=_subject_id(identifier),
            display_identifier=display,
            method=method,
            session_token=_session_token(identifier),
        )
        self._broadcaster.publish(session)
        return SessionEstablished(session=session)

    async def authenticate_with_password(
        self,
        identifier: str,
        secret: str,
    ) -> SignInOutcome:
        if failure := self._injected_failure("password"):
            return failure
        if not _EMAIL_RE.match(identifier):
            return ProviderFailure(reason=errors.INVALID_EMAIL)
        if identifier == MOCK_RATE_LIMIT_EMAIL:
            return ProviderFailure(reason=errors.TOO_MANY_REQUESTS)
        if identifier not in self._accounts:
            return ProviderFailure(reason=errors.USER_NOT_FOUND)
        if self._accounts[identifier] != secret:
            return ProviderFailure(reason=errors.WRONG_PASSWORD)
        return self._establish(identifier, identifier, AuthMethod.PASSWORD)

    async def authenticate_with_federated_provider(self) -> SignInOutcome:
        if failure := self._injected_failure("federated"):
            return failure
        return self._establish(
            MOCK_FEDERATED_EMAIL, MOCK_FEDERATED_EMAIL, AuthMethod.FEDERATED
        )

    async def authenticate_anonymously(self) -> SignInOutcome:
        if failure := self._injected_failure("anonymous"):
            return failure
        self._guest_counter += 1
        return self._establish(
            f"guest-{self._guest_counter}", ANONYMOUS_DISPLAY, AuthMethod.ANONYMOUS
        )

    def create_captcha_challenge(self) -> CaptchaChallenge:
        captcha = CaptchaChallenge(
            container_id="recaptcha-container",
            size="invisible",
            widget_id=f"mock-captcha-{len(self._captchas) + 1}",
        )
        self._captchas.append(captcha)
        return captcha

    async def request_phone_code(
        self,
        phone_number: str,
        captcha: CaptchaChallenge,
    ) -> PhoneCodeOutcome:
        self._sent_codes.append(
            {"phone_number": phone_number, "widget_id": captcha.widget_id}
        )
        if failure := self._injected_failure("phone_send"):
            return failure
        if not _PHONE_RE.match(phone_number):
            return ProviderFailure(reason=errors.INVALID_PHONE_NUMBER)
        handle = f"mock-confirm-{len(self._sent_codes)}"
        self._pending[handle] = phone_number
        return ChallengeIssued(
            ticket=ChallengeTicket(
                bound_phone_number=phone_number,
                confirm_handle=handle,
            )
        )

    async def confirm_phone_code(
        self,
        ticket: ChallengeTicket,
        code: str,
    ) -> SignInOutcome:
        if failure := self._injected_failure("phone_confirm"):
            return failure
        phone_number = self._pending.get(ticket.confirm_handle)
        if phone_number is None or code != self._verification_code:
            return ProviderFailure(reason=errors.INVALID_VERIFICATION_CODE)
        del self._pending[ticket.confirm_handle]
        return self._establish(phone_number, phone_number, AuthMethod.PHONE)

    def observe_session(self, callback: SessionCallback) -> Unsubscribe:
        return self._broadcaster.observe(callback)

    async def sign_out(self) -> SignOutResult:
        if failure := self._injected_failure("sign_out"):
            return SignOutResult(success=False, error=failure.reason)
        self._broadcaster.publish(None)
        return SignOutResult(success=True)

    # Test helper methods

    @property
    def current_session(self) -> Session | None:
        """The session the provider currently considers live."""
        return self._broadcaster.current

    @property
    def observer_count(self) -> int:
        """Number of registered session observers."""
        return self._broadcaster.listener_count

    def get_sent_codes(self) -> list[dict[str, str]]:
        """Return the phone code requests received (for test assertions)."""
        return self._sent_codes.copy()

    def get_created_captchas(self) -> list[CaptchaChallenge]:
        """Return every captcha challenge this provider created."""
        return self._captchas.copy()
