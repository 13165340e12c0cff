"""Data models for sessions, attempts and provider outcomes.

Provider calls return one of a small set of tagged outcome types
(SessionEstablished, ChallengeIssued, ProviderFailure) so callers can
dispatch on the type instead of guessing from which fields are set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from authflow.auth.errors import ErrorKind

# display_identifier used for guest sessions
ANONYMOUS_DISPLAY = "anonymous"


class AuthMethod(StrEnum):
    """The credential method behind an attempt or session."""

    PASSWORD = "password"  # nosec B105
    FEDERATED = "federated"
    ANONYMOUS = "anonymous"
    PHONE = "phone"


class AttemptPhase(StrEnum):
    """UI-relevant phase of the current authentication attempt."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    AWAITING_CODE = "awaiting_code"
    FAILED = "failed"


@dataclass(frozen=True)
class Session:
    """An authenticated identity recognised by the identity provider.

    Attributes:
        subject_id: Opaque user identifier assigned by the provider.
        display_identifier: Email, phone number, or ANONYMOUS_DISPLAY.
        method: The credential method that produced the session.
        session_token: Provider session token, needed for sign-out.
    """

    subject_id: str
    display_identifier: str
    method: AuthMethod
    session_token: str | None = field(default=None, repr=False)

    @property
    def is_anonymous(self) -> bool:
        return self.method is AuthMethod.ANONYMOUS


@dataclass(frozen=True)
class ChallengeTicket:
    """Pending phone verification returned after a code is sent.

    Attributes:
        bound_phone_number: The number the code was sent to.
        confirm_handle: Provider handle the code is verified against.
    """

    bound_phone_number: str
    confirm_handle: str = field(repr=False)


@dataclass(frozen=True)
class CaptchaChallenge:
    """Bot-resistance widget the provider requires before sending codes."""

    container_id: str
    size: str
    widget_id: str


@dataclass(frozen=True)
class AuthAttempt:
    """Snapshot of the current authentication attempt.

    Attributes:
        method: Method of the latest attempt, None before the first one.
        phase: Where the attempt is in the state machine.
        error_kind: Why the attempt failed; only set when phase is FAILED.
        sequence: Attempt number, increases with every new attempt.
    """

    method: AuthMethod | None = None
    phase: AttemptPhase = AttemptPhase.IDLE
    error_kind: ErrorKind | None = None
    sequence: int = 0


@dataclass(frozen=True)
class SessionEstablished:
    """Provider outcome: a session now exists."""

    session: Session


@dataclass(frozen=True)
class ChallengeIssued:
    """Provider outcome: a code was sent and must be confirmed."""

    ticket: ChallengeTicket


@dataclass(frozen=True)
class ProviderFailure:
    """Provider outcome: the request was rejected.

    Attributes:
        reason: Provider reason code (any vocabulary, see errors.normalise_reason).
        detail: Optional human-readable detail for logs.
    """

    reason: str
    detail: str | None = None


@dataclass(frozen=True)
class SignOutResult:
    """Result of asking the provider to end the session."""

    success: bool
    error: str | None = None


type SignInOutcome = SessionEstablished | ProviderFailure
type PhoneCodeOutcome = ChallengeIssued | ProviderFailure
