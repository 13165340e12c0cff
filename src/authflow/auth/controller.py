"""Authentication flow controller.

Orchestrates the four credential methods (password, federated, anonymous
and phone one-time code) against an identity provider and keeps a single
AuthAttempt describing what the user should currently see:

    idle -> submitting -> idle | failed | awaiting_code
    awaiting_code -> submitting -> idle | failed (ticket kept for retry)
    awaiting_code -> idle (abandon, ticket discarded)
    any -> submitting -> idle | failed (sign_out, ticket discarded)

Whether a session exists is not tracked here; the SessionObserver is the
authority on that. Operations never raise: every provider outcome, and any
unexpected exception, ends up as an ErrorKind on the attempt.

Each attempt takes a new sequence number. A provider response that comes
back after a newer attempt has started is logged and dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from authflow.auth.errors import (
    ErrorCategory,
    ErrorKind,
    category_for,
    classify_password_failure,
    user_message,
)
from authflow.auth.models import (
    AttemptPhase,
    AuthAttempt,
    AuthMethod,
    ChallengeIssued,
    ProviderFailure,
    SessionEstablished,
)

if TYPE_CHECKING:
    from authflow.auth.models import (
        CaptchaChallenge,
        ChallengeTicket,
        PhoneCodeOutcome,
        SignInOutcome,
    )
    from authflow.auth.protocol import IdentityProviderProtocol

logger = logging.getLogger(__name__)


class AuthFlowController:
    """Drive sign-in attempts and expose their state to the presentation layer.

    Args:
        provider: The identity provider to authenticate against.
        on_success: Called with no arguments whenever an attempt ends
            with an established session.
    """

    def __init__(
        self,
        provider: IdentityProviderProtocol,
        *,
        on_success: Callable[[], None] | None = None,
    ) -> None:
        self._provider = provider
        self._on_success = on_success
        self._attempt = AuthAttempt()
        self._ticket: ChallengeTicket | None = None
        self._captcha: CaptchaChallenge | None = None

    # -- read access -------------------------------------------------------

    @property
    def attempt(self) -> AuthAttempt:
        return self._attempt

    @property
    def phase(self) -> AttemptPhase:
        return self._attempt.phase

    @property
    def error_kind(self) -> ErrorKind | None:
        return self._attempt.error_kind

    @property
    def error_category(self) -> ErrorCategory | None:
        kind = self._attempt.error_kind
        return category_for(kind) if kind is not None else None

    @property
    def error_message(self) -> str | None:
        kind = self._attempt.error_kind
        return user_message(kind) if kind is not None else None

    @property
    def ticket(self) -> ChallengeTicket | None:
        return self._ticket

    @property
    def captcha(self) -> CaptchaChallenge | None:
        return self._captcha

    @property
    def is_busy(self) -> bool:
        return self._attempt.phase is AttemptPhase.SUBMITTING

    # -- operations --------------------------------------------------------

    async def sign_in_with_password(self, identifier: str, secret: str) -> None:
        """Sign in with an email address and password."""
        seq = self._begin(AuthMethod.PASSWORD)
        if not identifier or not secret:
            self._fail(seq, ErrorKind.MISSING_CREDENTIALS)
            return
        outcome = await self._call(
            seq, lambda: self._provider.authenticate_with_password(identifier, secret)
        )
        self._finish_sign_in(
            seq,
            outcome,
            lambda failure: classify_password_failure(failure.reason),
        )

    async def sign_in_with_federated_provider(self) -> None:
        """Sign in through the interactive federated provider."""
        seq = self._begin(AuthMethod.FEDERATED)
        outcome = await self._call(
            seq, self._provider.authenticate_with_federated_provider
        )
        self._finish_sign_in(seq, outcome, lambda _: ErrorKind.FEDERATED_FAILED)

    async def sign_in_anonymously(self) -> None:
        """Sign in as a guest."""
        seq = self._begin(AuthMethod.ANONYMOUS)
        outcome = await self._call(seq, self._provider.authenticate_anonymously)
        self._finish_sign_in(seq, outcome, lambda _: ErrorKind.ANONYMOUS_FAILED)

    async def send_phone_code(self, phone_number: str) -> None:
        """Request a one-time code for a phone number.

        The number should include its country code; beyond non-emptiness
        its format is left to the provider to reject.
        """
        seq = self._begin(AuthMethod.PHONE)
        if not phone_number:
            self._fail(seq, ErrorKind.MISSING_PHONE_NUMBER)
            return

        try:
            captcha = self._acquire_captcha()
        except Exception:
            logger.exception("Captcha challenge could not be created")
            self._fail(seq, ErrorKind.CODE_SEND_FAILED)
            return

        outcome: PhoneCodeOutcome = await self._call(
            seq, lambda: self._provider.request_phone_code(phone_number, captcha)
        )
        if not self._is_current(seq):
            return
        if isinstance(outcome, ChallengeIssued):
            self._ticket = outcome.ticket
            self._set(phase=AttemptPhase.AWAITING_CODE)
            logger.info("Verification code sent", extra={"attempt": seq})
        else:
            self._log_failure(seq, outcome)
            self._fail(seq, ErrorKind.CODE_SEND_FAILED)

    async def submit_code(self, code: str) -> None:
        """Confirm the code sent by send_phone_code.

        The ticket is kept when the provider rejects the code, so the
        same ticket can be tried again.
        """
        seq = self._begin(AuthMethod.PHONE, keep_ticket=True)
        ticket = self._ticket
        if ticket is None:
            self._fail(seq, ErrorKind.NO_ACTIVE_CHALLENGE)
            return
        if not code:
            self._fail(seq, ErrorKind.MISSING_CODE)
            return

        outcome = await self._call(
            seq, lambda: self._provider.confirm_phone_code(ticket, code)
        )
        # A confirmed ticket is spent even when the response is stale.
        if isinstance(outcome, SessionEstablished) and self._ticket is ticket:
            self._ticket = None
        if not self._is_current(seq):
            return
        self._finish_sign_in(seq, outcome, lambda _: ErrorKind.INVALID_CODE)

    def abandon_phone_challenge(self) -> None:
        """Drop the pending ticket and go back to idle without the provider."""
        self._attempt = AuthAttempt(
            method=self._attempt.method,
            phase=AttemptPhase.IDLE,
            sequence=self._attempt.sequence + 1,
        )
        self._ticket = None
        logger.debug(
            "Phone challenge abandoned", extra={"attempt": self._attempt.sequence}
        )

    async def sign_out(self) -> None:
        """Forward sign-out to the provider; failures are shown, not retried."""
        seq = self._attempt.sequence + 1
        self._attempt = AuthAttempt(
            method=self._attempt.method,
            phase=AttemptPhase.SUBMITTING,
            sequence=seq,
        )
        self._ticket = None
        try:
            result = await self._provider.sign_out()
        except Exception:
            logger.exception("Sign out raised")
            self._fail(seq, ErrorKind.SIGN_OUT_FAILED)
            return
        if not self._is_current(seq):
            return
        if result.success:
            self._set(phase=AttemptPhase.IDLE)
        else:
            logger.warning("Sign out failed", extra={"error_type": result.error})
            self._fail(seq, ErrorKind.SIGN_OUT_FAILED)

    # -- internals ---------------------------------------------------------

    def _begin(self, method: AuthMethod, *, keep_ticket: bool = False) -> int:
        """Start a new attempt, superseding whatever was in flight."""
        seq = self._attempt.sequence + 1
        self._attempt = AuthAttempt(
            method=method,
            phase=AttemptPhase.SUBMITTING,
            sequence=seq,
        )
        if not keep_ticket:
            self._ticket = None
        logger.debug("Attempt started", extra={"attempt": seq, "method": str(method)})
        return seq

    def _is_current(self, seq: int) -> bool:
        if seq == self._attempt.sequence:
            return True
        logger.info(
            "Discarding stale provider response",
            extra={"attempt": seq, "current": self._attempt.sequence},
        )
        return False

    def _set(
        self, *, phase: AttemptPhase, error_kind: ErrorKind | None = None
    ) -> None:
        self._attempt = replace(self._attempt, phase=phase, error_kind=error_kind)

    def _fail(self, seq: int, kind: ErrorKind) -> None:
        if seq != self._attempt.sequence:
            return
        self._set(phase=AttemptPhase.FAILED, error_kind=kind)

    def _acquire_captcha(self) -> CaptchaChallenge:
        if self._captcha is None:
            self._captcha = self._provider.create_captcha_challenge()
            logger.debug("Captcha challenge created")
        return self._captcha

    async def _call(
        self,
        seq: int,
        request: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Await a provider request, turning exceptions into failures."""
        try:
            return await request()
        except Exception as e:
            logger.exception("Provider request raised", extra={"attempt": seq})
            return ProviderFailure(reason=type(e).__name__, detail=str(e))

    def _finish_sign_in(
        self,
        seq: int,
        outcome: SignInOutcome,
        classify: Callable[[ProviderFailure], ErrorKind],
    ) -> None:
        if not self._is_current(seq):
            return
        if isinstance(outcome, SessionEstablished):
            self._set(phase=AttemptPhase.IDLE)
            logger.info(
                "Sign-in succeeded",
                extra={
                    "attempt": seq,
                    "method": str(outcome.session.method),
                    "subject_id": outcome.session.subject_id,
                },
            )
            self._notify_success()
            return
        self._log_failure(seq, outcome)
        self._fail(seq, classify(outcome))

    def _log_failure(self, seq: int, failure: ProviderFailure) -> None:
        logger.warning(
            "Provider rejected attempt",
            extra={
                "attempt": seq,
                "method": str(self._attempt.method),
                "error_type": failure.reason,
            },
        )

    def _notify_success(self) -> None:
        if self._on_success is None:
            return
        try:
            self._on_success()
        except Exception:
            logger.exception("on_success callback raised")
