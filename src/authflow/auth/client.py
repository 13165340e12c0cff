"""Stytch client wrapper implementing the identity provider protocol.

This module adapts the Stytch consumer SDK to IdentityProviderProtocol:
password, OAuth and SMS one-time-passcode authentication, session
revocation, and session change notifications for the SessionObserver.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

from stytch import Client
from stytch.core.response_base import StytchError

from authflow.auth import errors
from authflow.auth.broadcast import SessionBroadcaster
from authflow.auth.models import (
    AuthMethod,
    CaptchaChallenge,
    ChallengeIssued,
    ChallengeTicket,
    ProviderFailure,
    Session,
    SessionEstablished,
    SignOutResult,
)

if TYPE_CHECKING:
    from authflow.auth.models import PhoneCodeOutcome, SignInOutcome
    from authflow.auth.protocol import SessionCallback, Unsubscribe

logger = logging.getLogger(__name__)

# Stytch API base URLs
STYTCH_TEST_API = "https://test.stytch.com"
STYTCH_LIVE_API = "https://api.stytch.com"

DEFAULT_SESSION_MINUTES = 60 * 24 * 7  # 1 week

# Receives the OAuth start URL, completes the interactive step and
# returns the token from the provider callback.
type FederatedTokenSource = Callable[[str], Awaitable[str]]

# Stytch error_type -> canonical reason code (see errors module)
_STYTCH_REASONS: dict[str, str] = {
    "user_not_found": errors.USER_NOT_FOUND,
    "email_not_found": errors.USER_NOT_FOUND,
    "unauthorized_credentials": errors.WRONG_PASSWORD,
    "invalid_email": errors.INVALID_EMAIL,
    "too_many_requests": errors.TOO_MANY_REQUESTS,
    "invalid_phone_number": errors.INVALID_PHONE_NUMBER,
    "otp_code_not_found": errors.INVALID_VERIFICATION_CODE,
    "unable_to_auth_otp_code": errors.INVALID_VERIFICATION_CODE,
}


def _reason_from(error: StytchError) -> str:
    """Translate a Stytch error into a canonical reason code.

    Unknown error types are passed through unchanged.
    """
    error_type = getattr(error.details, "error_type", None) or errors.INTERNAL_ERROR
    return _STYTCH_REASONS.get(error_type, error_type)


def _first_email(user: Any) -> str | None:
    emails = getattr(user, "emails", None) or []
    return emails[0].email if emails else None


def _first_phone(user: Any) -> str | None:
    phones = getattr(user, "phone_numbers", None) or []
    return phones[0].phone_number if phones else None


class StytchIdentityProvider:
    """Wrapper around the Stytch consumer Client.

    Implements IdentityProviderProtocol. Stytch has no guest sessions, so
    anonymous sign-in is always rejected with "operation-not-allowed".
    Federated sign-in needs a token source for the interactive step.
    """

    def __init__(
        self,
        project_id: str,
        secret: str,
        *,
        environment: str = "test",
        public_token: str = "",
        oauth_provider: str = "google",
        oauth_redirect_url: str = "http://localhost:8080/auth/oauth/callback",
        session_duration_minutes: int = DEFAULT_SESSION_MINUTES,
        federated_token_source: FederatedTokenSource | None = None,
        captcha_container_id: str = "recaptcha-container",
        captcha_size: str = "invisible",
    ) -> None:
        """Initialize the Stytch client.

        Args:
            project_id: Stytch project ID.
            secret: Stytch secret key.
            environment: Either "test" or "live".
            public_token: Stytch public token for the OAuth start URL.
            oauth_provider: OAuth provider slug, e.g. "google".
            oauth_redirect_url: Where Stytch redirects after OAuth.
            session_duration_minutes: Lifetime of created sessions.
            federated_token_source: Completes the interactive OAuth step.
            captcha_container_id: Slot the captcha widget is rendered into.
            captcha_size: Widget size, "invisible" or "normal".
        """
        self._client = Client(
            project_id=project_id,
            secret=secret,
            environment=environment,
        )
        self._environment = environment
        self._public_token = public_token
        self._oauth_provider = oauth_provider
        self._oauth_redirect_url = oauth_redirect_url
        self._session_minutes = session_duration_minutes
        self._federated_token_source = federated_token_source
        self._captcha_container_id = captcha_container_id
        self._captcha_size = captcha_size
        self._broadcaster = SessionBroadcaster()

    def _establish(self, session: Session) -> SessionEstablished:
        self._broadcaster.publish(session)
        return SessionEstablished(session=session)

    async def authenticate_with_password(
        self,
        identifier: str,
        secret: str,
    ) -> SignInOutcome:
        """Authenticate an email address and password.

        Args:
            identifier: The account's email address.
            secret: The account's password.

        Returns:
            SessionEstablished, or ProviderFailure with the reason code.
        """
        try:
            response = await self._client.passwords.authenticate_async(
                email=identifier,
                password=secret,
                session_duration_minutes=self._session_minutes,
            )
        except StytchError as e:
            reason = _reason_from(e)
            logger.warning(
                "Password auth failed",
                extra={"email": identifier, "error_type": reason},
            )
            return ProviderFailure(reason=reason)

        return self._establish(
            Session(
                subject_id=response.user_id,
                display_identifier=_first_email(response.user) or identifier,
                method=AuthMethod.PASSWORD,
                session_token=response.session_token,
            )
        )

    def get_oauth_start_url(self) -> str:
        """Build the public URL that starts the OAuth flow."""
        base_url = STYTCH_TEST_API if self._environment == "test" else STYTCH_LIVE_API
        params = {
            "public_token": self._public_token,
            "login_redirect_url": self._oauth_redirect_url,
            "signup_redirect_url": self._oauth_redirect_url,
        }
        return (
            f"{base_url}/v1/public/oauth/{self._oauth_provider}/start"
            f"?{urlencode(params)}"
        )

    async def authenticate_with_federated_provider(self) -> SignInOutcome:
        """Run the OAuth flow and authenticate the callback token.

        Returns:
            SessionEstablished, or ProviderFailure.
        """
        if self._federated_token_source is None:
            logger.warning("Federated sign-in requested without a token source")
            return ProviderFailure(reason=errors.FEDERATED_UNAVAILABLE)

        token = await self._federated_token_source(self.get_oauth_start_url())
        if not token:
            return ProviderFailure(reason=errors.POPUP_CLOSED)

        try:
            response = await self._client.oauth.authenticate_async(
                token=token,
                session_duration_minutes=self._session_minutes,
            )
        except StytchError as e:
            reason = _reason_from(e)
            logger.warning("OAuth auth failed", extra={"error_type": reason})
            return ProviderFailure(reason=reason)

        return self._establish(
            Session(
                subject_id=response.user_id,
                display_identifier=_first_email(response.user) or response.user_id,
                method=AuthMethod.FEDERATED,
                session_token=response.session_token,
            )
        )

    async def authenticate_anonymously(self) -> SignInOutcome:
        """Stytch does not issue guest sessions."""
        logger.info("Anonymous sign-in is not available with Stytch")
        return ProviderFailure(
            reason=errors.OPERATION_NOT_ALLOWED,
            detail="Stytch does not support anonymous sessions",
        )

    def create_captcha_challenge(self) -> CaptchaChallenge:
        """Describe the captcha widget for the presentation layer to render."""
        return CaptchaChallenge(
            container_id=self._captcha_container_id,
            size=self._captcha_size,
            widget_id=f"stytch-{uuid.uuid4().hex[:12]}",
        )

    async def request_phone_code(
        self,
        phone_number: str,
        captcha: CaptchaChallenge,
    ) -> PhoneCodeOutcome:
        """Send an SMS one-time passcode.

        Args:
            phone_number: E.164 number, e.g. "+15551234567".
            captcha: The widget vouching for this request.

        Returns:
            ChallengeIssued whose confirm handle is the Stytch phone_id.
        """
        try:
            response = await self._client.otps.sms.login_or_create_async(
                phone_number=phone_number,
            )
        except StytchError as e:
            reason = _reason_from(e)
            logger.warning(
                "SMS code send failed",
                extra={"widget_id": captcha.widget_id, "error_type": reason},
            )
            return ProviderFailure(reason=reason)

        return ChallengeIssued(
            ticket=ChallengeTicket(
                bound_phone_number=phone_number,
                confirm_handle=response.phone_id,
            )
        )

    async def confirm_phone_code(
        self,
        ticket: ChallengeTicket,
        code: str,
    ) -> SignInOutcome:
        """Authenticate an SMS passcode against its phone_id.

        Args:
            ticket: The ticket returned by request_phone_code.
            code: The code the user received.

        Returns:
            SessionEstablished, or ProviderFailure.
        """
        try:
            response = await self._client.otps.authenticate_async(
                method_id=ticket.confirm_handle,
                code=code,
                session_duration_minutes=self._session_minutes,
            )
        except StytchError as e:
            reason = _reason_from(e)
            logger.warning("SMS code confirm failed", extra={"error_type": reason})
            return ProviderFailure(reason=reason)

        return self._establish(
            Session(
                subject_id=response.user_id,
                display_identifier=(
                    _first_phone(response.user) or ticket.bound_phone_number
                ),
                method=AuthMethod.PHONE,
                session_token=response.session_token,
            )
        )

    def observe_session(self, callback: SessionCallback) -> Unsubscribe:
        """Register for session change notifications."""
        return self._broadcaster.observe(callback)

    async def sign_out(self) -> SignOutResult:
        """Revoke the current Stytch session."""
        current = self._broadcaster.current
        if current is None:
            return SignOutResult(success=True)
        if current.session_token is None:
            self._broadcaster.publish(None)
            return SignOutResult(success=True)

        try:
            await self._client.sessions.revoke_async(
                session_token=current.session_token,
            )
        except StytchError as e:
            reason = _reason_from(e)
            logger.warning("Session revoke failed", extra={"error_type": reason})
            return SignOutResult(success=False, error=reason)

        self._broadcaster.publish(None)
        return SignOutResult(success=True)
