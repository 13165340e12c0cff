"""Protocol defining the identity provider interface.

Both StytchIdentityProvider and MockIdentityProvider implement this
protocol, allowing them to be used interchangeably by the controller
and the session observer.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from authflow.auth.models import (
        CaptchaChallenge,
        ChallengeTicket,
        PhoneCodeOutcome,
        Session,
        SignInOutcome,
        SignOutResult,
    )

type SessionCallback = Callable[[Session | None], None]
type Unsubscribe = Callable[[], None]


class IdentityProviderProtocol(Protocol):
    """Protocol for identity providers.

    Sign-in methods report rejection as a ProviderFailure value rather
    than raising. Session changes are pushed to observers registered
    with observe_session, independent of which method produced them.
    """

    async def authenticate_with_password(
        self,
        identifier: str,
        secret: str,
    ) -> SignInOutcome:
        """Authenticate with an email address and password.

        Args:
            identifier: The account's email address.
            secret: The account's password.

        Returns:
            SessionEstablished, or ProviderFailure with the reason code.
        """
        ...

    async def authenticate_with_federated_provider(self) -> SignInOutcome:
        """Run an interactive federated (OAuth) sign-in.

        Returns:
            SessionEstablished, or ProviderFailure.
        """
        ...

    async def authenticate_anonymously(self) -> SignInOutcome:
        """Create a guest session with no credentials.

        Returns:
            SessionEstablished, or ProviderFailure.
        """
        ...

    def create_captcha_challenge(self) -> CaptchaChallenge:
        """Create the bot-resistance widget needed before sending codes."""
        ...

    async def request_phone_code(
        self,
        phone_number: str,
        captcha: CaptchaChallenge,
    ) -> PhoneCodeOutcome:
        """Send a one-time code to a phone number.

        Args:
            phone_number: Number including country code, e.g. "+15551234567".
            captcha: The widget vouching for this request.

        Returns:
            ChallengeIssued with the ticket to confirm, or ProviderFailure.
        """
        ...

    async def confirm_phone_code(
        self,
        ticket: ChallengeTicket,
        code: str,
    ) -> SignInOutcome:
        """Confirm a one-time code against a pending ticket.

        Args:
            ticket: The ticket returned by request_phone_code.
            code: The code the user received.

        Returns:
            SessionEstablished, or ProviderFailure.
        """
        ...

    def observe_session(self, callback: SessionCallback) -> Unsubscribe:
        """Register for session change notifications.

        The callback receives the current session (or None) once shortly
        after registration and again on every change.

        Returns:
            A callable that deregisters the callback.
        """
        ...

    async def sign_out(self) -> SignOutResult:
        """End the current session."""
        ...
