"""Authentication flow module for authflow.

Provides sign-in against an identity provider with support for:
- Email and password
- Federated (OAuth) sign-in
- Anonymous guest sessions
- Phone one-time codes with a captcha challenge
- Mock provider for testing

Usage:
    from authflow.auth import AuthFlowController, SessionObserver, get_identity_provider

    provider = get_identity_provider()
    with SessionObserver(provider) as observer:
        controller = AuthFlowController(provider)
        await controller.send_phone_code("+15551234567")
        await controller.submit_code("123456")
        print(observer.session)
"""

from __future__ import annotations

from authflow.auth.controller import AuthFlowController
from authflow.auth.errors import (
    ErrorCategory,
    ErrorKind,
    category_for,
    classify_password_failure,
    user_message,
)
from authflow.auth.factory import clear_config_cache, get_identity_provider
from authflow.auth.models import (
    ANONYMOUS_DISPLAY,
    AttemptPhase,
    AuthAttempt,
    AuthMethod,
    CaptchaChallenge,
    ChallengeIssued,
    ChallengeTicket,
    ProviderFailure,
    Session,
    SessionEstablished,
    SignOutResult,
)
from authflow.auth.observer import SessionObserver
from authflow.auth.protocol import IdentityProviderProtocol

__all__ = [
    "ANONYMOUS_DISPLAY",
    "AttemptPhase",
    "AuthAttempt",
    "AuthFlowController",
    "AuthMethod",
    "CaptchaChallenge",
    "ChallengeIssued",
    "ChallengeTicket",
    "ErrorCategory",
    "ErrorKind",
    "IdentityProviderProtocol",
    "ProviderFailure",
    "Session",
    "SessionEstablished",
    "SessionObserver",
    "SignOutResult",
    "category_for",
    "classify_password_failure",
    "clear_config_cache",
    "get_identity_provider",
    "user_message",
]
