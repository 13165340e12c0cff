"""Unit tests for StytchIdentityProvider.

These tests mock the underlying Stytch SDK to test our wrapper logic in isolation.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from stytch.core.response_base import StytchError

from authflow.auth.models import (
    AuthMethod,
    CaptchaChallenge,
    ChallengeIssued,
    ChallengeTicket,
    ProviderFailure,
    SessionEstablished,
)

CAPTCHA = CaptchaChallenge(
    container_id="recaptcha-container", size="invisible", widget_id="w-1"
)


def _stytch_error(error_type: str) -> StytchError:
    details = MagicMock()
    details.error_type = error_type
    return StytchError(details)


def _user(email: str | None = None, phone: str | None = None) -> MagicMock:
    user = MagicMock()
    user.emails = [MagicMock(email=email)] if email else []
    user.phone_numbers = [MagicMock(phone_number=phone)] if phone else []
    return user


def _auth_response(user_id: str, user: MagicMock) -> MagicMock:
    response = MagicMock()
    response.user_id = user_id
    response.session_token = f"session-{user_id}"
    response.user = user
    return response


class TestReasonTranslation:
    """Tests for the _reason_from helper."""

    @pytest.mark.parametrize(
        ("error_type", "expected"),
        [
            ("unauthorized_credentials", "wrong-password"),
            ("email_not_found", "user-not-found"),
            ("invalid_email", "invalid-email"),
            ("too_many_requests", "too-many-requests"),
            ("otp_code_not_found", "invalid-verification-code"),
            ("something_new", "something_new"),
        ],
    )
    def test_translates_error_types(self, error_type, expected):
        from authflow.auth.client import _reason_from

        assert _reason_from(_stytch_error(error_type)) == expected


class TestPasswordAuth:
    """Tests for authenticate_with_password."""

    async def test_success(self, mock_stytch_client):
        from authflow.auth.client import StytchIdentityProvider

        mock_stytch_client.passwords.authenticate_async = AsyncMock(
            return_value=_auth_response("user-123", _user(email="a@b.com"))
        )

        provider = StytchIdentityProvider(project_id="proj-123", secret="secret-123")
        result = await provider.authenticate_with_password("a@b.com", "hunter2")

        assert isinstance(result, SessionEstablished)
        assert result.session.subject_id == "user-123"
        assert result.session.display_identifier == "a@b.com"
        assert result.session.method is AuthMethod.PASSWORD
        assert result.session.session_token == "session-user-123"

        mock_stytch_client.passwords.authenticate_async.assert_called_once_with(
            email="a@b.com",
            password="hunter2",
            session_duration_minutes=60 * 24 * 7,
        )

    async def test_bad_password(self, mock_stytch_client):
        from authflow.auth.client import StytchIdentityProvider

        mock_stytch_client.passwords.authenticate_async = AsyncMock(
            side_effect=_stytch_error("unauthorized_credentials")
        )

        provider = StytchIdentityProvider(project_id="proj-123", secret="secret-123")
        result = await provider.authenticate_with_password("a@b.com", "wrong")

        assert result == ProviderFailure(reason="wrong-password")

    async def test_success_notifies_observers(self, mock_stytch_client):
        from authflow.auth.client import StytchIdentityProvider

        mock_stytch_client.passwords.authenticate_async = AsyncMock(
            return_value=_auth_response("user-123", _user(email="a@b.com"))
        )
        provider = StytchIdentityProvider(project_id="proj-123", secret="secret-123")
        seen = []
        provider.observe_session(seen.append)

        await provider.authenticate_with_password("a@b.com", "hunter2")

        assert seen[-1] is not None
        assert seen[-1].subject_id == "user-123"


class TestFederatedAuth:
    """Tests for authenticate_with_federated_provider."""

    async def test_without_token_source(self, mock_stytch_client):
        from authflow.auth.client import StytchIdentityProvider

        provider = StytchIdentityProvider(project_id="proj-123", secret="secret-123")
        result = await provider.authenticate_with_federated_provider()

        assert result == ProviderFailure(reason="federated-unavailable")

    async def test_token_source_receives_start_url(self, mock_stytch_client):
        from authflow.auth.client import StytchIdentityProvider

        mock_stytch_client.oauth.authenticate_async = AsyncMock(
            return_value=_auth_response("user-g", _user(email="g@example.com"))
        )
        token_source = AsyncMock(return_value="oauth-token-xyz")
        provider = StytchIdentityProvider(
            project_id="proj-123",
            secret="secret-123",
            public_token="public-token-abc",
            federated_token_source=token_source,
        )

        result = await provider.authenticate_with_federated_provider()

        assert isinstance(result, SessionEstablished)
        assert result.session.method is AuthMethod.FEDERATED
        assert result.session.display_identifier == "g@example.com"
        start_url = token_source.call_args.args[0]
        assert start_url.startswith(
            "https://test.stytch.com/v1/public/oauth/google/start"
        )
        assert "public-token-abc" in start_url
        mock_stytch_client.oauth.authenticate_async.assert_called_once_with(
            token="oauth-token-xyz",
            session_duration_minutes=60 * 24 * 7,
        )

    async def test_empty_token_means_popup_closed(self, mock_stytch_client):
        from authflow.auth.client import StytchIdentityProvider

        provider = StytchIdentityProvider(
            project_id="proj-123",
            secret="secret-123",
            federated_token_source=AsyncMock(return_value=""),
        )

        result = await provider.authenticate_with_federated_provider()

        assert result == ProviderFailure(reason="popup-closed-by-user")

    def test_live_start_url(self):
        from authflow.auth.client import StytchIdentityProvider

        with patch("authflow.auth.client.Client"):
            provider = StytchIdentityProvider(
                project_id="proj-123",
                secret="secret-123",
                environment="live",
                oauth_provider="github",
            )
        assert provider.get_oauth_start_url().startswith(
            "https://api.stytch.com/v1/public/oauth/github/start"
        )


class TestAnonymousAuth:
    """Stytch has no guest sessions."""

    async def test_always_rejected(self, mock_stytch_client):
        from authflow.auth.client import StytchIdentityProvider

        provider = StytchIdentityProvider(project_id="proj-123", secret="secret-123")
        result = await provider.authenticate_anonymously()

        assert isinstance(result, ProviderFailure)
        assert result.reason == "operation-not-allowed"


class TestPhoneCodes:
    """Tests for request_phone_code and confirm_phone_code."""

    async def test_request_returns_ticket(self, mock_stytch_client):
        from authflow.auth.client import StytchIdentityProvider

        response = MagicMock()
        response.phone_id = "phone-number-test-abc"
        mock_stytch_client.otps.sms.login_or_create_async = AsyncMock(
            return_value=response
        )

        provider = StytchIdentityProvider(project_id="proj-123", secret="secret-123")
        result = await provider.request_phone_code("+15551234567", CAPTCHA)

        assert isinstance(result, ChallengeIssued)
        assert result.ticket.bound_phone_number == "+15551234567"
        assert result.ticket.confirm_handle == "phone-number-test-abc"

    async def test_request_failure(self, mock_stytch_client):
        from authflow.auth.client import StytchIdentityProvider

        mock_stytch_client.otps.sms.login_or_create_async = AsyncMock(
            side_effect=_stytch_error("invalid_phone_number")
        )

        provider = StytchIdentityProvider(project_id="proj-123", secret="secret-123")
        result = await provider.request_phone_code("12345", CAPTCHA)

        assert result == ProviderFailure(reason="invalid-phone-number")

    async def test_confirm_success(self, mock_stytch_client):
        from authflow.auth.client import StytchIdentityProvider

        mock_stytch_client.otps.authenticate_async = AsyncMock(
            return_value=_auth_response("user-p", _user(phone="+15551234567"))
        )
        ticket = ChallengeTicket(
            bound_phone_number="+15551234567", confirm_handle="phone-id-1"
        )

        provider = StytchIdentityProvider(project_id="proj-123", secret="secret-123")
        result = await provider.confirm_phone_code(ticket, "123456")

        assert isinstance(result, SessionEstablished)
        assert result.session.method is AuthMethod.PHONE
        assert result.session.display_identifier == "+15551234567"
        mock_stytch_client.otps.authenticate_async.assert_called_once_with(
            method_id="phone-id-1",
            code="123456",
            session_duration_minutes=60 * 24 * 7,
        )

    async def test_confirm_wrong_code(self, mock_stytch_client):
        from authflow.auth.client import StytchIdentityProvider

        mock_stytch_client.otps.authenticate_async = AsyncMock(
            side_effect=_stytch_error("otp_code_not_found")
        )
        ticket = ChallengeTicket(
            bound_phone_number="+15551234567", confirm_handle="phone-id-1"
        )

        provider = StytchIdentityProvider(project_id="proj-123", secret="secret-123")
        result = await provider.confirm_phone_code(ticket, "000001")

        assert result == ProviderFailure(reason="invalid-verification-code")

    def test_captcha_uses_configured_slot(self):
        from authflow.auth.client import StytchIdentityProvider

        with patch("authflow.auth.client.Client"):
            provider = StytchIdentityProvider(
                project_id="proj-123",
                secret="secret-123",
                captcha_container_id="captcha-slot",
                captcha_size="normal",
            )
        captcha = provider.create_captcha_challenge()

        assert captcha.container_id == "captcha-slot"
        assert captcha.size == "normal"
        assert captcha.widget_id.startswith("stytch-")


class TestSignOut:
    """Tests for sign_out."""

    async def test_revokes_current_session(self, mock_stytch_client):
        from authflow.auth.client import StytchIdentityProvider

        mock_stytch_client.passwords.authenticate_async = AsyncMock(
            return_value=_auth_response("user-123", _user(email="a@b.com"))
        )
        mock_stytch_client.sessions.revoke_async = AsyncMock()
        provider = StytchIdentityProvider(project_id="proj-123", secret="secret-123")
        seen = []
        provider.observe_session(seen.append)
        await provider.authenticate_with_password("a@b.com", "hunter2")

        result = await provider.sign_out()

        assert result.success is True
        assert seen[-1] is None
        mock_stytch_client.sessions.revoke_async.assert_called_once_with(
            session_token="session-user-123"
        )

    async def test_no_session_is_success(self, mock_stytch_client):
        from authflow.auth.client import StytchIdentityProvider

        mock_stytch_client.sessions.revoke_async = AsyncMock()
        provider = StytchIdentityProvider(project_id="proj-123", secret="secret-123")

        result = await provider.sign_out()

        assert result.success is True
        mock_stytch_client.sessions.revoke_async.assert_not_called()

    async def test_revoke_failure_keeps_session(self, mock_stytch_client):
        from authflow.auth.client import StytchIdentityProvider

        mock_stytch_client.passwords.authenticate_async = AsyncMock(
            return_value=_auth_response("user-123", _user(email="a@b.com"))
        )
        mock_stytch_client.sessions.revoke_async = AsyncMock(
            side_effect=_stytch_error("too_many_requests")
        )
        provider = StytchIdentityProvider(project_id="proj-123", secret="secret-123")
        seen = []
        provider.observe_session(seen.append)
        await provider.authenticate_with_password("a@b.com", "hunter2")

        result = await provider.sign_out()

        assert result.success is False
        assert result.error == "too-many-requests"
        assert seen[-1] is not None
