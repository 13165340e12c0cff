"""Identity provider factory.

Provides a factory function to get the appropriate identity provider
based on configuration (real Stytch or mock for testing).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from authflow.config import get_settings

if TYPE_CHECKING:
    from authflow.auth.client import FederatedTokenSource
    from authflow.auth.protocol import IdentityProviderProtocol


# Cached mock instance so every caller sees the same session state
_mock_provider_instance: IdentityProviderProtocol | None = None


def get_identity_provider(
    federated_token_source: FederatedTokenSource | None = None,
) -> IdentityProviderProtocol:
    """Get the appropriate identity provider based on configuration.

    If DEV__AUTH_MOCK=true, returns MockIdentityProvider (singleton).
    Otherwise, returns StytchIdentityProvider with real credentials.

    Args:
        federated_token_source: Completes the interactive OAuth step for
            the Stytch provider. Ignored in mock mode.

    Returns:
        A provider implementing IdentityProviderProtocol.

    Raises:
        ValueError: If stytch.project_id is empty and mock mode is disabled.
    """
    global _mock_provider_instance  # noqa: PLW0603
    settings = get_settings()

    if settings.dev.auth_mock:
        if _mock_provider_instance is None:
            from authflow.auth.mock import MockIdentityProvider

            _mock_provider_instance = MockIdentityProvider()
        return _mock_provider_instance

    stytch = settings.stytch
    if not stytch.project_id:
        msg = (
            "STYTCH__PROJECT_ID is required when DEV__AUTH_MOCK is not enabled. "
            "Set STYTCH__PROJECT_ID and STYTCH__SECRET in your .env file."
        )
        raise ValueError(msg)

    from authflow.auth.client import StytchIdentityProvider

    return StytchIdentityProvider(
        project_id=stytch.project_id,
        secret=stytch.secret.get_secret_value(),
        environment=stytch.environment,
        public_token=stytch.public_token,
        oauth_provider=stytch.oauth_provider,
        oauth_redirect_url=stytch.oauth_redirect_url,
        session_duration_minutes=stytch.session_duration_minutes,
        federated_token_source=federated_token_source,
        captcha_container_id=settings.captcha.container_id,
        captcha_size=settings.captcha.size,
    )


def clear_config_cache() -> None:
    """Clear the configuration and mock provider caches.

    Useful for testing when you need to reload configuration
    or reset mock provider session state.
    """
    global _mock_provider_instance  # noqa: PLW0603
    get_settings.cache_clear()
    _mock_provider_instance = None
