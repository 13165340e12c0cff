"""Shared pytest fixtures for authflow tests."""

from __future__ import annotations

from collections.abc import Iterator
from unittest.mock import MagicMock, patch

import pytest
import pytest_asyncio

from authflow.auth.controller import AuthFlowController
from authflow.auth.factory import clear_config_cache
from authflow.auth.mock import MockIdentityProvider


@pytest.fixture(autouse=True)
def _reset_config_cache() -> Iterator[None]:
    """Keep cached settings and the mock provider singleton out of other tests."""
    clear_config_cache()
    yield
    clear_config_cache()


@pytest.fixture
def mock_provider() -> MockIdentityProvider:
    """A fresh in-memory identity provider."""
    return MockIdentityProvider()


@pytest.fixture
def controller(mock_provider: MockIdentityProvider) -> AuthFlowController:
    """A controller wired to the mock provider."""
    return AuthFlowController(mock_provider)


@pytest_asyncio.fixture
async def mock_stytch_client():
    """Create a mocked Stytch Client for unit tests.

    Patches the Client constructor to return a mock, allowing
    tests to set up expected responses without making real API calls.

    Made async to ensure proper event loop handling with pytest-asyncio.
    """
    with patch("authflow.auth.client.Client") as mock_cls:
        mock_client = MagicMock()
        mock_cls.return_value = mock_client
        yield mock_client
