"""Test configuration and fixtures."""

import logfire
import pytest

from hubauth.config import AuthSettings

# Spans and logs stay in-process during tests
logfire.configure(send_to_logfire=False, console=False)


@pytest.fixture
def auth_settings() -> AuthSettings:
    """Auth settings with a cheap hashing policy."""
    return AuthSettings(hash_iterations=10, hub_name="test-hub")
