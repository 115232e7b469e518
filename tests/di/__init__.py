"""Mock providers for testing."""

from .oauth import MOCK_PROVIDERS, MockOAuthProvider
from .persistence import MockPersistenceProvider
from .container import build_test_container

__all__ = [
    "MOCK_PROVIDERS",
    "MockOAuthProvider",
    "MockPersistenceProvider",
    "build_test_container",
]
