"""In-memory repository implementations for testing."""

from .identity_link import InMemoryIdentityLinkRepository
from .unit_of_work import InMemoryUnitOfWork
from .user import InMemoryUserRepository

__all__ = [
    "InMemoryIdentityLinkRepository",
    "InMemoryUnitOfWork",
    "InMemoryUserRepository",
]
