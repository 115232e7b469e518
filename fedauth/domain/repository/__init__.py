"""Repository interfaces for the fedauth domain.

Repository interfaces are defined in the domain layer (dependency inversion).
Implementations live in the infrastructure layer.
"""

from fedauth.domain.repository.identity_link import IdentityLinkRepository
from fedauth.domain.repository.unit_of_work import UnitOfWork
from fedauth.domain.repository.user import UserRepository

__all__ = [
    "IdentityLinkRepository",
    "UnitOfWork",
    "UserRepository",
]
