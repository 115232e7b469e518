"""PostgreSQL repository implementations."""

from fedauth.persistence.repository.identity_link import PostgresIdentityLinkRepository
from fedauth.persistence.repository.unit_of_work import PostgresUnitOfWork
from fedauth.persistence.repository.user import PostgresUserRepository

__all__ = [
    "PostgresIdentityLinkRepository",
    "PostgresUnitOfWork",
    "PostgresUserRepository",
]
