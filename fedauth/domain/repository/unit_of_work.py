"""Unit of work interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager


class UnitOfWork(ABC):
    """Atomic boundary around repository writes.

    Everything saved inside ``transaction()`` is kept together or
    discarded together when the block raises.

    Usage:
        async with unit_of_work.transaction():
            await user_repository.save(user)
            await identity_link_repository.save(link)
    """

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Open a transaction scope."""
        pass
