"""In-memory unit of work for testing."""

from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import AsyncIterator, Callable

from fedauth.domain.repository import UnitOfWork

Undo = Callable[[], None]

# Each asyncio task runs in its own context copy, so concurrent
# transactions keep separate logs and only undo their own writes.
_undo_log: ContextVar[list[Undo] | None] = ContextVar("inmemory_undo_log", default=None)


def record_undo(undo: Undo) -> None:
    """Register how to revert a write made by an in-memory repository.

    Outside a transaction writes are final and nothing is recorded.
    """
    log = _undo_log.get()
    if log is not None:
        log.append(undo)


class InMemoryUnitOfWork(UnitOfWork):
    """In-memory implementation of UnitOfWork for testing."""

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        parent = _undo_log.get()
        log: list[Undo] = []
        token = _undo_log.set(log)
        try:
            yield
        except Exception:
            for undo in reversed(log):
                undo()
            raise
        finally:
            _undo_log.reset(token)

        # Nested block committed: the enclosing one may still roll it back
        if parent is not None:
            parent.extend(log)
