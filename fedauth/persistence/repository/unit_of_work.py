"""Unit of work implementation using PostgreSQL savepoints."""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from fedauth.domain.repository import UnitOfWork


class PostgresUnitOfWork(UnitOfWork):
    """Runs each transaction as a SAVEPOINT on the request session.

    A failed block is rolled back on its own; the request session stays
    usable, so the caller can re-query after a constraint violation. The
    outer transaction is committed by the session provider at the end of
    the request.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        async with self.session.begin_nested():
            yield
