"""Unit tests for the in-memory repositories and unit of work."""

import asyncio
from uuid import uuid4

import pytest

from fedauth.domain.error import DuplicateIdentityError
from fedauth.domain.model import Group, IdentityLink
from fedauth.domain.value import GroupId, IdentityLinkId
from fedauth.persistence.repository.inmemory import (
    InMemoryIdentityLinkRepository,
    InMemoryUnitOfWork,
    InMemoryUserRepository,
)
from tests.harness import make_user


def make_link(user_id, external_id: str = "gh-42") -> IdentityLink:
    return IdentityLink(
        id=IdentityLinkId(uuid4()),
        user_id=user_id,
        provider="github",
        external_id=external_id,
        display_name="Alice",
    )


class TestInMemoryIdentityLinkRepository:
    """Tests for InMemoryIdentityLinkRepository."""

    @pytest.mark.asyncio
    async def test_second_link_for_same_identity_is_rejected(self):
        """Mirrors the (provider, external_id) unique constraint."""
        # Arrange
        repo = InMemoryIdentityLinkRepository()
        user = make_user()
        await repo.save(make_link(user.id))

        # Act / Assert
        with pytest.raises(DuplicateIdentityError):
            await repo.save(make_link(user.id))

        assert repo.count() == 1

    @pytest.mark.asyncio
    async def test_update_by_id_is_allowed(self):
        # Arrange
        repo = InMemoryIdentityLinkRepository()
        link = await repo.save(make_link(make_user().id))

        # Act
        await repo.save(link.model_copy(update={"display_name": "Renamed"}))

        # Assert
        stored = await repo.find_by_provider("github", "gh-42")
        assert stored.display_name == "Renamed"
        assert repo.count() == 1

    @pytest.mark.asyncio
    async def test_find_all_by_user_id(self):
        # Arrange
        repo = InMemoryIdentityLinkRepository()
        alice = make_user("alice")
        bob = make_user("bob")
        await repo.save(make_link(alice.id, "a1"))
        await repo.save(make_link(alice.id, "a2"))
        await repo.save(make_link(bob.id, "b1"))

        # Act
        links = await repo.find_all_by_user_id(alice.id)

        # Assert
        assert [link.external_id for link in links] == ["a1", "a2"]


class TestInMemoryUserRepository:
    """Tests for InMemoryUserRepository."""

    @pytest.mark.asyncio
    async def test_find_group_by_name(self):
        group = Group(id=GroupId(uuid4()), name="Users")
        repo = InMemoryUserRepository(groups=[group])

        assert await repo.find_group_by_name("Users") == group
        assert await repo.find_group_by_name("Admins") is None

    @pytest.mark.asyncio
    async def test_save_and_find_by_id(self):
        repo = InMemoryUserRepository()
        user = await repo.save(make_user())

        assert await repo.find_by_id(user.id) == user


class TestInMemoryUnitOfWork:
    """Tests for InMemoryUnitOfWork."""

    @pytest.mark.asyncio
    async def test_failed_transaction_rolls_back_all_writes(self):
        # Arrange
        uow = InMemoryUnitOfWork()
        users = InMemoryUserRepository()
        links = InMemoryIdentityLinkRepository()
        user = make_user()

        # Act
        with pytest.raises(RuntimeError):
            async with uow.transaction():
                await users.save(user)
                await links.save(make_link(user.id))
                raise RuntimeError("boom")

        # Assert
        assert users.count() == 0
        assert links.count() == 0

    @pytest.mark.asyncio
    async def test_rollback_restores_previous_version(self):
        # Arrange
        uow = InMemoryUnitOfWork()
        links = InMemoryIdentityLinkRepository()
        link = await links.save(make_link(make_user().id))

        # Act
        with pytest.raises(RuntimeError):
            async with uow.transaction():
                await links.save(link.model_copy(update={"display_name": "Changed"}))
                raise RuntimeError("boom")

        # Assert
        stored = await links.find_by_provider("github", "gh-42")
        assert stored.display_name == "Alice"

    @pytest.mark.asyncio
    async def test_committed_transaction_keeps_writes(self):
        uow = InMemoryUnitOfWork()
        users = InMemoryUserRepository()

        async with uow.transaction():
            await users.save(make_user())

        assert users.count() == 1

    @pytest.mark.asyncio
    async def test_outer_rollback_undoes_committed_inner_block(self):
        # Arrange
        uow = InMemoryUnitOfWork()
        users = InMemoryUserRepository()

        # Act
        with pytest.raises(RuntimeError):
            async with uow.transaction():
                async with uow.transaction():
                    await users.save(make_user())
                raise RuntimeError("boom")

        # Assert
        assert users.count() == 0

    @pytest.mark.asyncio
    async def test_concurrent_transactions_roll_back_independently(self):
        """A failing task must not undo another task's committed writes."""
        # Arrange
        uow = InMemoryUnitOfWork()
        users = InMemoryUserRepository()
        survivor = make_user("survivor")

        async def commit():
            async with uow.transaction():
                await users.save(survivor)
                await asyncio.sleep(0)

        async def fail():
            async with uow.transaction():
                await users.save(make_user("doomed"))
                await asyncio.sleep(0)
                raise RuntimeError("boom")

        # Act
        results = await asyncio.gather(commit(), fail(), return_exceptions=True)

        # Assert
        assert results[0] is None
        assert isinstance(results[1], RuntimeError)
        assert users.count() == 1
        assert await users.find_by_id(survivor.id) == survivor
