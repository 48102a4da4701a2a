"""Key-value storage backends.

Every value is a whole JSON document; writes replace it in one transaction,
so readers never observe a partially written collection.
"""

from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tripbook.db.models import KeyValueEntry


class KeyValueStore(Protocol):
    """Async key-value store holding JSON text documents."""

    async def get_item(self, key: str) -> str | None:
        """Get the document stored under key.

        Args:
            key: Storage key

        Returns:
            Stored text or None if absent
        """
        ...

    async def set_item(self, key: str, value: str) -> None:
        """Replace the document stored under key.

        Args:
            key: Storage key
            value: Serialized document
        """
        ...

    async def remove_item(self, key: str) -> None:
        """Remove key (no-op when absent).

        Args:
            key: Storage key
        """
        ...


class InMemoryKeyValueStore:
    """In-memory implementation of KeyValueStore."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    async def get_item(self, key: str) -> str | None:
        """Get the document stored under key."""
        return self._items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        """Replace the document stored under key."""
        self._items[key] = value

    async def remove_item(self, key: str) -> None:
        """Remove key."""
        self._items.pop(key, None)


class SqlKeyValueStore:
    """SQL implementation of KeyValueStore."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_item(self, key: str) -> str | None:
        """Get the document stored under key."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(KeyValueEntry.value).where(KeyValueEntry.key == key)
            )
            return result.scalar_one_or_none()

    async def set_item(self, key: str, value: str) -> None:
        """Replace the document stored under key."""
        async with self._session_factory() as session:
            async with session.begin():
                await session.merge(KeyValueEntry(key=key, value=value))

    async def remove_item(self, key: str) -> None:
        """Remove key."""
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(delete(KeyValueEntry).where(KeyValueEntry.key == key))
