"""Shared transaction handling for the keyed stores."""

import logging
from collections.abc import Awaitable, Callable, Hashable
from datetime import datetime
from typing import TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from meshmap.database import utc_now
from meshmap.exceptions import StorageFailure
from meshmap.services.locks import KeyedLock

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BaseStore:
    """A store whose writes are read-modify-write transactions on one key."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        clock: Callable[[], datetime] = utc_now,
        locks: KeyedLock | None = None,
    ):
        self._session_maker = session_maker
        self._clock = clock
        self._locks = locks if locks is not None else KeyedLock()

    def now(self) -> datetime:
        return self._clock()

    async def _read(self, fn: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """Run a read-only query, translating storage errors."""
        try:
            async with self._session_maker() as db:
                return await fn(db)
        except (SQLAlchemyError, OSError) as e:
            logger.exception(f"{type(self).__name__} read failed")
            raise StorageFailure(str(e)) from e

    async def _transact(self, fn: Callable[[AsyncSession], Awaitable[T]]) -> T:
        """Run fn and commit; any failure rolls the whole unit back."""
        async with self._session_maker() as db:
            result = await fn(db)
            await db.commit()
            return result

    async def _merge(
        self,
        key: Hashable,
        fn: Callable[[AsyncSession], Awaitable[T]],
        on_conflict: Callable[[], T] | None = None,
    ) -> T:
        """Apply fn as one transaction while holding the lock for key.

        fn must read the prior row itself and stage the merged row. If another
        process inserted the same key first, the merge is re-run once against
        that row, or on_conflict() is returned when given.
        """
        async with self._locks.hold(key):
            return await self._merge_unlocked(key, fn, on_conflict)

    async def _merge_unlocked(
        self,
        key: Hashable,
        fn: Callable[[AsyncSession], Awaitable[T]],
        on_conflict: Callable[[], T] | None = None,
    ) -> T:
        """Same as _merge for callers that already hold the lock for key."""
        retried = False
        while True:
            try:
                return await self._transact(fn)
            except IntegrityError as e:
                if on_conflict is not None:
                    return on_conflict()
                if retried:
                    logger.exception(f"Repeated key conflict merging {key!r}")
                    raise StorageFailure(str(e)) from e
                retried = True
                logger.debug(f"Concurrent insert of {key!r}, re-running merge")
            except (SQLAlchemyError, OSError) as e:
                logger.exception(f"{type(self).__name__} write failed for {key!r}")
                raise StorageFailure(str(e)) from e
