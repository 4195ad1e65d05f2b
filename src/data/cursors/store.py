"""Durable cursors marking the next unsynced index of each sync stream.

Two naming schemes exist: one proposal stream per network and one vote
stream per (network, proposal). A missing row means the stream was never
initialised, which is fatal for the caller; the proposal stream must be
seeded at deployment (see ``src.bootstrap``) and vote streams are seeded by
the proposal syncer when it mirrors a proposal.
"""

from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError

from src.data.cursors.db import DictDB
from src.helpers.constants import PROPOSAL_START_KEY, VOTE_START_KEY
from src.helpers.errors import NotFoundError, PersistenceError
from src.helpers.logging import get_logger


if TYPE_CHECKING:
    from sqlalchemy.dialects.postgresql import Insert
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


logger = get_logger(__name__)


def proposal_cursor_name(network: int) -> str:
    """Name of the proposal stream cursor for a network."""
    return f"{PROPOSAL_START_KEY}-{network}"


def vote_cursor_name(network: int, proposal_id: int) -> str:
    """Name of the vote stream cursor for one proposal."""
    return f"{VOTE_START_KEY}-{network}-{proposal_id}"


def seed_statement(name: str, value: int) -> Insert:
    """Build an insert-if-absent statement for a cursor row."""
    return (
        pg_insert(DictDB)
        .values(name=name, value=str(value))
        .on_conflict_do_nothing(index_elements=[DictDB.name])
    )


class CursorStore:
    """Key to integer progress markers backed by the ``dict`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the cursor store.

        Args:
            session_factory: Factory producing sessions on the mirror database
        """
        self.session_factory = session_factory

    async def get(self, name: str) -> int:
        """Read a cursor.

        Args:
            name: Cursor name

        Returns:
            The stored index

        Raises:
            NotFoundError: If the cursor was never initialised
            PersistenceError: If the read fails or the value is not an integer
        """
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(DictDB.value).where(DictDB.name == name)
                )
                value = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            msg = f"Failed to read cursor {name}: {e}"
            raise PersistenceError(msg) from e

        if value is None:
            msg = f"Cursor {name} is not initialised"
            raise NotFoundError(msg)

        try:
            return int(value)
        except ValueError as e:
            msg = f"Cursor {name} holds a non-integer value: {value!r}"
            raise PersistenceError(msg) from e

    async def set(self, name: str, value: int) -> None:
        """Overwrite a cursor unconditionally.

        Callers only move a cursor after processing every index below the
        new value; no compare-and-swap is performed here.

        Args:
            name: Cursor name
            value: New index

        Raises:
            PersistenceError: If the write fails
        """
        stmt = pg_insert(DictDB).values(name=name, value=str(value))
        stmt = stmt.on_conflict_do_update(
            index_elements=[DictDB.name],
            set_={"value": stmt.excluded.value},
        )
        try:
            async with self.session_factory() as session, session.begin():
                await session.execute(stmt)
        except SQLAlchemyError as e:
            msg = f"Failed to write cursor {name}: {e}"
            raise PersistenceError(msg) from e

        logger.debug("Cursor %s -> %s", name, value)

    async def seed(self, name: str, value: int) -> bool:
        """Create a cursor if it does not exist yet.

        Args:
            name: Cursor name
            value: Initial index

        Returns:
            True if the row was created, False if it already existed

        Raises:
            PersistenceError: If the write fails
        """
        try:
            async with self.session_factory() as session, session.begin():
                result = await session.execute(seed_statement(name, value))
        except SQLAlchemyError as e:
            msg = f"Failed to seed cursor {name}: {e}"
            raise PersistenceError(msg) from e

        return bool(result.rowcount)


__all__ = [
    "CursorStore",
    "proposal_cursor_name",
    "seed_statement",
    "vote_cursor_name",
]
