"""Pytest configuration and shared fixtures.

Unit tests run the syncers and the tally engine against the in-memory doubles
of ``tests.fakes`` injected through a NetworkContext. Integration tests run
the SQLAlchemy stores against a real PostgreSQL given by TEST_DATABASE_URL
and are skipped when it is not set or not reachable.
"""

import os

import pytest
import pytest_asyncio

from typing import TYPE_CHECKING

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import src.analysis.db  # noqa: F401
from src.data.context import NetworkContext
import src.data.cursors.db  # noqa: F401
import src.data.proposals.db  # noqa: F401
import src.data.votes.db  # noqa: F401
from src.helpers.config import Network
from src.helpers.db import Base, create_tables
from tests.fakes import (
    NETWORK_ID,
    FakeChain,
    FakeResolver,
    InMemoryCursors,
    InMemoryStore,
    address,
)


if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


@pytest.fixture
def network() -> Network:
    return Network(
        id=NETWORK_ID,
        name="filecoin",
        rpc_url="https://rpc.example.org",
        contract_address=address(1),
        token_address=address(2),
    )


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def cursors() -> InMemoryCursors:
    return InMemoryCursors()


@pytest.fixture
def store(cursors: InMemoryCursors) -> InMemoryStore:
    return InMemoryStore(cursors)


@pytest.fixture
def resolver() -> FakeResolver:
    return FakeResolver()


@pytest.fixture
def ctx(
    network: Network,
    chain: FakeChain,
    store: InMemoryStore,
    cursors: InMemoryCursors,
    resolver: FakeResolver,
) -> NetworkContext:
    """Network context wired to the in-memory doubles."""
    return NetworkContext(
        network=network,
        chain=chain,
        store=store,
        cursors=cursors,
        resolver=resolver,
    )


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession]]:
    """Session factory on a fresh schema in the test database.

    Yields:
        Factory bound to TEST_DATABASE_URL with all tables created
    """
    url = os.getenv("TEST_DATABASE_URL")
    if not url:
        pytest.skip("TEST_DATABASE_URL is not set")

    engine = create_async_engine(url, echo=False)
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        await engine.dispose()
        pytest.skip(f"Database not available: {e}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await create_tables(engine)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
