"""Database connection helpers."""

import os

from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import inspect
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from dotenv import load_dotenv


if TYPE_CHECKING:
    from collections.abc import Sequence

    from pydantic import BaseModel


# Load environment variables from .env file
load_dotenv()

Base = declarative_base()


def get_database_url() -> str:
    """Get the database URL from environment variables.

    Returns:
        str: PostgreSQL database URL

    Raises:
        ValueError: If required environment variables are not set
    """
    postgre_host = os.getenv("POSTGRE_HOST")
    if not postgre_host:
        msg = "POSTGRE_HOST is not set"
        raise ValueError(msg)

    postgre_port = os.getenv("POSTGRE_PORT", "5432")

    postgre_user = os.getenv("POSTGRE_USER")
    if not postgre_user:
        msg = "POSTGRE_USER is not set"
        raise ValueError(msg)

    postgre_password = os.getenv("POSTGRE_PASSWORD")
    if not postgre_password:
        msg = "POSTGRE_PASSWORD is not set"
        raise ValueError(msg)

    postgre_db = os.getenv("POSTGRE_DB")
    if not postgre_db:
        msg = "POSTGRE_DB is not set"
        raise ValueError(msg)

    # Use psycopg (version 3) as the async PostgreSQL driver
    return (
        "postgresql+psycopg://"
        f"{postgre_user}:{postgre_password}"
        f"@{postgre_host}:{postgre_port}"
        f"/{postgre_db}"
    )


@cache
def get_engine() -> AsyncEngine:
    """Create the process-wide async engine on first use."""
    return create_async_engine(get_database_url(), echo=False)


@cache
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Create the process-wide session factory on first use."""
    return async_sessionmaker(
        get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine | None = None) -> None:
    """Create every table registered on Base if it does not exist.

    Args:
        engine: Engine to use, defaults to the process-wide engine
    """
    # Import the table modules so they register on Base.metadata
    import src.analysis.db  # noqa: F401
    import src.data.cursors.db  # noqa: F401
    import src.data.proposals.db  # noqa: F401
    import src.data.votes.db  # noqa: F401

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def upsert_models[DBModelType](
    db_model_class: type[DBModelType],
    pydantic_models: Sequence[BaseModel],
    session: AsyncSession,
) -> None:
    """Upsert multiple models using PostgreSQL INSERT ... ON CONFLICT DO UPDATE.

    The statement joins the caller's transaction; nothing is committed here.

    Args:
        db_model_class: The SQLAlchemy model class (e.g., VoteResultDB)
        pydantic_models: List of Pydantic model instances with data to upsert
        session: Session owning the surrounding transaction

    Examples:
        await upsert_models(
            db_model_class=VoteResultDB,
            pydantic_models=[result1, result2],
            session=session,
        )

    Raises:
        ValueError: If the database model class cannot be inspected
    """
    data = [model.model_dump() for model in pydantic_models]
    if not data:
        return

    # Get primary key column names using SQLAlchemy inspection
    mapper = inspect(db_model_class)
    if not mapper:
        msg = f"Cannot inspect {db_model_class}"
        raise ValueError(msg)
    pk_columns = [col.name for col in mapper.primary_key]

    all_columns = set(data[0].keys())

    stmt = pg_insert(db_model_class).values(data)

    # Build the update dict (all columns except primary keys)
    update_dict = {
        col: stmt.excluded[col] for col in all_columns if col not in pk_columns
    }
    stmt = stmt.on_conflict_do_update(
        index_elements=pk_columns,
        set_=update_dict,
    )

    await session.execute(stmt)


__all__ = [
    "Base",
    "create_tables",
    "get_database_url",
    "get_engine",
    "get_session_factory",
    "upsert_models",
]
