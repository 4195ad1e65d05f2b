"""Database models for tally output."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, Integer, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.helpers.db import Base


class VoteHistoryDB(Base):
    """Append-only audit row per (proposal, option, voter) written at tally time."""

    __tablename__ = "vote_history"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    proposal_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    option_id: Mapped[int] = mapped_column(Integer, nullable=False)
    votes: Mapped[Decimal] = mapped_column(
        Numeric, nullable=False, default=0
    )  # Whole token units
    address: Mapped[str] = mapped_column(String(42), nullable=False, index=True)
    network: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )


class VoteResultDB(Base):
    """Weighted tally per (network, proposal, option)."""

    __tablename__ = "vote_result"

    network: Mapped[int] = mapped_column(Integer, primary_key=True)
    proposal_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    option_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    votes: Mapped[Decimal] = mapped_column(
        Numeric, nullable=False, default=0
    )  # Whole token units
