"""Database models for votes."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from src.helpers.db import Base


class VoteDB(Base):
    """Mirrored vote; a repeat vote from the same address overwrites vote_info."""

    __tablename__ = "vote"
    __table_args__ = (
        UniqueConstraint(
            "network", "proposal_id", "address", name="uq_vote_network_proposal_address"
        ),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    proposal_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    address: Mapped[str] = mapped_column(String(42), nullable=False)
    vote_info: Mapped[str] = mapped_column(Text, nullable=False)
    network: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )
