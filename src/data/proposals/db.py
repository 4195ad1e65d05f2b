"""Database models for proposals."""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    DateTime,
    Integer,
    SmallInteger,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.helpers.db import Base


class ProposalDB(Base):
    """Mirrored on-chain proposal."""

    __tablename__ = "proposal"
    __table_args__ = (
        UniqueConstraint("network", "proposal_id", name="uq_proposal_network_index"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    cid: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    proposal_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    proposal_type: Mapped[int] = mapped_column(Integer, nullable=False)
    creator: Mapped[str] = mapped_column(String(42), nullable=False)
    exp_time: Mapped[int] = mapped_column(
        BigInteger, nullable=False, index=True
    )  # Unix seconds
    vote_count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    status: Mapped[int] = mapped_column(
        SmallInteger, nullable=False, default=0, index=True
    )  # 0 open, 1 closed
    network: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )
