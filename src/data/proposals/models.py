"""Pydantic models for governance proposals."""

from enum import IntEnum

from pydantic import BaseModel, Field


class ProposalStatus(IntEnum):
    """Lifecycle of a mirrored proposal. CLOSED is terminal."""

    OPEN = 0
    CLOSED = 1


class ContractProposal(BaseModel):
    """Proposal record as returned by the voting contract's idToProposal."""

    cid: str = Field(..., description="Content identifier of the proposal body")
    proposal_type: int = Field(..., ge=0)
    creator: str = Field(..., description="Creator address")
    exp_time: int = Field(..., description="Expiry time (unix seconds)")
    votes_count: int = Field(..., ge=0, description="Vote slots recorded on chain")


class Proposal(BaseModel):
    """Mirrored proposal row."""

    id: int | None = Field(default=None, description="Local primary key")
    cid: str
    proposal_id: int = Field(..., description="On-chain proposal index")
    proposal_type: int
    creator: str
    exp_time: int
    vote_count: int
    status: ProposalStatus = ProposalStatus.OPEN
    network: int
