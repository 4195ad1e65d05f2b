"""Pydantic models for votes and their decoded payloads."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field


class ContractVote(BaseModel):
    """Vote record as returned by the voting contract's proposalToVote."""

    voter: str = Field(..., description="Voter address")
    vote_info: str = Field(..., description="Opaque chain-encoded payload")


class Vote(BaseModel):
    """Mirrored vote row, one per (network, proposal, voter)."""

    proposal_id: int = Field(..., description="On-chain proposal index")
    address: str
    vote_info: str
    network: int


class DecodedVote(BaseModel):
    """One decision expressed inside a vote payload."""

    address: str
    option_id: int = Field(..., ge=0)
    votes: int = Field(..., ge=0, le=100, description="Share of the voter's weight, in percent")


class InlinePayload(BaseModel):
    """Decisions carried directly on chain as JSON."""

    kind: Literal["inline"] = "inline"
    body: str


class IpfsPayload(BaseModel):
    """Pointer to off-chain (possibly encrypted) vote content."""

    kind: Literal["ipfs"] = "ipfs"
    cid: str


VotePayload = Annotated[InlinePayload | IpfsPayload, Field(discriminator="kind")]


__all__ = [
    "ContractVote",
    "DecodedVote",
    "InlinePayload",
    "IpfsPayload",
    "Vote",
    "VotePayload",
]
