"""Pydantic models for weighted tally output."""

from pydantic import BaseModel, Field


class VoteHistory(BaseModel):
    """Weighted contribution of one voter to one option, written at tally time."""

    proposal_id: int
    option_id: int
    votes: int = Field(..., ge=0, description="Weight in whole token units")
    address: str
    network: int


class VoteResult(BaseModel):
    """Aggregated weighted tally of one option."""

    proposal_id: int
    option_id: int
    votes: int = Field(..., ge=0, description="Sum of weights in whole token units")
    network: int


__all__ = [
    "VoteHistory",
    "VoteResult",
]
