"""Pydantic models for sync and tally pass results."""

from pydantic import BaseModel, Field


class SyncReport(BaseModel):
    """Outcome of one cursor-driven sync pass over a stream."""

    stream: str = Field(..., description="Cursor name of the stream")
    start: int = Field(..., description="Cursor value read at the start")
    end: int = Field(..., description="Last index reported by the chain")
    cursor: int = Field(..., description="Cursor value written at the end")
    created: int = Field(default=0, description="Rows inserted")
    updated: int = Field(default=0, description="Rows overwritten")
    skipped: int = Field(default=0, description="Indices passed without persisting")
    aborted: bool = Field(default=False, description="Pass stopped on a fetch error")


class TallyReport(BaseModel):
    """Outcome of one tally pass for a network."""

    now: int = Field(..., description="Timestamp candidates were selected against")
    closed: list[int] = Field(default_factory=list, description="Proposal indices closed")
    skipped: list[int] = Field(
        default_factory=list, description="Candidates left open for the next pass"
    )


class StreamFailure(BaseModel):
    """A sync stream that failed within an otherwise completed run."""

    stream: str = Field(..., description="Cursor name of the stream")
    error: str = Field(..., description="Exception type and message")


class NetworkRunResult(BaseModel):
    """Result of one handler run for a single network.

    ``ok`` is False when the run raised or when any stream in it failed.
    """

    network: int
    ok: bool
    error: str | None = None
    reports: list[SyncReport | TallyReport | StreamFailure] = Field(default_factory=list)


__all__ = [
    "NetworkRunResult",
    "StreamFailure",
    "SyncReport",
    "TallyReport",
]
