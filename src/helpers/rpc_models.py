"""Pydantic models for JSON-RPC requests and responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class JsonRpcRequest(BaseModel):
    """JSON-RPC 2.0 request model."""

    jsonrpc: str = Field(default="2.0", description="JSON-RPC version")
    method: str = Field(..., description="Method name to call")
    params: list[Any] = Field(
        default_factory=list, description="Method parameters"
    )
    id: int | str = Field(..., description="Request ID")


class CallMessage(BaseModel):
    """Transaction object for eth_call."""

    to: str = Field(..., description="Contract address")
    data: str = Field(..., description="0x-prefixed ABI encoded call data")


class EthCallRequest(JsonRpcRequest):
    """JSON-RPC request for eth_call."""

    method: str = Field(default="eth_call", frozen=True)


class EthGetBlockByNumberRequest(JsonRpcRequest):
    """JSON-RPC request for eth_getBlockByNumber."""

    method: str = Field(default="eth_getBlockByNumber", frozen=True)


class BlockHeader(BaseModel):
    """Subset of a block returned by eth_getBlockByNumber."""

    number: str = Field(..., description="Block number as hex string")
    hash: str | None = Field(default=None, description="Block hash")
    timestamp: str = Field(..., description="Block timestamp as hex string")

    model_config = ConfigDict(extra="allow")


__all__ = [
    "BlockHeader",
    "CallMessage",
    "EthCallRequest",
    "EthGetBlockByNumberRequest",
    "JsonRpcRequest",
]
