"""Ethereum JSON-RPC client utilities."""

from typing import TYPE_CHECKING, Any

from src.helpers.rpc_models import (
    BlockHeader,
    CallMessage,
    EthCallRequest,
    EthGetBlockByNumberRequest,
    JsonRpcRequest,
)


if TYPE_CHECKING:
    import httpx


class RPCClient:
    """Ethereum JSON-RPC client."""

    def __init__(self, rpc_url: str, timeout: float = 30.0) -> None:
        """Initialize RPC client.

        Args:
            rpc_url: Ethereum JSON-RPC endpoint URL
            timeout: Default timeout for requests in seconds

        Raises:
            ValueError: If rpc_url is empty or None
        """
        if not rpc_url:
            msg = "RPC URL cannot be empty"
            raise ValueError(msg)

        self.rpc_url = rpc_url
        self.timeout = timeout

    async def send(
        self,
        client: httpx.AsyncClient,
        request: JsonRpcRequest,
        *,
        timeout: float | None = None,
    ) -> Any:
        """Send a JSON-RPC request model.

        Args:
            client: HTTP client instance
            request: Request model to post
            timeout: Optional timeout override

        Returns:
            RPC result value

        Raises:
            httpx.HTTPError: If the HTTP request fails
            ValueError: If the RPC response contains an error
        """
        response = await client.post(
            self.rpc_url,
            json=request.model_dump(),
            timeout=timeout or self.timeout,
        )
        response.raise_for_status()
        result = response.json()

        if "error" in result:
            msg = f"RPC error: {result['error']}"
            raise ValueError(msg)

        return result.get("result")

    async def eth_call(
        self,
        client: httpx.AsyncClient,
        to: str,
        data: str,
        block: str = "latest",
    ) -> str:
        """Execute a read-only contract call.

        Args:
            client: HTTP client instance
            to: Contract address
            data: 0x-prefixed ABI encoded call data
            block: Block tag or hex number to execute against

        Returns:
            0x-prefixed ABI encoded return data

        Example:
            ```python
            rpc = RPCClient(rpc_url)
            async with httpx.AsyncClient() as client:
                raw = await rpc.eth_call(client, contract, encode_call("proposalId()", [], []))
            ```
        """
        request = EthCallRequest(
            params=[CallMessage(to=to, data=data).model_dump(), block],
            id=1,
        )
        result = await self.send(client, request)
        return result or "0x"

    async def get_block(
        self,
        client: httpx.AsyncClient,
        block: int | str = "latest",
    ) -> BlockHeader:
        """Get a block header.

        Args:
            client: HTTP client instance
            block: Block number (int) or tag such as "latest"

        Returns:
            Parsed block header

        Raises:
            ValueError: If the node returns no block
        """
        block_param = hex(block) if isinstance(block, int) else block
        request = EthGetBlockByNumberRequest(params=[block_param, False], id=1)
        result = await self.send(client, request)
        if not result:
            msg = f"Block {block_param} not found"
            raise ValueError(msg)
        return BlockHeader.model_validate(result)


__all__ = [
    "RPCClient",
]
