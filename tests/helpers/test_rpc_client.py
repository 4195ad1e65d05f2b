"""Tests for RPC client."""

from unittest.mock import AsyncMock, MagicMock

import pytest

import httpx

from src.helpers.rpc import RPCClient
from src.helpers.rpc_models import BlockHeader, EthCallRequest, JsonRpcRequest


BLOCK_NUMBER = JsonRpcRequest(method="eth_blockNumber", id=1)


def mock_client(payload: object) -> AsyncMock:
    """HTTP client whose POST returns the given JSON payload."""
    http_client = AsyncMock(spec=httpx.AsyncClient)
    response = MagicMock()
    response.json.return_value = payload
    http_client.post.return_value = response
    return http_client


class TestRPCClient:
    """Tests for RPCClient class."""

    def test_init_with_valid_url(self) -> None:
        """Test RPCClient initialization with valid URL."""
        client = RPCClient("https://api.node.glif.io/rpc/v1")

        assert client.rpc_url == "https://api.node.glif.io/rpc/v1"
        assert client.timeout == 30.0

    def test_init_with_empty_url_raises(self) -> None:
        """Test that empty URL raises ValueError."""
        with pytest.raises(ValueError, match="RPC URL cannot be empty"):
            RPCClient("")

    @pytest.mark.asyncio
    async def test_send_request(self) -> None:
        """Test sending a single RPC request."""
        client = RPCClient("https://test.rpc")
        http_client = mock_client({"jsonrpc": "2.0", "id": 1, "result": "0x1000"})

        result = await client.send(http_client, BLOCK_NUMBER)

        assert result == "0x1000"
        http_client.post.assert_called_once()

    @pytest.mark.asyncio
    async def test_send_with_custom_timeout(self) -> None:
        """Test that a timeout override reaches the HTTP client."""
        client = RPCClient("https://test.rpc", timeout=30.0)
        http_client = mock_client({"jsonrpc": "2.0", "id": 1, "result": "0x1"})

        await client.send(http_client, BLOCK_NUMBER, timeout=60.0)

        assert http_client.post.call_args.kwargs["timeout"] == 60.0

    @pytest.mark.asyncio
    async def test_send_with_rpc_error(self) -> None:
        """Test an RPC response that carries an error."""
        client = RPCClient("https://test.rpc")
        http_client = mock_client(
            {
                "jsonrpc": "2.0",
                "id": 1,
                "error": {"code": -32000, "message": "execution reverted"},
            }
        )

        with pytest.raises(ValueError, match="RPC error"):
            await client.send(http_client, EthCallRequest(id=1))

    @pytest.mark.asyncio
    async def test_http_error_propagates(self) -> None:
        """Test that HTTP status errors are raised to the caller."""
        client = RPCClient("https://test.rpc")
        http_client = AsyncMock(spec=httpx.AsyncClient)
        response = MagicMock()
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "bad gateway", request=MagicMock(), response=MagicMock()
        )
        http_client.post.return_value = response

        with pytest.raises(httpx.HTTPStatusError):
            await client.send(http_client, BLOCK_NUMBER)


class TestEthCall:
    """Tests for eth_call."""

    @pytest.mark.asyncio
    async def test_posts_call_message(self) -> None:
        """Test the request shape of eth_call."""
        client = RPCClient("https://test.rpc")
        http_client = mock_client({"jsonrpc": "2.0", "id": 1, "result": "0x2a"})

        result = await client.eth_call(http_client, "0xcontract", "0xdeadbeef")

        assert result == "0x2a"
        body = http_client.post.call_args.kwargs["json"]
        assert body["method"] == "eth_call"
        assert body["params"] == [{"to": "0xcontract", "data": "0xdeadbeef"}, "latest"]

    @pytest.mark.asyncio
    async def test_empty_result_is_empty_hex(self) -> None:
        """Test that a null result becomes '0x'."""
        client = RPCClient("https://test.rpc")
        http_client = mock_client({"jsonrpc": "2.0", "id": 1, "result": None})

        assert await client.eth_call(http_client, "0xcontract", "0x") == "0x"

    def test_method_is_fixed(self) -> None:
        """Test that the request model pins the method name."""
        request = EthCallRequest(params=[], id=1)
        assert request.method == "eth_call"


class TestGetBlock:
    """Tests for get_block."""

    @pytest.mark.asyncio
    async def test_returns_header(self) -> None:
        """Test parsing the latest block header."""
        client = RPCClient("https://test.rpc")
        http_client = mock_client(
            {
                "jsonrpc": "2.0",
                "id": 1,
                "result": {"number": "0x10", "hash": "0xabc", "timestamp": "0x65"},
            }
        )

        header = await client.get_block(http_client)

        assert isinstance(header, BlockHeader)
        assert header.timestamp == "0x65"
        assert http_client.post.call_args.kwargs["json"]["params"] == ["latest", False]

    @pytest.mark.asyncio
    async def test_block_number_is_hex_encoded(self) -> None:
        """Test that integer block numbers are sent as hex."""
        client = RPCClient("https://test.rpc")
        http_client = mock_client(
            {"jsonrpc": "2.0", "id": 1, "result": {"number": "0x10", "timestamp": "0x1"}}
        )

        await client.get_block(http_client, 16)

        assert http_client.post.call_args.kwargs["json"]["params"] == ["0x10", False]

    @pytest.mark.asyncio
    async def test_missing_block_raises(self) -> None:
        """Test that a null block is an error."""
        client = RPCClient("https://test.rpc")
        http_client = mock_client({"jsonrpc": "2.0", "id": 1, "result": None})

        with pytest.raises(ValueError, match="not found"):
            await client.get_block(http_client, 1)
