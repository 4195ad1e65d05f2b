"""Typed read access to the voting contract and the weighting token.

Calls are ABI encoded with eth-abi and executed through ``eth_call``. Every
failure (transport, JSON-RPC error, undecodable return data) surfaces as
``TransientChainError``; retry and timeout policy belong to the HTTP client
and to the caller's fetch policy.
"""

from typing import TYPE_CHECKING, Any

import httpx
from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import function_signature_to_4byte_selector

from src.data.constants import (
    BALANCE_OF_OUTPUT,
    BALANCE_OF_SIGNATURE,
    ID_TO_PROPOSAL_OUTPUT,
    ID_TO_PROPOSAL_SIGNATURE,
    PROPOSAL_ID_OUTPUT,
    PROPOSAL_ID_SIGNATURE,
    PROPOSAL_TO_VOTE_OUTPUT,
    PROPOSAL_TO_VOTE_SIGNATURE,
)
from src.data.proposals.models import ContractProposal
from src.data.votes.models import ContractVote
from src.helpers.errors import TransientChainError
from src.helpers.parsers import normalize_address, parse_hex_bytes, parse_hex_int


if TYPE_CHECKING:
    from src.helpers.config import Network
    from src.helpers.rpc import RPCClient


def encode_call(signature: str, arg_types: list[str], args: list[Any]) -> str:
    """ABI encode a contract call.

    Args:
        signature: Canonical function signature, e.g. "balanceOf(address)"
        arg_types: ABI types of the arguments
        args: Argument values

    Returns:
        0x-prefixed call data
    """
    selector = function_signature_to_4byte_selector(signature)
    return "0x" + (selector + encode(arg_types, args)).hex()


class ChainReader:
    """Reads proposals, votes, balances and time from one network."""

    def __init__(
        self,
        network: Network,
        rpc_client: RPCClient,
        http_client: httpx.AsyncClient,
    ) -> None:
        """Initialize the chain reader.

        Args:
            network: Network whose contracts are read
            rpc_client: JSON-RPC client bound to the network endpoint
            http_client: Shared HTTP client
        """
        self.network = network
        self.rpc_client = rpc_client
        self.http_client = http_client

    async def _call(
        self,
        to: str,
        signature: str,
        arg_types: list[str],
        args: list[Any],
        output_types: list[str],
    ) -> tuple[Any, ...]:
        try:
            data = encode_call(signature, arg_types, args)
            raw = await self.rpc_client.eth_call(self.http_client, to, data)
            return decode(output_types, parse_hex_bytes(raw))
        except (httpx.HTTPError, ValueError, DecodingError, EncodingError) as e:
            msg = f"{signature} on network {self.network.id} failed: {e}"
            raise TransientChainError(msg) from e

    async def latest_proposal_index(self) -> int:
        """Index of the most recently created proposal."""
        (index,) = await self._call(
            self.network.contract_address,
            PROPOSAL_ID_SIGNATURE,
            [],
            [],
            PROPOSAL_ID_OUTPUT,
        )
        return int(index)

    async def proposal(self, index: int) -> ContractProposal:
        """Proposal record at an on-chain index."""
        cid, proposal_type, creator, exp_time, votes_count = await self._call(
            self.network.contract_address,
            ID_TO_PROPOSAL_SIGNATURE,
            ["uint256"],
            [index],
            ID_TO_PROPOSAL_OUTPUT,
        )
        return ContractProposal(
            cid=cid,
            proposal_type=proposal_type,
            creator=normalize_address(creator),
            exp_time=exp_time,
            votes_count=votes_count,
        )

    async def vote(self, proposal_id: int, vote_index: int) -> ContractVote:
        """Vote record at (proposal index, vote index)."""
        voter, vote_info = await self._call(
            self.network.contract_address,
            PROPOSAL_TO_VOTE_SIGNATURE,
            ["uint256", "uint256"],
            [proposal_id, vote_index],
            PROPOSAL_TO_VOTE_OUTPUT,
        )
        return ContractVote(voter=normalize_address(voter), vote_info=vote_info)

    async def balance_of(self, address: str) -> int:
        """Token balance of an address in the token's smallest unit."""
        (balance,) = await self._call(
            self.network.token_address,
            BALANCE_OF_SIGNATURE,
            ["address"],
            [normalize_address(address)],
            BALANCE_OF_OUTPUT,
        )
        return int(balance)

    async def current_timestamp(self) -> int:
        """Timestamp of the latest block in unix seconds."""
        try:
            header = await self.rpc_client.get_block(self.http_client, "latest")
            return parse_hex_int(header.timestamp)
        except (httpx.HTTPError, ValueError) as e:
            msg = f"Reading latest block on network {self.network.id} failed: {e}"
            raise TransientChainError(msg) from e


__all__ = [
    "ChainReader",
    "encode_call",
]
