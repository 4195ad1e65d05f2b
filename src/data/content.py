"""Resolution of off-chain proposal content and vote payloads.

A stored vote payload is either the decisions themselves, as JSON, or a
content identifier pointing at them on IPFS. Off-chain vote content may be
encrypted; when it is not JSON and a decryptor is configured, it is
decrypted before parsing. Decisions are a JSON array whose entries are
``[option_id, percent]`` pairs or ``{"optionId": .., "votes": ..}`` objects.
"""

import json

from typing import TYPE_CHECKING, Any, Protocol

import httpx
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from src.data.votes.models import (
    DecodedVote,
    InlinePayload,
    IpfsPayload,
    VotePayload,
)
from src.helpers.constants import MAX_RETRIES, PERCENT_SCALE, RETRY_BASE_DELAY
from src.helpers.errors import DecodeError
from src.helpers.http import retry_with_backoff
from src.helpers.logging import get_logger


if TYPE_CHECKING:
    from src.data.votes.models import Vote


logger = get_logger(__name__)


class Decryptor(Protocol):
    """Turns encrypted off-chain vote content into plaintext JSON bytes."""

    async def __call__(self, ciphertext: bytes) -> bytes: ...


class _Decision(BaseModel):
    option_id: int = Field(..., ge=0, alias="optionId")
    votes: int = Field(..., ge=0, le=PERCENT_SCALE)

    model_config = ConfigDict(populate_by_name=True)


_DECISIONS = TypeAdapter(list[tuple[int, int] | _Decision])


def parse_payload(vote_info: str) -> VotePayload:
    """Classify a stored vote payload.

    Args:
        vote_info: Payload as mirrored from chain

    Returns:
        InlinePayload for JSON bodies, IpfsPayload for content identifiers

    Raises:
        DecodeError: If the payload is empty

    Example:
        >>> parse_payload('[[0, 100]]').kind
        'inline'
        >>> parse_payload("bafybeigdyrzt").kind
        'ipfs'
    """
    body = vote_info.strip()
    if not body:
        msg = "Empty vote payload"
        raise DecodeError(msg)
    if body[0] in "[{":
        return InlinePayload(body=body)
    return IpfsPayload(cid=body)


def parse_decisions(address: str, content: str | bytes) -> list[DecodedVote]:
    """Parse decision JSON into decoded votes for one voter.

    Args:
        address: Voter address the decisions belong to
        content: JSON array of decisions

    Returns:
        One DecodedVote per decision, in payload order

    Raises:
        DecodeError: If the JSON is malformed, a value is out of range or the
            percentages add up to more than 100
    """
    try:
        raw = _DECISIONS.validate_json(content)
        decisions = [
            _Decision(option_id=item[0], votes=item[1]) if isinstance(item, tuple) else item
            for item in raw
        ]
    except ValidationError as e:
        msg = f"Malformed vote from {address}: {e}"
        raise DecodeError(msg) from e

    total = sum(decision.votes for decision in decisions)
    if total > PERCENT_SCALE:
        msg = f"Vote from {address} assigns {total}% of its weight"
        raise DecodeError(msg)

    return [
        DecodedVote(address=address, option_id=decision.option_id, votes=decision.votes)
        for decision in decisions
    ]


class ContentResolver:
    """Fetches proposal options and decodes vote payloads."""

    def __init__(
        self,
        gateway_url: str,
        http_client: httpx.AsyncClient,
        decryptor: Decryptor | None = None,
        *,
        max_retries: int = MAX_RETRIES,
        base_delay: float = RETRY_BASE_DELAY,
    ) -> None:
        """Initialize the resolver.

        Args:
            gateway_url: IPFS gateway base URL ending with a slash
            http_client: Shared HTTP client
            decryptor: Optional decryptor for encrypted vote content
            max_retries: Attempts per gateway fetch
            base_delay: Initial backoff delay in seconds
        """
        self.gateway_url = gateway_url
        self.http_client = http_client
        self.decryptor = decryptor
        self._fetch_with_retry = retry_with_backoff(
            max_retries=max_retries,
            base_delay=base_delay,
        )(self._get)

    async def _get(self, cid: str) -> bytes:
        response = await self.http_client.get(f"{self.gateway_url}{cid}")
        response.raise_for_status()
        return response.content

    async def fetch(self, cid: str) -> bytes:
        """Fetch raw content by identifier.

        Raises:
            DecodeError: If the content cannot be fetched after retries
        """
        try:
            return await self._fetch_with_retry(cid)
        except httpx.HTTPError as e:
            msg = f"Content {cid} is not accessible: {e}"
            raise DecodeError(msg) from e

    async def options(self, cid: str) -> list[str]:
        """Option labels of a proposal, indexed by option id.

        Args:
            cid: Content identifier of the proposal body

        Returns:
            Option labels in order

        Raises:
            DecodeError: If the body is inaccessible or has no option list
        """
        content = await self.fetch(cid)
        try:
            document: Any = json.loads(content)
        except ValueError as e:
            msg = f"Proposal content {cid} is not JSON: {e}"
            raise DecodeError(msg) from e

        options = None
        if isinstance(document, dict):
            options = document.get("option", document.get("options"))
        if not isinstance(options, list):
            msg = f"Proposal content {cid} has no option list"
            raise DecodeError(msg)

        return [str(option) for option in options]

    async def _plaintext(self, payload: IpfsPayload) -> bytes:
        content = await self.fetch(payload.cid)
        try:
            json.loads(content)
        except ValueError:
            if self.decryptor is None:
                msg = f"Vote content {payload.cid} is not JSON and no decryptor is configured"
                raise DecodeError(msg) from None
            try:
                return await self.decryptor(content)
            except Exception as e:
                msg = f"Vote content {payload.cid} could not be decrypted: {e}"
                raise DecodeError(msg) from e
        return content

    async def decode_votes(self, vote: Vote) -> list[DecodedVote]:
        """Decode a mirrored vote into its decisions.

        Args:
            vote: Mirrored vote row

        Returns:
            Zero or more decoded votes for the voter

        Raises:
            DecodeError: If the payload is malformed or inaccessible
        """
        payload = parse_payload(vote.vote_info)
        match payload:
            case InlinePayload(body=body):
                content: str | bytes = body
            case IpfsPayload():
                content = await self._plaintext(payload)

        decoded = parse_decisions(vote.address, content)
        logger.debug(
            "Decoded %s decisions from %s (%s payload)",
            len(decoded),
            vote.address,
            payload.kind,
        )
        return decoded


__all__ = [
    "ContentResolver",
    "Decryptor",
    "parse_decisions",
    "parse_payload",
]
