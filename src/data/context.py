"""Per-network bundle of collaborators handed to the syncers and the tally.

Nothing here is global: every handler invocation receives the context of the
network it works on, so networks never share cursors, clients or state.
"""

from dataclasses import dataclass, field

from typing import TYPE_CHECKING, Protocol

from src.data.policy import SkipAndAdvance


if TYPE_CHECKING:
    from collections.abc import Sequence

    from src.analysis.models import VoteHistory, VoteResult
    from src.data.policy import FetchPolicy
    from src.data.proposals.models import ContractProposal, Proposal
    from src.data.votes.models import ContractVote, DecodedVote, Vote
    from src.helpers.config import Network


class ChainSource(Protocol):
    """Read access to the voting contract, the token and the chain clock."""

    async def latest_proposal_index(self) -> int: ...

    async def proposal(self, index: int) -> ContractProposal: ...

    async def vote(self, proposal_id: int, vote_index: int) -> ContractVote: ...

    async def balance_of(self, address: str) -> int: ...

    async def current_timestamp(self) -> int: ...


class CursorSource(Protocol):
    """Named integer progress markers."""

    async def get(self, name: str) -> int: ...

    async def set(self, name: str, value: int) -> None: ...

    async def seed(self, name: str, value: int) -> bool: ...


class MirrorStore(Protocol):
    """Persistence of mirrored proposals, votes and tally output."""

    async def count_proposals_by_cid(self, cid: str) -> int: ...

    async def create_proposal(self, proposal: Proposal, vote_cursor: str) -> Proposal: ...

    async def find_open_proposals(self, network: int) -> list[Proposal]: ...

    async def find_tally_candidates(self, network: int, now: int) -> list[Proposal]: ...

    async def update_proposal_vote_count(
        self, network: int, proposal_id: int, vote_count: int
    ) -> None: ...

    async def count_votes(self, network: int, proposal_id: int, address: str) -> int: ...

    async def create_vote(self, vote: Vote) -> None: ...

    async def update_vote_info(
        self, network: int, proposal_id: int, address: str, vote_info: str
    ) -> None: ...

    async def find_votes(self, network: int, proposal_id: int) -> list[Vote]: ...

    async def commit_tally(
        self,
        proposal: Proposal,
        histories: Sequence[VoteHistory],
        results: Sequence[VoteResult],
    ) -> None: ...


class VoteResolver(Protocol):
    """Off-chain proposal options and vote decoding."""

    async def options(self, cid: str) -> list[str]: ...

    async def decode_votes(self, vote: Vote) -> list[DecodedVote]: ...


@dataclass(frozen=True)
class NetworkContext:
    """Everything a handler needs to work on one network."""

    network: Network
    chain: ChainSource
    store: MirrorStore
    cursors: CursorSource
    resolver: VoteResolver
    policy: FetchPolicy = field(default_factory=SkipAndAdvance)

    @property
    def network_id(self) -> int:
        return self.network.id


__all__ = [
    "ChainSource",
    "CursorSource",
    "MirrorStore",
    "NetworkContext",
    "VoteResolver",
]
