"""Typed persistence facade over the mirror database."""

from contextlib import asynccontextmanager

from typing import TYPE_CHECKING

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError

from src.analysis.db import VoteHistoryDB, VoteResultDB
from src.analysis.models import VoteHistory, VoteResult
from src.data.cursors.store import seed_statement
from src.data.proposals.db import ProposalDB
from src.data.proposals.models import Proposal, ProposalStatus
from src.data.votes.db import VoteDB
from src.data.votes.models import Vote
from src.helpers.constants import INITIAL_CURSOR
from src.helpers.db import upsert_models
from src.helpers.errors import PersistenceError
from src.helpers.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


logger = get_logger(__name__)


def _to_proposal(row: ProposalDB) -> Proposal:
    return Proposal(
        id=row.id,
        cid=row.cid,
        proposal_id=row.proposal_id,
        proposal_type=row.proposal_type,
        creator=row.creator,
        exp_time=row.exp_time,
        vote_count=row.vote_count,
        status=ProposalStatus(row.status),
        network=row.network,
    )


class GovernanceStore:
    """Create/find/count/update operations for proposals, votes and tallies."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the store.

        Args:
            session_factory: Factory producing sessions on the mirror database
        """
        self.session_factory = session_factory

    @asynccontextmanager
    async def _translate_errors(self, action: str) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            msg = f"Failed to {action}: {e}"
            raise PersistenceError(msg) from e

    # Proposals

    async def count_proposals_by_cid(self, cid: str) -> int:
        """Count proposals carrying a content identifier (0 or 1)."""
        async with self._translate_errors("count proposals"), self.session_factory() as session:
            result = await session.execute(
                select(func.count()).select_from(ProposalDB).where(ProposalDB.cid == cid)
            )
            return int(result.scalar_one())

    async def create_proposal(self, proposal: Proposal, vote_cursor: str) -> Proposal:
        """Insert a proposal and seed its vote cursor in one transaction.

        Args:
            proposal: Proposal to insert (its id is assigned here)
            vote_cursor: Name of the proposal's vote stream cursor

        Returns:
            The stored proposal with its local id

        Raises:
            PersistenceError: If the insert fails (nothing is written)
        """
        row = ProposalDB(**proposal.model_dump(exclude={"id"}))
        async with (
            self._translate_errors(f"create proposal {proposal.cid}"),
            self.session_factory() as session,
            session.begin(),
        ):
            session.add(row)
            await session.flush()
            stored = _to_proposal(row)
            await session.execute(seed_statement(vote_cursor, INITIAL_CURSOR))
        return stored

    async def find_proposal(self, network: int, proposal_id: int) -> Proposal | None:
        """Find a proposal by on-chain index."""
        async with self._translate_errors("find proposal"), self.session_factory() as session:
            result = await session.execute(
                select(ProposalDB).where(
                    ProposalDB.network == network,
                    ProposalDB.proposal_id == proposal_id,
                )
            )
            row = result.scalar_one_or_none()
            return _to_proposal(row) if row else None

    async def find_open_proposals(self, network: int) -> list[Proposal]:
        """List open proposals of a network ordered by index."""
        async with self._translate_errors("find open proposals"), self.session_factory() as session:
            result = await session.execute(
                select(ProposalDB)
                .where(
                    ProposalDB.network == network,
                    ProposalDB.status == ProposalStatus.OPEN,
                )
                .order_by(ProposalDB.proposal_id)
            )
            return [_to_proposal(row) for row in result.scalars()]

    async def find_tally_candidates(self, network: int, now: int) -> list[Proposal]:
        """List open proposals whose expiry is at or before ``now``."""
        async with self._translate_errors("find tally candidates"), self.session_factory() as session:
            result = await session.execute(
                select(ProposalDB)
                .where(
                    ProposalDB.network == network,
                    ProposalDB.status == ProposalStatus.OPEN,
                    ProposalDB.exp_time <= now,
                )
                .order_by(ProposalDB.proposal_id)
            )
            return [_to_proposal(row) for row in result.scalars()]

    async def update_proposal_vote_count(
        self, network: int, proposal_id: int, vote_count: int
    ) -> None:
        """Refresh the mirrored vote count of a proposal."""
        async with (
            self._translate_errors("update proposal vote count"),
            self.session_factory() as session,
            session.begin(),
        ):
            await session.execute(
                update(ProposalDB)
                .where(
                    ProposalDB.network == network,
                    ProposalDB.proposal_id == proposal_id,
                )
                .values(vote_count=vote_count)
            )

    # Votes

    async def count_votes(self, network: int, proposal_id: int, address: str) -> int:
        """Count votes of an address on a proposal (0 or 1)."""
        async with self._translate_errors("count votes"), self.session_factory() as session:
            result = await session.execute(
                select(func.count())
                .select_from(VoteDB)
                .where(
                    VoteDB.network == network,
                    VoteDB.proposal_id == proposal_id,
                    VoteDB.address == address,
                )
            )
            return int(result.scalar_one())

    async def create_vote(self, vote: Vote) -> None:
        """Insert a vote."""
        async with (
            self._translate_errors("create vote"),
            self.session_factory() as session,
            session.begin(),
        ):
            session.add(VoteDB(**vote.model_dump()))

    async def update_vote_info(
        self, network: int, proposal_id: int, address: str, vote_info: str
    ) -> None:
        """Overwrite the payload of an existing vote in place."""
        async with (
            self._translate_errors("update vote"),
            self.session_factory() as session,
            session.begin(),
        ):
            await session.execute(
                update(VoteDB)
                .where(
                    VoteDB.network == network,
                    VoteDB.proposal_id == proposal_id,
                    VoteDB.address == address,
                )
                .values(vote_info=vote_info)
            )

    async def find_votes(self, network: int, proposal_id: int) -> list[Vote]:
        """List every mirrored vote of a proposal."""
        async with self._translate_errors("find votes"), self.session_factory() as session:
            result = await session.execute(
                select(VoteDB)
                .where(VoteDB.network == network, VoteDB.proposal_id == proposal_id)
                .order_by(VoteDB.id)
            )
            return [
                Vote(
                    proposal_id=row.proposal_id,
                    address=row.address,
                    vote_info=row.vote_info,
                    network=row.network,
                )
                for row in result.scalars()
            ]

    # Tally output

    async def commit_tally(
        self,
        proposal: Proposal,
        histories: Sequence[VoteHistory],
        results: Sequence[VoteResult],
    ) -> None:
        """Write a tally and close the proposal atomically.

        History rows are inserted, result rows upserted and the proposal moved
        from open to closed in one transaction. If the proposal is no longer
        open the transaction is rolled back.

        Args:
            proposal: Proposal being closed
            histories: Per-voter weighted rows
            results: Per-option totals

        Raises:
            PersistenceError: If anything fails; no row is left behind
        """
        async with (
            self._translate_errors(f"commit tally for proposal {proposal.proposal_id}"),
            self.session_factory() as session,
            session.begin(),
        ):
            session.add_all([VoteHistoryDB(**history.model_dump()) for history in histories])
            await session.flush()
            await upsert_models(
                db_model_class=VoteResultDB,
                pydantic_models=results,
                session=session,
            )
            closed = await session.execute(
                update(ProposalDB)
                .where(
                    ProposalDB.network == proposal.network,
                    ProposalDB.proposal_id == proposal.proposal_id,
                    ProposalDB.status == ProposalStatus.OPEN,
                )
                .values(status=ProposalStatus.CLOSED)
            )
            if closed.rowcount != 1:
                msg = (
                    f"Proposal {proposal.proposal_id} on network {proposal.network} "
                    "is not open"
                )
                raise PersistenceError(msg)

        logger.info(
            "Committed tally for proposal %s on network %s (%s history rows, %s results)",
            proposal.proposal_id,
            proposal.network,
            len(histories),
            len(results),
        )

    async def find_vote_results(self, network: int, proposal_id: int) -> list[VoteResult]:
        """List the per-option totals of a proposal ordered by option."""
        async with self._translate_errors("find vote results"), self.session_factory() as session:
            result = await session.execute(
                select(VoteResultDB)
                .where(
                    VoteResultDB.network == network,
                    VoteResultDB.proposal_id == proposal_id,
                )
                .order_by(VoteResultDB.option_id)
            )
            return [
                VoteResult(
                    proposal_id=row.proposal_id,
                    option_id=row.option_id,
                    votes=int(row.votes),
                    network=row.network,
                )
                for row in result.scalars()
            ]

    async def find_vote_history(self, network: int, proposal_id: int) -> list[VoteHistory]:
        """List the audit rows of a proposal's tally."""
        async with self._translate_errors("find vote history"), self.session_factory() as session:
            result = await session.execute(
                select(VoteHistoryDB)
                .where(
                    VoteHistoryDB.network == network,
                    VoteHistoryDB.proposal_id == proposal_id,
                )
                .order_by(VoteHistoryDB.id)
            )
            return [
                VoteHistory(
                    proposal_id=row.proposal_id,
                    option_id=row.option_id,
                    votes=int(row.votes),
                    address=row.address,
                    network=row.network,
                )
                for row in result.scalars()
            ]


__all__ = ["GovernanceStore"]
