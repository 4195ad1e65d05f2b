"""Incremental mirroring of on-chain proposals.

Each pass walks proposal indices from the network's proposal cursor up to the
latest index reported by the contract, inclusive. A failed chain read
advances the cursor past the failing index and ends the pass, so the next
pass starts after it. A failed store write leaves the cursor on the failing
index so the next pass retries it.
"""

from typing import TYPE_CHECKING

from src.data.cursors.store import proposal_cursor_name, vote_cursor_name
from src.data.live_models import SyncReport
from src.data.proposals.models import Proposal, ProposalStatus
from src.helpers.errors import PersistenceError, TransientChainError
from src.helpers.logging import get_logger


if TYPE_CHECKING:
    from src.data.context import NetworkContext


logger = get_logger(__name__)


class ProposalSyncer:
    """Mirrors the proposal stream of one network."""

    def __init__(self, ctx: NetworkContext) -> None:
        """Initialize the proposal syncer.

        Args:
            ctx: Collaborators of the network to mirror
        """
        self.ctx = ctx
        self.cursor_name = proposal_cursor_name(ctx.network_id)

    async def sync(self) -> SyncReport:
        """Run one pass over the proposal stream.

        Returns:
            Summary of the pass

        Raises:
            NotFoundError: If the proposal cursor was never seeded
            TransientChainError: If the latest proposal index cannot be read
            PersistenceError: If a proposal cannot be stored (cursor is left
                on that proposal)
        """
        ctx = self.ctx
        start = await ctx.cursors.get(self.cursor_name)
        end = await ctx.policy.fetch(
            f"proposalId on network {ctx.network_id}",
            ctx.chain.latest_proposal_index,
        )

        report = SyncReport(stream=self.cursor_name, start=start, end=end, cursor=start)
        index = start
        try:
            while index <= end:
                try:
                    record = await ctx.policy.fetch(
                        f"proposal {index} on network {ctx.network_id}",
                        lambda index=index: ctx.chain.proposal(index),
                    )
                except TransientChainError as e:
                    logger.warning(
                        "Skipping proposal %s on network %s: %s",
                        index,
                        ctx.network_id,
                        e,
                    )
                    index += 1
                    report.aborted = True
                    break

                if not record.cid:
                    report.skipped += 1
                    index += 1
                    continue

                if await ctx.store.count_proposals_by_cid(record.cid) > 0:
                    report.skipped += 1
                    index += 1
                    continue

                await ctx.store.create_proposal(
                    Proposal(
                        cid=record.cid,
                        proposal_id=index,
                        proposal_type=record.proposal_type,
                        creator=record.creator,
                        exp_time=record.exp_time,
                        vote_count=record.votes_count,
                        status=ProposalStatus.OPEN,
                        network=ctx.network_id,
                    ),
                    vote_cursor_name(ctx.network_id, index),
                )
                report.created += 1
                logger.info(
                    "Mirrored proposal %s (%s) on network %s",
                    index,
                    record.cid,
                    ctx.network_id,
                )
                index += 1
        except PersistenceError:
            await self._advance(start, index)
            raise

        await self._advance(start, index)
        report.cursor = index
        logger.info(
            "Proposal sync on network %s: %s..%s -> cursor %s "
            "(created %s, skipped %s, aborted %s)",
            ctx.network_id,
            start,
            end,
            index,
            report.created,
            report.skipped,
            report.aborted,
        )
        return report

    async def _advance(self, start: int, index: int) -> None:
        if index != start:
            await self.ctx.cursors.set(self.cursor_name, index)


__all__ = ["ProposalSyncer"]
