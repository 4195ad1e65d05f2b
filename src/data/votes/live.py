"""Incremental mirroring of the votes cast on one proposal.

The upper bound of a pass is the vote count the contract reports right now,
not the mirrored one. A voter may vote again; the stored payload is then
overwritten in place (last write wins).
"""

from typing import TYPE_CHECKING

from src.data.cursors.store import vote_cursor_name
from src.data.live_models import SyncReport
from src.data.votes.models import Vote
from src.helpers.errors import PersistenceError, TransientChainError
from src.helpers.logging import get_logger


if TYPE_CHECKING:
    from src.data.context import NetworkContext


logger = get_logger(__name__)


class VoteSyncer:
    """Mirrors the vote streams of one network's proposals."""

    def __init__(self, ctx: NetworkContext) -> None:
        """Initialize the vote syncer.

        Args:
            ctx: Collaborators of the network to mirror
        """
        self.ctx = ctx

    async def sync(self, proposal_id: int) -> SyncReport:
        """Run one pass over the votes of a proposal.

        Args:
            proposal_id: On-chain proposal index

        Returns:
            Summary of the pass

        Raises:
            NotFoundError: If the proposal's vote cursor does not exist
            TransientChainError: If the proposal's vote count cannot be read
            PersistenceError: If a vote cannot be stored (cursor is left on
                that vote)
        """
        ctx = self.ctx
        cursor_name = vote_cursor_name(ctx.network_id, proposal_id)
        start = await ctx.cursors.get(cursor_name)
        record = await ctx.policy.fetch(
            f"proposal {proposal_id} on network {ctx.network_id}",
            lambda: ctx.chain.proposal(proposal_id),
        )
        end = record.votes_count

        report = SyncReport(stream=cursor_name, start=start, end=end, cursor=start)
        index = start
        try:
            while index <= end:
                try:
                    contract_vote = await ctx.policy.fetch(
                        f"vote {index} of proposal {proposal_id} on network {ctx.network_id}",
                        lambda index=index: ctx.chain.vote(proposal_id, index),
                    )
                except TransientChainError as e:
                    logger.warning(
                        "Skipping vote %s of proposal %s on network %s: %s",
                        index,
                        proposal_id,
                        ctx.network_id,
                        e,
                    )
                    index += 1
                    report.aborted = True
                    break

                if not contract_vote.vote_info:
                    report.skipped += 1
                    index += 1
                    continue

                existing = await ctx.store.count_votes(
                    ctx.network_id, proposal_id, contract_vote.voter
                )
                if existing > 0:
                    await ctx.store.update_vote_info(
                        ctx.network_id,
                        proposal_id,
                        contract_vote.voter,
                        contract_vote.vote_info,
                    )
                    report.updated += 1
                else:
                    await ctx.store.create_vote(
                        Vote(
                            proposal_id=proposal_id,
                            address=contract_vote.voter,
                            vote_info=contract_vote.vote_info,
                            network=ctx.network_id,
                        )
                    )
                    report.created += 1
                index += 1

            await ctx.store.update_proposal_vote_count(ctx.network_id, proposal_id, end)
        except PersistenceError:
            if index != start:
                await ctx.cursors.set(cursor_name, index)
            raise

        if index != start:
            await ctx.cursors.set(cursor_name, index)
        report.cursor = index
        logger.debug(
            "Vote sync of proposal %s on network %s: %s..%s -> cursor %s "
            "(created %s, updated %s, skipped %s)",
            proposal_id,
            ctx.network_id,
            start,
            end,
            index,
            report.created,
            report.updated,
            report.skipped,
        )
        return report


__all__ = ["VoteSyncer"]
