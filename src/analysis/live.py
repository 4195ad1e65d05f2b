"""Balance-weighted tally of expired proposals.

For every open proposal whose expiry has passed, the engine refreshes its
votes, decodes them, weights each decision by the voter's current token
balance and commits history rows, per-option results and the closing status
transition as one transaction. Any failure leaves the proposal open for the
next pass; a partial tally is never committed.

Weights use exact integer arithmetic:

    weight = balance * percent // (100 * 10**8)
"""

from collections import defaultdict
import time

from typing import TYPE_CHECKING

from src.analysis.models import VoteHistory, VoteResult
from src.data.live_models import TallyReport
from src.data.votes.live import VoteSyncer
from src.helpers.constants import PERCENT_SCALE, TOKEN_UNIT
from src.helpers.errors import GovernanceError, TransientChainError
from src.helpers.logging import get_logger


if TYPE_CHECKING:
    from src.data.context import NetworkContext
    from src.data.proposals.models import Proposal


logger = get_logger(__name__)


def compute_weight(balance: int, percent: int) -> int:
    """Whole-unit weight of a decision.

    Args:
        balance: Voter balance in the token's smallest unit
        percent: Share of the voter's weight, 0 to 100

    Returns:
        floor(balance * percent / 100 / 1e8)

    Example:
        >>> compute_weight(5_000_000_000, 100)
        50
        >>> compute_weight(2_000_000_000, 50)
        10
    """
    return balance * percent // (PERCENT_SCALE * TOKEN_UNIT)


class TallyEngine:
    """Closes expired proposals of one network."""

    def __init__(self, ctx: NetworkContext) -> None:
        """Initialize the tally engine.

        Args:
            ctx: Collaborators of the network to tally
        """
        self.ctx = ctx
        self.vote_syncer = VoteSyncer(ctx)

    async def now(self) -> int:
        """Chain time, or local wall-clock time if the chain cannot be read."""
        try:
            return await self.ctx.chain.current_timestamp()
        except TransientChainError as e:
            now = int(time.time())
            logger.warning(
                "Falling back to local time %s on network %s: %s",
                now,
                self.ctx.network_id,
                e,
            )
            return now

    async def tally(self) -> TallyReport:
        """Run one tally pass.

        Candidates are processed one after another in proposal index order.

        Returns:
            Which candidates were closed and which stay open

        Raises:
            PersistenceError: If the candidates cannot be listed
        """
        now = await self.now()
        candidates = await self.ctx.store.find_tally_candidates(self.ctx.network_id, now)
        report = TallyReport(now=now)

        for proposal in candidates:
            try:
                await self.tally_proposal(proposal)
            except GovernanceError as e:
                logger.warning(
                    "Tally of proposal %s on network %s postponed: %s",
                    proposal.proposal_id,
                    self.ctx.network_id,
                    e,
                )
                report.skipped.append(proposal.proposal_id)
            except Exception:
                logger.exception(
                    "Tally of proposal %s on network %s failed",
                    proposal.proposal_id,
                    self.ctx.network_id,
                )
                report.skipped.append(proposal.proposal_id)
            else:
                report.closed.append(proposal.proposal_id)

        if candidates:
            logger.info(
                "Tally on network %s at %s: closed %s, postponed %s",
                self.ctx.network_id,
                now,
                report.closed,
                report.skipped,
            )
        return report

    async def tally_proposal(self, proposal: Proposal) -> list[VoteResult]:
        """Tally and close one proposal.

        Args:
            proposal: Open proposal whose expiry has passed

        Returns:
            One result per option defined by the proposal

        Raises:
            GovernanceError: If any step fails; nothing is committed
        """
        ctx = self.ctx
        await self.vote_syncer.sync(proposal.proposal_id)
        votes = await ctx.store.find_votes(ctx.network_id, proposal.proposal_id)

        decoded = []
        for vote in votes:
            decoded.extend(await ctx.resolver.decode_votes(vote))

        options = await ctx.resolver.options(proposal.cid)

        balances: dict[str, int] = {}
        histories: list[VoteHistory] = []
        totals: defaultdict[int, int] = defaultdict(int)
        for decision in decoded:
            if decision.address not in balances:
                balances[decision.address] = await ctx.chain.balance_of(decision.address)
            weight = compute_weight(balances[decision.address], decision.votes)
            histories.append(
                VoteHistory(
                    proposal_id=proposal.proposal_id,
                    option_id=decision.option_id,
                    votes=weight,
                    address=decision.address,
                    network=ctx.network_id,
                )
            )
            totals[decision.option_id] += weight

        results = [
            VoteResult(
                proposal_id=proposal.proposal_id,
                option_id=option_id,
                votes=totals.get(option_id, 0),
                network=ctx.network_id,
            )
            for option_id in range(len(options))
        ]

        await ctx.store.commit_tally(proposal, histories, results)
        return results


__all__ = [
    "TallyEngine",
    "compute_weight",
]
