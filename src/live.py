"""Governance mirror scheduler.

Runs three periodic handlers, each on its own cadence:

1. Proposal sync - mirror new proposals of every network
2. Vote sync - mirror votes of every open proposal
3. Tally - close expired proposals with a balance-weighted tally

Every handler dispatches one task per configured network. Networks share no
mutable state; each handler returns one NetworkRunResult per network so
failures are visible to the caller and never stop the scheduler.

Usage:
    python -m src.live
"""

import signal
import sys

from typing import TYPE_CHECKING

import asyncio

from src.analysis.live import TallyEngine
from src.data.chain import ChainReader
from src.data.content import ContentResolver
from src.data.context import NetworkContext
from src.data.cursors.store import CursorStore, vote_cursor_name
from src.data.live_models import NetworkRunResult, StreamFailure
from src.data.policy import build_policy
from src.data.proposals.live import ProposalSyncer
from src.data.store import GovernanceStore
from src.data.votes.live import VoteSyncer
from src.helpers.config import (
    get_fetch_policy_settings,
    get_ipfs_gateway_url,
    get_schedule_intervals,
    load_networks,
)
from src.helpers.db import get_session_factory
from src.helpers.errors import GovernanceError
from src.helpers.http import create_http_client
from src.helpers.logging import get_logger
from src.helpers.rpc import RPCClient


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    import httpx
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from src.data.content import Decryptor
    from src.data.live_models import SyncReport, TallyReport
    from src.data.policy import FetchPolicy
    from src.helpers.config import Network


logger = get_logger(__name__)

type Report = SyncReport | TallyReport | StreamFailure


def build_contexts(
    networks: Sequence[Network],
    session_factory: async_sessionmaker[AsyncSession],
    http_client: httpx.AsyncClient,
    gateway_url: str,
    policy: FetchPolicy,
    decryptor: Decryptor | None = None,
) -> list[NetworkContext]:
    """Create one context per configured network.

    Args:
        networks: Configured networks
        session_factory: Factory producing sessions on the mirror database
        http_client: Shared HTTP client for RPC and gateway calls
        gateway_url: IPFS gateway base URL
        policy: Fetch policy applied by the syncers
        decryptor: Optional decryptor for encrypted vote content

    Returns:
        Contexts in configuration order
    """
    store = GovernanceStore(session_factory)
    cursors = CursorStore(session_factory)
    resolver = ContentResolver(gateway_url, http_client, decryptor)
    return [
        NetworkContext(
            network=network,
            chain=ChainReader(network, RPCClient(network.rpc_url), http_client),
            store=store,
            cursors=cursors,
            resolver=resolver,
            policy=policy,
        )
        for network in networks
    ]


async def _run_per_network(
    contexts: Sequence[NetworkContext],
    job: Callable[[NetworkContext], Awaitable[list[Report]]],
    name: str,
) -> list[NetworkRunResult]:
    """Run a job concurrently for every network and collect the outcomes."""
    outcomes = await asyncio.gather(
        *(job(ctx) for ctx in contexts),
        return_exceptions=True,
    )

    results: list[NetworkRunResult] = []
    for ctx, outcome in zip(contexts, outcomes, strict=True):
        if isinstance(outcome, BaseException):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            logger.error(
                "%s failed on network %s: %s: %s",
                name,
                ctx.network_id,
                type(outcome).__name__,
                outcome,
            )
            results.append(
                NetworkRunResult(
                    network=ctx.network_id,
                    ok=False,
                    error=f"{type(outcome).__name__}: {outcome}",
                )
            )
        else:
            failures = [r for r in outcome if isinstance(r, StreamFailure)]
            results.append(
                NetworkRunResult(
                    network=ctx.network_id,
                    ok=not failures,
                    error="; ".join(f"{f.stream}: {f.error}" for f in failures) or None,
                    reports=outcome,
                )
            )
    return results


async def _sync_proposals(ctx: NetworkContext) -> list[Report]:
    return [await ProposalSyncer(ctx).sync()]


async def _sync_votes(ctx: NetworkContext) -> list[Report]:
    syncer = VoteSyncer(ctx)
    reports: list[Report] = []
    for proposal in await ctx.store.find_open_proposals(ctx.network_id):
        try:
            reports.append(await syncer.sync(proposal.proposal_id))
        except GovernanceError as e:
            logger.warning(
                "Vote sync of proposal %s on network %s failed: %s",
                proposal.proposal_id,
                ctx.network_id,
                e,
            )
            reports.append(
                StreamFailure(
                    stream=vote_cursor_name(ctx.network_id, proposal.proposal_id),
                    error=f"{type(e).__name__}: {e}",
                )
            )
    return reports


async def _tally(ctx: NetworkContext) -> list[Report]:
    return [await TallyEngine(ctx).tally()]


async def sync_proposals_handler(
    contexts: Sequence[NetworkContext],
) -> list[NetworkRunResult]:
    """Mirror new proposals on every network."""
    return await _run_per_network(contexts, _sync_proposals, "Proposal sync")


async def sync_votes_handler(contexts: Sequence[NetworkContext]) -> list[NetworkRunResult]:
    """Mirror votes of every open proposal, one proposal at a time per network.

    A failing proposal is recorded and skipped; the remaining proposals of
    the network are still synced.
    """
    return await _run_per_network(contexts, _sync_votes, "Vote sync")


async def tally_handler(contexts: Sequence[NetworkContext]) -> list[NetworkRunResult]:
    """Close expired proposals on every network."""
    return await _run_per_network(contexts, _tally, "Tally")


class GovernanceScheduler:
    """Fires the sync and tally handlers periodically until shut down."""

    def __init__(
        self,
        contexts: Sequence[NetworkContext],
        intervals: dict[str, int],
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            contexts: One context per network
            intervals: Seconds between runs keyed by handler name
                ('proposals', 'votes', 'tally')
            http_client: Client closed on shutdown, if owned by the scheduler
        """
        self.contexts = list(contexts)
        self.intervals = intervals
        self.http_client = http_client
        self.shutdown_event = asyncio.Event()

        # Stats
        self.runs: dict[str, int] = dict.fromkeys(intervals, 0)
        self.failures: dict[str, int] = dict.fromkeys(intervals, 0)

    async def _periodic(
        self,
        name: str,
        handler: Callable[[Sequence[NetworkContext]], Awaitable[list[NetworkRunResult]]],
    ) -> None:
        interval = self.intervals[name]
        logger.info("Starting %s loop every %s s", name, interval)

        while not self.shutdown_event.is_set():
            try:
                results = await handler(self.contexts)
                self.runs[name] += 1
                self.failures[name] += sum(1 for result in results if not result.ok)
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Unexpected error in %s loop", name)
                self.failures[name] += 1

            try:
                await asyncio.wait_for(self.shutdown_event.wait(), timeout=interval)
            except TimeoutError:
                continue

        logger.info("%s loop stopped", name)

    def shutdown(self) -> None:
        """Gracefully shutdown the scheduler."""
        logger.info("Shutdown signal received, stopping...")
        self.shutdown_event.set()

    async def cleanup(self) -> None:
        """Clean up resources."""
        if self.http_client is not None:
            await self.http_client.aclose()

    async def run(self) -> None:
        """Run all periodic loops until a shutdown signal arrives."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self.shutdown)

        try:
            tasks = [
                asyncio.create_task(self._periodic("proposals", sync_proposals_handler)),
                asyncio.create_task(self._periodic("votes", sync_votes_handler)),
                asyncio.create_task(self._periodic("tally", tally_handler)),
            ]
            await asyncio.gather(*tasks, return_exceptions=True)
        finally:
            await self.cleanup()

        logger.info(
            "Scheduler stopped (runs: %s, failed network runs: %s)",
            self.runs,
            self.failures,
        )


async def main() -> None:
    """Main entry point."""
    try:
        networks = load_networks()
        policy_name, max_retries = get_fetch_policy_settings()
        http_client = create_http_client()
        contexts = build_contexts(
            networks,
            get_session_factory(),
            http_client,
            get_ipfs_gateway_url(),
            build_policy(policy_name, max_retries),
        )
        logger.info(
            "Mirroring %s networks: %s",
            len(contexts),
            ", ".join(f"{n.id} ({n.name})" if n.name else str(n.id) for n in networks),
        )
        scheduler = GovernanceScheduler(contexts, get_schedule_intervals(), http_client)
        await scheduler.run()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, exiting...")
    except Exception:
        logger.exception("Fatal error")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
