"""Tests for the proposal syncer."""

from dataclasses import replace

import pytest

from typing import TYPE_CHECKING

from src.data.cursors.store import proposal_cursor_name, vote_cursor_name
from src.data.policy import RetryBoundedThenAdvance
from src.data.proposals.live import ProposalSyncer
from src.data.proposals.models import ProposalStatus
from src.helpers.errors import NotFoundError, PersistenceError, TransientChainError
from tests.fakes import NETWORK_ID


if TYPE_CHECKING:
    from src.data.context import NetworkContext
    from tests.fakes import FakeChain, InMemoryCursors, InMemoryStore


PROPOSAL_CURSOR = proposal_cursor_name(NETWORK_ID)


@pytest.fixture(autouse=True)
def seeded(cursors: InMemoryCursors) -> None:
    cursors.values[PROPOSAL_CURSOR] = 1


class TestProposalSyncer:
    """Tests for one proposal sync pass."""

    @pytest.mark.asyncio
    async def test_mirrors_new_proposals(
        self,
        ctx: NetworkContext,
        chain: FakeChain,
        store: InMemoryStore,
        cursors: InMemoryCursors,
    ) -> None:
        """Test proposals are stored open with their vote cursor seeded at 1."""
        chain.add_proposal(1, "bafy-1", votes_count=2)
        chain.add_proposal(2, "bafy-2")

        report = await ProposalSyncer(ctx).sync()

        assert (report.start, report.end, report.cursor) == (1, 2, 3)
        assert report.created == 2
        assert [(p.proposal_id, p.cid) for p in store.proposals] == [
            (1, "bafy-1"),
            (2, "bafy-2"),
        ]
        assert all(p.status == ProposalStatus.OPEN for p in store.proposals)
        assert all(p.network == NETWORK_ID for p in store.proposals)
        assert store.proposals[0].vote_count == 2
        assert cursors.values[PROPOSAL_CURSOR] == 3
        assert cursors.values[vote_cursor_name(NETWORK_ID, 1)] == 1
        assert cursors.values[vote_cursor_name(NETWORK_ID, 2)] == 1

    @pytest.mark.asyncio
    async def test_resync_is_idempotent(
        self,
        ctx: NetworkContext,
        chain: FakeChain,
        store: InMemoryStore,
        cursors: InMemoryCursors,
    ) -> None:
        """Test a second pass without chain changes writes nothing."""
        chain.add_proposal(1, "bafy-1")
        chain.add_proposal(2, "bafy-2")
        syncer = ProposalSyncer(ctx)

        await syncer.sync()
        second = await syncer.sync()

        assert len(store.proposals) == 2
        assert second.created == 0
        assert second.cursor == 3
        assert cursors.values[PROPOSAL_CURSOR] == 3
        assert cursors.writes[PROPOSAL_CURSOR] == [3]

    @pytest.mark.asyncio
    async def test_resync_from_old_cursor_skips_known_content(
        self,
        ctx: NetworkContext,
        chain: FakeChain,
        store: InMemoryStore,
        cursors: InMemoryCursors,
    ) -> None:
        """Test that re-walking a range never re-creates mirrored proposals."""
        chain.add_proposal(1, "bafy-1")
        await ProposalSyncer(ctx).sync()
        cursors.values[PROPOSAL_CURSOR] = 1

        report = await ProposalSyncer(ctx).sync()

        assert len(store.proposals) == 1
        assert report.skipped == 1

    @pytest.mark.asyncio
    async def test_dedup_by_content_identifier(
        self, ctx: NetworkContext, chain: FakeChain, store: InMemoryStore
    ) -> None:
        """Test two slots carrying the same content persist one proposal."""
        chain.add_proposal(1, "bafy-same")
        chain.add_proposal(2, "bafy-same")

        report = await ProposalSyncer(ctx).sync()

        assert [p.proposal_id for p in store.proposals] == [1]
        assert report.created == 1
        assert report.skipped == 1
        assert report.cursor == 3

    @pytest.mark.asyncio
    async def test_empty_content_identifier_is_skipped(
        self, ctx: NetworkContext, chain: FakeChain, store: InMemoryStore
    ) -> None:
        """Test unpopulated slots advance the cursor without a row."""
        chain.add_proposal(1, "bafy-1")
        chain.add_proposal(3, "bafy-3")

        report = await ProposalSyncer(ctx).sync()

        assert [p.proposal_id for p in store.proposals] == [1, 3]
        assert report.skipped == 1
        assert report.cursor == 4

    @pytest.mark.asyncio
    async def test_fetch_error_advances_past_index_and_stops(
        self,
        ctx: NetworkContext,
        chain: FakeChain,
        store: InMemoryStore,
        cursors: InMemoryCursors,
    ) -> None:
        """Test a failing slot is skipped for good and ends the pass."""
        for index in (1, 2, 3):
            chain.add_proposal(index, f"bafy-{index}")
        chain.fail_proposals.add(2)

        report = await ProposalSyncer(ctx).sync()

        assert report.aborted
        assert report.cursor == 3
        assert chain.proposal_calls == [1, 2]
        assert [p.proposal_id for p in store.proposals] == [1]

        chain.fail_proposals.clear()
        await ProposalSyncer(ctx).sync()

        assert [p.proposal_id for p in store.proposals] == [1, 3]
        assert cursors.values[PROPOSAL_CURSOR] == 4

    @pytest.mark.asyncio
    async def test_retry_policy_recovers_flaky_slot(
        self, ctx: NetworkContext, chain: FakeChain, store: InMemoryStore
    ) -> None:
        """Test the retrying policy keeps a slot that fails transiently."""
        for index in (1, 2, 3):
            chain.add_proposal(index, f"bafy-{index}")
        chain.flaky_proposals[2] = 2
        retrying = replace(ctx, policy=RetryBoundedThenAdvance(max_retries=3, base_delay=0.0))

        report = await ProposalSyncer(retrying).sync()

        assert not report.aborted
        assert [p.proposal_id for p in store.proposals] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_missing_cursor_makes_no_progress(
        self,
        ctx: NetworkContext,
        chain: FakeChain,
        store: InMemoryStore,
        cursors: InMemoryCursors,
    ) -> None:
        """Test an unseeded stream fails without touching chain or store."""
        del cursors.values[PROPOSAL_CURSOR]
        chain.add_proposal(1, "bafy-1")

        with pytest.raises(NotFoundError):
            await ProposalSyncer(ctx).sync()

        assert store.proposals == []
        assert chain.proposal_calls == []
        assert PROPOSAL_CURSOR not in cursors.values

    @pytest.mark.asyncio
    async def test_latest_index_failure_makes_no_progress(
        self, ctx: NetworkContext, chain: FakeChain, cursors: InMemoryCursors
    ) -> None:
        """Test the pass fails before walking when the range is unknown."""
        chain.add_proposal(1, "bafy-1")
        chain.fail_latest = True

        with pytest.raises(TransientChainError):
            await ProposalSyncer(ctx).sync()

        assert cursors.values[PROPOSAL_CURSOR] == 1
        assert cursors.writes[PROPOSAL_CURSOR] == []

    @pytest.mark.asyncio
    async def test_persistence_error_keeps_failing_index(
        self,
        ctx: NetworkContext,
        chain: FakeChain,
        store: InMemoryStore,
        cursors: InMemoryCursors,
    ) -> None:
        """Test a failed write leaves the cursor on that proposal for retry."""
        for index in (1, 2, 3):
            chain.add_proposal(index, f"bafy-{index}")
        store.fail_create_proposal.add(2)

        with pytest.raises(PersistenceError):
            await ProposalSyncer(ctx).sync()

        assert cursors.values[PROPOSAL_CURSOR] == 2
        assert [p.proposal_id for p in store.proposals] == [1]

        store.fail_create_proposal.clear()
        await ProposalSyncer(ctx).sync()

        assert [p.proposal_id for p in store.proposals] == [1, 2, 3]
        assert cursors.values[PROPOSAL_CURSOR] == 4

    @pytest.mark.asyncio
    async def test_cursor_is_monotonic(
        self,
        ctx: NetworkContext,
        chain: FakeChain,
        store: InMemoryStore,
        cursors: InMemoryCursors,
    ) -> None:
        """Test the cursor never moves backward across mixed outcomes."""
        syncer = ProposalSyncer(ctx)
        chain.add_proposal(1, "bafy-1")
        await syncer.sync()

        chain.add_proposal(2, "bafy-2")
        chain.add_proposal(3, "bafy-3")
        store.fail_create_proposal.add(3)
        with pytest.raises(PersistenceError):
            await syncer.sync()
        store.fail_create_proposal.clear()

        chain.add_proposal(4, "bafy-4")
        chain.fail_proposals.add(4)
        await syncer.sync()

        writes = cursors.writes[PROPOSAL_CURSOR]
        assert writes == sorted(writes)
        assert writes[-1] == 5
