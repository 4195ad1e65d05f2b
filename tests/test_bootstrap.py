"""Tests for the deployment bootstrap."""

import pytest

from src.bootstrap import seed_proposal_cursors
from src.data.cursors.store import proposal_cursor_name
from src.helpers.config import Network
from tests.fakes import InMemoryCursors, address


NETWORKS = [
    Network(
        id=network_id,
        rpc_url=f"https://rpc-{network_id}.example.org",
        contract_address=address(1),
        token_address=address(2),
    )
    for network_id in (314, 314159)
]


class TestSeedProposalCursors:
    """Tests for seed_proposal_cursors."""

    @pytest.mark.asyncio
    async def test_seeds_every_network(self) -> None:
        """Test each network gets its own proposal cursor."""
        cursors = InMemoryCursors()

        created = await seed_proposal_cursors(cursors, NETWORKS)

        assert created == {314: True, 314159: True}
        assert cursors.values == {
            proposal_cursor_name(314): 1,
            proposal_cursor_name(314159): 1,
        }

    @pytest.mark.asyncio
    async def test_custom_start(self) -> None:
        """Test mirroring can start past historical proposals."""
        cursors = InMemoryCursors()

        await seed_proposal_cursors(cursors, NETWORKS[:1], start=42)

        assert cursors.values[proposal_cursor_name(314)] == 42

    @pytest.mark.asyncio
    async def test_existing_cursor_is_kept(self) -> None:
        """Test re-running the bootstrap never rewinds a stream."""
        cursors = InMemoryCursors()
        cursors.values[proposal_cursor_name(314)] = 17

        created = await seed_proposal_cursors(cursors, NETWORKS)

        assert created == {314: False, 314159: True}
        assert cursors.values[proposal_cursor_name(314)] == 17
