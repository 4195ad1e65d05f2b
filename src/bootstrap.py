"""Deployment bootstrap for the governance mirror.

Creates the tables and seeds the proposal cursor of every configured network.
Existing cursors are never touched, so the command is safe to re-run.

Usage:
    python -m src.bootstrap [--start N]
"""

from argparse import ArgumentParser
from asyncio import run

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from src.data.cursors.store import CursorStore, proposal_cursor_name
from src.helpers.config import load_networks
from src.helpers.constants import INITIAL_CURSOR
from src.helpers.db import create_tables, get_engine, get_session_factory


if TYPE_CHECKING:
    from collections.abc import Sequence

    from src.helpers.config import Network


async def seed_proposal_cursors(
    cursors: CursorStore,
    networks: Sequence[Network],
    start: int = INITIAL_CURSOR,
) -> dict[int, bool]:
    """Seed the proposal cursor of every network if it is missing.

    Args:
        cursors: Cursor store to write to
        networks: Configured networks
        start: First proposal index to mirror

    Returns:
        Mapping of network id to whether its cursor was created
    """
    return {
        network.id: await cursors.seed(proposal_cursor_name(network.id), start)
        for network in networks
    }


async def main(start: int) -> None:
    """Create tables and seed cursors.

    Args:
        start: First proposal index to mirror on new networks
    """
    console = Console()
    networks = load_networks()

    console.print("[cyan]Creating tables if not exist...[/cyan]")
    await create_tables()

    console.print(f"[cyan]Seeding proposal cursors at {start}...[/cyan]")
    created = await seed_proposal_cursors(CursorStore(get_session_factory()), networks, start)

    table = Table(title="Proposal cursors")
    table.add_column("Network", justify="right")
    table.add_column("Name")
    table.add_column("Cursor")
    table.add_column("Status")
    for network in networks:
        table.add_row(
            str(network.id),
            network.name,
            proposal_cursor_name(network.id),
            "[green]created[/green]" if created[network.id] else "[yellow]kept[/yellow]",
        )
    console.print(table)

    await get_engine().dispose()
    console.print("[bold green]Bootstrap complete[/bold green]")


if __name__ == "__main__":
    parser = ArgumentParser(description="Create tables and seed proposal cursors")
    parser.add_argument(
        "--start",
        type=int,
        default=INITIAL_CURSOR,
        help=f"First proposal index to mirror (default: {INITIAL_CURSOR})",
    )
    args = parser.parse_args()

    run(main(args.start))
