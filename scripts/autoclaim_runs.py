#!/usr/bin/env python3
"""
Link unclaimed imported runs to player accounts by speedrun.com username
"""
import argparse
import logging
import os
import sys
from pathlib import Path

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from dotenv import load_dotenv
from rich.console import Console

from config.settings import LOG_LEVEL
from src.models.autoclaim import AutoclaimReconciler
from src.storage.leaderboard_store import create_store
from src.utils.import_exceptions import ConfigError

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

console = Console()

env_local = Path('.env.local')
if env_local.exists():
    load_dotenv(env_local, override=True)
else:
    load_dotenv()


def main():
    parser = argparse.ArgumentParser(description='Autoclaim imported runs')
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument('--all', action='store_true', help='Autoclaim for every player with a linked username')
    group.add_argument('--player-id', type=str, help='Player uid to claim runs for')
    parser.add_argument('--username', type=str, help='speedrun.com username (with --player-id)')
    parser.add_argument('--list', action='store_true', help='Only list unclaimed runs for --username')
    args = parser.parse_args()

    if args.player_id and not args.username:
        parser.error('--player-id requires --username')

    try:
        store = create_store(os.getenv('SUPABASE_URL'), os.getenv('SUPABASE_SERVICE_ROLE_KEY'))
    except ConfigError as e:
        console.print(f"[red]{e.user_message}[/red]")
        sys.exit(1)

    reconciler = AutoclaimReconciler(store)

    if args.all:
        summary = reconciler.autoclaim_all()
        console.print(
            f"\n[bold green]Autoclaimed {summary.runs_updated:,} runs "
            f"for {summary.players_updated:,} players[/bold green]"
        )
        for error in summary.errors:
            console.print(f"  [red]{error}[/red]")
        return

    if args.list:
        runs = reconciler.get_unclaimed_runs(args.username)
        console.print(f"\n[bold]{len(runs)} unclaimed runs for {args.username}[/bold]")
        for run in runs:
            console.print(f"  {run.id}  {run.time}  {run.date}  {run.external_category_name or run.category}")
        return

    claimed = reconciler.autoclaim(args.player_id, args.username)
    console.print(f"\n[bold green]Claimed {claimed:,} runs for {args.username}[/bold green]")


if __name__ == '__main__':
    main()
