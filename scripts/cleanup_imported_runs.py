#!/usr/bin/env python3
"""
Bulk maintenance over imported runs: delete, normalize usernames, autofill fields
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
from src.etl.maintenance import BulkMaintenance
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
    parser = argparse.ArgumentParser(description='Maintenance for imported speedrun.com runs')
    action = parser.add_mutually_exclusive_group(required=True)
    action.add_argument('--delete-imported', action='store_true', help='Delete ALL imported runs')
    action.add_argument('--delete-unclaimed', action='store_true', help='Delete imported runs nobody has claimed')
    action.add_argument('--normalize-names', action='store_true', help='Lowercase/trim stored external usernames')
    action.add_argument('--autofill', action='store_true', help='Fill unmapped category/platform/level ids')
    parser.add_argument('--yes', action='store_true', help='Skip the confirmation prompt for deletes')
    args = parser.parse_args()

    try:
        store = create_store(os.getenv('SUPABASE_URL'), os.getenv('SUPABASE_SERVICE_ROLE_KEY'))
    except ConfigError as e:
        console.print(f"[red]{e.user_message}[/red]")
        sys.exit(1)

    maintenance = BulkMaintenance(store)

    def on_progress(count: int):
        console.print(f"  [cyan]{count:,} processed[/cyan]")

    if args.delete_imported or args.delete_unclaimed:
        target = "ALL imported" if args.delete_imported else "unclaimed imported"
        if not args.yes:
            answer = console.input(f"[bold red]Delete {target} runs? Type 'yes' to continue: [/bold red]")
            if answer.strip().lower() != 'yes':
                console.print("[yellow]Aborted[/yellow]")
                return

    if args.delete_imported:
        result = maintenance.delete_all_imported(progress_callback=on_progress)
        console.print(f"\n[bold green]Deleted {result.deleted:,} imported runs[/bold green]")
        for error in result.errors:
            console.print(f"  [red]{error}[/red]")
    elif args.delete_unclaimed:
        result = maintenance.delete_all_unclaimed(progress_callback=on_progress)
        if result.success:
            console.print(f"\n[bold green]Deleted {result.deleted_runs:,} unclaimed runs[/bold green]")
        else:
            console.print(f"\n[red]Stopped after {result.deleted_runs:,} runs: {result.error}[/red]")
            sys.exit(1)
    elif args.normalize_names:
        result = maintenance.normalize_external_player_names(progress_callback=on_progress)
        console.print(f"\n[bold green]Normalized {result.updated:,} runs[/bold green]")
        for error in result.errors:
            console.print(f"  [red]{error}[/red]")
    else:
        result = maintenance.autofill_imported_runs()
        console.print(f"\n[bold green]Autofilled {result.updated:,} runs[/bold green]")
        for error in result.errors:
            console.print(f"  [red]{error}[/red]")


if __name__ == '__main__':
    main()
