#!/usr/bin/env python3
"""
Import recent speedrun.com runs as unclaimed leaderboard entries
"""
import asyncio
import argparse
import logging
import os
import sys
from datetime import datetime
from pathlib import Path

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from dotenv import load_dotenv
from rich.console import Console
from rich.progress import Progress
from rich.table import Table

from config.settings import IMPORT_CONFIG, LOG_DIR, LOG_LEVEL, PROJECT_NAME, VERSION
from src.etl.run_import_pipeline import RunImportPipeline, ImportProgress
from src.providers.speedruncom_client import SpeedrunComClient
from src.storage.leaderboard_store import create_store
from src.utils.import_exceptions import ConfigError

# Configure logging
log_file = LOG_DIR / f"speedrun_import_{datetime.now().strftime('%Y%m%d')}.log"

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler(log_file),
        logging.StreamHandler()
    ]
)
logger = logging.getLogger(__name__)

console = Console()

# Load environment variables - prioritize .env.local if it exists
env_local = Path('.env.local')
if env_local.exists():
    load_dotenv(env_local, override=True)
    logger.info("Loaded .env.local")
else:
    load_dotenv()


async def main():
    parser = argparse.ArgumentParser(description='Import runs from speedrun.com')
    parser.add_argument('--dry-run', action='store_true', help='Map and validate without writing entries')
    parser.add_argument('--fetch-limit', type=int, default=IMPORT_CONFIG['fetch_limit'],
                        help='Maximum runs to fetch from speedrun.com')
    parser.add_argument('--batch-size', type=int, default=IMPORT_CONFIG['batch_size'],
                        help='Maximum new runs to import in one invocation')
    parser.add_argument('--game', type=str, default=None,
                        help='speedrun.com game id (overrides SRC_GAME_ID / abbreviation lookup)')
    parser.add_argument('--no-autoclaim', action='store_true', help='Skip autoclaim after import')
    parser.add_argument('--show-unmatched', action='store_true', help='List player names without an account')
    args = parser.parse_args()

    try:
        store = create_store(os.getenv('SUPABASE_URL'), os.getenv('SUPABASE_SERVICE_ROLE_KEY'))
    except ConfigError as e:
        console.print(f"[red]{e.user_message}[/red]")
        sys.exit(1)

    client = SpeedrunComClient(config={'game_id': args.game} if args.game else None)
    pipeline = RunImportPipeline(
        store,
        client,
        dry_run=args.dry_run,
        fetch_limit=args.fetch_limit,
        batch_size=args.batch_size,
        run_autoclaim=not args.no_autoclaim,
    )

    mode_text = "DRY RUN import" if args.dry_run else "import"
    console.print(f"\n[bold green]{PROJECT_NAME} v{VERSION}: starting {mode_text} from speedrun.com[/bold green]")

    with Progress(console=console) as progress:
        task = progress.add_task("Importing runs...", total=None)

        def on_progress(update: ImportProgress):
            progress.update(
                task,
                total=update.total,
                completed=update.imported + update.skipped,
                description=f"Imported {update.imported} / skipped {update.skipped}",
            )

        result = await pipeline.import_external_runs(progress_callback=on_progress)

    table = Table(title="Import Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Imported", f"[green]{result.imported:,}[/green]")
    table.add_row("Skipped", f"[yellow]{result.skipped:,}[/yellow]")
    table.add_row("Runs with unmatched players", f"{len(result.unmatched_players):,}")
    table.add_row("Errors", f"[red]{len(result.errors):,}[/red]")
    table.add_row("Processing time", f"{result.processing_time_seconds:.2f}s")
    console.print(table)

    if result.errors:
        console.print(f"\n[yellow]Errors encountered: {len(result.errors)}[/yellow]")
        for error in result.errors[:20]:
            console.print(f"  - {error[:120]}")
        if len(result.errors) > 20:
            console.print(f"  ... and {len(result.errors) - 20} more")

    if args.show_unmatched and result.unmatched_players:
        names = sorted({name for pair in result.unmatched_players.values() for name in pair.values()})
        console.print(f"\n[bold]Unmatched players ({len(names)}):[/bold]")
        for name in names:
            console.print(f"  {name}")


if __name__ == '__main__':
    asyncio.run(main())
