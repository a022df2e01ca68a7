"""RunSync Configuration Settings"""
from pathlib import Path
from dotenv import load_dotenv
import os

# Load environment variables
load_dotenv()

# Project Info
PROJECT_NAME = "RunSync"
VERSION = "1.4.0"

# Paths
BASE_DIR = Path(__file__).resolve().parent.parent

# Database
# Environment detection: local vs production
USE_LOCAL_SUPABASE = os.getenv("USE_LOCAL_SUPABASE", "false").lower() == "true"

if USE_LOCAL_SUPABASE:
    # Local Supabase instance (for development/testing)
    SUPABASE_URL = os.getenv("SUPABASE_URL", "http://localhost:54321")
    SUPABASE_KEY = os.getenv("SUPABASE_KEY")
    SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
else:
    SUPABASE_URL = os.getenv("SUPABASE_URL")
    SUPABASE_KEY = os.getenv("SUPABASE_KEY")
    SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

# Table names
TABLES = {
    'entries': os.getenv("ENTRIES_TABLE", "leaderboard_entries"),
    'players': os.getenv("PLAYERS_TABLE", "players"),
    'categories': os.getenv("CATEGORIES_TABLE", "categories"),
    'platforms': os.getenv("PLATFORMS_TABLE", "platforms"),
    'levels': os.getenv("LEVELS_TABLE", "levels"),
}

# External service (speedrun.com REST API v1)
SPEEDRUNCOM_CONFIG = {
    'base_url': os.getenv("SRC_API_BASE_URL", "https://www.speedrun.com/api/v1"),
    'game_id': os.getenv("SRC_GAME_ID", ""),  # skips the abbreviation lookup when set
    'game_abbreviation': os.getenv("SRC_GAME_ABBREVIATION", "lsw1"),
    'timeout': int(os.getenv("SRC_API_TIMEOUT", 30)),
    'page_size': int(os.getenv("SRC_API_PAGE_SIZE", 200)),  # API hard max is 200
    'max_retries': int(os.getenv("SRC_API_MAX_RETRIES", 3)),
    'backoff_factor': float(os.getenv("SRC_API_BACKOFF", 0.5)),
    'user_agent': os.getenv("SRC_API_USER_AGENT", "RunSync/1.4 (+leaderboard import)"),
}

# Import Configuration
IMPORT_CONFIG = {
    'fetch_limit': int(os.getenv("IMPORT_FETCH_LIMIT", 1000)),
    'batch_size': int(os.getenv("IMPORT_BATCH_SIZE", 200)),
    'lookup_concurrency': int(os.getenv("IMPORT_LOOKUP_CONCURRENCY", 10)),
    'run_autoclaim': os.getenv("IMPORT_RUN_AUTOCLAIM", "true").lower() in ("true", "1", "yes"),
}

# Matching Configuration
# Similarity floors are tuned against the positional similarity in
# src/utils/name_normalizer.py; changing the metric means re-tuning these.
MATCHING_CONFIG = {
    'category_similarity_floor': 0.80,
    'level_similarity_floor': 0.80,
    'platform_similarity_floor': 0.85,
    'category_min_key_length': 4,
    'level_min_key_length': 4,
    'platform_min_key_length': 3,
}

# Maintenance Configuration
MAINTENANCE_CONFIG = {
    'write_batch_size': 500,
    'page_size': 1000,
}

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = BASE_DIR / "logs"
LOG_DIR.mkdir(exist_ok=True)
