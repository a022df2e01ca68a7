"""speedrun.com REST API v1 client"""
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from typing import Dict, List, Optional
import logging

from config.settings import SPEEDRUNCOM_CONFIG
from src.base import ExternalRun, ExternalCategory, ExternalLevel
from src.providers.speedruncom_parser import parse_runs, parse_category, parse_level
from src.utils.import_exceptions import ConfigError, ExternalServiceError

logger = logging.getLogger(__name__)


class SpeedrunComClient:
    """Client for the speedrun.com endpoints used by the importer"""

    RUN_EMBEDS = "players,category,level,platform"

    def __init__(self, session: Optional[requests.Session] = None, config: Optional[Dict] = None):
        """
        Initialize the speedrun.com client

        Args:
            session: Optional requests.Session to reuse. If None, creates a new session.
            config: Overrides for SPEEDRUNCOM_CONFIG
        """
        self.config = {**SPEEDRUNCOM_CONFIG, **(config or {})}
        self.base_url = self.config['base_url'].rstrip('/')
        self.timeout = self.config['timeout']
        self.session = session or self._init_http_session()

    def _init_http_session(self) -> requests.Session:
        """
        Initialize HTTP session with retry logic

        Returns:
            Configured requests.Session
        """
        session = requests.Session()

        # speedrun.com rate limits at 100 req/min and answers 420 when exceeded
        adapter = HTTPAdapter(
            pool_connections=10,
            pool_maxsize=10,
            max_retries=Retry(
                total=self.config['max_retries'],
                backoff_factor=self.config['backoff_factor'],
                status_forcelist=[420, 429, 500, 502, 503, 504],
                allowed_methods=["GET", "HEAD"]
            )
        )
        session.mount("https://", adapter)
        session.mount("http://", adapter)

        session.headers.update({
            'User-Agent': self.config['user_agent'],
            'Accept': 'application/json',
        })
        return session

    def _get(self, path: str, params: Optional[Dict] = None, operation: str = "request") -> Dict:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else 'unknown'
            logger.error(f"HTTP error during {operation} ({url}): status {status}")
            raise ExternalServiceError(operation, f"HTTP {status}") from e
        except requests.RequestException as e:
            logger.error(f"Network error during {operation} ({url}): {e}")
            raise ExternalServiceError(operation, str(e)) from e
        except ValueError as e:
            logger.error(f"Invalid JSON during {operation} ({url}): {e}")
            raise ExternalServiceError(operation, "invalid JSON response") from e

    def resolve_game_id(self) -> str:
        """
        Return the external game id, looking it up by abbreviation when no id is configured

        Raises:
            ConfigError: If neither an id nor an abbreviation is configured, or the lookup finds nothing
            ExternalServiceError: If the lookup request fails
        """
        if self.config.get('game_id'):
            return self.config['game_id']

        abbreviation = self.config.get('game_abbreviation')
        if not abbreviation:
            raise ConfigError("No speedrun.com game id or abbreviation configured")

        payload = self._get('/games', params={'abbreviation': abbreviation}, operation="game lookup")
        games = payload.get('data') or []
        if not games:
            raise ConfigError(
                f"No speedrun.com game found for abbreviation '{abbreviation}'",
                "Could not find the game on speedrun.com"
            )
        game_id = games[0].get('id')
        logger.info(f"Resolved speedrun.com game '{abbreviation}' -> {game_id}")
        return game_id

    def fetch_candidate_runs(self, game_id: str, limit: int) -> List[ExternalRun]:
        """
        Fetch up to `limit` most recently submitted runs with players, category,
        level and platform embedded.
        """
        page_size = min(self.config['page_size'], 200)
        runs: List[ExternalRun] = []
        offset = 0

        while len(runs) < limit:
            params = {
                'game': game_id,
                'orderby': 'submitted',
                'direction': 'desc',
                'max': min(page_size, limit - len(runs)),
                'offset': offset,
                'embed': self.RUN_EMBEDS,
            }
            payload = self._get('/runs', params=params, operation="run fetch")
            data = payload.get('data') or []
            if not data:
                break

            runs.extend(parse_runs(data))
            offset += len(data)
            logger.debug(f"Fetched {len(data)} runs (total {len(runs)})")

            if len(data) < params['max']:
                break

        return runs[:limit]

    def fetch_categories(self, game_id: str) -> List[ExternalCategory]:
        payload = self._get(f'/games/{game_id}/categories', operation="category fetch")
        return [parse_category(raw) for raw in payload.get('data') or []]

    def fetch_levels(self, game_id: str) -> List[ExternalLevel]:
        payload = self._get(f'/games/{game_id}/levels', operation="level fetch")
        return [parse_level(raw) for raw in payload.get('data') or []]

    def fetch_platform_name(self, platform_id: str) -> Optional[str]:
        """Name of a platform, or None if it cannot be fetched"""
        try:
            payload = self._get(f'/platforms/{platform_id}', operation="platform fetch")
        except ExternalServiceError as e:
            logger.warning(f"Failed to fetch platform {platform_id}: {e}")
            return None
        data = payload.get('data') if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            logger.warning(f"Unexpected platform payload for {platform_id}")
            return None
        names = data.get('names')
        name = data.get('name') or (names.get('international') if isinstance(names, dict) else None)
        return name.strip() if isinstance(name, str) and name.strip() else None
