"""Base classes for RunSync components"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass, asdict

RUN_TYPES = ('solo', 'co-op')
LEADERBOARD_TYPES = ('regular', 'individual-level', 'community-golds')


@dataclass(frozen=True)
class ExternalRun:
    """Standardized run record as parsed from the external service.

    Only the ingestion parser builds these; downstream code never sees the
    raw API payload.
    """
    run_id: str
    player_names: Tuple[str, ...]
    category_id: str = ""
    category_name: str = ""
    category_type: str = ""
    level_id: str = ""
    level_name: str = ""
    platform_id: str = ""
    platform_name: str = ""
    primary_time: str = ""
    primary_seconds: Optional[float] = None
    date: Optional[str] = None
    submitted: Optional[str] = None

    @property
    def is_coop(self) -> bool:
        return len(self.player_names) >= 2


@dataclass(frozen=True)
class ExternalCategory:
    id: str
    name: str
    type: str = "per-game"


@dataclass(frozen=True)
class ExternalLevel:
    id: str
    name: str


@dataclass(frozen=True)
class CatalogEntry:
    """Internal category, platform or level row"""
    id: str
    name: str
    leaderboard_type: str = "regular"


@dataclass(frozen=True)
class Player:
    uid: str
    display_name: str
    external_username: Optional[str] = None


@dataclass
class LeaderboardEntry:
    """Standardized leaderboard entry structure (one row of leaderboard_entries)"""
    player_name: str = ""
    category: str = ""
    platform: str = ""
    level: str = ""
    run_type: str = "solo"
    leaderboard_type: str = "regular"
    time: str = ""
    date: str = ""
    player_id: str = ""
    player2_name: Optional[str] = None
    verified: bool = False
    imported_from_external: bool = False
    external_run_id: Optional[str] = None
    external_player_name: Optional[str] = None
    external_player2_name: Optional[str] = None
    external_category_name: Optional[str] = None
    external_platform_name: Optional[str] = None
    external_level_name: Optional[str] = None
    submitted_at: Optional[str] = None
    id: Optional[str] = None

    def to_record(self) -> Dict:
        """Row payload for insert; drops the store-assigned id"""
        record = asdict(self)
        record.pop('id', None)
        return record

    @classmethod
    def from_record(cls, row: Dict) -> 'LeaderboardEntry':
        known = set(cls.__dataclass_fields__)
        values = {key: value for key, value in row.items() if key in known}
        # Nullable text columns come back as None from the store
        for key in ('player_name', 'category', 'platform', 'level', 'time', 'date', 'player_id'):
            if values.get(key) is None:
                values[key] = ""
        return cls(**values)


@dataclass
class ValidationIssue:
    """Single validation finding"""
    severity: str  # 'critical' or 'warning'
    message: str

    @property
    def is_critical(self) -> bool:
        return self.severity == 'critical'


class BaseValidator(ABC):
    """Base class for data validators"""

    @abstractmethod
    def validate(self, data) -> List[ValidationIssue]:
        """Validate data, return the list of issues found"""
        pass
