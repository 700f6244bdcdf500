"""
Team statistics repository backed by CSV files.

One CSV per league under the data directory:

    nba_team_stats.csv   team, ppg, allowed, fg_pct, rebound_margin, turnover_margin
    nfl_team_stats.csv   team, ppg, allowed, off_yards, def_yards, turnover_diff

Blank cells load as ``None`` (insufficient data), never as zero.  College
sports read the table of their professional counterpart.

The loaded tables are an immutable snapshot; ``reload()`` builds a new one
and swaps it in with a single attribute assignment, so concurrent readers
always see either the old or the new snapshot in full.
"""

from __future__ import annotations

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Union

import pandas as pd

from backend.core.sport_config import SPORT_ID_NBA, SPORT_ID_NFL, SportConfig
from backend.core.team_stats import BasketballTeamStats, FootballTeamStats, TeamStats
from backend.services.team_mapping import ResolvedTeam, resolve_team

logger = logging.getLogger(__name__)

NBA_COLUMNS: Dict[str, str] = {
    "team": "team",
    "ppg": "points_per_game",
    "allowed": "points_allowed",
    "fg_pct": "field_goal_pct",
    "rebound_margin": "rebound_margin",
    "turnover_margin": "turnover_margin",
}

NFL_COLUMNS: Dict[str, str] = {
    "team": "team",
    "ppg": "points_per_game",
    "allowed": "points_allowed",
    "off_yards": "offensive_yards",
    "def_yards": "defensive_yards",
    "turnover_diff": "turnover_diff",
}

# team table id -> (file name, column map, record type)
STATS_FILES = {
    SPORT_ID_NBA: ("nba_team_stats.csv", NBA_COLUMNS, BasketballTeamStats),
    SPORT_ID_NFL: ("nfl_team_stats.csv", NFL_COLUMNS, FootballTeamStats),
}

MIN_PARTIAL_LENGTH = 3

Snapshot = Mapping[str, Mapping[str, TeamStats]]


def read_stats_csv(
    path: Union[str, Path], columns: Mapping[str, str], factory: Callable[..., TeamStats]
) -> Dict[str, TeamStats]:
    """
    Parse one stats CSV into ``{team name: stats}``.

    Raises:
        ValueError: If a required column is absent.
    """
    df = pd.read_csv(path)
    df.columns = [str(c).strip().lower() for c in df.columns]
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise ValueError(f"{path}: missing columns {missing}")

    df = df[list(columns)].rename(columns=columns)
    df = df.dropna(subset=["team"])
    for column in df.columns:
        if column != "team":
            df[column] = pd.to_numeric(df[column], errors="coerce")
    df = df.astype(object).where(df.notna(), None)

    records: Dict[str, TeamStats] = {}
    for row in df.to_dict(orient="records"):
        team = str(row.pop("team")).strip()
        values = {k: (float(v) if v is not None else None) for k, v in row.items()}
        records[team] = factory(team=team, **values)
    return records


class StatsRepository:
    """Read-only ``lookup(team, sport)`` over the latest stats snapshot."""

    def __init__(
        self,
        tables: Optional[Mapping[str, Mapping[str, TeamStats]]] = None,
        data_dir: Optional[Union[str, Path]] = None,
    ):
        self.data_dir = Path(data_dir) if data_dir is not None else None
        self._snapshot: Snapshot = self._freeze(tables or {})

    @staticmethod
    def _freeze(tables: Mapping[str, Mapping[str, TeamStats]]) -> Snapshot:
        return MappingProxyType({k: MappingProxyType(dict(v)) for k, v in tables.items()})

    @classmethod
    def from_csv_dir(cls, path: Union[str, Path]) -> "StatsRepository":
        repo = cls(data_dir=path)
        repo.reload()
        return repo

    def load_csv_dir(self, path: Union[str, Path]) -> Dict[str, int]:
        """Load every known stats file under ``path`` and swap the snapshot in."""
        directory = Path(path)
        tables: Dict[str, Dict[str, TeamStats]] = {}
        for table_id, (filename, columns, factory) in STATS_FILES.items():
            file_path = directory / filename
            if not file_path.exists():
                logger.warning("Stats file not found: %s (%s left empty)", file_path, table_id)
                tables[table_id] = {}
                continue
            tables[table_id] = read_stats_csv(file_path, columns, factory)

        self._snapshot = self._freeze(tables)
        self.data_dir = directory
        counts = {table_id: len(rows) for table_id, rows in tables.items()}
        logger.info("Loaded team stats from %s: %s", directory, counts)
        return counts

    def reload(self) -> Dict[str, int]:
        if self.data_dir is None:
            raise ValueError("StatsRepository has no data directory to reload from")
        return self.load_csv_dir(self.data_dir)

    def _table(self, sport: str) -> Mapping[str, TeamStats]:
        return self._snapshot.get(SportConfig.for_sport(sport).team_table, {})

    def teams(self, sport: str) -> List[str]:
        return sorted(self._table(sport))

    def lookup(self, name_or_alias: str, sport: str) -> Optional[TeamStats]:
        """
        Stats for a team, or None if the team has no row.

        Tries an exact case-insensitive name, then the canonical name from
        team resolution, then partial containment.
        """
        table = self._table(sport)
        key = (name_or_alias or "").strip().lower()
        if not key or not table:
            return None

        by_lower = {team.lower(): stats for team, stats in table.items()}
        if key in by_lower:
            return by_lower[key]

        resolved = resolve_team(name_or_alias, sport)
        if isinstance(resolved, ResolvedTeam):
            canonical = resolved.team.full_name.lower()
            if canonical in by_lower:
                return by_lower[canonical]

        if len(key) >= MIN_PARTIAL_LENGTH:
            for team_lower, stats in by_lower.items():
                if key in team_lower or team_lower in key:
                    return stats
        return None
