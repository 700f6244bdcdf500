"""
Team tables and free-text team resolution.
This is the single source of truth for team name normalization.

The alias index is partitioned by sport so that shared nicknames and cities
("hawks", "philadelphia", "hou") resolve within the hinted league first.
College partitions reuse the professional table of the same category.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Tuple, Union

from rapidfuzz import fuzz, process

from backend.core.sport_config import (
    AMBIGUOUS_SPORT_DEFAULT,
    SPORT_ID_NBA,
    SPORT_ID_NCAAB,
    SPORT_ID_NCAAF,
    SPORT_ID_NFL,
    SportConfig,
)
from backend.services.errors import MalformedAliasTableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TeamInfo:
    name: str
    city: str
    abbreviation: str
    aliases: Tuple[str, ...]
    home_venue: str
    home_city: str

    @property
    def full_name(self) -> str:
        """Canonical display name, e.g. ``"Houston Rockets"``."""
        return f"{self.city} {self.name}"


def _team(name, city, abbreviation, aliases, home_venue, home_city) -> TeamInfo:
    return TeamInfo(name, city, abbreviation, tuple(aliases), home_venue, home_city)


# ---------------------------------------------------------------------------
# NFL
# ---------------------------------------------------------------------------
NFL_TEAMS: Tuple[TeamInfo, ...] = (
    # AFC East
    _team("Bills", "Buffalo", "BUF", ["buffalo", "bills", "buf"], "Highmark Stadium", "Buffalo"),
    _team("Dolphins", "Miami", "MIA", ["miami", "dolphins", "fins", "mia"], "Hard Rock Stadium", "Miami"),
    _team("Patriots", "New England", "NE", ["new england", "patriots", "pats", "ne", "boston"], "Gillette Stadium", "Foxborough"),
    _team("Jets", "New York", "NYJ", ["jets", "nyj", "ny jets", "new york jets"], "MetLife Stadium", "East Rutherford"),
    # AFC North
    _team("Ravens", "Baltimore", "BAL", ["baltimore", "ravens", "bal"], "M&T Bank Stadium", "Baltimore"),
    _team("Bengals", "Cincinnati", "CIN", ["cincinnati", "bengals", "cincy", "cin"], "Paycor Stadium", "Cincinnati"),
    _team("Browns", "Cleveland", "CLE", ["cleveland", "browns", "cle"], "Cleveland Browns Stadium", "Cleveland"),
    _team("Steelers", "Pittsburgh", "PIT", ["pittsburgh", "steelers", "pit"], "Acrisure Stadium", "Pittsburgh"),
    # AFC South
    _team("Texans", "Houston", "HOU", ["houston", "texans", "hou"], "NRG Stadium", "Houston"),
    _team("Colts", "Indianapolis", "IND", ["indianapolis", "colts", "indy", "ind"], "Lucas Oil Stadium", "Indianapolis"),
    _team("Jaguars", "Jacksonville", "JAX", ["jacksonville", "jaguars", "jags", "jax"], "EverBank Stadium", "Jacksonville"),
    _team("Titans", "Tennessee", "TEN", ["tennessee", "titans", "ten", "nashville"], "Nissan Stadium", "Nashville"),
    # AFC West
    _team("Broncos", "Denver", "DEN", ["denver", "broncos", "den"], "Empower Field", "Denver"),
    _team("Chiefs", "Kansas City", "KC", ["kansas city", "chiefs", "kc"], "Arrowhead Stadium", "Kansas City"),
    _team("Raiders", "Las Vegas", "LV", ["las vegas", "raiders", "lv", "vegas"], "Allegiant Stadium", "Las Vegas"),
    _team("Chargers", "Los Angeles", "LAC", ["chargers", "lac", "la chargers", "los angeles chargers", "san diego"], "SoFi Stadium", "Los Angeles"),
    # NFC East
    _team("Cowboys", "Dallas", "DAL", ["dallas", "cowboys", "dal", "boys"], "AT&T Stadium", "Arlington"),
    _team("Giants", "New York", "NYG", ["giants", "nyg", "ny giants", "new york giants"], "MetLife Stadium", "East Rutherford"),
    _team("Eagles", "Philadelphia", "PHI", ["philadelphia", "eagles", "phi", "philly"], "Lincoln Financial Field", "Philadelphia"),
    _team("Commanders", "Washington", "WAS", ["washington", "commanders", "was", "skins", "redskins"], "Commanders Field", "Landover"),
    # NFC North
    _team("Bears", "Chicago", "CHI", ["chicago", "bears", "chi"], "Soldier Field", "Chicago"),
    _team("Lions", "Detroit", "DET", ["detroit", "lions", "det"], "Ford Field", "Detroit"),
    _team("Packers", "Green Bay", "GB", ["green bay", "packers", "gb", "pack"], "Lambeau Field", "Green Bay"),
    _team("Vikings", "Minnesota", "MIN", ["minnesota", "vikings", "min", "vikes"], "U.S. Bank Stadium", "Minneapolis"),
    # NFC South
    _team("Falcons", "Atlanta", "ATL", ["atlanta", "falcons", "atl"], "Mercedes-Benz Stadium", "Atlanta"),
    _team("Panthers", "Carolina", "CAR", ["carolina", "panthers", "car", "charlotte"], "Bank of America Stadium", "Charlotte"),
    _team("Saints", "New Orleans", "NO", ["new orleans", "saints", "no", "nola"], "Caesars Superdome", "New Orleans"),
    _team("Buccaneers", "Tampa Bay", "TB", ["tampa bay", "buccaneers", "bucs", "tb", "tampa"], "Raymond James Stadium", "Tampa"),
    # NFC West
    _team("Cardinals", "Arizona", "ARI", ["arizona", "cardinals", "ari", "cards", "phoenix"], "State Farm Stadium", "Glendale"),
    _team("Rams", "Los Angeles", "LAR", ["rams", "lar", "la rams", "los angeles rams"], "SoFi Stadium", "Los Angeles"),
    _team("49ers", "San Francisco", "SF", ["san francisco", "49ers", "niners", "sf"], "Levi's Stadium", "Santa Clara"),
    _team("Seahawks", "Seattle", "SEA", ["seattle", "seahawks", "sea", "hawks"], "Lumen Field", "Seattle"),
)

# ---------------------------------------------------------------------------
# NBA
# ---------------------------------------------------------------------------
NBA_TEAMS: Tuple[TeamInfo, ...] = (
    # Atlantic
    _team("Celtics", "Boston", "BOS", ["boston", "celtics", "bos"], "TD Garden", "Boston"),
    _team("Nets", "Brooklyn", "BKN", ["brooklyn", "nets", "bkn"], "Barclays Center", "Brooklyn"),
    _team("Knicks", "New York", "NYK", ["new york", "knicks", "nyk"], "Madison Square Garden", "New York"),
    _team("76ers", "Philadelphia", "PHI", ["philadelphia", "76ers", "sixers", "phi", "philly"], "Wells Fargo Center", "Philadelphia"),
    _team("Raptors", "Toronto", "TOR", ["toronto", "raptors", "tor"], "Scotiabank Arena", "Toronto"),
    # Central
    _team("Bulls", "Chicago", "CHI", ["chicago", "bulls", "chi"], "United Center", "Chicago"),
    _team("Cavaliers", "Cleveland", "CLE", ["cleveland", "cavaliers", "cavs", "cle"], "Rocket Mortgage FieldHouse", "Cleveland"),
    _team("Pistons", "Detroit", "DET", ["detroit", "pistons", "det"], "Little Caesars Arena", "Detroit"),
    _team("Pacers", "Indiana", "IND", ["indiana", "pacers", "ind", "indianapolis"], "Gainbridge Fieldhouse", "Indianapolis"),
    _team("Bucks", "Milwaukee", "MIL", ["milwaukee", "bucks", "mil"], "Fiserv Forum", "Milwaukee"),
    # Southeast
    _team("Hawks", "Atlanta", "ATL", ["atlanta", "hawks", "atl"], "State Farm Arena", "Atlanta"),
    _team("Hornets", "Charlotte", "CHA", ["charlotte", "hornets", "cha"], "Spectrum Center", "Charlotte"),
    _team("Heat", "Miami", "MIA", ["miami", "heat", "mia"], "Kaseya Center", "Miami"),
    _team("Magic", "Orlando", "ORL", ["orlando", "magic", "orl"], "Amway Center", "Orlando"),
    _team("Wizards", "Washington", "WAS", ["washington", "wizards", "was"], "Capital One Arena", "Washington"),
    # Northwest
    _team("Nuggets", "Denver", "DEN", ["denver", "nuggets", "den"], "Ball Arena", "Denver"),
    _team("Timberwolves", "Minnesota", "MIN", ["minnesota", "timberwolves", "wolves", "min", "twolves"], "Target Center", "Minneapolis"),
    _team("Thunder", "Oklahoma City", "OKC", ["oklahoma city", "thunder", "okc"], "Paycom Center", "Oklahoma City"),
    _team("Trail Blazers", "Portland", "POR", ["portland", "trail blazers", "blazers", "por"], "Moda Center", "Portland"),
    _team("Jazz", "Utah", "UTA", ["utah", "jazz", "uta", "salt lake"], "Delta Center", "Salt Lake City"),
    # Pacific
    _team("Warriors", "Golden State", "GSW", ["golden state", "warriors", "gsw", "gs", "dubs", "san francisco"], "Chase Center", "San Francisco"),
    _team("Clippers", "Los Angeles", "LAC", ["clippers", "lac", "la clippers"], "Intuit Dome", "Inglewood"),
    _team("Lakers", "Los Angeles", "LAL", ["lakers", "lal", "la lakers"], "Crypto.com Arena", "Los Angeles"),
    _team("Suns", "Phoenix", "PHX", ["phoenix", "suns", "phx"], "Footprint Center", "Phoenix"),
    _team("Kings", "Sacramento", "SAC", ["sacramento", "kings", "sac"], "Golden 1 Center", "Sacramento"),
    # Southwest
    _team("Mavericks", "Dallas", "DAL", ["dallas", "mavericks", "mavs", "dal"], "American Airlines Center", "Dallas"),
    _team("Rockets", "Houston", "HOU", ["houston", "rockets", "hou"], "Toyota Center", "Houston"),
    _team("Grizzlies", "Memphis", "MEM", ["memphis", "grizzlies", "grizz", "mem"], "FedExForum", "Memphis"),
    _team("Pelicans", "New Orleans", "NOP", ["new orleans", "pelicans", "pels", "nop", "nola"], "Smoothie King Center", "New Orleans"),
    _team("Spurs", "San Antonio", "SAS", ["san antonio", "spurs", "sas"], "Frost Bank Center", "San Antonio"),
)


# ---------------------------------------------------------------------------
# Alias index
# ---------------------------------------------------------------------------

MATCH_EXACT = "exact"
MATCH_CONTAINS = "contains"
MATCH_FUZZY = "fuzzy"

_MATCH_RANK = {MATCH_EXACT: 3, MATCH_CONTAINS: 2, MATCH_FUZZY: 1}

CONTAINS_CONFIDENCE = 0.97
MIN_CONTAINS_LENGTH = 3

# Fuzzy fallback: rapidfuzz ratio on a 0-100 scale.  A match is rejected when
# a *different* team scores within FUZZY_MIN_GAP of the best.
FUZZY_SCORE_CUTOFF = 85
FUZZY_MIN_GAP = 20

MAX_SUGGESTIONS = 5
MAX_SUGGESTIONS_PER_SPORT = 3
SUGGESTION_PARTIAL_CUTOFF = 80

# Partitions scanned when the caller gives no sport hint.  College sports
# share these tables, so scanning them again adds nothing.
UNHINTED_PARTITIONS: Tuple[str, ...] = (SPORT_ID_NBA, SPORT_ID_NFL)

_FALLBACK_EXAMPLES = {
    SPORT_ID_NBA: "HOU, LAL, NYK",
    SPORT_ID_NFL: "DAL, KC, PHI",
}


@dataclass(frozen=True)
class AliasEntry:
    alias: str
    team: TeamInfo
    sport: str
    is_abbreviation: bool = False


@dataclass(frozen=True)
class ResolvedTeam:
    team: TeamInfo
    sport: str
    matched_alias: str
    match_type: str
    confidence: float

    @property
    def success(self) -> bool:
        return True

    @property
    def name(self) -> str:
        return self.team.full_name

    @property
    def rank(self) -> Tuple[int, float]:
        """Sort key: match type first, then confidence."""
        return _MATCH_RANK[self.match_type], self.confidence


@dataclass(frozen=True)
class TeamNotFound:
    query: str
    reason: str
    suggestions: Tuple[str, ...] = ()

    @property
    def success(self) -> bool:
        return False


TeamResolution = Union[ResolvedTeam, TeamNotFound]


def normalize_alias(text: str) -> str:
    """Lowercase, replace non-alphanumerics with spaces, collapse whitespace."""
    lowered = re.sub(r"[^a-z0-9\s]", " ", (text or "").lower())
    return re.sub(r"\s+", " ", lowered).strip()


def _build_alias_index(
    teams: Tuple[TeamInfo, ...], sport: str
) -> Mapping[str, Tuple[AliasEntry, ...]]:
    index: Dict[str, List[AliasEntry]] = {}
    for team in teams:
        if not team.abbreviation or not team.name or not team.city:
            raise MalformedAliasTableError(
                f"{sport} team {team!r} is missing a name, city or abbreviation"
            )
        abbreviation = normalize_alias(team.abbreviation)
        seen = set()
        for raw in (team.name, team.city, team.abbreviation, team.full_name, *team.aliases):
            alias = normalize_alias(raw)
            if not alias:
                raise MalformedAliasTableError(
                    f"{sport} team {team.full_name!r} has an empty alias {raw!r}"
                )
            if alias in seen:
                continue
            seen.add(alias)
            index.setdefault(alias, []).append(
                AliasEntry(alias, team, sport, is_abbreviation=alias == abbreviation)
            )
    return MappingProxyType({alias: tuple(entries) for alias, entries in index.items()})


_TEAM_TABLES: Mapping[str, Tuple[TeamInfo, ...]] = MappingProxyType({
    SPORT_ID_NFL: NFL_TEAMS,
    SPORT_ID_NBA: NBA_TEAMS,
})

_ALIAS_INDEX: Mapping[str, Mapping[str, Tuple[AliasEntry, ...]]] = MappingProxyType({
    SPORT_ID_NFL: _build_alias_index(NFL_TEAMS, SPORT_ID_NFL),
    SPORT_ID_NCAAF: _build_alias_index(NFL_TEAMS, SPORT_ID_NCAAF),
    SPORT_ID_NBA: _build_alias_index(NBA_TEAMS, SPORT_ID_NBA),
    SPORT_ID_NCAAB: _build_alias_index(NBA_TEAMS, SPORT_ID_NCAAB),
})


def teams_for_sport(sport: str) -> Tuple[TeamInfo, ...]:
    """Team table for ``sport``; empty for sports without one (hockey)."""
    table = SportConfig.for_sport(sport).team_table
    return _TEAM_TABLES.get(table, ())


def iter_aliases(sport: Optional[str] = None) -> Iterator[AliasEntry]:
    """Yield every alias entry for ``sport``, or for the unhinted partitions."""
    partitions = (sport,) if sport else UNHINTED_PARTITIONS
    for partition in partitions:
        for entries in _ALIAS_INDEX.get(partition, {}).values():
            yield from entries


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def _distinct_teams(entries) -> List[AliasEntry]:
    seen = set()
    distinct = []
    for entry in entries:
        if entry.team.abbreviation not in seen:
            seen.add(entry.team.abbreviation)
            distinct.append(entry)
    return distinct


def _ambiguous(query: str, entries) -> TeamNotFound:
    names = ", ".join(e.team.full_name for e in entries)
    return TeamNotFound(
        query=query,
        reason=f'Ambiguous team reference "{query}" could be {names}. Please specify the exact team name.',
        suggestions=tuple(_format_suggestion(e.team, e.sport) for e in entries),
    )


def _resolve_in_partition(query: str, normalized: str, sport: str) -> TeamResolution:
    index = _ALIAS_INDEX.get(sport)
    if not index:
        return TeamNotFound(query, f"No team table is available for {sport.upper()}.")

    # 1. Exact alias
    exact = _distinct_teams(index.get(normalized, ()))
    if len(exact) > 1:
        return _ambiguous(query, exact)
    if exact:
        entry = exact[0]
        return ResolvedTeam(entry.team, sport, entry.alias, MATCH_EXACT, 1.0)

    # 2a. Input contains an alias as whole words; longest alias wins.
    contained = [
        entries
        for alias, entries in index.items()
        if len(alias) >= MIN_CONTAINS_LENGTH
        and re.search(rf"\b{re.escape(alias)}\b", normalized)
    ]
    if contained:
        longest = max(len(entries[0].alias) for entries in contained)
        best = _distinct_teams(
            e for entries in contained if len(entries[0].alias) == longest for e in entries
        )
        if len(best) > 1:
            return _ambiguous(query, best)
        entry = best[0]
        return ResolvedTeam(entry.team, sport, entry.alias, MATCH_CONTAINS, CONTAINS_CONFIDENCE)

    # 2b. An alias contains the input at a word start.
    if len(normalized) >= MIN_CONTAINS_LENGTH:
        prefix = re.compile(rf"\b{re.escape(normalized)}")
        partial = _distinct_teams(
            e for alias, entries in index.items() if prefix.search(alias) for e in entries
        )
        if len(partial) > 1:
            return _ambiguous(query, partial)
        if partial:
            entry = partial[0]
            return ResolvedTeam(entry.team, sport, entry.alias, MATCH_CONTAINS, CONTAINS_CONFIDENCE)

    # 3. Fuzzy fallback
    scored = process.extract(
        normalized,
        list(index),
        scorer=fuzz.ratio,
        score_cutoff=FUZZY_SCORE_CUTOFF - FUZZY_MIN_GAP,
        limit=None,
    )
    if scored and scored[0][1] >= FUZZY_SCORE_CUTOFF:
        best_alias, best_score, _ = scored[0]
        best_entries = _distinct_teams(index[best_alias])
        if len(best_entries) > 1:
            return _ambiguous(query, best_entries)
        best_team = best_entries[0].team
        for alias, score, _ in scored[1:]:
            rivals = [e for e in index[alias] if e.team is not best_team]
            if rivals and best_score - score < FUZZY_MIN_GAP:
                return _ambiguous(query, [best_entries[0], rivals[0]])
        logger.debug(
            "Fuzzy matched '%s' to '%s' (%s) with score %.1f",
            query, best_alias, sport, best_score,
        )
        return ResolvedTeam(best_team, sport, best_alias, MATCH_FUZZY, round(best_score / 100.0, 4))

    return TeamNotFound(query, f'Could not confidently resolve team "{query}".')


def resolve_team(
    text: str,
    sport_hint: Optional[str] = None,
    *,
    default_sport: str = AMBIGUOUS_SPORT_DEFAULT,
) -> TeamResolution:
    """
    Resolve a free-text team reference to a canonical team.

    Priority: exact alias, then whole-word containment, then fuzzy.  With a
    ``sport_hint`` only that partition is scanned.  Without one, the best
    match across the unhinted partitions wins and equal-quality matches in
    several leagues go to ``default_sport``.

    Returns:
        :class:`ResolvedTeam` on success, otherwise :class:`TeamNotFound`
        carrying up to five suggestions.
    """
    normalized = normalize_alias(text)
    if not normalized:
        return TeamNotFound(text or "", "Team name is empty or malformed.")

    if sport_hint:
        sport_hint = sport_hint.strip().lower()
        result = _resolve_in_partition(text, normalized, sport_hint)
        if isinstance(result, TeamNotFound) and not result.suggestions:
            return TeamNotFound(result.query, result.reason, tuple(suggest_teams(text, sport_hint)))
        return result

    results = [_resolve_in_partition(text, normalized, p) for p in UNHINTED_PARTITIONS]
    resolved = [r for r in results if isinstance(r, ResolvedTeam)]
    if not resolved:
        ambiguous = [r for r in results if r.suggestions]
        if ambiguous:
            return ambiguous[0]
        return TeamNotFound(
            text,
            f'Could not confidently resolve team "{text}".',
            tuple(suggest_teams(text)),
        )

    best_rank = max(r.rank for r in resolved)
    best = [r for r in resolved if r.rank == best_rank]
    if len(best) > 1:
        for candidate in best:
            if candidate.sport == default_sport:
                logger.debug(
                    "'%s' matches equally in %s; defaulting to %s",
                    text, [r.sport for r in best], default_sport,
                )
                return candidate
    return best[0]


def resolve_matchup_teams(
    team_a: str,
    team_b: str,
    sport_hint: Optional[str] = None,
    *,
    default_sport: str = AMBIGUOUS_SPORT_DEFAULT,
) -> Tuple[TeamResolution, TeamResolution]:
    """
    Resolve two team references that must belong to the same league.

    Without a hint, each unhinted partition is tried for the pair and the
    one where both resolve with the best combined quality wins.  If no
    partition resolves both, each name is resolved independently so the
    caller can tell which one failed (or that the leagues conflict).
    """
    if sport_hint:
        return (
            resolve_team(team_a, sport_hint, default_sport=default_sport),
            resolve_team(team_b, sport_hint, default_sport=default_sport),
        )

    norm_a, norm_b = normalize_alias(team_a), normalize_alias(team_b)
    best_pair = None
    best_score = None
    for partition in UNHINTED_PARTITIONS:
        first = _resolve_in_partition(team_a, norm_a, partition)
        second = _resolve_in_partition(team_b, norm_b, partition)
        if not (isinstance(first, ResolvedTeam) and isinstance(second, ResolvedTeam)):
            continue
        score = (
            first.rank[0] + second.rank[0],
            first.confidence + second.confidence,
            partition == default_sport,
        )
        if best_score is None or score > best_score:
            best_pair, best_score = (first, second), score

    if best_pair is not None:
        return best_pair
    return (
        resolve_team(team_a, default_sport=default_sport),
        resolve_team(team_b, default_sport=default_sport),
    )


# ---------------------------------------------------------------------------
# Suggestions
# ---------------------------------------------------------------------------


def _format_suggestion(team: TeamInfo, sport: str) -> str:
    return f"{team.full_name} ({sport.upper()})"


def fallback_suggestion(sport: Optional[str] = None) -> str:
    examples = _FALLBACK_EXAMPLES.get(
        SportConfig.for_sport(sport).team_table if sport else SPORT_ID_NBA,
        _FALLBACK_EXAMPLES[SPORT_ID_NBA],
    )
    return f"Please check team name or use abbreviation (e.g., {examples})"


def suggest_teams(term: str, sport: Optional[str] = None, limit: int = MAX_SUGGESTIONS) -> List[str]:
    """
    Teams whose name or alias partially matches ``term``.

    Substring hits come first, then rapidfuzz ``partial_ratio`` hits.  At most
    three per sport and ``limit`` overall, formatted ``"Houston Rockets (NBA)"``.
    An empty list means nothing matched; see :func:`fallback_suggestion`.
    """
    normalized = normalize_alias(term)
    if not normalized:
        return []

    suggestions: List[str] = []
    partitions = (sport,) if sport else UNHINTED_PARTITIONS
    for partition in partitions:
        index = _ALIAS_INDEX.get(partition, {})
        hits: List[TeamInfo] = []

        def add(team: TeamInfo) -> None:
            if team not in hits:
                hits.append(team)

        for alias, entries in index.items():
            if len(alias) >= MIN_CONTAINS_LENGTH and (alias in normalized or normalized in alias):
                for entry in entries:
                    add(entry.team)

        if len(hits) < MAX_SUGGESTIONS_PER_SPORT and len(normalized) >= MIN_CONTAINS_LENGTH:
            for alias, _score, _ in process.extract(
                normalized,
                list(index),
                scorer=fuzz.partial_ratio,
                score_cutoff=SUGGESTION_PARTIAL_CUTOFF,
                limit=None,
            ):
                for entry in index[alias]:
                    add(entry.team)

        suggestions.extend(
            _format_suggestion(team, partition) for team in hits[:MAX_SUGGESTIONS_PER_SPORT]
        )
    return suggestions[:limit]


# ---------------------------------------------------------------------------
# Sport and venue helpers
# ---------------------------------------------------------------------------

_SPORT_TOKENS: Tuple[Tuple[str, re.Pattern], ...] = (
    (SPORT_ID_NFL, re.compile(r"\bnfl\b", re.IGNORECASE)),
    (SPORT_ID_NBA, re.compile(r"\bnba\b", re.IGNORECASE)),
    (SPORT_ID_NCAAF, re.compile(r"\bcfb\b|\bcollege football\b|\bncaa football\b", re.IGNORECASE)),
    (
        SPORT_ID_NCAAB,
        re.compile(
            r"\bcbb\b|\bcollege basketball\b|\bncaa basketball\b|\bmarch madness\b",
            re.IGNORECASE,
        ),
    ),
)


def detect_sport(text: str) -> Optional[str]:
    """Sport named by an explicit league token in ``text``, else None."""
    for sport, pattern in _SPORT_TOKENS:
        if pattern.search(text or ""):
            return sport
    return None


def is_home_venue(location: str, team: TeamInfo) -> bool:
    """True if ``location`` names the team's home city, venue or city."""
    venue = (location or "").lower().strip()
    if not venue:
        return False
    home_terms = (team.home_city.lower(), team.home_venue.lower(), team.city.lower())
    return any(
        term in venue or (len(venue) >= MIN_CONTAINS_LENGTH and venue in term)
        for term in home_terms
    )
