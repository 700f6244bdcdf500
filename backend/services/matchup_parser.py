"""
Natural-language matchup parser.

Turns a free-text betting request such as::

    "Lakers -5.5 at Celtics, I'm taking the Celtics"

into a :class:`ParsedMatchup`: sport, the two teams (the user's pick first),
the spread from the pick's perspective, venue and odds.

The parser is a fixed sequence of independent passes.  Every pass reads the
full original text; nothing is consumed or stripped between passes.  Each
assumption made along the way (inferred sport, default pick, assumed venue,
missing odds) is recorded in ``parsing_notes``.

Failures are returned, not raised, as a :class:`ParsingResult` with one of
the ``REASON_*`` codes from :mod:`backend.services.errors` and the list of
facts the user needs to clarify.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from backend.core.sport_config import AMBIGUOUS_SPORT_DEFAULT, sport_category
from backend.services.errors import (
    REASON_SAME_TEAM_TWICE,
    REASON_SPORT_UNDETERMINED,
    REASON_SPREAD_UNPARSEABLE,
    REASON_TEAMS_NOT_IDENTIFIED,
)
from backend.services.messages import DEFAULT_LOCALE, format_points, t
from backend.services.team_mapping import (
    MATCH_FUZZY,
    UNHINTED_PARTITIONS,
    ResolvedTeam,
    TeamInfo,
    detect_sport,
    is_home_venue,
    iter_aliases,
    normalize_alias,
    resolve_matchup_teams,
)

logger = logging.getLogger(__name__)

VENUE_HOME = "home"
VENUE_AWAY = "away"
VENUE_NEUTRAL = "neutral"

DEFAULT_AMERICAN_ODDS = -110

MIN_SPREAD_MAGNITUDE = 0.5
MAX_SPREAD_MAGNITUDE = 50.0
MIN_ODDS_MAGNITUDE = 100

#: Characters allowed between a team reference and a home/away keyword.
VENUE_PROXIMITY_CHARS = 40

# Short aliases that are also everyday words; never treated as a team
# mention when scanning running text.
MENTION_STOPWORDS = frozenset({"no", "was", "ten", "car", "sea", "min", "den", "pack", "boys"})

_NAME = r"[a-z0-9\s.'+\-]{2,40}?"
_NAME_END = r"(?=,|\.(?!\d)|;|\(|$)"

_LEAGUE_PREFIX = re.compile(
    r"^\s*(?:nba|nfl|cbb|cfb|ncaab|ncaaf)\s*[:\-]?\s*", re.IGNORECASE
)

_MATCHUP_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(rf"\b({_NAME})\s+(?:at|@)\s+({_NAME}){_NAME_END}", re.IGNORECASE),
    re.compile(rf"\b({_NAME})\s+(?:vs\.?|v\.?)\s+({_NAME}){_NAME_END}", re.IGNORECASE),
    re.compile(rf"\b({_NAME})\s+versus\s+({_NAME}){_NAME_END}", re.IGNORECASE),
)

# Numbers and odds inside a captured team name ("Lakers -5.5"); "49ers"
# and "76ers" are kept because a word character follows the digits.
_NUMBER_TOKEN = re.compile(r"(?<![\w.])[+-]?\d+(?:\.\d+)?(?![\w]|\.\d)")

_POINTS_SUFFIX = r"(?:\s*(?:pts?|points?)\b)?"

_SIGNED_SPREAD = re.compile(rf"(?<![\w.])([+-]\d+(?:\.\d+)?)(?![\w]|\.\d){_POINTS_SUFFIX}")
_FAVORED_SPREAD = re.compile(
    r"favou?red\s+by\s+(\d+(?:\.\d+)?)"
    r"|(\d+(?:\.\d+)?)\s*(?:-?\s*points?\s+)?favou?rites?"
)
_UNDERDOG_SPREAD = re.compile(r"(\d+(?:\.\d+)?)\s*(?:-?\s*points?\s+)?underdogs?")
_SPELLED_SPREAD = re.compile(
    r"\b(minus|plus)\s+(one|two|three|four|five|six|seven|\d{1,2}(?:\.\d+)?)(?!\.?\d)"
    r"(\s+(?:and\s+a\s+)?half)?\b"
)
_UNSIGNED_SPREAD = re.compile(rf"(?<![\w.+\-])(\d+(?:\.\d+)?)(?![\w%]|\.\d){_POINTS_SUFFIX}")

_SPELLED_NUMBERS = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6, "seven": 7,
}

_PICK_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r"\b(?:i'?m\s+|i\s+am\s+)?tak(?:e|ing)\s+(?:the\s+)?"),
    re.compile(r"\b(?:my\s+)?pick\s+(?:is\s+)?(?:the\s+)?"),
    re.compile(r"\bbet(?:ting)?\s+(?:on\s+)?(?:the\s+)?"),
    re.compile(r"\bgoing\s+(?:with\s+)?(?:the\s+)?"),
    re.compile(r"\bi\s+(?:like|want|choose)\s+(?:the\s+)?"),
    re.compile(r"\bbacking\s+(?:the\s+)?"),
)

_NEUTRAL_VENUE = re.compile(r"\bneutral\s+(?:site|venue|field|court|floor)\b")
_AT_LOCATION = re.compile(r"(?:\bat|\bin|@)\s+([a-z0-9.'&\-]+(?:\s+[a-z0-9.'&\-]+)?)")

_ODDS_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r"(?:\bodds?|\bat)\s*([+-]?\d{3,4})\b"),
    re.compile(r"(?<![\w.])([+-]\d{3,4})\s*odds?\b"),
    re.compile(r"(?<![\w.])([+-]\d{3})\b(?!\s*(?:pts?|points?|spread))"),
)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass
class ParsedMatchup:
    sport: str
    sport_category: str
    team_a: TeamInfo  # the user's pick
    team_b: TeamInfo
    spread: float  # from team_a's perspective, negative when favored
    venue: str  # relative to team_a
    venue_assumed: bool
    american_odds: Optional[int]
    raw_text: str
    parsing_notes: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sport": self.sport,
            "sport_category": self.sport_category,
            "team_a": _team_dict(self.team_a),
            "team_b": _team_dict(self.team_b),
            "spread": self.spread,
            "venue": self.venue,
            "venue_assumed": self.venue_assumed,
            "american_odds": self.american_odds,
            "raw_text": self.raw_text,
            "parsing_notes": list(self.parsing_notes),
        }


@dataclass
class ParsingResult:
    success: bool
    parsed: Optional[ParsedMatchup] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    clarification_needed: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        if self.success and self.parsed is not None:
            return {"success": True, "parsed": self.parsed.to_dict()}
        return {
            "success": False,
            "error": self.error,
            "error_code": self.error_code,
            "clarification_needed": list(self.clarification_needed),
        }


@dataclass(frozen=True)
class _SpreadMatch:
    value: float
    start: int
    end: int


def _team_dict(team: TeamInfo) -> Dict[str, str]:
    return {
        "name": team.name,
        "city": team.city,
        "abbreviation": team.abbreviation,
        "full_name": team.full_name,
    }


def _failure(message: str, code: str, clarification: List[str]) -> ParsingResult:
    logger.debug("Matchup parse failed (%s): %s", code, message)
    return ParsingResult(
        success=False, error=message, error_code=code, clarification_needed=clarification
    )


# ---------------------------------------------------------------------------
# Team references
# ---------------------------------------------------------------------------


def _alias_pattern(alias: str) -> str:
    return r"\b" + r"\s+".join(re.escape(part) for part in alias.split()) + r"\b"


def team_aliases(team: TeamInfo) -> List[str]:
    """Lowercase references to ``team`` usable in running text, longest first."""
    raw = {team.name, team.full_name, team.abbreviation, *team.aliases}
    aliases = {normalize_alias(a) for a in raw}
    aliases = {a for a in aliases if a and a not in MENTION_STOPWORDS}
    return sorted(aliases, key=len, reverse=True)


def _find_alias(text: str, team: TeamInfo) -> Optional[re.Match]:
    for alias in team_aliases(team):
        match = re.search(_alias_pattern(alias), text)
        if match:
            return match
    return None


def _clean_name(name: str) -> str:
    return " ".join(_NUMBER_TOKEN.sub(" ", name).split())


def extract_matchup_tokens(text: str, sport: Optional[str] = None) -> List[Tuple[str, str]]:
    """
    Candidate ``(team A text, team B text)`` pairs, most explicit first.

    Explicit "A at B", "A vs B" and "A versus B" patterns come first, then
    the first two distinct team mentions by position in the text, once per
    alias partition.
    """
    compact = " ".join((text or "").split())
    cleaned = _LEAGUE_PREFIX.sub("", compact)
    candidates: List[Tuple[str, str]] = []

    def add(first: str, second: str) -> None:
        pair = (first, second)
        key = (normalize_alias(first), normalize_alias(second))
        if key[0] and key[1] and all(
            (normalize_alias(a), normalize_alias(b)) != key for a, b in candidates
        ):
            candidates.append(pair)

    for pattern in _MATCHUP_PATTERNS:
        match = pattern.search(cleaned)
        if match:
            add(_clean_name(match.group(1)), _clean_name(match.group(2)))

    normalized = normalize_alias(text)
    partitions = (sport,) if sport else UNHINTED_PARTITIONS
    for partition in partitions:
        # earliest position of each team, longest alias winning at a position
        first_seen: Dict[str, Tuple[int, int, str]] = {}
        for entry in iter_aliases(partition):
            if entry.alias in MENTION_STOPWORDS:
                continue
            match = re.search(_alias_pattern(entry.alias), normalized)
            if not match:
                continue
            key = entry.team.abbreviation
            position = (match.start(), -len(entry.alias), entry.alias)
            if key not in first_seen or position < first_seen[key]:
                first_seen[key] = position
        mentions = sorted(first_seen.values())
        if len(mentions) >= 2:
            add(mentions[0][2], mentions[1][2])

    return candidates


# ---------------------------------------------------------------------------
# Spread
# ---------------------------------------------------------------------------


def _plausible(value: float) -> bool:
    return MIN_SPREAD_MAGNITUDE <= abs(value) <= MAX_SPREAD_MAGNITUDE


def parse_spread(text: str) -> Optional[_SpreadMatch]:
    """
    Find the spread in ``text``; the first strategy that succeeds wins.

    1. a signed number ("-3.5", "+7 pts")
    2. "favored by N" / "N point favorites" (negative)
    3. "N point underdogs" (positive)
    4. spelled out, "minus three and a half" (N from one to seven)
    5. an unsigned number, as a last resort

    Magnitudes outside 0.5-50 are skipped so years, scores and odds are not
    mistaken for a spread.
    """
    lowered = (text or "").lower()

    for match in _SIGNED_SPREAD.finditer(lowered):
        value = float(match.group(1))
        if _plausible(value):
            return _SpreadMatch(value, match.start(), match.end())

    for match in _FAVORED_SPREAD.finditer(lowered):
        value = float(match.group(1) or match.group(2))
        if _plausible(value):
            return _SpreadMatch(-value, match.start(), match.end())

    for match in _UNDERDOG_SPREAD.finditer(lowered):
        value = float(match.group(1))
        if _plausible(value):
            return _SpreadMatch(value, match.start(), match.end())

    for match in _SPELLED_SPREAD.finditer(lowered):
        sign, number, half = match.groups()
        magnitude = float(_SPELLED_NUMBERS.get(number) or number) + (0.5 if half else 0.0)
        if _plausible(magnitude):
            value = -magnitude if sign == "minus" else magnitude
            return _SpreadMatch(value, match.start(), match.end())

    for match in _UNSIGNED_SPREAD.finditer(lowered):
        value = float(match.group(1))
        if _plausible(value):
            return _SpreadMatch(value, match.start(), match.end())

    return None


def find_spread_team(text: str, spread: _SpreadMatch, team_a: TeamInfo, team_b: TeamInfo) -> Optional[TeamInfo]:
    """
    The team the spread is written against ("Hawks -3.5", "-3.5 Hawks",
    "Cowboys are favored by 7"), or None if neither team is adjacent.
    """
    lowered = (text or "").lower()
    before = lowered[: spread.start]
    after = lowered[spread.end :]
    teams = (team_a, team_b)

    for team in teams:
        for alias in team_aliases(team):
            if re.search(_alias_pattern(alias) + r"(?:\s+(?:are|is))?\s*\(?\s*$", before):
                return team
    for team in teams:
        for alias in team_aliases(team):
            if re.match(r"\s*\)?\s*(?:the\s+)?" + _alias_pattern(alias), after):
                return team
    return None


# ---------------------------------------------------------------------------
# Pick, venue, odds
# ---------------------------------------------------------------------------


def parse_user_pick(text: str, team_a: TeamInfo, team_b: TeamInfo) -> Optional[TeamInfo]:
    """Team named right after a betting-intent phrase ("I'm taking the Celtics")."""
    lowered = (text or "").lower()
    for pattern in _PICK_PATTERNS:
        for match in pattern.finditer(lowered):
            rest = lowered[match.end() :]
            for team in (team_a, team_b):
                if any(re.match(_alias_pattern(a), rest) for a in team_aliases(team)):
                    return team
    return None


def parse_venue(text: str, pick: TeamInfo, opponent: TeamInfo) -> Tuple[str, bool]:
    """
    Venue from the pick's point of view, and whether it was assumed.

    Order: explicit neutral site; "at/in <home city or arena>"; home, away
    or road phrases near a pick reference; "at/in <team>"; otherwise
    neutral (assumed).
    """
    lowered = " ".join((text or "").lower().split())

    if _NEUTRAL_VENUE.search(lowered):
        return VENUE_NEUTRAL, False

    for match in _AT_LOCATION.finditer(lowered):
        location = match.group(1).strip(".,;'")
        if is_home_venue(location, pick):
            return VENUE_HOME, False
        if is_home_venue(location, opponent):
            return VENUE_AWAY, False

    opponent_refs = [re.compile(_alias_pattern(a)) for a in team_aliases(opponent)]
    for alias in team_aliases(pick):
        escaped = _alias_pattern(alias)
        forward = re.compile(
            escaped + rf"(?P<gap>.{{0,{VENUE_PROXIMITY_CHARS}}}?)\b(?P<kw>home|away|road)\b"
        )
        for match in forward.finditer(lowered):
            if not any(ref.search(match.group("gap")) for ref in opponent_refs):
                return (VENUE_HOME if match.group("kw") == "home" else VENUE_AWAY), False
        backward = re.compile(
            r"\b(?P<kw>home|away)\s+(?:game\s+)?(?:for\s+)?(?:the\s+)?" + escaped
        )
        match = backward.search(lowered)
        if match:
            return (VENUE_HOME if match.group("kw") == "home" else VENUE_AWAY), False

    for team, venue in ((pick, VENUE_HOME), (opponent, VENUE_AWAY)):
        for alias in team_aliases(team):
            if re.search(r"(?:\bat|\bin|@)\s+(?:the\s+)?" + _alias_pattern(alias), lowered):
                return venue, False

    return VENUE_NEUTRAL, True


def parse_odds(text: str) -> Optional[int]:
    """American odds near "odds"/"at", or a bare signed three-digit number."""
    lowered = (text or "").lower()
    for pattern in _ODDS_PATTERNS:
        for match in pattern.finditer(lowered):
            odds = int(match.group(1))
            if abs(odds) >= MIN_ODDS_MAGNITUDE:
                return odds
    return None


def format_american(odds: int) -> str:
    return f"+{odds}" if odds > 0 else str(odds)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def parse_matchup_request(
    text: str,
    locale: str = DEFAULT_LOCALE,
    *,
    default_sport: str = AMBIGUOUS_SPORT_DEFAULT,
    default_odds: int = DEFAULT_AMERICAN_ODDS,
) -> ParsingResult:
    """Parse a natural-language betting request into a :class:`ParsedMatchup`."""
    raw_text = text or ""
    notes: List[str] = []

    # 1. Sport, from explicit league tokens only
    sport = detect_sport(raw_text)
    explicit_sport = sport is not None

    # 2-3. Team pair and resolution
    candidates = extract_matchup_tokens(raw_text, sport)
    if not candidates:
        return _failure(
            t("parse_teams_not_identified", locale),
            REASON_TEAMS_NOT_IDENTIFIED,
            ["teams", "sport"],
        )

    errors: List[Tuple[str, str, List[str]]] = []
    resolved: Optional[Tuple[ResolvedTeam, ResolvedTeam]] = None
    for first_text, second_text in candidates:
        first, second = resolve_matchup_teams(
            first_text, second_text, sport, default_sport=default_sport
        )
        if not (isinstance(first, ResolvedTeam) and isinstance(second, ResolvedTeam)):
            failed = second if isinstance(first, ResolvedTeam) else first
            errors.append((failed.reason, REASON_TEAMS_NOT_IDENTIFIED, ["teams", "sport"]))
            continue
        if first.sport != second.sport:
            errors.append(
                (t("parse_sport_conflict", locale), REASON_SPORT_UNDETERMINED, ["sport"])
            )
            continue
        if first.team.abbreviation == second.team.abbreviation:
            errors.append((t("parse_same_team", locale), REASON_SAME_TEAM_TWICE, ["teams"]))
            continue
        resolved = (first, second)
        break

    if resolved is None:
        message, code, clarification = errors[0]
        return _failure(message, code, clarification)

    first, second = resolved
    if not explicit_sport:
        sport = first.sport
        notes.append(t("note_sport_inferred", locale, sport=sport.upper()))
    if MATCH_FUZZY in (first.match_type, second.match_type):
        notes.append(t("note_fuzzy_team", locale))
    team_a, team_b = first.team, second.team

    # 4. Spread
    spread_match = parse_spread(raw_text)
    if spread_match is None:
        return _failure(t("parse_spread", locale), REASON_SPREAD_UNPARSEABLE, ["spread"])
    spread = spread_match.value

    # 5-6. Attribution and pick
    spread_team = find_spread_team(raw_text, spread_match, team_a, team_b)
    pick = parse_user_pick(raw_text, team_a, team_b)
    if pick is None and spread_team is not None:
        pick = spread_team
        notes.append(t("note_pick_spread_team", locale, team=pick.name))
    elif pick is None:
        pick = team_a
        notes.append(t("note_pick_first_team", locale, team=pick.name))
    opponent = team_b if pick is team_a else team_a

    # 7. Reorient the spread to the pick
    if spread_team is not None and spread_team is not pick:
        spread = -spread
        notes.append(
            t("note_spread_adjusted", locale, spread=format_points(spread), team=pick.name)
        )

    # 8. Venue
    venue, venue_assumed = parse_venue(raw_text, pick, opponent)
    if venue_assumed:
        notes.append(t("note_venue_assumed", locale))

    # 9. Odds
    american_odds = parse_odds(raw_text)
    if american_odds is None:
        notes.append(t("note_odds_default", locale, odds=format_american(default_odds)))

    parsed = ParsedMatchup(
        sport=sport,
        sport_category=sport_category(sport),
        team_a=pick,
        team_b=opponent,
        spread=spread,
        venue=venue,
        venue_assumed=venue_assumed,
        american_odds=american_odds,
        raw_text=raw_text,
        parsing_notes=notes,
    )
    logger.debug(
        "Parsed matchup %s vs %s (%s), spread %s, venue %s",
        pick.abbreviation, opponent.abbreviation, sport, spread, venue,
    )
    return ParsingResult(success=True, parsed=parsed)
