"""
Structured error values for the estimation pipeline.

Caller-correctable failures (bad input, unknown team, missing stats,
unparseable text) are *returned* as :class:`ToolError` values so the caller
can react programmatically, e.g. by showing alternate spellings.  Only
genuinely unexpected failures are raised.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

# Error codes
INVALID_INPUT = "invalid_input"
TEAM_NOT_FOUND = "team_not_found"
INSUFFICIENT_DATA = "insufficient_data"
PARSE_FAILURE = "parse_failure"

# Parse failure reasons
REASON_TEAMS_NOT_IDENTIFIED = "teams-not-identified"
REASON_SPORT_UNDETERMINED = "sport-undetermined"
REASON_SAME_TEAM_TWICE = "same-team-twice"
REASON_SPREAD_UNPARSEABLE = "spread-unparseable"


class MalformedAliasTableError(RuntimeError):
    """A static team table is unusable (empty alias, missing abbreviation)."""


@dataclass(frozen=True)
class ToolError:
    """A typed, caller-correctable failure.

    Only ``error`` and ``message`` are always set; the remaining fields are
    populated according to the error code.
    """

    error: str
    message: str
    hint: Optional[str] = None
    suggestions: tuple = ()
    team_searched: Optional[str] = None
    teams: Optional[Dict[str, Any]] = None
    missing_fields: tuple = ()
    reason: Optional[str] = None
    clarification_needed: tuple = ()

    @property
    def success(self) -> bool:
        return False

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready payload; empty optional fields are omitted."""
        payload: Dict[str, Any] = {"error": self.error, "message": self.message}
        if self.hint:
            payload["hint"] = self.hint
        if self.team_searched is not None:
            payload["team_searched"] = self.team_searched
        if self.suggestions:
            payload["suggestions"] = list(self.suggestions)
        if self.teams:
            payload["teams"] = dict(self.teams)
        if self.missing_fields:
            payload["missing_fields"] = list(self.missing_fields)
        if self.reason:
            payload["reason"] = self.reason
        if self.clarification_needed:
            payload["clarification_needed"] = list(self.clarification_needed)
        return payload


def invalid_input(
    message: str,
    *,
    hint: Optional[str] = None,
    suggestions: Sequence[str] = (),
    team_searched: Optional[str] = None,
    missing_fields: Sequence[str] = (),
) -> ToolError:
    return ToolError(
        error=INVALID_INPUT,
        message=message,
        hint=hint,
        suggestions=tuple(suggestions),
        team_searched=team_searched,
        missing_fields=tuple(missing_fields),
    )


def team_not_found(message: str, query: str, suggestions: Sequence[str]) -> ToolError:
    return ToolError(
        error=TEAM_NOT_FOUND,
        message=message,
        team_searched=query,
        suggestions=tuple(suggestions),
    )


def insufficient_data(
    message: str, teams: Dict[str, Any], missing_fields: Sequence[str] = ()
) -> ToolError:
    return ToolError(
        error=INSUFFICIENT_DATA,
        message=message,
        teams=teams,
        missing_fields=tuple(missing_fields),
    )


def parse_failure(
    message: str,
    reason: str,
    clarification_needed: Sequence[str],
    hint: Optional[str] = None,
) -> ToolError:
    return ToolError(
        error=PARSE_FAILURE,
        message=message,
        hint=hint,
        reason=reason,
        clarification_needed=tuple(clarification_needed),
    )
