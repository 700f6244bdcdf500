"""
User-facing text catalogues (English and Spanish) and interpretation helpers.

The locale is always passed explicitly; there is no process-wide "current
locale".  Templates use ``str.format`` fields, so numeric format specs such
as ``{diff:.1f}`` live in the catalogue next to the wording.
"""

from __future__ import annotations

from typing import Dict

from backend.core.probability import probability_tier

DEFAULT_LOCALE = "en"

SUPPORTED_LOCALES = ("en", "en-US", "en-GB", "es", "es-ES", "es-419")

CATALOGUES: Dict[str, Dict[str, str]] = {
    "en": {
        # Spread interpretation
        "spread_text_favorite": "{team} as {points}-point favorites",
        "spread_text_underdog": "{team} as {points}-point underdogs",
        "interp_spread_strong": "STRONG COVER: {probability}% probability. {spread_text} looks like good value.",
        "interp_spread_favorable": "FAVORABLE: {probability}% probability. {spread_text} has a slight edge.",
        "interp_spread_coin_flip": "COIN FLIP: {probability}% probability. {spread_text} is essentially even odds.",
        "interp_spread_unfavorable": "UNFAVORABLE: {probability}% probability. {spread_text} is risky.",
        "interp_spread_poor": "POOR VALUE: {probability}% probability. {spread_text} is not recommended.",
        # Totals interpretation
        "direction_over": "over",
        "direction_under": "under",
        "relation_over": "above",
        "relation_under": "below",
        "interp_total_strong": "STRONG {DIRECTION}: {probability}% probability. Projected total ({total}) is {diff:.1f} goals {relation} the line. Good value bet.",
        "interp_total_favorable": "FAVORABLE {DIRECTION}: {probability}% probability. Projected total suggests a slight edge on the {direction}.",
        "interp_total_coin_flip": "COIN FLIP: {probability}% probability. The {direction} {line} is essentially even odds.",
        "interp_total_unfavorable": "UNFAVORABLE: {probability}% probability. The {direction} {line} is risky.",
        "interp_total_poor": "POOR VALUE: {probability}% probability. The {direction} {line} is not recommended.",
        # Odds tools
        "vig_very_low": "Very low vig - excellent value",
        "vig_low": "Low vig - good for bettors",
        "vig_standard": "Standard vig - typical sportsbook margin",
        "vig_above_average": "Above average vig - shop for better lines",
        "vig_high": "High vig - consider finding better odds elsewhere",
        "implied_underdog": "These are underdog odds. A $100 bet would win ${odds}. The market implies a {probability:.1f}% chance of winning.",
        "implied_favorite": "These are favorite odds. You need to bet ${odds} to win $100. The market implies a {probability:.1f}% chance of winning.",
        # Kelly
        "kelly_stake_text": "Kelly Criterion recommends staking ${stake:.2f} ({percentage}% of bankroll) on this bet.",
        "kelly_no_value": "No Value - Do Not Bet. The Kelly Criterion indicates negative expected value for this bet.",
        # Estimation errors
        "error_missing_fields": "Missing required fields: {fields}.",
        "error_spread_sign": "Spread must be negative from the favorite's perspective (got {spread}).",
        "hint_spread_sign": "Express the spread as the favorite's line, e.g. -{magnitude} rather than +{magnitude}, or swap the teams if {underdog} is actually favored.",
        "error_spread_range": "Spread {spread} is out of the valid range. It should be between -50 and -0.5.",
        "error_unknown_team": 'Unknown {league} team: "{team}"',
        "error_insufficient_data": "Insufficient team statistics available",
        "error_no_spread_model": "{league} has no spread model; use the hockey totals tool.",
        # Parser notes
        "note_sport_inferred": "Sport inferred as {sport} from team names",
        "note_fuzzy_team": "Team names resolved with fuzzy matching; verify team spelling for accuracy.",
        "note_pick_spread_team": "Pick assumed to be {team} (team mentioned with spread)",
        "note_pick_first_team": "Pick assumed to be {team} (first team mentioned)",
        "note_spread_adjusted": "Spread adjusted to {spread} from {team}'s perspective",
        "note_venue_assumed": "Venue assumed as neutral (not explicitly stated)",
        "note_odds_default": "Odds not provided - will default to {odds}",
        # Parser failures
        "parse_teams_not_identified": 'Could not identify both teams. Please provide a clear "A vs B" or "A at B" matchup.',
        "parse_same_team": "Detected the same team twice. Please provide two different teams.",
        "parse_sport_conflict": "Teams appear to belong to different leagues. Please specify the sport.",
        "parse_spread": 'Could not parse point spread. Please provide a spread like "-3.5" or "favored by 7".',
        "clarify_teams": "Which two teams are playing?",
        "clarify_sport": "Which league is this game in (NFL, NBA, college football, college basketball)?",
        "clarify_spread": "What is the point spread, and which team does it apply to?",
    },
    "es": {
        "spread_text_favorite": "{team} como favoritos por {points} puntos",
        "spread_text_underdog": "{team} como no favoritos por {points} puntos",
        "interp_spread_strong": "COBERTURA FUERTE: {probability}% de probabilidad. {spread_text} parece tener buen valor.",
        "interp_spread_favorable": "FAVORABLE: {probability}% de probabilidad. {spread_text} tiene una ligera ventaja.",
        "interp_spread_coin_flip": "MONEDA AL AIRE: {probability}% de probabilidad. {spread_text} está prácticamente parejo.",
        "interp_spread_unfavorable": "DESFAVORABLE: {probability}% de probabilidad. {spread_text} es arriesgado.",
        "interp_spread_poor": "POCO VALOR: {probability}% de probabilidad. {spread_text} no se recomienda.",
        "direction_over": "más",
        "direction_under": "menos",
        "relation_over": "por encima de",
        "relation_under": "por debajo de",
        "interp_total_strong": "{DIRECTION} FUERTE: {probability}% de probabilidad. El total proyectado ({total}) está {diff:.1f} goles {relation} la línea. Buena apuesta de valor.",
        "interp_total_favorable": "{DIRECTION} FAVORABLE: {probability}% de probabilidad. El total proyectado sugiere una ligera ventaja en el {direction}.",
        "interp_total_coin_flip": "MONEDA AL AIRE: {probability}% de probabilidad. El {direction} {line} está prácticamente parejo.",
        "interp_total_unfavorable": "DESFAVORABLE: {probability}% de probabilidad. El {direction} {line} es arriesgado.",
        "interp_total_poor": "POCO VALOR: {probability}% de probabilidad. El {direction} {line} no se recomienda.",
        "vig_very_low": "Vig muy bajo - excelente valor",
        "vig_low": "Vig bajo - bueno para los apostadores",
        "vig_standard": "Vig estándar - margen típico de la casa de apuestas",
        "vig_above_average": "Vig por encima del promedio - busque mejores líneas",
        "vig_high": "Vig alto - considere buscar mejores cuotas en otro lugar",
        "implied_underdog": "Estas son cuotas de no favorito. Una apuesta de $100 ganaría ${odds}. El mercado implica un {probability:.1f}% de probabilidad de ganar.",
        "implied_favorite": "Estas son cuotas de favorito. Necesita apostar ${odds} para ganar $100. El mercado implica un {probability:.1f}% de probabilidad de ganar.",
        "kelly_stake_text": "El Criterio de Kelly recomienda apostar ${stake:.2f} ({percentage}% del bankroll) en esta apuesta.",
        "kelly_no_value": "Sin Valor - No Apostar. El Criterio de Kelly indica un valor esperado negativo para esta apuesta.",
        "error_missing_fields": "Faltan campos obligatorios: {fields}.",
        "error_spread_sign": "El spread debe ser negativo desde la perspectiva del favorito (recibido {spread}).",
        "hint_spread_sign": "Exprese el spread como la línea del favorito, p. ej. -{magnitude} en lugar de +{magnitude}, o intercambie los equipos si {underdog} es realmente el favorito.",
        "error_spread_range": "El spread {spread} está fuera del rango válido. Debe estar entre -50 y -0.5.",
        "error_unknown_team": 'Equipo de {league} desconocido: "{team}"',
        "error_insufficient_data": "Estadísticas de equipo insuficientes",
        "error_no_spread_model": "{league} no tiene modelo de spread; use la herramienta de totales de hockey.",
        "note_sport_inferred": "Deporte inferido como {sport} a partir de los nombres de los equipos",
        "note_fuzzy_team": "Nombres de equipos resueltos con coincidencia aproximada; verifique la ortografía.",
        "note_pick_spread_team": "Se asume que la elección es {team} (equipo mencionado con el spread)",
        "note_pick_first_team": "Se asume que la elección es {team} (primer equipo mencionado)",
        "note_spread_adjusted": "Spread ajustado a {spread} desde la perspectiva de {team}",
        "note_venue_assumed": "Sede asumida como neutral (no se indicó explícitamente)",
        "note_odds_default": "No se proporcionaron cuotas - se usará {odds} por defecto",
        "parse_teams_not_identified": 'No se pudieron identificar ambos equipos. Indique un enfrentamiento claro "A vs B" o "A at B".',
        "parse_same_team": "Se detectó el mismo equipo dos veces. Indique dos equipos diferentes.",
        "parse_sport_conflict": "Los equipos parecen pertenecer a ligas diferentes. Indique el deporte.",
        "parse_spread": 'No se pudo interpretar el spread. Indique un spread como "-3.5" o "favored by 7".',
        "clarify_teams": "¿Qué dos equipos juegan?",
        "clarify_sport": "¿En qué liga es este partido (NFL, NBA, fútbol americano universitario, baloncesto universitario)?",
        "clarify_spread": "¿Cuál es el spread y a qué equipo se aplica?",
    },
}


def negotiate_locale(requested: str | None) -> str:
    """Best supported locale: exact, then language prefix, then a regional variant, then ``en``."""
    if not requested:
        return DEFAULT_LOCALE
    normalized = requested.strip().replace("_", "-")
    if normalized in SUPPORTED_LOCALES:
        return normalized
    language = normalized.split("-")[0].lower()
    if language in SUPPORTED_LOCALES:
        return language
    for locale in SUPPORTED_LOCALES:
        if locale.startswith(language + "-"):
            return locale
    return DEFAULT_LOCALE


def t(key: str, locale: str = DEFAULT_LOCALE, **params) -> str:
    """Render ``key`` in ``locale``, falling back to English, then to the key itself."""
    language = (locale or DEFAULT_LOCALE).split("-")[0].lower()
    template = CATALOGUES.get(language, {}).get(key) or CATALOGUES[DEFAULT_LOCALE].get(key)
    if template is None:
        return key
    return template.format(**params) if params else template


def format_points(value: float) -> str:
    """``3.5`` -> ``"3.5"``, ``7.0`` -> ``"7"``."""
    return f"{value:g}"


def interpret_spread(probability: float, team: str, spread: float, locale: str = DEFAULT_LOCALE) -> str:
    """Plain-language verdict for a cover probability (percent) on ``team`` at ``spread``."""
    if spread < 0:
        spread_text = t("spread_text_favorite", locale, team=team, points=format_points(abs(spread)))
    else:
        spread_text = t("spread_text_underdog", locale, team=team, points=format_points(spread))
    tier = probability_tier(probability)
    return t(f"interp_spread_{tier}", locale, probability=probability, spread_text=spread_text)


def interpret_total(
    probability: float,
    bet_type: str,
    line: float,
    projected_total: float,
    locale: str = DEFAULT_LOCALE,
) -> str:
    """Plain-language verdict for an over/under probability (percent)."""
    direction = t(f"direction_{bet_type}", locale)
    tier = probability_tier(probability)
    return t(
        f"interp_total_{tier}",
        locale,
        probability=probability,
        DIRECTION=direction.upper(),
        direction=direction,
        relation=t(f"relation_{bet_type}", locale),
        total=projected_total,
        diff=abs(projected_total - line),
        line=format_points(line),
    )
